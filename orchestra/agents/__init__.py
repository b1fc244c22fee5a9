"""Bundled agent packages discovered through their ``manifest.yaml``."""
