"""Discover bundled agent manifests from the codebase."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from ...config import CONFIG, PACKAGE_ROOT


@dataclass(slots=True)
class AgentManifest:
    """Parsed ``manifest.yaml`` of an agent package."""

    key: str
    path: Path
    definition: Dict[str, Any]
    tools: List[str] = field(default_factory=list)
    docs: Optional[str] = None

    @classmethod
    def from_manifest(cls, key: str, path: Path, manifest: Dict[str, Any]) -> "AgentManifest":
        definition = dict(manifest.get("agent") or {})
        definition.setdefault("id", key)
        tools_block = manifest.get("tools") or []
        return cls(
            key=key,
            path=path,
            definition=definition,
            tools=[str(tool) for tool in tools_block if tool],
            docs=manifest.get("docs"),
        )


class AgentRepository:
    """Load agent manifests from ``orchestra/agents/<key>/manifest.yaml``."""

    def __init__(self, agents_dir: Optional[Path] = None):
        if agents_dir is None:
            agents_dir = PACKAGE_ROOT / "agents"
        self._agents_dir = Path(agents_dir)

    def _manifest_path(self, key: str) -> Path:
        return self._agents_dir / key / "manifest.yaml"

    def _load_manifest(self, key: str) -> Optional[dict]:
        manifest_path = self._manifest_path(key)
        if not manifest_path.exists():
            return None
        with manifest_path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)

    def _build(self, key: str) -> Optional[AgentManifest]:
        manifest = self._load_manifest(key)
        if not isinstance(manifest, dict):
            return None
        return AgentManifest.from_manifest(key, self._agents_dir / key, manifest)

    def keys(self) -> Iterable[str]:
        seen: set[str] = set()
        for key in getattr(CONFIG, "installed_agents", ()):
            cleaned = (key or "").strip()
            if cleaned and cleaned not in seen:
                seen.add(cleaned)
                yield cleaned

        try:
            directory_entries = sorted(p.name for p in self._agents_dir.iterdir() if p.is_dir())
        except FileNotFoundError:
            directory_entries = []

        for key in directory_entries:
            cleaned = (key or "").strip()
            if not cleaned or cleaned in seen or cleaned.startswith("_"):
                continue
            seen.add(cleaned)
            yield cleaned

    def all(self) -> Dict[str, AgentManifest]:
        manifests: Dict[str, AgentManifest] = {}
        for key in self.keys():
            manifest = self._build(key)
            if manifest:
                manifests[key] = manifest
        return manifests

    def get(self, key: str) -> Optional[AgentManifest]:
        cleaned = (key or "").strip()
        if not cleaned:
            return None
        return self._build(cleaned)


__all__ = ["AgentManifest", "AgentRepository"]
