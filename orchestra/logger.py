"""Lightweight logging helper shared by the registries and orchestrator."""

from __future__ import annotations

import logging
from typing import Any

_LOGGER = logging.getLogger("orchestra")


def _coerce(parts: tuple[object, ...]) -> str:
    rendered = " ".join(str(part) for part in parts if part is not None)
    return rendered.strip()


def _configure() -> None:
    from .config import CONFIG

    logging.basicConfig(level=logging.INFO)
    level = logging.getLevelName(getattr(CONFIG, "log_level", "INFO"))
    if isinstance(level, int):
        _LOGGER.setLevel(level)


def log(*parts: object, **metadata: Any) -> None:
    """
    Emit an info-level operational message.

    Keyword arguments are treated as structured metadata: they are appended to
    the rendered message and forwarded through the standard logging stack.
    """

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        _configure()

    _LOGGER.info(message)


def warn(*parts: object, **metadata: Any) -> None:
    """Warning-level counterpart of :func:`log` for degraded paths."""

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        _configure()

    _LOGGER.warning(message)


__all__ = ["log", "warn"]
