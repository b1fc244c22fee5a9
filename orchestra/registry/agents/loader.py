"""Handler class loading for bundled agents."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from ...logger import log, warn
from ..errors import RegistryError
from .base import AgentHandler
from .repository import AgentRepository

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..tools.registry import ToolRegistry
    from .registry import AgentRegistry

_HANDLER_CACHE: Dict[str, Type[AgentHandler]] = {}


def load_handler_class(agent_key: str) -> Type[AgentHandler]:
    normalized = (agent_key or "").strip().casefold()
    if not normalized:
        raise ValueError("Agent key must be provided.")

    cached_cls = _HANDLER_CACHE.get(normalized)
    if cached_cls is not None:
        return cached_cls

    module_name = f"orchestra.agents.{normalized}.agent"
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            f"No agent module found for key '{agent_key}'. Ensure agents/{normalized}/agent.py exists."
        ) from exc

    handler_cls = getattr(module, "AGENT_CLASS", None) or _find_handler_class(module)
    if handler_cls is None:
        raise RuntimeError(
            f"No agent handler found for key '{agent_key}'. Ensure agents/{normalized}/agent.py "
            "defines a subclass of AgentHandler or exports AGENT_CLASS."
        )
    if not issubclass(handler_cls, AgentHandler):
        raise TypeError(f"{handler_cls!r} is not a subclass of AgentHandler.")

    _HANDLER_CACHE[normalized] = handler_cls
    return handler_cls


def _find_handler_class(module) -> Optional[Type[AgentHandler]]:
    for attr in dir(module):
        obj = getattr(module, attr)
        if isinstance(obj, type) and issubclass(obj, AgentHandler) and obj is not AgentHandler:
            return obj
    return None


def create_handler(agent_key: str, *, tool_registry: Optional["ToolRegistry"] = None) -> AgentHandler:
    handler_cls = load_handler_class(agent_key)
    return handler_cls(tool_registry=tool_registry)


def register_installed_agents(
    agent_registry: "AgentRegistry",
    *,
    tool_registry: Optional["ToolRegistry"] = None,
    repository: Optional[AgentRepository] = None,
) -> List[str]:
    """Register every discoverable bundled agent, skipping broken packages."""

    repository = repository or AgentRepository()
    registered: List[str] = []
    for key, manifest in repository.all().items():
        try:
            handler = create_handler(key, tool_registry=tool_registry)
        except (RuntimeError, TypeError) as exc:
            warn(f"[agent-loader] skipping agent '{key}': {exc}")
            continue
        try:
            agent_id = agent_registry.register_agent(manifest.definition, handler, manifest.tools)
        except RegistryError as exc:
            warn(f"[agent-loader] skipping agent '{key}': {exc}")
            continue
        except Exception as exc:  # noqa: BLE001 - initialize hook failures skip the agent
            warn(f"[agent-loader] skipping agent '{key}': initialize failed: {exc}")
            continue
        registered.append(agent_id)

    log(f"[agent-loader] registered {len(registered)} bundled agent(s)")
    return registered


__all__ = ["load_handler_class", "create_handler", "register_installed_agents"]
