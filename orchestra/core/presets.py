"""Factory functions that wire registries, built-ins and the orchestrator."""

from __future__ import annotations

from typing import Optional

from ..logger import log
from ..registry.agents.loader import register_installed_agents
from ..registry.agents.registry import AgentRegistry
from ..registry.agents.repository import AgentRepository
from ..registry.tools.registry import ToolRegistry
from ..services.templates import TemplateStore, create_template_store
from .orchestrator import RegistryOrchestrator, run_sequential_tasks

PRESETS = ("basic", "empty")


def create_orchestrator(
    preset: str = "basic",
    *,
    stats_strategy: Optional[str] = None,
    templates: Optional[TemplateStore] = None,
    repository: Optional[AgentRepository] = None,
) -> RegistryOrchestrator:
    """Build a ready-to-use orchestrator.

    ``basic`` registers the bundled tools, every discoverable bundled agent and
    the ``sequential`` workflow. ``empty`` returns bare registries.
    """
    normalized = (preset or "").strip().lower()
    if normalized not in PRESETS:
        raise ValueError(f"Unknown orchestrator preset '{preset}'. Expected one of: {', '.join(PRESETS)}")

    tool_registry = ToolRegistry(stats_strategy=stats_strategy)
    agent_registry = AgentRegistry(stats_strategy=stats_strategy)
    orchestrator = RegistryOrchestrator(tool_registry, agent_registry)

    if normalized == "empty":
        return orchestrator

    from ..tools import register_builtin_tools

    templates = templates if templates is not None else create_template_store()
    register_builtin_tools(tool_registry, templates=templates)
    register_installed_agents(agent_registry, tool_registry=tool_registry, repository=repository)
    orchestrator.register_workflow("sequential", run_sequential_tasks)

    log(
        f"[orchestrator] '{normalized}' preset ready",
        tools=len(tool_registry.list_tools()),
        agents=len(agent_registry.list_agents()),
    )
    return orchestrator


__all__ = ["PRESETS", "create_orchestrator"]
