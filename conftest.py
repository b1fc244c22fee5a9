"""Repository-wide pytest fixtures."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from orchestra.config import reload_config
from orchestra.core.orchestrator import RegistryOrchestrator
from orchestra.registry.agents.registry import AgentRegistry
from orchestra.registry.tools.registry import ToolRegistry


@pytest.fixture(autouse=True)
def _set_default_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Pin the settings every test relies on, independent of the host env."""

    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    for key in (
        "REGISTRY_STATS_STRATEGY",
        "AGENT_TYPES_STRICT",
        "INSTALLED_AGENTS",
        "TEMPLATES_DIR",
        "DEFAULT_TASK_TIMEOUT_MS",
        "DEFAULT_TASK_PRIORITY",
        "SESSION_MAX_AGE_MS",
    ):
        monkeypatch.delenv(key, raising=False)
    reload_config()
    yield
    reload_config()


@pytest.fixture
def tool_registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def agent_registry() -> AgentRegistry:
    return AgentRegistry()


@pytest.fixture
def orchestrator(tool_registry: ToolRegistry, agent_registry: AgentRegistry) -> RegistryOrchestrator:
    """Orchestrator over empty registries."""

    return RegistryOrchestrator(tool_registry, agent_registry)
