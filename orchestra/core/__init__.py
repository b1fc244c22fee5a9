"""
Task orchestration on top of the tool and agent registries.
"""

from .orchestrator import (
    AgentPreferences,
    ExecutionOptions,
    OrchestrationRequest,
    OrchestrationResult,
    RegistryOrchestrator,
    SystemStatistics,
    run_sequential_tasks,
)
from .presets import create_orchestrator

__all__ = [
    "AgentPreferences",
    "ExecutionOptions",
    "OrchestrationRequest",
    "OrchestrationResult",
    "RegistryOrchestrator",
    "SystemStatistics",
    "create_orchestrator",
    "run_sequential_tasks",
]
