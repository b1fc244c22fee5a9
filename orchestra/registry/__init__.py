"""
Registry System for Agents and Tools

This module provides:
- Tool registration, dependency validation and usage statistics (registry.tools)
- Agent registration, lifecycle hooks and session memory (registry.agents)
- Typed registration and lookup errors (registry.errors)
"""

from .agents import AgentDefinition, AgentHandler, AgentRegistry, RegisteredAgent
from .errors import (
    AgentNotFoundError,
    DependentsExistError,
    DuplicateIdError,
    InvalidDefinitionError,
    InvalidParametersError,
    MissingDependencyError,
    RegistryError,
    ToolNotFoundError,
)
from .tools import ToolDefinition, ToolHandler, ToolInstance, ToolRegistry

# Submodules are also available as registry.agents and registry.tools
from . import agents
from . import tools

__all__ = [
    # Agent registry
    'AgentDefinition',
    'AgentHandler',
    'AgentRegistry',
    'RegisteredAgent',
    # Tool registry
    'ToolDefinition',
    'ToolHandler',
    'ToolInstance',
    'ToolRegistry',
    # Errors
    'RegistryError',
    'InvalidDefinitionError',
    'DuplicateIdError',
    'MissingDependencyError',
    'DependentsExistError',
    'ToolNotFoundError',
    'AgentNotFoundError',
    'InvalidParametersError',
    # Submodules
    'agents',
    'tools',
]
