"""
Agent Registry System

Handles agent registration, lifecycle hooks, discovery, execution tracking
and per-session memory.
"""

from .base import AgentHandler
from .models import (
    AgentCapabilities,
    AgentDefinition,
    AgentExecutionContext,
    AgentExecutionResult,
    AgentModel,
    AgentSearchQuery,
    AgentType,
    RegisteredAgent,
)
from .registry import AgentRegistry, create_agent_registry
from .repository import AgentManifest, AgentRepository
# Note: loader functions available as registry.agents.loader

__all__ = [
    'AgentHandler',
    'AgentCapabilities',
    'AgentDefinition',
    'AgentExecutionContext',
    'AgentExecutionResult',
    'AgentModel',
    'AgentSearchQuery',
    'AgentType',
    'RegisteredAgent',
    'AgentRegistry',
    'create_agent_registry',
    'AgentManifest',
    'AgentRepository',
]
