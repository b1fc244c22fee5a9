"""
Tool Registry System

Handles tool registration, dependency checks, discovery and execution tracking.
"""

from .base import ToolHandler
from .models import (
    ToolCapabilities,
    ToolCategory,
    ToolDefinition,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolInstance,
    ToolParameter,
    ToolSearchQuery,
)
from .registry import ToolRegistry, create_tool_registry

__all__ = [
    'ToolHandler',
    'ToolCapabilities',
    'ToolCategory',
    'ToolDefinition',
    'ToolExecutionContext',
    'ToolExecutionResult',
    'ToolInstance',
    'ToolParameter',
    'ToolSearchQuery',
    'ToolRegistry',
    'create_tool_registry',
]
