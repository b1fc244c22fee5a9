"""
Tool Registry

Owns tool definitions and handlers. Registration validates definitions and
their dependencies, maintains category and tag indices, and every execution
feeds the per-tool usage statistics, including failed ones.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from pydantic import ValidationError

from ...logger import log
from ..errors import (
    DependentsExistError,
    DuplicateIdError,
    InvalidDefinitionError,
    InvalidParametersError,
    MissingDependencyError,
    ToolNotFoundError,
)
from ..stats import UsageMetadata, now_ms, resolve_strategy
from .base import ToolHandler
from .models import (
    ToolCapabilities,
    ToolDefinition,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolInstance,
    ToolRegistryStatistics,
    ToolResultMetadata,
    ToolSearchQuery,
    ToolStatistics,
)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of tool handlers keyed by tool id.

    Example:
        registry = ToolRegistry()
        registry.register_tool(definition, handler)
        result = await registry.execute_tool(context)
    """

    def __init__(self, *, stats_strategy: Optional[str] = None) -> None:
        self._tools: Dict[str, ToolInstance] = {}
        self._categories: Dict[str, Set[str]] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._stats_strategy = resolve_strategy(stats_strategy)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_tool(
        self,
        definition: Union[ToolDefinition, Mapping[str, Any]],
        handler: ToolHandler,
    ) -> str:
        """Validate and store a tool, returning its id."""
        try:
            validated = ToolDefinition.model_validate(definition)
        except ValidationError as exc:
            raise InvalidDefinitionError("tool", str(exc)) from exc

        if validated.id in self._tools:
            raise DuplicateIdError("tool", validated.id)

        for dependency_id in validated.dependencies:
            if dependency_id not in self._tools:
                raise MissingDependencyError("tool", validated.id, dependency_id)

        instance = ToolInstance(
            id=validated.id,
            definition=validated,
            handler=handler,
            metadata=UsageMetadata(registered_at=now_ms(), strategy=self._stats_strategy),
        )
        self._tools[validated.id] = instance
        self._update_indices(validated)

        log(f"[tool-registry] registered tool '{validated.id}' ({validated.category})")
        return validated.id

    def unregister_tool(self, tool_id: str) -> bool:
        instance = self._tools.get(tool_id)
        if instance is None:
            return False

        dependents = self._dependent_tools(tool_id)
        if dependents:
            raise DependentsExistError("tool", tool_id, dependents)

        self._remove_from_indices(instance.definition)
        del self._tools[tool_id]
        log(f"[tool-registry] unregistered tool '{tool_id}'")
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_tool(self, tool_id: str) -> Optional[ToolInstance]:
        return self._tools.get(tool_id)

    def list_tools(self) -> List[ToolInstance]:
        return list(self._tools.values())

    def list_tools_by_category(self, category: str) -> List[ToolInstance]:
        return self._resolve_ids(self._categories.get(_enum_value(category)))

    def list_tools_by_tag(self, tag: str) -> List[ToolInstance]:
        return self._resolve_ids(self._tags.get(tag))

    def search_tools(self, query: Union[ToolSearchQuery, Mapping[str, Any], None] = None) -> List[ToolInstance]:
        """Filter tools; fields combine with AND, tags match with OR."""
        criteria = ToolSearchQuery.model_validate(query or {})
        results = self.list_tools()

        if criteria.category:
            category = _enum_value(criteria.category)
            results = [tool for tool in results if tool.definition.category == category]

        if criteria.tags:
            wanted = set(criteria.tags)
            results = [tool for tool in results if wanted.intersection(tool.definition.tags)]

        if criteria.name:
            term = criteria.name.lower()
            results = [
                tool
                for tool in results
                if term in tool.definition.name.lower() or term in tool.definition.description.lower()
            ]

        if criteria.capability:
            results = [tool for tool in results if self._matches_capability(tool, criteria.capability)]

        return results

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    async def execute_tool(self, context: Union[ToolExecutionContext, Mapping[str, Any]]) -> ToolExecutionResult:
        """Run a tool handler and record its usage.

        Unknown tools and rejected parameters raise; anything the handler
        raises is converted into a failed result.
        """
        context = ToolExecutionContext.model_validate(context)
        instance = self._tools.get(context.tool_id)
        if instance is None:
            raise ToolNotFoundError(context.tool_id)

        if not instance.handler.validate_parameters(context.parameters):
            raise InvalidParametersError("tool", context.tool_id)

        await self._check_permissions(instance, context)

        started = time.perf_counter()
        try:
            raw = await instance.handler.execute(context)
            result = _normalise_result(raw, context)
        except Exception as exc:  # noqa: BLE001 - handler failures become results
            execution_time = _elapsed_ms(started)
            instance.metadata.record(execution_time, False)
            logger.warning("Tool '%s' raised during execution: %s", context.tool_id, exc)
            return ToolExecutionResult(
                success=False,
                error=str(exc) or type(exc).__name__,
                execution_time=execution_time,
                cost=0.0,
                metadata=ToolResultMetadata(
                    tool_id=context.tool_id,
                    session_id=context.session_id,
                    agent_id=context.agent_id,
                ),
            )

        execution_time = _elapsed_ms(started)
        instance.metadata.record(execution_time, result.success)
        return result.model_copy(
            update={
                "execution_time": execution_time,
                "metadata": result.metadata.model_copy(update={"timestamp": now_ms()}),
            }
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def get_tool_statistics(self, tool_id: str) -> Optional[ToolStatistics]:
        instance = self._tools.get(tool_id)
        if instance is None:
            return None
        meta = instance.metadata
        return ToolStatistics(
            tool_id=tool_id,
            usage_count=meta.usage_count,
            average_execution_time=meta.average_execution_time,
            success_rate=meta.success_rate,
            last_used=meta.last_used,
            registered_at=meta.registered_at,
        )

    def get_registry_statistics(self) -> ToolRegistryStatistics:
        tools = self.list_tools()
        most_used = max(tools, key=lambda tool: tool.metadata.usage_count, default=None)
        return ToolRegistryStatistics(
            total_tools=len(tools),
            categories=len(self._categories),
            total_usage=sum(tool.metadata.usage_count for tool in tools),
            average_success_rate=(
                sum(tool.metadata.success_rate for tool in tools) / len(tools) if tools else 0.0
            ),
            most_used_tool=most_used.id if most_used else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_ids(self, ids: Optional[Set[str]]) -> List[ToolInstance]:
        if not ids:
            return []
        # Registry order, not set order.
        return [tool for tool_id, tool in self._tools.items() if tool_id in ids]

    def _update_indices(self, definition: ToolDefinition) -> None:
        self._categories.setdefault(definition.category, set()).add(definition.id)
        for tag in definition.tags:
            self._tags.setdefault(tag, set()).add(definition.id)

    def _remove_from_indices(self, definition: ToolDefinition) -> None:
        _discard(self._categories, definition.category, definition.id)
        for tag in definition.tags:
            _discard(self._tags, tag, definition.id)

    def _dependent_tools(self, tool_id: str) -> List[str]:
        return [
            instance.id
            for instance in self._tools.values()
            if tool_id in instance.definition.dependencies
        ]

    @staticmethod
    def _matches_capability(tool: ToolInstance, capability: str) -> bool:
        try:
            capabilities = ToolCapabilities.model_validate(tool.handler.get_capabilities() or {})
        except Exception as exc:  # noqa: BLE001 - a broken descriptor only hides the tool
            logger.warning("Failed to read capabilities for tool '%s': %s", tool.id, exc)
            return False
        if capabilities.has_flag():
            return True
        return capability in (capabilities.supported_formats or [])

    async def _check_permissions(self, instance: ToolInstance, context: ToolExecutionContext) -> None:
        """Permission hook; authorization is not enforced by the registry."""
        return None


def _normalise_result(raw: Any, context: ToolExecutionContext) -> ToolExecutionResult:
    if isinstance(raw, ToolExecutionResult):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"Tool handler returned unsupported result type {type(raw).__name__}")
    payload = dict(raw)
    payload.setdefault(
        "metadata",
        {"tool_id": context.tool_id, "session_id": context.session_id, "agent_id": context.agent_id},
    )
    return ToolExecutionResult.model_validate(payload)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _discard(index: Dict[str, Set[str]], key: str, item_id: str) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    bucket.discard(item_id)
    if not bucket:
        del index[key]


def create_tool_registry(*, stats_strategy: Optional[str] = None) -> ToolRegistry:
    return ToolRegistry(stats_strategy=stats_strategy)


__all__ = ["ToolRegistry", "create_tool_registry"]
