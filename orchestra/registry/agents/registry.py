"""
Agent Registry

Owns agent definitions and handlers. Mirrors the tool registry (validation,
uniqueness, dependency checks, indices, running statistics) and adds the
handler lifecycle hooks, per-session memory and cost accounting.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError

from ...logger import log
from ..errors import (
    AgentNotFoundError,
    DuplicateIdError,
    InvalidDefinitionError,
    InvalidParametersError,
    MissingDependencyError,
)
from ..stats import now_ms, resolve_strategy
from .base import AgentHandler
from .models import (
    AgentCapabilities,
    AgentDefinition,
    AgentExecutionContext,
    AgentExecutionResult,
    AgentMetadata,
    AgentRegistryStatistics,
    AgentResultMetadata,
    AgentSearchQuery,
    AgentStatistics,
    MemoryEntry,
    RegisteredAgent,
)

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Registry of agent handlers keyed by agent id."""

    def __init__(self, *, stats_strategy: Optional[str] = None) -> None:
        self._agents: Dict[str, RegisteredAgent] = {}
        self._types: Dict[str, Set[str]] = {}
        self._specializations: Dict[str, Set[str]] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._stats_strategy = resolve_strategy(stats_strategy)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_agent(
        self,
        definition: Union[AgentDefinition, Mapping[str, Any]],
        handler: AgentHandler,
        tools: Optional[Iterable[str]] = None,
    ) -> str:
        """Validate, initialise and store an agent, returning its id.

        ``tools`` is advisory metadata forwarded to the handler at execution
        time; it is not checked against any tool registry.
        """
        try:
            validated = AgentDefinition.model_validate(definition)
        except ValidationError as exc:
            raise InvalidDefinitionError("agent", str(exc)) from exc

        if validated.id in self._agents:
            raise DuplicateIdError("agent", validated.id)

        for dependency_id in validated.dependencies:
            if dependency_id not in self._agents:
                raise MissingDependencyError("agent", validated.id, dependency_id)

        # Nothing is stored until the hook succeeds.
        handler.initialize()

        instance = RegisteredAgent(
            id=validated.id,
            definition=validated,
            handler=handler,
            tools=list(tools or []),
            metadata=AgentMetadata(registered_at=now_ms(), strategy=self._stats_strategy),
        )
        self._agents[validated.id] = instance
        self._update_indices(validated)

        log(f"[agent-registry] registered agent '{validated.id}' ({validated.type})")
        return validated.id

    def unregister_agent(self, agent_id: str) -> bool:
        """Remove an agent after running its cleanup hook.

        Unlike tools, agents are removed even when other agents list them as a
        dependency.
        """
        instance = self._agents.get(agent_id)
        if instance is None:
            return False

        instance.handler.cleanup()
        self._remove_from_indices(instance.definition)
        del self._agents[agent_id]
        log(f"[agent-registry] unregistered agent '{agent_id}'")
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_agent(self, agent_id: str) -> Optional[RegisteredAgent]:
        return self._agents.get(agent_id)

    def list_agents(self) -> List[RegisteredAgent]:
        return list(self._agents.values())

    def list_agents_by_type(self, agent_type: str) -> List[RegisteredAgent]:
        return self._resolve_ids(self._types.get(getattr(agent_type, "value", agent_type)))

    def list_agents_by_specialization(self, specialization: str) -> List[RegisteredAgent]:
        return self._resolve_ids(self._specializations.get(specialization))

    def search_agents(self, query: Union[AgentSearchQuery, Mapping[str, Any], None] = None) -> List[RegisteredAgent]:
        """Filter agents; fields combine with AND, list fields match with OR."""
        criteria = AgentSearchQuery.model_validate(query or {})
        results = self.list_agents()

        if criteria.exclude_ids:
            excluded = set(criteria.exclude_ids)
            results = [agent for agent in results if agent.id not in excluded]

        if criteria.type:
            results = [agent for agent in results if agent.definition.type == criteria.type]

        if criteria.specializations:
            wanted = set(criteria.specializations)
            results = [agent for agent in results if wanted.intersection(agent.definition.specialization)]

        if criteria.capabilities:
            results = [agent for agent in results if self._supports_any(agent, criteria.capabilities)]

        if criteria.tags:
            wanted = set(criteria.tags)
            results = [agent for agent in results if wanted.intersection(agent.definition.tags)]

        if criteria.name:
            term = criteria.name.lower()
            results = [
                agent
                for agent in results
                if term in agent.definition.name.lower() or term in agent.definition.description.lower()
            ]

        if criteria.status:
            results = [agent for agent in results if agent.definition.status == criteria.status]

        return results

    def supported_task_types(self, agent: RegisteredAgent) -> List[str]:
        """Task types advertised by the agent's handler; empty if it cannot say."""
        try:
            capabilities = AgentCapabilities.model_validate(agent.handler.get_capabilities() or {})
        except Exception as exc:  # noqa: BLE001 - a broken descriptor only hides the agent
            logger.warning("Failed to read capabilities for agent '%s': %s", agent.id, exc)
            return []
        return list(capabilities.supported_task_types or [])

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    async def execute_agent(self, context: Union[AgentExecutionContext, Mapping[str, Any]]) -> AgentExecutionResult:
        """Run an agent handler, then record statistics, cost and memory.

        The memory entry for the session is written on every path, including
        cancellation, which is re-raised once the outcome is recorded.
        """
        context = AgentExecutionContext.model_validate(context)
        instance = self._agents.get(context.agent_id)
        if instance is None:
            raise AgentNotFoundError(context.agent_id)

        if not instance.handler.validate_task(context.task, context.parameters):
            raise InvalidParametersError("agent", context.agent_id)

        await self._check_permissions(instance, context)

        instance.metadata.current_status = "busy"
        instance.active_sessions.add(context.session_id)
        started = time.perf_counter()
        try:
            raw = await instance.handler.execute(context)
            result = _normalise_result(raw, context)
        except asyncio.CancelledError:
            logger.warning("Agent '%s' was cancelled in session %s", context.agent_id, context.session_id)
            self._record_outcome(instance, context, _failed_result(context, "cancelled"), started)
            raise
        except Exception as exc:  # noqa: BLE001 - handler failures become results
            message = str(exc) or type(exc).__name__
            logger.warning("Agent '%s' raised during execution: %s", context.agent_id, message)
            result = _failed_result(context, message)
        finally:
            instance.active_sessions.discard(context.session_id)
            if not instance.active_sessions:
                instance.metadata.current_status = "idle"

        execution_time = self._record_outcome(instance, context, result, started)
        return result.model_copy(
            update={
                "execution_time": execution_time,
                "metadata": result.metadata.model_copy(update={"timestamp": now_ms()}),
            }
        )

    # ------------------------------------------------------------------
    # Memory & statistics
    # ------------------------------------------------------------------
    def get_agent_memory(self, agent_id: str, key: Optional[str] = None) -> Any:
        instance = self._agents.get(agent_id)
        if instance is None:
            return None
        if key is not None:
            return instance.memory.get(key)
        return dict(instance.memory)

    def get_agent_statistics(self, agent_id: str) -> Optional[AgentStatistics]:
        instance = self._agents.get(agent_id)
        if instance is None:
            return None
        meta = instance.metadata
        successful = round(meta.success_rate * meta.total_sessions)
        return AgentStatistics(
            agent_id=agent_id,
            total_sessions=meta.total_sessions,
            successful_sessions=successful,
            failed_sessions=meta.total_sessions - successful,
            average_execution_time=meta.average_execution_time,
            success_rate=meta.success_rate,
            total_cost=meta.total_cost,
            last_used=meta.last_used,
            current_status=meta.current_status,
            created_at=meta.created_at,
        )

    def get_registry_statistics(self) -> AgentRegistryStatistics:
        agents = self.list_agents()
        most_active = max(agents, key=lambda agent: agent.metadata.total_sessions, default=None)
        return AgentRegistryStatistics(
            total_agents=len(agents),
            types=len({agent.definition.type for agent in agents}),
            total_sessions=sum(agent.metadata.total_sessions for agent in agents),
            average_success_rate=(
                sum(agent.metadata.success_rate for agent in agents) / len(agents) if agents else 1.0
            ),
            total_cost=sum(agent.metadata.total_cost for agent in agents),
            most_active_agent=most_active.id if most_active else None,
            active_agents=sum(1 for agent in agents if agent.metadata.current_status == "busy"),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _record_outcome(
        instance: RegisteredAgent,
        context: AgentExecutionContext,
        result: AgentExecutionResult,
        started: float,
    ) -> float:
        """Update statistics, cost and session memory; returns the elapsed ms."""
        execution_time = (time.perf_counter() - started) * 1000.0
        instance.metadata.record(execution_time, result.success)
        instance.metadata.total_cost += result.cost
        if not result.success and result.error:
            instance.metadata.last_error = result.error

        instance.memory[f"session_{context.session_id}"] = MemoryEntry(
            task=context.task,
            parameters=dict(context.parameters),
            result=result.data,
            success=result.success,
            error=result.error,
        )
        return execution_time

    def _supports_any(self, agent: RegisteredAgent, capabilities: Iterable[str]) -> bool:
        declared = set(agent.definition.capabilities)
        declared.update(self.supported_task_types(agent))
        return any(capability in declared for capability in capabilities)

    def _resolve_ids(self, ids: Optional[Set[str]]) -> List[RegisteredAgent]:
        if not ids:
            return []
        return [agent for agent_id, agent in self._agents.items() if agent_id in ids]

    def _update_indices(self, definition: AgentDefinition) -> None:
        self._types.setdefault(definition.type, set()).add(definition.id)
        for specialization in definition.specialization:
            self._specializations.setdefault(specialization, set()).add(definition.id)
        for tag in definition.tags:
            self._tags.setdefault(tag, set()).add(definition.id)

    def _remove_from_indices(self, definition: AgentDefinition) -> None:
        _discard(self._types, definition.type, definition.id)
        for specialization in definition.specialization:
            _discard(self._specializations, specialization, definition.id)
        for tag in definition.tags:
            _discard(self._tags, tag, definition.id)

    async def _check_permissions(self, instance: RegisteredAgent, context: AgentExecutionContext) -> None:
        """Permission hook; authorization is not enforced by the registry."""
        return None


def _normalise_result(raw: Any, context: AgentExecutionContext) -> AgentExecutionResult:
    if isinstance(raw, AgentExecutionResult):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"Agent handler returned unsupported result type {type(raw).__name__}")
    payload = dict(raw)
    if payload.get("cost") is None:
        payload.pop("cost", None)
    payload.setdefault(
        "metadata",
        {"agent_id": context.agent_id, "session_id": context.session_id, "user_id": context.user_id},
    )
    return AgentExecutionResult.model_validate(payload)


def _failed_result(context: AgentExecutionContext, message: str) -> AgentExecutionResult:
    return AgentExecutionResult(
        success=False,
        error=message,
        cost=0.0,
        metadata=AgentResultMetadata(
            agent_id=context.agent_id,
            session_id=context.session_id,
            user_id=context.user_id,
        ),
    )


def _discard(index: Dict[str, Set[str]], key: str, item_id: str) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    bucket.discard(item_id)
    if not bucket:
        del index[key]


def create_agent_registry(*, stats_strategy: Optional[str] = None) -> AgentRegistry:
    return AgentRegistry(stats_strategy=stats_strategy)


__all__ = ["AgentRegistry", "create_agent_registry"]
