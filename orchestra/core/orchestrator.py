"""
Registry Orchestrator

Turns task requests into agent invocations. The orchestrator composes a tool
registry and an agent registry, picks an agent for every request, tracks each
execution as a session and aggregates system-wide statistics. Public execution
entry points never raise: every failure comes back as an unsuccessful
``OrchestrationResult``. Cancellation is the exception; the session is marked
failed and ``asyncio.CancelledError`` propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

from ..config import CONFIG
from ..logger import log, warn
from ..registry.agents.base import AgentHandler
from ..registry.agents.models import AgentDefinition, AgentExecutionContext, AgentRegistryStatistics, RegisteredAgent
from ..registry.agents.registry import AgentRegistry
from ..registry.errors import RegistryError
from ..registry.stats import now_ms
from ..registry.tools.base import ToolHandler
from ..registry.tools.models import ToolDefinition, ToolInstance, ToolRegistryStatistics
from ..registry.tools.registry import ToolRegistry
from ..services.session_manager import OrchestrationSession, SessionManager

logger = logging.getLogger(__name__)

NO_AGENT_ERROR = "No suitable agent found for the requested task"
CANCELLED_ERROR = "cancelled"
FALLBACK_AGENT_TYPE = "utility"

Priority = Literal["low", "medium", "high", "critical"]


class AgentPreferences(BaseModel):
    required_capabilities: Optional[List[str]] = None
    preferred_types: Optional[List[str]] = None
    excluded_agents: Optional[List[str]] = None


class ExecutionOptions(BaseModel):
    timeout: Optional[int] = None
    priority: Optional[Priority] = None
    allow_fallback: bool = True
    max_retries: int = 0


class OrchestrationRequest(BaseModel):
    task: str = Field(..., min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    agent_preferences: Optional[AgentPreferences] = None
    tool_requirements: Optional[List[str]] = None
    execution_options: Optional[ExecutionOptions] = None


class OrchestrationMetadata(BaseModel):
    session_id: str
    agent_used: str = ""
    tools_used: List[str] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_ms)
    retries: int = 0
    fallback_used: bool = False


class OrchestrationResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    execution_time: float = 0.0
    cost: float = 0.0
    metadata: OrchestrationMetadata


class SessionCounts(BaseModel):
    active: int
    total: int


class SystemStatistics(BaseModel):
    tools: ToolRegistryStatistics
    agents: AgentRegistryStatistics
    sessions: SessionCounts
    uptime: int


WorkflowRunner = Callable[["RegistryOrchestrator", Dict[str, Any], Optional[str]], Awaitable[Any]]


class RegistryOrchestrator:
    """Dispatch task requests to registered agents.

    Example:
        orchestrator = RegistryOrchestrator(ToolRegistry(), AgentRegistry())
        orchestrator.register_agent(definition, handler)
        result = await orchestrator.execute_task({"task": "code-review", "parameters": {...}})
    """

    def __init__(
        self,
        tool_registry: Optional[ToolRegistry] = None,
        agent_registry: Optional[AgentRegistry] = None,
        *,
        session_manager: Optional[SessionManager] = None,
    ) -> None:
        self.tool_registry = tool_registry if tool_registry is not None else ToolRegistry()
        self.agent_registry = agent_registry if agent_registry is not None else AgentRegistry()
        self.sessions = session_manager if session_manager is not None else SessionManager()
        self._workflows: Dict[str, WorkflowRunner] = {}
        self._started = time.monotonic()

    # ------------------------------------------------------------------
    # Registration pass-throughs
    # ------------------------------------------------------------------
    def register_tool(self, definition: Union[ToolDefinition, Mapping[str, Any]], handler: ToolHandler) -> str:
        try:
            tool_id = self.tool_registry.register_tool(definition, handler)
        except RegistryError as exc:
            logger.error("Failed to register tool: %s", exc)
            raise
        log(f"[orchestrator] tool registered: {tool_id}")
        return tool_id

    def register_agent(
        self,
        definition: Union[AgentDefinition, Mapping[str, Any]],
        handler: AgentHandler,
        tools: Optional[Iterable[str]] = None,
    ) -> str:
        try:
            agent_id = self.agent_registry.register_agent(definition, handler, tools)
        except RegistryError as exc:
            logger.error("Failed to register agent: %s", exc)
            raise
        log(f"[orchestrator] agent registered: {agent_id}")
        return agent_id

    def unregister_tool(self, tool_id: str) -> bool:
        return self.tool_registry.unregister_tool(tool_id)

    def unregister_agent(self, agent_id: str) -> bool:
        return self.agent_registry.unregister_agent(agent_id)

    def register_workflow(self, name: str, runner: WorkflowRunner) -> None:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValueError("Workflow name must be provided.")
        self._workflows[cleaned] = runner

    def list_workflows(self) -> List[str]:
        return list(self._workflows)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    async def execute_task(
        self,
        request: Union[OrchestrationRequest, Mapping[str, Any]],
        user_id: Optional[str] = None,
    ) -> OrchestrationResult:
        """Select an agent for ``request`` and run it inside a new session."""
        started = time.perf_counter()
        session = self.sessions.create_session(request, user_id)

        try:
            validated = OrchestrationRequest.model_validate(request)
            session.request = validated

            agent, fallback_used = self._select_agent(validated)
            if agent is None:
                raise LookupError(NO_AGENT_ERROR)

            session.fallback_used = fallback_used
            self.sessions.mark_executing(session.id, agent.id)

            options = validated.execution_options or ExecutionOptions()
            context = AgentExecutionContext(
                agent_id=agent.id,
                task=validated.task,
                parameters=validated.parameters,
                session_id=session.id,
                user_id=user_id,
                tools=list(agent.tools),
                timeout=options.timeout or getattr(CONFIG, "default_task_timeout_ms", 300_000),
                priority=options.priority or getattr(CONFIG, "default_task_priority", "medium"),
            )
            result = await self.agent_registry.execute_agent(context)
        except asyncio.CancelledError:
            self.sessions.fail_session(session.id, CANCELLED_ERROR)
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced as a failed result
            message = str(exc) or type(exc).__name__
            self.sessions.fail_session(session.id, message)
            logger.warning("Task failed in session %s: %s", session.id, message)
            return self._failure(session, message, started)

        # The agent ran to completion; a reported failure lives on the result.
        tools_used = list(result.metadata.tools_used)
        self.sessions.complete_session(session.id, tools_used=tools_used, error=result.error)

        return OrchestrationResult(
            success=result.success,
            data=result.data,
            error=result.error,
            execution_time=result.execution_time,
            cost=result.cost,
            metadata=OrchestrationMetadata(
                session_id=session.id,
                agent_used=agent.id,
                tools_used=tools_used,
                retries=session.retries,
                # Reported as False even on the utility fallback path; the
                # session record carries the real value.
                fallback_used=False,
            ),
        )

    async def execute_workflow(
        self,
        name: str,
        context: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> OrchestrationResult:
        """Run a registered workflow runner inside its own session.

        A runner that returns a sequence of ``OrchestrationResult`` objects has
        them folded into one result (costs summed, tools merged, success only
        if every step succeeded); any other return value becomes ``data``.
        """
        started = time.perf_counter()
        payload = dict(context or {})
        session = self.sessions.create_session({"workflow": name, "context": payload}, user_id)

        runner = self._workflows.get(name)
        if runner is None:
            message = f"Workflow '{name}' is not registered"
            self.sessions.fail_session(session.id, message)
            return self._failure(session, message, started)

        agent_label = f"workflow:{name}"
        self.sessions.mark_executing(session.id, agent_label)
        try:
            outcome = await runner(self, payload, user_id)
        except asyncio.CancelledError:
            self.sessions.fail_session(session.id, CANCELLED_ERROR)
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced as a failed result
            message = str(exc) or type(exc).__name__
            self.sessions.fail_session(session.id, message)
            logger.warning("Workflow '%s' failed in session %s: %s", name, session.id, message)
            return self._failure(session, message, started)

        success, data, error, cost, tools_used = _fold_workflow_outcome(outcome)
        if success:
            self.sessions.complete_session(session.id, tools_used=tools_used)
        else:
            self.sessions.fail_session(session.id, error or "Workflow step failed")

        return OrchestrationResult(
            success=success,
            data=data,
            error=error,
            execution_time=(time.perf_counter() - started) * 1000.0,
            cost=cost,
            metadata=OrchestrationMetadata(
                session_id=session.id,
                agent_used=agent_label,
                tools_used=tools_used,
                retries=session.retries,
            ),
        )

    # ------------------------------------------------------------------
    # Read pass-throughs
    # ------------------------------------------------------------------
    def get_available_tools(self, category: Optional[str] = None) -> List[ToolInstance]:
        if category:
            return self.tool_registry.list_tools_by_category(category)
        return self.tool_registry.list_tools()

    def get_available_agents(self, agent_type: Optional[str] = None) -> List[RegisteredAgent]:
        if agent_type:
            return self.agent_registry.list_agents_by_type(agent_type)
        return self.agent_registry.list_agents()

    def search_tools(self, query: Any = None) -> List[ToolInstance]:
        return self.tool_registry.search_tools(query)

    def search_agents(self, query: Any = None) -> List[RegisteredAgent]:
        return self.agent_registry.search_agents(query)

    def get_session_status(self, session_id: str) -> Optional[OrchestrationSession]:
        return self.sessions.get_session(session_id)

    def get_system_statistics(self) -> SystemStatistics:
        return SystemStatistics(
            tools=self.tool_registry.get_registry_statistics(),
            agents=self.agent_registry.get_registry_statistics(),
            sessions=SessionCounts(
                active=self.sessions.active_count(),
                total=self.sessions.total_count(),
            ),
            uptime=int((time.monotonic() - self._started) * 1000),
        )

    def cleanup_sessions(self, max_age_ms: int = 86_400_000) -> int:
        removed = self.sessions.cleanup_expired_sessions(max_age_ms)
        log(f"[orchestrator] cleaned up {removed} expired session(s)")
        return removed

    # ------------------------------------------------------------------
    # Agent selection
    # ------------------------------------------------------------------
    def _select_agent(self, request: OrchestrationRequest) -> Tuple[Optional[RegisteredAgent], bool]:
        """Return the chosen agent and whether the utility fallback was used."""
        preferences = request.agent_preferences or AgentPreferences()
        options = request.execution_options or ExecutionOptions()
        excluded = list(preferences.excluded_agents or [])

        candidates = self.agent_registry.search_agents(
            {"capabilities": [request.task], "exclude_ids": excluded}
        )
        if preferences.preferred_types:
            preferred = set(preferences.preferred_types)
            candidates = [agent for agent in candidates if agent.definition.type in preferred]

        if candidates:
            return self._select_best_agent(candidates, preferences), False

        if not options.allow_fallback:
            return None, False

        fallback = self.agent_registry.search_agents({"type": FALLBACK_AGENT_TYPE, "exclude_ids": excluded})
        if fallback:
            warn(f"[orchestrator] no specialised agent for '{request.task}', using fallback agent: {fallback[0].id}")
            return fallback[0], True
        return None, False

    def _select_best_agent(self, candidates: List[RegisteredAgent], preferences: AgentPreferences) -> RegisteredAgent:
        required = preferences.required_capabilities or []
        if required:
            for agent in candidates:
                supported = set(self.agent_registry.supported_task_types(agent))
                if supported.issuperset(required):
                    log(f"[orchestrator] selected agent with matching capabilities: {agent.id}")
                    return agent

        selected = candidates[0]
        log(f"[orchestrator] selected agent: {selected.id} (default selection)")
        return selected

    def _failure(self, session: OrchestrationSession, message: str, started: float) -> OrchestrationResult:
        return OrchestrationResult(
            success=False,
            error=message,
            execution_time=(time.perf_counter() - started) * 1000.0,
            cost=0.0,
            metadata=OrchestrationMetadata(
                session_id=session.id,
                agent_used=session.agent_assigned or "",
                tools_used=[],
                retries=session.retries,
                fallback_used=False,
            ),
        )


def _fold_workflow_outcome(outcome: Any) -> Tuple[bool, Any, Optional[str], float, List[str]]:
    if isinstance(outcome, (list, tuple)) and outcome and all(
        isinstance(step, OrchestrationResult) for step in outcome
    ):
        tools_used: List[str] = []
        for step in outcome:
            for tool_id in step.metadata.tools_used:
                if tool_id not in tools_used:
                    tools_used.append(tool_id)
        failures = [step.error for step in outcome if not step.success]
        return (
            not failures,
            [step.data for step in outcome],
            failures[0] if failures else None,
            sum(step.cost for step in outcome),
            tools_used,
        )
    return True, outcome, None, 0.0, []


async def run_sequential_tasks(
    orchestrator: RegistryOrchestrator,
    context: Dict[str, Any],
    user_id: Optional[str] = None,
) -> List[OrchestrationResult]:
    """Workflow runner executing ``context["steps"]`` in order.

    Each step is an ``OrchestrationRequest`` payload; execution stops after the
    first failed step.
    """
    steps = context.get("steps") or []
    if not isinstance(steps, list) or not steps:
        raise ValueError("Sequential workflow requires a non-empty 'steps' list")

    results: List[OrchestrationResult] = []
    for step in steps:
        result = await orchestrator.execute_task(step, user_id)
        results.append(result)
        if not result.success:
            break
    return results


__all__ = [
    "AgentPreferences",
    "ExecutionOptions",
    "OrchestrationRequest",
    "OrchestrationMetadata",
    "OrchestrationResult",
    "SessionCounts",
    "SystemStatistics",
    "RegistryOrchestrator",
    "WorkflowRunner",
    "run_sequential_tasks",
    "NO_AGENT_ERROR",
    "CANCELLED_ERROR",
]
