"""Unit tests for the registry orchestrator."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from orchestra.core.orchestrator import (
    CANCELLED_ERROR,
    NO_AGENT_ERROR,
    OrchestrationResult,
    RegistryOrchestrator,
    run_sequential_tasks,
)
from orchestra.registry.agents.base import AgentHandler
from orchestra.registry.agents.models import AgentCapabilities, AgentExecutionContext
from orchestra.registry.errors import DuplicateIdError
from orchestra.registry.tools.base import ToolHandler
from orchestra.registry.tools.models import ToolExecutionContext
from orchestra.services.session_manager import COMPLETED, FAILED, INITIALIZING


class RecordingAgent(AgentHandler):
    def __init__(
        self,
        *,
        task_types: Optional[List[str]] = None,
        fail: bool = False,
        raises: Exception | None = None,
        cost: float = 0.0,
        tools_used: Optional[List[str]] = None,
        accept: bool = True,
    ) -> None:
        super().__init__()
        self.task_types = task_types
        self.fail = fail
        self.raises = raises
        self.cost = cost
        self.tools_used = tools_used or []
        self.accept = accept
        self.contexts: List[AgentExecutionContext] = []

    def validate_task(self, task: str, parameters: Dict[str, Any]) -> bool:
        return self.accept

    def get_capabilities(self) -> AgentCapabilities:
        return AgentCapabilities(supported_task_types=self.task_types)

    async def execute(self, context: AgentExecutionContext):
        self.contexts.append(context)
        if self.raises is not None:
            raise self.raises
        if self.fail:
            return self.build_result(context, success=False, error="could not finish")
        return self.build_result(
            context,
            data={"handled_by": context.agent_id, "task": context.task},
            cost=self.cost,
            tools_used=self.tools_used,
        )


class NoopTool(ToolHandler):
    async def execute(self, context: ToolExecutionContext):
        return self.build_result(context)


def _agent(agent_id: str, **overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": agent_id,
        "name": f"Agent {agent_id}",
        "description": f"Agent {agent_id}",
        "type": "specialist",
        "model": {"provider": "local", "model": "stub"},
        "version": "1.0.0",
    }
    payload.update(overrides)
    return payload


def _run(orchestrator: RegistryOrchestrator, request: Any, user_id: Optional[str] = "user-1") -> OrchestrationResult:
    return asyncio.run(orchestrator.execute_task(request, user_id))


def test_execute_task_routes_to_capable_agent(orchestrator: RegistryOrchestrator) -> None:
    handler = RecordingAgent(cost=0.75, tools_used=["linter"])
    orchestrator.register_agent(_agent("reviewer", capabilities=["code-review"]), handler, tools=["linter"])

    result = _run(orchestrator, {"task": "code-review", "parameters": {"code": "print(1)"}})

    assert result.success is True
    assert result.data == {"handled_by": "reviewer", "task": "code-review"}
    assert result.cost == 0.75
    assert result.metadata.agent_used == "reviewer"
    assert result.metadata.tools_used == ["linter"]
    assert result.metadata.fallback_used is False
    assert result.metadata.retries == 0

    context = handler.contexts[0]
    assert context.parameters == {"code": "print(1)"}
    assert context.tools == ["linter"]
    assert context.user_id == "user-1"
    assert context.session_id == result.metadata.session_id
    assert context.timeout == 300_000
    assert context.priority == "medium"

    session = orchestrator.get_session_status(result.metadata.session_id)
    assert session.status == COMPLETED
    assert session.agent_assigned == "reviewer"
    assert session.tools_used == ["linter"]
    assert session.completed_at is not None
    assert session.user_id == "user-1"


def test_execute_task_forwards_execution_options(orchestrator: RegistryOrchestrator) -> None:
    handler = RecordingAgent()
    orchestrator.register_agent(_agent("fast", capabilities=["ping"]), handler)

    _run(orchestrator, {"task": "ping", "execution_options": {"timeout": 5_000, "priority": "high"}})

    assert handler.contexts[0].timeout == 5_000
    assert handler.contexts[0].priority == "high"


def test_execute_task_without_agents_fails_cleanly(orchestrator: RegistryOrchestrator) -> None:
    result = _run(orchestrator, {"task": "code-review"})

    assert result.success is False
    assert result.error.startswith("No suitable agent found")
    assert result.error == NO_AGENT_ERROR
    assert result.cost == 0.0
    assert result.metadata.agent_used == ""

    session = orchestrator.get_session_status(result.metadata.session_id)
    assert session.status == FAILED
    assert session.error == NO_AGENT_ERROR


def test_execute_task_falls_back_to_utility_agent(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("reviewer", capabilities=["code-review"]), RecordingAgent())
    orchestrator.register_agent(_agent("helper", type="utility"), RecordingAgent())

    result = _run(orchestrator, {"task": "translate"})

    assert result.success is True
    assert result.metadata.agent_used == "helper"
    assert result.metadata.fallback_used is False
    assert orchestrator.get_session_status(result.metadata.session_id).fallback_used is True


def test_execute_task_fallback_can_be_disabled(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("helper", type="utility"), RecordingAgent())

    result = _run(orchestrator, {"task": "translate", "execution_options": {"allow_fallback": False}})

    assert result.success is False
    assert result.error == NO_AGENT_ERROR


def test_execute_task_prefers_agent_with_required_capabilities(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("basic", capabilities=["code-review"]), RecordingAgent())
    orchestrator.register_agent(
        _agent("secure", capabilities=["code-review"]),
        RecordingAgent(task_types=["code-review", "security"]),
    )

    default = _run(orchestrator, {"task": "code-review"})
    preferred = _run(
        orchestrator,
        {"task": "code-review", "agent_preferences": {"required_capabilities": ["security"]}},
    )
    unmet = _run(
        orchestrator,
        {"task": "code-review", "agent_preferences": {"required_capabilities": ["performance"]}},
    )

    assert default.metadata.agent_used == "basic"
    assert preferred.metadata.agent_used == "secure"
    assert unmet.metadata.agent_used == "basic"


def test_execute_task_honours_preferred_types_and_exclusions(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("summariser", capabilities=["summarise"]), RecordingAgent())
    orchestrator.register_agent(_agent("analyst", type="analytical", capabilities=["summarise"]), RecordingAgent())
    orchestrator.register_agent(_agent("helper", type="utility"), RecordingAgent())

    by_type = _run(orchestrator, {"task": "summarise", "agent_preferences": {"preferred_types": ["analytical"]}})
    excluded = _run(orchestrator, {"task": "summarise", "agent_preferences": {"excluded_agents": ["summariser"]}})
    all_excluded = _run(
        orchestrator,
        {"task": "summarise", "agent_preferences": {"excluded_agents": ["summariser", "analyst", "helper"]}},
    )

    assert by_type.metadata.agent_used == "analyst"
    assert excluded.metadata.agent_used == "analyst"
    assert all_excluded.success is False
    assert all_excluded.error == NO_AGENT_ERROR


def test_execute_task_rejects_invalid_requests(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("helper", type="utility"), RecordingAgent())

    result = _run(orchestrator, {"task": ""})

    assert result.success is False
    assert result.cost == 0.0
    assert orchestrator.get_session_status(result.metadata.session_id).status == FAILED


def test_execute_task_reports_agent_failures(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("quitter", capabilities=["work"]), RecordingAgent(fail=True))
    orchestrator.register_agent(_agent("crasher", capabilities=["crash"]), RecordingAgent(raises=RuntimeError("kaboom")))
    orchestrator.register_agent(_agent("picky", capabilities=["picky"]), RecordingAgent(accept=False))

    reported = _run(orchestrator, {"task": "work"})
    raised = _run(orchestrator, {"task": "crash"})
    rejected = _run(orchestrator, {"task": "picky"})

    assert reported.success is False
    assert reported.error == "could not finish"
    assert reported.metadata.agent_used == "quitter"
    reported_session = orchestrator.get_session_status(reported.metadata.session_id)
    assert reported_session.status == COMPLETED
    assert reported_session.error == "could not finish"

    assert raised.success is False
    assert raised.error == "kaboom"
    raised_session = orchestrator.get_session_status(raised.metadata.session_id)
    assert raised_session.status == COMPLETED
    assert raised_session.error == "kaboom"

    assert rejected.success is False
    assert "Invalid task or parameters" in rejected.error
    assert rejected.metadata.agent_used == "picky"
    assert orchestrator.get_session_status(rejected.metadata.session_id).status == FAILED


class HangingAgent(RecordingAgent):
    async def execute(self, context: AgentExecutionContext):
        self.contexts.append(context)
        await asyncio.sleep(10)
        return self.build_result(context)


def test_cancelled_task_fails_session_and_records_agent_outcome(orchestrator: RegistryOrchestrator) -> None:
    handler = HangingAgent()
    orchestrator.register_agent(_agent("sleeper", capabilities=["slow"]), handler)

    async def scenario() -> None:
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(orchestrator.execute_task({"task": "slow"}, "user-1"), 0.05)

    asyncio.run(scenario())

    session_id = handler.contexts[0].session_id
    session = orchestrator.get_session_status(session_id)
    assert session.status == FAILED
    assert session.error == CANCELLED_ERROR
    assert orchestrator.get_system_statistics().sessions.active == 0

    agent = orchestrator.agent_registry.get_agent("sleeper")
    assert agent.metadata.total_sessions == 1
    assert agent.metadata.current_status == "idle"
    entry = orchestrator.agent_registry.get_agent_memory("sleeper", f"session_{session_id}")
    assert entry.success is False
    assert entry.error == "cancelled"

    assert orchestrator.cleanup_sessions(0) == 1
    assert orchestrator.get_session_status(session_id) is None


def test_cleanup_sessions_keeps_running_sessions(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("helper", type="utility"), RecordingAgent())
    finished = _run(orchestrator, {"task": "anything"})
    in_flight = orchestrator.sessions.create_session({"task": "pending"}, "user-2")

    assert orchestrator.cleanup_sessions(0) == 1
    assert orchestrator.get_session_status(finished.metadata.session_id) is None
    assert orchestrator.get_session_status(in_flight.id).status == INITIALIZING
    assert orchestrator.cleanup_sessions() == 0


def test_system_statistics(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_tool(
        {"id": "noop", "name": "Noop", "description": "Does nothing", "category": "utility", "version": "1.0.0"},
        NoopTool(),
    )
    orchestrator.register_agent(_agent("worker", capabilities=["work"]), RecordingAgent(cost=1.0))
    _run(orchestrator, {"task": "work"})
    _run(orchestrator, {"task": "unknown"})
    orchestrator.sessions.create_session({"task": "pending"})

    stats = orchestrator.get_system_statistics()

    assert stats.tools.total_tools == 1
    assert stats.agents.total_agents == 1
    assert stats.agents.total_sessions == 1
    assert stats.agents.total_cost == pytest.approx(1.0)
    assert stats.sessions.total == 3
    assert stats.sessions.active == 1
    assert stats.uptime >= 0


def test_register_pass_through_reraises(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(_agent("solo"), RecordingAgent())

    with pytest.raises(DuplicateIdError):
        orchestrator.register_agent(_agent("solo"), RecordingAgent())

    assert [agent.id for agent in orchestrator.get_available_agents()] == ["solo"]
    assert orchestrator.get_available_agents("utility") == []
    assert orchestrator.unregister_agent("solo") is True
    assert orchestrator.unregister_tool("missing") is False


def test_execute_workflow_runs_registered_runner(orchestrator: RegistryOrchestrator) -> None:
    async def _echo(orch: RegistryOrchestrator, context: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        return {"seen": context, "user": user_id}

    orchestrator.register_workflow("echo", _echo)

    result = asyncio.run(orchestrator.execute_workflow("echo", {"x": 1}, "user-9"))

    assert orchestrator.list_workflows() == ["echo"]
    assert result.success is True
    assert result.data == {"seen": {"x": 1}, "user": "user-9"}
    assert result.metadata.agent_used == "workflow:echo"
    assert orchestrator.get_session_status(result.metadata.session_id).status == COMPLETED


def test_execute_workflow_failures(orchestrator: RegistryOrchestrator) -> None:
    async def _explode(orch: RegistryOrchestrator, context: Dict[str, Any], user_id: Optional[str]) -> None:
        raise RuntimeError("workflow broke")

    orchestrator.register_workflow("explode", _explode)

    unknown = asyncio.run(orchestrator.execute_workflow("missing"))
    exploded = asyncio.run(orchestrator.execute_workflow("explode"))

    assert unknown.success is False
    assert unknown.error == "Workflow 'missing' is not registered"
    assert exploded.success is False
    assert exploded.error == "workflow broke"
    assert orchestrator.get_session_status(exploded.metadata.session_id).status == FAILED

    with pytest.raises(ValueError):
        orchestrator.register_workflow("  ", _explode)


def test_sequential_workflow_folds_step_results(orchestrator: RegistryOrchestrator) -> None:
    orchestrator.register_agent(
        _agent("reviewer", capabilities=["code-review"]), RecordingAgent(cost=0.5, tools_used=["linter"])
    )
    orchestrator.register_agent(
        _agent("writer", capabilities=["docs"]), RecordingAgent(cost=0.25, tools_used=["linter", "spell"])
    )
    orchestrator.register_workflow("sequential", run_sequential_tasks)

    result = asyncio.run(
        orchestrator.execute_workflow("sequential", {"steps": [{"task": "code-review"}, {"task": "docs"}]})
    )

    assert result.success is True
    assert result.cost == pytest.approx(0.75)
    assert result.metadata.tools_used == ["linter", "spell"]
    assert [step["handled_by"] for step in result.data] == ["reviewer", "writer"]
    # one workflow session plus one per step
    assert orchestrator.get_system_statistics().sessions.total == 3


def test_sequential_workflow_stops_at_first_failure(orchestrator: RegistryOrchestrator) -> None:
    later = RecordingAgent()
    orchestrator.register_agent(_agent("later", capabilities=["later"]), later)
    orchestrator.register_workflow("sequential", run_sequential_tasks)

    result = asyncio.run(
        orchestrator.execute_workflow("sequential", {"steps": [{"task": "nobody"}, {"task": "later"}]})
    )
    empty = asyncio.run(orchestrator.execute_workflow("sequential", {"steps": []}))

    assert result.success is False
    assert result.error == NO_AGENT_ERROR
    assert later.contexts == []
    assert empty.success is False
    assert "non-empty 'steps'" in empty.error
