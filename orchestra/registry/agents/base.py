"""Base class for agent handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

from .models import AgentCapabilities, AgentExecutionContext, AgentExecutionResult, AgentResultMetadata

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..tools.registry import ToolRegistry


class AgentHandler(ABC):
    """Contract implemented by every agent.

    ``initialize`` runs once before the agent becomes visible in a registry and
    ``cleanup`` once before it is removed. Both are synchronous; handlers that
    need asynchronous setup should do it lazily inside ``execute``.
    """

    key: str = ""

    def __init__(self, tool_registry: Optional["ToolRegistry"] = None) -> None:
        self.tool_registry = tool_registry

    @property
    def agent_key(self) -> str:
        return self.key or self.__class__.__name__.replace("Agent", "").casefold()

    @abstractmethod
    async def execute(self, context: AgentExecutionContext) -> Union[AgentExecutionResult, Mapping[str, Any]]:
        raise NotImplementedError

    def validate_task(self, task: str, parameters: Dict[str, Any]) -> bool:
        return bool(task)

    def get_capabilities(self) -> Union[AgentCapabilities, Mapping[str, Any]]:
        return AgentCapabilities()

    def initialize(self) -> None:
        return None

    def cleanup(self) -> None:
        return None

    def build_result(
        self,
        context: AgentExecutionContext,
        *,
        data: Any = None,
        success: bool = True,
        error: str | None = None,
        cost: float = 0.0,
        tools_used: list[str] | None = None,
    ) -> AgentExecutionResult:
        """Convenience constructor for handler implementations."""

        return AgentExecutionResult(
            success=success,
            data=data,
            error=error,
            cost=cost,
            metadata=AgentResultMetadata(
                agent_id=context.agent_id,
                session_id=context.session_id,
                user_id=context.user_id,
                tools_used=list(tools_used or []),
            ),
        )


__all__ = ["AgentHandler"]
