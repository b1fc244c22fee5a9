"""Base class for tool handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Union

from .models import ToolCapabilities, ToolExecutionContext, ToolExecutionResult, ToolResultMetadata


class ToolHandler(ABC):
    """Contract every tool implementation satisfies.

    ``execute`` may return a :class:`ToolExecutionResult` or a plain mapping
    with the same keys; the registry normalises either form.
    """

    @abstractmethod
    async def execute(self, context: ToolExecutionContext) -> Union[ToolExecutionResult, Mapping[str, Any]]:
        raise NotImplementedError

    def validate_parameters(self, parameters: Dict[str, Any]) -> bool:
        return True

    def get_capabilities(self) -> Union[ToolCapabilities, Mapping[str, Any]]:
        return ToolCapabilities()

    def build_result(
        self,
        context: ToolExecutionContext,
        *,
        data: Any = None,
        success: bool = True,
        error: str | None = None,
        cost: float = 0.0,
    ) -> ToolExecutionResult:
        """Convenience constructor for handler implementations."""

        return ToolExecutionResult(
            success=success,
            data=data,
            error=error,
            cost=cost,
            metadata=ToolResultMetadata(
                tool_id=context.tool_id,
                session_id=context.session_id,
                agent_id=context.agent_id,
            ),
        )


__all__ = ["ToolHandler"]
