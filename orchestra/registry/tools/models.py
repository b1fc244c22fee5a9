"""Tool definition schema and the runtime records built around it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..stats import UsageMetadata, now_ms

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .base import ToolHandler


Priority = Literal["low", "medium", "high", "critical"]


class ToolCategory(str, Enum):
    FILE = "file"
    API = "api"
    DATA = "data"
    COMPUTATION = "computation"
    COMMUNICATION = "communication"
    ANALYSIS = "analysis"
    CREATIVE = "creative"
    UTILITY = "utility"


class ToolParameter(BaseModel):
    name: str
    type: Literal["string", "number", "boolean", "object", "array"]
    description: str = ""
    required: bool = False
    default_value: Any = None
    validation: Any = None


class RateLimit(BaseModel):
    requests: int = Field(..., ge=1)
    period: int = Field(..., ge=1, description="Window length in milliseconds.")


class ToolDefinition(BaseModel):
    """Declarative description of a tool; immutable once registered."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str
    category: ToolCategory
    version: str
    parameters: List[ToolParameter] = Field(default_factory=list)
    output_schema: Any = None
    cost: float = 0.0
    timeout: int = 30_000
    rate_limit: Optional[RateLimit] = None
    permissions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class ToolCapabilities(BaseModel):
    """Capability descriptor reported by a handler."""

    supports_streaming: Optional[bool] = None
    supports_cancellation: Optional[bool] = None
    supports_retry: Optional[bool] = None
    max_concurrency: Optional[int] = None
    requires_authentication: Optional[bool] = None
    supported_formats: Optional[List[str]] = None

    def has_flag(self) -> bool:
        """True when any boolean capability flag is set."""
        return any(value is True for value in self.model_dump().values())


class ToolSearchQuery(BaseModel):
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    name: Optional[str] = None
    capability: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def _unwrap_enum(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value


class ToolExecutionContext(BaseModel):
    tool_id: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    session_id: str
    agent_id: str
    user_id: Optional[str] = None
    timeout: Optional[int] = None
    priority: Optional[Priority] = None


class ToolResultMetadata(BaseModel):
    tool_id: str
    session_id: str
    agent_id: str
    timestamp: int = Field(default_factory=now_ms)


class ToolExecutionResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    execution_time: float = 0.0
    cost: float = 0.0
    metadata: ToolResultMetadata


class ToolStatistics(BaseModel):
    tool_id: str
    usage_count: int
    average_execution_time: float
    success_rate: float
    last_used: Optional[int] = None
    registered_at: int


class ToolRegistryStatistics(BaseModel):
    total_tools: int
    categories: int
    total_usage: int
    average_success_rate: float
    most_used_tool: Optional[str] = None


@dataclass(slots=True)
class ToolInstance:
    """A registered tool: its definition, handler and usage counters."""

    id: str
    definition: ToolDefinition
    handler: "ToolHandler"
    metadata: UsageMetadata = field(default_factory=lambda: UsageMetadata(registered_at=now_ms()))


__all__ = [
    "Priority",
    "ToolCategory",
    "ToolParameter",
    "RateLimit",
    "ToolDefinition",
    "ToolCapabilities",
    "ToolSearchQuery",
    "ToolExecutionContext",
    "ToolResultMetadata",
    "ToolExecutionResult",
    "ToolStatistics",
    "ToolRegistryStatistics",
    "ToolInstance",
]
