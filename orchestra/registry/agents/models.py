"""Agent definition schema and the runtime records built around it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...config import CONFIG
from ..stats import UsageMetadata, now_ms

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .base import AgentHandler


class AgentType(str, Enum):
    ORCHESTRATOR = "orchestrator"
    SPECIALIST = "specialist"
    UTILITY = "utility"
    CREATIVE = "creative"
    ANALYTICAL = "analytical"
    COMMUNICATOR = "communicator"


AGENT_SPECIALIZATIONS: tuple[str, ...] = (
    "code-analysis",
    "content-creation",
    "data-analysis",
    "research",
    "business-strategy",
    "communication",
    "creative-writing",
    "technical-writing",
    "marketing",
    "project-management",
)


class AgentModel(BaseModel):
    """Opaque model-provider descriptor; unknown keys are preserved."""

    model_config = ConfigDict(extra="allow", frozen=True, protected_namespaces=())

    provider: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_tokens: int = 4096
    temperature: float = 0.7
    supports_streaming: bool = False
    supports_vision: bool = False


class AgentDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(..., min_length=1)
    name: str
    description: str
    type: str
    specialization: List[str] = Field(default_factory=list)
    capabilities: List[str] = Field(default_factory=list)
    model: AgentModel
    version: str
    cost: float = 0.0
    timeout: int = 300_000
    max_concurrency: int = 1
    permissions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    status: Literal["active", "inactive", "maintenance", "deprecated"] = "active"

    @field_validator("type", mode="before")
    @classmethod
    def _check_type(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            value = value.value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("agent type must be a non-empty string")
        value = value.strip().lower()
        if getattr(CONFIG, "agent_types_strict", True) and value not in {t.value for t in AgentType}:
            raise ValueError(f"unknown agent type '{value}'")
        return value


class AgentCapabilities(BaseModel):
    supports_multi_step: Optional[bool] = None
    supports_collaboration: Optional[bool] = None
    supports_tool_use: Optional[bool] = None
    max_steps: Optional[int] = None
    supported_task_types: Optional[List[str]] = None
    requires_setup: Optional[bool] = None
    supports_memory: Optional[bool] = None


class AgentSearchQuery(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    specializations: Optional[List[str]] = None
    capabilities: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None
    exclude_ids: Optional[List[str]] = None

    @field_validator("type", mode="before")
    @classmethod
    def _unwrap_enum(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value


class AgentExecutionContext(BaseModel):
    agent_id: str
    task: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    session_id: str
    user_id: Optional[str] = None
    tools: List[str] = Field(default_factory=list)
    timeout: Optional[int] = None
    priority: Optional[Literal["low", "medium", "high", "critical"]] = None
    context: Optional[Dict[str, Any]] = None


class AgentResultMetadata(BaseModel):
    agent_id: str
    session_id: str
    user_id: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)
    tools_used: List[str] = Field(default_factory=list)
    tokens_used: Optional[int] = None


class AgentExecutionResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    execution_time: float = 0.0
    cost: float = 0.0
    metadata: AgentResultMetadata


class MemoryEntry(BaseModel):
    task: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    success: bool
    error: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)


class AgentStatistics(BaseModel):
    agent_id: str
    total_sessions: int
    successful_sessions: int
    failed_sessions: int
    average_execution_time: float
    success_rate: float
    total_cost: float
    last_used: Optional[int] = None
    current_status: str
    created_at: int


class AgentRegistryStatistics(BaseModel):
    total_agents: int
    types: int
    total_sessions: int
    average_success_rate: float
    total_cost: float
    most_active_agent: Optional[str] = None
    active_agents: int


@dataclass(slots=True)
class AgentMetadata(UsageMetadata):
    """Usage counters plus the agent-only cost and status fields."""

    total_cost: float = 0.0
    current_status: str = "idle"
    last_error: Optional[str] = None

    @property
    def total_sessions(self) -> int:
        return self.usage_count

    @property
    def created_at(self) -> int:
        return self.registered_at


@dataclass(slots=True)
class RegisteredAgent:
    """A registered agent: definition, handler, counters and session memory."""

    id: str
    definition: AgentDefinition
    handler: "AgentHandler"
    tools: List[str] = field(default_factory=list)
    metadata: AgentMetadata = field(default_factory=lambda: AgentMetadata(registered_at=now_ms()))
    memory: Dict[str, MemoryEntry] = field(default_factory=dict)
    active_sessions: Set[str] = field(default_factory=set)


__all__ = [
    "AgentType",
    "AGENT_SPECIALIZATIONS",
    "AgentModel",
    "AgentDefinition",
    "AgentCapabilities",
    "AgentSearchQuery",
    "AgentExecutionContext",
    "AgentResultMetadata",
    "AgentExecutionResult",
    "MemoryEntry",
    "AgentStatistics",
    "AgentRegistryStatistics",
    "AgentMetadata",
    "RegisteredAgent",
]
