"""Typed errors raised by the tool and agent registries."""

from __future__ import annotations

from typing import Iterable


class RegistryError(Exception):
    """Base class for every error raised by a registry."""


class InvalidDefinitionError(RegistryError, ValueError):
    """A tool or agent definition failed schema validation."""

    def __init__(self, kind: str, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"Invalid {kind} definition: {detail}")


class DuplicateIdError(RegistryError):
    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind.capitalize()} with ID '{item_id}' already exists")


class MissingDependencyError(RegistryError):
    def __init__(self, kind: str, item_id: str, dependency_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        self.dependency_id = dependency_id
        super().__init__(f"{kind.capitalize()} dependency '{dependency_id}' not found")


class DependentsExistError(RegistryError):
    def __init__(self, kind: str, item_id: str, dependents: Iterable[str]) -> None:
        self.kind = kind
        self.item_id = item_id
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot unregister {kind} '{item_id}' - it has {len(self.dependents)} dependent {kind}s"
        )


class ToolNotFoundError(RegistryError, LookupError):
    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool '{tool_id}' not found")


class AgentNotFoundError(RegistryError, LookupError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent '{agent_id}' not found")


class InvalidParametersError(RegistryError, ValueError):
    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        qualifier = "parameters" if kind == "tool" else "task or parameters"
        super().__init__(f"Invalid {qualifier} for {kind} '{item_id}'")


__all__ = [
    "RegistryError",
    "InvalidDefinitionError",
    "DuplicateIdError",
    "MissingDependencyError",
    "DependentsExistError",
    "ToolNotFoundError",
    "AgentNotFoundError",
    "InvalidParametersError",
]
