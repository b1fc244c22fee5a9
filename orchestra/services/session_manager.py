"""
Session Management for orchestrated task executions.

Every ``execute_task``/``execute_workflow`` call owns one session record. The
records live in process memory only; callers trim them explicitly through
``cleanup_expired_sessions``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import CONFIG
from ..registry.stats import now_ms

logger = logging.getLogger(__name__)

INITIALIZING = "initializing"
EXECUTING = "executing"
COMPLETED = "completed"
FAILED = "failed"

TERMINAL_STATUSES = frozenset({COMPLETED, FAILED})


@dataclass(slots=True)
class OrchestrationSession:
    """Bookkeeping record for a single orchestrated execution."""

    id: str
    request: Any
    user_id: Optional[str] = None
    status: str = INITIALIZING
    started_at: int = field(default_factory=now_ms)
    completed_at: Optional[int] = None
    agent_assigned: Optional[str] = None
    tools_used: List[str] = field(default_factory=list)
    retries: int = 0
    error: Optional[str] = None
    fallback_used: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class SessionManager:
    """In-memory session store owned by the orchestrator."""

    def __init__(self) -> None:
        self._sessions: Dict[str, OrchestrationSession] = {}
        self._created_total = 0

    @staticmethod
    def generate_session_id() -> str:
        return f"session_{now_ms()}_{secrets.token_hex(5)}"

    def create_session(self, request: Any, user_id: Optional[str] = None) -> OrchestrationSession:
        session_id = self.generate_session_id()
        while session_id in self._sessions:
            session_id = self.generate_session_id()
        session = OrchestrationSession(id=session_id, request=request, user_id=user_id)
        self._sessions[session_id] = session
        self._created_total += 1
        return session

    def get_session(self, session_id: str) -> Optional[OrchestrationSession]:
        return self._sessions.get(session_id)

    def mark_executing(self, session_id: str, agent_id: str) -> bool:
        session = self._sessions.get(session_id)
        if session is None or session.status != INITIALIZING:
            return False
        session.agent_assigned = agent_id
        session.status = EXECUTING
        return True

    def complete_session(
        self,
        session_id: str,
        *,
        tools_used: Optional[List[str]] = None,
        error: Optional[str] = None,
    ) -> bool:
        """Finish a session whose agent returned; ``error`` keeps a reported failure."""
        session = self._finalise(session_id, COMPLETED)
        if session is None:
            return False
        if tools_used:
            session.tools_used = list(tools_used)
        session.error = error
        return True

    def fail_session(self, session_id: str, error: str) -> bool:
        session = self._finalise(session_id, FAILED)
        if session is None:
            return False
        session.error = error
        return True

    def _finalise(self, session_id: str, status: str) -> Optional[OrchestrationSession]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_terminal:
            logger.warning(
                "Session %s already %s; ignoring transition to %s", session_id, session.status, status
            )
            return None
        session.status = status
        session.completed_at = now_ms()
        return session

    def cleanup_expired_sessions(self, max_age_ms: Optional[int] = None) -> int:
        """Drop finished sessions whose completion is older than ``max_age_ms``.

        Sessions without ``completed_at`` are still running and always kept.
        """
        if max_age_ms is None:
            max_age_ms = getattr(CONFIG, "session_max_age_ms", 86_400_000)
        cutoff = now_ms() - max_age_ms
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.completed_at is not None and session.completed_at <= cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def active_count(self) -> int:
        return sum(1 for session in self._sessions.values() if not session.is_terminal)

    def total_count(self) -> int:
        return self._created_total

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "OrchestrationSession",
    "SessionManager",
    "INITIALIZING",
    "EXECUTING",
    "COMPLETED",
    "FAILED",
]
