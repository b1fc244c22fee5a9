"""Running usage statistics shared by the tool and agent registries."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

APPROXIMATE = "approximate"
EXACT = "exact"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class UsageMetadata:
    """Mutable usage counters attached to every registered tool or agent.

    With the default ``approximate`` strategy the number of
    prior successes is reconstructed as ``round(rate * (n - 1))`` on every
    update, which can drift over long runs. With the ``exact`` strategy an
    integer success count is kept alongside and the rate is derived from it.
    """

    registered_at: int
    last_used: Optional[int] = None
    usage_count: int = 0
    average_execution_time: float = 0.0
    success_rate: float = 1.0
    strategy: str = APPROXIMATE
    success_count: int = 0

    def record(self, execution_time: float, success: bool) -> None:
        self.last_used = now_ms()
        self.usage_count += 1
        n = self.usage_count

        total_time = self.average_execution_time * (n - 1) + execution_time
        self.average_execution_time = total_time / n

        if self.strategy == EXACT:
            if success:
                self.success_count += 1
            self.success_rate = self.success_count / n
            return

        previous_successes = round(self.success_rate * (n - 1))
        self.success_count = previous_successes + (1 if success else 0)
        self.success_rate = self.success_count / n


def resolve_strategy(strategy: Optional[str]) -> str:
    if strategy is None:
        from ..config import CONFIG

        strategy = getattr(CONFIG, "stats_strategy", APPROXIMATE)
    normalized = (strategy or "").strip().lower()
    if normalized not in {APPROXIMATE, EXACT}:
        raise ValueError(f"Unknown statistics strategy '{strategy}'")
    return normalized


__all__ = ["UsageMetadata", "APPROXIMATE", "EXACT", "now_ms", "resolve_strategy"]
