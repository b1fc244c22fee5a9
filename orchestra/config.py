"""Environment-driven runtime settings for the registry and orchestrator."""

from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace
from typing import Optional, Sequence, Tuple

PACKAGE_ROOT = Path(__file__).resolve().parent


def _env_str(name: str, default: Optional[str] = None, *, empty_to_none: bool = True) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if not value and empty_to_none:
        return None if default is None else default
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_tuple(name: str, default: Sequence[str]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return tuple(default)
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or tuple(default)


def _discover_available_agents() -> Tuple[str, ...]:
    """Discover bundled agents from the filesystem."""
    agents_dir = PACKAGE_ROOT / "agents"
    try:
        return tuple(
            sorted(
                entry.name
                for entry in agents_dir.iterdir()
                if entry.is_dir() and not entry.name.startswith("_") and (entry / "manifest.yaml").exists()
            )
        )
    except FileNotFoundError:
        return tuple()


class Settings(SimpleNamespace):
    """Simple attribute container used throughout the codebase."""

CONFIG = Settings()


def _compute_values() -> dict[str, object]:
    # -----------------------------------------------------------------------
    # RUNTIME ENVIRONMENT
    # -----------------------------------------------------------------------
    environment = _env_str("ENV", "prod", empty_to_none=False).lower()
    if environment not in {"dev", "prod", "test"}:
        environment = "prod"
    is_development = environment == "dev"

    # -----------------------------------------------------------------------
    # LOGGING
    # -----------------------------------------------------------------------
    log_level = _env_str("LOG_LEVEL", "INFO", empty_to_none=False).upper()

    # -----------------------------------------------------------------------
    # EXECUTION DEFAULTS
    # -----------------------------------------------------------------------
    default_task_timeout_ms = _env_int("DEFAULT_TASK_TIMEOUT_MS", 300_000)
    default_tool_timeout_ms = _env_int("DEFAULT_TOOL_TIMEOUT_MS", 30_000)
    default_task_priority = _env_str("DEFAULT_TASK_PRIORITY", "medium", empty_to_none=False).lower()
    if default_task_priority not in {"low", "medium", "high", "critical"}:
        default_task_priority = "medium"
    session_max_age_ms = _env_int("SESSION_MAX_AGE_MS", 86_400_000)

    # -----------------------------------------------------------------------
    # REGISTRY BEHAVIOUR
    # -----------------------------------------------------------------------
    stats_strategy = _env_str("REGISTRY_STATS_STRATEGY", "approximate", empty_to_none=False).lower()
    if stats_strategy not in {"approximate", "exact"}:
        stats_strategy = "approximate"
    agent_types_strict = _env_bool("AGENT_TYPES_STRICT", True)

    # -----------------------------------------------------------------------
    # INSTALLED AGENTS / TEMPLATES
    # -----------------------------------------------------------------------
    installed_agents: Tuple[str, ...] = _env_tuple(
        "INSTALLED_AGENTS",
        _discover_available_agents(),
    )
    templates_dir = _env_str("TEMPLATES_DIR", None)

    config_map = {
        "environment": environment,
        "is_development": is_development,
        "log_level": log_level,
        "default_task_timeout_ms": default_task_timeout_ms,
        "default_tool_timeout_ms": default_tool_timeout_ms,
        "default_task_priority": default_task_priority,
        "session_max_age_ms": session_max_age_ms,
        "stats_strategy": stats_strategy,
        "agent_types_strict": agent_types_strict,
        "installed_agents": installed_agents,
        "templates_dir": templates_dir,
    }

    return config_map


def reload_config() -> None:
    CONFIG.__dict__.update(_compute_values())


def load_envs(global_dir: str, agent_key: str | None = None) -> None:
    """Load environment variables from global and agent-specific .env files."""
    from dotenv import load_dotenv

    load_dotenv(os.path.join(global_dir, ".env"))

    if agent_key:
        agent_env = PACKAGE_ROOT / "agents" / agent_key / ".env"
        if agent_env.is_file():
            load_dotenv(agent_env, override=True)

    reload_config()


# Load once on import so downstream modules can use CONFIG immediately.
reload_config()
