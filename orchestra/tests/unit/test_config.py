"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from orchestra import config


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    config.reload_config()

    assert config.CONFIG.environment == "test"
    assert config.CONFIG.default_task_timeout_ms == 300_000
    assert config.CONFIG.default_tool_timeout_ms == 30_000
    assert config.CONFIG.default_task_priority == "medium"
    assert config.CONFIG.session_max_age_ms == 86_400_000
    assert config.CONFIG.stats_strategy == "approximate"
    assert config.CONFIG.agent_types_strict is True
    assert "generalist" in config.CONFIG.installed_agents
    assert config.CONFIG.templates_dir is None


def test_invalid_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "staging")
    monkeypatch.setenv("DEFAULT_TASK_TIMEOUT_MS", "soon")
    monkeypatch.setenv("DEFAULT_TASK_PRIORITY", "urgent")
    monkeypatch.setenv("REGISTRY_STATS_STRATEGY", "median")
    monkeypatch.setenv("INSTALLED_AGENTS", "alpha, beta ,")

    config.reload_config()

    assert config.CONFIG.environment == "prod"
    assert config.CONFIG.default_task_timeout_ms == 300_000
    assert config.CONFIG.default_task_priority == "medium"
    assert config.CONFIG.stats_strategy == "approximate"
    assert config.CONFIG.installed_agents == ("alpha", "beta")
    assert not hasattr(config, "INSTALLED_AGENTS")


def test_load_envs_reads_dotenv_files(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("DEFAULT_TASK_PRIORITY=high\nSESSION_MAX_AGE_MS=1000\n", encoding="utf-8")

    config.load_envs(str(tmp_path))

    assert config.CONFIG.default_task_priority == "high"
    assert config.CONFIG.session_max_age_ms == 1000
