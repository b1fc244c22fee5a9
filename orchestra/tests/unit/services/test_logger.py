"""Tests for the shared logging shim."""

from __future__ import annotations

import logging

from orchestra import logger


def test_log_initializes_basic_config(caplog) -> None:
    caplog.set_level(logging.INFO)

    logger.log("hello", "world", foo="bar")

    assert any("hello world" in message for message in caplog.messages)
    assert any("foo" in message for message in caplog.messages)


def test_warn_emits_warning_records(caplog) -> None:
    caplog.set_level(logging.INFO)

    logger.warn("[orchestrator]", "using fallback", None)

    records = [record for record in caplog.records if record.name == "orchestra"]
    assert records
    assert records[-1].levelno == logging.WARNING
    assert records[-1].getMessage() == "[orchestrator] using fallback"
