"""Tests for structured tool logging."""

import json
import logging
from unittest.mock import patch

from zapsign_mcp.telemetry.tool_logger import (
    log_tool_call_end,
    log_tool_call_rejected,
    log_tool_call_start,
    log_tool_discovery,
    log_tools_list,
    result_size,
    sanitize_for_logging,
)

LOGGER = "zapsign_mcp.telemetry.tool_logger"


def payload(record):
    return json.loads(record.getMessage().split(": ", 1)[1])


class TestSanitizeForLogging:
    def test_long_strings_are_truncated(self):
        result = sanitize_for_logging("x" * 600)

        assert result.startswith("x" * 500)
        assert "truncated, 600 chars total" in result

    def test_long_lists_are_cut_to_ten(self):
        result = sanitize_for_logging(list(range(15)))

        assert result[:10] == list(range(10))
        assert result[10] == "... (5 more items)"

    def test_nested_values(self):
        assert sanitize_for_logging({"a": {"b": "short"}, "n": 3}) == {"a": {"b": "short"}, "n": 3}


class TestToolLogEvents:
    def test_call_start_logs_sanitized_params(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER):
            log_tool_call_start("echo", {"msg": "y" * 700}, session_id="s1")

        data = payload(caplog.records[-1])
        assert data["event"] == "tool_call_start"
        assert data["tool"] == "echo"
        assert data["session_id"] == "s1"
        assert "truncated" in data["params"]["msg"]

    def test_call_end_success_records_size(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER):
            log_tool_call_end("echo", duration_ms=1.5, result={"msg": "hi"})

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        data = payload(record)
        assert data["success"] is True
        assert data["execution_time_ms"] == 1.5
        assert data["result_size"] == result_size({"msg": "hi"})

    def test_call_end_failure_logs_error(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER):
            log_tool_call_end("boom", duration_ms=2.0, success=False, error="boom")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert payload(record)["error"] == "boom"

    def test_listing_discovery_and_rejection(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER):
            log_tool_discovery(27)
            log_tools_list(27, session_id="abc")
            log_tool_call_rejected("echo", "Missing required parameters", missing=["msg"])

        events = [payload(r)["event"] for r in caplog.records[-3:]]
        assert events == ["tool_discovery", "tools_list", "tool_call_rejected"]
        assert payload(caplog.records[-1])["missing"] == ["msg"]

    def test_helpers_never_raise(self, capsys):
        with patch(f"{LOGGER}._emit", side_effect=RuntimeError("sink broken")):
            assert log_tool_call_start("echo", {}) is None
            assert log_tools_list(1) is None

        assert "tool logging failed" in capsys.readouterr().err
