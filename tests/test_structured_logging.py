"""
Tests for structured logging: context injection and JSON output on stderr.
"""

import io
import json
import logging
import sys

import pytest

from agentation.core.structured_logging import (
    APP_VERSION,
    SERVICE_NAME,
    _inject_context,
    correlation_id_var,
    request_id_var,
    setup_logging,
    tool_name_var,
)


@pytest.fixture
def json_logging(monkeypatch):
    """Route the console handler into a buffer owned by the test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    setup_logging(log_level="DEBUG")
    yield stream
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestInjectContext:
    def test_without_ids(self):
        result = _inject_context("test", "info", {})
        assert result["service"] == SERVICE_NAME
        assert result["version"] == APP_VERSION
        assert "request_id" not in result
        assert "tool_name" not in result

    def test_all_ids(self):
        t1 = request_id_var.set("r1")
        t2 = correlation_id_var.set("c1")
        t3 = tool_name_var.set("agentation_reply")
        try:
            result = _inject_context("test", "info", {})
            assert result["request_id"] == "r1"
            assert result["correlation_id"] == "c1"
            assert result["tool_name"] == "agentation_reply"
        finally:
            tool_name_var.reset(t3)
            correlation_id_var.reset(t2)
            request_id_var.reset(t1)


class TestJsonOutput:
    def test_stdlib_logger_emits_json_on_stderr(self, json_logging, capsys):
        logging.getLogger("agentation.test").info("annotation_added", extra={"annotation.id": "a1"})

        assert capsys.readouterr().out == ""
        line = json.loads(json_logging.getvalue().strip().splitlines()[-1])
        assert line["event"] == "annotation_added"
        assert line["annotation.id"] == "a1"
        assert line["level"] == "info"
        assert line["service"] == SERVICE_NAME
        assert "ts" in line

    def test_tool_calls_are_logged_with_tool_name(self, json_logging, adapter):
        adapter.call_tool("agentation_list_sessions", {})

        err = json_logging.getvalue()
        lines = [json.loads(l) for l in err.splitlines() if l.startswith("{")]
        completed = [l for l in lines if l["event"] == "tool_call_completed"]
        assert completed[-1]["tool_name"] == "agentation_list_sessions"
        assert completed[-1]["tool.is_error"] is False
