"""Tests for agent.tool_executor -- execute_tool_calls and argument parsing.

Run with:
    python -m pytest tests/agent/test_tool_executor.py -v
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from agent.stream_events import ToolInvocation
from agent.tool_executor import (
    MAX_TOOL_RESULT_CHARS,
    ToolExecConfig,
    execute_tool_calls,
    parse_arguments,
)


class TestParseArguments:
    @pytest.mark.parametrize("raw,expected", [
        ('{"email": "a@b.co"}', {"email": "a@b.co"}),
        ("", {}),
        (None, {}),
        ("not json", {}),
        ("[1, 2]", {}),
        ({"already": "dict"}, {"already": "dict"}),
    ])
    def test_parse(self, raw, expected):
        assert parse_arguments(raw) == expected


class TestExecuteToolCalls:
    def test_results_pair_with_call_ids(self):
        invocations = [
            ToolInvocation("call_a", "google_auth"),
            ToolInvocation("call_b", "stripe_payment", '{"plan": "pro"}'),
        ]
        results = execute_tool_calls(ToolExecConfig(), invocations)
        assert [r.call_id for r in results] == ["call_a", "call_b"]
        assert all(json.loads(r.output)["status"] == 200 for r in results)

    @patch("model_tools.enrich_email")
    def test_malformed_arguments_reach_handler_as_empty(self, mock_enrich):
        (result,) = execute_tool_calls(ToolExecConfig(), [ToolInvocation("c1", "enrich_email", "{oops")])
        assert json.loads(result.output) == {"email": "", "status": 400, "error": "missing email"}
        mock_enrich.assert_not_called()

    def test_settings_forwarded(self):
        settings = object()
        with patch("model_tools.handle_function_call", return_value="{}") as mock_handle:
            execute_tool_calls(ToolExecConfig(settings=settings), [ToolInvocation("c1", "google_auth")])
        mock_handle.assert_called_once_with("google_auth", {}, settings=settings)

    def test_progress_callback(self):
        callback = MagicMock()
        execute_tool_calls(
            ToolExecConfig(tool_progress_callback=callback),
            [ToolInvocation("c1", "stripe_payment", '{"plan": "pro"}')],
        )
        callback.assert_called_once_with("stripe_payment", '{"plan": "pro"}')

    def test_callback_errors_ignored(self):
        callback = MagicMock(side_effect=RuntimeError("ui gone"))
        results = execute_tool_calls(
            ToolExecConfig(tool_progress_callback=callback),
            [ToolInvocation("c1", "google_auth")],
        )
        assert len(results) == 1

    def test_long_output_truncated(self):
        big = "x" * (MAX_TOOL_RESULT_CHARS + 50)
        with patch("model_tools.handle_function_call", return_value=big):
            (result,) = execute_tool_calls(ToolExecConfig(), [ToolInvocation("c1", "google_auth")])
        assert result.output.startswith("x" * MAX_TOOL_RESULT_CHARS)
        assert result.output.endswith("[truncated 50 chars]")

    def test_empty(self):
        assert execute_tool_calls(ToolExecConfig(), []) == []
