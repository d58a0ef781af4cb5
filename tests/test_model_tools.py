"""Tests for model_tools -- tool declarations and function-call dispatch."""

import json
from unittest.mock import patch

from model_tools import (
    ENRICH_TOOL,
    GOOGLE_AUTH_TOOL,
    STRIPE_PAYMENT_TOOL,
    get_tool_definitions,
    handle_function_call,
    is_hosted_tool,
    without_hosted_tools,
)
from onboard_cli.config import Settings
from tools.enrichment_tool import EnrichmentResult


class TestToolDefinitions:
    def test_function_tools_declared(self):
        names = [t["name"] for t in get_tool_definitions()]
        assert names == [ENRICH_TOOL, GOOGLE_AUTH_TOOL, STRIPE_PAYMENT_TOOL]
        assert all(t["type"] == "function" for t in get_tool_definitions())

    def test_enrich_requires_email(self):
        enrich = next(t for t in get_tool_definitions() if t["name"] == ENRICH_TOOL)
        assert enrich["parameters"]["required"] == ["email"]

    def test_web_search_is_hosted(self):
        tools = get_tool_definitions(web_search=True)
        assert tools[-1] == {"type": "web_search"}
        assert is_hosted_tool(tools[-1])
        assert without_hosted_tools(tools) == get_tool_definitions()


class TestHandleFunctionCall:
    @patch("model_tools.enrich_email")
    def test_missing_email_skips_lookup(self, mock_enrich):
        out = json.loads(handle_function_call(ENRICH_TOOL, {}))
        assert out == {"email": "", "status": 400, "error": "missing email"}
        mock_enrich.assert_not_called()

    @patch("model_tools.enrich_email")
    def test_non_string_email(self, mock_enrich):
        out = json.loads(handle_function_call(ENRICH_TOOL, {"email": 42}))
        assert out["status"] == 400
        mock_enrich.assert_not_called()

    @patch("model_tools.enrich_email")
    def test_enrich_uses_settings(self, mock_enrich):
        mock_enrich.return_value = EnrichmentResult(email="ada@example.com", status=429, error="Rate limited")
        settings = Settings(mixrank_key="mr-key", enrichment_timeout=5.0)

        out = json.loads(handle_function_call(ENRICH_TOOL, {"email": " ada@example.com "}, settings=settings))

        mock_enrich.assert_called_once_with("ada@example.com", api_key="mr-key", timeout=5.0)
        assert out == {"email": "ada@example.com", "status": 429, "error": "Rate limited"}

    def test_mock_tools_dispatch(self):
        assert json.loads(handle_function_call(GOOGLE_AUTH_TOOL, {}))["status"] == 200
        assert json.loads(handle_function_call(STRIPE_PAYMENT_TOOL, {"plan": "pro"}))["status"] == 200

    def test_unknown_tool(self):
        assert json.loads(handle_function_call("teleport", {}))["status"] == 404

    @patch("model_tools.enrich_email", side_effect=RuntimeError("boom"))
    def test_handler_exception_becomes_500(self, _mock):
        out = json.loads(handle_function_call(ENRICH_TOOL, {"email": "a@b.co"}))
        assert out["status"] == 500
        assert "boom" in out["error"]
