"""
Tests for the MixRank enrichment tool.
Run with: pytest tests/tools/test_enrichment_tool.py -v
"""
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest
import requests

from tools.enrichment_tool import (
    EnrichedFields,
    check_enrichment_requirements,
    enrich_email,
    extract_enriched_fields,
)

ADA = {
    "name": {"full": "Ada Lovelace"},
    "linkedin": {"title": "Founder", "url": "https://linkedin.com/in/ada"},
    "company": {"name": "Analytical Engines", "address": {"city": "London", "country": "UK"}},
}


def _response(status, body=None, content_type="application/json", text=""):
    payload = json.dumps(body).encode() if body is not None else text.encode()
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {"content-type": content_type}
    resp.iter_content.return_value = iter([payload[:5], payload[5:]])
    return resp


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    monkeypatch.delenv("MIXRANK_KEY", raising=False)


class TestInputChecks:
    @patch("tools.enrichment_tool.requests.get")
    def test_invalid_email_makes_no_request(self, mock_get):
        result = enrich_email("not-an-email", api_key="k")
        assert result.status == 400
        assert result.error == "Invalid email format"
        mock_get.assert_not_called()

    @patch("tools.enrichment_tool.requests.get")
    def test_empty_email(self, mock_get):
        result = enrich_email("", api_key="k")
        assert result.status == 400
        assert result.email == ""
        mock_get.assert_not_called()

    @patch("tools.enrichment_tool.requests.get")
    def test_missing_key_makes_no_request(self, mock_get):
        result = enrich_email("ada@example.com")
        assert result.status == 401
        assert "MIXRANK_KEY" in result.error
        mock_get.assert_not_called()

    def test_key_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("MIXRANK_KEY", "env-key")
        assert check_enrichment_requirements() is True
        assert check_enrichment_requirements("  ") is True

    def test_requirements_without_key(self):
        assert check_enrichment_requirements() is False


class TestHttpOutcomes:
    @patch("tools.enrichment_tool.requests.get")
    def test_success_extracts_fields(self, mock_get):
        mock_get.return_value = _response(200, ADA)
        result = enrich_email("ada@example.com", api_key="secret")

        assert result.ok
        assert result.data == ADA
        assert result.enriched == EnrichedFields(
            name="Ada Lovelace",
            title="Founder",
            company="Analytical Engines",
            linkedin_url="https://linkedin.com/in/ada",
            location="London, UK",
        )
        assert "industry" not in result.to_dict()["enriched"]

    @patch("tools.enrichment_tool.requests.get")
    def test_request_shape(self, mock_get):
        mock_get.return_value = _response(200, {})
        enrich_email("ada@example.com", api_key="secret", timeout=3)

        args, kwargs = mock_get.call_args
        assert args[0].endswith("/secret/person/match")
        assert kwargs["params"] == {"email": "ada@example.com", "enable": "linkedin"}
        assert kwargs["headers"] == {"Accept": "application/json"}
        assert kwargs["timeout"] == 3
        assert kwargs["stream"] is True
        mock_get.return_value.close.assert_called_once()

    @pytest.mark.parametrize("status,message", [
        (202, "Queued. Try again later."),
        (401, "Unauthorized. Check API key."),
        (403, "Unauthorized. Check API key."),
        (404, "Not found"),
        (429, "Rate limited. Slow down or try later."),
    ])
    @patch("tools.enrichment_tool.requests.get")
    def test_known_statuses(self, mock_get, status, message):
        mock_get.return_value = _response(status, {"error": "ignored"})
        result = enrich_email("ada@example.com", api_key="k")
        assert result.status == status
        assert result.error == message
        assert result.data is None

    @patch("tools.enrichment_tool.requests.get")
    def test_other_status_uses_upstream_error(self, mock_get):
        mock_get.return_value = _response(500, {"error": "backend exploded"})
        result = enrich_email("ada@example.com", api_key="k")
        assert result.status == 500
        assert result.error == "backend exploded"

    @patch("tools.enrichment_tool.requests.get")
    def test_other_status_non_json(self, mock_get):
        mock_get.return_value = _response(502, content_type="text/html", text="<html>bad gateway</html>")
        result = enrich_email("ada@example.com", api_key="k")
        assert result.status == 502
        assert result.error == "Unexpected error"

    @patch("tools.enrichment_tool.requests.get")
    def test_success_with_non_json_body(self, mock_get):
        mock_get.return_value = _response(200, content_type="text/plain", text="ok")
        result = enrich_email("ada@example.com", api_key="k")
        assert result.status == 200
        assert result.data == "ok"
        assert result.enriched == EnrichedFields()

    @patch("tools.enrichment_tool.requests.get")
    def test_timeout_is_status_zero(self, mock_get):
        mock_get.side_effect = requests.Timeout("read timed out")
        result = enrich_email("ada@example.com", api_key="k", timeout=1)
        assert result.status == 0
        assert "timed out" in result.error

    @patch("tools.enrichment_tool.requests.get")
    def test_connection_error_is_status_zero(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("connection refused")
        result = enrich_email("ada@example.com", api_key="k")
        assert result.status == 0
        assert "refused" in result.error


class _SlowHandler(BaseHTTPRequestHandler):
    """Waits before sending anything at all."""

    def do_GET(self):
        time.sleep(2)
        try:
            self.send_response(200)
            self.end_headers()
        except OSError:
            pass

    def log_message(self, *args):
        pass


class _TrickleHandler(BaseHTTPRequestHandler):
    """Sends headers at once, then one body byte every 0.2s."""

    BODY = b'{"name": {"full": "Ada Lovelace"}}'

    def do_GET(self):
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(self.BODY)))
            self.end_headers()
            for i in range(len(self.BODY)):
                self.wfile.write(self.BODY[i:i + 1])
                self.wfile.flush()
                time.sleep(0.2)
        except OSError:
            pass

    def log_message(self, *args):
        pass


def _timed_lookup(handler, timeout):
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        base = f"http://127.0.0.1:{server.server_address[1]}"
        with patch("tools.enrichment_tool.MIXRANK_BASE_URL", base):
            start = time.monotonic()
            result = enrich_email("ada@example.com", api_key="k", timeout=timeout)
            return result, time.monotonic() - start
    finally:
        server.shutdown()
        server.server_close()


class TestDeadline:
    def test_slow_upstream_returns_after_timeout(self):
        result, elapsed = _timed_lookup(_SlowHandler, timeout=0.3)
        assert result.status == 0
        assert elapsed < 1.5

    def test_trickling_body_bounded_by_timeout(self):
        result, elapsed = _timed_lookup(_TrickleHandler, timeout=0.5)
        assert result.status == 0
        assert not result.ok
        assert "timed out" in result.error
        assert elapsed < 1.5

    @patch("tools.enrichment_tool.requests.get")
    def test_broken_body_is_status_zero(self, mock_get):
        resp = _response(200, ADA)
        resp.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("connection reset")
        mock_get.return_value = resp

        result = enrich_email("ada@example.com", api_key="k")

        assert result.status == 0
        assert "reset" in result.error
        resp.close.assert_called_once()


class TestExtraction:
    def test_results_envelope_uses_first(self):
        fields = extract_enriched_fields({"results": [{"full_name": "Grace Hopper"}, {"full_name": "Other"}]})
        assert fields.name == "Grace Hopper"

    def test_name_from_parts(self):
        assert extract_enriched_fields({"first_name": "Grace", "last_name": "Hopper"}).name == "Grace Hopper"
        assert extract_enriched_fields({"name": {"first": "Grace"}}).name == "Grace"

    def test_title_precedence(self):
        data = {
            "linkedin": {"headline": "Headline", "positions": [
                {"title": "Old"}, {"title": "Current", "is_current": True},
            ]},
            "title": "Top-level",
        }
        assert extract_enriched_fields(data).title == "Headline"
        del data["linkedin"]["headline"]
        del data["title"]
        assert extract_enriched_fields(data).title == "Current"

    def test_company_and_industry(self):
        data = {
            "linkedin": {"org": "LinkedIn Org", "industry": "Software"},
            "company": {"industries": [{"name": "Other"}, {"name": "Fintech", "is_primary": True}]},
        }
        fields = extract_enriched_fields(data)
        assert fields.company == "LinkedIn Org"
        assert fields.industry == "Fintech"

    def test_location_precedence(self):
        assert extract_enriched_fields({"linkedin": {"location": {"text": "Paris"}}, "location": "X"}).location == "Paris"
        assert extract_enriched_fields({"location": "Berlin"}).location == "Berlin"
        assert extract_enriched_fields({"city": "Oslo", "country": "NO"}).location == "Oslo, NO"
        assert extract_enriched_fields({"city": "Oslo"}).location is None

    def test_odd_shapes_do_not_spill_over(self):
        data = {"name": "not-a-dict", "linkedin": ["weird"], "company": {"name": "Acme"}, "linkedin_url": "u"}
        fields = extract_enriched_fields(data)
        assert fields.company == "Acme"
        assert fields.linkedin_url == "u"
        assert fields.name is None

    def test_non_dict_input(self):
        assert extract_enriched_fields(None) == EnrichedFields()
        assert extract_enriched_fields(["x"]) == EnrichedFields()
