"""
MixRank email enrichment for the onboarding agent.

Looks up a work email with the MixRank Person Match API and normalizes the
handful of fields the onboarding conversation cares about.

Setup:
    Add MIXRANK_KEY to ~/.onboard/.env (or pass api_key explicitly).

All failures are returned in the result's status/error fields -- never raised.
Status 0 means no complete HTTP response arrived (timeout, DNS, connection
reset). The timeout bounds the whole lookup, including reading the body.
"""

import json
import logging
import os
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from onboard_constants import MIXRANK_BASE_URL, MIXRANK_KEY_ENV, MIXRANK_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class EnrichedFields:
    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    linkedin_url: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class EnrichmentResult:
    """Outcome of one enrichment lookup.

    ``status`` is the HTTP status code, or 0 when no response was received.
    ``data`` carries the raw body for successful lookups only.
    """

    email: str
    status: int
    data: Any = None
    error: Optional[str] = None
    enriched: Optional[EnrichedFields] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.status == 200

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"email": self.email, "status": self.status}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        if self.enriched is not None:
            out["enriched"] = self.enriched.to_dict()
        return out


# ---------------------------------------------------------------------------
# Field extraction
#
# Each extractor walks its own precedence chain and returns None when no
# candidate is usable. A surprising shape in one field never affects another.
# ---------------------------------------------------------------------------

def _get(data: Any, *path: str) -> Any:
    """Follow a key path through nested dicts, returning None on any miss."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _first_text(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        text = _text(candidate)
        if text:
            return text
    return None


def _pick(items: Any, flag: str) -> Optional[dict]:
    """Return the entry with a truthy *flag*, else the first entry."""
    if not isinstance(items, list) or not items:
        return None
    entries = [i for i in items if isinstance(i, dict)]
    for entry in entries:
        if entry.get(flag):
            return entry
    return entries[0] if entries else None


def _extract_name(data: dict) -> Optional[str]:
    full = _first_text(_get(data, "name", "full"), data.get("full_name"))
    if full:
        return full
    first = _first_text(_get(data, "name", "first"), data.get("first_name"))
    last = _first_text(_get(data, "name", "last"), data.get("last_name"))
    joined = " ".join(part for part in (first, last) if part)
    return joined or None


def _extract_title(data: dict) -> Optional[str]:
    position = _pick(_get(data, "linkedin", "positions"), "is_current")
    return _first_text(
        _get(data, "linkedin", "title"),
        _get(data, "linkedin", "headline"),
        data.get("title"),
        data.get("job_title"),
        _get(position, "title"),
    )


def _extract_company(data: dict) -> Optional[str]:
    return _first_text(
        _get(data, "company", "name"),
        _get(data, "linkedin", "org"),
        data.get("current_company"),
        data.get("company"),
    )


def _extract_linkedin_url(data: dict) -> Optional[str]:
    return _first_text(
        _get(data, "linkedin", "url"),
        data.get("linkedin_url"),
        data.get("profile_url"),
    )


def _extract_location(data: dict) -> Optional[str]:
    linkedin_loc = _text(_get(data, "linkedin", "location", "text"))
    if linkedin_loc:
        return linkedin_loc
    city = _text(_get(data, "company", "address", "city"))
    country = _text(_get(data, "company", "address", "country"))
    if city and country:
        return f"{city}, {country}"
    person_loc = _text(data.get("location"))
    if person_loc:
        return person_loc
    city, country = _text(data.get("city")), _text(data.get("country"))
    if city and country:
        return f"{city}, {country}"
    return None


def _extract_industry(data: dict) -> Optional[str]:
    primary = _pick(_get(data, "company", "industries"), "is_primary")
    return _first_text(
        _get(primary, "name"),
        _get(data, "linkedin", "industry"),
        data.get("industry"),
    )


_FIELD_EXTRACTORS: Dict[str, Callable[[dict], Optional[str]]] = {
    "name": _extract_name,
    "title": _extract_title,
    "company": _extract_company,
    "linkedin_url": _extract_linkedin_url,
    "location": _extract_location,
    "industry": _extract_industry,
}


def extract_enriched_fields(data: Any) -> EnrichedFields:
    """Best-effort normalization of a person record.

    Accepts either a bare record or a ``{"results": [...]}`` envelope, in which
    case the first result is used.
    """
    results = _get(data, "results")
    if isinstance(results, list) and results:
        data = results[0]
    if not isinstance(data, dict):
        return EnrichedFields()

    values: Dict[str, Optional[str]] = {}
    for name, extractor in _FIELD_EXTRACTORS.items():
        try:
            values[name] = extractor(data)
        except Exception as e:
            logger.debug("Enrichment field %s extraction failed: %s", name, e)
            values[name] = None
    return EnrichedFields(**values)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

_STATUS_MESSAGES = {
    202: "Queued. Try again later.",
    401: "Unauthorized. Check API key.",
    403: "Unauthorized. Check API key.",
    404: "Not found",
    429: "Rate limited. Slow down or try later.",
}

_CHUNK_SIZE = 1024


@dataclass
class _RawResponse:
    status: int
    content_type: str
    body: bytes


def _resolve_api_key(api_key: Optional[str]) -> str:
    return (api_key or os.environ.get(MIXRANK_KEY_ENV, "")).strip()


def _fetch(url: str, email: str, timeout: float, deadline: float) -> _RawResponse:
    """Issue the lookup and read the whole body, giving up once *deadline* passes."""
    resp = requests.get(
        url,
        params={"email": email, "enable": "linkedin"},
        headers={"Accept": "application/json"},
        stream=True,
        timeout=timeout,
    )
    try:
        chunks = []
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise requests.Timeout(f"body still arriving after {timeout}s")
        return _RawResponse(
            status=resp.status_code,
            content_type=resp.headers.get("content-type") or "",
            body=b"".join(chunks),
        )
    finally:
        resp.close()


def _fetch_with_deadline(url: str, email: str, timeout: float) -> _RawResponse:
    """Run _fetch on a disposable thread and stop waiting after *timeout* seconds.

    requests' timeout bounds each connect and socket read separately; this
    bounds the whole call. A worker still blocked at the deadline is abandoned
    and exits after its next read.
    """
    deadline = time.monotonic() + timeout
    outcome: Dict[str, Any] = {}

    def run():
        try:
            outcome["response"] = _fetch(url, email, timeout, deadline)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, name="mixrank-lookup", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise requests.Timeout(f"no complete response within {timeout}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["response"]


def _decode_body(raw: _RawResponse) -> Any:
    if "application/json" in raw.content_type:
        try:
            return json.loads(raw.body.decode("utf-8"))
        except ValueError:
            return {}
    return raw.body.decode("utf-8", errors="replace")


def enrich_email(
    email: str,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> EnrichmentResult:
    """
    Enrich a single work email with the MixRank Person Match API.

    Args:
        email: Address to look up. Must contain "@".
        api_key: MixRank key. Falls back to the MIXRANK_KEY env var.
        timeout: Seconds the whole lookup may take, body included (default 12).

    Returns:
        EnrichmentResult -- status 200 with ``data`` and ``enriched`` on
        success, otherwise the upstream status (or 0) and an error message.
    """
    if not email or "@" not in email:
        return EnrichmentResult(email=email or "", status=400, error="Invalid email format")

    key = _resolve_api_key(api_key)
    if not key:
        return EnrichmentResult(
            email=email, status=401, error=f"Missing MixRank API key ({MIXRANK_KEY_ENV})"
        )

    timeout = MIXRANK_TIMEOUT_SECONDS if timeout is None else timeout
    url = f"{MIXRANK_BASE_URL}/{key}/person/match"

    try:
        raw = _fetch_with_deadline(url, email, timeout)
    except requests.Timeout as e:
        logger.warning("MixRank lookup for %s timed out after %ss", email, timeout)
        return EnrichmentResult(email=email, status=0, error=f"Request timed out after {timeout}s: {e}")
    except requests.RequestException as e:
        logger.warning("MixRank lookup for %s failed: %s", email, e)
        return EnrichmentResult(email=email, status=0, error=str(e) or type(e).__name__)

    body = _decode_body(raw)
    status = raw.status
    if status == 200:
        return EnrichmentResult(
            email=email, status=200, data=body, enriched=extract_enriched_fields(body)
        )
    if status in _STATUS_MESSAGES:
        return EnrichmentResult(email=email, status=status, error=_STATUS_MESSAGES[status])

    upstream_error = body.get("error") if isinstance(body, dict) else None
    return EnrichmentResult(
        email=email,
        status=status,
        error=str(upstream_error) if upstream_error else "Unexpected error",
    )


def check_enrichment_requirements(api_key: Optional[str] = None) -> bool:
    return bool(_resolve_api_key(api_key))


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m tools.enrichment_tool user@company.com")
        sys.exit(1)
    result = enrich_email(sys.argv[1])
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    sys.exit(0 if result.ok else 1)
