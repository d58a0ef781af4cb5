#!/usr/bin/env python3
"""
Model Tools Module

Unified interface between the turn orchestrator and the tool implementations
in ``tools/``. Declares every function the model may call, registers the
handlers, and exposes:

- get_tool_definitions(): tool declarations for a Responses API request
- handle_function_call(): run one tool by name and return its JSON output

Available tools:
- enrich_email   : MixRank person lookup for a work email
- google_auth    : mocked Google sign-in
- stripe_payment : mocked Stripe checkout

An optional hosted ``web_search`` tool can be declared alongside them. It is
executed by the provider, not here, and some models reject it.
"""

import json
import logging
from typing import Any, Dict, List

from tools.enrichment_tool import enrich_email
from tools.mock_tools import mock_google_auth, mock_stripe_payment
from tools.registry import registry

logger = logging.getLogger(__name__)

ENRICH_TOOL = "enrich_email"
GOOGLE_AUTH_TOOL = "google_auth"
STRIPE_PAYMENT_TOOL = "stripe_payment"

WEB_SEARCH_TOOL: Dict[str, Any] = {"type": "web_search"}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _handle_enrich_email(args: Dict[str, Any], settings=None, **kwargs) -> str:
    email = args.get("email") if isinstance(args, dict) else None
    if not isinstance(email, str) or not email.strip():
        return json.dumps({"email": "", "status": 400, "error": "missing email"})

    result = enrich_email(
        email.strip(),
        api_key=getattr(settings, "mixrank_key", None),
        timeout=getattr(settings, "enrichment_timeout", None),
    )
    return json.dumps(result.to_dict(), ensure_ascii=False, default=str)


def _handle_google_auth(args: Dict[str, Any], **kwargs) -> str:
    return mock_google_auth(args)


def _handle_stripe_payment(args: Dict[str, Any], **kwargs) -> str:
    return mock_stripe_payment(args)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

registry.register(
    name=ENRICH_TOOL,
    toolset="enrichment",
    schema={
        "description": (
            "Look up a person by work email (name, title, company, LinkedIn URL, "
            "location, industry). Call this as soon as the user shares their work "
            "email and use the results to pre-fill answers instead of asking."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "email": {"type": "string", "description": "The user's work email address"},
            },
            "required": ["email"],
        },
    },
    handler=_handle_enrich_email,
)

registry.register(
    name=GOOGLE_AUTH_TOOL,
    toolset="mock",
    schema={
        "description": "Sign the user in with Google. Call once the user agrees to authenticate.",
        "parameters": {"type": "object", "properties": {}},
    },
    handler=_handle_google_auth,
)

registry.register(
    name=STRIPE_PAYMENT_TOOL,
    toolset="mock",
    schema={
        "description": "Start Stripe checkout for the chosen plan. Call once the user confirms they want to pay.",
        "parameters": {
            "type": "object",
            "properties": {
                "plan": {"type": "string", "description": "Plan the user picked, if any"},
            },
        },
    },
    handler=_handle_stripe_payment,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_tool_definitions(web_search: bool = False) -> List[Dict[str, Any]]:
    """Return the tool declarations sent with every model request."""
    tools = registry.get_definitions()
    if web_search:
        tools.append(dict(WEB_SEARCH_TOOL))
    return tools


def is_hosted_tool(tool: Dict[str, Any]) -> bool:
    return tool.get("type") != "function"


def without_hosted_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [t for t in tools if not is_hosted_tool(t)]


def handle_function_call(name: str, args: Dict[str, Any], settings=None) -> str:
    """Execute a tool and return its JSON string output."""
    try:
        return registry.dispatch(name, args, settings=settings)
    except Exception as e:
        logger.exception("Tool %s raised", name)
        return json.dumps({"status": 500, "error": f"{type(e).__name__}: {e}"})

