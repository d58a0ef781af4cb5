"""
Mock side-effecting tools for the onboarding flow.

Stand-ins for the Google sign-in and Stripe checkout steps the real product
will eventually perform. They make no external calls and always succeed, so
the conversation can walk through the full flow end to end.
"""

import json
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

GOOGLE_AUTH_MESSAGE = "Google authentication completed (mock). The user is signed in."
STRIPE_PAYMENT_MESSAGE = "Stripe payment completed (mock). The subscription is active."


def _success(message: str, **extra: Any) -> str:
    payload: Dict[str, Any] = {"status": 200, "message": message}
    payload.update(extra)
    return json.dumps(payload, ensure_ascii=False)


def mock_google_auth(args: Dict[str, Any] = None) -> str:
    """Pretend to run the Google OAuth flow.

    Args:
        args: Tool arguments from the model (ignored, kept for the handler signature).

    Returns:
        JSON string with a fixed success payload.
    """
    logger.info("[MOCK] google_auth invoked")
    return _success(GOOGLE_AUTH_MESSAGE)


def mock_stripe_payment(args: Dict[str, Any] = None) -> str:
    """Pretend to collect a payment through Stripe checkout."""
    logger.info("[MOCK] stripe_payment invoked")
    return _success(STRIPE_PAYMENT_MESSAGE)
