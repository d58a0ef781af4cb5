"""Configuration validation utilities.

Validates the startup settings and environment before running the agent.
"""

from typing import Any, Dict, List, Tuple
import logging

from onboard_constants import MIXRANK_KEY_ENV, OPENAI_API_KEY_ENV

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""
    pass


def validate_api_keys(settings) -> List[Tuple[str, bool, str]]:
    """Check required and optional API keys.

    Returns:
        List of (key_name, is_set, message) tuples
    """
    results = []

    if settings.openai_api_key:
        results.append((OPENAI_API_KEY_ENV, True, "OpenAI configured"))
    else:
        results.append((OPENAI_API_KEY_ENV, False, "Not set (required)"))

    if settings.mixrank_key:
        results.append((MIXRANK_KEY_ENV, True, "Email enrichment enabled"))
    else:
        results.append((MIXRANK_KEY_ENV, False, "Email enrichment disabled (optional)"))

    return results


def run_validation(settings) -> Dict[str, Any]:
    """Run all validation checks.

    Returns:
        Dictionary with validation results
    """
    results: Dict[str, Any] = {
        "api_keys": validate_api_keys(settings),
        "errors": [],
        "warnings": [],
    }

    for name, is_set, message in results["api_keys"]:
        if is_set:
            continue
        if name == OPENAI_API_KEY_ENV:
            results["errors"].append(f"Missing {OPENAI_API_KEY_ENV}. Set it in your environment or .env file.")
        else:
            results["warnings"].append(f"{name}: {message}")

    if not settings.model:
        results["errors"].append("No model specified")

    results["is_valid"] = len(results["errors"]) == 0
    return results


def validate_settings(settings) -> List[str]:
    """Raise ConfigValidationError on fatal problems, return warnings otherwise."""
    results = run_validation(settings)
    if not results["is_valid"]:
        raise ConfigValidationError("; ".join(results["errors"]))
    for warning in results["warnings"]:
        logger.info("Config warning: %s", warning)
    return results["warnings"]
