#!/usr/bin/env python3
"""
Tools Package

Implementations behind the functions the onboarding agent can call:

- enrichment_tool: MixRank person lookup for a work email
- mock_tools: mocked Google sign-in and Stripe checkout
- registry: the schema/handler registry model_tools.py builds on

The tools are registered in model_tools.py, which provides the unified
interface the turn orchestrator uses.
"""

from .enrichment_tool import (
    EnrichedFields,
    EnrichmentResult,
    check_enrichment_requirements,
    enrich_email,
    extract_enriched_fields,
)
from .mock_tools import mock_google_auth, mock_stripe_payment

__all__ = [
    "EnrichedFields",
    "EnrichmentResult",
    "check_enrichment_requirements",
    "enrich_email",
    "extract_enriched_fields",
    "mock_google_auth",
    "mock_stripe_payment",
]
