"""Shared constants for the onboarding agent.

Import-safe module with no dependencies -- can be imported from anywhere
without risk of circular imports.
"""

DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_REASONING_EFFORT = "low"
FALLBACK_REASONING_EFFORT = "minimal"

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
OPENAI_MODEL_ENV = "OPENAI_MODEL"
CONVERSATION_ID_ENV = "CONVERSATION_ID"
MIXRANK_KEY_ENV = "MIXRANK_KEY"
ONBOARD_HOME_ENV = "ONBOARD_HOME"

CONVERSATION_FILE_NAME = ".openai_conversation_id"

MIXRANK_BASE_URL = "https://api.mixrank.com/v2/json"
MIXRANK_TIMEOUT_SECONDS = 12.0
