"""System prompt assembly with caching.

Owns the prompt-building call and the single-invalidation caching contract.
The prompt is read from the configuration documents once per conversation:

Caching contract:
    - build() returns cached value on subsequent calls
    - invalidate() clears the cache (e.g. on /reset)
    - After invalidate(), the next build() re-reads the documents
"""

from typing import Optional

from agent.config_documents import ConfigDocumentStore
from agent.prompt_builder import build_system_prompt


class PromptAssembler:
    """Assembles the system prompt from the agent and onboarding documents.

    Args:
        store: Document store the configuration is read from.
    """

    def __init__(self, store: ConfigDocumentStore):
        self._store = store
        self._cached_prompt: Optional[str] = None

    def build(self) -> str:
        """Return the system prompt, rendering it on first use.

        CACHING CONTRACT: Returns cached value on subsequent calls.
        Call invalidate() before build() to pick up edited documents.
        """
        if self._cached_prompt is not None:
            return self._cached_prompt

        result = build_system_prompt(
            self._store.load_agent_config(),
            self._store.load_onboarding_schema(),
        )
        self._cached_prompt = result
        return result

    @property
    def cached(self) -> Optional[str]:
        """Return the cached prompt, or None if not yet built/invalidated."""
        return self._cached_prompt

    def invalidate(self) -> None:
        self._cached_prompt = None
