"""Conversation handle persistence.

Owns the single conversation id a local run talks to, and the plain-text
file that lets it survive a restart. Every file operation is best-effort: a
read, write or delete failure is logged and treated as "no handle", never
raised.

Lifecycle:
    - resolve(override) returns the override verbatim when one is given
    - otherwise the persisted id, otherwise a newly created (and persisted) one
    - forget() drops the persisted id; the next resolve() creates a new one
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def create_conversation(client: Any, system_prompt: str) -> str:
    """Open a server-side conversation seeded with the system prompt."""
    conversation = client.conversations.create(
        items=[{"type": "message", "role": "system", "content": system_prompt}],
    )
    conversation_id = getattr(conversation, "id", None)
    if conversation_id is None and isinstance(conversation, dict):
        conversation_id = conversation.get("id")
    if not conversation_id:
        raise RuntimeError("Provider returned a conversation without an id")
    return conversation_id


class SessionStore:
    """Resolves and persists the active conversation handle.

    Args:
        path: File holding the persisted conversation id.
        create_fn: Zero-argument callable that asks the provider for a new
            conversation and returns its id.
    """

    def __init__(self, path: Path, create_fn: Callable[[], str]):
        self._path = Path(path)
        self._create_fn = create_fn
        self._current: Optional[str] = None

    # -- Properties -----------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def current(self) -> Optional[str]:
        """The handle returned by the last resolve(), if any."""
        return self._current

    # -- File access ----------------------------------------------------------

    def load(self) -> Optional[str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Could not read conversation file %s: %s", self._path, e)
            return None
        return raw.strip() or None

    def save(self, conversation_id: str) -> bool:
        try:
            self._path.write_text(conversation_id, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not persist conversation id to %s: %s", self._path, e)
            return False
        return True

    def forget(self) -> None:
        """Remove the persisted handle. Safe to call when none exists."""
        self._current = None
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Could not delete conversation file %s: %s", self._path, e)

    # -- Resolution -----------------------------------------------------------

    def resolve(self, override: Optional[str] = None) -> str:
        """Return the conversation handle to use for this run.

        An explicit *override* wins and is never persisted. Otherwise the
        persisted handle is reused, and only when there is none is a new
        conversation created and written to disk.
        """
        if override and override.strip():
            self._current = override.strip()
            return self._current

        existing = self.load() or self._current
        if existing:
            self._current = existing
            return existing

        conversation_id = self._create_fn()
        self.save(conversation_id)
        self._current = conversation_id
        logger.info("Created conversation %s", conversation_id)
        return conversation_id
