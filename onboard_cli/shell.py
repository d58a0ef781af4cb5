"""
Interactive onboarding shell.

Reads one line at a time, handles the control commands, and renders each
turn as it streams:

    (empty) / exit   end the session
    /reset / reset   forget the conversation and start a new one
    /id              show the current conversation id
    /attach <path>   send a local file with the next message

Anything else is sent to the model. Turn failures are printed and the loop
continues; only the caller decides when the process ends.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import openai
from rich.console import Console

from agent.prompt_assembler import PromptAssembler
from agent.session_store import SessionStore
from agent.stream_events import FollowUpText, TextDelta
from agent.turn_orchestrator import TurnError, TurnOrchestrator, file_input_part

logger = logging.getLogger(__name__)

GOODBYE = "Catch you later, superstar! ✨"

EXIT_COMMANDS = {"exit"}
RESET_COMMANDS = {"/reset", "reset"}
ID_COMMAND = "/id"
ATTACH_COMMAND = "/attach"


def resolve_conversation(store: SessionStore, override: Optional[str] = None) -> Optional[str]:
    """Resolve a conversation handle, or None to run in degraded chaining mode.

    Covers provider errors and a reply that carries no conversation id.
    """
    try:
        return store.resolve(override)
    except (openai.OpenAIError, RuntimeError) as e:
        logger.warning("Could not create a conversation, chaining responses instead: %s", e)
        return None


def _default_reader() -> Callable[[str], str]:
    from prompt_toolkit import PromptSession

    session = PromptSession()
    return lambda message: session.prompt(message)


class InteractiveShell:
    """The read-eval-render loop around a TurnOrchestrator.

    Args:
        orchestrator: Drives model turns.
        session_store: Owns the persisted conversation handle.
        assembler: Builds the system prompt for new conversations.
        console: Rich console for output (a default one writes to stdout).
        read_line: ``read_line(prompt) -> str``; defaults to prompt_toolkit.
    """

    def __init__(
        self,
        orchestrator: TurnOrchestrator,
        session_store: SessionStore,
        assembler: PromptAssembler,
        *,
        console: Optional[Console] = None,
        read_line: Optional[Callable[[str], str]] = None,
    ):
        self.orchestrator = orchestrator
        self.session_store = session_store
        self.assembler = assembler
        self.console = console or Console(highlight=False)
        self._read_line = read_line
        self._pending_attachments: List[Dict[str, Any]] = []

    @property
    def pending_attachments(self) -> List[Dict[str, Any]]:
        """Encoded content parts queued for the next message."""
        return list(self._pending_attachments)

    # -- Output helpers -------------------------------------------------------

    def notice(self, text: str) -> None:
        self.console.print(text, style="dim", markup=False)

    def error(self, text: str) -> None:
        self.console.print(text, style="red", markup=False)

    # -- Commands -------------------------------------------------------------

    def reset(self) -> Optional[str]:
        """Forget the current conversation and start a fresh one."""
        self.session_store.forget()
        self.assembler.invalidate()
        instructions = self.assembler.build()
        conversation_id = resolve_conversation(self.session_store)
        self.orchestrator.reset(conversation_id, instructions=instructions)
        self._pending_attachments.clear()
        self.notice(f"Started a new conversation: {conversation_id or '(none, chaining responses)'}")
        return conversation_id

    def attach(self, raw_path: str) -> bool:
        """Read and encode *raw_path* immediately and queue it for the next message."""
        path = Path(raw_path.strip()).expanduser()
        if not raw_path.strip() or not path.is_file():
            self.error(f"Cannot attach {raw_path.strip() or '(no path)'}: file not found")
            return False
        try:
            part = file_input_part(path)
        except OSError as e:
            self.error(f"Cannot attach {path}: {e}")
            return False
        self._pending_attachments.append(part)
        self.notice(f"Attached {path.name} to your next message")
        return True

    def run_turn(self, text: str) -> Optional[str]:
        """Send one message and render the reply. Returns the chaining id, if any."""
        attachments, self._pending_attachments = self._pending_attachments, []
        self.console.print("Agent: ", style="green", end="")
        try:
            for event in self.orchestrator.stream_turn(text, attachments):
                if isinstance(event, TextDelta):
                    self.console.print(event.text, end="", markup=False, soft_wrap=True)
                elif isinstance(event, FollowUpText):
                    self.console.print()
                    self.console.print(event.text, end="", markup=False, soft_wrap=True)
            self.console.print()
        except (TurnError, openai.OpenAIError) as e:
            self.console.print()
            self.error(f"Error: {e}")
            return None
        return self.orchestrator.previous_response_id

    def handle_line(self, line: Optional[str]) -> bool:
        """Process one input line. Returns False when the session should end."""
        text = (line or "").strip()
        lower = text.lower()
        if not text or lower in EXIT_COMMANDS:
            self.console.print("Agent: ", style="green", end="")
            self.console.print(GOODBYE, markup=False)
            return False
        if lower in RESET_COMMANDS:
            self.reset()
            return True
        if lower == ID_COMMAND:
            self.notice(f"Conversation ID: {self.orchestrator.conversation_id}")
            return True
        if lower.startswith(ATTACH_COMMAND + " ") or lower == ATTACH_COMMAND:
            self.attach(text[len(ATTACH_COMMAND):])
            return True
        self.run_turn(text)
        return True

    # -- Loop -----------------------------------------------------------------

    def run(self, initial_message: Optional[str] = None) -> None:
        self.console.print("Playful CLI Agent", style="bold cyan")
        self.notice('Type "exit" to quit.')
        self.notice(f"Using conversation: {self.orchestrator.conversation_id or '(none, chaining responses)'}")

        if initial_message and initial_message.strip():
            self.console.print(f"You: {initial_message.strip()}", style="yellow", markup=False)
            self.run_turn(initial_message.strip())

        read_line = self._read_line or _default_reader()
        while True:
            try:
                line = read_line("You: ")
            except (EOFError, KeyboardInterrupt):
                line = ""
            if not self.handle_line(line):
                break
