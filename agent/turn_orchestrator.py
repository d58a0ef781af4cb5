"""Turn orchestration against the OpenAI Responses API.

One call to ``TurnOrchestrator.stream_turn()`` drives a full turn:

    Composing  -> one user input item (plus pre-encoded attachment parts)
    Streaming  -> responses.stream(); text deltas are yielded as they arrive
    ToolsPending / ToolsResolved (only when the model requested functions)
               -> every function call is executed and answered with exactly
                  one function_call_output in a non-streamed follow-up
    Complete   -> TurnComplete carries the id the next turn chains from

Context is never resent. With a conversation handle the provider keeps the
history server-side; without one (degraded mode) each request points at the
previous response id and carries the instructions itself.

Error policy:
    - a provider error event aborts the turn with TurnError
    - a rejected hosted tool (web search) triggers one retry without it and
      with the reasoning effort lowered
    - failures while executing tools or submitting their results are logged
      and the turn completes with the streamed response id
"""

import base64
import json
import logging
import mimetypes
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

import openai

from agent.stream_events import (
    FollowUpText,
    StreamDone,
    StreamError,
    ToolInvocation,
    ToolResult,
    TurnComplete,
    TurnEvent,
    function_calls_from_response,
    response_id,
    response_text,
    translate_stream,
)
from agent.tool_executor import ToolExecConfig, execute_tool_calls
from model_tools import get_tool_definitions, is_hosted_tool, without_hosted_tools
from onboard_constants import FALLBACK_REASONING_EFFORT
from tools.enrichment_tool import enrich_email

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

# Follow-ups may themselves request tools; each round is answered before the
# turn ends so no function call is ever left without an output.
MAX_TOOL_ROUNDS = 4


class TurnError(RuntimeError):
    """A model turn failed and produced no usable response."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


def find_email(text: str) -> Optional[str]:
    match = EMAIL_RE.search(text or "")
    return match.group(0) if match else None


def file_input_part(path: Path) -> Dict[str, Any]:
    """Encode a local file as a Responses API input content part."""
    path = Path(path)
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    data_url = f"data:{mime};base64,{data}"
    if mime.startswith("image/"):
        return {"type": "input_image", "image_url": data_url}
    return {"type": "input_file", "filename": path.name, "file_data": data_url}


def compose_input(text: str, attachments: Sequence[Dict[str, Any]] = ()) -> List[Dict[str, Any]]:
    """Build the single user input item for a turn.

    Plain text uses the string shorthand for ``content``, which the Responses
    API treats as one ``input_text`` part. With attachments (content parts
    from file_input_part) the text becomes an explicit ``input_text`` part
    followed by the files.
    """
    if not attachments:
        return [{"role": "user", "content": text}]
    content: List[Dict[str, Any]] = [{"type": "input_text", "text": text}]
    content.extend(attachments)
    return [{"role": "user", "content": content}]


def _is_unsupported_tool_error(exc: Exception) -> bool:
    message = str(getattr(exc, "message", "") or exc).lower()
    if "web_search" in message:
        return True
    return "tool" in message and ("not supported" in message or "unsupported" in message)


class TurnOrchestrator:
    """Drives model turns for one conversation.

    Args:
        client: An ``openai.OpenAI`` client (or anything with the same
            ``responses`` surface).
        settings: Process-wide Settings (model, reasoning effort, web search,
            auto enrichment, enrichment credentials).
        instructions: System prompt, sent only while there is no
            conversation handle.
        conversation_id: Server-side conversation handle, if one was resolved.
        tool_progress_callback: Optional ``callback(tool_name, preview)``.
    """

    def __init__(
        self,
        client: Any,
        settings: Any,
        *,
        instructions: Optional[str] = None,
        conversation_id: Optional[str] = None,
        tool_progress_callback=None,
    ):
        self._client = client
        self._settings = settings
        self._instructions = instructions
        self._conversation_id = conversation_id
        self._previous_response_id: Optional[str] = None
        self._model = settings.model
        self._reasoning_effort = settings.reasoning_effort
        self._tools = get_tool_definitions(web_search=settings.web_search)
        self._tool_config = ToolExecConfig(
            settings=settings,
            tool_progress_callback=tool_progress_callback,
        )

    # -- Properties -----------------------------------------------------------

    @property
    def conversation_id(self) -> Optional[str]:
        return self._conversation_id

    @property
    def previous_response_id(self) -> Optional[str]:
        return self._previous_response_id

    @property
    def tools(self) -> List[Dict[str, Any]]:
        return list(self._tools)

    @property
    def reasoning_effort(self) -> str:
        return self._reasoning_effort

    def reset(self, conversation_id: Optional[str], instructions: Optional[str] = None) -> None:
        """Point the orchestrator at a new conversation and drop chaining state."""
        self._conversation_id = conversation_id
        self._previous_response_id = None
        if instructions is not None:
            self._instructions = instructions

    # -- Request assembly -----------------------------------------------------

    def _base_request(self, input_items: List[Dict[str, Any]], previous_id: Optional[str]) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self._model,
            "input": input_items,
            "store": True,
            "reasoning": {"effort": self._reasoning_effort},
            "tools": list(self._tools),
            "tool_choice": "auto",
        }
        if self._conversation_id:
            request["conversation"] = self._conversation_id
        else:
            if self._instructions:
                request["instructions"] = self._instructions
            if previous_id:
                request["previous_response_id"] = previous_id
        return request

    def _degraded(self, request: Dict[str, Any], exc: Exception) -> Optional[Dict[str, Any]]:
        """Return a reduced request to retry with, or None if *exc* is not a hosted-tool rejection."""
        if not any(is_hosted_tool(t) for t in request.get("tools", [])):
            return None
        if not _is_unsupported_tool_error(exc):
            return None
        logger.warning(
            "Model %s rejected a hosted tool (%s); retrying without it at effort=%s",
            self._model, exc, FALLBACK_REASONING_EFFORT,
        )
        # Stick with the reduced setup for the rest of the session.
        self._tools = without_hosted_tools(self._tools)
        self._reasoning_effort = FALLBACK_REASONING_EFFORT
        degraded = dict(request)
        degraded["tools"] = list(self._tools)
        degraded["reasoning"] = {"effort": self._reasoning_effort}
        return degraded

    def _auto_enrich_item(self, text: str) -> Optional[Dict[str, Any]]:
        email = find_email(text)
        if not email:
            return None
        try:
            result = enrich_email(
                email,
                api_key=self._settings.mixrank_key,
                timeout=self._settings.enrichment_timeout,
            )
        except Exception as e:
            logger.warning("Automatic enrichment for %s failed: %s", email, e)
            return None
        return {
            "role": "developer",
            "content": (
                f"Enrichment lookup for {email} (use it to pre-fill answers, "
                f"do not read it out verbatim):\n{json.dumps(result.to_dict(), ensure_ascii=False, default=str)}"
            ),
        }

    # -- Provider calls -------------------------------------------------------

    def _run_stream(self, request: Dict[str, Any]) -> Iterator[TurnEvent]:
        """Yield translated events; returns the finalized response."""
        with self._client.responses.stream(**request) as stream:
            for event in translate_stream(stream):
                if isinstance(event, StreamError):
                    raise TurnError(event.message, event.code)
                yield event
            return stream.get_final_response()

    def _stream_with_fallback(self, request: Dict[str, Any]) -> Iterator[TurnEvent]:
        try:
            final = yield from self._run_stream(request)
        except openai.BadRequestError as e:
            degraded = self._degraded(request, e)
            if degraded is None:
                raise
            final = yield from self._run_stream(degraded)
        return final

    def _create_with_fallback(self, request: Dict[str, Any]) -> Any:
        try:
            return self._client.responses.create(**request)
        except openai.BadRequestError as e:
            degraded = self._degraded(request, e)
            if degraded is None:
                raise
            return self._client.responses.create(**degraded)

    def submit_tool_results(self, results: List[ToolResult], previous_id: Optional[str]) -> Any:
        """Send tool outputs back to the model as a non-streamed follow-up."""
        request = self._base_request([r.to_input_item() for r in results], previous_id)
        return self._create_with_fallback(request)

    # -- Turn -----------------------------------------------------------------

    def stream_turn(self, text: str, attachments: Sequence[Dict[str, Any]] = ()) -> Iterator[TurnEvent]:
        """Run one turn, yielding events in order and ending with TurnComplete.

        Raises:
            TurnError: the provider reported an error while streaming.
            openai.OpenAIError: the request itself failed (after any fallback).
        """
        input_items = compose_input(text, attachments)
        if self._settings.auto_enrich:
            enrichment = self._auto_enrich_item(text)
            if enrichment is not None:
                input_items.insert(0, enrichment)

        request = self._base_request(input_items, self._previous_response_id)
        final = yield from self._stream_with_fallback(request)

        turn_id = response_id(final) or self._previous_response_id
        yield StreamDone(turn_id)

        invocations = function_calls_from_response(final)
        if not invocations:
            self._previous_response_id = turn_id
            yield TurnComplete(turn_id)
            return

        all_invocations: List[ToolInvocation] = []
        all_results: List[ToolResult] = []
        try:
            for _ in range(MAX_TOOL_ROUNDS):
                results = execute_tool_calls(self._tool_config, invocations)
                all_invocations.extend(invocations)
                all_results.extend(results)
                for result in results:
                    yield result

                followup = self.submit_tool_results(results, turn_id)
                turn_id = response_id(followup) or turn_id
                followup_text = response_text(followup)
                if followup_text:
                    yield FollowUpText(followup_text)

                invocations = function_calls_from_response(followup)
                if not invocations:
                    break
            else:
                logger.warning("Stopped after %d tool rounds with calls still pending", MAX_TOOL_ROUNDS)
        except Exception as e:
            logger.warning("Tool resolution failed, continuing the conversation: %s", e)
            logger.debug("Tool resolution traceback", exc_info=True)

        self._previous_response_id = turn_id
        yield TurnComplete(turn_id, all_invocations, all_results)

    def run_turn(self, text: str, attachments: Sequence[Dict[str, Any]] = ()) -> TurnComplete:
        """Run a turn to completion, discarding intermediate events."""
        complete = None
        for event in self.stream_turn(text, attachments):
            if isinstance(event, TurnComplete):
                complete = event
        return complete
