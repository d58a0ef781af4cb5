"""Turn events -- the tagged union the orchestrator yields to its caller.

Provider stream events are translated into a small set of dataclasses so the
shell (or a test) can consume a turn as a plain iterator:

    TextDelta       incremental assistant text, in arrival order
    ToolInvocation  a function call the model requested
    ToolResult      the output paired with one invocation
    FollowUpText    assistant text from the post-tool follow-up, in one shot
    StreamError     a provider-level error event
    StreamDone      the streamed response finished
    TurnComplete    terminal event carrying the chaining response id

Provider objects are read through ``_field`` so both SDK models and plain
dicts (as replayed in tests) are accepted.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Union


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolInvocation:
    call_id: str
    name: str
    arguments: str = "{}"


@dataclass(frozen=True)
class ToolResult:
    call_id: str
    output: str

    def to_input_item(self) -> dict:
        return {"type": "function_call_output", "call_id": self.call_id, "output": self.output}


@dataclass(frozen=True)
class FollowUpText:
    text: str


@dataclass(frozen=True)
class StreamError:
    message: str
    code: Optional[str] = None


@dataclass(frozen=True)
class StreamDone:
    response_id: Optional[str]


@dataclass(frozen=True)
class TurnComplete:
    response_id: Optional[str]
    invocations: List[ToolInvocation] = field(default_factory=list)
    results: List[ToolResult] = field(default_factory=list)


TurnEvent = Union[TextDelta, ToolInvocation, ToolResult, FollowUpText, StreamError, StreamDone, TurnComplete]


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _error_event(event: Any) -> StreamError:
    message = _field(event, "message")
    code = _field(event, "code")
    nested = _field(event, "error")
    if not message and nested is not None:
        message = _field(nested, "message")
        code = code or _field(nested, "code")
    return StreamError(message=message or "Unknown streaming error", code=code)


def _failed_event(event: Any) -> StreamError:
    error = _field(_field(event, "response"), "error")
    return StreamError(
        message=_field(error, "message") or "Response failed",
        code=_field(error, "code"),
    )


def _invocation_from_item(item: Any) -> Optional[ToolInvocation]:
    if _field(item, "type") != "function_call":
        return None
    return ToolInvocation(
        call_id=_field(item, "call_id") or _field(item, "id") or "",
        name=_field(item, "name") or "",
        arguments=_field(item, "arguments") or "{}",
    )


def translate_stream(events: Iterable[Any]) -> Iterator[Union[TextDelta, ToolInvocation, StreamError]]:
    """Map raw provider stream events onto turn events.

    Events the orchestrator does not care about (reasoning, annotations,
    lifecycle markers) are dropped.
    """
    for event in events:
        etype = _field(event, "type", "")
        if etype == "response.output_text.delta":
            delta = _field(event, "delta") or ""
            if delta:
                yield TextDelta(delta)
        elif etype == "response.output_item.done":
            invocation = _invocation_from_item(_field(event, "item"))
            if invocation is not None:
                yield invocation
        elif etype == "error":
            yield _error_event(event)
        elif etype == "response.failed":
            yield _failed_event(event)


def function_calls_from_response(response: Any) -> List[ToolInvocation]:
    """Collect the function-call items of a finalized response, in output order."""
    invocations = []
    for item in _field(response, "output") or []:
        invocation = _invocation_from_item(item)
        if invocation is not None:
            invocations.append(invocation)
    return invocations


def response_id(response: Any) -> Optional[str]:
    return _field(response, "id")


def response_text(response: Any) -> str:
    """Assistant text of a finalized response.

    Prefers the SDK's ``output_text`` convenience property, otherwise joins
    the ``output_text`` parts of every message item.
    """
    text = _field(response, "output_text")
    if isinstance(text, str):
        return text
    parts = []
    for item in _field(response, "output") or []:
        if _field(item, "type") != "message":
            continue
        for part in _field(item, "content") or []:
            if _field(part, "type") == "output_text":
                parts.append(_field(part, "text") or "")
    return "".join(parts)
