"""Tool call execution for one completed model turn.

Routes each function call the model requested to its handler in
``model_tools`` and pairs every output with the originating call id, so the
follow-up request carries exactly one result per invocation.
"""

from dataclasses import dataclass
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from agent.stream_events import ToolInvocation, ToolResult

# NOTE: handle_function_call is imported lazily inside execute_tool_calls()
# so tool modules (and their HTTP clients) load only when a tool actually runs.

MAX_TOOL_RESULT_CHARS = 100_000

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolExecConfig:
    """Immutable configuration for tool execution.

    settings:
        The process-wide Settings, forwarded to handlers (API keys, timeouts).
    tool_progress_callback:
        Optional ``callback(tool_name, args_preview)`` fired before each call.
    log_prefix_chars:
        How much of the argument payload to include in debug logs.
    """

    settings: Any = None
    tool_progress_callback: Optional[Callable[[str, str], None]] = None
    log_prefix_chars: int = 100


def parse_arguments(raw: Any) -> Dict[str, Any]:
    """Decode a JSON-encoded argument payload into a dict.

    Anything that is not a JSON object yields an empty dict; handlers decide
    what a missing argument means.
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in tool arguments: %s", e)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _truncate(output: str) -> str:
    if len(output) <= MAX_TOOL_RESULT_CHARS:
        return output
    return output[:MAX_TOOL_RESULT_CHARS] + f"\n[truncated {len(output) - MAX_TOOL_RESULT_CHARS} chars]"


def execute_tool_calls(
    config: ToolExecConfig,
    invocations: List[ToolInvocation],
) -> List[ToolResult]:
    """Execute every invocation and return one ToolResult per call id.

    Parameters
    ----------
    config:
        Frozen configuration (settings, progress callback, log preview size).
    invocations:
        Function calls from the finalized model turn, in output order.

    Returns
    -------
    list[ToolResult]
        Same length and order as *invocations*.
    """
    from model_tools import handle_function_call

    results: List[ToolResult] = []
    for i, invocation in enumerate(invocations, 1):
        args = parse_arguments(invocation.arguments)

        args_str = json.dumps(args, ensure_ascii=False)
        preview = (
            args_str[: config.log_prefix_chars] + "..."
            if len(args_str) > config.log_prefix_chars
            else args_str
        )
        logger.debug("Tool %d: %s(%s) call_id=%s", i, invocation.name, preview, invocation.call_id)

        if config.tool_progress_callback:
            try:
                config.tool_progress_callback(invocation.name, preview)
            except Exception as cb_err:
                logger.debug("Tool progress callback error: %s", cb_err)

        start = time.time()
        output = handle_function_call(invocation.name, args, settings=config.settings)
        logger.debug("Tool %s finished in %.2fs", invocation.name, time.time() - start)

        results.append(ToolResult(call_id=invocation.call_id, output=_truncate(output)))
    return results
