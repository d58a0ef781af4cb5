"""Tool registry -- schemas and handlers for every model-callable function.

Tool modules register themselves at import time:

    registry.register(
        name="enrich_email",
        toolset="enrichment",
        schema={...},
        handler=_handle_enrich_email,
    )

Handlers take the parsed argument dict plus keyword context and return a
JSON string. They should never raise; ``model_tools.handle_function_call``
still guards them.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ToolEntry:
    name: str
    toolset: str
    schema: Dict[str, Any]
    handler: Callable[..., str]
    description: str = ""

    def to_definition(self) -> Dict[str, Any]:
        """Render as a Responses API function tool declaration."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.schema.get("description", self.description),
            "parameters": self.schema.get("parameters", {"type": "object", "properties": {}}),
        }


class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, ToolEntry] = {}

    def register(
        self,
        name: str,
        toolset: str,
        schema: Dict[str, Any],
        handler: Callable[..., str],
        description: str = "",
    ) -> None:
        if name in self._tools:
            logger.debug("Tool %s re-registered, replacing previous entry", name)
        self._tools[name] = ToolEntry(
            name=name,
            toolset=toolset,
            schema=schema,
            handler=handler,
            description=description,
        )

    def get_definitions(self, names: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        selected = self._tools.values() if names is None else [
            self._tools[n] for n in names if n in self._tools
        ]
        return [entry.to_definition() for entry in selected]

    def dispatch(self, name: str, args: Dict[str, Any], **kwargs) -> str:
        entry = self._tools.get(name)
        if entry is None:
            return json.dumps({"status": 404, "error": f"Unknown tool: {name}"})
        return entry.handler(args, **kwargs)


registry = ToolRegistry()
