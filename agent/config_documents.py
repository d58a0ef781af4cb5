"""Agent and onboarding configuration documents.

Two JSON documents describe what the agent collects and how it behaves:

    config/agent.json       {"personality": str | [str], "context": [str]}
    config/onboarding.json  {"sections": [{"section": str, "datapoints": [
                                {"name", "format", "instructions", "options"?}]}]}

The editing surface (``api_endpoint/config_server.py``) replaces them
wholesale; the agent only reads them when it builds a system prompt.
Parsing is lenient -- malformed entries are skipped rather than rejected,
since the documents are hand edited.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

AGENT_DOCUMENT = "agent"
ONBOARDING_DOCUMENT = "onboarding"
DOCUMENT_NAMES = (AGENT_DOCUMENT, ONBOARDING_DOCUMENT)


class ConfigDocumentError(Exception):
    """Raised when a configuration document cannot be read or written."""
    pass


@dataclass(frozen=True)
class AgentConfig:
    personality: Union[str, List[str]] = field(default_factory=list)
    context: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> "AgentConfig":
        if not isinstance(raw, dict):
            return cls()
        personality = raw.get("personality")
        if isinstance(personality, list):
            personality = [str(p) for p in personality if p is not None]
        elif personality is None:
            personality = []
        else:
            personality = str(personality)
        context = raw.get("context")
        if not isinstance(context, list):
            context = []
        return cls(personality=personality, context=[str(c) for c in context if c is not None])


@dataclass(frozen=True)
class Datapoint:
    name: str
    format: str = ""
    instructions: str = ""
    options: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["Datapoint"]:
        if not isinstance(raw, dict) or not raw.get("name"):
            return None
        options = raw.get("options")
        return cls(
            name=str(raw["name"]),
            format=str(raw.get("format") or ""),
            instructions=str(raw.get("instructions") or ""),
            options=[str(o) for o in options] if isinstance(options, list) else [],
        )


@dataclass(frozen=True)
class Section:
    section: str
    datapoints: List[Datapoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["Section"]:
        if not isinstance(raw, dict):
            return None
        datapoints = []
        for item in raw.get("datapoints") or []:
            dp = Datapoint.from_dict(item)
            if dp is not None:
                datapoints.append(dp)
        return cls(section=str(raw.get("section") or ""), datapoints=datapoints)


@dataclass(frozen=True)
class OnboardingSchema:
    sections: List[Section] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> "OnboardingSchema":
        if not isinstance(raw, dict):
            return cls()
        sections = []
        for item in raw.get("sections") or []:
            sec = Section.from_dict(item)
            if sec is not None:
                sections.append(sec)
        return cls(sections=sections)


class ConfigDocumentStore:
    """File-backed store for the configuration documents.

    Args:
        config_dir: Directory holding ``agent.json`` and ``onboarding.json``.
    """

    def __init__(self, config_dir: Path):
        self._config_dir = Path(config_dir)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def path_for(self, name: str) -> Path:
        if name not in DOCUMENT_NAMES:
            raise KeyError(name)
        return self._config_dir / f"{name}.json"

    def read(self, name: str) -> Dict[str, Any]:
        """Return the raw document. Raises ConfigDocumentError on I/O or JSON errors."""
        path = self.path_for(name)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigDocumentError(f"{path}: {e}") from e

    def write(self, name: str, document: Dict[str, Any]) -> None:
        """Replace a document wholesale."""
        if not isinstance(document, dict):
            raise ConfigDocumentError("Document must be a JSON object")
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise ConfigDocumentError(f"{path}: {e}") from e

    def _read_or_empty(self, name: str) -> Dict[str, Any]:
        try:
            return self.read(name)
        except ConfigDocumentError as e:
            logger.warning("Using empty %s config: %s", name, e)
            return {}

    def load_agent_config(self) -> AgentConfig:
        return AgentConfig.from_dict(self._read_or_empty(AGENT_DOCUMENT))

    def load_onboarding_schema(self) -> OnboardingSchema:
        return OnboardingSchema.from_dict(self._read_or_empty(ONBOARDING_DOCUMENT))
