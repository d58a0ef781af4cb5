"""
Settings for the onboarding agent.

Sources, lowest to highest precedence:
    1. built-in defaults
    2. ~/.onboard/config.yaml (non-secret knobs: model, reasoning_effort, ...)
    3. environment variables (including those loaded from .env)

Secrets (OPENAI_API_KEY, MIXRANK_KEY) are only read from the environment.
``load_settings()`` is called once at startup and the resulting frozen
Settings is passed to every component.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from onboard_constants import (
    CONVERSATION_FILE_NAME,
    CONVERSATION_ID_ENV,
    DEFAULT_MODEL,
    DEFAULT_REASONING_EFFORT,
    MIXRANK_KEY_ENV,
    MIXRANK_TIMEOUT_SECONDS,
    ONBOARD_HOME_ENV,
    OPENAI_API_KEY_ENV,
    OPENAI_MODEL_ENV,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.resolve()

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    model: str = DEFAULT_MODEL
    reasoning_effort: str = DEFAULT_REASONING_EFFORT
    conversation_id: Optional[str] = None
    mixrank_key: str = ""
    enrichment_timeout: float = MIXRANK_TIMEOUT_SECONDS
    web_search: bool = False
    auto_enrich: bool = False
    config_dir: Path = PROJECT_ROOT / "config"
    conversation_file: Path = Path(CONVERSATION_FILE_NAME)


def get_onboard_home() -> Path:
    return Path(os.getenv(ONBOARD_HOME_ENV, Path.home() / ".onboard"))


def get_config_path() -> Path:
    return get_onboard_home() / "config.yaml"


def load_env() -> Optional[Path]:
    """Load .env from ~/.onboard/.env first, then the project root as dev fallback."""
    user_env = get_onboard_home() / ".env"
    project_env = PROJECT_ROOT / ".env"
    for env_path in (user_env, project_env):
        if not env_path.exists():
            continue
        try:
            load_dotenv(dotenv_path=env_path, encoding="utf-8")
        except UnicodeDecodeError:
            load_dotenv(dotenv_path=env_path, encoding="latin-1")
        logger.info("Loaded environment variables from %s", env_path)
        return env_path
    logger.info("No .env file found. Using system environment variables.")
    return None


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read config.yaml. A missing or malformed file yields an empty dict."""
    path = path or get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    return data


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _as_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number %r, using %s", value, default)
        return default


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """Build Settings from config.yaml and the environment.

    Args:
        env: Environment mapping (defaults to os.environ).
        config_path: Explicit config.yaml location (defaults to ~/.onboard/config.yaml).
    """
    env = os.environ if env is None else env
    file_cfg = load_config_file(config_path)

    def pick(env_key: Optional[str], cfg_key: str, default: Any) -> Any:
        if env_key and env.get(env_key):
            return env[env_key]
        value = file_cfg.get(cfg_key)
        return default if value is None or value == "" else value

    config_dir = Path(pick("ONBOARD_CONFIG_DIR", "config_dir", PROJECT_ROOT / "config")).expanduser()
    conversation_file = Path(
        pick("ONBOARD_CONVERSATION_FILE", "conversation_file", Path.cwd() / CONVERSATION_FILE_NAME)
    ).expanduser()

    return Settings(
        openai_api_key=(env.get(OPENAI_API_KEY_ENV) or "").strip(),
        model=str(pick(OPENAI_MODEL_ENV, "model", DEFAULT_MODEL)).strip(),
        reasoning_effort=str(pick("OPENAI_REASONING_EFFORT", "reasoning_effort", DEFAULT_REASONING_EFFORT)).strip(),
        conversation_id=(env.get(CONVERSATION_ID_ENV) or "").strip() or None,
        mixrank_key=(env.get(MIXRANK_KEY_ENV) or "").strip(),
        enrichment_timeout=_as_float(pick("MIXRANK_TIMEOUT", "enrichment_timeout", None), MIXRANK_TIMEOUT_SECONDS),
        web_search=_as_bool(pick("ONBOARD_WEB_SEARCH", "web_search", None), False),
        auto_enrich=_as_bool(pick("ONBOARD_AUTO_ENRICH", "auto_enrich", None), False),
        config_dir=config_dir,
        conversation_file=conversation_file,
    )
