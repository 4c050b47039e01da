"""Centralized settings management for the assistant.

Settings Schema (config.json):
    {
        "api_key": str,                  # Google API key for Gemini models
        "model": str,                    # Model ID (e.g., "gemini-flash-latest")
        "temperature": float,            # Sampling temperature
        "session_ttl_minutes": float,    # Idle time before a chat is discarded
        "max_tool_rounds": int,          # Tool-call rounds allowed per turn
        "model_timeout": float,          # Seconds allowed for one model turn
        "fallback_answer": str,          # Answer returned when a turn fails
    }

Environment variables override the file: KONTRAK_MODEL, KONTRAK_TEMPERATURE,
KONTRAK_SESSION_TTL_MINUTES, KONTRAK_MAX_TOOL_ROUNDS, KONTRAK_MODEL_TIMEOUT.
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .config_paths import ConfigPaths

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-flash-latest"

DEFAULT_FALLBACK_ANSWER = "I'm sorry, I couldn't process that request at the moment."

# Environment variable -> (settings field, type)
ENV_OVERRIDES = {
    "KONTRAK_MODEL": ("model", str),
    "KONTRAK_TEMPERATURE": ("temperature", float),
    "KONTRAK_SESSION_TTL_MINUTES": ("session_ttl_minutes", float),
    "KONTRAK_MAX_TOOL_ROUNDS": ("max_tool_rounds", int),
    "KONTRAK_MODEL_TIMEOUT": ("model_timeout", float),
}


@dataclass
class AssistantSettings:
    """Runtime configuration for the session engine and model."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    session_ttl_minutes: float = 10.0
    max_tool_rounds: int = 5
    model_timeout: float = 60.0
    fallback_answer: str = DEFAULT_FALLBACK_ANSWER

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(minutes=self.session_ttl_minutes)

    def resolve_api_key(self) -> Optional[str]:
        """Return the configured key, falling back to the environment."""
        return (
            self.api_key
            or os.getenv("GOOGLE_API_KEY")
            or os.getenv("GEMINI_API_KEY")
        )


def load_config_data() -> Dict[str, Any]:
    """Loads configuration data from config.json."""
    config_file = ConfigPaths.get_config_file()
    if not config_file.exists():
        return {}
    try:
        content = config_file.read_text(encoding="utf-8")
        if not content.strip():
            return {}
        data = json.loads(content)
    except (json.JSONDecodeError, IOError) as e:
        LOGGER.warning(
            f"Failed to load config file: {e}. Using empty configuration.",
            exc_info=True,
        )
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Config file does not hold an object. Using empty configuration.")
        return {}
    return data


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, (key, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[key] = cast(raw)
        except ValueError:
            LOGGER.warning(f"Ignoring invalid value for {env_name}: {raw!r}")
    return overrides


def load_settings(**overrides: Any) -> AssistantSettings:
    """Build settings from defaults, config.json, environment, then explicit overrides.

    Unknown keys in config.json are ignored.
    """
    load_dotenv()

    known = {f.name for f in fields(AssistantSettings)}
    values: Dict[str, Any] = {}
    for key, value in load_config_data().items():
        if key in known and value is not None:
            values[key] = value
    values.update(_env_overrides())
    values.update({k: v for k, v in overrides.items() if v is not None})

    return AssistantSettings(**values)
