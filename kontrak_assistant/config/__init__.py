"""Configuration utilities for the assistant."""

from .config_paths import ConfigPaths
from .settings import (
    DEFAULT_FALLBACK_ANSWER,
    DEFAULT_MODEL,
    AssistantSettings,
    load_config_data,
    load_settings,
)

__all__ = [
    "ConfigPaths",
    "DEFAULT_FALLBACK_ANSWER",
    "DEFAULT_MODEL",
    "AssistantSettings",
    "load_config_data",
    "load_settings",
]
