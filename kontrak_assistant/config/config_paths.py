"""Centralized configuration path management for the assistant.

This module provides a single source of truth for configuration and data
file paths, following the XDG Base Directory specification.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigPaths:
    """Centralized configuration path management.

    Configuration and data files are stored in ~/.config/kontrak-assistant/.
    """

    BASE_DIR = Path.home() / ".config" / "kontrak-assistant"

    @classmethod
    def get_base_dir(cls) -> Path:
        """Get base configuration directory, creating if needed.

        Returns:
            Path to ~/.config/kontrak-assistant/
        """
        cls.BASE_DIR.mkdir(parents=True, exist_ok=True)
        return cls.BASE_DIR

    @classmethod
    def get_config_file(cls) -> Path:
        """Get path to main configuration file.

        Returns:
            Path to config.json
        """
        cls.get_base_dir()  # Ensure directory exists
        return cls.BASE_DIR / "config.json"

    @classmethod
    def get_sessions_dir(cls) -> Path:
        """Get path to the directory holding stored chat sessions.

        Returns:
            Path to sessions/
        """
        sessions_dir = cls.BASE_DIR / "sessions"
        sessions_dir.mkdir(parents=True, exist_ok=True)
        return sessions_dir
