"""Session persistence."""

from .adapter import DEFAULT_SESSION_TTL, SessionStore
from .backends import (
    InMemorySessionBackend,
    JsonFileSessionBackend,
    SessionBackend,
    SessionRow,
)

__all__ = [
    "DEFAULT_SESSION_TTL",
    "SessionStore",
    "InMemorySessionBackend",
    "JsonFileSessionBackend",
    "SessionBackend",
    "SessionRow",
]
