"""Session store adapter: transcript load/save/clear with idle expiry."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..errors import StoreError
from ..transcript.models import (
    Message,
    Session,
    messages_from_dicts,
    messages_to_dicts,
)
from .backends import SessionBackend, SessionRow

logger = logging.getLogger(__name__)

# Idle window after which a stored conversation is discarded
DEFAULT_SESSION_TTL = timedelta(minutes=10)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore:
    """Loads and saves per-user transcripts against a session backend.

    Backend failures and undecodable rows surface as ``StoreError``; a
    missing or expired session is reported as ``None``.
    """

    def __init__(
        self,
        backend: SessionBackend,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the store.

        Args:
            backend: Row-level persistence backend
            ttl: Idle time after which a session is stale
            clock: Returns the current time; defaults to UTC wall clock
        """
        self.backend = backend
        self.ttl = ttl
        self.clock = clock or utc_now

    def is_expired(self, last_updated_at: datetime, now: Optional[datetime] = None) -> bool:
        """Return True when the idle time has reached the TTL."""
        now = _as_utc(now or self.clock())
        return now - _as_utc(last_updated_at) >= self.ttl

    async def load(self, user_id: str) -> Optional[Session]:
        """Load the active session for a user.

        A stale row is deleted and reported as absent.

        Returns:
            The session, or None if the user has no active session

        Raises:
            StoreError: If the backend fails or the row cannot be decoded
        """
        try:
            row = await self.backend.fetch(user_id)
        except Exception as e:
            raise StoreError(
                f"Failed to fetch session for user {user_id}: {e}",
                user_id=user_id,
                operation="load",
            ) from e

        if row is None:
            logger.debug(f"No session found for user {user_id}")
            return None

        if self.is_expired(row.last_updated_at):
            logger.info(f"Session for user {user_id} is stale, discarding it")
            await self.clear(user_id)
            return None

        try:
            messages = messages_from_dicts(row.history)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(
                f"Stored session for user {user_id} is malformed: {e}",
                user_id=user_id,
                operation="load",
            ) from e

        logger.debug(f"Loaded {len(messages)} messages for user {user_id}")
        return Session(
            user_id=user_id,
            messages=messages,
            last_updated_at=_as_utc(row.last_updated_at),
        )

    async def save(self, user_id: str, messages: List[Message]) -> Session:
        """Replace the user's stored transcript and stamp it with the current time.

        Raises:
            StoreError: If the transcript cannot be encoded or the backend
                rejects the write
        """
        now = _as_utc(self.clock())
        try:
            row = SessionRow(
                user_id=user_id,
                history=messages_to_dicts(messages),
                last_updated_at=now,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise StoreError(
                f"Transcript for user {user_id} cannot be encoded: {e}",
                user_id=user_id,
                operation="save",
            ) from e

        try:
            await self.backend.upsert(row)
        except Exception as e:
            raise StoreError(
                f"Failed to save session for user {user_id}: {e}",
                user_id=user_id,
                operation="save",
            ) from e

        logger.debug(f"Saved {len(messages)} messages for user {user_id}")
        return Session(user_id=user_id, messages=list(messages), last_updated_at=now)

    async def clear(self, user_id: str) -> None:
        """Delete the user's stored session.

        Raises:
            StoreError: If the backend fails to delete the row
        """
        try:
            await self.backend.delete(user_id)
        except Exception as e:
            raise StoreError(
                f"Failed to delete session for user {user_id}: {e}",
                user_id=user_id,
                operation="clear",
            ) from e
