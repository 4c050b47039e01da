"""Session persistence backends.

A backend is a key-value store of session rows keyed by user id. It knows
nothing about expiry or transcript structure; the session store adapter
layers those on top.
"""

import asyncio
import copy
import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote


@dataclass
class SessionRow:
    """A stored session: the transcript blob and its last-activity time."""

    user_id: str
    history: List[Dict[str, Any]]
    last_updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "history": self.history,
            "last_updated_at": self.last_updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRow":
        return cls(
            user_id=data["user_id"],
            history=data.get("history") or [],
            last_updated_at=datetime.fromisoformat(data["last_updated_at"]),
        )


class SessionBackend(ABC):
    """Row-level access to stored sessions."""

    @abstractmethod
    async def fetch(self, user_id: str) -> Optional[SessionRow]:
        """Return the row for a user, or None if there is none."""

    @abstractmethod
    async def upsert(self, row: SessionRow) -> None:
        """Insert or replace the row keyed by ``row.user_id``."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Delete the row for a user; deleting a missing row is not an error."""


class InMemorySessionBackend(SessionBackend):
    """Dict-backed backend, used for tests and single-process deployments."""

    def __init__(self) -> None:
        self._rows: Dict[str, SessionRow] = {}

    async def fetch(self, user_id: str) -> Optional[SessionRow]:
        row = self._rows.get(user_id)
        return copy.deepcopy(row) if row is not None else None

    async def upsert(self, row: SessionRow) -> None:
        self._rows[row.user_id] = copy.deepcopy(row)

    async def delete(self, user_id: str) -> None:
        self._rows.pop(user_id, None)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._rows

    def __len__(self) -> int:
        return len(self._rows)


class JsonFileSessionBackend(SessionBackend):
    """Stores each user's row as a JSON file in a directory.

    File I/O runs in a worker thread so the event loop is never blocked.
    Writes go to a temporary file that is atomically moved into place.
    """

    def __init__(self, session_dir: Path):
        self.session_dir = Path(session_dir)
        self.session_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, user_id: str) -> Path:
        """Return the file path holding a user's row."""
        return self.session_dir / f"{quote(user_id, safe='')}.json"

    async def fetch(self, user_id: str) -> Optional[SessionRow]:
        return await asyncio.to_thread(self._fetch_sync, user_id)

    async def upsert(self, row: SessionRow) -> None:
        await asyncio.to_thread(self._upsert_sync, row)

    async def delete(self, user_id: str) -> None:
        await asyncio.to_thread(self._delete_sync, user_id)

    def _fetch_sync(self, user_id: str) -> Optional[SessionRow]:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return SessionRow.from_dict(data)

    def _upsert_sync(self, row: SessionRow) -> None:
        path = self.path_for(row.user_id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(row.to_dict()), encoding="utf-8")
        os.replace(tmp_path, path)

    def _delete_sync(self, user_id: str) -> None:
        self.path_for(user_id).unlink(missing_ok=True)
