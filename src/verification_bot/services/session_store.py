"""In-memory store for active verification sessions."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from verification_bot.domain.sessions import Session


class SessionStore(Protocol):
    """Key-value store holding one active session per user id."""

    def get(self, user_id: str) -> Session | None:
        """Return the active session for a user, if present."""

    def put(self, user_id: str, session: Session) -> None:
        """Create or replace the session for a user."""

    def delete(self, user_id: str) -> None:
        """Remove the session for a user, if present."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _StoredSession:
    session: Session
    touched_at: datetime


class InMemorySessionStore(SessionStore):
    """Process-local session store with optional idle expiry.

    Sessions are lost on restart. With ``idle_timeout_seconds`` unset a
    session lives until it is deleted.
    """

    def __init__(
        self,
        idle_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._entries: dict[str, _StoredSession] = {}
        self._lock = threading.Lock()
        self._idle_timeout = (
            timedelta(seconds=idle_timeout_seconds)
            if idle_timeout_seconds is not None
            else None
        )
        self._clock = clock

    def get(self, user_id: str) -> Session | None:
        """Return the session unless it has been idle past the timeout."""
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[user_id]
                return None
            return entry.session

    def put(self, user_id: str, session: Session) -> None:
        """Store a session, refresh its idle timer and drop expired sessions.

        Sweeping here frees sessions of users who never write again.
        """
        with self._lock:
            expired = [
                key for key, entry in self._entries.items() if self._is_expired(entry)
            ]
            for key in expired:
                del self._entries[key]
            self._entries[user_id] = _StoredSession(
                session=session, touched_at=self._clock()
            )

    def delete(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: _StoredSession) -> bool:
        if self._idle_timeout is None:
            return False
        return self._clock() - entry.touched_at >= self._idle_timeout
