"""
Registry of live practice sessions for multi-request surfaces (HTTP).

Sessions are single-writer; the registry hands out one lock per session so
concurrent requests against the same session are serialized, while different
sessions proceed in parallel.

Clients abandon a session simply by no longer calling it, so entries idle for
longer than the TTL are evicted whenever a new session is opened.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ulid import ULID

from flashdeck.domain.constants import SESSION_IDLE_TTL_SECONDS
from flashdeck.domain.errors import SessionNotFoundError
from flashdeck.domain.practice.session import Clock, PracticeSession, utc_now

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a sortable session id using ULID."""
    return f"ps_{ULID()}"


@dataclass
class _Entry:
    session: PracticeSession
    touched: datetime
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionRegistry:
    def __init__(self, idle_ttl: float = SESSION_IDLE_TTL_SECONDS, clock: Clock | None = None):
        if idle_ttl <= 0:
            raise ValueError(f"Session idle TTL must be positive, got: {idle_ttl}")
        self._entries: dict[str, _Entry] = {}
        self._guard = threading.Lock()
        self._ttl = timedelta(seconds=idle_ttl)
        self._clock = clock or utc_now

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def open(self, session: PracticeSession) -> str:
        session_id = generate_session_id()
        now = self._clock()
        with self._guard:
            expired = [sid for sid, e in self._entries.items() if now - e.touched > self._ttl]
            for sid in expired:
                del self._entries[sid]
            self._entries[session_id] = _Entry(session, touched=now)
        if expired:
            logger.info(f"Evicted {len(expired)} idle practice sessions")
        return session_id

    def _entry(self, session_id: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(f"Practice session not found: {session_id}")
        return entry

    def get(self, session_id: str) -> PracticeSession:
        return self._entry(session_id).session

    @contextmanager
    def locked(self, session_id: str) -> Iterator[PracticeSession]:
        """
        Hold the session's lock for the duration of the block.

        Raises SessionNotFoundError if the session was discarded or evicted
        while this caller waited for the lock.
        """
        entry = self._entry(session_id)
        with entry.lock:
            with self._guard:
                live = self._entries.get(session_id) is entry
            if not live:
                raise SessionNotFoundError(f"Practice session not found: {session_id}")
            entry.touched = self._clock()
            yield entry.session

    def discard(self, session_id: str) -> PracticeSession:
        with self._guard:
            entry = self._entries.pop(session_id, None)
        if entry is None:
            raise SessionNotFoundError(f"Practice session not found: {session_id}")
        return entry.session
