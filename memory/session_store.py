"""Interview session stores."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol, TypeVar

from memory.session import Session, SessionPreferences
from orchestrator.exceptions import SessionNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")
Mutator = Callable[[Session], T]


class SessionStore(Protocol):
    async def create(self, session: Session) -> Session:
        ...

    async def get(self, session_id: str) -> Session:
        ...

    async def update(self, session_id: str, mutator: Mutator[T]) -> tuple[Session, T]:
        ...

    async def delete(self, session_id: str) -> None:
        ...


class MemorySessionStore:
    """
    Volatile session store.

    Turns on the same session are serialized by a per-key lock. ``update``
    hands the mutator a deep copy and only commits it if the mutator
    returns, so a failing turn leaves the stored session untouched.
    Swap for a durable keyed store by implementing ``SessionStore``.
    """

    def __init__(self, ttl_seconds: int = 0) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, Session] = {}
        self._touched: dict[str, float] = {}
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._ttl_seconds = ttl_seconds

    async def _key_lock(self, session_id: str, must_exist: bool = False) -> asyncio.Lock:
        async with self._lock:
            if must_exist:
                if self._expired(session_id, time.time()):
                    self._drop(session_id)
                if session_id not in self._sessions:
                    raise SessionNotFound(session_id)
            lock = self._key_locks.get(session_id)
            if lock is None:
                lock = asyncio.Lock()
                self._key_locks[session_id] = lock
            return lock

    def _expired(self, session_id: str, now: float) -> bool:
        if not self._ttl_seconds:
            return False
        touched = self._touched.get(session_id)
        return touched is not None and (now - touched) > self._ttl_seconds

    async def create(self, session: Session) -> Session:
        lock = await self._key_lock(session.session_id)
        async with lock:
            async with self._lock:
                previous = self._sessions.get(session.session_id)
                if previous is not None and not previous.is_complete:
                    logger.info(
                        "Restarting session %s (discarding %d answers)",
                        session.session_id,
                        len(previous.history),
                    )
                self._sessions[session.session_id] = session.model_copy(deep=True)
                self._touched[session.session_id] = time.time()
            return session.model_copy(deep=True)

    async def get(self, session_id: str) -> Session:
        async with self._lock:
            if self._expired(session_id, time.time()):
                self._drop(session_id)
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            return session.model_copy(deep=True)

    async def update(self, session_id: str, mutator: Mutator[T]) -> tuple[Session, T]:
        lock = await self._key_lock(session_id, must_exist=True)
        async with lock:
            working = await self.get(session_id)
            result = mutator(working)
            async with self._lock:
                self._sessions[session_id] = working
                self._touched[session_id] = time.time()
            return working.model_copy(deep=True), result

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._drop(session_id)

    async def evict_expired(self, now: float | None = None) -> int:
        """Remove idle sessions. Returns how many were evicted."""
        now = time.time() if now is None else now
        async with self._lock:
            expired = [sid for sid in self._sessions if self._expired(sid, now)]
            for session_id in expired:
                self._drop(session_id)
            # Locks left behind by sessions deleted mid-turn
            orphaned = [
                sid for sid, lock in self._key_locks.items()
                if sid not in self._sessions and not lock.locked()
            ]
            for session_id in orphaned:
                self._key_locks.pop(session_id, None)
        if expired:
            logger.info("Evicted %d idle sessions", len(expired))
        return len(expired)

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._touched.pop(session_id, None)
        lock = self._key_locks.get(session_id)
        if lock is not None and not lock.locked():
            self._key_locks.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


def new_session(session_id: str, start_node_id: str, preferences: SessionPreferences) -> Session:
    return Session(
        session_id=session_id,
        current_node_id=start_node_id,
        preferences=preferences,
    )
