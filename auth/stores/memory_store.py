"""In-memory auth stores."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from auth.security import hash_password

DEMO_USERS: list[dict[str, str]] = [
    {"email": "abhamisaqi@email.com", "password": "demo1234", "phone": "555-111-2222"},
    {"email": "bernicehoang@email.com", "password": "guest1234", "phone": "555-333-4444"},
]


class MemoryUserStore:
    def __init__(self, seed_demo_users: bool = False) -> None:
        self._lock = asyncio.Lock()
        self._users_by_email: dict[str, dict[str, Any]] = {}
        self._users_by_id: dict[int, dict[str, Any]] = {}
        self._next_id = 1
        if seed_demo_users:
            for demo in DEMO_USERS:
                self._insert(
                    {
                        "email": demo["email"],
                        "phone": demo["phone"],
                        "hashed_password": hash_password(demo["password"]),
                    }
                )

    def _insert(self, data: dict) -> dict:
        user_id = self._next_id
        self._next_id += 1
        payload = dict(data)
        payload["id"] = user_id
        payload["email"] = payload["email"].lower()
        payload["created_at"] = payload.get("created_at", int(time.time()))
        self._users_by_email[payload["email"]] = payload
        self._users_by_id[user_id] = payload
        return dict(payload)

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            return dict(user) if user else None

    async def get_by_id(self, user_id: int) -> dict | None:
        async with self._lock:
            user = self._users_by_id.get(user_id)
            return dict(user) if user else None


class MemoryRateLimiter:
    """Sliding-window hit counter per key."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._hits: dict[str, list[float]] = {}

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.time()
        async with self._lock:
            stale = [k for k, stamps in self._hits.items() if not stamps or (now - stamps[-1]) >= window_seconds]
            for stale_key in stale:
                del self._hits[stale_key]
            hits = [timestamp for timestamp in self._hits.get(key, []) if (now - timestamp) < window_seconds]
            if len(hits) >= limit:
                self._hits[key] = hits
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._hits.pop(key, None)
