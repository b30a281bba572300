"""Auth dependency helpers."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from auth.config import AuthConfig
from auth.exceptions import RateLimited
from auth.interfaces.rate_limiter import RateLimiter
from auth.security import bearer_token
from auth.services.auth_service import AuthService
from auth.stores.memory_store import MemoryRateLimiter, MemoryUserStore


_memory_user_store: MemoryUserStore | None = None
_memory_rate_limiter = MemoryRateLimiter()


def _get_user_store() -> MemoryUserStore:
    # Created on first use; seeding hashes the demo passwords
    global _memory_user_store
    if _memory_user_store is None:
        _memory_user_store = MemoryUserStore(seed_demo_users=AuthConfig.DEMO_USERS_ENABLED)
    return _memory_user_store


def get_auth_service() -> AuthService:
    return AuthService(user_store=_get_user_store())


def get_rate_limiter() -> RateLimiter:
    return _memory_rate_limiter


def login_rate_limit_key(request: Request) -> str:
    client_ip = request.client.host if request.client else "unknown"
    return f"login:{client_ip}"


async def enforce_login_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    allowed = await limiter.allow(
        login_rate_limit_key(request), AuthConfig.LOGIN_RATE_LIMIT_PER_MINUTE, 60
    )
    if not allowed:
        raise RateLimited()


async def get_current_user(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    return await auth_service.get_user(bearer_token(authorization))
