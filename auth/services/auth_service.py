"""Core auth service."""

from __future__ import annotations

import logging
from typing import Any

from auth.exceptions import InvalidCredentials, InvalidToken
from auth.interfaces.user_store import UserStore
from auth.security import create_access_token, decode_token, verify_password

logger = logging.getLogger(__name__)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {"id": user["id"], "email": user["email"], "phone": user.get("phone")}


class AuthService:
    def __init__(self, user_store: UserStore) -> None:
        self._users = user_store

    async def login(self, email: str, password: str) -> dict[str, Any]:
        user = await self._users.get_by_email(email)
        hashed = user.get("hashed_password") if user else None
        if not hashed or not verify_password(password, hashed):
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()

        token, expires_at = create_access_token(user["id"], user["email"])
        return {"token": token, "expires_at": expires_at, "user": public_user(user)}

    def verify(self, token: str) -> dict[str, Any]:
        """
        Validate an access token and return its principal.

        Raises InvalidToken for bad signatures, expired tokens and tokens
        that are not access tokens.
        """
        payload = decode_token(token)
        if payload.get("type") != "access" or payload.get("id") is None:
            raise InvalidToken()
        return {"id": payload["id"], "email": payload.get("email")}

    async def get_user(self, token: str) -> dict[str, Any]:
        principal = self.verify(token)
        user = await self._users.get_by_id(int(principal["id"]))
        if not user:
            raise InvalidToken("user no longer exists")
        return public_user(user)
