"""Auth API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from auth.dependencies import (
    enforce_login_rate_limit,
    get_auth_service,
    get_current_user,
    get_rate_limiter,
    login_rate_limit_key,
)
from auth.interfaces.rate_limiter import RateLimiter
from auth.schemas import AuthUser, LoginRequest, LoginResponse, MeResponse
from auth.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    request: Request,
    _: None = Depends(enforce_login_rate_limit),
    auth_service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> LoginResponse:
    result = await auth_service.login(payload.email, payload.password)
    await limiter.reset(login_rate_limit_key(request))
    return LoginResponse(token=result["token"], user=AuthUser(**result["user"]))


@router.get("/me", response_model=MeResponse)
async def me(user: dict = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=AuthUser(**user))
