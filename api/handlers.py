"""Exception handlers for the FastAPI application."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.exceptions import AuthException
from orchestrator.exceptions import FlowException, GraphConfigurationError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong, please try again"


def create_error_response(status_code: int, message: str, details: list | None = None) -> JSONResponse:
    """Create the ``{"error": ...}`` body the game client expects."""
    content: dict = {"error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return create_error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body validation errors."""
    details = []
    for error in exc.errors():
        field = error["loc"][-1] if error.get("loc") else "unknown"
        message = error.get("msg", "")
        # Remove "Value error, " prefix if present
        if message.startswith("Value error, "):
            message = message[13:]
        details.append({"field": field, "message": message})

    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", details
    )


async def flow_exception_handler(request: Request, exc: FlowException) -> JSONResponse:
    if isinstance(exc, GraphConfigurationError):
        logger.error("Question graph error on %s %s: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, GENERIC_ERROR_MESSAGE)
    return create_error_response(exc.status_code, exc.message)


async def auth_exception_handler(request: Request, exc: AuthException) -> JSONResponse:
    return create_error_response(exc.status_code, exc.message)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions with error logging."""
    logger.exception(
        "Unhandled exception occurred",
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        GENERIC_ERROR_MESSAGE,
    )
