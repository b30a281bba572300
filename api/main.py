"""
FastAPI application for the car-buying interview.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import router as auth_router
from api.game import router as game_router
from api.handlers import (
    auth_exception_handler,
    flow_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from api.schemas import HealthResponse
from api.sessions import GameRuntime, get_runtime
from auth.exceptions import AuthException
from config import Config
from orchestrator.exceptions import FlowException

logging.basicConfig(
    level=Config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Validate configuration on startup
Config.validate()

EVICTION_INTERVAL_SECONDS = 600


async def _evict_idle_sessions(runtime: GameRuntime) -> None:
    while True:
        await asyncio.sleep(EVICTION_INTERVAL_SECONDS)
        await runtime.store.evict_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown."""
    # Builds and validates the question graph; a broken graph stops startup here
    runtime = get_runtime()
    eviction = None
    if Config.SESSION_TTL_SECONDS:
        eviction = asyncio.create_task(_evict_idle_sessions(runtime))
    yield
    if eviction is not None:
        eviction.cancel()
        with suppress(asyncio.CancelledError):
            await eviction


app = FastAPI(
    title="Car-Buying Interview API",
    description="Branching question flow that builds a car buyer profile",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(FlowException, flow_exception_handler)
app.add_exception_handler(AuthException, auth_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(game_router, prefix="/api/game", tags=["game"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])


@app.get("/api/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(runtime: GameRuntime = Depends(get_runtime)) -> HealthResponse:
    """Health check."""
    return HealthResponse(
        status="healthy",
        questions=len(runtime.graph),
        sessions=len(runtime.store),
        speech_configured=Config.speech_configured(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=Config.PORT, reload=False)
