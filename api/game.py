"""Interview game API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from api.schemas import (
    AnswerRequest,
    AudioStatsResponse,
    PaymentSimulationRequest,
    PregenerateResponse,
    StartRequest,
)
from api.sessions import GameRuntime, get_runtime
from auth.dependencies import get_current_user
from orchestrator.exceptions import FlowException, ValidationError
from orchestrator.views import StatusView, TurnResponse
from services import payment_calculator

logger = logging.getLogger(__name__)

router = APIRouter()

AUDIO_CACHE_CONTROL = "public, max-age=31536000"


@router.post("/start", response_model=TurnResponse, response_model_exclude_none=True)
async def start_game(
    payload: StartRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> TurnResponse:
    """Start or restart an interview and return the first question."""
    return await runtime.engine.start(payload.user_id, speech_enabled=payload.tts_enabled)


@router.post("/answer", response_model=TurnResponse, response_model_exclude_none=True)
async def submit_answer(
    payload: AnswerRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> TurnResponse:
    """Submit an answer; returns the next question or the completion payload."""
    return await runtime.engine.submit_answer(
        payload.user_id,
        payload.question_id,
        payload.answer,
        speech_enabled=payload.tts_enabled,
    )


@router.get("/audio/{question_id}")
async def get_audio(
    question_id: str,
    runtime: GameRuntime = Depends(get_runtime),
) -> FileResponse:
    entry = runtime.speech_cache.lookup(question_id)
    if entry is None:
        raise FlowException("Audio not found", status_code=404)
    return FileResponse(
        entry.path,
        media_type="audio/mpeg",
        headers={"Cache-Control": AUDIO_CACHE_CONTROL},
    )


@router.get("/status/{user_id}", response_model=StatusView, response_model_exclude_none=True)
async def get_status(
    user_id: str,
    runtime: GameRuntime = Depends(get_runtime),
) -> StatusView:
    return await runtime.engine.status(user_id)


@router.get("/audio-stats", response_model=AudioStatsResponse)
async def audio_stats(runtime: GameRuntime = Depends(get_runtime)) -> AudioStatsResponse:
    return AudioStatsResponse(**runtime.speech_cache.stats())


@router.post("/pregenerate-audio", response_model=PregenerateResponse)
async def pregenerate_audio(
    runtime: GameRuntime = Depends(get_runtime),
    user: dict = Depends(get_current_user),
) -> PregenerateResponse:
    """Synthesize audio for every question that is not cached yet. Paced, so this takes a while."""
    logger.info("Audio pre-generation requested by %s", user.get("email"))
    result = await runtime.speech_cache.prewarm(runtime.graph)
    return PregenerateResponse(
        message="Audio pre-generation complete",
        generated=result["generated"],
        skipped=result["skipped"],
        failed=result["failed"],
        stats=AudioStatsResponse(**runtime.speech_cache.stats()),
    )


@router.post("/payment-simulation")
async def payment_simulation(
    payload: PaymentSimulationRequest,
    runtime: GameRuntime = Depends(get_runtime),
) -> dict:
    """Compare financing and leasing a vehicle against the session's profile."""
    if not payload.user_id or payload.msrp is None:
        raise ValidationError("Missing required fields: userId, msrp")
    if payload.msrp <= 0:
        raise ValidationError("msrp must be positive")

    profile = await runtime.engine.get_profile(payload.user_id)
    logger.info("Simulating payment for %s", payload.vehicle_name)
    return payment_calculator.simulate(
        profile,
        vehicle_name=payload.vehicle_name or "",
        msrp=payload.msrp,
        monthly_budget=payload.monthly_budget,
    )
