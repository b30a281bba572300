"""
Pydantic schemas for API request/response models.

Bodies use camelCase on the wire. Turn request fields are optional here so
that missing ones surface as the flow engine's 400 instead of a 422.
"""

from typing import Any

from memory.profile import CamelModel


# Game turn requests

class StartRequest(CamelModel):
    """Client -> Server: begin (or restart) an interview."""
    user_id: str | None = None
    tts_enabled: bool = True


class AnswerRequest(CamelModel):
    """Client -> Server: answer to the current question."""
    user_id: str | None = None
    question_id: str | None = None
    answer: str | None = None
    tts_enabled: bool | None = None


class PaymentSimulationRequest(CamelModel):
    user_id: str | None = None
    vehicle_name: str | None = None
    msrp: float | None = None
    monthly_budget: float | None = None


# Audio

class AudioStatsResponse(CamelModel):
    total_files: int
    total_size: str
    files: list[str]


class PregenerateResponse(CamelModel):
    success: bool = True
    message: str
    generated: list[str] = []
    skipped: list[str] = []
    failed: list[str] = []
    stats: AudioStatsResponse


class HealthResponse(CamelModel):
    status: str
    questions: int
    sessions: int
    speech_configured: bool
    details: dict[str, Any] | None = None
