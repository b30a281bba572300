"""
Client-facing views produced by the flow engine.

Serialized camelCase; ``None`` fields are dropped by the API layer.
"""

from datetime import datetime
from typing import Any

from memory.profile import CamelModel
from orchestrator.modes import FlowState


class SpeechView(CamelModel):
    enabled: bool
    audio_ref: str | None = None  # Only set when audio is already cached


class QuestionView(CamelModel):
    id: str
    text: str
    subtext: str | None = None
    category: str
    placeholder: str = ""
    examples: list[str] = []
    tooltip: str | None = None
    speech: SpeechView


class LoadingView(CamelModel):
    messages: list[str]
    duration: int
    animation: str | None = None


class ProgressView(CamelModel):
    current: int
    total: int


class TurnResponse(CamelModel):
    """
    Result of a start or answer turn.

    Either the next question (``complete`` false) or the completion
    payload with the accumulated profile.
    """
    complete: bool = False
    session_id: str | None = None
    question: QuestionView | None = None
    loading_transition: LoadingView | None = None
    progress: ProgressView | None = None
    user_data: dict[str, Any] | None = None
    message: str | None = None


class StatusView(CamelModel):
    session_id: str
    state: FlowState
    current_question_id: str | None = None
    progress: ProgressView | None = None
    answered: list[str] = []
    user_data: dict[str, Any] = {}
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
