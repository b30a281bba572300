"""
Session state for one interview.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from memory.profile import UserProfile


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionPreferences(BaseModel):
    speech_enabled: bool = True
    autoplay: bool = True


class HistoryEntry(BaseModel):
    """One accepted answer."""
    question_id: str
    answer: str
    answered_at: datetime = Field(default_factory=_now)


class Session(BaseModel):
    """
    Per-user interview progress.

    ``len(history) + 1`` is the 1-based progress counter shown to the client.
    """
    session_id: str
    current_node_id: str
    history: list[HistoryEntry] = Field(default_factory=list)
    profile: UserProfile = Field(default_factory=UserProfile)
    preferences: SessionPreferences = Field(default_factory=SessionPreferences)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None

    @property
    def progress(self) -> int:
        return len(self.history) + 1

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None

    def record_answer(self, question_id: str, answer: str) -> None:
        self.history.append(HistoryEntry(question_id=question_id, answer=answer))
        self.touch()

    def touch(self) -> None:
        self.updated_at = _now()

    def mark_complete(self, terminal_node_id: str) -> None:
        self.current_node_id = terminal_node_id
        self.completed_at = _now()
        self.touch()
