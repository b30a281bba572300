"""Interview flow states."""

from enum import Enum


class FlowState(str, Enum):
    """Lifecycle of an interview session."""
    AWAITING_START = "awaiting_start"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
