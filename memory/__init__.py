"""Memory module for interview sessions and accumulated buyer profiles."""

from memory.profile import UserProfile
from memory.session import HistoryEntry, Session, SessionPreferences
from memory.session_store import MemorySessionStore, SessionStore

__all__ = [
    "UserProfile",
    "Session",
    "SessionPreferences",
    "HistoryEntry",
    "SessionStore",
    "MemorySessionStore",
]
