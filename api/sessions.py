"""
Process-wide interview runtime.

One question graph, session store and speech cache shared by every request.
"""

from __future__ import annotations

import logging

from config import Config
from memory.session_store import MemorySessionStore, SessionStore
from nodes.graph import QuestionGraph
from nodes.question_tree import build_question_graph
from orchestrator.flow_engine import FlowEngine
from services.speech_cache import SpeechCache
from services.speech_service import get_speech_provider

logger = logging.getLogger(__name__)


class GameRuntime:
    """Wires the graph, store and speech cache into a FlowEngine."""

    def __init__(
        self,
        graph: QuestionGraph | None = None,
        store: SessionStore | None = None,
        speech_cache: SpeechCache | None = None,
    ):
        self.graph = graph or build_question_graph(Config.TOTAL_QUESTIONS)
        self.store = store or MemorySessionStore(ttl_seconds=Config.SESSION_TTL_SECONDS)
        self.speech_cache = speech_cache or SpeechCache(get_speech_provider())
        self.engine = FlowEngine(self.graph, self.store, self.speech_cache)
        logger.info(
            "Interview runtime ready: %d questions, budget %d",
            len(self.graph),
            Config.TOTAL_QUESTIONS,
        )


_runtime: GameRuntime | None = None


def get_runtime() -> GameRuntime:
    global _runtime
    if _runtime is None:
        _runtime = GameRuntime()
    return _runtime
