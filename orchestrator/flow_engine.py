"""
FlowEngine - drives one interview turn at a time.

Turn flow:
Request -> validate -> SessionStore.update (per-session lock, working copy)
        -> AnswerInterpreter facts merged into the profile -> history
        -> completion check -> routing rule -> commit
        -> SpeechCache for the next question (outside the lock, non-fatal)
        -> view
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Any, Callable

from config import Config
from memory.profile import UserProfile
from memory.session import Session, SessionPreferences
from memory.session_store import SessionStore, new_session
from nodes.base import QuestionNode
from nodes.graph import QuestionGraph
from orchestrator.exceptions import SessionNotFound, StaleQuestionError, ValidationError
from orchestrator.modes import FlowState
from orchestrator.views import (
    LoadingView,
    ProgressView,
    QuestionView,
    SpeechView,
    StatusView,
    TurnResponse,
)
from services import answer_interpreter
from services.speech_cache import SpeechCache

logger = logging.getLogger(__name__)

COMPLETION_MESSAGE = "Journey complete! Calculating matches..."
FILLER_SAMPLE_SIZE = 3
MAX_EXAMPLES = 2


# === Fact merging ===
# Topic facts overwrite whatever an earlier visit recorded.

def _merge_buyer_intent(profile: UserProfile, fact: str) -> None:
    profile.buyer_type = fact


def _merge_budget_monthly(profile: UserProfile, fact: float) -> None:
    profile.ensure_budget().monthly = fact


def _merge_down_payment(profile: UserProfile, fact: float) -> None:
    profile.ensure_budget().down_payment = fact


def _merge_trade_in_mention(profile: UserProfile, fact) -> None:
    if fact.has_trade_in:
        profile.trade_in = fact


def _merge_trade_in_details(profile: UserProfile, fact) -> None:
    # Keep an earlier estimate if the follow-up answer gives no number
    if profile.trade_in is not None:
        fact.vehicle = fact.vehicle or profile.trade_in.vehicle
        if fact.estimated_value is None:
            fact.estimated_value = profile.trade_in.estimated_value
    profile.trade_in = fact


def _merge_credit(profile: UserProfile, fact) -> None:
    profile.apply_credit(fact)


def _merge_lifestyle(profile: UserProfile, fact) -> None:
    profile.lifestyle = fact


def _merge_priorities(profile: UserProfile, fact) -> None:
    profile.priorities = fact


def _merge_model_interest(profile: UserProfile, fact) -> None:
    profile.model_interest = fact


FACT_MERGERS: dict[str, Callable[[UserProfile, Any], None]] = {
    "buyer_intent": _merge_buyer_intent,
    "budget_monthly": _merge_budget_monthly,
    "down_payment": _merge_down_payment,
    "trade_in_mention": _merge_trade_in_mention,
    "trade_in_details": _merge_trade_in_details,
    "credit_tier": _merge_credit,
    "lifestyle": _merge_lifestyle,
    "priorities": _merge_priorities,
    "model_interest": _merge_model_interest,
}


def merge_facts(node: QuestionNode, answer: str, profile: UserProfile) -> None:
    """Run the node's extractors on ``answer`` and merge the results into ``profile``."""
    for kind in node.extracts:
        FACT_MERGERS[kind](profile, answer_interpreter.interpret(kind, answer))


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class FlowEngine:
    """
    Session state machine over a validated QuestionGraph.

    API:
    - start(session_id, speech_enabled) -> first question
    - submit_answer(session_id, question_id, answer, speech_enabled) -> next question or completion
    - status(session_id) -> where a session stands
    """

    def __init__(
        self,
        graph: QuestionGraph,
        store: SessionStore,
        speech_cache: SpeechCache | None = None,
        total_questions: int | None = None,
        audio_url_prefix: str = "/api/game/audio",
    ):
        self.graph = graph
        self.store = store
        self.speech_cache = speech_cache
        self.total_questions = total_questions or Config.TOTAL_QUESTIONS
        self.audio_url_prefix = audio_url_prefix.rstrip("/")

    async def start(self, session_id: str | None = None, speech_enabled: bool = True) -> TurnResponse:
        """Create (or restart) a session at the start question."""
        session_id = (session_id or "").strip() or uuid.uuid4().hex
        session = await self.store.create(
            new_session(
                session_id,
                self.graph.start_id,
                SessionPreferences(speech_enabled=speech_enabled),
            )
        )
        logger.info("Session %s started", session_id)
        response = await self._question_response(session, self.graph.get_node(session.current_node_id))
        response.session_id = session_id
        return response

    async def submit_answer(
        self,
        session_id: str | None,
        question_id: str | None,
        answer: str | None,
        speech_enabled: bool | None = None,
    ) -> TurnResponse:
        _require(userId=session_id, questionId=question_id, answer=answer)

        session, completed = await self.store.update(
            session_id,
            lambda working: self._advance(working, question_id, answer, speech_enabled),
        )
        if completed:
            return self._completion_response(session)
        return await self._question_response(session, self.graph.get_node(session.current_node_id))

    async def status(self, session_id: str) -> StatusView:
        try:
            session = await self.store.get(session_id)
        except SessionNotFound:
            return StatusView(session_id=session_id, state=FlowState.AWAITING_START)

        return StatusView(
            session_id=session.session_id,
            state=FlowState.COMPLETE if session.is_complete else FlowState.IN_PROGRESS,
            current_question_id=session.current_node_id,
            progress=self._progress(session),
            answered=[entry.question_id for entry in session.history],
            user_data=session.profile.to_client(),
            created_at=session.created_at,
            updated_at=session.updated_at,
            completed_at=session.completed_at,
        )

    async def get_profile(self, session_id: str) -> UserProfile:
        session = await self.store.get(session_id)
        return session.profile

    # === Turn mutation (runs on the store's working copy) ===

    def _advance(
        self,
        session: Session,
        question_id: str,
        answer: str,
        speech_enabled: bool | None,
    ) -> bool:
        """Apply one answer. Returns True when the interview is complete."""
        if session.is_complete:
            return True
        if question_id != session.current_node_id:
            raise StaleQuestionError(expected=session.current_node_id, received=question_id)

        if speech_enabled is not None:
            session.preferences.speech_enabled = speech_enabled

        node = self.graph.get_node(question_id)
        merge_facts(node, answer, session.profile)
        session.record_answer(node.id, answer)

        next_id: str | None = None
        node_finished = node.id == self.graph.finish_trigger_id
        if not node_finished:
            next_id = self.graph.resolve_next(node, answer, session.profile)
            node_finished = self.graph.is_terminal(next_id)
        count_finished = len(session.history) >= self.total_questions

        if count_finished and not node_finished:
            logger.warning(
                "Session %s reached the %d-question bound on '%s' before the end of the graph",
                session.session_id,
                self.total_questions,
                node.id,
            )
        if node_finished or count_finished:
            session.mark_complete(self.graph.terminal_id)
            logger.info(
                "Session %s complete after %d answers", session.session_id, len(session.history)
            )
            return True

        logger.debug("Session %s: %s -> %s", session.session_id, node.id, next_id)
        session.current_node_id = next_id
        session.touch()
        return False

    # === Views ===

    def _progress(self, session: Session) -> ProgressView:
        return ProgressView(current=session.progress, total=self.total_questions)

    def _completion_response(self, session: Session) -> TurnResponse:
        return TurnResponse(
            complete=True,
            user_data=session.profile.to_client(),
            message=COMPLETION_MESSAGE,
        )

    def _loading_view(self, session: Session, node: QuestionNode) -> LoadingView | None:
        transition = node.loading_transition
        if transition is None or not transition.messages:
            return None
        # Seeded per (session, node) so a replayed session shows the same filler
        rng = random.Random(f"{session.session_id}:{node.id}")
        count = min(FILLER_SAMPLE_SIZE, len(transition.messages))
        return LoadingView(
            messages=rng.sample(list(transition.messages), count),
            duration=transition.duration_ms,
            animation=transition.animation,
        )

    async def _audio_ref(self, session: Session, node: QuestionNode) -> str | None:
        if self.speech_cache is None or not node.speech_enabled:
            return None
        if not session.preferences.speech_enabled:
            return None
        try:
            entry = await self.speech_cache.ensure(node.id, node.spoken_text, node.speech.emphasis)
        except Exception:
            logger.exception("Speech lookup failed for %s", node.id)
            return None
        if entry is None:
            return None
        return f"{self.audio_url_prefix}/{node.id}"

    async def _question_response(self, session: Session, node: QuestionNode) -> TurnResponse:
        question = QuestionView(
            id=node.id,
            text=node.text,
            subtext=node.subtext,
            category=node.category,
            placeholder=node.placeholder,
            examples=list(node.examples[:MAX_EXAMPLES]),
            tooltip=node.tooltip,
            speech=SpeechView(
                enabled=node.speech_enabled and session.preferences.speech_enabled,
                audio_ref=await self._audio_ref(session, node),
            ),
        )
        return TurnResponse(
            complete=False,
            question=question,
            loading_transition=self._loading_view(session, node),
            progress=self._progress(session),
        )
