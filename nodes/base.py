"""
Base classes for the interview question graph.
"""

from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from memory.profile import UserProfile


QuestionCategory = Literal["intro", "financial", "lifestyle", "features", "goals"]
Animation = Literal["stars", "constellation", "orbit", "sparkles"]

RoutingRule = Callable[[str, UserProfile], str]


class SpeechSpec(BaseModel):
    """How a question is spoken when text-to-speech is on."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    voice_prompt: str | None = None  # Spoken text when it differs from the display text
    emphasis: tuple[str, ...] = ()
    pause_after_ms: int = 500


class LoadingTransition(BaseModel):
    """Filler shown while the next question loads."""

    model_config = ConfigDict(frozen=True)

    pool: str = "general"
    messages: tuple[str, ...] = ()
    duration_ms: int = 2000
    animation: Animation | None = None


class ConstantRoute(BaseModel):
    """Always continue to ``target``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["constant"] = "constant"
    target: str


class ComputedRoute(BaseModel):
    """
    Continue to whatever the registered rule picks.

    ``targets`` enumerates every id the rule may return so the graph can be
    validated without running it. ``default`` is used when the rule fails.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["computed"] = "computed"
    rule: str
    targets: tuple[str, ...]
    default: str


Route = Annotated[Union[ConstantRoute, ComputedRoute], Field(discriminator="kind")]


class QuestionNode(BaseModel):
    """A single question in the interview graph. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    subtext: str | None = None
    tooltip: str | None = None
    category: QuestionCategory
    placeholder: str = ""
    examples: tuple[str, ...] = ()
    speech: SpeechSpec | None = None
    loading_transition: LoadingTransition | None = None
    # Interpreter fact kinds run on answers to this node, in order
    extracts: tuple[str, ...] = ()
    route: Route

    @property
    def spoken_text(self) -> str:
        if self.speech and self.speech.voice_prompt:
            return self.speech.voice_prompt
        return self.text

    @property
    def speech_enabled(self) -> bool:
        return bool(self.speech and self.speech.enabled)

    def route_targets(self) -> tuple[str, ...]:
        if isinstance(self.route, ConstantRoute):
            return (self.route.target,)
        return self.route.targets


# Computed routing rules, registered by name at import time.
RULES: dict[str, RoutingRule] = {}


def routing_rule(name: str) -> Callable[[RoutingRule], RoutingRule]:
    """Register a routing rule under ``name``."""

    def decorator(func: RoutingRule) -> RoutingRule:
        if name in RULES and RULES[name] is not func:
            raise ValueError(f"Routing rule '{name}' already registered")
        RULES[name] = func
        return func

    return decorator
