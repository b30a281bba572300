"""
UserProfile - structured facts accumulated from free-text answers.

Every field is optional. Consumers must not assume any topic was answered:
the interview branches, so a finished session may never have visited the
trade-in or credit-reassurance questions.

Serialized to the client in camelCase (``userData``).
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


BuyerType = Literal["first_time", "lease_end", "upgrading", "exploring"]
CreditLevel = Literal["excellent", "good", "fair", "building", "unsure"]
CreditConfidence = Literal["high", "medium", "low", "unsure"]
Intensity = Literal["must_have", "important", "nice_to_have"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Budget(CamelModel):
    monthly: float | None = None
    down_payment: float | None = None
    total: float | None = None


class CreditAssessment(CamelModel):
    """Result of credit-tier classification."""

    level: CreditLevel = "fair"
    confidence: CreditConfidence = "medium"
    needs_reassurance: bool = False


class TradeIn(CamelModel):
    has_trade_in: bool = False
    vehicle: str | None = None
    estimated_value: float | None = None


class LifestyleMentions(CamelModel):
    family: bool = False
    kids: bool = False
    work: bool = False
    business: bool = False
    commute: bool = False
    adventure: bool = False
    city: bool = False


class Lifestyle(CamelModel):
    primary_use: str = "general"
    mentions: LifestyleMentions = Field(default_factory=LifestyleMentions)
    keywords: list[str] = Field(default_factory=list)


class Priorities(CamelModel):
    top_priority: str = "reliability"
    secondary_priorities: list[str] = Field(default_factory=list)
    intensity: Intensity = "important"


class ModelInterest(CamelModel):
    familiarity: str = "unknown"
    models: list[str] = Field(default_factory=list)


class UserProfile(CamelModel):
    """
    Accumulated buyer profile.

    Mutated only by the flow engine (merging interpreter output) and by
    routing rules recording the facts they branched on.
    """

    buyer_type: BuyerType | None = None
    budget: Budget | None = None
    credit_score: CreditLevel | None = None
    credit_confidence: CreditConfidence | None = None
    trade_in: TradeIn | None = None
    lifestyle: Lifestyle | None = None
    priorities: Priorities | None = None
    model_interest: ModelInterest | None = None

    def ensure_budget(self) -> Budget:
        if self.budget is None:
            self.budget = Budget()
        return self.budget

    def apply_credit(self, assessment: CreditAssessment) -> None:
        self.credit_score = assessment.level
        self.credit_confidence = assessment.confidence

    def to_client(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
