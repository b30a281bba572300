"""
Computed routing rules for the car-buying interview.

Each rule receives the raw answer and the profile the flow engine has just
merged the interpreter's facts into. Rules branch on those facts, falling
back to interpreting the answer themselves when the fact is missing, and
record the fact they branched on. No I/O, no randomness.
"""

from memory.profile import UserProfile
from nodes.base import routing_rule
from services import answer_interpreter

BUDGET_THRESHOLD = 300


@routing_rule("buyer_intent")
def route_buyer_intent(answer: str, profile: UserProfile) -> str:
    buyer_type = profile.buyer_type or answer_interpreter.buyer_intent(answer)
    profile.buyer_type = buyer_type
    if buyer_type == "lease_end":
        return "lease_experience"
    if buyer_type == "upgrading":
        return "current_situation"
    return "financial_comfort"


@routing_rule("budget_threshold")
def route_budget_threshold(answer: str, profile: UserProfile) -> str:
    budget = profile.ensure_budget()
    if budget.monthly is None:
        budget.monthly = answer_interpreter.budget_amount(answer)
    if budget.monthly < BUDGET_THRESHOLD:
        return "financial_goals"
    return "down_payment_reality"


@routing_rule("trade_in_branch")
def route_trade_in(answer: str, profile: UserProfile) -> str:
    budget = profile.ensure_budget()
    if budget.down_payment is None:
        budget.down_payment = answer_interpreter.budget_amount(answer)
    if profile.trade_in is None:
        mention = answer_interpreter.trade_in_mention(answer)
        if mention.has_trade_in:
            profile.trade_in = mention
    if profile.trade_in is not None and profile.trade_in.has_trade_in:
        return "trade_in_context"
    return "credit_conversation"


@routing_rule("credit_tier")
def route_credit_tier(answer: str, profile: UserProfile) -> str:
    if profile.credit_score is None:
        profile.apply_credit(answer_interpreter.credit_tier(answer))
    if profile.credit_score in ("building", "unsure"):
        return "credit_reassurance"
    return "lifestyle_mission"


@routing_rule("lifestyle_topic")
def route_lifestyle_topic(answer: str, profile: UserProfile) -> str:
    if profile.lifestyle is None:
        profile.lifestyle = answer_interpreter.lifestyle_intent(answer)
    mentions = profile.lifestyle.mentions
    # family > work > commute > default
    if mentions.family:
        return "family_reality"
    if mentions.work or mentions.business:
        return "work_needs"
    if mentions.commute:
        return "commute_reality"
    return "space_needs"
