"""
Heuristic answer interpretation.

Turns free-text interview answers into typed profile facts using ordered
keyword/regex pattern lists. Every function is pure, case-insensitive and
total: unmatched text yields a documented default instead of an error.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from memory.profile import (
    CreditAssessment,
    Lifestyle,
    LifestyleMentions,
    ModelInterest,
    Priorities,
    TradeIn,
)


Interpreter = Callable[[str], Any]

_THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}\b)")


def _normalize_amounts(text: str) -> str:
    """Drop thousands separators so "$2,000" reads as 2000."""
    return _THOUSANDS.sub("", text or "")


# === Buyer intent ===
_BUYER_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("first_time", re.compile(r"first|never|new to", re.I)),
    ("lease_end", re.compile(r"lease|leasing", re.I)),
    ("upgrading", re.compile(r"upgrade|replace|trade|selling", re.I)),
]


def buyer_intent(text: str) -> str:
    for label, pattern in _BUYER_PATTERNS:
        if pattern.search(text or ""):
            return label
    return "exploring"


# === Budget ===
_BUDGET_PATTERNS: list[re.Pattern] = [
    re.compile(r"\$?\s*(\d+(?:\.\d+)?)\s*(?:-|–|to)\s*\$?\s*(\d+(?:\.\d+)?)", re.I),
    re.compile(r"around\s+\$?\s*(\d+(?:\.\d+)?)", re.I),
    re.compile(r"maybe\s+\$?\s*(\d+(?:\.\d+)?)", re.I),
    re.compile(r"\$?\s*(\d+(?:\.\d+)?)"),
]


def budget_amount(text: str) -> float:
    """
    Extract a dollar amount from a budget answer.

    Patterns are tried in order: a range (the two bounds are averaged),
    "around $N" / "maybe $N", then the first bare number. Returns 0 when
    the answer holds no number at all.
    """
    normalized = _normalize_amounts(text)
    for pattern in _BUDGET_PATTERNS:
        match = pattern.search(normalized)
        if not match:
            continue
        if match.lastindex and match.lastindex >= 2:
            return (float(match.group(1)) + float(match.group(2))) / 2
        return float(match.group(1))
    return 0.0


# === Credit ===
_CREDIT_PATTERNS: list[tuple[re.Pattern, CreditAssessment]] = [
    (
        re.compile(r"excellent|great|800|780|750", re.I),
        CreditAssessment(level="excellent", confidence="high", needs_reassurance=False),
    ),
    (
        re.compile(r"good|decent|700|720", re.I),
        CreditAssessment(level="good", confidence="high", needs_reassurance=False),
    ),
    (
        re.compile(r"fair|average|650|660", re.I),
        CreditAssessment(level="fair", confidence="medium", needs_reassurance=False),
    ),
    (
        re.compile(r"building|rebuilding|working on|bad|poor", re.I),
        CreditAssessment(level="building", confidence="low", needs_reassurance=True),
    ),
    (
        re.compile(r"don't know|dont know|not sure|unsure", re.I),
        CreditAssessment(level="unsure", confidence="unsure", needs_reassurance=True),
    ),
]

_SCORE = re.compile(r"\b([3-8]\d{2})\b")


def _credit_band(score: int) -> CreditAssessment | None:
    if score < 300 or score > 850:
        return None
    if score >= 750:
        return CreditAssessment(level="excellent", confidence="high")
    if score >= 700:
        return CreditAssessment(level="good", confidence="high")
    if score >= 640:
        return CreditAssessment(level="fair", confidence="medium")
    return CreditAssessment(level="building", confidence="low", needs_reassurance=True)


def credit_tier(text: str) -> CreditAssessment:
    """
    Classify a credit answer into a tier and a confidence label.

    Sentiment words and the common literal scores win first, then any
    number in the 300-850 range is banded. Default is fair/medium.
    """
    for pattern, assessment in _CREDIT_PATTERNS:
        if pattern.search(text or ""):
            return assessment.model_copy()
    for match in _SCORE.finditer(text or ""):
        band = _credit_band(int(match.group(1)))
        if band is not None:
            return band
    return CreditAssessment()


# === Trade-in ===
_TRADE_IN = re.compile(r"trade|trading|sell my|selling my", re.I)
_VEHICLE = re.compile(r"\b((?:19|20)\d{2}\s+[A-Za-z][\w-]*(?:\s+(?!worth\b|around\b|maybe\b|about\b)[A-Za-z][\w-]*)?)")
_AMOUNT = re.compile(r"(\$)?\s*(\d+(?:\.\d+)?)\s*(k\b)?", re.I)


def _estimate_value(text: str, vehicle: str | None) -> float | None:
    normalized = _normalize_amounts(text)
    if vehicle:
        normalized = normalized.replace(vehicle, " ")
    for match in _AMOUNT.finditer(normalized):
        dollar, number, thousands = match.group(1), float(match.group(2)), match.group(3)
        if thousands:
            return number * 1000
        if dollar:
            return number
        if number >= 500 and not (1950 <= number <= 2035 and number.is_integer()):
            return number
    return None


def _vehicle(text: str) -> str | None:
    match = _VEHICLE.search(text or "")
    return match.group(1).strip() if match else None


def trade_in_mention(text: str) -> TradeIn:
    """Detect whether an answer mentions a trade-in, with best-effort details."""
    if not _TRADE_IN.search(text or ""):
        return TradeIn(has_trade_in=False)
    vehicle = _vehicle(text)
    return TradeIn(
        has_trade_in=True,
        vehicle=vehicle,
        estimated_value=_estimate_value(text, vehicle),
    )


def trade_in_details(text: str) -> TradeIn:
    """Parse an answer to the trade-in question itself (presence is implied)."""
    vehicle = _vehicle(text)
    return TradeIn(
        has_trade_in=True,
        vehicle=vehicle,
        estimated_value=_estimate_value(text, vehicle),
    )


# === Lifestyle ===
_LIFESTYLE_PATTERNS: dict[str, re.Pattern] = {
    "family": re.compile(r"family|kids|children|carpool|school"),
    "kids": re.compile(r"kids|children|toddler|baby|car seat"),
    "work": re.compile(r"work|job|office|business|contractor|haul"),
    "business": re.compile(r"business|contractor|self-employed"),
    "commute": re.compile(r"commute|drive to work|daily"),
    "adventure": re.compile(r"adventure|camping|outdoors|road trip"),
    "city": re.compile(r"city|urban|downtown|parking"),
}


def lifestyle_intent(text: str) -> Lifestyle:
    """
    Detect lifestyle mentions and derive a single primary use.

    Detectors are independent, so one answer can mention several
    categories. ``primary_use`` applies a fixed precedence where later
    checks override earlier ones: commute, family, work/business, adventure.
    """
    lower = (text or "").lower()
    mentions = LifestyleMentions(
        **{name: bool(pattern.search(lower)) for name, pattern in _LIFESTYLE_PATTERNS.items()}
    )

    primary_use = "general"
    if mentions.commute:
        primary_use = "commute"
    if mentions.family:
        primary_use = "family"
    if mentions.work or mentions.business:
        primary_use = "work"
    if mentions.adventure:
        primary_use = "adventure"

    keywords = [word for word in lower.split() if len(word) > 3]
    return Lifestyle(primary_use=primary_use, mentions=mentions, keywords=keywords)


# === Priorities ===
# Declaration order is the ranking order.
_PRIORITY_PATTERNS: dict[str, re.Pattern] = {
    "payment": re.compile(r"payment|monthly|afford|budget", re.I),
    "fuel": re.compile(r"fuel|gas|mpg|economy|efficient", re.I),
    "safety": re.compile(r"safety|safe|protect", re.I),
    "tech": re.compile(r"tech|technology|carplay|android", re.I),
    "reliability": re.compile(r"reliable|dependable|last|durable", re.I),
    "space": re.compile(r"space|room|cargo|seats", re.I),
    "style": re.compile(r"look|style|cool|fun|sporty", re.I),
}

_MUST_HAVE = re.compile(r"must|have to|need to|#1|most important", re.I)
_NICE_TO_HAVE = re.compile(r"would like|prefer|hope", re.I)


def priority_intent(text: str) -> Priorities:
    matched = [name for name, pattern in _PRIORITY_PATTERNS.items() if pattern.search(text or "")]

    intensity = "important"
    if _MUST_HAVE.search(text or ""):
        intensity = "must_have"
    elif _NICE_TO_HAVE.search(text or ""):
        intensity = "nice_to_have"

    return Priorities(
        top_priority=matched[0] if matched else "reliability",
        secondary_priorities=matched[1:],
        intensity=intensity,
    )


# === Model interest ===
# Longer names first so "GR Corolla" is not also reported as "Corolla".
_MODELS: list[tuple[str, re.Pattern]] = [
    ("GR Corolla", re.compile(r"\bgr\s*corolla\b", re.I)),
    ("Grand Highlander", re.compile(r"\bgrand\s+highlander\b", re.I)),
    ("Corolla", re.compile(r"\bcorolla\b", re.I)),
    ("Camry", re.compile(r"\bcamry\b", re.I)),
    ("RAV4", re.compile(r"\brav\s*-?4\b", re.I)),
    ("Prius", re.compile(r"\bprius\b", re.I)),
    ("Highlander", re.compile(r"\bhighlander\b", re.I)),
    ("Tacoma", re.compile(r"\btacoma\b", re.I)),
    ("Tundra", re.compile(r"\btundra\b", re.I)),
    ("4Runner", re.compile(r"\b4\s*runner\b", re.I)),
    ("Sienna", re.compile(r"\bsienna\b", re.I)),
    ("Supra", re.compile(r"\bsupra\b", re.I)),
    ("Crown", re.compile(r"\bcrown\b", re.I)),
    ("bZ4X", re.compile(r"\bbz4x\b", re.I)),
]
_OPEN_MINDED = re.compile(r"open|anything|no idea|not sure|no preference|surprise me", re.I)


def model_interest(text: str) -> ModelInterest:
    remaining = text or ""
    models: list[str] = []
    for name, pattern in _MODELS:
        if pattern.search(remaining):
            models.append(name)
            remaining = pattern.sub(" ", remaining)

    if models:
        familiarity = "has_favorites"
    elif _OPEN_MINDED.search(text or ""):
        familiarity = "open"
    else:
        familiarity = "unknown"
    return ModelInterest(familiarity=familiarity, models=models)


INTERPRETERS: dict[str, Interpreter] = {
    "buyer_intent": buyer_intent,
    "budget_monthly": budget_amount,
    "down_payment": budget_amount,
    "trade_in_mention": trade_in_mention,
    "trade_in_details": trade_in_details,
    "credit_tier": credit_tier,
    "lifestyle": lifestyle_intent,
    "priorities": priority_intent,
    "model_interest": model_interest,
}


def interpret(fact_kind: str, text: str) -> Any:
    if fact_kind not in INTERPRETERS:
        raise ValueError(f"Unknown fact kind: {fact_kind}")
    return INTERPRETERS[fact_kind](text)
