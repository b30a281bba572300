"""
The car-buying interview.

Sixteen questions plus the terminal "complete" node. Branch points:
- start: buyer intent (first time / lease ending / upgrading / exploring)
- financial_comfort: monthly budget under $300 asks about financial goals
- down_payment_reality: a trade-in mention asks about the trade-in
- credit_conversation: building or unsure credit gets reassurance
- lifestyle_mission: family > work > commute > general space needs
"""

from nodes import routing_rules  # noqa: F401  (registers the computed rules)
from nodes.base import (
    ComputedRoute,
    ConstantRoute,
    LoadingTransition,
    QuestionNode,
    SpeechSpec,
)
from nodes.graph import QuestionGraph

START_NODE = "start"
FINISH_TRIGGER_NODE = "toyota_connection"
TERMINAL_NODE = "complete"

# Filler pools for the loading transition between questions
LOADING_MESSAGES: dict[str, tuple[str, ...]] = {
    "general": (
        "Reading your chart...",
        "Aligning the stars...",
        "Your future is looking bright...",
        "Consulting the cosmic map...",
        "The universe is listening...",
        "Charting your course...",
        "Calculating your destiny...",
        "The planets are aligning...",
        "Mapping your journey...",
        "Your path is becoming clear...",
    ),
    "financial": (
        "Calculating your financial constellation...",
        "Aligning your budget with the stars...",
        "Charting your financial journey...",
        "The cosmos is crunching the numbers...",
        "Your financial future is aligning...",
    ),
    "lifestyle": (
        "Exploring your lifestyle galaxy...",
        "Mapping your daily adventures...",
        "The stars reveal your path...",
        "Charting your cosmic course...",
        "Your journey is taking shape...",
    ),
    "matching": (
        "The stars are aligning your perfect match...",
        "Cosmic forces at work...",
        "Your destiny is unfolding...",
        "Almost there, space explorer...",
        "The universe has spoken...",
    ),
    "credit": (
        "Creating a safe space...",
        "No judgment here...",
        "Your honesty helps us help you...",
    ),
    "reassurance": (
        "You're not alone...",
        "We've got your back...",
        "Toyota welcomes everyone...",
    ),
    "home_stretch": (
        "Almost there, space explorer...",
        "The finish line is near...",
        "Your destiny awaits...",
    ),
    "final": (
        "Final checkpoint...",
        "One last question...",
        "Your matches are almost ready...",
    ),
}


def _loading(pool: str, duration_ms: int, animation: str) -> LoadingTransition:
    return LoadingTransition(
        pool=pool,
        messages=LOADING_MESSAGES[pool],
        duration_ms=duration_ms,
        animation=animation,
    )


def _speech(prompt: str, *emphasis: str, pause_after_ms: int = 500) -> SpeechSpec:
    return SpeechSpec(
        enabled=True,
        voice_prompt=prompt,
        emphasis=emphasis,
        pause_after_ms=pause_after_ms,
    )


QUESTION_NODES: list[QuestionNode] = [
    QuestionNode(
        id="start",
        text="Let's find your perfect Toyota. What brings you here today?",
        subtext="This helps us understand where you are in your journey",
        category="intro",
        placeholder="Type your answer here...",
        examples=("I'm buying my first car", "Looking to upgrade"),
        speech=_speech(
            "Let's find your perfect Toyota. What brings you here today?", "perfect Toyota"
        ),
        extracts=("buyer_intent",),
        route=ComputedRoute(
            rule="buyer_intent",
            targets=("financial_comfort", "lease_experience", "current_situation"),
            default="financial_comfort",
        ),
    ),
    QuestionNode(
        id="current_situation",
        text="Tell me about your current ride. What's working and what's not?",
        subtext="Understanding your experience helps us find your perfect upgrade",
        category="intro",
        placeholder="e.g., '2015 Honda Civic, need more space'",
        examples=("2018 sedan, too small now", "Old truck, expensive repairs"),
        loading_transition=_loading("general", 2000, "stars"),
        speech=_speech(
            "Tell me about your current ride. What's working for you, and what's not?",
            "current ride",
            "working",
        ),
        route=ConstantRoute(target="financial_comfort"),
    ),
    QuestionNode(
        id="lease_experience",
        text="How's leasing been for you? Thinking of leasing again or ready to own?",
        subtext="No judgment either way, both have great benefits!",
        category="intro",
        placeholder="Share your thoughts...",
        examples=("Loved the low payments", "Ready to own this time"),
        loading_transition=_loading("general", 2000, "constellation"),
        speech=_speech(
            "How's leasing been for you? Thinking of leasing again or ready to own?",
            "leasing",
            "own",
        ),
        route=ConstantRoute(target="financial_comfort"),
    ),
    QuestionNode(
        id="financial_comfort",
        text=(
            "Let's talk budget in a way that feels real. "
            "What monthly payment feels comfortable for you?"
        ),
        subtext="Think about your lifestyle--what works without stress?",
        category="financial",
        placeholder="e.g., 'around $350 a month'",
        examples=("Around $300 per month", "$400-500 range"),
        tooltip="Include insurance (~$100-150/mo) in your calculation",
        loading_transition=_loading("financial", 2500, "orbit"),
        speech=_speech(
            "Let's talk budget in a way that feels real. "
            "What monthly payment feels comfortable for you?",
            "comfortable",
            pause_after_ms=800,
        ),
        extracts=("budget_monthly",),
        route=ComputedRoute(
            rule="budget_threshold",
            targets=("financial_goals", "down_payment_reality"),
            default="down_payment_reality",
        ),
    ),
    QuestionNode(
        id="financial_goals",
        text="What matters most to you financially with this car?",
        subtext="There's no wrong answer. We want to help you reach YOUR goals",
        category="financial",
        placeholder="What's your priority?",
        examples=("Keeping payments low", "Building my credit"),
        loading_transition=_loading("financial", 2000, "sparkles"),
        speech=_speech(
            "What matters most to you financially with this car? There's no wrong answer.",
            "matters most",
            "YOUR goals",
        ),
        route=ConstantRoute(target="down_payment_reality"),
    ),
    QuestionNode(
        id="down_payment_reality",
        text="How much can you comfortably put down without stressing your savings?",
        subtext="Honest answer = better recommendations. Even $0 down is okay!",
        category="financial",
        placeholder="e.g., '$2,000' or 'nothing right now'",
        examples=("$0 - nothing down", "Around $2,000"),
        tooltip="Bigger down payment = lower monthly payment",
        loading_transition=_loading("financial", 2000, "stars"),
        speech=_speech(
            "How much can you comfortably put down without stressing your savings?",
            "comfortably",
        ),
        extracts=("down_payment", "trade_in_mention"),
        route=ComputedRoute(
            rule="trade_in_branch",
            targets=("trade_in_context", "credit_conversation"),
            default="credit_conversation",
        ),
    ),
    QuestionNode(
        id="trade_in_context",
        text="Tell me about your trade-in. What's the vehicle and roughly what's it worth?",
        subtext="Just ballpark. We'll get you a real estimate later",
        category="financial",
        placeholder="e.g., '2016 Civic, maybe $8,000'",
        examples=("2017 Accord, around $12k", "2010 truck, maybe $6k"),
        loading_transition=_loading("financial", 2000, "constellation"),
        speech=_speech(
            "Tell me about your trade-in. What's the vehicle and roughly what's it worth?",
            "trade-in",
        ),
        extracts=("trade_in_details",),
        route=ConstantRoute(target="credit_conversation"),
    ),
    QuestionNode(
        id="credit_conversation",
        text="Let's talk credit. How would you describe your credit situation?",
        subtext="We work with ALL credit levels. This helps us find the best path for YOU",
        category="financial",
        placeholder="Be honest, we're here to help...",
        examples=("Pretty good, around 700", "I'm rebuilding it"),
        tooltip="Don't know your score? No problem!",
        loading_transition=_loading("credit", 2500, "sparkles"),
        speech=_speech(
            "Let's talk credit. How would you describe your credit situation?",
            "honest",
            pause_after_ms=800,
        ),
        extracts=("credit_tier",),
        route=ComputedRoute(
            rule="credit_tier",
            targets=("lifestyle_mission", "credit_reassurance"),
            default="lifestyle_mission",
        ),
    ),
    QuestionNode(
        id="credit_reassurance",
        text=(
            "That's totally okay! Toyota has programs for your situation. "
            "What's your main concern?"
        ),
        subtext="Getting approved? Monthly payments? Building credit?",
        category="financial",
        placeholder="What worries you most?",
        examples=("Worried about approval", "Concerned about rates"),
        loading_transition=_loading("reassurance", 2000, "sparkles"),
        speech=_speech(
            "That's totally okay! Toyota has programs for your situation. "
            "What's your main concern?",
            "totally okay",
            "your situation",
        ),
        route=ConstantRoute(target="lifestyle_mission"),
    ),
    QuestionNode(
        id="lifestyle_mission",
        text="What's this car's mission in your life?",
        subtext="Your real life matters. Let's find a car that fits YOUR world",
        category="lifestyle",
        placeholder="How will you use it day-to-day?",
        examples=("Daily commute to work", "Family trips on weekends"),
        loading_transition=_loading("lifestyle", 2500, "orbit"),
        speech=_speech("What's this car's mission in your life?", "mission"),
        extracts=("lifestyle",),
        route=ComputedRoute(
            rule="lifestyle_topic",
            targets=("family_reality", "work_needs", "commute_reality", "space_needs"),
            default="space_needs",
        ),
    ),
    QuestionNode(
        id="family_reality",
        text="How many people regularly ride with you, and what's the vibe?",
        subtext="Car seats? Teenagers? Sports equipment? Give me the real picture",
        category="lifestyle",
        placeholder="Describe your passengers...",
        examples=("2 kids in car seats", "3 teenagers with gear"),
        loading_transition=_loading("lifestyle", 2000, "constellation"),
        speech=_speech("How many people regularly ride with you, and what's the vibe?", "crew"),
        route=ConstantRoute(target="priorities_tradeoffs"),
    ),
    QuestionNode(
        id="work_needs",
        text="What do you need to haul for work?",
        subtext="Tools, equipment, samples? Be specific",
        category="lifestyle",
        placeholder="What goes in the vehicle?",
        examples=("Ladders and tools", "Just laptop and briefcase"),
        loading_transition=_loading("lifestyle", 2000, "stars"),
        speech=_speech("What do you need to haul for work?", "haul for work"),
        route=ConstantRoute(target="priorities_tradeoffs"),
    ),
    QuestionNode(
        id="commute_reality",
        text="Tell me about your commute. Distance? City or highway?",
        subtext="Your daily drive matters - let's make it comfortable",
        category="lifestyle",
        placeholder="Describe your typical drive...",
        examples=("25 miles, mostly highway", "5 miles, city traffic"),
        loading_transition=_loading("lifestyle", 2000, "orbit"),
        speech=_speech("Tell me about your commute. Distance? City or highway?", "commute"),
        route=ConstantRoute(target="priorities_tradeoffs"),
    ),
    QuestionNode(
        id="space_needs",
        text="How much space do you realistically need?",
        subtext="People, gear, groceries - be honest!",
        category="lifestyle",
        placeholder="What's your typical load?",
        examples=("Just me and camping gear", "Weekly Costco runs"),
        loading_transition=_loading("lifestyle", 2000, "sparkles"),
        speech=_speech(
            "How much space do you realistically need? Think about people, gear, and groceries.",
            "realistically need",
        ),
        route=ConstantRoute(target="priorities_tradeoffs"),
    ),
    QuestionNode(
        id="priorities_tradeoffs",
        text="What matters MOST to you? Lower payments, fuel savings, tech, or something else?",
        subtext="You can't maximize everything, what's your #1 priority?",
        category="goals",
        placeholder="What's non-negotiable?",
        examples=("Payments under $400", "Best fuel economy"),
        loading_transition=_loading("home_stretch", 2500, "constellation"),
        speech=_speech(
            "What matters MOST to you? Lower payments, fuel savings, tech, or something else?",
            "matters most",
            pause_after_ms=800,
        ),
        extracts=("priorities",),
        route=ConstantRoute(target="toyota_connection"),
    ),
    QuestionNode(
        id="toyota_connection",
        text="Last question! Any Toyota models on your radar?",
        subtext="We'll match you either way - just curious!",
        category="goals",
        placeholder="Any favorites in mind?",
        examples=("Love the RAV4", "Totally open"),
        loading_transition=_loading("final", 2000, "sparkles"),
        speech=_speech("Last question! Any Toyota models on your radar?", "last question"),
        extracts=("model_interest",),
        route=ConstantRoute(target="complete"),
    ),
    QuestionNode(
        id="complete",
        text="Amazing! The stars are aligning your perfect matches...",
        subtext="",
        category="goals",
        placeholder="",
        examples=(),
        loading_transition=_loading("matching", 3000, "orbit"),
        speech=_speech(
            "The stars are aligning your perfect matches. Get ready for the race results!",
            "Amazing",
            "perfect matches",
            pause_after_ms=1000,
        ),
        route=ConstantRoute(target="complete"),
    ),
]


def build_question_graph(total_questions: int | None = None) -> QuestionGraph:
    """Build and validate the interview graph. Fails loudly on bad data."""
    graph = QuestionGraph(
        QUESTION_NODES,
        start_id=START_NODE,
        finish_trigger_id=FINISH_TRIGGER_NODE,
    )
    graph.validate(total_questions)
    return graph
