import random
from dataclasses import dataclass
from typing import Literal


PersonaName = Literal["professional", "skeptical", "friendly", "strict"]
Patience = Literal["low", "medium", "high"]
Difficulty = Literal["easy", "medium", "hard"]
FollowUpStyle = Literal["clarifying", "challenging", "supportive"]
CueKind = Literal["positive", "neutral", "skeptical", "impatient"]
FollowUpReason = Literal["vague", "contradiction", "clarification", "deep_dive"]


@dataclass(frozen=True)
class VerbalCues:
    positive: tuple[str, ...]
    neutral: tuple[str, ...]
    skeptical: tuple[str, ...]
    impatient: tuple[str, ...]


@dataclass(frozen=True)
class PersonaProfile:
    name: PersonaName
    title: str
    description: str
    prevalence: int
    patience: Patience
    interruption_probability: float
    follow_up_frequency: float
    contradiction_detection: bool
    allows_rambling: bool
    rapid_fire_bursts: bool
    min_question_delay: int
    max_question_delay: int
    preferred_difficulty: Difficulty
    pressure_question_frequency: float
    follow_up_style: FollowUpStyle
    cues: VerbalCues


PROFESSIONAL = PersonaProfile(
    name="professional",
    title="Professional Officer",
    description="Balanced, methodical interviewer following standard procedures",
    prevalence=40,
    patience="medium",
    interruption_probability=0.1,
    follow_up_frequency=0.4,
    contradiction_detection=True,
    allows_rambling=True,
    rapid_fire_bursts=False,
    min_question_delay=3,
    max_question_delay=6,
    preferred_difficulty="medium",
    pressure_question_frequency=0.2,
    follow_up_style="clarifying",
    cues=VerbalCues(
        positive=("Okay, good.", "I see.", "Understood.", "That makes sense."),
        neutral=("Next question...", "Let me ask you about...", "Moving on...", "Okay."),
        skeptical=("Can you clarify that?", "I need more specific information.", "That seems vague."),
        impatient=("Please be brief.", "Get to the point.", "Time is limited."),
    ),
)

SKEPTICAL = PersonaProfile(
    name="skeptical",
    title="Skeptical Officer",
    description="Questions everything, looking for inconsistencies and red flags",
    prevalence=30,
    patience="medium",
    interruption_probability=0.3,
    follow_up_frequency=0.7,
    contradiction_detection=True,
    allows_rambling=False,
    rapid_fire_bursts=True,
    min_question_delay=2,
    max_question_delay=4,
    preferred_difficulty="hard",
    pressure_question_frequency=0.5,
    follow_up_style="challenging",
    cues=VerbalCues(
        positive=("Hmm, okay.", "I see."),
        neutral=("Tell me more.", "Explain that.", "Go on."),
        skeptical=(
            "I'm not convinced.",
            "That doesn't add up.",
            "Really?",
            "Are you sure about that?",
            "That contradicts what you said earlier.",
            "I need proof.",
            "Show me the documents.",
            "That sounds rehearsed.",
        ),
        impatient=("Answer the question.", "Stop avoiding.", "Be specific.", "Give me numbers."),
    ),
)

FRIENDLY = PersonaProfile(
    name="friendly",
    title="Friendly Officer",
    description="Warm, encouraging interviewer putting candidates at ease",
    prevalence=20,
    patience="high",
    interruption_probability=0.05,
    follow_up_frequency=0.3,
    contradiction_detection=False,
    allows_rambling=True,
    rapid_fire_bursts=False,
    min_question_delay=4,
    max_question_delay=8,
    preferred_difficulty="easy",
    pressure_question_frequency=0.1,
    follow_up_style="supportive",
    cues=VerbalCues(
        positive=(
            "Great!",
            "That's wonderful.",
            "Excellent choice.",
            "Good to hear.",
            "I'm happy for you.",
            "Sounds exciting!",
            "That's impressive.",
        ),
        neutral=("Tell me about...", "I'd like to know...", "Can you share...", "Let's talk about..."),
        skeptical=("Can you help me understand...", "Just to clarify...", "Could you explain a bit more..."),
        impatient=("Let's move forward.",),
    ),
)

STRICT = PersonaProfile(
    name="strict",
    title="Strict Officer",
    description="No-nonsense, demanding officer with high standards",
    prevalence=10,
    patience="low",
    interruption_probability=0.5,
    follow_up_frequency=0.8,
    contradiction_detection=True,
    allows_rambling=False,
    rapid_fire_bursts=True,
    min_question_delay=1,
    max_question_delay=3,
    preferred_difficulty="hard",
    pressure_question_frequency=0.7,
    follow_up_style="challenging",
    cues=VerbalCues(
        positive=("Acceptable.", "Fine."),
        neutral=("Next.", "Continue.", "And?"),
        skeptical=(
            "Not good enough.",
            "Insufficient.",
            "That's unclear.",
            "Wrong answer.",
            "Try again.",
            "Be precise.",
            "I need exact numbers.",
            "That's not what I asked.",
        ),
        impatient=(
            "Hurry up.",
            "I don't have all day.",
            "Answer now.",
            "Stop wasting time.",
            "Get to the point immediately.",
        ),
    ),
)

PERSONAS: dict[str, PersonaProfile] = {
    PROFESSIONAL.name: PROFESSIONAL,
    SKEPTICAL.name: SKEPTICAL,
    FRIENDLY.name: FRIENDLY,
    STRICT.name: STRICT,
}

# timer multipliers; medium patience keeps the baseline durations
_PATIENCE_TIMER_SCALE: dict[str, float] = {"low": 0.8, "medium": 1.0, "high": 1.25}

_DIFFICULTY_BIAS: dict[str, dict[str, int]] = {
    "easy": {"easy": 60, "medium": 30, "hard": 10},
    "medium": {"easy": 25, "medium": 55, "hard": 20},
    "hard": {"easy": 10, "medium": 35, "hard": 55},
}

_FOLLOW_UP_CONTEXT: dict[str, dict[str, str]] = {
    "vague": {
        "clarifying": "The answer was too vague. Ask for specific details, numbers, or examples.",
        "challenging": "The answer was evasive. Push for concrete information and don't accept generalities.",
        "supportive": "The answer needs more detail. Gently encourage them to elaborate with specific information.",
    },
    "contradiction": {
        "clarifying": "There's an inconsistency with earlier statements. Politely point it out and ask for clarification.",
        "challenging": "Earlier they said something different. Directly challenge the contradiction.",
        "supportive": "Help them notice the inconsistency and give them a chance to clarify.",
    },
    "clarification": {
        "clarifying": "Something isn't clear. Ask for more explanation.",
        "challenging": "The explanation is insufficient. Demand better clarity.",
        "supportive": "Ask them to help you understand better.",
    },
    "deep_dive": {
        "clarifying": "Probe deeper into this topic with a related follow-up question.",
        "challenging": "Test their knowledge with a harder follow-up question.",
        "supportive": "Show interest and ask them to share more about this.",
    },
}


class UnknownPersonaError(ValueError):
    pass


def get_persona(name: str) -> PersonaProfile:
    key = str(name or "").strip().lower()
    if key not in PERSONAS:
        raise UnknownPersonaError(f"Unknown persona: {name!r}")
    return PERSONAS[key]


def select_random_persona(rng: random.Random) -> PersonaProfile:
    roll = rng.random() * 100
    cumulative = 0
    for profile in PERSONAS.values():
        cumulative += profile.prevalence
        if roll <= cumulative:
            return profile
    return PROFESSIONAL


def timer_durations(persona: PersonaProfile, hard_baseline: float, silence_baseline: float) -> tuple[float, float]:
    scale = _PATIENCE_TIMER_SCALE.get(persona.patience, 1.0)
    return round(hard_baseline * scale, 3), round(silence_baseline * scale, 3)


def question_delay(persona: PersonaProfile, rng: random.Random, rapid_fire: bool = False) -> int:
    if rapid_fire and persona.rapid_fire_bursts:
        return 1
    return rng.randint(persona.min_question_delay, persona.max_question_delay)


def should_interrupt(persona: PersonaProfile, answer_words: int, answer_seconds: float, rng: random.Random) -> bool:
    if answer_words < 30:
        return False
    if persona.patience == "low" and answer_words > 80:
        return rng.random() < persona.interruption_probability
    if answer_seconds > 45 and not persona.allows_rambling:
        return rng.random() < 0.7
    return rng.random() < persona.interruption_probability


def should_ask_follow_up(persona: PersonaProfile, quality: str, rng: random.Random) -> bool:
    frequency = persona.follow_up_frequency
    if quality in {"vague", "incomplete"}:
        return rng.random() < min(frequency * 1.5, 1.0)
    if quality == "off_topic" and persona.name in {"skeptical", "strict"}:
        return rng.random() < 0.8
    if quality == "good":
        return rng.random() < frequency * 0.5
    return rng.random() < frequency


def should_use_rapid_fire(persona: PersonaProfile, question_number: int, rng: random.Random) -> bool:
    if not persona.rapid_fire_bursts:
        return False
    if question_number > 5 and persona.name in {"strict", "skeptical"}:
        return rng.random() < 0.2
    return False


def verbal_cue(
    persona: PersonaProfile,
    kind: CueKind,
    rng: random.Random,
    quality: str | None = None,
) -> str | None:
    if quality == "vague":
        kind = "skeptical"
    elif quality == "too_long" and persona.patience == "low":
        kind = "impatient"
    elif quality == "good" and persona.name == "friendly":
        kind = "positive"

    cues = getattr(persona.cues, kind, ())
    if not cues:
        return None
    return cues[rng.randrange(len(cues))]


def follow_up_context(persona: PersonaProfile, reason: FollowUpReason) -> str:
    return _FOLLOW_UP_CONTEXT[reason][persona.follow_up_style]


def follow_up_reason(quality: str, consistency: float | None = None) -> FollowUpReason:
    if consistency is not None and consistency < 70:
        return "contradiction"
    if quality == "vague":
        return "vague"
    if quality in {"incomplete", "off_topic"}:
        return "clarification"
    return "deep_dive"


def difficulty_bias(persona: PersonaProfile) -> dict[str, int]:
    return dict(_DIFFICULTY_BIAS[persona.preferred_difficulty])


def describe(persona: PersonaProfile) -> str:
    return f"{persona.title}: {persona.description} ({persona.prevalence}% of real interviews)"
