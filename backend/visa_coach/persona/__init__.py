from visa_coach.persona.engine import (
    FRIENDLY,
    PERSONAS,
    PROFESSIONAL,
    SKEPTICAL,
    STRICT,
    PersonaProfile,
    UnknownPersonaError,
    describe,
    difficulty_bias,
    follow_up_context,
    follow_up_reason,
    get_persona,
    question_delay,
    select_random_persona,
    should_ask_follow_up,
    should_interrupt,
    should_use_rapid_fire,
    timer_durations,
    verbal_cue,
)

__all__ = [
    "FRIENDLY",
    "PERSONAS",
    "PROFESSIONAL",
    "SKEPTICAL",
    "STRICT",
    "PersonaProfile",
    "UnknownPersonaError",
    "describe",
    "difficulty_bias",
    "follow_up_context",
    "follow_up_reason",
    "get_persona",
    "question_delay",
    "select_random_persona",
    "should_ask_follow_up",
    "should_interrupt",
    "should_use_rapid_fire",
    "timer_durations",
    "verbal_cue",
]
