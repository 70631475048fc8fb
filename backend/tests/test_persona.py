import random
from collections import Counter

import pytest

from visa_coach.persona import (
    FRIENDLY,
    PERSONAS,
    PROFESSIONAL,
    SKEPTICAL,
    STRICT,
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


def test_prevalence_sums_to_hundred():
    assert sum(profile.prevalence for profile in PERSONAS.values()) == 100


def test_get_persona_is_case_insensitive_and_rejects_unknown():
    assert get_persona("Strict") is STRICT
    with pytest.raises(UnknownPersonaError):
        get_persona("bored")


def test_seeded_decisions_are_reproducible():
    def _run(seed: int) -> list:
        rng = random.Random(seed)
        return [
            select_random_persona(rng).name,
            question_delay(SKEPTICAL, rng),
            should_interrupt(SKEPTICAL, 40, 10.0, rng),
            should_ask_follow_up(PROFESSIONAL, "good", rng),
            verbal_cue(STRICT, "impatient", rng),
        ]

    assert _run(11) == _run(11)


def test_random_persona_roughly_follows_prevalence():
    rng = random.Random(3)
    counts = Counter(select_random_persona(rng).name for _ in range(4000))
    assert counts["professional"] > counts["skeptical"] > counts["friendly"] > counts["strict"]


def test_timer_durations_follow_patience():
    assert timer_durations(PROFESSIONAL, 15.0, 3.0) == (15.0, 3.0)
    assert timer_durations(STRICT, 15.0, 3.0) == (12.0, 2.4)
    assert timer_durations(FRIENDLY, 15.0, 3.0) == (18.75, 3.75)


def test_question_delay_bounds_and_rapid_fire():
    rng = random.Random(5)
    delays = {question_delay(FRIENDLY, rng) for _ in range(200)}
    assert delays <= set(range(4, 9))
    assert question_delay(STRICT, rng, rapid_fire=True) == 1
    assert question_delay(FRIENDLY, rng, rapid_fire=True) in range(4, 9)


def test_short_answers_are_never_interrupted():
    rng = random.Random(0)
    assert not any(should_interrupt(STRICT, 29, 100.0, rng) for _ in range(100))


def test_rapid_fire_only_late_for_pressure_personas():
    rng = random.Random(0)
    assert not should_use_rapid_fire(FRIENDLY, 7, rng)
    assert not any(should_use_rapid_fire(STRICT, 3, rng) for _ in range(50))
    assert any(should_use_rapid_fire(STRICT, 6, rng) for _ in range(200))


def test_vague_answers_get_skeptical_cues():
    rng = random.Random(1)
    cue = verbal_cue(SKEPTICAL, "neutral", rng, quality="vague")
    assert cue in SKEPTICAL.cues.skeptical

    friendly = verbal_cue(FRIENDLY, "neutral", rng, quality="good")
    assert friendly in FRIENDLY.cues.positive


def test_follow_up_reason_prefers_contradiction():
    assert follow_up_reason("good", consistency=65) == "contradiction"
    assert follow_up_reason("vague") == "vague"
    assert follow_up_reason("incomplete") == "clarification"
    assert follow_up_reason("good", consistency=85) == "deep_dive"
    assert "Directly challenge" in follow_up_context(STRICT, "contradiction")


def test_difficulty_bias_is_a_copy():
    weights = difficulty_bias(FRIENDLY)
    weights["easy"] = 0
    assert difficulty_bias(FRIENDLY)["easy"] == 60


def test_describe_mentions_prevalence():
    assert describe(STRICT) == "Strict Officer: No-nonsense, demanding officer with high standards (10% of real interviews)"
