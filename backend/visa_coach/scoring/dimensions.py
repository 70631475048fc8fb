"""
Twelve independent answer dimensions.

Every function is deterministic and returns a value clamped to [0, 100].
Content weights sum to 0.60, delivery to 0.25, non-verbal to 0.15.
"""
import re

from visa_coach.scoring.models import DimensionScoreSet, JudgedScores, PriorAnswer, ScoringInput
from visa_coach.scoring.text_metrics import (
    ARTICULATION_FILLER_PATTERN,
    extract_numbers,
    filler_rate,
    sentence_count,
    word_count,
    words_per_minute,
)


DIMENSION_WEIGHTS: dict[str, float] = {
    "clarity": 0.12,
    "specificity": 0.13,
    "relevance": 0.13,
    "depth": 0.11,
    "consistency": 0.11,
    "fluency": 0.07,
    "confidence": 0.07,
    "pace": 0.05,
    "articulation": 0.06,
    "posture": 0.05,
    "eye_contact": 0.05,
    "composure": 0.05,
}

_MONTHS = "january|february|march|april|may|june|july|august|september|october|november|december"

_DIGITS = re.compile(r"\d+")
_DOLLARS = re.compile(r"\$\s*\d+|\d+\s*(dollar|usd)", re.IGNORECASE)
_PROPER_NAME = re.compile(r"[A-Z][a-z]+\s+[A-Z][a-z]+")
_PERCENT = re.compile(r"\d+\s*%")
_DATE = re.compile(rf"\b({_MONTHS}|\d{{4}})\b", re.IGNORECASE)
_VAGUE = re.compile(r"\b(maybe|probably|i think|i guess|kind of|sort of|around|approximately)\b", re.IGNORECASE)

_EXAMPLE_MARKERS = re.compile(r"\b(for example|such as|like|specifically)\b", re.IGNORECASE)
_REASONING_MARKERS = re.compile(r"\b(because|since|due to|reason|therefore)\b", re.IGNORECASE)
_COMPARISON_MARKERS = re.compile(r"\b(compared to|versus|rather than|instead of)\b", re.IGNORECASE)
_CONTEXT_MARKERS = re.compile(r"\b(background|experience|previously|history)\b", re.IGNORECASE)

_QUESTION_STOPWORDS = {"what", "where", "when", "which", "would", "could", "should"}


def _clamp(value: float, minimum: float = 0.0, maximum: float = 100.0) -> float:
    return max(minimum, min(maximum, float(value)))


def _as_percent(value: float) -> float:
    value = float(value)
    return value if value > 1 else value * 100.0


# ---------- content ----------

def clarity_score(answer: str, judged_content: float | None = None) -> float:
    words = word_count(answer)
    if words < 10:
        return 20.0

    score = float(judged_content) if judged_content is not None else 50.0
    if sentence_count(answer) >= 2:
        score += 10

    rate = filler_rate(answer)
    if rate > 0.10:
        score -= 20
    elif rate > 0.05:
        score -= 10
    return _clamp(score)


def specificity_score(answer: str) -> float:
    text = str(answer or "")
    score = 50.0
    if _DIGITS.search(text):
        score += 15
    if _DOLLARS.search(text):
        score += 15
    if _PROPER_NAME.search(text):
        score += 10
    if _PERCENT.search(text):
        score += 5
    if _DATE.search(text):
        score += 5

    vague_hits = len(_VAGUE.findall(text))
    if vague_hits > 2:
        score -= 15
    elif vague_hits > 0:
        score -= 5
    return _clamp(score)


def question_keywords(question: str) -> list[str]:
    cleaned = re.sub(r"[^a-z\s]", "", str(question or "").lower())
    return [word for word in cleaned.split() if len(word) > 4 and word not in _QUESTION_STOPWORDS]


def relevance_score(question: str, answer: str, judged_relevance: float | None = None) -> float:
    if judged_relevance is not None:
        return _clamp(judged_relevance)

    keywords = question_keywords(question)
    answer_lower = str(answer or "").lower()
    if keywords:
        match_rate = sum(1 for word in keywords if word in answer_lower) / len(keywords)
    else:
        match_rate = 0.5

    base = match_rate * 100.0
    if word_count(answer) < 15:
        return _clamp(min(base, 60.0))
    return _clamp(base, 30.0, 100.0)


def depth_score(answer: str) -> float:
    text = str(answer or "")
    words = word_count(text)

    score = 40.0
    if words >= 30:
        score += 20
    if words >= 50:
        score += 20
    if words >= 80:
        score += 10
    if words > 120:
        score -= 10

    if _EXAMPLE_MARKERS.search(text):
        score += 10
    if _REASONING_MARKERS.search(text):
        score += 10
    if _COMPARISON_MARKERS.search(text):
        score += 5
    if _CONTEXT_MARKERS.search(text):
        score += 5
    return _clamp(score)


def _numbers_agree(current: float, previous: float) -> bool:
    largest = max(abs(current), abs(previous))
    if largest == 0:
        return True
    return abs(current - previous) / largest < 0.1


def consistency_score(answer: str, prior_answers: list[PriorAnswer], category: str | None = None) -> float:
    relevant = [
        prior.text
        for prior in prior_answers
        if category is None or prior.category is None or prior.category == category
    ]
    if not relevant:
        return 85.0

    score = 85.0
    current_numbers = extract_numbers(answer)
    previous_numbers = extract_numbers(" ".join(relevant))
    if current_numbers and previous_numbers:
        has_match = any(_numbers_agree(cn, pn) for cn in current_numbers for pn in previous_numbers)
        if not has_match and current_numbers[0] > 1000:
            score -= 20
    return _clamp(score)


# ---------- delivery ----------

def fluency_score(words: int, duration_seconds: float | None) -> float:
    if duration_seconds is not None and duration_seconds <= 0:
        return 50.0

    wpm = words_per_minute(words, duration_seconds)
    if 120 <= wpm <= 160:
        return 90.0
    if 100 <= wpm <= 180:
        return 75.0
    if 80 <= wpm <= 200:
        return 60.0
    if wpm < 80:
        return _clamp(max(40.0, wpm / 2))
    return _clamp(max(30.0, 60.0 - (wpm - 200) / 2))


def confidence_score(asr_confidence: float | None) -> float:
    if asr_confidence is None:
        return 70.0
    return _clamp(_as_percent(asr_confidence), 30.0, 100.0)


def pace_score(wpm: float) -> float:
    if 120 <= wpm <= 160:
        return 95.0
    if 100 <= wpm <= 180:
        return 80.0
    if 80 <= wpm <= 200:
        return 65.0
    if wpm < 60:
        return 40.0
    if wpm > 220:
        return 35.0
    if wpm < 80:
        return _clamp(50 + (wpm - 60) / 2)
    return _clamp(65 - (wpm - 200) / 4)


def articulation_score(answer: str, asr_confidence: float | None = None) -> float:
    rate = filler_rate(answer, ARTICULATION_FILLER_PATTERN)
    score = _as_percent(asr_confidence) if asr_confidence is not None else 70.0

    if rate < 0.03:
        score += 10
    elif rate < 0.05:
        pass
    elif rate < 0.10:
        score -= 15
    else:
        score -= 30
    return _clamp(score)


# ---------- non-verbal ----------

def posture_score(body_language_score: float | None) -> float:
    if body_language_score is None:
        return 70.0
    return _clamp(body_language_score, 30.0, 100.0)


def eye_contact_score(body_language_score: float | None) -> float:
    if body_language_score is None:
        return 70.0
    return _clamp(body_language_score, 30.0, 100.0)


def composure_score(body_language_score: float | None, rate: float | None = None) -> float:
    score = float(body_language_score) if body_language_score is not None else 75.0
    if rate is not None:
        if rate > 0.10:
            score -= 20
        elif rate > 0.05:
            score -= 10
    return _clamp(score)


def compute_dimensions(
    scoring_input: ScoringInput,
    prior_answers: list[PriorAnswer] | None = None,
    judged: JudgedScores | None = None,
) -> DimensionScoreSet:
    answer = scoring_input.transcript
    words = word_count(answer)
    wpm = words_per_minute(words, scoring_input.duration_seconds)
    rate = filler_rate(answer)

    judged_content = judged.content if judged is not None else None
    judged_relevance = judged.relevance if judged is not None else None

    return DimensionScoreSet(
        clarity=round(clarity_score(answer, judged_content), 1),
        specificity=round(specificity_score(answer), 1),
        relevance=round(relevance_score(scoring_input.question, answer, judged_relevance), 1),
        depth=round(depth_score(answer), 1),
        consistency=round(consistency_score(answer, list(prior_answers or []), scoring_input.category), 1),
        fluency=round(fluency_score(words, scoring_input.duration_seconds), 1),
        confidence=round(confidence_score(scoring_input.asr_confidence), 1),
        pace=round(pace_score(wpm), 1),
        articulation=round(articulation_score(answer, scoring_input.asr_confidence), 1),
        posture=round(posture_score(scoring_input.body_language_score), 1),
        eye_contact=round(eye_contact_score(scoring_input.body_language_score), 1),
        composure=round(composure_score(scoring_input.body_language_score, rate), 1),
    )
