import math

from visa_coach.scoring.dimensions import DIMENSION_WEIGHTS, compute_dimensions
from visa_coach.scoring.feedback import all_feedback, prioritized_improvements, strengths, weaknesses
from visa_coach.scoring.models import (
    DIMENSION_GROUPS,
    NO_RESPONSE,
    AnswerQuality,
    CategoryRollup,
    DimensionScoreSet,
    Heuristic,
    HeuristicPlusJudged,
    JudgedScores,
    PriorAnswer,
    ScoringInput,
    ScoringResult,
)
from visa_coach.scoring.text_metrics import word_count


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def weighted_overall(dimensions: DimensionScoreSet) -> int:
    values = dimensions.as_dict()
    total = sum(values[name] * weight for name, weight in DIMENSION_WEIGHTS.items())
    return max(0, min(100, _round_half_up(total)))


def category_rollups(dimensions: DimensionScoreSet) -> CategoryRollup:
    values = dimensions.as_dict()
    averages = {
        group: _round_half_up(sum(values[name] for name in names) / len(names))
        for group, names in DIMENSION_GROUPS.items()
    }
    return CategoryRollup(
        content=averages["content"],
        delivery=averages["delivery"],
        non_verbal=averages["non_verbal"],
    )


def score_answer(
    scoring_input: ScoringInput,
    prior_answers: list[PriorAnswer] | None = None,
    judged: JudgedScores | None = None,
) -> ScoringResult:
    """
    Score one finalized answer.

    Pure: identical inputs always produce an equal result. ``judged`` is the
    advisory judging-service output; when it is None (service disabled, failed
    or timed out) content and relevance fall back to local heuristics and the
    result is tagged as heuristic-only.
    """
    transcript = str(scoring_input.transcript or "").strip() or NO_RESPONSE
    if transcript != scoring_input.transcript:
        scoring_input = ScoringInput(
            question=scoring_input.question,
            transcript=transcript,
            category=scoring_input.category,
            body_language_score=scoring_input.body_language_score,
            asr_confidence=scoring_input.asr_confidence,
            duration_seconds=scoring_input.duration_seconds,
        )

    dimensions = compute_dimensions(scoring_input, prior_answers, judged)
    weak = weaknesses(dimensions)
    provenance = HeuristicPlusJudged(judged=judged) if judged is not None else Heuristic()

    return ScoringResult(
        overall=weighted_overall(dimensions),
        dimensions=dimensions,
        categories=category_rollups(dimensions),
        strengths=strengths(dimensions),
        weaknesses=weak,
        prioritized_improvements=prioritized_improvements(weak),
        dimension_feedback=all_feedback(dimensions),
        provenance=provenance,
    )


def classify_answer_quality(transcript: str, result: ScoringResult) -> AnswerQuality:
    text = str(transcript or "").strip()
    if not text or text == NO_RESPONSE or word_count(text) < 10:
        return "incomplete"

    dims = result.dimensions
    if dims.relevance < 40:
        return "off_topic"
    if dims.specificity < 55 or dims.clarity < 50:
        return "vague"
    return "good"
