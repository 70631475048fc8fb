from visa_coach.scoring.dimensions import DIMENSION_WEIGHTS, compute_dimensions
from visa_coach.scoring.models import (
    ALL_DIMENSIONS,
    DIMENSION_GROUPS,
    NO_RESPONSE,
    DimensionScoreSet,
    Heuristic,
    HeuristicPlusJudged,
    JudgedScores,
    PriorAnswer,
    ScoreProvenance,
    ScoringInput,
    ScoringResult,
)
from visa_coach.scoring.pipeline import (
    category_rollups,
    classify_answer_quality,
    score_answer,
    weighted_overall,
)

__all__ = [
    "ALL_DIMENSIONS",
    "DIMENSION_GROUPS",
    "DIMENSION_WEIGHTS",
    "NO_RESPONSE",
    "DimensionScoreSet",
    "Heuristic",
    "HeuristicPlusJudged",
    "JudgedScores",
    "PriorAnswer",
    "ScoreProvenance",
    "ScoringInput",
    "ScoringResult",
    "category_rollups",
    "classify_answer_quality",
    "compute_dimensions",
    "score_answer",
    "weighted_overall",
]
