from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Literal, Union


CONTENT_DIMENSIONS = ("clarity", "specificity", "relevance", "depth", "consistency")
DELIVERY_DIMENSIONS = ("fluency", "confidence", "pace", "articulation")
NON_VERBAL_DIMENSIONS = ("posture", "eye_contact", "composure")

DIMENSION_GROUPS: dict[str, tuple[str, ...]] = {
    "content": CONTENT_DIMENSIONS,
    "delivery": DELIVERY_DIMENSIONS,
    "non_verbal": NON_VERBAL_DIMENSIONS,
}

ALL_DIMENSIONS = CONTENT_DIMENSIONS + DELIVERY_DIMENSIONS + NON_VERBAL_DIMENSIONS

NO_RESPONSE = "[No response]"

FeedbackBand = Literal["excellent", "good", "needs_improvement", "poor"]
AnswerQuality = Literal["good", "vague", "off_topic", "incomplete"]


@dataclass(frozen=True)
class DimensionScoreSet:
    # content
    clarity: float
    specificity: float
    relevance: float
    depth: float
    consistency: float
    # delivery
    fluency: float
    confidence: float
    pace: float
    articulation: float
    # non-verbal
    posture: float
    eye_contact: float
    composure: float

    def as_dict(self) -> dict[str, float]:
        return {name: float(getattr(self, name)) for name in ALL_DIMENSIONS}

    def ranked(self) -> list[tuple[str, float]]:
        """Dimensions sorted highest first; ties keep declaration order."""
        return sorted(self.as_dict().items(), key=lambda item: -item[1])


@dataclass(frozen=True)
class PriorAnswer:
    text: str
    category: str | None = None


@dataclass(frozen=True)
class ScoringInput:
    question: str
    transcript: str
    category: str | None = None
    body_language_score: float | None = None
    asr_confidence: float | None = None
    duration_seconds: float | None = None


@dataclass(frozen=True)
class JudgedScores:
    """Scores returned by the external judging service for one answer."""
    content: float | None = None
    relevance: float | None = None
    summary: str = ""
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class Heuristic:
    kind: Literal["heuristic"] = "heuristic"


@dataclass(frozen=True)
class HeuristicPlusJudged:
    judged: JudgedScores
    kind: Literal["heuristic_plus_judged"] = "heuristic_plus_judged"


ScoreProvenance = Union[Heuristic, HeuristicPlusJudged]


@dataclass(frozen=True)
class DimensionFeedback:
    dimension: str
    score: float
    band: FeedbackBand
    feedback: str


@dataclass(frozen=True)
class RankedDimension:
    dimension: str
    score: float
    feedback: str


@dataclass(frozen=True)
class CategoryRollup:
    content: int
    delivery: int
    non_verbal: int

    def as_dict(self) -> dict[str, int]:
        return {"content": self.content, "delivery": self.delivery, "non_verbal": self.non_verbal}


@dataclass(frozen=True)
class ScoringResult:
    overall: int
    dimensions: DimensionScoreSet
    categories: CategoryRollup
    strengths: tuple[RankedDimension, ...]
    weaknesses: tuple[RankedDimension, ...]
    prioritized_improvements: tuple[str, ...]
    dimension_feedback: tuple[DimensionFeedback, ...]
    provenance: ScoreProvenance = field(default_factory=Heuristic)

    @property
    def heuristic_only(self) -> bool:
        return isinstance(self.provenance, Heuristic)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["heuristic_only"] = self.heuristic_only
        return payload
