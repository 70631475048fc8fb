import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Literal

from visa_coach.scoring.feedback import prioritized_improvements, strengths, weaknesses
from visa_coach.scoring.models import ALL_DIMENSIONS, DimensionScoreSet, RankedDimension
from visa_coach.scoring.pipeline import category_rollups
from visa_coach.session.models import InterviewSession

Decision = Literal["accepted", "borderline", "rejected"]

ACCEPT_THRESHOLD = 75
REJECT_THRESHOLD = 55

_SUMMARY_TAIL: dict[str, str] = {
    "accepted": "Strong performance across content, speech, and body language.",
    "rejected": "Significant weaknesses detected in answer quality and delivery.",
    "borderline": "Mixed performance with room for improvement.",
}


@dataclass(frozen=True)
class TimelineItem:
    index: int
    question: str
    category: str
    difficulty: str
    overall: int
    finalize_reason: str | None
    is_follow_up: bool
    heuristic_only: bool


@dataclass(frozen=True)
class SessionReport:
    session_id: str
    candidate_id: str
    persona: str
    mode: str
    decision: Decision
    overall: int
    question_count: int
    dimension_averages: dict[str, float]
    category_averages: dict[str, int]
    topic_averages: dict[str, float]
    summary: str
    strengths: tuple[RankedDimension, ...]
    weaknesses: tuple[RankedDimension, ...]
    improvements: tuple[str, ...]
    heuristic_only: bool
    judge_recommendations: tuple[str, ...]
    timeline: tuple[TimelineItem, ...]
    difficulty: str | None = None
    generated_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


def decision_band(overall: float) -> Decision:
    if overall >= ACCEPT_THRESHOLD:
        return "accepted"
    if overall < REJECT_THRESHOLD:
        return "rejected"
    return "borderline"


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def build_report(session: InterviewSession) -> SessionReport:
    turns = session.scored_turns
    results = [turn.result for turn in turns]

    overall = int(round(_mean([result.overall for result in results])))
    dimension_averages = {
        name: round(_mean([result.dimensions.as_dict()[name] for result in results]), 1)
        for name in ALL_DIMENSIONS
    }
    averaged = DimensionScoreSet(**dimension_averages)
    weak = weaknesses(averaged)

    by_topic: dict[str, list[float]] = {}
    for turn in turns:
        by_topic.setdefault(turn.category, []).append(float(turn.result.overall))
    topic_averages = {topic: round(_mean(values), 1) for topic, values in by_topic.items()}

    decision = decision_band(overall)
    summary = (
        f"Based on detailed per-answer analysis: Average score {overall}/100 "
        f"across {len(results)} questions. {_SUMMARY_TAIL[decision]}"
    )

    judge_recommendations: list[str] = []
    for result in results:
        judged = getattr(result.provenance, "judged", None)
        for item in getattr(judged, "recommendations", ()):
            if item not in judge_recommendations:
                judge_recommendations.append(item)

    difficulties = Counter(turn.difficulty for turn in turns)
    timeline = tuple(
        TimelineItem(
            index=turn.index,
            question=turn.question,
            category=turn.category,
            difficulty=turn.difficulty,
            overall=turn.result.overall,
            finalize_reason=turn.finalize_reason,
            is_follow_up=turn.is_follow_up,
            heuristic_only=turn.result.heuristic_only,
        )
        for turn in turns
    )

    return SessionReport(
        session_id=session.id,
        candidate_id=session.candidate_id,
        persona=session.persona.name,
        mode=session.mode,
        decision=decision,
        overall=overall,
        question_count=len(results),
        dimension_averages=dimension_averages,
        category_averages=category_rollups(averaged).as_dict(),
        topic_averages=topic_averages,
        summary=summary,
        strengths=strengths(averaged),
        weaknesses=weak,
        improvements=prioritized_improvements(weak),
        heuristic_only=all(result.heuristic_only for result in results),
        judge_recommendations=tuple(judge_recommendations[:5]),
        timeline=timeline,
        difficulty=difficulties.most_common(1)[0][0] if difficulties else None,
    )
