from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping


Tier = Literal["bronze", "silver", "gold", "diamond"]
AchievementCategory = Literal["milestone", "score", "improvement", "mastery", "consistency", "mode"]
Trend = Literal["improving", "stable", "declining"]
Severity = Literal["critical", "high", "medium", "low"]


def _safe_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ScoreHistoryEntry:
    timestamp: float
    score: float
    category_scores: Mapping[str, float] | None = None
    mode: str = "standard"
    completed: bool = True
    difficulty: str | None = None
    question_count: int = 0
    session_id: str | None = None

    def __post_init__(self):
        # entries are append-only; freeze the per-category map as well
        if self.category_scores is not None:
            object.__setattr__(self, "category_scores", MappingProxyType(dict(self.category_scores)))

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "score": self.score,
            "category_scores": dict(self.category_scores) if self.category_scores else None,
            "mode": self.mode,
            "completed": self.completed,
            "difficulty": self.difficulty,
            "question_count": self.question_count,
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ScoreHistoryEntry":
        raw_categories = payload.get("category_scores")
        categories = None
        if isinstance(raw_categories, dict):
            categories = {str(key): _safe_float(value) for key, value in raw_categories.items()}
        return cls(
            timestamp=_safe_float(payload.get("timestamp")),
            score=_safe_float(payload.get("score")),
            category_scores=categories,
            mode=str(payload.get("mode") or "standard"),
            completed=bool(payload.get("completed", True)),
            difficulty=payload.get("difficulty"),
            question_count=int(_safe_float(payload.get("question_count"))),
            session_id=payload.get("session_id"),
        )


History = list[ScoreHistoryEntry]


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    category: AchievementCategory
    tier: Tier
    requirement: str
    predicate: Callable[[History], bool] = field(repr=False, compare=False)
    progress: Callable[[History], float] = field(repr=False, compare=False)


@dataclass(frozen=True)
class AchievementState:
    id: str
    name: str
    description: str
    category: str
    tier: str
    requirement: str
    unlocked: bool
    progress: float
    unlocked_at: float | None = None


@dataclass(frozen=True)
class OverviewStats:
    total_interviews: int = 0
    attempted_interviews: int = 0
    average_score: float = 0.0
    highest_score: float = 0.0
    lowest_score: float = 0.0
    completion_rate: float = 0.0
    improvement_trend: float = 0.0
    improvement_rate: float = 0.0
    trend: Trend = "stable"


@dataclass(frozen=True)
class CategoryPerformance:
    category: str
    label: str
    average_score: float
    attempts: int
    trend: Trend
    trend_percentage: float
    last_score: float
    best_score: float
    worst_score: float


@dataclass(frozen=True)
class WeakArea:
    category: str
    average_score: float
    severity: Severity
    improvement_potential: float
    issues: tuple[str, ...]
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: float
    score: float
    mode: str
    difficulty: str | None
    question_count: int
    category_scores: dict[str, float] | None


@dataclass(frozen=True)
class AnalyticsDashboard:
    overview: OverviewStats
    category_performance: tuple[CategoryPerformance, ...]
    weak_areas: tuple[WeakArea, ...]
    score_history: tuple[HistoryPoint, ...]
    achievements: tuple[AchievementState, ...]
    next_steps: tuple[str, ...]
