from visa_coach.analytics.achievements import ACHIEVEMENTS, evaluate_achievements, unlocked_at
from visa_coach.analytics.models import (
    Achievement,
    AchievementState,
    AnalyticsDashboard,
    CategoryPerformance,
    OverviewStats,
    ScoreHistoryEntry,
    WeakArea,
)
from visa_coach.analytics.performance_engine import PerformanceEngine

__all__ = [
    "ACHIEVEMENTS",
    "Achievement",
    "AchievementState",
    "AnalyticsDashboard",
    "CategoryPerformance",
    "OverviewStats",
    "PerformanceEngine",
    "ScoreHistoryEntry",
    "WeakArea",
    "evaluate_achievements",
    "unlocked_at",
]
