from dataclasses import dataclass

from visa_coach.analytics.achievements import category_score, completed_entries, evaluate_achievements
from visa_coach.analytics.models import (
    AchievementState,
    AnalyticsDashboard,
    CategoryPerformance,
    History,
    HistoryPoint,
    OverviewStats,
    WeakArea,
)

DEFAULT_CATEGORIES = ("financial", "academic", "post_study", "personal")
TREND_THRESHOLD_PCT = 5.0
WEAK_AREA_THRESHOLD = 75.0
MAX_NEXT_STEPS = 5

_SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}

_CATEGORY_ISSUES = {
    "financial": "May lack specific dollar amounts or sponsor details",
    "academic": "May need more specific program details or course names",
    "post_study": "Return intent may seem unclear or unconvincing",
}

_CATEGORY_RECOMMENDATIONS = {
    "financial": (
        "Practice stating exact dollar amounts for all costs",
        "Memorize sponsor's occupation and annual income",
        "Prepare to explain source of all funds with evidence",
    ),
    "academic": (
        "Research specific courses and professors in your program",
        "Connect your program choice to clear career goals",
        "Practice explaining why US education is necessary",
    ),
    "post_study": (
        "Name specific companies or positions in your home country",
        "Highlight family and property ties to your home country",
        "Avoid mentioning the US job market or salaries",
    ),
}


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _pct_change(new: float, base: float) -> float:
    if base == 0:
        return 0.0
    return (new - base) / base * 100.0


def _classify(change_pct: float) -> str:
    if change_pct > TREND_THRESHOLD_PCT:
        return "improving"
    if change_pct < -TREND_THRESHOLD_PCT:
        return "declining"
    return "stable"


def _label(category: str) -> str:
    return category.replace("_", " ").title()


@dataclass
class OverviewCalculator:
    def compute(self, history: History) -> OverviewStats:
        if not history:
            return OverviewStats()

        completed = completed_entries(history)
        scores = [float(entry.score) for entry in completed]
        if not scores:
            return OverviewStats(attempted_interviews=len(history))

        change = 0.0
        delta = 0.0
        if len(scores) >= 4:
            first, last = _mean(scores[:3]), _mean(scores[-3:])
            change, delta = _pct_change(last, first), last - first
        elif len(scores) >= 2:
            change, delta = _pct_change(scores[-1], scores[0]), scores[-1] - scores[0]

        return OverviewStats(
            total_interviews=len(completed),
            attempted_interviews=len(history),
            average_score=round(_mean(scores), 1),
            highest_score=max(scores),
            lowest_score=min(scores),
            completion_rate=round(len(completed) / len(history) * 100.0, 1),
            improvement_trend=round(change, 1),
            improvement_rate=round(delta / len(completed), 1),
            trend=_classify(change),
        )


@dataclass
class CategoryAnalyzer:
    def categories(self, history: History) -> list[str]:
        found: list[str] = []
        for entry in completed_entries(history):
            for key in entry.category_scores or {}:
                if key not in found:
                    found.append(key)
        return found or list(DEFAULT_CATEGORIES)

    def analyze(self, history: History) -> list[CategoryPerformance]:
        completed = completed_entries(history)
        if not completed:
            return []

        performance = []
        for category in self.categories(history):
            scores = [category_score(entry, category) for entry in completed]
            change = 0.0
            if len(scores) >= 2:
                change = _pct_change(_mean(scores[-3:]), _mean(scores[:3]))
            performance.append(
                CategoryPerformance(
                    category=category,
                    label=_label(category),
                    average_score=round(_mean(scores), 1),
                    attempts=len(scores),
                    trend=_classify(change),
                    trend_percentage=round(change, 1),
                    last_score=scores[-1],
                    best_score=max(scores),
                    worst_score=min(scores),
                )
            )
        return sorted(performance, key=lambda item: item.average_score)


@dataclass
class WeakAreaDetector:
    def severity(self, average: float) -> str:
        if average < 50:
            return "critical"
        if average < 60:
            return "high"
        if average < 70:
            return "medium"
        return "low"

    def issues(self, item: CategoryPerformance) -> tuple[str, ...]:
        issues = []
        if item.trend == "declining":
            issues.append(f"Performance declining by {abs(round(item.trend_percentage))}%")
        if item.average_score < 60:
            issues.append("Consistently low scores indicate fundamental gaps")
        if item.worst_score < 40:
            issues.append("Some answers scored critically low")
        if item.category in _CATEGORY_ISSUES:
            issues.append(_CATEGORY_ISSUES[item.category])
        return tuple(issues)

    def recommendations(self, item: CategoryPerformance) -> tuple[str, ...]:
        recommendations = list(_CATEGORY_RECOMMENDATIONS.get(item.category, ()))
        if item.trend == "declining":
            recommendations.append("Take a targeted practice drill focused on this category")
        if item.average_score < 60:
            recommendations.append("Study model answers for this category")
            recommendations.append("Practice daily with 5-10 questions in this area")
        return tuple(recommendations)

    def detect(self, performance: list[CategoryPerformance]) -> list[WeakArea]:
        weak = [
            WeakArea(
                category=item.category,
                average_score=item.average_score,
                severity=self.severity(item.average_score),
                improvement_potential=round(100.0 - item.average_score, 1),
                issues=self.issues(item),
                recommendations=self.recommendations(item),
            )
            for item in performance
            if item.average_score < WEAK_AREA_THRESHOLD
        ]
        return sorted(weak, key=lambda area: (_SEVERITY_ORDER[area.severity], -area.improvement_potential))


@dataclass
class NextStepPlanner:
    def plan(
        self,
        overview: OverviewStats,
        weak_areas: list[WeakArea],
        achievements: tuple[AchievementState, ...],
    ) -> list[str]:
        steps = []
        total = overview.total_interviews

        if total == 0:
            steps.append("Start your first interview to establish a baseline")
        elif total < 5:
            steps.append(f"Complete {5 - total} more interview(s) to unlock detailed analytics")

        if overview.average_score < 60:
            steps.append("Focus on fundamentals: practice in Easy mode to build confidence")
        elif overview.average_score < 75:
            steps.append("Your foundation is solid. Move to Medium difficulty for more realistic practice")
        elif overview.average_score < 85:
            steps.append("You're performing well! Challenge yourself with Hard or Comprehensive mode")
        else:
            steps.append("Excellent progress! Try Stress Test mode to prepare for worst-case scenarios")

        if weak_areas:
            steps.append(f"Take a topic drill focused on {_label(weak_areas[0].category)} to address your weakest area")

        if total >= 3:
            if overview.improvement_trend > 15:
                steps.append("Great momentum! Keep practicing to maintain your improvement trajectory")
            elif overview.improvement_trend < -10:
                steps.append("Recent scores are declining. Review your past feedback and focus on weak areas")
            elif overview.improvement_trend < 5 and total >= 10:
                steps.append("You've plateaued. Try a different interview mode or increase difficulty")

        upcoming = next((item for item in achievements if not item.unlocked and item.progress > 50), None)
        if upcoming is not None:
            steps.append(f"You're {round(100 - upcoming.progress)}% away from unlocking \"{upcoming.name}\"")

        if total >= 5:
            steps.append("Practice with different officer personas to prepare for any interviewer style")

        return steps[:MAX_NEXT_STEPS]


class PerformanceEngine:
    """Builds the candidate dashboard from the full score history."""

    def __init__(self):
        self.overview = OverviewCalculator()
        self.categories = CategoryAnalyzer()
        self.weak_areas = WeakAreaDetector()
        self.next_steps = NextStepPlanner()

    def score_history(self, history: History) -> tuple[HistoryPoint, ...]:
        points = [
            HistoryPoint(
                timestamp=entry.timestamp,
                score=float(entry.score),
                mode=entry.mode,
                difficulty=entry.difficulty,
                question_count=entry.question_count,
                category_scores=dict(entry.category_scores) if entry.category_scores else None,
            )
            for entry in completed_entries(history)
        ]
        return tuple(sorted(points, key=lambda point: point.timestamp))

    def build(self, history: History) -> AnalyticsDashboard:
        entries = list(history or [])
        overview = self.overview.compute(entries)
        performance = self.categories.analyze(entries)
        weak = self.weak_areas.detect(performance)
        achievements = evaluate_achievements(entries)
        return AnalyticsDashboard(
            overview=overview,
            category_performance=tuple(performance),
            weak_areas=tuple(weak),
            score_history=self.score_history(entries),
            achievements=achievements,
            next_steps=tuple(self.next_steps.plan(overview, weak, achievements)),
        )
