"""
Achievement catalog.

Every predicate and progress function is computed from cumulative quantities of
the completed history (counts, best scores, max-minus-first deltas, longest
streaks, best running averages), so appending entries never lowers them.
"""

from visa_coach.analytics.models import Achievement, AchievementState, History, ScoreHistoryEntry

INTERVIEW_MODES = ("standard", "comprehensive", "stress_test")


def completed_entries(history: History) -> History:
    return [entry for entry in history if entry.completed]


def category_score(entry: ScoreHistoryEntry, category: str) -> float:
    if entry.category_scores and category in entry.category_scores:
        return float(entry.category_scores[category])
    return float(entry.score)


def _scores(history: History) -> list[float]:
    return [float(entry.score) for entry in completed_entries(history)]


def _best(history: History, mode: str | None = None) -> float | None:
    scores = [
        float(entry.score)
        for entry in completed_entries(history)
        if mode is None or entry.mode == mode
    ]
    return max(scores) if scores else None


def _improvement(history: History) -> float:
    scores = _scores(history)
    if len(scores) < 2:
        return 0.0
    return max(scores) - scores[0]


def _best_running_average(history: History, category: str) -> float:
    best = 0.0
    total = 0.0
    for count, entry in enumerate(completed_entries(history), start=1):
        total += category_score(entry, category)
        best = max(best, total / count)
    return best


def _longest_streak(history: History, threshold: float) -> int:
    longest = 0
    current = 0
    for score in _scores(history):
        current = current + 1 if score >= threshold else 0
        longest = max(longest, current)
    return longest


def _ratio(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return max(0.0, min(100.0, value / target * 100.0))


def _count(target: int):
    return (
        lambda history: len(completed_entries(history)) >= target,
        lambda history: _ratio(len(completed_entries(history)), target),
    )


def _score(threshold: float, mode: str | None = None):
    def predicate(history: History) -> bool:
        best = _best(history, mode)
        return best is not None and best >= threshold

    def progress(history: History) -> float:
        best = _best(history, mode)
        return _ratio(best, threshold) if best is not None else 0.0

    return predicate, progress


def _improved(points: float):
    return (
        lambda history: _improvement(history) >= points,
        lambda history: _ratio(_improvement(history), points),
    )


def _mastery(category: str, threshold: float = 85.0):
    return (
        lambda history: _best_running_average(history, category) >= threshold,
        lambda history: _ratio(_best_running_average(history, category), threshold),
    )


def _streak(length: int, threshold: float):
    return (
        lambda history: _longest_streak(history, threshold) >= length,
        lambda history: _ratio(_longest_streak(history, threshold), length),
    )


def _completed_mode(mode: str):
    def predicate(history: History) -> bool:
        return any(entry.mode == mode for entry in completed_entries(history))

    return predicate, lambda history: 100.0 if predicate(history) else 0.0


def _all_modes(threshold: float):
    def mastered(history: History) -> int:
        return sum(
            1
            for mode in INTERVIEW_MODES
            if (_best(history, mode) or 0.0) >= threshold
        )

    return (
        lambda history: mastered(history) == len(INTERVIEW_MODES),
        lambda history: _ratio(mastered(history), len(INTERVIEW_MODES)),
    )


def _achievement(id, name, description, category, tier, requirement, rules) -> Achievement:
    predicate, progress = rules
    return Achievement(
        id=id,
        name=name,
        description=description,
        category=category,
        tier=tier,
        requirement=requirement,
        predicate=predicate,
        progress=progress,
    )


ACHIEVEMENTS: tuple[Achievement, ...] = (
    _achievement("first_interview", "First Steps", "Complete your first interview", "milestone", "bronze", "Complete 1 interview", _count(1)),
    _achievement("practice_warrior", "Practice Warrior", "Complete 5 practice sessions", "milestone", "bronze", "Complete 5 interviews", _count(5)),
    _achievement("dedicated_learner", "Dedicated Learner", "Complete 10 interview sessions", "milestone", "silver", "Complete 10 interviews", _count(10)),
    _achievement("interview_master", "Interview Master", "Complete 25 interview sessions", "milestone", "gold", "Complete 25 interviews", _count(25)),
    _achievement("interview_legend", "Interview Legend", "Complete 50 interview sessions", "milestone", "diamond", "Complete 50 interviews", _count(50)),
    _achievement("good_start", "Good Start", "Score above 70 in any interview", "score", "bronze", "Score 70+ points", _score(70)),
    _achievement("solid_performance", "Solid Performance", "Score above 80 in any interview", "score", "silver", "Score 80+ points", _score(80)),
    _achievement("excellent_interview", "Excellent Interview", "Score above 90 in any interview", "score", "gold", "Score 90+ points", _score(90)),
    _achievement("perfect_score", "Perfect Score", "Achieve a score of 95 or higher", "score", "diamond", "Score 95+ points", _score(95)),
    _achievement("improving", "On the Rise", "Improve your score by 10 points", "improvement", "bronze", "Improve by 10+ points", _improved(10)),
    _achievement("breakthrough", "Breakthrough", "Improve your score by 20 points", "improvement", "silver", "Improve by 20+ points", _improved(20)),
    _achievement("transformation", "Transformation", "Improve your score by 30 points", "improvement", "gold", "Improve by 30+ points", _improved(30)),
    _achievement("financial_expert", "Financial Expert", "Average 85+ on financial questions", "mastery", "gold", "Average 85+ in Financial category", _mastery("financial")),
    _achievement("academic_ace", "Academic Ace", "Average 85+ on academic questions", "mastery", "gold", "Average 85+ in Academic category", _mastery("academic")),
    _achievement("intent_champion", "Intent Champion", "Average 85+ on return intent questions", "mastery", "gold", "Average 85+ in Post-Study category", _mastery("post_study")),
    _achievement("consistent_performer", "Consistent Performer", "Score above 75 in 5 consecutive interviews", "consistency", "silver", "Score 75+ in 5 consecutive interviews", _streak(5, 75)),
    _achievement("rock_solid", "Rock Solid", "Score above 80 in 10 consecutive interviews", "consistency", "gold", "Score 80+ in 10 consecutive interviews", _streak(10, 80)),
    _achievement("stress_tested", "Stress Tested", "Complete a Stress Test mode interview", "mode", "silver", "Complete Stress Test mode", _completed_mode("stress_test")),
    _achievement("stress_master", "Stress Master", "Score 80+ in Stress Test mode", "mode", "gold", "Score 80+ in Stress Test", _score(80, mode="stress_test")),
    _achievement("comprehensive_champion", "Comprehensive Champion", "Score 85+ in Comprehensive mode", "mode", "gold", "Score 85+ in Comprehensive", _score(85, mode="comprehensive")),
    _achievement("all_rounder", "All-Rounder", "Score 80+ in all interview modes", "mode", "diamond", "Score 80+ in all modes", _all_modes(80)),
)


def unlocked_at(achievement: Achievement, history: History) -> float | None:
    """Timestamp of the entry that closes the shortest prefix satisfying the predicate."""
    for end in range(1, len(history) + 1):
        prefix = history[:end]
        if achievement.predicate(prefix):
            return prefix[-1].timestamp
    return None


def evaluate_achievements(history: History) -> tuple[AchievementState, ...]:
    entries = list(history)
    states = []
    for achievement in ACHIEVEMENTS:
        unlocked = achievement.predicate(entries)
        states.append(
            AchievementState(
                id=achievement.id,
                name=achievement.name,
                description=achievement.description,
                category=achievement.category,
                tier=achievement.tier,
                requirement=achievement.requirement,
                unlocked=unlocked,
                progress=100.0 if unlocked else float(round(achievement.progress(entries))),
                unlocked_at=unlocked_at(achievement, entries) if unlocked else None,
            )
        )
    return tuple(sorted(states, key=lambda state: (not state.unlocked, -state.progress)))
