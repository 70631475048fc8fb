import pytest

from visa_coach.analytics import PerformanceEngine, ScoreHistoryEntry
from visa_coach.analytics.achievements import ACHIEVEMENTS, evaluate_achievements


def _history(scores, start: float = 1_000.0, **kwargs) -> list[ScoreHistoryEntry]:
    return [
        ScoreHistoryEntry(timestamp=start + index, score=float(score), **kwargs)
        for index, score in enumerate(scores)
    ]


def _states(history) -> dict:
    return {state.id: state for state in evaluate_achievements(history)}


@pytest.fixture
def engine() -> PerformanceEngine:
    return PerformanceEngine()


def test_rising_scores_show_improving_trend_and_unlock_breakthrough(engine):
    history = _history([40, 45, 50, 85, 90, 92])
    dashboard = engine.build(history)

    assert dashboard.overview.trend == "improving"
    assert dashboard.overview.improvement_trend == pytest.approx(97.8)
    assert dashboard.overview.highest_score == 92.0
    assert dashboard.overview.lowest_score == 40.0

    states = _states(history)
    assert states["breakthrough"].unlocked is True
    assert states["breakthrough"].unlocked_at == history[3].timestamp
    assert states["transformation"].unlocked is True
    assert states["excellent_interview"].unlocked is True
    assert states["perfect_score"].unlocked is False


def test_empty_history_yields_neutral_dashboard(engine):
    dashboard = engine.build([])

    assert dashboard.overview.total_interviews == 0
    assert dashboard.overview.average_score == 0.0
    assert dashboard.overview.trend == "stable"
    assert dashboard.category_performance == ()
    assert dashboard.weak_areas == ()
    assert dashboard.score_history == ()
    assert len(dashboard.achievements) == len(ACHIEVEMENTS)
    assert not any(state.unlocked for state in dashboard.achievements)
    assert dashboard.next_steps[0] == "Start your first interview to establish a baseline"


def test_single_entry_history_has_no_trend(engine):
    dashboard = engine.build(_history([70]))

    assert dashboard.overview.total_interviews == 1
    assert dashboard.overview.average_score == 70.0
    assert dashboard.overview.improvement_trend == 0.0
    assert dashboard.overview.improvement_rate == 0.0
    assert dashboard.overview.trend == "stable"
    assert {item.category for item in dashboard.category_performance} == {
        "financial",
        "academic",
        "post_study",
        "personal",
    }


def test_incomplete_attempts_only_affect_completion_rate(engine):
    history = _history([70]) + [ScoreHistoryEntry(timestamp=2_000.0, score=10.0, completed=False)]
    overview = engine.build(history).overview

    assert overview.total_interviews == 1
    assert overview.attempted_interviews == 2
    assert overview.completion_rate == 50.0
    assert overview.lowest_score == 70.0


def test_weak_categories_get_severity_issues_and_recommendations(engine):
    history = _history([55, 60], category_scores={"financial": 45.0, "academic": 80.0})
    dashboard = engine.build(history)

    assert [item.category for item in dashboard.category_performance] == ["financial", "academic"]
    assert len(dashboard.weak_areas) == 1

    weak = dashboard.weak_areas[0]
    assert weak.category == "financial"
    assert weak.severity == "critical"
    assert weak.improvement_potential == 55.0
    assert "Consistently low scores indicate fundamental gaps" in weak.issues
    assert "Practice stating exact dollar amounts for all costs" in weak.recommendations

    steps = dashboard.next_steps
    assert "Complete 3 more interview(s) to unlock detailed analytics" in steps
    assert "Focus on fundamentals: practice in Easy mode to build confidence" in steps
    assert "Take a topic drill focused on Financial to address your weakest area" in steps
    assert len(steps) <= 5


def test_declining_history_recommends_review(engine):
    dashboard = engine.build(_history([90, 85, 80, 50, 45, 40]))

    assert dashboard.overview.trend == "declining"
    assert "Recent scores are declining. Review your past feedback and focus on weak areas" in dashboard.next_steps


def test_category_trend_uses_first_and_last_three(engine):
    history = [
        ScoreHistoryEntry(timestamp=1.0, score=60, category_scores={"financial": 50.0}),
        ScoreHistoryEntry(timestamp=2.0, score=60, category_scores={"financial": 50.0}),
        ScoreHistoryEntry(timestamp=3.0, score=60, category_scores={"financial": 50.0}),
        ScoreHistoryEntry(timestamp=4.0, score=60, category_scores={"financial": 70.0}),
    ]
    financial = engine.build(history).category_performance[0]

    assert financial.trend == "improving"
    assert financial.last_score == 70.0
    assert financial.best_score == 70.0
    assert financial.worst_score == 50.0


def test_achievements_never_relock_as_history_grows():
    history = (
        _history([90], mode="stress_test")
        + _history([50, 40], start=2_000.0)
        + _history([86], start=3_000.0, mode="comprehensive")
        + _history([30, 20], start=4_000.0)
    )

    previous = None
    for end in range(1, len(history) + 1):
        current = _states(history[:end])
        if previous is not None:
            for achievement_id, state in previous.items():
                if state.unlocked:
                    assert current[achievement_id].unlocked is True
                    assert current[achievement_id].unlocked_at == state.unlocked_at
                assert current[achievement_id].progress >= state.progress
        previous = current

    assert previous["stress_tested"].unlocked is True
    assert previous["stress_master"].unlocked is True
    assert previous["comprehensive_champion"].unlocked is True
    assert previous["all_rounder"].unlocked is False


def test_achievements_sorted_unlocked_first():
    states = evaluate_achievements(_history([72, 81]))
    unlocked = [state.unlocked for state in states]

    assert unlocked == sorted(unlocked, reverse=True)
    locked_progress = [state.progress for state in states if not state.unlocked]
    assert locked_progress == sorted(locked_progress, reverse=True)


def test_score_history_points_are_time_ordered(engine):
    history = [
        ScoreHistoryEntry(timestamp=30.0, score=70),
        ScoreHistoryEntry(timestamp=10.0, score=60),
        ScoreHistoryEntry(timestamp=20.0, score=0, completed=False),
    ]
    points = engine.build(history).score_history

    assert [point.timestamp for point in points] == [10.0, 30.0]


def test_history_entry_round_trips_through_dict():
    entry = ScoreHistoryEntry(
        timestamp=5.0,
        score=81.5,
        category_scores={"financial": 90.0},
        mode="stress_test",
        difficulty="hard",
        question_count=8,
        session_id="s-1",
    )
    assert ScoreHistoryEntry.from_dict(entry.to_dict()) == entry


def test_history_entry_category_scores_are_read_only():
    source = {"financial": 90.0}
    entry = ScoreHistoryEntry(timestamp=5.0, score=81.5, category_scores=source)
    source["financial"] = 10.0

    assert entry.category_scores["financial"] == 90.0
    with pytest.raises(TypeError):
        entry.category_scores["financial"] = 0.0
