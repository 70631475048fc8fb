import random

from visa_coach.persona import PROFESSIONAL
from visa_coach.scoring import JudgedScores, ScoringInput, score_answer
from visa_coach.session.models import InterviewSession, QuestionTurn
from visa_coach.session.report import build_report, decision_band


def _turn(index: int, category: str, transcript: str, judged: JudgedScores | None = None) -> QuestionTurn:
    turn = QuestionTurn(index=index, question="How will you pay for your studies?", category=category, transcript=transcript)
    turn.finalized = True
    turn.finalize_reason = "manual"
    turn.result = score_answer(ScoringInput(question=turn.question, transcript=transcript, category=category), judged=judged)
    return turn


def test_decision_bands():
    assert decision_band(75) == "accepted"
    assert decision_band(74.9) == "borderline"
    assert decision_band(55) == "borderline"
    assert decision_band(54) == "rejected"


def test_report_aggregates_turns():
    session = InterviewSession(candidate_id="c-1", persona=PROFESSIONAL)
    session.turns = [
        _turn(0, "financial", "My father pays $40,000 per year from his salary at Himalayan Bank."),
        _turn(1, "academic", "I like the program.", judged=JudgedScores(content=70, relevance=60, recommendations=("Name a professor",))),
        _turn(2, "financial", "We also have savings of $20,000 in a fixed deposit since 2019."),
    ]
    report = build_report(session)

    overalls = [turn.result.overall for turn in session.turns]
    assert report.overall == round(sum(overalls) / 3)
    assert report.question_count == 3
    assert set(report.topic_averages) == {"financial", "academic"}
    assert report.heuristic_only is False
    assert report.judge_recommendations == ("Name a professor",)
    assert [item.index for item in report.timeline] == [0, 1, 2]
    assert set(report.category_averages) == {"content", "delivery", "non_verbal"}
    assert report.summary.startswith(f"Based on detailed per-answer analysis: Average score {report.overall}/100")
    assert report.to_dict()["decision"] == report.decision


def test_report_without_judge_is_heuristic_only():
    session = InterviewSession(candidate_id="c-2", persona=PROFESSIONAL)
    session.turns = [_turn(0, "personal", "No relatives in the US.")]
    assert build_report(session).heuristic_only is True
