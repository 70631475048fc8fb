import random

import pytest

from conftest import FailingHistory, FailingJudge, FailingSink, ScriptedJudge, SlowJudge
from visa_coach.scoring.models import NO_RESPONSE, HeuristicPlusJudged
from visa_coach.session.models import InvalidSessionState, SessionStatus
from visa_coach.system_metrics import get_metrics_snapshot
from visa_coach.turn.events import (
    ManualAdvance,
    TimerFired,
    TranscriptCompleted,
    TranscriptUpdate,
    TranscriptUpdated,
)

ANSWER = (
    "My father will sponsor my studies. He is a civil engineer earning $60,000 per year "
    "and we have $80,000 in savings at Nabil Bank."
)


class _ZeroRandom(random.Random):
    """Every probabilistic persona decision comes out true."""

    def random(self):
        return 0.0


@pytest.mark.asyncio
async def test_silence_timer_finalizes_four_seconds_after_single_update(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    scheduler.advance(1.0)
    await engine.handle(TranscriptUpdated(text="I will study at Example University."))
    scheduler.advance(2.9)
    await engine.drain()
    assert turn.finalized is False

    scheduler.advance(0.1)
    await engine.drain()
    assert turn.finalized is True
    assert turn.finalize_reason == "silence"
    assert turn.duration_seconds == pytest.approx(1.0)
    assert turn.result is not None


@pytest.mark.asyncio
async def test_hard_timeout_fires_at_fifteen_seconds_despite_continuous_speech(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    for second in range(1, 15):
        scheduler.advance(1.0)
        await engine.handle(TranscriptUpdated(text=" ".join(["word"] * second)))
    await engine.drain()
    assert turn.finalized is False

    scheduler.advance(1.0)
    await engine.drain()
    assert turn.finalized is True
    assert turn.finalize_reason == "hard"
    assert turn.duration_seconds == pytest.approx(14.0)


@pytest.mark.asyncio
async def test_racing_timers_finalize_exactly_once(make_engine, scheduler, sink):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    scheduler.advance(12.0)
    await engine.handle(TranscriptUpdated(text=ANSWER))
    scheduler.advance(3.0)
    await engine.drain()

    metrics = get_metrics_snapshot()
    assert turn.finalize_reason == "hard"
    assert metrics["turns_finalized"] == 1
    assert metrics["finalize_duplicates_skipped"] == 1
    assert len(sink.turns) == 1


@pytest.mark.asyncio
async def test_manual_advance_cancels_timers_and_completes_single_question_session(make_engine, scheduler, sink, sent):
    engine = make_engine(max_questions=1)
    await engine.begin()
    turn = engine.session.current_turn

    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    scheduler.advance(30.0)
    await engine.drain()

    assert turn.finalize_reason == "manual"
    assert engine.status == SessionStatus.COMPLETED
    assert engine.report is not None
    assert engine.report.question_count == 1
    assert scheduler.pending() == []
    assert len(sink.reports) == 1
    assert [item["type"] for item in sent] == ["question", "turn_scored", "session_completed"]
    assert get_metrics_snapshot()["turns_finalized"] == 1


@pytest.mark.asyncio
async def test_silent_candidate_is_scored_as_no_response(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    scheduler.advance(15.0)
    await engine.drain()

    assert turn.transcript == NO_RESPONSE
    assert turn.finalize_reason == "hard"
    assert turn.duration_seconds is None
    assert turn.result.dimensions.clarity == 20.0


@pytest.mark.asyncio
async def test_stale_timer_events_are_ignored(make_engine):
    engine = make_engine()
    await engine.begin()

    await engine.handle(TimerFired(kind="hard", turn_index=5))

    assert engine.session.current_turn.finalized is False
    assert get_metrics_snapshot()["turns_finalized"] == 0


@pytest.mark.asyncio
async def test_pause_suspends_timers_and_resume_arms_fresh_ones(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    scheduler.advance(1.0)
    await engine.handle(TranscriptUpdated(text="I plan to"))
    scheduler.advance(1.0)
    engine.pause()

    scheduler.advance(20.0)
    await engine.handle(TranscriptUpdated(text="I plan to study data science"))
    await engine.drain()
    assert turn.finalized is False
    assert turn.transcript == "I plan to study data science"
    assert scheduler.pending() == []

    await engine.resume()
    scheduler.advance(14.9)
    await engine.drain()
    assert turn.finalized is False

    scheduler.advance(0.1)
    await engine.drain()
    assert turn.finalize_reason == "hard"


@pytest.mark.asyncio
async def test_pause_between_questions_holds_next_question_until_resume(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()

    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    engine.pause()
    scheduler.advance(30.0)
    await engine.drain()
    assert len(engine.session.turns) == 1

    await engine.resume()
    assert len(engine.session.turns) == 2
    assert engine.session.current_turn.finalized is False

    scheduler.advance(15.0)
    await engine.drain()
    assert engine.session.turns[1].finalize_reason == "hard"


@pytest.mark.asyncio
async def test_invalid_transitions_are_rejected(make_engine):
    engine = make_engine()

    with pytest.raises(InvalidSessionState):
        engine.pause()
    with pytest.raises(InvalidSessionState):
        await engine.resume()
    with pytest.raises(InvalidSessionState):
        await engine.handle(ManualAdvance())

    await engine.begin()
    with pytest.raises(InvalidSessionState):
        await engine.begin()
    with pytest.raises(InvalidSessionState):
        await engine.resume()

    await engine.abandon()
    with pytest.raises(InvalidSessionState) as excinfo:
        engine._arm_turn(engine.session.current_turn)
    assert "completed" in str(excinfo.value)
    with pytest.raises(InvalidSessionState):
        await engine.handle(ManualAdvance())
    with pytest.raises(InvalidSessionState):
        await engine.abandon()


@pytest.mark.asyncio
async def test_abandon_cancels_everything_and_records_incomplete_attempt(make_engine, scheduler, sink, history_store):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn
    await engine.handle(TranscriptUpdated(text=ANSWER))

    await engine.abandon()
    scheduler.advance(60.0)
    await engine.drain()

    assert turn.finalized is False
    assert engine.report is None
    assert engine.session.abandoned is True
    assert sink.reports == []
    assert scheduler.pending() == []

    history = history_store.entries("candidate-1")
    assert len(history) == 1
    assert history[0].completed is False

    metrics = get_metrics_snapshot()
    assert metrics["sessions_abandoned"] == 1
    assert metrics["sessions_active"] == 0


@pytest.mark.asyncio
async def test_judge_failures_fall_back_to_heuristics_and_static_questions(make_engine):
    judge = FailingJudge()
    engine = make_engine(judge=judge, judge_retries=2)
    await engine.begin()
    turn = engine.session.current_turn
    assert turn.question
    assert judge.calls == 3

    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    await engine.drain()

    assert turn.result.heuristic_only is True
    assert engine.status == SessionStatus.ACTIVE
    assert judge.calls == 6

    metrics = get_metrics_snapshot()
    assert metrics["judge_failures"] == 6
    assert metrics["judge_fallbacks"] == 1
    assert metrics["question_fallbacks"] == 1


@pytest.mark.asyncio
async def test_slow_judge_times_out(make_engine):
    judge = SlowJudge(delay=5.0)
    engine = make_engine(judge=judge, judge_timeout_sec=0.01)
    await engine.begin()
    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())

    assert engine.session.turns[0].result.heuristic_only is True
    assert get_metrics_snapshot()["judge_failures"] == 2


@pytest.mark.asyncio
async def test_judged_scores_flow_into_result(make_engine):
    judge = ScriptedJudge()
    engine = make_engine(judge=judge)
    await engine.begin()
    turn = engine.session.current_turn
    assert turn.question == "Who is funding your studies?"
    assert turn.category == "financial"

    engine.set_body_language(90)
    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(TranscriptCompleted(confidence=0.95))
    await engine.handle(ManualAdvance())

    result = turn.result
    assert isinstance(result.provenance, HeuristicPlusJudged)
    assert result.dimensions.relevance == 91.0
    assert result.dimensions.posture == 90.0
    assert result.dimensions.confidence == 95.0
    assert judge.judge_calls == [(turn.question, ANSWER)]


@pytest.mark.asyncio
async def test_persistence_failure_does_not_block_completion(make_engine):
    engine = make_engine(engine_sink=FailingSink(), max_questions=1)
    await engine.begin()
    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    await engine.drain()

    assert engine.status == SessionStatus.COMPLETED
    assert engine.report is not None
    assert get_metrics_snapshot()["persistence_failures"] == 2


@pytest.mark.asyncio
async def test_completed_session_appends_history_entry(make_engine, scheduler, sink, history_store):
    engine = make_engine(max_questions=2)
    await engine.begin()

    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    scheduler.advance(10.0)
    await engine.drain()
    assert len(engine.session.turns) == 2

    await engine.handle(TranscriptUpdated(text="I will return to work at my family's company in 2027."))
    await engine.handle(ManualAdvance())
    await engine.drain()

    assert engine.status == SessionStatus.COMPLETED
    history = history_store.entries("candidate-1")
    assert len(history) == 1
    assert history[0].completed is True
    assert history[0].score == float(engine.report.overall)
    assert history[0].question_count == 2
    assert history[0].session_id == engine.session.id
    assert len(sink.turns) == 2
    assert len(sink.reports) == 1

    metrics = get_metrics_snapshot()
    assert metrics["sessions_completed"] == 1
    assert metrics["sessions_active"] == 0


@pytest.mark.asyncio
async def test_follow_ups_are_capped_per_topic(make_engine, scheduler):
    engine = make_engine(persona="strict", rng=_ZeroRandom(), max_questions=4)
    await engine.begin()

    for answer in ("I think maybe.", "Not sure."):
        await engine.handle(TranscriptUpdated(text=answer))
        await engine.handle(ManualAdvance())
        scheduler.advance(5.0)
        await engine.drain()

    turns = engine.session.turns
    assert [turn.is_follow_up for turn in turns] == [False, True, False]
    assert turns[1].category == turns[0].category
    assert turns[2].category != turns[0].category
    assert get_metrics_snapshot()["follow_ups_asked"] == 1


@pytest.mark.asyncio
async def test_long_answers_can_trigger_interruption_cue(make_engine, sent):
    engine = make_engine(persona="strict", rng=_ZeroRandom())
    await engine.begin()
    turn = engine.session.current_turn

    await engine.handle(TranscriptUpdated(text=" ".join(["detail"] * 35)))

    interruptions = [item for item in sent if item["type"] == "interruption"]
    assert len(interruptions) == 1
    assert interruptions[0]["cue"] in engine.session.persona.cues.impatient
    assert turn.interrupted is True
    assert turn.finalized is False


@pytest.mark.asyncio
async def test_consume_applies_stream_updates(make_engine, scheduler):
    engine = make_engine()
    await engine.begin()
    turn = engine.session.current_turn

    async def _stream():
        yield TranscriptUpdate(text="I have")
        yield TranscriptUpdate(text="I have a full scholarship", is_final=True, confidence=0.92)

    await engine.consume(_stream())
    assert turn.transcript == "I have a full scholarship"
    assert turn.asr_confidence == 0.92

    scheduler.advance(3.0)
    await engine.drain()
    assert turn.finalize_reason == "silence"


@pytest.mark.asyncio
async def test_sessions_sharing_a_loop_do_not_interfere(make_engine, scheduler):
    first = make_engine()
    second = make_engine()
    await first.begin()
    await second.begin()

    scheduler.advance(1.0)
    await first.handle(TranscriptUpdated(text=ANSWER))
    scheduler.advance(3.0)
    await first.drain()
    await second.drain()

    assert first.session.current_turn.finalized is True
    assert second.session.current_turn.finalized is False
    assert first.session.id != second.session.id


@pytest.mark.asyncio
async def test_history_failure_is_counted_without_blocking_completion(make_engine):
    engine = make_engine(history=FailingHistory(), max_questions=1)
    await engine.begin()
    await engine.handle(TranscriptUpdated(text=ANSWER))
    await engine.handle(ManualAdvance())
    await engine.drain()

    assert engine.status == SessionStatus.COMPLETED
    assert get_metrics_snapshot()["persistence_failures"] == 1
