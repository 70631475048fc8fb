import asyncio
import logging
import random
import time
from dataclasses import replace
from typing import AsyncIterable, Awaitable, Callable

from visa_coach.analytics.models import ScoreHistoryEntry
from visa_coach.core.config import QA_MODE, EngineSettings
from visa_coach.core.logger import log_event
from visa_coach.difficulty.controller import DifficultyController
from visa_coach.judging.questions import pick_static_question, static_follow_up
from visa_coach.judging.service import (
    QUESTION_CATEGORIES,
    JudgingService,
    parse_judge_response,
    parse_question_response,
)
from visa_coach.persistence.sink import NullSink, PersistenceSink, ScoreHistoryStore
from visa_coach.persona.engine import (
    PersonaProfile,
    difficulty_bias,
    follow_up_context,
    follow_up_reason,
    get_persona,
    question_delay,
    select_random_persona,
    should_ask_follow_up,
    should_interrupt,
    should_use_rapid_fire,
    timer_durations,
    verbal_cue,
)
from visa_coach.scoring.models import NO_RESPONSE, JudgedScores, PriorAnswer, ScoringInput, ScoringResult
from visa_coach.scoring.pipeline import classify_answer_quality, score_answer
from visa_coach.scoring.text_metrics import word_count
from visa_coach.session.countries import get_country_config
from visa_coach.session.models import InterviewSession, InvalidSessionState, QuestionTurn, SessionStatus
from visa_coach.session.report import SessionReport, build_report
from visa_coach.system_metrics import decrement_metric, increment_metric, observe_answer_latency
from visa_coach.turn.events import (
    ManualAdvance,
    SessionEvent,
    TimerFired,
    TranscriptCompleted,
    TranscriptUpdate,
    TranscriptUpdated,
)
from visa_coach.turn.lifecycle import TurnLifecycle
from visa_coach.turn.timers import Scheduler, TimerHandle, TurnTimers

logger = logging.getLogger("session")

SendFn = Callable[[dict], Awaitable[None]]

INTERRUPT_CHECK_WORDS = 30


class SessionEngine:
    """
    Runs one interview session.

    Every state change goes through ``handle``: timer firings, transcript
    updates and manual advances race to finalize the open turn and only the
    first one wins. The engine owns its timers, background tasks and random
    source, so several engines can share one event loop without cross-talk.
    """

    def __init__(
        self,
        session: InterviewSession,
        scheduler: Scheduler,
        settings: EngineSettings | None = None,
        judge: JudgingService | None = None,
        sink: PersistenceSink | None = None,
        history: ScoreHistoryStore | None = None,
        rng: random.Random | None = None,
        send: SendFn | None = None,
    ):
        self.session = session
        self.scheduler = scheduler
        self.settings = settings or EngineSettings()
        self.judge = judge
        self.sink = sink or NullSink()
        self.history = history
        self.rng = rng or random.Random(0 if QA_MODE else None)
        self.send = send
        self.report: SessionReport | None = None

        self._timers = TurnTimers(scheduler, self._on_timer)
        self._lifecycle: TurnLifecycle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._persist_tasks: set[asyncio.Task] = set()
        self._delay_handle: TimerHandle | None = None
        self._prep_handle: TimerHandle | None = None
        self._pending_advance: tuple[str | None, str | None] | None = None

        self._turn_started_at = 0.0
        self._last_update_at: float | None = None
        self._interrupt_bucket = 0

        self._difficulty = DifficultyController()
        self._score_window: list[float] = []
        self._difficulty_weights = difficulty_bias(session.persona)
        self._topic_index = 0
        self._follow_ups_on_topic = 0

    @classmethod
    def create(
        cls,
        candidate_id: str,
        scheduler: Scheduler,
        persona: str | PersonaProfile | None = None,
        mode: str = "standard",
        max_questions: int | None = None,
        rng: random.Random | None = None,
        settings: EngineSettings | None = None,
        route: str | None = None,
        **kwargs,
    ) -> "SessionEngine":
        settings = settings or EngineSettings()
        country = get_country_config(route) if route else None
        if country is not None:
            # the route sets the answer-time ceiling and question count
            settings = replace(settings, hard_timeout_sec=country.answer_time_sec)
            max_questions = max_questions or country.question_count
        rng = rng or random.Random(0 if QA_MODE else None)
        if persona is None:
            profile = select_random_persona(rng)
        elif isinstance(persona, PersonaProfile):
            profile = persona
        else:
            profile = get_persona(persona)

        session = InterviewSession(
            candidate_id=str(candidate_id),
            persona=profile,
            mode=mode or "standard",
            max_questions=max(1, int(max_questions or settings.max_questions)),
            route=country.route if country is not None else None,
            prep_seconds=country.prep_time_sec if country is not None else 0.0,
        )
        return cls(session, scheduler, settings=settings, rng=rng, **kwargs)

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def _visa_name(self) -> str | None:
        return get_country_config(self.session.route).name if self.session.route else None

    # ------------------------------------------------------------------
    # lifecycle actions

    async def begin(self) -> None:
        if self.status != SessionStatus.PREPARING:
            raise InvalidSessionState("begin", self.status)
        self.session.status = SessionStatus.ACTIVE
        increment_metric("sessions_started")
        increment_metric("sessions_active")
        log_event("session_engine", "session_started", self.session.id, persona=self.session.persona.name, mode=self.session.mode)
        await self._open_next_turn(None, None)

    def pause(self) -> None:
        if self.status != SessionStatus.ACTIVE:
            raise InvalidSessionState("pause", self.status)
        self.session.status = SessionStatus.PAUSED
        self._timers.cancel()
        self._cancel_prep()
        if self._delay_handle is not None:
            self._delay_handle.cancel()
            self._delay_handle = None
        log_event("session_engine", "session_paused", self.session.id, turns=len(self.session.turns))

    async def resume(self) -> None:
        if self.status != SessionStatus.PAUSED:
            raise InvalidSessionState("resume", self.status)
        self.session.status = SessionStatus.ACTIVE
        log_event("session_engine", "session_resumed", self.session.id, turns=len(self.session.turns))

        if self._pending_advance is not None:
            reason, cue = self._pending_advance
            await self._open_next_turn(reason, cue)
            return

        turn = self.session.current_turn
        if turn is not None and not turn.finalized:
            self._arm_turn(turn)

    async def abandon(self) -> None:
        if self.status == SessionStatus.COMPLETED:
            raise InvalidSessionState("abandon", self.status)
        started = self.status != SessionStatus.PREPARING

        self.session.status = SessionStatus.COMPLETED
        self.session.abandoned = True
        self.session.completed_at = time.time()
        self._cancel_pending()

        current = asyncio.current_task()
        in_flight = [task for task in self._tasks if task is not current and not task.done()]
        for task in in_flight:
            task.cancel()
        await asyncio.gather(*in_flight, return_exceptions=True)

        increment_metric("sessions_abandoned")
        if started:
            decrement_metric("sessions_active")
            scored = [turn.result.overall for turn in self.session.scored_turns]
            self._append_history(
                score=round(sum(scored) / len(scored), 1) if scored else 0.0,
                category_scores=None,
                completed=False,
                difficulty=None,
                question_count=len(scored),
            )
        log_event("session_engine", "session_abandoned", self.session.id, turns=len(self.session.turns))
        await self._publish({"type": "session_abandoned", "session_id": self.session.id})

    def set_body_language(self, score: float) -> None:
        turn = self.session.current_turn
        if turn is None or turn.finalized:
            return
        turn.body_language_score = float(score)

    # ------------------------------------------------------------------
    # event intake

    async def handle(self, event: SessionEvent) -> None:
        if isinstance(event, TimerFired):
            await self._on_timer_fired(event)
        elif isinstance(event, TranscriptUpdated):
            await self._on_transcript(event.text)
        elif isinstance(event, TranscriptCompleted):
            self._on_transcript_completed(event.confidence)
        elif isinstance(event, ManualAdvance):
            if self.status != SessionStatus.ACTIVE:
                raise InvalidSessionState("advance", self.status)
            self._end_prep_early()
            await self._finalize("manual")
        else:
            raise TypeError(f"unsupported session event: {event!r}")

    async def consume(self, stream: AsyncIterable[TranscriptUpdate]) -> None:
        async for update in stream:
            if self.status == SessionStatus.COMPLETED:
                break
            await self.handle(TranscriptUpdated(text=update.text))
            if update.is_final:
                await self.handle(TranscriptCompleted(confidence=update.confidence))

    async def drain(self) -> None:
        """Wait until no engine or persistence task is pending."""
        while True:
            pending = [task for task in self._tasks | self._persist_tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _on_timer(self, event: TimerFired) -> None:
        self._spawn(self.handle(event))

    async def _on_timer_fired(self, event: TimerFired) -> None:
        turn = self.session.current_turn
        if self.status != SessionStatus.ACTIVE or turn is None or event.turn_index != turn.index:
            logger.debug(f"[TURN {event.turn_index}] stale {event.kind} timer ignored | status={self.status.value}")
            return
        await self._finalize(event.kind)

    async def _on_transcript(self, text: str) -> None:
        turn = self.session.current_turn
        if turn is None or turn.finalized or self.status in (SessionStatus.PREPARING, SessionStatus.COMPLETED):
            logger.debug("transcript update ignored | status=%s", self.status.value)
            return

        turn.transcript = str(text or "")
        if self.status != SessionStatus.ACTIVE:
            return
        self._end_prep_early()

        now = self.scheduler.now()
        self._last_update_at = now
        if self._lifecycle is not None:
            self._lifecycle.note_speech()
        self._timers.touch()
        await self._maybe_interrupt(turn, now)

    def _on_transcript_completed(self, confidence: float | None) -> None:
        turn = self.session.current_turn
        if turn is None or turn.finalized or confidence is None:
            return
        turn.asr_confidence = float(confidence)

    async def _maybe_interrupt(self, turn: QuestionTurn, now: float) -> None:
        if turn.interrupted:
            return
        words = word_count(turn.transcript)
        bucket = words // INTERRUPT_CHECK_WORDS
        if bucket <= self._interrupt_bucket:
            return
        self._interrupt_bucket = bucket

        persona = self.session.persona
        if not should_interrupt(persona, words, now - self._turn_started_at, self.rng):
            return
        turn.interrupted = True
        increment_metric("interruption_cues")
        cue = verbal_cue(persona, "impatient", self.rng, quality="too_long")
        log_event("session_engine", "interruption_cue", self.session.id, turn_index=turn.index, words=words)
        await self._publish({"type": "interruption", "turn_index": turn.index, "cue": cue})

    # ------------------------------------------------------------------
    # turns

    def _arm_turn(self, turn: QuestionTurn) -> None:
        if self.status == SessionStatus.COMPLETED:
            raise InvalidSessionState("arm timers", self.status)
        hard, silence = timer_durations(
            self.session.persona,
            self.settings.hard_timeout_sec,
            self.settings.silence_timeout_sec,
        )
        self._lifecycle = TurnLifecycle(turn.index, clock=self.scheduler.now)
        self._turn_started_at = self.scheduler.now()
        self._last_update_at = None
        self._interrupt_bucket = 0
        self._timers.arm(turn.index, hard, silence)

    def _start_turn(self, turn: QuestionTurn) -> None:
        prep = float(self.session.prep_seconds or 0.0)
        if prep <= 0:
            self._arm_turn(turn)
            return
        # timers start once the preparation window closes
        self._prep_handle = self.scheduler.call_later(prep, lambda: self._end_prep(turn.index))
        log_event("session_engine", "prep_started", self.session.id, turn_index=turn.index, seconds=prep)

    def _end_prep(self, turn_index: int) -> None:
        self._prep_handle = None
        turn = self.session.current_turn
        if self.status != SessionStatus.ACTIVE or turn is None or turn.index != turn_index or turn.finalized:
            return
        self._arm_turn(turn)

    def _end_prep_early(self) -> None:
        if self._prep_handle is None:
            return
        self._cancel_prep()
        turn = self.session.current_turn
        if turn is not None:
            self._end_prep(turn.index)

    def _cancel_prep(self) -> None:
        if self._prep_handle is not None:
            self._prep_handle.cancel()
            self._prep_handle = None

    async def _finalize(self, reason: str) -> bool:
        turn = self.session.current_turn
        lifecycle = self._lifecycle
        if turn is None or lifecycle is None or lifecycle.turn_index != turn.index:
            return False
        if not await lifecycle.try_finalize(reason):
            increment_metric("finalize_duplicates_skipped")
            return False

        self._timers.cancel()
        turn.finalized = True
        turn.finalize_reason = reason
        turn.transcript = turn.transcript.strip() or NO_RESPONSE
        if self._last_update_at is not None:
            turn.duration_seconds = round(self._last_update_at - self._turn_started_at, 3)

        prior = self._prior_answers(turn)
        judged = await self._judge_answer(turn, prior)
        result = score_answer(
            ScoringInput(
                question=turn.question,
                transcript=turn.transcript,
                category=turn.category,
                body_language_score=turn.body_language_score,
                asr_confidence=turn.asr_confidence,
                duration_seconds=turn.duration_seconds,
            ),
            prior_answers=prior,
            judged=judged,
        )
        turn.result = result

        latency = await lifecycle.mark_finalized()
        increment_metric("turns_finalized")
        observe_answer_latency(latency)
        log_event(
            "session_engine",
            "turn_finalized",
            self.session.id,
            turn_index=turn.index,
            reason=reason,
            overall=result.overall,
            heuristic_only=result.heuristic_only,
        )

        self._persist("save_turn", turn.to_dict())
        await self._publish({
            "type": "turn_scored",
            "turn_index": turn.index,
            "reason": reason,
            "overall": result.overall,
            "heuristic_only": result.heuristic_only,
        })

        if self.status == SessionStatus.COMPLETED:
            return True
        await self._advance(turn, result)
        return True

    def _prior_answers(self, turn: QuestionTurn) -> list[PriorAnswer]:
        return [
            PriorAnswer(text=item.transcript, category=item.category)
            for item in self.session.turns
            if item is not turn and item.finalized and item.transcript != NO_RESPONSE
        ]

    def _prior_turns_payload(self, exclude: QuestionTurn | None = None) -> list[dict]:
        return [
            {"question": item.question, "answer": item.transcript}
            for item in self.session.turns
            if item.finalized and item is not exclude
        ]

    async def _judge_answer(self, turn: QuestionTurn, prior: list[PriorAnswer]) -> JudgedScores | None:
        if self.judge is None or turn.transcript == NO_RESPONSE:
            return None
        prior_turns = self._prior_turns_payload(exclude=turn)
        payload = await self._call_judge(
            "judge",
            lambda: self.judge.judge(turn.question, turn.transcript, prior_turns),
        )
        judged = parse_judge_response(payload)
        if judged is None:
            increment_metric("judge_fallbacks")
            log_event("session_engine", "judge_fallback", self.session.id, turn_index=turn.index)
        return judged

    async def _call_judge(self, label: str, factory: Callable[[], Awaitable[dict]]) -> dict | None:
        attempts = max(1, int(self.settings.judge_retries) + 1)
        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(factory(), timeout=self.settings.judge_timeout_sec)
            except asyncio.TimeoutError:
                logger.warning("%s timeout | session=%s attempt=%s", label, self.session.id, attempt + 1)
            except Exception as exc:
                logger.warning("%s failure | session=%s attempt=%s err=%s", label, self.session.id, attempt + 1, exc)
            increment_metric("judge_failures")
        return None

    async def _advance(self, turn: QuestionTurn, result: ScoringResult) -> None:
        persona = self.session.persona
        quality = classify_answer_quality(turn.transcript, result)

        evaluation = self._difficulty.evaluate(
            result.overall,
            base_weights=difficulty_bias(persona),
            history=self._score_window,
        )
        self._score_window = evaluation["history"]
        self._difficulty_weights = evaluation["weights"]

        if len(self.session.turns) >= self.session.max_questions:
            await self._complete()
            return

        reason = None
        if self._follow_ups_on_topic < self.settings.max_follow_ups_per_topic and should_ask_follow_up(persona, quality, self.rng):
            consistency = result.dimensions.consistency if persona.contradiction_detection else None
            reason = follow_up_reason(quality, consistency)
        cue = verbal_cue(persona, "neutral", self.rng, quality=quality)
        self._schedule_next(reason, cue)

    def _schedule_next(self, reason: str | None, cue: str | None) -> None:
        self._pending_advance = (reason, cue)
        if self.status != SessionStatus.ACTIVE:
            return

        persona = self.session.persona
        rapid_fire = should_use_rapid_fire(persona, len(self.session.turns) + 1, self.rng)
        delay = question_delay(persona, self.rng, rapid_fire=rapid_fire)
        self._delay_handle = self.scheduler.call_later(
            delay,
            lambda: self._spawn(self._open_next_turn(reason, cue)),
        )

    async def _open_next_turn(self, reason: str | None, cue: str | None) -> None:
        self._delay_handle = None
        self._pending_advance = None
        if self.status == SessionStatus.COMPLETED:
            return

        question, category, difficulty, is_follow_up = await self._select_question(reason)
        if self.status == SessionStatus.COMPLETED:
            return

        turn = QuestionTurn(
            index=len(self.session.turns),
            question=question,
            category=category,
            difficulty=difficulty,
            is_follow_up=is_follow_up,
        )
        self.session.turns.append(turn)
        if is_follow_up:
            self._follow_ups_on_topic += 1
            increment_metric("follow_ups_asked")
        else:
            self._follow_ups_on_topic = 0
            self._topic_index += 1

        if self.status == SessionStatus.ACTIVE:
            self._start_turn(turn)
        await self._publish({
            "type": "question",
            "turn_index": turn.index,
            "question": turn.question,
            "category": turn.category,
            "difficulty": turn.difficulty,
            "is_follow_up": turn.is_follow_up,
            "prep_seconds": self.session.prep_seconds,
            "cue": cue,
        })

    async def _select_question(self, reason: str | None) -> tuple[str, str, str, bool]:
        persona = self.session.persona
        previous = self.session.current_turn
        is_follow_up = bool(reason) and previous is not None
        difficulty = self._difficulty.choose(self._difficulty_weights, self.rng)

        if is_follow_up:
            category = previous.category
            context = follow_up_context(persona, reason)
        else:
            category = QUESTION_CATEGORIES[self._topic_index % len(QUESTION_CATEGORIES)]
            context = None

        if self.judge is not None:
            prior_turns = self._prior_turns_payload()
            payload = await self._call_judge(
                "generate_question",
                lambda: self.judge.generate_question(category, difficulty, prior_turns, context, self._visa_name),
            )
            parsed = parse_question_response(payload, default_category=category)
            if parsed is not None:
                chosen_category = category if is_follow_up else parsed["category"]
                return parsed["question"], chosen_category, difficulty, is_follow_up
            increment_metric("question_fallbacks")
            log_event("session_engine", "question_fallback", self.session.id, category=category, follow_up=is_follow_up)

        if is_follow_up:
            return static_follow_up(reason, variant=len(self.session.turns)), category, difficulty, True

        static = pick_static_question(
            len(self.session.turns) + 1,
            asked=[item.question for item in self.session.turns],
            category=category,
            difficulty=difficulty,
            route=self.session.route,
        )
        return static.question, static.category, static.difficulty, False

    async def _complete(self) -> None:
        self._cancel_pending()
        self.session.status = SessionStatus.COMPLETED
        self.session.completed_at = time.time()

        report = build_report(self.session)
        self.report = report
        increment_metric("sessions_completed")
        decrement_metric("sessions_active")
        log_event(
            "session_engine",
            "session_completed",
            self.session.id,
            overall=report.overall,
            decision=report.decision,
            heuristic_only=report.heuristic_only,
        )

        self._persist("save_report", report.to_dict())
        self._append_history(
            score=float(report.overall),
            category_scores=dict(report.topic_averages) or None,
            completed=True,
            difficulty=report.difficulty,
            question_count=report.question_count,
        )
        await self._publish({
            "type": "session_completed",
            "session_id": self.session.id,
            "overall": report.overall,
            "decision": report.decision,
        })

    def _cancel_pending(self) -> None:
        self._timers.cancel()
        self._cancel_prep()
        if self._delay_handle is not None:
            self._delay_handle.cancel()
            self._delay_handle = None
        self._pending_advance = None

    # ------------------------------------------------------------------
    # side effects

    def _append_history(
        self,
        score: float,
        category_scores: dict[str, float] | None,
        completed: bool,
        difficulty: str | None,
        question_count: int,
    ) -> None:
        if self.history is None:
            return
        entry = ScoreHistoryEntry(
            timestamp=time.time(),
            score=score,
            category_scores=category_scores,
            mode=self.session.mode,
            completed=completed,
            difficulty=difficulty,
            question_count=question_count,
            session_id=self.session.id,
        )
        self._track(self.history.append(self.session.candidate_id, entry))

    def _persist(self, method: str, payload: dict) -> None:
        self._track(getattr(self.sink, method)(self.session.id, payload))

    def _track(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._persist_tasks.add(task)
        task.add_done_callback(self._persist_done)

    def _persist_done(self, task: asyncio.Task) -> None:
        self._persist_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            increment_metric("persistence_failures")
            logger.warning("persistence failed | session=%s err=%s", self.session.id, exc)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("session task failed | session=%s err=%s", self.session.id, exc, exc_info=exc)

    async def _publish(self, payload: dict) -> None:
        if self.send is None:
            return
        try:
            await self.send(payload)
        except Exception as exc:
            logger.warning("send failed | session=%s type=%s err=%s", self.session.id, payload.get("type"), exc)
