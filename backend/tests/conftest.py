import asyncio
import os
import random
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# read by visa_coach.core.config at import time, before any fixture runs
os.environ["QA_MODE"] = "true"
os.environ["OPENAI_API_KEY"] = ""


@pytest.fixture(autouse=True)
def _reset_metrics():
    from visa_coach.system_metrics import reset_metrics

    reset_metrics()
    yield
    reset_metrics()


class _ManualHandle:
    def __init__(self, when: float, seq: int, callback):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: callbacks only run when a test advances time."""

    def __init__(self):
        self._now = 0.0
        self._seq = 0
        self._queue: list[_ManualHandle] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay, callback) -> _ManualHandle:
        handle = _ManualHandle(self._now + max(0.0, float(delay)), self._seq, callback)
        self._seq += 1
        self._queue.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = round(self._now + float(seconds), 6)
        while True:
            due = [item for item in self._queue if not item.cancelled and item.when <= target]
            if not due:
                break
            handle = min(due, key=lambda item: (item.when, item.seq))
            self._queue.remove(handle)
            self._now = handle.when
            handle.callback()
        self._now = target
        self._queue = [item for item in self._queue if not item.cancelled]

    def pending(self) -> list[_ManualHandle]:
        return [item for item in self._queue if not item.cancelled]


class ScriptedJudge:
    def __init__(self, judgement: dict | None = None, question: dict | None = None):
        self.judgement = judgement or {
            "overall": 88,
            "categoryScores": {"relevance": 91},
            "summary": "Clear, well supported answer.",
            "recommendations": ["Mention your sponsor's income"],
        }
        self.question = question or {"question": "Who is funding your studies?", "category": "financial"}
        self.judge_calls: list[tuple[str, str]] = []
        self.question_calls: list[tuple[str, str, str | None]] = []
        self.visa_names: list[str | None] = []

    async def judge(self, question, answer, prior_turns):
        self.judge_calls.append((question, answer))
        return dict(self.judgement)

    async def generate_question(self, category, difficulty, prior_turns, follow_up_context=None, visa_name=None):
        self.question_calls.append((category, difficulty, follow_up_context))
        self.visa_names.append(visa_name)
        return dict(self.question)


class FailingJudge:
    def __init__(self):
        self.calls = 0

    async def judge(self, question, answer, prior_turns):
        self.calls += 1
        raise RuntimeError("judge offline")

    async def generate_question(self, category, difficulty, prior_turns, follow_up_context=None, visa_name=None):
        self.calls += 1
        raise RuntimeError("judge offline")


class SlowJudge:
    def __init__(self, delay: float = 5.0):
        self.delay = delay
        self.calls = 0

    async def judge(self, question, answer, prior_turns):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return {"overall": 99}

    async def generate_question(self, category, difficulty, prior_turns, follow_up_context=None, visa_name=None):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return {"question": "Too late?"}


class RecordingSink:
    def __init__(self):
        self.turns: list[tuple[str, dict]] = []
        self.reports: list[tuple[str, dict]] = []

    async def save_turn(self, session_id, payload):
        self.turns.append((session_id, payload))

    async def save_report(self, session_id, payload):
        self.reports.append((session_id, payload))


class FailingSink:
    async def save_turn(self, session_id, payload):
        raise OSError("disk full")

    async def save_report(self, session_id, payload):
        raise OSError("disk full")


class FailingHistory:
    async def append(self, candidate_id, entry):
        raise OSError("disk full")

    def entries(self, candidate_id):
        return []


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def history_store():
    from visa_coach.persistence.sink import ScoreHistoryStore

    return ScoreHistoryStore()


@pytest.fixture
def sent() -> list[dict]:
    return []


@pytest.fixture
def make_engine(scheduler, sink, history_store, sent):
    from visa_coach.core.config import load_settings
    from visa_coach.session.engine import SessionEngine

    async def _send(payload: dict):
        sent.append(payload)

    def _make(
        persona="professional",
        judge=None,
        engine_sink=None,
        rng=None,
        max_questions=3,
        mode="standard",
        route=None,
        history=None,
        **overrides,
    ):
        settings = load_settings(
            hard_timeout_sec=overrides.pop("hard_timeout_sec", 15.0),
            silence_timeout_sec=overrides.pop("silence_timeout_sec", 3.0),
            max_questions=max_questions,
            judge_timeout_sec=overrides.pop("judge_timeout_sec", 1.0),
            judge_retries=overrides.pop("judge_retries", 0),
            **overrides,
        )
        return SessionEngine.create(
            "candidate-1",
            scheduler,
            persona=persona,
            mode=mode,
            route=route,
            max_questions=max_questions,
            rng=rng or random.Random(7),
            settings=settings,
            judge=judge,
            sink=engine_sink or sink,
            history=history or history_store,
            send=_send,
        )

    return _make
