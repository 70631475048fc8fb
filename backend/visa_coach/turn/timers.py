import asyncio
import logging
from typing import Callable, Protocol

from visa_coach.turn.events import TimerFired

logger = logging.getLogger("turn")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Scheduler backed by the running asyncio loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, float(delay)), callback)


class TurnTimers:
    """The hard and silence timers of the current turn."""

    def __init__(self, scheduler: Scheduler, on_fire: Callable[[TimerFired], None]):
        self._scheduler = scheduler
        self._on_fire = on_fire
        self._hard: TimerHandle | None = None
        self._silence: TimerHandle | None = None
        self.turn_index: int | None = None
        self.hard_timeout_sec = 0.0
        self.silence_timeout_sec = 0.0

    @property
    def armed(self) -> bool:
        return self._hard is not None or self._silence is not None

    def arm(self, turn_index: int, hard_timeout_sec: float, silence_timeout_sec: float) -> None:
        self.cancel()
        self.turn_index = int(turn_index)
        self.hard_timeout_sec = float(hard_timeout_sec)
        self.silence_timeout_sec = float(silence_timeout_sec)
        self._hard = self._schedule("hard", self.hard_timeout_sec)
        logger.debug(f"[TURN {turn_index}] hard timer armed | seconds={self.hard_timeout_sec:.2f}")

    def touch(self) -> None:
        """(Re)start the silence timer; the hard timer is left alone."""
        if self.turn_index is None:
            return
        if self._silence is not None:
            self._silence.cancel()
        self._silence = self._schedule("silence", self.silence_timeout_sec)

    def cancel(self) -> None:
        for handle in (self._hard, self._silence):
            if handle is not None:
                handle.cancel()
        self._hard = None
        self._silence = None

    def _schedule(self, kind: str, delay: float) -> TimerHandle:
        event = TimerFired(kind=kind, turn_index=self.turn_index)

        def _fire() -> None:
            if kind == "hard":
                self._hard = None
            else:
                self._silence = None
            self._on_fire(event)

        return self._scheduler.call_later(delay, _fire)
