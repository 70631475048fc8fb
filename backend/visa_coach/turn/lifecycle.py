import asyncio
import logging
import time
import uuid
from enum import Enum

logger = logging.getLogger("turn")


class TurnState(Enum):
    ACTIVE = "active"
    SILENCE_PENDING = "silence_pending"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"


class TurnLifecycle:
    """Single-flight finalization guard for one question turn."""

    def __init__(self, turn_index: int, clock=time.monotonic):
        self.turn_id = str(uuid.uuid4())
        self.turn_index = int(turn_index)
        self.state = TurnState.ACTIVE
        self.lock = asyncio.Lock()
        self._clock = clock
        self.started_at = clock()
        self.finalized_at: float | None = None
        self.reason: str | None = None

    @property
    def claimed(self) -> bool:
        return self.state in (TurnState.FINALIZING, TurnState.FINALIZED)

    def note_speech(self) -> None:
        if self.state == TurnState.ACTIVE:
            self.state = TurnState.SILENCE_PENDING

    async def try_finalize(self, reason: str) -> bool:
        async with self.lock:
            if self.claimed:
                logger.info(f"[TURN {self.turn_index}] Finalize skipped (already claimed by {self.reason}) | reason={reason}")
                return False

            logger.info(f"[TURN {self.turn_index}] Transition {self.state.name} → FINALIZING | reason={reason}")
            self.state = TurnState.FINALIZING
            self.reason = reason
            return True

    async def mark_finalized(self) -> float:
        async with self.lock:
            self.state = TurnState.FINALIZED
            self.finalized_at = self._clock()
            latency = self.finalized_at - self.started_at
            logger.info(f"[TURN {self.turn_index}] FINALIZED | latency={latency:.2f}s")
            return latency
