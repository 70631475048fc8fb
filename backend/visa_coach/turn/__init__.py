from visa_coach.turn.events import (
    ManualAdvance,
    SessionEvent,
    TimerFired,
    TranscriptCompleted,
    TranscriptUpdate,
    TranscriptUpdated,
)
from visa_coach.turn.lifecycle import TurnLifecycle, TurnState
from visa_coach.turn.timers import LoopScheduler, Scheduler, TurnTimers

__all__ = [
    "LoopScheduler",
    "ManualAdvance",
    "Scheduler",
    "SessionEvent",
    "TimerFired",
    "TranscriptCompleted",
    "TranscriptUpdate",
    "TranscriptUpdated",
    "TurnLifecycle",
    "TurnState",
    "TurnTimers",
]
