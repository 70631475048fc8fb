from dataclasses import dataclass
from typing import Literal, Union


TimerKind = Literal["hard", "silence"]


@dataclass(frozen=True)
class TimerFired:
    kind: TimerKind
    turn_index: int


@dataclass(frozen=True)
class TranscriptUpdated:
    text: str


@dataclass(frozen=True)
class TranscriptCompleted:
    confidence: float | None = None


@dataclass(frozen=True)
class ManualAdvance:
    pass


SessionEvent = Union[TimerFired, TranscriptUpdated, TranscriptCompleted, ManualAdvance]


@dataclass(frozen=True)
class TranscriptUpdate:
    """One message from the transcription stream; ``text`` is the full answer so far."""
    text: str
    is_final: bool = False
    confidence: float | None = None
