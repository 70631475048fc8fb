import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from visa_coach.persona.engine import PersonaProfile
from visa_coach.scoring.models import ScoringResult


class SessionStatus(Enum):
    PREPARING = "preparing"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class SessionError(Exception):
    pass


class InvalidSessionState(SessionError):
    def __init__(self, operation: str, status: SessionStatus):
        self.operation = operation
        self.status = status
        super().__init__(f"cannot {operation} while session is {status.value}")


class SessionNotFound(SessionError):
    pass


@dataclass
class QuestionTurn:
    index: int
    question: str
    category: str
    difficulty: str = "medium"
    transcript: str = ""
    finalized: bool = False
    body_language_score: float | None = None
    asr_confidence: float | None = None
    result: ScoringResult | None = None
    is_follow_up: bool = False
    finalize_reason: str | None = None
    interrupted: bool = False
    duration_seconds: float | None = None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "question": self.question,
            "category": self.category,
            "difficulty": self.difficulty,
            "transcript": self.transcript,
            "finalized": self.finalized,
            "body_language_score": self.body_language_score,
            "asr_confidence": self.asr_confidence,
            "is_follow_up": self.is_follow_up,
            "finalize_reason": self.finalize_reason,
            "interrupted": self.interrupted,
            "duration_seconds": self.duration_seconds,
            "result": self.result.to_dict() if self.result is not None else None,
        }


@dataclass
class InterviewSession:
    candidate_id: str
    persona: PersonaProfile
    mode: str = "standard"
    max_questions: int = 8
    route: str | None = None
    prep_seconds: float = 0.0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: SessionStatus = SessionStatus.PREPARING
    turns: list[QuestionTurn] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    completed_at: float | None = None
    abandoned: bool = False

    @property
    def current_turn(self) -> QuestionTurn | None:
        return self.turns[-1] if self.turns else None

    @property
    def scored_turns(self) -> list[QuestionTurn]:
        return [turn for turn in self.turns if turn.result is not None]

    def snapshot(self) -> dict:
        return {
            "id": self.id,
            "candidate_id": self.candidate_id,
            "status": self.status.value,
            "persona": self.persona.name,
            "mode": self.mode,
            "max_questions": self.max_questions,
            "route": self.route,
            "prep_seconds": self.prep_seconds,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "abandoned": self.abandoned,
            "turns": [turn.to_dict() for turn in self.turns],
        }
