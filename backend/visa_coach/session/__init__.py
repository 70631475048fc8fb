from visa_coach.session.engine import SessionEngine
from visa_coach.session.models import (
    InterviewSession,
    InvalidSessionState,
    QuestionTurn,
    SessionError,
    SessionNotFound,
    SessionStatus,
)
from visa_coach.session.registry import SessionRegistry
from visa_coach.session.report import SessionReport, build_report, decision_band

__all__ = [
    "InterviewSession",
    "InvalidSessionState",
    "QuestionTurn",
    "SessionEngine",
    "SessionError",
    "SessionNotFound",
    "SessionRegistry",
    "SessionReport",
    "SessionStatus",
    "build_report",
    "decision_band",
]
