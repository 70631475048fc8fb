from typing import Any, Literal

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    candidate_id: str = Field(min_length=1)
    persona: Literal["professional", "skeptical", "friendly", "strict"] | None = None
    mode: Literal["standard", "comprehensive", "stress_test"] = "standard"
    route: Literal["usa_f1", "uk_student", "france_ema", "france_icn"] | None = None
    max_questions: int | None = Field(default=None, ge=1, le=30)
    seed: int | None = None


class TranscriptRequest(BaseModel):
    text: str
    is_final: bool = False
    confidence: float | None = Field(default=None, ge=0.0, le=100.0)


class BodyLanguageRequest(BaseModel):
    score: float = Field(ge=0.0, le=100.0)


class TurnView(BaseModel):
    index: int
    question: str
    category: str
    difficulty: str
    transcript: str
    finalized: bool
    is_follow_up: bool
    finalize_reason: str | None = None
    interrupted: bool = False
    body_language_score: float | None = None
    asr_confidence: float | None = None
    duration_seconds: float | None = None
    result: dict[str, Any] | None = None


class SessionStateResponse(BaseModel):
    id: str
    candidate_id: str
    status: str
    persona: str
    mode: str
    max_questions: int
    route: str | None = None
    prep_seconds: float = 0.0
    created_at: float
    completed_at: float | None = None
    abandoned: bool = False
    turns: list[TurnView]
    current_question: str | None = None


class HealthResponse(BaseModel):
    status: str
    service: str
    sessions: int
    judge_enabled: bool
