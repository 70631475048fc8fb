import logging
import random

from fastapi import APIRouter, Depends, HTTPException

from visa_coach.persona.engine import describe
from visa_coach.runtime import Runtime, get_runtime
from visa_coach.schemas import BodyLanguageRequest, CreateSessionRequest, SessionStateResponse, TranscriptRequest
from visa_coach.session.engine import SessionEngine
from visa_coach.session.models import InvalidSessionState, SessionNotFound, SessionStatus
from visa_coach.turn.events import ManualAdvance, TranscriptCompleted, TranscriptUpdated
from visa_coach.turn.timers import LoopScheduler

router = APIRouter(prefix="/sessions", tags=["sessions"])
logger = logging.getLogger("visa_coach.api.sessions")


def _engine_or_404(runtime: Runtime, session_id: str) -> SessionEngine:
    try:
        return runtime.registry.engine(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Interview session not found")


def _state(runtime: Runtime, engine: SessionEngine) -> SessionStateResponse:
    if engine.status == SessionStatus.COMPLETED:
        runtime.registry.mark_inactive(engine.session.id)
    snapshot = engine.session.snapshot()
    current = engine.session.current_turn
    snapshot["current_question"] = current.question if current is not None and not current.finalized else None
    return SessionStateResponse.model_validate(snapshot)


def _conflict(exc: InvalidSessionState) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


@router.post("", response_model=SessionStateResponse, status_code=201)
async def create_session(payload: CreateSessionRequest, runtime: Runtime = Depends(get_runtime)):
    rng = random.Random(payload.seed) if payload.seed is not None else None
    engine = SessionEngine.create(
        candidate_id=payload.candidate_id,
        scheduler=LoopScheduler(),
        persona=payload.persona,
        mode=payload.mode,
        route=payload.route,
        max_questions=payload.max_questions,
        rng=rng,
        settings=runtime.settings,
        judge=runtime.judge,
        sink=runtime.sink,
        history=runtime.history,
    )
    runtime.registry.register(engine)
    logger.info("session created | id=%s persona=%s", engine.session.id, describe(engine.session.persona))
    return _state(runtime, engine)


@router.get("/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    return _state(runtime, _engine_or_404(runtime, session_id))


@router.post("/{session_id}/begin", response_model=SessionStateResponse)
async def begin_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    try:
        await engine.begin()
    except InvalidSessionState as exc:
        raise _conflict(exc)
    return _state(runtime, engine)


@router.post("/{session_id}/pause", response_model=SessionStateResponse)
async def pause_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    try:
        engine.pause()
    except InvalidSessionState as exc:
        raise _conflict(exc)
    return _state(runtime, engine)


@router.post("/{session_id}/resume", response_model=SessionStateResponse)
async def resume_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    try:
        await engine.resume()
    except InvalidSessionState as exc:
        raise _conflict(exc)
    return _state(runtime, engine)


@router.post("/{session_id}/advance", response_model=SessionStateResponse)
async def advance_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    try:
        await engine.handle(ManualAdvance())
    except InvalidSessionState as exc:
        raise _conflict(exc)
    return _state(runtime, engine)


@router.post("/{session_id}/abandon", response_model=SessionStateResponse)
async def abandon_session(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    try:
        await engine.abandon()
    except InvalidSessionState as exc:
        raise _conflict(exc)
    return _state(runtime, engine)


@router.post("/{session_id}/transcript", response_model=SessionStateResponse)
async def push_transcript(session_id: str, payload: TranscriptRequest, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    await engine.handle(TranscriptUpdated(text=payload.text))
    if payload.is_final:
        await engine.handle(TranscriptCompleted(confidence=payload.confidence))
    return _state(runtime, engine)


@router.post("/{session_id}/body-language", response_model=SessionStateResponse)
async def push_body_language(session_id: str, payload: BodyLanguageRequest, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    engine.set_body_language(payload.score)
    return _state(runtime, engine)


@router.get("/{session_id}/report")
async def get_report(session_id: str, runtime: Runtime = Depends(get_runtime)):
    engine = _engine_or_404(runtime, session_id)
    if engine.status != SessionStatus.COMPLETED:
        raise HTTPException(status_code=409, detail="Session is not completed yet")
    if engine.report is None:
        raise HTTPException(status_code=404, detail="Session was abandoned; no report was produced")
    return engine.report.to_dict()
