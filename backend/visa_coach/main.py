import asyncio
import logging
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visa_coach.api.analytics import router as analytics_router
from visa_coach.api.sessions import router as sessions_router
from visa_coach.core.config import QA_MODE
from visa_coach.runtime import Runtime, get_runtime
from visa_coach.schemas import HealthResponse
from visa_coach.system_metrics import get_metrics_snapshot

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

app = FastAPI(title="Visa Interview Coach")
logger = logging.getLogger("visa_coach.main")

SESSION_CLEANUP_INTERVAL_SEC = max(5.0, float(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "60") or 60))
SESSION_CLEANUP_TTL_SEC = max(30.0, float(os.getenv("SESSION_CLEANUP_TTL_SEC", "900") or 900))

_session_cleanup_task: asyncio.Task | None = None


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


_allowed_origins = _get_allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(sessions_router)
app.include_router(analytics_router)


@app.on_event("startup")
async def startup_banner():
    global _session_cleanup_task
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED: persona randomness is seeded")
    logger.info("[SYSTEM] CORS allow_origins=%s", _allowed_origins)

    async def _session_cleanup_loop():
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SEC)
            removed = get_runtime().registry.cleanup_inactive(SESSION_CLEANUP_TTL_SEC)
            if removed > 0:
                logger.info("[SYSTEM] cleaned inactive sessions=%s", removed)

    _session_cleanup_task = asyncio.create_task(_session_cleanup_loop())


@app.on_event("shutdown")
async def shutdown_handler():
    global _session_cleanup_task
    if _session_cleanup_task is not None:
        _session_cleanup_task.cancel()
        try:
            await _session_cleanup_task
        except asyncio.CancelledError:
            pass
        finally:
            _session_cleanup_task = None
    logger.info("[SYSTEM] shutdown complete")


@app.get("/health", response_model=HealthResponse)
async def health(runtime: Runtime = Depends(get_runtime)):
    return HealthResponse(
        status="ok",
        service="visa_coach",
        sessions=len(runtime.registry),
        judge_enabled=runtime.judge is not None,
    )


@app.get("/metrics")
async def metrics(runtime: Runtime = Depends(get_runtime)):
    return get_metrics_snapshot(extra={"sessions_registered": len(runtime.registry)})
