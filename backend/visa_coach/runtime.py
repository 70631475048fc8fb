import logging
from dataclasses import dataclass, field

from visa_coach.core.config import DATA_DIR, OPENAI_API_KEY, EngineSettings, load_settings
from visa_coach.judging.service import JudgingService, OpenAIJudgingService
from visa_coach.persistence.sink import JsonFileSink, NullSink, PersistenceSink, ScoreHistoryStore
from visa_coach.session.registry import SessionRegistry

logger = logging.getLogger("visa_coach.runtime")


@dataclass
class Runtime:
    """Process-wide collaborators shared by the HTTP routes."""
    registry: SessionRegistry = field(default_factory=SessionRegistry)
    sink: PersistenceSink = field(default_factory=NullSink)
    history: ScoreHistoryStore = field(default_factory=ScoreHistoryStore)
    judge: JudgingService | None = None
    settings: EngineSettings = field(default_factory=load_settings)


_runtime: Runtime | None = None


def build_runtime() -> Runtime:
    judge = OpenAIJudgingService() if OPENAI_API_KEY else None
    if judge is None:
        logger.info("[SYSTEM] OPENAI_API_KEY missing, judging disabled (heuristic scoring only)")
    return Runtime(
        sink=JsonFileSink(DATA_DIR / "sessions.json"),
        history=ScoreHistoryStore(DATA_DIR / "score_history.json"),
        judge=judge,
    )


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        _runtime = build_runtime()
    return _runtime
