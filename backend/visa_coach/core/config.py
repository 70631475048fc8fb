import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_float(name: str, default: float) -> float:
    raw = str(os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = str(os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4o-mini").strip()
QA_MODE = os.getenv("QA_MODE", "false").lower() == "true"

JUDGE_TIMEOUT_SEC = max(0.1, _env_float("JUDGE_TIMEOUT_SEC", 12.0))
JUDGE_RETRIES = max(0, min(_env_int("JUDGE_RETRIES", 2), 5))

HARD_TIMEOUT_SEC = max(1.0, _env_float("HARD_TIMEOUT_SEC", 15.0))
SILENCE_TIMEOUT_SEC = max(0.5, _env_float("SILENCE_TIMEOUT_SEC", 3.0))
MAX_QUESTIONS = max(1, _env_int("MAX_QUESTIONS", 8))

DATA_DIR = Path(str(os.getenv("DATA_DIR") or "").strip() or (_BACKEND_ROOT / "data"))


@dataclass(frozen=True)
class EngineSettings:
    hard_timeout_sec: float = HARD_TIMEOUT_SEC
    silence_timeout_sec: float = SILENCE_TIMEOUT_SEC
    max_questions: int = MAX_QUESTIONS
    judge_timeout_sec: float = JUDGE_TIMEOUT_SEC
    judge_retries: int = JUDGE_RETRIES
    max_follow_ups_per_topic: int = 1


def load_settings(**overrides) -> EngineSettings:
    values = {key: value for key, value in overrides.items() if value is not None}
    return EngineSettings(**values)
