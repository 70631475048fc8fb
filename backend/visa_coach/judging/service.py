import json
import logging
from typing import Any, Protocol

from visa_coach.core.config import JUDGE_TIMEOUT_SEC, MODEL_NAME, OPENAI_API_KEY
from visa_coach.judging import llm
from visa_coach.judging.prompts import build_judge_prompt, build_question_prompt
from visa_coach.scoring.models import JudgedScores

logger = logging.getLogger("visa_coach.judging")

QUESTION_CATEGORIES = ("background", "academic", "financial", "post_study", "personal")


class JudgeUnavailableError(RuntimeError):
    pass


class JudgingService(Protocol):
    async def judge(self, question: str, answer: str, prior_turns: list[dict]) -> dict: ...

    async def generate_question(
        self,
        category: str,
        difficulty: str,
        prior_turns: list[dict],
        follow_up_context: str | None = None,
        visa_name: str | None = None,
    ) -> dict: ...


def _safe_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _clamp(value: float, minimum: float = 0.0, maximum: float = 100.0) -> float:
    return max(minimum, min(maximum, value))


def _loads(raw: str) -> dict:
    try:
        payload = json.loads(str(raw or "").strip() or "{}")
    except json.JSONDecodeError as exc:
        raise JudgeUnavailableError(f"unparseable judge reply: {exc}") from exc
    if not isinstance(payload, dict) or not payload:
        raise JudgeUnavailableError("empty judge reply")
    return payload


def parse_judge_response(payload: dict | None) -> JudgedScores | None:
    """Map a judge reply onto the scores the pipeline consumes; None when unusable."""
    if not isinstance(payload, dict):
        return None
    overall = _safe_float(payload.get("overall"))
    if overall is None:
        return None

    category_scores = payload.get("categoryScores")
    relevance = None
    if isinstance(category_scores, dict):
        relevance = _safe_float(category_scores.get("relevance"))
    if relevance is None:
        relevance = overall

    recommendations = payload.get("recommendations")
    if not isinstance(recommendations, list):
        recommendations = []

    return JudgedScores(
        content=_clamp(overall),
        relevance=_clamp(relevance),
        summary=str(payload.get("summary") or "")[:800],
        recommendations=tuple(str(item) for item in recommendations[:8] if str(item).strip()),
    )


def parse_question_response(payload: dict | None, default_category: str) -> dict | None:
    if not isinstance(payload, dict):
        return None
    question = str(payload.get("question") or "").strip()
    if not question:
        return None
    category = str(payload.get("category") or "").strip().lower()
    if category not in QUESTION_CATEGORIES:
        category = default_category
    return {"question": question, "category": category}


class OpenAIJudgingService:
    """Judging service over the OpenAI chat API."""

    def __init__(self, timeout_sec: float = JUDGE_TIMEOUT_SEC, model: str = MODEL_NAME):
        self.timeout_sec = float(timeout_sec)
        self.model = model

    @property
    def enabled(self) -> bool:
        return bool(OPENAI_API_KEY)

    async def _complete(self, prompt: str, temperature: float) -> dict:
        if not self.enabled:
            raise JudgeUnavailableError("OPENAI_API_KEY is not configured")
        raw = await llm.call_llm(prompt, timeout_sec=self.timeout_sec, temperature=temperature, model=self.model)
        return _loads(raw)

    async def judge(self, question: str, answer: str, prior_turns: list[dict]) -> dict:
        payload = await self._complete(build_judge_prompt(question, answer, prior_turns), temperature=0.3)
        if parse_judge_response(payload) is None:
            raise JudgeUnavailableError("judge reply missing overall score")
        return payload

    async def generate_question(
        self,
        category: str,
        difficulty: str,
        prior_turns: list[dict],
        follow_up_context: str | None = None,
        visa_name: str | None = None,
    ) -> dict:
        prompt = build_question_prompt(category, difficulty, prior_turns, follow_up_context, visa_name)
        payload = await self._complete(prompt, temperature=0.6)
        parsed = parse_question_response(payload, default_category=category)
        if parsed is None:
            raise JudgeUnavailableError("question reply missing question text")
        return parsed
