import json
import logging
import time
from enum import Enum
from typing import Any

logger = logging.getLogger("visa_coach.events")

# candidate speech and judge prose never reach the logs verbatim
REDACTED_KEYS = {"text", "transcript", "answer", "prompt", "summary"}

WARNING_EVENTS = {"judge_fallback", "question_fallback", "session_abandoned"}


def _redact(value: Any) -> dict:
	text = str(value or "")
	return {
		"redacted": True,
		"length": len(text),
		"words": len(text.split()),
	}


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in REDACTED_KEYS:
		return _redact(value)
	if isinstance(value, Enum):
		return value.value
	if isinstance(value, float):
		return round(value, 3)
	if isinstance(value, (str, int, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, **kwargs) -> None:
	payload = {
		"ts": round(time.time(), 3),
		"component": str(component or "visa_coach"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	level = logging.WARNING if payload["event"] in WARNING_EVENTS else logging.INFO
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
