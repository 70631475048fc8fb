import asyncio
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from visa_coach.analytics.models import ScoreHistoryEntry

logger = logging.getLogger("visa_coach.persistence")


class PersistenceSink(Protocol):
    async def save_turn(self, session_id: str, record: dict[str, Any]) -> None: ...

    async def save_report(self, session_id: str, report: dict[str, Any]) -> None: ...


class NullSink:
    async def save_turn(self, session_id: str, record: dict[str, Any]) -> None:
        return None

    async def save_report(self, session_id: str, report: dict[str, Any]) -> None:
        return None


def _read_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("store unreadable, starting empty | path=%s err=%s", path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    temp_path.write_text(json.dumps(payload, ensure_ascii=False, default=str), encoding="utf-8")
    temp_path.replace(path)


class JsonFileSink:
    """Session turns and reports in one JSON document keyed by session id."""

    def __init__(self, path: Path):
        self._lock = Lock()
        self._path = Path(path)
        self._sessions: dict[str, dict[str, Any]] = {
            str(key): value
            for key, value in _read_json(self._path).items()
            if isinstance(value, dict)
        }

    def _record(self, session_id: str) -> dict[str, Any]:
        return self._sessions.setdefault(str(session_id), {"turns": [], "report": None})

    def _save_turn(self, session_id: str, record: dict[str, Any]) -> None:
        with self._lock:
            self._record(session_id)["turns"].append(dict(record or {}))
            _write_json(self._path, self._sessions)

    def _save_report(self, session_id: str, report: dict[str, Any]) -> None:
        with self._lock:
            self._record(session_id)["report"] = dict(report or {})
            _write_json(self._path, self._sessions)

    async def save_turn(self, session_id: str, record: dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_turn, session_id, record)

    async def save_report(self, session_id: str, report: dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_report, session_id, report)

    def get(self, session_id: str) -> dict[str, Any] | None:
        with self._lock:
            data = self._sessions.get(str(session_id))
            return dict(data) if isinstance(data, dict) else None


class ScoreHistoryStore:
    """Append-only score history per candidate; in memory when ``path`` is None."""

    def __init__(self, path: Path | None = None):
        self._lock = Lock()
        self._path = Path(path) if path is not None else None
        self._history: dict[str, list[dict[str, Any]]] = {}
        if self._path is not None:
            self._history = {
                str(key): [item for item in value if isinstance(item, dict)]
                for key, value in _read_json(self._path).items()
                if isinstance(value, list)
            }

    def _append(self, candidate_id: str, entry: ScoreHistoryEntry) -> None:
        cid = str(candidate_id or "").strip()
        if not cid:
            return
        with self._lock:
            self._history.setdefault(cid, []).append(entry.to_dict())
            if self._path is not None:
                _write_json(self._path, self._history)

    async def append(self, candidate_id: str, entry: ScoreHistoryEntry) -> None:
        if self._path is None:
            self._append(candidate_id, entry)
            return
        await asyncio.to_thread(self._append, candidate_id, entry)

    def entries(self, candidate_id: str) -> list[ScoreHistoryEntry]:
        with self._lock:
            rows = list(self._history.get(str(candidate_id or "").strip(), []))
        return [ScoreHistoryEntry.from_dict(row) for row in rows]

    def candidates(self) -> list[str]:
        with self._lock:
            return sorted(self._history)
