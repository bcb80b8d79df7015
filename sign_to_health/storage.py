"""
Session persistence.

- SessionStore: JSON file on disk, newest session first
- ApiSessionStore: the same interface against a remote session API
- ResilientSessionStore: wraps either one with a bounded local cache so a
  failing backend never breaks an intake session
"""
import json
import logging
import os
import time
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests
from pydantic import BaseModel, ValidationError

from .session import SessionRecord


logger = logging.getLogger(__name__)

SESSIONS_FILENAME = "sessions.json"
SESSION_FILTERS = ("all", "emergencies", "today", "week")
WEEK_SECONDS = 7 * 24 * 60 * 60


class SessionStats(BaseModel):
    total: int
    emergencies: int
    avg_duration: float  # seconds
    by_triage: Dict[str, int]


def compute_stats(sessions: Sequence[SessionRecord]) -> SessionStats:
    by_triage: Dict[str, int] = {}
    for s in sessions:
        key = s.triage_urgency or "unknown"
        by_triage[key] = by_triage.get(key, 0) + 1
    total = len(sessions)
    return SessionStats(
        total=total,
        emergencies=sum(1 for s in sessions if s.emergency_triggered),
        avg_duration=sum(s.duration for s in sessions) / total if total else 0.0,
        by_triage=by_triage,
    )


def filter_sessions(
    sessions: Sequence[SessionRecord],
    filter: str = "all",
    start: Optional[float] = None,
    end: Optional[float] = None,
    now: Optional[float] = None,
) -> List[SessionRecord]:
    """
    Select sessions by a named filter or an explicit time range.

    Args:
        sessions: Records, newest first
        filter: "all", "emergencies", "today" (since local midnight) or
            "week" (last seven days)
        start: Range start, epoch seconds; used with `end` when the filter
            is not one of the named ones above other than "all"
        end: Range end, epoch seconds, inclusive
        now: Current time, epoch seconds

    Returns:
        Matching records in their stored order
    """
    if now is None:
        now = time.time()

    if filter == "emergencies":
        return [s for s in sessions if s.emergency_triggered]
    if filter == "today":
        midnight = datetime.fromtimestamp(now).replace(hour=0, minute=0, second=0, microsecond=0)
        start, end = midnight.timestamp(), now
    elif filter == "week":
        start, end = now - WEEK_SECONDS, now
    elif start is None or end is None:
        return list(sessions)
    return [s for s in sessions if start <= s.timestamp <= end]


class SessionStore:
    """JSON-file session history."""

    def __init__(self, data_dir: Union[str, Path] = "data", max_history: int = 100):
        self.data_dir = Path(data_dir)
        self.max_history = max_history
        self.sessions_file = self.data_dir / SESSIONS_FILENAME

    def _read(self) -> List[SessionRecord]:
        if not self.sessions_file.exists():
            return []
        with open(self.sessions_file, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
                return [SessionRecord.model_validate(item) for item in raw]
            except (json.JSONDecodeError, ValidationError, TypeError) as e:
                raise ValueError(f"Corrupt session file {self.sessions_file}: {e}") from e

    def _write(self, sessions: Sequence[SessionRecord]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = [s.model_dump(mode="json") for s in sessions]
        tmp = self.sessions_file.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp, self.sessions_file)

    def init(self) -> None:
        """Create the data directory and an empty history if missing."""
        if not self.sessions_file.exists():
            self._write([])

    def get_all_sessions(self) -> List[SessionRecord]:
        return self._read()

    def save_session(self, record: SessionRecord) -> SessionRecord:
        """Insert `record` at the front, or replace the record with its id in place."""
        sessions = self._read()
        for i, existing in enumerate(sessions):
            if existing.id == record.id:
                sessions[i] = record
                break
        else:
            sessions.insert(0, record)
        self._write(sessions[:self.max_history])
        return record

    def get_session_by_id(self, session_id: str) -> Optional[SessionRecord]:
        return next((s for s in self._read() if s.id == session_id), None)

    def delete_session(self, session_id: str) -> bool:
        sessions = self._read()
        kept = [s for s in sessions if s.id != session_id]
        if len(kept) == len(sessions):
            return False
        self._write(kept)
        return True

    def list_sessions(self, filter: str = "all", start: Optional[float] = None,
                      end: Optional[float] = None) -> List[SessionRecord]:
        return filter_sessions(self._read(), filter, start, end)

    def get_stats(self) -> SessionStats:
        return compute_stats(self._read())

    def clear_all(self) -> None:
        self._write([])

    def info(self) -> Dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "sessions_file": str(self.sessions_file),
            "session_count": len(self._read()),
        }


class ApiSessionStore:
    """Session store backed by a remote session API."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _url(self, path: str = "") -> str:
        return f"{self.base_url}/api/sessions{path}"

    def _data(self, response: requests.Response) -> Any:
        response.raise_for_status()
        body = response.json()
        if not body.get("success", False):
            raise ValueError(body.get("error") or "Session API reported failure")
        return body.get("data")

    def save_session(self, record: SessionRecord) -> SessionRecord:
        response = self.http.post(self._url(), json=record.model_dump(mode="json"), timeout=self.timeout)
        return SessionRecord.model_validate(self._data(response))

    def get_session_by_id(self, session_id: str) -> Optional[SessionRecord]:
        response = self.http.get(self._url(f"/{session_id}"), timeout=self.timeout)
        if response.status_code == 404:
            return None
        return SessionRecord.model_validate(self._data(response))

    def delete_session(self, session_id: str) -> bool:
        response = self.http.delete(self._url(f"/{session_id}"), timeout=self.timeout)
        if response.status_code == 404:
            return False
        self._data(response)
        return True

    def list_sessions(self, filter: str = "all", start: Optional[float] = None,
                      end: Optional[float] = None) -> List[SessionRecord]:
        params: Dict[str, Any] = {"filter": filter}
        if start is not None and end is not None:
            params["startDate"] = start
            params["endDate"] = end
        response = self.http.get(self._url(), params=params, timeout=self.timeout)
        return [SessionRecord.model_validate(item) for item in self._data(response)]

    def get_stats(self) -> SessionStats:
        response = self.http.get(self._url(), params={"stats": "true"}, timeout=self.timeout)
        return SessionStats.model_validate(self._data(response))

    def clear_all(self) -> None:
        self._data(self.http.delete(self._url(), timeout=self.timeout))


STORE_ERRORS = (OSError, ValueError, requests.RequestException)


class ResilientSessionStore:
    """
    Degraded-mode wrapper around a primary store.

    Every saved record also goes into a bounded in-memory cache (newest
    first, upsert by id). When the primary fails, the failure is logged,
    `degraded` is set, and reads are answered from the cache. A True from
    `save_session` means the primary accepted the record; the cache is not
    durable.
    """

    def __init__(self, primary, cache_size: int = 50):
        self.primary = primary
        self.cache_size = cache_size
        self.cache: "OrderedDict[str, SessionRecord]" = OrderedDict()
        self.degraded = False

    def _remember(self, record: SessionRecord) -> None:
        self.cache[record.id] = record
        self.cache.move_to_end(record.id, last=False)
        while len(self.cache) > self.cache_size:
            self.cache.popitem(last=True)

    def cached_sessions(self) -> List[SessionRecord]:
        return list(self.cache.values())

    def save_session(self, record: SessionRecord) -> bool:
        self._remember(record)
        try:
            self.primary.save_session(record)
        except STORE_ERRORS as e:
            if not self.degraded:
                logger.warning(f"⚠️ Session store unavailable, keeping sessions in local cache: {e}")
            self.degraded = True
            return False
        if self.degraded:
            logger.info("✅ Session store reachable again")
        self.degraded = False
        return True

    def get_session_by_id(self, session_id: str) -> Optional[SessionRecord]:
        try:
            found = self.primary.get_session_by_id(session_id)
        except STORE_ERRORS as e:
            logger.warning(f"⚠️ Session lookup failed, using local cache: {e}")
            self.degraded = True
            return self.cache.get(session_id)
        return found if found is not None else self.cache.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        cached = self.cache.pop(session_id, None) is not None
        try:
            return self.primary.delete_session(session_id) or cached
        except STORE_ERRORS as e:
            logger.warning(f"⚠️ Session delete failed, removed from local cache only: {e}")
            self.degraded = True
            return cached

    def list_sessions(self, filter: str = "all", start: Optional[float] = None,
                      end: Optional[float] = None) -> List[SessionRecord]:
        try:
            return self.primary.list_sessions(filter, start, end)
        except STORE_ERRORS as e:
            logger.warning(f"⚠️ Session listing failed, using local cache: {e}")
            self.degraded = True
            return filter_sessions(self.cached_sessions(), filter, start, end)

    def get_stats(self) -> SessionStats:
        try:
            return self.primary.get_stats()
        except STORE_ERRORS as e:
            logger.warning(f"⚠️ Session stats failed, using local cache: {e}")
            self.degraded = True
            return compute_stats(self.cached_sessions())

    def clear_all(self) -> bool:
        self.cache.clear()
        try:
            self.primary.clear_all()
        except STORE_ERRORS as e:
            logger.error(f"❌ Failed to clear session store: {e}")
            self.degraded = True
            return False
        return True
