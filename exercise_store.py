from __future__ import annotations
import copy
import json
import logging
import sqlite3
import threading
import uuid
import datetime
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from db import SlotRepository, SlotWriteError
from tools import DateTools

logger = logging.getLogger(__name__)

STORAGE_KEY = "exercise-tracker-data"
_PROTECTED_FIELDS = ("id", "createdAt")
_STORE_MANAGED_FIELDS = ("id", "createdAt", "updatedAt")
_REQUIRED_FIELDS = ("name", "type", "duration", "intensityLevel", "date")


@dataclass
class StoreResult:
    """Outcome of a store call.

    ``error`` is ``None`` on success, ``"not_found"`` when the id is unknown
    and ``"persistence"`` when the slot rejected the write.
    """

    success: bool
    value: Any = None
    error: Optional[str] = None
    message: str = ""

    @property
    def not_found(self) -> bool:
        return self.error == "not_found"

    def __bool__(self) -> bool:
        return self.success


class ExerciseStore:
    """In-memory exercise collection flushed to a storage slot on every change."""

    def __init__(
        self,
        slots: SlotRepository,
        storage_key: str = STORAGE_KEY,
        timezone: str = "UTC",
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.slots = slots
        self.storage_key = storage_key
        self.tz = DateTools.zone(timezone)
        self._clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))
        self._lock = threading.RLock()
        self._data: List[dict] = self._load()

    def _load(self) -> List[dict]:
        try:
            raw = self.slots.read(self.storage_key)
        except sqlite3.Error as e:
            logger.warning("Error loading exercise data: %s", e)
            return []
        if raw is None:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Error loading exercise data: %s", e)
            return []
        if not isinstance(parsed, list):
            logger.warning("Stored exercise data is not a list; starting empty")
            return []
        return [ex for ex in parsed if isinstance(ex, dict)]

    def _commit(self, data: List[dict], action: str) -> StoreResult:
        """Write ``data`` to the slot and adopt it only if the write succeeds."""
        try:
            self.slots.write(self.storage_key, json.dumps(data))
        except SlotWriteError as e:
            logger.error("Error saving exercise data during %s: %s", action, e)
            return StoreResult(False, error="persistence", message=str(e))
        self._data = data
        logger.debug("%s persisted (%d exercises)", action, len(data))
        return StoreResult(True)

    def _now(self) -> str:
        return DateTools.utc_now_iso(self._clock())

    def _index(self, exercise_id: str) -> int:
        for idx, ex in enumerate(self._data):
            if ex.get("id") == exercise_id:
                return idx
        return -1

    def create(self, fields: Dict[str, Any]) -> StoreResult:
        """Append a new exercise built from caller ``fields``."""
        now = self._now()
        exercise = {
            k: v
            for k, v in fields.items()
            if k not in _STORE_MANAGED_FIELDS and v is not None
        }
        with self._lock:
            existing = set(self.ids())
            new_id = str(uuid.uuid4())
            while new_id in existing:
                new_id = str(uuid.uuid4())
            exercise.update({"id": new_id, "createdAt": now, "updatedAt": now})
            result = self._commit(self._data + [exercise], "create")
        if result:
            result.value = copy.deepcopy(exercise)
        return result

    def update(self, exercise_id: str, fields: Dict[str, Any]) -> StoreResult:
        """Merge ``fields`` over the exercise; ``None`` drops an optional field."""
        with self._lock:
            idx = self._index(exercise_id)
            if idx == -1:
                return StoreResult(
                    False, error="not_found", message="exercise not found"
                )
            updated = dict(self._data[idx])
            for key, value in fields.items():
                if key in _PROTECTED_FIELDS:
                    continue
                if value is None:
                    if key not in _REQUIRED_FIELDS:
                        updated.pop(key, None)
                else:
                    updated[key] = value
            updated["updatedAt"] = self._now()
            data = list(self._data)
            data[idx] = updated
            result = self._commit(data, "update")
        if result:
            result.value = copy.deepcopy(updated)
        return result

    def delete(self, exercise_id: str) -> StoreResult:
        with self._lock:
            idx = self._index(exercise_id)
            if idx == -1:
                return StoreResult(
                    False, False, error="not_found", message="exercise not found"
                )
            data = self._data[:idx] + self._data[idx + 1 :]
            result = self._commit(data, "delete")
        if result:
            result.value = True
        return result

    def merge(self, exercises: Iterable[dict]) -> StoreResult:
        """Append foreign exercises verbatim, skipping ids already stored."""
        with self._lock:
            seen = set(self.ids())
            added: List[dict] = []
            for ex in exercises:
                if ex.get("id") in seen:
                    continue
                seen.add(ex.get("id"))
                added.append(copy.deepcopy(ex))
            if not added:
                return StoreResult(True, [])
            result = self._commit(self._data + added, "merge")
        if result:
            result.value = copy.deepcopy(added)
        return result

    def clear(self) -> StoreResult:
        """Remove every exercise. Irreversible."""
        with self._lock:
            return self._commit([], "clear")

    def get_by_id(self, exercise_id: str) -> Optional[dict]:
        with self._lock:
            idx = self._index(exercise_id)
            return copy.deepcopy(self._data[idx]) if idx != -1 else None

    def fetch_all(
        self,
        exercise_type: Optional[str] = None,
        intensity_level: Optional[str] = None,
        start: str | datetime.datetime | datetime.date | None = None,
        end: str | datetime.datetime | datetime.date | None = None,
    ) -> List[dict]:
        """Return matching exercises, most recent ``date`` first."""
        with self._lock:
            filtered = copy.deepcopy(self._data)
        if exercise_type and exercise_type != "all":
            filtered = [ex for ex in filtered if ex.get("type") == exercise_type]
        if intensity_level and intensity_level != "all":
            filtered = [
                ex for ex in filtered if ex.get("intensityLevel") == intensity_level
            ]
        if start is not None or end is not None:
            lo = DateTools.parse(start, self.tz) if start is not None else None
            hi = DateTools.parse(end, self.tz) if end is not None else None
            kept = []
            for ex in filtered:
                when = self._when(ex)
                if when is None:
                    continue
                if lo is not None and when < lo:
                    continue
                if hi is not None and when > hi:
                    continue
                kept.append(ex)
            filtered = kept
        # sorted() is stable with reverse=True, so same-date ties keep insertion order
        return sorted(filtered, key=self._sort_key, reverse=True)

    def _when(self, exercise: dict) -> Optional[datetime.datetime]:
        try:
            return DateTools.parse(exercise.get("date"), self.tz)
        except (TypeError, ValueError):
            return None

    def _sort_key(self, exercise: dict) -> datetime.datetime:
        when = self._when(exercise)
        if when is None:
            return datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
        return when

    def workouts_by_date(self) -> Dict[str, List[dict]]:
        """Group exercises by the date part of their ``date`` string."""
        grouped: Dict[str, List[dict]] = {}
        with self._lock:
            data = copy.deepcopy(self._data)
        for ex in data:
            grouped.setdefault(str(ex["date"]).split("T")[0], []).append(ex)
        return grouped

    def snapshot(self) -> List[dict]:
        """Return a copy of the collection in insertion order."""
        with self._lock:
            return copy.deepcopy(self._data)

    def ids(self) -> List[str]:
        with self._lock:
            return [ex.get("id") for ex in self._data]

    def count(self) -> int:
        with self._lock:
            return len(self._data)
