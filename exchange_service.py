from __future__ import annotations
import datetime
import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, List, Optional

from config import EXPORT_VERSION
from exercise_store import ExerciseStore, StoreResult
from tools import DateTools

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "type", "duration", "intensityLevel", "date")


@dataclass
class ImportResult:
    success: bool
    message: str
    imported: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.imported is None:
            data.pop("imported")
        return data


class ExchangeService:
    """Export the exercise log and merge exported logs back in."""

    def __init__(
        self,
        store: ExerciseStore,
        indent: int = 2,
        timezone: str = "UTC",
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.store = store
        self.indent = indent
        self.tz = DateTools.zone(timezone)
        self._clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))

    def export_data(self, now: datetime.datetime | None = None) -> dict:
        """Return the versioned transport payload with every exercise verbatim."""
        # raw insertion order, not the date-sorted listing
        return {
            "version": EXPORT_VERSION,
            "exportDate": DateTools.utc_now_iso(now or self._clock()),
            "exercises": self.store.snapshot(),
        }

    def export_json(self, now: datetime.datetime | None = None) -> str:
        return json.dumps(self.export_data(now), indent=self.indent or None)

    def export_filename(self, now: datetime.datetime | None = None) -> str:
        day = DateTools.local_day(now or self._clock(), self.tz).isoformat()
        return f"exercise-data-{day}.json"

    @staticmethod
    def is_valid_exercise(exercise: Any) -> bool:
        """True when every required field is present and non-empty."""
        if not isinstance(exercise, dict):
            return False
        if not isinstance(exercise.get("id"), (str, int)):
            return False
        return all(exercise.get(field) for field in REQUIRED_FIELDS)

    def import_data(self, payload: str | bytes | dict) -> ImportResult:
        """Merge exercises from ``payload``; existing ids are skipped."""
        if isinstance(payload, (str, bytes, bytearray)):
            try:
                parsed = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError):
                return ImportResult(False, "Invalid JSON format")
        else:
            parsed = payload

        if not isinstance(parsed, dict) or not isinstance(parsed.get("exercises"), list):
            return ImportResult(
                False, "Invalid data format: exercises array not found"
            )

        version = parsed.get("version")
        if version != EXPORT_VERSION:
            logger.info("Importing payload with export version %r", version)

        valid: List[dict] = [ex for ex in parsed["exercises"] if self.is_valid_exercise(ex)]
        if not valid:
            return ImportResult(False, "No valid exercises found in import data")

        result: StoreResult = self.store.merge(valid)
        if not result:
            return ImportResult(False, f"Import failed: {result.message}")
        count = len(result.value)
        logger.info("Imported %d of %d exercises", count, len(valid))
        return ImportResult(True, f"Successfully imported {count} exercises", count)

    def clear_all(self) -> StoreResult:
        return self.store.clear()
