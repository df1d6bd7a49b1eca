from __future__ import annotations
import datetime
from typing import Callable, Dict, Iterable, List, Optional

from exercise_schema import INTENSITY_LEVEL_VALUES, INTENSITY_SCORES, type_label
from exercise_store import ExerciseStore
from tools import DateTools


class StatisticsService:
    """Compute exercise statistics and chart series from the store."""

    def __init__(
        self,
        store: ExerciseStore,
        week_start: str = "sunday",
        timezone: str = "UTC",
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        if week_start not in DateTools.WEEK_STARTS:
            raise ValueError(f"unknown week start: {week_start}")
        self.store = store
        self.week_start = week_start
        self.tz = DateTools.zone(timezone)
        self._clock = clock or (lambda: datetime.datetime.now(self.tz))

    def _now(self, now: datetime.datetime | None) -> datetime.datetime:
        return DateTools.parse(now or self._clock(), self.tz)

    def _dated(self, exercises: Iterable[dict]) -> List[tuple[datetime.datetime, dict]]:
        """Pair each exercise with its parsed date, skipping unreadable dates."""
        result = []
        for ex in exercises:
            try:
                result.append((DateTools.parse(ex.get("date"), self.tz), ex))
            except (TypeError, ValueError):
                continue
        return result

    def week_bounds(
        self, now: datetime.datetime | None = None
    ) -> tuple[datetime.datetime, datetime.datetime]:
        return DateTools.week_bounds(self._now(now), self.week_start, self.tz)

    def month_bounds(
        self, now: datetime.datetime | None = None
    ) -> tuple[datetime.datetime, datetime.datetime]:
        return DateTools.month_bounds(self._now(now), self.tz)

    def _count_between(
        self,
        dated: List[tuple[datetime.datetime, dict]],
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> int:
        return sum(1 for when, _ex in dated if start <= when <= end)

    def training_days(self, exercises: Iterable[dict]) -> List[datetime.date]:
        """Return the distinct calendar days with an exercise, newest first."""
        days = {when.astimezone(self.tz).date() for when, _ex in self._dated(exercises)}
        return sorted(days, reverse=True)

    @staticmethod
    def current_streak(days: Iterable[datetime.date], today: datetime.date) -> int:
        """Count consecutive training days ending today or yesterday.

        A streak is still alive when today has no workout yet but yesterday
        does; in that case counting starts from yesterday.
        """
        present = set(days)
        one_day = datetime.timedelta(days=1)
        if today in present:
            check = today
        elif today - one_day in present:
            check = today - one_day
        else:
            return 0
        streak = 0
        while check in present:
            streak += 1
            check -= one_day
        return streak

    @staticmethod
    def longest_streak(days: Iterable[datetime.date]) -> int:
        """Return the longest run of consecutive calendar days."""
        ordered = sorted(set(days), reverse=True)
        if not ordered:
            return 0
        longest = run = 1
        for newer, older in zip(ordered, ordered[1:]):
            if (newer - older).days == 1:
                run += 1
            else:
                longest = max(longest, run)
                run = 1
        return max(longest, run)

    def streaks(self, now: datetime.datetime | None = None) -> Dict[str, int]:
        today = self._now(now).astimezone(self.tz).date()
        days = self.training_days(self.store.fetch_all())
        return {
            "current": self.current_streak(days, today),
            "longest": self.longest_streak(days),
        }

    def overview(self, now: datetime.datetime | None = None) -> Dict[str, float]:
        """Return totals, average intensity, streaks and week/month counts."""
        now = self._now(now)
        exercises = self.store.fetch_all()
        dated = self._dated(exercises)
        total = len(exercises)
        intensity_sum = sum(
            INTENSITY_SCORES.get(ex.get("intensityLevel"), 0) for ex in exercises
        )
        streaks = self.streaks(now)
        return {
            "total_workouts": total,
            "total_duration": sum(ex.get("duration") or 0 for ex in exercises),
            "total_calories": sum(ex.get("caloriesBurned") or 0 for ex in exercises),
            "average_intensity": intensity_sum / total if total else 0,
            "current_streak": streaks["current"],
            "longest_streak": streaks["longest"],
            "this_week_workouts": self._count_between(dated, *self.week_bounds(now)),
            "this_month_workouts": self._count_between(dated, *self.month_bounds(now)),
        }

    @staticmethod
    def _series(label: str, labels: List[str], data: List[float]) -> dict:
        return {"labels": labels, "datasets": [{"label": label, "data": data}]}

    def weekly_duration_chart(self, now: datetime.datetime | None = None) -> dict:
        """Minutes trained on each day of the current week."""
        start, _end = self.week_bounds(now)
        days = [start.date() + datetime.timedelta(days=i) for i in range(7)]
        totals = {day: 0 for day in days}
        for when, ex in self._dated(self.store.fetch_all()):
            day = when.astimezone(self.tz).date()
            if day in totals:
                totals[day] += ex.get("duration") or 0
        labels = [day.strftime("%a") for day in days]
        return self._series("Duration (minutes)", labels, [totals[d] for d in days])

    def _monthly_buckets(
        self, now: datetime.datetime | None, value: Callable[[dict], float]
    ) -> tuple[List[str], List[float]]:
        weeks = DateTools.week_starts_in_month(self._now(now), self.week_start, self.tz)
        dated = self._dated(self.store.fetch_all())
        data: List[float] = []
        for first in weeks:
            start = DateTools.day_bounds(first, self.tz)[0]
            end = DateTools.day_bounds(first + datetime.timedelta(days=6), self.tz)[1]
            data.append(sum(value(ex) for when, ex in dated if start <= when <= end))
        return [f"Week {i + 1}" for i in range(len(weeks))], data

    def monthly_workout_chart(self, now: datetime.datetime | None = None) -> dict:
        """Workout counts for every week overlapping the current month."""
        labels, data = self._monthly_buckets(now, lambda ex: 1)
        return self._series("Workouts", labels, data)

    def monthly_calories_chart(self, now: datetime.datetime | None = None) -> dict:
        """Calories burned for every week overlapping the current month."""
        labels, data = self._monthly_buckets(
            now, lambda ex: ex.get("caloriesBurned") or 0
        )
        return self._series("Calories Burned", labels, data)

    def exercise_type_chart(self) -> dict:
        counts: Dict[str, int] = {}
        for ex in self.store.fetch_all():
            counts[ex.get("type")] = counts.get(ex.get("type"), 0) + 1
        labels = [type_label(str(t)) for t in counts]
        return self._series("Exercises", labels, list(counts.values()))

    def intensity_chart(self) -> dict:
        counts = {level: 0 for level in INTENSITY_LEVEL_VALUES}
        for ex in self.store.fetch_all():
            level: Optional[str] = ex.get("intensityLevel")
            if level in counts:
                counts[level] += 1
        labels = [type_label(level) for level in counts]
        return self._series("Workouts by Intensity", labels, list(counts.values()))
