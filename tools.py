import calendar
import datetime
from typing import List, Tuple
from zoneinfo import ZoneInfo


class DateTools:
    """Calendar helpers shared by the store, statistics and exchange code."""

    WEEK_STARTS = ("sunday", "monday")

    @staticmethod
    def zone(name: str = "UTC") -> datetime.tzinfo:
        """Return the tzinfo for ``name``."""
        if name.upper() == "UTC":
            return datetime.timezone.utc
        return ZoneInfo(name)

    @staticmethod
    def utc_now_iso(now: datetime.datetime | None = None) -> str:
        """Return ``now`` as a UTC ISO timestamp with millisecond precision."""
        now = now or datetime.datetime.now(datetime.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)
        now = now.astimezone(datetime.timezone.utc)
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def parse(
        value: str | datetime.datetime | datetime.date,
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> datetime.datetime:
        """Return ``value`` as an aware datetime.

        Strings are ISO-8601 (a trailing ``Z`` is accepted). Naive values and
        bare dates are read as wall-clock time in ``tz``.
        """
        if isinstance(value, datetime.datetime):
            dt = value
        elif isinstance(value, datetime.date):
            dt = datetime.datetime.combine(value, datetime.time())
        else:
            text = str(value).strip()
            if text.endswith("Z") or text.endswith("z"):
                text = text[:-1] + "+00:00"
            dt = datetime.datetime.fromisoformat(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=tz)
        return dt

    @classmethod
    def local_day(
        cls,
        value: str | datetime.datetime | datetime.date,
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> datetime.date:
        """Return the calendar day of ``value`` in ``tz``."""
        return cls.parse(value, tz).astimezone(tz).date()

    @staticmethod
    def start_of_week(day: datetime.date, week_start: str = "sunday") -> datetime.date:
        if week_start not in DateTools.WEEK_STARTS:
            raise ValueError(f"unknown week start: {week_start}")
        offset = day.weekday() if week_start == "monday" else (day.weekday() + 1) % 7
        return day - datetime.timedelta(days=offset)

    @staticmethod
    def day_bounds(
        day: datetime.date, tz: datetime.tzinfo = datetime.timezone.utc
    ) -> Tuple[datetime.datetime, datetime.datetime]:
        """Return the first and last instant of ``day`` in ``tz``."""
        start = datetime.datetime.combine(day, datetime.time.min, tzinfo=tz)
        end = datetime.datetime.combine(day, datetime.time.max, tzinfo=tz)
        return start, end

    @classmethod
    def week_bounds(
        cls,
        now: datetime.datetime,
        week_start: str = "sunday",
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> Tuple[datetime.datetime, datetime.datetime]:
        first = cls.start_of_week(cls.local_day(now, tz), week_start)
        last = first + datetime.timedelta(days=6)
        return cls.day_bounds(first, tz)[0], cls.day_bounds(last, tz)[1]

    @classmethod
    def month_bounds(
        cls, now: datetime.datetime, tz: datetime.tzinfo = datetime.timezone.utc
    ) -> Tuple[datetime.datetime, datetime.datetime]:
        day = cls.local_day(now, tz)
        last_day = calendar.monthrange(day.year, day.month)[1]
        first = day.replace(day=1)
        last = day.replace(day=last_day)
        return cls.day_bounds(first, tz)[0], cls.day_bounds(last, tz)[1]

    @classmethod
    def week_starts_in_month(
        cls,
        now: datetime.datetime,
        week_start: str = "sunday",
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> List[datetime.date]:
        """Return the first day of every week overlapping the month of ``now``."""
        start, end = cls.month_bounds(now, tz)
        current = cls.start_of_week(start.date(), week_start)
        weeks: List[datetime.date] = []
        while current <= end.date():
            weeks.append(current)
            current += datetime.timedelta(days=7)
        return weeks
