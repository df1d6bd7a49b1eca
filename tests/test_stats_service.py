import os
import sys
import datetime
import unittest
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import SlotRepository
from exercise_store import ExerciseStore
from stats_service import StatisticsService

UTC = datetime.timezone.utc
JAN_3 = datetime.datetime(2024, 1, 3, 12, 0, tzinfo=UTC)


class StatisticsServiceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_stats.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.store = ExerciseStore(SlotRepository(self.db_path))
        self.stats = StatisticsService(self.store)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def _add(self, date: str, **fields) -> dict:
        data = {
            "name": "Session",
            "type": "running",
            "duration": 30,
            "intensityLevel": "moderate",
            "date": date,
        }
        data.update(fields)
        return self.store.create(data).value

    def test_overview_totals(self) -> None:
        self._add("2024-01-01", duration=10, caloriesBurned=5, intensityLevel="low")
        self._add("2024-01-02", duration=20)
        self._add("2024-01-03", duration=30, caloriesBurned=15, intensityLevel="very-high")
        data = self.stats.overview(JAN_3)
        self.assertEqual(data["total_workouts"], 3)
        self.assertEqual(data["total_duration"], 60)
        self.assertEqual(data["total_calories"], 20)
        self.assertAlmostEqual(data["average_intensity"], 7 / 3)

    def test_overview_empty(self) -> None:
        data = self.stats.overview(JAN_3)
        self.assertEqual(
            data,
            {
                "total_workouts": 0,
                "total_duration": 0,
                "total_calories": 0,
                "average_intensity": 0,
                "current_streak": 0,
                "longest_streak": 0,
                "this_week_workouts": 0,
                "this_month_workouts": 0,
            },
        )

    def test_three_consecutive_days(self) -> None:
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            self._add(day)
        self.assertEqual(self.stats.streaks(JAN_3), {"current": 3, "longest": 3})

    def test_gap_breaks_streak(self) -> None:
        self._add("2024-01-01")
        self._add("2024-01-03")
        self.assertEqual(self.stats.streaks(JAN_3), {"current": 1, "longest": 1})

    def test_no_records(self) -> None:
        self.assertEqual(self.stats.streaks(JAN_3), {"current": 0, "longest": 0})

    def test_same_day_counted_once(self) -> None:
        self._add("2024-01-01T07:00:00.000Z")
        self._add("2024-01-01T19:00:00.000Z")
        now = datetime.datetime(2024, 1, 1, 21, 0, tzinfo=UTC)
        self.assertEqual(self.stats.streaks(now), {"current": 1, "longest": 1})
        self.assertEqual(
            self.stats.training_days(self.store.fetch_all()),
            [datetime.date(2024, 1, 1)],
        )

    def test_current_streak_anchors_on_yesterday(self) -> None:
        self._add("2024-01-01")
        self._add("2024-01-02")
        self.assertEqual(self.stats.streaks(JAN_3), {"current": 2, "longest": 2})
        two_days_later = datetime.datetime(2024, 1, 4, 9, 0, tzinfo=UTC)
        self.assertEqual(self.stats.streaks(two_days_later), {"current": 0, "longest": 2})

    def test_longest_streak_out_of_order_input(self) -> None:
        days = [
            datetime.date(2024, 1, 10),
            datetime.date(2024, 1, 2),
            datetime.date(2024, 1, 11),
            datetime.date(2024, 1, 1),
            datetime.date(2024, 1, 3),
            datetime.date(2024, 1, 2),
        ]
        self.assertEqual(StatisticsService.longest_streak(days), 3)
        self.assertEqual(StatisticsService.longest_streak([]), 0)
        self.assertEqual(
            StatisticsService.current_streak(days, datetime.date(2024, 1, 11)), 2
        )

    def test_week_and_month_counts_sunday_start(self) -> None:
        self._add("2023-12-30")
        self._add("2023-12-31")
        self._add("2024-01-01")
        self._add("2024-01-03T23:00:00.000Z")
        self._add("2024-01-07")
        data = self.stats.overview(JAN_3)
        self.assertEqual(data["this_week_workouts"], 3)
        self.assertEqual(data["this_month_workouts"], 3)

    def test_week_count_monday_start(self) -> None:
        self._add("2023-12-31")
        self._add("2024-01-01")
        self._add("2024-01-07")
        stats = StatisticsService(self.store, week_start="monday")
        self.assertEqual(stats.overview(JAN_3)["this_week_workouts"], 2)
        start, end = stats.week_bounds(JAN_3)
        self.assertEqual(start.date(), datetime.date(2024, 1, 1))
        self.assertEqual(end.date(), datetime.date(2024, 1, 7))

    def test_unknown_week_start(self) -> None:
        with self.assertRaises(ValueError):
            StatisticsService(self.store, week_start="friday")

    def test_weekly_duration_chart(self) -> None:
        self._add("2024-01-01", duration=10)
        self._add("2024-01-02", duration=20)
        self._add("2024-01-03", duration=30)
        self._add("2024-01-03T18:00:00.000Z", duration=5)
        chart = self.stats.weekly_duration_chart(JAN_3)
        self.assertEqual(
            chart["labels"], ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        )
        self.assertEqual(chart["datasets"][0]["label"], "Duration (minutes)")
        self.assertEqual(chart["datasets"][0]["data"], [0, 10, 20, 35, 0, 0, 0])

    def test_monthly_charts(self) -> None:
        self._add("2023-12-30", caloriesBurned=100)
        self._add("2024-01-01", caloriesBurned=5)
        self._add("2024-01-02")
        self._add("2024-01-20", caloriesBurned=15)
        workouts = self.stats.monthly_workout_chart(JAN_3)
        self.assertEqual(
            workouts["labels"], ["Week 1", "Week 2", "Week 3", "Week 4", "Week 5"]
        )
        self.assertEqual(workouts["datasets"][0]["data"], [2, 0, 1, 0, 0])
        calories = self.stats.monthly_calories_chart(JAN_3)
        self.assertEqual(calories["datasets"][0]["data"], [5, 0, 15, 0, 0])

    def test_type_and_intensity_charts(self) -> None:
        self._add("2024-01-01", intensityLevel="low")
        self._add("2024-01-02", type="martial-arts", intensityLevel="very-high")
        self._add("2024-01-03")
        types = self.stats.exercise_type_chart()
        self.assertEqual(types["labels"], ["Running", "Martial arts"])
        self.assertEqual(types["datasets"][0]["data"], [2, 1])
        intensity = self.stats.intensity_chart()
        self.assertEqual(intensity["labels"], ["Low", "Moderate", "High", "Very high"])
        self.assertEqual(intensity["datasets"][0]["data"], [1, 1, 0, 1])

    def test_unreadable_dates_are_skipped(self) -> None:
        self.store.merge(
            [
                {
                    "id": "bad",
                    "name": "Imported",
                    "type": "running",
                    "duration": 15,
                    "intensityLevel": "low",
                    "date": "yesterday",
                }
            ]
        )
        self._add("2024-01-03")
        data = self.stats.overview(JAN_3)
        self.assertEqual(data["total_workouts"], 2)
        self.assertEqual(data["this_week_workouts"], 1)
        self.assertEqual(data["current_streak"], 1)


if __name__ == "__main__":
    unittest.main()
