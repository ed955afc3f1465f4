"""
Async unit tests for AsyncStatsService.

Covers outcome totals, the per-habit breakdown and the time series on the
SQLite dialect used by the test suite.
"""

from datetime import date, datetime, timedelta, timezone

from app.models.habit import HabitType
from app.models.urge import UrgeOutcome
from app.schemas.stats import TimeBucket
from app.services.async_stats import AsyncStatsService, _isoformat


def _at(year, month, day, hour, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class TestGetStats:
    async def test_user_without_urges_gets_zeros(self, async_db_session, test_user):
        stats = await AsyncStatsService.get_stats(async_db_session, test_user.id)

        assert stats.model_dump() == {
            "total_resisted": 0,
            "total_gave_in": 0,
            "total_delayed": 0,
            "total_urges": 0,
        }

    async def test_totals_per_outcome(self, async_db_session, test_user, factory):
        habit = await factory.create_habit("Smoking")
        for outcome in [UrgeOutcome.resisted] * 3 + [UrgeOutcome.gave_in] + [UrgeOutcome.delayed] * 2:
            await factory.create_urge(test_user.id, habit.id, outcome=outcome)

        stats = await AsyncStatsService.get_stats(async_db_session, test_user.id)

        assert stats.total_resisted == 3
        assert stats.total_gave_in == 1
        assert stats.total_delayed == 2
        assert stats.total_urges == 6

    async def test_other_users_urges_are_not_counted(self, async_db_session, test_user, factory):
        other = await factory.create_user(email="other@example.com")
        habit = await factory.create_habit("Smoking")
        await factory.create_urge(other.id, habit.id)

        stats = await AsyncStatsService.get_stats(async_db_session, test_user.id)

        assert stats.total_urges == 0


class TestGetStatsByHabit:
    async def test_rows_sorted_by_total_and_sum_to_overall_total(self, async_db_session, test_user, factory):
        smoking = await factory.create_habit("Smoking")
        alcohol = await factory.create_habit("Alcohol")
        snacks = await factory.create_habit("Snacks", HabitType.custom, user_id=test_user.id)

        for outcome in (UrgeOutcome.resisted, UrgeOutcome.resisted, UrgeOutcome.gave_in):
            await factory.create_urge(test_user.id, smoking.id, outcome=outcome)
        await factory.create_urge(test_user.id, alcohol.id, outcome=UrgeOutcome.delayed)
        for outcome in (UrgeOutcome.resisted, UrgeOutcome.delayed):
            await factory.create_urge(test_user.id, snacks.id, outcome=outcome)

        rows = await AsyncStatsService.get_stats_by_habit(async_db_session, test_user.id)
        totals = await AsyncStatsService.get_stats(async_db_session, test_user.id)

        assert [(r.habit_name, r.total_urges) for r in rows] == [("Smoking", 3), ("Snacks", 2), ("Alcohol", 1)]
        smoking_row = rows[0]
        assert smoking_row.habit_id == smoking.id
        assert (smoking_row.total_resisted, smoking_row.total_gave_in, smoking_row.total_delayed) == (2, 1, 0)
        assert sum(r.total_urges for r in rows) == totals.total_urges
        for field in ("total_resisted", "total_gave_in", "total_delayed"):
            assert sum(getattr(r, field) for r in rows) == getattr(totals, field)

    async def test_no_urges_gives_no_rows(self, async_db_session, test_user):
        assert await AsyncStatsService.get_stats_by_habit(async_db_session, test_user.id) == []


class TestGetTimeSeries:
    async def test_date_mode_buckets_that_day_by_hour(self, async_db_session, test_user, factory):
        smoking = await factory.create_habit("Smoking")
        gaming = await factory.create_habit("Gaming")
        await factory.create_urge(test_user.id, smoking.id, created_at=_at(2026, 3, 10, 10, 15))
        await factory.create_urge(test_user.id, smoking.id, created_at=_at(2026, 3, 10, 10, 45))
        await factory.create_urge(test_user.id, gaming.id, created_at=_at(2026, 3, 10, 10, 50))
        await factory.create_urge(test_user.id, smoking.id, created_at=_at(2026, 3, 10, 14, 5))
        # Neighbouring days are excluded
        await factory.create_urge(test_user.id, smoking.id, created_at=_at(2026, 3, 9, 23, 59))
        await factory.create_urge(test_user.id, smoking.id, created_at=_at(2026, 3, 11, 0, 1))

        points = await AsyncStatsService.get_time_series(
            async_db_session, test_user.id, bucket=TimeBucket.day, days=1, day=date(2026, 3, 10)
        )

        assert [(p.bucket, p.habit_name, p.count) for p in points] == [
            ("2026-03-10T10:00:00.000Z", "Gaming", 1),
            ("2026-03-10T10:00:00.000Z", "Smoking", 2),
            ("2026-03-10T14:00:00.000Z", "Smoking", 1),
        ]

    async def test_window_mode_by_day_excludes_old_events(self, async_db_session, test_user, factory):
        habit = await factory.create_habit("Smoking")
        recent = datetime.now(timezone.utc) - timedelta(hours=1)
        await factory.create_urge(test_user.id, habit.id, created_at=recent)
        await factory.create_urge(test_user.id, habit.id, created_at=recent - timedelta(minutes=5))
        await factory.create_urge(test_user.id, habit.id, created_at=recent - timedelta(days=40))

        points = await AsyncStatsService.get_time_series(
            async_db_session, test_user.id, bucket=TimeBucket.day, days=30
        )

        recent_minus_5 = recent - timedelta(minutes=5)
        expected_days = sorted({
            _isoformat(ts.replace(hour=0, minute=0, second=0, microsecond=0)) for ts in (recent, recent_minus_5)
        })
        assert [p.bucket for p in points] == expected_days
        assert sum(p.count for p in points) == 2

    async def test_window_mode_by_hour(self, async_db_session, test_user, factory):
        habit = await factory.create_habit("Smoking")
        three_hours_ago = datetime.now(timezone.utc) - timedelta(hours=3)
        await factory.create_urge(test_user.id, habit.id, created_at=three_hours_ago)

        points = await AsyncStatsService.get_time_series(async_db_session, test_user.id, bucket=TimeBucket.hour)

        assert len(points) == 1
        assert points[0].bucket == _isoformat(three_hours_ago.replace(minute=0, second=0, microsecond=0))
        assert points[0].habit_name == "Smoking"
        assert points[0].count == 1

    async def test_only_own_urges_are_included(self, async_db_session, test_user, factory):
        other = await factory.create_user(email="other@example.com")
        habit = await factory.create_habit("Smoking")
        await factory.create_urge(other.id, habit.id)

        assert await AsyncStatsService.get_time_series(async_db_session, test_user.id) == []


def test_isoformat_treats_naive_values_as_utc():
    assert _isoformat(datetime(2026, 1, 2, 3, 0, 0)) == "2026-01-02T03:00:00.000Z"
    assert _isoformat(datetime(2026, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))) == "2026-01-02T03:00:00.000Z"
