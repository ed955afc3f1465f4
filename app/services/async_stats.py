"""Async urge statistics service.

Aggregates a user's urge events by outcome, by habit and over time.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import Date, DateTime, Integer, String, bindparam, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import Habit
from app.models.urge import Urge, UrgeOutcome
from app.schemas.stats import HabitUrgeStats, TimeBucket, TimeSeriesPoint, UrgeStats
from app.services.async_error_handler import handle_service_errors
from app.utils.logger import stats_logger

DEFAULT_WINDOW_DAYS = 30
MAX_WINDOW_DAYS = 365

OUTCOME_FIELDS = {
    UrgeOutcome.resisted: "total_resisted",
    UrgeOutcome.gave_in: "total_gave_in",
    UrgeOutcome.delayed: "total_delayed",
}

# Truncation expression per dialect and granularity. Only these fixed
# fragments are ever interpolated into the query text.
BUCKET_EXPRESSIONS = {
    "postgresql": {
        TimeBucket.hour: "date_trunc('hour', u.created_at)",
        TimeBucket.day: "date_trunc('day', u.created_at)",
    },
    "sqlite": {
        TimeBucket.hour: "strftime('%Y-%m-%d %H:00:00', u.created_at)",
        TimeBucket.day: "strftime('%Y-%m-%d 00:00:00', u.created_at)",
    },
}


def _add_outcome(totals: Dict[str, int], outcome: UrgeOutcome, count: int) -> None:
    field = OUTCOME_FIELDS.get(outcome)
    if field:
        totals[field] += count
        totals["total_urges"] += count


def _empty_totals() -> Dict[str, int]:
    return {"total_resisted": 0, "total_gave_in": 0, "total_delayed": 0, "total_urges": 0}


def _isoformat(bucket: datetime) -> str:
    """Render a bucket start as UTC ISO-8601 with millisecond precision and a Z suffix."""
    if bucket.tzinfo is None:
        bucket = bucket.replace(tzinfo=timezone.utc)
    bucket = bucket.astimezone(timezone.utc)
    return bucket.strftime("%Y-%m-%dT%H:%M:%S.") + f"{bucket.microsecond // 1000:03d}Z"


class AsyncStatsService:
    """Async service class for urge statistics."""

    @staticmethod
    async def get_stats(db: AsyncSession, user_id: uuid.UUID) -> UrgeStats:
        """Totals per outcome in one grouped query; missing outcomes count as 0."""
        async with handle_service_errors(
            db, stats_logger, "Failed to retrieve urge statistics", "TOTALS", user_id=str(user_id)
        ):
            stmt = (
                select(Urge.outcome, func.count(Urge.id))
                .where(Urge.user_id == user_id)
                .group_by(Urge.outcome)
            )
            result = await db.execute(stmt)

            totals = _empty_totals()
            for outcome, count in result.all():
                _add_outcome(totals, outcome, count)

        return UrgeStats(**totals)

    @staticmethod
    async def get_stats_by_habit(db: AsyncSession, user_id: uuid.UUID) -> List[HabitUrgeStats]:
        """
        One row per habit the user has logged urges against.

        Rows are sorted by total urges, highest first; ties keep the order in
        which the habits came back from the query.
        """
        async with handle_service_errors(
            db, stats_logger, "Failed to retrieve urge statistics by type", "BY_HABIT", user_id=str(user_id)
        ):
            stmt = (
                select(Habit.id, Habit.name, Urge.outcome, func.count(Urge.id))
                .join(Habit, Urge.habit_id == Habit.id)
                .where(Urge.user_id == user_id)
                .group_by(Habit.id, Habit.name, Urge.outcome)
                .order_by(Habit.name, Habit.id)
            )
            result = await db.execute(stmt)

            by_habit: Dict[uuid.UUID, Dict] = {}
            for habit_id, habit_name, outcome, count in result.all():
                row = by_habit.setdefault(
                    habit_id, {"habit_id": habit_id, "habit_name": habit_name, **_empty_totals()}
                )
                _add_outcome(row, outcome, count)

        rows = sorted(by_habit.values(), key=lambda row: row["total_urges"], reverse=True)
        return [HabitUrgeStats(**row) for row in rows]

    @staticmethod
    async def get_time_series(
        db: AsyncSession,
        user_id: uuid.UUID,
        bucket: TimeBucket = TimeBucket.hour,
        days: int = DEFAULT_WINDOW_DAYS,
        day: Optional[date] = None,
    ) -> List[TimeSeriesPoint]:
        """
        Urge counts per time bucket and habit, oldest bucket first.

        With `day` set, that calendar day is bucketed by hour and `bucket`
        and `days` are ignored. Otherwise the last `days` days are bucketed
        by `bucket`.
        """
        async with handle_service_errors(
            db, stats_logger, "Failed to retrieve time-series data", "TIME_SERIES",
            user_id=str(user_id), bucket=bucket.value, days=days, day=day,
        ):
            dialect = db.get_bind().dialect.name
            expressions = BUCKET_EXPRESSIONS.get(dialect, BUCKET_EXPRESSIONS["postgresql"])

            params = {"user_id": user_id}
            if day is not None:
                bucket_sql = expressions[TimeBucket.hour]
                window_sql = "date(u.created_at) = :day"
                params["day"] = day
            else:
                bucket_sql = expressions[TimeBucket(bucket)]
                window_sql = "u.created_at >= :since"
                params["since"] = datetime.now(timezone.utc) - timedelta(days=days)

            stmt = text(
                f"""
                SELECT {bucket_sql} AS bucket, h.name AS habit_name, count(u.id) AS count
                FROM urges u
                JOIN habits h ON h.id = u.habit_id
                WHERE u.user_id = :user_id AND {window_sql}
                GROUP BY bucket, h.id, h.name
                ORDER BY bucket ASC, h.name ASC
                """
            )
            window_param = (
                bindparam("day", type_=Date()) if day is not None
                else bindparam("since", type_=DateTime(timezone=True))
            )
            stmt = stmt.bindparams(
                bindparam("user_id", type_=Urge.__table__.c.user_id.type),
                window_param,
            ).columns(bucket=DateTime(), habit_name=String(), count=Integer())

            result = await db.execute(stmt, params)
            rows = result.all()

        stats_logger.debug(
            f"Time series returned {len(rows)} rows", "TIME_SERIES", user_id=str(user_id)
        )
        return [
            TimeSeriesPoint(bucket=_isoformat(bucket_start), habit_name=habit_name, count=count)
            for bucket_start, habit_name, count in rows
        ]
