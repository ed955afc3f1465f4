from enum import Enum
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema


class TimeBucket(str, Enum):
    """Granularity options for time-series queries."""
    hour = "hour"
    day = "day"


class UrgeStats(BaseSchema):
    """Totals per outcome; outcomes with no events are reported as 0."""
    total_resisted: int = 0
    total_gave_in: int = 0
    total_delayed: int = 0
    total_urges: int = 0


class HabitUrgeStats(UrgeStats):
    """Per-habit outcome breakdown."""
    habit_id: UUID
    habit_name: str


class TimeSeriesPoint(BaseSchema):
    bucket: str = Field(..., description="Start of the bucket, ISO-8601")
    habit_name: str
    count: int
