"""Urge logging and statistics API endpoints."""

from datetime import date
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.async_session import get_async_db
from app.models.user import User
from app.schemas.stats import HabitUrgeStats, TimeBucket, TimeSeriesPoint, UrgeStats
from app.schemas.urge import UrgeCreate, UrgeListResponse, UrgeResponse
from app.services.async_auth import get_current_user_async
from app.services.async_stats import DEFAULT_WINDOW_DAYS, MAX_WINDOW_DAYS, AsyncStatsService
from app.services.async_urge import DEFAULT_PAGE_SIZE, AsyncUrgeService

router = APIRouter()


@router.post("", response_model=UrgeResponse, status_code=status.HTTP_201_CREATED)
async def log_urge(
    urge_data: UrgeCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Log an urge against a habit."""
    return await AsyncUrgeService.log_urge(db=db, user_id=current_user.id, urge_data=urge_data)


@router.get("", response_model=UrgeListResponse)
async def list_urges(
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Page size, clamped to 1-100"),
    offset: int = Query(0, description="Rows to skip, negative values count as 0"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """The current user's urges, newest first."""
    return await AsyncUrgeService.list_urges(db=db, user_id=current_user.id, limit=limit, offset=offset)


@router.get("/stats", response_model=UrgeStats)
async def get_stats(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Totals per outcome."""
    return await AsyncStatsService.get_stats(db=db, user_id=current_user.id)


@router.get("/stats/by-type", response_model=List[HabitUrgeStats])
async def get_stats_by_habit(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Outcome totals per habit, busiest habit first."""
    return await AsyncStatsService.get_stats_by_habit(db=db, user_id=current_user.id)


def _window_options(bucket: Optional[str], days: Optional[str]) -> Tuple[TimeBucket, int]:
    """Validate the rolling-window parameters; only consulted outside date mode."""
    try:
        time_bucket = TimeBucket(bucket) if bucket is not None else TimeBucket.hour
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bucket must be one of: hour, day",
        )

    if days is None:
        return time_bucket, DEFAULT_WINDOW_DAYS
    try:
        window_days = int(days)
    except ValueError:
        window_days = 0
    if not 1 <= window_days <= MAX_WINDOW_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"days must be an integer between 1 and {MAX_WINDOW_DAYS}",
        )
    return time_bucket, window_days


@router.get("/stats/time-series", response_model=List[TimeSeriesPoint])
async def get_time_series(
    bucket: Optional[str] = Query(None, description="hour (default) or day; ignored with date"),
    days: Optional[str] = Query(None, description="Window length 1-365, default 30; ignored with date"),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD; buckets that day by hour"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Urge counts per time bucket and habit."""
    if day is not None:
        return await AsyncStatsService.get_time_series(db=db, user_id=current_user.id, day=day)

    time_bucket, window_days = _window_options(bucket, days)
    return await AsyncStatsService.get_time_series(
        db=db, user_id=current_user.id, bucket=time_bucket, days=window_days
    )
