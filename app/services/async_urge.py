"""Async urge logging service.

Urge events are append-only: they are logged and listed, never edited.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import Habit
from app.models.urge import Urge
from app.schemas.urge import UrgeCreate, UrgeListResponse, UrgeResponse
from app.services.async_error_handler import handle_service_errors
from app.utils.logger import urge_logger

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def clamp_pagination(limit: Optional[int], offset: Optional[int]) -> tuple:
    """Clamp `limit` to [1, MAX_PAGE_SIZE] and `offset` to >= 0."""
    limit = DEFAULT_PAGE_SIZE if limit is None else limit
    offset = 0 if offset is None else offset
    return min(max(limit, 1), MAX_PAGE_SIZE), max(offset, 0)


class AsyncUrgeService:
    """Async service class for urge events."""

    @staticmethod
    async def log_urge(db: AsyncSession, user_id: uuid.UUID, urge_data: UrgeCreate) -> Urge:
        """
        Record one urge event for `user_id`.

        The habit only has to exist; it is not required to be visible to the
        user. Blank trigger and notes are stored as NULL.

        Raises:
            HTTPException: 404 if the habit does not exist
        """
        async with handle_service_errors(
            db, urge_logger, "Failed to log urge", "CREATE", user_id=str(user_id)
        ):
            habit_exists = await db.scalar(select(Habit.id).where(Habit.id == urge_data.habit_id))
            if habit_exists is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found"
                )

            urge = Urge(
                user_id=user_id,
                habit_id=urge_data.habit_id,
                outcome=urge_data.outcome,
                trigger=urge_data.trigger or None,
                notes=urge_data.notes or None,
            )
            db.add(urge)
            await db.commit()
            await db.refresh(urge)

            urge_logger.success(
                "Urge logged", "CREATE",
                urge_id=str(urge.id), habit_id=str(urge.habit_id), outcome=urge.outcome.value,
            )
            return urge

    @staticmethod
    async def list_urges(
        db: AsyncSession,
        user_id: uuid.UUID,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        offset: Optional[int] = 0,
    ) -> UrgeListResponse:
        """Newest-first page of the user's urges with the total count."""
        limit, offset = clamp_pagination(limit, offset)

        async with handle_service_errors(
            db, urge_logger, "Failed to retrieve urges", "LIST", user_id=str(user_id)
        ):
            stmt = (
                select(Urge)
                .where(Urge.user_id == user_id)
                .order_by(Urge.created_at.desc(), Urge.id.desc())
                .offset(offset)
                .limit(limit)
            )
            result = await db.execute(stmt)
            urges = result.scalars().all()

            count_stmt = select(func.count()).select_from(Urge).where(Urge.user_id == user_id)
            total = (await db.execute(count_stmt)).scalar() or 0

        return UrgeListResponse(
            urges=[UrgeResponse.model_validate(urge) for urge in urges],
            total=total,
            limit=limit,
            offset=offset,
        )
