"""Async habit service.

Standard habits are shared by every user and have no owner; custom habits
belong to exactly one user. Habits are only ever created through
`find_or_create`, so each scope holds at most one habit per name.
"""

import uuid
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, case, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.habit import Habit, HabitType
from app.services.async_error_handler import AsyncErrorHandler, handle_service_errors
from app.utils.logger import habit_logger

STANDARD_HABITS = [
    "Junk Food",
    "Alcohol",
    "Social Media",
    "Smoking",
    "Procrastination",
    "Gaming",
]


class AsyncHabitService:
    """Async service class for the habit catalog."""

    @staticmethod
    async def _find(
        db: AsyncSession, name: str, habit_type: HabitType, user_id: Optional[uuid.UUID]
    ) -> Optional[Habit]:
        stmt = select(Habit).where(Habit.name == name, Habit.type == habit_type)
        if habit_type == HabitType.standard:
            stmt = stmt.where(Habit.user_id.is_(None))
        else:
            stmt = stmt.where(Habit.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def find_or_create(
        db: AsyncSession, name: str, habit_type: HabitType, user_id: Optional[uuid.UUID] = None
    ) -> Habit:
        """
        Return the habit named `name` in its scope, creating it if missing.

        Standard habits are looked up among ownerless habits and `user_id` is
        ignored for them. Custom habits are looked up among `user_id`'s own.
        """
        if habit_type == HabitType.standard:
            user_id = None

        async with handle_service_errors(
            db, habit_logger, "Failed to create habit", "CREATE", name=name, type=habit_type.value
        ):
            existing = await AsyncHabitService._find(db, name, habit_type, user_id)
            if existing:
                return existing

            habit = Habit(name=name, type=habit_type, user_id=user_id)
            db.add(habit)
            try:
                await db.commit()
            except IntegrityError as e:
                # A concurrent request created the same habit first
                await db.rollback()
                if not AsyncErrorHandler.is_unique_violation(e):
                    raise
                existing = await AsyncHabitService._find(db, name, habit_type, user_id)
                if existing is None:
                    raise
                habit_logger.info("Habit created concurrently, using existing row", "CREATE", name=name)
                return existing

            await db.refresh(habit)
            habit_logger.success("Habit created", "CREATE", habit_id=str(habit.id), type=habit_type.value)
            return habit

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: uuid.UUID) -> List[Habit]:
        """Standard habits plus the user's custom habits, standard first, then by name."""
        async with handle_service_errors(
            db, habit_logger, "Failed to retrieve habits", "LIST", user_id=str(user_id)
        ):
            stmt = (
                select(Habit)
                .where(
                    or_(
                        and_(Habit.type == HabitType.standard, Habit.user_id.is_(None)),
                        and_(Habit.type == HabitType.custom, Habit.user_id == user_id),
                    )
                )
                .order_by(
                    case((Habit.type == HabitType.standard, 0), else_=1),
                    Habit.name.asc(),
                )
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

    @staticmethod
    async def get_by_id(db: AsyncSession, habit_id: uuid.UUID) -> Habit:
        stmt = select(Habit).where(Habit.id == habit_id)
        result = await db.execute(stmt)
        habit = result.scalar_one_or_none()

        if not habit:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found"
            )
        return habit

    @staticmethod
    async def seed_standard_habits(db: AsyncSession) -> int:
        """
        Make sure every standard habit exists.

        Each habit is handled on its own; a failure is logged and the rest
        are still seeded. Returns how many habits are in place afterwards.
        """
        seeded = 0
        for name in STANDARD_HABITS:
            try:
                await AsyncHabitService.find_or_create(db, name, HabitType.standard)
                seeded += 1
            except HTTPException as e:
                habit_logger.error(f"Could not seed standard habit '{name}': {e.detail}", "SEED")

        habit_logger.info(f"Standard habits ready: {seeded}/{len(STANDARD_HABITS)}", "SEED")
        return seeded
