"""Habit API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.async_session import get_async_db
from app.models.habit import HabitType
from app.models.user import User
from app.schemas.habit import HabitCreate, HabitResponse
from app.services.async_auth import get_current_user_async
from app.services.async_habit import AsyncHabitService

router = APIRouter()


@router.get("", response_model=List[HabitResponse])
async def list_habits(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Standard habits plus the current user's custom habits."""
    return await AsyncHabitService.list_for_user(db=db, user_id=current_user.id)


@router.post("", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
async def create_habit(
    habit_data: HabitCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """
    Find or create a habit.

    Custom habits are always owned by the caller and standard habits by no
    one; a `userId` in the body is ignored.
    """
    owner_id = current_user.id if habit_data.type == HabitType.custom else None
    return await AsyncHabitService.find_or_create(
        db=db, name=habit_data.name, habit_type=habit_data.type, user_id=owner_id
    )
