"""Current-user API endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.async_session import get_async_db
from app.models.user import User
from app.schemas.user import UserResponse, UserUpdate
from app.services.async_auth import get_current_user_async
from app.services.async_user import AsyncUserService

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user_async),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the current user's profile."""
    return await AsyncUserService.get_me(db=db, user_id=current_user.id)


@router.patch("/me", response_model=UserResponse)
@limiter.limit(settings.PROFILE_UPDATE_RATE_LIMIT)
async def update_me(
    request: Request,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_user_async),
):
    """Update the current user's profile."""
    return await AsyncUserService.update_me(db=db, user_id=current_user.id, user_data=user_data)
