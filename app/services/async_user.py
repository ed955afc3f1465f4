"""Async user service.

Reads and updates the current user's own record. Responses always go
through `UserResponse`, so credential columns never leave this layer.
"""

import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import UserResponse, UserUpdate
from app.utils.logger import user_logger


class AsyncUserService:
    """Async service class for the current user's profile."""

    @staticmethod
    async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
        stmt = select(User).where(User.id == user_id)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return user

    @staticmethod
    async def get_me(db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        """Get the sanitized view of a user."""
        user = await AsyncUserService._get_user_or_404(db, user_id)
        return UserResponse.model_validate(user)

    @staticmethod
    async def update_me(
        db: AsyncSession, user_id: uuid.UUID, user_data: UserUpdate
    ) -> UserResponse:
        """Apply the supplied fields to a user; omitted fields stay as they are."""
        user = await AsyncUserService._get_user_or_404(db, user_id)

        update_data = user_data.model_dump(exclude_unset=True)
        if update_data:
            for field, value in update_data.items():
                setattr(user, field, value)
            user.updated_at = datetime.now(timezone.utc)
            await db.commit()
            await db.refresh(user)
            user_logger.success("Profile updated", "UPDATE", user_id=str(user_id), fields=list(update_data))

        return UserResponse.model_validate(user)
