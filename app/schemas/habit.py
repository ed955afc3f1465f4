from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.models.habit import HabitType
from app.schemas.base import BaseSchema


class HabitCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    type: HabitType
    # Accepted for compatibility; the owner always comes from the auth context
    user_id: Optional[UUID] = None


class HabitResponse(BaseSchema):
    id: UUID
    name: str
    type: HabitType
    user_id: Optional[UUID] = None
    created_at: datetime
