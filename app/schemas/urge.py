from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.models.urge import UrgeOutcome
from app.schemas.base import BaseSchema


class UrgeCreate(BaseSchema):
    outcome: UrgeOutcome
    habit_id: UUID
    trigger: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class UrgeResponse(BaseSchema):
    id: UUID
    user_id: UUID
    habit_id: UUID
    outcome: UrgeOutcome
    trigger: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class UrgeListResponse(BaseSchema):
    """A page of urges, newest first, with the clamped paging values echoed back."""
    urges: List[UrgeResponse]
    total: int
    limit: int
    offset: int
