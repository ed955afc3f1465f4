"""User schemas.

The response model is the sanitized user view: credential fields
(password hash, OAuth id) are never part of it.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.models.user import AuthProvider
from app.schemas.base import BaseSchema


class UserResponse(BaseSchema):
    id: UUID
    email: str
    name: Optional[str] = None
    profile_picture: Optional[str] = None
    auth_provider: AuthProvider
    created_at: datetime
    updated_at: datetime


class UserUpdate(BaseSchema):
    """Partial profile update; omitted fields are left untouched."""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
