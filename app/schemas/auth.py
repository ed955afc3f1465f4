from typing import Optional

from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema
from app.schemas.user import UserResponse

# NOTE: email-validator is required by Pydantic for EmailStr validation


# Registration / login schemas
class UserRegister(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)  # bcrypt only reads 72 bytes


class UserLogin(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseSchema):
    access_token: str
    user: UserResponse


# Token schemas
class TokenPayload(BaseSchema):
    sub: str
    exp: int


# Identity handed over by an OAuth provider after a successful handshake
class OAuthProfile(BaseSchema):
    provider_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
