import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.async_session import get_async_db
from app.models.user import AuthProvider, User
from app.schemas.auth import AuthResponse, OAuthProfile, TokenPayload
from app.schemas.user import UserResponse
from app.utils.logger import auth_logger

# Missing tokens are reported with the same 401 as invalid ones
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

# bcrypt ignores everything past 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


class AsyncAuthService:
    """
    Async authentication service: password hashing, token issuance and
    validation, local registration/login and OAuth account linking.
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a hash."""
        return bcrypt.checkpw(
            plain_password.encode('utf-8')[:BCRYPT_MAX_BYTES], hashed_password.encode('utf-8')
        )

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password for storage."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode('utf-8')[:BCRYPT_MAX_BYTES], salt)
        return hashed.decode('utf-8')

    @classmethod
    def create_access_token(cls, user_id: uuid.UUID, expires_delta: timedelta = None) -> str:
        """Create a new JWT access token."""
        if expires_delta is None:
            expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)

        expire = datetime.now(timezone.utc) + expires_delta
        to_encode = {"sub": str(user_id), "exp": expire}

        return jwt.encode(
            to_encode,
            settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

    @staticmethod
    def to_auth_response(user: User) -> AuthResponse:
        """Issue a token for `user` and pair it with the sanitized user view."""
        return AuthResponse(
            access_token=AsyncAuthService.create_access_token(user.id),
            user=UserResponse.model_validate(user),
        )

    @classmethod
    async def get_user_by_email(cls, db: AsyncSession, email: str) -> Optional[User]:
        """Get a user by email."""
        stmt = select(User).where(User.email == email)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def get_user_by_oauth_id(cls, db: AsyncSession, oauth_id: str) -> Optional[User]:
        """Get a user by the provider-assigned account id."""
        stmt = select(User).where(User.oauth_id == oauth_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def get_user_by_id(cls, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def register(cls, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Create a local account and log it in.

        Raises:
            HTTPException: 409 if the email is already registered
        """
        email_conflict = HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

        if await cls.get_user_by_email(db, email):
            auth_logger.warning("Registration rejected, email taken", "REGISTER", email=email)
            raise email_conflict

        user = User(
            email=email,
            hashed_password=cls.get_password_hash(password),
            auth_provider=AuthProvider.local,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await db.rollback()
            raise email_conflict
        await db.refresh(user)

        auth_logger.success("User registered", "REGISTER", user_id=str(user.id))
        return cls.to_auth_response(user)

    @classmethod
    async def login(cls, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Check credentials and issue a token.

        Unknown email, OAuth-only account and wrong password all give the
        same 401.
        """
        user = await cls.get_user_by_email(db, email)

        if not user or not user.hashed_password or not cls.verify_password(password, user.hashed_password):
            auth_logger.warning("Login failed", "LOGIN", email=email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )

        auth_logger.info("User logged in", "LOGIN", user_id=str(user.id))
        return cls.to_auth_response(user)

    @classmethod
    async def validate_oauth_user(cls, db: AsyncSession, profile: OAuthProfile) -> User:
        """
        Resolve an OAuth profile to a user.

        An account already holding the provider id is returned as is. An
        account with the same email gets the provider id linked to it.
        Otherwise a new passwordless account is created.
        """
        if not profile.email:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email not provided by Google",
            )

        user = await cls.get_user_by_oauth_id(db, profile.provider_id)
        if user:
            auth_logger.info("OAuth login", "OAUTH", user_id=str(user.id))
            return user

        user = await cls.get_user_by_email(db, profile.email)
        if user:
            user.oauth_id = profile.provider_id
            user.auth_provider = AuthProvider.google
            user.name = profile.name or user.name or profile.email
            user.profile_picture = profile.picture
            await db.commit()
            await db.refresh(user)
            auth_logger.success("OAuth account linked to existing user", "OAUTH", user_id=str(user.id))
            return user

        user = User(
            email=profile.email,
            oauth_id=profile.provider_id,
            name=profile.name or profile.email,
            profile_picture=profile.picture,
            auth_provider=AuthProvider.google,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent first login created the account
            await db.rollback()
            existing = await cls.get_user_by_oauth_id(db, profile.provider_id)
            if existing is None:
                existing = await cls.get_user_by_email(db, profile.email)
            if existing is None:
                raise
            auth_logger.info("OAuth login after concurrent sign-up", "OAUTH", user_id=str(existing.id))
            return existing
        await db.refresh(user)

        auth_logger.success("User created from OAuth profile", "OAUTH", user_id=str(user.id))
        return user

    @classmethod
    async def get_current_user(
        cls, db: AsyncSession = Depends(get_async_db), token: Optional[str] = Depends(oauth2_scheme)
    ) -> User:
        """Get the current authenticated user from the token."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if not token:
            raise credentials_exception

        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
            )
            token_data = TokenPayload(**payload)
            user_id = uuid.UUID(token_data.sub)
        except (jwt.PyJWTError, ValidationError, ValueError):
            raise credentials_exception

        user = await cls.get_user_by_id(db, user_id)
        if user is None:
            raise credentials_exception

        return user


# Standalone async dependency function for FastAPI
async def get_current_user_async(
    db: AsyncSession = Depends(get_async_db),
    token: Optional[str] = Depends(oauth2_scheme)
) -> User:
    """Get the current authenticated user from the token (async version)."""
    return await AsyncAuthService.get_current_user(db, token)
