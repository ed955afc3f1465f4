import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, String, Uuid
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class AuthProvider(enum.Enum):
    local = "local"
    google = "google"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)  # Nullable for social login
    oauth_id = Column(String(255), unique=True, nullable=True)  # Google account id
    name = Column(String(255), nullable=True)
    profile_picture = Column(String(1024), nullable=True)
    auth_provider = Column(
        Enum(AuthProvider, name="auth_provider"), nullable=False, default=AuthProvider.local
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    habits = relationship("Habit", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    urges = relationship("Urge", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
