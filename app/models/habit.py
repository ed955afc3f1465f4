import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class HabitType(enum.Enum):
    standard = "standard"
    custom = "custom"


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    type = Column(Enum(HabitType, name="habit_type"), nullable=False, index=True)
    # Null for standard habits, which are shared by every user
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="habits")

    __table_args__ = (
        # One habit per name in each scope: global for standard, per owner for custom
        Index(
            "uq_habits_standard_name",
            "name",
            unique=True,
            postgresql_where=user_id.is_(None),
            sqlite_where=user_id.is_(None),
        ),
        Index(
            "uq_habits_custom_user_name",
            "user_id",
            "name",
            unique=True,
            postgresql_where=user_id.isnot(None),
            sqlite_where=user_id.isnot(None),
        ),
    )
