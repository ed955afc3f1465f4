import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class UrgeOutcome(enum.Enum):
    resisted = "resisted"
    gave_in = "gave_in"
    delayed = "delayed"


class Urge(Base):
    __tablename__ = "urges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    habit_id = Column(Uuid, ForeignKey("habits.id", ondelete="RESTRICT"), nullable=False, index=True)
    outcome = Column(Enum(UrgeOutcome, name="urge_outcome"), nullable=False)
    trigger = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, index=True, default=lambda: datetime.now(timezone.utc)
    )

    user = relationship("User", back_populates="urges")
    habit = relationship("Habit")
