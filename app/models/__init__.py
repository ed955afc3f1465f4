"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from app.models.habit import Habit, HabitType
from app.models.urge import Urge, UrgeOutcome
from app.models.user import AuthProvider, User

__all__ = [
    "User",
    "AuthProvider",
    "Habit",
    "HabitType",
    "Urge",
    "UrgeOutcome",
]
