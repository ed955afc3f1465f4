"""Pydantic schemas for request and response validation."""

# Auth schemas
from .auth import AuthResponse, OAuthProfile, TokenPayload, UserLogin, UserRegister

# User schemas
from .user import UserResponse, UserUpdate

# Habit schemas
from .habit import HabitCreate, HabitResponse

# Urge schemas
from .urge import UrgeCreate, UrgeListResponse, UrgeResponse

# Stats schemas
from .stats import HabitUrgeStats, TimeBucket, TimeSeriesPoint, UrgeStats

__all__ = [
    "AuthResponse",
    "OAuthProfile",
    "TokenPayload",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "UserUpdate",
    "HabitCreate",
    "HabitResponse",
    "UrgeCreate",
    "UrgeListResponse",
    "UrgeResponse",
    "HabitUrgeStats",
    "TimeBucket",
    "TimeSeriesPoint",
    "UrgeStats",
]
