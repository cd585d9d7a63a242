"""Request/response schemas for the account endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import EmailStr, Field, field_validator

from appdedupe.schemas import CamelModel

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    """Create an account with name + email + password."""

    name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Name is required"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginRequest(CamelModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserResponse(CamelModel):
    """User projection returned by register, login and /me."""

    id: int
    name: str
    email: str
    role: str
    xp: int = 0
    level: int = 1
    streak: int = 0
    last_activity: datetime | None = None
    daily_confirmations: int = 0
    last_daily_reset: date | None = None
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    """Credential issued on register/login."""

    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_at: datetime


class UserAchievementResponse(CamelModel):
    id: str
    name: str
    unlocked_at: datetime


class PersonalStatsResponse(CamelModel):
    """The caller's own score numbers."""

    xp: int
    level: int
    streak: int
    daily_confirmations: int
    personal_confirmed_apps: int
    xp_into_level: int
    next_level_xp: int
    achievements: list[UserAchievementResponse] = []
