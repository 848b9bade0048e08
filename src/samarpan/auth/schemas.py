"""Request/response schemas for authentication and profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from samarpan.camel import CamelModel
from samarpan.db.enums import UserRole


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    """Email registration. The role is derived from the address, never supplied."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    program: str | None = Field(None, max_length=64)

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


class ProfileUpdateRequest(CamelModel):
    """Editable profile fields; omitted fields are left unchanged."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    program: str | None = Field(None, max_length=64)
    profile_image_url: str | None = Field(None, max_length=512)
    anonymize_leaderboard: bool | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserCounts(CamelModel):
    applications: int = 0
    completed_applications: int = 0
    badges: int = 0


class UserResponse(CamelModel):
    """Full user record as seen by its owner (or an admin)."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: UserRole
    program: str | None = None
    coins: int
    anonymize_leaderboard: bool
    created_at: datetime
    updated_at: datetime


class CurrentUserResponse(UserResponse):
    count: UserCounts = Field(default_factory=UserCounts, alias="_count")


class AuthResponse(CamelModel):
    user: UserResponse
    message: str


class MessageResponse(CamelModel):
    message: str
