"""User statistics and public-profile schemas."""

from __future__ import annotations

from samarpan.camel import CamelModel
from samarpan.db.enums import UserRole


class UserStatsResponse(CamelModel):
    total_applications: int
    completed_applications: int
    total_hours: int
    total_coins: int


class PublicUser(CamelModel):
    """Fields of another user that may appear inside opportunity and application payloads."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: UserRole
    program: str | None = None
    coins: int = 0
