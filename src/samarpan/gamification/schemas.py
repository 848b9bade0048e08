"""Badge request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from samarpan.camel import CamelModel
from samarpan.db.enums import BadgeType


class BadgeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    icon: str | None = Field(None, max_length=64)
    coins_required: int = Field(..., ge=0)
    type: BadgeType = BadgeType.MILESTONE


class BadgeResponse(CamelModel):
    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    coins_required: int
    type: BadgeType
    created_at: datetime


class EarnedBadgeResponse(BadgeResponse):
    earned_at: datetime
