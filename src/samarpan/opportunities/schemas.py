"""Request/response schemas for opportunity endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, field_validator, model_validator

from samarpan.camel import CamelModel
from samarpan.db.enums import Duration, OpportunityStatus, OpportunityType, Visibility
from samarpan.users.schemas import PublicUser


def _clean_skills(skills: list[str] | None) -> list[str] | None:
    """Strip blanks and duplicates, keeping first-seen order."""
    if skills is None:
        return None
    seen: dict[str, None] = {}
    for skill in skills:
        cleaned = skill.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class OpportunityCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    short_description: str = Field(..., min_length=1, max_length=160)
    full_description: str = Field(..., min_length=1)
    type: OpportunityType
    duration: Duration
    custom_duration: str | None = Field(None, max_length=100)
    skills: list[str] = Field(default_factory=list)
    location: str | None = Field(None, max_length=200)
    schedule: str | None = Field(None, max_length=200)
    capacity: int | None = Field(None, ge=1)
    total_required_hours: int | None = Field(None, ge=1)
    status: OpportunityStatus = OpportunityStatus.OPEN
    coins_per_hour: int = Field(10, ge=0)
    max_coins: int = Field(100, ge=0)
    visibility: Visibility = Visibility.PUBLIC
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=32)
    image_url: str | None = Field(None, max_length=512)

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: list[str] | None) -> list[str] | None:
        return _clean_skills(v)

    @model_validator(mode="after")
    def custom_duration_required(self) -> OpportunityCreate:
        if self.duration == Duration.CUSTOM and not (self.custom_duration or "").strip():
            msg = "customDuration is required when duration is custom"
            raise ValueError(msg)
        return self


class OpportunityUpdate(CamelModel):
    """Partial update; only the fields present in the request body are applied."""

    title: str | None = Field(None, min_length=1, max_length=200)
    short_description: str | None = Field(None, min_length=1, max_length=160)
    full_description: str | None = Field(None, min_length=1)
    type: OpportunityType | None = None
    duration: Duration | None = None
    custom_duration: str | None = Field(None, max_length=100)
    skills: list[str] | None = None
    location: str | None = Field(None, max_length=200)
    schedule: str | None = Field(None, max_length=200)
    capacity: int | None = Field(None, ge=1)
    total_required_hours: int | None = Field(None, ge=1)
    status: OpportunityStatus | None = None
    coins_per_hour: int | None = Field(None, ge=0)
    max_coins: int | None = Field(None, ge=0)
    visibility: Visibility | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=32)
    image_url: str | None = Field(None, max_length=512)

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: list[str] | None) -> list[str] | None:
        return _clean_skills(v)


class ApplicationCount(CamelModel):
    applications: int = 0


class OpportunityResponse(CamelModel):
    id: str
    title: str
    short_description: str
    full_description: str
    type: OpportunityType
    duration: Duration
    custom_duration: str | None = None
    skills: list[str]
    location: str | None = None
    schedule: str | None = None
    capacity: int | None = None
    total_required_hours: int | None = None
    status: OpportunityStatus
    coins_per_hour: int
    max_coins: int
    visibility: Visibility
    contact_email: str | None = None
    contact_phone: str | None = None
    image_url: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    creator: PublicUser | None = None
    count: ApplicationCount = Field(default_factory=ApplicationCount, alias="_count")


class OpportunityListResponse(CamelModel):
    opportunities: list[OpportunityResponse]
    total: int
    limit: int
    offset: int
