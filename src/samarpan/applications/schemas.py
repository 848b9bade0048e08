"""Request/response schemas for application endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from samarpan.camel import CamelModel
from samarpan.db.enums import ApplicationStatus, Duration, OpportunityStatus, OpportunityType
from samarpan.gamification.schemas import BadgeResponse
from samarpan.users.schemas import PublicUser


class ApplyRequest(CamelModel):
    opportunity_id: str
    commitment_acknowledged: bool = False
    notes: str | None = Field(None, max_length=2000)


class StatusUpdateRequest(CamelModel):
    status: ApplicationStatus
    notes: str | None = None
    hours_completed: int | None = Field(None, ge=0)
    coins_awarded: int | None = None
    admin_feedback: str | None = None


class SubmitHoursRequest(CamelModel):
    hours: int = Field(..., gt=0)


class ApproveHoursRequest(CamelModel):
    hours: int | None = Field(None, ge=0)
    feedback: str | None = None


class RejectHoursRequest(CamelModel):
    feedback: str = Field(..., min_length=1)


class OpportunitySummary(CamelModel):
    id: str
    title: str
    short_description: str
    type: OpportunityType
    duration: Duration
    custom_duration: str | None = None
    status: OpportunityStatus
    coins_per_hour: int
    max_coins: int
    total_required_hours: int | None = None


class ApplicationResponse(CamelModel):
    id: str
    user_id: str
    opportunity_id: str
    status: ApplicationStatus
    applied_at: datetime
    completed_at: datetime | None = None
    notes: str | None = None
    coins_awarded: int
    hours_completed: int
    submitted_hours: int
    hour_submission_date: datetime | None = None
    admin_feedback: str | None = None
    user: PublicUser | None = None
    opportunity: OpportunitySummary | None = None


class StatusUpdateResponse(ApplicationResponse):
    """Status change result; ``newBadges`` lists badges unlocked by a completion."""

    new_badges: list[BadgeResponse] = Field(default_factory=list)
