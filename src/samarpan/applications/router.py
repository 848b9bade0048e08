"""Application API endpoints."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.applications.schemas import (
    ApplicationResponse,
    ApplyRequest,
    ApproveHoursRequest,
    RejectHoursRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
    SubmitHoursRequest,
)
from samarpan.applications.service import (
    apply_to_opportunity,
    approve_hours,
    get_application,
    list_applications,
    reject_hours,
    submit_hours,
    update_status,
)
from samarpan.auth.dependencies import get_current_user, require_admin
from samarpan.database import get_session
from samarpan.db.enums import ApplicationStatus
from samarpan.db.models import Application, User
from samarpan.errors import ConflictError, InvalidTransitionError, NotFoundError, PermissionDeniedError
from samarpan.gamification.schemas import BadgeResponse
from samarpan.leaderboard.service import invalidate_leaderboard_cache
from samarpan.redis_client import get_redis

router = APIRouter(prefix="/api/applications", tags=["Applications"])


async def _load(db: AsyncSession, application_id: str) -> Application:
    try:
        return await get_application(db, application_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _raise_for(exc: Exception) -> NoReturn:
    """Translate a service-layer error into the matching HTTP error."""
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, PermissionDeniedError):
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    if isinstance(exc, InvalidTransitionError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    raise HTTPException(status_code=400, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Student actions
# ---------------------------------------------------------------------------


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply(
    body: ApplyRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApplicationResponse:
    """Apply to an open opportunity after acknowledging its time commitment."""
    try:
        application = await apply_to_opportunity(
            db,
            user,
            body.opportunity_id,
            commitment_acknowledged=body.commitment_acknowledged,
            notes=body.notes,
        )
    except (NotFoundError, ConflictError, ValueError) as e:
        _raise_for(e)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@router.get("/user/{user_id}", response_model=list[ApplicationResponse])
async def applications_for_user(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[ApplicationResponse]:
    """A user's applications. Students may only list their own."""
    if user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return [ApplicationResponse.model_validate(a) for a in await list_applications(db, user_id=user_id)]


@router.patch("/{application_id}/submit-hours", response_model=ApplicationResponse)
async def submit_application_hours(
    application_id: str,
    body: SubmitHoursRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApplicationResponse:
    application = await _load(db, application_id)
    try:
        await submit_hours(db, application, user, body.hours)
    except (PermissionDeniedError, InvalidTransitionError, ValueError) as e:
        _raise_for(e)
    await db.commit()
    return ApplicationResponse.model_validate(application)


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


@router.get("", response_model=list[ApplicationResponse])
async def all_applications(
    status: ApplicationStatus | None = Query(None),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[ApplicationResponse]:
    return [ApplicationResponse.model_validate(a) for a in await list_applications(db, status=status)]


@router.get("/opportunity/{opportunity_id}", response_model=list[ApplicationResponse])
async def applications_for_opportunity(
    opportunity_id: str,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[ApplicationResponse]:
    applications = await list_applications(db, opportunity_id=opportunity_id)
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.put("/{application_id}/status", response_model=StatusUpdateResponse)
async def change_status(
    application_id: str,
    body: StatusUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> StatusUpdateResponse:
    """Accept, reject, approve or complete an application.

    Completing awards coins (capped at the opportunity maximum) and any
    badges the new balance unlocks.
    """
    application = await _load(db, application_id)
    try:
        _, badges = await update_status(
            db,
            application,
            body.status,
            notes=body.notes,
            hours_completed=body.hours_completed,
            coins_awarded=body.coins_awarded,
            admin_feedback=body.admin_feedback,
        )
    except (InvalidTransitionError, ValueError) as e:
        _raise_for(e)
    await db.commit()
    if body.status == ApplicationStatus.COMPLETED:
        await invalidate_leaderboard_cache(redis)
    response = StatusUpdateResponse.model_validate(application)
    return response.model_copy(update={"new_badges": [BadgeResponse.model_validate(b) for b in badges]})


@router.post("/{application_id}/approve-hours", response_model=ApplicationResponse)
async def approve_application_hours(
    application_id: str,
    body: ApproveHoursRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApplicationResponse:
    application = await _load(db, application_id)
    try:
        await approve_hours(db, application, hours=body.hours, feedback=body.feedback)
    except (InvalidTransitionError, ValueError) as e:
        _raise_for(e)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@router.post("/{application_id}/reject-hours", response_model=ApplicationResponse)
async def reject_application_hours(
    application_id: str,
    body: RejectHoursRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApplicationResponse:
    """Return submitted hours to the student with feedback."""
    application = await _load(db, application_id)
    try:
        await reject_hours(db, application, body.feedback)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()
    return ApplicationResponse.model_validate(application)
