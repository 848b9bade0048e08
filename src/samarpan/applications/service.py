"""
Application lifecycle: apply, review, hour submission and completion.

Every status change goes through ``validate_transition``. Completion is the
only place coins move: the award is computed (or clamped) against the
opportunity's maximum, added to the user's balance in one UPDATE, and
followed by badge awarding and the opportunity hours check. The router
drops the cached leaderboard once the completion is committed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from samarpan.applications.workflow import calculate_coins, clamp_coins, validate_transition
from samarpan.db.enums import ApplicationStatus, OpportunityStatus
from samarpan.db.models import Application, Badge, Opportunity, User
from samarpan.errors import ConflictError, NotFoundError, PermissionDeniedError
from samarpan.gamification.badge_service import check_and_award_badges
from samarpan.opportunities.service import get_opportunity

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_application(db: AsyncSession, application_id: str) -> Application:
    """Raises NotFoundError if the application does not exist."""
    result = await db.execute(select(Application).where(Application.id == application_id))
    application = result.scalar_one_or_none()
    if application is None:
        msg = "Application not found"
        raise NotFoundError(msg)
    return application


async def find_application(db: AsyncSession, user_id: str, opportunity_id: str) -> Application | None:
    result = await db.execute(
        select(Application).where(
            Application.user_id == user_id,
            Application.opportunity_id == opportunity_id,
        )
    )
    return result.scalar_one_or_none()


async def list_applications(
    db: AsyncSession,
    user_id: str | None = None,
    opportunity_id: str | None = None,
    status: ApplicationStatus | None = None,
) -> list[Application]:
    """Applications newest first, optionally narrowed by user, opportunity or status."""
    query = select(Application)
    if user_id is not None:
        query = query.where(Application.user_id == user_id)
    if opportunity_id is not None:
        query = query.where(Application.opportunity_id == opportunity_id)
    if status is not None:
        query = query.where(Application.status == status)
    result = await db.execute(query.order_by(Application.applied_at.desc(), Application.id.desc()))
    return list(result.scalars())


# ---------------------------------------------------------------------------
# Applying
# ---------------------------------------------------------------------------


async def apply_to_opportunity(
    db: AsyncSession,
    user: User,
    opportunity_id: str,
    commitment_acknowledged: bool,
    notes: str | None = None,
) -> Application:
    """
    Create a pending application for ``user``.

    Raises:
        ValueError: If the commitment is not acknowledged or the opportunity is not open.
        NotFoundError: If the opportunity does not exist or is not visible to the user.
        ConflictError: If the user already applied.
    """
    if not commitment_acknowledged:
        msg = "You must acknowledge the time commitment before applying"
        raise ValueError(msg)

    opportunity = await get_opportunity(db, opportunity_id, user)
    if opportunity.status != OpportunityStatus.OPEN:
        msg = "This opportunity is no longer accepting applications"
        raise ValueError(msg)

    msg = "You have already applied to this opportunity"
    if await find_application(db, user.id, opportunity.id) is not None:
        raise ConflictError(msg)

    application = Application(user=user, opportunity=opportunity, notes=notes)
    try:
        async with db.begin_nested():
            db.add(application)
    except IntegrityError as e:
        # A concurrent request for the same pair won the unique constraint.
        raise ConflictError(msg) from e
    logger.info("application_created", application_id=application.id, user_id=user.id, opportunity_id=opportunity.id)
    return application


# ---------------------------------------------------------------------------
# Hours
# ---------------------------------------------------------------------------


async def submit_hours(db: AsyncSession, application: Application, user: User, hours: int) -> Application:
    """
    Record the hours a student volunteered (accepted -> hours_submitted).

    Raises:
        PermissionDeniedError: If ``user`` does not own the application.
        ValueError: If hours is not positive.
        InvalidTransitionError: If the application is not accepted.
    """
    if application.user_id != user.id:
        msg = "You can only submit hours for your own applications"
        raise PermissionDeniedError(msg)
    if hours <= 0:
        msg = "Hours must be greater than zero"
        raise ValueError(msg)

    validate_transition(application.status, ApplicationStatus.HOURS_SUBMITTED)
    application.status = ApplicationStatus.HOURS_SUBMITTED
    application.submitted_hours = hours
    application.hour_submission_date = datetime.now(timezone.utc)
    await db.flush()
    logger.info("hours_submitted", application_id=application.id, hours=hours)
    return application


async def approve_hours(
    db: AsyncSession,
    application: Application,
    hours: int | None = None,
    feedback: str | None = None,
) -> Application:
    """Accept submitted hours, optionally correcting the number."""
    validate_transition(application.status, ApplicationStatus.HOURS_APPROVED)
    approved = hours if hours is not None else application.submitted_hours
    if approved < 0:
        msg = "Hours cannot be negative"
        raise ValueError(msg)

    application.status = ApplicationStatus.HOURS_APPROVED
    application.hours_completed = approved
    if feedback is not None:
        application.admin_feedback = feedback
    await db.flush()
    logger.info("hours_approved", application_id=application.id, hours=approved)
    return application


async def reject_hours(db: AsyncSession, application: Application, feedback: str) -> Application:
    """
    Send submitted hours back to the student; the application returns to accepted.

    Raises:
        ConflictError: If no hours are awaiting review.
    """
    if application.status != ApplicationStatus.HOURS_SUBMITTED:
        msg = "Only submitted hours can be rejected"
        raise ConflictError(msg)
    validate_transition(application.status, ApplicationStatus.ACCEPTED)
    application.status = ApplicationStatus.ACCEPTED
    application.submitted_hours = 0
    application.hour_submission_date = None
    application.admin_feedback = feedback
    await db.flush()
    logger.info("hours_rejected", application_id=application.id)
    return application


# ---------------------------------------------------------------------------
# Status changes and completion
# ---------------------------------------------------------------------------


async def update_status(
    db: AsyncSession,
    application: Application,
    target: ApplicationStatus,
    notes: str | None = None,
    hours_completed: int | None = None,
    coins_awarded: int | None = None,
    admin_feedback: str | None = None,
) -> tuple[Application, list[Badge]]:
    """
    Move an application to ``target``.

    Returns the application and any badges awarded by a completion.

    Raises:
        ValueError: If ``target`` is hours_submitted, which only the student can reach.
        InvalidTransitionError: If the workflow does not allow the change.
    """
    if target == ApplicationStatus.HOURS_SUBMITTED:
        msg = "Hours are submitted by the student through submit-hours"
        raise ValueError(msg)
    validate_transition(application.status, target)

    if notes is not None:
        application.notes = notes
    if admin_feedback is not None:
        application.admin_feedback = admin_feedback

    if target == ApplicationStatus.COMPLETED:
        badges = await _complete(db, application, hours_completed, coins_awarded)
        return application, badges

    if target == ApplicationStatus.ACCEPTED and application.status == ApplicationStatus.HOURS_SUBMITTED:
        application.submitted_hours = 0
        application.hour_submission_date = None
    if target == ApplicationStatus.HOURS_APPROVED:
        application.hours_completed = (
            hours_completed if hours_completed is not None else application.submitted_hours
        )

    previous = application.status
    application.status = target
    await db.flush()
    logger.info(
        "application_status_changed",
        application_id=application.id,
        previous=previous.value,
        status=target.value,
    )
    return application, []


async def _complete(
    db: AsyncSession,
    application: Application,
    hours: int | None,
    coins: int | None,
) -> list[Badge]:
    opportunity = application.opportunity
    hours = hours if hours is not None else (application.hours_completed or application.submitted_hours)
    if coins is not None:
        awarded = clamp_coins(coins, opportunity.max_coins)
    else:
        awarded = calculate_coins(hours, opportunity.coins_per_hour, opportunity.max_coins)

    application.status = ApplicationStatus.COMPLETED
    application.completed_at = datetime.now(timezone.utc)
    application.hours_completed = hours
    application.coins_awarded = awarded
    await db.flush()

    # Single-statement increment so concurrent completions cannot lose coins.
    await db.execute(
        update(User)
        .where(User.id == application.user_id)
        .values(coins=User.coins + awarded)
        .execution_options(synchronize_session=False)
    )
    balance = int(await db.scalar(select(User.coins).where(User.id == application.user_id)) or 0)
    set_committed_value(application.user, "coins", balance)

    badges = await check_and_award_badges(db, application.user_id, balance)
    await fill_if_hours_reached(db, opportunity)

    logger.info(
        "application_completed",
        application_id=application.id,
        user_id=application.user_id,
        hours=hours,
        coins=awarded,
        badges=[b.name for b in badges],
    )
    return badges


async def fill_if_hours_reached(db: AsyncSession, opportunity: Opportunity) -> bool:
    """Mark an open opportunity filled once completed hours reach its target."""
    if not opportunity.total_required_hours or opportunity.status != OpportunityStatus.OPEN:
        return False

    total = await db.scalar(
        select(func.coalesce(func.sum(Application.hours_completed), 0)).where(
            Application.opportunity_id == opportunity.id,
            Application.status == ApplicationStatus.COMPLETED,
        )
    )
    if int(total or 0) < opportunity.total_required_hours:
        return False

    opportunity.status = OpportunityStatus.FILLED
    await db.flush()
    logger.info("opportunity_filled", opportunity_id=opportunity.id, hours=int(total or 0))
    return True
