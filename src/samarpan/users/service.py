"""User profile, statistics and account lifecycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import case, delete, func, select

from samarpan.auth.sessions import delete_user_sessions
from samarpan.db.enums import ApplicationStatus
from samarpan.db.models import Application, Opportunity, User, UserBadge
from samarpan.errors import ConflictError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_counts(db: AsyncSession, user_id: str) -> dict[str, int]:
    """Application and badge counters shown next to the signed-in user."""
    applications = await db.scalar(
        select(func.count(Application.id)).where(Application.user_id == user_id)
    )
    completed = await db.scalar(
        select(func.count(Application.id)).where(
            Application.user_id == user_id,
            Application.status == ApplicationStatus.COMPLETED,
        )
    )
    badges = await db.scalar(select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id))
    return {
        "applications": applications or 0,
        "completed_applications": completed or 0,
        "badges": badges or 0,
    }


async def get_user_stats(db: AsyncSession, user: User) -> dict[str, int]:
    """Totals for the student dashboard."""
    is_completed = Application.status == ApplicationStatus.COMPLETED
    result = await db.execute(
        select(
            func.count(Application.id),
            func.coalesce(func.sum(case((is_completed, Application.hours_completed), else_=0)), 0),
            func.coalesce(func.sum(case((is_completed, 1), else_=0)), 0),
        ).where(Application.user_id == user.id)
    )
    total, hours, completed = result.one()
    return {
        "total_applications": int(total or 0),
        "completed_applications": int(completed or 0),
        "total_hours": int(hours or 0),
        "total_coins": user.coins,
    }


async def update_profile(
    db: AsyncSession,
    user: User,
    first_name: str | None = None,
    last_name: str | None = None,
    program: str | None = None,
    profile_image_url: str | None = None,
    anonymize_leaderboard: bool | None = None,
) -> bool:
    """
    Update the editable profile fields; None leaves a field unchanged.

    Returns True when something shown on the leaderboard changed. The caller
    drops the cached rankings once the change is committed.
    """
    if first_name is not None:
        user.first_name = first_name.strip()
    if last_name is not None:
        user.last_name = last_name.strip()
    if program is not None:
        user.program = program
    if profile_image_url is not None:
        user.profile_image_url = profile_image_url

    leaderboard_changed = first_name is not None or last_name is not None or profile_image_url is not None
    if anonymize_leaderboard is not None and anonymize_leaderboard != user.anonymize_leaderboard:
        user.anonymize_leaderboard = anonymize_leaderboard
        leaderboard_changed = True

    await db.flush()
    return leaderboard_changed


async def delete_account(db: AsyncSession, user: User) -> None:
    """
    Delete a user and everything that belongs to them.

    Raises:
        ConflictError: If the user still owns opportunities.
    """
    owned = await db.scalar(select(func.count(Opportunity.id)).where(Opportunity.created_by == user.id))
    if owned:
        msg = "Delete or reassign your opportunities before deleting your account"
        raise ConflictError(msg)

    await db.execute(delete(Application).where(Application.user_id == user.id))
    await db.execute(delete(UserBadge).where(UserBadge.user_id == user.id))
    await delete_user_sessions(db, user.id)
    await db.execute(delete(User).where(User.id == user.id))
    await db.flush()
    logger.info("account_deleted", user_id=user.id)
