"""Admin analytics aggregates."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from samarpan.db.enums import ApplicationStatus
from samarpan.db.models import Application, Opportunity

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

APPLICATIONS_WINDOW_DAYS = 30


async def get_analytics(db: AsyncSession) -> dict[str, Any]:
    """Platform-wide counts, rates and the 30-day application trend."""
    opportunity_count = int(await db.scalar(select(func.count(Opportunity.id))) or 0)
    application_count = int(await db.scalar(select(func.count(Application.id))) or 0)
    completed_count = int(
        await db.scalar(
            select(func.count(Application.id)).where(Application.status == ApplicationStatus.COMPLETED)
        )
        or 0
    )

    since = datetime.now(timezone.utc) - timedelta(days=APPLICATIONS_WINDOW_DAYS)
    day = func.date(Application.applied_at)
    over_time = await db.execute(
        select(day.label("day"), func.count(Application.id))
        .where(Application.applied_at >= since)
        .group_by(day)
        .order_by(day)
    )

    by_type = await db.execute(
        select(Opportunity.type, func.count(Application.id).label("cnt"))
        .select_from(Application)
        .join(Opportunity, Opportunity.id == Application.opportunity_id)
        .group_by(Opportunity.type)
        .order_by(func.count(Application.id).desc())
    )

    return {
        "total_opportunities": opportunity_count,
        "total_applications": application_count,
        "average_apply_rate": application_count / opportunity_count if opportunity_count else 0.0,
        "completion_rate": completed_count / application_count * 100 if application_count else 0.0,
        # PostgreSQL returns a date, SQLite an ISO string; both render as YYYY-MM-DD.
        "applications_over_time": [{"date": str(d), "count": int(c)} for d, c in over_time.all()],
        "applications_by_type": [{"type": t.value, "count": int(c)} for t, c in by_type.all()],
    }
