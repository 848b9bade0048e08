"""Opportunity queries and administration.

Listing applies search, any-of filters and one of three sort keys in SQL and
returns each row together with its application count.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Subquery, case, delete, func, or_, select

from samarpan.db.enums import (
    DURATION_ORDER,
    Duration,
    OpportunityStatus,
    OpportunityType,
    SortKey,
    Visibility,
)
from samarpan.db.models import Application, Opportunity, OpportunitySkill, User
from samarpan.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def escape_like(text: str) -> str:
    """Make ``%`` and ``_`` in user input match literally in a LIKE pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _application_counts() -> Subquery:
    return (
        select(Application.opportunity_id, func.count(Application.id).label("applications"))
        .group_by(Application.opportunity_id)
        .subquery()
    )


async def list_opportunities(
    db: AsyncSession,
    viewer: User | None,
    search: str | None = None,
    types: Sequence[OpportunityType] = (),
    durations: Sequence[Duration] = (),
    statuses: Sequence[OpportunityStatus] = (),
    skills: Sequence[str] = (),
    sort: SortKey = SortKey.NEWEST,
    limit: int = 12,
    offset: int = 0,
) -> tuple[list[tuple[Opportunity, int]], int]:
    """
    Filtered, sorted page of opportunities.

    Without a status filter only open opportunities are listed; non-admin
    viewers only ever see public ones.

    Returns:
        Tuple of ([(opportunity, application_count)], total matching rows).
    """
    conditions: list[Any] = []

    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        conditions.append(
            or_(
                Opportunity.title.ilike(pattern, escape="\\"),
                Opportunity.short_description.ilike(pattern, escape="\\"),
            )
        )
    if types:
        conditions.append(Opportunity.type.in_(list(types)))
    if durations:
        conditions.append(Opportunity.duration.in_(list(durations)))
    if statuses:
        conditions.append(Opportunity.status.in_(list(statuses)))
    else:
        conditions.append(Opportunity.status == OpportunityStatus.OPEN)
    if skills:
        conditions.append(
            Opportunity.id.in_(
                select(OpportunitySkill.opportunity_id).where(OpportunitySkill.skill.in_(list(skills)))
            )
        )
    if viewer is None or not viewer.is_admin:
        conditions.append(Opportunity.visibility == Visibility.PUBLIC)

    total = await db.scalar(select(func.count(Opportunity.id)).where(*conditions))

    counts = _application_counts()
    app_count = func.coalesce(counts.c.applications, 0)
    query = (
        select(Opportunity, app_count.label("applications"))
        .outerjoin(counts, counts.c.opportunity_id == Opportunity.id)
        .where(*conditions)
    )

    if sort == SortKey.MOST_APPLIED:
        query = query.order_by(app_count.desc(), Opportunity.created_at.desc(), Opportunity.id.desc())
    elif sort == SortKey.ENDING_SOON:
        duration_rank = case(
            {duration.value: rank for duration, rank in DURATION_ORDER.items()},
            value=Opportunity.duration,
            else_=len(DURATION_ORDER),
        )
        query = query.order_by(duration_rank.asc(), Opportunity.created_at.desc(), Opportunity.id.desc())
    else:
        query = query.order_by(Opportunity.created_at.desc(), Opportunity.id.desc())

    result = await db.execute(query.limit(limit).offset(offset))
    return [(opp, int(count)) for opp, count in result.all()], int(total or 0)


async def list_created_by(db: AsyncSession, user: User) -> list[tuple[Opportunity, int]]:
    """Every opportunity an admin created, newest first, in any status."""
    counts = _application_counts()
    app_count = func.coalesce(counts.c.applications, 0)
    result = await db.execute(
        select(Opportunity, app_count)
        .outerjoin(counts, counts.c.opportunity_id == Opportunity.id)
        .where(Opportunity.created_by == user.id)
        .order_by(Opportunity.created_at.desc(), Opportunity.id.desc())
    )
    return [(opp, int(count)) for opp, count in result.all()]


async def count_applications(db: AsyncSession, opportunity_id: str) -> int:
    count = await db.scalar(
        select(func.count(Application.id)).where(Application.opportunity_id == opportunity_id)
    )
    return int(count or 0)


async def get_opportunity(db: AsyncSession, opportunity_id: str, viewer: User | None = None) -> Opportunity:
    """
    Fetch one opportunity as seen by ``viewer``.

    Raises:
        NotFoundError: If it does not exist, or is private and the viewer is not an admin.
    """
    result = await db.execute(select(Opportunity).where(Opportunity.id == opportunity_id))
    opportunity = result.scalar_one_or_none()
    if opportunity is None:
        msg = "Opportunity not found"
        raise NotFoundError(msg)
    if opportunity.visibility == Visibility.PRIVATE and (viewer is None or not viewer.is_admin):
        msg = "Opportunity not found"
        raise NotFoundError(msg)
    return opportunity


async def create_opportunity(db: AsyncSession, creator: User, data: dict[str, Any]) -> Opportunity:
    """Create an opportunity owned by ``creator``."""
    skills = data.pop("skills", None) or []
    opportunity = Opportunity(
        **data,
        creator=creator,
        skill_rows=[OpportunitySkill(skill=skill) for skill in skills],
    )
    db.add(opportunity)
    await db.flush()
    logger.info("opportunity_created", opportunity_id=opportunity.id, created_by=creator.id)
    return opportunity


# Columns that a partial update may not null out.
_REQUIRED_FIELDS = frozenset(
    {
        "title",
        "short_description",
        "full_description",
        "type",
        "duration",
        "status",
        "coins_per_hour",
        "max_coins",
        "visibility",
    }
)


def _replace_skills(opportunity: Opportunity, skills: list[str]) -> None:
    """Make the skill set equal to ``skills``, keeping rows that survive."""
    existing = {row.skill: row for row in opportunity.skill_rows}
    opportunity.skill_rows = [existing.get(skill) or OpportunitySkill(skill=skill) for skill in skills]


async def update_opportunity(db: AsyncSession, opportunity: Opportunity, changes: dict[str, Any]) -> Opportunity:
    """
    Apply a partial update. ``created_by`` is never changed.

    Raises:
        ValueError: If the result would be a custom duration without a description.
    """
    skills = changes.pop("skills", None)
    changes.pop("created_by", None)
    changes = {k: v for k, v in changes.items() if v is not None or k not in _REQUIRED_FIELDS}

    duration = changes.get("duration", opportunity.duration)
    custom_duration = changes.get("custom_duration", opportunity.custom_duration)
    if duration == Duration.CUSTOM and not (custom_duration or "").strip():
        msg = "customDuration is required when duration is custom"
        raise ValueError(msg)

    for field, value in changes.items():
        setattr(opportunity, field, value)
    if skills is not None:
        _replace_skills(opportunity, skills)

    await db.flush()
    logger.info("opportunity_updated", opportunity_id=opportunity.id, fields=sorted(changes))
    return opportunity


async def close_opportunity(db: AsyncSession, opportunity: Opportunity) -> Opportunity:
    opportunity.status = OpportunityStatus.CLOSED
    await db.flush()
    logger.info("opportunity_closed", opportunity_id=opportunity.id)
    return opportunity


async def delete_opportunity(db: AsyncSession, opportunity: Opportunity) -> None:
    """Delete an opportunity together with its applications and skills."""
    removed = await db.execute(delete(Application).where(Application.opportunity_id == opportunity.id))
    await db.delete(opportunity)
    await db.flush()
    logger.info(
        "opportunity_deleted",
        opportunity_id=opportunity.id,
        applications_removed=removed.rowcount or 0,
    )
