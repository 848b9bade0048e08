"""Badge queries and coin-threshold awarding with duplicate prevention."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.db.enums import BadgeType
from samarpan.db.models import Badge, UserBadge
from samarpan.errors import ConflictError

logger = logging.getLogger(__name__)


async def list_badges(db: AsyncSession) -> list[Badge]:
    """All badge definitions, cheapest first."""
    result = await db.execute(select(Badge).order_by(Badge.coins_required, Badge.name))
    return list(result.scalars())


async def get_user_badges(db: AsyncSession, user_id: str) -> list[UserBadge]:
    """Badges earned by a user, in the order they were earned."""
    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id).order_by(UserBadge.earned_at, UserBadge.id)
    )
    return list(result.scalars())


async def create_badge(
    db: AsyncSession,
    name: str,
    coins_required: int,
    description: str | None = None,
    icon: str | None = None,
    badge_type: BadgeType = BadgeType.MILESTONE,
) -> Badge:
    """
    Create a badge definition.

    Raises:
        ConflictError: If a badge with the same name exists.
    """
    existing = await db.execute(select(Badge.id).where(Badge.name == name))
    if existing.scalar_one_or_none() is not None:
        msg = f"Badge '{name}' already exists"
        raise ConflictError(msg)

    badge = Badge(
        name=name,
        description=description,
        icon=icon,
        coins_required=coins_required,
        type=badge_type,
    )
    db.add(badge)
    await db.flush()
    logger.info("Badge created: %s (%d coins)", name, coins_required)
    return badge


async def check_and_award_badges(db: AsyncSession, user_id: str, coin_balance: int) -> list[Badge]:
    """Award every badge whose threshold ``coin_balance`` has reached and the user lacks.

    Returns the newly awarded badges. Existing awards are never duplicated:
    already-earned badge ids are filtered out here and ``user_badges`` has a
    unique (user_id, badge_id) constraint.
    """
    earned = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    earned_ids = set(earned.scalars())

    eligible = await db.execute(
        select(Badge).where(Badge.coins_required <= coin_balance).order_by(Badge.coins_required)
    )
    awarded: list[Badge] = []
    for badge in eligible.scalars():
        if badge.id in earned_ids:
            continue
        db.add(UserBadge(user_id=user_id, badge=badge))
        awarded.append(badge)

    if awarded:
        await db.flush()
        logger.info("Awarded %d badge(s) to user %s", len(awarded), user_id)
    return awarded
