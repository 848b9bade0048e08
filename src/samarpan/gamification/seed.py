"""Default milestone badges, inserted at startup when missing."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.db.enums import BadgeType
from samarpan.db.models import Badge

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    {
        "name": "First Steps",
        "description": "Earn your first 10 coins by completing a volunteering opportunity",
        "icon": "footprints",
        "coins_required": 10,
        "type": BadgeType.MILESTONE,
    },
    {
        "name": "Helper",
        "description": "Reach 50 coins of community impact",
        "icon": "hand-heart",
        "coins_required": 50,
        "type": BadgeType.MILESTONE,
    },
    {
        "name": "Changemaker",
        "description": "Reach 100 coins. Your hours are making a difference.",
        "icon": "sparkles",
        "coins_required": 100,
        "type": BadgeType.MILESTONE,
    },
    {
        "name": "Champion",
        "description": "Reach 250 coins of volunteering",
        "icon": "trophy",
        "coins_required": 250,
        "type": BadgeType.MILESTONE,
    },
    {
        "name": "Legend",
        "description": "Reach 500 coins. A pillar of the campus community.",
        "icon": "crown",
        "coins_required": 500,
        "type": BadgeType.MILESTONE,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert the default badges that are not present yet (matched by name).

    Returns the number inserted. Safe to run on every startup.
    """
    result = await db.execute(select(Badge.name))
    existing = set(result.scalars())

    inserted = 0
    for data in BADGE_SEED_DATA:
        if data["name"] in existing:
            continue
        db.add(Badge(**data))
        inserted += 1

    if inserted:
        await db.flush()
        logger.info("Seeded %d default badge(s)", inserted)
    return inserted
