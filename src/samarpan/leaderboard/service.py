"""Leaderboard service.

Students are ranked in SQL. The unmasked ranking is cached in Redis per
(timeframe, opportunity, limit); masking for the viewer is applied after the
cache so a cached ranking can be shared between viewers.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from redis.asyncio import Redis
from sqlalchemy import case, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.config import get_settings
from samarpan.db.enums import ApplicationStatus, Timeframe, UserRole
from samarpan.db.models import Application, User
from samarpan.display import display_initials, display_name
from samarpan.redis_client import delete_by_prefix

logger = structlog.get_logger()

CACHE_PREFIX = "leaderboard:"

TIMEFRAME_DAYS: dict[Timeframe, int] = {
    Timeframe.MONTH: 30,
    Timeframe.SEMESTER: 182,
}


def build_cache_key(timeframe: Timeframe, opportunity_id: str | None, limit: int) -> str:
    """Build the Redis key for one cached ranking."""
    return f"{CACHE_PREFIX}{timeframe.value}:{opportunity_id or 'all'}:{limit}"


async def invalidate_leaderboard_cache(redis: Redis) -> int:
    """Drop every cached ranking. Called whenever coins or anonymity change."""
    removed = await delete_by_prefix(redis, CACHE_PREFIX)
    if removed:
        logger.debug("leaderboard_cache_invalidated", keys=removed)
    return removed


async def rank_students(
    db: AsyncSession,
    timeframe: Timeframe = Timeframe.ALL,
    opportunity_id: str | None = None,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """
    Rank students by coins, then completed applications, then seniority.

    ``timeframe`` and ``opportunity_id`` narrow the field to students with a
    completed application inside the window / for that opportunity.
    """
    counts = (
        select(
            Application.user_id,
            func.count(Application.id).label("total"),
            func.sum(case((Application.status == ApplicationStatus.COMPLETED, 1), else_=0)).label("completed"),
        )
        .group_by(Application.user_id)
        .subquery()
    )
    completed_count = func.coalesce(counts.c.completed, 0)
    total_count = func.coalesce(counts.c.total, 0)

    query = (
        select(User, completed_count.label("completed"), total_count.label("total"))
        .outerjoin(counts, counts.c.user_id == User.id)
        .where(User.role == UserRole.STUDENT)
    )

    days = TIMEFRAME_DAYS.get(timeframe)
    if days is not None:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        query = query.where(
            exists().where(
                Application.user_id == User.id,
                Application.status == ApplicationStatus.COMPLETED,
                Application.completed_at >= since,
            )
        )

    if opportunity_id:
        query = query.where(
            exists().where(
                Application.user_id == User.id,
                Application.status == ApplicationStatus.COMPLETED,
                Application.opportunity_id == opportunity_id,
            )
        )

    query = query.order_by(
        User.coins.desc(),
        completed_count.desc(),
        User.created_at.asc(),
        User.id.asc(),
    ).limit(limit)

    result = await db.execute(query)
    return [
        {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "profile_image_url": user.profile_image_url,
            "program": user.program,
            "coins": user.coins,
            "completed_applications": int(completed),
            "total_applications": int(total),
            "anonymize_leaderboard": user.anonymize_leaderboard,
        }
        for user, completed, total in result.all()
    ]


async def get_cached_ranking(
    db: AsyncSession,
    redis: Redis,
    timeframe: Timeframe,
    opportunity_id: str | None,
    limit: int,
) -> list[dict[str, Any]]:
    """Ranked rows from Redis, computing and caching them on a miss."""
    cache_key = build_cache_key(timeframe, opportunity_id, limit)
    cached = await redis.get(cache_key)
    if cached:
        return json.loads(cached)

    rows = await rank_students(db, timeframe, opportunity_id, limit)
    await redis.setex(cache_key, get_settings().leaderboard_cache_ttl_seconds, json.dumps(rows))
    return rows


def mask_for_viewer(rows: list[dict[str, Any]], viewer_id: str | None) -> list[dict[str, Any]]:
    """Attach rank, display name and initials as seen by ``viewer_id``.

    Anonymized rows lose their real name and avatar unless the viewer owns them.
    """
    entries: list[dict[str, Any]] = []
    for rank, row in enumerate(rows, start=1):
        is_current = viewer_id is not None and row["id"] == viewer_id
        masked = row["anonymize_leaderboard"] and not is_current
        entries.append(
            {
                "rank": rank,
                "id": row["id"],
                "display_name": display_name(
                    row["id"], row["first_name"], row["last_name"], row["anonymize_leaderboard"], viewer_id
                ),
                "initials": display_initials(
                    row["id"], row["first_name"], row["last_name"], row["anonymize_leaderboard"], viewer_id
                ),
                "first_name": None if masked else row["first_name"],
                "last_name": None if masked else row["last_name"],
                "profile_image_url": None if masked else row["profile_image_url"],
                "program": row["program"],
                "coins": row["coins"],
                "completed_applications": row["completed_applications"],
                "total_applications": row["total_applications"],
                "anonymize_leaderboard": row["anonymize_leaderboard"],
                "is_current_user": is_current,
            }
        )
    return entries


async def get_leaderboard(
    db: AsyncSession,
    redis: Redis,
    viewer_id: str | None,
    timeframe: Timeframe = Timeframe.ALL,
    opportunity_id: str | None = None,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Leaderboard entries rendered for one viewer."""
    rows = await get_cached_ranking(db, redis, timeframe, opportunity_id, limit)
    return mask_for_viewer(rows, viewer_id)
