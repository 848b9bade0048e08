"""Leaderboard API endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.dependencies import get_optional_user
from samarpan.config import get_settings
from samarpan.database import get_session
from samarpan.db.enums import Timeframe
from samarpan.db.models import User
from samarpan.leaderboard.schemas import LeaderboardEntry
from samarpan.leaderboard.service import get_leaderboard
from samarpan.redis_client import get_redis

router = APIRouter(prefix="/api/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: int | None = Query(None, ge=1),
    timeframe: Timeframe = Query(Timeframe.ALL),
    opportunity_id: str | None = Query(None, alias="opportunityId"),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> list[LeaderboardEntry]:
    """Students ranked by coins. Anonymized names are masked for everyone but their owner."""
    settings = get_settings()
    effective_limit = min(limit or settings.leaderboard_default_limit, settings.leaderboard_max_limit)
    entries = await get_leaderboard(
        db,
        redis,
        viewer_id=viewer.id if viewer else None,
        timeframe=timeframe,
        opportunity_id=opportunity_id,
        limit=effective_limit,
    )
    return [LeaderboardEntry.model_validate(entry) for entry in entries]
