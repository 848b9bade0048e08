"""Badge API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.dependencies import require_admin
from samarpan.database import get_session
from samarpan.db.models import User
from samarpan.errors import ConflictError
from samarpan.gamification.badge_service import create_badge, get_user_badges, list_badges
from samarpan.gamification.schemas import BadgeCreate, BadgeResponse, EarnedBadgeResponse

router = APIRouter(prefix="/api/badges", tags=["Badges"])


@router.get("", response_model=list[BadgeResponse])
async def all_badges(db: AsyncSession = Depends(get_session)) -> list[BadgeResponse]:
    """Every badge definition ordered by coin threshold."""
    return [BadgeResponse.model_validate(badge) for badge in await list_badges(db)]


@router.post("", response_model=BadgeResponse, status_code=201)
async def new_badge(
    body: BadgeCreate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> BadgeResponse:
    try:
        badge = await create_badge(
            db,
            name=body.name,
            coins_required=body.coins_required,
            description=body.description,
            icon=body.icon,
            badge_type=body.type,
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()
    return BadgeResponse.model_validate(badge)


@router.get("/user/{user_id}", response_model=list[EarnedBadgeResponse])
async def badges_for_user(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> list[EarnedBadgeResponse]:
    """Badges a user has earned, oldest first."""
    earned = await get_user_badges(db, user_id)
    return [
        EarnedBadgeResponse.model_validate(
            {**BadgeResponse.model_validate(ub.badge).model_dump(), "earned_at": ub.earned_at}
        )
        for ub in earned
    ]
