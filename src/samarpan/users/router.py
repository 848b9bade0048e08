"""User statistics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.dependencies import get_current_user
from samarpan.auth.service import get_user_by_id
from samarpan.database import get_session
from samarpan.db.models import User
from samarpan.users.schemas import UserStatsResponse
from samarpan.users.service import get_user_stats

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def user_stats(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserStatsResponse:
    """Dashboard totals for a user. Students may only read their own."""
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")

    user = current_user if user_id == current_user.id else await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    return UserStatsResponse.model_validate(await get_user_stats(db, user))
