"""Admin analytics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.analytics.schemas import AnalyticsResponse
from samarpan.analytics.service import get_analytics
from samarpan.auth.dependencies import require_admin
from samarpan.database import get_session
from samarpan.db.models import User

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("", response_model=AnalyticsResponse)
async def analytics(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AnalyticsResponse:
    return AnalyticsResponse.model_validate(await get_analytics(db))
