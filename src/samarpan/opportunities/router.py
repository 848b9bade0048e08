"""Opportunity API endpoints: public browsing plus admin management."""

from __future__ import annotations

import enum
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.auth.dependencies import get_optional_user, require_admin
from samarpan.config import get_settings
from samarpan.database import get_session
from samarpan.db.enums import Duration, OpportunityStatus, OpportunityType, SortKey
from samarpan.db.models import Opportunity, User
from samarpan.errors import NotFoundError
from samarpan.opportunities.schemas import (
    ApplicationCount,
    OpportunityCreate,
    OpportunityListResponse,
    OpportunityResponse,
    OpportunityUpdate,
)
from samarpan.opportunities.service import (
    close_opportunity,
    count_applications,
    create_opportunity,
    delete_opportunity,
    get_opportunity,
    list_created_by,
    list_opportunities,
    update_opportunity,
)

E = TypeVar("E", bound=enum.Enum)

router = APIRouter(prefix="/api/opportunities", tags=["Opportunities"])
admin_router = APIRouter(prefix="/api/admin", tags=["Opportunities"])


def _opportunity_response(opportunity: Opportunity, applications: int) -> OpportunityResponse:
    response = OpportunityResponse.model_validate(opportunity)
    return response.model_copy(update={"count": ApplicationCount(applications=applications)})


def _query_list(request: Request, name: str, split: bool = True) -> list[str]:
    """Values of a repeated query parameter, accepting both ``name`` and ``name[]``."""
    raw = request.query_params.getlist(name) + request.query_params.getlist(f"{name}[]")
    values: list[str] = []
    for item in raw:
        parts = item.split(",") if split else [item]
        values.extend(part.strip() for part in parts if part.strip())
    return values


def _enum_list(request: Request, name: str, enum_cls: type[E]) -> list[E]:
    try:
        return [enum_cls(value) for value in _query_list(request, name)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {name} filter: {e}") from e


async def _load(db: AsyncSession, opportunity_id: str, viewer: User | None) -> Opportunity:
    try:
        return await get_opportunity(db, opportunity_id, viewer)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


# ---------------------------------------------------------------------------
# Browsing
# ---------------------------------------------------------------------------


@router.get("", response_model=OpportunityListResponse)
async def browse_opportunities(
    request: Request,
    search: str | None = Query(None, max_length=200),
    sort: SortKey = Query(SortKey.NEWEST),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> OpportunityListResponse:
    """
    Search and filter opportunities.

    ``type``, ``duration``, ``status`` and ``skills`` may be repeated (or sent
    as ``type[]=...``); values within one filter are OR-ed together.
    """
    settings = get_settings()
    effective_limit = min(limit or settings.default_page_size, settings.max_page_size)

    rows, total = await list_opportunities(
        db,
        viewer,
        search=search,
        types=_enum_list(request, "type", OpportunityType),
        durations=_enum_list(request, "duration", Duration),
        statuses=_enum_list(request, "status", OpportunityStatus),
        skills=_query_list(request, "skills", split=False),
        sort=sort,
        limit=effective_limit,
        offset=offset,
    )
    return OpportunityListResponse(
        opportunities=[_opportunity_response(opp, count) for opp, count in rows],
        total=total,
        limit=effective_limit,
        offset=offset,
    )


@router.get("/{opportunity_id}", response_model=OpportunityResponse)
async def opportunity_detail(
    opportunity_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> OpportunityResponse:
    """One opportunity with its creator and application count."""
    opportunity = await _load(db, opportunity_id, viewer)
    return _opportunity_response(opportunity, await count_applications(db, opportunity.id))


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@router.post("", response_model=OpportunityResponse, status_code=201)
async def create(
    body: OpportunityCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> OpportunityResponse:
    """Publish a new opportunity owned by the calling admin."""
    opportunity = await create_opportunity(db, admin, body.model_dump())
    await db.commit()
    return _opportunity_response(opportunity, 0)


@router.put("/{opportunity_id}", response_model=OpportunityResponse)
async def update(
    opportunity_id: str,
    body: OpportunityUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> OpportunityResponse:
    """Partially update an opportunity; ``skills`` replaces the whole set."""
    opportunity = await _load(db, opportunity_id, admin)
    try:
        await update_opportunity(db, opportunity, body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _opportunity_response(opportunity, await count_applications(db, opportunity.id))


@router.patch("/{opportunity_id}/close", response_model=OpportunityResponse)
async def close(
    opportunity_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> OpportunityResponse:
    """Stop accepting applications."""
    opportunity = await _load(db, opportunity_id, admin)
    await close_opportunity(db, opportunity)
    await db.commit()
    return _opportunity_response(opportunity, await count_applications(db, opportunity.id))


@router.delete("/{opportunity_id}", status_code=204)
async def remove(
    opportunity_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete an opportunity and every application to it."""
    opportunity = await _load(db, opportunity_id, admin)
    await delete_opportunity(db, opportunity)
    await db.commit()
    return Response(status_code=204)


@admin_router.get("/opportunities", response_model=list[OpportunityResponse])
async def my_opportunities(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[OpportunityResponse]:
    """Opportunities created by the calling admin, in any status."""
    rows = await list_created_by(db, admin)
    return [_opportunity_response(opp, count) for opp, count in rows]
