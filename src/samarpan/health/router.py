"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from samarpan.config import get_settings
from samarpan.database import get_session
from samarpan.db.models import Badge
from samarpan.middleware.logging import SERVICE_NAME
from samarpan.redis_client import get_redis

router = APIRouter()


async def _check_database(db: AsyncSession) -> tuple[str, str]:
    """Database reachability, plus whether the badge catalogue has been seeded."""
    try:
        badges = await db.scalar(select(func.count(Badge.id)))
    except SQLAlchemyError as exc:
        return f"error: {exc}", "unknown"
    return "ok", "ok" if badges else "empty"


async def _check_redis() -> str:
    try:
        await get_redis().ping()
    except (RedisError, RuntimeError, OSError) as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> JSONResponse:  # noqa: B008
    """503 until the database and Redis answer and badges exist to be awarded."""
    database, badges = await _check_database(db)
    checks = {"database": database, "redis": await _check_redis(), "badges": badges}
    ready = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"service": SERVICE_NAME, "version": settings.app_version, "environment": settings.environment}
