"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from samarpan.analytics.router import router as analytics_router
from samarpan.applications.router import router as applications_router
from samarpan.auth.router import router as auth_router
from samarpan.config import get_settings
from samarpan.database import close_db, get_session, init_db
from samarpan.gamification.router import router as badges_router
from samarpan.gamification.seed import seed_badges
from samarpan.health.router import router as health_router
from samarpan.leaderboard.router import router as leaderboard_router
from samarpan.middleware import setup_middleware
from samarpan.opportunities.router import admin_router as admin_opportunities_router
from samarpan.opportunities.router import router as opportunities_router
from samarpan.redis_client import close_redis, init_redis
from samarpan.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Seed default badges (idempotent)
    try:
        async for db in get_session():
            await seed_badges(db)
            await db.commit()
            break
    except SQLAlchemyError:
        logging.getLogger(__name__).warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Samarpan API",
        description="Backend API for Samarpan, the campus volunteering and social-impact marketplace",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(opportunities_router)
    app.include_router(admin_opportunities_router)
    app.include_router(applications_router)
    app.include_router(badges_router)
    app.include_router(leaderboard_router)
    app.include_router(analytics_router)

    return app


app = create_app()
