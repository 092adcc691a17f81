"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitvibe.activities.catalog import seed_activity_types
from fitvibe.activities.router import router as activities_router
from fitvibe.auth.router import router as auth_router
from fitvibe.challenges.router import router as challenges_router
from fitvibe.config import get_settings
from fitvibe.database import close_db, get_session, init_db
from fitvibe.gamification.router import router as gamification_router
from fitvibe.gamification.seed import seed_badges
from fitvibe.goals.router import router as goals_router
from fitvibe.health.router import router as health_router
from fitvibe.middleware import setup_middleware
from fitvibe.redis_client import close_redis, connect_redis
from fitvibe.social.notification_router import router as notifications_router
from fitvibe.social.router import router as social_router
from fitvibe.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await connect_redis(settings.redis_url)

    # Seed catalog rows (idempotent)
    try:
        async for db in get_session():
            await seed_activity_types(db)
            await seed_badges(db)
            break
    except Exception:
        logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FitnessVibe API",
        description="Backend API for FitnessVibe, a gamified fitness tracking platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(activities_router)
    app.include_router(gamification_router)
    app.include_router(challenges_router)
    app.include_router(goals_router)
    app.include_router(social_router)
    app.include_router(notifications_router)

    return app


app = create_app()
