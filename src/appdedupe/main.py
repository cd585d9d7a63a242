"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from appdedupe.apps.router import router as apps_router
from appdedupe.auth.router import router as users_router
from appdedupe.clusters.router import router as clusters_router
from appdedupe.config import get_settings
from appdedupe.database import close_db, init_db
from appdedupe.gamification.scoring import get_scoring_rule
from appdedupe.health.router import router as health_router
from appdedupe.ingestion.router import router as admin_router
from appdedupe.middleware import setup_middleware
from appdedupe.redis_client import close_redis, init_redis
from appdedupe.stats.router import router as stats_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    # Fail fast on a misconfigured rule rather than on the first confirmation
    get_scoring_rule(settings.scoring_rule)
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info(
        "startup",
        environment=settings.environment,
        scoring_rule=settings.scoring_rule,
        admin_count=len(settings.admin_emails),
    )

    yield

    await close_db()
    await close_redis()
    logger.info("shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="App Dedupe API",
        description="Collaborative review of application-name clusters, with team scoring",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(apps_router)
    app.include_router(clusters_router)
    app.include_router(admin_router)
    app.include_router(stats_router)

    return app


app = create_app()
