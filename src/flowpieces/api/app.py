"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from flowpieces import __version__
from flowpieces.common.logging import get_logger, setup_logging
from flowpieces.common.redis_client import close_redis, get_redis
from flowpieces.common.settings import get_settings

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level)

    # Redis is only needed by trigger routes; start without it if unreachable
    try:
        await get_redis()
    except Exception as exc:
        log.warning("redis_connect_failed", error=str(exc))

    log.info("api_started", service=settings.service_name)

    yield

    await close_redis()
    log.info("api_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.service_name} API",
        version=__version__,
        lifespan=lifespan,
    )

    from flowpieces.api.routes.health import router as health_router
    from flowpieces.api.routes.request_writer import router as request_writer_router
    from flowpieces.api.routes.triggers import router as triggers_router

    app.include_router(health_router)
    app.include_router(request_writer_router, prefix="/v1")
    app.include_router(triggers_router, prefix="/v1")

    from flowpieces.api.middleware import add_middleware

    add_middleware(app)

    return app
