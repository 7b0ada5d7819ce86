"""Moderation queue backend - FastAPI entry point."""
import sys

# asyncpg is incompatible with Windows ProactorEventLoop (default on Windows).
# Must be set before any asyncio usage.
if sys.platform == "win32":
    import asyncio
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI

from modqueue.config import settings
from modqueue.database import engine
from modqueue.middleware.cors import setup_cors, setup_cookie_security
from modqueue.middleware.error_handler import setup_error_handlers
from modqueue.middleware.logging_middleware import LoggingMiddleware
from modqueue.middleware.metrics import MetricsMiddleware, setup_metrics
from modqueue.api.v1 import auth as auth_router
from modqueue.api.v1 import moderation as moderation_router
from modqueue.api.v1 import pages as pages_router
from modqueue.services.session_store import close_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("startup", env=settings.APP_ENV)
    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=0.1 if settings.APP_ENV == "production" else 1.0,
            environment=settings.APP_ENV,
        )

    yield

    await close_redis()
    await engine.dispose()
    logger.info("shutdown")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Moderation Queue API",
        description="Pre-publication moderation of wiki edits, uploads and moves",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Middleware (order matters: last added = first executed)
    setup_cors(application)
    setup_cookie_security(application)
    setup_error_handlers(application)
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(MetricsMiddleware)

    setup_metrics(application)

    # API Routers
    application.include_router(auth_router.router, prefix="/api/v1/auth", tags=["Auth"])
    application.include_router(moderation_router.router, prefix="/api/v1/moderation", tags=["Moderation"])
    application.include_router(pages_router.router, prefix="/api/v1/pages", tags=["Pages"])

    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
