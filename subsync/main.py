"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from redis.asyncio import Redis
from starlette.exceptions import HTTPException as StarletteHTTPException

from subsync import __version__, dependencies
from subsync.config import get_settings
from subsync.routers import health_router, plans_router, profile_router, webhooks_router
from subsync.services.billing import BillingService
from subsync.utils.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging()

    logger.info("Initializing Redis connection...")
    dependencies.redis_client = Redis.from_url(
        str(settings.redis_url),
        decode_responses=True,
    )

    logger.info("Initializing billing service...")
    dependencies.billing_service = BillingService.from_settings(settings)
    if settings.stripe_webhook_secret is None:
        logger.warning("STRIPE_WEBHOOK_SECRET not set; all webhooks will be rejected")

    # Initialize Sentry if configured
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment.value,
            release=f"subsync@{__version__}",
            traces_sample_rate=0.1,
        )
        logger.info("Sentry initialized")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down...")
    if dependencies.redis_client:
        await dependencies.redis_client.aclose()
        dependencies.redis_client = None
    dependencies.billing_service = None
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="subsync API",
        description="""
## Subscription status and Stripe reconciliation

- **Subscription status**: the signed-in user's plan, re-verified with Stripe
  when the local copy looks stale
- **Unsubscribe**: cancel the current subscription
- **Stripe webhook**: keeps local subscription state in line with Stripe

### Authentication

Profile endpoints require a session token in the `Authorization: Bearer`
header. The webhook is authenticated by its `Stripe-Signature` header.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics
    if settings.prometheus_enabled:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    # Include routers
    app.include_router(health_router)
    app.include_router(plans_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(webhooks_router, prefix="/api")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )

        if settings.debug:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": f"{type(exc).__name__}: {exc}",
                },
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred"},
        )

    return app


# Create app instance
app = create_app()
