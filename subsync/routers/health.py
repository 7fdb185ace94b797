"""Health check and status endpoints."""

from fastapi import APIRouter, Depends

from subsync import __version__
from subsync.config import get_settings
from subsync.dependencies import get_billing, get_store
from subsync.models import HealthCheck
from subsync.services.billing import BillingService
from subsync.services.store import SubscriberStore

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthCheck,
    summary="Health check",
    description="Check the health of the API and its dependencies.",
)
async def health_check(
    store: SubscriberStore = Depends(get_store),
    billing: BillingService = Depends(get_billing),
) -> HealthCheck:
    """Check health of the record store and Stripe configuration."""
    settings = get_settings()

    redis_status = "healthy" if await store.ping() else "unhealthy"
    stripe_status = "configured" if billing.configured else "unconfigured"

    overall_status = "healthy"
    if redis_status == "unhealthy" or stripe_status == "unconfigured":
        overall_status = "degraded"

    return HealthCheck(
        status=overall_status,
        version=__version__,
        environment=settings.environment.value,
        redis=redis_status,
        stripe=stripe_status,
    )


@router.get(
    "/",
    summary="API information",
    description="Get basic API information.",
)
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "subsync API",
        "version": __version__,
        "description": "Subscription status and Stripe webhook reconciliation",
        "documentation": "/docs",
        "health": "/health",
    }
