"""Process-wide clients and the FastAPI dependencies that hand them out.

Clients are created once in the application lifespan and shared by
reference; handlers receive them as arguments.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from redis.asyncio import Redis

from subsync.config import get_settings
from subsync.services.billing import BillingService
from subsync.services.store import SubscriberStore

# Initialized in app startup
redis_client: Redis | None = None
billing_service: BillingService | None = None


async def get_redis() -> Redis:
    """Get Redis connection."""
    if redis_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Redis connection not available",
        )
    return redis_client


async def get_store(redis: Redis = Depends(get_redis)) -> SubscriberStore:
    """Get the subscriber record store."""
    return SubscriberStore(redis, prefix=get_settings().redis_key_prefix)


async def get_billing() -> BillingService:
    """Get the billing service."""
    if billing_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Billing service not available",
        )
    return billing_service


Store = Annotated[SubscriberStore, Depends(get_store)]
Billing = Annotated[BillingService, Depends(get_billing)]
