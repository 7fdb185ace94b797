"""Routers package."""

from subsync.routers.health import router as health_router
from subsync.routers.plans import router as plans_router
from subsync.routers.profile import router as profile_router
from subsync.routers.webhooks import router as webhooks_router

__all__ = ["health_router", "plans_router", "profile_router", "webhooks_router"]
