"""Services package."""

from subsync.services.billing import BillingService
from subsync.services.store import SubscriberStore

__all__ = ["BillingService", "SubscriberStore"]
