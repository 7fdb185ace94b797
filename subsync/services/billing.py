"""Billing service backed by the Stripe API.

Only point queries and cancellation are needed here; subscription lifecycle
truth stays with Stripe. The SDK is blocking, so calls run in the threadpool.
"""
from __future__ import annotations

import stripe
import structlog
from fastapi.concurrency import run_in_threadpool

from subsync.config import Settings
from subsync.errors import UpstreamUnavailable

logger = structlog.get_logger(__name__)

ACTIVE_STATUS = "active"


class BillingService:
    """Thin async wrapper around ``stripe.StripeClient``."""

    def __init__(self, client: stripe.StripeClient | None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "BillingService":
        """Build the service from configuration; unconfigured Stripe yields a client-less service."""
        if settings.stripe_secret_key is None:
            logger.warning("STRIPE_SECRET_KEY not set; billing queries will fail")
            return cls(None)

        client = stripe.StripeClient(
            settings.stripe_secret_key.get_secret_value(),
            max_network_retries=settings.stripe_max_network_retries,
        )
        return cls(client)

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> stripe.StripeClient:
        if self._client is None:
            raise UpstreamUnavailable("Stripe client is not configured")
        return self._client

    async def get_subscription_status(self, subscription_id: str) -> str:
        """Return Stripe's current status string for a subscription."""
        client = self._require_client()
        try:
            subscription = await run_in_threadpool(
                client.subscriptions.retrieve, subscription_id
            )
        except stripe.StripeError as e:
            raise UpstreamUnavailable(
                f"failed to retrieve subscription {subscription_id}: {e.user_message or e}"
            ) from e
        return subscription.status

    async def is_subscription_active(self, subscription_id: str) -> bool:
        """Check whether Stripe reports the subscription as active."""
        return await self.get_subscription_status(subscription_id) == ACTIVE_STATUS

    async def cancel_subscription(self, subscription_id: str) -> str:
        """Cancel a subscription immediately and return its resulting status."""
        client = self._require_client()
        try:
            subscription = await run_in_threadpool(
                client.subscriptions.cancel, subscription_id
            )
        except stripe.StripeError as e:
            raise UpstreamUnavailable(
                f"failed to cancel subscription {subscription_id}: {e.user_message or e}"
            ) from e

        logger.info(
            "Subscription cancelled with Stripe",
            subscription_id=subscription_id,
            status=subscription.status,
        )
        return subscription.status
