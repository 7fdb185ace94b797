"""Subscription status reads and user-initiated cancellation."""

import structlog

from subsync.errors import PersistenceFailure, RecordNotFound, UpstreamUnavailable
from subsync.models import SubscriberRecord
from subsync.services.billing import BillingService
from subsync.services.store import SubscriberStore

logger = structlog.get_logger(__name__)


async def read_subscription(
    user_id: str,
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> SubscriberRecord | None:
    """
    Return the user's subscriber record, healing it against Stripe if stale.

    A record that still has a subscription ID but is marked inactive is
    re-checked with Stripe, since webhook delivery can lag or be lost. Errors
    from that check are logged and the stored record is returned as is.
    """
    record = await store.get(user_id)
    if record is None:
        return None

    if record.subscription_id and not record.subscription_active:
        try:
            if await billing.is_subscription_active(record.subscription_id):
                record = await store.update(user_id, subscription_active=True)
                logger.info(
                    "Reactivated subscriber from Stripe status",
                    user_id=user_id,
                    subscription_id=record.subscription_id,
                )
        except (UpstreamUnavailable, PersistenceFailure, RecordNotFound) as e:
            logger.warning(
                "Subscription verification failed",
                user_id=user_id,
                subscription_id=record.subscription_id,
                error=str(e),
            )

    return record


async def cancel_subscription(
    user_id: str,
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> SubscriberRecord:
    """
    Cancel the user's subscription with Stripe and deactivate it locally.

    Raises:
        RecordNotFound: the user has no subscription to cancel
        UpstreamUnavailable: Stripe refused or failed the cancellation
    """
    record = await store.get(user_id)
    if record is None or not record.subscription_id:
        raise RecordNotFound(f"no subscription to cancel for user {user_id}")

    await billing.cancel_subscription(record.subscription_id)

    # Same update the customer.subscription.deleted webhook would apply
    updated = await store.update(user_id, subscription_active=False, subscription_id=None)
    logger.info(
        "Subscription cancelled by user",
        user_id=user_id,
        subscription_id=record.subscription_id,
    )
    return updated
