"""Webhook reconciliation handlers.

Each handler maps one Stripe event object to a single keyed update of the
subscriber record and is safe to apply more than once. Malformed events and
events for unknown subscriptions are logged and dropped; store and Stripe
errors propagate so the webhook answers 5xx and Stripe redelivers.
"""

from typing import Any

import structlog

from subsync.errors import RecordNotFound
from subsync.services.billing import ACTIVE_STATUS, BillingService
from subsync.services.store import SubscriberStore

logger = structlog.get_logger(__name__)

USER_ID_METADATA_KEY = "clerkUserId"
PLAN_METADATA_KEY = "planType"


def _object_id(value: Any) -> str | None:
    """Return an ID from a Stripe field that may be a string or an expanded object."""
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, str) and value:
        return value
    return None


def invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    """Subscription ID of an invoice across Stripe API versions.

    Older versions put it on ``invoice.subscription``; newer ones nest it
    under ``invoice.parent.subscription_details.subscription``.
    """
    subscription_id = _object_id(invoice.get("subscription"))
    if subscription_id:
        return subscription_id

    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return _object_id(details.get("subscription"))


async def handle_checkout_completed(
    session: dict[str, Any],
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> None:
    """Record the subscription created by a completed checkout session."""
    metadata = session.get("metadata") or {}
    user_id = metadata.get(USER_ID_METADATA_KEY)
    subscription_id = _object_id(session.get("subscription"))

    if not user_id:
        logger.error("No user ID in checkout session metadata", session_id=session.get("id"))
        return
    if not subscription_id:
        logger.error(
            "No subscription ID in checkout session",
            session_id=session.get("id"),
            user_id=user_id,
        )
        return

    # The checkout can complete before Stripe has activated the subscription
    status = await billing.get_subscription_status(subscription_id)

    record = await store.upsert(
        user_id,
        subscription_id=subscription_id,
        subscription_active=status == ACTIVE_STATUS,
        subscription_tier=metadata.get(PLAN_METADATA_KEY) or None,
    )
    logger.info(
        "Checkout reconciled",
        user_id=user_id,
        subscription_id=subscription_id,
        stripe_status=status,
        subscription_active=record.subscription_active,
        subscription_tier=record.subscription_tier,
    )


async def handle_invoice_payment_failed(
    invoice: dict[str, Any],
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> None:
    """Mark the subscription inactive after a failed invoice payment.

    The subscription ID and tier are kept so a later successful retry can
    be reconciled by the status read path.
    """
    subscription_id = invoice_subscription_id(invoice)
    if not subscription_id:
        logger.error("Dropping invoice without subscription ID", invoice_id=invoice.get("id"))
        return

    record = await store.find_by_subscription_id(subscription_id)
    if record is None:
        logger.warning(
            "No subscriber for failed invoice",
            invoice_id=invoice.get("id"),
            subscription_id=subscription_id,
        )
        return

    try:
        await store.update(record.user_id, subscription_active=False)
    except RecordNotFound:
        logger.warning("Subscriber vanished before update", user_id=record.user_id)
        return

    logger.info(
        "Payment failure recorded",
        user_id=record.user_id,
        subscription_id=subscription_id,
    )


async def handle_subscription_deleted(
    subscription: dict[str, Any],
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> None:
    """Deactivate and detach a deleted subscription. The tier is kept for display."""
    subscription_id = _object_id(subscription.get("id"))
    if not subscription_id:
        logger.error("Dropping subscription event without ID")
        return

    record = await store.find_by_subscription_id(subscription_id)
    if record is None:
        logger.warning("No subscriber for deleted subscription", subscription_id=subscription_id)
        return

    try:
        await store.update(record.user_id, subscription_active=False, subscription_id=None)
    except RecordNotFound:
        logger.warning("Subscriber vanished before update", user_id=record.user_id)
        return

    logger.info(
        "Subscription deletion recorded",
        user_id=record.user_id,
        subscription_id=subscription_id,
    )
