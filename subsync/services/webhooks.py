"""Stripe webhook verification and dispatch."""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import stripe
import structlog
from pydantic import ValidationError

from subsync.errors import InvalidSignature, MalformedEvent
from subsync.models import WebhookEvent
from subsync.services.billing import BillingService
from subsync.services.reconciliation import (
    handle_checkout_completed,
    handle_invoice_payment_failed,
    handle_subscription_deleted,
)
from subsync.services.store import SubscriberStore

logger = structlog.get_logger(__name__)

EventHandler = Callable[..., Awaitable[None]]

EVENT_HANDLERS: dict[str, EventHandler] = {
    "checkout.session.completed": handle_checkout_completed,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "customer.subscription.deleted": handle_subscription_deleted,
}


def construct_event(
    payload: bytes,
    signature: str | None,
    secret: str | None,
    tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
) -> WebhookEvent:
    """
    Verify a webhook body against its ``Stripe-Signature`` header and parse it.

    Verification runs on the exact raw bytes before any parsing.

    Raises:
        InvalidSignature: header or secret missing, or signature mismatch
        MalformedEvent: verified body is not a Stripe event
    """
    if not secret:
        raise InvalidSignature("webhook signing secret is not configured")
    if not signature:
        raise InvalidSignature("missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidSignature("payload is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(body, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise InvalidSignature(str(e)) from e

    try:
        return WebhookEvent.model_validate(json.loads(body))
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedEvent(f"verified payload is not a Stripe event: {e}") from e


async def dispatch_event(
    event: WebhookEvent,
    *,
    store: SubscriberStore,
    billing: BillingService,
) -> str | None:
    """
    Route a verified event to its handler.

    Returns the handler name, or ``None`` for event types with no handler.
    Handler exceptions propagate to the caller.
    """
    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug("Ignoring unhandled event type", event_id=event.id, event_type=event.type)
        return None

    logger.info("Dispatching webhook event", event_id=event.id, event_type=event.type)
    await handler(event.data.payload, store=store, billing=billing)
    return handler.__name__


def describe_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Log-safe identifiers of an event object."""
    return {
        "object_id": payload.get("id"),
        "object_type": payload.get("object"),
    }
