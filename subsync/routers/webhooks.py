"""Stripe webhook receiver.

Responses drive Stripe's redelivery: 400 for payloads that can never be
trusted or parsed, 500 when a handler failed and the event should be retried,
200 otherwise (including event types we do not handle).
"""

import structlog
from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse
from structlog.contextvars import bound_contextvars

from subsync.config import get_settings
from subsync.dependencies import Billing, Store
from subsync.errors import InvalidSignature, MalformedEvent
from subsync.services.webhooks import construct_event, describe_payload, dispatch_event

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/stripe-webhook",
    summary="Stripe webhook",
    description="Receive and reconcile Stripe subscription events.",
)
async def stripe_webhook(
    request: Request,
    store: Store,
    billing: Billing,
    stripe_signature: str | None = Header(None),
) -> JSONResponse:
    """Verify the event signature and hand the event to its handler."""
    settings = get_settings()
    # Signature covers the raw bytes, so read them before anything parses the body
    payload = await request.body()
    secret = (
        settings.stripe_webhook_secret.get_secret_value()
        if settings.stripe_webhook_secret
        else None
    )

    try:
        event = construct_event(
            payload,
            stripe_signature,
            secret,
            tolerance=settings.stripe_webhook_tolerance,
        )
    except InvalidSignature as e:
        logger.warning("Webhook signature verification failed", reason=str(e))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid webhook signature"},
        )
    except MalformedEvent as e:
        logger.warning("Rejecting malformed webhook payload", reason=str(e))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Malformed event payload"},
        )

    with bound_contextvars(event_id=event.id, event_type=event.type):
        try:
            await dispatch_event(event, store=store, billing=billing)
        except Exception as e:
            logger.error(
                "Webhook handler failed",
                exc_info=e,
                **describe_payload(event.data.payload),
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Webhook handler failed"},
            )

    return JSONResponse(status_code=status.HTTP_200_OK, content={})
