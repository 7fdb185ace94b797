"""Profile endpoints: subscription status, cancellation and profile summary."""

import structlog
from fastapi import APIRouter, HTTPException, status
from structlog.contextvars import bound_contextvars

from subsync.auth import CurrentUser
from subsync.dependencies import Billing, Store
from subsync.errors import PersistenceFailure, RecordNotFound, UpstreamUnavailable
from subsync.models import (
    ErrorResponse,
    ProfileResponse,
    ProfileUser,
    SubscriberRecord,
    SubscriptionStatusResponse,
)
from subsync.plans import get_plan
from subsync.services.billing import BillingService
from subsync.services.status import cancel_subscription, read_subscription
from subsync.services.store import SubscriberStore

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


async def _read_or_500(
    user_id: str,
    store: SubscriberStore,
    billing: BillingService,
) -> SubscriberRecord | None:
    try:
        return await read_subscription(user_id, store=store, billing=billing)
    except PersistenceFailure as e:
        logger.error("Error fetching subscription", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch subscription details.",
        ) from e


@router.get(
    "/subscription-status",
    response_model=SubscriptionStatusResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Current subscription",
    description="Get the current user's subscription, re-verified with Stripe when stale.",
)
async def subscription_status(
    current_user: CurrentUser,
    store: Store,
    billing: Billing,
) -> SubscriptionStatusResponse:
    with bound_contextvars(user_id=current_user.sub):
        record = await _read_or_500(current_user.sub, store, billing)

    return SubscriptionStatusResponse(subscription=record)


@router.post(
    "/unsubscribe",
    response_model=SubscriptionStatusResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Cancel subscription",
)
async def unsubscribe(
    current_user: CurrentUser,
    store: Store,
    billing: Billing,
) -> SubscriptionStatusResponse:
    """Cancel the current user's subscription with Stripe and deactivate it locally."""
    with bound_contextvars(user_id=current_user.sub):
        try:
            record = await cancel_subscription(current_user.sub, store=store, billing=billing)
        except RecordNotFound as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No active subscription found.",
            ) from e
        except UpstreamUnavailable as e:
            logger.error("Stripe cancellation failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to cancel subscription with the billing provider.",
            ) from e
        except PersistenceFailure as e:
            logger.error("Error deactivating subscription", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update subscription.",
            ) from e

    return SubscriptionStatusResponse(subscription=record)


@router.get(
    "",
    response_model=ProfileResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Profile summary",
)
async def profile(
    current_user: CurrentUser,
    store: Store,
    billing: Billing,
) -> ProfileResponse:
    """Profile fields, subscription and the matching catalog plan."""
    with bound_contextvars(user_id=current_user.sub):
        record = await _read_or_500(current_user.sub, store, billing)

        plan = get_plan(record.subscription_tier) if record else None
        if record and record.subscription_tier and plan is None:
            logger.warning(
                "Subscription tier not in plan catalog",
                subscription_tier=record.subscription_tier,
            )

    return ProfileResponse(
        user=ProfileUser(
            id=current_user.sub,
            email=current_user.email,
            name=current_user.name,
            image_url=current_user.picture,
        ),
        subscription=record,
        plan=plan,
    )
