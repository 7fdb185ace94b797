"""Pydantic models for subscriber records, Stripe events and API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ============ Authentication Models ============


class TokenData(BaseModel):
    """Session token payload issued by the identity provider."""

    sub: str  # Stable user ID
    email: str | None = None
    name: str | None = None
    picture: str | None = None


# ============ Subscriber Models ============


class SubscriberRecord(BaseModel):
    """Local cached view of a user's subscription.

    Serialized with camelCase keys (``userId``, ``subscriptionId``, ...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    user_id: str = Field(..., min_length=1)
    subscription_id: str | None = None
    subscription_active: bool = False
    subscription_tier: str | None = None

    @model_validator(mode="after")
    def check_active_has_subscription(self) -> "SubscriberRecord":
        """An active subscription always carries a billing-provider ID."""
        if self.subscription_active and not self.subscription_id:
            raise ValueError(
                f"subscriber {self.user_id!r} cannot be active without a subscription_id"
            )
        return self


class Plan(BaseModel):
    """Static plan descriptor from the plan catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    interval: str  # Tier key, matched against SubscriberRecord.subscription_tier
    amount: float = Field(..., ge=0)
    currency: str = "USD"
    description: str = ""
    features: tuple[str, ...] = ()


# ============ Stripe Event Models ============


class EventData(BaseModel):
    """The ``data`` envelope of a Stripe event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    payload: dict[str, Any] = Field(..., alias="object")


class WebhookEvent(BaseModel):
    """Verified Stripe webhook event."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: EventData
    created: int | None = None
    livemode: bool = False
    api_version: str | None = None


# ============ Response Models ============


class SubscriptionStatusResponse(BaseModel):
    """Subscription status for the current user."""

    subscription: SubscriberRecord | None = None


class ProfileUser(BaseModel):
    """Profile fields forwarded from the identity provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str | None = None
    name: str | None = None
    image_url: str | None = None


class ProfileResponse(BaseModel):
    """Everything the profile page renders."""

    user: ProfileUser
    subscription: SubscriberRecord | None = None
    plan: Plan | None = None


class PlansResponse(BaseModel):
    """Plan catalog listing."""

    plans: list[Plan]


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str


class HealthCheck(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str
    redis: str
    stripe: str
