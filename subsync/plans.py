"""Static plan catalog.

Plans are matched to subscribers by ``interval``, which is the value Stripe
checkout sessions carry as ``metadata.planType``.
"""

from subsync.models import Plan

AVAILABLE_PLANS: tuple[Plan, ...] = (
    Plan(
        name="Weekly Plan",
        interval="week",
        amount=9.99,
        currency="USD",
        description="Try the premium features week by week.",
        features=(
            "All premium features",
            "Email support",
            "Cancel anytime",
        ),
    ),
    Plan(
        name="Monthly Plan",
        interval="month",
        amount=39.99,
        currency="USD",
        description="Month-to-month access to every premium feature.",
        features=(
            "All premium features",
            "Priority support",
            "Cancel anytime",
        ),
    ),
    Plan(
        name="Yearly Plan",
        interval="year",
        amount=299.99,
        currency="USD",
        description="Best value for long-term subscribers.",
        features=(
            "All premium features",
            "Priority support",
            "Cancel anytime",
        ),
    ),
)

_PLANS_BY_INTERVAL = {plan.interval: plan for plan in AVAILABLE_PLANS}


def get_plan(tier: str | None) -> Plan | None:
    """Return the plan for a subscription tier, or ``None`` if unknown."""
    if not tier:
        return None
    return _PLANS_BY_INTERVAL.get(tier)
