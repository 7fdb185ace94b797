"""Subscription status API and Stripe webhook reconciliation."""

__version__ = "0.1.0"
