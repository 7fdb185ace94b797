"""Error types raised by the reconciliation core.

Every error is scoped to a single request; none of them is fatal to the
process.
"""


class SubscriptionError(Exception):
    """Base class for subscription reconciliation errors."""


class InvalidSignature(SubscriptionError):
    """Webhook payload failed signature verification and must not be trusted."""


class MalformedEvent(SubscriptionError):
    """A verified event is missing a required correlation field or cannot be parsed."""


class RecordNotFound(SubscriptionError):
    """No subscriber record matches the given identifier."""


class UpstreamUnavailable(SubscriptionError):
    """The billing provider could not answer a query."""


class PersistenceFailure(SubscriptionError):
    """The record store rejected or failed a read or write."""
