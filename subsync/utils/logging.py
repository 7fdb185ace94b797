"""Logging setup.

Request context is bound with ``structlog.contextvars``: the webhook router
binds ``event_id`` and ``event_type``, profile routes bind ``user_id``, so
every line logged by the services underneath carries them. Stripe
credentials are scrubbed from both keys and values before rendering.
"""

import logging
import re
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from subsync import __version__
from subsync.config import Settings, get_settings

REDACTED = "[redacted]"

# Secret and restricted API keys, webhook signing secrets
STRIPE_SECRET_PATTERN = re.compile(r"\b(?:sk|rk)_(?:live|test)_[0-9A-Za-z]+|\bwhsec_[0-9A-Za-z]+")

REDACTED_KEYS = ("authorization", "stripe_signature", "secret", "password", "token")


def scrub_stripe_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Drop credential-named fields and mask Stripe secrets inside any string."""
    for key, value in event_dict.items():
        if any(name in key.lower() for name in REDACTED_KEYS):
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = STRIPE_SECRET_PATTERN.sub(REDACTED, value)
    return event_dict


def add_service_version(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", "subsync")
    event_dict.setdefault("version", __version__)
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and route stdlib logging through stdout.

    JSON lines in production, colored console output elsewhere.
    """
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        scrub_stripe_secrets,
        add_service_version,
    ]
    if settings.is_production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.value),
    )

    # The Stripe SDK logs request lines at INFO
    logging.getLogger("stripe").setLevel(logging.WARNING)
