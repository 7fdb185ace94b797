from subsync.config import Environment, Settings
from subsync.utils.logging import REDACTED, add_service_version, configure_logging, scrub_stripe_secrets


def test_credential_fields_are_dropped():
    event = {
        "event": "Webhook signature verification failed",
        "stripe_signature": "t=1700000000,v1=abcdef0123456789",
        "webhook_secret": "whsec_abc123",
        "authorization": "Bearer eyJ...",
        "subscription_id": "sub_1",
    }

    scrubbed = scrub_stripe_secrets(None, "info", event)

    assert scrubbed["stripe_signature"] == REDACTED
    assert scrubbed["webhook_secret"] == REDACTED
    assert scrubbed["authorization"] == REDACTED
    assert scrubbed["subscription_id"] == "sub_1"


def test_stripe_secrets_masked_inside_values():
    event = {
        "event": "Stripe call failed",
        "error": "Invalid API Key provided: sk_live_51Habc and whsec_XYZ789",
        "user_id": "u1",
    }

    scrubbed = scrub_stripe_secrets(None, "error", event)

    assert "sk_live_51Habc" not in scrubbed["error"]
    assert "whsec_XYZ789" not in scrubbed["error"]
    assert scrubbed["error"].startswith("Invalid API Key provided: [redacted]")
    assert scrubbed["user_id"] == "u1"


def test_add_service_version():
    event = add_service_version(None, "info", {"event": "x"})
    assert event["service"] == "subsync"
    assert "version" in event


def test_configure_logging_accepts_explicit_settings():
    configure_logging(Settings(_env_file=None, environment=Environment.PRODUCTION))
    configure_logging(Settings(_env_file=None))
