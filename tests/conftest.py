"""Pytest configuration and fixtures."""

import hashlib
import hmac
import json
import os
import time
from typing import Any

# Settings are cached on first use, so the test environment must be in place
# before anything imports the app.
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-key-32-characters")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from subsync import dependencies
from subsync.auth.jwt import create_session_token
from subsync.errors import UpstreamUnavailable
from subsync.main import create_app
from subsync.services.store import SubscriberStore

WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis we use.

    ``fail`` breaks every command; ``fail_once`` holds command names that
    fail a single time, inside or outside a transaction.
    """

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.strings: dict[str, str] = {}
        self.fail = False
        self.fail_once: set[str] = set()

    def _check(self, command: str) -> None:
        if self.fail:
            raise RedisConnectionError("redis is down")
        if command in self.fail_once:
            self.fail_once.discard(command)
            raise RedisConnectionError(f"{command} failed")

    def snapshot(self) -> tuple[dict, dict]:
        return (
            {k: dict(v) for k, v in self.hashes.items()},
            dict(self.strings),
        )

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def _hset(self, key, mapping=None):
        self.hashes.setdefault(key, {}).update(mapping or {})
        return len(mapping or {})

    def _hdel(self, key, *fields):
        h = self.hashes.get(key, {})
        removed = sum(1 for f in fields if h.pop(f, None) is not None)
        if key in self.hashes and not h:
            del self.hashes[key]
        return removed

    def _set(self, key, value):
        self.strings[key] = value
        return True

    def _delete(self, *keys):
        return sum(1 for k in keys if self.strings.pop(k, None) is not None)

    async def hgetall(self, key):
        self._check("hgetall")
        return dict(self.hashes.get(key, {}))

    async def hset(self, key, mapping=None):
        self._check("hset")
        return self._hset(key, mapping=mapping)

    async def hdel(self, key, *fields):
        self._check("hdel")
        return self._hdel(key, *fields)

    async def get(self, key):
        self._check("get")
        return self.strings.get(key)

    async def set(self, key, value):
        self._check("set")
        return self._set(key, value)

    async def delete(self, *keys):
        self._check("delete")
        return self._delete(*keys)

    async def ping(self):
        self._check("ping")
        return True

    async def aclose(self):
        return


class FakePipeline:
    """MULTI/EXEC pipeline: queued commands apply all together or not at all."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._queue: list[tuple[str, tuple, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self._queue.clear()

    def _queue_command(self, name, *args, **kwargs):
        self._queue.append((name, args, kwargs))
        return self

    def hset(self, key, mapping=None):
        return self._queue_command("hset", key, mapping=mapping)

    def hdel(self, key, *fields):
        return self._queue_command("hdel", key, *fields)

    def set(self, key, value):
        return self._queue_command("set", key, value)

    def delete(self, *keys):
        return self._queue_command("delete", *keys)

    async def execute(self):
        for name, _, _ in self._queue:
            self._redis._check(name)
        results = [
            getattr(self._redis, f"_{name}")(*args, **kwargs)
            for name, args, kwargs in self._queue
        ]
        self._queue.clear()
        return results


class FakeBilling:
    """Billing service double with scripted Stripe statuses."""

    def __init__(self, statuses: dict[str, str] | None = None) -> None:
        self.statuses = statuses or {}
        self.status_calls: list[str] = []
        self.cancelled: list[str] = []
        self.fail = False
        self.configured = True

    async def get_subscription_status(self, subscription_id: str) -> str:
        self.status_calls.append(subscription_id)
        if self.fail:
            raise UpstreamUnavailable("stripe is down")
        return self.statuses.get(subscription_id, "incomplete")

    async def is_subscription_active(self, subscription_id: str) -> bool:
        return await self.get_subscription_status(subscription_id) == "active"

    async def cancel_subscription(self, subscription_id: str) -> str:
        if self.fail:
            raise UpstreamUnavailable("stripe is down")
        self.cancelled.append(subscription_id)
        self.statuses[subscription_id] = "canceled"
        return "canceled"


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header for a payload."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, obj: dict[str, Any], event_id: str = "evt_test") -> str:
    """Serialize a minimal Stripe event."""
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    })


def checkout_session(
    user_id: str | None = "u1",
    subscription_id: str | None = "sub_1",
    plan_type: str | None = "month",
) -> dict[str, Any]:
    metadata = {}
    if user_id is not None:
        metadata["clerkUserId"] = user_id
    if plan_type is not None:
        metadata["planType"] = plan_type
    return {
        "id": "cs_test_1",
        "object": "checkout.session",
        "subscription": subscription_id,
        "metadata": metadata,
    }


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> SubscriberStore:
    return SubscriberStore(fake_redis)


@pytest.fixture
def billing() -> FakeBilling:
    return FakeBilling({"sub_1": "active"})


@pytest.fixture
def app(store: SubscriberStore, billing: FakeBilling):
    app = create_app()
    app.dependency_overrides[dependencies.get_store] = lambda: store
    app.dependency_overrides[dependencies.get_billing] = lambda: billing
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_session_token({
        "sub": "u1",
        "email": "u1@example.com",
        "name": "Test User",
        "picture": "https://img.example.com/u1.png",
    })
    return {"Authorization": f"Bearer {token}"}
