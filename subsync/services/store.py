"""Redis-backed subscriber record store.

Each subscriber is a hash under ``{prefix}:user:{user_id}``. Null fields are
absent from the hash. A secondary string key ``{prefix}:subscription:{id}``
maps a Stripe subscription ID back to its user, because failure and deletion
events only carry the subscription ID.

Each write applies the hash and its index in one MULTI/EXEC block; the
last write wins.
"""

from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from subsync.errors import PersistenceFailure, RecordNotFound
from subsync.models import SubscriberRecord

logger = structlog.get_logger(__name__)

_FIELDS = ("user_id", "subscription_id", "subscription_active", "subscription_tier")


def _to_hash(record: SubscriberRecord) -> tuple[dict[str, str], list[str]]:
    """Split a record into fields to set and fields to delete."""
    values: dict[str, str] = {}
    nulls: list[str] = []
    for field in _FIELDS:
        value = getattr(record, field)
        if value is None:
            nulls.append(field)
        elif isinstance(value, bool):
            values[field] = "1" if value else "0"
        else:
            values[field] = str(value)
    return values, nulls


def _from_hash(data: dict[Any, Any]) -> SubscriberRecord:
    decoded = {
        (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
        for k, v in data.items()
    }
    return SubscriberRecord(
        user_id=decoded["user_id"],
        subscription_id=decoded.get("subscription_id") or None,
        subscription_active=decoded.get("subscription_active") == "1",
        subscription_tier=decoded.get("subscription_tier") or None,
    )


class SubscriberStore:
    """Keyed get/update access to subscriber records."""

    def __init__(self, redis: Redis, prefix: str = "subscriber") -> None:
        self._redis = redis
        self._prefix = prefix

    def _user_key(self, user_id: str) -> str:
        return f"{self._prefix}:user:{user_id}"

    def _subscription_key(self, subscription_id: str) -> str:
        return f"{self._prefix}:subscription:{subscription_id}"

    async def get(self, user_id: str) -> SubscriberRecord | None:
        """Fetch the record for a user, or ``None`` if there is none."""
        try:
            data = await self._redis.hgetall(self._user_key(user_id))
        except RedisError as e:
            raise PersistenceFailure(f"failed to read subscriber {user_id}: {e}") from e

        if not data:
            return None
        return _from_hash(data)

    async def find_by_subscription_id(self, subscription_id: str) -> SubscriberRecord | None:
        """Fetch the record currently holding a Stripe subscription ID."""
        try:
            user_id = await self._redis.get(self._subscription_key(subscription_id))
        except RedisError as e:
            raise PersistenceFailure(
                f"failed to look up subscription {subscription_id}: {e}"
            ) from e

        if not user_id:
            return None
        if isinstance(user_id, bytes):
            user_id = user_id.decode()

        record = await self.get(user_id)
        # Index entries can outlive the field they point at if a write was cut short
        if record is None or record.subscription_id != subscription_id:
            return None
        return record

    async def upsert(self, user_id: str, **changes: Any) -> SubscriberRecord:
        """Create or update the record for a user and return the result."""
        current = await self.get(user_id)
        return await self._apply(user_id, current, changes)

    async def update(self, user_id: str, **changes: Any) -> SubscriberRecord:
        """Update an existing record. Raises ``RecordNotFound`` if absent."""
        current = await self.get(user_id)
        if current is None:
            raise RecordNotFound(f"no subscriber record for user {user_id}")
        return await self._apply(user_id, current, changes)

    async def _apply(
        self,
        user_id: str,
        current: SubscriberRecord | None,
        changes: dict[str, Any],
    ) -> SubscriberRecord:
        unknown = set(changes) - set(_FIELDS[1:])
        if unknown:
            raise ValueError(f"cannot update fields: {sorted(unknown)}")

        base = current.model_dump() if current else {"user_id": user_id}
        # Validation runs here so a write that breaks the record's invariants
        # never reaches Redis.
        record = SubscriberRecord.model_validate({**base, **changes})

        values, nulls = _to_hash(record)
        previous_subscription_id = current.subscription_id if current else None
        user_key = self._user_key(user_id)

        try:
            # Hash and index change together, and the index is rewritten on
            # every write so a redelivered event restores a missing entry.
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(user_key, mapping=values)
                if nulls:
                    pipe.hdel(user_key, *nulls)
                if previous_subscription_id and previous_subscription_id != record.subscription_id:
                    pipe.delete(self._subscription_key(previous_subscription_id))
                if record.subscription_id:
                    pipe.set(self._subscription_key(record.subscription_id), user_id)
                await pipe.execute()
        except RedisError as e:
            raise PersistenceFailure(f"failed to write subscriber {user_id}: {e}") from e

        logger.debug(
            "Subscriber record written",
            user_id=user_id,
            subscription_id=record.subscription_id,
            subscription_active=record.subscription_active,
        )
        return record

    async def ping(self) -> bool:
        """Check connectivity to the store."""
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False
