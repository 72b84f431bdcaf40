"""Trip cache: curated itineraries keyed by trip id with a TTL."""

import json
import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from tripflow.config import Settings, get_settings

logger = logging.getLogger(__name__)

TRIP_TTL_SECONDS = 60 * 60 * 24 * 7


class TripStore(Protocol):
    """Key-value store for curated itineraries (JSON objects)."""

    async def get(self, trip_id: str) -> dict[str, Any] | None:
        """Return the stored itinerary, or None if absent/expired."""
        ...

    async def put(self, trip_id: str, value: dict[str, Any], ttl_seconds: int) -> None:
        """Store (or overwrite) an itinerary with a fresh TTL."""
        ...

    async def ping(self) -> bool:
        """Whether the backing store is reachable."""
        ...


class RedisTripStore:
    """Trip store backed by Redis ``SET key value EX ttl``."""

    def __init__(self, client: redis.Redis, key_prefix: str = "") -> None:
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RedisTripStore":
        settings = settings or get_settings()
        return cls(redis.from_url(settings.redis_url, decode_responses=True))

    def _key(self, trip_id: str) -> str:
        return f"{self.key_prefix}{trip_id}"

    async def get(self, trip_id: str) -> dict[str, Any] | None:
        raw = await self.client.get(self._key(trip_id))
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Corrupt cache entry for trip %s", trip_id)
            return None
        return value if isinstance(value, dict) else None

    async def put(self, trip_id: str, value: dict[str, Any], ttl_seconds: int) -> None:
        await self.client.set(self._key(trip_id), json.dumps(value), ex=ttl_seconds)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError:
            return False


class InMemoryTripStore:
    """Process-local trip store with TTL support."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    async def get(self, trip_id: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._store.get(trip_id)
            if entry is None:
                return None
            raw, expires_at = entry
            if datetime.now(UTC) > expires_at:
                del self._store[trip_id]
                return None
        return json.loads(raw)

    async def put(self, trip_id: str, value: dict[str, Any], ttl_seconds: int) -> None:
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._store[trip_id] = (json.dumps(value), expires_at)

    async def ping(self) -> bool:
        return True

    def ttl_of(self, trip_id: str) -> float | None:
        """Seconds until the entry expires, or None if absent."""
        with self._lock:
            entry = self._store.get(trip_id)
        if entry is None:
            return None
        return (entry[1] - datetime.now(UTC)).total_seconds()
