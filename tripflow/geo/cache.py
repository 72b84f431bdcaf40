"""Geocoding result cache, injected into the components that geocode."""

import threading
from datetime import UTC, datetime, timedelta
from typing import Protocol

from tripflow.models import Coordinates


class GeoCache(Protocol):
    """Cache interface for resolved coordinates."""

    def get(self, key: str) -> Coordinates | None:
        """Get coordinates for a query string.

        Args:
            key: Geocoding query (or ``city:<name>`` for city centres).

        Returns:
            Cached coordinates or None if not found/expired.
        """
        ...

    def put(self, key: str, coords: Coordinates) -> None:
        """Store coordinates for a query string."""
        ...


class InMemoryGeoCache:
    """Simple in-memory geocode cache with optional TTL support."""

    def __init__(self, ttl_seconds: int | None = None) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Entry lifetime; None keeps entries for the cache's life.
        """
        self._store: dict[str, tuple[Coordinates, datetime | None]] = {}
        self._lock = threading.Lock()
        self.ttl_seconds = ttl_seconds

    def get(self, key: str) -> Coordinates | None:
        """Get coordinates if present and not expired."""
        with self._lock:
            if key not in self._store:
                return None
            coords, expires_at = self._store[key]
            if expires_at is not None and datetime.now(UTC) > expires_at:
                del self._store[key]
                return None
            return coords.model_copy()

    def put(self, key: str, coords: Coordinates) -> None:
        """Store coordinates, refreshing any existing entry."""
        with self._lock:
            expires_at = (
                datetime.now(UTC) + timedelta(seconds=self.ttl_seconds)
                if self.ttl_seconds is not None
                else None
            )
            self._store[key] = (coords.model_copy(), expires_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
