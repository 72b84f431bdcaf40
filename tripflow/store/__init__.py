"""Trip itinerary cache."""

from .trip_store import TRIP_TTL_SECONDS, InMemoryTripStore, RedisTripStore, TripStore

__all__ = ["TRIP_TTL_SECONDS", "InMemoryTripStore", "RedisTripStore", "TripStore"]
