"""Tests for the static city table and the geocode cache."""

import random
import time

from tripflow.geo import (
    DEFAULT_CENTER,
    InMemoryGeoCache,
    get_destination_coords,
    jitter,
    lookup_city,
)
from tripflow.models import Coordinates


def test_lookup_city_is_case_insensitive_substring() -> None:
    coords = lookup_city("Rome, Italy")

    assert coords is not None
    assert coords.lat == 41.9028
    assert lookup_city("TOKYO") is not None


def test_unknown_city_falls_back_to_default() -> None:
    assert lookup_city("Zermatt") is None
    assert get_destination_coords("Zermatt") == DEFAULT_CENTER


def test_lookup_returns_copies() -> None:
    """Test that callers cannot mutate the static table."""
    coords = lookup_city("Paris")
    assert coords is not None
    coords.lat = 0.0

    assert lookup_city("Paris").lat == 48.8566


def test_jitter_stays_within_spread() -> None:
    rng = random.Random(7)
    center = Coordinates(lat=41.9, lng=12.5)

    for _ in range(50):
        point = jitter(center, 0.02, rng)
        assert abs(point.lat - center.lat) <= 0.02
        assert abs(point.lng - center.lng) <= 0.02


def test_jitter_clamps_to_valid_range() -> None:
    point = jitter(Coordinates(lat=90.0, lng=180.0), 1.0, random.Random(1))

    assert point.lat <= 90.0
    assert point.lng <= 180.0


def test_cache_round_trip_and_copy() -> None:
    cache = InMemoryGeoCache()
    cache.put("Colosseum Rome", Coordinates(lat=41.89, lng=12.49))

    hit = cache.get("Colosseum Rome")
    assert hit == Coordinates(lat=41.89, lng=12.49)
    hit.lat = 0.0
    assert cache.get("Colosseum Rome").lat == 41.89
    assert cache.get("missing") is None
    assert len(cache) == 1


def test_cache_entries_expire() -> None:
    cache = InMemoryGeoCache(ttl_seconds=0)
    cache.put("key", Coordinates(lat=1.0, lng=1.0))
    time.sleep(0.01)

    assert cache.get("key") is None
