"""Static city-centre table used as the first geocoding layer."""

import random

from tripflow.models import Coordinates

CITY_CENTERS: dict[str, Coordinates] = {
    "paris": Coordinates(lat=48.8566, lng=2.3522),
    "tokyo": Coordinates(lat=35.6762, lng=139.6503),
    "new york": Coordinates(lat=40.7128, lng=-74.0060),
    "london": Coordinates(lat=51.5074, lng=-0.1278),
    "rome": Coordinates(lat=41.9028, lng=12.4964),
    "barcelona": Coordinates(lat=41.3851, lng=2.1734),
    "bali": Coordinates(lat=-8.3405, lng=115.0920),
    "dubai": Coordinates(lat=25.2048, lng=55.2708),
    "sydney": Coordinates(lat=-33.8688, lng=151.2093),
    "los angeles": Coordinates(lat=34.0522, lng=-118.2437),
    "san francisco": Coordinates(lat=37.7749, lng=-122.4194),
    "miami": Coordinates(lat=25.7617, lng=-80.1918),
    "amsterdam": Coordinates(lat=52.3676, lng=4.9041),
    "singapore": Coordinates(lat=1.3521, lng=103.8198),
    "hong kong": Coordinates(lat=22.3193, lng=114.1694),
    "bangkok": Coordinates(lat=13.7563, lng=100.5018),
    "istanbul": Coordinates(lat=41.0082, lng=28.9784),
    "mexico city": Coordinates(lat=19.4326, lng=-99.1332),
    "cairo": Coordinates(lat=30.0444, lng=31.2357),
    "cape town": Coordinates(lat=-33.9249, lng=18.4241),
}

DEFAULT_CENTER = Coordinates(lat=48.8566, lng=2.3522)


def lookup_city(name: str) -> Coordinates | None:
    """Find a city in the static table.

    Matches when either the query or the table key contains the other,
    case-insensitively; the first table entry that matches wins.
    """
    key = name.strip().lower()
    if not key:
        return None
    for city, coords in CITY_CENTERS.items():
        if city in key or key in city:
            return coords.model_copy()
    return None


def get_destination_coords(name: str) -> Coordinates:
    """City centre from the static table, or the default centre."""
    return lookup_city(name) or DEFAULT_CENTER.model_copy()


def random_offset(base: float, spread: float = 0.05, rng: random.Random | None = None) -> float:
    """Jitter a coordinate uniformly within ``±spread`` degrees."""
    rng = rng or random
    return base + (rng.random() - 0.5) * spread * 2


def jitter(center: Coordinates, spread: float, rng: random.Random | None = None) -> Coordinates:
    """Jittered copy of ``center``, clamped to valid ranges."""
    lat = min(max(random_offset(center.lat, spread, rng), -90.0), 90.0)
    lng = min(max(random_offset(center.lng, spread, rng), -180.0), 180.0)
    return Coordinates(lat=lat, lng=lng)
