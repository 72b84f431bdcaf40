"""Coordinate resolution: static table, cache, batch and LLM geocoders."""

from .cache import GeoCache, InMemoryGeoCache
from .cities import (
    CITY_CENTERS,
    DEFAULT_CENTER,
    get_destination_coords,
    jitter,
    lookup_city,
    random_offset,
)
from .geocoder import (
    BatchGeocoder,
    CityResolver,
    GeocodeQuery,
    LLMGeocoder,
    parse_coordinates,
)
from .healing import GeocodeHealer
from .matching import fuzzy_match_key

__all__ = [
    "GeoCache",
    "InMemoryGeoCache",
    "CITY_CENTERS",
    "DEFAULT_CENTER",
    "get_destination_coords",
    "jitter",
    "lookup_city",
    "random_offset",
    "BatchGeocoder",
    "CityResolver",
    "GeocodeQuery",
    "LLMGeocoder",
    "parse_coordinates",
    "GeocodeHealer",
    "fuzzy_match_key",
]
