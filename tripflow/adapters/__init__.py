"""Browser Use skill providers for stays and activities."""

from .activities import HeadoutProvider, KlookProvider
from .base import (
    SkillClient,
    coordinates_from,
    extract_list,
    parse_coordinate,
    parse_price,
    parse_rating,
    unwrap_data,
)
from .stays import AirbnbProvider, BookingProvider

__all__ = [
    "AirbnbProvider",
    "BookingProvider",
    "HeadoutProvider",
    "KlookProvider",
    "SkillClient",
    "coordinates_from",
    "extract_list",
    "parse_coordinate",
    "parse_price",
    "parse_rating",
    "unwrap_data",
]
