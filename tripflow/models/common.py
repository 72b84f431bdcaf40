"""Common data types and enums used across the application."""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SYNTHETIC_ID_PREFIXES = ("gen_", "fb_")


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys on the wire and in the cache."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-compatible camelCase shape consumed by clients."""
        return self.model_dump(mode="json", by_alias=True)


class Coordinates(BaseModel):
    """Geographic coordinates in WGS84 decimal degrees.

    ``(0, 0)`` is reserved to mean "not geocoded yet".
    """

    lat: float = Field(default=0.0, ge=-90, le=90, description="Latitude")
    lng: float = Field(default=0.0, ge=-180, le=180, description="Longitude")

    @property
    def is_sentinel(self) -> bool:
        return self.lat == 0 and self.lng == 0


SENTINEL = Coordinates(lat=0.0, lng=0.0)


class ItemType(str, Enum):
    """Kinds of bookable or schedulable itinerary items."""

    hotel = "hotel"
    activity = "activity"
    food = "food"
    museum = "museum"
    train = "train"
    flight = "flight"


def is_synthetic_id(item_id: str) -> bool:
    """Whether an id was generated locally rather than taken from a provider."""
    return item_id.startswith(SYNTHETIC_ID_PREFIXES)


def compute_response_digest(data: Any) -> str:
    """
    Compute SHA256 digest of response data for deduplication.

    Args:
        data: Any JSON-serializable data

    Returns:
        Hex string digest of the data
    """
    json_str = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(json_str.encode()).hexdigest()


def short_digest(*parts: Any, length: int = 10) -> str:
    """Stable short hash used to namespace provider item ids."""
    return compute_response_digest(list(parts))[:length]
