"""Convenient imports for all model types."""

from .common import (
    SENTINEL,
    SYNTHETIC_ID_PREFIXES,
    CamelModel,
    Coordinates,
    ItemType,
    compute_response_digest,
    is_synthetic_id,
    short_digest,
)
from .itinerary import CuratedItinerary, ItineraryDay, ItineraryItem, SaveResult
from .trip import (
    MAX_TRIP_DAYS,
    FetchedOptions,
    SearchQueries,
    SegmentData,
    SkeletonResult,
    TripItem,
    TripParams,
    TripSegment,
    TripWorkflowParams,
)

__all__ = [
    "SENTINEL",
    "SYNTHETIC_ID_PREFIXES",
    "CamelModel",
    "Coordinates",
    "ItemType",
    "compute_response_digest",
    "is_synthetic_id",
    "short_digest",
    "CuratedItinerary",
    "ItineraryDay",
    "ItineraryItem",
    "SaveResult",
    "FetchedOptions",
    "SearchQueries",
    "SegmentData",
    "SkeletonResult",
    "TripItem",
    "TripParams",
    "TripSegment",
    "TripWorkflowParams",
    "MAX_TRIP_DAYS",
]
