"""Trip planning: skeleton, option aggregation, dedup and curation."""

from .aggregator import OptionsAggregator
from .curator import ItineraryCurator, fallback_itinerary
from .dedup import dedupe_activities, normalize_activity_name
from .filters import (
    filter_stays_by_budget,
    has_valid_coordinates,
    nightly_ceiling,
    shuffle_and_cap,
)
from .hydration import OptionPool, build_options_context, hydrate_days
from .skeleton import (
    SkeletonGenerator,
    fallback_skeleton,
    parse_segments,
    parse_trip_params,
)

__all__ = [
    "OptionsAggregator",
    "ItineraryCurator",
    "fallback_itinerary",
    "dedupe_activities",
    "normalize_activity_name",
    "filter_stays_by_budget",
    "has_valid_coordinates",
    "nightly_ceiling",
    "shuffle_and_cap",
    "OptionPool",
    "build_options_context",
    "hydrate_days",
    "SkeletonGenerator",
    "fallback_skeleton",
    "parse_segments",
    "parse_trip_params",
]
