"""Per-segment provider aggregation with geocode healing."""

from __future__ import annotations

import logging
import random
from datetime import date
from typing import Protocol

import httpx

from tripflow.adapters import (
    AirbnbProvider,
    BookingProvider,
    HeadoutProvider,
    KlookProvider,
    SkillClient,
)
from tripflow.config import Settings, get_settings
from tripflow.exec import gather_settled
from tripflow.geo import (
    BatchGeocoder,
    CityResolver,
    GeoCache,
    GeocodeHealer,
    LLMGeocoder,
    jitter,
)
from tripflow.llm import JSONCompleter
from tripflow.models import (
    FetchedOptions,
    SegmentData,
    SkeletonResult,
    TripItem,
    TripParams,
    TripSegment,
)

from .dedup import dedupe_activities
from .filters import (
    filter_stays_by_budget,
    has_valid_coordinates,
    nightly_ceiling,
    shuffle_and_cap,
)

logger = logging.getLogger(__name__)

FORCE_INCLUDE_SPREAD = 0.02


class StayProvider(Protocol):
    name: str

    async def fetch(
        self, location: str, check_in: date, check_out: date, guests: int
    ) -> list[TripItem]:
        ...


class ActivityProvider(Protocol):
    name: str

    async def fetch(self, location: str) -> list[TripItem]:
        ...


class OptionsAggregator:
    """Fetches, filters, dedupes and geocodes options for each segment.

    Segments are processed strictly one after another; within a segment the
    stay providers run concurrently, then the activity providers.
    """

    def __init__(
        self,
        *,
        stay_providers: list[StayProvider],
        activity_providers: list[ActivityProvider],
        healer: GeocodeHealer,
        city_resolver: CityResolver,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize aggregator.

        Args:
            stay_providers: Providers returning hotel items
            activity_providers: Providers returning activity items
            healer: Geocoder for items left at the sentinel
            city_resolver: City-centre lookup for force-included activities
            settings: Application settings (defaults to the singleton)
            rng: Random source for shuffling and jitter (for testing)
        """
        self.stay_providers = stay_providers
        self.activity_providers = activity_providers
        self.healer = healer
        self.city_resolver = city_resolver
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        llm: JSONCompleter,
        cache: GeoCache,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ) -> OptionsAggregator:
        """Wire the Browser Use providers and geocoders from settings."""
        skills = SkillClient(settings, http_client=http_client)
        healer = GeocodeHealer(
            BatchGeocoder(skills),
            LLMGeocoder(llm),
            cache,
            llm_max_items=settings.llm_geocode_max_items,
        )
        return cls(
            stay_providers=[AirbnbProvider(skills), BookingProvider(skills)],
            activity_providers=[
                HeadoutProvider(skills, limit=settings.max_activities_per_segment),
                KlookProvider(skills),
            ],
            healer=healer,
            city_resolver=CityResolver(llm, cache),
            settings=settings,
            rng=rng,
        )

    async def fetch_segment(self, segment: TripSegment, params: TripParams) -> SegmentData:
        """Build the validated option set for one segment.

        Order: stays fan-out, budget filter, activities fan-out, dedup,
        shuffle and cap, geocode healing, drop unresolved stays, force-include
        activities at the city centre up to the minimum, shuffle stays.
        """
        location = segment.location
        stays = await gather_settled(
            *(
                provider.fetch(location, segment.check_in, segment.check_out, params.travelers)
                for provider in self.stay_providers
            ),
            label=f"stays:{location}",
        )
        ceiling = nightly_ceiling(params.budget_usd, self.settings.budget_nights_divisor)
        stays = filter_stays_by_budget(stays, ceiling)

        activities = await gather_settled(
            *(provider.fetch(location) for provider in self.activity_providers),
            label=f"activities:{location}",
        )
        activities = dedupe_activities(activities)
        activities = shuffle_and_cap(
            activities, self.settings.max_activities_per_segment, self.rng
        )

        logger.info(
            "%s: geocoding %d stays, %d activities", location, len(stays), len(activities)
        )
        await self.healer.heal([*stays, *activities], location)

        valid_stays = [stay for stay in stays if has_valid_coordinates(stay)]
        valid_activities = [a for a in activities if has_valid_coordinates(a)]

        minimum = self.settings.min_activities_per_segment
        if len(valid_activities) < minimum:
            logger.warning(
                "Only %d valid activities for %s, adding city centre fallbacks",
                len(valid_activities),
                location,
            )
            center = await self.city_resolver.center_for(location)
            for activity in activities:
                if len(valid_activities) >= minimum:
                    break
                if has_valid_coordinates(activity):
                    continue
                activity.coordinates = jitter(center, FORCE_INCLUDE_SPREAD, self.rng)
                valid_activities.append(activity)

        self.rng.shuffle(valid_stays)
        logger.info(
            "%s: %d valid stays, %d valid activities",
            location,
            len(valid_stays),
            len(valid_activities),
        )
        return SegmentData(
            segment=segment, stays=valid_stays, activities=valid_activities
        )

    async def fetch_all(self, skeleton: SkeletonResult) -> FetchedOptions:
        """Aggregate every segment sequentially, in skeleton order."""
        segments_data: list[SegmentData] = []
        for segment in skeleton.skeleton:
            segments_data.append(await self.fetch_segment(segment, skeleton.trip_params))

        total_stays = sum(len(data.stays) for data in segments_data)
        total_activities = sum(len(data.activities) for data in segments_data)
        logger.info("Total: %d stays and %d activities", total_stays, total_activities)
        return FetchedOptions(
            segments_data=segments_data,
            total_stays=total_stays,
            total_activities=total_activities,
        )
