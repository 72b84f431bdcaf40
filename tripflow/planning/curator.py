"""Whole-trip itinerary curation with a single LLM call."""

from __future__ import annotations

import logging
import random
from datetime import date

from tripflow.geo import CityResolver, get_destination_coords
from tripflow.llm import JSONCompleter, LLMResponseError
from tripflow.models import (
    CuratedItinerary,
    ItemType,
    ItineraryDay,
    ItineraryItem,
    SegmentData,
    TripParams,
    TripSegment,
)

from .dates import (
    build_date_city_map,
    iter_trip_dates,
    parse_iso_date,
    trip_bounds,
    trip_day_count,
)
from .hydration import OptionPool, build_options_context, day_location, hydrate_days
from .prompts import CURATOR_SYSTEM_PROMPT, build_curation_prompt

logger = logging.getLogger(__name__)

DESTINATION_SEPARATOR = " → "


def _destination_label(skeleton: list[TripSegment], params: TripParams) -> str:
    return DESTINATION_SEPARATOR.join(s.location for s in skeleton) or params.destination


def _dates_label(skeleton: list[TripSegment], today: date) -> str:
    start, end = trip_bounds(skeleton, today)
    return f"{start.isoformat()} to {end.isoformat()}"


def fallback_itinerary(
    skeleton: list[TripSegment],
    params: TripParams,
    trip_id: str,
    today: date,
) -> CuratedItinerary:
    """Minimal renderable itinerary: three generic items per calendar day.

    Budget is the requested budget and ``is_demo`` is always set.
    """
    start, _ = trip_bounds(skeleton, today)
    total_days = trip_day_count(skeleton, today)
    date_city_map = build_date_city_map(skeleton, start, total_days, params.destination)

    days = []
    for number, day_date in enumerate(iter_trip_dates(start, total_days), start=1):
        location = date_city_map.get(day_date) or params.destination
        center = get_destination_coords(location)
        days.append(
            ItineraryDay(
                day=number,
                date=day_date,
                location=location,
                title=f"Day {number} in {location}",
                subtitle=location,
                items=[
                    ItineraryItem(
                        id=f"fb_{number}_1",
                        type=ItemType.activity,
                        name="Morning Exploration",
                        time="10:00",
                        description="Discover the city",
                        price=0.0,
                        coordinates=center.model_copy(),
                    ),
                    ItineraryItem(
                        id=f"fb_{number}_2",
                        type=ItemType.food,
                        name="Lunch",
                        time="14:00",
                        description="Local cuisine",
                        price=20.0,
                        coordinates=center.model_copy(),
                        is_estimate=True,
                    ),
                    ItineraryItem(
                        id=f"fb_{number}_3",
                        type=ItemType.activity,
                        name="Evening Relaxation",
                        time="19:00",
                        description="Unwind after a day of exploration",
                        price=0.0,
                        coordinates=center.model_copy(),
                    ),
                ],
            )
        )

    return CuratedItinerary(
        id=trip_id,
        destination=_destination_label(skeleton, params),
        dates=_dates_label(skeleton, today),
        total_budget=params.budget_usd,
        currency="USD",
        travelers=params.travelers,
        days=days,
        is_demo=True,
    )


class ItineraryCurator:
    """Builds the curation prompt, calls the model once and hydrates the result."""

    def __init__(
        self,
        llm: JSONCompleter,
        city_resolver: CityResolver,
        rng: random.Random | None = None,
    ) -> None:
        self.llm = llm
        self.city_resolver = city_resolver
        self.rng = rng

    async def _curate(
        self,
        skeleton: list[TripSegment],
        params: TripParams,
        segments_data: list[SegmentData],
        prompt: str,
        trip_id: str,
        is_demo: bool,
        today: date,
    ) -> CuratedItinerary:
        start, end = trip_bounds(skeleton, today)
        total_days = trip_day_count(skeleton, today)
        date_city_map = build_date_city_map(skeleton, start, total_days, params.destination)
        logger.info("Generating %d-day plan for %s", total_days, params.destination)

        raw = await self.llm.complete_json(
            system=CURATOR_SYSTEM_PROMPT,
            user=build_curation_prompt(
                user_request=prompt,
                total_days=total_days,
                start=start,
                end=end,
                budget=params.budget_usd,
                travelers=params.travelers,
                options_context=build_options_context(segments_data),
                date_city_map=date_city_map,
            ),
            temperature=0.4,
            max_tokens=8000,
            purpose="curate",
        )
        if not isinstance(raw, dict) or not isinstance(raw.get("days"), list):
            raise LLMResponseError("Curator response has no 'days' array")
        raw_days = [day for day in raw["days"] if isinstance(day, dict)]
        logger.info("Model generated %d days", len(raw_days))

        cities = [
            day_location(
                day, parse_iso_date(day.get("date"), today), date_city_map, params.destination
            )
            for day in raw_days
        ]
        cities.extend(date_city_map.values())
        city_coords = await self.city_resolver.resolve(cities)

        days = hydrate_days(
            raw_days,
            pool=OptionPool(segments_data),
            start=start,
            total_days=total_days,
            date_city_map=date_city_map,
            default_city=params.destination,
            city_coords=city_coords,
            rng=self.rng,
        )
        total_cost = sum(day.cost for day in days)
        logger.info("Calculated total cost: $%.2f", total_cost)

        return CuratedItinerary(
            id=trip_id,
            destination=_destination_label(skeleton, params),
            dates=_dates_label(skeleton, today),
            total_budget=total_cost,
            currency="USD",
            travelers=params.travelers,
            days=days,
            is_demo=is_demo,
        )

    async def curate(
        self,
        skeleton: list[TripSegment],
        params: TripParams,
        segments_data: list[SegmentData],
        prompt: str,
        trip_id: str,
        is_demo: bool = False,
        today: date | None = None,
    ) -> CuratedItinerary:
        """Curate the whole trip; any failure yields ``fallback_itinerary``.

        Args:
            skeleton: Ordered trip segments
            params: Trip-wide parameters
            segments_data: Validated options per segment
            prompt: Cleaned user request
            trip_id: Id of the resulting itinerary
            is_demo: Whether the request carried the demo flag
            today: Reference date when the skeleton is empty

        Returns:
            The curated (or fallback) itinerary
        """
        today = today or date.today()
        try:
            return await self._curate(
                skeleton, params, segments_data, prompt, trip_id, is_demo, today
            )
        except Exception as e:
            logger.error("Itinerary curation failed, using fallback: %s", e, exc_info=True)
            return fallback_itinerary(skeleton, params, trip_id, today)
