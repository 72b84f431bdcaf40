"""Tests for per-segment option aggregation."""

import asyncio
import random
from collections.abc import Callable
from datetime import date
from typing import Any

from tripflow.config import Settings
from tripflow.geo import (
    BatchGeocoder,
    CityResolver,
    GeocodeHealer,
    InMemoryGeoCache,
    LLMGeocoder,
)
from tripflow.models import ItemType, SkeletonResult, TripItem, TripParams, TripSegment
from tripflow.planning import OptionsAggregator

START = date(2026, 6, 1)


class StaticStays:
    def __init__(self, items: list[TripItem] | Exception, name: str = "stays") -> None:
        self.name = name
        self.items = items
        self.calls: list[tuple[Any, ...]] = []

    async def fetch(
        self, location: str, check_in: date, check_out: date, guests: int
    ) -> list[TripItem]:
        self.calls.append((location, check_in, check_out, guests))
        if isinstance(self.items, Exception):
            raise self.items
        return [item.model_copy(deep=True) for item in self.items]


class StaticActivities:
    def __init__(self, items: list[TripItem] | Exception, name: str = "activities") -> None:
        self.name = name
        self.items = items

    async def fetch(self, location: str) -> list[TripItem]:
        if isinstance(self.items, Exception):
            raise self.items
        return [item.model_copy(deep=True) for item in self.items]


class NoSkills:
    """Skill client whose every call fails."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def execute(
        self, skill_id: str, parameters: dict[str, Any], *, provider: str
    ) -> dict[str, Any] | None:
        return None


def _aggregator(
    settings: Settings,
    make_llm: Callable[..., Any],
    stays: list[Any],
    activities: list[Any],
    llm_responses: dict[str, Any] | None = None,
) -> OptionsAggregator:
    llm = make_llm(llm_responses or {})
    cache = InMemoryGeoCache()
    healer = GeocodeHealer(BatchGeocoder(NoSkills(settings)), LLMGeocoder(llm), cache)
    return OptionsAggregator(
        stay_providers=stays,
        activity_providers=activities,
        healer=healer,
        city_resolver=CityResolver(llm, cache),
        settings=settings,
        rng=random.Random(0),
    )


def _params(budget: float = 2100.0) -> TripParams:
    return TripParams(
        destination="Rome",
        start_date=START,
        end_date=date(2026, 6, 4),
        travelers=2,
        budget_usd=budget,
    )


def test_all_providers_failing_yields_empty_segment(
    settings: Settings,
    make_llm: Callable[..., Any],
    make_segment: Callable[..., TripSegment],
) -> None:
    """Test that provider failures degrade to an empty option set."""
    aggregator = _aggregator(
        settings,
        make_llm,
        stays=[StaticStays(RuntimeError("boom")), StaticStays([])],
        activities=[StaticActivities(RuntimeError("boom")), StaticActivities([])],
    )
    segment = make_segment("Rome", START, date(2026, 6, 4))
    skeleton = SkeletonResult(skeleton=[segment], trip_params=_params())

    options = asyncio.run(aggregator.fetch_all(skeleton))

    assert options.total_stays == 0
    assert options.total_activities == 0
    assert options.segments_data[0].segment.location == "Rome"


def test_budget_filter_and_unresolved_stays_dropped(
    settings: Settings,
    make_llm: Callable[..., Any],
    make_item: Callable[..., TripItem],
    make_segment: Callable[..., TripSegment],
) -> None:
    stays = StaticStays(
        [
            make_item("airbnb_0_a", "Cheap Loft", ItemType.hotel, price=120),
            make_item("airbnb_1_b", "Grand Palace", ItemType.hotel, price=900),
            make_item("booking-7", "Lost Inn", ItemType.hotel, price=150, coords=None),
        ]
    )
    activities = [StaticActivities([make_item(f"headout-{i}", f"Sight {i}") for i in range(6)])]
    aggregator = _aggregator(
        settings, make_llm, [stays], activities, {"geocode_items": {}}
    )
    segment = make_segment("Rome", START, date(2026, 6, 4))

    data = asyncio.run(aggregator.fetch_segment(segment, _params(budget=2100)))

    assert [s.id for s in data.stays] == ["airbnb_0_a"]
    assert len(data.activities) == 6
    assert stays.calls == [("Rome", START, date(2026, 6, 4), 2)]


def test_force_includes_activities_at_city_centre(
    settings: Settings,
    make_llm: Callable[..., Any],
    make_item: Callable[..., TripItem],
    make_segment: Callable[..., TripSegment],
) -> None:
    """Test that unresolved activities are placed near the centre up to the minimum."""
    activities = [
        make_item("headout-1", "Colosseum Arena"),
        make_item("headout-2", "Pantheon Visit"),
    ] + [make_item(f"klook_{i}", f"Hidden Gem Number {i}", coords=None) for i in range(5)]
    aggregator = _aggregator(
        settings, make_llm, [], [StaticActivities(activities)], {"geocode_items": {}}
    )
    segment = make_segment("Rome", START, date(2026, 6, 4))

    data = asyncio.run(aggregator.fetch_segment(segment, _params()))

    assert len(data.activities) == settings.min_activities_per_segment
    for activity in data.activities:
        assert activity.is_geocoded
        assert abs(activity.coordinates.lat - 41.9028) < 0.1


def test_activities_are_deduped_and_capped(
    settings: Settings,
    make_llm: Callable[..., Any],
    make_item: Callable[..., TripItem],
    make_segment: Callable[..., TripSegment],
) -> None:
    headout = [make_item(f"headout-{i}", f"Unique Sight Alpha{i:02d}") for i in range(25)]
    klook = [make_item("klook_0_x", "Unique Sight Alpha00 Ticket")]
    aggregator = _aggregator(
        settings, make_llm, [], [StaticActivities(headout), StaticActivities(klook)]
    )
    segment = make_segment("Rome", START, date(2026, 6, 4))

    data = asyncio.run(aggregator.fetch_segment(segment, _params()))

    ids = {a.id for a in data.activities}
    assert len(data.activities) == settings.max_activities_per_segment
    assert "klook_0_x" not in ids


def test_segments_are_processed_in_order(
    settings: Settings,
    make_llm: Callable[..., Any],
    make_segment: Callable[..., TripSegment],
) -> None:
    stays = StaticStays([])
    aggregator = _aggregator(
        settings, make_llm, [stays], [], {"geocode_cities": {}}
    )
    skeleton = SkeletonResult(
        skeleton=[
            make_segment("Zurich", START, date(2026, 6, 3), 1),
            make_segment("Lucerne", date(2026, 6, 3), date(2026, 6, 5), 2),
        ],
        trip_params=_params(),
    )

    options = asyncio.run(aggregator.fetch_all(skeleton))

    assert [call[0] for call in stays.calls] == ["Zurich", "Lucerne"]
    assert [d.segment.location for d in options.segments_data] == ["Zurich", "Lucerne"]
