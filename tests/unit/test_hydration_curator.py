"""Tests for curator output hydration and the whole-trip curator."""

import asyncio
import random
from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from tripflow.geo import CityResolver, InMemoryGeoCache
from tripflow.llm import LLMUnavailableError
from tripflow.models import (
    ItemType,
    SegmentData,
    TripItem,
    TripParams,
    TripSegment,
    is_synthetic_id,
)
from tripflow.planning import ItineraryCurator, OptionPool, fallback_itinerary, hydrate_days
from tripflow.planning.hydration import build_options_context, normalize_item_type

START = date(2026, 6, 1)
END = date(2026, 6, 3)


@pytest.fixture
def rome_data(
    make_item: Callable[..., TripItem],
    make_segment: Callable[..., TripSegment],
) -> list[SegmentData]:
    segment = make_segment("Rome", START, END)
    return [
        SegmentData(
            segment=segment,
            stays=[
                make_item(
                    "airbnb_0_a",
                    "Cozy Loft",
                    ItemType.hotel,
                    price=150,
                    coords=(41.889, 12.47),
                    provider="Airbnb",
                    booking_url="https://airbnb.example/1",
                )
            ],
            activities=[
                make_item(
                    "headout-1",
                    "Colosseum Arena",
                    price=50,
                    coords=(41.8902, 12.4922),
                    provider="Headout",
                    description="Ancient amphitheatre",
                ),
                make_item("headout-2", "Borghese Gallery", price=20),
            ],
        )
    ]


@pytest.fixture
def params() -> TripParams:
    return TripParams(
        destination="Rome",
        start_date=START,
        end_date=END,
        travelers=2,
        budget_usd=2000,
    )


CURATED_DAYS = {
    "days": [
        {
            "day": 1,
            "date": "2026-06-01",
            "location": "Rome",
            "title": "Arrival in the Eternal City",
            "theme": "Ancient Rome",
            "items": [
                {
                    "time": "11:00",
                    "type": "hotel",
                    "id": "airbnb_0_a",
                    "name": "Check-in: Cozy Loft",
                    "price": 150,
                },
                {
                    "time": "14:00",
                    "type": "activity",
                    "id": "headout-1",
                    "name": "Colosseum Arena",
                    "price": 50,
                    "hasReel": True,
                    "instagramSearchTerm": "colosseum-rome-aesthetic",
                },
                {"time": "19:30", "type": "food", "name": "Dinner at Trattoria", "price": 35},
            ],
        },
        {
            "day": 2,
            "date": "2026-06-02",
            "items": [
                {"time": "10:00", "type": "activity", "name": "Vatican Museums", "price": 25}
            ],
        },
    ]
}


def _hydrate(raw_days: list[Any], data: list[SegmentData]) -> list[Any]:
    return hydrate_days(
        raw_days,
        pool=OptionPool(data),
        start=START,
        total_days=3,
        date_city_map={START: "Rome", date(2026, 6, 2): "Rome", END: "Rome"},
        default_city="Rome",
        city_coords={},
        rng=random.Random(1),
    )


def test_normalize_item_type() -> None:
    assert normalize_item_type("Vatican Museums", "activity") == ItemType.museum
    assert normalize_item_type("Lunch at Roscioli", "activity") == ItemType.food
    assert normalize_item_type("Pasta class", "meal") == ItemType.food
    assert normalize_item_type("Gondola ride", "transfer") == ItemType.activity
    assert normalize_item_type("Train to Florence", "train") == ItemType.train
    # word boundaries: "party" is not "art"
    assert normalize_item_type("Rooftop party", "activity") == ItemType.activity


def test_hydration_reconciles_against_pool(rome_data: list[SegmentData]) -> None:
    """Test matched, hotel and synthetic items on a short model response."""
    days = _hydrate(CURATED_DAYS["days"], rome_data)

    assert [d.day for d in days] == [1, 2, 3]
    assert [d.date for d in days] == [START, date(2026, 6, 2), END]
    for day in days:
        assert 3 <= len(day.items) <= 5
        for item in day.items:
            assert not item.coordinates.is_sentinel

    hotel, colosseum, dinner = days[0].items
    assert hotel.type == ItemType.hotel
    assert hotel.name == "Check-in: Cozy Loft"
    assert hotel.price == 150
    assert hotel.booking_url == "https://airbnb.example/1"
    assert colosseum.id == "headout-1"
    assert colosseum.coordinates.lat == 41.8902
    assert colosseum.has_reel is True
    assert colosseum.provider == "Headout"
    assert dinner.id == "gen_1_1"
    assert dinner.type == ItemType.food
    assert days[0].title == "Arrival in the Eternal City"
    assert days[0].subtitle == "Ancient Rome"

    vatican = days[1].items[0]
    assert vatican.type == ItemType.museum
    assert is_synthetic_id(vatican.id)
    assert days[1].title == "Day 2"
    assert days[2].location == "Rome"


def test_check_out_is_free(rome_data: list[SegmentData]) -> None:
    raw_days = [
        {
            "date": "2026-06-03",
            "items": [
                {"type": "hotel", "id": "airbnb_0_a", "name": "Check-out: Cozy Loft", "price": 150},
                {"name": "Borghese Gallery"},
                {"name": "Farewell Dinner", "type": "food", "price": 40},
            ],
        }
    ]

    days = _hydrate(raw_days, rome_data)

    check_out = days[2].items[0]
    assert check_out.name == "Check-out: Cozy Loft"
    assert check_out.price == 0
    borghese = days[2].items[1]
    assert borghese.id == "headout-2"
    assert borghese.price == 20
    assert borghese.type == ItemType.museum


def test_hotel_matched_by_name_when_id_is_wrong(rome_data: list[SegmentData]) -> None:
    pool = OptionPool(rome_data)

    assert pool.find_stay("made-up", "Check-in: cozy loft").id == "airbnb_0_a"
    assert pool.find_stay("headout-1", "Check-in: Somewhere") is None


def test_days_are_capped_at_five_items(rome_data: list[SegmentData]) -> None:
    raw_days = [{"date": "2026-06-01", "items": [{"name": f"Stop {i}"} for i in range(8)]}]

    days = _hydrate(raw_days, rome_data)

    assert len(days[0].items) == 5


@pytest.mark.parametrize(
    ("raw_flag", "expected"),
    [
        (True, True),
        ("true", True),
        ("TRUE", True),
        (False, False),
        ("false", False),
        ("yes", False),
        (1, False),
        (None, False),
    ],
)
def test_has_reel_accepts_only_true_values(
    rome_data: list[SegmentData], raw_flag: Any, expected: bool
) -> None:
    raw_days = [
        {
            "date": "2026-06-01",
            "items": [
                {"id": "headout-1", "name": "Colosseum Arena", "hasReel": raw_flag},
                {"name": "Gelato Walk", "hasReel": raw_flag},
            ],
        }
    ]

    days = _hydrate(raw_days, rome_data)

    matched, synthetic = days[0].items[:2]
    assert matched.has_reel is expected
    assert synthetic.has_reel is expected


def test_options_context_is_compact(rome_data: list[SegmentData]) -> None:
    context = build_options_context(rome_data)

    assert context[0]["location"] == "Rome"
    assert context[0]["checkIn"] == "2026-06-01"
    assert context[0]["stays"][0] == {
        "id": "airbnb_0_a",
        "name": "Cozy Loft",
        "price": 150,
        "rating": 0,
    }
    assert context[0]["activities"][0]["desc"] == "Ancient amphitheatre"


def test_curator_totals_sum_of_item_prices(
    rome_data: list[SegmentData],
    params: TripParams,
    make_llm: Callable[..., Any],
) -> None:
    """Test that the curated total is the sum of every item price."""
    llm = make_llm({"curate": CURATED_DAYS, "geocode_cities": {}})
    curator = ItineraryCurator(llm, CityResolver(llm, InMemoryGeoCache()), rng=random.Random(2))
    skeleton = [rome_data[0].segment]

    itinerary = asyncio.run(
        curator.curate(skeleton, params, rome_data, "3 days in Rome", "trip_abc", today=START)
    )

    assert itinerary.id == "trip_abc"
    assert itinerary.destination == "Rome"
    assert itinerary.dates == "2026-06-01 to 2026-06-03"
    assert itinerary.is_demo is False
    assert len(itinerary.days) == 3
    # 150 + 50 + 35, then 25 + Morning Exploration 0 + Lunch 20, then 0 + 20 + 0
    assert itinerary.total_budget == pytest.approx(300.0)
    assert itinerary.total_budget == pytest.approx(sum(d.cost for d in itinerary.days))

    call = llm.calls_for("curate")[0]
    assert call["temperature"] == 0.4
    assert '"2026-06-02": "Rome"' in call["user"]
    assert "airbnb_0_a" in call["user"]


def test_curator_falls_back_on_llm_failure(
    rome_data: list[SegmentData],
    params: TripParams,
    make_llm: Callable[..., Any],
) -> None:
    llm = make_llm({"curate": LLMUnavailableError("down")})
    curator = ItineraryCurator(llm, CityResolver(llm, InMemoryGeoCache()))

    itinerary = asyncio.run(
        curator.curate([rome_data[0].segment], params, rome_data, "Rome", "trip_x", today=START)
    )

    assert itinerary.is_demo is True
    assert itinerary.total_budget == 2000
    assert [item.id for item in itinerary.days[0].items] == ["fb_1_1", "fb_1_2", "fb_1_3"]
    assert itinerary.days[2].title == "Day 3 in Rome"


def test_curator_falls_back_without_days_array(
    rome_data: list[SegmentData],
    params: TripParams,
    make_llm: Callable[..., Any],
) -> None:
    llm = make_llm({"curate": {"itinerary": "sorry"}})
    curator = ItineraryCurator(llm, CityResolver(llm, InMemoryGeoCache()))

    itinerary = asyncio.run(
        curator.curate([rome_data[0].segment], params, rome_data, "Rome", "trip_y", today=START)
    )

    assert itinerary.is_demo is True
    assert len(itinerary.days) == 3


def test_fallback_itinerary_multi_city(
    make_segment: Callable[..., TripSegment],
    params: TripParams,
) -> None:
    skeleton = [
        make_segment("Paris", START, date(2026, 6, 3), 1),
        make_segment("London", date(2026, 6, 3), date(2026, 6, 5), 2),
    ]

    itinerary = fallback_itinerary(skeleton, params, "trip_z", START)

    assert itinerary.destination == "Paris → London"
    assert [d.location for d in itinerary.days] == [
        "Paris",
        "Paris",
        "London",
        "London",
        "London",
    ]
    lunch = itinerary.days[0].items[1]
    assert lunch.type == ItemType.food
    assert lunch.is_estimate is True
    assert itinerary.days[0].items[0].coordinates.lat == 48.8566
