"""Tests for Browser Use skill providers with a mocked transport."""

import asyncio
import json
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
import pytest

from tripflow.adapters import (
    AirbnbProvider,
    BookingProvider,
    HeadoutProvider,
    KlookProvider,
    SkillClient,
    extract_list,
    coordinates_from,
    parse_price,
    parse_rating,
)
from tripflow.config import Settings
from tripflow.models import SENTINEL, Coordinates, ItemType

CHECK_IN = date(2026, 5, 1)
CHECK_OUT = date(2026, 5, 4)


def _client(
    settings: Settings,
    handler: Callable[[httpx.Request], httpx.Response],
) -> SkillClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SkillClient(settings, http_client=http_client)


def _json_handler(
    body: Any, seen: list[httpx.Request] | None = None, status_code: int = 200
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (120, 120.0),
        (99.5, 99.5),
        ("$1,234.50", 1234.5),
        ("€ 85 per night", 85.0),
        ({"amount": "42"}, 42.0),
        ("free", 0.0),
        (None, 0.0),
        (-5, 0.0),
        (True, 0.0),
    ],
)
def test_parse_price(raw: Any, expected: float) -> None:
    assert parse_price(raw) == expected


def test_parse_rating_rescales() -> None:
    assert parse_rating(4.7) == 4.7
    assert parse_rating("8.6", scale=10.0) == 4.3
    assert parse_rating(0) is None
    assert parse_rating("n/a") is None


def test_coordinates_from_partial_values_are_sentinel() -> None:
    assert coordinates_from(41.9, 12.5) == Coordinates(lat=41.9, lng=12.5)
    assert coordinates_from("41.9", "12.5") == Coordinates(lat=41.9, lng=12.5)
    assert coordinates_from(41.9, None) == SENTINEL
    assert coordinates_from(None, 12.5) == SENTINEL
    assert coordinates_from("bad", 12.5) == SENTINEL
    assert coordinates_from(95.0, 12.5) == SENTINEL
    assert coordinates_from(41.9, None).is_sentinel


def test_extract_list_nesting_levels() -> None:
    listing = {"title": "Loft"}

    assert extract_list({"result": {"data": {"listings": [listing]}}}, "listings") == [listing]
    assert extract_list({"data": {"listings": [listing]}}, "listings") == [listing]
    assert extract_list({"listings": [listing, "junk"]}, "listings") == [listing]
    assert extract_list({"data": {"other": []}}, "listings") == []
    assert extract_list(None, "listings") == []


def test_airbnb_request_and_normalization(settings: Settings) -> None:
    """Test Airbnb request shape and item normalization."""
    seen: list[httpx.Request] = []
    body = {
        "result": {
            "data": {
                "listings": [
                    {
                        "title": "Trastevere Loft",
                        "price_total": "$180",
                        "latitude": 41.889,
                        "longitude": 12.47,
                        "url": "https://airbnb.example/1",
                        "rating": 4.9,
                        "photos": ["https://img.example/1.jpg"],
                    },
                    {"name": "No coords flat", "price": 90},
                ]
            }
        }
    }
    provider = AirbnbProvider(_client(settings, _json_handler(body, seen)))

    items = asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2))

    request = seen[0]
    assert request.url.path.endswith(f"/{settings.airbnb_skill_id}/execute")
    assert request.headers["X-Browser-Use-API-Key"] == settings.browser_use_api_key
    assert json.loads(request.content) == {
        "parameters": {
            "location": "Rome",
            "checkin": "2026-05-01",
            "checkout": "2026-05-04",
            "guests": 2,
        }
    }

    assert len(items) == 2
    loft = items[0]
    assert loft.type == ItemType.hotel
    assert loft.id.startswith("airbnb_0_")
    assert loft.price == 180.0
    assert loft.coordinates.lat == 41.889
    assert loft.provider == "Airbnb"
    assert loft.image_url == "https://img.example/1.jpg"
    assert not items[1].is_geocoded


def test_airbnb_ids_are_deterministic(settings: Settings) -> None:
    body = {"listings": [{"title": "Loft", "url": "https://airbnb.example/1"}]}
    provider = AirbnbProvider(_client(settings, _json_handler(body)))

    first = asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2))
    second = asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2))

    assert first[0].id == second[0].id


def test_booking_accepts_hotels_key_and_rescales(settings: Settings) -> None:
    seen: list[httpx.Request] = []
    body = {
        "data": {
            "hotels": [
                {
                    "property_id": 777,
                    "name": "Hotel Artemide",
                    "price": "US$240",
                    "review_score": 9.0,
                    "latitude": "41.90",
                    "longitude": "12.49",
                    "photo_url": "https://img.example/h.jpg",
                }
            ]
        }
    }
    provider = BookingProvider(_client(settings, _json_handler(body, seen)))

    items = asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 3))

    params = json.loads(seen[0].content)["parameters"]
    assert params["destination"] == "Rome"
    assert params["adults"] == 3
    assert params["rooms"] == 1
    assert params["children"] == 0
    assert items[0].id == "booking-777"
    assert items[0].rating == 4.5
    assert items[0].price == 240.0
    assert items[0].provider == "Booking.com"


def test_headout_defaults(settings: Settings) -> None:
    body = {"listings": [{"id": "abc", "name": "Vatican Museums", "price": 35}]}
    provider = HeadoutProvider(_client(settings, _json_handler(body)), limit=20)

    items = asyncio.run(provider.fetch("Rome"))

    assert items[0].id == "headout-abc"
    assert items[0].duration == "Varies"
    assert items[0].description == "Book this activity in Rome through Headout."


def test_klook_items_start_at_sentinel(settings: Settings) -> None:
    body = {"result": {"data": {"results": [{"title": "Colosseum Tour", "price": "25"}]}}}
    provider = KlookProvider(_client(settings, _json_handler(body)))

    items = asyncio.run(provider.fetch("Rome"))

    assert items[0].id.startswith("klook_0_")
    assert not items[0].is_geocoded
    assert items[0].booking_url == "https://www.klook.com/search/?query=Rome"


def test_http_error_yields_empty_list(settings: Settings) -> None:
    provider = HeadoutProvider(
        _client(settings, _json_handler({"error": "boom"}, status_code=500))
    )

    assert asyncio.run(provider.fetch("Rome")) == []


def test_transport_error_yields_empty_list(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    provider = KlookProvider(_client(settings, handler))

    assert asyncio.run(provider.fetch("Rome")) == []


def test_invalid_json_yields_empty_list(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>captcha</html>")

    provider = AirbnbProvider(_client(settings, handler))

    assert asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2)) == []


def test_missing_key_skips_request(settings: Settings) -> None:
    """Test that no request is made without a Browser Use key."""
    seen: list[httpx.Request] = []
    settings.browser_use_api_key = ""
    provider = AirbnbProvider(_client(settings, _json_handler({"listings": []}, seen)))

    assert asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2)) == []
    assert seen == []


def test_missing_list_key_yields_empty_list(settings: Settings) -> None:
    provider = BookingProvider(_client(settings, _json_handler({"data": {"count": 0}})))

    assert asyncio.run(provider.fetch("Rome", CHECK_IN, CHECK_OUT, 2)) == []
