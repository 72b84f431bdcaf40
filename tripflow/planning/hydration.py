"""Reconciling curator output against the validated option pool."""

from __future__ import annotations

import logging
import random
import re
from datetime import date
from typing import Any

from tripflow.adapters import parse_price
from tripflow.geo import get_destination_coords, jitter
from tripflow.models import (
    Coordinates,
    ItemType,
    ItineraryDay,
    ItineraryItem,
    SegmentData,
    TripItem,
)

from .dates import iter_trip_dates, parse_iso_date

logger = logging.getLogger(__name__)

MIN_ITEMS_PER_DAY = 3
MAX_ITEMS_PER_DAY = 5
SYNTHETIC_SPREAD = 0.015
CONTEXT_STAYS = 5
CONTEXT_ACTIVITIES = 15
CONTEXT_DESCRIPTION_CHARS = 60

_MUSEUM_RE = re.compile(r"\b(museum|gallery|exhibit|art|uffizi|louvre|vatican)\b", re.IGNORECASE)
_FOOD_RE = re.compile(
    r"\b(breakfast|lunch|dinner|cafe|restaurant|trattoria|pizzeria)\b", re.IGNORECASE
)

# (name, time, type, price) used to pad days the model left short
_FILLER_ITEMS = [
    ("Morning Exploration", "10:00", ItemType.activity, 0.0),
    ("Lunch", "13:00", ItemType.food, 20.0),
    ("Evening Stroll", "19:00", ItemType.activity, 0.0),
    ("Dinner", "20:00", ItemType.food, 30.0),
]


class OptionPool:
    """Lookup over every validated stay and activity of the trip.

    Items are indexed by id and by lowercased name; on collisions the first
    item seen wins.
    """

    def __init__(self, segments_data: list[SegmentData]) -> None:
        self.by_id: dict[str, TripItem] = {}
        self.by_name: dict[str, TripItem] = {}
        self.stays: list[TripItem] = []
        for data in segments_data:
            self.stays.extend(data.stays)
            for item in [*data.stays, *data.activities]:
                self.by_id.setdefault(item.id, item)
                self.by_name.setdefault(item.name.lower(), item)

    def find_stay(self, item_id: str | None, name: str) -> TripItem | None:
        """Match a hotel item by stay id, then by its name containing a stay name."""
        if item_id:
            stay = self.by_id.get(item_id)
            if stay is not None and stay.type == ItemType.hotel:
                return stay
        lowered = name.lower()
        for stay in self.stays:
            if stay.name and stay.name.lower() in lowered:
                return stay
        return None

    def find_item(self, item_id: str | None, name: str) -> TripItem | None:
        """Match any item by id, then by exact lowercased name."""
        if item_id and item_id in self.by_id:
            return self.by_id[item_id]
        if name:
            return self.by_name.get(name.lower())
        return None


def build_options_context(segments_data: list[SegmentData]) -> list[dict[str, Any]]:
    """Compact per-segment options embedded in the curation prompt."""
    context = []
    for data in segments_data:
        segment = data.segment
        context.append(
            {
                "location": segment.location,
                "checkIn": segment.check_in.isoformat(),
                "checkOut": segment.check_out.isoformat(),
                "stays": [
                    {"id": s.id, "name": s.name, "price": s.price, "rating": s.rating or 0}
                    for s in data.stays[:CONTEXT_STAYS]
                ],
                "activities": [
                    {
                        "id": a.id,
                        "name": a.name,
                        "price": a.price,
                        "rating": a.rating or 0,
                        "desc": (a.description or "")[:CONTEXT_DESCRIPTION_CHARS],
                    }
                    for a in data.activities[:CONTEXT_ACTIVITIES]
                ],
            }
        )
    return context


def normalize_item_type(name: str, raw_type: Any) -> ItemType:
    """Map the model's type onto the allowed set, correcting by name vocabulary."""
    declared = str(raw_type or "").strip().lower()
    if declared == "meal":
        return ItemType.food
    if _MUSEUM_RE.search(name or ""):
        return ItemType.museum
    if _FOOD_RE.search(name or ""):
        return ItemType.food
    try:
        return ItemType(declared)
    except ValueError:
        return ItemType.activity


def _is_hotel_like(raw: dict[str, Any]) -> bool:
    name = str(raw.get("name") or "").lower()
    return (
        str(raw.get("type") or "").lower() == "hotel"
        or "check-in" in name
        or "check-out" in name
    )


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_flag(value: Any) -> bool:
    """Only a real boolean true or the string "true" count as set."""
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def _raw_date(raw: dict[str, Any]) -> date | None:
    parsed = parse_iso_date(raw.get("date"), date.min)
    return None if parsed == date.min else parsed


class _DayHydrator:
    """Hydrates the items of a single day against the option pool."""

    def __init__(
        self,
        pool: OptionPool,
        day_number: int,
        anchor: Coordinates,
        rng: random.Random | None,
    ) -> None:
        self.pool = pool
        self.day_number = day_number
        self.anchor = anchor
        self.rng = rng
        self._synthetic_count = 0

    def _synthetic_id(self) -> str:
        self._synthetic_count += 1
        return f"gen_{self.day_number}_{self._synthetic_count}"

    def _near_anchor(self) -> Coordinates:
        return jitter(self.anchor, SYNTHETIC_SPREAD, self.rng)

    def _coords_of(self, item: TripItem) -> Coordinates:
        return item.coordinates.model_copy() if item.is_geocoded else self._near_anchor()

    def hotel(self, raw: dict[str, Any], stay: TripItem) -> ItineraryItem:
        name = str(raw.get("name") or "")
        is_check_out = "check-out" in name.lower()
        return ItineraryItem(
            id=stay.id,
            type=ItemType.hotel,
            name=f"Check-out: {stay.name}" if is_check_out else f"Check-in: {stay.name}",
            time=_optional_str(raw.get("time")),
            description=_optional_str(raw.get("description")),
            price=0.0 if is_check_out else stay.price,
            currency=stay.currency or "USD",
            coordinates=self._coords_of(stay),
            booking_url=stay.booking_url,
            provider=stay.provider,
            rating=stay.rating,
            image_url=stay.image_url,
            has_reel=False,
        )

    def matched(self, raw: dict[str, Any], original: TripItem) -> ItineraryItem:
        name = str(raw.get("name") or "") or original.name
        price = parse_price(raw["price"]) if raw.get("price") is not None else original.price
        return ItineraryItem(
            id=original.id,
            type=normalize_item_type(name, raw.get("type") or original.type.value),
            name=name,
            time=_optional_str(raw.get("time")),
            description=_optional_str(raw.get("description")) or original.description,
            price=price,
            currency=original.currency or "USD",
            coordinates=self._coords_of(original),
            booking_url=original.booking_url,
            provider=original.provider,
            rating=original.rating,
            image_url=original.image_url,
            is_estimate=original.is_estimate,
            has_reel=_as_flag(raw.get("hasReel")),
            instagram_search_term=_optional_str(raw.get("instagramSearchTerm")),
        )

    def synthetic(self, raw: dict[str, Any]) -> ItineraryItem:
        name = str(raw.get("name") or "") or "Activity"
        return ItineraryItem(
            id=self._synthetic_id(),
            type=normalize_item_type(name, raw.get("type")),
            name=name,
            time=_optional_str(raw.get("time")),
            description=_optional_str(raw.get("description")),
            price=parse_price(raw.get("price")),
            coordinates=self._near_anchor(),
            has_reel=_as_flag(raw.get("hasReel")),
            instagram_search_term=_optional_str(raw.get("instagramSearchTerm")),
        )

    def hydrate(self, raw: dict[str, Any]) -> ItineraryItem:
        item_id = _optional_str(raw.get("id"))
        name = str(raw.get("name") or "")
        if _is_hotel_like(raw):
            stay = self.pool.find_stay(item_id, name)
            if stay is not None:
                return self.hotel(raw, stay)
        original = self.pool.find_item(item_id, name)
        if original is not None:
            return self.matched(raw, original)
        return self.synthetic(raw)

    def filler(self, taken: set[str]) -> ItineraryItem:
        for name, time, item_type, price in _FILLER_ITEMS:
            if name.lower() not in taken:
                break
        return ItineraryItem(
            id=self._synthetic_id(),
            type=item_type,
            name=name,
            time=time,
            price=price,
            coordinates=self._near_anchor(),
            is_estimate=price > 0,
        )


def _day_anchor(
    raw_items: list[dict[str, Any]],
    pool: OptionPool,
    location: str,
    city_coords: dict[str, Coordinates],
) -> Coordinates:
    """Hotel coordinates for the day if one is scheduled, else the city centre."""
    for raw in raw_items:
        name = str(raw.get("name") or "")
        if str(raw.get("type") or "").lower() == "hotel" or "check-in" in name.lower():
            stay = pool.find_stay(_optional_str(raw.get("id")), name)
            if stay is not None and stay.is_geocoded:
                return stay.coordinates.model_copy()
    if location in city_coords:
        return city_coords[location].model_copy()
    return get_destination_coords(location)


def day_location(
    raw: dict[str, Any],
    day_date: date,
    date_city_map: dict[date, str],
    default_city: str,
) -> str:
    """City of a curated day: model's choice, else the calendar map, else the destination."""
    return (
        str(raw.get("location") or "").strip()
        or date_city_map.get(day_date)
        or default_city
    )


def _align_to_calendar(
    raw_days: list[dict[str, Any]], calendar: list[date]
) -> list[dict[str, Any]]:
    """Pick one raw day per calendar date.

    A raw day whose date falls on the calendar claims that date; remaining
    dates take unclaimed raw days by position, or an empty day.
    """
    claimed: dict[date, int] = {}
    for index, raw in enumerate(raw_days):
        raw_date = _raw_date(raw)
        if raw_date is not None and raw_date in calendar and raw_date not in claimed:
            claimed[raw_date] = index

    used = set(claimed.values())
    aligned = []
    for position, day_date in enumerate(calendar):
        index = claimed.get(day_date)
        if index is None and position < len(raw_days) and position not in used:
            if _raw_date(raw_days[position]) not in claimed:
                index = position
                used.add(position)
        aligned.append(raw_days[index] if index is not None else {})
    return aligned


def hydrate_days(
    raw_days: list[Any],
    *,
    pool: OptionPool,
    start: date,
    total_days: int,
    date_city_map: dict[date, str],
    default_city: str,
    city_coords: dict[str, Coordinates],
    rng: random.Random | None = None,
) -> list[ItineraryDay]:
    """Turn the model's days into exactly ``total_days`` hydrated days.

    Args:
        raw_days: ``days`` array from the curator response
        pool: Validated options of the whole trip
        start: First trip date
        total_days: Inclusive trip length
        date_city_map: Calendar date to city assignment
        default_city: Destination used when nothing else names a city
        city_coords: Resolved city centres for anchoring
        rng: Random source for jitter (for testing)

    Returns:
        Contiguous days, each with 3-5 items and no sentinel coordinates
    """
    calendar = list(iter_trip_dates(start, total_days))
    raw_dicts = [raw for raw in raw_days if isinstance(raw, dict)]
    aligned = _align_to_calendar(raw_dicts, calendar)

    days: list[ItineraryDay] = []
    for position, (day_date, raw) in enumerate(zip(calendar, aligned), start=1):
        location = day_location(raw, day_date, date_city_map, default_city)
        raw_items = [item for item in raw.get("items") or [] if isinstance(item, dict)]
        anchor = _day_anchor(raw_items, pool, location, city_coords)
        hydrator = _DayHydrator(pool, position, anchor, rng)

        items = [hydrator.hydrate(item) for item in raw_items[:MAX_ITEMS_PER_DAY]]
        taken = {item.name.lower() for item in items}
        while len(items) < MIN_ITEMS_PER_DAY:
            filler = hydrator.filler(taken)
            taken.add(filler.name.lower())
            items.append(filler)

        days.append(
            ItineraryDay(
                day=position,
                date=day_date,
                location=location,
                title=str(raw.get("title") or "") or f"Day {position}",
                subtitle=str(raw.get("theme") or raw.get("subtitle") or "") or location,
                items=items,
            )
        )
    return days
