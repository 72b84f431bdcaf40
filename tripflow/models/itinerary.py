"""Models for the curated day-by-day itinerary."""

from __future__ import annotations

import datetime as dt

from pydantic import Field

from .common import CamelModel, Coordinates, ItemType


class ItineraryItem(CamelModel):
    """An item scheduled on a curated day, hydrated against provider data."""

    id: str
    type: ItemType = ItemType.activity
    name: str
    time: str | None = None
    description: str | None = None
    price: float = Field(default=0.0, ge=0)
    currency: str = "USD"
    coordinates: Coordinates
    booking_url: str | None = None
    provider: str | None = None
    rating: float | None = None
    image_url: str | None = None
    is_estimate: bool = False
    has_reel: bool = False
    instagram_search_term: str | None = None


class ItineraryDay(CamelModel):
    """One calendar day of the itinerary."""

    day: int = Field(ge=1)
    date: dt.date
    location: str
    title: str
    subtitle: str
    items: list[ItineraryItem] = Field(default_factory=list)

    @property
    def cost(self) -> float:
        return sum(item.price for item in self.items)


class CuratedItinerary(CamelModel):
    """Final workflow output, persisted verbatim to the trip cache."""

    id: str
    destination: str
    dates: str
    total_budget: float
    currency: str = "USD"
    travelers: int
    days: list[ItineraryDay] = Field(default_factory=list)
    is_demo: bool = False


class SaveResult(CamelModel):
    """Output of the save-state step."""

    saved: bool
    trip_id: str
    itinerary: CuratedItinerary
