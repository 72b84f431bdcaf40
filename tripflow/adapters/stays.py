"""Stay providers: Airbnb and Booking.com via Browser Use skills."""

import logging
from datetime import date
from typing import Any

from tripflow.models import ItemType, TripItem, short_digest

from .base import (
    SkillClient,
    coordinates_from,
    extract_list,
    parse_price,
    parse_rating,
)

logger = logging.getLogger(__name__)


class AirbnbProvider:
    """Search Airbnb listings for a segment."""

    name = "airbnb"

    def __init__(self, client: SkillClient) -> None:
        self.client = client

    async def fetch(
        self, location: str, check_in: date, check_out: date, guests: int
    ) -> list[TripItem]:
        """Fetch listings and normalize them to hotel items.

        Args:
            location: City or search query
            check_in: Check-in date
            check_out: Check-out date (exclusive)
            guests: Number of guests

        Returns:
            Normalized stays; empty on any provider failure
        """
        payload = await self.client.execute(
            self.client.settings.airbnb_skill_id,
            {
                "location": location,
                "checkin": check_in.isoformat(),
                "checkout": check_out.isoformat(),
                "guests": guests,
            },
            provider=self.name,
        )
        listings = extract_list(payload, "listings")
        items = [
            _airbnb_item(index, listing, location)
            for index, listing in enumerate(listings)
        ]
        logger.info("Airbnb returned %d stays for %s", len(items), location)
        return items


def _airbnb_item(index: int, listing: dict[str, Any], location: str) -> TripItem:
    name = listing.get("title") or listing.get("name") or "Airbnb stay"
    photos = listing.get("photos") or []
    return TripItem(
        id=f"airbnb_{index}_{short_digest(location, name, listing.get('url'))}",
        type=ItemType.hotel,
        name=str(name),
        price=parse_price(listing.get("price_total", listing.get("price"))),
        coordinates=coordinates_from(listing.get("latitude"), listing.get("longitude")),
        booking_url=listing.get("url"),
        provider="Airbnb",
        rating=parse_rating(listing.get("rating")),
        image_url=photos[0] if isinstance(photos, list) and photos else None,
    )


class BookingProvider:
    """Search Booking.com hotels for a segment."""

    name = "booking"

    def __init__(self, client: SkillClient) -> None:
        self.client = client

    async def fetch(
        self, location: str, check_in: date, check_out: date, adults: int
    ) -> list[TripItem]:
        """Fetch hotels and normalize them to hotel items.

        Booking review scores are on a 0-10 scale and are halved.
        """
        payload = await self.client.execute(
            self.client.settings.booking_skill_id,
            {
                "destination": location,
                "checkin": check_in.isoformat(),
                "checkout": check_out.isoformat(),
                "adults": adults,
                "rooms": 1,
                "children": 0,
            },
            provider=self.name,
        )
        hotels = extract_list(payload, "listings", "hotels")
        items = [_booking_item(index, hotel, location) for index, hotel in enumerate(hotels)]
        logger.info("Booking.com returned %d stays for %s", len(items), location)
        return items


def _booking_item(index: int, hotel: dict[str, Any], location: str) -> TripItem:
    name = hotel.get("name") or hotel.get("title") or "Booking.com hotel"
    property_id = hotel.get("property_id") or hotel.get("id")
    item_id = (
        f"booking-{property_id}"
        if property_id
        else f"booking_{index}_{short_digest(location, name, hotel.get('url'))}"
    )
    return TripItem(
        id=item_id,
        type=ItemType.hotel,
        name=str(name),
        price=parse_price(hotel.get("price")),
        coordinates=coordinates_from(hotel.get("latitude"), hotel.get("longitude")),
        booking_url=hotel.get("url"),
        provider="Booking.com",
        rating=parse_rating(hotel.get("review_score", hotel.get("rating")), scale=10.0),
        image_url=hotel.get("photo_url") or hotel.get("image_url"),
    )
