"""Activity providers: Headout and Klook via Browser Use skills."""

import logging
from typing import Any
from urllib.parse import quote

from tripflow.models import ItemType, TripItem, short_digest

from .base import SkillClient, coordinates_from, extract_list, parse_price, parse_rating

logger = logging.getLogger(__name__)

KLOOK_SEARCH_URL = "https://www.klook.com/search/?query={query}"


class HeadoutProvider:
    """Search Headout experiences for a city."""

    name = "headout"

    def __init__(self, client: SkillClient, limit: int = 20) -> None:
        self.client = client
        self.limit = limit

    async def fetch(self, location: str) -> list[TripItem]:
        payload = await self.client.execute(
            self.client.settings.headout_skill_id,
            {
                "location": location,
                "limit": self.limit,
                "currency": "USD",
                "sort_type": "RECOMMENDED",
            },
            provider=self.name,
        )
        listings = extract_list(payload, "listings", "activities")
        items = [_headout_item(index, entry, location) for index, entry in enumerate(listings)]
        logger.info("Headout returned %d activities for %s", len(items), location)
        return items


def _headout_item(index: int, entry: dict[str, Any], location: str) -> TripItem:
    name = entry.get("name") or "Headout Activity"
    raw_id = entry.get("id")
    item_id = (
        f"headout-{raw_id}"
        if raw_id
        else f"headout_{index}_{short_digest(location, name, entry.get('url'))}"
    )
    return TripItem(
        id=item_id,
        type=ItemType.activity,
        name=str(name),
        price=parse_price(entry.get("price")),
        coordinates=coordinates_from(entry.get("latitude"), entry.get("longitude")),
        booking_url=entry.get("url"),
        provider="Headout",
        rating=parse_rating(entry.get("rating")),
        image_url=entry.get("image_url") or entry.get("imageUrl"),
        duration=entry.get("duration") or "Varies",
        description=f"Book this activity in {location} through Headout.",
    )


class KlookProvider:
    """Search Klook activities for a city.

    Klook returns no coordinates, so every item starts at the sentinel and
    relies on geocode healing.
    """

    name = "klook"

    def __init__(self, client: SkillClient) -> None:
        self.client = client

    async def fetch(self, location: str) -> list[TripItem]:
        payload = await self.client.execute(
            self.client.settings.klook_skill_id,
            {"location": location, "date": None, "max_price": None, "currency": "USD"},
            provider=self.name,
        )
        entries = extract_list(payload, "activities", "results", "items")
        items = [_klook_item(index, entry, location) for index, entry in enumerate(entries)]
        logger.info("Klook returned %d activities for %s", len(items), location)
        return items


def _klook_item(index: int, entry: dict[str, Any], location: str) -> TripItem:
    name = entry.get("title") or entry.get("name") or "Klook Activity"
    booking_url = (
        entry.get("activity_url")
        or entry.get("url")
        or KLOOK_SEARCH_URL.format(query=quote(location))
    )
    image_url = (
        entry.get("image_url")
        or entry.get("imageUrl")
        or entry.get("image")
        or entry.get("photo")
    )
    return TripItem(
        id=f"klook_{index}_{short_digest(location, name, booking_url)}",
        type=ItemType.activity,
        name=str(name),
        price=parse_price(entry.get("price")),
        booking_url=booking_url,
        provider="Klook",
        rating=parse_rating(entry.get("rating")),
        image_url=image_url or None,
        description=entry.get("description")
        or f"Book this activity in {location} through Klook.",
    )
