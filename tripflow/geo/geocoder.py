"""Batch, LLM and city-centre geocoders.

Every geocoder here treats its upstream as untrusted: malformed entries,
out-of-range values and the ``(0, 0)`` sentinel are discarded, and transport
or parse failures yield an empty result instead of raising.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from tripflow.adapters.base import SkillClient, parse_coordinate, unwrap_data
from tripflow.llm import JSONCompleter, LLMError
from tripflow.models import Coordinates

from .cache import GeoCache
from .cities import DEFAULT_CENTER, lookup_city
from .matching import fuzzy_match_key

logger = logging.getLogger(__name__)

ITEM_GEOCODE_PROMPT = """You are a Geocoding Engine.
INPUT:
{items}

TASK: Return a JSON object mapping IDs to {{lat, lng}} coordinates.
Use your knowledge to provide the most accurate real-world coordinates for these places.
If generic (e.g. "Lunch"), provide coordinates for the city center mentioned in the query.
Return JSON ONLY."""

CITY_GEOCODE_PROMPT = """Geocode these cities. Return a JSON object where each key is the city name and value is {{ "lat": number, "lng": number }}.
Cities: {cities}
Return ONLY valid JSON, no explanation."""


class GeocodeQuery(BaseModel):
    """One item to geocode."""

    id: str = Field(description="Item id the result is keyed by")
    query: str = Field(description="Free-text place query, usually name + city")


def parse_coordinates(value: Any) -> Coordinates | None:
    """Parse ``{latitude, longitude}`` or ``{lat, lng}`` into coordinates.

    Returns:
        Coordinates, or None when missing, unparseable, out of range or the sentinel
    """
    if not isinstance(value, dict):
        return None
    lat_raw = value.get("latitude", value.get("lat"))
    lng_raw = value.get("longitude", value.get("lng", value.get("lon")))
    if lat_raw is None or lng_raw is None:
        return None
    lat, lng = parse_coordinate(lat_raw), parse_coordinate(lng_raw)
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    if lat == 0 and lng == 0:
        return None
    return Coordinates(lat=lat, lng=lng)


class BatchGeocoder:
    """Stage 1: the external batch geocoding skill."""

    provider = "geocoder"

    def __init__(self, client: SkillClient) -> None:
        self.client = client

    async def geocode(self, queries: list[GeocodeQuery]) -> dict[str, Coordinates]:
        """Geocode all queries with a single skill call.

        Response keys are mapped back to queries with ``fuzzy_match_key``.

        Returns:
            Mapping of item id to coordinates for the resolved subset
        """
        if not queries:
            return {}

        locations = list(dict.fromkeys(q.query for q in queries))
        payload = await self.client.execute(
            self.client.settings.geocoder_skill_id,
            {"parameter": {"locations": locations}},
            provider=self.provider,
        )
        if payload is None:
            return {}

        found: dict[str, Coordinates] = {}
        for key, value in unwrap_data(payload).items():
            coords = parse_coordinates(value)
            if coords is not None:
                found[key] = coords

        results: dict[str, Coordinates] = {}
        for query in queries:
            key = fuzzy_match_key(query.query, found)
            if key is not None:
                results[query.id] = found[key].model_copy()

        unresolved = [q for q in queries if q.id not in results]
        if unresolved:
            logger.warning(
                "Failed to geocode %d/%d items: %s (keys returned: %s)",
                len(unresolved),
                len(queries),
                [q.query for q in unresolved],
                list(found),
            )
        logger.info("Batch geocoded %d/%d items", len(results), len(queries))
        return results


class LLMGeocoder:
    """Stage 2: coordinates from the model's world knowledge."""

    def __init__(self, llm: JSONCompleter) -> None:
        self.llm = llm

    async def geocode(self, queries: list[GeocodeQuery]) -> dict[str, Coordinates]:
        if not queries:
            return {}
        listing = "\n".join(f"ID: {q.id} | Query: {q.query}" for q in queries)
        try:
            raw = await self.llm.complete_json(
                system=ITEM_GEOCODE_PROMPT.format(items=listing),
                user="Geocode these items.",
                temperature=0.1,
                max_tokens=1000,
                purpose="geocode_items",
            )
        except LLMError as e:
            logger.error("LLM geocoding failed: %s", e)
            return {}
        if not isinstance(raw, dict):
            return {}

        results: dict[str, Coordinates] = {}
        for query in queries:
            coords = parse_coordinates(raw.get(query.id))
            if coords is not None:
                results[query.id] = coords
        logger.info("LLM geocoded %d/%d items", len(results), len(queries))
        return results


class CityResolver:
    """Resolves city-centre coordinates through cache, LLM and static table.

    Results are written to the injected cache under ``city:<name>``.
    """

    def __init__(self, llm: JSONCompleter | None, cache: GeoCache) -> None:
        self.llm = llm
        self.cache = cache

    @staticmethod
    def _cache_key(city: str) -> str:
        return f"city:{city.strip().lower()}"

    async def _ask_llm(self, cities: list[str]) -> dict[str, Coordinates]:
        if not cities or self.llm is None:
            return {}
        try:
            raw = await self.llm.complete_json(
                system="You are a JSON-only geocoding API.",
                user=CITY_GEOCODE_PROMPT.format(cities=", ".join(cities)),
                temperature=0.1,
                max_tokens=1000,
                purpose="geocode_cities",
            )
        except LLMError as e:
            logger.error("City geocoding failed: %s", e)
            return {}
        if not isinstance(raw, dict):
            return {}

        resolved: dict[str, Coordinates] = {}
        for city in cities:
            key = fuzzy_match_key(city, list(raw))
            coords = parse_coordinates(raw[key]) if key is not None else None
            if coords is not None:
                resolved[city] = coords
        logger.info("Resolved coordinates for %d/%d cities", len(resolved), len(cities))
        return resolved

    async def resolve(self, cities: list[str]) -> dict[str, Coordinates]:
        """Resolve every unique city with at most one LLM call.

        Precedence per city: cache, LLM, static table, default centre.
        """
        unique = [c for c in dict.fromkeys(cities) if c]
        resolved: dict[str, Coordinates] = {}
        missing: list[str] = []
        for city in unique:
            cached = self.cache.get(self._cache_key(city))
            if cached is not None:
                resolved[city] = cached
            else:
                missing.append(city)

        from_llm = await self._ask_llm(missing)
        for city in missing:
            coords = from_llm.get(city) or lookup_city(city)
            if coords is None:
                resolved[city] = DEFAULT_CENTER.model_copy()
                continue
            self.cache.put(self._cache_key(city), coords)
            resolved[city] = coords
        return resolved

    async def center_for(self, city: str) -> Coordinates:
        """City centre with the static table first; the LLM only for unknown cities."""
        static = lookup_city(city)
        if static is not None:
            return static
        resolved = await self.resolve([city])
        return resolved.get(city) or DEFAULT_CENTER.model_copy()
