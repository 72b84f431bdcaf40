"""Two-stage geocode healing for provider items with sentinel coordinates."""

import logging

from tripflow.models import TripItem

from .cache import GeoCache
from .geocoder import BatchGeocoder, GeocodeQuery, LLMGeocoder

logger = logging.getLogger(__name__)


class GeocodeHealer:
    """Fill in coordinates for items the providers left at ``(0, 0)``.

    Order: injected cache, batch geocoder, then the LLM geocoder for the
    residual set only when it is no larger than ``llm_max_items``.
    """

    def __init__(
        self,
        batch: BatchGeocoder,
        llm: LLMGeocoder,
        cache: GeoCache,
        llm_max_items: int = 10,
    ) -> None:
        self.batch = batch
        self.llm = llm
        self.cache = cache
        self.llm_max_items = llm_max_items

    async def heal(self, items: list[TripItem], location: str) -> int:
        """Geocode sentinel items in place.

        Args:
            items: Stays and activities of one segment
            location: Segment city, appended to every query

        Returns:
            Number of items that received coordinates
        """
        pending = [item for item in items if not item.is_geocoded]
        if not pending:
            return 0

        queries: list[GeocodeQuery] = []
        healed = 0
        by_id = {item.id: item for item in pending}
        for item in pending:
            query = f"{item.name} {location}"
            cached = self.cache.get(query)
            if cached is not None:
                item.coordinates = cached
                healed += 1
            else:
                queries.append(GeocodeQuery(id=item.id, query=query))

        if not queries:
            return healed

        resolved = await self.batch.geocode(queries)
        remaining = [q for q in queries if q.id not in resolved]
        if remaining and len(remaining) <= self.llm_max_items:
            resolved.update(await self.llm.geocode(remaining))
        elif remaining:
            logger.warning(
                "Skipping LLM geocode fallback for %s: %d unresolved items exceeds %d",
                location,
                len(remaining),
                self.llm_max_items,
            )

        for query in queries:
            coords = resolved.get(query.id)
            if coords is None:
                continue
            by_id[query.id].coordinates = coords
            self.cache.put(query.query, coords)
            healed += 1

        logger.info("Healed %d/%d items in %s", healed, len(pending), location)
        return healed
