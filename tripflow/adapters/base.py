"""Shared plumbing for Browser Use skill providers."""

import logging
import math
import re
import time
from typing import Any

import httpx

from tripflow.config import Settings, get_browser_use_api_key, get_settings
from tripflow.metrics import record_provider_call
from tripflow.models import SENTINEL, Coordinates

logger = logging.getLogger(__name__)

_NON_NUMERIC_RE = re.compile(r"[^0-9.]")


class SkillClient:
    """Executes Browser Use skills and degrades every failure to ``None``."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize skill client.

        Args:
            settings: Application settings (defaults to the singleton)
            http_client: Shared AsyncClient; one is created per call when omitted
        """
        self.settings = settings or get_settings()
        self._http_client = http_client

    @property
    def enabled(self) -> bool:
        return get_browser_use_api_key(self.settings) is not None

    async def execute(
        self,
        skill_id: str,
        parameters: dict[str, Any],
        *,
        provider: str,
    ) -> dict[str, Any] | None:
        """POST ``{"parameters": ...}`` to a skill endpoint.

        Args:
            skill_id: Browser Use skill identifier
            parameters: Skill parameters
            provider: Provider label for logs and metrics

        Returns:
            Decoded JSON body, or None on missing key, non-2xx status,
            transport error or invalid JSON
        """
        api_key = get_browser_use_api_key(self.settings)
        if api_key is None:
            logger.warning("BROWSER_USE_API_KEY not configured, skipping %s", provider)
            record_provider_call(provider, 0, ok=False, error_kind="missing_key")
            return None

        url = f"{self.settings.browser_use_base_url.rstrip('/')}/{skill_id}/execute"
        headers = {"Content-Type": "application/json", "X-Browser-Use-API-Key": api_key}
        start = time.time()
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json={"parameters": parameters}, headers=headers
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.provider_timeout_s
                ) as client:
                    response = await client.post(
                        url, json={"parameters": parameters}, headers=headers
                    )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "%s API error: %s %s",
                provider,
                e.response.status_code,
                e.response.reason_phrase,
            )
            record_provider_call(
                provider, _elapsed_ms(start), ok=False, error_kind="http_status"
            )
            return None
        except httpx.HTTPError as e:
            logger.error("%s request failed: %s", provider, e)
            record_provider_call(
                provider, _elapsed_ms(start), ok=False, error_kind="transport"
            )
            return None
        except ValueError as e:
            logger.error("%s returned invalid JSON: %s", provider, e)
            record_provider_call(
                provider, _elapsed_ms(start), ok=False, error_kind="invalid_json"
            )
            return None

        if not isinstance(body, dict):
            record_provider_call(
                provider, _elapsed_ms(start), ok=False, error_kind="unexpected_shape"
            )
            return None
        record_provider_call(provider, _elapsed_ms(start), ok=True)
        return body


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def unwrap_data(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the innermost data object of a skill response.

    Accepts ``result.data``, ``data`` and a bare top-level object.
    """
    result = payload.get("result")
    if isinstance(result, dict) and isinstance(result.get("data"), dict):
        return result["data"]
    if isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def extract_list(payload: dict[str, Any] | None, *keys: str) -> list[dict[str, Any]]:
    """Find the first list stored under any of ``keys`` at any nesting level.

    Nesting levels are tried in order: ``result.data.X``, ``data.X``, ``X``.
    Non-dict entries are dropped.
    """
    if not payload:
        return []
    candidates: list[dict[str, Any]] = []
    result = payload.get("result")
    if isinstance(result, dict) and isinstance(result.get("data"), dict):
        candidates.append(result["data"])
    if isinstance(payload.get("data"), dict):
        candidates.append(payload["data"])
    candidates.append(payload)

    for container in candidates:
        for key in keys:
            value = container.get(key)
            if isinstance(value, list):
                return [entry for entry in value if isinstance(entry, dict)]
    return []


def parse_price(value: Any) -> float:
    """Parse a provider price into a non-negative float.

    Numbers pass through; strings have currency symbols, commas and other
    non-numeric characters stripped ("$1,234.50" -> 1234.5). Anything
    unparseable becomes 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return max(float(value), 0.0)
    if isinstance(value, dict):
        return parse_price(value.get("amount", value.get("value")))
    if isinstance(value, str):
        cleaned = _NON_NUMERIC_RE.sub("", value)
        # "1.234.50" style strings keep only the last decimal point
        if cleaned.count(".") > 1:
            head, _, tail = cleaned.rpartition(".")
            cleaned = head.replace(".", "") + "." + tail
        try:
            return float(cleaned) if cleaned else 0.0
        except ValueError:
            return 0.0
    return 0.0


def parse_rating(value: Any, scale: float = 5.0) -> float | None:
    """Parse a rating onto a 0–5 scale; ``scale`` is the provider's maximum."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if rating <= 0:
        return None
    rating = rating * 5.0 / scale
    return round(min(rating, 5.0), 2)


def parse_coordinate(value: Any) -> float | None:
    """Parse a latitude/longitude field; None when missing or unparseable."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coordinates_from(lat: Any, lng: Any) -> Coordinates:
    """Build coordinates from raw fields.

    A missing, unparseable or out-of-range component yields the sentinel.
    """
    lat_f, lng_f = parse_coordinate(lat), parse_coordinate(lng)
    if lat_f is None or lng_f is None:
        return SENTINEL.model_copy()
    if not (-90 <= lat_f <= 90 and -180 <= lng_f <= 180):
        return SENTINEL.model_copy()
    return Coordinates(lat=lat_f, lng=lng_f)
