"""Skeleton generator: prompt -> dated city segments + trip-wide parameters."""

from __future__ import annotations

import asyncio
import logging
import math
import re
from datetime import date, timedelta
from typing import Any

from tripflow.config import Settings, get_settings
from tripflow.llm import JSONCompleter
from tripflow.models import (
    MAX_TRIP_DAYS,
    SearchQueries,
    SkeletonResult,
    TripParams,
    TripSegment,
    TripWorkflowParams,
)

from .dates import parse_iso_date
from .prompts import build_skeleton_prompt, build_trip_params_prompt

logger = logging.getLogger(__name__)

SEGMENT_LIST_KEYS = ("segments", "tripSegments", "trip_segments", "data")
UNKNOWN_LOCATION = "Unknown"
DEFAULT_TRAVELERS = 2
DEFAULT_BUDGET_USD = 3000.0

_WORD_RE = re.compile(r"[\w'-]+", re.UNICODE)


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_str_list(value: Any) -> list[str]:
    """Accept a list of strings or a comma-separated string."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(part).strip() for part in value if str(part).strip()]
    return []


def _first(mapping: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None


def _segment_entries(raw: Any) -> list[Any]:
    """Normalize the model's segment payload to a list of raw entries."""
    if isinstance(raw, list):
        return raw
    if not isinstance(raw, dict):
        return []
    for key in SEGMENT_LIST_KEYS:
        if isinstance(raw.get(key), list):
            return raw[key]
    if any(k in raw for k in ("location", "checkIn", "check_in")):
        return [raw]
    return []


def parse_segments(raw: Any, today: date) -> list[TripSegment]:
    """Validate a segment payload field by field.

    Accepts a bare list, a list wrapped under one of ``SEGMENT_LIST_KEYS``,
    or a single segment object. Missing fields are defaulted: order to the
    1-based position, location to "Unknown", dates to ``today``, stays query
    to "Hotels in {location}". A check-out before check-in is clamped to the
    check-in date. The result is sorted by order and renumbered 1..n.
    """
    parsed: list[tuple[int, int, TripSegment]] = []
    for index, entry in enumerate(_segment_entries(raw)):
        if not isinstance(entry, dict):
            continue
        order = _coerce_int(entry.get("order"))
        if order is None or order < 1:
            order = index + 1

        location = str(entry.get("location") or "").strip() or UNKNOWN_LOCATION
        check_in = parse_iso_date(_first(entry, "checkIn", "check_in"), today)
        check_out = parse_iso_date(_first(entry, "checkOut", "check_out"), today)
        if check_out < check_in:
            check_out = check_in

        queries = _first(entry, "searchQueries", "search_queries")
        queries = queries if isinstance(queries, dict) else {}
        stays = str(queries.get("stays") or "").strip() or f"Hotels in {location}"
        keywords = _coerce_str_list(_first(queries, "activityKeywords", "activity_keywords"))

        segment = TripSegment(
            order=order,
            location=location,
            check_in=check_in,
            check_out=check_out,
            search_queries=SearchQueries(stays=stays, activity_keywords=keywords),
        )
        parsed.append((order, index, segment))

    parsed.sort(key=lambda entry: (entry[0], entry[1]))
    segments = []
    for position, (_, _, segment) in enumerate(parsed, start=1):
        segment.order = position
        segments.append(segment)
    return segments


def parse_trip_params(raw: Any, today: date) -> TripParams:
    """Validate the trip-params payload with per-field defaults."""
    data = raw if isinstance(raw, dict) else {}

    travelers = _coerce_int(data.get("travelers"))
    budget = _coerce_float(_first(data, "budgetUSD", "budgetUsd", "budget_usd", "budget"))
    origin = _first(data, "originCity", "origin_city")
    start = parse_iso_date(_first(data, "startDate", "start_date"), today)
    end = parse_iso_date(_first(data, "endDate", "end_date"), today)

    return TripParams(
        destination=str(data.get("destination") or "").strip() or UNKNOWN_LOCATION,
        origin_city=str(origin) if origin else None,
        start_date=start,
        end_date=max(end, start),
        travelers=travelers if travelers and travelers > 0 else DEFAULT_TRAVELERS,
        budget_usd=budget if budget and budget > 0 else DEFAULT_BUDGET_USD,
        trip_vibe=_coerce_str_list(_first(data, "tripVibe", "trip_vibe")),
    )


def _guess_destination(prompt: str) -> str:
    """Naive heuristic: the last word of the prompt."""
    words = _WORD_RE.findall(prompt)
    if not words:
        return UNKNOWN_LOCATION
    return words[-1].strip("'-").title() or UNKNOWN_LOCATION


def fallback_params(
    prompt: str,
    today: date,
    hints: TripWorkflowParams | None = None,
    default_days: int = 7,
) -> TripParams:
    """Trip params built from the request hints when the model cannot be used."""
    destination = (hints.destination.strip() if hints else "") or _guess_destination(prompt)
    days = hints.days if hints and hints.days > 0 else default_days
    days = min(max(days, 1), MAX_TRIP_DAYS)
    start = hints.start_date if hints and hints.start_date else today
    try:
        end = start + timedelta(days=days - 1)
    except OverflowError:
        end = start
    return TripParams(
        destination=destination,
        start_date=start,
        end_date=end,
        travelers=hints.travelers if hints and hints.travelers > 0 else DEFAULT_TRAVELERS,
        budget_usd=hints.budget if hints and hints.budget > 0 else DEFAULT_BUDGET_USD,
    )


def fallback_skeleton(
    prompt: str,
    today: date,
    hints: TripWorkflowParams | None = None,
    default_days: int = 7,
) -> SkeletonResult:
    """Single-segment skeleton used when the model output is unusable.

    The segment spans ``days`` calendar days (hint or ``default_days``,
    capped at ``MAX_TRIP_DAYS``) starting at the hinted start date or today.
    """
    params = fallback_params(prompt, today, hints, default_days)
    segment = TripSegment(
        order=1,
        location=params.destination,
        check_in=params.start_date,
        check_out=params.end_date,
        search_queries=SearchQueries(stays=f"Hotels in {params.destination}"),
    )
    return SkeletonResult(skeleton=[segment], trip_params=params)


class SkeletonGenerator:
    """Turns a free-text request into a validated skeleton with two LLM calls."""

    def __init__(self, llm: JSONCompleter, settings: Settings | None = None) -> None:
        self.llm = llm
        self.settings = settings or get_settings()

    async def _request_segments(self, prompt: str, today: date) -> Any:
        return await self.llm.complete_json(
            system=build_skeleton_prompt(today),
            user=prompt,
            temperature=0.3,
            max_tokens=2000,
            purpose="skeleton",
        )

    async def _request_params(self, prompt: str, today: date) -> Any:
        return await self.llm.complete_json(
            system=build_trip_params_prompt(today),
            user=prompt,
            temperature=0.1,
            max_tokens=500,
            purpose="trip_params",
        )

    async def generate(
        self,
        prompt: str,
        today: date,
        hints: TripWorkflowParams | None = None,
    ) -> SkeletonResult:
        """Generate segments and trip params; never raises for model failures.

        Args:
            prompt: Cleaned user prompt
            today: Reference date for relative expressions and defaults
            hints: Original request, used to seed fallbacks

        Returns:
            Skeleton with at least one segment
        """
        raw_segments, raw_params = await asyncio.gather(
            self._request_segments(prompt, today),
            self._request_params(prompt, today),
            return_exceptions=True,
        )

        default_days = self.settings.default_trip_days
        if isinstance(raw_params, Exception):
            logger.error("Trip params extraction failed: %s", raw_params)
            trip_params = fallback_params(prompt, today, hints, default_days)
        else:
            trip_params = parse_trip_params(raw_params, today)

        if isinstance(raw_segments, Exception):
            logger.error("Skeleton generation failed, using fallback: %s", raw_segments)
            return self._fallback(prompt, today, hints, trip_params, raw_params)

        segments = parse_segments(raw_segments, today)
        if not segments:
            logger.warning("Skeleton response had no usable segments, using fallback")
            return self._fallback(prompt, today, hints, trip_params, raw_params)

        logger.info(
            "Created %d segments for %d travelers", len(segments), trip_params.travelers
        )
        return SkeletonResult(skeleton=segments, trip_params=trip_params)

    def _fallback(
        self,
        prompt: str,
        today: date,
        hints: TripWorkflowParams | None,
        trip_params: TripParams,
        raw_params: Any,
    ) -> SkeletonResult:
        fallback = fallback_skeleton(prompt, today, hints, self.settings.default_trip_days)
        if isinstance(raw_params, Exception):
            return fallback
        # Model-extracted params fill whatever the request did not hint
        if not (hints and hints.travelers > 0):
            fallback.trip_params.travelers = trip_params.travelers
        if not (hints and hints.budget > 0):
            fallback.trip_params.budget_usd = trip_params.budget_usd
        fallback.trip_params.trip_vibe = trip_params.trip_vibe
        fallback.trip_params.origin_city = trip_params.origin_city
        return fallback
