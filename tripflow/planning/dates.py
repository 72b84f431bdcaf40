"""Calendar helpers shared by the skeleton generator and the curator."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import date, datetime, timedelta
from typing import Any

from tripflow.models import TripSegment


def parse_iso_date(value: Any, default: date) -> date:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp); anything else gives ``default``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return default


def trip_bounds(segments: Sequence[TripSegment], today: date) -> tuple[date, date]:
    """First segment's check-in and last segment's check-out."""
    if not segments:
        return today, today
    return segments[0].check_in, segments[-1].check_out


def trip_day_count(segments: Sequence[TripSegment], today: date) -> int:
    """Inclusive calendar days from first check-in to last check-out."""
    start, end = trip_bounds(segments, today)
    return abs((end - start).days) + 1


def iter_trip_dates(start: date, count: int) -> Iterator[date]:
    """Yield ``count`` consecutive dates starting at ``start``."""
    for offset in range(max(count, 0)):
        yield start + timedelta(days=offset)


def build_date_city_map(
    segments: Sequence[TripSegment], start: date, count: int, default_city: str
) -> dict[date, str]:
    """Assign every trip date to a city.

    A date belongs to the segment whose ``[check_in, check_out)`` interval
    contains it, the later segment winning where intervals overlap. Dates
    outside every interval (including the final check-out day) belong to the
    last segment.
    """
    fallback = segments[-1].location if segments else default_city
    mapping: dict[date, str] = {}
    for day in iter_trip_dates(start, count):
        city = next(
            (
                seg.location
                for seg in reversed(segments)
                if seg.check_in <= day < seg.check_out
            ),
            fallback,
        )
        mapping[day] = city
    return mapping
