"""Budget and coordinate filters applied to provider options."""

from __future__ import annotations

import math
import random

from tripflow.models import TripItem


def nightly_ceiling(budget_usd: float, divisor: int = 7) -> int | None:
    """Derive the per-night stay ceiling from the total trip budget.

    Rounded half-up to whole dollars. A zero or negative budget (or divisor)
    means "no ceiling".
    """
    if budget_usd <= 0 or divisor <= 0:
        return None
    return math.floor(budget_usd / divisor + 0.5)


def filter_stays_by_budget(stays: list[TripItem], ceiling: int | None) -> list[TripItem]:
    """Keep stays priced at or below the ceiling; no ceiling keeps everything."""
    if ceiling is None:
        return list(stays)
    return [stay for stay in stays if stay.price <= ceiling]


def has_valid_coordinates(item: TripItem) -> bool:
    """Whether the item is geocoded to an in-range, non-sentinel point."""
    coords = item.coordinates
    return (
        not coords.is_sentinel
        and -90 <= coords.lat <= 90
        and -180 <= coords.lng <= 180
    )


def shuffle_and_cap(
    items: list[TripItem], limit: int, rng: random.Random | None = None
) -> list[TripItem]:
    """Return a shuffled copy truncated to ``limit`` items."""
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled[: max(limit, 0)]
