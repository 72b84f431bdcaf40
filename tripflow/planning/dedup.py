"""Near-duplicate removal for activities listed by several providers."""

from __future__ import annotations

import logging
import re

from tripflow.models import TripItem

logger = logging.getLogger(__name__)

# Words providers add around the same venue ("Colosseum Skip-the-Line Ticket")
_NOISE_RE = re.compile(
    r"skip[- ]the[- ]line|ticket|tour|entry|access|guided|priority|reserved"
    r"|admission|pass|experience",
    re.IGNORECASE,
)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

MIN_COMPARABLE_LENGTH = 4


def normalize_activity_name(name: str) -> str:
    """Lowercase, drop booking-noise words, then every non-alphanumeric char."""
    return _NON_ALNUM_RE.sub("", _NOISE_RE.sub("", name.lower()))


def dedupe_activities(activities: list[TripItem]) -> list[TripItem]:
    """Drop activities whose normalized name overlaps an earlier one.

    Names that normalize to fewer than 4 characters are too generic to
    compare and are always kept; they are not used for later comparisons.
    First occurrence wins and input order is preserved.
    """
    unique: list[TripItem] = []
    seen: list[str] = []
    for activity in activities:
        normalized = normalize_activity_name(activity.name)
        if len(normalized) < MIN_COMPARABLE_LENGTH:
            unique.append(activity)
            continue
        if any(prev in normalized or normalized in prev for prev in seen):
            continue
        seen.append(normalized)
        unique.append(activity)

    logger.info("Deduplicated %d -> %d activities", len(activities), len(unique))
    return unique
