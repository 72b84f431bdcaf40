"""Fuzzy key matching used to map geocoder results back to queries."""

from collections.abc import Iterable


def fuzzy_match_key(query: str, keys: Iterable[str]) -> str | None:
    """Find the response key that best corresponds to a query string.

    Passes, in order:
        1. exact match
        2. case-insensitive exact match
        3. first key where either string contains the other (case-insensitive)

    The containment pass is deliberately imprecise and order-dependent: a
    short key such as "Park" matches both "Park Hyatt Tokyo" and "Central
    Park NYC", and whichever key comes first wins.

    Args:
        query: The query string that was sent to the geocoder
        keys: Keys returned by the geocoder, in response order

    Returns:
        The matching key, or None
    """
    keys = [k for k in keys if k]
    if not query:
        return None
    if query in keys:
        return query

    lowered = query.lower()
    for key in keys:
        if key.lower() == lowered:
            return key

    for key in keys:
        candidate = key.lower()
        if candidate in lowered or lowered in candidate:
            return key
    return None
