"""Tests for budget and coordinate filters."""

import random
from collections.abc import Callable

import pytest

from tripflow.models import ItemType, TripItem
from tripflow.planning import (
    filter_stays_by_budget,
    has_valid_coordinates,
    nightly_ceiling,
    shuffle_and_cap,
)


@pytest.mark.parametrize(
    ("budget", "expected"),
    [(3000, 429), (2100, 300), (1000, 143), (703.5, 101), (0, None), (-10, None)],
)
def test_nightly_ceiling(budget: float, expected: int | None) -> None:
    assert nightly_ceiling(budget) == expected


def test_ceiling_rounds_half_up() -> None:
    assert nightly_ceiling(3.5, divisor=1) == 4
    assert nightly_ceiling(10.5, divisor=7) == 2


def test_filter_keeps_stays_at_or_below_ceiling(make_item: Callable[..., TripItem]) -> None:
    stays = [
        make_item("cheap", "Hostel", ItemType.hotel, price=80),
        make_item("edge", "Inn", ItemType.hotel, price=429),
        make_item("pricey", "Palace", ItemType.hotel, price=430),
    ]

    kept = filter_stays_by_budget(stays, 429)

    assert [s.id for s in kept] == ["cheap", "edge"]
    assert filter_stays_by_budget(stays, None) == stays


def test_has_valid_coordinates(make_item: Callable[..., TripItem]) -> None:
    assert has_valid_coordinates(make_item("a", "Somewhere"))
    assert not has_valid_coordinates(make_item("b", "Nowhere", coords=None))


def test_shuffle_and_cap_does_not_mutate_input(make_item: Callable[..., TripItem]) -> None:
    items = [make_item(str(i), f"Item {i}") for i in range(30)]
    original = [item.id for item in items]

    capped = shuffle_and_cap(items, 20, random.Random(3))

    assert len(capped) == 20
    assert [item.id for item in items] == original
    assert len({item.id for item in capped}) == 20
