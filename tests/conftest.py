"""Pytest configuration and fixtures for testing."""

import random
from collections.abc import Callable
from datetime import date
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tripflow.config import Settings
from tripflow.db.base import Base
from tripflow.models import (
    Coordinates,
    ItemType,
    SearchQueries,
    TripItem,
    TripSegment,
)


class FakeLLM:
    """Scripted stand-in for ``LLMClient.complete_json``.

    ``responses`` maps a call purpose to a value, an exception instance (raised),
    a list (consumed one entry per call) or a callable ``(system, user) -> value``.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[dict[str, Any]] = []

    def calls_for(self, purpose: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["purpose"] == purpose]

    async def complete_json(
        self,
        *,
        system: str,
        user: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        purpose: str = "chat",
    ) -> Any:
        self.calls.append(
            {
                "system": system,
                "user": user,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "purpose": purpose,
            }
        )
        if purpose not in self.responses:
            raise AssertionError(f"Unexpected LLM call: {purpose}")
        response = self.responses[purpose]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(system, user)
        return response


@pytest.fixture
def settings() -> Settings:
    """Settings with fake keys, in-memory storage and no retry delay."""
    return Settings(
        llm_api_key="test-llm-key",
        browser_use_api_key="test-browser-use-key",
        database_url="sqlite:///:memory:",
        step_retry_base_ms=0,
        retry_jitter_min_ms=0,
        retry_jitter_max_ms=0,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def make_llm() -> Callable[..., FakeLLM]:
    """Factory for scripted LLM fakes."""
    return FakeLLM


@pytest.fixture
def make_item() -> Callable[..., TripItem]:
    """Factory for provider items; ``coords=None`` leaves the sentinel."""

    def _make(
        item_id: str,
        name: str,
        item_type: ItemType = ItemType.activity,
        price: float = 0.0,
        coords: tuple[float, float] | None = (41.89, 12.49),
        **kwargs: Any,
    ) -> TripItem:
        coordinates = Coordinates(lat=coords[0], lng=coords[1]) if coords else Coordinates()
        return TripItem(
            id=item_id,
            type=item_type,
            name=name,
            price=price,
            coordinates=coordinates,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_segment() -> Callable[..., TripSegment]:
    def _make(
        location: str,
        check_in: date,
        check_out: date,
        order: int = 1,
    ) -> TripSegment:
        return TripSegment(
            order=order,
            location=location,
            check_in=check_in,
            check_out=check_out,
            search_queries=SearchQueries(stays=f"Hotels in {location}"),
        )

    return _make


@pytest.fixture(scope="function")
def test_db_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    from tripflow.db import models  # noqa: F401

    Base.metadata.create_all(engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    """Session factory bound to the in-memory database."""
    return sessionmaker(bind=test_db_engine, expire_on_commit=False)
