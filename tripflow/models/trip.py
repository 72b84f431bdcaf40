"""Models for the trip request, skeleton and fetched provider options."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from .common import SENTINEL, CamelModel, Coordinates, ItemType

DEMO_FLAG = "--demo"
MAX_TRIP_DAYS = 90


class TripWorkflowParams(CamelModel):
    """Workflow trigger payload received from the gateway.

    Only ``user_prompt`` is required; the remaining fields are hints used when
    the skeleton LLM call cannot be trusted.
    """

    trip_id: str | None = Field(default=None, description="Optional existing trip id")
    destination: str = Field(default="", description="Destination hint")
    days: int = Field(
        default=0, ge=0, le=MAX_TRIP_DAYS, description="Trip length hint in days"
    )
    budget: float = Field(default=0.0, ge=0, description="Total budget hint in USD")
    travelers: int = Field(default=0, ge=0, description="Traveler count hint")
    start_date: date | None = Field(default=None, description="Start date hint")
    user_prompt: str = Field(description="Free-text trip request")

    @property
    def is_demo(self) -> bool:
        return DEMO_FLAG in self.user_prompt

    @property
    def clean_prompt(self) -> str:
        return self.user_prompt.replace(DEMO_FLAG, "").strip()


class SearchQueries(CamelModel):
    """Provider search hints for one segment."""

    stays: str = Field(description="Hotel search query")
    activity_keywords: list[str] = Field(
        default_factory=list, description="Attractions or activity keywords"
    )


class TripSegment(CamelModel):
    """One ordered city leg of the trip. ``check_out`` is exclusive."""

    order: int = Field(ge=1, description="1-based position in the trip")
    location: str = Field(description="City name")
    check_in: date = Field(description="Check-in date")
    check_out: date = Field(description="Check-out date (exclusive)")
    search_queries: SearchQueries


class TripParams(CamelModel):
    """Trip-wide attributes extracted from the prompt."""

    destination: str = "Unknown"
    origin_city: str | None = None
    start_date: date
    end_date: date
    travelers: int = Field(default=2, ge=1)
    budget_usd: float = Field(default=3000.0, ge=0, alias="budgetUSD")
    trip_vibe: list[str] = Field(default_factory=list)


class TripItem(CamelModel):
    """A candidate bookable unit returned by a provider."""

    id: str = Field(description="Provider-namespaced id, unique within a trip")
    type: ItemType
    name: str
    price: float = Field(default=0.0, ge=0)
    currency: str = "USD"
    coordinates: Coordinates = Field(default_factory=lambda: SENTINEL.model_copy())
    booking_url: str | None = None
    provider: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    image_url: str | None = None
    description: str | None = None
    duration: str | None = None
    is_estimate: bool = False
    has_reel: bool = False
    instagram_search_term: str | None = None

    @property
    def is_geocoded(self) -> bool:
        return not self.coordinates.is_sentinel


class SegmentData(CamelModel):
    """Validated options for one segment."""

    segment: TripSegment
    stays: list[TripItem] = Field(default_factory=list)
    activities: list[TripItem] = Field(default_factory=list)


class SkeletonResult(CamelModel):
    """Output of the generate-skeleton step."""

    skeleton: list[TripSegment]
    trip_params: TripParams


class FetchedOptions(CamelModel):
    """Output of the fetch-options step."""

    segments_data: list[SegmentData] = Field(default_factory=list)
    total_stays: int = 0
    total_activities: int = 0
