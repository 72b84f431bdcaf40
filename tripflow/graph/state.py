"""LangGraph state definition for the trip workflow."""

from datetime import date

from pydantic import BaseModel, Field

from tripflow.models import (
    CuratedItinerary,
    FetchedOptions,
    SaveResult,
    SkeletonResult,
    TripWorkflowParams,
)


class TripWorkflowState(BaseModel):
    """Typed state passed through the four workflow nodes.

    Each node fills exactly one output field; the durable step log, not this
    state, is what survives a crash.
    """

    run_id: str = Field(description="Durable run id (checkpoint key)")
    trip_id: str = Field(description="Trip id the itinerary is cached under")
    params: TripWorkflowParams = Field(description="Original trigger payload")
    today: date = Field(description="Reference date for relative dates")
    skeleton: SkeletonResult | None = Field(
        default=None, description="Output of generate-skeleton"
    )
    options: FetchedOptions | None = Field(
        default=None, description="Output of fetch-options"
    )
    itinerary: CuratedItinerary | None = Field(
        default=None, description="Output of curate-itinerary"
    )
    saved: SaveResult | None = Field(default=None, description="Output of save-state")
