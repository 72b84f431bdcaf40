"""Trip endpoints: start a workflow, poll for the plan, overwrite the plan."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from tripflow.db import SqlStepLog, get_engine, get_session_factory, init_db
from tripflow.graph import TripRunner, build_default_workflow
from tripflow.models import CamelModel, TripWorkflowParams
from tripflow.store import RedisTripStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


class StartTripResponse(CamelModel):
    """Response from starting a trip workflow."""

    success: bool
    trip_id: str
    status: str


class UpdateTripResponse(CamelModel):
    """Response from overwriting a cached plan."""

    success: bool
    trip_id: str


def get_runner(request: Request) -> TripRunner:
    """Dependency returning the app's runner, wiring the default one on first use."""
    runner: TripRunner | None = getattr(request.app.state, "runner", None)
    if runner is None:
        settings = request.app.state.settings
        engine = get_engine(settings)
        init_db(engine)
        store = RedisTripStore.from_settings(settings)
        workflow = build_default_workflow(
            settings, store=store, step_log=SqlStepLog(get_session_factory(engine))
        )
        runner = TripRunner(workflow, store, settings)
        request.app.state.engine = engine
        request.app.state.runner = runner
    return runner


@router.post("", response_model=StartTripResponse)
async def start_trip(
    params: TripWorkflowParams,
    runner: TripRunner = Depends(get_runner),
) -> StartTripResponse:
    """Start a trip planning workflow in the background.

    Poll ``GET /trips/{trip_id}`` for the result.
    """
    if not params.user_prompt.strip():
        raise HTTPException(
            status_code=422,
            detail="userPrompt must not be empty",
        )
    trip_id = runner.start(params)
    return StartTripResponse(success=True, trip_id=trip_id, status="started")


@router.get("/{trip_id}")
async def poll_trip(trip_id: str, runner: TripRunner = Depends(get_runner)) -> JSONResponse:
    """Return 202 while the trip is pending, 200 with the plan once complete."""
    result = await runner.poll(trip_id)
    code = status.HTTP_200_OK if result["status"] == "complete" else status.HTTP_202_ACCEPTED
    return JSONResponse(result, status_code=code)


@router.put("/{trip_id}", response_model=UpdateTripResponse)
async def update_trip(
    trip_id: str,
    plan: dict[str, Any],
    runner: TripRunner = Depends(get_runner),
) -> UpdateTripResponse:
    """Overwrite the cached plan (best effort, last write wins)."""
    if not await runner.update(trip_id, plan):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update trip",
        )
    return UpdateTripResponse(success=True, trip_id=trip_id)
