"""Background runner: start, poll and update trips."""

import asyncio
import logging
from typing import Any

from tripflow.config import Settings, get_settings
from tripflow.db import SqlStepLog, get_engine, get_session_factory, init_db
from tripflow.exec import StepLog
from tripflow.geo import CityResolver, InMemoryGeoCache
from tripflow.llm import LLMClient
from tripflow.models import TripWorkflowParams
from tripflow.planning import ItineraryCurator, OptionsAggregator, SkeletonGenerator
from tripflow.store import RedisTripStore, TripStore

from .workflow import TripWorkflow, new_trip_id

logger = logging.getLogger(__name__)


class TripRunner:
    """Starts workflow runs as background tasks and serves their results.

    A trip is "pending" until its itinerary is in the trip store; there is no
    error state visible to callers.
    """

    def __init__(
        self,
        workflow: TripWorkflow,
        store: TripStore,
        settings: Settings | None = None,
    ) -> None:
        self.workflow = workflow
        self.store = store
        self.settings = settings or get_settings()
        self._tasks: set[asyncio.Task[Any]] = set()

    async def _run(self, params: TripWorkflowParams, trip_id: str) -> None:
        try:
            await self.workflow.run(params, run_id=trip_id)
        except Exception:
            logger.exception("Trip %s failed", trip_id)

    def start(self, params: TripWorkflowParams) -> str:
        """Schedule a workflow run on the running event loop.

        Returns:
            The trip id to poll
        """
        trip_id = params.trip_id or new_trip_id()
        params = params.model_copy(update={"trip_id": trip_id})
        task = asyncio.get_running_loop().create_task(self._run(params, trip_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Started trip workflow %s", trip_id)
        return trip_id

    async def poll(self, trip_id: str) -> dict[str, Any]:
        """``{"status": "pending", ...}`` or ``{"status": "complete", "plan": ...}``."""
        plan = await self.store.get(trip_id)
        if plan is None:
            return {"status": "pending", "tripId": trip_id}
        return {"status": "complete", "tripId": trip_id, "plan": plan}

    async def update(self, trip_id: str, plan: dict[str, Any]) -> bool:
        """Best-effort overwrite of a cached plan with a fresh TTL.

        Returns:
            Whether the write succeeded
        """
        try:
            await self.store.put(trip_id, plan, self.settings.trip_ttl_seconds)
        except Exception as e:
            logger.error("Failed to update trip %s: %s", trip_id, e)
            return False
        return True

    async def wait(self) -> None:
        """Wait for every in-flight run (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def build_default_workflow(
    settings: Settings | None = None,
    store: TripStore | None = None,
    step_log: StepLog | None = None,
) -> TripWorkflow:
    """Wire the production workflow from settings.

    Args:
        settings: Application settings (defaults to the singleton)
        store: Trip store (defaults to Redis)
        step_log: Step log (defaults to the SQL log on ``database_url``)

    Returns:
        Ready-to-run workflow
    """
    settings = settings or get_settings()
    llm = LLMClient(settings)
    cache = InMemoryGeoCache()

    if step_log is None:
        engine = get_engine(settings)
        init_db(engine)
        step_log = SqlStepLog(get_session_factory(engine))

    return TripWorkflow(
        skeleton_generator=SkeletonGenerator(llm, settings),
        aggregator=OptionsAggregator.from_settings(settings, llm, cache),
        curator=ItineraryCurator(llm, CityResolver(llm, cache)),
        store=store or RedisTripStore.from_settings(settings),
        step_log=step_log,
        settings=settings,
    )
