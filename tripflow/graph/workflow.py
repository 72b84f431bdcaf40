"""Four-step durable trip workflow on a LangGraph ``StateGraph``."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any, TypeVar
from uuid import uuid4

from langgraph.graph import StateGraph

from tripflow.config import Settings, get_settings
from tripflow.exec import DurableStep, StepLog
from tripflow.models import (
    CuratedItinerary,
    FetchedOptions,
    SaveResult,
    SkeletonResult,
    TripWorkflowParams,
)
from tripflow.planning import ItineraryCurator, OptionsAggregator, SkeletonGenerator
from tripflow.store import TripStore

from .state import TripWorkflowState

logger = logging.getLogger(__name__)

GENERATE_SKELETON = "generate-skeleton"
FETCH_OPTIONS = "fetch-options"
CURATE_ITINERARY = "curate-itinerary"
SAVE_STATE = "save-state"
STEP_NAMES = (GENERATE_SKELETON, FETCH_OPTIONS, CURATE_ITINERARY, SAVE_STATE)

T = TypeVar("T")


class WorkflowStateError(RuntimeError):
    """A step ran without the output of the step before it."""


def _require(value: T | None, field: str) -> T:
    if value is None:
        raise WorkflowStateError(f"Workflow state is missing '{field}'")
    return value


def new_trip_id() -> str:
    return f"trip_{uuid4().hex[:16]}"


class TripWorkflow:
    """Plans a trip through four strictly ordered, checkpointed steps.

    generate-skeleton -> fetch-options -> curate-itinerary -> save-state

    Every step body runs inside ``DurableStep.execute``: a step whose output is
    already in the step log is replayed, so running the same ``run_id`` again
    resumes after the last completed step.
    """

    def __init__(
        self,
        *,
        skeleton_generator: SkeletonGenerator,
        aggregator: OptionsAggregator,
        curator: ItineraryCurator,
        store: TripStore,
        step_log: StepLog,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize workflow.

        Args:
            skeleton_generator: Step 1 component
            aggregator: Step 2 component
            curator: Step 3 component
            store: Trip cache written by step 4
            step_log: Durable checkpoint log
            settings: Application settings (defaults to the singleton)
            rng: Random source for retry jitter (for testing)
            sleep: Awaitable sleep between step attempts (for testing)
        """
        self.skeleton_generator = skeleton_generator
        self.aggregator = aggregator
        self.curator = curator
        self.store = store
        self.step_log = step_log
        self.settings = settings or get_settings()
        self.rng = rng
        self.sleep = sleep
        self._graph = self._build_graph()

    def _build_graph(self) -> Any:
        """Build the linear LangGraph.

        Returns:
            Compiled LangGraph graph
        """
        graph = StateGraph(TripWorkflowState)

        graph.add_node(GENERATE_SKELETON, self._generate_skeleton)
        graph.add_node(FETCH_OPTIONS, self._fetch_options)
        graph.add_node(CURATE_ITINERARY, self._curate_itinerary)
        graph.add_node(SAVE_STATE, self._save_state)

        graph.set_entry_point(GENERATE_SKELETON)
        graph.add_edge(GENERATE_SKELETON, FETCH_OPTIONS)
        graph.add_edge(FETCH_OPTIONS, CURATE_ITINERARY)
        graph.add_edge(CURATE_ITINERARY, SAVE_STATE)
        graph.set_finish_point(SAVE_STATE)

        return graph.compile()

    def _durable(self, state: TripWorkflowState) -> DurableStep:
        return DurableStep(
            self.step_log,
            state.run_id,
            self.settings,
            rng=self.rng,
            sleep=self.sleep,
        )

    async def _generate_skeleton(self, state: TripWorkflowState) -> dict[str, Any]:
        params = state.params

        async def body() -> SkeletonResult:
            logger.info("Step 1: generating trip skeleton for %s", state.trip_id)
            return await self.skeleton_generator.generate(
                params.clean_prompt, state.today, hints=params
            )

        skeleton = await self._durable(state).execute(GENERATE_SKELETON, body, SkeletonResult)
        return {"skeleton": skeleton}

    async def _fetch_options(self, state: TripWorkflowState) -> dict[str, Any]:
        skeleton = _require(state.skeleton, "skeleton")

        async def body() -> FetchedOptions:
            logger.info("Step 2: fetching stays and activities for %s", state.trip_id)
            # Healing mutates items, so work on a copy of the checkpointed skeleton
            return await self.aggregator.fetch_all(skeleton.model_copy(deep=True))

        options = await self._durable(state).execute(FETCH_OPTIONS, body, FetchedOptions)
        return {"options": options}

    async def _curate_itinerary(self, state: TripWorkflowState) -> dict[str, Any]:
        skeleton = _require(state.skeleton, "skeleton")
        options = _require(state.options, "options")

        async def body() -> CuratedItinerary:
            logger.info("Step 3: curating itinerary for %s", state.trip_id)
            return await self.curator.curate(
                skeleton.skeleton,
                skeleton.trip_params,
                options.segments_data,
                state.params.clean_prompt,
                trip_id=state.trip_id,
                is_demo=state.params.is_demo,
                today=state.today,
            )

        itinerary = await self._durable(state).execute(
            CURATE_ITINERARY, body, CuratedItinerary
        )
        return {"itinerary": itinerary}

    async def _save_state(self, state: TripWorkflowState) -> dict[str, Any]:
        itinerary = _require(state.itinerary, "itinerary")

        async def body() -> SaveResult:
            logger.info("Step 4: saving itinerary %s", itinerary.id)
            await self.store.put(
                itinerary.id, itinerary.to_wire(), self.settings.trip_ttl_seconds
            )
            return SaveResult(saved=True, trip_id=itinerary.id, itinerary=itinerary)

        saved = await self._durable(state).execute(SAVE_STATE, body, SaveResult)
        return {"saved": saved}

    async def run(
        self,
        params: TripWorkflowParams,
        run_id: str | None = None,
        today: date | None = None,
    ) -> CuratedItinerary:
        """Run (or resume) the workflow.

        Args:
            params: Trigger payload
            run_id: Durable run id; reusing one resumes that run
            today: Reference date (defaults to the current date)

        Returns:
            The curated itinerary, as persisted to the trip store

        Raises:
            StepFailedError: If a step exhausts its attempts
            WorkflowStateError: If a step runs without its predecessor's output
        """
        trip_id = params.trip_id or run_id or new_trip_id()
        run_id = run_id or trip_id
        await asyncio.to_thread(self.step_log.start_run, run_id, trip_id)
        try:
            out = await self._graph.ainvoke(
                {
                    "run_id": run_id,
                    "trip_id": trip_id,
                    "params": params,
                    "today": today or date.today(),
                }
            )
            saved = _require(TripWorkflowState.model_validate(out).saved, "saved")
        except Exception as e:
            await asyncio.to_thread(self.step_log.finish_run, run_id, "failed", repr(e))
            logger.error("Workflow run %s failed: %s", run_id, e)
            raise

        await asyncio.to_thread(self.step_log.finish_run, run_id, "completed")
        logger.info("Workflow run %s completed", run_id)
        return saved.itinerary
