"""Durable, checkpointed workflow steps with replay and bounded retry."""

import asyncio
import logging
import random
import threading
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Literal, Protocol, TypeVar

from pydantic import BaseModel

from tripflow.config import Settings, get_settings
from tripflow.metrics import record_step

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

RunStatus = Literal["running", "completed", "failed"]


class StepFailedError(RuntimeError):
    """A workflow step exhausted its attempts."""

    def __init__(self, step: str, attempts: int, message: str) -> None:
        super().__init__(f"Step '{step}' failed after {attempts} attempt(s): {message}")
        self.step = step
        self.attempts = attempts


class StepLog(Protocol):
    """Persistent record of workflow runs and their completed step outputs.

    Methods are synchronous and are called on worker threads via
    ``asyncio.to_thread``, so implementations must be thread-safe.
    """

    def start_run(self, run_id: str, trip_id: str) -> None:
        """Create the run if it does not exist; mark it running otherwise."""
        ...

    def load_step(self, run_id: str, step: str) -> dict[str, Any] | None:
        """Return the stored output of a completed step, or None."""
        ...

    def record_success(
        self, run_id: str, step: str, output: dict[str, Any], attempts: int
    ) -> None:
        """Persist a step's output. Called at most once per step per run."""
        ...

    def record_failure(self, run_id: str, step: str, error: str, attempt: int) -> None:
        """Record one failed attempt."""
        ...

    def finish_run(self, run_id: str, status: RunStatus, error: str | None = None) -> None:
        """Mark the run finished."""
        ...

    def get_run_status(self, run_id: str) -> RunStatus | None:
        """Current run status, or None for unknown runs."""
        ...


class InMemoryStepLog:
    """Process-local step log, used by tests and single-process setups."""

    def __init__(self) -> None:
        self._runs: dict[str, dict[str, Any]] = {}
        self._steps: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.Lock()

    def start_run(self, run_id: str, trip_id: str) -> None:
        with self._lock:
            run = self._runs.setdefault(
                run_id,
                {"trip_id": trip_id, "created_at": datetime.now(UTC), "error": None},
            )
            run["status"] = "running"

    def load_step(self, run_id: str, step: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._steps.get((run_id, step))
            if record is None or record["status"] != "completed":
                return None
            return record["output"]

    def record_success(
        self, run_id: str, step: str, output: dict[str, Any], attempts: int
    ) -> None:
        with self._lock:
            record = self._steps.setdefault((run_id, step), {"failures": []})
            record.update(status="completed", output=output, attempts=attempts)

    def record_failure(self, run_id: str, step: str, error: str, attempt: int) -> None:
        with self._lock:
            record = self._steps.setdefault((run_id, step), {"failures": []})
            record["status"] = "failed"
            record["attempts"] = attempt
            record["failures"].append(error)

    def finish_run(self, run_id: str, status: RunStatus, error: str | None = None) -> None:
        with self._lock:
            run = self._runs.get(run_id)
            if run is not None:
                run["status"] = status
                run["error"] = error

    def get_run_status(self, run_id: str) -> RunStatus | None:
        with self._lock:
            run = self._runs.get(run_id)
            return run["status"] if run else None

    def failures(self, run_id: str, step: str) -> list[str]:
        """Error messages recorded for a step, oldest first."""
        with self._lock:
            record = self._steps.get((run_id, step))
            return list(record["failures"]) if record else []


class DurableStep:
    """Executes named steps of one run against a ``StepLog``.

    A step whose output is already recorded is replayed from the log without
    running its body. Otherwise the body runs up to ``step_max_attempts``
    times with exponential backoff plus jitter between attempts.
    """

    def __init__(
        self,
        log: StepLog,
        run_id: str,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize durable step runner.

        Args:
            log: Step log shared by every step of the run
            run_id: Workflow run identifier
            settings: Application settings (defaults to the singleton)
            rng: Random number generator for jitter (for testing)
            sleep: Awaitable sleep used between attempts (for testing)
        """
        self.log = log
        self.run_id = run_id
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()
        self._sleep = sleep

    def _backoff_s(self, attempt: int) -> float:
        jitter_ms = self.rng.randint(
            self.settings.retry_jitter_min_ms,
            self.settings.retry_jitter_max_ms,
        )
        return (self.settings.step_retry_base_ms * 2 ** (attempt - 1) + jitter_ms) / 1000.0

    async def execute(
        self,
        name: str,
        fn: Callable[[], Awaitable[ModelT]],
        result_type: type[ModelT],
    ) -> ModelT:
        """Run or replay one step.

        Args:
            name: Step name, unique within the run
            fn: Step body; must be safe to re-run as a whole
            result_type: Pydantic model the output is validated against

        Returns:
            The step output

        Raises:
            StepFailedError: If every attempt raised
        """
        stored = await asyncio.to_thread(self.log.load_step, self.run_id, name)
        if stored is not None:
            logger.info("Replaying step %s for run %s", name, self.run_id)
            record_step(name, "replayed", 0, attempt=0)
            return result_type.model_validate(stored)

        max_attempts = max(1, self.settings.step_max_attempts)
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await self._sleep(self._backoff_s(attempt - 1))

            start = time.time()
            try:
                output = await fn()
            except Exception as e:
                latency_ms = int((time.time() - start) * 1000)
                last_error = e
                logger.warning(
                    "Step %s attempt %d/%d failed: %s",
                    name,
                    attempt,
                    max_attempts,
                    e,
                )
                await asyncio.to_thread(
                    self.log.record_failure, self.run_id, name, repr(e), attempt
                )
                record_step(name, "failed", latency_ms, attempt=attempt)
                continue

            latency_ms = int((time.time() - start) * 1000)
            await asyncio.to_thread(
                self.log.record_success,
                self.run_id,
                name,
                output.model_dump(mode="json", by_alias=True),
                attempt,
            )
            record_step(name, "completed", latency_ms, attempt=attempt)
            return output

        raise StepFailedError(name, max_attempts, repr(last_error)) from last_error
