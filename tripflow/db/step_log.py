"""SQLAlchemy-backed durable step log."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from tripflow.exec.durable import RunStatus

from .base import get_session
from .models import WorkflowRun, WorkflowStep

logger = logging.getLogger(__name__)


class SqlStepLog:
    """Step log persisted to the ``workflow_run`` / ``workflow_step`` tables.

    Each method runs in its own short transaction so a crash between steps
    leaves every completed step durable.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def _get_step(self, session: Session, run_id: str, step: str) -> WorkflowStep | None:
        return session.execute(
            select(WorkflowStep).where(
                WorkflowStep.run_id == run_id, WorkflowStep.name == step
            )
        ).scalar_one_or_none()

    def start_run(self, run_id: str, trip_id: str) -> None:
        with get_session(self.session_factory) as session:
            run = session.get(WorkflowRun, run_id)
            if run is None:
                session.add(WorkflowRun(run_id=run_id, trip_id=trip_id, status="running"))
            else:
                run.status = "running"
                run.error = None
                run.completed_at = None

    def load_step(self, run_id: str, step: str) -> dict[str, Any] | None:
        with get_session(self.session_factory) as session:
            record = self._get_step(session, run_id, step)
            if record is None or record.status != "completed":
                return None
            return record.output

    def record_success(
        self, run_id: str, step: str, output: dict[str, Any], attempts: int
    ) -> None:
        with get_session(self.session_factory) as session:
            record = self._get_step(session, run_id, step)
            if record is None:
                record = WorkflowStep(run_id=run_id, name=step)
                session.add(record)
            elif record.status == "completed":
                logger.warning("Step %s of run %s already completed", step, run_id)
                return
            record.status = "completed"
            record.output = output
            record.attempts = attempts

    def record_failure(self, run_id: str, step: str, error: str, attempt: int) -> None:
        with get_session(self.session_factory) as session:
            record = self._get_step(session, run_id, step)
            if record is None:
                record = WorkflowStep(run_id=run_id, name=step)
                session.add(record)
            record.status = "failed"
            record.attempts = attempt
            record.last_error = error

    def finish_run(self, run_id: str, status: RunStatus, error: str | None = None) -> None:
        with get_session(self.session_factory) as session:
            run = session.get(WorkflowRun, run_id)
            if run is None:
                logger.warning("finish_run called for unknown run %s", run_id)
                return
            run.status = status
            run.error = error
            run.completed_at = datetime.now(UTC)

    def get_run_status(self, run_id: str) -> RunStatus | None:
        with get_session(self.session_factory) as session:
            run = session.get(WorkflowRun, run_id)
            return run.status if run else None  # type: ignore[return-value]
