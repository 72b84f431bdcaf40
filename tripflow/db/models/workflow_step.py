"""Workflow step ORM model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripflow.db.base import Base

if TYPE_CHECKING:
    from .workflow_run import WorkflowRun


class WorkflowStep(Base):
    """Checkpoint of one named step within a run.

    ``output`` is written exactly once, when the step completes; replays read it
    back instead of re-running the step body.
    """

    __tablename__ = "workflow_step"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(
        ForeignKey("workflow_run.run_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # completed | failed
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    run: Mapped["WorkflowRun"] = relationship("WorkflowRun", back_populates="steps")

    __table_args__ = (UniqueConstraint("run_id", "name", name="uq_workflow_step_run_name"),)

    def __repr__(self) -> str:
        return f"<WorkflowStep(run_id={self.run_id}, name={self.name!r}, status={self.status!r})>"
