"""Workflow run ORM model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripflow.db.base import Base

if TYPE_CHECKING:
    from .workflow_step import WorkflowStep


class WorkflowRun(Base):
    """Workflow run table - one row per trip planning run."""

    __tablename__ = "workflow_run"

    run_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    trip_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # running | completed | failed
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    steps: Mapped[list["WorkflowStep"]] = relationship(
        "WorkflowStep", back_populates="run", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_workflow_run_trip", "trip_id"),)

    def __repr__(self) -> str:
        return f"<WorkflowRun(run_id={self.run_id}, trip_id={self.trip_id}, status={self.status!r})>"
