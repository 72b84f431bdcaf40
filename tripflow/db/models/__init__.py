"""ORM models for database tables."""

from .workflow_run import WorkflowRun
from .workflow_step import WorkflowStep

__all__ = ["WorkflowRun", "WorkflowStep"]
