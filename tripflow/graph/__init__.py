"""LangGraph trip workflow and its background runner."""

from .runner import TripRunner, build_default_workflow
from .state import TripWorkflowState
from .workflow import STEP_NAMES, TripWorkflow, WorkflowStateError, new_trip_id

__all__ = [
    "STEP_NAMES",
    "TripRunner",
    "TripWorkflow",
    "TripWorkflowState",
    "WorkflowStateError",
    "build_default_workflow",
    "new_trip_id",
]
