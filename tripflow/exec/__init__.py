"""Step execution: concurrent fan-out and durable checkpointed steps."""

from tripflow.exec.durable import (
    DurableStep,
    InMemoryStepLog,
    RunStatus,
    StepFailedError,
    StepLog,
)
from tripflow.exec.fanout import gather_settled

__all__ = [
    "DurableStep",
    "InMemoryStepLog",
    "RunStatus",
    "StepFailedError",
    "StepLog",
    "gather_settled",
]
