"""Database package: ORM base, sessions and the durable step log."""

from .base import Base, get_engine, get_session, get_session_factory, init_db
from .step_log import SqlStepLog

__all__ = [
    "Base",
    "SqlStepLog",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
