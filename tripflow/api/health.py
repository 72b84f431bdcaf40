"""Health check endpoint for infrastructure status."""

from typing import Literal

from pydantic import BaseModel
from sqlalchemy import Engine, text

from tripflow.store import TripStore


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "down"]
    checks: dict[str, Literal["ok", "down"]]


async def get_health(store: TripStore, engine: Engine | None) -> HealthStatus:
    """
    Check health of core infrastructure components.

    Checks:
    - Database: Attempts to execute SELECT 1 (skipped without an engine)
    - Trip store: Attempts to PING

    Returns:
        HealthStatus with overall status and individual check results
    """
    checks: dict[str, Literal["ok", "down"]] = {}

    if engine is not None:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["db"] = "ok"
        except Exception:
            checks["db"] = "down"

    try:
        checks["redis"] = "ok" if await store.ping() else "down"
    except Exception:
        checks["redis"] = "down"

    # Overall status - down if any check is down
    overall_status: Literal["ok", "down"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "down"
    )

    return HealthStatus(status=overall_status, checks=checks)
