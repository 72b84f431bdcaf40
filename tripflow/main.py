"""FastAPI application factory."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import Engine

from tripflow.api.health import get_health
from tripflow.api.trips import get_runner
from tripflow.api.trips import router as trips_router
from tripflow.config import Settings, get_settings
from tripflow.graph import TripRunner

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    runner: TripRunner | None = None,
    engine: Engine | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to the singleton)
        runner: Preconfigured runner; the default one is wired on first request
        engine: Database engine checked by /healthz

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Tripflow API",
        description="Durable multi-step trip planning workflow",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.runner = runner
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        runner = get_runner(request)
        result = await get_health(runner.store, request.app.state.engine)
        return result.model_dump()

    app.include_router(trips_router)

    return app


# Create app instance for uvicorn
app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("tripflow.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
