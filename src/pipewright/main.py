"""Main entry point for the pipewright API server."""

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI

from pipewright.api.deps import init_run_manager
from pipewright.api.routes import health, runs, webhooks
from pipewright.config import settings
from pipewright.runs.manager import RunManager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup, clean up on shutdown."""
    init_run_manager(settings, manager=getattr(app.state, "run_manager", None))
    yield


def create_app(run_manager: RunManager | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        run_manager: Use this manager instead of building one from settings
            (the CLI passes its own so webhook deliveries reach its run)
    """
    app = FastAPI(
        title="pipewright",
        description="Build, analyse, gate and deploy pipeline",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.run_manager = run_manager

    # Include API routes
    app.include_router(health.router)
    app.include_router(runs.router)
    app.include_router(webhooks.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    settings.ensure_directories()
    uvicorn.run(
        "pipewright.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
