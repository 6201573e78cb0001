"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, the health endpoint, and a lifespan that prepares the database,
resumes insight workflows interrupted by a restart and drains running
workflows on shutdown. The module-level ``app`` instance allows
``uvicorn meeting_recorder.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meeting_recorder import __version__
from meeting_recorder.api.middleware.error_handler import register_error_handlers
from meeting_recorder.api.routes import recordings, streaming
from meeting_recorder.core.models import HealthResponse
from meeting_recorder.services.lifecycle import RecordingLifecycle
from meeting_recorder.services.storage import close_db, init_db
from meeting_recorder.services.workflow import create_runner

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    runner = create_runner()
    lifecycle = RecordingLifecycle(on_finished=runner.submit)
    app.state.runner = runner
    app.state.lifecycle = lifecycle
    await runner.recover(lifecycle)
    logger.info("Meeting recorder API ready")
    try:
        yield
    finally:
        await runner.drain(timeout=DRAIN_TIMEOUT)
        await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="Meeting Recorder",
        description="Live meeting transcription with post-recording insights.",
        version=__version__,
        lifespan=lifespan,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],  # Dev frontend
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(recordings.router, prefix="/api/v1")
    app.include_router(streaming.router, prefix="/api/v1")

    return app


app = create_app()
