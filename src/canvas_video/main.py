"""
CanvasVideo Main Application
============================

FastAPI entry point for the frame capture server.

A client opens a WebSocket, streams ``<key>data:image/png;base64,...``
frames, and ends the session by sending ``done`` or by disconnecting. The
frames are then sequenced, encoded with ffmpeg into
``<output_dir>/<session_id>.mp4`` and deleted.

Endpoints:
    GET  /          - Service information
    GET  /health    - Liveness probe
    GET  /metrics   - Session and frame counters
    GET  /sessions  - Recently finished sessions
    WS   /ws/frames - Frame capture stream
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse

from canvas_video import __version__
from canvas_video.config import Settings, load_config, setup_logging
from canvas_video.session import Assembler, SessionRegistry


logger = logging.getLogger(__name__)


SHUTDOWN_TIMEOUT_SECONDS = 600.0


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    assembler: Optional[Assembler] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Loaded settings (loaded from config.yaml/env if None)
        assembler: Video assembler override (built from settings if None)

    Returns:
        Configured FastAPI app
    """
    if settings is None:
        settings = load_config()
        setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan manager with graceful shutdown."""
        app.state.startup_time = time.time()
        app.state.registry = SessionRegistry(settings, assembler=assembler)

        logger.info(f"Starting CanvasVideo {__version__}")
        logger.info(f"Output directory: {app.state.registry.output_root}")

        yield

        logger.info("Shutting down gracefully...")
        await app.state.registry.shutdown(timeout=SHUTDOWN_TIMEOUT_SECONDS)
        logger.info("Shutdown complete")

    app = FastAPI(
        title="CanvasVideo",
        description="Assemble videos from PNG frames streamed over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # =========================================================================
    # HTTP Endpoints
    # =========================================================================

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "service": "CanvasVideo",
            "version": __version__,
            "status": "running",
            "capture_endpoint": "/ws/frames",
            "done_message": settings.capture.done_message,
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe. Always returns 200 while the process is running."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
        })

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Session and frame counters."""
        registry: SessionRegistry = app.state.registry
        return JSONResponse({
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
            "active_sessions": registry.active_count,
            **registry.metrics.to_dict(),
        })

    @app.get("/sessions")
    async def sessions() -> JSONResponse:
        """Recently finished sessions, newest first."""
        registry: SessionRegistry = app.state.registry
        return JSONResponse([
            result.model_dump(mode="json")
            for result in reversed(registry.recent_results())
        ])

    # =========================================================================
    # WebSocket Endpoints
    # =========================================================================

    @app.websocket("/ws/frames")
    async def capture_frames(websocket: WebSocket) -> None:
        """Receive frames for one capture session."""
        registry: SessionRegistry = app.state.registry
        done_text = settings.capture.done_message
        done_bytes = done_text.encode("utf-8")

        await websocket.accept()
        session = registry.open_session()
        logger.info(f"{session.session_id}: New client connection")

        reason = "close"
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is None:
                    continue

                if data == done_text or data == done_bytes:
                    reason = "done"
                    break

                session.on_frame(data)
        finally:
            logger.info(f"{session.session_id}: End client connection")
            session.on_terminate(reason)

        if reason == "done":
            await websocket.close()

    return app


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = load_config()
    setup_logging(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
