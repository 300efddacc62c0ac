"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance bound to one OverlayServer (app.state.server). Lifespan handles
startup logging and, on shutdown, closes every overlay connection.

There is no module-level app: run it with

    uvicorn overlay_relay.main:create_app --factory --port 23399

or embed it via OverlayServer.start().
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from overlay_relay import __version__
from overlay_relay.api import api_router
from overlay_relay.config import Settings
from overlay_relay.logging_config import configure_logging
from overlay_relay.server import OverlayServer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    server: OverlayServer = app.state.server
    configure_logging(server.settings.log_level, json_logs=server.settings.log_json)
    logger.info(
        "overlay.starting",
        version=__version__,
        environment=server.settings.environment,
        port=server.settings.port,
        wire_format=server.settings.wire_format,
    )

    yield

    logger.info("overlay.shutdown")
    await server.shutdown()


def create_app(
    server: Optional[OverlayServer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the relay application around `server` (a new one if omitted)."""
    if server is None:
        server = OverlayServer(settings)

    app = FastAPI(
        title="Overlay Relay",
        description="Real-time chat and notification fan-out for stream overlays",
        version=__version__,
        lifespan=lifespan,
        debug=server.settings.debug,
    )
    app.state.server = server

    from overlay_relay.middleware.request_id import RequestIdMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server.settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    from overlay_relay.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    # Overlay assets go last so API and /ws routes take precedence
    if server.settings.static_dir is not None:
        app.mount(
            "/",
            StaticFiles(directory=str(server.settings.static_dir), html=True),
            name="overlays",
        )

    return app
