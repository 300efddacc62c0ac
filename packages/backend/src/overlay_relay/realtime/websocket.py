"""WebSocket endpoint — overlays subscribe here.

Learn: Each overlay connects to /ws?type=<category>. The handler:
1. Validates the category (case-insensitive name)
2. Rejects bad requests with HTTP 400 *before* the handshake completes,
   so no connection is ever created for them
3. Hands the socket to OverlayServer.serve_connection(), which accepts it,
   registers it, and keeps it until the overlay goes away

A plain HTTP GET on /ws (no upgrade headers) is also answered with 400.
This is a long-lived connection — one per overlay browser source.
"""

import structlog
from fastapi import APIRouter, WebSocket
from fastapi.responses import JSONResponse, PlainTextResponse

from overlay_relay.errors import UnknownCategoryError
from overlay_relay.protocol.categories import Category

logger = structlog.get_logger()
router = APIRouter()

WS_PATH = "/ws"

# ASGI extension that lets an app answer a websocket request with an HTTP response
_DENIAL_EXTENSION = "websocket.http.response"


async def _reject(websocket: WebSocket, detail: str) -> None:
    """Refuse the upgrade with a 400, or a policy close where unsupported."""
    if _DENIAL_EXTENSION in websocket.scope.get("extensions", {}):
        await websocket.send_denial_response(
            PlainTextResponse(detail, status_code=400)
        )
    else:
        await websocket.close(code=1008, reason=detail)


@router.websocket(WS_PATH)
@router.websocket(WS_PATH + "/")
async def overlay_websocket(websocket: WebSocket):
    """Subscribe an overlay to one category's events."""
    requested = websocket.query_params.get("type")
    try:
        category = Category.parse(requested)
    except UnknownCategoryError:
        logger.info(
            "connection.rejected",
            requested=requested,
            client=str(websocket.client) if websocket.client else None,
        )
        await _reject(websocket, f"Unknown or missing category: {requested!r}")
        return

    server = websocket.app.state.server
    await server.serve_connection(websocket, category)


@router.get(WS_PATH, include_in_schema=False)
@router.get(WS_PATH + "/", include_in_schema=False)
async def overlay_websocket_http():
    """Non-upgrade requests to the websocket path."""
    return JSONResponse(
        status_code=400,
        content={"detail": "WebSocket upgrade required"},
    )
