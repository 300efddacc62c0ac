"""Health check endpoint.

Learn: Reports the server version and how many overlays are subscribed to
each category — the quickest way to confirm a browser source connected.
"""

from fastapi import APIRouter, Request

from overlay_relay import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Server status and per-category client counts."""
    server = request.app.state.server
    clients = {
        category.slug: count
        for category, count in server.registry.counts().items()
    }
    status = "shutting_down" if server.is_shutting_down else "ok"
    return {"status": status, "version": __version__, "clients": clients}
