"""API route aggregation.

All routers registered here get mounted in main.py. The relay only
listens on loopback by default, so no route requires authentication.
"""

from fastapi import APIRouter

from overlay_relay.api.health import router as health_router
from overlay_relay.api.messages import router as messages_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(messages_router, tags=["messages"])
