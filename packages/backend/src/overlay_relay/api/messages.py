"""Publish endpoints — push events to overlays over HTTP.

Learn: Host applications not written in Python (or running in another
process) publish through these routes. Each call is a single broadcast
and returns the delivery counts; partial delivery is not an error.
"""

from fastapi import APIRouter, HTTPException, Request

from overlay_relay.errors import UnknownCategoryError
from overlay_relay.protocol.categories import Category
from overlay_relay.protocol.envelope import GenericEnvelope
from overlay_relay.realtime.broadcaster import BroadcastResult
from overlay_relay.schemas.messages import (
    BroadcastRead,
    ChatPublish,
    EmotePublish,
    GenericPublish,
    NotificationPublish,
)

router = APIRouter(prefix="/messages")


def _to_read(result: BroadcastResult) -> BroadcastRead:
    return BroadcastRead(
        category=result.category.slug,
        recipients=result.recipients,
        delivered=result.delivered,
        skipped=result.skipped,
        dropped=result.dropped,
    )


@router.post("/chat", response_model=BroadcastRead)
async def publish_chat(body: ChatPublish, request: Request):
    server = request.app.state.server
    result = await server.send_message(body.user, body.message, user_color=body.color)
    return _to_read(result)


@router.post("/notification", response_model=BroadcastRead)
async def publish_notification(body: NotificationPublish, request: Request):
    server = request.app.state.server
    result = await server.send_notification(
        body.user, body.title, body.message, user_color=body.color
    )
    return _to_read(result)


@router.post("/emote", response_model=BroadcastRead)
async def publish_emote(body: EmotePublish, request: Request):
    server = request.app.state.server
    result = await server.send_emote(body.url, count=body.count)
    return _to_read(result)


@router.post("/broadcast", response_model=BroadcastRead)
async def publish_generic(body: GenericPublish, request: Request):
    """Send a generic-form envelope as-is. The caller owns the field order."""
    try:
        category = Category.parse(body.category)
    except UnknownCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    envelope = GenericEnvelope(
        category=category,
        string_values=body.string_values,
        int_values=body.int_values,
        bool_values=body.bool_values,
    )
    server = request.app.state.server
    result = await server.broadcast(category, envelope)
    return _to_read(result)
