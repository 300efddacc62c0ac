"""Broadcaster — fan one event out to every overlay in a category.

Learn: A broadcast is best-effort, at-most-once:

1. Serialize the envelope once.
2. Take a registry snapshot for the category.
3. Send to every connection concurrently (asyncio.gather), each transport
   write bounded by `send_timeout`.

A stalled overlay costs at most `send_timeout` and never delays the
others. Queueing behind earlier sends to the same overlay does not count
against the timeout, so a burst to a slow but live overlay is delivered. A send that errors or times out gets that one connection removed
from the registry and aborted; the broadcast itself never raises because
of a delivery failure. Connections that are already closing are skipped.
"""

import asyncio
from dataclasses import dataclass

import structlog

from overlay_relay.protocol.categories import Category
from overlay_relay.protocol.envelope import Envelope
from overlay_relay.protocol.serializer import encode
from overlay_relay.realtime.connection import Connection
from overlay_relay.realtime.registry import ClientRegistry

logger = structlog.get_logger()

_DELIVERED = "delivered"
_SKIPPED = "skipped"
_DROPPED = "dropped"


@dataclass
class BroadcastResult:
    """What happened to one broadcast. Informational only."""
    category: Category
    recipients: int = 0
    delivered: int = 0
    skipped: int = 0
    dropped: int = 0


class Broadcaster:
    def __init__(self, registry: ClientRegistry, send_timeout: float = 2.0):
        self.registry = registry
        self.send_timeout = send_timeout

    async def broadcast(self, category: Category, envelope: Envelope) -> BroadcastResult:
        """Serialize `envelope` and deliver it to every `category` subscriber."""
        return await self.broadcast_payload(category, encode(envelope))

    async def broadcast_payload(self, category: Category, payload: bytes) -> BroadcastResult:
        """Deliver pre-serialized bytes to every `category` subscriber."""
        targets = self.registry.snapshot(category)
        result = BroadcastResult(category=category, recipients=len(targets))
        if not targets:
            return result

        # Overlays read text frames
        frame = payload.decode("utf-8")
        outcomes = await asyncio.gather(
            *(self._deliver(connection, frame) for connection in targets)
        )
        for outcome in outcomes:
            setattr(result, outcome, getattr(result, outcome) + 1)

        if result.dropped:
            logger.info(
                "broadcast.partial",
                category=category.slug,
                recipients=result.recipients,
                dropped=result.dropped,
            )
        return result

    async def _deliver(self, connection: Connection, frame: str) -> str:
        if not connection.is_open:
            return _SKIPPED
        try:
            sent = await connection.send(frame, timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "broadcast.send_timeout",
                connection_id=connection.id,
                timeout=self.send_timeout,
            )
        except Exception as e:
            logger.warning(
                "broadcast.send_failed",
                connection_id=connection.id,
                error=str(e) or type(e).__name__,
            )
        else:
            return _DELIVERED if sent else _SKIPPED

        self.registry.remove(connection)
        connection.abort()
        return _DROPPED
