"""Real-time delivery — connections, registry, broadcaster, /ws endpoint.

Learn: Events flow one way:
1. Producer → Broadcaster.broadcast(category, envelope)
2. Broadcaster → Registry snapshot → concurrent per-connection sends

Overlays only listen; anything they send is read and dropped.
"""

from overlay_relay.realtime.broadcaster import Broadcaster, BroadcastResult
from overlay_relay.realtime.connection import CloseReason, Connection, ConnectionState
from overlay_relay.realtime.registry import ClientRegistry

__all__ = [
    "BroadcastResult",
    "Broadcaster",
    "ClientRegistry",
    "CloseReason",
    "Connection",
    "ConnectionState",
]
