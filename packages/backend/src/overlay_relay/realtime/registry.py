"""Client registry — the live set of overlay connections.

Learn: The registry is the only shared mutable state in the relay.
Callers never touch the underlying container or its lock; they get three
operations:

- add(connection)       — insert (unique by identity)
- remove(connection)    — delete if present (idempotent)
- snapshot(category)    — independent list of matching connections

Broadcasts iterate a snapshot, so the lock is held only for the O(n) copy,
never across network sends. A connection removed before the snapshot is
taken receives nothing; one added after it is picked up by the next
broadcast.

A threading.Lock (not asyncio.Lock) guards the container: no operation
awaits, so the methods stay synchronous and are safe from both event-loop
tasks and plain threads.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

import structlog

from overlay_relay.protocol.categories import Category

if TYPE_CHECKING:
    from overlay_relay.realtime.connection import Connection

logger = structlog.get_logger()


class ClientRegistry:
    """Thread-safe, insertion-ordered set of live connections."""

    def __init__(self) -> None:
        # dict as an ordered set; keys hash by identity
        self._connections: dict[Connection, None] = {}
        self._lock = threading.Lock()

    def add(self, connection: Connection) -> bool:
        """Insert a connection. Returns False if it was already present."""
        with self._lock:
            if connection in self._connections:
                return False
            self._connections[connection] = None
            total = len(self._connections)
        logger.debug(
            "registry.added",
            connection_id=connection.id,
            category=connection.category.slug,
            total=total,
        )
        return True

    def remove(self, connection: Connection) -> bool:
        """Delete a connection if present. Returns whether it was removed."""
        with self._lock:
            if connection not in self._connections:
                return False
            del self._connections[connection]
            total = len(self._connections)
        logger.debug(
            "registry.removed",
            connection_id=connection.id,
            category=connection.category.slug,
            total=total,
        )
        return True

    def snapshot(self, category: Optional[Category] = None) -> list[Connection]:
        """Point-in-time copy of the connections subscribed to `category`.

        With no category, every live connection is returned.
        """
        with self._lock:
            if category is None:
                return list(self._connections)
            return [c for c in self._connections if c.category == category]

    def count(self, category: Optional[Category] = None) -> int:
        return len(self.snapshot(category))

    def counts(self) -> dict[Category, int]:
        """Connection count per category, including empty categories."""
        result = {category: 0 for category in Category}
        for connection in self.snapshot():
            result[connection.category] += 1
        return result

    def __contains__(self, connection: Connection) -> bool:
        with self._lock:
            return connection in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
