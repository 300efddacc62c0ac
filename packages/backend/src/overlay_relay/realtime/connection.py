"""Connection — one overlay websocket bound to a single category.

Learn: Lifecycle is a one-way state machine:

    CONNECTING → OPEN → CLOSING → CLOSED

- open()    — completes the websocket handshake (→ OPEN)
- run()     — receive loop; returns once the peer closes, the transport
              errors, the server shuts down, or the broadcaster aborts
              the connection after a failed send (→ CLOSING)
- dispose() — closes the socket with a bounded timeout (→ CLOSED)

The overlay channel is outbound-only. Inbound frames are read purely to
notice a close; their payload is discarded.

Sends go through a per-connection asyncio.Lock, so two broadcasts to the
same overlay always arrive in the order they were issued even though each
broadcast sends to all overlays concurrently. The send timeout covers only
the transport write, never the wait for the lock, and a write in flight is
cut short by abort() or the shutdown signal.
"""

import asyncio
import uuid
from enum import Enum
from typing import Optional

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from overlay_relay.protocol.categories import Category

logger = structlog.get_logger()


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


_ORDER = {
    ConnectionState.CONNECTING: 0,
    ConnectionState.OPEN: 1,
    ConnectionState.CLOSING: 2,
    ConnectionState.CLOSED: 3,
}


class CloseReason(str, Enum):
    """Why a connection's receive loop ended."""
    DISCONNECT = "disconnect"
    ERROR = "error"
    SHUTDOWN = "shutdown"
    ABORTED = "aborted"


class Connection:
    """A subscribed overlay. Hashes by identity."""

    def __init__(
        self,
        websocket: WebSocket,
        category: Category,
        close_timeout: float = 1.0,
        shutdown: Optional[asyncio.Event] = None,
    ):
        self.id = uuid.uuid4().hex[:12]
        self.websocket = websocket
        self.category = category
        self.close_timeout = close_timeout
        self.state = ConnectionState.CONNECTING
        self._send_lock = asyncio.Lock()
        self._aborted = asyncio.Event()
        self._shutdown = shutdown if shutdown is not None else asyncio.Event()

    def __repr__(self) -> str:
        return f"<Connection {self.id} {self.category.slug} {self.state.value}>"

    # ─── State machine ───────────────────────────────────

    def _advance(self, state: ConnectionState) -> bool:
        """Move forward to `state`. Backward or repeated moves are ignored."""
        if _ORDER[state] <= _ORDER[self.state]:
            return False
        self.state = state
        return True

    @property
    def is_open(self) -> bool:
        """True while both our state and the transport say the socket is usable."""
        return (
            self.state is ConnectionState.OPEN
            and self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    # ─── Lifecycle ───────────────────────────────────────

    async def open(self) -> None:
        """Accept the websocket handshake."""
        await self.websocket.accept()
        self._advance(ConnectionState.OPEN)

    async def run(self, shutdown: Optional[asyncio.Event] = None) -> CloseReason:
        """Block until the connection should close, and say why.

        Three waits race: the receive loop, the process-wide shutdown
        signal, and this connection's abort flag. The first to finish
        wins (shutdown beats abort on a tie); the others are cancelled.
        """
        if shutdown is not None:
            self._shutdown = shutdown
        receiver = asyncio.create_task(self._drain())
        stopper = asyncio.create_task(self._shutdown.wait())
        aborter = asyncio.create_task(self._aborted.wait())
        try:
            done, _ = await asyncio.wait(
                [receiver, stopper, aborter],
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (receiver, stopper, aborter):
                task.cancel()
            self._advance(ConnectionState.CLOSING)

        if receiver in done:
            error = receiver.exception()
            if error is not None:
                logger.info(
                    "connection.receive_error",
                    connection_id=self.id,
                    error=str(error),
                )
                return CloseReason.ERROR
            return CloseReason.DISCONNECT
        if stopper in done:
            return CloseReason.SHUTDOWN
        return CloseReason.ABORTED

    async def _drain(self) -> None:
        """Read and discard inbound frames until the peer disconnects."""
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    def abort(self) -> None:
        """Mark the connection dead; its run() returns and cleanup follows."""
        self._advance(ConnectionState.CLOSING)
        self._aborted.set()

    async def dispose(self, code: int = 1000) -> None:
        """Close the transport (bounded by close_timeout) and finish in CLOSED."""
        if self.state is ConnectionState.CLOSED:
            return
        self._advance(ConnectionState.CLOSING)
        if (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        ):
            try:
                await asyncio.wait_for(
                    self.websocket.close(code=code),
                    timeout=self.close_timeout,
                )
            except (asyncio.TimeoutError, WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug(
                    "connection.close_failed",
                    connection_id=self.id,
                    error=str(e) or type(e).__name__,
                )
        self._advance(ConnectionState.CLOSED)

    # ─── Delivery ────────────────────────────────────────

    async def send(self, frame: str, timeout: Optional[float] = None) -> bool:
        """Send one text frame.

        Returns False if the connection is no longer open, or stops being
        open (abort or shutdown) while the write is in flight. Raises
        asyncio.TimeoutError when the write alone takes longer than
        `timeout`; transport errors propagate.
        """
        async with self._send_lock:
            if not self.is_open:
                return False
            write = asyncio.ensure_future(self.websocket.send_text(frame))
            interrupts = [
                asyncio.ensure_future(self._aborted.wait()),
                asyncio.ensure_future(self._shutdown.wait()),
            ]
            try:
                done, _ = await asyncio.wait(
                    [write, *interrupts],
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                for task in (write, *interrupts):
                    task.cancel()

            if write in done:
                write.result()
                return True
            if done:
                return False
            raise asyncio.TimeoutError(f"send to {self.id} exceeded {timeout}s")
