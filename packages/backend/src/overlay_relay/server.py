"""OverlayServer — the relay as an object its host owns.

Learn: There is no process-wide server handle. A host application creates
an OverlayServer, starts it, pushes events through it and stops it:

    async with OverlayServer() as overlay:
        await overlay.send_message("alice", "hello")

The server owns the registry, the broadcaster and the shutdown signal.
start()/stop() run the FastAPI app under uvicorn in a background task;
when the app is run by an external uvicorn process instead
(`uvicorn overlay_relay.main:create_app --factory`), the app's lifespan
calls shutdown() on the server it was built with.
"""

import asyncio
import html
from typing import Optional

import structlog
from starlette.websockets import WebSocket

from overlay_relay.config import Settings, settings as default_settings
from overlay_relay.protocol.categories import Category
from overlay_relay.protocol.envelope import (
    ChatMessage,
    Emote,
    Envelope,
    NamedEnvelope,
    Notification,
    pack,
)
from overlay_relay.realtime.broadcaster import Broadcaster, BroadcastResult
from overlay_relay.realtime.connection import CloseReason, Connection
from overlay_relay.realtime.registry import ClientRegistry

logger = structlog.get_logger()

# Close codes sent to the overlay when we end the connection
_CLOSE_CODES = {
    CloseReason.DISCONNECT: 1000,
    CloseReason.ERROR: 1011,
    CloseReason.SHUTDOWN: 1001,
    CloseReason.ABORTED: 1011,
}


def user_span(user: str, color: str) -> str:
    """Wrap a user name in the span the overlay stylesheets target."""
    return f'<span class="user" style="color: {color}">{html.escape(user)}</span>'


class OverlayServer:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.registry = ClientRegistry()
        self.broadcaster = Broadcaster(
            self.registry,
            send_timeout=self.settings.send_timeout_seconds,
        )
        self._shutdown = asyncio.Event()
        self._handlers: set[asyncio.Task] = set()
        self._uvicorn = None
        self._serve_task: Optional[asyncio.Task] = None

    # ─── Producer API ────────────────────────────────────

    async def broadcast(self, category: Category, envelope: Envelope) -> BroadcastResult:
        return await self.broadcaster.broadcast(category, envelope)

    async def publish(self, envelope: NamedEnvelope) -> BroadcastResult:
        """Broadcast a named envelope in the deployment's wire format."""
        if self.settings.wire_format == "generic":
            return await self.broadcast(envelope.category, pack(envelope))
        return await self.broadcast(envelope.category, envelope)

    async def send_message(
        self, user: str, message: str, user_color: Optional[str] = None
    ) -> BroadcastResult:
        """Show a chat line on every chat overlay."""
        color = user_color or self.settings.default_user_color
        return await self.publish(ChatMessage(
            user=user_span(user, color),
            user_color=color,
            content=message,
            duration=self.settings.message_duration_ms,
        ))

    async def send_notification(
        self, user: str, title: str, message: str, user_color: Optional[str] = None
    ) -> BroadcastResult:
        """Show an alert (follow, subscription, raid...) on notification overlays."""
        color = user_color or self.settings.default_user_color
        return await self.publish(Notification(
            title=f"{user_span(user, color)} {title}",
            content=message,
            duration=self.settings.notification_duration_ms,
        ))

    async def send_emote(self, url: str, count: int = 1) -> BroadcastResult:
        """Throw `count` copies of an emote image onto emote-wall overlays."""
        return await self.publish(Emote(url=url, count=count))

    def client_count(self, category: Optional[Category] = None) -> int:
        return self.registry.count(category)

    # ─── Connection lifecycle ────────────────────────────

    async def serve_connection(self, websocket: WebSocket, category: Category) -> None:
        """Accept a websocket and keep it subscribed until it closes.

        Called by the /ws endpoint once the category has been validated.
        """
        task = asyncio.current_task()
        if task is not None:
            self._handlers.add(task)

        connection = Connection(
            websocket,
            category,
            close_timeout=self.settings.close_timeout_seconds,
            shutdown=self._shutdown,
        )
        # Holds unless run() reports otherwise, e.g. the peer left before accept
        reason = CloseReason.ERROR
        try:
            await connection.open()
            self.registry.add(connection)
            logger.info(
                "connection.opened",
                connection_id=connection.id,
                category=category.slug,
                clients=self.registry.count(category),
            )
            reason = await connection.run()
        finally:
            self.registry.remove(connection)
            await connection.dispose(code=_CLOSE_CODES[reason])
            logger.info(
                "connection.closed",
                connection_id=connection.id,
                category=category.slug,
                reason=reason.value,
            )
            if task is not None:
                self._handlers.discard(task)

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown.is_set()

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Signal every connection to close and wait for their cleanup.

        Safe to call more than once.
        """
        if timeout is None:
            timeout = self.settings.shutdown_timeout_seconds
        self._shutdown.set()
        current = asyncio.current_task()
        pending = [t for t in self._handlers if t is not current and not t.done()]
        if not pending:
            return
        logger.info("overlay.draining", connections=len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("overlay.drain_timeout", cancelled=len(still_running))

    # ─── Hosting ─────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    async def start(self) -> None:
        """Serve the relay on settings.host:settings.port in a background task."""
        import uvicorn

        from overlay_relay.main import create_app

        if self._serve_task is not None:
            raise RuntimeError("OverlayServer already started")

        self._shutdown = asyncio.Event()
        config = uvicorn.Config(
            create_app(server=self),
            host=self.settings.host,
            port=self.settings.port,
            log_config=None,
        )
        self._uvicorn = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._serve(self._uvicorn))
        while not self._uvicorn.started:
            if self._serve_task.done():
                task, self._serve_task, self._uvicorn = self._serve_task, None, None
                task.result()
                raise RuntimeError("Overlay server exited during startup")
            await asyncio.sleep(0.05)
        logger.info(
            "overlay.listening",
            url=f"http://{self.settings.host}:{self.settings.port}",
        )

    async def _serve(self, server) -> None:
        # uvicorn calls sys.exit() when it cannot bind; keep that out of the host's loop
        try:
            await server.serve()
        except SystemExit as e:
            raise OSError(
                f"Overlay server could not listen on {self.settings.host}:{self.settings.port}"
            ) from e

    async def stop(self) -> None:
        """Close every overlay connection, then stop uvicorn."""
        if self._serve_task is None:
            return
        await self.shutdown()
        self._uvicorn.should_exit = True
        try:
            await self._serve_task
        finally:
            self._serve_task = None
            self._uvicorn = None

    async def __aenter__(self) -> "OverlayServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
