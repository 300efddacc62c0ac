"""In-memory stand-in for starlette's WebSocket."""

import asyncio

from starlette.websockets import WebSocketState


class FakeWebSocket:
    """Minimal WebSocket double: accept/receive/send_text/close.

    `stall=True` makes every send hang forever; `fail=True` makes every
    send raise, like a reset transport; `delay` slows every send down by
    that many seconds, like a live but sluggish browser source.
    """

    def __init__(self, stall: bool = False, fail: bool = False, delay: float = 0.0):
        self.application_state = WebSocketState.CONNECTING
        self.client_state = WebSocketState.CONNECTING
        self.stall = stall
        self.fail = fail
        self.delay = delay
        self.scope = {"type": "websocket", "path": "/ws"}
        self.sent: list[str] = []
        self.close_code = None
        self.close_reason = None
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("transport broken")
        if self.stall:
            await asyncio.Event().wait()
        # Yield like a real transport write would
        await asyncio.sleep(self.delay)
        self.sent.append(data)

    async def receive(self):
        message = await self._inbound.get()
        if isinstance(message, Exception):
            raise message
        return message

    async def close(self, code: int = 1000, reason=None):
        self.application_state = WebSocketState.DISCONNECTED
        self.close_code = code
        self.close_reason = reason

    # ─── Test controls ───────────────────────────────────

    def push_text(self, text: str):
        self._inbound.put_nowait({"type": "websocket.receive", "text": text})

    def push_error(self, error: Exception):
        self._inbound.put_nowait(error)

    def disconnect(self, code: int = 1000):
        self.client_state = WebSocketState.DISCONNECTED
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": code})
