#!/usr/bin/env python3
"""
Embed the relay in a host application.

Starts an OverlayServer on the configured port (OVERLAY_PORT, default
23399), pushes a chat line every few seconds, and stops cleanly on Ctrl+C.

Run with: python examples/embedded_server.py
"""

import asyncio
import itertools

from overlay_relay.config import Settings
from overlay_relay.protocol.categories import Category
from overlay_relay.server import OverlayServer

COLORS = ["#a970ff", "#ff4f8b", "#4fc3ff", "#7dff4f"]


async def main():
    settings = Settings()
    async with OverlayServer(settings) as overlay:
        print(f"Overlays: ws://{settings.host}:{settings.port}/ws?type=chat")
        for i, color in zip(itertools.count(1), itertools.cycle(COLORS)):
            result = await overlay.send_message(f"viewer{i}", f"message #{i}", user_color=color)
            print(
                f"#{i}: {overlay.client_count(Category.CHAT)} chat overlay(s), "
                f"delivered={result.delivered} dropped={result.dropped}"
            )
            await asyncio.sleep(3)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
