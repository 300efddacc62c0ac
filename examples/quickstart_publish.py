#!/usr/bin/env python3
"""
Overlay Relay Quickstart — publish events to running overlays over HTTP.

Checks health, then sends one chat line, one notification and one emote.
Open an overlay (or any websocket client) on ws://localhost:23399/ws?type=chat
first to watch them arrive.

Run with: python examples/quickstart_publish.py

Requires: pip install httpx
Relay must be running:
    uvicorn overlay_relay.main:create_app --factory --port 23399
"""

import sys

import httpx

BASE = "http://localhost:23399/api/v1"


def main():
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking relay health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Relay not reachable at {BASE}")
        sys.exit(1)
    health = resp.json()
    print(f"  Version: {health['version']}")
    for category, count in health["clients"].items():
        print(f"  {category:<13} {count} overlay(s)")

    # ── Chat ──────────────────────────────────────────────────────
    print("\n1. Chat line...")
    resp = client.post("/messages/chat", json={
        "user": "alice",
        "message": "hello from the quickstart",
        "color": "#ff4f8b",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   delivered to {resp.json()['delivered']}/{resp.json()['recipients']}")

    # ── Notification ──────────────────────────────────────────────
    print("\n2. Notification...")
    resp = client.post("/messages/notification", json={
        "user": "bob",
        "title": "just subscribed!",
        "message": "Tier 1, 3 months",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   delivered to {resp.json()['delivered']}/{resp.json()['recipients']}")

    # ── Emote wall ────────────────────────────────────────────────
    print("\n3. Emote wall...")
    resp = client.post("/messages/emote", json={
        "url": "https://static-cdn.jtvnw.net/emoticons/v2/25/default/dark/3.0",
        "count": 10,
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   delivered to {resp.json()['delivered']}/{resp.json()['recipients']}")

    print("\n✓ Done.")


if __name__ == "__main__":
    main()
