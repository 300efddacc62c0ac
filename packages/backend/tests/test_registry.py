"""Client registry tests — membership, snapshots, concurrent mutation."""

import asyncio
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from overlay_relay.protocol.categories import Category
from overlay_relay.realtime.connection import Connection
from overlay_relay.realtime.registry import ClientRegistry

from fakes import FakeWebSocket


def _conn(category=Category.CHAT) -> Connection:
    return Connection(FakeWebSocket(), category)


def test_add_is_unique_by_identity():
    registry = ClientRegistry()
    conn = _conn()
    assert registry.add(conn) is True
    assert registry.add(conn) is False
    assert len(registry) == 1
    assert conn in registry


def test_remove_is_idempotent():
    registry = ClientRegistry()
    conn = _conn()
    registry.add(conn)
    assert registry.remove(conn) is True
    assert registry.remove(conn) is False
    assert registry.remove(_conn()) is False
    assert len(registry) == 0


def test_snapshot_filters_by_category():
    registry = ClientRegistry()
    chat = [_conn(Category.CHAT) for _ in range(3)]
    notif = _conn(Category.NOTIFICATION)
    for c in [*chat, notif]:
        registry.add(c)

    assert registry.snapshot(Category.CHAT) == chat
    assert registry.snapshot(Category.NOTIFICATION) == [notif]
    assert registry.snapshot(Category.EMOTE_WALL) == []
    assert len(registry.snapshot()) == 4


def test_snapshot_is_an_independent_copy():
    registry = ClientRegistry()
    a, b = _conn(), _conn()
    registry.add(a)
    snap = registry.snapshot(Category.CHAT)

    registry.add(b)
    registry.remove(a)
    assert snap == [a]

    snap.clear()
    assert registry.snapshot(Category.CHAT) == [b]


def test_counts_include_empty_categories():
    registry = ClientRegistry()
    registry.add(_conn(Category.CHAT))
    registry.add(_conn(Category.CHAT))
    registry.add(_conn(Category.EMOTE_WALL))
    assert registry.counts() == {
        Category.CHAT: 2,
        Category.NOTIFICATION: 0,
        Category.EMOTE_WALL: 1,
    }
    assert registry.count(Category.CHAT) == 2
    assert registry.count() == 3


def test_concurrent_threads_keep_exact_membership():
    """adds − removes == final size, with no duplicates, under thread contention."""
    registry = ClientRegistry()
    conns = [_conn(random.choice(list(Category))) for _ in range(400)]
    removed = conns[::3]

    def churn(conn):
        registry.add(conn)
        registry.add(conn)  # duplicate add must not double-count
        registry.snapshot(conn.category)
        if conn in removed:
            registry.remove(conn)
            registry.remove(conn)

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(churn, conns))

    assert len(registry) == len(conns) - len(removed)
    everything = registry.snapshot()
    assert len(everything) == len(set(everything))
    assert not any(c in registry for c in removed)


@pytest.mark.asyncio
async def test_concurrent_tasks_keep_exact_membership():
    registry = ClientRegistry()
    conns = [_conn() for _ in range(200)]

    async def churn(i, conn):
        registry.add(conn)
        await asyncio.sleep(0)
        assert conn in registry.snapshot(Category.CHAT)
        if i % 2:
            registry.remove(conn)

    await asyncio.gather(*(churn(i, c) for i, c in enumerate(conns)))
    assert len(registry) == 100
