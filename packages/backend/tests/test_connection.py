"""Connection lifecycle tests — state machine, receive loop, disposal."""

import asyncio

import pytest

from overlay_relay.protocol.categories import Category
from overlay_relay.realtime.connection import CloseReason, Connection, ConnectionState

from fakes import FakeWebSocket


@pytest.mark.asyncio
async def test_open_moves_to_open():
    conn = Connection(FakeWebSocket(), Category.CHAT)
    assert conn.state is ConnectionState.CONNECTING
    assert not conn.is_open

    await conn.open()
    assert conn.state is ConnectionState.OPEN
    assert conn.is_open


@pytest.mark.asyncio
async def test_inbound_frames_are_ignored_until_disconnect(make_connection):
    conn = await make_connection()
    ws = conn.websocket
    ws.push_text('{"type": "ping"}')
    ws.push_text("anything at all")
    ws.disconnect()

    reason = await asyncio.wait_for(conn.run(asyncio.Event()), timeout=1)
    assert reason is CloseReason.DISCONNECT
    assert conn.state is ConnectionState.CLOSING
    assert ws.sent == []

    await conn.dispose()
    assert conn.state is ConnectionState.CLOSED
    # Peer already left, nothing to close
    assert ws.close_code is None


@pytest.mark.asyncio
async def test_shutdown_signal_unblocks_receive(make_connection):
    conn = await make_connection()
    shutdown = asyncio.Event()
    runner = asyncio.create_task(conn.run(shutdown))
    await asyncio.sleep(0)
    assert not runner.done()

    shutdown.set()
    assert await asyncio.wait_for(runner, timeout=1) is CloseReason.SHUTDOWN

    await conn.dispose(code=1001)
    assert conn.websocket.close_code == 1001
    assert conn.state is ConnectionState.CLOSED


@pytest.mark.asyncio
async def test_abort_ends_run(make_connection):
    conn = await make_connection()
    runner = asyncio.create_task(conn.run(asyncio.Event()))
    await asyncio.sleep(0)

    conn.abort()
    assert conn.state is ConnectionState.CLOSING
    assert not conn.is_open
    assert await asyncio.wait_for(runner, timeout=1) is CloseReason.ABORTED


@pytest.mark.asyncio
async def test_receive_error_ends_run(make_connection):
    conn = await make_connection()
    conn.websocket.push_error(RuntimeError("socket reset"))
    reason = await asyncio.wait_for(conn.run(asyncio.Event()), timeout=1)
    assert reason is CloseReason.ERROR


@pytest.mark.asyncio
async def test_closed_is_terminal(make_connection):
    conn = await make_connection()
    await conn.dispose()
    assert conn.state is ConnectionState.CLOSED

    conn.abort()
    await conn.open()
    assert conn.state is ConnectionState.CLOSED
    assert await conn.send("late") is False
    assert conn.websocket.sent == []


@pytest.mark.asyncio
async def test_sends_to_one_connection_stay_in_order(make_connection):
    conn = await make_connection()
    await asyncio.gather(*(conn.send(str(i)) for i in range(20)))
    assert conn.websocket.sent == [str(i) for i in range(20)]


def test_connections_hash_by_identity():
    a = Connection(FakeWebSocket(), Category.CHAT)
    b = Connection(FakeWebSocket(), Category.CHAT)
    assert a != b
    assert len({a, b, a}) == 2
    assert a.id != b.id


@pytest.mark.asyncio
async def test_send_timeout_covers_the_write(make_connection):
    conn = await make_connection(stall=True)
    with pytest.raises(asyncio.TimeoutError):
        await conn.send("x", timeout=0.05)
    # The lock is released for the next send
    assert conn._send_lock.locked() is False


@pytest.mark.asyncio
async def test_abort_interrupts_in_flight_send(make_connection):
    conn = await make_connection(stall=True)
    sending = asyncio.create_task(conn.send("x", timeout=5))
    await asyncio.sleep(0.01)

    conn.abort()
    assert await asyncio.wait_for(sending, timeout=1) is False


@pytest.mark.asyncio
async def test_shutdown_interrupts_in_flight_send():
    shutdown = asyncio.Event()
    conn = Connection(FakeWebSocket(stall=True), Category.CHAT, shutdown=shutdown)
    await conn.open()
    sending = asyncio.create_task(conn.send("x", timeout=5))
    await asyncio.sleep(0.01)

    shutdown.set()
    assert await asyncio.wait_for(sending, timeout=1) is False
    assert conn.websocket.sent == []


@pytest.mark.asyncio
async def test_run_prefers_shutdown_when_also_aborted(make_connection):
    conn = await make_connection()
    shutdown = asyncio.Event()
    shutdown.set()
    conn.abort()
    assert await asyncio.wait_for(conn.run(shutdown), timeout=1) is CloseReason.SHUTDOWN
