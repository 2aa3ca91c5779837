import asyncio
import json
import logging
import socket

import pytest
import websockets

from server import ControllerLink


def _free_port():
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_round_trip_with_controller(small_chain):
    """Init goes out first; state vectors from the controller move the chain."""
    received = []

    async def controller(websocket):
        received.append(json.loads(await websocket.recv()))
        await websocket.send("[]")
        await websocket.send("[30.0, 40.0]")

    async def scenario():
        async with websockets.serve(controller, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            link = ControllerLink(small_chain, uri=f"ws://127.0.0.1:{port}",
                                  connect_attempts=3, retry_interval=0.05)
            await asyncio.wait_for(link.run(), timeout=5.0)
            return link

    link = asyncio.run(scenario())
    assert [m["type"] for m in received] == ["init"]
    assert received[0]["state"] == [0.0, 0.0]
    assert received[0]["description"].startswith('<?xml version="1.0"?>')
    assert small_chain.state == [30.0, 40.0]
    assert not link.connected


def test_move_reaches_controller(small_chain):
    received = []

    async def controller(websocket):
        async for raw in websocket:
            message = json.loads(raw)
            received.append(message)
            if message["type"] == "init":
                await websocket.send("[0.0, 0.0]")
            elif message["type"] == "move":
                await websocket.send(json.dumps(message["state"]))
                return

    async def scenario():
        async with websockets.serve(controller, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            link = ControllerLink(small_chain, uri=f"ws://127.0.0.1:{port}")
            unsubscribe = small_chain.subscribe(
                lambda state: small_chain.move([15.0, 25.0]) if state == [0.0, 0.0] else None)
            await asyncio.wait_for(link.run(), timeout=5.0)
            unsubscribe()

    asyncio.run(scenario())
    assert [m["type"] for m in received] == ["init", "move"]
    assert received[1]["state"] == [15.0, 25.0]
    assert small_chain.state == [15.0, 25.0]


def test_connection_refused(small_chain):
    link = ControllerLink(small_chain, uri=f"ws://127.0.0.1:{_free_port()}",
                          connect_attempts=2, retry_interval=0.01)
    with pytest.raises(ConnectionError, match="timed out"):
        asyncio.run(link.run())


def test_send_while_disconnected(small_chain, caplog):
    link = ControllerLink(small_chain)
    with caplog.at_level(logging.WARNING):
        small_chain.move([1.0, 2.0])
    assert not link.connected
    assert "dropping 'move'" in caplog.text
