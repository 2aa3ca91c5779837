"""
controller_link.py
------------------
WebSocket client connecting a KinematicsChain to the robot controller.

Outgoing messages are queued and written by a background task, so
``send`` may be called from any thread (e.g. a GUI callback that calls
``chain.move``). Incoming text frames are handed to the ControllerSession.
"""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Optional

import websockets
from websockets.exceptions import InvalidHandshake

from kinematics import ExportConfig, KinematicsChain
from server.session import ControllerSession

log = logging.getLogger(__name__)


class ControllerLink:
    def __init__(self, chain: KinematicsChain, uri: str = "ws://localhost:6543",
                 export_config: Optional[ExportConfig] = None,
                 connect_attempts: int = 16, retry_interval: float = 0.5):
        """
        :param chain: Chain to synchronise with the controller
        :param uri: Controller WebSocket address
        :param export_config: Options for the description sent at init
        :param connect_attempts: How many times to try connecting before giving up
        :param retry_interval: Pause between connection attempts (in seconds)
        """
        self.uri = uri
        self.connect_attempts = connect_attempts
        self.retry_interval = retry_interval
        self.session = ControllerSession(chain, self.send, export_config)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._outbox: Optional[asyncio.Queue] = None

    @property
    def connected(self) -> bool:
        return self._outbox is not None

    def send(self, message: dict[str, Any]) -> None:
        """Queue *message* for the controller. Safe to call from any thread."""
        if self._loop is None or self._outbox is None:
            log.warning("Not connected, dropping '%s' message", message.get("type"))
            return
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, message)

    async def _connect(self):
        for attempt in range(1, self.connect_attempts + 1):
            try:
                return await websockets.connect(self.uri)
            except (OSError, asyncio.TimeoutError, InvalidHandshake) as e:
                log.info("Connection attempt %d/%d to %s failed: %s",
                         attempt, self.connect_attempts, self.uri, e)
                if attempt < self.connect_attempts:
                    await asyncio.sleep(self.retry_interval)
        raise ConnectionError(f"Connection to {self.uri} timed out")

    async def _write(self, websocket) -> None:
        while True:
            message = await self._outbox.get()
            await websocket.send(json.dumps(message))

    async def run(self) -> None:
        """Connect, send init and apply state messages until the controller hangs up."""
        websocket = await self._connect()
        log.info("Connected to controller at %s", self.uri)

        self._loop = asyncio.get_running_loop()
        self._outbox = asyncio.Queue()
        writer = asyncio.create_task(self._write(websocket))
        try:
            self.session.start()
            async for raw in websocket:
                self.session.handle_message(raw)
        except websockets.ConnectionClosed as e:
            log.warning("Controller connection lost: %s", e)
        finally:
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
            self._outbox = None
            self._loop = None
            await websocket.close()
            log.info("Disconnected from controller")
