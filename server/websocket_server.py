import asyncio
import json
import logging
from typing import Any, Optional

import websockets

from kinematics import DesiredState, KinematicsChain, KinematicsError
from server.messages import ProtocolError
from server.session import ControllerSession

log = logging.getLogger(__name__)


class WebSocketServer:
    def __init__(self, chain: KinematicsChain, session: Optional[ControllerSession] = None,
                 host: str = "localhost", port: int = 8765, update_interval: float = 0.05):
        """
        :param chain: KinematicsChain to stream snapshots from
        :param session: Controller session that receives ikmove requests
        :param host: WebSocket server host
        :param port: WebSocket server port
        :param update_interval: How often to send snapshots (in seconds)
        """
        self.chain = chain
        self.session = session
        self.desired = DesiredState(chain)
        self.host = host
        self.port = port
        self.update_interval = update_interval
        self.clients: set = set()

    def definition_message(self) -> dict[str, Any]:
        return {"type": "chain_definition", **self.chain.static_definition()}

    def state_message(self) -> dict[str, Any]:
        return {"type": "state_update", "desired": list(self.desired.values), **self.chain.snapshot()}

    def handle_client_message(self, raw: str) -> None:
        """Apply a request from a panel.

        Requests:
            {"type": "set_joint", "index": i, "value": v}   edit and commit one joint
            {"type": "move", "state": [...]}                commit a whole vector
            {"type": "ikmove", "position": [x, y, z]}       forward to the controller
        """
        try:
            request = json.loads(raw)
            kind = request["type"]
            if kind == "set_joint":
                self.desired.set(int(request["index"]), float(request["value"]))
                self.desired.commit()
            elif kind == "move":
                self.desired.set_all(request["state"])
                self.desired.commit()
            elif kind == "ikmove":
                if self.session is None:
                    raise ProtocolError("No controller session for ikmove")
                self.session.ik_move(request["position"])
            else:
                raise ProtocolError(f"Unknown request type '{kind}'")
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, IndexError, KinematicsError) as e:
            log.warning("Ignoring panel request: %s", e)

    async def handler(self, websocket):
        log.info("Client connected: %s", websocket.remote_address)
        self.clients.add(websocket)

        # Send chain definition on initial connection
        try:
            await websocket.send(json.dumps(self.definition_message()))
        except websockets.ConnectionClosed:
            self.clients.discard(websocket)
            log.info("Client disconnected during definition send: %s", websocket.remote_address)
            return

        try:
            async for raw in websocket:
                self.handle_client_message(raw)
        except websockets.ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            log.info("Client disconnected: %s", websocket.remote_address)

    async def broadcast_snapshots(self):
        """Continuously sends the chain snapshot to all connected clients."""
        while True:
            if self.clients:
                message = json.dumps(self.state_message())
                # Send to each client, removing any that have disconnected
                disconnected = set()
                for client in list(self.clients):
                    try:
                        await client.send(message)
                    except websockets.ConnectionClosed:
                        disconnected.add(client)
                self.clients -= disconnected
            await asyncio.sleep(self.update_interval)

    async def start(self):
        async with websockets.serve(self.handler, self.host, self.port):
            log.info("WebSocket server started on ws://%s:%s", self.host, self.port)
            await self.broadcast_snapshots()
