"""
session.py
----------
ControllerSession ties a KinematicsChain to the controller messages.

The session sends ``init`` exactly once, routes ``move`` / ``ikmove``
requests outward and feeds incoming state vectors to ``chain.update``.
It does not know about sockets; ``send`` is any callable taking a dict.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence, Union

from kinematics import ExportConfig, KinematicsChain
from server.messages import ProtocolError, ikmove_message, init_message, parse_state

log = logging.getLogger(__name__)


class ControllerSession:
    """
    One controller session for one chain.

    Parameters
    ----------
    chain         : KinematicsChain            Chain whose state is synchronised.
    send          : Callable[[dict], None]     Delivers outgoing messages.
    export_config : ExportConfig | None        Options for the init description.
    """

    def __init__(self, chain: KinematicsChain, send: Callable[[dict[str, Any]], None],
                 export_config: Optional[ExportConfig] = None) -> None:
        self.chain = chain
        self._send = send
        self._export_config = export_config
        self._started = False
        chain.bind_sender(send)

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Send the init message (description, limits and initial state)."""
        if self._started:
            log.warning("Session already initialised, not sending init again")
            return
        self._send(init_message(self.chain, self._export_config))
        self._started = True
        log.info("Sent init for %d joints", len(self.chain.joints))

    def move(self, state: Sequence[float]) -> None:
        self.chain.move(state)

    def ik_move(self, position: Sequence[float]) -> None:
        self._send(ikmove_message(position))

    def handle_message(self, raw: Union[str, bytes]) -> bool:
        """Apply an incoming state message.

        Malformed messages and empty vectors are ignored. Returns True if
        the chain's state changed.
        """
        try:
            state = parse_state(raw)
        except ProtocolError as e:
            log.warning("Ignoring controller message: %s", e)
            return False
        if state is None:
            return False
        return self.chain.update(state)

    def close(self) -> None:
        self.chain.bind_sender(None)
