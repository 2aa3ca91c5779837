"""
server
------
Controller link and presentation feed.

Re-exports the main classes so callers can write::

    from server import ControllerLink, WebSocketServer
"""

from server.controller_link import ControllerLink
from server.session import ControllerSession
from server.websocket_server import WebSocketServer

__all__ = ["ControllerLink", "ControllerSession", "WebSocketServer"]
