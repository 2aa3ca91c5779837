"""
messages.py
-----------
JSON message schema exchanged with the robot controller.

Outgoing:
    {"type": "init",   "description": <urdf>, "limits": [...], "state": [...]}
    {"type": "move",   "state": [...]}   (built by KinematicsChain.move)
    {"type": "ikmove", "position": [x, y, z]}

Incoming:
    [v0, v1, ...]   a bare state vector; ``[]`` until the controller is ready
"""
from __future__ import annotations

import json
import math
from typing import Any, Optional, Sequence, Union

from kinematics import ExportConfig, KinematicsChain, export


class ProtocolError(ValueError):
    """A message does not follow the controller schema."""


def init_message(chain: KinematicsChain, config: Optional[ExportConfig] = None) -> dict[str, Any]:
    return {
        "type":        "init",
        "description": export(chain, config),
        "limits":      chain.limits(),
        "state":       chain.state,
    }


def ikmove_message(position: Sequence[float]) -> dict[str, Any]:
    """Target end-effector position, forwarded to the controller unsolved."""
    try:
        values = [float(v) for v in position]
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid ikmove position: {e}") from None
    if len(values) != 3:
        raise ProtocolError(f"ikmove position must have 3 components, got {len(values)}")
    return {"type": "ikmove", "position": values}


def parse_state(raw: Union[str, bytes]) -> Optional[list[float]]:
    """Decode an incoming state message.

    Returns None for the empty vector the controller sends before it is
    initialised.

    Raises:
        ProtocolError: If the payload is not a JSON list of numbers.
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid JSON: {e}") from None

    if not isinstance(payload, list):
        raise ProtocolError(f"Expected a state vector, got {type(payload).__name__}")
    if not payload:
        return None

    state = []
    for v in payload:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ProtocolError(f"State vector entry {v!r} is not a finite number")
        state.append(float(v))
    return state
