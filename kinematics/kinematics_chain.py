"""
kinematics_chain.py
-------------------
KinematicsChain owns the links and joints of a robot, keeps the
authoritative joint state vector and computes forward kinematics.
"""
from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from axis_math import Transform
from kinematics.errors import StateLengthError, TopologyError
from kinematics.joint import Joint
from kinematics.link import Link

log = logging.getLogger(__name__)

State = list[float]
Sender = Callable[[dict[str, Any]], None]
Listener = Callable[[State], None]


class KinematicsChain:
    """
    A tree of links connected by joints.

    Links are indexed in the order they are added; the first link added is
    the root and sits at the scene origin. Every joint hangs an attachment
    link off a base link, and each link can be the attachment of at most
    one joint.

    The state vector holds one value per non-fixed joint, in the order the
    joints were added. It only changes through ``update``, which is fed by
    the controller. ``move`` merely asks the controller for a new state.

    Usage:
        chain = KinematicsChain(sender=connection.send)
        base = chain.add_link(Link())
        arm = chain.add_link(Link(Extent(100, 100, 500)))
        chain.add_joint(Joint.revolute("swing", base, arm,
                                       pivot=Transform(position=(0, 0, 250))))

        chain.move([45.0])          # request; state is unchanged
        chain.update([45.0])        # controller echo; joints move
        world_tf = chain.world_transform(arm)
    """

    def __init__(self, sender: Optional[Sender] = None) -> None:
        self._links: list[Link] = []
        self._joints: list[Joint] = []
        self._motive: list[Joint] = []
        self._state: State = []
        self._sender = sender
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    # ── Assembly ──────────────────────────────────────────────────────────────

    def add_link(self, link: Link) -> Link:
        """Append *link* and name it after its index."""
        if link.index is not None:
            raise TopologyError(f"Link {link.index} has already been added to a chain")
        with self._lock:
            link.index = len(self._links)
            self._links.append(link)
        return link

    def add_joint(self, joint: Joint) -> Joint:
        """Append *joint*, wiring its attachment under its base.

        The attachment is only placed in the joint frame once every
        topology check has passed.
        """
        base, attachment = joint.base, joint.attachment
        for link in (base, attachment):
            if not self._owns(link):
                raise TopologyError(f"Joint '{joint.name}' references a link that is not in this chain")
        if attachment.parent is not None:
            raise TopologyError(
                f"Joint '{joint.name}': link {attachment.name} is already attached to a joint")
        if attachment.index in self._ancestry(base):
            raise TopologyError(
                f"Joint '{joint.name}': attaching link {attachment.name} under "
                f"link {base.name} would create a cycle")

        with self._lock:
            attachment.parent = base.index
            joint.place_attachment()
            self._joints.append(joint)
            if not joint.is_fixed:
                self._motive.append(joint)
                self._state.append(joint.value)
        return joint

    def _owns(self, link: Link) -> bool:
        return (link.index is not None and link.index < len(self._links)
                and self._links[link.index] is link)

    def _ancestry(self, link: Link) -> list[int]:
        """Indices from *link* up to its root, *link* included."""
        chain = [link.index]
        parent = link.parent
        while parent is not None:
            chain.append(parent)
            parent = self._links[parent].parent
        return chain

    # ── Access ────────────────────────────────────────────────────────────────

    @property
    def links(self) -> list[Link]:
        return list(self._links)

    @property
    def joints(self) -> list[Joint]:
        return list(self._joints)

    @property
    def motive_joints(self) -> list[Joint]:
        """Non-fixed joints, in state-vector order."""
        return list(self._motive)

    @property
    def state(self) -> State:
        """Copy of the authoritative state vector."""
        with self._lock:
            return list(self._state)

    def get_link(self, index: Union[int, str]) -> Link:
        """Return the link with the given index (or its string name)."""
        try:
            return self._links[int(index)]
        except (IndexError, ValueError):
            raise KeyError(f"Link '{index}' not found in chain") from None

    def get_joint(self, name: str) -> Joint:
        for joint in self._joints:
            if joint.name == name:
                return joint
        raise KeyError(f"Joint '{name}' not found in chain")

    def state_index(self, joint: Union[Joint, str]) -> int:
        """Position of a non-fixed joint in the state vector."""
        if isinstance(joint, str):
            joint = self.get_joint(joint)
        for i, candidate in enumerate(self._motive):
            if candidate is joint:
                return i
        raise KeyError(f"Joint '{joint.name}' has no entry in the state vector")

    def limits(self) -> list[dict[str, Any]]:
        """One limit record per non-fixed joint, in state-vector order."""
        return [{"index": i, **joint.limit()} for i, joint in enumerate(self._motive)]

    # ── State synchronisation ─────────────────────────────────────────────────

    def bind_sender(self, sender: Optional[Sender]) -> None:
        """Set the callable used to push messages to the controller."""
        self._sender = sender

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the new state after every applied update.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def move(self, desired: Sequence[float]) -> None:
        """Ask the controller to move to *desired*. Local joints are untouched."""
        desired = [float(v) for v in desired]
        if len(desired) != len(self._motive):
            raise StateLengthError(len(self._motive), len(desired))
        if self._sender is None:
            log.warning("No controller bound, dropping move request %s", desired)
            return
        self._sender({"type": "move", "state": desired})

    def update(self, new_state: Iterable[Any]) -> bool:
        """Apply a state vector received from the controller.

        Vectors of the wrong length or with non-numeric or non-finite
        entries are discarded with a warning and leave the chain untouched.
        Values outside a joint's limits are applied as given.

        Returns True if the state was applied.
        """
        try:
            values = [float(v) for v in new_state]
        except (TypeError, ValueError) as e:
            log.warning("Discarding state vector with non-numeric entries: %s", e)
            return False
        if not all(math.isfinite(v) for v in values):
            log.warning("Discarding state vector with non-finite entries: %s", values)
            return False

        with self._lock:
            if len(values) != len(self._motive):
                log.warning("Discarding state vector: %s", StateLengthError(len(self._motive), len(values)))
                return False
            for joint, value in zip(self._motive, values):
                joint.update(value)
                if not joint.within_limits():
                    log.debug("Joint '%s' at %s is outside [%s, %s]",
                              joint.name, value, joint.min, joint.max)
            self._state = values
            snapshot = list(values)

        log.debug("Applied state %s", snapshot)
        for listener in list(self._listeners):
            listener(list(snapshot))
        return True

    # ── Forward kinematics ────────────────────────────────────────────────────

    def world_transform(self, link: Union[Link, int]) -> Transform:
        """Compose local transforms from the root down to *link*."""
        if not isinstance(link, Link):
            link = self.get_link(link)
        with self._lock:
            result = link.local_transform
            parent = link.parent
            while parent is not None:
                node = self._links[parent]
                result = node.local_transform.compose(result)
                parent = node.parent
            return result

    def world_transforms(self) -> list[Transform]:
        """World transforms of every link, taken under one lock."""
        with self._lock:
            return [self.world_transform(link) for link in self._links]

    # ── Serialisation ─────────────────────────────────────────────────────────

    def static_definition(self) -> dict[str, Any]:
        """Structure of the chain: links and joints, without live state."""
        return {
            "links":  [link.snapshot() for link in self._links],
            "joints": [joint.snapshot() for joint in self._joints],
        }

    def snapshot(self) -> dict[str, Any]:
        """Current state vector and world matrix of every link."""
        with self._lock:
            return {
                "state": list(self._state),
                "links": [
                    {"name": link.name, "matrix": tf.to_matrix().flatten().tolist()}
                    for link, tf in zip(self._links, self.world_transforms())
                ],
            }
