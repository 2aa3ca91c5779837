"""
joint.py
--------
One-degree-of-freedom connector between two links.

A joint is a single class tagged with its variant (prismatic, revolute or
fixed); behaviour is selected by that tag rather than by subclassing.

Units: prismatic values and limits are millimetres, revolute values and
limits are degrees.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Optional, Sequence, Union

from axis_math import Transform, normalize, quat_from_axis_angle, quat_multiply, quat_rotate
from kinematics.errors import TopologyError
from kinematics.link import Link


class JointType(str, Enum):
    PRISMATIC = "prismatic"
    REVOLUTE = "revolute"
    FIXED = "fixed"


# Per-variant defaults: (min, max, max_velocity, max_acceleration)
_DEFAULT_LIMITS = {
    JointType.PRISMATIC: (-100.0, 100.0, 100.0, 100.0),   # mm, mm/s, mm/s²
    JointType.REVOLUTE:  (-180.0, 180.0, 180.0, 60.0),    # °, °/s, °/s²
}


class Joint:
    """
    A single degree of freedom between a *base* link and an *attachment* link.

    The joint frame sits at ``mount`` in the base link's local space. The
    attachment link is placed at ``pivot`` inside the joint frame, so the
    attachment's transform relative to its base is ``joint frame ∘ pivot``.
    The attachment is first placed when the chain accepts the joint, then
    on every ``update``.

    Attributes
    ----------
    name       : str         Identifier for this joint.
    kind       : JointType   Variant tag.
    base       : Link        Link the joint is mounted on.
    attachment : Link        Link moved by the joint.
    mount      : Transform   Rest placement of the joint frame in base space.
    pivot      : Transform   Placement of the attachment in joint space.
    transform  : Transform   Current placement of the joint frame in base space.
    axis       : tuple       Unit motion axis in joint space (None for fixed).
    value      : float       Current scalar position (0 for fixed).
    """

    def __init__(self, name: str, kind: Union[JointType, str], base: Link, attachment: Link,
                 mount: Optional[Transform] = None, pivot: Optional[Transform] = None) -> None:
        try:
            kind = JointType(kind)
        except ValueError:
            raise TopologyError(f"Unknown joint type '{kind}' for joint '{name}'") from None
        if base is attachment:
            raise TopologyError(f"Joint '{name}' cannot attach a link to itself")
        if attachment.parent is not None:
            raise TopologyError(f"Joint '{name}': link {attachment.name} is already attached to a joint")

        self.name = name
        self.kind = kind
        self.base = base
        self.attachment = attachment
        self.mount = mount or Transform.identity()
        self.pivot = pivot or Transform.identity()
        self.transform = self.mount
        self.value = 0.0

        if kind is JointType.FIXED:
            self.axis = None
            self.min = self.max = None
            self.max_velocity = self.max_acceleration = None
        else:
            self.axis = (0.0, 0.0, 1.0)
            self.min, self.max, self.max_velocity, self.max_acceleration = _DEFAULT_LIMITS[kind]

    # ── Variant constructors ──────────────────────────────────────────────────

    @classmethod
    def revolute(cls, name: str, base: Link, attachment: Link,
                 mount: Optional[Transform] = None, pivot: Optional[Transform] = None) -> Joint:
        return cls(name, JointType.REVOLUTE, base, attachment, mount, pivot)

    @classmethod
    def prismatic(cls, name: str, base: Link, attachment: Link,
                  mount: Optional[Transform] = None, pivot: Optional[Transform] = None) -> Joint:
        return cls(name, JointType.PRISMATIC, base, attachment, mount, pivot)

    @classmethod
    def fixed(cls, name: str, base: Link, attachment: Link,
              mount: Optional[Transform] = None, pivot: Optional[Transform] = None) -> Joint:
        return cls(name, JointType.FIXED, base, attachment, mount, pivot)

    # ── Configuration ─────────────────────────────────────────────────────────

    @property
    def is_fixed(self) -> bool:
        return self.kind is JointType.FIXED

    def set_axis(self, axis: Sequence[float]) -> Joint:
        """Set the motion axis (joint space). Ignored on fixed joints."""
        if self.is_fixed:
            return self
        self.axis = normalize(axis)
        return self

    def set_constraints(self, lower: float, upper: float) -> Joint:
        """Set the motion limits. Ignored on fixed joints."""
        if self.is_fixed:
            return self
        if lower > upper:
            raise ValueError(f"Joint '{self.name}': lower limit {lower} is above upper limit {upper}")
        self.min = float(lower)
        self.max = float(upper)
        return self

    def set_dynamics(self, max_velocity: float, max_acceleration: float) -> Joint:
        """Set the declared velocity/acceleration capability. Ignored on fixed joints."""
        if self.is_fixed:
            return self
        self.max_velocity = float(max_velocity)
        self.max_acceleration = float(max_acceleration)
        return self

    def constraints(self) -> Optional[tuple[float, float]]:
        if self.is_fixed:
            return None
        return (self.min, self.max)

    def within_limits(self, value: Optional[float] = None) -> bool:
        """True if *value* (default: the current value) lies inside the limits."""
        if self.is_fixed:
            return True
        value = self.value if value is None else value
        return self.min <= value <= self.max

    # ── Motion ────────────────────────────────────────────────────────────────

    def update(self, value: float) -> None:
        """Move the joint to *value* and re-place the attachment link.

        Prismatic joints translate along ``axis`` by the difference from the
        previous value. Revolute joints are recomputed from ``mount`` on
        every call; positive values turn clockwise seen from the tip of
        ``axis``. Fixed joints ignore the call.
        """
        if self.kind is JointType.PRISMATIC:
            delta = value - self.value
            step = quat_rotate(self.transform.orientation, self.axis)
            self.transform = self.transform.translated(
                (step[0] * delta, step[1] * delta, step[2] * delta))
        elif self.kind is JointType.REVOLUTE:
            turn = quat_from_axis_angle(self.axis, -math.radians(value))
            self.transform = Transform(position=self.mount.position,
                                       orientation=quat_multiply(self.mount.orientation, turn))
        else:
            return
        self.value = float(value)
        self.place_attachment()

    def place_attachment(self) -> None:
        """Set the attachment link's local transform from the current joint frame."""
        self.attachment.local_transform = self.transform.compose(self.pivot)

    # ── Serialisation ─────────────────────────────────────────────────────────

    def limit(self) -> Optional[dict[str, float]]:
        """Declared limits in chain units, or None for fixed joints."""
        if self.is_fixed:
            return None
        return {
            "min":              self.min,
            "max":              self.max,
            "max_velocity":     self.max_velocity,
            "max_acceleration": self.max_acceleration,
        }

    def snapshot(self) -> dict[str, Any]:
        """Return JSON-serializable state for this joint."""
        node: dict[str, Any] = {
            "type":       "Joint",
            "name":       self.name,
            "kind":       self.kind.value,
            "base":       self.base.name,
            "attachment": self.attachment.name,
            "value":      self.value,
        }
        if not self.is_fixed:
            node["axis"] = list(self.axis)
            node.update(self.limit())
        return node

    def __repr__(self) -> str:
        return (f"Joint({self.name!r}, {self.kind.value}, "
                f"{self.base.name}->{self.attachment.name}, value={self.value})")
