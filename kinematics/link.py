from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from axis_math import Transform

if TYPE_CHECKING:
    from kinematics.kinematics_chain import KinematicsChain

_PRINCIPAL_AXES = {
    'x': (1.0, 0.0, 0.0),
    'y': (0.0, 1.0, 0.0),
    'z': (0.0, 0.0, 1.0),
}


@dataclass(frozen=True)
class Extent:
    """Box dimensions of a link in millimetres (local X, Y, Z)."""
    width: float
    height: float
    depth: float

    def __post_init__(self) -> None:
        for name in ("width", "height", "depth"):
            if getattr(self, name) < 0:
                raise ValueError(f"Extent {name} must be non-negative")

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.width, self.height, self.depth)


@dataclass(eq=False)
class Link:
    """
    A rigid body segment in a kinematic chain.

    Links are created without an identity; the owning chain assigns the
    next sequential index when the link is added and the link's name is
    that index as a string.

    Attributes
    ----------
    extent          : Extent | None  Box dimensions, or None for a zero-size link.
    index           : int | None     Position in the chain, set by ``add_link``.
    parent          : int | None     Index of the link this one is attached to.
    local_transform : Transform      Placement relative to the parent link.
    """
    extent: Optional[Extent] = None
    index: Optional[int] = None
    parent: Optional[int] = None
    local_transform: Transform = field(default_factory=Transform)

    @property
    def name(self) -> str:
        return "" if self.index is None else str(self.index)

    def world_transform(self, chain: KinematicsChain) -> Transform:
        return chain.world_transform(self)

    def extent_along_axis(self, axis: Union[str, Sequence[float]]) -> float:
        """Half-length of the box along *axis* ('x', 'y', 'z' or a local vector).

        For an arbitrary direction this is the support distance of the box,
        which reduces to half the width/height/depth on a principal axis.
        A link without an extent returns 0.
        """
        if self.extent is None:
            return 0.0
        if isinstance(axis, str):
            try:
                axis = _PRINCIPAL_AXES[axis.lower()]
            except KeyError:
                raise ValueError(f"Invalid axis '{axis}', must be 'x', 'y', or 'z'") from None
        ax, ay, az = (abs(float(c)) for c in axis)
        n = (ax * ax + ay * ay + az * az) ** 0.5
        if n == 0.0:
            raise ValueError("Axis must be non-zero")
        w, h, d = self.extent.as_tuple()
        return (ax * w + ay * h + az * d) / (2.0 * n)

    def snapshot(self) -> dict[str, Any]:
        """Return JSON-serializable structure for this link."""
        return {
            "type":   "Link",
            "name":   self.name,
            "parent": None if self.parent is None else str(self.parent),
            "extent": None if self.extent is None else list(self.extent.as_tuple()),
        }
