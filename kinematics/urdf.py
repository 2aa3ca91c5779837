"""
urdf.py
-------
Serialise a KinematicsChain to URDF text.

Each link gets its own URDF frame: the origin written for the joint that
carries it, or the scene origin for the root. Joint origins carry only the
roll/pitch of the joint's +Z direction, so motion axes and link geometry are
turned into that written frame before they are emitted. Every joint origin
is expressed relative to its parent link's URDF frame.

The chain works in millimetres and degrees; lengths are scaled by
``ExportConfig.length_scale`` and revolute limits are written in
``ExportConfig.revolute_unit``.
"""
from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Sequence

from axis_math import Transform, quat_from_rpy, quat_rotate, quat_to_rpy
from kinematics.errors import ExportError
from kinematics.joint import Joint, JointType
from kinematics.kinematics_chain import KinematicsChain
from kinematics.link import Link

log = logging.getLogger(__name__)

REVOLUTE_UNITS = ("radians", "degrees")

Angles = tuple[float, float, float]


@dataclass(frozen=True)
class ExportConfig:
    """Options for ``export``.

    Attributes:
        robot_name: Value of the ``<robot name>`` attribute.
        revolute_unit: Unit for revolute limits and velocity,
            ``'radians'`` (URDF convention) or ``'degrees'``.
        length_scale: Factor from chain lengths to output lengths
            (millimetres to metres by default).
    """

    robot_name: str = "robot"
    revolute_unit: str = "radians"
    length_scale: float = 0.001

    def __post_init__(self) -> None:
        if self.revolute_unit not in REVOLUTE_UNITS:
            raise ValueError(
                f"Invalid revolute unit '{self.revolute_unit}', must be one of {REVOLUTE_UNITS}")
        if self.length_scale <= 0:
            raise ValueError("length_scale must be positive")

    def angle(self, degrees: float) -> float:
        return math.radians(degrees) if self.revolute_unit == "radians" else degrees


def export(chain: KinematicsChain, config: Optional[ExportConfig] = None) -> str:
    """Return the URDF description of *chain*.

    Output depends only on the chain's structure and joint rest frames, so
    two calls on the same chain give identical text.

    Raises:
        ExportError: If a joint has an unsupported type.
    """
    config = config or ExportConfig()
    frames = _Frames(chain)

    robot = ET.Element("robot", name=config.robot_name)
    for link in chain.links:
        robot.append(_link_element(link, frames.offset(link), config))
    for i, joint in enumerate(chain.joints):
        robot.append(_joint_element(i, joint, *frames.joint(joint), config))

    ET.indent(robot, space="  ")
    text = '<?xml version="1.0"?>\n' + ET.tostring(robot, encoding="unicode") + "\n"
    log.info("Exported %d links and %d joints", len(chain.links), len(chain.joints))
    return text


class _Frames:
    """URDF frames of every link in a chain.

    A joint origin is written with the roll/pitch of its +Z direction only,
    so the written frame can be turned about Z against the joint's real
    frame. ``joint`` returns that written origin together with the
    correction ``origin⁻¹ ∘ real frame``; axes and child geometry are
    expressed through the correction.
    """

    def __init__(self, chain: KinematicsChain) -> None:
        self._parent_joint = {joint.attachment.index: joint for joint in chain.joints}
        self._joints: dict[int, tuple[Transform, Angles, Transform]] = {}

    def offset(self, link: Link) -> Transform:
        """Placement of *link* inside its own URDF frame."""
        joint = self._parent_joint.get(link.index)
        if joint is None:
            return link.local_transform
        _, _, correction = self.joint(joint)
        return correction.compose(joint.pivot)

    def joint(self, joint: Joint) -> tuple[Transform, Angles, Transform]:
        """Written origin of *joint* in its base link's URDF frame, its rpy and its correction."""
        key = joint.attachment.index
        if key not in self._joints:
            frame = self.offset(joint.base).compose(joint.mount)
            angles = rpy(frame)
            origin = Transform(position=frame.position, orientation=quat_from_rpy(*angles))
            self._joints[key] = (origin, angles, origin.inverse().compose(frame))
        return self._joints[key]


def rpy(transform: Transform) -> Angles:
    """Roll/pitch/yaw that reproduce the local +Z direction of *transform*.

    Joint axes are kept in a plane by construction, so yaw is always 0.
    """
    nx, ny, nz = transform.normal()
    roll = math.asin(max(-1.0, min(1.0, -ny)))
    pitch = math.atan2(nx, nz)
    return (roll, pitch, 0.0)


def _fmt(values: Sequence[float]) -> str:
    out = []
    for v in values:
        v = round(float(v), 9)
        if v == 0.0:
            v = 0.0
        out.append(f"{v:.9g}")
    return " ".join(out)


def _origin(parent: ET.Element, position: Sequence[float], angles: Sequence[float],
            config: ExportConfig) -> None:
    xyz = [c * config.length_scale for c in position]
    ET.SubElement(parent, "origin", xyz=_fmt(xyz), rpy=_fmt(angles))


def _link_element(link: Link, offset: Transform, config: ExportConfig) -> ET.Element:
    element = ET.Element("link", name=link.name)
    angles = quat_to_rpy(offset.orientation)
    visual = ET.SubElement(element, "visual")
    _origin(visual, offset.position, angles, config)
    if link.extent is None:
        return element

    size = _fmt([c * config.length_scale for c in link.extent.as_tuple()])
    geometry = ET.SubElement(visual, "geometry")
    ET.SubElement(geometry, "box", size=size)

    collision = ET.SubElement(element, "collision")
    _origin(collision, offset.position, angles, config)
    geometry = ET.SubElement(collision, "geometry")
    ET.SubElement(geometry, "box", size=size)
    return element


def _joint_element(i: int, joint: Joint, origin: Transform, angles: Angles,
                   correction: Transform, config: ExportConfig) -> ET.Element:
    kind = getattr(joint.kind, "value", joint.kind)
    if kind not in (JointType.REVOLUTE.value, JointType.PRISMATIC.value, JointType.FIXED.value):
        raise ExportError(f"Cannot export joint '{joint.name}' of unsupported type '{kind}'")

    element = ET.Element("joint", name=joint.name or f"joint_{i}", type=kind)
    _origin(element, origin.position, angles, config)
    ET.SubElement(element, "parent", link=joint.base.name)
    ET.SubElement(element, "child", link=joint.attachment.name)
    if kind == JointType.FIXED.value:
        return element

    axis = quat_rotate(correction.orientation, joint.axis)
    if kind == JointType.REVOLUTE.value:
        # URDF turns counter-clockwise for positive values, the chain clockwise
        axis = tuple(-c for c in axis)
        convert = config.angle
    else:
        def convert(v: float) -> float:
            return v * config.length_scale
    ET.SubElement(element, "axis", xyz=_fmt(axis))
    ET.SubElement(element, "limit",
                  lower=_fmt([convert(joint.min)]),
                  upper=_fmt([convert(joint.max)]),
                  effort="0",
                  velocity=_fmt([convert(joint.max_velocity)]))
    return element
