"""
axis_math.py
------------
Spatial transform and unit-quaternion utilities.

Quaternions are stored as ``(w, x, y, z)`` tuples. Lengths are in
millimetres throughout the kinematics code; angles passed to these helpers
are radians unless stated otherwise.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

Vector3 = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]

IDENTITY_QUATERNION: Quaternion = (1.0, 0.0, 0.0, 0.0)
WORLD_UP: Vector3 = (0.0, 0.0, 1.0)

_NORM_TOLERANCE = 1e-12


@dataclass(frozen=True)
class Transform:
    """Rigid placement: a position and a unit-quaternion orientation.

    The orientation is normalised on construction. Instances are immutable;
    every operation returns a new Transform.
    """
    position: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = field(default=IDENTITY_QUATERNION)

    def __post_init__(self) -> None:
        position = tuple(float(v) for v in self.position)
        if len(position) != 3:
            raise ValueError(f"Position must have 3 components, got {len(position)}")
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "orientation", quat_normalize(self.orientation))

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    @classmethod
    def from_direction(cls, position: Sequence[float] = (0.0, 0.0, 0.0),
                       direction: Sequence[float] = (0.0, 0.0, 1.0)) -> Transform:
        """Frame at *position* whose local +Z looks along *direction*."""
        return cls(position=tuple(position), orientation=quat_look_along(direction))

    @classmethod
    def from_axis_angle(cls, axis: Sequence[float], angle: float,
                        position: Sequence[float] = (0.0, 0.0, 0.0)) -> Transform:
        """Pure rotation of *angle* radians about *axis*, placed at *position*."""
        return cls(position=tuple(position), orientation=quat_from_axis_angle(axis, angle))

    def compose(self, child: Transform) -> Transform:
        """Return *child* expressed in the frame that *self* is expressed in.

        position = self.orientation · child.position + self.position
        orientation = self.orientation · child.orientation
        """
        offset = quat_rotate(self.orientation, child.position)
        world_pos = (
            self.position[0] + offset[0],
            self.position[1] + offset[1],
            self.position[2] + offset[2],
        )
        return Transform(position=world_pos,
                         orientation=quat_multiply(self.orientation, child.orientation))

    def inverse(self) -> Transform:
        """Return the transform that undoes this one: ``t.compose(t.inverse())`` is identity."""
        inv = quat_conjugate(self.orientation)
        p = quat_rotate(inv, self.position)
        return Transform(position=(-p[0], -p[1], -p[2]), orientation=inv)

    def translated(self, offset: Sequence[float]) -> Transform:
        """Return a copy moved by *offset*, expressed in the parent frame."""
        return Transform(
            position=tuple(a + float(b) for a, b in zip(self.position, offset)),
            orientation=self.orientation,
        )

    def apply(self, point: Sequence[float]) -> Vector3:
        """Map a point from this frame's local space into its parent space."""
        r = quat_rotate(self.orientation, point)
        return (r[0] + self.position[0], r[1] + self.position[1], r[2] + self.position[2])

    def normal(self) -> Vector3:
        """Direction of the local +Z axis in the parent frame."""
        return quat_rotate(self.orientation, (0.0, 0.0, 1.0))

    def isclose(self, other: Transform, atol: float = 1e-9) -> bool:
        """Approximate equality; ``q`` and ``-q`` describe the same orientation."""
        if not np.allclose(self.position, other.position, rtol=0.0, atol=atol):
            return False
        dot = abs(float(np.dot(self.orientation, other.orientation)))
        return abs(1.0 - dot) <= atol

    def to_dict(self) -> dict[str, list[float]]:
        return {
            "position":    list(self.position),
            "orientation": list(self.orientation),
        }

    def to_matrix(self) -> np.ndarray:
        """Convert to a 4x4 homogeneous transformation matrix."""
        mat = np.eye(4)
        mat[:3, :3] = quat_to_matrix(self.orientation)
        mat[:3, 3] = self.position
        return mat


def quat_normalize(q: Sequence[float]) -> Quaternion:
    """Return *q* scaled to unit length.

    Quaternions already within tolerance of unit length are returned
    unchanged so that repeated construction never perturbs stored values.
    """
    if len(q) != 4:
        raise ValueError(f"Quaternion must have 4 components, got {len(q)}")
    w, x, y, z = (float(v) for v in q)
    n = math.sqrt(w * w + x * x + y * y + z * z)
    if n == 0.0 or not math.isfinite(n):
        raise ValueError(f"Cannot normalise quaternion {tuple(q)}")
    if abs(n - 1.0) <= _NORM_TOLERANCE:
        return (w, x, y, z)
    return (w / n, x / n, y / n, z / n)


def quat_multiply(a: Quaternion, b: Quaternion) -> Quaternion:
    """Hamilton product ``a · b`` (apply *b* first, then *a*)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return (
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    )


def quat_conjugate(q: Quaternion) -> Quaternion:
    w, x, y, z = q
    return (w, -x, -y, -z)


def quat_rotate(q: Quaternion, v: Sequence[float]) -> Vector3:
    """Rotate vector *v* by unit quaternion *q*."""
    w, x, y, z = q
    vx, vy, vz = (float(c) for c in v)
    # t = 2 * (q_vec × v)
    tx = 2.0 * (y * vz - z * vy)
    ty = 2.0 * (z * vx - x * vz)
    tz = 2.0 * (x * vy - y * vx)
    return (
        vx + w * tx + (y * tz - z * ty),
        vy + w * ty + (z * tx - x * tz),
        vz + w * tz + (x * ty - y * tx),
    )


def quat_from_axis_angle(axis: Sequence[float], angle: float) -> Quaternion:
    """Quaternion rotating *angle* radians counter-clockwise about *axis*."""
    ux, uy, uz = normalize(axis)
    half = angle / 2.0
    s = math.sin(half)
    return (math.cos(half), ux * s, uy * s, uz * s)


def quat_to_matrix(q: Quaternion) -> np.ndarray:
    """3x3 rotation matrix from a unit quaternion."""
    w, x, y, z = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w),     2 * (x * z + y * w)],
        [2 * (x * y + z * w),     1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w),     2 * (y * z + x * w),     1 - 2 * (x * x + y * y)],
    ])


def matrix_to_quat(m: np.ndarray) -> Quaternion:
    """Unit quaternion from a 3x3 rotation matrix (Shepperd's method)."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = 2.0 * math.sqrt(trace + 1.0)
        q = (0.25 * s,
             (m[2, 1] - m[1, 2]) / s,
             (m[0, 2] - m[2, 0]) / s,
             (m[1, 0] - m[0, 1]) / s)
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = ((m[2, 1] - m[1, 2]) / s,
             0.25 * s,
             (m[0, 1] + m[1, 0]) / s,
             (m[0, 2] + m[2, 0]) / s)
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = ((m[0, 2] - m[2, 0]) / s,
             (m[0, 1] + m[1, 0]) / s,
             0.25 * s,
             (m[1, 2] + m[2, 1]) / s)
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = ((m[1, 0] - m[0, 1]) / s,
             (m[0, 2] + m[2, 0]) / s,
             (m[1, 2] + m[2, 1]) / s,
             0.25 * s)
    return quat_normalize(tuple(float(c) for c in q))


def quat_from_rpy(roll: float, pitch: float, yaw: float) -> Quaternion:
    """Quaternion for fixed-axis roll/pitch/yaw: about X, then Y, then Z."""
    qx = quat_from_axis_angle((1.0, 0.0, 0.0), roll)
    qy = quat_from_axis_angle((0.0, 1.0, 0.0), pitch)
    qz = quat_from_axis_angle((0.0, 0.0, 1.0), yaw)
    return quat_normalize(quat_multiply(qz, quat_multiply(qy, qx)))


def quat_to_rpy(q: Quaternion) -> Vector3:
    """Inverse of ``quat_from_rpy``. At pitch ±90° yaw is folded into roll."""
    m = quat_to_matrix(q)
    if abs(m[2, 0]) < 1.0 - 1e-12:
        roll = math.atan2(m[2, 1], m[2, 2])
        pitch = math.asin(-m[2, 0])
        yaw = math.atan2(m[1, 0], m[0, 0])
    else:
        pitch = math.copysign(math.pi / 2, -m[2, 0])
        roll = math.atan2(-m[2, 0] * m[0, 1], m[1, 1])
        yaw = 0.0
    return (float(roll), float(pitch), float(yaw))


def quat_look_along(direction: Sequence[float], up: Sequence[float] = WORLD_UP) -> Quaternion:
    """Orientation whose local +Z points along *direction*.

    Local X is ``up × direction`` and local Y completes the right-handed
    frame. When *direction* is parallel to *up*, +Y is used as the up hint.
    """
    z = np.array(normalize(direction))
    u = np.array(normalize(up))
    x = np.cross(u, z)
    if np.linalg.norm(x) < 1e-9:
        x = np.cross(np.array([0.0, 1.0, 0.0]), z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return matrix_to_quat(np.column_stack((x, y, z)))


def normalize(v: Sequence[float]) -> Vector3:
    """Return *v* scaled to unit length."""
    arr = np.asarray(v, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    n = float(np.linalg.norm(arr))
    if n < 1e-12:
        raise ValueError(f"Cannot normalise zero-length vector {tuple(v)}")
    return (float(arr[0] / n), float(arr[1] / n), float(arr[2] / n))
