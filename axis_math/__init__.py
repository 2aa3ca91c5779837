"""
axis_math
---------
Rigid transforms and unit-quaternion helpers.
"""

from axis_math.axis_math import (
    IDENTITY_QUATERNION,
    Transform,
    normalize,
    quat_from_axis_angle,
    quat_from_rpy,
    quat_look_along,
    quat_multiply,
    quat_rotate,
    quat_to_rpy,
)

__all__ = [
    "IDENTITY_QUATERNION",
    "Transform",
    "normalize",
    "quat_from_axis_angle",
    "quat_from_rpy",
    "quat_look_along",
    "quat_multiply",
    "quat_rotate",
    "quat_to_rpy",
]
