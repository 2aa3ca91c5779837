"""
kinematics
----------
Kinematic chain modeling: Links, Joints, KinematicsChain and URDF export.
"""

from kinematics.desired_state import DesiredState
from kinematics.descriptor import anchor, chain_from_descriptor, chain_from_file, mount
from kinematics.errors import ExportError, KinematicsError, StateLengthError, TopologyError
from kinematics.joint import Joint, JointType
from kinematics.kinematics_chain import KinematicsChain
from kinematics.link import Extent, Link
from kinematics.urdf import ExportConfig, export

__all__ = [
    "DesiredState",
    "ExportConfig",
    "ExportError",
    "Extent",
    "Joint",
    "JointType",
    "KinematicsChain",
    "KinematicsError",
    "Link",
    "StateLengthError",
    "TopologyError",
    "anchor",
    "chain_from_descriptor",
    "chain_from_file",
    "export",
    "mount",
]
