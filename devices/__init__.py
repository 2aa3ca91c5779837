"""
devices
-------
Robot device implementations using kinematic chains.
"""

from devices.robot_arm import default_chain

__all__ = ["default_chain"]
