"""
errors.py
---------
Exceptions raised by the kinematics package.
"""


class KinematicsError(Exception):
    """Base class for kinematic chain errors."""


class TopologyError(KinematicsError):
    """The link/joint graph cannot be assembled as requested.

    Raised while the chain is being built; the partially built chain must
    be discarded.
    """


class StateLengthError(KinematicsError):
    """A state vector does not have one entry per non-fixed joint."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"State vector has {actual} entries, expected {expected}")
        self.expected = expected
        self.actual = actual


class ExportError(KinematicsError):
    """The chain cannot be serialised to a robot description."""
