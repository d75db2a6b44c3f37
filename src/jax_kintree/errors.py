"""Exceptions raised by jax_kintree.

Every error derives from ``KinematicsError``, which is a ``ValueError`` so
callers that already guard lookups with ``except ValueError`` keep working.
"""

from typing import Optional


class KinematicsError(ValueError):
    """Base class for all kinematics errors."""


class NonFixedJointError(KinematicsError):
    """A chain holds a non-fixed joint but no joint values were supplied."""

    def __init__(self, joint_name: str):
        super().__init__(
            f"Joint '{joint_name}' is not fixed and no joint positions were given"
        )
        self.joint_name = joint_name


class JointNotFoundError(KinematicsError, LookupError):
    """A non-fixed joint has no value in the supplied joint-value source."""

    def __init__(self, joint_name: str):
        super().__init__(f"Joint '{joint_name}' not found in joint positions")
        self.joint_name = joint_name


class MalformedJointDataError(KinematicsError):
    """Joint names and positions can not be paired up."""


class NoPathError(KinematicsError, LookupError):
    """No chain connects the requested frames."""

    def __init__(self, message: str, frame: Optional[str] = None):
        super().__init__(message)
        self.frame = frame


class TreeParseError(KinematicsError):
    """A robot description could not be turned into a kinematic tree."""
