"""
JAX Kintree: forward-kinematics transforms over URDF kinematic trees.

Load a robot description, cut the chain between two frames and compose the
rigid-body transform along it, with joint positions taken from a mapping,
parallel name/position sequences or a joint state record.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .chain import forward_kinematics, resolve_transform, segment_transform
from .core import Chain, JointType, Segment, TreeModel
from .errors import (
    JointNotFoundError,
    KinematicsError,
    MalformedJointDataError,
    NoPathError,
    NonFixedJointError,
    TreeParseError,
)
from .joint_values import (
    JointState,
    JointStateValues,
    JointValues,
    MappingJointValues,
    SequenceJointValues,
    as_joint_values,
)
from .tree import KinematicTree

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "KinematicTree",
    "Chain",
    "JointType",
    "Segment",
    "TreeModel",
    "resolve_transform",
    "segment_transform",
    "forward_kinematics",
    "JointState",
    "JointValues",
    "MappingJointValues",
    "SequenceJointValues",
    "JointStateValues",
    "as_joint_values",
    "KinematicsError",
    "NonFixedJointError",
    "JointNotFoundError",
    "MalformedJointDataError",
    "NoPathError",
    "TreeParseError",
]
