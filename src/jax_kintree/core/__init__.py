"""Kinematic tree and chain data structures.

Trees are flattened into an index-linked arena of segments so that they stay
immutable and compatible with JAX transformations.
"""

from .model import Chain, JointType, Segment, TreeModel

__all__ = ["Chain", "JointType", "Segment", "TreeModel"]
