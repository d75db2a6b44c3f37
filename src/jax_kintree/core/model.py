"""Kinematic tree data structures.

Trees are stored as an arena: one ``Segment`` per link, addressed by integer
index, with ``parent_indices`` linking each link to its parent. Chains are
ordered tuples of segments cut out of that arena. Everything is an immutable
flax struct dataclass, so the numeric parts are JAX PyTree leaves and the
names and topology are static.
"""

import enum
from typing import Optional, Tuple

import jax
from flax import struct

Array = jax.Array


class JointType(str, enum.Enum):
    """Joint types that carry kinematic meaning."""

    FIXED = "fixed"
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"

    @property
    def is_fixed(self) -> bool:
        return self is JointType.FIXED

    @property
    def is_rotational(self) -> bool:
        return self in (JointType.REVOLUTE, JointType.CONTINUOUS)


@struct.dataclass
class Segment:
    """A link together with the joint connecting it to its parent.

    Attributes:
        name: Name of the child frame (the link this segment ends in).
        parent: Name of the parent frame. Empty for the tree root.
        joint_name: Name of the joint. Empty for the tree root.
        joint_type: The joint's ``JointType``.
        origin: (4, 4) fixed offset from the parent frame to the joint frame.
        axis: (6,) unit twist [vx, vy, vz, wx, wy, wz] of the joint motion.
              Revolute joints use the angular half, prismatic joints the
              linear half, fixed joints are all zero.
        reversed: True when a chain walks this segment from child to parent.
        mimic_joint: Joint whose position drives this one, if any.
        mimic_multiplier: Scale applied to the mimicked position.
        mimic_offset: Offset added after scaling.
    """
    name: str = struct.field(pytree_node=False)
    parent: str = struct.field(pytree_node=False)
    joint_name: str = struct.field(pytree_node=False)
    joint_type: JointType = struct.field(pytree_node=False)
    origin: Array
    axis: Array
    reversed: bool = struct.field(pytree_node=False, default=False)
    mimic_joint: Optional[str] = struct.field(pytree_node=False, default=None)
    mimic_multiplier: float = struct.field(pytree_node=False, default=1.0)
    mimic_offset: float = struct.field(pytree_node=False, default=0.0)

    @property
    def is_fixed(self) -> bool:
        return self.joint_type.is_fixed

    @property
    def start(self) -> str:
        """Frame this segment starts from in traversal order."""
        return self.name if self.reversed else self.parent

    @property
    def end(self) -> str:
        """Frame this segment ends in in traversal order."""
        return self.parent if self.reversed else self.name

    def flipped(self) -> "Segment":
        """The same segment traversed in the opposite direction."""
        return self.replace(reversed=not self.reversed)


@struct.dataclass
class Chain:
    """Ordered segments leading from ``base`` to ``tip``.

    An empty chain (``base == tip``) resolves to the identity transform.
    """
    base: str = struct.field(pytree_node=False)
    tip: str = struct.field(pytree_node=False)
    segments: Tuple[Segment, ...] = ()

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    @property
    def joint_names(self) -> Tuple[str, ...]:
        """Names of the non-fixed joints in traversal order."""
        return tuple(s.joint_name for s in self.segments if not s.is_fixed)


@struct.dataclass
class TreeModel:
    """Immutable arena representation of a kinematic tree.

    Attributes:
        link_names: Tuple of all link names in breadth-first order from the
                    root. Index corresponds to link ID.
        joint_names: Tuple of all actuated (non-fixed) joint names.
        parent_indices: parent_indices[i] is the parent link index of link i.
                        The root (index 0) parents itself.
        segments: segments[i] is the segment ending in link i. The root holds
                  a fixed identity segment.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Tuple[int, ...] = struct.field(pytree_node=False)
    segments: Tuple[Segment, ...]

    @property
    def root(self) -> str:
        return self.link_names[0]

    def link_index(self, name: str) -> Optional[int]:
        """Index of link ``name``, or None if the tree has no such link."""
        try:
            return self.link_names.index(name)
        except ValueError:
            return None

    def ancestry(self, index: int) -> Tuple[int, ...]:
        """Indices from link ``index`` up to and including the root."""
        path = [index]
        while path[-1] != 0:
            path.append(self.parent_indices[path[-1]])
        return tuple(path)
