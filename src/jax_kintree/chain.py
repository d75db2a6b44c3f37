"""Forward kinematics over chains and trees.

``resolve_transform`` walks a chain from base to tip and composes the local
transform of every segment. ``forward_kinematics`` computes the pose of every
link of a tree in its root frame with a single ``jax.lax.scan``.
"""

from typing import Any, Dict, Optional, Sequence

import jax
import jax.numpy as jnp
from jax import Array

from .core import Chain, Segment, TreeModel
from .errors import JointNotFoundError, MalformedJointDataError, NonFixedJointError
from .joint_values import JointValues, Scalar, as_joint_values
from .transforms import se3


def segment_transform(segment: Segment, q: Scalar = 0.0) -> Array:
    """Local transform of ``segment`` with its joint at position ``q``.

    Forward segments give the pose of the child frame in the parent frame,
    ``origin @ exp(axis * q)``. Reversed segments give its inverse. ``q`` is
    ignored for fixed joints.

    Args:
        segment: The segment to evaluate
        q: Joint position (radians for rotational joints, meters for
           prismatic joints)

    Returns:
        (4, 4) SE(3) transform
    """
    T = segment.origin
    if not segment.is_fixed:
        q = jnp.asarray(q, dtype=segment.axis.dtype)
        T = se3.multiply(T, se3.exp(segment.axis * q))
    if segment.reversed:
        T = se3.inverse(T)
    return T


def joint_position(segment: Segment, values: JointValues) -> Scalar:
    """Position of the joint of a non-fixed ``segment``.

    A value stored under the joint's own name wins. Otherwise a mimic joint
    follows the joint it mimics: ``multiplier * q + offset``.

    Raises:
        JointNotFoundError: if no value can be found.
    """
    q = values.lookup(segment.joint_name)
    if q is None and segment.mimic_joint is not None:
        q_mimic = values.lookup(segment.mimic_joint)
        if q_mimic is not None:
            q = segment.mimic_multiplier * q_mimic + segment.mimic_offset
    if q is None:
        raise JointNotFoundError(segment.joint_name)
    return q


def resolve_transform(chain: Chain, joints: Any = None,
                      positions: Optional[Sequence[Scalar]] = None) -> Array:
    """Compute the transform from the base of ``chain`` to its tip.

    Accepted call forms:

    - ``resolve_transform(chain)``: every joint must be fixed
    - ``resolve_transform(chain, {"joint": q, ...})``
    - ``resolve_transform(chain, names, positions)``
    - ``resolve_transform(chain, joint_state)``

    Args:
        chain: Segments to walk from base to tip
        joints: Joint values: a mapping, a ``JointState``, a ``JointValues``
                source, or a sequence of names when ``positions`` is given
        positions: Joint positions parallel to ``joints``

    Returns:
        (4, 4) SE(3) pose of the tip frame expressed in the base frame

    Raises:
        NonFixedJointError: a non-fixed joint is met and no values were given
        JointNotFoundError: a non-fixed joint has no value
        MalformedJointDataError: names and positions differ in length
    """
    if joints is None and positions is not None:
        raise MalformedJointDataError("Joint positions given without joint names")
    values = None if joints is None else as_joint_values(joints, positions)

    T = se3.identity()
    for segment in chain.segments:
        if segment.is_fixed:
            local = segment_transform(segment)
        elif values is None:
            raise NonFixedJointError(segment.joint_name)
        else:
            local = segment_transform(segment, joint_position(segment, values))
        T = se3.multiply(T, local)
    return T


def link_positions(tree: TreeModel, joints: Any = None,
                   positions: Optional[Sequence[Scalar]] = None) -> Array:
    """Joint position of the segment ending in every link, in link order.

    Fixed segments (and the root) get 0.
    """
    if joints is None and positions is not None:
        raise MalformedJointDataError("Joint positions given without joint names")
    values = None if joints is None else as_joint_values(joints, positions)

    q_links = []
    for segment in tree.segments:
        if segment.is_fixed:
            q_links.append(0.0)
        elif values is None:
            raise NonFixedJointError(segment.joint_name)
        else:
            q_links.append(joint_position(segment, values))
    return jnp.stack([jnp.asarray(q, dtype=jnp.float64) for q in q_links])


def forward_kinematics(tree: TreeModel, joints: Any = None,
                       positions: Optional[Sequence[Scalar]] = None) -> Dict[str, Array]:
    """Compute the pose of every link in the root frame.

    Args:
        tree: TreeModel containing the robot's kinematic structure
        joints: Joint values, in any form ``resolve_transform`` accepts
        positions: Joint positions parallel to ``joints``

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) poses
    """
    world_transforms = forward_kinematics_world(tree, link_positions(tree, joints, positions))
    return {name: world_transforms[i] for i, name in enumerate(tree.link_names)}


def forward_kinematics_world(tree: TreeModel, q_links: Array) -> Array:
    """Array form of ``forward_kinematics``.

    Args:
        tree: TreeModel containing the robot's kinematic structure
        q_links: Array of shape (num_links,) with the joint position of the
                 segment ending in each link

    Returns:
        Array of shape (num_links, 4, 4) with root-frame poses for all links
    """
    num_links = len(tree.link_names)
    parent_indices = jnp.asarray(tree.parent_indices, dtype=jnp.int32)
    origins = jnp.stack([s.origin for s in tree.segments])
    axes = jnp.stack([s.axis for s in tree.segments])

    world_transforms = jnp.identity(4)[None].repeat(num_links, axis=0)

    def scan_body(carry, i):
        """Processes link `i` using its parent's pose from `carry`."""
        T_root_to_parent = carry[parent_indices[i]]
        T_parent_to_child = origins[i] @ se3.exp(axes[i] * q_links[i])
        carry = carry.at[i].set(T_root_to_parent @ T_parent_to_child)
        return carry, None

    # Breadth-first order guarantees parents are processed before children
    final_transforms, _ = jax.lax.scan(scan_body, world_transforms, jnp.arange(1, num_links))

    return final_transforms
