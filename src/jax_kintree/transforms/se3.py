"""SE(3) rigid-body transforms as homogeneous matrices in JAX.

A transform is a plain (..., 4, 4) array. Composition is matrix
multiplication: ``multiply(T_a_b, T_b_c)`` gives ``T_a_c``. All functions
are pure and JIT-able.
"""

import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def identity(dtype=jnp.float64) -> Array:
    """The (4, 4) identity transform."""
    return jnp.eye(4, dtype=dtype)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    p = jnp.asarray(p)
    R = jnp.asarray(R)
    dtype = jnp.result_type(p, R)
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def from_xyz_rpy(xyz: Array, rpy: Array) -> Array:
    """Transform from a URDF-style translation and roll-pitch-yaw pair."""
    return from_position_and_rotation(jnp.asarray(xyz), so3.from_rpy(rpy))


def exp(twist: Array) -> Array:
    """
    SE(3) exponential map: convert twist to transformation matrix.

    Joint motion is ``exp(axis * q)`` where ``axis`` is a unit twist. A pure
    angular twist is a rotation about an axis through the origin, a pure
    linear twist is a translation.

    Args:
        twist: (..., 6) array of twists [vx, vy, vz, wx, wy, wz].

    Returns:
        (..., 4, 4) array of transformation matrices.
    """
    v, w = twist[..., :3], twist[..., 3:]
    angle_sq, angle, is_small = so3.rotation_angle(w)

    R = so3.exp(w)

    # A = (1 - cos θ) / θ², B = (θ - sin θ) / θ³, with Taylor forms near zero
    A = jnp.where(is_small, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / (angle * angle))
    B = jnp.where(is_small, 1.0 / 6.0 - angle_sq / 120.0, (angle - jnp.sin(angle)) / (angle * angle * angle))

    K = so3.skew_symmetric(w)
    K_sq = jnp.matmul(K, K)

    I = jnp.broadcast_to(jnp.eye(3, dtype=twist.dtype), K.shape)

    # V = I + A*K + B*K^2
    V = I + A[..., None] * K + B[..., None] * K_sq

    t = jnp.einsum("...ij,...j->...i", V, v)

    return from_position_and_rotation(t, R)


def multiply(T1: Array, T2: Array) -> Array:
    """
    Compose two SE(3) transforms.

    Args:
        T1: (..., 4, 4) transform applied last
        T2: (..., 4, 4) transform applied first

    Returns:
        (..., 4, 4) result of T1 @ T2
    """
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    Uses the block structure: T^-1 = [[R^T, -R^T @ t], [0, 1]]

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 4, 4) inverse transformation matrix
    """
    R = T[..., :3, :3]
    t = T[..., :3, 3]

    R_inv = so3.inverse(R)
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, t)

    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(3) transformation to points.

    Args:
        T: (..., 4, 4) transformation matrix
        points: (..., 3) points to transform

    Returns:
        (..., 3) transformed points
    """
    ones = jnp.ones_like(points[..., 0:1])
    points_h = jnp.concatenate([points, ones], axis=-1)
    transformed_h = jnp.einsum("...ij,...j->...i", T, points_h)
    return transformed_h[..., :3]


def get_position(T: Array) -> Array:
    """(..., 3) translation part of a transform."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """(..., 3, 3) rotation part of a transform."""
    return T[..., :3, :3]
