"""SO(3) rotation helpers in JAX.

Rotations are plain (..., 3, 3) arrays. All functions are pure and JIT-able.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def rotation_angle(log_r: Array):
    """
    Squared angle and angle of axis-angle vectors, safe to differentiate at zero.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        Tuple ``(angle_sq, angle, is_small)`` of (..., 1) arrays. Where
        ``is_small`` holds, ``angle`` is 1 so it can be divided by and callers
        switch to Taylor forms in ``angle_sq``.
    """
    angle_sq = jnp.sum(log_r * log_r, axis=-1, keepdims=True)
    is_small = angle_sq < 1e-12
    angle = jnp.sqrt(jnp.where(is_small, 1.0, angle_sq))
    return angle_sq, angle, is_small


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Implements Rodrigues' formula. The magnitude of ``log_r`` is the angle and
    its direction the axis, so a revolute joint at position ``q`` about unit
    axis ``a`` is ``exp(a * q)``.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle_sq, angle, is_small = rotation_angle(log_r)

    # A = sin(θ) / θ, B = (1 - cos(θ)) / θ², with Taylor forms near zero
    A = jnp.where(is_small, 1.0 - angle_sq / 6.0, jnp.sin(angle) / angle)
    B = jnp.where(is_small, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / (angle * angle))

    K = skew_symmetric(log_r)

    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    # R = I + A * K + B * K²
    return I + A[..., None] * K + B[..., None] * jnp.matmul(K, K)


def inverse(R: Array) -> Array:
    """Inverse of a rotation matrix, which is its transpose."""
    return jnp.swapaxes(R, -1, -2)


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric (cross product) matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def from_rpy(rpy: Array) -> Array:
    """
    Convert fixed-axis roll-pitch-yaw angles to a rotation matrix.

    This is the URDF ``origin rpy`` convention: rotate about X by roll, then
    about Y by pitch, then about Z by yaw, all in the parent frame.

    Args:
        rpy: (..., 3) array of [roll, pitch, yaw] in radians

    Returns:
        (..., 3, 3) rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    """
    rpy = jnp.asarray(rpy)
    roll, pitch, yaw = rpy[..., 0], rpy[..., 1], rpy[..., 2]
    eye = jnp.eye(3, dtype=rpy.dtype)

    R_x = exp(roll[..., None] * eye[0])
    R_y = exp(pitch[..., None] * eye[1])
    R_z = exp(yaw[..., None] * eye[2])

    return jnp.matmul(R_z, jnp.matmul(R_y, R_x))
