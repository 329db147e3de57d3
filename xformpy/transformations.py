"""Raw rotation and matrix math for xformpy.

Conventions in this module:
- quaternions are numpy arrays shaped (..., 4), order (x, y, z, w)
- matrices are square float64 arrays acting on column vectors (M @ v)
- 3D affine matrices are 4x4, 2D affine matrices are 3x3 homogeneous
- angles are radians
"""

from __future__ import annotations

import numpy as np
from scipy.spatial.transform import Rotation


EPSILON = 1e-6


def _normalize(q: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    n = np.linalg.norm(q, axis=-1, keepdims=True)
    return q / np.clip(n, eps, None)


# ----------------------------------------------------------------------------
# Quaternions
# ----------------------------------------------------------------------------

def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    out = q.copy()
    out[..., :3] *= -1
    return out


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Conjugate divided by the squared norm. The zero quaternion maps to zero."""
    q = np.asarray(q, dtype=np.float64)
    dot = np.sum(q * q, axis=-1, keepdims=True)
    safe = np.where(dot > 0.0, dot, 1.0)
    return np.where(dot > 0.0, quaternion_conjugate(q) / safe, 0.0)


def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product. Inputs/outputs are (x,y,z,w)."""
    x1, y1, z1, w1 = np.moveaxis(np.asarray(q1, dtype=np.float64), -1, 0)
    x2, y2, z2, w2 = np.moveaxis(np.asarray(q2, dtype=np.float64), -1, 0)

    x = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
    y = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
    z = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
    w = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2
    return np.stack([x, y, z, w], axis=-1)


def quaternion_slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """Spherical linear interpolation between two unit quaternions (shortest arc)."""
    q0 = _normalize(q0)
    q1 = _normalize(q1)

    dot = float(np.sum(q0 * q1))
    # take shortest path
    if dot < 0.0:
        q1 = -q1
        dot = -dot

    dot = min(dot, 1.0)
    if dot > 0.9995:
        # nearly linear
        out = q0 + t * (q1 - q0)
        return _normalize(out)

    theta_0 = np.arccos(dot)
    sin_theta_0 = np.sin(theta_0)
    theta = theta_0 * t
    sin_theta = np.sin(theta)

    s0 = np.sin(theta_0 - theta) / sin_theta_0
    s1 = sin_theta / sin_theta_0
    return s0 * q0 + s1 * q1


def quaternion_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    half = 0.5 * angle
    return np.array([*(axis * np.sin(half)), np.cos(half)])


def quaternion_to_axis_angle(q: np.ndarray):
    """Returns (axis, angle). Rotations too small to define an axis report the X axis."""
    q = np.asarray(q, dtype=np.float64)
    angle = 2.0 * np.arccos(np.clip(q[3], -1.0, 1.0))
    s = np.sin(0.5 * angle)
    if s > EPSILON:
        return q[:3] / s, float(angle)
    return np.array([1.0, 0.0, 0.0]), float(angle)


def quaternion_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Shortest rotation taking unit vector `a` onto unit vector `b`."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    dot = float(np.dot(a, b))

    if dot < -0.999999:
        # opposite vectors, pick any axis orthogonal to a
        axis = np.cross([1.0, 0.0, 0.0], a)
        if np.linalg.norm(axis) < EPSILON:
            axis = np.cross([0.0, 1.0, 0.0], a)
        return quaternion_from_axis_angle(_normalize(axis), np.pi)

    if dot > 0.999999:
        return np.array([0.0, 0.0, 0.0, 1.0])

    return _normalize(np.array([*np.cross(a, b), 1.0 + dot]))


def rotate_vector(v: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Rotate a 3D vector by a quaternion, v' = q v q*."""
    v = np.asarray(v, dtype=np.float64)
    q = np.asarray(q, dtype=np.float64)
    u, w = q[:3], q[3]
    uv = np.cross(u, v)
    uuv = np.cross(u, uv)
    return v + 2.0 * (w * uv + uuv)


def quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    """3x3 rotation matrix of a (non zero) quaternion."""
    return Rotation.from_quat(np.asarray(q, dtype=np.float64)).as_matrix()


def quaternion_from_matrix(r: np.ndarray) -> np.ndarray:
    """Unit quaternion of a 3x3 rotation matrix, with w >= 0.

    scipy needs a full rank basis. A single collapsed axis is rebuilt as the
    cross product of the other two first; with two or more collapsed axes the
    rotation is undefined and the identity is returned.
    """
    r = np.array(r, dtype=np.float64)
    collapsed = np.flatnonzero(np.linalg.norm(r, axis=0) < EPSILON)

    if len(collapsed) > 1:
        return np.array([0.0, 0.0, 0.0, 1.0])
    if len(collapsed) == 1:
        i = int(collapsed[0])
        r[:, i] = np.cross(r[:, (i + 1) % 3], r[:, (i + 2) % 3])

    return Rotation.from_matrix(r).as_quat(canonical=True)


# ----------------------------------------------------------------------------
# 3D affine matrices (4x4)
# ----------------------------------------------------------------------------

def translation_matrix(t: np.ndarray) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = t
    return m


def rotation_matrix(q: np.ndarray) -> np.ndarray:
    m = np.eye(4)
    m[:3, :3] = quaternion_to_matrix(q)
    return m


def scale_matrix(s: np.ndarray) -> np.ndarray:
    return np.diag([*np.asarray(s, dtype=np.float64), 1.0])


def perspective(fovy: float, aspect: float, near: float, far: float) -> np.ndarray:
    """OpenGL style perspective frustum, clip z in [-1, 1]. `far` may be inf."""
    f = 1.0 / np.tan(fovy / 2.0)
    m = np.zeros((4, 4))
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[3, 2] = -1.0
    if np.isfinite(far):
        nf = 1.0 / (near - far)
        m[2, 2] = (far + near) * nf
        m[2, 3] = 2.0 * far * near * nf
    else:
        m[2, 2] = -1.0
        m[2, 3] = -2.0 * near
    return m


def ortho(left: float, right: float, bottom: float, top: float, near: float, far: float) -> np.ndarray:
    """OpenGL style orthographic frustum.

    Degenerate extents (left == right, ...) are not rejected, they produce
    non-finite coefficients.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        lr = np.divide(1.0, np.float64(left - right))
        bt = np.divide(1.0, np.float64(bottom - top))
        nf = np.divide(1.0, np.float64(near - far))

        m = np.zeros((4, 4))
        m[0, 0] = -2.0 * lr
        m[1, 1] = -2.0 * bt
        m[2, 2] = 2.0 * nf
        m[0, 3] = (left + right) * lr
        m[1, 3] = (top + bottom) * bt
        m[2, 3] = (far + near) * nf
        m[3, 3] = 1.0
    return m


def look_at(eye: np.ndarray, center: np.ndarray, up: np.ndarray) -> np.ndarray:
    """Right handed view matrix. Identity when eye and center coincide."""
    eye = np.asarray(eye, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)

    if np.all(np.abs(eye - center) < EPSILON):
        return np.eye(4)

    z = _normalize(eye - center)
    x = np.cross(up, z)
    x = _normalize(x) if np.linalg.norm(x) > 0.0 else np.zeros(3)
    y = np.cross(z, x)
    y = _normalize(y) if np.linalg.norm(y) > 0.0 else np.zeros(3)

    m = np.eye(4)
    m[0, :3] = x
    m[1, :3] = y
    m[2, :3] = z
    m[:3, 3] = -m[:3, :3] @ eye
    return m


# ----------------------------------------------------------------------------
# 2D affine matrices (3x3 homogeneous)
# ----------------------------------------------------------------------------

def translation_matrix_2d(t: np.ndarray) -> np.ndarray:
    m = np.eye(3)
    m[:2, 2] = t
    return m


def rotation_matrix_2d(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def scale_matrix_2d(s: np.ndarray) -> np.ndarray:
    return np.diag([*np.asarray(s, dtype=np.float64), 1.0])
