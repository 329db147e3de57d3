"""4x4 affine matrices.

A matrix is a flat numpy array of 16 coefficients in column-major order, the
layout GPU uniform buffers expect; element 12, 13, 14 hold the translation.
Functions that produce a matrix take an optional `out` array to write into
(which may be one of the inputs) and allocate a new one otherwise.
"""

from typing import Optional, Sequence, Union

import numpy as np

from xformpy import quaternion as quat
from xformpy import vector as vec
from xformpy.common import TO_RAD
from xformpy.config import CONFIG
from xformpy.logging_utils import get_logger
from xformpy.quaternion import Quaternion
from xformpy.transform import Transform3D, TransformOrder, as_transform
from xformpy.transformations import (
    EPSILON,
    look_at as _look_at,
    ortho,
    perspective,
    quaternion_from_matrix,
    rotation_matrix,
    scale_matrix,
    translation_matrix,
)
from xformpy.vector import Vector3


logger = get_logger(__name__)

SIZE = 16
DTYPE = CONFIG.np_dtype

Matrix4 = np.ndarray
Vec3Like = Union[Vector3, Sequence[float], np.ndarray]


# ----------------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------------

def new(data=None) -> Matrix4:
    """New matrix copied from the first 16 values of `data`, identity if omitted."""
    if data is None:
        return np.eye(4, dtype=DTYPE).ravel(order="F")
    values = np.array(data, dtype=DTYPE).ravel()
    if values.shape[0] < SIZE:
        raise ValueError(f"A 4x4 matrix needs {SIZE} values, got {values.shape[0]}")
    return values[:SIZE].copy()


def const(data=None) -> Matrix4:
    """Read-only matrix. Writing to it raises ValueError."""
    m = new(data)
    m.flags.writeable = False
    return m


IDENTITY = const()
ZERO = const(np.zeros(SIZE))


def copy(m: Matrix4) -> Matrix4:
    return np.array(m, dtype=DTYPE)


def assign(m: Matrix4, other: Matrix4) -> Matrix4:
    """Copy the coefficients of `other` into `m`."""
    m[:] = other
    return m


def identity(m: Matrix4) -> Matrix4:
    return assign(m, IDENTITY)


# ----------------------------------------------------------------------------
# Buffers
# ----------------------------------------------------------------------------

def ref(buffer: np.ndarray, offset: int = 0) -> Matrix4:
    """Matrix stored in `buffer[offset:offset + 16]`.

    The returned array is a view, writes go to the caller's buffer.
    """
    return _view(buffer, offset)


def ref_const(buffer: np.ndarray, offset: int = 0) -> Matrix4:
    """Read-only view of `buffer[offset:offset + 16]`."""
    view = _view(buffer, offset)
    view.flags.writeable = False
    return view


def into_array(m: Matrix4, target, offset: int = 0) -> None:
    for i in range(SIZE):
        target[offset + i] = m[i]


def _view(buffer: np.ndarray, offset: int) -> Matrix4:
    if not isinstance(buffer, np.ndarray) or buffer.ndim != 1:
        raise TypeError(f"Matrix views need a 1-D numpy buffer, got {type(buffer).__name__}")
    if offset < 0 or offset + SIZE > buffer.shape[0]:
        raise ValueError(f"4x4 matrix at offset {offset} does not fit in a buffer of {buffer.shape[0]} elements")
    return buffer[offset:offset + SIZE]


# ----------------------------------------------------------------------------
# Internal helpers
# ----------------------------------------------------------------------------

def _mat(m: Matrix4) -> np.ndarray:
    """float64 4x4 copy of a flat matrix, indexable as [row, column]."""
    m = np.array(m, dtype=np.float64)
    if m.shape != (SIZE,):
        raise ValueError(f"Expected a flat matrix of {SIZE} values, got shape {m.shape}")
    return m.reshape(4, 4, order="F")


def _store(mat: np.ndarray, out: Optional[Matrix4]) -> Matrix4:
    if out is None:
        out = np.empty(SIZE, dtype=DTYPE)
    out[:] = mat.ravel(order="F")
    return out


def _vec3(v: Vec3Like) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


def _scale_of(mat: np.ndarray) -> np.ndarray:
    return np.linalg.norm(mat[:3, :3], axis=0)


def _rescaled(mat: np.ndarray, target: np.ndarray) -> np.ndarray:
    """`mat` with its basis columns resized to `target` lengths.

    Zero length columns cannot be resized and are kept as they are.
    """
    current = _scale_of(mat)
    degenerate = current < EPSILON
    if np.any(degenerate):
        logger.warning(f"Matrix has zero scale on axes {np.flatnonzero(degenerate).tolist()}, rotation is ill-defined")
    factors = np.where(degenerate, 1.0, target / np.where(degenerate, 1.0, current))
    return mat @ scale_matrix(factors)


# ----------------------------------------------------------------------------
# Operations
# ----------------------------------------------------------------------------

def mul(a: Matrix4, b: Matrix4, out: Optional[Matrix4] = None) -> Matrix4:
    """a * b"""
    return _store(_mat(a) @ _mat(b), out)


def invert(m: Matrix4, out: Optional[Matrix4] = None) -> Matrix4:
    try:
        inv = np.linalg.inv(_mat(m))
    except np.linalg.LinAlgError as e:
        raise ValueError("Matrix is singular and cannot be inverted") from e
    return _store(inv, out)


def transpose(m: Matrix4, out: Optional[Matrix4] = None) -> Matrix4:
    return _store(_mat(m).T, out)


# ----------------------------------------------------------------------------
# Translation
# ----------------------------------------------------------------------------

def translate(m: Matrix4, translation: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    """m * T(translation)"""
    return _store(_mat(m) @ translation_matrix(_vec3(translation)), out)


def set_translation(m: Matrix4, translation: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    mat = _mat(m)
    mat[:3, 3] = _vec3(translation)
    return _store(mat, out)


def get_translation(m: Matrix4, out: Optional[Vector3] = None) -> Vector3:
    if out is None:
        out = Vector3()
    out.data[:] = _mat(m)[:3, 3]
    return out


def from_translation(translation: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    return _store(translation_matrix(_vec3(translation)), out)


# ----------------------------------------------------------------------------
# Rotation
# ----------------------------------------------------------------------------

def rotate(m: Matrix4, rotation: Quaternion, out: Optional[Matrix4] = None) -> Matrix4:
    """m * R(rotation)"""
    return _store(_mat(m) @ rotation_matrix(np.asarray(rotation, dtype=np.float64)), out)


def set_rotation(m: Matrix4, rotation: Quaternion, out: Optional[Matrix4] = None) -> Matrix4:
    """Replace the rotation of `m`, keeping its translation and scale.

    The result is recomposed in TRS order.
    """
    t = decompose(m)
    t.rotation = rotation
    return compose(t, out)


def get_rotation(m: Matrix4, out: Optional[Quaternion] = None) -> Quaternion:
    """Normalized rotation of `m` with its scale removed first."""
    unscaled = _rescaled(_mat(m), np.ones(3))
    if out is None:
        out = Quaternion()
    out.data[:] = quaternion_from_matrix(unscaled[:3, :3])
    return quat.normalize(out, out)


def get_rotation_with_scale(m: Matrix4, out: Optional[Quaternion] = None) -> Quaternion:
    """Normalized rotation of the raw upper 3x3 block, scale left in place."""
    if out is None:
        out = Quaternion()
    out.data[:] = quaternion_from_matrix(_mat(m)[:3, :3])
    return quat.normalize(out, out)


def from_rotation(rotation: Quaternion, out: Optional[Matrix4] = None) -> Matrix4:
    return _store(rotation_matrix(np.asarray(rotation, dtype=np.float64)), out)


# ----------------------------------------------------------------------------
# Scale
# ----------------------------------------------------------------------------

def scale(m: Matrix4, factors: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    """m * S(factors)"""
    return _store(_mat(m) @ scale_matrix(_vec3(factors)), out)


def set_scale(m: Matrix4, factors: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    """Resize the basis columns of `m` to `factors`."""
    return _store(_rescaled(_mat(m), _vec3(factors)), out)


def get_scale(m: Matrix4, out: Optional[Vector3] = None) -> Vector3:
    """Lengths of the three basis columns. Always positive, reflections are not detected."""
    if out is None:
        out = Vector3()
    out.data[:] = _scale_of(_mat(m))
    return out


def from_scale(factors: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    return _store(scale_matrix(_vec3(factors)), out)


# ----------------------------------------------------------------------------
# Transform
# ----------------------------------------------------------------------------

def compose(transform=None, out: Optional[Matrix4] = None) -> Matrix4:
    """Matrix of a transform.

    `transform` may be a Transform3D, a partial mapping of its fields or None;
    missing fields are the identity and the default order is TRS. The first
    letter of the order initializes `out`, the two others are applied to it
    in place, one after the other.
    """
    transform = as_transform(transform, Transform3D)
    t, r, s = transform.translation, transform.rotation, transform.scale
    order = transform.order

    if order is TransformOrder.TRS:
        out = from_translation(t, out)
        rotate(out, r, out)
        scale(out, s, out)
    elif order is TransformOrder.RTS:
        out = from_rotation(r, out)
        translate(out, t, out)
        scale(out, s, out)
    elif order is TransformOrder.STR:
        out = from_scale(s, out)
        translate(out, t, out)
        rotate(out, r, out)
    elif order is TransformOrder.SRT:
        out = from_scale(s, out)
        rotate(out, r, out)
        translate(out, t, out)
    elif order is TransformOrder.RST:
        out = from_rotation(r, out)
        scale(out, s, out)
        translate(out, t, out)
    elif order is TransformOrder.TSR:
        out = from_translation(t, out)
        scale(out, s, out)
        rotate(out, r, out)
    else:
        raise ValueError(f"Unknown transform order: {order}")

    return out


def decompose(m: Matrix4, out: Optional[Transform3D] = None) -> Transform3D:
    """Translation, rotation and scale of `m`, always reported in TRS order.

    When `out` is given its vectors are overwritten in place and it is returned.
    """
    if out is None:
        out = Transform3D()

    get_translation(m, out.translation)
    get_rotation(m, out.rotation)
    get_scale(m, out.scale)
    out.order = TransformOrder.TRS
    return out


def lerp(a: Matrix4, b: Matrix4, alpha: float, out: Optional[Matrix4] = None) -> Matrix4:
    """Interpolate the transforms of `a` and `b`.

    Translation and scale are interpolated linearly, rotation spherically;
    the result is recomposed in TRS order. `alpha` is not clamped.
    """
    ta = decompose(a)
    tb = decompose(b)

    vec.lerp(ta.translation, tb.translation, alpha, ta.translation)
    quat.slerp(ta.rotation, tb.rotation, alpha, ta.rotation)
    vec.lerp(ta.scale, tb.scale, alpha, ta.scale)

    return compose(ta, out)


def equals(a: Matrix4, b: Matrix4, tolerance: float = 0.001) -> bool:
    """Component-wise equality at the given tolerance."""
    diff = np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64))
    return bool(np.all(diff < tolerance))


def transform_equals(a: Matrix4, b: Matrix4, tolerance: float = 0.001) -> bool:
    """Equality of the decomposed translation, rotation and scale of `a` and `b`."""
    ta = decompose(a)
    tb = decompose(b)
    return (
        vec.equals(ta.translation, tb.translation, tolerance)
        and quat.equals(ta.rotation, tb.rotation, tolerance)
        and vec.equals(ta.scale, tb.scale, tolerance)
    )


# ----------------------------------------------------------------------------
# Camera
# ----------------------------------------------------------------------------

def perspective_projection(
    fov: float,
    aspect: float,
    near: float,
    far: float,
    out: Optional[Matrix4] = None
) -> Matrix4:
    """Symmetric perspective frustum.

    Args:
        fov (float): Vertical field of view in degrees
        aspect (float): Width / height
        near (float): Near plane distance
        far (float): Far plane distance, may be inf
    """
    return _store(perspective(fov * TO_RAD, aspect, near, far), out)


def orthographic_projection(
    left: float,
    right: float,
    bottom: float,
    top: float,
    near: float,
    far: float,
    out: Optional[Matrix4] = None
) -> Matrix4:
    return _store(ortho(left, right, bottom, top, near, far), out)


def look_at(eye: Vec3Like, target: Vec3Like, up: Vec3Like, out: Optional[Matrix4] = None) -> Matrix4:
    """Right handed view matrix of a camera at `eye` looking at `target`."""
    return _store(_look_at(_vec3(eye), _vec3(target), _vec3(up)), out)
