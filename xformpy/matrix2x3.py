"""2D affine matrices.

Six coefficients (a, b, c, d, tx, ty) in column-major order:

    | a  c  tx |
    | b  d  ty |

Rotations are angles in radians, counter-clockwise.
"""

import math
from typing import Optional, Sequence, Union

import numpy as np

from xformpy import matrix4
from xformpy import quaternion as quat
from xformpy import vector as vec
from xformpy.common import TO_DEG, radian_lerp, wrap_angle
from xformpy.config import CONFIG
from xformpy.logging_utils import get_logger
from xformpy.quaternion import Euler
from xformpy.transform import Transform2D, TransformOrder, as_transform
from xformpy.transformations import (
    EPSILON,
    rotation_matrix_2d,
    scale_matrix_2d,
    translation_matrix_2d,
)
from xformpy.vector import Vector2


logger = get_logger(__name__)

SIZE = 6
DTYPE = CONFIG.np_dtype

Matrix2x3 = np.ndarray
Vec2Like = Union[Vector2, Sequence[float], np.ndarray]


def new(data=None) -> Matrix2x3:
    """New matrix copied from the first 6 values of `data`, identity if omitted."""
    if data is None:
        return np.array([1.0, 0.0, 0.0, 1.0, 0.0, 0.0], dtype=DTYPE)
    values = np.array(data, dtype=DTYPE).ravel()
    if values.shape[0] < SIZE:
        raise ValueError(f"A 2x3 matrix needs {SIZE} values, got {values.shape[0]}")
    return values[:SIZE].copy()


def const(data=None) -> Matrix2x3:
    m = new(data)
    m.flags.writeable = False
    return m


IDENTITY = const()
ZERO = const(np.zeros(SIZE))


def copy(m: Matrix2x3) -> Matrix2x3:
    return np.array(m, dtype=DTYPE)


def assign(m: Matrix2x3, other: Matrix2x3) -> Matrix2x3:
    m[:] = other
    return m


def identity(m: Matrix2x3) -> Matrix2x3:
    return assign(m, IDENTITY)


def ref(buffer: np.ndarray, offset: int = 0) -> Matrix2x3:
    """View of `buffer[offset:offset + 6]`, writes go to the buffer."""
    return _view(buffer, offset)


def ref_const(buffer: np.ndarray, offset: int = 0) -> Matrix2x3:
    view = _view(buffer, offset)
    view.flags.writeable = False
    return view


def into_array(m: Matrix2x3, target, offset: int = 0) -> None:
    for i in range(SIZE):
        target[offset + i] = m[i]


def _view(buffer: np.ndarray, offset: int) -> Matrix2x3:
    if not isinstance(buffer, np.ndarray) or buffer.ndim != 1:
        raise TypeError(f"Matrix views need a 1-D numpy buffer, got {type(buffer).__name__}")
    if offset < 0 or offset + SIZE > buffer.shape[0]:
        raise ValueError(f"2x3 matrix at offset {offset} does not fit in a buffer of {buffer.shape[0]} elements")
    return buffer[offset:offset + SIZE]


def _mat(m: Matrix2x3) -> np.ndarray:
    """float64 3x3 homogeneous copy of a flat 2x3 matrix."""
    m = np.array(m, dtype=np.float64)
    if m.shape != (SIZE,):
        raise ValueError(f"Expected a flat matrix of {SIZE} values, got shape {m.shape}")
    a, b, c, d, tx, ty = m
    return np.array([
        [a, c, tx],
        [b, d, ty],
        [0.0, 0.0, 1.0],
    ])


def _store(mat: np.ndarray, out: Optional[Matrix2x3]) -> Matrix2x3:
    if out is None:
        out = np.empty(SIZE, dtype=DTYPE)
    out[:] = (mat[0, 0], mat[1, 0], mat[0, 1], mat[1, 1], mat[0, 2], mat[1, 2])
    return out


def _vec2(v: Vec2Like) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(2)


def _scale_of(mat: np.ndarray) -> np.ndarray:
    return np.linalg.norm(mat[:2, :2], axis=0)


# ----------------------------------------------------------------------------
# Operations
# ----------------------------------------------------------------------------

def mul(a: Matrix2x3, b: Matrix2x3, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    """a * b"""
    return _store(_mat(a) @ _mat(b), out)


def invert(m: Matrix2x3, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    try:
        inv = np.linalg.inv(_mat(m))
    except np.linalg.LinAlgError as e:
        raise ValueError("Matrix is singular and cannot be inverted") from e
    return _store(inv, out)


def translate(m: Matrix2x3, translation: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(_mat(m) @ translation_matrix_2d(_vec2(translation)), out)


def set_translation(m: Matrix2x3, translation: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    mat = _mat(m)
    mat[:2, 2] = _vec2(translation)
    return _store(mat, out)


def get_translation(m: Matrix2x3, out: Optional[Vector2] = None) -> Vector2:
    if out is None:
        out = Vector2()
    out.data[:] = _mat(m)[:2, 2]
    return out


def from_translation(translation: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(translation_matrix_2d(_vec2(translation)), out)


def rotate(m: Matrix2x3, angle: float, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(_mat(m) @ rotation_matrix_2d(angle), out)


def set_rotation(m: Matrix2x3, angle: float, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    raise NotImplementedError("Setting the rotation of a 2x3 matrix is not supported")


def get_rotation(m: Matrix2x3) -> float:
    """Angle of the first basis column, scale does not affect it."""
    return math.atan2(float(m[1]), float(m[0]))


def from_rotation(angle: float, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(rotation_matrix_2d(angle), out)


def scale(m: Matrix2x3, factors: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(_mat(m) @ scale_matrix_2d(_vec2(factors)), out)


def set_scale(m: Matrix2x3, factors: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    mat = _mat(m)
    current = _scale_of(mat)
    degenerate = current < EPSILON
    if np.any(degenerate):
        logger.warning(f"Matrix has zero scale on axes {np.flatnonzero(degenerate).tolist()}, left unchanged")
    factors = np.where(degenerate, 1.0, _vec2(factors) / np.where(degenerate, 1.0, current))
    return _store(mat @ scale_matrix_2d(factors), out)


def get_scale(m: Matrix2x3, out: Optional[Vector2] = None) -> Vector2:
    if out is None:
        out = Vector2()
    out.data[:] = _scale_of(_mat(m))
    return out


def from_scale(factors: Vec2Like, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    return _store(scale_matrix_2d(_vec2(factors)), out)


# ----------------------------------------------------------------------------
# Transform
# ----------------------------------------------------------------------------

def compose(transform=None, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    """Matrix of a 2D transform, see `matrix4.compose` for the order semantics."""
    transform = as_transform(transform, Transform2D)
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


def decompose(m: Matrix2x3, out: Optional[Transform2D] = None) -> Transform2D:
    """Translation, rotation and scale of `m`, always reported in TRS order."""
    if out is None:
        out = Transform2D()

    get_translation(m, out.translation)
    out.rotation = get_rotation(m)
    get_scale(m, out.scale)
    out.order = TransformOrder.TRS
    return out


def lerp(a: Matrix2x3, b: Matrix2x3, alpha: float, out: Optional[Matrix2x3] = None) -> Matrix2x3:
    """Interpolate the transforms of `a` and `b`.

    The angle moves linearly along the shorter arc; `alpha` is not clamped.
    """
    ta = decompose(a)
    tb = decompose(b)

    vec.lerp(ta.translation, tb.translation, alpha, ta.translation)
    ta.rotation = radian_lerp(ta.rotation, tb.rotation, alpha)
    vec.lerp(ta.scale, tb.scale, alpha, ta.scale)

    return compose(ta, out)


def equals(a: Matrix2x3, b: Matrix2x3, tolerance: float = 0.001) -> bool:
    diff = np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64))
    return bool(np.all(diff < tolerance))


def transform_equals(a: Matrix2x3, b: Matrix2x3, tolerance: float = 0.001) -> bool:
    ta = decompose(a)
    tb = decompose(b)
    # angles are compared on the circle, pi and -pi are the same rotation
    return (
        vec.equals(ta.translation, tb.translation, tolerance)
        and abs(wrap_angle(ta.rotation - tb.rotation)) < tolerance
        and vec.equals(ta.scale, tb.scale, tolerance)
    )


# ----------------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------------

def to_mat4(m: Matrix2x3, out: Optional[matrix4.Matrix4] = None) -> matrix4.Matrix4:
    """Embed the 2D transform of `m` in 3D: z translation 0, rotation about Z, z scale 1."""
    t = decompose(m)
    return matrix4.compose({
        "translation": [t.translation.x, t.translation.y, 0.0],
        "rotation": quat.from_euler(Euler(roll=t.rotation * TO_DEG)),
        "scale": [t.scale.x, t.scale.y, 1.0],
    }, out)
