"""3x3 matrices, nine coefficients in column-major order.

Mostly used as the linear part of a 4x4 transform (normal matrices and the
like), hence the conversions to and from `matrix4`.
"""

from typing import Optional

import numpy as np

from xformpy import matrix4
from xformpy.config import CONFIG


SIZE = 9
DTYPE = CONFIG.np_dtype

Matrix3 = np.ndarray


def new(data=None) -> Matrix3:
    if data is None:
        return np.eye(3, dtype=DTYPE).ravel(order="F")
    values = np.array(data, dtype=DTYPE).ravel()
    if values.shape[0] < SIZE:
        raise ValueError(f"A 3x3 matrix needs {SIZE} values, got {values.shape[0]}")
    return values[:SIZE].copy()


def const(data=None) -> Matrix3:
    m = new(data)
    m.flags.writeable = False
    return m


IDENTITY = const()
ZERO = const(np.zeros(SIZE))


def copy(m: Matrix3) -> Matrix3:
    return np.array(m, dtype=DTYPE)


def assign(m: Matrix3, other: Matrix3) -> Matrix3:
    m[:] = other
    return m


def identity(m: Matrix3) -> Matrix3:
    return assign(m, IDENTITY)


def ref(buffer: np.ndarray, offset: int = 0) -> Matrix3:
    """View of `buffer[offset:offset + 9]`, writes go to the buffer."""
    return _view(buffer, offset)


def ref_const(buffer: np.ndarray, offset: int = 0) -> Matrix3:
    view = _view(buffer, offset)
    view.flags.writeable = False
    return view


def into_array(m: Matrix3, target, offset: int = 0) -> None:
    for i in range(SIZE):
        target[offset + i] = m[i]


def _view(buffer: np.ndarray, offset: int) -> Matrix3:
    if not isinstance(buffer, np.ndarray) or buffer.ndim != 1:
        raise TypeError(f"Matrix views need a 1-D numpy buffer, got {type(buffer).__name__}")
    if offset < 0 or offset + SIZE > buffer.shape[0]:
        raise ValueError(f"3x3 matrix at offset {offset} does not fit in a buffer of {buffer.shape[0]} elements")
    return buffer[offset:offset + SIZE]


def _mat(m: Matrix3) -> np.ndarray:
    m = np.array(m, dtype=np.float64)
    if m.shape != (SIZE,):
        raise ValueError(f"Expected a flat matrix of {SIZE} values, got shape {m.shape}")
    return m.reshape(3, 3, order="F")


def _store(mat: np.ndarray, out: Optional[Matrix3]) -> Matrix3:
    if out is None:
        out = np.empty(SIZE, dtype=DTYPE)
    out[:] = mat.ravel(order="F")
    return out


def mul(a: Matrix3, b: Matrix3, out: Optional[Matrix3] = None) -> Matrix3:
    """a * b"""
    return _store(_mat(a) @ _mat(b), out)


def invert(m: Matrix3, out: Optional[Matrix3] = None) -> Matrix3:
    try:
        inv = np.linalg.inv(_mat(m))
    except np.linalg.LinAlgError as e:
        raise ValueError("Matrix is singular and cannot be inverted") from e
    return _store(inv, out)


def transpose(m: Matrix3, out: Optional[Matrix3] = None) -> Matrix3:
    return _store(_mat(m).T, out)


def from_mat4(m: matrix4.Matrix4, out: Optional[Matrix3] = None) -> Matrix3:
    """Upper-left 3x3 block of `m`, translation dropped."""
    return _store(np.array(m, dtype=np.float64).reshape(4, 4, order="F")[:3, :3], out)


def to_mat4(m: Matrix3, out: Optional[matrix4.Matrix4] = None) -> matrix4.Matrix4:
    """Embed `m` in a 4x4 matrix with zero translation and last row (0, 0, 0, 1)."""
    mat = np.eye(4)
    mat[:3, :3] = _mat(m)
    if out is None:
        out = np.empty(matrix4.SIZE, dtype=matrix4.DTYPE)
    out[:] = mat.ravel(order="F")
    return out
