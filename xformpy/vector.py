"""Plain vector value types.

A vector keeps its components in a small numpy array. The array is either
owned by the vector or a view into a caller supplied buffer (`ref` /
`ref_const`); both kinds expose the same `x`, `y`, `z`, `w` accessors, so code
written against vectors does not care whether it writes into its own storage
or into e.g. a uniform staging buffer.

Views alias their buffer and each other. Nothing protects against two views
overlapping, writes through one are visible through the other.
"""

from __future__ import annotations

from numbers import Real
from typing import Iterator, List, Optional, Type, TypeVar, Union

import numpy as np

from xformpy.common import TO_RAD
from xformpy.transformations import rotate_vector
from xformpy.type_utils import check_type, require_reals


V = TypeVar("V", bound="Vector")


def _component(index: int, name: str) -> property:
    def getter(self) -> float:
        return float(self._data[index])

    def setter(self, value: float) -> None:
        self._data[index] = value

    return property(getter, setter, doc=f"{name} component")


class Vector():
    SIZE = 0
    TOLERANCE = 0.001
    __slots__ = ("_data",)

    @classmethod
    def _wrap(cls: Type[V], data: np.ndarray) -> V:
        v = cls.__new__(cls)
        v._data = data
        return v

    # ------------------------------ constructors ------------------------------

    @classmethod
    def zero(cls: Type[V]) -> V:
        return cls._wrap(np.zeros(cls.SIZE))

    @classmethod
    def from_scalar(cls: Type[V], f: float) -> V:
        require_reals(f"{cls.__name__}.from_scalar", f)
        return cls._wrap(np.full(cls.SIZE, f, dtype=np.float64))

    @classmethod
    def from_array(cls: Type[V], array, offset: int = 0) -> V:
        """Copy `SIZE` values of `array` starting at `offset`."""
        values = np.asarray(array, dtype=np.float64).ravel()[offset:offset + cls.SIZE]
        if len(values) != cls.SIZE:
            raise ValueError(f"{cls.__name__} needs {cls.SIZE} values at offset {offset}, got {len(values)}")
        return cls._wrap(values.copy())

    @classmethod
    def const(cls: Type[V], *components: float) -> V:
        """Read-only vector. Assigning a component raises ValueError."""
        v = cls(*components)
        v._data.flags.writeable = False
        return v

    @classmethod
    def ref(cls: Type[V], buffer: np.ndarray, offset: int = 0) -> V:
        """Vector whose components live in `buffer[offset:offset + SIZE]`.

        The buffer stays owned by the caller; reads and writes go straight to it.
        """
        return cls._wrap(_buffer_view(buffer, offset, cls.SIZE, cls.__name__))

    @classmethod
    def ref_const(cls: Type[V], buffer: np.ndarray, offset: int = 0) -> V:
        """Read-only view, still observes writes made to the buffer elsewhere."""
        view = _buffer_view(buffer, offset, cls.SIZE, cls.__name__)
        view.flags.writeable = False
        return cls._wrap(view)

    def copy(self: V) -> V:
        return self._wrap(np.array(self._data, dtype=np.float64))

    def set(self: V, other: "Vector") -> V:
        self._data[:] = other._data
        return self

    # --------------------------------- array ---------------------------------

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def is_read_only(self) -> bool:
        return not self._data.flags.writeable

    def to_array(self) -> List[float]:
        return [float(c) for c in self._data]

    def into_array(self, target, offset: int = 0) -> None:
        for i in range(self.SIZE):
            target[offset + i] = float(self._data[i])

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if copy:
            return np.array(self._data, dtype=dtype)
        if copy is False and dtype is not None and np.dtype(dtype) != self._data.dtype:
            raise ValueError(f"Cannot convert a {type(self).__name__} to {np.dtype(dtype)} without a copy")
        return np.asarray(self._data, dtype=dtype)

    def __len__(self) -> int:
        return self.SIZE

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_array())

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector) or other.SIZE != self.SIZE:
            return NotImplemented
        return bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        names = "xyzw"[:self.SIZE]
        body = ", ".join(f"{n}={float(c)}" for n, c in zip(names, self._data))
        return f"{type(self).__name__}({body})"

    # ------------------------------- operators -------------------------------

    def __add__(self: V, other: "Vector") -> V:
        return add(self, other)

    def __sub__(self: V, other: "Vector") -> V:
        return sub(self, other)

    def __mul__(self: V, other: Union["Vector", float]) -> V:
        return mul(self, other)

    def __rmul__(self: V, other: float) -> V:
        return mul(self, other)

    def __truediv__(self: V, other: Union["Vector", float]) -> V:
        return div(self, other)

    def __neg__(self: V) -> V:
        return negate(self)


class Vector2(Vector):
    SIZE = 2
    TOLERANCE = 0.001
    __slots__ = ()

    x = _component(0, "x")
    y = _component(1, "y")

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        require_reals("Vector2", x, y)
        self._data = np.array([x, y], dtype=np.float64)

    @classmethod
    def from_components(cls, x: float, y: float) -> "Vector2":
        return cls(x, y)

    @classmethod
    def from_angle(cls, degrees: float) -> "Vector2":
        """Unit vector pointing `degrees` counter-clockwise from +X."""
        return cls(np.cos(degrees * TO_RAD), np.sin(degrees * TO_RAD))


class Vector3(Vector):
    SIZE = 3
    TOLERANCE = 0.0001
    __slots__ = ()

    x = _component(0, "x")
    y = _component(1, "y")
    z = _component(2, "z")

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> None:
        require_reals("Vector3", x, y, z)
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_components(cls, x: float, y: float, z: float) -> "Vector3":
        return cls(x, y, z)

    @classmethod
    def from_vector_and_scalar(cls, v: Vector2, z: float) -> "Vector3":
        """(v.x, v.y, z)"""
        if not check_type(v, Vector2):
            raise TypeError(f"Vector3.from_vector_and_scalar expects a Vector2, got {type(v).__name__}")
        return cls(v.x, v.y, z)

    @classmethod
    def from_scalar_and_vector(cls, x: float, v: Vector2) -> "Vector3":
        """(x, v.x, v.y)"""
        if not check_type(v, Vector2):
            raise TypeError(f"Vector3.from_scalar_and_vector expects a Vector2, got {type(v).__name__}")
        return cls(x, v.x, v.y)


class Vector4(Vector):
    SIZE = 4
    TOLERANCE = 0.001
    __slots__ = ()

    x = _component(0, "x")
    y = _component(1, "y")
    z = _component(2, "z")
    w = _component(3, "w")

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0, w: float = 0.0) -> None:
        require_reals(type(self).__name__, x, y, z, w)
        self._data = np.array([x, y, z, w], dtype=np.float64)

    @classmethod
    def from_components(cls, x: float, y: float, z: float, w: float) -> "Vector4":
        return cls(x, y, z, w)

    @classmethod
    def from_vector_and_scalar(cls, v: Vector3, w: float) -> "Vector4":
        """(v.x, v.y, v.z, w)"""
        if not check_type(v, Vector3):
            raise TypeError(f"{cls.__name__}.from_vector_and_scalar expects a Vector3, got {type(v).__name__}")
        return cls(v.x, v.y, v.z, w)


Vector2.ZERO = Vector2.const(0.0, 0.0)
Vector2.ONE = Vector2.const(1.0, 1.0)
Vector2.RIGHT = Vector2.const(1.0, 0.0)
Vector2.UP = Vector2.const(0.0, 1.0)

Vector3.ZERO = Vector3.const(0.0, 0.0, 0.0)
Vector3.ONE = Vector3.const(1.0, 1.0, 1.0)
Vector3.RIGHT = Vector3.const(1.0, 0.0, 0.0)
Vector3.UP = Vector3.const(0.0, 1.0, 0.0)
Vector3.FORWARD = Vector3.const(0.0, 0.0, 1.0)

Vector4.ZERO = Vector4.const(0.0, 0.0, 0.0, 0.0)
Vector4.ONE = Vector4.const(1.0, 1.0, 1.0, 1.0)


def _buffer_view(buffer: np.ndarray, offset: int, size: int, owner: str) -> np.ndarray:
    if not isinstance(buffer, np.ndarray) or buffer.ndim != 1:
        raise TypeError(f"{owner} views need a 1-D numpy buffer, got {type(buffer).__name__}")
    if offset < 0 or offset + size > buffer.shape[0]:
        raise ValueError(f"{owner} view at offset {offset} does not fit in a buffer of {buffer.shape[0]} elements")
    return buffer[offset:offset + size]


def as_vector(value, cls: Type[V]) -> V:
    """`value` as a `cls`, from an instance or exactly `cls.SIZE` numbers."""
    if isinstance(value, cls):
        return value
    values = np.asarray(value, dtype=np.float64).ravel()
    if values.shape[0] != cls.SIZE:
        raise ValueError(f"{cls.__name__} needs exactly {cls.SIZE} values, got {values.shape[0]}")
    return cls.from_array(values)


def _result(a: V, out: Optional[V]) -> V:
    return out if out is not None else a.zero()


def _operand(b: Union[Vector, float]) -> Union[np.ndarray, float]:
    if isinstance(b, Vector):
        return b._data
    if not check_type(b, Real):
        raise TypeError(f"Expected a vector or a real number, got {type(b).__name__}")
    return float(b)


# ---------------------------------------------------------------------------
# Arithmetic. Every function writes into `out` when given (which may alias an
# input) and otherwise allocates a new vector of the type of `a`.
# ---------------------------------------------------------------------------

def add(a: V, b: V, out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = a._data + b._data
    return out


def sub(a: V, b: V, out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = a._data - b._data
    return out


def mul(a: V, b: Union[V, float], out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = a._data * _operand(b)
    return out


def div(a: V, b: Union[V, float], out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = a._data / _operand(b)
    return out


def negate(v: V, out: Optional[V] = None) -> V:
    out = _result(v, out)
    out._data[:] = -v._data
    return out


def absolute(v: V, out: Optional[V] = None) -> V:
    out = _result(v, out)
    out._data[:] = np.abs(v._data)
    return out


def minimum(a: V, b: V, out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = np.minimum(a._data, b._data)
    return out


def maximum(a: V, b: V, out: Optional[V] = None) -> V:
    out = _result(a, out)
    out._data[:] = np.maximum(a._data, b._data)
    return out


def clamp(v: V, low: V, high: V, out: Optional[V] = None) -> V:
    out = _result(v, out)
    out._data[:] = np.maximum(low._data, np.minimum(high._data, v._data))
    return out


def dot(a: Vector, b: Vector) -> float:
    return float(np.dot(a._data, b._data))


def cross(a: Vector3, b: Vector3, out: Optional[Vector3] = None) -> Vector3:
    out = _result(a, out)
    out._data[:] = np.cross(a._data, b._data)
    return out


def length(v: Vector) -> float:
    return float(np.sqrt(np.dot(v._data, v._data)))


def length_squared(v: Vector) -> float:
    return float(np.dot(v._data, v._data))


def distance(a: Vector, b: Vector) -> float:
    return length(b - a)


def distance_squared(a: Vector, b: Vector) -> float:
    return length_squared(b - a)


def normalize(v: V, out: Optional[V] = None) -> V:
    """Unit vector along `v`. The zero vector normalizes to the zero vector."""
    out = _result(v, out)
    n = length(v)
    if n == 0.0:
        out._data[:] = 0.0
    else:
        out._data[:] = v._data / n
    return out


def lerp(a: V, b: V, alpha: Union[float, V], out: Optional[V] = None) -> V:
    """Linear interpolation, `alpha` may be a scalar or a per component vector."""
    out = _result(a, out)
    out._data[:] = a._data + (b._data - a._data) * _operand(alpha)
    return out


def equals(a: Vector, b: Vector, tolerance: Optional[float] = None) -> bool:
    """Component-wise check that `a` and `b` are within `tolerance` of each other."""
    if tolerance is None:
        tolerance = type(a).TOLERANCE
    return bool(np.all(np.abs(a._data - b._data) < tolerance))


def is_valid(v: Vector) -> bool:
    """True when no component is NaN or infinite."""
    return bool(np.all(np.isfinite(v._data)))


def transform(v: V, m: np.ndarray, out: Optional[V] = None) -> V:
    """Transform `v` by a flat column-major 4x4 matrix.

    Vector2 is treated as the point (x, y, 0, 1) without perspective divide,
    Vector3 as (x, y, z, 1) divided by the resulting w, Vector4 as is.
    """
    mat = np.asarray(m, dtype=np.float64).reshape(4, 4, order="F")
    out = _result(v, out)
    if v.SIZE == 4:
        out._data[:] = mat @ v._data
    elif v.SIZE == 3:
        p = mat @ np.array([*v._data, 1.0])
        w = p[3] if p[3] != 0.0 else 1.0
        out._data[:] = p[:3] / w
    else:
        p = mat @ np.array([*v._data, 0.0, 1.0])
        out._data[:] = p[:2]
    return out


def rotate(v: V, rotation, out: Optional[V] = None) -> V:
    """Rotate a Vector3 by a quaternion, or a Vector2 by an angle in degrees."""
    out = _result(v, out)
    if v.SIZE == 2:
        require_reals("rotate", rotation)
        c, s = np.cos(rotation * TO_RAD), np.sin(rotation * TO_RAD)
        x, y = v._data
        out._data[:] = (x * c - y * s, x * s + y * c)
    elif v.SIZE == 3:
        out._data[:] = rotate_vector(v._data, np.asarray(rotation, dtype=np.float64))
    else:
        raise TypeError(f"Cannot rotate a {type(v).__name__}")
    return out
