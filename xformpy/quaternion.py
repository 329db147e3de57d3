"""Unit quaternion rotations.

Quaternions are `Vector4`s with the identity (0, 0, 0, 1) as default value, so
the generic vector helpers (dot, lerp, normalize, views over buffers) apply to
them as well. Euler angles are in degrees, axis-angle angles in radians.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from xformpy import vector as vec
from xformpy.common import TO_RAD
from xformpy.transformations import (
    quaternion_between,
    quaternion_conjugate,
    quaternion_from_axis_angle,
    quaternion_inverse,
    quaternion_multiply,
    quaternion_slerp,
    quaternion_to_axis_angle,
)
from xformpy.vector import Vector3, Vector4, as_vector


class Quaternion(Vector4):
    TOLERANCE = 0.0001
    __slots__ = ()

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0, w: float = 1.0) -> None:
        super().__init__(x, y, z, w)

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls()


Quaternion.IDENTITY = Quaternion.const(0.0, 0.0, 0.0, 1.0)
Quaternion.ZERO = Quaternion.const(0.0, 0.0, 0.0, 0.0)


class EulerOrder(Enum):
    """Sequence in which yaw (Y), pitch (X) and roll (Z) are applied."""
    YAW_PITCH_ROLL = "YawPitchRoll"
    ROLL_PITCH_YAW = "RollPitchYaw"
    PITCH_YAW_ROLL = "PitchYawRoll"
    ROLL_YAW_PITCH = "RollYawPitch"
    PITCH_ROLL_YAW = "PitchRollYaw"
    YAW_ROLL_PITCH = "YawRollPitch"


class Euler(BaseModel):
    yaw: float = Field(0.0, description="Rotation about Y in degrees")
    pitch: float = Field(0.0, description="Rotation about X in degrees")
    roll: float = Field(0.0, description="Rotation about Z in degrees")
    order: EulerOrder = Field(EulerOrder.PITCH_YAW_ROLL, description="Application order of the three rotations")


class AxisAngle(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    axis: Vector3 = Field(default_factory=lambda: Vector3(1.0, 0.0, 0.0))
    angle: float = Field(0.0, description="Angle in radians")

    @field_validator("axis", mode="before")
    @classmethod
    def _to_vector(cls, value: Any) -> Vector3:
        return as_vector(value, Vector3)


def _store(values: np.ndarray, out: Optional[Quaternion]) -> Quaternion:
    if out is None:
        out = Quaternion()
    out.data[:] = values
    return out


def multiply(a: Quaternion, b: Quaternion, out: Optional[Quaternion] = None) -> Quaternion:
    """a * b, applying b first when rotating a vector."""
    return _store(quaternion_multiply(a.data, b.data), out)


def conjugate(q: Quaternion, out: Optional[Quaternion] = None) -> Quaternion:
    return _store(quaternion_conjugate(q.data), out)


def invert(q: Quaternion, out: Optional[Quaternion] = None) -> Quaternion:
    return _store(quaternion_inverse(q.data), out)


def normalize(q: Quaternion, out: Optional[Quaternion] = None) -> Quaternion:
    return vec.normalize(q, out)


def slerp(a: Quaternion, b: Quaternion, alpha: float, out: Optional[Quaternion] = None) -> Quaternion:
    """Spherical interpolation from `a` to `b` along the shortest arc."""
    return _store(quaternion_slerp(a.data, b.data, alpha), out)


def equals(a: Quaternion, b: Quaternion, tolerance: float = Quaternion.TOLERANCE) -> bool:
    return vec.equals(a, b, tolerance)


def is_valid(q: Quaternion) -> bool:
    return vec.is_valid(q)


_AXES = {
    "yaw": np.array([0.0, 1.0, 0.0]),
    "pitch": np.array([1.0, 0.0, 0.0]),
    "roll": np.array([0.0, 0.0, 1.0]),
}

_EULER_SEQUENCES = {
    EulerOrder.YAW_PITCH_ROLL: ("yaw", "pitch", "roll"),
    EulerOrder.ROLL_PITCH_YAW: ("roll", "pitch", "yaw"),
    EulerOrder.PITCH_YAW_ROLL: ("pitch", "yaw", "roll"),
    EulerOrder.ROLL_YAW_PITCH: ("roll", "yaw", "pitch"),
    EulerOrder.PITCH_ROLL_YAW: ("pitch", "roll", "yaw"),
    EulerOrder.YAW_ROLL_PITCH: ("yaw", "roll", "pitch"),
}


def from_euler(euler: Union[Euler, Dict[str, Any], None] = None, out: Optional[Quaternion] = None) -> Quaternion:
    """Quaternion from Euler angles in degrees.

    Missing angles are zero and the default order is PitchYawRoll. Each angle
    is post-multiplied onto the accumulator in the listed order.
    """
    if euler is None:
        euler = Euler()
    elif isinstance(euler, dict):
        euler = Euler(**euler)

    try:
        sequence = _EULER_SEQUENCES[euler.order]
    except KeyError:
        raise ValueError(f"Unsupported euler order: {euler.order}") from None

    q = np.array([0.0, 0.0, 0.0, 1.0])
    for name in sequence:
        step = quaternion_from_axis_angle(_AXES[name], getattr(euler, name) * TO_RAD)
        q = quaternion_multiply(q, step)

    return _store(q / np.linalg.norm(q), out)


def rotate_euler(
    q: Quaternion,
    euler: Union[Euler, Dict[str, Any]],
    out: Optional[Quaternion] = None
) -> Quaternion:
    return multiply(q, from_euler(euler), out)


def from_axis_angle(axis_angle: AxisAngle, out: Optional[Quaternion] = None) -> Quaternion:
    return _store(quaternion_from_axis_angle(axis_angle.axis.data, axis_angle.angle), out)


def to_axis_angle(q: Quaternion) -> AxisAngle:
    axis, angle = quaternion_to_axis_angle(q.data)
    return AxisAngle(axis=Vector3.from_array(axis), angle=angle)


def rotate_axis_angle(q: Quaternion, axis: Vector3, angle: float, out: Optional[Quaternion] = None) -> Quaternion:
    return multiply(q, from_axis_angle(AxisAngle(axis=axis, angle=angle)), out)


def rotation_from_to(source: Vector3, target: Vector3, out: Optional[Quaternion] = None) -> Quaternion:
    """Shortest rotation turning unit vector `source` onto unit vector `target`."""
    return _store(quaternion_between(source.data, target.data), out)
