"""Vector, quaternion and affine transform helpers for real-time graphics and game code."""

from xformpy.quaternion import Euler, EulerOrder, Quaternion
from xformpy.transform import Transform2D, Transform3D, TransformOrder
from xformpy.vector import Vector2, Vector3, Vector4

__version__ = "0.1.0"
