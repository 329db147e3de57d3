"""Camera descriptions and their view-projection matrices.

Cameras look down -Z in their own space, with +Y up. All angles are degrees.
"""

from typing import Any, Dict, Literal, Optional, Union

import numpy as np
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from xformpy import matrix4
from xformpy import quaternion as quat
from xformpy import vector as vec
from xformpy.logging_utils import get_logger, log_exception
from xformpy.matrix4 import Matrix4, look_at, orthographic_projection, perspective_projection
from xformpy.quaternion import Euler, Quaternion
from xformpy.vector import Vector2, Vector3, as_vector


logger = get_logger(__name__)

WORLD_FORWARD = Vector3.const(0.0, 0.0, -1.0)
WORLD_UP = Vector3.UP


class _CameraBase(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def _from_container(cls, data: Any) -> Any:
        if isinstance(data, DictConfig):
            data = OmegaConf.to_container(data, resolve=True)
        return data


class Camera3D(_CameraBase):
    position: Vector3 = Field(default_factory=Vector3)
    rotation: Quaternion = Field(default_factory=Quaternion, description="Unit quaternion")
    fov: float = Field(45.0, description="Vertical field of view in degrees")
    aspect: float = Field(..., gt=0.0, description="Viewport width / height, no default")
    near: float = Field(0.1, gt=0.0, description="Near plane distance")
    far: float = Field(1000.0, gt=0.0, description="Far plane distance")

    @field_validator("position", mode="before")
    @classmethod
    def _to_vector3(cls, value: Any) -> Vector3:
        return as_vector(value, Vector3)

    @field_validator("rotation", mode="before")
    @classmethod
    def _to_quaternion(cls, value: Any) -> Quaternion:
        if isinstance(value, dict):
            return quat.from_euler(Euler(**value))
        return as_vector(value, Quaternion)


class Camera2D(_CameraBase):
    position: Vector2 = Field(default_factory=Vector2)
    rotation: float = Field(0.0, description="Roll about the view axis in degrees")
    zoom: float = Field(1.0, gt=0.0, description="Half width of the visible area in world units")
    width: float = Field(..., gt=0.0, description="Viewport width")
    height: float = Field(..., gt=0.0, description="Viewport height")
    near: float = Field(-1.0, description="Near plane")
    far: float = Field(1.0, description="Far plane")
    vertical_bounds: Literal["legacy", "centered"] = Field(
        "legacy",
        description=(
            "'legacy' puts both bottom and top at zoom * aspect, a degenerate frustum kept for "
            "compatibility; 'centered' uses bottom = -zoom * aspect"
        ),
    )

    @field_validator("position", mode="before")
    @classmethod
    def _to_vector2(cls, value: Any) -> Vector2:
        return as_vector(value, Vector2)

    @property
    def aspect(self) -> float:
        return self.width / self.height


def view_projection_3d(camera: Camera3D, out: Optional[Matrix4] = None) -> Matrix4:
    """projection * view of a perspective camera.

    The view up vector is the negated rotated world up, matching the
    handedness `look_at` expects.
    """
    forward = vec.rotate(WORLD_FORWARD, camera.rotation)
    up = vec.negate(vec.rotate(WORLD_UP, camera.rotation))

    view = look_at(camera.position, camera.position + forward, up)
    projection = perspective_projection(camera.fov, camera.aspect, camera.near, camera.far)
    return matrix4.mul(projection, view, out)


def view_projection_2d(camera: Camera2D, out: Optional[Matrix4] = None) -> Matrix4:
    """projection * view of a top-down orthographic camera."""
    placement = matrix4.compose({
        "translation": [camera.position.x, camera.position.y, 0.0],
        "rotation": quat.from_euler(Euler(roll=camera.rotation)),
    })
    view = matrix4.invert(placement)

    extent = camera.zoom * camera.aspect
    if camera.vertical_bounds == "legacy":
        logger.warning(
            "view_projection_2d with legacy vertical bounds: bottom == top == zoom * aspect "
            f"({extent}), the projection is degenerate. Use vertical_bounds='centered' for a "
            "frustum centered on the camera."
        )
        bottom = extent
    else:
        bottom = -extent

    # the legacy frustum carries infinities, let them propagate quietly
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        projection = orthographic_projection(-camera.zoom, camera.zoom, bottom, extent, camera.near, camera.far)
        return matrix4.mul(projection, view, out)


class CameraConfig(BaseModel):
    type: Literal["perspective", "orthographic"] = "perspective"
    config: Union[Camera3D, Camera2D]

    @model_validator(mode="before")
    @classmethod
    def set_camera_config(cls, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            data = OmegaConf.to_container(data, resolve=True)

        values = dict(data)
        camera_type = values.get("type", "perspective")
        camera = values.get("config", {})

        if isinstance(camera, (Camera3D, Camera2D)):
            return values

        if camera_type == "perspective":
            values["config"] = Camera3D(**camera)
        elif camera_type == "orthographic":
            values["config"] = Camera2D(**camera)
        else:
            raise ValueError(f"Unsupported camera type {camera_type}")
        return values

    @model_validator(mode="after")
    def check_camera_type(self) -> "CameraConfig":
        expected = Camera3D if self.type == "perspective" else Camera2D
        if not isinstance(self.config, expected):
            raise ValueError(f"A {self.type} camera needs a {expected.__name__}, got {type(self.config).__name__}")
        return self


class CameraFactory:
    @staticmethod
    def view_projection(config: CameraConfig, out: Optional[Matrix4] = None) -> Matrix4:
        if config.type == "perspective":
            return view_projection_3d(config.config, out)
        elif config.type == "orthographic":
            return view_projection_2d(config.config, out)
        else:
            raise ValueError(f"Unsupported camera type {config.type}")


def load_camera_config(path: str) -> CameraConfig:
    """Read a camera description from a YAML file.

    Example:
        type: perspective
        config:
          position: [0.0, 2.0, 5.0]
          rotation: {pitch: -15.0}
          fov: 60.0
          aspect: 1.7778
    """
    try:
        return CameraConfig.model_validate(OmegaConf.load(path))
    except Exception:
        log_exception(logger, f"Failed to load camera config from {path}")
        raise


__all__ = [
    "Camera2D",
    "Camera3D",
    "CameraConfig",
    "CameraFactory",
    "WORLD_FORWARD",
    "WORLD_UP",
    "load_camera_config",
    "look_at",
    "orthographic_projection",
    "perspective_projection",
    "view_projection_2d",
    "view_projection_3d",
]
