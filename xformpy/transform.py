from enum import Enum
from typing import Any

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from xformpy.quaternion import Quaternion
from xformpy.vector import Vector2, Vector3, as_vector


class TransformOrder(Enum):
    """Sequence in which translate (T), rotate (R) and scale (S) are concatenated.

    The first letter builds the accumulator, the other two post-multiply onto
    it, so TRS yields T * R * S.
    """
    TRS = "TRS"
    RTS = "RTS"
    STR = "STR"
    SRT = "SRT"
    RST = "RST"
    TSR = "TSR"


class _TransformBase(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    order: TransformOrder = Field(TransformOrder.TRS, description="Concatenation order of the components")

    @model_validator(mode="before")
    @classmethod
    def _from_container(cls, data: Any) -> Any:
        if isinstance(data, DictConfig):
            data = OmegaConf.to_container(data, resolve=True)
        return data


class Transform3D(_TransformBase):
    translation: Vector3 = Field(default_factory=Vector3)
    rotation: Quaternion = Field(default_factory=Quaternion)
    scale: Vector3 = Field(default_factory=lambda: Vector3.from_scalar(1.0))

    @field_validator("translation", "scale", mode="before")
    @classmethod
    def _to_vector3(cls, value: Any) -> Vector3:
        return as_vector(value, Vector3)

    @field_validator("rotation", mode="before")
    @classmethod
    def _to_quaternion(cls, value: Any) -> Quaternion:
        return as_vector(value, Quaternion)


class Transform2D(_TransformBase):
    translation: Vector2 = Field(default_factory=Vector2)
    rotation: float = Field(0.0, description="Counter-clockwise angle in radians")
    scale: Vector2 = Field(default_factory=lambda: Vector2.from_scalar(1.0))

    @field_validator("translation", "scale", mode="before")
    @classmethod
    def _to_vector2(cls, value: Any) -> Vector2:
        return as_vector(value, Vector2)


def as_transform(transform, model):
    """Accept a transform, a (partial) mapping of its fields or None."""
    if transform is None:
        return model()
    if isinstance(transform, model):
        return transform
    if isinstance(transform, (dict, DictConfig)):
        return model.model_validate(transform)
    raise TypeError(f"Expected {model.__name__} or a mapping, got {type(transform).__name__}")
