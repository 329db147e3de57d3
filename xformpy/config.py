"""Library wide configuration.

The configuration is built once at import time:

- defaults come from `LibraryConfig`
- if XFORMPY_CONFIG is set, the YAML file it names is merged on top

It is frozen afterwards, every module reads it but nothing writes it.
"""

from __future__ import annotations

import os
from typing import Literal, Optional

import numpy as np
from omegaconf import OmegaConf
from pydantic import BaseModel, ConfigDict, Field


CONFIG_ENV_VAR = "XFORMPY_CONFIG"


class LibraryConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    dtype: Literal["float32", "float64"] = Field("float32", description="Element type of newly allocated matrices")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "WARNING", description="Level of the package loggers"
    )
    log_formatter: Literal["system", "pipeline", "module"] = Field("module", description="Color scheme of log records")

    @property
    def np_dtype(self) -> np.dtype:
        return np.dtype(self.dtype)


def load_config(path: Optional[str] = None) -> LibraryConfig:
    """Merge the YAML file at `path` (or $XFORMPY_CONFIG) over the defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)

    base = OmegaConf.create(LibraryConfig().model_dump())
    if path:
        base = OmegaConf.merge(base, OmegaConf.load(path))

    return LibraryConfig(**OmegaConf.to_container(base, resolve=True))


CONFIG = load_config()
