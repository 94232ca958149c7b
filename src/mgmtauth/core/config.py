from __future__ import annotations
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import DEFAULT_HOST, DEFAULT_LOG_LEVEL, DEFAULT_PORT, ENV_PREFIX, LOG_LEVELS
from .errors import ConfigError

class ManagementSettings(BaseModel):
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    password: Optional[str] = None
    verify_timeout_s: Optional[float] = Field(default=None, gt=0)
    log_level: str = DEFAULT_LOG_LEVEL
    strict: bool = False

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("host")
    @classmethod
    def _check_host(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("host must not be empty")
        return v.strip()

    @classmethod
    def load(cls, **values) -> "ManagementSettings":
        """Build settings, dropping unset values and wrapping validation errors."""
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, environ: Optional[Mapping[str, str]] = None) -> "ManagementSettings":
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(prefix + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        return cls.load(**values)
