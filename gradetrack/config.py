"""
Platform configuration: a JSON file plus GRADETRACK_* environment overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .core.assessments import DEFAULT_UPCOMING_DAYS, MAX_UPCOMING_DAYS
from .core.exceptions import ConfigurationError
from .services.concurrency_manager import DEFAULT_LOCK_TIMEOUT
from .services.report_service import DEFAULT_TARGET_GRADE

ENV_PREFIX = "GRADETRACK_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PlatformConfig(BaseModel):
    """Settings for one GradeTrack process."""
    database_path: str = Field("gradetrack.db", min_length=1)
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    # Target used by course summaries when the caller gives none
    default_target: float = Field(DEFAULT_TARGET_GRADE, ge=0)
    upcoming_days: int = Field(DEFAULT_UPCOMING_DAYS, ge=0, le=MAX_UPCOMING_DAYS)
    lock_timeout: float = Field(DEFAULT_LOCK_TIMEOUT, gt=0)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        # Environment values arrive as "a,b,c"
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    overrides = {}
    for name in PlatformConfig.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            overrides[name] = environ[key]
    return overrides


def load_config(path: Optional[Union[str, Path]] = None,
                environ: Optional[Mapping[str, str]] = None,
                **overrides: Any) -> PlatformConfig:
    """Build the configuration from file, environment and explicit overrides, in that order."""
    values: Dict[str, Any] = {}

    if path:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration file {path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        values.update(data)

    values.update(_environment_overrides(os.environ if environ is None else environ))
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return PlatformConfig(**values)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            details={'errors': [
                {'field': '.'.join(str(p) for p in err['loc']), 'message': err['msg']}
                for err in e.errors()
            ]}
        )
