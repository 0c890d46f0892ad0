"""System-wide configuration.

One configuration object for the whole engine: logging, IRR solver constants
and the fallback asset-type label used by portfolio aggregation.

Loading order:
    1. Path in the FOLIO_CONFIG environment variable (YAML)
    2. Built-in defaults

Example YAML:
    logging:
      level: DEBUG
      format: json
    solver:
      max_iterations: 200
      tolerance: 0.00001
    unknown_asset_type: unclassified
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.libraries.performance.models import SolverConfig
from folio.system.log_system import LoggingConfig

CONFIG_ENV_VAR = "FOLIO_CONFIG"


class SystemConfig(BaseModel):
    """
    Complete engine configuration.

    Attributes:
        logging: Logging system settings
        solver: Newton-Raphson constants for money-weighted return
        unknown_asset_type: Bucket label for assets missing type metadata
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    solver: SolverConfig = Field(default_factory=SolverConfig)
    unknown_asset_type: str = "unknown"

    @field_validator("unknown_asset_type")
    @classmethod
    def validate_unknown_asset_type(cls, v: str) -> str:
        """Validate fallback label is not blank."""
        if not v.strip():
            raise ValueError("unknown_asset_type cannot be blank")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> "SystemConfig":
        """Load configuration from YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}: {path}")
        return cls(**data)

    model_config = ConfigDict(frozen=True)


_system_config: SystemConfig | None = None


def _load_system_config() -> SystemConfig:
    path = os.environ.get(CONFIG_ENV_VAR)
    if path:
        return SystemConfig.from_yaml(Path(path))
    return SystemConfig()


def get_system_config() -> SystemConfig:
    """
    Get the system config singleton.

    Loaded lazily on first call. Use reload_system_config() after changing
    FOLIO_CONFIG or the file it points to.
    """
    global _system_config
    if _system_config is None:
        _system_config = _load_system_config()
    return _system_config


def reload_system_config() -> SystemConfig:
    """Force reload of the system config singleton."""
    global _system_config
    _system_config = _load_system_config()
    return _system_config
