"""Configuration for the model zoo service.

Settings are read from YAML, project file first:

    .modelzoo/config.yaml
    ~/.modelzoo/config.yaml

Environment variables override single fields:

    MODELZOO_CACHE_DIR, MODELZOO_BATCH_SIZE, MODELZOO_NUMBER_OF_TILES,
    MODELZOO_TILING, MODELZOO_DEVICE
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path(".modelzoo") / "config.yaml"
USER_CONFIG = Path.home() / ".modelzoo" / "config.yaml"

DEFAULT_CONFIG = """version: "1.0"

# Where archive weights are unpacked before loading
cache_dir: ~/.cache/modelzoo/models

# Prediction defaults
batch_size: 1
number_of_tiles: 1
tiling_enabled: true

# Inference device (cpu, cuda, cuda:1, ...)
device: cpu
"""

_ENV_FIELDS = {
    "MODELZOO_CACHE_DIR": "cache_dir",
    "MODELZOO_BATCH_SIZE": "batch_size",
    "MODELZOO_NUMBER_OF_TILES": "number_of_tiles",
    "MODELZOO_TILING": "tiling_enabled",
    "MODELZOO_DEVICE": "device",
}


class ModelZooSettings(BaseModel):
    """Service-wide defaults."""

    cache_dir: Path = Field(
        default=Path.home() / ".cache" / "modelzoo" / "models",
        description="Directory archive weights are extracted into",
    )
    batch_size: int = Field(default=1, ge=1, description="Samples per backend call")
    number_of_tiles: int = Field(default=1, ge=1, description="Tiles per image")
    tiling_enabled: bool = Field(default=True, description="Split large images into tiles")
    device: str = Field(default="cpu", description="Inference device")

    def model_post_init(self, __context: Any) -> None:
        self.cache_dir = self.cache_dir.expanduser()


def find_config_file() -> Optional[Path]:
    """Return the first existing config file, project before user."""
    for candidate in (PROJECT_CONFIG, USER_CONFIG):
        if candidate.exists():
            return candidate
    return None


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[dict[str, str]] = None,
) -> ModelZooSettings:
    """Load settings from YAML and apply environment overrides.

    Args:
        path: Explicit config file (searched for if None)
        environ: Environment mapping (os.environ if None)

    Returns:
        Validated ModelZooSettings

    Raises:
        ConfigurationError: If the file is not valid YAML or a value is invalid
    """
    environ = os.environ if environ is None else environ
    config_path = Path(path) if path is not None else find_config_file()

    data: dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")
        data.pop("version", None)
        logger.debug("Loaded settings from %s", config_path)

    for env_name, field_name in _ENV_FIELDS.items():
        if env_name in environ:
            data[field_name] = environ[env_name]

    try:
        return ModelZooSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


_settings: Optional[ModelZooSettings] = None


def get_settings() -> ModelZooSettings:
    """Get or load the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call reloads them."""
    global _settings
    _settings = None
