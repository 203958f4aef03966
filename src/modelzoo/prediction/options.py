"""Prediction options.

Usage:
    options = PredictionOptions.options().batch_size(4).number_of_tiles(8)
    options.values.batch_size  # 4
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from ..settings import ModelZooSettings, get_settings


@dataclass(frozen=True)
class PredictionValues:
    """Parameters copied onto a SingleImagePrediction before it runs."""

    batch_size: int = 1
    cache_directory: Optional[Path] = None
    number_of_tiles: int = 1
    tiling_enabled: bool = True

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.number_of_tiles < 1:
            raise ValueError(f"number_of_tiles must be >= 1, got {self.number_of_tiles}")


class PredictionOptions:
    """Immutable builder around PredictionValues."""

    def __init__(self, values: Optional[PredictionValues] = None):
        self.values = values or PredictionValues()

    @classmethod
    def options(cls, settings: Optional[ModelZooSettings] = None) -> "PredictionOptions":
        """Options initialized from the configured defaults."""
        settings = settings or get_settings()
        return cls(
            PredictionValues(
                batch_size=settings.batch_size,
                cache_directory=settings.cache_dir,
                number_of_tiles=settings.number_of_tiles,
                tiling_enabled=settings.tiling_enabled,
            )
        )

    def batch_size(self, value: int) -> "PredictionOptions":
        return PredictionOptions(replace(self.values, batch_size=int(value)))

    def cache_directory(self, value: Optional[Union[str, Path]]) -> "PredictionOptions":
        path = Path(value).expanduser() if value is not None else None
        return PredictionOptions(replace(self.values, cache_directory=path))

    def number_of_tiles(self, value: int) -> "PredictionOptions":
        return PredictionOptions(replace(self.values, number_of_tiles=int(value)))

    def tiling_enabled(self, value: bool) -> "PredictionOptions":
        return PredictionOptions(replace(self.values, tiling_enabled=bool(value)))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PredictionOptions) and self.values == other.values

    def __repr__(self) -> str:
        return f"PredictionOptions({self.values!r})"
