"""Base interface for single image predictions.

A SingleImagePrediction is configured field by field, run once, and then
asked for its output. Plugins subclass it and register under the name a
model description uses as its ``source``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

import numpy as np

from ..archive import ModelZooArchive
from ..exceptions import PredictionError
from .input import ImageInput

if TYPE_CHECKING:
    from ..context import Context


class SingleImagePrediction(ABC):
    """Prediction of one image with one model archive."""

    def __init__(self, context: Optional["Context"] = None):
        self.context = context
        self.trained_model: Optional[ModelZooArchive] = None
        self.input: Optional[ImageInput] = None
        self.batch_size = 1
        self.cache_dir: Optional[Path] = None
        self.number_of_tiles = 1
        self.tiling_enabled = True
        self._output: Optional[np.ndarray] = None
        self.output_axes: Optional[str] = None

    def set_trained_model(self, trained_model: ModelZooArchive) -> None:
        self.trained_model = trained_model

    def set_input(self, image: np.ndarray, axes: str, name: str = "input") -> None:
        self.input = ImageInput(name, image, axes)

    def set_batch_size(self, batch_size: int) -> None:
        if batch_size < 1:
            raise PredictionError(f"batch size must be >= 1, got {batch_size}")
        self.batch_size = batch_size

    def set_cache_dir(self, cache_dir: Optional[Union[str, Path]]) -> None:
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir is not None else None

    def set_number_of_tiles(self, number_of_tiles: int) -> None:
        if number_of_tiles < 1:
            raise PredictionError(f"number of tiles must be >= 1, got {number_of_tiles}")
        self.number_of_tiles = number_of_tiles

    def set_tiling_enabled(self, enabled: bool) -> None:
        self.tiling_enabled = enabled

    def get_output(self) -> Optional[np.ndarray]:
        return self._output

    def _check_configured(self) -> None:
        if self.trained_model is None:
            raise PredictionError("No trained model set")
        if self.input is None:
            raise PredictionError("No input image set")

    @abstractmethod
    def run(self) -> None:
        """Execute the prediction; the result is read with get_output()."""
        pass
