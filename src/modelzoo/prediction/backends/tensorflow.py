"""TensorFlow SavedModel backend."""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path

import numpy as np

from ...exceptions import MissingLibraryError, PredictionError
from ...specification import TensorFlowSavedModelBundleSpecification, WeightsSpecification
from .base import PredictionBackend

logger = logging.getLogger(__name__)


class TensorFlowSavedModelBackend(PredictionBackend):
    """Runs a zipped SavedModel bundle through its serving signature."""

    weights_id = TensorFlowSavedModelBundleSpecification.ID
    requires = "tensorflow"

    SIGNATURE = "serving_default"

    def __init__(self, device: str = "cpu"):
        super().__init__(name="tensorflow", device=device)
        self._model = None
        self._signature = None

    def _unpack(self, weights_path: Path) -> Path:
        """SavedModel bundles ship zipped; unpack next to the zip, replacing older copies."""
        if weights_path.is_dir():
            return weights_path
        target = weights_path.with_suffix("")
        if target == weights_path:
            target = weights_path.with_name(f"{weights_path.name}-unpacked")
        if target.exists():
            shutil.rmtree(target)
        try:
            with zipfile.ZipFile(weights_path) as zf:
                zf.extractall(target)
        except zipfile.BadZipFile as e:
            raise PredictionError(f"SavedModel bundle {weights_path} is not a zip archive: {e}") from e
        return target

    def load(self, weights_path: Path, weights: WeightsSpecification) -> None:
        try:
            import tensorflow as tf
        except ImportError as e:
            raise MissingLibraryError(
                "tensorflow not installed. Install with: pip install tensorflow"
            ) from e

        tag = getattr(weights, "tag", "serve")
        model_dir = self._unpack(weights_path)
        try:
            self._model = tf.saved_model.load(str(model_dir), tags=[tag])
            self._signature = self._model.signatures[self.SIGNATURE]
        except (OSError, KeyError, ValueError) as e:
            raise PredictionError(f"Could not load SavedModel {model_dir} (tag '{tag}'): {e}") from e
        logger.info("Loaded SavedModel %s with tag '%s'", model_dir.name, tag)

    def predict(self, batch: np.ndarray) -> np.ndarray:
        if self._signature is None:
            raise PredictionError("SavedModel not loaded")
        import tensorflow as tf

        outputs = self._signature(tf.constant(batch))
        first = next(iter(outputs.values()))
        return first.numpy()

    def close(self) -> None:
        self._model = None
        self._signature = None
