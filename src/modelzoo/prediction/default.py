"""Default prediction: any archive whose weights a local backend can run."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

import numpy as np

from ..exceptions import MissingLibraryError, PredictionError
from ..plugins import plugin
from ..settings import get_settings
from ..specification import InputTensorSpecification, OutputTensorSpecification
from .axes import BATCH, core_axes, from_model_layout, reorder, to_model_layout
from .backends import PredictionBackend, get_backend_class
from .base import SingleImagePrediction
from .processing import apply_steps, check_steps
from .tiling import Tiler

logger = logging.getLogger(__name__)


def _slugify(text: str) -> str:
    """Convert text to a filesystem-friendly slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    return text or "model"


@plugin(SingleImagePrediction, name="default")
class DefaultSingleImagePrediction(SingleImagePrediction):
    """Runs the first weights entry with an installed backend.

    Steps: translate axes, preprocess, predict tile by tile in batches,
    postprocess, translate back to the input's axes.
    """

    def __init__(self, context=None):
        super().__init__(context)
        self.backend: Optional[PredictionBackend] = None
        self._input_spec: Optional[InputTensorSpecification] = None
        self._output_spec: Optional[OutputTensorSpecification] = None

    @property
    def _settings(self):
        if self.context is not None:
            return self.context.settings
        return get_settings()

    def model_cache_dir(self) -> Path:
        base = self.cache_dir or self._settings.cache_dir
        return Path(base) / _slugify(self.trained_model.name)

    def run(self) -> None:
        self._check_configured()
        specification = self.trained_model.specification
        if len(specification.inputs) > 1 or len(specification.outputs) > 1:
            logger.warning(
                "Model '%s' has %d inputs and %d outputs; only the first of each is used",
                specification.name,
                len(specification.inputs),
                len(specification.outputs),
            )
        self._input_spec = specification.inputs[0]
        self._output_spec = specification.outputs[0]
        check_steps(self._input_spec.preprocessing)
        check_steps(self._output_spec.postprocessing)

        array, layout = to_model_layout(self.input.image, self.input.axes, self._input_spec.axes)
        logger.info(
            "Predicting %s (%s) with '%s': %d samples",
            self.input.image.shape,
            self.input.axes,
            specification.name,
            layout.batch_size,
        )
        array = apply_steps(self._input_spec.preprocessing, array, layout.layout_axes)
        array = array.astype(self._input_spec.data_type, copy=False)

        self.backend = self.load_backend()
        try:
            tiler = Tiler(
                self._input_spec,
                self._output_spec,
                number_of_tiles=self.number_of_tiles,
                enabled=self.tiling_enabled,
            )
            output = tiler.run(array, self._predict_batches)
        finally:
            self.backend.close()

        output_layout = BATCH + core_axes(self._output_spec.axes)
        output = apply_steps(self._output_spec.postprocessing, output, output_layout)
        output = output.astype(self._output_spec.data_type, copy=False)
        self._output, self.output_axes = from_model_layout(output, layout, output_layout)
        logger.info("Prediction done: output %s (%s)", self._output.shape, self.output_axes)

    def load_backend(self) -> PredictionBackend:
        """Extract and load the first weights entry an installed backend supports.

        Raises:
            MissingLibraryError: If no backend is usable
        """
        specification = self.trained_model.specification
        tried = []
        for weights_id, weights in specification.weights.items():
            backend_cls = get_backend_class(weights_id)
            if backend_cls is None:
                logger.debug("No backend for weights '%s'", weights_id)
                tried.append(f"{weights_id} (no backend)")
                continue
            backend = backend_cls(device=self._settings.device)
            if not backend.is_available():
                tried.append(f"{weights_id} (needs {backend.requires})")
                continue

            target = self.model_cache_dir()
            weights_path = self.trained_model.extract(weights.source, target)
            for attachment in weights.attachments:
                self.trained_model.extract(attachment, target)
            backend.load(weights_path, weights)
            logger.info("Using %s backend for '%s'", backend.name, specification.name)
            return backend

        raise MissingLibraryError(
            f"No usable backend for model '{specification.name}'. "
            f"Tried: {', '.join(tried) or 'no weights listed'}"
        )

    def _predict_batches(self, array: np.ndarray) -> np.ndarray:
        """Feed ``b`` + input axes samples to the backend in batch_size chunks."""
        input_layout = BATCH + core_axes(self._input_spec.axes)
        output_layout = BATCH + core_axes(self._output_spec.axes)
        model_has_batch = BATCH in self._input_spec.axes
        chunk = self.batch_size if model_has_batch else 1

        results = []
        for start in range(0, array.shape[0], chunk):
            batch = array[start:start + chunk]
            if model_has_batch:
                batch = reorder(batch, input_layout, self._input_spec.axes)
            else:
                batch = batch[0]
            output = self.backend.predict(batch)
            output = self._to_output_layout(output, output_layout)
            results.append(output)
        return np.concatenate(results, axis=0)

    def _to_output_layout(self, output: np.ndarray, output_layout: str) -> np.ndarray:
        axes = self._output_spec.axes
        if output.ndim != len(axes):
            raise PredictionError(
                f"Backend returned {output.ndim} dimensions, output '{self._output_spec.name}' "
                f"declares axes '{axes}'"
            )
        if BATCH in axes:
            return reorder(output, axes, output_layout)
        return output[np.newaxis]
