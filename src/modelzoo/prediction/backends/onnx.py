"""ONNX Runtime backend."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from ...exceptions import MissingLibraryError, PredictionError
from ...specification import OnnxSpecification, WeightsSpecification
from .base import PredictionBackend

logger = logging.getLogger(__name__)


class OnnxBackend(PredictionBackend):
    """Runs ONNX graphs with onnxruntime."""

    weights_id = OnnxSpecification.ID
    requires = "onnxruntime"

    # Execution providers tried per device, in order
    PROVIDER_MAP = {
        "cpu": ["CPUExecutionProvider"],
        "cuda": ["CUDAExecutionProvider", "ROCMExecutionProvider", "CPUExecutionProvider"],
    }

    def __init__(self, device: str = "cpu"):
        super().__init__(name="onnx", device=device)
        self.session = None
        self.input_name = None

    def load(self, weights_path: Path, weights: WeightsSpecification) -> None:
        try:
            import onnxruntime as ort
        except ImportError as e:
            raise MissingLibraryError(
                "onnxruntime not installed. Install with: pip install onnxruntime"
            ) from e

        target = "cuda" if self.device.lower().startswith("cuda") else "cpu"
        available = ort.get_available_providers()
        selected = [p for p in self.PROVIDER_MAP[target] if p in available]
        if not selected:
            logger.warning("No execution providers for %s, falling back to CPU", self.device)
            selected = ["CPUExecutionProvider"]

        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        try:
            self.session = ort.InferenceSession(
                str(weights_path),
                sess_options=sess_options,
                providers=selected,
            )
        except Exception as e:
            raise PredictionError(f"Could not load ONNX model {weights_path}: {e}") from e

        self.input_name = self.session.get_inputs()[0].name
        logger.info("Loaded ONNX model %s with providers %s", weights_path.name, selected)

    def predict(self, batch: np.ndarray) -> np.ndarray:
        if self.session is None:
            raise PredictionError("ONNX model not loaded")
        outputs = self.session.run(None, {self.input_name: np.ascontiguousarray(batch)})
        return np.asarray(outputs[0])

    def close(self) -> None:
        self.session = None
