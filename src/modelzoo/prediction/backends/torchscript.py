"""TorchScript backend."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from ...exceptions import MissingLibraryError, PredictionError
from ...specification import TorchScriptSpecification, WeightsSpecification
from .base import PredictionBackend

logger = logging.getLogger(__name__)


class TorchScriptBackend(PredictionBackend):
    """Runs TorchScript modules with torch.jit."""

    weights_id = TorchScriptSpecification.ID
    requires = "torch"

    def __init__(self, device: str = "cpu"):
        super().__init__(name="torchscript", device=device)
        self._model = None
        self._torch_device = None

    def _pick_device(self, torch):
        if self.device.lower().startswith("cuda"):
            if torch.cuda.is_available():
                return torch.device(self.device)
            logger.warning("CUDA requested but not available, falling back to CPU")
        return torch.device("cpu")

    def load(self, weights_path: Path, weights: WeightsSpecification) -> None:
        try:
            import torch
        except ImportError as e:
            raise MissingLibraryError(
                "torch not installed. Install with: pip install torch"
            ) from e

        self._torch_device = self._pick_device(torch)
        try:
            self._model = torch.jit.load(str(weights_path), map_location=self._torch_device)
        except RuntimeError as e:
            raise PredictionError(f"Could not load TorchScript model {weights_path}: {e}") from e
        self._model.eval()
        logger.info("Loaded TorchScript model %s on %s", weights_path.name, self._torch_device)

    def predict(self, batch: np.ndarray) -> np.ndarray:
        if self._model is None:
            raise PredictionError("TorchScript model not loaded")
        import torch

        tensor = torch.from_numpy(np.ascontiguousarray(batch)).to(self._torch_device)
        with torch.no_grad():
            output = self._model(tensor)
        if isinstance(output, (tuple, list)):
            output = output[0]
        return output.detach().cpu().numpy()

    def close(self) -> None:
        self._model = None
