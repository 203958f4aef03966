"""Base interface for prediction backends."""

from __future__ import annotations

import importlib.util
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

import numpy as np

from ...specification import WeightsSpecification


class PredictionBackend(ABC):
    """Abstract base class for inference runtimes.

    A backend executes one weights format. It is loaded once per
    prediction and then called with batches already laid out in the
    model input's axes order.
    """

    #: Weights id this backend executes
    weights_id: str = "unknown"

    #: Python module that must be importable for the backend to work
    requires: str = ""

    def __init__(self, name: str, device: str = "cpu"):
        self.name = name
        self.device = device

    def is_available(self) -> bool:
        """Check if the runtime library can be imported."""
        return not self.requires or importlib.util.find_spec(self.requires) is not None

    @abstractmethod
    def load(self, weights_path: Path, weights: WeightsSpecification) -> None:
        """Load extracted weights.

        Args:
            weights_path: Extracted weights file
            weights: Weights entry from the model description

        Raises:
            MissingLibraryError: If the runtime is not installed
        """
        pass

    @abstractmethod
    def predict(self, batch: np.ndarray) -> np.ndarray:
        """Run inference on one batch and return the first output tensor."""
        pass

    def close(self) -> None:
        """Release the loaded model."""
        pass

    def get_capabilities(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "weights_id": self.weights_id,
            "device": self.device,
            "available": self.is_available(),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', device='{self.device}')"
