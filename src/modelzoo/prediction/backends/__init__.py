"""Prediction backends, keyed by weights id."""

from __future__ import annotations

from typing import Optional

from .base import PredictionBackend
from .onnx import OnnxBackend
from .tensorflow import TensorFlowSavedModelBackend
from .torchscript import TorchScriptBackend

BACKENDS: dict[str, type[PredictionBackend]] = {
    TorchScriptBackend.weights_id: TorchScriptBackend,
    OnnxBackend.weights_id: OnnxBackend,
    TensorFlowSavedModelBackend.weights_id: TensorFlowSavedModelBackend,
}


def register_backend(backend_cls: type[PredictionBackend]) -> type[PredictionBackend]:
    """Register a backend class for its weights id. Usable as a decorator."""
    BACKENDS[backend_cls.weights_id] = backend_cls
    return backend_cls


def get_backend_class(weights_id: str) -> Optional[type[PredictionBackend]]:
    return BACKENDS.get(weights_id)


__all__ = [
    "BACKENDS",
    "OnnxBackend",
    "PredictionBackend",
    "TensorFlowSavedModelBackend",
    "TorchScriptBackend",
    "get_backend_class",
    "register_backend",
]
