"""Model descriptions and per-runtime weights specifications."""

from .model import (
    AXES_ALPHABET,
    SPATIAL_AXES,
    ImplicitOutputShape,
    InputTensorSpecification,
    ModelSpecification,
    OutputTensorSpecification,
    ParametrizedInputShape,
    ProcessingStep,
    load_specification,
    validate_axes,
)
from .weights import (
    WEIGHTS_TYPES,
    OnnxSpecification,
    TensorFlowSavedModelBundleSpecification,
    TorchScriptSpecification,
    WeightsSpecification,
)

__all__ = [
    "AXES_ALPHABET",
    "SPATIAL_AXES",
    "ImplicitOutputShape",
    "InputTensorSpecification",
    "ModelSpecification",
    "OutputTensorSpecification",
    "ParametrizedInputShape",
    "ProcessingStep",
    "load_specification",
    "validate_axes",
    "WEIGHTS_TYPES",
    "OnnxSpecification",
    "TensorFlowSavedModelBundleSpecification",
    "TorchScriptSpecification",
    "WeightsSpecification",
]
