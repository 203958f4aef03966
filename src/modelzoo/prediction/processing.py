"""Pre- and postprocessing steps named in model descriptions.

Every step takes an array in ``b`` + tensor axes layout, the axes string,
and the keyword arguments from the description. Per-sample statistics are
computed over all axes except ``b`` unless the step's ``axes`` kwarg names
the reduction axes.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import numpy as np

from ..exceptions import SpecificationError
from ..specification import ProcessingStep

StepFn = Callable[..., np.ndarray]


def _reduction(tensor_axes: str, mode: str, axes: Optional[str]) -> tuple[int, ...]:
    if axes:
        return tuple(tensor_axes.index(a) for a in axes.lower() if a in tensor_axes)
    if mode == "per_dataset":
        return tuple(range(len(tensor_axes)))
    if mode == "per_sample":
        return tuple(i for i, a in enumerate(tensor_axes) if a != "b")
    raise SpecificationError(f"Unsupported processing mode '{mode}'")


def _along_channels(value: Any, tensor_axes: str, ndim: int) -> Any:
    """Broadcast a per-channel list along the ``c`` axis."""
    if not isinstance(value, (list, tuple)):
        return value
    if "c" not in tensor_axes:
        raise SpecificationError("per-channel values given but tensor has no 'c' axis")
    shape = [1] * ndim
    shape[tensor_axes.index("c")] = len(value)
    return np.asarray(value, dtype=np.float32).reshape(shape)


def zero_mean_unit_variance(
    array: np.ndarray,
    tensor_axes: str,
    mode: str = "per_sample",
    mean: Any = None,
    std: Any = None,
    eps: float = 1e-6,
    axes: Optional[str] = None,
) -> np.ndarray:
    array = array.astype(np.float32, copy=False)
    if mode == "fixed":
        if mean is None or std is None:
            raise SpecificationError("zero_mean_unit_variance with mode 'fixed' needs mean and std")
        mean = _along_channels(mean, tensor_axes, array.ndim)
        std = _along_channels(std, tensor_axes, array.ndim)
    else:
        reduce = _reduction(tensor_axes, mode, axes)
        mean = array.mean(axis=reduce, keepdims=True)
        std = array.std(axis=reduce, keepdims=True)
    return (array - mean) / (std + eps)


def scale_linear(
    array: np.ndarray,
    tensor_axes: str,
    gain: Any = 1.0,
    offset: Any = 0.0,
    axes: Optional[str] = None,
) -> np.ndarray:
    gain = _along_channels(gain, tensor_axes, array.ndim)
    offset = _along_channels(offset, tensor_axes, array.ndim)
    return array.astype(np.float32, copy=False) * gain + offset


def scale_range(
    array: np.ndarray,
    tensor_axes: str,
    mode: str = "per_sample",
    min_percentile: float = 0.0,
    max_percentile: float = 100.0,
    eps: float = 1e-6,
    axes: Optional[str] = None,
) -> np.ndarray:
    array = array.astype(np.float32, copy=False)
    reduce = _reduction(tensor_axes, mode, axes)
    low = np.percentile(array, min_percentile, axis=reduce, keepdims=True)
    high = np.percentile(array, max_percentile, axis=reduce, keepdims=True)
    return (array - low) / (high - low + eps)


def clip(
    array: np.ndarray,
    tensor_axes: str,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> np.ndarray:
    return np.clip(array, min, max)


def binarize(array: np.ndarray, tensor_axes: str, threshold: float = 0.5) -> np.ndarray:
    return (array > threshold).astype(np.float32)


def sigmoid(array: np.ndarray, tensor_axes: str) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-array.astype(np.float32, copy=False)))


PROCESSING_STEPS: dict[str, StepFn] = {
    "zero_mean_unit_variance": zero_mean_unit_variance,
    "scale_linear": scale_linear,
    "scale_range": scale_range,
    "clip": clip,
    "binarize": binarize,
    "sigmoid": sigmoid,
}


def check_steps(steps: Sequence[ProcessingStep]) -> None:
    """Raise SpecificationError for step names that are not implemented."""
    unknown = [s.name for s in steps if s.name not in PROCESSING_STEPS]
    if unknown:
        raise SpecificationError(
            f"Unknown processing steps {unknown}. Known: {sorted(PROCESSING_STEPS)}"
        )


def apply_steps(
    steps: Sequence[ProcessingStep],
    array: np.ndarray,
    tensor_axes: str,
) -> np.ndarray:
    """Run steps in order on an array laid out as ``tensor_axes``."""
    check_steps(steps)
    for step in steps:
        try:
            array = PROCESSING_STEPS[step.name](array, tensor_axes, **step.kwargs)
        except TypeError as e:
            raise SpecificationError(f"Invalid arguments for step '{step.name}': {e}") from e
    return array
