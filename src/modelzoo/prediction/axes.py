"""Translation between image axes and model tensor axes.

Images arrive with whatever axes the caller has (``yx``, ``tzyxc`` ...);
models expect a fixed layout such as ``byxc``. Image axes the model does
not know are folded into the batch axis, and model axes the image lacks
are added as singletons. ``AxesLayout`` records both so the model output
can be mapped back onto the image's axes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from ..exceptions import AxesError
from ..specification import validate_axes

BATCH = "b"


def normalize_axes(axes: str, ndim: int | None = None) -> str:
    """Validate an axes string, optionally against an array rank."""
    try:
        axes = validate_axes(axes)
    except ValueError as e:
        raise AxesError(str(e)) from e
    if ndim is not None and len(axes) != ndim:
        raise AxesError(f"axes '{axes}' name {len(axes)} dimensions, array has {ndim}")
    return axes


def reorder(array: np.ndarray, from_axes: str, to_axes: str) -> np.ndarray:
    """Transpose an array between two orderings of the same axes."""
    if sorted(from_axes) != sorted(to_axes):
        raise AxesError(f"cannot reorder '{from_axes}' into '{to_axes}'")
    return np.transpose(array, [from_axes.index(a) for a in to_axes])


def core_axes(axes: str) -> str:
    """Axes without the batch axis."""
    return axes.replace(BATCH, "")


@dataclass
class AxesLayout:
    """How an image was mapped onto a model's input layout."""

    image_axes: str
    model_axes: str
    folded_axes: str = ""
    folded_sizes: list[int] = field(default_factory=list)
    inserted_axes: str = ""

    @property
    def layout_axes(self) -> str:
        """Axes of the translated array: batch first, then the model's axes."""
        return BATCH + core_axes(self.model_axes)

    @property
    def batch_size(self) -> int:
        return math.prod(self.folded_sizes)


def to_model_layout(
    image: np.ndarray,
    image_axes: str,
    model_axes: str,
) -> tuple[np.ndarray, AxesLayout]:
    """Bring an image into ``b`` + model axes order.

    Args:
        image: Input array
        image_axes: Axes of the input array
        model_axes: Axes of the model input tensor

    Returns:
        Tuple of translated array and the layout needed to undo it
    """
    image = np.asarray(image)
    image_axes = normalize_axes(image_axes, image.ndim)
    model_axes = normalize_axes(model_axes)
    model_core = core_axes(model_axes)

    folded = "".join(a for a in image_axes if a not in model_core)
    present = "".join(a for a in model_core if a in image_axes)
    inserted = "".join(a for a in model_core if a not in image_axes)

    sizes = dict(zip(image_axes, image.shape))
    arranged = reorder(image, image_axes, folded + present)
    folded_sizes = [sizes[a] for a in folded]
    target_shape = [math.prod(folded_sizes)] + [sizes.get(a, 1) for a in model_core]
    translated = np.reshape(arranged, target_shape)

    layout = AxesLayout(
        image_axes=image_axes,
        model_axes=model_axes,
        folded_axes=folded,
        folded_sizes=folded_sizes,
        inserted_axes=inserted,
    )
    return translated, layout


def from_model_layout(
    output: np.ndarray,
    layout: AxesLayout,
    output_axes: str,
) -> tuple[np.ndarray, str]:
    """Map a model output back onto the image's axes.

    Args:
        output: Model output array
        output_axes: Axes of ``output`` (the output tensor's axes)
        layout: Layout returned by to_model_layout for the matching input

    Returns:
        Tuple of the array and its axes string
    """
    output = np.asarray(output)
    output_axes = normalize_axes(output_axes, output.ndim)
    if BATCH not in output_axes:
        output = output[np.newaxis]
        output_axes = BATCH + output_axes
    out_core = core_axes(output_axes)
    output = reorder(output, output_axes, BATCH + out_core)

    if output.shape[0] != layout.batch_size:
        raise AxesError(
            f"output batch of {output.shape[0]} does not match "
            f"{layout.batch_size} folded input samples"
        )

    clashes = [a for a in layout.folded_axes if a in out_core]
    if clashes:
        raise AxesError(f"output axes '{output_axes}' reuse folded input axes {clashes}")

    output = np.reshape(output, [*layout.folded_sizes, *output.shape[1:]])
    axes = layout.folded_axes + out_core

    squeeze = [i for i, a in enumerate(axes) if a in layout.inserted_axes and output.shape[i] == 1]
    if squeeze:
        output = np.squeeze(output, axis=tuple(squeeze))
        axes = "".join(a for i, a in enumerate(axes) if i not in squeeze)

    ordered = "".join(a for a in layout.image_axes if a in axes)
    ordered += "".join(a for a in axes if a not in layout.image_axes)
    return reorder(output, axes, ordered), ordered
