"""Named image input for a prediction."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..exceptions import AxesError
from ..specification import validate_axes


@dataclass
class ImageInput:
    """An image and the axes string describing its dimensions."""

    name: str
    image: np.ndarray
    axes: str

    def __post_init__(self):
        self.image = np.asarray(self.image)
        try:
            self.axes = validate_axes(self.axes)
        except ValueError as e:
            raise AxesError(f"Input '{self.name}': {e}") from e
        if len(self.axes) != self.image.ndim:
            raise AxesError(
                f"Input '{self.name}' has {self.image.ndim} dimensions "
                f"but axes '{self.axes}' name {len(self.axes)}"
            )

    @property
    def shape(self) -> dict[str, int]:
        """Size per axis letter."""
        return dict(zip(self.axes, self.image.shape))
