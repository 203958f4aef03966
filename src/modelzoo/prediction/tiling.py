"""Tiled prediction.

Large images are cut along their largest spatial axis into tiles that
overlap by the output halo. Every tile is padded to a size the model
accepts, predicted, and cropped back before the tiles are joined.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..exceptions import TilingError
from ..specification import SPATIAL_AXES, InputTensorSpecification, OutputTensorSpecification
from .axes import BATCH, core_axes

logger = logging.getLogger(__name__)

# Signature: (array in "b" + input axes) -> array in "b" + output axes
PredictFn = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class Tile:
    """One tile along the tiled axis, in input coordinates."""

    read_start: int
    read_stop: int
    keep_start: int
    keep_stop: int


def plan_tiles(size: int, n_tiles: int, halo: int = 0) -> list[Tile]:
    """Split ``size`` into ``n_tiles`` near-equal tiles widened by ``halo``."""
    n_tiles = max(1, min(n_tiles, size))
    bounds = [i * size // n_tiles for i in range(n_tiles + 1)]
    tiles = []
    for start, stop in zip(bounds[:-1], bounds[1:]):
        if stop <= start:
            continue
        read_start = max(0, start - halo)
        read_stop = min(size, stop + halo)
        tiles.append(Tile(read_start, read_stop, start - read_start, stop - read_start))
    return tiles


def valid_size(size: int, minimum: int, step: int) -> int:
    """Smallest model-accepted size >= size."""
    minimum = max(minimum, 1)
    if size <= minimum:
        return minimum
    if step <= 0:
        raise TilingError(
            f"size {size} exceeds the fixed model size {minimum}; "
            f"enable tiling or increase the number of tiles"
        )
    return minimum + math.ceil((size - minimum) / step) * step


class Tiler:
    """Runs a predict function tile by tile."""

    def __init__(
        self,
        input_spec: InputTensorSpecification,
        output_spec: OutputTensorSpecification,
        number_of_tiles: int = 1,
        enabled: bool = True,
    ):
        self.input_spec = input_spec
        self.output_spec = output_spec
        self.number_of_tiles = number_of_tiles
        self.enabled = enabled
        self.input_axes = BATCH + core_axes(input_spec.axes)
        self.output_axes = BATCH + core_axes(output_spec.axes)

    def tile_axis(self, shape: tuple[int, ...]) -> Optional[str]:
        """Largest spatial axis present in both input and output."""
        candidates = [
            a for a in self.input_axes if a in SPATIAL_AXES and a in self.output_axes
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda a: shape[self.input_axes.index(a)])

    def run(self, array: np.ndarray, predict: PredictFn) -> np.ndarray:
        """Predict ``array`` (in ``b`` + input axes) and return ``b`` + output axes."""
        axis = self.tile_axis(array.shape)
        n_tiles = self.number_of_tiles if self.enabled else 1
        if axis is None or n_tiles <= 1:
            if n_tiles > 1:
                logger.warning("No spatial axis shared by input and output, predicting without tiles")
            return self._predict_tile(array, predict)

        in_index = self.input_axes.index(axis)
        out_index = self.output_axes.index(axis)
        scale = self.output_spec.scale_for(axis)
        halo = math.ceil(self.output_spec.halo_for(axis) / scale) if scale else 0
        tiles = plan_tiles(array.shape[in_index], n_tiles, halo)
        logger.info("Predicting %d tiles along axis '%s' (halo %d)", len(tiles), axis, halo)

        results = []
        for i, tile in enumerate(tiles, 1):
            region = [slice(None)] * array.ndim
            region[in_index] = slice(tile.read_start, tile.read_stop)
            output = self._predict_tile(array[tuple(region)], predict)

            keep = [slice(None)] * output.ndim
            keep[out_index] = slice(round(tile.keep_start * scale), round(tile.keep_stop * scale))
            results.append(output[tuple(keep)])
            logger.debug("Tile %d/%d done", i, len(tiles))

        return np.concatenate(results, axis=out_index)

    def _predict_tile(self, tile: np.ndarray, predict: PredictFn) -> np.ndarray:
        padded, original = self.pad(tile)
        output = predict(padded)
        return self.crop(output, original)

    def pad(self, tile: np.ndarray) -> tuple[np.ndarray, dict[str, int]]:
        """Pad spatial axes at their end up to valid model sizes."""
        model_axes = self.input_spec.axes
        minimum = self.input_spec.min_shape()
        step = self.input_spec.step()
        original: dict[str, int] = {}
        padded = tile
        for i, axis in enumerate(self.input_axes):
            if axis == BATCH or axis not in SPATIAL_AXES:
                continue
            size = tile.shape[i]
            j = model_axes.index(axis)
            target = valid_size(size, minimum[j], step[j])
            original[axis] = size
            if target == size:
                continue
            widths = [(0, 0)] * tile.ndim
            widths[i] = (0, target - size)
            mode = "reflect" if size > 1 else "edge"
            padded = np.pad(padded, widths, mode=mode)
        return padded, original

    def crop(self, output: np.ndarray, original: dict[str, int]) -> np.ndarray:
        """Remove the output offset border and the padding added by pad()."""
        region = [slice(None)] * output.ndim
        for axis, size in original.items():
            if axis in self.output_axes:
                start = max(0, round(self.output_spec.offset_for(axis)))
                stop = start + round(size * self.output_spec.scale_for(axis))
                region[self.output_axes.index(axis)] = slice(start, stop)
        return output[tuple(region)]
