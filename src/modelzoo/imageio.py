"""Image file reading and writing for the CLI and commands."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageSequence

NUMPY_SUFFIXES = {".npy"}
PIL_SUFFIXES = {".tif", ".tiff", ".png", ".jpg", ".jpeg"}


def read_image(path: Union[str, Path]) -> np.ndarray:
    """Read an image as a numpy array.

    Multi-page TIFFs are stacked along a new leading axis.

    Raises:
        ValueError: If the file type is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in NUMPY_SUFFIXES:
        return np.load(path, allow_pickle=False)
    if suffix in PIL_SUFFIXES:
        with Image.open(path) as img:
            frames = [np.array(frame) for frame in ImageSequence.Iterator(img)]
        return frames[0] if len(frames) == 1 else np.stack(frames)
    raise ValueError(f"Unsupported image format: {path.suffix}")


def write_image(path: Union[str, Path], array: np.ndarray) -> Path:
    """Write an array to disk; format follows the suffix.

    TIFF stores 2D float32 planes, one page per leading index for 3D
    arrays. PNG/JPEG need 2D or RGB(A) uint8 data.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    array = np.asarray(array)

    if suffix in NUMPY_SUFFIXES:
        np.save(path, array)
    elif suffix in {".tif", ".tiff"}:
        planes = array[np.newaxis] if array.ndim == 2 else array.reshape(-1, *array.shape[-2:])
        pages = [Image.fromarray(p.astype(np.float32)) for p in planes]
        pages[0].save(path, save_all=len(pages) > 1, append_images=pages[1:])
    elif suffix in PIL_SUFFIXES:
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
        Image.fromarray(array).save(path)
    else:
        raise ValueError(f"Unsupported image format: {path.suffix}")
    return path
