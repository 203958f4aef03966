"""Single image prediction: options, axes translation, tiling and backends."""

from .axes import AxesLayout, from_model_layout, to_model_layout
from .base import SingleImagePrediction
from .default import DefaultSingleImagePrediction
from .input import ImageInput
from .options import PredictionOptions, PredictionValues
from .tiling import Tiler, plan_tiles

__all__ = [
    "AxesLayout",
    "DefaultSingleImagePrediction",
    "ImageInput",
    "PredictionOptions",
    "PredictionValues",
    "SingleImagePrediction",
    "Tiler",
    "from_model_layout",
    "plan_tiles",
    "to_model_layout",
]
