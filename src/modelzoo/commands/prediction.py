"""Interactive prediction commands."""

from __future__ import annotations

import logging
from abc import abstractmethod
from pathlib import Path

from ..exceptions import ModuleError
from ..imageio import read_image, write_image
from ..io import ModelZooIO
from ..plugins import plugin
from ..prediction import DefaultSingleImagePrediction, SingleImagePrediction
from .base import Module, ModuleItem

logger = logging.getLogger(__name__)


class SingleImagePredictionCommand(Module):
    """Reads an image file, predicts it with an archive, writes the result.

    Subclasses register under a model source name and supply the
    prediction to use.
    """

    inputs = (
        ModuleItem("model_file", Path, label="Model archive"),
        ModuleItem("input", Path, label="Input image"),
        ModuleItem("axes", str, label="Input axes (e.g. yx, zyx, yxc)"),
        ModuleItem("output", Path, label="Output image"),
        ModuleItem("batch_size", int, default=1),
        ModuleItem("number_of_tiles", int, default=1),
        ModuleItem("tiling_enabled", bool, default=True),
    )

    @abstractmethod
    def create_prediction(self) -> SingleImagePrediction:
        pass

    def run(self) -> None:
        model_file = Path(self.get_input("model_file"))
        input_path = Path(self.get_input("input"))
        output_path = Path(self.get_input("output"))
        if not input_path.exists():
            raise ModuleError(f"Input image not found: {input_path}")

        archive = ModelZooIO().open(model_file)
        image = read_image(input_path)

        prediction = self.create_prediction()
        prediction.set_trained_model(archive)
        prediction.set_input(image, self.get_input("axes"))
        prediction.set_batch_size(int(self.get_input("batch_size")))
        if self.context is not None:
            prediction.set_cache_dir(self.context.settings.cache_dir)
        prediction.set_number_of_tiles(int(self.get_input("number_of_tiles")))
        prediction.set_tiling_enabled(bool(self.get_input("tiling_enabled")))
        prediction.run()

        output = prediction.get_output()
        write_image(output_path, output)
        logger.info("Wrote %s", output_path)
        self.outputs["output"] = output
        self.outputs["output_axes"] = prediction.output_axes
        self.outputs["output_path"] = output_path


@plugin(SingleImagePredictionCommand, name="default")
class DefaultModelZooPredictionCommand(SingleImagePredictionCommand):
    """Prediction command using DefaultSingleImagePrediction."""

    def create_prediction(self) -> SingleImagePrediction:
        return DefaultSingleImagePrediction(context=self.context)
