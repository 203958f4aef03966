"""Model zoo service: open, save and run model archives.

Usage:
    from modelzoo import Context

    zoo = Context().model_zoo
    archive = zoo.open("denoise.zip")
    output = zoo.predict(archive, image, "zyx")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import numpy as np

from .archive import ModelZooArchive
from .io import ModelZooIO
from .prediction import DefaultSingleImagePrediction, PredictionOptions, SingleImagePrediction
from .ui import MessageType

if TYPE_CHECKING:
    from .commands.base import Module
    from .context import Context

logger = logging.getLogger(__name__)

Location = Union[str, os.PathLike]

MODEL_FILE_PARAMETER = "model_file"


def resolve_location(location: Location) -> str:
    """Absolute filesystem path for a path, PathLike or ``file://`` URI."""
    if isinstance(location, str) and location.startswith("file:"):
        location = url2pathname(urlparse(location).path)
    return str(Path(location).expanduser().absolute())


class ModelZooService:
    """Facade over archive IO, prediction plugins and prediction commands."""

    def __init__(self, context: "Context"):
        self.context = context

    def open(self, location: Location) -> ModelZooArchive:
        return self._create_io().open(resolve_location(location))

    def save(self, trained_model: ModelZooArchive, location: Location) -> Path:
        return self._create_io().save(trained_model, resolve_location(location))

    def predict(
        self,
        trained_model: ModelZooArchive,
        image: np.ndarray,
        axes: str,
        options: Optional[PredictionOptions] = None,
    ) -> Optional[np.ndarray]:
        """Predict one image with the plugin named by the archive's source.

        Returns:
            The prediction output, or None if no plugin matches the source
        """
        options = options or PredictionOptions.options(self.context.settings)
        prediction = self._find_prediction(trained_model.specification.source)
        if prediction is None:
            return None

        prediction.set_trained_model(trained_model)
        prediction.set_input(image, axes)
        prediction.set_batch_size(options.values.batch_size)
        prediction.set_cache_dir(options.values.cache_directory)
        prediction.set_number_of_tiles(options.values.number_of_tiles)
        prediction.set_tiling_enabled(options.values.tiling_enabled)
        prediction.run()
        return prediction.get_output()

    def predict_interactive(self, trained_model: ModelZooArchive) -> Optional["Module"]:
        """Run the prediction command registered for the archive's source.

        Inputs other than the model file are asked for interactively.

        Returns:
            The finished module, or None if no command matches the source
        """
        from .commands.prediction import SingleImagePredictionCommand

        source = trained_model.specification.source
        module = None
        if source is not None:
            plugin_service = self.context.plugin_service
            for command in plugin_service.get_plugins_of_type(SingleImagePredictionCommand):
                if command.name == source:
                    command_info = self.context.command_service.get_command(command.class_name)
                    module = command_info.create_module()

        if module is None:
            self.context.ui_service.show_dialog(
                f"Could not find suitable prediction handler for source {source}.",
                MessageType.ERROR_MESSAGE,
            )
            return None

        if trained_model.source is None:
            self.context.ui_service.show_dialog(
                f"Model '{trained_model.name}' has not been saved yet.",
                MessageType.ERROR_MESSAGE,
            )
            return None

        module.set_input(MODEL_FILE_PARAMETER, Path(trained_model.source))
        module.resolve_input(MODEL_FILE_PARAMETER)
        return self.context.command_service.run(module, process=True)

    def _find_prediction(self, source: Optional[str]) -> Optional[SingleImagePrediction]:
        if source is None:
            return DefaultSingleImagePrediction(context=self.context)

        prediction = None
        plugin_service = self.context.plugin_service
        for info in plugin_service.get_plugins_of_type(SingleImagePrediction):
            if info.name == source:
                prediction = plugin_service.create_instance(info)
        if prediction is None:
            logger.error("Could not find prediction plugin for model source %s. Exiting.", source)
        return prediction

    def _create_io(self) -> ModelZooIO:
        return ModelZooIO()
