"""modelzoo - open, save and run pretrained model archives on images."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("modelzoo-service")
except PackageNotFoundError:
    # Package not installed (running from source without pip install -e)
    __version__ = "0.0.0.dev"

from .archive import ModelZooArchive
from .context import Context
from .prediction import PredictionOptions, SingleImagePrediction
from .service import ModelZooService
from .specification import ModelSpecification

__all__ = [
    "Context",
    "ModelSpecification",
    "ModelZooArchive",
    "ModelZooService",
    "PredictionOptions",
    "SingleImagePrediction",
    "__version__",
]
