"""Archive input/output."""

from .archive_io import DESCRIPTION_FILES, ModelZooIO

__all__ = ["DESCRIPTION_FILES", "ModelZooIO"]
