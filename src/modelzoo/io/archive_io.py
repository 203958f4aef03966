"""Reading and writing model archives.

Layout of a saved archive::

    my-model.zip
    ├── model.yaml          # ModelSpecification
    ├── weights.pt          # files referenced by model.yaml
    ├── test_input.npy
    └── test_output.npy
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Union

from ..archive import ModelZooArchive
from ..exceptions import ArchiveError, SpecificationError
from ..specification import ModelSpecification, load_specification

logger = logging.getLogger(__name__)

DESCRIPTION_FILES = ("model.yaml", "rdf.yaml")


class ModelZooIO:
    """Opens and saves ModelZooArchive instances."""

    def open(self, location: Union[str, Path]) -> ModelZooArchive:
        """Open an archive from a zip file or an unpacked directory.

        Args:
            location: Path to the archive

        Returns:
            ModelZooArchive backed by the location

        Raises:
            FileNotFoundError: If the location does not exist
            ArchiveError: If no valid model description is found
        """
        path = Path(location).expanduser().absolute()
        if not path.exists():
            raise FileNotFoundError(f"Model archive not found: {path}")

        try:
            if path.is_dir():
                specification = load_specification(self._find_description_in_dir(path))
            else:
                specification = ModelSpecification.from_yaml(self._read_description_from_zip(path))
        except (SpecificationError, UnicodeDecodeError) as e:
            raise ArchiveError(f"Invalid model description in {path}: {e}") from e

        logger.info("Opened model '%s' from %s", specification.name, path)
        return ModelZooArchive(specification=specification, source=path)

    def save(self, archive: ModelZooArchive, location: Union[str, Path]) -> Path:
        """Write an archive as a zip file.

        Referenced files are copied from the archive's source; files that
        cannot be found are skipped with a warning.

        Returns:
            Path of the written zip file
        """
        path = Path(location).expanduser().absolute()
        if archive.source is not None and path == archive.source:
            raise ArchiveError(f"Cannot save archive over its own source: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)

        names = list(dict.fromkeys([*archive.specification.referenced_files(), *archive.files]))
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(DESCRIPTION_FILES[0], archive.specification.to_yaml())
            for name in names:
                if name in DESCRIPTION_FILES:
                    continue
                try:
                    data = archive.read_file(name)
                except ArchiveError as e:
                    logger.warning("Skipping missing archive file: %s", e)
                    continue
                zf.writestr(name, data)

        logger.info("Saved model '%s' to %s", archive.name, path)
        return path

    def _find_description_in_dir(self, path: Path) -> Path:
        for name in DESCRIPTION_FILES:
            candidate = path / name
            if candidate.is_file():
                return candidate
        raise ArchiveError(f"No model description ({', '.join(DESCRIPTION_FILES)}) in {path}")

    def _read_description_from_zip(self, path: Path) -> str:
        try:
            with zipfile.ZipFile(path) as zf:
                members = set(zf.namelist())
                for name in DESCRIPTION_FILES:
                    if name in members:
                        return zf.read(name).decode("utf-8")
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"{path} is not a valid zip archive: {e}") from e
        raise ArchiveError(f"No model description ({', '.join(DESCRIPTION_FILES)}) in {path}")
