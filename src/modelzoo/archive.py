"""In-memory handle on a model archive.

An archive is a model description plus the files it references. It is
backed by a ``.zip`` file or an unpacked directory, and may carry extra
files added in memory that have not been saved yet.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from .exceptions import ArchiveError
from .specification import ModelSpecification, WeightsSpecification

logger = logging.getLogger(__name__)


def _check_member_name(name: str) -> str:
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ArchiveError(f"Invalid archive member name: '{name}'")
    return str(path)


@dataclass
class ModelZooArchive:
    """A model description and access to its files."""

    specification: ModelSpecification
    source: Optional[Path] = None
    files: dict[str, bytes] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.specification.name

    def add_file(self, name: str, data: bytes) -> None:
        """Attach a file that is written out on the next save."""
        self.files[_check_member_name(name)] = data

    def has_file(self, name: str) -> bool:
        name = _check_member_name(name)
        if name in self.files:
            return True
        if self.source is None:
            return False
        if self.source.is_dir():
            return (self.source / name).is_file()
        with zipfile.ZipFile(self.source) as zf:
            return name in zf.namelist()

    def read_file(self, name: str) -> bytes:
        """Read one archive file.

        Raises:
            ArchiveError: If the file is not part of the archive
        """
        name = _check_member_name(name)
        if name in self.files:
            return self.files[name]
        if self.source is None:
            raise ArchiveError(f"'{name}' not found in unsaved archive '{self.name}'")
        if self.source.is_dir():
            path = self.source / name
            if not path.is_file():
                raise ArchiveError(f"'{name}' not found in {self.source}")
            return path.read_bytes()
        try:
            with zipfile.ZipFile(self.source) as zf:
                return zf.read(name)
        except KeyError as e:
            raise ArchiveError(f"'{name}' not found in {self.source}") from e
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"{self.source} is not a valid zip archive: {e}") from e

    def extract(self, name: str, target_dir: Path) -> Path:
        """Write one archive file below target_dir and return its path."""
        name = _check_member_name(name)
        target = Path(target_dir) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.read_file(name))
        logger.debug("Extracted %s to %s", name, target)
        return target

    def get_weights(self, weights_id: str) -> Optional[WeightsSpecification]:
        return self.specification.get_weights(weights_id)

    def __repr__(self) -> str:
        return f"ModelZooArchive(name={self.name!r}, source={str(self.source) if self.source else None!r})"
