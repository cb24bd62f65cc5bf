#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/input_format.py
"""Integration point between a batch scheduler and the archive reader.

``ArchiveInputFormat`` tells a scheduler how to cut input into work units
and builds one ``ArchiveRecordReader`` per unit. ZIP archives are never
split: entry boundaries can only be found by decoding from the start of
the stream, so each archive is exactly one unit handled by one worker.

The lenient policy is carried by the format's own options and copied into
each reader when it is created. Two formats with different policies can
dispatch units side by side; flipping the policy on one format affects only
readers it creates afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from ziprecords.exceptions import InvalidOptionsError, SourceUnavailableError
from ziprecords.options.archive import ArchiveReaderOptions
from ziprecords.progress import ProgressCallback
from ziprecords.readers.archive import ArchiveRecordReader
from ziprecords.source import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

PathInput = Union[str, Path]


@dataclass(frozen=True)
class WorkUnit:
    """One atomic piece of input: a whole archive.

    Parameters
    ----------
    path : str
        Location of the archive, as understood by the filesystem collaborator
    length : int
        Size of the archive in bytes, used by schedulers for balancing

    """

    path: str
    length: int = 0

    @property
    def name(self) -> str:
        return Path(self.path).name


def _is_hidden(path: Path) -> bool:
    return path.name.startswith((".", "_"))


class ArchiveInputFormat:
    """Input format that treats each ZIP archive as one non-splittable unit.

    Parameters
    ----------
    options : ArchiveReaderOptions or None
        Options handed to every reader this format creates
    filesystem : FileSystem or None
        Collaborator used to size and open archives. Defaults to the local disk.

    """

    def __init__(self, options: ArchiveReaderOptions | None = None, filesystem: FileSystem | None = None):
        """Initialize the input format."""
        if options is not None and not isinstance(options, ArchiveReaderOptions):
            raise InvalidOptionsError(
                component_name="ArchiveInputFormat",
                expected_type=ArchiveReaderOptions,
                received_type=type(options),
            )
        self._options = options or ArchiveReaderOptions()
        self.filesystem: FileSystem = filesystem or LocalFileSystem()

    @property
    def options(self) -> ArchiveReaderOptions:
        return self._options

    def set_lenient(self, lenient: bool) -> None:
        """Set the failure policy for readers created from now on.

        Readers that already exist keep the policy they were created with.
        """
        self._options = self._options.create_updated(lenient=bool(lenient))
        logger.debug("Lenient mode %s", "enabled" if lenient else "disabled")

    def get_lenient(self) -> bool:
        return self._options.lenient

    def is_splittable(self, path: PathInput) -> bool:
        """Return False: an archive can only be decoded from its first byte."""
        return False

    def list_work_units(self, paths: Iterable[PathInput], recursive: bool = False) -> list[WorkUnit]:
        """Expand input paths into one work unit per archive file.

        Files are taken as given; directories contribute their files (all
        levels when ``recursive``), skipping names that start with ``.`` or
        ``_``. Results are de-duplicated and sorted by path.

        Parameters
        ----------
        paths : iterable of str or Path
            Input files and directories
        recursive : bool, default False
            Whether to descend into subdirectories

        Returns
        -------
        list[WorkUnit]
            One unit per file

        Raises
        ------
        SourceUnavailableError
            If an input path does not exist or a directory cannot be listed

        """
        found: dict[str, Path] = {}
        for raw in paths:
            input_path = Path(raw)
            if input_path.is_file():
                candidates = [input_path]
            elif input_path.is_dir():
                iterator = input_path.rglob("*") if recursive else input_path.iterdir()
                try:
                    candidates = [child for child in iterator if child.is_file() and not _is_hidden(child)]
                except OSError as e:
                    raise SourceUnavailableError(
                        file_path=str(input_path), message=f"Cannot list input directory {input_path}: {e}", original_error=e
                    ) from e
            else:
                raise SourceUnavailableError(file_path=str(input_path), message=f"Input path does not exist: {input_path}")

            for candidate in candidates:
                found[str(candidate)] = candidate

        units = []
        for key in sorted(found):
            try:
                length = self.filesystem.size(key)
            except OSError as e:
                raise SourceUnavailableError(file_path=key, original_error=e) from e
            units.append(WorkUnit(path=key, length=length))

        logger.info("Total input archives to process: %d", len(units))
        return units

    def create_reader(
        self, unit: Union[WorkUnit, PathInput], progress_callback: Optional[ProgressCallback] = None
    ) -> ArchiveRecordReader:
        """Create a fresh reader bound to the archive of ``unit``.

        Parameters
        ----------
        unit : WorkUnit, str, or Path
            The archive to read
        progress_callback : ProgressCallback, optional
            Callback for the reader's progress events

        Returns
        -------
        ArchiveRecordReader
            An initialized reader. The caller owns it and must close it.

        Raises
        ------
        SourceUnavailableError
            If the filesystem collaborator cannot open the archive

        """
        path = unit.path if isinstance(unit, WorkUnit) else str(unit)
        reader = ArchiveRecordReader(self._options, progress_callback=progress_callback)
        reader.initialize(path, filesystem=self.filesystem)
        return reader
