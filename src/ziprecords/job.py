#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/job.py
"""Minimal local batch engine for running map/reduce jobs over archives.

``LocalJobRunner`` plays the part of the external scheduler: it asks an
``ArchiveInputFormat`` for work units, gives each unit to one worker
thread with its own reader, feeds every record to a mapper, and finally
groups the mapper output by key for a reducer. A unit whose reader or
mapper fails contributes nothing to the output and marks the job failed.

Running the same batch twice, once strict and once lenient, shows the
policy difference across a whole job:

    >>> fmt = ArchiveInputFormat()
    >>> runner = LocalJobRunner(fmt, word_count_mapper, sum_reducer)
    >>> runner.run(["inputs/"]).success
    False
    >>> fmt.set_lenient(True)
    >>> runner.run(["inputs/"]).success
    True

"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from ziprecords.exceptions import JobFailedError
from ziprecords.input_format import ArchiveInputFormat, WorkUnit
from ziprecords.records import Record

logger = logging.getLogger(__name__)

Mapper = Callable[[Record], Iterable[tuple[str, Any]]]
Reducer = Callable[[str, list[Any]], Any]

_NON_WORD_PATTERN = re.compile(r"[^A-Za-z \n]")


def word_count_mapper(record: Record) -> Iterator[tuple[str, int]]:
    """Emit ``(word, 1)`` for every word of a ``.txt`` entry.

    The entry name is the full path inside the archive, so
    ``"subdir1/subsubdir2/Ulysses-18.txt"`` qualifies. Other entries emit
    nothing. Text is decoded as UTF-8, stripped to ASCII letters, spaces
    and newlines, and lower-cased before splitting on whitespace.
    """
    logger.debug("map: %s", record.name)
    if not record.name.endswith(".txt"):
        return

    content = record.payload.decode("utf-8", errors="replace")
    content = _NON_WORD_PATTERN.sub("", content).lower()
    for word in content.split():
        yield word, 1


def sum_reducer(key: str, values: list[Any]) -> Any:
    return sum(values)


@dataclass
class UnitResult:
    """Outcome of running the mapper over one work unit."""

    unit: WorkUnit
    records: int = 0
    pairs: list[tuple[str, Any]] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class JobResult:
    """Outcome of a whole job.

    ``output`` holds the reduced values of successful units only.
    """

    units: list[UnitResult] = field(default_factory=list)
    output: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(unit.succeeded for unit in self.units)

    @property
    def failed_units(self) -> list[UnitResult]:
        return [unit for unit in self.units if not unit.succeeded]

    @property
    def records_read(self) -> int:
        return sum(unit.records for unit in self.units)


class LocalJobRunner:
    """Run a mapper (and optional reducer) over every record of a batch.

    Parameters
    ----------
    input_format : ArchiveInputFormat
        Source of work units and readers; its lenient setting at dispatch
        time applies to the whole run
    mapper : Mapper
        Called once per record, returns ``(key, value)`` pairs
    reducer : Reducer, optional
        Called once per key with all values. Without a reducer the output
        maps each key to its list of values.
    max_workers : int, optional
        Worker threads, one unit per thread at a time. None lets
        ``ThreadPoolExecutor`` decide.

    """

    def __init__(
        self,
        input_format: ArchiveInputFormat,
        mapper: Mapper,
        reducer: Optional[Reducer] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize the runner."""
        if max_workers is not None and max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.input_format = input_format
        self.mapper = mapper
        self.reducer = reducer
        self.max_workers = max_workers

    def run(
        self,
        inputs: Iterable[Union[WorkUnit, str, Path]],
        recursive: bool = False,
        raise_on_failure: bool = False,
    ) -> JobResult:
        """Run the job over ``inputs``.

        Parameters
        ----------
        inputs : iterable of WorkUnit, str, or Path
            Work units, or paths expanded with ``list_work_units``
        recursive : bool, default False
            Descend into subdirectories of directory inputs
        raise_on_failure : bool, default False
            Raise ``JobFailedError`` instead of returning a failed result

        Returns
        -------
        JobResult
            Per-unit outcomes and the reduced output

        """
        items = list(inputs)
        units = [item for item in items if isinstance(item, WorkUnit)]
        paths = [item for item in items if not isinstance(item, WorkUnit)]
        if paths:
            units.extend(self.input_format.list_work_units(paths, recursive=recursive))

        logger.info("Running job over %d unit(s), lenient=%s", len(units), self.input_format.get_lenient())

        results: dict[str, UnitResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ziprecords-worker") as executor:
            futures = {executor.submit(self._run_unit, unit): unit for unit in units}
            for future in as_completed(futures):
                unit = futures[future]
                results[unit.path] = future.result()

        ordered = [results[unit.path] for unit in units]
        job = JobResult(units=ordered, output=self._reduce(ordered))

        if job.success:
            logger.info("Job completed: %d record(s) from %d unit(s)", job.records_read, len(ordered))
        else:
            logger.error("Job failed: %d of %d unit(s) failed", len(job.failed_units), len(ordered))
            if raise_on_failure:
                raise JobFailedError(job.failed_units)
        return job

    def _run_unit(self, unit: WorkUnit) -> UnitResult:
        result = UnitResult(unit=unit)
        reader = None
        try:
            reader = self.input_format.create_reader(unit)
            for record in reader:
                result.records += 1
                result.pairs.extend(self.mapper(record))
        except Exception as e:
            # A failing unit must not take down the other workers
            logger.error(f"Work unit {unit.path} failed: {e}")
            result.error = e
            result.pairs = []
        finally:
            if reader is not None:
                reader.close()
        return result

    def _reduce(self, units: list[UnitResult]) -> dict[str, Any]:
        grouped: dict[str, list[Any]] = defaultdict(list)
        for unit in units:
            if not unit.succeeded:
                continue
            for key, value in unit.pairs:
                grouped[key].append(value)

        if self.reducer is None:
            return dict(sorted(grouped.items()))
        return {key: self.reducer(key, values) for key, values in sorted(grouped.items())}
