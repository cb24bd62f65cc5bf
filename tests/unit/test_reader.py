#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for ArchiveRecordReader and its state machine."""

import io
import logging

import pytest
from utils import FailingCloseStream, FailingReadStream, InMemoryFileSystem, body_offset, create_test_zip

from ziprecords import (
    ArchiveReaderOptions,
    ArchiveRecordReader,
    ArchiveSource,
    EncryptedEntryError,
    EntryError,
    InvalidOptionsError,
    NoCurrentRecordError,
    ReaderClosedError,
    ReaderState,
    ReaderStateError,
    Record,
    SourceUnavailableError,
    TruncatedStreamError,
    iter_records,
)

STRICT = ArchiveReaderOptions()
LENIENT = ArchiveReaderOptions(lenient=True)


def make_reader(data, options=None, progress_callback=None):
    reader = ArchiveRecordReader(options, progress_callback=progress_callback)
    reader.initialize(data)
    return reader


@pytest.mark.unit
class TestReadingWellFormedArchive:
    """A well-formed archive produces every entry in order, then ends."""

    @pytest.mark.parametrize("options", [STRICT, LENIENT], ids=["strict", "lenient"])
    def test_entries_in_order(self, hello_zip, options):
        reader = make_reader(hello_zip, options)

        assert reader.progress() == 0.0
        assert reader.advance() is True
        assert reader.current_record() == Record("x.txt", b"hello world")
        assert reader.advance() is True
        assert reader.current_record() == Record("y.bin", b"\x00\x01\x02")
        assert reader.advance() is False
        assert reader.progress() == 1.0

        reader.close()

    def test_progress_stays_zero_while_reading(self, hello_zip):
        reader = make_reader(hello_zip)
        reader.advance()
        reader.advance()

        assert reader.progress() == 0.0

    def test_states(self, hello_zip):
        reader = ArchiveRecordReader()
        assert reader.state is ReaderState.UNINITIALIZED

        reader.initialize(hello_zip)
        assert reader.state is ReaderState.READY

        reader.advance()
        assert reader.state is ReaderState.READING

        reader.advance()
        reader.advance()
        assert reader.state is ReaderState.EXHAUSTED

        reader.close()
        assert reader.state is ReaderState.CLOSED

    def test_advance_after_exhaustion_stays_false(self, hello_zip):
        reader = make_reader(hello_zip)
        while reader.advance():
            pass

        assert reader.advance() is False
        assert reader.advance() is False
        assert reader.records_read == 2

    def test_empty_archive(self):
        reader = make_reader(create_test_zip({}))

        assert reader.advance() is False
        assert reader.progress() == 1.0

    @pytest.mark.parametrize("options", [STRICT, LENIENT], ids=["strict", "lenient"])
    def test_non_zip_input_yields_nothing(self, random_bytes, options):
        reader = make_reader(random_bytes, options)

        assert reader.advance() is False
        assert reader.state is ReaderState.EXHAUSTED

    def test_current_record_is_stable_between_advances(self, hello_zip):
        reader = make_reader(hello_zip)
        reader.advance()

        assert reader.current_record() is reader.current_record()

    def test_skip_directories(self, nested_zip):
        reader = make_reader(nested_zip, ArchiveReaderOptions(skip_directories=True))

        names = [record.name for record in reader]

        assert "subdir1/" not in names
        assert names[0] == "readme.txt"
        assert len(names) == 4

    def test_directories_emitted_by_default(self, nested_zip):
        names = [record.name for record in make_reader(nested_zip)]

        assert "subdir1/" in names


@pytest.mark.unit
class TestFailurePolicy:
    """Strict mode surfaces entry errors; lenient mode turns them into end-of-archive."""

    def test_strict_truncated_archive(self, truncated_zip):
        reader = make_reader(truncated_zip, STRICT)

        assert reader.advance() is True
        assert reader.current_record().name == "first.txt"
        with pytest.raises(TruncatedStreamError):
            reader.advance()

        assert reader.state is ReaderState.FAILED
        assert reader.progress() == 1.0
        with pytest.raises(NoCurrentRecordError):
            reader.current_record()

    def test_strict_reader_produces_nothing_after_failure(self, truncated_zip):
        reader = make_reader(truncated_zip, STRICT)
        reader.advance()
        with pytest.raises(EntryError):
            reader.advance()

        assert reader.advance() is False

    def test_lenient_truncated_archive(self, truncated_zip):
        reader = make_reader(truncated_zip, LENIENT)

        assert reader.advance() is True
        assert reader.current_record().name == "first.txt"
        assert reader.advance() is False
        assert reader.state is ReaderState.EXHAUSTED
        assert reader.progress() == 1.0
        with pytest.raises(NoCurrentRecordError):
            reader.current_record()

    def test_lenient_failure_is_logged(self, truncated_zip, caplog):
        reader = make_reader(truncated_zip, LENIENT)

        with caplog.at_level(logging.INFO, logger="ziprecords"):
            list(reader)

        assert any("Lenient mode" in message for message in caplog.messages)

    def test_strict_encrypted_entry(self, encrypted_zip):
        reader = make_reader(encrypted_zip, STRICT)

        assert [reader.advance(), reader.advance()] == [True, True]
        with pytest.raises(EncryptedEntryError):
            reader.advance()

    def test_lenient_encrypted_entry(self, encrypted_zip):
        records = list(make_reader(encrypted_zip, LENIENT))

        assert [r.name for r in records] == ["a.txt", "b.txt"]

    @pytest.mark.parametrize("lenient", [False, True])
    def test_checksum_failure(self, corrupt_zip, lenient):
        reader = make_reader(corrupt_zip, ArchiveReaderOptions(lenient=lenient))
        assert reader.advance() is True

        if lenient:
            assert reader.advance() is False
        else:
            with pytest.raises(EntryError):
                reader.advance()

    def test_non_entry_errors_propagate_in_lenient_mode(self, hello_zip):
        reader = make_reader(hello_zip, LENIENT)
        reader.source.close()

        with pytest.raises(ValueError):
            reader.advance()

        assert reader.state is ReaderState.FAILED


@pytest.mark.unit
class TestProtocolMisuse:
    """Calls made out of order raise ReaderStateError subclasses."""

    def test_current_record_before_advance(self, hello_zip):
        reader = make_reader(hello_zip)

        with pytest.raises(NoCurrentRecordError):
            reader.current_record()

    def test_current_record_after_exhaustion(self, hello_zip):
        reader = make_reader(hello_zip)
        list(reader)

        with pytest.raises(NoCurrentRecordError):
            reader.current_record()

    def test_advance_before_initialize(self):
        with pytest.raises(ReaderStateError):
            ArchiveRecordReader().advance()

    def test_initialize_twice(self, hello_zip):
        reader = make_reader(hello_zip)

        with pytest.raises(ReaderStateError):
            reader.initialize(hello_zip)

    def test_advance_after_close(self, hello_zip):
        reader = make_reader(hello_zip)
        reader.close()

        with pytest.raises(ReaderClosedError):
            reader.advance()

    def test_initialize_after_close(self, hello_zip):
        reader = ArchiveRecordReader()
        reader.close()

        with pytest.raises(ReaderClosedError):
            reader.initialize(hello_zip)

    def test_current_record_after_close(self, hello_zip):
        reader = make_reader(hello_zip)
        reader.advance()
        reader.close()

        with pytest.raises(NoCurrentRecordError):
            reader.current_record()

    def test_wrong_options_type(self):
        with pytest.raises(InvalidOptionsError):
            ArchiveRecordReader(options={"lenient": True})


@pytest.mark.unit
class TestSourceHandling:
    """Opening and closing the archive source."""

    def test_close_is_idempotent(self, hello_zip):
        stream = io.BytesIO(hello_zip)
        reader = make_reader(ArchiveSource(stream))

        reader.close()
        reader.close()

        assert stream.closed
        assert reader.source is None

    def test_close_before_initialize(self):
        reader = ArchiveRecordReader()
        reader.close()

        assert reader.state is ReaderState.CLOSED

    def test_close_error_is_swallowed(self, hello_zip, caplog):
        stream = FailingCloseStream(hello_zip)
        reader = make_reader(stream)
        list(reader)

        with caplog.at_level(logging.WARNING, logger="ziprecords"):
            reader.close()
            reader.close()

        assert stream.close_calls == 1
        assert any("Error closing archive source" in message for message in caplog.messages)

    def test_missing_path(self, tmp_path):
        reader = ArchiveRecordReader()

        with pytest.raises(SourceUnavailableError):
            reader.initialize(tmp_path / "missing.zip")

        assert reader.state is ReaderState.UNINITIALIZED

    def test_missing_path_not_softened_by_lenient(self, tmp_path):
        with pytest.raises(SourceUnavailableError):
            ArchiveRecordReader(LENIENT).initialize(str(tmp_path / "missing.zip"))

    def test_path_input(self, tmp_path, hello_zip):
        path = tmp_path / "a.zip"
        path.write_bytes(hello_zip)

        with ArchiveRecordReader() as reader:
            reader.initialize(path)
            names = [record.name for record in reader]

        assert names == ["x.txt", "y.bin"]

    def test_filesystem_collaborator(self, hello_zip):
        fs = InMemoryFileSystem({"bucket/a.zip": hello_zip})
        reader = ArchiveRecordReader()
        reader.initialize("bucket/a.zip", filesystem=fs)

        assert len(list(reader)) == 2
        assert fs.opened == ["bucket/a.zip"]

    def test_read_error_strict(self, hello_zip):
        stream = FailingReadStream(hello_zip, fail_after=body_offset(hello_zip, 1) + 1)
        reader = make_reader(stream)

        assert reader.advance() is True
        with pytest.raises(TruncatedStreamError):
            reader.advance()

    def test_read_error_lenient(self, hello_zip):
        stream = FailingReadStream(hello_zip, fail_after=body_offset(hello_zip, 1) + 1)

        assert [r.name for r in make_reader(stream, LENIENT)] == ["x.txt"]


@pytest.mark.unit
class TestIterationHelpers:
    """Iterator, context manager and iter_records."""

    def test_iteration(self, hello_zip):
        assert [r.name for r in make_reader(hello_zip)] == ["x.txt", "y.bin"]

    def test_context_manager_closes(self, hello_zip):
        with make_reader(hello_zip) as reader:
            reader.advance()

        assert reader.state is ReaderState.CLOSED

    def test_context_manager_closes_on_error(self, truncated_zip):
        with pytest.raises(TruncatedStreamError):
            with make_reader(truncated_zip) as reader:
                list(reader)

        assert reader.state is ReaderState.CLOSED

    def test_iter_records(self, nested_zip):
        records = list(iter_records(nested_zip))

        assert len(records) == 5
        assert records[-1].name == "subdir1/subsubdir2/Ulysses-18.txt"

    def test_iter_records_lenient(self, truncated_zip):
        assert [r.name for r in iter_records(truncated_zip, ArchiveReaderOptions(lenient=True))] == ["first.txt"]

    def test_iter_records_closes_stream_on_early_exit(self, hello_zip):
        stream = io.BytesIO(hello_zip)
        records = iter_records(stream)

        next(records)
        records.close()

        assert stream.closed


@pytest.mark.unit
class TestProgressEvents:
    """Progress callback events emitted while reading."""

    def test_event_sequence(self, hello_zip):
        events = []
        reader = make_reader(hello_zip, progress_callback=events.append)
        list(reader)

        assert [e.event_type for e in events] == ["started", "item_done", "item_done", "finished"]
        assert events[1].metadata["entry_name"] == "x.txt"
        assert events[1].metadata["size"] == 11
        assert events[2].current == 2

    @pytest.mark.parametrize("lenient", [False, True])
    def test_error_event(self, truncated_zip, lenient):
        events = []
        reader = make_reader(truncated_zip, ArchiveReaderOptions(lenient=lenient), progress_callback=events.append)
        reader.advance()
        try:
            reader.advance()
        except EntryError:
            pass

        error = events[-1]
        assert error.event_type == "error"
        assert error.metadata["suppressed"] is lenient
        assert error.metadata["error_type"] == "TruncatedStreamError"
        assert error.metadata["entry_name"] == "second.txt"

    def test_failing_callback_does_not_stop_reading(self, hello_zip):
        def callback(event):
            raise RuntimeError("callback failure")

        reader = make_reader(hello_zip, progress_callback=callback)

        assert len(list(reader)) == 2
