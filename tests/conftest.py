"""Pytest configuration and shared fixtures for the ziprecords test suite.

This module provides shared fixtures, markers and archive samples used
across the unit and integration tests.
"""

import os
import zipfile
from pathlib import Path

import pytest
from utils import (
    corrupt_entry_body,
    create_test_zip,
    set_entry_flags,
    truncate_in_entry_body,
)

HELLO_FILES = [("x.txt", b"hello world"), ("y.bin", b"\x00\x01\x02")]

NESTED_FILES = [
    ("readme.txt", b"The quick brown fox jumps over the lazy dog.\n"),
    ("subdir1/", b""),
    ("subdir1/notes.txt", b"Fox and dog, again: the FOX!\n"),
    ("subdir1/subsubdir2/data.bin", os.urandom(4096)),
    ("subdir1/subsubdir2/Ulysses-18.txt", b"Yes I said yes I will Yes.\n" * 200),
]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture
def hello_zip() -> bytes:
    """Archive A: ``x.txt`` ("hello world") then ``y.bin`` (3 raw bytes)."""
    return create_test_zip(HELLO_FILES)


@pytest.fixture
def nested_zip() -> bytes:
    """Deflated archive with directories and nested entries."""
    return create_test_zip(NESTED_FILES)


@pytest.fixture
def truncated_zip() -> bytes:
    """Archive B: the stream stops inside the compressed body of its second entry."""
    data = create_test_zip([("first.txt", b"first entry " * 50), ("second.txt", b"second entry " * 500)])
    return truncate_in_entry_body(data, 1, keep=10)


@pytest.fixture
def encrypted_zip() -> bytes:
    """Two good entries followed by one whose encryption flag is set."""
    data = create_test_zip([("a.txt", b"alpha"), ("b.txt", b"beta"), ("secret.txt", b"classified")])
    return set_entry_flags(data, 2, 0x0001)


@pytest.fixture
def corrupt_zip() -> bytes:
    """Stored archive whose second entry fails its CRC-32 check."""
    data = create_test_zip(
        [("one.txt", b"one one one"), ("two.txt", b"two two two"), ("three.txt", b"three")],
        compression=zipfile.ZIP_STORED,
    )
    return corrupt_entry_body(data, 1)


@pytest.fixture
def random_bytes() -> bytes:
    """Data that is not a ZIP archive at all."""
    return b"This is definitely not a zip archive.\n" + bytes(range(256))


@pytest.fixture
def input_dir(tmp_path: Path, nested_zip: bytes, truncated_zip: bytes, encrypted_zip: bytes, random_bytes: bytes) -> Path:
    """Directory of mixed inputs, mirroring a batch with good and bad archives."""
    directory = tmp_path / "Input"
    directory.mkdir()
    (directory / "zip-01.zip").write_bytes(nested_zip)
    (directory / "zip-02.zip").write_bytes(create_test_zip({"words.txt": b"fox dog fox"}))
    (directory / "corrupt.zip").write_bytes(truncated_zip)
    (directory / "encrypted.zip").write_bytes(encrypted_zip)
    (directory / "random.dat").write_bytes(random_bytes)
    return directory
