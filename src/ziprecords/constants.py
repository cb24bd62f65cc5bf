#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/constants.py
"""Constants used throughout the ziprecords package.

ZIP structure values follow the PKWARE APPNOTE for local file headers
and data descriptors. Defaults for reader options live here so that the
options module, the CLI and the tests share one source of truth.
"""

from __future__ import annotations

import struct
from typing import Final

# Signatures
LOCAL_HEADER_SIGNATURE: Final = b"PK\x03\x04"
DATA_DESCRIPTOR_SIGNATURE: Final = b"PK\x07\x08"

# Local header after the 4-byte signature:
# version, flags, method, mtime, mdate, crc32, csize, usize, name_len, extra_len
LOCAL_HEADER_STRUCT: Final = struct.Struct("<HHHHHIIIHH")

EXTRA_HEADER_STRUCT: Final = struct.Struct("<HH")
ZIP64_EXTRA_ID: Final = 0x0001
ZIP64_SIZE_MARKER: Final = 0xFFFFFFFF

# General purpose flag bits
FLAG_ENCRYPTED: Final = 0x0001
FLAG_DATA_DESCRIPTOR: Final = 0x0008
FLAG_STRONG_ENCRYPTION: Final = 0x0040
FLAG_UTF8: Final = 0x0800

# Compression methods
METHOD_STORED: Final = 0
METHOD_DEFLATED: Final = 8
METHOD_BZIP2: Final = 12
SUPPORTED_METHODS: Final = frozenset({METHOD_STORED, METHOD_DEFLATED, METHOD_BZIP2})

# Reader option defaults
DEFAULT_CHUNK_SIZE: Final = 8192
DEFAULT_LENIENT: Final = False
DEFAULT_NAME_ENCODING: Final = "cp437"

# Environment variable prefix for CLI defaults
ENV_PREFIX: Final = "ZIPRECORDS_"
