# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict
from ..types.common import Opcode, RdbType

# Global Constants
MAGIC = b"REDIS"
VERSION_DIGITS = 4
CHECKSUM_SIZE = 8
CHECKSUM_MIN_VERSION = 5   # EOF carries a checksum from this version on

MIN_VERSION = 1
MAX_VERSION = 12

BUFFER_SIZE = 8 * 1024

# Signed 32-bit ceilings on collection and string sizes
MAX_ELEMENTS = 2**31 - 1
MAX_STRING_LENGTH = 2**31 - 1

# A ziplist prevlen byte above this value means 4 more bytes follow.
ZIPLIST_PREVLEN_CUTOFF = 0xFD

# Per-version overrides of the prevlen cutoff. Every supported version uses
# the default so far; older decoders used 0xfc, which misreads prevlen == 253.
ZIPLIST_PREVLEN_CUTOFF_BY_VERSION: Dict[int, int] = {}

# Format version in which each opcode first appeared
OPCODE_MIN_VERSION: Dict[Opcode, int] = {
    Opcode.EOF:             1,
    Opcode.SELECTDB:        1,
    Opcode.EXPIRETIME:      1,
    Opcode.EXPIRETIME_MS:   3,
    Opcode.RESIZEDB:        7,
    Opcode.AUX:             7,
    Opcode.FREQ:            9,
    Opcode.IDLE:            9,
    Opcode.MODULE_AUX:      9,
    Opcode.FUNCTION_PRE_GA: 10,
    Opcode.FUNCTION2:       10,
}

# Format version in which each value type first appeared
TYPE_MIN_VERSION: Dict[RdbType, int] = {
    RdbType.STRING:             1,
    RdbType.LIST:               1,
    RdbType.SET:                1,
    RdbType.ZSET:               1,
    RdbType.HASH:               2,
    RdbType.HASH_ZIPMAP:        2,
    RdbType.LIST_ZIPLIST:       2,
    RdbType.SET_INTSET:         2,
    RdbType.ZSET_ZIPLIST:       2,
    RdbType.HASH_ZIPLIST:       4,
    RdbType.LIST_QUICKLIST:     7,
    RdbType.ZSET_2:             8,
    RdbType.MODULE_PRE_GA:      8,
    RdbType.MODULE_2:           9,
    RdbType.STREAM_LISTPACKS:   9,
    RdbType.HASH_LISTPACK:      10,
    RdbType.ZSET_LISTPACK:      10,
    RdbType.LIST_QUICKLIST_2:   10,
    RdbType.STREAM_LISTPACKS_2: 10,
    RdbType.SET_LISTPACK:       11,
    RdbType.STREAM_LISTPACKS_3: 11,
    RdbType.HASH_METADATA_PRE_GA:    12,
    RdbType.HASH_LISTPACK_EX_PRE_GA: 12,
    RdbType.HASH_METADATA:           12,
    RdbType.HASH_LISTPACK_EX:        12,
}


def ziplist_prevlen_cutoff(version: int) -> int:
    """Prevlen cutoff for ziplists written by the given format version."""
    return ZIPLIST_PREVLEN_CUTOFF_BY_VERSION.get(version, ZIPLIST_PREVLEN_CUTOFF)


class ParserConfig:
    def __init__(self,
                 name: str = "default",
                 min_version: int = MIN_VERSION,
                 max_version: int = MAX_VERSION,
                 buffer_size: int = BUFFER_SIZE,
                 # Size guards
                 max_elements: int = MAX_ELEMENTS,
                 max_string_length: int = MAX_STRING_LENGTH,
                 # Reject opcodes/types newer than the header version
                 strict_versions: bool = True,
                 # None means pick the cutoff from the header version
                 ziplist_prevlen_cutoff: int = None):
        if min_version < MIN_VERSION or max_version > MAX_VERSION or min_version > max_version:
            raise ValueError(
                f"Version range {min_version}..{max_version} is outside "
                f"{MIN_VERSION}..{MAX_VERSION}"
            )
        if buffer_size <= 0:
            raise ValueError(f"Buffer size must be positive, got {buffer_size}")
        self.name = name
        self.min_version = min_version
        self.max_version = max_version
        self.buffer_size = buffer_size
        self.max_elements = max_elements
        self.max_string_length = max_string_length
        self.strict_versions = strict_versions
        self.ziplist_prevlen_cutoff = ziplist_prevlen_cutoff

    def prevlen_cutoff_for(self, version: int) -> int:
        if self.ziplist_prevlen_cutoff is not None:
            return self.ziplist_prevlen_cutoff
        return ziplist_prevlen_cutoff(version)

    def __repr__(self) -> str:
        return (
            f"ParserConfig(name={self.name!r}, versions={self.min_version}..{self.max_version}, "
            f"strict_versions={self.strict_versions})"
        )


PROFILES: Dict[str, ParserConfig] = {
    "default": ParserConfig(name="default"),
    # Accepts opcodes and types newer than the header declares
    "permissive": ParserConfig(
        name="permissive",
        strict_versions=False,
    ),
}

DEFAULT_CONFIG = PROFILES["default"]
