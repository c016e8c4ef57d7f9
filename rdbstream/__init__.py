# MIT License
# Copyright (c) 2025 Hashborn

"""
rdbstream

Streaming decoder for Redis RDB snapshots. Entries are read one at a time;
packed collections are decoded only when their values are first requested.
"""

from rdbproto.types.common import (
    CompressionError,
    EntryType,
    FormatError,
    RdbError,
    SizeLimitError,
    StreamClosedError,
    TruncatedInputError,
    UnsupportedFeatureError,
    ValueType,
)
from rdbproto.types.entries import AuxField, Entry, Eof, KeyValuePair, ResizeDb, SelectDb
from rdbproto.types.lazy import LazyList
from .parser.rdb_parser import ParserState, RdbParser, read_entries

__all__ = [
    "RdbParser",
    "ParserState",
    "read_entries",
    "Entry",
    "Eof",
    "SelectDb",
    "ResizeDb",
    "AuxField",
    "KeyValuePair",
    "EntryType",
    "ValueType",
    "LazyList",
    "RdbError",
    "FormatError",
    "CompressionError",
    "TruncatedInputError",
    "UnsupportedFeatureError",
    "SizeLimitError",
    "StreamClosedError",
]
