# MIT License
# Copyright (c) 2025 Hashborn

"""
RDB Parser

Reads entries from a snapshot file or stream, one at a time.
"""

import io
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple, Union

from rdbproto.config.params import (
    CHECKSUM_MIN_VERSION,
    CHECKSUM_SIZE,
    DEFAULT_CONFIG,
    MAGIC,
    OPCODE_MIN_VERSION,
    TYPE_MIN_VERSION,
    VERSION_DIGITS,
    ParserConfig,
)
from rdbproto.types.common import (
    FormatError,
    Opcode,
    RdbError,
    RdbType,
    SizeLimitError,
    StreamClosedError,
    UnsupportedFeatureError,
    ValueType,
)
from rdbproto.types.entries import AuxField, Entry, Eof, KeyValuePair, ResizeDb, SelectDb
from rdbproto.types.lazy import LazyList
from ..codec.encoding import (
    read_binary_double,
    read_double_string,
    read_length,
    read_string_encoded,
    read_u32_le,
    read_u64_le,
)
from ..containers.intset import decode_intset
from ..containers.listpack import decode_listpack
from ..containers.quicklist import decode_quicklist, decode_quicklist2
from ..containers.sorted_set import normalize_scores
from ..containers.ziplist import decode_ziplist
from ..containers.zipmap import decode_zipmap
from ..io.cursor import ByteCursor
from ..observability.metrics import (
    update_container_metrics,
    update_entry_metrics,
    update_header_metrics,
)

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]

# Value types that are recognized but deliberately not decoded
UNSUPPORTED_TYPES = {
    RdbType.MODULE_PRE_GA: "module values",
    RdbType.MODULE_2: "module values",
    RdbType.STREAM_LISTPACKS: "streams",
    RdbType.STREAM_LISTPACKS_2: "streams",
    RdbType.STREAM_LISTPACKS_3: "streams",
    RdbType.HASH_METADATA_PRE_GA: "hash field expiration",
    RdbType.HASH_LISTPACK_EX_PRE_GA: "hash field expiration",
    RdbType.HASH_METADATA: "hash field expiration",
    RdbType.HASH_LISTPACK_EX: "hash field expiration",
}


class ParserState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class PendingEntry:
    """Per-key metadata collected before the value type opcode."""
    expire_time_ms: Optional[int] = None
    freq: Optional[int] = None
    idle_seconds: Optional[int] = None

    def is_empty(self) -> bool:
        return self.expire_time_ms is None and self.freq is None and self.idle_seconds is None


def _open_source(source: Source) -> BinaryIO:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source))
    if isinstance(source, (str, os.PathLike)):
        return open(source, "rb")
    if not hasattr(source, "read"):
        raise TypeError(f"Cannot read a snapshot from {type(source).__name__}")
    return source


class RdbParser:
    """
    Pull parser over one snapshot.

    Each call to `read_next()` returns exactly one entry: aux fields, database
    selectors, resize hints, key/value pairs and finally `Eof`. After `Eof` it
    returns None forever. Expiry, LFU and LRU opcodes are folded into the
    key/value pair that follows them.

    The parser owns its source and closes it in `close()`; use it as a
    context manager. It is not safe to share between threads.
    """

    def __init__(self, source: Source, config: Optional[ParserConfig] = None):
        """
        Initialize parser.

        Args:
            source: Path, in-memory bytes, or binary file object
            config: Parser configuration (default: DEFAULT_CONFIG)
        """
        self.config = config or DEFAULT_CONFIG
        self._cursor = ByteCursor(_open_source(source), self.config.buffer_size)
        self.state = ParserState.UNINITIALIZED
        self.version: Optional[int] = None
        self._pending = PendingEntry()
        self._reported_bytes = 0

        self._value_readers: dict = {
            RdbType.STRING: self._read_value,
            RdbType.LIST: self._read_list,
            RdbType.SET: self._read_set,
            RdbType.ZSET: self._read_sorted_set,
            RdbType.ZSET_2: self._read_sorted_set2,
            RdbType.HASH: self._read_hash,
            RdbType.HASH_ZIPMAP: self._read_zipmap,
            RdbType.LIST_ZIPLIST: self._read_ziplist,
            RdbType.SET_INTSET: self._read_intset,
            RdbType.ZSET_ZIPLIST: self._read_sorted_set_as_ziplist,
            RdbType.HASH_ZIPLIST: self._read_hash_as_ziplist,
            RdbType.LIST_QUICKLIST: self._read_quicklist,
            RdbType.HASH_LISTPACK: self._read_hash_as_listpack,
            RdbType.ZSET_LISTPACK: self._read_sorted_set_as_listpack,
            RdbType.LIST_QUICKLIST_2: self._read_quicklist2,
            RdbType.SET_LISTPACK: self._read_listpack,
        }

    @property
    def bytes_read(self) -> int:
        return self._cursor.bytes_read

    # --- Public API ---

    def read_next(self) -> Optional[Entry]:
        """
        Return the next entry, or None once `Eof` has been returned.

        Raises:
            FormatError: Malformed snapshot
            TruncatedInputError: Source ended mid-record
            UnsupportedFeatureError: Module, function or stream records
            SizeLimitError: Collection or string too large
            StreamClosedError: Parser closed or failed earlier
        """
        if self.state == ParserState.CLOSED:
            raise StreamClosedError("Parser is closed")
        if self.state == ParserState.FAILED:
            raise StreamClosedError("Parser hit a decode error earlier and cannot resume")
        if self.state == ParserState.EXHAUSTED:
            return None

        try:
            if self.state == ParserState.UNINITIALIZED:
                self._read_header()
            entry = self._read_entry()
        except RdbError:
            self.state = ParserState.FAILED
            raise

        bytes_now = self._cursor.bytes_read
        update_entry_metrics(entry, bytes_now - self._reported_bytes)
        self._reported_bytes = bytes_now
        return entry

    def __iter__(self) -> Iterator[Entry]:
        return self

    def __next__(self) -> Entry:
        entry = self.read_next()
        if entry is None:
            raise StopIteration
        return entry

    def close(self):
        """Close the underlying source. Safe to call more than once."""
        if self.state == ParserState.CLOSED:
            return
        self.state = ParserState.CLOSED
        self._cursor.close()
        logger.debug(f"Closed snapshot parser after {self._cursor.bytes_read} bytes")

    def __enter__(self) -> "RdbParser":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- Header and opcodes ---

    def _read_header(self):
        magic = self._cursor.read_bytes(len(MAGIC))
        if magic != MAGIC:
            raise FormatError("Not a valid redis RDB file")

        digits = self._cursor.read_bytes(VERSION_DIGITS)
        if not digits.isdigit():
            raise FormatError(f"Invalid version field {digits!r}")
        version = int(digits)
        if version < self.config.min_version or version > self.config.max_version:
            raise FormatError(f"Unknown version {version}")

        self.version = version
        self.state = ParserState.READY
        update_header_metrics(version)
        logger.debug(f"Opened snapshot with format version {version}")

    def _check_version(self, what: str, min_version: int):
        if self.config.strict_versions and self.version < min_version:
            raise FormatError(
                f"{what} requires format version {min_version}, snapshot is version {self.version}"
            )

    def _read_entry(self) -> Entry:
        cursor = self._cursor
        while True:
            b = cursor.read_byte()
            if b in OPCODE_MIN_VERSION:
                op = Opcode(b)
                self._check_version(f"Opcode {op.name}", OPCODE_MIN_VERSION[op])
            else:
                return self._read_key_value(b)

            if op == Opcode.EXPIRETIME:
                self._pending.expire_time_ms = read_u32_le(cursor) * 1000
                continue
            if op == Opcode.EXPIRETIME_MS:
                self._pending.expire_time_ms = read_u64_le(cursor)
                continue
            if op == Opcode.FREQ:
                self._pending.freq = cursor.read_byte()
                continue
            if op == Opcode.IDLE:
                self._pending.idle_seconds = read_length(cursor)
                continue
            if op == Opcode.MODULE_AUX:
                raise UnsupportedFeatureError("module aux records")
            if op in (Opcode.FUNCTION2, Opcode.FUNCTION_PRE_GA):
                raise UnsupportedFeatureError("functions")

            if not self._pending.is_empty():
                raise FormatError(f"Opcode {op.name} found between key metadata and its value")

            if op == Opcode.EOF:
                return self._read_eof()
            if op == Opcode.SELECTDB:
                return SelectDb(id=read_length(cursor))
            if op == Opcode.RESIZEDB:
                db_size = read_length(cursor)
                expire_size = read_length(cursor)
                return ResizeDb(db_size=db_size, expire_size=expire_size)
            if op == Opcode.AUX:
                key = self._read_string()
                value = self._read_string()
                return AuxField(key=key, value=value)

    def _read_eof(self) -> Eof:
        if self.version >= CHECKSUM_MIN_VERSION:
            checksum = self._cursor.read_bytes(CHECKSUM_SIZE)
        else:
            checksum = bytes(CHECKSUM_SIZE)
        self.state = ParserState.EXHAUSTED
        logger.debug(f"Reached end of snapshot after {self._cursor.bytes_read} bytes")
        return Eof(checksum=checksum)

    def _read_key_value(self, type_byte: int) -> KeyValuePair:
        try:
            rdb_type = RdbType(type_byte)
        except ValueError:
            raise FormatError(f"Unknown value type: {type_byte}") from None

        feature = UNSUPPORTED_TYPES.get(rdb_type)
        if feature is not None:
            raise UnsupportedFeatureError(feature, f"value type {rdb_type.name}")
        self._check_version(f"Value type {rdb_type.name}", TYPE_MIN_VERSION[rdb_type])

        key = self._read_string()
        value_type, values = self._value_readers[rdb_type]()

        pending = self._pending
        self._pending = PendingEntry()
        return KeyValuePair(
            key=key,
            value_type=value_type,
            lazy_values=values,
            expire_time_ms=pending.expire_time_ms,
            idle_seconds=pending.idle_seconds,
            freq=pending.freq,
        )

    # --- Value readers ---

    def _read_string(self) -> bytes:
        return read_string_encoded(self._cursor, self.config.max_string_length)

    def _read_count(self, kind: str, limit: int) -> int:
        count = read_length(self._cursor)
        if count > limit:
            raise SizeLimitError(f"{kind} with more than {limit} elements are not supported ({count})")
        return count

    def _lazy(self, fmt: str, envelope, decode: Callable) -> LazyList:
        def realize(env) -> List[bytes]:
            update_container_metrics(fmt)
            return decode(env)
        return LazyList(envelope, realize)

    def _read_value(self) -> Tuple[ValueType, LazyList]:
        return ValueType.VALUE, LazyList.of([self._read_string()])

    def _read_list(self) -> Tuple[ValueType, LazyList]:
        size = self._read_count("Lists", self.config.max_elements)
        return ValueType.LIST, LazyList.of([self._read_string() for _ in range(size)])

    def _read_set(self) -> Tuple[ValueType, LazyList]:
        size = self._read_count("Sets", self.config.max_elements)
        return ValueType.SET, LazyList.of([self._read_string() for _ in range(size)])

    def _read_pairs(self, kind: str, read_second: Callable[[], bytes]) -> List[bytes]:
        size = self._read_count(kind, self.config.max_elements // 2)
        pairs = []
        for _ in range(size):
            pairs.append(self._read_string())
            pairs.append(read_second())
        return pairs

    def _read_sorted_set(self) -> Tuple[ValueType, LazyList]:
        values = self._read_pairs("Sorted sets", lambda: read_double_string(self._cursor))
        return ValueType.SORTED_SET, LazyList.of(values)

    def _read_sorted_set2(self) -> Tuple[ValueType, LazyList]:
        values = self._read_pairs("Sorted sets", lambda: read_binary_double(self._cursor))
        return ValueType.SORTED_SET2, LazyList.of(values)

    def _read_hash(self) -> Tuple[ValueType, LazyList]:
        return ValueType.HASH, LazyList.of(self._read_pairs("Hashes", self._read_string))

    def _read_zipmap(self) -> Tuple[ValueType, LazyList]:
        return ValueType.ZIPMAP, self._lazy("zipmap", self._read_string(), decode_zipmap)

    def _decode_ziplist(self, envelope: bytes) -> List[bytes]:
        return decode_ziplist(envelope, self.config.prevlen_cutoff_for(self.version))

    def _read_ziplist(self) -> Tuple[ValueType, LazyList]:
        return ValueType.ZIPLIST, self._lazy("ziplist", self._read_string(), self._decode_ziplist)

    def _read_intset(self) -> Tuple[ValueType, LazyList]:
        return ValueType.INTSET, self._lazy("intset", self._read_string(), decode_intset)

    def _read_sorted_set_as_ziplist(self) -> Tuple[ValueType, LazyList]:
        values = self._lazy(
            "ziplist", self._read_string(),
            lambda env: normalize_scores(self._decode_ziplist(env)),
        )
        return ValueType.SORTED_SET_AS_ZIPLIST, values

    def _read_hash_as_ziplist(self) -> Tuple[ValueType, LazyList]:
        return ValueType.HASHMAP_AS_ZIPLIST, self._lazy("ziplist", self._read_string(), self._decode_ziplist)

    def _read_quicklist(self) -> Tuple[ValueType, LazyList]:
        size = self._read_count("Quicklists", self.config.max_elements)
        ziplists = [self._read_string() for _ in range(size)]
        cutoff = self.config.prevlen_cutoff_for(self.version)
        values = self._lazy("quicklist", ziplists, lambda env: decode_quicklist(env, cutoff))
        return ValueType.QUICKLIST, values

    def _read_quicklist2(self) -> Tuple[ValueType, LazyList]:
        size = self._read_count("Quicklists", self.config.max_elements)
        nodes = []
        for _ in range(size):
            container = read_length(self._cursor)
            nodes.append((container, self._read_string()))
        return ValueType.QUICKLIST2, self._lazy("quicklist2", nodes, decode_quicklist2)

    def _read_listpack(self) -> Tuple[ValueType, LazyList]:
        return ValueType.LISTPACK, self._lazy("listpack", self._read_string(), decode_listpack)

    def _read_hash_as_listpack(self) -> Tuple[ValueType, LazyList]:
        return ValueType.HASHMAP_AS_LISTPACK, self._lazy("listpack", self._read_string(), decode_listpack)

    def _read_sorted_set_as_listpack(self) -> Tuple[ValueType, LazyList]:
        values = self._lazy(
            "listpack", self._read_string(),
            lambda env: normalize_scores(decode_listpack(env)),
        )
        return ValueType.SORTED_SET_AS_LISTPACK, values


def read_entries(source: Source, config: Optional[ParserConfig] = None) -> Iterator[Entry]:
    """Yield every entry of a snapshot, up to and including `Eof`, then close it."""
    with RdbParser(source, config) as parser:
        yield from parser
