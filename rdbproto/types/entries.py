# MIT License
# Copyright (c) 2025 Hashborn

"""
Snapshot Entry Records

One model per record the parser can emit. Entries are immutable and own
their bytes, so they stay valid after the parser has moved on.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .common import EntryType, ValueType, PAIRED_VALUE_TYPES
from .lazy import LazyList


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Eof(_Entry):
    """
    End of the snapshot. The checksum is all zeros for format versions
    older than 5; it is surfaced as-is and never verified here.
    """
    type: Literal[EntryType.EOF] = EntryType.EOF
    checksum: bytes = Field(..., min_length=8, max_length=8, description="Raw 8-byte checksum")

    @property
    def checksum_int(self) -> int:
        """Checksum as an unsigned little-endian 64-bit integer."""
        return int.from_bytes(self.checksum, "little")


class SelectDb(_Entry):
    type: Literal[EntryType.SELECT_DB] = EntryType.SELECT_DB
    id: int = Field(..., ge=0, description="Database index")


class ResizeDb(_Entry):
    """Hash table size hints for the current database."""
    type: Literal[EntryType.RESIZE_DB] = EntryType.RESIZE_DB
    db_size: int = Field(..., ge=0, description="Main hash table size")
    expire_size: int = Field(..., ge=0, description="Expire hash table size")


class AuxField(_Entry):
    """Auxiliary metadata about the snapshot (e.g. redis-ver, ctime)."""
    type: Literal[EntryType.AUX] = EntryType.AUX
    key: bytes
    value: bytes


class KeyValuePair(_Entry):
    """
    A key, its value type, and its values.

    `values` is always a flat list of byte strings:
    - VALUE: a singleton with the value
    - list and set types: the elements in stored order
    - hash, zipmap and sorted set types: alternating key/value or
      member/score pairs (scores are float text)

    Packed encodings keep their envelope undecoded until `values` is first
    read.
    """
    type: Literal[EntryType.KEY_VALUE_PAIR] = EntryType.KEY_VALUE_PAIR
    key: bytes
    value_type: ValueType
    lazy_values: LazyList = Field(..., exclude=True, repr=False)
    expire_time_ms: Optional[int] = Field(default=None, description="Absolute expiry (unix ms)")
    idle_seconds: Optional[int] = Field(default=None, description="LRU idle time")
    freq: Optional[int] = Field(default=None, ge=0, le=255, description="LFU frequency")

    def __hash__(self) -> int:
        # Hashing must not force the lazy values to decode
        return hash((self.type, self.key, self.value_type,
                     self.expire_time_ms, self.idle_seconds, self.freq))

    @property
    def values(self) -> List[bytes]:
        """A fresh list of the decoded elements; decodes on first access."""
        return self.lazy_values.get()

    @property
    def has_expiry(self) -> bool:
        return self.expire_time_ms is not None

    @property
    def is_paired(self) -> bool:
        return self.value_type in PAIRED_VALUE_TYPES


Entry = Union[Eof, SelectDb, ResizeDb, AuxField, KeyValuePair]
