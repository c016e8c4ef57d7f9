# MIT License
# Copyright (c) 2025 Hashborn

"""
Length, string and integer codecs.

Every length in a snapshot starts with a byte whose two top bits select the
encoding:
- 00: the low 6 bits are the length
- 01: the low 6 bits and the next byte form a 14-bit length
- 10: 0x80 is followed by a 32-bit and 0x81 by a 64-bit big-endian length
- 11: a special string encoding (compact integer or LZF), only valid where a
  string is expected
"""

import math
import struct

from rdbproto.config.params import MAX_STRING_LENGTH
from rdbproto.types.common import FormatError, SizeLimitError
from .lzf import expand

LEN_6BIT = 0
LEN_14BIT = 1
LEN_WIDE = 2
ENCVAL = 3

LEN_32BIT = 0x80
LEN_64BIT = 0x81

ENC_INT8 = 0
ENC_INT16 = 1
ENC_INT32 = 2
ENC_LZF = 3

# Sentinel length bytes of the legacy text score encoding
SCORE_NEG_INF = 0xFF
SCORE_POS_INF = 0xFE
SCORE_NAN = 0xFD

# Canonical text of the special float values
POSITIVE_INFINITY = repr(math.inf).encode("ascii")
NEGATIVE_INFINITY = repr(-math.inf).encode("ascii")
NAN = repr(math.nan).encode("ascii")


def _read_wide_length(cursor, b: int) -> int:
    if b == LEN_32BIT:
        return struct.unpack(">I", cursor.read_bytes(4))[0]
    if b == LEN_64BIT:
        return struct.unpack(">Q", cursor.read_bytes(8))[0]
    raise FormatError(f"Unknown length encoding: 0x{b:02x}")


def read_length(cursor) -> int:
    """
    Read a length prefix.

    Raises:
        FormatError: If the byte is a special string encoding or an unknown
            wide length
    """
    b = cursor.read_byte()
    flag = b >> 6
    if flag == LEN_6BIT:
        return b & 0x3F
    if flag == LEN_14BIT:
        return ((b & 0x3F) << 8) | cursor.read_byte()
    if flag == LEN_WIDE:
        return _read_wide_length(cursor, b)
    raise FormatError("Expected a length, but got a special string encoding")


def _read_raw(cursor, length: int, max_length: int) -> bytes:
    if length > max_length:
        raise SizeLimitError(f"Strings longer than {max_length} bytes are not supported ({length})")
    return cursor.read_bytes(length)


def read_string_encoded(cursor, max_length: int = MAX_STRING_LENGTH) -> bytes:
    """
    Read a string value. Compact integer encodings come back as their decimal
    text and LZF-compressed strings come back expanded.
    """
    b = cursor.read_byte()
    flag = b >> 6
    if flag == LEN_6BIT:
        return _read_raw(cursor, b & 0x3F, max_length)
    if flag == LEN_14BIT:
        return _read_raw(cursor, ((b & 0x3F) << 8) | cursor.read_byte(), max_length)
    if flag == LEN_WIDE:
        return _read_raw(cursor, _read_wide_length(cursor, b), max_length)

    enc = b & 0x3F
    if enc == ENC_INT8:
        value = struct.unpack("<b", cursor.read_bytes(1))[0]
    elif enc == ENC_INT16:
        value = struct.unpack("<h", cursor.read_bytes(2))[0]
    elif enc == ENC_INT32:
        value = struct.unpack("<i", cursor.read_bytes(4))[0]
    elif enc == ENC_LZF:
        return read_lzf_string(cursor, max_length)
    else:
        raise FormatError(f"Unknown special string encoding: {enc}")
    return str(value).encode("ascii")


def read_lzf_string(cursor, max_length: int = MAX_STRING_LENGTH) -> bytes:
    clen = read_length(cursor)
    ulen = read_length(cursor)
    if ulen > max_length:
        raise SizeLimitError(f"Strings longer than {max_length} bytes are not supported ({ulen})")
    src = _read_raw(cursor, clen, max_length)
    return expand(src, ulen)


def read_double_string(cursor) -> bytes:
    """Read a score in the legacy text encoding."""
    length = cursor.read_byte()
    if length == SCORE_NEG_INF:
        return NEGATIVE_INFINITY
    if length == SCORE_POS_INF:
        return POSITIVE_INFINITY
    if length == SCORE_NAN:
        return NAN
    return cursor.read_bytes(length)


def read_binary_double(cursor) -> bytes:
    """Read an 8-byte little-endian IEEE 754 score and render it as text."""
    value = struct.unpack("<d", cursor.read_bytes(8))[0]
    return repr(value).encode("ascii")


def read_u32_le(cursor) -> int:
    return struct.unpack("<I", cursor.read_bytes(4))[0]


def read_u64_le(cursor) -> int:
    return struct.unpack("<Q", cursor.read_bytes(8))[0]
