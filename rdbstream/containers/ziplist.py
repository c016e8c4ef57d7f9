"""
Ziplist decoding.

Layout: <zlbytes:u32><zltail:u32><zllen:u16><entry>...<0xff>

Each entry is <prevlen><encoding><data>. The prevlen field is one byte, or
that byte followed by a 4-byte length when it exceeds the cutoff. The
encoding byte's top two bits select a 6, 14 or 32-bit string length; 11
selects one of the integer encodings.
"""

from typing import List

from rdbproto.config.params import ZIPLIST_PREVLEN_CUTOFF
from .envelope import EnvelopeReader

HEADER_SIZE = 8
UNKNOWN_COUNT = 0xFFFF
END = 0xFF

STR_06B = 0
STR_14B = 1
STR_32B = 2

INT_16B = 0xC0
INT_32B = 0xD0
INT_64B = 0xE0
INT_24B = 0xF0
INT_8B = 0xFE


def _read_entry(r: EnvelopeReader, prevlen_cutoff: int) -> bytes:
    if r.u8() > prevlen_cutoff:
        r.skip(4)

    special = r.u8()
    top2 = special >> 6
    if top2 == STR_06B:
        return r.take(special & 0x3F)
    if top2 == STR_14B:
        return r.take(((special & 0x3F) << 8) | r.u8())
    if top2 == STR_32B:
        return r.take(r.unpack(">I"))

    if special == INT_16B:
        value = r.int_le(2)
    elif special == INT_32B:
        value = r.int_le(4)
    elif special == INT_64B:
        value = r.int_le(8)
    elif special == INT_24B:
        value = r.int_le(3)
    elif special == INT_8B:
        value = r.int_le(1)
    elif 0xF1 <= special <= 0xFD:
        # 4-bit immediate, stored as 1..13
        value = (special & 0x0F) - 1
    else:
        raise r.fail(f"unknown entry encoding 0x{special:02x}")
    return str(value).encode("ascii")


def decode_ziplist(envelope: bytes, prevlen_cutoff: int = ZIPLIST_PREVLEN_CUTOFF) -> List[bytes]:
    """Decode a ziplist into its elements, in stored order."""
    r = EnvelopeReader(envelope, "ziplist")
    r.skip(HEADER_SIZE)
    num = r.unpack("<H")
    if num < UNKNOWN_COUNT:
        return [_read_entry(r, prevlen_cutoff) for _ in range(num)]

    # Count overflowed u16; walk to the end marker instead.
    values = []
    while r.peek() != END:
        values.append(_read_entry(r, prevlen_cutoff))
    return values
