"""
Listpack decoding.

Layout: <total-bytes:u32><num-elements:u16><element>...<0xff>

Each element is <encoding><data><backlen>. The backlen field stores the size
of <encoding><data> so the list can be walked backwards; forward decoding
only needs to know how wide it is.
"""

from typing import List

from .envelope import EnvelopeReader

HEADER_SIZE = 4
UNKNOWN_COUNT = 0xFFFF
END = 0xFF

ENC_7BIT_UINT = 0x00
ENC_7BIT_UINT_MASK = 0x80
ENC_6BIT_STR = 0x80
ENC_6BIT_STR_MASK = 0xC0
ENC_13BIT_INT = 0xC0
ENC_13BIT_INT_MASK = 0xE0
ENC_12BIT_STR = 0xE0
ENC_12BIT_STR_MASK = 0xF0

ENC_32BIT_STR = 0xF0
ENC_16BIT_INT = 0xF1
ENC_24BIT_INT = 0xF2
ENC_32BIT_INT = 0xF3
ENC_64BIT_INT = 0xF4

# Width in bits of the sized integer encodings
INT_WIDTHS = {
    ENC_16BIT_INT: 16,
    ENC_24BIT_INT: 24,
    ENC_32BIT_INT: 32,
    ENC_64BIT_INT: 64,
}


def backlen_size(entry_len: int) -> int:
    """Width of the backlen field for an entry of `entry_len` bytes."""
    if entry_len <= 127:
        return 1
    if entry_len < 16383:
        return 2
    if entry_len < 2097151:
        return 3
    if entry_len < 268435455:
        return 4
    return 5


def _twos_complement(raw: int, bits: int) -> int:
    if raw >= 1 << (bits - 1):
        return raw - (1 << bits)
    return raw


def _read_string(r: EnvelopeReader, header_len: int, str_len: int) -> bytes:
    value = r.take(str_len)
    r.skip(backlen_size(header_len + str_len))
    return value


def _read_element(r: EnvelopeReader) -> bytes:
    b = r.u8()

    if b & ENC_7BIT_UINT_MASK == ENC_7BIT_UINT:
        r.skip(1)
        return str(b & 0x7F).encode("ascii")

    if b & ENC_6BIT_STR_MASK == ENC_6BIT_STR:
        return _read_string(r, 1, b & 0x3F)

    if b & ENC_13BIT_INT_MASK == ENC_13BIT_INT:
        raw = ((b & 0x1F) << 8) | r.u8()
        r.skip(1)
        return str(_twos_complement(raw, 13)).encode("ascii")

    if b & ENC_12BIT_STR_MASK == ENC_12BIT_STR:
        return _read_string(r, 2, ((b & 0x0F) << 8) | r.u8())

    if b == ENC_32BIT_STR:
        return _read_string(r, 5, r.unpack("<I"))

    bits = INT_WIDTHS.get(b)
    if bits is None:
        raise r.fail(f"unknown element encoding 0x{b:02x}")
    raw = r.int_le(bits // 8, signed=False)
    r.skip(1)
    return str(_twos_complement(raw, bits)).encode("ascii")


def decode_listpack(envelope: bytes) -> List[bytes]:
    """Decode a listpack into its elements, checking the end marker."""
    r = EnvelopeReader(envelope, "listpack")
    r.skip(HEADER_SIZE)
    num = r.unpack("<H")
    if num < UNKNOWN_COUNT:
        values = [_read_element(r) for _ in range(num)]
    else:
        values = []
        while r.peek() != END:
            values.append(_read_element(r))

    if r.u8() != END:
        raise r.fail("listpack did not end with 0xff byte")
    return values
