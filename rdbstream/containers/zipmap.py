"""
Zipmap decoding (small hashes, superseded by ziplists in Redis 2.6).

Layout: <zmlen><len>"key"<len><free>"value"...<0xff>

Lengths take one byte when below 253; 253 is followed by a 4-byte length.
Values carry a free-byte count and that many unused bytes after them. A
zmlen of 254 or more is not a real count, so the map is always walked to the
end marker.
"""

from typing import List

from .envelope import EnvelopeReader

BIG_LEN = 253
END = 0xFF


def _read_length(r: EnvelopeReader, b: int) -> int:
    if b < BIG_LEN:
        return b
    if b == BIG_LEN:
        return r.unpack(">I")
    raise r.fail(f"invalid length byte {b}")


def decode_zipmap(envelope: bytes) -> List[bytes]:
    """Decode a zipmap into flattened key/value pairs."""
    r = EnvelopeReader(envelope, "zipmap")
    r.u8()  # zmlen, unreliable once it reaches 254
    values = []
    while True:
        b = r.u8()
        if b == END:
            break
        values.append(r.take(_read_length(r, b)))

        length = _read_length(r, r.u8())
        free = r.u8()
        values.append(r.take(length))
        r.skip(free)
    return values
