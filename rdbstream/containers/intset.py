"""
Intset decoding.

Layout: <encoding:u32><length:u32><int>... where encoding is the byte width
(2, 4 or 8) of every member, stored little-endian and signed.
"""

from typing import List

from .envelope import EnvelopeReader

WIDTHS = (2, 4, 8)


def decode_intset(envelope: bytes) -> List[bytes]:
    r = EnvelopeReader(envelope, "intset")
    width = r.unpack("<I")
    num = r.unpack("<I")
    if width not in WIDTHS:
        raise r.fail(f"unknown intset encoding {width}")
    return [str(r.int_le(width)).encode("ascii") for _ in range(num)]
