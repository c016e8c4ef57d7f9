"""
LZF decompression.

The compressed stream is a series of chunks, each starting with a control
byte:
- ctrl < 32: a literal run of ctrl + 1 bytes copied verbatim
- otherwise: a back-reference. The top 3 bits are the match length minus 2
  (7 means "add the next byte"); the low 5 bits and the following byte form
  the distance back into the output, minus one.

Back-references may overlap the bytes they produce (distance < length), so
they are copied one byte at a time.
"""

from rdbproto.types.common import CompressionError

MAX_LITERAL = 32


def expand(src: bytes, expected_length: int) -> bytes:
    """
    Decompress `src` into exactly `expected_length` bytes.

    Raises:
        CompressionError: If the input is malformed or does not produce
            exactly `expected_length` bytes
    """
    out = bytearray(expected_length)
    src_len = len(src)
    ip = 0
    op = 0

    while op < expected_length:
        if ip >= src_len:
            raise CompressionError(
                f"Compressed data exhausted after {op} of {expected_length} bytes"
            )
        ctrl = src[ip]
        ip += 1

        if ctrl < MAX_LITERAL:
            run = ctrl + 1
            if ip + run > src_len:
                raise CompressionError(f"Literal run of {run} bytes overruns input at offset {ip}")
            if op + run > expected_length:
                raise CompressionError(f"Literal run of {run} bytes overruns output at offset {op}")
            out[op:op + run] = src[ip:ip + run]
            ip += run
            op += run
            continue

        length = ctrl >> 5
        if length == 7:
            if ip >= src_len:
                raise CompressionError("Truncated back-reference length")
            length += src[ip]
            ip += 1
        length += 2

        if ip >= src_len:
            raise CompressionError("Truncated back-reference offset")
        ref = op - ((ctrl & 0x1F) << 8) - 1 - src[ip]
        ip += 1

        if ref < 0:
            raise CompressionError(f"Back-reference points {-ref} bytes before output start")
        if op + length > expected_length:
            raise CompressionError(f"Back-reference of {length} bytes overruns output at offset {op}")
        for _ in range(length):
            out[op] = out[ref]
            op += 1
            ref += 1

    return bytes(out)
