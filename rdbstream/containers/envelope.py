import struct

from rdbproto.types.common import FormatError


class EnvelopeReader:
    """Bounds-checked forward reader over one captured container."""

    def __init__(self, envelope: bytes, container: str):
        self.data = envelope
        self.container = container
        self.pos = 0

    def _need(self, n: int):
        if n < 0 or self.pos + n > len(self.data):
            raise FormatError(
                f"Truncated {self.container}: need {n} bytes at offset {self.pos}, "
                f"envelope is {len(self.data)} bytes"
            )

    def u8(self) -> int:
        self._need(1)
        b = self.data[self.pos]
        self.pos += 1
        return b

    def peek(self) -> int:
        self._need(1)
        return self.data[self.pos]

    def take(self, n: int) -> bytes:
        self._need(n)
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def skip(self, n: int):
        self._need(n)
        self.pos += n

    def unpack(self, fmt: str):
        size = struct.calcsize(fmt)
        self._need(size)
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values[0] if len(values) == 1 else values

    def int_le(self, width: int, signed: bool = True) -> int:
        return int.from_bytes(self.take(width), "little", signed=signed)

    def fail(self, message: str) -> FormatError:
        return FormatError(f"Invalid {self.container} at offset {self.pos}: {message}")
