from typing import BinaryIO

from rdbproto.config.params import BUFFER_SIZE
from rdbproto.types.common import TruncatedInputError


class ByteCursor:
    """
    Buffered pull reader over a binary source.

    The source only needs a `read(n)` method. Data is pulled in chunks of
    `buffer_size` bytes; running out of data while a read still needs bytes
    is a truncated snapshot, never a clean end.
    """

    def __init__(self, source: BinaryIO, buffer_size: int = BUFFER_SIZE):
        self._source = source
        self._buffer_size = buffer_size
        self._buf = b""
        self._pos = 0
        self._consumed = 0
        self._closed = False

    @property
    def bytes_read(self) -> int:
        """Number of bytes handed out to callers so far."""
        return self._consumed

    @property
    def closed(self) -> bool:
        return self._closed

    def _fill(self, needed: int):
        chunk = self._source.read(self._buffer_size)
        if not chunk:
            raise TruncatedInputError(
                f"Snapshot ended after {self._consumed} bytes, {needed} more expected"
            )
        self._buf = bytes(chunk)
        self._pos = 0

    def read_byte(self) -> int:
        if self._pos >= len(self._buf):
            self._fill(1)
        b = self._buf[self._pos]
        self._pos += 1
        self._consumed += 1
        return b

    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"Cannot read a negative number of bytes ({n})")
        avail = len(self._buf) - self._pos
        if avail >= n:
            out = self._buf[self._pos:self._pos + n]
            self._pos += n
            self._consumed += n
            return out

        parts = []
        rem = n
        while rem > 0:
            avail = len(self._buf) - self._pos
            if avail == 0:
                self._fill(rem)
                continue
            take = min(avail, rem)
            parts.append(self._buf[self._pos:self._pos + take])
            self._pos += take
            self._consumed += take
            rem -= take
        return b"".join(parts)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._buf = b""
        self._pos = 0
        self._source.close()
