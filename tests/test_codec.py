import io
import math

import pytest

from rdbproto.types.common import (
    CompressionError,
    FormatError,
    SizeLimitError,
    TruncatedInputError,
)
from rdbstream.codec.encoding import (
    NAN,
    NEGATIVE_INFINITY,
    POSITIVE_INFINITY,
    read_binary_double,
    read_double_string,
    read_length,
    read_string_encoded,
)
from rdbstream.codec.lzf import expand
from rdbstream.io.cursor import ByteCursor
from rdb_builder import enc_int8, enc_int16, enc_int32, enc_lzf, lzf_literals


def cursor(data, buffer_size=8192):
    return ByteCursor(io.BytesIO(data), buffer_size)


class CountingSource(io.BytesIO):
    def __init__(self, data):
        super().__init__(data)
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        super().close()


# --- Byte cursor ---

def test_cursor_reads_span_refills():
    c = cursor(bytes(range(20)), buffer_size=3)
    assert c.read_byte() == 0
    assert c.read_bytes(10) == bytes(range(1, 11))
    assert c.read_bytes(0) == b""
    assert c.read_bytes(9) == bytes(range(11, 20))
    assert c.bytes_read == 20


def test_cursor_truncation_is_an_error():
    c = cursor(b"\x01\x02\x03", buffer_size=2)
    assert c.read_bytes(2) == b"\x01\x02"
    with pytest.raises(TruncatedInputError):
        c.read_bytes(2)


def test_cursor_empty_source():
    with pytest.raises(TruncatedInputError):
        cursor(b"").read_byte()


def test_cursor_closes_source_once():
    source = CountingSource(b"abc")
    c = ByteCursor(source)
    c.close()
    c.close()
    assert c.closed
    assert source.close_calls == 1


# --- Lengths ---

@pytest.mark.parametrize("data, expected", [
    (b"\x00", 0),
    (b"\x3f", 63),
    (b"\x40\x00", 0),
    (b"\x7f\xff", 16383),
    (b"\x80\x00\x00\x00\x01", 1),
    (b"\x80\xff\xff\xff\xff", 2**32 - 1),
    (b"\x81\x00\x00\x00\x01\x00\x00\x00\x00", 2**32),
])
def test_read_length(data, expected):
    c = cursor(data)
    assert read_length(c) == expected
    assert c.bytes_read == len(data)


def test_read_length_rejects_special_encoding():
    with pytest.raises(FormatError):
        read_length(cursor(b"\xc0\x05"))


def test_read_length_rejects_unknown_wide_length():
    with pytest.raises(FormatError):
        read_length(cursor(b"\x82\x00\x00\x00\x00"))


# --- Strings ---

def test_read_raw_strings():
    assert read_string_encoded(cursor(b"\x03foo")) == b"foo"
    assert read_string_encoded(cursor(b"\x00")) == b""
    long_value = b"x" * 300
    assert read_string_encoded(cursor(b"\x41\x2c" + long_value)) == long_value


@pytest.mark.parametrize("data, expected", [
    (enc_int8(-5), b"-5"),
    (enc_int8(127), b"127"),
    (enc_int16(-1000), b"-1000"),
    (enc_int16(32767), b"32767"),
    (enc_int32(-2**31), b"-2147483648"),
    (enc_int32(123456789), b"123456789"),
])
def test_read_compact_integers(data, expected):
    assert read_string_encoded(cursor(data)) == expected


def test_read_lzf_string():
    text = b"The quick brown fox jumps over the lazy dog, twice over."
    data = enc_lzf(lzf_literals(text), len(text))
    assert read_string_encoded(cursor(data)) == text


def test_read_unknown_special_encoding():
    with pytest.raises(FormatError):
        read_string_encoded(cursor(b"\xc4"))


def test_read_string_size_limit():
    with pytest.raises(SizeLimitError):
        read_string_encoded(cursor(b"\x0a" + b"x" * 10), max_length=4)


def test_read_double_string_sentinels():
    assert read_double_string(cursor(b"\xff")) == NEGATIVE_INFINITY
    assert read_double_string(cursor(b"\xfe")) == POSITIVE_INFINITY
    assert read_double_string(cursor(b"\xfd")) == NAN
    assert read_double_string(cursor(b"\x041.25")) == b"1.25"
    assert float(POSITIVE_INFINITY) == math.inf
    assert float(NEGATIVE_INFINITY) == -math.inf
    assert math.isnan(float(NAN))


def test_read_binary_double():
    assert read_binary_double(cursor(b"\x00\x00\x00\x00\x00\x00\xf8\x3f")) == b"1.5"


# --- LZF ---

def test_expand_literals_only():
    data = bytes(range(256)) * 2
    assert expand(lzf_literals(data), len(data)) == data


def test_expand_overlapping_back_reference():
    # literal "a", then length 3 at distance 1
    assert expand(b"\x00a\x20\x00", 4) == b"aaaa"


def test_expand_extended_length():
    # literal "abc", then length 10 (7 + 1 + 2) at distance 3
    assert expand(b"\x02abc\xe0\x01\x02", 13) == b"abcabcabcabca"


def test_expand_empty():
    assert expand(b"", 0) == b""


@pytest.mark.parametrize("src, ulen", [
    (b"\x00a\x20\x05", 4),      # back-reference before output start
    (b"\x02abc", 2),            # literal overruns output
    (b"\x00a\x20\x00", 3),      # back-reference overruns output
    (b"\x00a", 3),              # input exhausted
    (b"\x05ab", 6),             # literal overruns input
])
def test_expand_rejects_corrupt_input(src, ulen):
    with pytest.raises(CompressionError):
        expand(src, ulen)


def test_compression_error_is_format_error():
    with pytest.raises(FormatError):
        expand(b"\x00a", 3)
