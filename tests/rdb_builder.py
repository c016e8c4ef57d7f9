"""
Helpers that assemble snapshot bytes for tests.
"""

import struct


# --- Length and string encodings ---

def enc_length(n):
    if n < 0x40:
        return bytes([n])
    if n < 0x4000:
        return bytes([0x40 | (n >> 8), n & 0xFF])
    if n <= 0xFFFFFFFF:
        return b"\x80" + struct.pack(">I", n)
    return b"\x81" + struct.pack(">Q", n)


def enc_string(s):
    return enc_length(len(s)) + s


def enc_int8(v):
    return b"\xc0" + struct.pack("<b", v)


def enc_int16(v):
    return b"\xc1" + struct.pack("<h", v)


def enc_int32(v):
    return b"\xc2" + struct.pack("<i", v)


def lzf_literals(data):
    """Compress `data` using literal runs only."""
    out = b""
    for i in range(0, len(data), 32):
        chunk = data[i:i + 32]
        out += bytes([len(chunk) - 1]) + chunk
    return out


def enc_lzf(compressed, ulen):
    return b"\xc3" + enc_length(len(compressed)) + enc_length(ulen) + compressed


# --- Ziplist ---

def _zl_str_header(n):
    if n <= 0x3F:
        return bytes([n])
    if n <= 0x3FFF:
        return bytes([0x40 | (n >> 8), n & 0xFF])
    return b"\x80" + struct.pack(">I", n)


def _zl_payload(kind, value):
    if kind == "str":
        return _zl_str_header(len(value)) + value
    if kind == "imm":
        return bytes([0xF1 + value])
    if kind == "int8":
        return b"\xfe" + struct.pack("<b", value)
    if kind == "int16":
        return b"\xc0" + struct.pack("<h", value)
    if kind == "int24":
        return b"\xf0" + (value & 0xFFFFFF).to_bytes(3, "little")
    if kind == "int32":
        return b"\xd0" + struct.pack("<i", value)
    if kind == "int64":
        return b"\xe0" + struct.pack("<q", value)
    raise ValueError(kind)


def ziplist(elements, count=None):
    """Build a ziplist from (kind, value) pairs."""
    body = b""
    prev_len = 0
    last_offset = 10
    for kind, value in elements:
        if prev_len < 254:
            prevlen = bytes([prev_len])
        else:
            prevlen = b"\xfe" + struct.pack("<I", prev_len)
        entry = prevlen + _zl_payload(kind, value)
        last_offset = 10 + len(body)
        body += entry
        prev_len = len(entry)
    if count is None:
        count = len(elements)
    total = 10 + len(body) + 1
    return struct.pack("<IIH", total, last_offset, count) + body + b"\xff"


# --- Listpack ---

def lp_backlen(length):
    if length <= 127:
        return bytes([length])
    if length < 16383:
        return bytes([length >> 7, (length & 127) | 128])
    if length < 2097151:
        return bytes([length >> 14, ((length >> 7) & 127) | 128, (length & 127) | 128])
    if length < 268435455:
        return bytes([length >> 21, ((length >> 14) & 127) | 128,
                      ((length >> 7) & 127) | 128, (length & 127) | 128])
    return bytes([length >> 28, ((length >> 21) & 127) | 128, ((length >> 14) & 127) | 128,
                  ((length >> 7) & 127) | 128, (length & 127) | 128])


def _lp_payload(kind, value):
    if kind == "str":
        n = len(value)
        if n < 64:
            return bytes([0x80 | n]) + value
        if n < 4096:
            return bytes([0xE0 | (n >> 8), n & 0xFF]) + value
        return b"\xf0" + struct.pack("<I", n) + value
    if kind == "uint7":
        return bytes([value])
    if kind == "int13":
        raw = value & 0x1FFF
        return bytes([0xC0 | (raw >> 8), raw & 0xFF])
    if kind == "int16":
        return b"\xf1" + struct.pack("<h", value)
    if kind == "int24":
        return b"\xf2" + (value & 0xFFFFFF).to_bytes(3, "little")
    if kind == "int32":
        return b"\xf3" + struct.pack("<i", value)
    if kind == "int64":
        return b"\xf4" + struct.pack("<q", value)
    raise ValueError(kind)


def listpack(elements, count=None, end=b"\xff"):
    """Build a listpack from (kind, value) pairs."""
    body = b""
    for kind, value in elements:
        payload = _lp_payload(kind, value)
        body += payload + lp_backlen(len(payload))
    if count is None:
        count = len(elements)
    total = 6 + len(body) + len(end)
    return struct.pack("<IH", total, count) + body + end


def lp_strings(*values):
    return listpack([("str", v) for v in values])


# --- Intset and zipmap ---

def intset(width, values):
    fmt = {2: "<h", 4: "<i", 8: "<q"}.get(width, "<q")
    body = b"".join(struct.pack(fmt, v) for v in values)
    return struct.pack("<II", width, len(values)) + body


def _zm_length(n):
    if n < 253:
        return bytes([n])
    return b"\xfd" + struct.pack(">I", n)


def zipmap(pairs, free=0, zmlen=None):
    if zmlen is None:
        zmlen = min(len(pairs), 254)
    out = bytes([zmlen])
    for key, value in pairs:
        out += _zm_length(len(key)) + key
        out += _zm_length(len(value)) + bytes([free]) + value + b"\x00" * free
    return out + b"\xff"


# --- Whole snapshots ---

class RdbBuilder:
    def __init__(self, version=9):
        self.version = version
        self.parts = [b"REDIS", b"%04d" % version]

    def raw(self, data):
        self.parts.append(data)
        return self

    def aux(self, key, value):
        return self.raw(b"\xfa" + enc_string(key) + enc_string(value))

    def select_db(self, db):
        return self.raw(b"\xfe" + enc_length(db))

    def resize_db(self, db_size, expire_size):
        return self.raw(b"\xfb" + enc_length(db_size) + enc_length(expire_size))

    def expire_seconds(self, ts):
        return self.raw(b"\xfd" + struct.pack("<I", ts))

    def expire_millis(self, ts):
        return self.raw(b"\xfc" + struct.pack("<Q", ts))

    def freq(self, value):
        return self.raw(b"\xf9" + bytes([value]))

    def idle(self, seconds):
        return self.raw(b"\xf8" + enc_length(seconds))

    def typed(self, type_code, key, payload):
        return self.raw(bytes([type_code]) + enc_string(key) + payload)

    def string(self, key, value):
        return self.typed(0, key, enc_string(value))

    def list(self, key, items):
        return self.typed(1, key, enc_length(len(items)) + b"".join(enc_string(i) for i in items))

    def set(self, key, items):
        return self.typed(2, key, enc_length(len(items)) + b"".join(enc_string(i) for i in items))

    def zset(self, key, pairs):
        """Text scores; a score of None writes the +inf sentinel."""
        body = enc_length(len(pairs))
        for member, score in pairs:
            body += enc_string(member)
            body += b"\xfe" if score is None else bytes([len(score)]) + score
        return self.typed(3, key, body)

    def zset2(self, key, pairs):
        body = enc_length(len(pairs))
        for member, score in pairs:
            body += enc_string(member) + struct.pack("<d", score)
        return self.typed(5, key, body)

    def hash(self, key, pairs):
        body = enc_length(len(pairs))
        for field, value in pairs:
            body += enc_string(field) + enc_string(value)
        return self.typed(4, key, body)

    def envelope(self, type_code, key, blob):
        return self.typed(type_code, key, enc_string(blob))

    def quicklist(self, key, ziplists):
        body = enc_length(len(ziplists)) + b"".join(enc_string(z) for z in ziplists)
        return self.typed(14, key, body)

    def quicklist2(self, key, nodes):
        body = enc_length(len(nodes))
        for container, blob in nodes:
            body += enc_length(container) + enc_string(blob)
        return self.typed(18, key, body)

    def eof(self, checksum=None):
        if self.version >= 5:
            self.raw(b"\xff" + (checksum if checksum is not None else bytes(8)))
        else:
            self.raw(b"\xff")
        return self

    def build(self):
        return b"".join(self.parts)
