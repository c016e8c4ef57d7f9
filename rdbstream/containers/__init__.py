"""
Packed container decoders. Each takes an owned envelope (or a list of them)
and returns the container's elements as a list of byte strings.
"""

from .intset import decode_intset
from .listpack import decode_listpack
from .quicklist import decode_quicklist, decode_quicklist2
from .sorted_set import normalize_scores
from .ziplist import decode_ziplist
from .zipmap import decode_zipmap

__all__ = [
    "decode_intset",
    "decode_listpack",
    "decode_quicklist",
    "decode_quicklist2",
    "decode_ziplist",
    "decode_zipmap",
    "normalize_scores",
]
