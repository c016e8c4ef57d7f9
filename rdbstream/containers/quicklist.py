"""
Quicklist decoding: a list stored as a sequence of independently packed
nodes, flattened in node order.
"""

from typing import List, Sequence, Tuple

from rdbproto.config.params import ZIPLIST_PREVLEN_CUTOFF
from rdbproto.types.common import FormatError
from .listpack import decode_listpack
from .ziplist import decode_ziplist

NODE_PLAIN = 1
NODE_PACKED = 2


def decode_quicklist(ziplists: Sequence[bytes],
                     prevlen_cutoff: int = ZIPLIST_PREVLEN_CUTOFF) -> List[bytes]:
    values = []
    for envelope in ziplists:
        values.extend(decode_ziplist(envelope, prevlen_cutoff))
    return values


def decode_quicklist2(nodes: Sequence[Tuple[int, bytes]]) -> List[bytes]:
    """
    Decode quicklist v2 nodes. Packed nodes are listpacks; plain nodes hold a
    single large element stored as-is.
    """
    values = []
    for container, envelope in nodes:
        if container == NODE_PACKED:
            values.extend(decode_listpack(envelope))
        elif container == NODE_PLAIN:
            values.append(envelope)
        else:
            raise FormatError(f"Unknown quicklist node container {container}")
    return values
