from enum import Enum, IntEnum
from typing import Optional


class Opcode(IntEnum):
    FUNCTION2 = 0xF5
    FUNCTION_PRE_GA = 0xF6
    MODULE_AUX = 0xF7
    IDLE = 0xF8            # LRU idle time of the next key
    FREQ = 0xF9            # LFU frequency of the next key
    AUX = 0xFA
    RESIZEDB = 0xFB
    EXPIRETIME_MS = 0xFC
    EXPIRETIME = 0xFD
    SELECTDB = 0xFE
    EOF = 0xFF


class RdbType(IntEnum):
    STRING = 0
    LIST = 1
    SET = 2
    ZSET = 3
    HASH = 4
    ZSET_2 = 5             # binary double scores
    MODULE_PRE_GA = 6
    MODULE_2 = 7
    HASH_ZIPMAP = 9
    LIST_ZIPLIST = 10
    SET_INTSET = 11
    ZSET_ZIPLIST = 12
    HASH_ZIPLIST = 13
    LIST_QUICKLIST = 14
    STREAM_LISTPACKS = 15
    HASH_LISTPACK = 16
    ZSET_LISTPACK = 17
    LIST_QUICKLIST_2 = 18
    STREAM_LISTPACKS_2 = 19
    SET_LISTPACK = 20
    STREAM_LISTPACKS_3 = 21

    # Hash field expiration
    HASH_METADATA_PRE_GA = 22
    HASH_LISTPACK_EX_PRE_GA = 23
    HASH_METADATA = 24
    HASH_LISTPACK_EX = 25


class EntryType(str, Enum):
    EOF = "eof"
    SELECT_DB = "select_db"
    RESIZE_DB = "resize_db"
    AUX = "aux"
    KEY_VALUE_PAIR = "key_value_pair"


class ValueType(str, Enum):
    VALUE = "value"
    LIST = "list"
    SET = "set"
    SORTED_SET = "sorted_set"
    SORTED_SET2 = "sorted_set2"
    HASH = "hash"

    # Packed encodings
    ZIPMAP = "zipmap"
    ZIPLIST = "ziplist"
    INTSET = "intset"
    SORTED_SET_AS_ZIPLIST = "sorted_set_as_ziplist"
    HASHMAP_AS_ZIPLIST = "hashmap_as_ziplist"
    QUICKLIST = "quicklist"
    QUICKLIST2 = "quicklist2"
    LISTPACK = "listpack"
    HASHMAP_AS_LISTPACK = "hashmap_as_listpack"
    SORTED_SET_AS_LISTPACK = "sorted_set_as_listpack"


# Value types whose values are flattened key/value or member/score pairs.
PAIRED_VALUE_TYPES = frozenset({
    ValueType.SORTED_SET,
    ValueType.SORTED_SET2,
    ValueType.HASH,
    ValueType.ZIPMAP,
    ValueType.SORTED_SET_AS_ZIPLIST,
    ValueType.HASHMAP_AS_ZIPLIST,
    ValueType.HASHMAP_AS_LISTPACK,
    ValueType.SORTED_SET_AS_LISTPACK,
})


class RdbError(Exception):
    pass


class FormatError(RdbError):
    pass


class CompressionError(FormatError):
    pass


class TruncatedInputError(RdbError):
    pass


class UnsupportedFeatureError(RdbError):
    def __init__(self, feature: str, detail: Optional[str] = None):
        self.feature = feature
        message = f"Parsing {feature} is not supported"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SizeLimitError(RdbError):
    pass


class StreamClosedError(RdbError):
    pass
