import pytest

from rdbstream import RdbParser
from rdbstream.observability import metrics_registry
from rdb_builder import RdbBuilder, lp_strings


def sample(name, labels=None):
    value = metrics_registry.get_sample_value(name, labels or {})
    return value or 0.0


@pytest.fixture
def snapshot():
    return (
        RdbBuilder(version=11)
        .aux(b"redis-ver", b"7.2.0")
        .select_db(0)
        .string(b"k", b"v")
        .envelope(20, b"s", lp_strings(b"a", b"b"))
        .eof()
        .build()
    )


def test_entry_and_byte_counters(snapshot):
    before_aux = sample("rdbstream_entries_total", {"entry_type": "aux"})
    before_kv = sample("rdbstream_entries_total", {"entry_type": "key_value_pair"})
    before_listpack = sample("rdbstream_key_values_total", {"value_type": "listpack"})
    before_bytes = sample("rdbstream_bytes_read_total")

    with RdbParser(snapshot) as parser:
        entries = list(parser)

    assert len(entries) == 5
    assert sample("rdbstream_entries_total", {"entry_type": "aux"}) - before_aux == 1
    assert sample("rdbstream_entries_total", {"entry_type": "key_value_pair"}) - before_kv == 2
    assert sample("rdbstream_key_values_total", {"value_type": "listpack"}) - before_listpack == 1
    assert sample("rdbstream_bytes_read_total") - before_bytes == len(snapshot)
    assert sample("rdbstream_snapshot_version") == 11


def test_containers_counted_on_realization(snapshot):
    before = sample("rdbstream_containers_realized_total", {"format": "listpack"})

    with RdbParser(snapshot) as parser:
        packed = list(parser)[3]
    assert sample("rdbstream_containers_realized_total", {"format": "listpack"}) == before

    assert packed.values == [b"a", b"b"]
    packed.values
    assert sample("rdbstream_containers_realized_total", {"format": "listpack"}) - before == 1
