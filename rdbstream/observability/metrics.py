# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics

Decode progress counters for tools that stream large snapshots.

Metrics:
- Entries decoded, by entry type
- Key/value pairs decoded, by value type
- Bytes consumed from snapshot sources
- Packed containers realized, by format
- Format version of the last opened snapshot
"""

from prometheus_client import Counter, Gauge, CollectorRegistry

from rdbproto.types.common import EntryType

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# DECODE METRICS
# ═══════════════════════════════════════════════════════════════════

entries_total = Counter(
    'rdbstream_entries_total',
    'Total number of snapshot entries decoded',
    ['entry_type'],
    registry=metrics_registry
)

key_values_total = Counter(
    'rdbstream_key_values_total',
    'Total number of key/value pairs decoded',
    ['value_type'],
    registry=metrics_registry
)

bytes_read_total = Counter(
    'rdbstream_bytes_read_total',
    'Total number of snapshot bytes consumed',
    registry=metrics_registry
)

containers_realized_total = Counter(
    'rdbstream_containers_realized_total',
    'Total number of packed containers decoded on first access',
    ['format'],
    registry=metrics_registry
)

snapshot_version = Gauge(
    'rdbstream_snapshot_version',
    'Format version of the most recently opened snapshot',
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def update_entry_metrics(entry, bytes_delta: int):
    """
    Record one decoded entry.

    Args:
        entry: Entry returned by the parser
        bytes_delta: Bytes consumed since the previous entry
    """
    entries_total.labels(entry_type=entry.type.value).inc()
    if entry.type == EntryType.KEY_VALUE_PAIR:
        key_values_total.labels(value_type=entry.value_type.value).inc()
    if bytes_delta > 0:
        bytes_read_total.inc(bytes_delta)


def update_container_metrics(fmt: str):
    containers_realized_total.labels(format=fmt).inc()


def update_header_metrics(version: int):
    snapshot_version.set(version)
