# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides decode metrics for rdbstream.
"""

from .metrics import (
    metrics_registry,
    update_container_metrics,
    update_entry_metrics,
    update_header_metrics,
)

__all__ = [
    'metrics_registry',
    'update_entry_metrics',
    'update_container_metrics',
    'update_header_metrics',
]
