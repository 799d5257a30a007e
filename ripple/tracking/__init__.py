"""
Ripple Tracking - Dependency Discovery
======================================

Building blocks for the memoization layer: the per-thread dependency
collector that buses report to, and the debouncer that coalesces bursts of
invalidations. ``ripple.tracking.memo`` builds on both and is imported
directly, since it depends on the bus module which in turn depends on the
collector.
"""

from .collector import ANY_FIELD, Dependencies, DependencyCollector
from .debounce import Debouncer

__all__ = [
    "ANY_FIELD",
    "Dependencies",
    "DependencyCollector",
    "Debouncer",
]
