"""Metric store services.

MetricStore, DirectoryIndex and Reaper operate over a pluggable storage
backend; SharedMetrics bundles them into the handle most callers use.
"""

from .backend import FilesystemBackend, MemoryBackend
from .store import MetricStore
from .index import DirectoryIndex
from .reaper import Reaper, SweepResult, run_periodic_sweeps
from .shared_metrics import SharedMetrics
from .instance import get_shared_metrics, set_shared_metrics

__all__ = [
    "FilesystemBackend",
    "MemoryBackend",
    "MetricStore",
    "DirectoryIndex",
    "Reaper",
    "SweepResult",
    "run_periodic_sweeps",
    "SharedMetrics",
    "get_shared_metrics",
    "set_shared_metrics",
]
