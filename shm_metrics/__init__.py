"""Serverless metric sharing between processes through a shared directory."""

from .core.errors import (
    ShmMetricsError,
    InvalidName,
    NameTooLong,
    ValueTooLong,
    UnitTooLong,
    InvalidValue,
    InvalidTTL,
    NotFound,
    Expired,
    Malformed,
    MetricIOError,
    PartialFailure,
)
from .protocol import MetricRecord
from .services import SharedMetrics, MemoryBackend, FilesystemBackend, get_shared_metrics

__all__ = [
    "ShmMetricsError",
    "InvalidName",
    "NameTooLong",
    "ValueTooLong",
    "UnitTooLong",
    "InvalidValue",
    "InvalidTTL",
    "NotFound",
    "Expired",
    "Malformed",
    "MetricIOError",
    "PartialFailure",
    "MetricRecord",
    "SharedMetrics",
    "MemoryBackend",
    "FilesystemBackend",
    "get_shared_metrics",
]
