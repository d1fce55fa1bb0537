"""Error taxonomy for the shared metric store.

Every failure surfaced by the store derives from ShmMetricsError. Each class
also inherits the closest builtin so callers can catch ValueError / KeyError /
OSError where that reads more naturally.
"""

from __future__ import annotations

from typing import Any


class ShmMetricsError(Exception):
    """Base class for all metric store errors."""


class InvalidName(ShmMetricsError, ValueError):
    """Asset or metric name contains a forbidden character."""


class NameTooLong(ShmMetricsError, ValueError):
    """Encoded filename (or configured root path) exceeds the platform limit."""


class NotAMetricFile(ShmMetricsError, ValueError):
    """A directory entry does not follow the <asset>:<metric>.metric scheme."""


class ValueTooLong(ShmMetricsError, ValueError):
    """Value does not fit the record payload capacity."""


class UnitTooLong(ShmMetricsError, ValueError):
    """Unit does not fit the fixed-width unit field."""


class InvalidValue(ShmMetricsError, ValueError):
    """Value or unit contains a byte the record format cannot carry."""


class InvalidTTL(ShmMetricsError, ValueError):
    """TTL does not fit the 10-digit ttl field."""


class NotFound(ShmMetricsError, KeyError):
    """No record exists for the requested key."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return Exception.__str__(self)


class Expired(ShmMetricsError):
    """The record exists but is older than its TTL."""


class Malformed(ShmMetricsError):
    """The record exists but its content cannot be parsed."""


class MetricIOError(ShmMetricsError, OSError):
    """Underlying filesystem failure, including short reads."""


class PartialFailure(ShmMetricsError):
    """An aggregate operation finished but at least one item failed.

    Individual failures are logged, not collected; ``details`` carries the
    operation's counters.
    """

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details = details
