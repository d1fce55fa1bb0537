"""Module-level accessor for the process's default SharedMetrics handle.

The default handle is created lazily from settings.SHM_DIR. Code that needs
another directory should build its own SharedMetrics rather than mutate this.
"""

from shm_metrics.core.config import settings

from .shared_metrics import SharedMetrics

_shared_metrics: SharedMetrics | None = None


def get_shared_metrics() -> SharedMetrics:
    """Get the default handle, creating it on first use.

    Returns:
        SharedMetrics bound to the configured shared directory
    """
    global _shared_metrics
    if _shared_metrics is None:
        _shared_metrics = SharedMetrics.from_directory(settings.SHM_DIR)
    return _shared_metrics


def set_shared_metrics(handle: SharedMetrics | None) -> None:
    """Replace the default handle; None resets it to the configured directory.

    Args:
        handle: The handle to use, typically set once at startup
    """
    global _shared_metrics
    _shared_metrics = handle
