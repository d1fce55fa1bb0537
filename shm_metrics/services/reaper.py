"""Reaper - garbage collection of stale metric records.

A record is evicted once its age exceeds twice its TTL. Eviction is
race-safe against writers without taking locks:

1. Stat the record through an open handle and read its ttl.
2. Rename it to TEMP_NAME, refusing to replace an existing TEMP_NAME
   (this also serializes concurrent sweeps).
3. If TEMP_NAME is still the inode stat'ed in step 1, with the same mtime
   and size, delete it.
4. Otherwise a writer replaced or rewrote the file in between: rename it back, again
   without replacing, since a newer write may already own the name. If that
   fails the moved copy is dropped and the sweep reports an error.

A metric rewritten during the window may briefly appear absent.
"""

import threading
from dataclasses import asdict, dataclass

from shm_metrics.core.errors import MetricIOError, PartialFailure, ShmMetricsError
from shm_metrics.core.logging_config import get_logger
from shm_metrics.protocol.naming import TEMP_NAME, is_metric_filename
from shm_metrics.protocol.record import PAYLOAD_START, TTL_LEN, decode_ttl

from .backend import FileStat, IStorageBackend
from .store import record_age, scan_directory

logger = get_logger(__name__)


@dataclass
class SweepResult:
    """Counters of one sweep."""
    examined: int = 0
    evicted: int = 0
    restored: int = 0
    errors: int = 0


class Reaper:
    """One-shot sweeps over a backend. Holds no state between runs."""

    def __init__(self, backend: IStorageBackend):
        self.backend = backend

    def run_sweep(self) -> SweepResult:
        """Examine every metric record once and evict the stale ones.

        Raises:
            MetricIOError: The directory could not be scanned
            PartialFailure: The sweep completed but some records failed;
                            ``details`` holds the SweepResult counters
        """
        result = SweepResult()

        for name in scan_directory(self.backend):
            if not is_metric_filename(name):
                continue
            result.examined += 1
            try:
                self._examine(name, result)
            except (OSError, ShmMetricsError) as e:
                result.errors += 1
                logger.warning(f"Sweep failed on {name}: {e}")

        if result.evicted or result.restored:
            logger.info(
                f"Sweep done: {result.evicted} evicted, {result.restored} restored, "
                f"{result.examined} examined"
            )
        if result.errors:
            raise PartialFailure(f"Sweep finished with {result.errors} error(s)", **asdict(result))
        return result

    def _examine(self, name: str, result: SweepResult) -> None:
        try:
            data, before = self.backend.read_record(name, TTL_LEN + 1)
        except FileNotFoundError:
            logger.debug(f"{name} vanished before it could be examined")
            return

        if before.size < PAYLOAD_START:
            logger.debug(f"Leaving truncated record {name} ({before.size} bytes)")
            return
        if len(data) != TTL_LEN + 1:
            raise MetricIOError(f"Short read on {name}: {len(data)} of {TTL_LEN + 1} bytes")

        ttl = decode_ttl(data)
        if not ttl:
            return

        age = record_age(self.backend, before)
        if age // 2 <= ttl:
            return

        self._evict(name, before, result)

    def _evict(self, name: str, before: FileStat, result: SweepResult) -> None:
        try:
            self.backend.rename_noreplace(name, TEMP_NAME)
        except FileNotFoundError:
            logger.debug(f"{name} vanished before eviction")
            return

        moved = self.backend.stat(TEMP_NAME)
        if moved.unchanged_since(before):
            self.backend.unlink(TEMP_NAME)
            result.evicted += 1
            logger.debug(f"Evicted {name}")
            return

        # Lost the race against a writer: put its record back
        try:
            self.backend.rename_noreplace(TEMP_NAME, name)
        except OSError as e:
            try:
                self.backend.unlink(TEMP_NAME)
            except OSError as unlink_error:
                logger.error(f"Cannot remove {TEMP_NAME}: {unlink_error}")
            raise MetricIOError(f"Could not restore concurrently updated {name}: {e}") from e

        result.restored += 1
        logger.info(f"Restored {name}, it was rewritten during eviction")


def run_periodic_sweeps(
    reaper: Reaper,
    interval: float,
    stop_event: threading.Event,
    max_sweeps: int | None = None,
) -> int:
    """Run sweeps every ``interval`` seconds until ``stop_event`` is set.

    Sweep errors are logged and do not stop the loop.

    Returns:
        Number of sweeps performed
    """
    logger.info(f"Periodic sweeps started every {interval}s over {reaper.backend.root}")
    sweeps = 0

    while not stop_event.is_set():
        try:
            reaper.run_sweep()
        except ShmMetricsError as e:
            logger.error(f"Sweep error: {e}")
        sweeps += 1

        if max_sweeps is not None and sweeps >= max_sweeps:
            break
        # Wait for the interval or until stop event is set
        if stop_event.wait(timeout=interval):
            break

    logger.info(f"Periodic sweeps stopped after {sweeps} run(s)")
    return sweeps
