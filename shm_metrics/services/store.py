"""MetricStore - write, read and delete metric records.

Writes are lock-free: each one replaces the whole fixed-size record with a
single positional write, so a concurrent reader sees either the old or the
new record. Reads are strictly side-effect free; stale or corrupt records
are left for the reaper.
"""

from shm_metrics.core.errors import Expired, MetricIOError, NotFound, PartialFailure
from shm_metrics.core.logging_config import get_logger
from shm_metrics.protocol.naming import encode_filename, split_asset
from shm_metrics.protocol.record import RECORD_SIZE, MetricRecord, decode_record, decode_ttl, encode_record

from .backend import FileStat, IStorageBackend

logger = get_logger(__name__)


def scan_directory(backend: IStorageBackend) -> list[str]:
    """List the backend's entries, turning OS failures into MetricIOError."""
    try:
        return backend.list_names()
    except OSError as e:
        raise MetricIOError(f"Cannot scan {backend.root}: {e}") from e


def record_age(backend: IStorageBackend, stat: FileStat) -> int:
    """Whole seconds elapsed since the record was last written."""
    return int(backend.now()) - int(stat.mtime)


class MetricStore:
    """Per-key operations over one storage backend."""

    def __init__(self, backend: IStorageBackend):
        self.backend = backend

    def write(self, asset: str, metric: str, value: str | int | float, unit: str = "", ttl: int = 0) -> None:
        """Create or overwrite the record for (asset, metric).

        Args:
            asset: Owning asset name (no '/' or ':')
            metric: Metric name (no '/' or ':')
            value: Metric value; numbers are stored as their str() form
            unit: Unit label, at most 10 bytes
            ttl: Seconds after which the value is stale, 0 for never

        Raises:
            InvalidName, NameTooLong, ValueTooLong, UnitTooLong, InvalidValue,
            InvalidTTL: Validation failed, nothing was written
            MetricIOError: The write itself failed
        """
        if not isinstance(value, str):
            value = str(value)

        name = encode_filename(asset, metric)
        data = encode_record(ttl, unit, value)

        try:
            self.backend.write_record(name, data)
        except OSError as e:
            raise MetricIOError(f"Cannot write {name}: {e}") from e

        logger.debug(f"Wrote {name} (ttl={ttl})")

    def read(self, asset: str, metric: str) -> str:
        """Return the current value of (asset, metric)."""
        return self._read(encode_filename(asset, metric), need_unit=False).value

    def read_with_unit(self, asset: str, metric: str) -> tuple[str, str]:
        """Return the current (value, unit) of (asset, metric)."""
        record = self._read(encode_filename(asset, metric), need_unit=True)
        return record.value, record.unit

    def read_record(self, asset: str, metric: str) -> MetricRecord:
        """Return the full decoded record, including its ttl."""
        return self._read(encode_filename(asset, metric), need_unit=True)

    def read_name(self, name: str, need_unit: bool = True) -> MetricRecord:
        """Read a record by its directory entry name (used by enumeration)."""
        return self._read(name, need_unit)

    def _read(self, name: str, need_unit: bool) -> MetricRecord:
        try:
            data, stat = self.backend.read_record(name, RECORD_SIZE)
        except FileNotFoundError as e:
            raise NotFound(f"No such metric: {name}") from e
        except OSError as e:
            raise MetricIOError(f"Cannot read {name}: {e}") from e

        if len(data) != RECORD_SIZE:
            raise MetricIOError(f"Short read on {name}: {len(data)} of {RECORD_SIZE} bytes")

        ttl = decode_ttl(data)
        if ttl:
            age = record_age(self.backend, stat)
            if age > ttl:
                raise Expired(f"{name} expired {age - ttl}s ago (ttl={ttl}s)")

        return decode_record(data, need_unit)

    def delete_asset(self, asset: str) -> int:
        """Delete every record filed under ``asset``.

        The whole directory is always swept; individual unlink failures are
        logged and counted.

        Returns:
            Number of records deleted

        Raises:
            MetricIOError: The directory could not be scanned
            PartialFailure: At least one record could not be deleted
        """
        deleted = 0
        failed = 0

        for name in scan_directory(self.backend):
            if split_asset(name) != asset:
                continue
            try:
                self.backend.unlink(name)
                deleted += 1
            except FileNotFoundError:
                # Removed concurrently (reaper or another delete); the goal is met
                logger.debug(f"{name} vanished before it could be deleted")
            except OSError as e:
                failed += 1
                logger.warning(f"Failed to delete {name}: {e}")

        logger.info(f"Deleted {deleted} metric(s) of asset {asset!r}")
        if failed:
            raise PartialFailure(
                f"Failed to delete {failed} metric(s) of asset {asset!r}",
                deleted=deleted,
                failed=failed,
            )
        return deleted
