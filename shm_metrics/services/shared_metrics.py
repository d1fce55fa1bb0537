"""SharedMetrics - the store handle callers work with.

Bundles MetricStore, DirectoryIndex and Reaper over a single backend. The
root directory is fixed per handle; set_root_directory() exists for tests and
setup code and must not be called while other operations are in flight.
"""

import os

from shm_metrics.core.errors import NameTooLong
from shm_metrics.core.logging_config import get_logger
from shm_metrics.models import StoreSnapshotModel
from shm_metrics.protocol.naming import NAME_MAX, PATH_MAX
from shm_metrics.protocol.record import MetricRecord

from .backend import FilesystemBackend, IStorageBackend
from .index import DirectoryIndex
from .reaper import Reaper, SweepResult
from .store import MetricStore

logger = get_logger(__name__)


def _validate_root(root: str | os.PathLike) -> str:
    """Raise NameTooLong if a maximal filename would not fit under PATH_MAX"""
    root = os.fspath(root)
    if len(os.fsencode(root)) > PATH_MAX - len("/") - NAME_MAX:
        raise NameTooLong(f"Root directory path too long: {root[:64]}...")
    return root


class SharedMetrics:
    def __init__(self, backend: IStorageBackend):
        self._bind(backend)

    @classmethod
    def from_directory(cls, root: str | os.PathLike) -> "SharedMetrics":
        """Handle over a real directory, validated like set_root_directory()."""
        return cls(FilesystemBackend(_validate_root(root)))

    def _bind(self, backend: IStorageBackend) -> None:
        self.backend = backend
        self.store = MetricStore(backend)
        self.index = DirectoryIndex(self.store)
        self.reaper = Reaper(backend)

    @property
    def root(self) -> str:
        return self.backend.root

    def set_root_directory(self, root: str | os.PathLike) -> None:
        """Point the handle at another directory.

        Raises:
            NameTooLong: If a maximal filename would not fit under PATH_MAX
        """
        root = _validate_root(root)
        self._bind(FilesystemBackend(root))
        logger.debug(f"Using shared metrics directory {root}")

    def write(self, asset: str, metric: str, value: str | int | float, unit: str = "", ttl: int = 0) -> None:
        self.store.write(asset, metric, value, unit, ttl)

    def read(self, asset: str, metric: str) -> str:
        return self.store.read(asset, metric)

    def read_with_unit(self, asset: str, metric: str) -> tuple[str, str]:
        return self.store.read_with_unit(asset, metric)

    def read_record(self, asset: str, metric: str) -> MetricRecord:
        return self.store.read_record(asset, metric)

    def delete_asset(self, asset: str) -> int:
        return self.store.delete_asset(asset)

    def list_assets(self) -> list[str]:
        return self.index.list_assets()

    def list_asset_metrics(self, asset: str) -> dict[str, MetricRecord]:
        return self.index.list_asset_metrics(asset)

    def snapshot(self) -> StoreSnapshotModel:
        return self.index.snapshot()

    def run_gc_sweep(self) -> SweepResult:
        return self.reaper.run_sweep()
