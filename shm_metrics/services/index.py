"""DirectoryIndex - enumerate assets and metrics by scanning filenames.

There is no index file: the directory listing is the index. Results are a
best-effort snapshot, since entries may appear or vanish during the scan.
"""

from shm_metrics.core.errors import NotAMetricFile, ShmMetricsError
from shm_metrics.core.logging_config import get_logger
from shm_metrics.models import AssetMetricsModel, MetricModel, StoreSnapshotModel
from shm_metrics.protocol.naming import decode_filename, split_asset
from shm_metrics.protocol.record import MetricRecord

from .store import MetricStore, scan_directory

logger = get_logger(__name__)


class DirectoryIndex:
    def __init__(self, store: MetricStore):
        self.store = store

    @property
    def backend(self):
        return self.store.backend

    def list_assets(self) -> list[str]:
        """Distinct assets, in directory iteration order.

        Raises:
            MetricIOError: The directory could not be scanned
        """
        seen: set[str] = set()
        assets: list[str] = []
        for name in scan_directory(self.backend):
            asset = split_asset(name)
            if asset is None or asset in seen:
                continue
            seen.add(asset)
            assets.append(asset)
        return assets

    def list_asset_metrics(self, asset: str) -> dict[str, MetricRecord]:
        """Live metrics of ``asset`` keyed by metric name.

        Records that are expired, malformed or vanish mid-scan are left out.
        An asset without live metrics yields an empty dict.

        Raises:
            MetricIOError: The directory could not be scanned
        """
        metrics: dict[str, MetricRecord] = {}
        for name in scan_directory(self.backend):
            try:
                key = decode_filename(name)
            except NotAMetricFile:
                continue
            if key.asset != asset:
                continue
            try:
                metrics[key.metric] = self.store.read_name(name)
            except ShmMetricsError as e:
                logger.debug(f"Skipping {name}: {e}")
        return metrics

    def snapshot(self) -> StoreSnapshotModel:
        """Every asset with its live metrics."""
        assets = []
        total = 0
        for asset in self.list_assets():
            records = self.list_asset_metrics(asset)
            total += len(records)
            assets.append(AssetMetricsModel(
                asset=asset,
                metrics={
                    metric: MetricModel.model_validate(record)
                    for metric, record in records.items()
                },
            ))

        return StoreSnapshotModel(
            timestamp=self.backend.now(),
            root=self.backend.root,
            assets=assets,
            total_metrics=total,
        )
