"""
Unit tests for DirectoryIndex - asset and metric enumeration.
"""
import pytest

from shm_metrics.core.errors import MetricIOError
from shm_metrics.protocol.naming import TEMP_NAME
from shm_metrics.protocol.record import MetricRecord, encode_record
from shm_metrics.services import DirectoryIndex, FilesystemBackend, MetricStore


class TestListAssets:
    """Tests for list_assets"""

    def test_empty_store(self, shm):
        assert shm.list_assets() == []

    def test_distinct_assets(self, shm):
        shm.write("A", "m1", "1")
        shm.write("B", "m1", "2")
        shm.write("A", "m2", "3")
        shm.write("B", "m2", "4")

        assets = shm.list_assets()

        assert sorted(assets) == ["A", "B"]
        assert len(assets) == 2

    def test_directory_order(self, shm):
        """Test that results follow iteration order, not sorted order"""
        shm.write("zeta", "m", "1")
        shm.write("alpha", "m", "2")
        assert shm.list_assets() == ["zeta", "alpha"]

    def test_names_without_separator_skipped(self, shm, memory_backend):
        memory_backend.put_raw("garbage", b"")
        memory_backend.put_raw(TEMP_NAME, b"")
        shm.write("A", "m", "1")
        assert shm.list_assets() == ["A"]

    def test_includes_expired_records(self, shm, clock):
        """Test that enumeration is purely name based"""
        shm.write("A", "m", "1", ttl=1)
        clock.advance(100)
        assert shm.list_assets() == ["A"]

    def test_missing_directory(self, tmp_path):
        index = DirectoryIndex(MetricStore(FilesystemBackend(tmp_path / "gone")))
        with pytest.raises(MetricIOError):
            index.list_assets()


class TestListAssetMetrics:
    """Tests for list_asset_metrics"""

    def test_reads_all_metrics(self, shm):
        shm.write("test_asset_1", "test_metric_1", "This is\na metric", "unit2")
        shm.write("test_asset_1", "test_metric_2", "hello world", "unit1")
        shm.write("test_asset_2", "test_metric_1", "hello world", "unit1")

        metrics = shm.list_asset_metrics("test_asset_1")

        assert len(metrics) == 2
        assert metrics["test_metric_1"].value == "This is\na metric"
        assert metrics["test_metric_1"].unit == "unit2"
        assert metrics["test_metric_2"] == MetricRecord(ttl=0, unit="unit1", value="hello world")

    def test_unknown_asset_is_empty(self, shm):
        """Test that an asset without live metrics yields an empty dict"""
        shm.write("A", "m", "1")
        assert shm.list_asset_metrics("B") == {}

    def test_after_delete_asset(self, shm):
        shm.write("A", "m1", "1")
        shm.write("A", "m2", "2")
        shm.write("B", "m1", "3")

        shm.delete_asset("A")

        assert shm.list_asset_metrics("A") == {}
        assert list(shm.list_asset_metrics("B")) == ["m1"]
        assert shm.list_assets() == ["B"]

    def test_skips_unreadable_records(self, shm, memory_backend, clock):
        shm.write("A", "stale", "1", ttl=1)
        clock.advance(10)
        shm.write("A", "live", "2")
        memory_backend.put_raw("A:corrupt.metric", b"xx" + encode_record(0, "", "v")[2:])
        memory_backend.put_raw("A:short.metric", b"0000000000\n")
        memory_backend.put_raw("A:leftover.tmp", encode_record(0, "", "v"))

        assert list(shm.list_asset_metrics("A")) == ["live"]

    def test_fresh_result_each_call(self, shm):
        shm.write("A", "m", "1")
        first = shm.list_asset_metrics("A")
        shm.delete_asset("A")
        second = shm.list_asset_metrics("A")

        assert first is not second
        assert "m" in first
        assert second == {}

    def test_missing_directory(self, tmp_path):
        index = DirectoryIndex(MetricStore(FilesystemBackend(tmp_path / "gone")))
        with pytest.raises(MetricIOError):
            index.list_asset_metrics("A")

    def test_on_real_directory(self, fs_shm):
        fs_shm.write("A", "m1", "1", "W")
        fs_shm.write("A", "m2", "2", "W")
        fs_shm.write("B", "m1", "3", "W")

        assert sorted(fs_shm.list_assets()) == ["A", "B"]
        assert sorted(fs_shm.list_asset_metrics("A")) == ["m1", "m2"]


class TestSnapshot:
    """Tests for snapshot"""

    def test_snapshot(self, shm, clock):
        shm.write("A", "m1", "1", "W", 60)
        shm.write("A", "m2", "2")
        shm.write("B", "m1", "3", "%")

        snapshot = shm.snapshot()

        assert snapshot.timestamp == clock.now
        assert snapshot.root == "memory://"
        assert snapshot.total_metrics == 3
        assert [a.asset for a in snapshot.assets] == ["A", "B"]
        assert snapshot.assets[0].metrics["m1"].unit == "W"
        assert snapshot.assets[0].metrics["m1"].ttl == 60
        assert snapshot.assets[1].metrics["m1"].value == "3"

    def test_snapshot_serializes(self, shm):
        shm.write("A", "m", "1")
        payload = shm.snapshot().model_dump()
        assert payload["assets"][0]["metrics"]["m"]["value"] == "1"
