"""
Unit tests for MetricStore - write, read and delete_asset.

Most tests run against MemoryBackend with a fake clock so TTL checks are
deterministic; a few repeat the key paths on a real directory.
"""
import os
import time

import pytest

from shm_metrics.core.errors import (
    Expired,
    InvalidName,
    Malformed,
    MetricIOError,
    NameTooLong,
    NotFound,
    PartialFailure,
    UnitTooLong,
    ValueTooLong,
)
from shm_metrics.protocol.naming import NAME_MAX
from shm_metrics.protocol.record import RECORD_SIZE, MetricRecord, encode_record
from shm_metrics.services import FilesystemBackend, MemoryBackend, MetricStore


@pytest.fixture
def store(memory_backend):
    return MetricStore(memory_backend)


class TestWriteRead:
    """Tests for the write/read round trip"""

    def test_roundtrip_with_unit(self, store):
        store.write("test_asset_1", "test_metric_1", "hello world", "unit1", 0)
        assert store.read_with_unit("test_asset_1", "test_metric_1") == ("hello world", "unit1")

    def test_roundtrip_without_unit(self, store):
        store.write("test_asset_1", "test_metric_1", "hello world", "unit1", 0)
        assert store.read("test_asset_1", "test_metric_1") == "hello world"

    def test_multiline_value(self, store):
        store.write("a", "m", "This is\na metric", "unit2")
        assert store.read_with_unit("a", "m") == ("This is\na metric", "unit2")

    def test_numeric_value(self, store):
        """Test that numbers are stored as text"""
        store.write("a", "m", 42.0, "%")
        assert store.read("a", "m") == "42.0"
        store.write("a", "m", 7)
        assert store.read("a", "m") == "7"

    def test_read_record(self, store):
        store.write("a", "m", "1", "W", 300)
        assert store.read_record("a", "m") == MetricRecord(ttl=300, unit="W", value="1")

    def test_repeated_reads_identical(self, store):
        store.write("a", "m", "v", "u", 0)
        assert store.read_with_unit("a", "m") == store.read_with_unit("a", "m")

    def test_overwrite_with_shorter_value(self, store):
        """Test that the latest write wins with no residual bytes"""
        store.write("a", "m", "a rather long value", "longunit")
        store.write("a", "m", "x", "u")
        assert store.read_with_unit("a", "m") == ("x", "u")

    def test_write_stores_fixed_size_record(self, store, memory_backend):
        store.write("a", "m", "v")
        data, stat = memory_backend.read_record("a:m.metric", 4096)
        assert len(data) == RECORD_SIZE
        assert stat.size == RECORD_SIZE


class TestValidation:
    """Tests for rejected names and values"""

    @pytest.mark.parametrize("asset, metric", [
        ("invalid/asset", "test_metric_1"),
        ("test_asset_1", "invalid:metric"),
    ])
    def test_invalid_name(self, store, memory_backend, asset, metric):
        with pytest.raises(InvalidName):
            store.write(asset, metric, "v", "u", 0)
        with pytest.raises(InvalidName):
            store.read(asset, metric)
        assert memory_backend.list_names() == []

    def test_name_too_long(self, store, memory_backend):
        name2long = "A" * (NAME_MAX + 9)
        with pytest.raises(NameTooLong):
            store.write(name2long, "m", "v", "u", 300)
        with pytest.raises(NameTooLong):
            store.read("a", name2long)
        assert memory_backend.list_names() == []

    def test_value_too_long_writes_nothing(self, store, memory_backend):
        with pytest.raises(ValueTooLong):
            store.write("a", "m", "x" * 107)
        assert memory_backend.list_names() == []

    def test_unit_too_long_keeps_previous_value(self, store):
        store.write("a", "m", "old", "u")
        with pytest.raises(UnitTooLong):
            store.write("a", "m", "new", "u" * 11)
        assert store.read("a", "m") == "old"


class TestReadErrors:
    """Tests for NotFound, Expired, Malformed and short records"""

    def test_not_found(self, store):
        with pytest.raises(NotFound):
            store.read("a", "missing")

    def test_not_found_is_key_error(self, store):
        with pytest.raises(KeyError):
            store.read("a", "missing")

    def test_ttl_boundary(self, store, clock):
        """Test that age == ttl is valid and age > ttl is expired"""
        store.write("a", "m", "v", "u", 5)

        clock.advance(5)
        assert store.read("a", "m") == "v"

        clock.advance(1)
        with pytest.raises(Expired):
            store.read("a", "m")

    def test_zero_ttl_never_expires(self, store, clock):
        store.write("a", "m", "v", "u", 0)
        clock.advance(10 ** 9)
        assert store.read("a", "m") == "v"

    def test_expired_read_does_not_delete(self, store, clock, memory_backend):
        store.write("a", "m", "v", "u", 1)
        clock.advance(100)
        with pytest.raises(Expired):
            store.read("a", "m")
        assert memory_backend.list_names() == ["a:m.metric"]

    def test_rewrite_refreshes_ttl(self, store, clock):
        store.write("a", "m", "v1", "u", 1)
        clock.advance(10)
        store.write("a", "m", "v2", "u", 1)
        assert store.read("a", "m") == "v2"

    def test_malformed_ttl(self, store, memory_backend):
        data = b"notdigits!" + encode_record(0, "u", "v")[10:]
        memory_backend.put_raw("a:m.metric", data)
        with pytest.raises(Malformed):
            store.read("a", "m")
        assert memory_backend.list_names() == ["a:m.metric"]

    def test_short_record(self, store, memory_backend):
        """Test that a truncated record is an I/O error"""
        memory_backend.put_raw("a:m.metric", encode_record(0, "u", "v")[:50])
        with pytest.raises(MetricIOError):
            store.read("a", "m")


class TestDeleteAsset:
    """Tests for delete_asset"""

    def test_deletes_only_matching_asset(self, store):
        store.write("A", "m1", "1")
        store.write("A", "m2", "2")
        store.write("B", "m1", "3")

        assert store.delete_asset("A") == 2

        with pytest.raises(NotFound):
            store.read("A", "m1")
        with pytest.raises(NotFound):
            store.read("A", "m2")
        assert store.read("B", "m1") == "3"

    def test_asset_prefix_not_matched(self, store):
        """Test that 'A' does not match asset 'AB'"""
        store.write("AB", "m", "1")
        assert store.delete_asset("A") == 0
        assert store.read("AB", "m") == "1"

    def test_delete_unknown_asset(self, store):
        assert store.delete_asset("nobody") == 0

    def test_continues_past_failures(self, clock):
        """Test that one failing unlink does not stop the sweep"""

        class StubbornBackend(MemoryBackend):
            def unlink(self, name):
                if name == "A:locked.metric":
                    raise PermissionError(13, "Permission denied", name)
                super().unlink(name)

        backend = StubbornBackend(clock=clock)
        store = MetricStore(backend)
        store.write("A", "locked", "1")
        store.write("A", "free", "2")
        store.write("A", "free2", "3")

        with pytest.raises(PartialFailure) as exc_info:
            store.delete_asset("A")

        assert exc_info.value.details == {"deleted": 2, "failed": 1}
        assert backend.list_names() == ["A:locked.metric"]


class TestFilesystemStore:
    """Key paths repeated on a real directory"""

    def test_roundtrip(self, fs_shm):
        fs_shm.store.write("test_asset_1", "test_metric_1", "hello world", "unit1")
        assert fs_shm.store.read_with_unit("test_asset_1", "test_metric_1") == ("hello world", "unit1")

    def test_file_layout(self, fs_shm, tmp_path):
        fs_shm.store.write("ups", "load", "42", "%", 300)
        path = tmp_path / "ups:load.metric"
        assert path.read_bytes() == encode_record(300, "%", "42")

    def test_expired_by_mtime(self, fs_shm, tmp_path):
        fs_shm.store.write("a", "m", "v", "u", 1)
        past = time.time() - 10
        os.utime(tmp_path / "a:m.metric", (past, past))
        with pytest.raises(Expired):
            fs_shm.store.read("a", "m")
        assert (tmp_path / "a:m.metric").exists()

    def test_not_found(self, fs_shm):
        with pytest.raises(NotFound):
            fs_shm.store.read("a", "m")

    def test_short_file(self, fs_shm, tmp_path):
        (tmp_path / "a:m.metric").write_bytes(b"0000000000\n")
        with pytest.raises(MetricIOError):
            fs_shm.store.read("a", "m")

    def test_missing_directory(self, tmp_path):
        store = MetricStore(FilesystemBackend(tmp_path / "gone"))
        with pytest.raises(MetricIOError):
            store.delete_asset("a")
