"""IStorageBackend Protocol and the real filesystem implementation.

The store, index and reaper never touch the filesystem directly; they go
through a backend so the same logic can run against a real (usually tmpfs)
directory or against the in-memory double used by deterministic tests.
"""

import ctypes
import errno
import os
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from shm_metrics.core.logging_config import get_logger

logger = get_logger(__name__)

_AT_FDCWD = -100
_RENAME_NOREPLACE = 1


@dataclass(frozen=True)
class FileStat:
    """Backend-neutral subset of stat(2) used by the store."""
    size: int
    mtime: float
    dev: int
    ino: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileStat":
        return cls(size=st.st_size, mtime=st.st_mtime, dev=st.st_dev, ino=st.st_ino)

    def same_file(self, other: "FileStat") -> bool:
        return self.dev == other.dev and self.ino == other.ino

    def unchanged_since(self, other: "FileStat") -> bool:
        """Same file, and not rewritten in place since `other` was taken"""
        return self.same_file(other) and self.mtime == other.mtime and self.size == other.size


class IStorageBackend(Protocol):
    """Protocol for the flat directory holding metric records.

    Methods raise builtin OSError subclasses (FileNotFoundError,
    FileExistsError, ...); translating them into store errors is the
    caller's job.
    """

    root: str

    def now(self) -> float:
        """Current wall clock time in seconds, comparable with FileStat.mtime."""
        ...

    def list_names(self) -> list[str]:
        """Directory entry names in raw iteration order."""
        ...

    def write_record(self, name: str, data: bytes) -> None:
        """Create or overwrite ``name`` with ``data`` in a single write at offset 0."""
        ...

    def read_record(self, name: str, size: int) -> tuple[bytes, FileStat]:
        """Read up to ``size`` bytes and the stat of the same open file."""
        ...

    def stat(self, name: str) -> FileStat:
        ...

    def unlink(self, name: str) -> None:
        ...

    def rename_noreplace(self, src: str, dst: str) -> None:
        """Rename ``src`` to ``dst``, failing with FileExistsError if ``dst`` exists."""
        ...


def _load_renameat2() -> Callable | None:
    try:
        libc = ctypes.CDLL(None, use_errno=True)
        func = libc.renameat2
    except (OSError, AttributeError):
        return None
    func.argtypes = [ctypes.c_int, ctypes.c_char_p, ctypes.c_int, ctypes.c_char_p, ctypes.c_uint]
    func.restype = ctypes.c_int
    return func


_renameat2 = _load_renameat2()


def rename_noreplace(src: str, dst: str) -> None:
    """Atomic rename that refuses to replace an existing destination.

    Uses renameat2(RENAME_NOREPLACE) where libc exposes it. Otherwise, or when
    the filesystem rejects the flag, falls back to link() + unlink(); link()
    fails with EEXIST the same way.
    """
    if _renameat2 is not None:
        ret = _renameat2(_AT_FDCWD, os.fsencode(src), _AT_FDCWD, os.fsencode(dst), _RENAME_NOREPLACE)
        if ret == 0:
            return
        err = ctypes.get_errno()
        if err not in (errno.EINVAL, errno.ENOSYS):
            raise OSError(err, os.strerror(err), src, None, dst)
        logger.debug(f"renameat2 unsupported here ({os.strerror(err)}), using link/unlink")

    os.link(src, dst)
    os.unlink(src)


class FilesystemBackend:
    """Metric records stored as files in one shared directory."""

    def __init__(self, root: str | os.PathLike, clock: Callable[[], float] = time.time):
        self.root = os.fspath(root)
        self._clock = clock

    def _path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def now(self) -> float:
        return self._clock()

    def list_names(self) -> list[str]:
        return os.listdir(self.root)

    def write_record(self, name: str, data: bytes) -> None:
        # No O_TRUNC: an in-place overwrite never exposes an empty file to readers.
        # Files must stay shareable between unrelated users, hence 0666.
        fd = os.open(self._path(name), os.O_CREAT | os.O_RDWR | os.O_CLOEXEC, 0o666)
        try:
            written = os.pwrite(fd, data, 0)
            if written != len(data):
                raise OSError(errno.EIO, f"Short write: {written} of {len(data)} bytes", self._path(name))
            if os.fstat(fd).st_size > len(data):
                os.ftruncate(fd, len(data))
        finally:
            os.close(fd)

    def read_record(self, name: str, size: int) -> tuple[bytes, FileStat]:
        fd = os.open(self._path(name), os.O_RDONLY | os.O_CLOEXEC)
        try:
            st = os.fstat(fd)
            data = os.read(fd, size)
        finally:
            os.close(fd)
        return data, FileStat.from_stat(st)

    def stat(self, name: str) -> FileStat:
        return FileStat.from_stat(os.stat(self._path(name)))

    def unlink(self, name: str) -> None:
        os.unlink(self._path(name))

    def rename_noreplace(self, src: str, dst: str) -> None:
        rename_noreplace(self._path(src), self._path(dst))
