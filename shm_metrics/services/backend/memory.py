"""MemoryBackend - in-memory double of the shared metrics directory.

Behaves like FilesystemBackend (inode identity, modification times,
fail-if-exists rename) but keeps everything in a dict and reads time from an
injectable clock, so TTL and reaper logic can be tested without sleeping.
"""

import errno
import itertools
import os
import time
from dataclasses import dataclass
from typing import Callable

from .filesystem import FileStat


@dataclass
class _MemoryFile:
    data: bytes
    mtime: float
    ino: int


class MemoryBackend:
    """Dict-backed storage with filesystem-like semantics."""

    DEV = 0

    def __init__(self, clock: Callable[[], float] = time.time, root: str = "memory://"):
        self.root = root
        self._clock = clock
        self._files: dict[str, _MemoryFile] = {}
        self._inodes = itertools.count(1)

    def _get(self, name: str) -> _MemoryFile:
        entry = self._files.get(name)
        if entry is None:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)
        return entry

    def _stat(self, entry: _MemoryFile) -> FileStat:
        return FileStat(size=len(entry.data), mtime=entry.mtime, dev=self.DEV, ino=entry.ino)

    def now(self) -> float:
        return self._clock()

    def list_names(self) -> list[str]:
        return list(self._files)

    def write_record(self, name: str, data: bytes) -> None:
        entry = self._files.get(name)
        if entry is None:
            self._files[name] = _MemoryFile(data=bytes(data), mtime=self._clock(), ino=next(self._inodes))
        else:
            # Overwrite in place keeps the inode, as pwrite() on an open file does
            entry.data = bytes(data)
            entry.mtime = self._clock()

    def read_record(self, name: str, size: int) -> tuple[bytes, FileStat]:
        entry = self._get(name)
        return entry.data[:size], self._stat(entry)

    def stat(self, name: str) -> FileStat:
        return self._stat(self._get(name))

    def unlink(self, name: str) -> None:
        self._get(name)
        del self._files[name]

    def rename_noreplace(self, src: str, dst: str) -> None:
        entry = self._get(src)
        if dst in self._files:
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), dst)
        del self._files[src]
        self._files[dst] = entry

    def set_mtime(self, name: str, mtime: float) -> None:
        """Backdate or postdate a record, like os.utime() on a real file."""
        self._get(name).mtime = mtime

    def put_raw(self, name: str, data: bytes) -> None:
        """Store arbitrary bytes under ``name`` as a fresh file."""
        self._files[name] = _MemoryFile(data=bytes(data), mtime=self._clock(), ino=next(self._inodes))
