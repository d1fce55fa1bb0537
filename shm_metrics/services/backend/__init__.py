"""Storage backends for the shared metrics directory."""

from .filesystem import FileStat, FilesystemBackend, IStorageBackend, rename_noreplace
from .memory import MemoryBackend

__all__ = [
    "FileStat",
    "IStorageBackend",
    "FilesystemBackend",
    "MemoryBackend",
    "rename_noreplace",
]
