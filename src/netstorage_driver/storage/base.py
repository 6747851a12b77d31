"""
Storage interfaces for the NetStorage hybrid driver.

These protocols define the boundary between the hybrid driver and the
local storage driver it delegates to, enabling clean dependency injection
and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class FileInfo:
    """
    Metadata for a stored object.

    Invariants:
    - size: byte length for files, 0 for directories
    - mod_time: timezone-aware UTC datetime
    """
    path: str
    size: int
    mod_time: datetime
    is_dir: bool = False


__all__ = ["FileInfo", "FileWriter", "StorageDriver"]


@runtime_checkable
class FileWriter(Protocol):
    """
    Write session returned by ``StorageDriver.writer``.

    Bytes written are invisible at the destination until ``commit``.
    Exactly one of ``commit`` or ``cancel`` ends the session; ``close``
    releases resources afterwards.
    """

    def write(self, data: bytes) -> int:
        """Append bytes, returning the count written."""
        ...

    def close(self) -> None:
        """Release the session's resources."""
        ...

    def size(self) -> int:
        """Number of bytes written so far."""
        ...

    def cancel(self) -> None:
        """Discard written bytes; the destination is left untouched."""
        ...

    def commit(self) -> None:
        """Make written bytes visible at the destination."""
        ...


@runtime_checkable
class StorageDriver(Protocol):
    """
    Protocol for path-addressed storage drivers.

    Paths are absolute, '/'-separated. Implementations raise
    FileNotFoundError (or a driver-specific error) for missing paths.
    """

    def name(self) -> str:
        """Short driver name used for registration."""
        ...

    def get_content(self, path: str) -> bytes:
        """Return the full content stored at ``path``."""
        ...

    def put_content(self, path: str, contents: bytes) -> None:
        """Store ``contents`` at ``path``, replacing any previous content."""
        ...

    def reader(self, path: str, offset: int = 0) -> BinaryIO:
        """
        Open a stream over the content at ``path`` starting at ``offset``.

        The caller owns the returned stream and must close it.
        """
        ...

    def writer(self, path: str, append: bool = False) -> FileWriter:
        """Open a write session for ``path``."""
        ...

    def stat(self, path: str) -> FileInfo:
        """Return metadata for ``path``."""
        ...

    def list(self, path: str) -> List[str]:
        """List the direct children of ``path``."""
        ...

    def move(self, source_path: str, dest_path: str) -> None:
        """Move an object, removing the original."""
        ...

    def delete(self, path: str) -> None:
        """Recursively delete ``path`` and everything below it."""
        ...

    def url_for(self, path: str, options: Optional[Dict[str, Any]] = None) -> str:
        """Return a URL from which the content at ``path`` can be fetched."""
        ...
