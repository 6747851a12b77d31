"""
Fake local storage driver for testing.

This implementation explicitly subclasses StorageDriver to ensure interface
changes break CI immediately, preventing silent drift. Every call is
recorded so tests can assert which backend served an operation.
"""
from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from netstorage_driver.storage.base import FileInfo, FileWriter, StorageDriver

__all__ = ["InMemoryLocalDriver", "InMemoryFileWriter"]


class InMemoryFileWriter(FileWriter):
    """Write session committing into an InMemoryLocalDriver."""

    def __init__(self, driver: InMemoryLocalDriver, path: str, append: bool) -> None:
        self._driver = driver
        self._path = path
        self._buffer = bytearray(driver.objects.get(path, b"") if append else b"")
        self.committed = False
        self.cancelled = False
        self.closed = False

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def close(self) -> None:
        self.closed = True

    def size(self) -> int:
        return len(self._buffer)

    def cancel(self) -> None:
        self.cancelled = True

    def commit(self) -> None:
        self._driver.objects[self._path] = bytes(self._buffer)
        self.committed = True


class InMemoryLocalDriver(StorageDriver):
    """
    In-memory storage driver keyed by path.

    This is a test double; not for production use.
    """

    def __init__(self, parameters: Optional[Dict[str, Any]] = None) -> None:
        self.parameters = parameters or {}
        self.objects: Dict[str, bytes] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.writers: List[InMemoryFileWriter] = []

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, args))

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def name(self) -> str:
        return "inmemory"

    def get_content(self, path: str) -> bytes:
        self._record("get_content", path)
        if path not in self.objects:
            raise FileNotFoundError(path)
        return self.objects[path]

    def put_content(self, path: str, contents: bytes) -> None:
        self._record("put_content", path)
        self.objects[path] = contents

    def reader(self, path: str, offset: int = 0) -> io.BytesIO:
        self._record("reader", path, offset)
        if path not in self.objects:
            raise FileNotFoundError(path)
        stream = io.BytesIO(self.objects[path])
        stream.seek(offset)
        return stream

    def writer(self, path: str, append: bool = False) -> InMemoryFileWriter:
        self._record("writer", path, append)
        w = InMemoryFileWriter(self, path, append)
        self.writers.append(w)
        return w

    def stat(self, path: str) -> FileInfo:
        self._record("stat", path)
        if path in self.objects:
            return FileInfo(path=path, size=len(self.objects[path]),
                            mod_time=datetime(2024, 1, 1, tzinfo=timezone.utc))
        if self.list(path):
            return FileInfo(path=path, size=0, mod_time=datetime(2024, 1, 1, tzinfo=timezone.utc), is_dir=True)
        raise FileNotFoundError(path)

    def list(self, path: str) -> List[str]:
        self._record("list", path)
        prefix = path.rstrip("/") + "/"
        return sorted({p[len(prefix):].split("/", 1)[0] for p in self.objects if p.startswith(prefix)})

    def move(self, source_path: str, dest_path: str) -> None:
        self._record("move", source_path, dest_path)
        if source_path not in self.objects:
            raise FileNotFoundError(source_path)
        self.objects[dest_path] = self.objects.pop(source_path)

    def delete(self, path: str) -> None:
        self._record("delete", path)
        prefix = path.rstrip("/") + "/"
        doomed = [p for p in self.objects if p == path or p.startswith(prefix)]
        if not doomed:
            raise FileNotFoundError(path)
        for p in doomed:
            del self.objects[p]

    def url_for(self, path: str, options: Optional[Dict[str, Any]] = None) -> str:
        self._record("url_for", path, options)
        return f"file://{path}"
