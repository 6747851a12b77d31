"""
Staged writes for NetStorage destinations.

NetStorage only accepts whole-object uploads, so a write session buffers
bytes in a local temporary file and uploads the file in one request on
commit. The temporary file is removed on commit (whatever the outcome),
on cancel, and on close without either.
"""
from __future__ import annotations

import logging
import os
import tempfile
from typing import TYPE_CHECKING, Optional

from .errors import LocalIOError, SessionStateError

if TYPE_CHECKING:
    from ..driver import HybridDriver
    from .netstorage import NetStorageClient

__all__ = ["StagedWriteSession", "local_temp_writer", "TEMP_PREFIX"]

logger = logging.getLogger(__name__)

TEMP_PREFIX = "nsd"

_OPEN = "open"
_COMMITTED = "committed"
_CANCELLED = "cancelled"


class StagedWriteSession:
    """
    FileWriter that stages bytes locally and uploads them on commit.

    Lifecycle: open -> committed | cancelled. ``close()`` on an open
    session cancels it, so the staging file never outlives the session.
    ``append`` is accepted for interface compatibility; the whole staged
    content always replaces the remote object.

    Usage:
        with StagedWriteSession(client, "/123/a.bin") as w:
            w.write(b"...")
            w.commit()
    """

    def __init__(self, client: NetStorageClient, destination: str, *,
                 append: bool = False, temp_dir: Optional[str] = None):
        """
        Create the staging file.

        Args:
            client: Client used for the commit upload
            destination: Remote object path
            append: Accepted but has no remote effect
            temp_dir: Directory for the staging file (platform default if None)

        Raises:
            LocalIOError: If the staging file cannot be created
        """
        self._client = client
        self.destination = destination
        self.append = append
        try:
            fd, self.temp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=temp_dir)
            self._file = os.fdopen(fd, "w+b")
        except OSError as e:
            raise LocalIOError(f"Cannot create staging file in {temp_dir or tempfile.gettempdir()}: {e}") from e
        self._state = _OPEN

        if append:
            logger.debug(f"Append requested for {destination}; staged content will replace the object")
        logger.debug(f"Staging writes for {destination} in {self.temp_path}")

    @property
    def committed(self) -> bool:
        return self._state == _COMMITTED

    @property
    def cancelled(self) -> bool:
        return self._state == _CANCELLED

    def _require_open(self, op: str) -> None:
        if self._state != _OPEN:
            raise SessionStateError(f"Cannot {op} write session for {self.destination}: already {self._state}")

    def write(self, data: bytes) -> int:
        """Append bytes to the staging file."""
        self._require_open("write to")
        try:
            return self._file.write(data)
        except OSError as e:
            raise LocalIOError(f"Cannot write staging file {self.temp_path}: {e}") from e

    def size(self) -> int:
        """Current staged length, or 0 if it cannot be determined."""
        try:
            return self._file.seek(0, os.SEEK_END)
        except (OSError, ValueError):
            return 0

    def cancel(self) -> None:
        """Discard staged bytes without uploading. Never raises for cleanup failures."""
        if self._state == _CANCELLED:
            return
        self._require_open("cancel")
        self._state = _CANCELLED
        self._discard()
        logger.debug(f"Cancelled write session for {self.destination}")

    def commit(self) -> None:
        """
        Upload the staged bytes to the destination.

        The staging file is removed whether or not the upload succeeds, so
        a failed commit cannot be retried on the same session.

        Raises:
            TransportError, ProtocolError: From the upload
            SessionStateError: If the session was already committed or cancelled
        """
        self._require_open("commit")
        self._state = _COMMITTED
        try:
            length = self.size()
            self._file.seek(0)
            self._client.write(self.destination, self._file, size=length)
            logger.debug(f"Committed {length} bytes to {self.destination}")
        finally:
            self._discard()

    def close(self) -> None:
        """Release the session; an open session is cancelled."""
        if self._state == _OPEN:
            logger.warning(f"Write session for {self.destination} closed without commit; discarding staged data")
            self.cancel()

    def _discard(self) -> None:
        try:
            self._file.close()
        except OSError as e:
            logger.debug(f"Error closing staging file {self.temp_path}: {e}")
        try:
            os.remove(self.temp_path)
        except OSError as e:
            logger.debug(f"Error removing staging file {self.temp_path}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self._state == _OPEN:
            self.cancel()
        self.close()


def local_temp_writer(driver: HybridDriver, path: str, append: bool) -> StagedWriteSession:
    """
    Default temp-writer factory for HybridDriver.

    Stages in the driver's ``temp_dir`` (the ``tmp`` setting), or the platform
    default temporary directory.
    """
    return StagedWriteSession(driver.client, path, append=append, temp_dir=driver.temp_dir)
