"""
Byte streams over NetStorage downloads.

The download action has no range parameter, so reads at an offset are
emulated by downloading and discarding the prefix.
"""
from __future__ import annotations

import io
from typing import BinaryIO, Iterator, Optional

import httpx

from .errors import TransportError

__all__ = ["ResponseStream", "OffsetSkipReader", "SKIP_CHUNK_SIZE"]

SKIP_CHUNK_SIZE = 16 * 1024  # 16 KiB


class ResponseStream(io.RawIOBase):
    """
    Readable raw stream over a streaming ``httpx.Response``.

    Data is pulled from the network as the caller reads; nothing is
    buffered beyond the current chunk. Closing the stream closes the
    response and returns the connection to the pool.
    """

    def __init__(self, response: httpx.Response):
        self._response = response
        self._chunks: Optional[Iterator[bytes]] = None
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if not self._pending:
            self._pending = self._next_chunk()
            if not self._pending:
                return 0
        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def _next_chunk(self) -> bytes:
        if self._chunks is None:
            self._chunks = self._response.iter_bytes()
        try:
            # Skip empty chunks; only exhaustion means EOF
            for chunk in self._chunks:
                if chunk:
                    return chunk
        except httpx.TransportError as e:
            raise TransportError(f"Network error reading {self._response.url}: {e}") from e
        return b""

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class OffsetSkipReader(io.RawIOBase):
    """
    Discard the first ``offset`` bytes of a stream, then pass reads through.

    Skipping happens lazily on the first read, in chunks of at most
    SKIP_CHUNK_SIZE bytes. If the wrapped stream ends before ``offset``
    bytes have been skipped, the reader reports EOF; errors from the
    wrapped stream propagate unchanged.
    """

    def __init__(self, raw: BinaryIO, offset: int):
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        self._raw = raw
        self._offset = offset
        self._skipped = 0

    @property
    def skipped(self) -> int:
        return self._skipped

    def readable(self) -> bool:
        return True

    def _skip(self) -> bool:
        """Consume the prefix. Returns False if the stream ended first."""
        while self._skipped < self._offset:
            want = min(self._offset - self._skipped, SKIP_CHUNK_SIZE)
            chunk = self._raw.read(want)
            if not chunk:
                return False
            self._skipped += len(chunk)
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if not self._skip():
            return 0
        data = self._raw.read(len(b))
        if not data:
            return 0
        n = len(data)
        b[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            self._raw.close()
        super().close()
