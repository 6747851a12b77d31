"""
NetStorage driver error classes.

Provides a clear taxonomy of errors that can occur while talking to the
object store or staging writes for it. Errors from httpx, ElementTree,
pydantic and the OS are translated into these at the boundary where they
happen, keeping the original exception as ``__cause__``.
"""
from __future__ import annotations


class NetStorageError(Exception):
    """Base class for all driver errors."""
    pass


class ConfigurationError(NetStorageError, ValueError):
    """
    Invalid driver configuration.

    Raised when:
    - hostname, keyname or key is missing
    - the ssl flag cannot be parsed as a boolean
    - more than one local driver is configured
    - a path is classified local but no local driver exists

    Always raised at construction time or on the first call that needs
    the missing collaborator; never retried.
    """
    pass


class InvalidPathError(NetStorageError):
    """
    Path rejected before any request was made.

    Raised when:
    - the path is not absolute (no leading '/')
    - a directory path (trailing '/') is given as a download target
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class InvalidOffsetError(NetStorageError):
    """Negative read offset."""

    def __init__(self, path: str, offset: int):
        super().__init__(f"Invalid offset {offset} for path: {path}")
        self.path = path
        self.offset = offset


class TransportError(NetStorageError):
    """
    The HTTP exchange could not be completed.

    Raised for connection failures, DNS failures, timeouts and broken
    streams. The underlying httpx exception is chained as ``__cause__``.
    """
    pass


class ProtocolError(NetStorageError):
    """
    The object store answered with a non-2xx status.

    The status line is the whole detail; no response body is parsed and
    no status is special-cased (404 and 403 look the same at this layer).
    """

    def __init__(self, status_code: int, status: str, path: str | None = None):
        message = f"{status} ({path})" if path else status
        super().__init__(message)
        self.status_code = status_code
        self.status = status
        self.path = path


class ParseError(NetStorageError):
    """Malformed XML in a stat, dir or du response."""
    pass


class UnsupportedOperationError(NetStorageError):
    """
    Operation or combination the driver cannot perform.

    Raised when:
    - moving a remote object to a local destination
    - resolving a URL with neither a URL mapper nor a local driver
    """
    pass


class LocalIOError(NetStorageError, OSError):
    """Creating, writing or removing a staging file failed."""
    pass


class SessionStateError(NetStorageError):
    """
    Write session used after it reached a terminal state.

    A staged write session accepts exactly one of commit or cancel.
    """
    pass


__all__ = [
    "NetStorageError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidOffsetError",
    "TransportError",
    "ProtocolError",
    "ParseError",
    "UnsupportedOperationError",
    "LocalIOError",
    "SessionStateError",
]
