"""
NetStorage HTTP client.

One method per object-store action. Every call builds a freshly signed
request, sends it, and classifies the response: 2xx is success, anything
else is a ProtocolError carrying the status line. Nothing is retried.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Iterable, Optional, Union
from urllib.parse import quote_plus

import httpx

from ..models import DiskUsage, StatData
from .errors import InvalidPathError, ProtocolError, TransportError
from .signing import Credentials, SignedRequest, build_signed_request
from .streams import ResponseStream

__all__ = ["NetStorageClient", "classify_response", "is_success"]

logger = logging.getLogger(__name__)

Body = Union[bytes, BinaryIO, Iterable[bytes]]

QUICK_DELETE_ACTION = "quick-delete&quick-delete=imreallyreallysure"


def is_success(status_code: int) -> bool:
    """Return True for 2xx statuses."""
    return 200 <= status_code <= 299


def status_line(response: httpx.Response) -> str:
    """Format '<code> <reason>' for a response."""
    reason = response.reason_phrase
    return f"{response.status_code} {reason}" if reason else str(response.status_code)


def classify_response(response: httpx.Response, path: Optional[str] = None) -> httpx.Response:
    """
    Raise ProtocolError unless the response status is 2xx.

    Returns:
        The response itself, for chaining
    """
    if not is_success(response.status_code):
        raise ProtocolError(response.status_code, status_line(response), path)
    return response


class NetStorageClient:
    """
    HTTP client for the NetStorage object-store API.

    Safe to share between threads: credentials are read-only and each
    request generates its own timestamp and nonce.
    """

    def __init__(self, credentials: Credentials, *, timeout_s: float = 30.0,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the client.

        Args:
            credentials: Account credentials
            timeout_s: Read/write timeout in seconds; connect is capped at 10s
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.credentials = credentials
        self.client = httpx.Client(
            timeout=httpx.Timeout(connect=min(timeout_s, 10.0), read=timeout_s,
                                  write=timeout_s, pool=5.0),
            follow_redirects=False,
            transport=transport,
        )
        logger.debug(f"NetStorage client for {credentials.scheme}://{credentials.hostname} "
                     f"as {credentials.keyname}, timeout {timeout_s}s")

    # Request plumbing

    def sign(self, action: str, method: str, path: str) -> SignedRequest:
        return build_signed_request(self.credentials, action, method, path)

    def _send(self, action: str, method: str, path: str, *,
              content: Optional[Body] = None, size: Optional[int] = None,
              stream: bool = False) -> httpx.Response:
        """
        Sign, send and classify one request.

        On failure the response is closed before ProtocolError is raised.
        """
        signed = self.sign(action, method, path)
        headers = dict(signed.headers)
        if size is not None:
            headers["Content-Length"] = str(size)

        request = self.client.build_request(signed.method, signed.url, headers=headers,
                                            content=content)
        logger.debug(f"{signed.method} {signed.path} action={action}")

        try:
            response = self.client.send(request, stream=stream)
        except httpx.TransportError as e:
            raise TransportError(f"Network error on {action} {path}: {e}") from e

        if not is_success(response.status_code):
            response.close()
            logger.debug(f"{action} {path} failed: {status_line(response)}")
        return classify_response(response, path)

    def _get_body(self, action: str, path: str) -> bytes:
        response = self._send(action, "GET", path)
        return response.content

    def _post(self, action: str, path: str) -> None:
        self._send(action, "POST", path)

    # Queries

    def stat(self, path: str) -> StatData:
        """Return the entry for a single object."""
        return StatData.from_xml(self._get_body("stat&format=xml", path))

    def dir(self, path: str) -> StatData:
        """Return the direct children of a directory."""
        return StatData.from_xml(self._get_body("dir&format=xml", path))

    def du(self, path: str) -> DiskUsage:
        """Return file count and byte total below a directory."""
        return DiskUsage.from_xml(self._get_body("du&format=xml", path))

    # Content

    def read(self, path: str) -> BinaryIO:
        """
        Start a download and return the live response body.

        The body is not buffered; the caller consumes and closes it.

        Raises:
            InvalidPathError: If path names a directory (trailing '/')
        """
        if path.endswith("/"):
            raise InvalidPathError(f"Netstorage download path shouldn't be a directory: {path}", path)
        response = self._send("download", "GET", path, stream=True)
        return ResponseStream(response)

    def write(self, path: str, source: Body, *, size: Optional[int] = None) -> None:
        """
        Upload ``source`` as the complete content of ``path``.

        The object store replaces the object atomically; there is no
        partial or appending upload.

        Args:
            path: Destination object path
            source: Bytes, a readable binary file or an iterable of byte chunks
            size: Content length if known (sent as Content-Length)
        """
        self._send("upload", "PUT", path, content=source, size=size)

    # Namespace mutations

    def mkdir(self, path: str) -> None:
        """Create an empty directory."""
        self._post("mkdir", path)

    def rmdir(self, path: str) -> None:
        """Delete an empty directory."""
        self._post("rmdir", path)

    def delete(self, path: str) -> None:
        """Delete an object or symbolic link."""
        self._post("delete", path)

    def quick_delete(self, path: str) -> None:
        """
        Recursively delete a directory tree.

        Requires the quick-delete privilege on the CP code.
        """
        self._post(QUICK_DELETE_ACTION, path)

    def rename(self, source: str, destination: str) -> None:
        """Rename a file or symbolic link."""
        self._post(f"rename&destination={quote_plus(destination)}", source)

    def symlink(self, target: str, destination: str) -> None:
        """Create a symbolic link at ``destination`` pointing to ``target``."""
        self._post(f"symlink&target={quote_plus(target)}", destination)

    def mtime(self, path: str, mtime: int) -> None:
        """Set the modification time of an object (epoch seconds)."""
        self._post(f"mtime&format=xml&mtime={int(mtime)}", path)

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
