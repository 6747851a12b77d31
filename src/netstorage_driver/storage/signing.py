"""
Request signing for the NetStorage HTTP API.

Every request carries three headers:

    X-Akamai-ACS-Action:    version=1&action=<action>[&<params>]
    X-Akamai-ACS-Auth-Data: 5, 0.0.0.0, 0.0.0.0, <unix-seconds>, <nonce>, <keyname>
    X-Akamai-ACS-Auth-Sign: base64(HMAC-SHA256(key, auth_data + sign_string))

where ``sign_string`` is ``<path>\\nx-akamai-acs-action:<action header>\\n``.
The timestamp and nonce make every signature unique; the service rejects
replays outside its acceptance window.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import re
import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import quote, urlsplit

from .. import __version__
from .errors import ConfigurationError, InvalidPathError

__all__ = [
    "Credentials",
    "SignedRequest",
    "canonical_path",
    "compute_signature",
    "build_signed_request",
]

ACTION_HEADER = "X-Akamai-ACS-Action"
AUTH_DATA_HEADER = "X-Akamai-ACS-Auth-Data"
AUTH_SIGN_HEADER = "X-Akamai-ACS-Auth-Sign"
USER_AGENT = f"netstorage-driver/{__version__}"

# Version and the two reserved address fields are fixed by the protocol
AUTH_DATA_PREFIX = "5, 0.0.0.0, 0.0.0.0"
NONCE_LIMIT = 100000

# Sub-delimiters and unreserved characters stay literal in a path segment
_PATH_SAFE = "/!$&'()*+,;=:@-._~"
_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")


@dataclass(frozen=True)
class Credentials:
    """
    Account credentials from the NetStorage upload account page.

    Never log ``key``.
    """
    hostname: str
    keyname: str
    key: str = field(repr=False)
    ssl: bool = False

    def __post_init__(self):
        if not self.hostname or not self.keyname or not self.key:
            raise ConfigurationError("NetStorage hostname, keyname and key are required")

    @property
    def scheme(self) -> str:
        return "https" if self.ssl else "http"


@dataclass(frozen=True)
class SignedRequest:
    """Method, URL and authentication headers of an outbound request (no body)."""
    method: str
    url: str
    headers: Dict[str, str]
    path: str


def canonical_path(path: str) -> str:
    """
    Normalize an absolute path to request-URI form.

    Percent-encodes the path component (already-encoded sequences are
    kept) and preserves an existing query string.

    Raises:
        InvalidPathError: If path is not absolute
    """
    if not path.startswith("/"):
        raise InvalidPathError(f"Invalid netstorage path: {path}", path)
    try:
        parts = urlsplit(path)
    except ValueError as e:
        raise InvalidPathError(f"Invalid netstorage path: {path}", path) from e

    encoded = _quote_path(parts.path)
    if parts.query:
        encoded = f"{encoded}?{parts.query}"
    return encoded


def _quote_path(path: str) -> str:
    # Valid %XX escapes are kept as sent; %2F must not become a separator
    pieces = []
    pos = 0
    for match in _ESCAPE.finditer(path):
        pieces.append(quote(path[pos:match.start()], safe=_PATH_SAFE))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(quote(path[pos:], safe=_PATH_SAFE))
    return "".join(pieces)


def compute_signature(key: str, auth_data: str, sign_string: str) -> str:
    """Return base64(HMAC-SHA256(key, auth_data + sign_string))."""
    mac = hmac.new(key.encode("utf-8"), (auth_data + sign_string).encode("utf-8"), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode("ascii")


def build_signed_request(
    credentials: Credentials,
    action: str,
    method: str,
    path: str,
    *,
    now: Optional[int] = None,
    nonce: Optional[int] = None,
) -> SignedRequest:
    """
    Build an authenticated request for ``action`` against ``path``.

    Args:
        credentials: Account credentials
        action: Action with optional parameters, e.g. "dir&format=xml"
        method: HTTP method
        path: Absolute object path
        now: Unix timestamp override (defaults to the system clock)
        nonce: Nonce override in [0, 100000) (defaults to a fresh random value)

    Returns:
        SignedRequest ready to be sent; callers attach a body for uploads

    Raises:
        InvalidPathError: If path is not absolute
    """
    request_path = canonical_path(path)

    if now is None:
        now = int(time.time())
    if nonce is None:
        nonce = secrets.randbelow(NONCE_LIMIT)

    acs_action = f"version=1&action={action}"
    auth_data = f"{AUTH_DATA_PREFIX}, {now}, {nonce}, {credentials.keyname}"
    sign_string = f"{request_path}\nx-akamai-acs-action:{acs_action}\n"

    headers = {
        ACTION_HEADER: acs_action,
        AUTH_DATA_HEADER: auth_data,
        AUTH_SIGN_HEADER: compute_signature(credentials.key, auth_data, sign_string),
        "Accept-Encoding": "identity",
        "User-Agent": USER_AGENT,
    }
    return SignedRequest(
        method=method,
        url=f"{credentials.scheme}://{credentials.hostname}{request_path}",
        headers=headers,
        path=request_path,
    )
