"""
Fake NetStorage service for testing.

Serves the NetStorage action protocol from memory through an
``httpx.MockTransport`` and verifies every request signature, so client
code is exercised end to end without a network.
"""
from __future__ import annotations

import hashlib
import posixpath
from dataclasses import dataclass
from typing import Dict, List, Optional, Set
from urllib.parse import parse_qs
from xml.sax.saxutils import quoteattr

import httpx

from netstorage_driver.storage.signing import (
    ACTION_HEADER,
    AUTH_DATA_HEADER,
    AUTH_SIGN_HEADER,
    compute_signature,
)

__all__ = ["FakeNetStorage", "RecordedRequest"]


@dataclass(frozen=True)
class RecordedRequest:
    """One request as seen by the fake service."""
    method: str
    path: str
    action: str
    params: Dict[str, str]
    headers: Dict[str, str]
    body: bytes


class FakeNetStorage:
    """
    In-memory NetStorage for testing.

    This is a test double; not for production use.
    Objects are keyed by decoded absolute path. Directories are implicit
    (parents of objects) or explicit (mkdir).
    """

    def __init__(self, keyname: str = "uploader", key: str = "s3cr3t", now: int = 1_700_000_000) -> None:
        self.keyname = keyname
        self.key = key
        self.now = now
        self.objects: Dict[str, bytes] = {}
        self.mtimes: Dict[str, int] = {}
        self.dirs: Set[str] = {"/"}
        self.symlinks: Dict[str, str] = {}
        self.requests: List[RecordedRequest] = []
        # action -> HTTP status to answer with instead of serving
        self.fail_actions: Dict[str, int] = {}
        # actions that fail at the transport level
        self.broken_actions: Set[str] = set()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Test utilities

    def put_object(self, path: str, data: bytes, mtime: Optional[int] = None) -> None:
        self.objects[path] = data
        self.mtimes[path] = self.now if mtime is None else mtime

    def actions(self) -> List[str]:
        return [r.action for r in self.requests]

    def clear(self) -> None:
        self.objects.clear()
        self.mtimes.clear()
        self.symlinks.clear()
        self.dirs = {"/"}
        self.requests.clear()

    # Request handling

    def handle(self, request: httpx.Request) -> httpx.Response:
        action_header = request.headers.get(ACTION_HEADER, "")
        query = parse_qs(action_header, keep_blank_values=True)
        params = {k: v[0] for k, v in query.items()}
        action = params.get("action", "")
        path = request.url.path
        body = request.read()

        self.requests.append(RecordedRequest(
            method=request.method,
            path=path,
            action=action,
            params=params,
            headers=dict(request.headers),
            body=body,
        ))

        if action in self.broken_actions:
            raise httpx.ConnectError("connection refused", request=request)

        if not self._signature_valid(request, action_header):
            return httpx.Response(403, request=request)

        if action in self.fail_actions:
            return httpx.Response(self.fail_actions[action], request=request)

        handler = getattr(self, "_do_" + action.replace("-", "_"), None)
        if handler is None:
            return httpx.Response(400, request=request)
        return handler(request, path, params, body)

    def _signature_valid(self, request: httpx.Request, action_header: str) -> bool:
        auth_data = request.headers.get(AUTH_DATA_HEADER, "")
        fields = [f.strip() for f in auth_data.split(",")]
        if len(fields) != 6 or fields[5] != self.keyname:
            return False
        sign_string = f"{request.url.raw_path.decode('ascii')}\nx-akamai-acs-action:{action_header}\n"
        expected = compute_signature(self.key, auth_data, sign_string)
        return request.headers.get(AUTH_SIGN_HEADER) == expected

    def _is_dir(self, path: str) -> bool:
        path = path.rstrip("/") or "/"
        if path in self.dirs:
            return True
        prefix = path + "/" if path != "/" else "/"
        return any(p.startswith(prefix) for p in list(self.objects) + list(self.symlinks))

    def _children(self, path: str) -> Set[str]:
        path = path.rstrip("/") or "/"
        prefix = path + "/" if path != "/" else "/"
        names = set()
        for p in list(self.objects) + list(self.symlinks) + list(self.dirs):
            if p.startswith(prefix) and p != path:
                names.add(p[len(prefix):].split("/", 1)[0])
        return names

    def _entry_xml(self, directory: str, name: str) -> str:
        full = posixpath.join(directory, name)
        if full in self.symlinks:
            return (f'<file type="symlink" name={quoteattr(name)} mtime="{self.mtimes.get(full, self.now)}" '
                    f'target={quoteattr(self.symlinks[full])}/>')
        if full in self.objects:
            data = self.objects[full]
            return (f'<file type="file" name={quoteattr(name)} mtime="{self.mtimes.get(full, self.now)}" '
                    f'size="{len(data)}" md5="{hashlib.md5(data).hexdigest()}"/>')
        return f'<file type="dir" name={quoteattr(name)} mtime="{self.mtimes.get(full, self.now)}"/>'

    def _xml(self, request: httpx.Request, document: str) -> httpx.Response:
        return httpx.Response(200, content=('<?xml version="1.0" encoding="ISO-8859-1"?>\n' + document).encode(),
                              headers={"Content-Type": "text/xml"}, request=request)

    # Actions

    def _do_download(self, request, path, params, body):
        if path not in self.objects:
            return httpx.Response(404, request=request)
        return httpx.Response(200, content=self.objects[path], request=request)

    def _do_upload(self, request, path, params, body):
        if self._is_dir(path):
            return httpx.Response(409, request=request)
        self.put_object(path, body)
        return httpx.Response(200, request=request)

    def _do_stat(self, request, path, params, body):
        if path not in self.objects and path not in self.symlinks and not self._is_dir(path):
            return httpx.Response(404, request=request)
        directory, name = posixpath.split(path.rstrip("/") or "/")
        document = f'<stat directory={quoteattr(directory)}>{self._entry_xml(directory, name)}</stat>'
        return self._xml(request, document)

    def _do_dir(self, request, path, params, body):
        if not self._is_dir(path):
            return httpx.Response(404, request=request)
        directory = path.rstrip("/") or "/"
        entries = "".join(self._entry_xml(directory, n) for n in sorted(self._children(path)))
        return self._xml(request, f'<stat directory={quoteattr(directory)}>{entries}</stat>')

    def _do_du(self, request, path, params, body):
        if not self._is_dir(path):
            return httpx.Response(404, request=request)
        directory = path.rstrip("/") or "/"
        prefix = directory + "/" if directory != "/" else "/"
        sizes = [len(d) for p, d in self.objects.items() if p.startswith(prefix)]
        document = (f'<du directory={quoteattr(directory)}>'
                    f'<du-info files="{len(sizes)}" bytes="{sum(sizes)}"/></du>')
        return self._xml(request, document)

    def _do_mkdir(self, request, path, params, body):
        if path in self.objects or self._is_dir(path):
            return httpx.Response(409, request=request)
        self.dirs.add(path.rstrip("/"))
        return httpx.Response(200, request=request)

    def _do_rmdir(self, request, path, params, body):
        if not self._is_dir(path):
            return httpx.Response(404, request=request)
        if self._children(path):
            return httpx.Response(409, request=request)
        self.dirs.discard(path.rstrip("/"))
        return httpx.Response(200, request=request)

    def _do_delete(self, request, path, params, body):
        if path in self.symlinks:
            del self.symlinks[path]
        elif path in self.objects:
            del self.objects[path]
            self.mtimes.pop(path, None)
        else:
            return httpx.Response(404, request=request)
        return httpx.Response(200, request=request)

    def _do_quick_delete(self, request, path, params, body):
        if params.get("quick-delete") != "imreallyreallysure":
            return httpx.Response(403, request=request)
        directory = path.rstrip("/")
        prefix = directory + "/"
        for store in (self.objects, self.symlinks, self.mtimes):
            for p in [p for p in store if p == directory or p.startswith(prefix)]:
                del store[p]
        self.dirs = {d for d in self.dirs if d != directory and not d.startswith(prefix)} | {"/"}
        return httpx.Response(200, request=request)

    def _do_rename(self, request, path, params, body):
        destination = params.get("destination")
        if not destination:
            return httpx.Response(400, request=request)
        if path not in self.objects:
            return httpx.Response(404, request=request)
        self.objects[destination] = self.objects.pop(path)
        self.mtimes[destination] = self.mtimes.pop(path, self.now)
        return httpx.Response(200, request=request)

    def _do_symlink(self, request, path, params, body):
        target = params.get("target")
        if not target:
            return httpx.Response(400, request=request)
        self.symlinks[path] = target
        return httpx.Response(200, request=request)

    def _do_mtime(self, request, path, params, body):
        if path not in self.objects:
            return httpx.Response(404, request=request)
        self.mtimes[path] = int(params["mtime"])
        return httpx.Response(200, request=request)
