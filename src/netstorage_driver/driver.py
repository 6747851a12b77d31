"""
Hybrid NetStorage storage driver.

Serves every path from either a local storage driver or NetStorage. The
decision is made per call by a name mapper returning ``Local(name)`` or
``Remote(name)``; by default everything is remote under its own name.

Writes to NetStorage go through a staged write session (local temporary
file, uploaded on commit) because the object store cannot append or
commit incrementally. Reads at an offset download and discard the prefix.

Customization happens once, at construction: ``create_driver`` applies an
ordered sequence of ``DriverOptions -> DriverOptions`` steps before the
driver is handed out. There is no way to reconfigure a driver afterwards.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from .settings import Settings
from .storage.base import FileInfo, FileWriter, StorageDriver
from .storage.errors import (
    ConfigurationError,
    InvalidOffsetError,
    ParseError,
    UnsupportedOperationError,
)
from .storage.netstorage import NetStorageClient
from .storage.registry_factory import make_driver, register_driver
from .storage.staged_writer import local_temp_writer
from .storage.streams import OffsetSkipReader

__all__ = [
    "DRIVER_NAME",
    "Local",
    "Remote",
    "Placement",
    "DriverOptions",
    "HybridDriver",
    "create_driver",
]

logger = logging.getLogger(__name__)

DRIVER_NAME = "netstorage"


@dataclass(frozen=True)
class Local:
    """Path served by the local driver under ``name``."""
    name: str


@dataclass(frozen=True)
class Remote:
    """Path served by NetStorage under ``name``."""
    name: str


Placement = Union[Local, Remote]

NameMapper = Callable[["HybridDriver", str], Placement]
UrlMapper = Callable[["HybridDriver", str, Optional[Dict[str, Any]]], str]
TempWriterFactory = Callable[["HybridDriver", str, bool], FileWriter]
Customization = Callable[["DriverOptions"], "DriverOptions"]


def remote_everything(driver: HybridDriver, path: str) -> Placement:
    """Default name mapper: every path is remote, unchanged."""
    return Remote(path)


@dataclass(frozen=True)
class DriverOptions:
    """
    Pluggable policy of a HybridDriver.

    name_mapper: (driver, path) -> Local | Remote. Called on every
        operation and never cached, so it should be pure if callers
        expect stable placement.
    url_mapper: (driver, path, options) -> url. When None, url_for
        defers to the local driver.
    temp_writer_factory: (driver, path, append) -> FileWriter for remote
        destinations.
    """
    name_mapper: NameMapper = remote_everything
    url_mapper: Optional[UrlMapper] = None
    temp_writer_factory: TempWriterFactory = local_temp_writer

    def customize(self, steps: Iterable[Customization]) -> DriverOptions:
        """Apply customization steps in order."""
        options = self
        for step in steps:
            options = step(options)
            if not isinstance(options, DriverOptions):
                raise TypeError(f"customization {step!r} must return DriverOptions, got {type(options).__name__}")
        return options


class HybridDriver:
    """
    Storage driver over a local driver and NetStorage.

    Design Notes: per-call placement

    Each operation asks the name mapper where its path lives and branches
    on the Local/Remote variant. Local calls are delegated verbatim to the
    local driver with the mapped name; remote calls go to the NetStorage
    client or, for writes, to a staged write session.
    """

    def __init__(self, client: NetStorageClient, *, local: Optional[StorageDriver] = None,
                 options: Optional[DriverOptions] = None,
                 parameters: Optional[Mapping[str, Any]] = None,
                 temp_dir: Optional[str] = None):
        """
        Initialize the driver.

        Args:
            client: NetStorage client
            local: Local storage driver (required only if some path maps to Local)
            options: Placement, URL and staging policy
            parameters: Parameter bag the driver was built from; policy
                functions may consult it
            temp_dir: Directory for staging files (platform default if None)
        """
        self.client = client
        self.local = local
        self.options = options or DriverOptions()
        self.parameters: Dict[str, Any] = dict(parameters or {})
        self._temp_dir = temp_dir

    def name(self) -> str:
        return DRIVER_NAME

    @property
    def temp_dir(self) -> Optional[str]:
        return self._temp_dir

    def _place(self, path: str) -> Placement:
        placement = self.options.name_mapper(self, path)
        if not isinstance(placement, (Local, Remote)):
            raise TypeError(f"name mapper must return Local or Remote, got {type(placement).__name__}")
        return placement

    def _local_driver(self, path: str) -> StorageDriver:
        if self.local is None:
            raise ConfigurationError(f"Path {path} maps to local storage but no local driver is configured")
        return self.local

    # Content

    def get_content(self, path: str) -> bytes:
        """Retrieve the full content stored at ``path``."""
        with self.reader(path, 0) as stream:
            return stream.read()

    def put_content(self, path: str, contents: bytes) -> None:
        """Store ``contents`` at ``path`` through a write session."""
        writer = self.writer(path, append=False)
        try:
            try:
                writer.write(contents)
            except Exception:
                writer.cancel()
                raise
            writer.commit()
        finally:
            writer.close()

    def reader(self, path: str, offset: int = 0) -> BinaryIO:
        """
        Open a stream over the content at ``path`` starting at ``offset``.

        Raises:
            InvalidOffsetError: If offset is negative
        """
        if offset < 0:
            raise InvalidOffsetError(path, offset)

        placement = self._place(path)
        if isinstance(placement, Local):
            return self._local_driver(path).reader(placement.name, offset)

        body = self.client.read(placement.name)
        if offset > 0:
            return OffsetSkipReader(body, offset)
        return body

    def writer(self, path: str, append: bool = False) -> FileWriter:
        """
        Open a write session for ``path``.

        Remote destinations get a staged session: nothing reaches
        NetStorage until commit.
        """
        placement = self._place(path)
        if isinstance(placement, Local):
            return self._local_driver(path).writer(placement.name, append)
        return self.options.temp_writer_factory(self, placement.name, append)

    # Metadata

    def stat(self, path: str) -> FileInfo:
        """
        Return metadata for ``path``.

        Raises:
            ParseError: If NetStorage answers with no entry
        """
        placement = self._place(path)
        if isinstance(placement, Local):
            return self._local_driver(path).stat(placement.name)

        data = self.client.stat(placement.name)
        if not data.files:
            raise ParseError(f"stat response for {placement.name} has no entries")
        entry = data.files[0]
        return FileInfo(
            path=entry.path,
            size=entry.size if entry.is_file else 0,
            mod_time=entry.mod_time,
            is_dir=not entry.is_file,
        )

    def list(self, path: str) -> List[str]:
        """List the names of the direct children of ``path``."""
        placement = self._place(path)
        if isinstance(placement, Local):
            return self._local_driver(path).list(placement.name)
        return [entry.name for entry in self.client.dir(placement.name).files]

    # Namespace

    def move(self, source_path: str, dest_path: str) -> None:
        """
        Move an object, removing the original.

        local -> local:   local driver move
        local -> remote:  upload from the local driver, then delete the source
        remote -> local:  unsupported
        remote -> remote: NetStorage rename

        Raises:
            UnsupportedOperationError: For remote -> local
        """
        source = self._place(source_path)
        dest = self._place(dest_path)

        if isinstance(source, Local) and isinstance(dest, Local):
            self._local_driver(source_path).move(source.name, dest.name)
        elif isinstance(source, Local):
            self._move_from_local(source.name, dest.name)
        elif isinstance(dest, Local):
            raise UnsupportedOperationError(f"Cannot move remote file {source_path} to local {dest_path}")
        else:
            self.client.rename(source.name, dest.name)

    def _move_from_local(self, source: str, dest: str) -> None:
        # Copy then delete: not atomic across the two backends
        local = self._local_driver(source)
        with local.reader(source, 0) as stream:
            self.client.write(dest, stream)
        local.delete(source)
        logger.debug(f"Moved local {source} to remote {dest}")

    def delete(self, path: str) -> None:
        """Recursively delete ``path``."""
        placement = self._place(path)
        if isinstance(placement, Local):
            self._local_driver(path).delete(placement.name)
        else:
            self.client.quick_delete(placement.name)

    def url_for(self, path: str, options: Optional[Dict[str, Any]] = None) -> str:
        """
        Return a URL for the content at ``path``.

        Uses the configured URL mapper; without one, defers to the local
        driver for every path, remote ones included.

        Raises:
            UnsupportedOperationError: If neither a URL mapper nor a local driver exists
        """
        if self.options.url_mapper is not None:
            return self.options.url_mapper(self, path, options)
        if self.local is None:
            raise UnsupportedOperationError(f"url_for is not supported for {path}: no URL mapper or local driver")
        return self.local.url_for(path, options)

    def close(self) -> None:
        self.client.close()


def create_driver(parameters: Optional[Mapping[str, Any]], *,
                  customizations: Iterable[Customization] = (),
                  transport: Optional[httpx.BaseTransport] = None) -> HybridDriver:
    """
    Build a HybridDriver from a parameter bag.

    Args:
        parameters: Driver parameters (see Settings.from_parameters)
        customizations: Steps applied in order to the default DriverOptions
        transport: Optional httpx transport for the NetStorage client

    Returns:
        Fully configured driver

    Raises:
        ConfigurationError: For missing or invalid parameters
    """
    settings = Settings.from_parameters(parameters)

    local = None
    if settings.local_driver is not None:
        local = make_driver(settings.local_driver, settings.local_driver_options)
        logger.debug(f"Using local driver {settings.local_driver}")

    client = NetStorageClient(settings.credentials, timeout_s=settings.http_timeout_s, transport=transport)
    options = DriverOptions().customize(customizations)
    return HybridDriver(client, local=local, options=options, parameters=parameters,
                        temp_dir=settings.tmp_dir)


register_driver(DRIVER_NAME, create_driver)
