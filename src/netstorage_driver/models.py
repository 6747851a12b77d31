"""
Data models for NetStorage responses.

These Pydantic models describe the XML documents returned by the ``stat``,
``dir`` and ``du`` actions. They are transient: built per response and
never cached.
"""
from __future__ import annotations

import posixpath
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, computed_field

from .storage.errors import ParseError

__all__ = ["StatEntry", "StatData", "DiskUsage"]


def _parse_root(body: bytes, what: str) -> ET.Element:
    try:
        return ET.fromstring(body)
    except ET.ParseError as e:
        raise ParseError(f"Malformed {what} response: {e}") from e


class StatEntry(BaseModel):
    """
    One object in a stat or dir listing.

    Only entries of type "file" carry a meaningful size; every other type
    ("dir", "symlink", ...) is treated as directory-like.
    """
    directory: str = Field(default="", description="Containing directory")
    type: str = Field(..., description="Entry kind: file, dir or symlink")
    name: str = Field(..., description="Entry name relative to directory")
    mtime: int = Field(default=0, ge=0, description="Modification time, epoch seconds")
    size: int = Field(default=0, ge=0, description="Size in bytes (files only)")
    md5: Optional[str] = Field(default=None, description="Content checksum")
    target: Optional[str] = Field(default=None, description="Symlink target")

    @computed_field
    @property
    def path(self) -> str:
        return posixpath.join(self.directory, self.name)

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    @property
    def is_symlink(self) -> bool:
        return self.type == "symlink"

    @property
    def mod_time(self) -> datetime:
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc)


class StatData(BaseModel):
    """Entries sharing one directory, as returned by stat and dir."""
    directory: str = Field(default="", description="Directory the entries live in")
    files: List[StatEntry] = Field(default_factory=list)

    @classmethod
    def from_xml(cls, body: bytes) -> StatData:
        """
        Parse a stat/dir XML document.

        Raises:
            ParseError: If the body is not XML or an entry has invalid attributes
        """
        root = _parse_root(body, "stat")
        directory = root.get("directory", "")
        try:
            files = [
                StatEntry.model_validate({**elem.attrib, "directory": directory})
                for elem in root.iter("file")
            ]
            return cls(directory=directory, files=files)
        except ValidationError as e:
            raise ParseError(f"Invalid entry in stat response: {e}") from e


class DiskUsage(BaseModel):
    """Aggregate usage below a directory."""
    directory: str = Field(default="")
    files: int = Field(default=0, ge=0, description="Number of files")
    bytes: int = Field(default=0, ge=0, description="Total size in bytes")

    @classmethod
    def from_xml(cls, body: bytes) -> DiskUsage:
        """
        Parse a du XML document.

        The counters are read from ``du-info`` attributes, falling back to
        child elements of the same name.

        Raises:
            ParseError: If the body is not XML or du-info is missing/invalid
        """
        root = _parse_root(body, "du")
        info = root.find("du-info")
        if info is None:
            raise ParseError("du response has no du-info element")

        values = {}
        for key in ("files", "bytes"):
            value = info.get(key)
            if value is None:
                value = info.findtext(key)
            if value is not None:
                values[key] = value.strip()

        try:
            return cls(directory=root.get("directory", ""), **values)
        except ValidationError as e:
            raise ParseError(f"Invalid du response: {e}") from e
