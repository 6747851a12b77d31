"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands stay thin.
"""
from __future__ import annotations

from datetime import datetime, timezone

import typer

from ..models import DiskUsage, StatData, StatEntry


def print_entry(entry: StatEntry, long: bool = True) -> None:
    """
    Print one stat/dir entry.

    Long format: type, size, mtime (UTC), name, and symlink target if any.
    """
    if not long:
        typer.echo(entry.name)
        return
    mtime = datetime.fromtimestamp(entry.mtime, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    size = str(entry.size) if entry.is_file else "-"
    line = f"{entry.type:<8} {size:>12}  {mtime}  {entry.name}"
    if entry.is_symlink and entry.target:
        line += f" -> {entry.target}"
    typer.echo(line)


def print_stat(data: StatData) -> None:
    """Print stat output with checksums."""
    for entry in data.files:
        typer.echo(f"Path: {entry.path}")
        typer.echo(f"Type: {entry.type}")
        if entry.is_file:
            typer.echo(f"Size: {_format_bytes(entry.size)} ({entry.size} bytes)")
        typer.echo(f"Modified: {entry.mod_time.isoformat()}")
        if entry.md5:
            typer.echo(f"MD5: {entry.md5}")
        if entry.target:
            typer.echo(f"Target: {entry.target}")


def print_listing(data: StatData, long: bool = False) -> None:
    """Print a directory listing sorted by name."""
    for entry in sorted(data.files, key=lambda e: e.name):
        print_entry(entry, long=long)


def print_du(usage: DiskUsage) -> None:
    typer.echo(f"Directory: {usage.directory}")
    typer.echo(f"Files: {usage.files}")
    typer.echo(f"Size: {_format_bytes(usage.bytes)} ({usage.bytes} bytes)")


def print_transfer_summary(verb: str, source: str, dest: str, size: int) -> None:
    typer.echo(f"{verb} {source} -> {dest} ({_format_bytes(size)})")


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes == 0:
        return "0 B"
    elif size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
