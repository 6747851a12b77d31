"""
NetStorage CLI

Thin commands over NetStorageClient:
- stat/ls/du: inspect objects and directories
- get/put: download (optionally from an offset) and upload files
- mv/rm/mkdir/rmdir/symlink/mtime: namespace operations

Credentials come from NETSTORAGE_* environment variables.
"""
from __future__ import annotations

import logging
import os
import shutil
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import print_du, print_listing, print_stat, print_transfer_summary
from .storage.staged_writer import StagedWriteSession
from .storage.streams import OffsetSkipReader

app = typer.Typer(name="netstorage", help="Akamai NetStorage CLI")

COPY_CHUNK_SIZE = 1024 * 1024  # 1 MiB


def _make_context() -> CLIContext:
    return CLIContext.from_env()


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests")
) -> None:
    """Akamai NetStorage CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def stat(path: str = typer.Argument(..., help="Remote object path")) -> None:
    """Show metadata for an object."""

    def _stat() -> None:
        context = _make_context()
        try:
            print_stat(context.client.stat(path))
        finally:
            context.close()

    run_and_exit(_stat)


@app.command("ls")
def list_dir(
    path: str = typer.Argument(..., help="Remote directory path"),
    long: bool = typer.Option(False, "--long", "-l", help="Show type, size and mtime")
) -> None:
    """List the direct children of a directory."""

    def _ls() -> None:
        context = _make_context()
        try:
            print_listing(context.client.dir(path), long=long)
        finally:
            context.close()

    run_and_exit(_ls)


@app.command()
def du(path: str = typer.Argument(..., help="Remote directory path")) -> None:
    """Show file count and total size below a directory."""

    def _du() -> None:
        context = _make_context()
        try:
            print_du(context.client.du(path))
        finally:
            context.close()

    run_and_exit(_du)


@app.command()
def get(
    path: str = typer.Argument(..., help="Remote object path"),
    dest: Optional[str] = typer.Argument(None, help="Local file (stdout if omitted)"),
    offset: int = typer.Option(0, "--offset", min=0, help="Skip this many bytes")
) -> None:
    """Download an object."""

    def _get() -> None:
        context = _make_context()
        try:
            stream = context.client.read(path)
            if offset > 0:
                stream = OffsetSkipReader(stream, offset)
            with stream:
                if dest is None:
                    out = typer.get_binary_stream("stdout")
                    shutil.copyfileobj(stream, out, COPY_CHUNK_SIZE)
                    out.flush()
                    return
                with open(dest, "wb") as out:
                    shutil.copyfileobj(stream, out, COPY_CHUNK_SIZE)
                    size = out.tell()
            print_transfer_summary("Downloaded", path, dest, size)
        finally:
            context.close()

    run_and_exit(_get)


@app.command()
def put(
    source: str = typer.Argument(..., help="Local file, or - for stdin"),
    path: str = typer.Argument(..., help="Remote object path")
) -> None:
    """
    Upload a file, replacing the remote object.

    Stdin is staged in NETSTORAGE_TMP first, since uploads need a length.
    """

    def _put() -> None:
        context = _make_context()
        try:
            if source == "-":
                size = _put_stdin(context, path)
                print_transfer_summary("Uploaded", "stdin", path, size)
                return
            size = os.path.getsize(source)
            with open(source, "rb") as f:
                context.client.write(path, f, size=size)
            print_transfer_summary("Uploaded", source, path, size)
        finally:
            context.close()

    run_and_exit(_put)


def _put_stdin(context: CLIContext, path: str) -> int:
    stdin = typer.get_binary_stream("stdin")
    with StagedWriteSession(context.client, path, temp_dir=context.settings.tmp_dir) as session:
        for chunk in iter(lambda: stdin.read(COPY_CHUNK_SIZE), b""):
            session.write(chunk)
        size = session.size()
        session.commit()
    return size


@app.command()
def mv(
    source: str = typer.Argument(..., help="Remote source path"),
    dest: str = typer.Argument(..., help="Remote destination path")
) -> None:
    """Rename a file or symbolic link."""

    def _mv() -> None:
        context = _make_context()
        try:
            context.client.rename(source, dest)
            typer.echo(f"Renamed {source} -> {dest}")
        finally:
            context.close()

    run_and_exit(_mv)


@app.command()
def rm(
    path: str = typer.Argument(..., help="Remote path"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Quick-delete a whole directory tree"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")
) -> None:
    """Delete an object, or a directory tree with --recursive."""

    def _rm() -> None:
        if recursive and not yes:
            typer.confirm(f"Recursively delete {path} and everything below it?", abort=True)
        context = _make_context()
        try:
            if recursive:
                context.client.quick_delete(path)
            else:
                context.client.delete(path)
            typer.echo(f"Deleted {path}")
        finally:
            context.close()

    run_and_exit(_rm)


@app.command()
def mkdir(path: str = typer.Argument(..., help="Remote directory path")) -> None:
    """Create an empty directory."""

    def _mkdir() -> None:
        context = _make_context()
        try:
            context.client.mkdir(path)
            typer.echo(f"Created {path}")
        finally:
            context.close()

    run_and_exit(_mkdir)


@app.command()
def rmdir(path: str = typer.Argument(..., help="Remote directory path")) -> None:
    """Delete an empty directory."""

    def _rmdir() -> None:
        context = _make_context()
        try:
            context.client.rmdir(path)
            typer.echo(f"Removed {path}")
        finally:
            context.close()

    run_and_exit(_rmdir)


@app.command()
def symlink(
    target: str = typer.Argument(..., help="Path the link points to"),
    path: str = typer.Argument(..., help="Remote path of the new link")
) -> None:
    """Create a symbolic link."""

    def _symlink() -> None:
        context = _make_context()
        try:
            context.client.symlink(target, path)
            typer.echo(f"Linked {path} -> {target}")
        finally:
            context.close()

    run_and_exit(_symlink)


@app.command()
def mtime(
    path: str = typer.Argument(..., help="Remote object path"),
    timestamp: int = typer.Argument(..., min=0, help="Modification time, epoch seconds")
) -> None:
    """Set the modification time of an object."""

    def _mtime() -> None:
        context = _make_context()
        try:
            context.client.mtime(path, timestamp)
            typer.echo(f"Set mtime of {path} to {timestamp}")
        finally:
            context.close()

    run_and_exit(_mtime)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
