"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "ProtocolError": 1,
    "ConfigurationError": 2,
    "InvalidPathError": 2,
    "InvalidOffsetError": 2,
    "ValueError": 2,
    "TransportError": 3,
    "ParseError": 4,
    "UnsupportedOperationError": 5,
    "LocalIOError": 6,
    "FileNotFoundError": 6,
    "SessionStateError": 7,
    "NetStorageError": 7,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 1: Object store rejected the request (ProtocolError)
    - 2: Invalid configuration, path or offset
    - 3: Network error (TransportError) or unknown error
    - 4: Malformed response (ParseError)
    - 5: Unsupported operation
    - 6: Local file error
    - 7: Write session misuse or other driver error

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-7, with 3 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, 3)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function, reports any exception on stderr and maps
    it to an exit code using typer.Exit.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
