"""
Error mapping utilities.

Centralizes exception-to-status mapping for the HTTP layer and
exception-to-exit-code mapping for the CLI, so handlers and commands
never carry their own try/except ladders.
"""
from __future__ import annotations

from typing import Callable, TypeVar

import typer

T = TypeVar('T')

# HTTP status per exception class name
STATUS_CODES = {
    "BadRequest": 400,
    "ValueError": 400,
    "NotFound": 404,
    "ManifestNotFound": 500,
    "ManifestInvalid": 500,
    "ArchiveCorrupt": 500,
    "UpstreamError": 502,
    "UpstreamEmpty": 502,
    "StoreUnavailable": 503,
}

# Galaxy v3 error "code" field per status
ERROR_CODES = {
    400: "invalid",
    404: "not_found",
    405: "method_not_allowed",
    500: "server_error",
    502: "bad_gateway",
    503: "service_unavailable",
}

# CLI exit codes
EXIT_CODES = {
    "NotFound": 1,
    "BadRequest": 2,
    "ValueError": 2,
    "ManifestNotFound": 2,
    "ManifestInvalid": 2,
    "ArchiveCorrupt": 2,
    "UpstreamError": 3,
    "UpstreamEmpty": 3,
    "StoreUnavailable": 3,
}


def status_code_for(exc: BaseException) -> int:
    """
    Map exception to HTTP status code.

    - 400: BadRequest, ValueError
    - 404: NotFound
    - 500: ingestion failures (ManifestNotFound, ManifestInvalid, ArchiveCorrupt)
    - 502: UpstreamError, UpstreamEmpty
    - 503: StoreUnavailable

    Unknown exceptions map to 500.
    """
    return STATUS_CODES.get(type(exc).__name__, 500)


def error_code_for(status: int) -> str:
    """Galaxy v3 error code string for an HTTP status."""
    return ERROR_CODES.get(status, "error")


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to CLI exit code.

    - 1: NotFound
    - 2: invalid input (BadRequest, ValueError, ingestion failures)
    - 3: upstream or store failures, and anything unknown
    """
    return EXIT_CODES.get(type(exc).__name__, 3)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exception to an exit code
    using typer.Exit, printing the message to stderr.
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
