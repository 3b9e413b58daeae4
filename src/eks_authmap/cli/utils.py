"""CLI utility functions and error handling.

Errors are printed as plain text to stderr with a non-zero exit code; command
output goes to stdout.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum
from typing import TYPE_CHECKING

import click

from eks_authmap.errors import (
    AuthMapError,
    IdentityValidationError,
    MappingAccessDeniedError,
    MappingDecodeError,
    MappingEncodeError,
    MappingNotFoundError,
    MappingPersistenceError,
)
from eks_authmap.gateway import ConfigMapGateway

if TYPE_CHECKING:
    from typing import NoReturn

    from eks_authmap.config import AuthMapConfig


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    """Command completed successfully."""

    GENERAL_ERROR = 1
    """General error (catch-all for failures)."""

    USAGE_ERROR = 2
    """Invalid usage (bad arguments, missing required options)."""

    NOT_FOUND = 3
    """Requested identity or account is not mapped."""

    PERMISSION_ERROR = 4
    """Access to the ConfigMap was denied."""

    VALIDATION_ERROR = 5
    """Input or stored data failed validation."""

    NETWORK_ERROR = 8
    """Kubernetes API error."""


def error(message: str, **context: str | int | bool | None) -> None:
    """Print an error message to stderr.

    Args:
        message: Error message to display.
        **context: Optional context key-value pairs to include.

    Example:
        error("Identity not found", arn="arn:aws:iam::123:role/x")
        # Output: Error: Identity not found (arn=arn:aws:iam::123:role/x)
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
        full_message = f"Error: {message} ({context_str})"
    else:
        full_message = f"Error: {message}"

    click.echo(full_message, err=True)


def error_exit(
    message: str,
    exit_code: ExitCode = ExitCode.GENERAL_ERROR,
    **context: str | int | bool | None,
) -> NoReturn:
    """Print an error message to stderr and exit with a code.

    Raises:
        SystemExit: Always exits with the specified code.
    """
    error(message, **context)
    sys.exit(exit_code)


def success(message: str) -> None:
    """Print a success message to stdout."""
    click.echo(message)


def exit_code_for(exc: AuthMapError) -> ExitCode:
    """Map a store error to the CLI exit code reported for it."""
    if isinstance(exc, MappingAccessDeniedError):
        return ExitCode.PERMISSION_ERROR
    if isinstance(exc, MappingPersistenceError):
        return ExitCode.NETWORK_ERROR
    if isinstance(exc, MappingNotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(exc, (IdentityValidationError, MappingDecodeError, MappingEncodeError)):
        return ExitCode.VALIDATION_ERROR
    return ExitCode.GENERAL_ERROR


@contextmanager
def handle_store_errors() -> Iterator[None]:
    """Turn store errors raised inside the block into error exits."""
    try:
        yield
    except AuthMapError as e:
        error_exit(e.message, exit_code=exit_code_for(e))


def connect(config: AuthMapConfig) -> ConfigMapGateway:
    """Create and start a gateway for ``config``.

    Raises:
        MappingPersistenceError: If the Kubernetes client cannot be configured.
    """
    gateway = ConfigMapGateway(config)
    gateway.startup()
    return gateway


__all__ = [
    "ExitCode",
    "connect",
    "error",
    "error_exit",
    "exit_code_for",
    "handle_store_errors",
    "success",
]
