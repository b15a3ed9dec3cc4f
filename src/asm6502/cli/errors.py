"""
Exit Codes and Error Reporting for asm6502
==========================================

The command never lets an exception escape to the interpreter: every
failure is printed to stderr and turned into one of the ExitCode values,
so build scripts can tell a broken program (1) from a broken invocation
or file system problem (2).

| Exception                               | Exit code      |
|-----------------------------------------|----------------|
| AssemblerIOError                        | INVALID_ARGS   |
| any other Asm6502Error                  | BUILD_ERROR    |
| click.BadParameter, missing/denied file | INVALID_ARGS   |
| anything else                           | INTERNAL_ERROR |
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from asm6502.errors import Asm6502Error, AssemblerIOError


class ExitCode(IntEnum):
    """Process exit status of the asm6502 command."""
    SUCCESS = 0
    BUILD_ERROR = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3


def _fail(message: str, code: ExitCode) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(code)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Print an exception the way the asm6502 command reports it, then exit.

    Assembly errors are printed as formatted by AssemblerError (location,
    source line, hint) under an "<error_type> failed" heading. A traceback
    is only shown for unexpected exceptions, and only with --verbose.

    Args:
        error: Exception caught by the command
        verbose: Show the traceback of unexpected exceptions
        error_type: Name of the failed step, e.g. "Assembly"
    """
    if isinstance(error, AssemblerIOError):
        _fail(f"Error: {error}", ExitCode.INVALID_ARGS)

    if isinstance(error, Asm6502Error):
        heading = f"{error_type} failed\n" if error_type else ""
        _fail(f"{heading}{error}", ExitCode.BUILD_ERROR)

    if isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        _fail(f"Error: {error}", ExitCode.INVALID_ARGS)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
