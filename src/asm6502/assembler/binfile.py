"""
Binary File Access
==================

Whole-buffer reads for ``.incbin`` and whole-buffer writes for assembled
output. Every failure surfaces as AssemblerIOError, which is kept apart
from AssemblerError so callers can tell a bad program from a bad
environment.

Include files are looked up in this order:

1. each directory in the search path list
2. the filename as given (absolute, or relative to the working directory)
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from asm6502.errors import AssemblerIOError

logger = logging.getLogger(__name__)


def resolve_include_path(
    filename: str,
    search_paths: Iterable[str | Path] = (),
) -> Optional[Path]:
    """
    Resolve an include filename to an existing file.

    Args:
        filename: Name as written in the ``.incbin`` directive
        search_paths: Directories to try before the name as given

    Returns:
        The first existing candidate, or None
    """
    candidate = Path(filename)
    if not candidate.is_absolute():
        for directory in search_paths:
            path = Path(directory) / filename
            if path.is_file():
                return path

    if candidate.is_file():
        return candidate

    return None


def read_binary(
    filename: str,
    search_paths: Iterable[str | Path] = (),
    context: Optional[str] = None,
) -> bytes:
    """
    Read an include file verbatim.

    Raises:
        AssemblerIOError: If the file cannot be found or read
    """
    path = resolve_include_path(filename, search_paths) or Path(filename)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise AssemblerIOError(filename, e.strerror or str(e), context) from e

    logger.debug(f"Read {len(data)} bytes from {path}")
    return data


def binary_size(
    filename: str,
    search_paths: Iterable[str | Path] = (),
) -> int:
    """
    Size in bytes of an include file, without reading it.

    Raises:
        AssemblerIOError: If the file cannot be found or inspected
    """
    path = resolve_include_path(filename, search_paths) or Path(filename)
    try:
        return path.stat().st_size
    except OSError as e:
        raise AssemblerIOError(filename, e.strerror or str(e)) from e


def write_binary(filepath: str | Path, data: bytes) -> None:
    """
    Write bytes to a file, replacing its contents.

    Raises:
        AssemblerIOError: If the file cannot be written
    """
    try:
        with open(filepath, "wb") as f:
            f.write(data)
    except OSError as e:
        raise AssemblerIOError(filepath, e.strerror or str(e)) from e

    logger.debug(f"Wrote {len(data)} bytes to {filepath}")


def write_text(filepath: str | Path, text: str) -> None:
    """
    Write a text file (listing, symbols), replacing its contents.

    Raises:
        AssemblerIOError: If the file cannot be written
    """
    try:
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise AssemblerIOError(filepath, e.strerror or str(e)) from e
