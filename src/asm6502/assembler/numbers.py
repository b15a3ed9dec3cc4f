"""
Numeric Literal Parsing
=======================

Parses a single numeric token into an unsigned 32-bit integer.

| Format      | Prefix        | Example            | Value |
|-------------|---------------|--------------------|-------|
| Hexadecimal | $ or 0x / 0X  | $FF, 0xFF, 0XFFh   | 255   |
| Binary      | % or 0b / 0B  | %1010, 0b1010      | 10    |
| Decimal     | (none)        | 123                | 123   |

A trailing ``h`` after a ``0x`` hex literal is accepted and ignored.
There is no sign: negative values only arise from wrapping subtraction
during expression evaluation. Values wider than 32 bits are rejected, so
``$10000`` parses but is only truncated to 16 bits where an address or
byte is needed.
"""

import re
from enum import Enum, auto

from asm6502.errors import AssemblySyntaxError


MAX_VALUE = 0xFFFFFFFF

_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")
_BIN_DIGITS = re.compile(r"[01]+")
_DEC_DIGITS = re.compile(r"[0-9]+")


class NumberFormat(Enum):
    """Notation of a numeric literal."""
    HEXADECIMAL = auto()  # $FF, 0xFF
    BINARY = auto()       # %11111111, 0b11111111
    DECIMAL = auto()      # 255

    def __str__(self) -> str:
        return self.name.lower()


def detect_format(token: str) -> NumberFormat:
    """Detect the notation of a number string from its prefix."""
    text = token.strip()
    if text.startswith(("$", "0x", "0X")):
        return NumberFormat.HEXADECIMAL
    if text.startswith(("%", "0b", "0B")):
        return NumberFormat.BINARY
    return NumberFormat.DECIMAL


def parse_number(token: str) -> int:
    """
    Parse a number string in any supported format.

    Args:
        token: The literal, e.g. "$FF", "0x10h", "%1010", "0b11", "42"

    Returns:
        The unsigned value (0 to 0xFFFFFFFF)

    Raises:
        AssemblySyntaxError: If the digits are not valid for the base
    """
    text = token.strip()

    if text.startswith("$"):
        return _parse_digits(token, text[1:], NumberFormat.HEXADECIMAL)
    if text.startswith(("0x", "0X")):
        digits = text[2:]
        if digits.endswith("h"):
            digits = digits[:-1]
        return _parse_digits(token, digits, NumberFormat.HEXADECIMAL)

    if text.startswith("%"):
        return _parse_digits(token, text[1:], NumberFormat.BINARY)
    if text.startswith(("0b", "0B")):
        return _parse_digits(token, text[2:], NumberFormat.BINARY)

    return _parse_digits(token, text, NumberFormat.DECIMAL)


def is_number(token: str) -> bool:
    """Return True if token parses as a numeric literal."""
    try:
        parse_number(token)
    except AssemblySyntaxError:
        return False
    return True


def _parse_digits(token: str, digits: str, fmt: NumberFormat) -> int:
    """Convert the digit part of a literal, validating it strictly."""
    pattern, base = {
        NumberFormat.HEXADECIMAL: (_HEX_DIGITS, 16),
        NumberFormat.BINARY: (_BIN_DIGITS, 2),
        NumberFormat.DECIMAL: (_DEC_DIGITS, 10),
    }[fmt]

    # int() would also accept "_", "+" and surrounding spaces
    if not pattern.fullmatch(digits):
        raise AssemblySyntaxError(f"invalid {fmt} number '{token.strip()}'")

    value = int(digits, base)
    if value > MAX_VALUE:
        raise AssemblySyntaxError(f"{fmt} number '{token.strip()}' does not fit in 32 bits")
    return value
