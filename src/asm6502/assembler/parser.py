"""
6502 Assembly Line Parser
=========================

This module classifies comment-stripped source lines into structured
items the assembler lays out and encodes.

Item Types
----------
1. **Label**: marks the current address
   ```asm
   loop:
   table: DCB $01 $02        ; label plus statement on one line
   ```

2. **Constant**: binds a name to an expression evaluated at its position
   ```asm
   SCREEN = $0400
   here = *+1
   ```

3. **Org**: sets the current address
   ```asm
   *=$0800
   ```

4. **Data directives**
   ```asm
   .byte $01, <table, >table ; one byte per expression
   .word start, $1234        ; two bytes per expression, little-endian
   .string "HELLO"           ; raw text bytes
   .incbin "font.bin"        ; raw file bytes
   DCB $01 $02 $03           ; space-separated bytes
   ```

5. **Instruction**: mnemonic plus raw operand text
   ```asm
   LDA #$42
   STA (ptr),Y
   ```

Classification Order
--------------------
Several forms overlap textually (``SCREEN = $0400`` contains no colon but
``*=$0800`` contains ``=``), so the rules are tried in a fixed order and
the first match wins:

1. ``label: statement`` on one line
2. line ending in ``:``
3. ``name = expr`` (line not starting with ``*``)
4. ``*= expr``
5. ``.byte``, ``.word``, ``.string``, ``.incbin``
6. ``DCB``
7. instruction, split on the first whitespace run

Instruction operands stay as raw text: the addressing mode depends on
symbol values that are only known during layout.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from asm6502.errors import (
    AssemblerError,
    AssemblySyntaxError,
    DirectiveError,
    SourceLocation,
)
from asm6502.assembler.expressions import Expr, parse_expression, is_valid_label


# =============================================================================
# Item Data Classes
# =============================================================================

@dataclass
class Item:
    """
    Base class for all parsed items.

    ``line`` is the 1-based source line the item came from (0 for items
    synthesized by the assembler). It is excluded from comparisons so that
    items compare by content.
    """
    line: int = field(default=0, compare=False, kw_only=True)


@dataclass
class Instruction(Item):
    """
    Machine instruction.

    Attributes:
        mnemonic: Instruction name as written (mnemonics are case-sensitive)
        operand: Raw operand text, or None for implied instructions
    """
    mnemonic: str
    operand: Optional[str] = None

    def __str__(self) -> str:
        if self.operand is None:
            return self.mnemonic
        return f"{self.mnemonic} {self.operand}"


@dataclass
class Label(Item):
    """Label definition; contributes zero bytes."""
    name: str


@dataclass
class Constant(Item):
    """Named constant, evaluated at its position in the layout."""
    name: str
    expr: Expr


@dataclass
class Data(Item):
    """One byte (low byte of the value) per expression."""
    exprs: list[Expr]


@dataclass
class Words(Item):
    """Two bytes per expression, little-endian."""
    exprs: list[Expr]


@dataclass
class String(Item):
    """Raw bytes of the text."""
    text: str

    def encode(self) -> bytes:
        return self.text.encode("utf-8")


@dataclass
class IncBin(Item):
    """Raw bytes of a file, read at assembly time."""
    filename: str


@dataclass
class Org(Item):
    """Sets the current address; emits nothing."""
    expr: Expr


# =============================================================================
# Line Patterns
# =============================================================================

_MNEMONIC_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9]*")
_ORG_PATTERN = re.compile(r"^\*\s*=")
_DIRECTIVE_PATTERN = re.compile(r"^(\.[A-Za-z_][A-Za-z0-9_]*)\b")
_DCB_PATTERN = re.compile(r"^DCB\b")


def strip_comment(line: str) -> str:
    """Remove everything from the first ';' and trim whitespace."""
    return line.split(";", 1)[0].strip()


# =============================================================================
# Parser
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> list[Item]:
    """
    Parse a whole source text into an ordered item list.

    Args:
        source: Assembly source text
        filename: Name used in error locations

    Returns:
        Items in source order; blank and comment-only lines produce nothing

    Raises:
        AssemblerError: On the first line that fails to parse, annotated
            with its line number and text
    """
    items: list[Item] = []

    for line_num, raw in enumerate(source.splitlines(), start=1):
        text = strip_comment(raw)
        if not text:
            continue

        try:
            parsed = parse_line(text)
        except AssemblerError as e:
            if e.location is None:
                e.set_location(SourceLocation(filename, line_num), text)
            raise

        for item in parsed:
            item.line = line_num
        items.extend(parsed)

    return items


def parse_line(line: str) -> list[Item]:
    """
    Classify one source line.

    Returns:
        Zero items for a blank or comment-only line, one item for most
        lines, or a Label followed by the items of the rest of the line
        for ``label: statement``.

    Raises:
        AssemblySyntaxError: If the line matches no valid form
    """
    text = strip_comment(line)
    if not text:
        return []

    # "label: statement" on one line
    name, sep, rest = text.partition(":")
    name = name.strip()
    rest = rest.strip()
    if sep and rest and is_valid_label(name):
        return [Label(name), *parse_line(rest)]

    # "label:"
    if text.endswith(":"):
        name = text[:-1].strip()
        if not is_valid_label(name):
            raise AssemblySyntaxError(f"invalid label name '{name}'")
        return [Label(name)]

    # "NAME = expr"
    if "=" in text and not text.startswith("*"):
        constant = _parse_constant(text)
        if constant is not None:
            return [constant]

    # "*=expr"
    match = _ORG_PATTERN.match(text)
    if match:
        return [Org(parse_expression(text[match.end():]))]

    if text.startswith("."):
        return [_parse_directive(text)]

    if _DCB_PATTERN.match(text):
        return [Data([parse_expression(tok) for tok in text[3:].split()])]

    return [_parse_instruction(text)]


def _parse_constant(text: str) -> Optional[Constant]:
    """Parse "NAME = expr", or return None if the left side is not a name."""
    name, _, value = text.partition("=")
    name = name.strip()

    if not name or not name[0].isalpha():
        return None
    if not is_valid_label(name):
        raise AssemblySyntaxError(f"invalid constant name '{name}'")

    return Constant(name, parse_expression(value))


def _parse_directive(text: str) -> Item:
    match = _DIRECTIVE_PATTERN.match(text)
    directive = match.group(1) if match else text.split()[0]
    rest = text[len(directive):].strip()

    if directive == ".byte":
        return Data(_parse_expression_list(rest, directive))

    if directive == ".word":
        return Words(_parse_expression_list(rest, directive))

    if directive == ".string":
        return String(_parse_quoted(rest, directive))

    if directive == ".incbin":
        return IncBin(_parse_quoted(rest, directive))

    raise DirectiveError(f"unknown directive '{directive}'")


def _parse_expression_list(text: str, directive: str) -> list[Expr]:
    if not text:
        raise DirectiveError(f"{directive} requires at least one value")
    return [parse_expression(part) for part in text.split(",")]


def _parse_quoted(text: str, directive: str) -> str:
    """Return the text between matching double quotes."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    raise DirectiveError(
        f"invalid {directive} format, expected quotes",
        hint=f'{directive} "..."',
    )


def _parse_instruction(text: str) -> Instruction:
    parts = text.split(None, 1)
    mnemonic = parts[0]

    if not _MNEMONIC_PATTERN.fullmatch(mnemonic):
        raise AssemblySyntaxError(f"unrecognized statement '{text}'")

    operand = parts[1].strip() if len(parts) > 1 else None
    return Instruction(mnemonic, operand)
