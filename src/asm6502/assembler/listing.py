"""
Assembly Listing
================

Renders a finished item list as a human-readable listing:

    Assembly Listing:
    Address:  Machine Code  Assembly
    --------------------------------------------------
    $0800:          *=$0800
    $0800:          start:
    $0800: $A9 $42      LDA #$42
    $0802: $8D $00 $02  STA $0200
    $0805: $48 $45 $4C $4C $4F $20... .string "HELLO WORLD"

The renderer lays the items out again on its own symbol table, so it
needs nothing from the assembler beyond the item list and the origin.
It is display only: rows that cannot be rendered (an unreadable include
file, an unresolvable operand) are shown without bytes or skipped, and
never raise.
"""

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from asm6502.errors import AssemblerError, AssemblerIOError
from asm6502.cpu import OpcodeTables
from asm6502.assembler.expressions import ExpressionEvaluator
from asm6502.assembler.symbols import SymbolTable
from asm6502.assembler.parser import (
    Item,
    Instruction,
    Label,
    Constant,
    Data,
    Words,
    String,
    IncBin,
    Org,
)
from asm6502.assembler.resolver import InstructionResolver
from asm6502.assembler.relaxation import LayoutEntry, SKIP_LABEL_PREFIX, compute_layout
from asm6502.assembler.binfile import read_binary, write_text

logger = logging.getLogger(__name__)

# Bytes shown before a row is abbreviated with "..."
PREVIEW_BYTES = 6

_HEX_COLUMN = 12
_BLANK_CODE = " " * 10


def _hex(data: Iterable[int]) -> str:
    return " ".join(f"${b:02X}" for b in data)


def _preview(data: bytes) -> str:
    text = f"{_hex(data[:PREVIEW_BYTES]):<{_HEX_COLUMN}}"
    if len(data) > PREVIEW_BYTES:
        text += "..."
    return text


# =============================================================================
# Rendering
# =============================================================================

def render_listing(
    items: list[Item],
    origin: int,
    symbols: Optional[Mapping[str, int]] = None,
    include_paths: Iterable[str | Path] = (),
) -> str:
    """
    Render a listing of an assembled item list.

    Args:
        items: Item list as returned by the assembler
        origin: Origin the items were assembled at
        symbols: If given, a symbol table section is appended
        include_paths: Directories searched for ``.incbin`` previews

    Returns:
        The listing text
    """
    resolver = InstructionResolver(OpcodeTables(), SymbolTable(), list(include_paths))
    layout = compute_layout(items, origin, resolver)

    lines = [
        "Assembly Listing:",
        "Address:  Machine Code  Assembly",
        "-" * 50,
    ]
    for item, entry in zip(items, layout):
        row = _render_item(item, entry, resolver)
        if row is not None:
            lines.append(row.rstrip())

    if symbols:
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        lines.extend(
            f"{name:20s} = ${value:04X}"
            for name, value in sorted(symbols.items())
            if not name.startswith(SKIP_LABEL_PREFIX)
        )

    return "\n".join(lines) + "\n"


def _render_item(
    item: Item,
    entry: LayoutEntry,
    resolver: InstructionResolver,
) -> Optional[str]:
    address = entry.address
    evaluator = ExpressionEvaluator(resolver.symbols, address)

    if isinstance(item, Label):
        return f"${address:04X}:{_BLANK_CODE}{item.name}:"

    if isinstance(item, Constant):
        value = evaluator.try_evaluate(item.expr)
        if value is None:
            return None
        return f"{' ' * 14}{item.name} = ${value:04X}"

    if isinstance(item, Org):
        target = evaluator.try_evaluate(item.expr)
        if target is None:
            return None
        return f"${address:04X}:{_BLANK_CODE}*=${target:04X}"

    if isinstance(item, Instruction):
        try:
            code = resolver.resolve(
                item.mnemonic, item.operand, address,
                prefer_absolute=entry.estimated,
            )
        except AssemblerError:
            code = b""
        return f"${address:04X}: {_hex(code):<{_HEX_COLUMN}} {item}"

    if isinstance(item, Data):
        values = [evaluator.try_evaluate(e) for e in item.exprs]
        data = bytes(v & 0xFF for v in values if v is not None)
        return f"${address:04X}: {_preview(data)} .byte {_hex(data)}"

    if isinstance(item, Words):
        words = [w for w in (evaluator.try_evaluate(e) for e in item.exprs) if w is not None]
        data = b"".join(bytes([w & 0xFF, w >> 8]) for w in words)
        word_text = ",".join(f"${w:04X}" for w in words)
        return f"${address:04X}: {_preview(data)} .word {word_text}"

    if isinstance(item, String):
        return f'${address:04X}: {_preview(item.encode())} .string "{item.text}"'

    if isinstance(item, IncBin):
        try:
            data = read_binary(item.filename, resolver.include_paths)
        except AssemblerIOError as e:
            logger.debug(f"No listing preview for {item.filename}: {e}")
            return None
        return (
            f'${address:04X}: {_preview(data)} .incbin "{item.filename}" '
            f"({len(data)} bytes)"
        )

    return None


def print_listing(
    items: list[Item],
    origin: int,
    symbols: Optional[Mapping[str, int]] = None,
    include_paths: Iterable[str | Path] = (),
) -> None:
    print(render_listing(items, origin, symbols, include_paths), end="")


def save_listing(
    filepath: str | Path,
    items: list[Item],
    origin: int,
    symbols: Optional[Mapping[str, int]] = None,
    include_paths: Iterable[str | Path] = (),
) -> None:
    """
    Write a listing to a file.

    Raises:
        AssemblerIOError: If the file cannot be written
    """
    write_text(filepath, render_listing(items, origin, symbols, include_paths))


# =============================================================================
# Symbol Files
# =============================================================================

def format_symbols(symbols: Mapping[str, int]) -> str:
    """
    Format a symbol table as text.

    Format: name $ADDR (one per line, sorted by name); generated skip
    labels are omitted.
    """
    lines = ["# Symbol table", "# Generated by asm6502"]
    lines.extend(
        f"{name} ${value:04X}"
        for name, value in sorted(symbols.items())
        if not name.startswith(SKIP_LABEL_PREFIX)
    )
    return "\n".join(lines) + "\n"
