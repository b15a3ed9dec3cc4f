"""
6502 Assembler Main Interface
=============================

This module provides the high-level interface to the assembler: the
Assembler6502 class, which coordinates parsing, branch relaxation,
layout and byte emission.

Usage
-----
Basic assembly:

    from asm6502 import Assembler6502

    asm = Assembler6502()
    code = asm.assemble_bytes('''
        *=$0800
        LDA #$42
        STA $0200
    ''')

With symbols and a listing:

    asm = Assembler6502(origin=0x0800, include_paths=["assets"])
    code, items = asm.assemble(source)
    print(asm.symbols())
    print(asm.listing())

Assembly Pipeline
-----------------
1. **Parse** the source into items (labels, constants, directives,
   instructions with raw operand text).
2. **Relax** long branches: rewrite every conditional branch whose
   target is out of range until the layout is stable.
3. **Pass 1** lays the stable item list out, defining every label and
   constant; errors in constants and ``*=`` are fatal here.
4. **Pass 2** encodes every item at its laid-out address. Instructions
   that could not be encoded during layout were sized as absolute-mode
   instructions and are emitted in that form, so addresses never drift.

Each call to assemble() starts from a cleared symbol table; state left
by a previous call only survives through symbols()/lookup() until the
next call or reset().
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from asm6502.errors import (
    AssemblerError,
    AssemblerIOError,
    SourceLocation,
)
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
    parse_source,
)
from asm6502.assembler.resolver import InstructionResolver
from asm6502.assembler.relaxation import (
    BranchRelaxer,
    LayoutEntry,
    compute_layout,
)
from asm6502.assembler.binfile import read_binary, write_binary, write_text
from asm6502.assembler.listing import (
    render_listing,
    print_listing,
    save_listing,
    format_symbols,
)

logger = logging.getLogger(__name__)


class Assembler6502:
    """
    MOS 6502 assembler.

    One instance assembles one program at a time; calls are not
    re-entrant. Call reset() between unrelated programs to drop the
    symbols and origin of the previous one.

    Attributes:
        DEFAULT_ORIGIN: Origin used when none is configured
    """

    DEFAULT_ORIGIN = 0x0080

    def __init__(
        self,
        origin: int = DEFAULT_ORIGIN,
        include_paths: Optional[Iterable[str | Path]] = None,
    ):
        """
        Initialize the assembler.

        Args:
            origin: Address of the first emitted byte unless the source
                    sets one with ``*=``
            include_paths: Directories searched for ``.incbin`` files
        """
        self._origin = origin & 0xFFFF
        self._include_paths: list[Path] = []
        self._tables = OpcodeTables()
        self._symbols = SymbolTable()
        self._resolver = InstructionResolver(
            self._tables, self._symbols, self._include_paths
        )
        self._items: list[Item] = []
        self._filename = "<input>"

        if include_paths:
            for path in include_paths:
                self.add_include_path(path)

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def origin(self) -> int:
        """Address of the first emitted byte."""
        return self._origin

    def set_origin(self, address: int) -> None:
        self._origin = address & 0xFFFF

    @property
    def include_paths(self) -> list[Path]:
        return list(self._include_paths)

    def add_include_path(self, path: str | Path) -> None:
        """
        Add a directory to search for ``.incbin`` files.

        Args:
            path: Directory path to add
        """
        path = Path(path)
        if not path.is_dir():
            logger.warning(f"Include path '{path}' is not a directory")
            return
        if path not in self._include_paths:
            self._include_paths.append(path)

    def reset(self) -> None:
        """Clear all symbols and restore the default origin."""
        self._symbols.clear()
        self._items = []
        self._origin = self.DEFAULT_ORIGIN

    # =========================================================================
    # Symbol Access
    # =========================================================================

    def symbols(self) -> dict[str, int]:
        """Symbols of the last assembly, including generated skip labels."""
        return self._symbols.labels()

    def lookup(self, name: str) -> Optional[int]:
        return self._symbols.get(name)

    @property
    def items(self) -> list[Item]:
        """Item list of the last assembly, after branch expansion."""
        return list(self._items)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def parse_source(self, source: str, filename: str = "<input>") -> list[Item]:
        """Parse source text into items without assembling it."""
        return parse_source(source, filename)

    def assemble(
        self,
        source: str,
        filename: str = "<input>",
    ) -> tuple[bytes, list[Item]]:
        """
        Assemble source text.

        Args:
            source: Assembly source code
            filename: Name used in error locations

        Returns:
            (machine code, item list after branch expansion)

        Raises:
            AssemblerError: If the program is invalid
            AssemblerIOError: If an included file cannot be read
        """
        code, items, _ = self._assemble(source, filename)
        return code, items

    def assemble_bytes(self, source: str) -> bytes:
        """Assemble source text and return only the machine code."""
        code, _ = self.assemble(source)
        return code

    def assemble_full(self, source: str) -> tuple[bytes, list[Item]]:
        return self.assemble(source)

    def assemble_into(self, source: str, out: bytearray) -> None:
        """
        Assemble into a caller-supplied buffer.

        The buffer is cleared first; on failure it is left empty.
        """
        out.clear()
        code, _ = self.assemble(source)
        out.extend(code)

    def assemble_with_symbols(self, source: str) -> tuple[bytes, dict[str, int]]:
        """Assemble and return the machine code with a copy of the symbol table."""
        code, _ = self.assemble(source)
        return code, self.symbols()

    def assemble_with_addr_map(
        self,
        source: str,
    ) -> tuple[bytes, list[tuple[int, int]]]:
        """
        Assemble and map every emitted byte back to its origin.

        Returns:
            (machine code, map) where map[i] is (item index, address) of
            code[i]; item indices refer to the expanded item list
        """
        code, _, addr_map = self._assemble(source, "<input>")
        return code, addr_map

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        The file's directory is searched for ``.incbin`` files before the
        configured include paths.

        Args:
            filepath: Path to assembly source file

        Returns:
            Generated machine code

        Raises:
            AssemblerError: If assembly fails
            AssemblerIOError: If the source file cannot be read
        """
        filepath = Path(filepath)
        try:
            source = filepath.read_text(encoding="utf-8")
        except OSError as e:
            raise AssemblerIOError(filepath, e.strerror or str(e)) from e

        source_dir = filepath.parent
        if source_dir not in self._include_paths:
            self._include_paths.insert(0, source_dir)

        logger.debug(f"Assembling {filepath}")
        code, _ = self.assemble(source, str(filepath))
        return code

    def assemble_instruction(
        self,
        mnemonic: str,
        operand: Optional[str],
        address: int,
    ) -> bytes:
        """Encode a single instruction against the current symbol table."""
        return self._resolver.resolve(mnemonic, operand, address)

    def fix_long_branches(self, items: list[Item]) -> tuple[list[Item], bool]:
        """
        Run one relaxation iteration over items.

        Returns:
            (new item list, True if any branch was expanded); items itself
            is not modified
        """
        relaxer = BranchRelaxer(self._resolver, self._origin, _defined_names(items))
        return relaxer.fix_long_branches(items)

    # =========================================================================
    # Assembly Core
    # =========================================================================

    def _assemble(
        self,
        source: str,
        filename: str,
    ) -> tuple[bytes, list[Item], list[tuple[int, int]]]:
        self._filename = filename
        self._items = []

        items = parse_source(source, filename)
        logger.debug(f"Parsed {len(items)} items")

        relaxer = BranchRelaxer(self._resolver, self._origin, _defined_names(items))
        items = relaxer.relax(items)

        # Pass 1: addresses and symbols
        layout = compute_layout(
            items, self._origin, self._resolver, strict=True, filename=filename
        )
        logger.debug(f"Pass 1 defined {len(self._symbols)} symbols")

        # Pass 2: emission
        code = bytearray()
        addr_map: list[tuple[int, int]] = []
        for index, (item, entry) in enumerate(zip(items, layout)):
            chunk = self._emit_item(item, entry)
            code.extend(chunk)
            addr_map.extend(
                (index, (entry.address + offset) & 0xFFFF)
                for offset in range(len(chunk))
            )

        logger.debug(f"Pass 2 emitted {len(code)} bytes")
        self._items = items
        return bytes(code), items, addr_map

    def _emit_item(self, item: Item, entry: LayoutEntry) -> bytes:
        address = entry.address

        if isinstance(item, Instruction):
            try:
                code = self._resolver.resolve(
                    item.mnemonic, item.operand, address,
                    prefer_absolute=entry.estimated,
                )
            except AssemblerError as e:
                raise self._locate(e, item).add_context(f"${address:04X}: {item}")

            if len(code) != entry.size:
                raise self._locate(AssemblerError(
                    f"${address:04X}: {item} encodes to {len(code)} bytes "
                    f"but was laid out as {entry.size}",
                    hint="define zero-page symbols before the instructions that use them",
                ), item)
            return code

        if isinstance(item, Data):
            evaluator = ExpressionEvaluator(self._symbols, address)
            try:
                return bytes(evaluator.evaluate_u16(e) & 0xFF for e in item.exprs)
            except AssemblerError as e:
                raise self._locate(e, item).add_context(f".byte directive at ${address:04X}")

        if isinstance(item, Words):
            evaluator = ExpressionEvaluator(self._symbols, address)
            out = bytearray()
            try:
                for expr in item.exprs:
                    value = evaluator.evaluate_u16(expr)
                    out += bytes([value & 0xFF, value >> 8])
            except AssemblerError as e:
                raise self._locate(e, item).add_context(f".word directive at ${address:04X}")
            return bytes(out)

        if isinstance(item, String):
            return item.encode()

        if isinstance(item, IncBin):
            return read_binary(
                item.filename,
                self._include_paths,
                context=f'.incbin "{item.filename}" at ${address:04X}',
            )

        # Label, Constant and Org emit nothing
        return b""

    def _locate(self, error: AssemblerError, item: Item) -> AssemblerError:
        if error.location is None and item.line:
            error.set_location(SourceLocation(self._filename, item.line))
        return error

    # =========================================================================
    # Output Methods
    # =========================================================================

    def listing(self) -> str:
        """Listing of the last assembly."""
        return render_listing(
            self._items,
            self._origin,
            symbols=self._symbols.labels(),
            include_paths=self._include_paths,
        )

    def print_listing(self) -> None:
        print_listing(
            self._items,
            self._origin,
            symbols=self._symbols.labels(),
            include_paths=self._include_paths,
        )

    def save_listing(self, filepath: str | Path) -> None:
        """
        Write the listing of the last assembly to a file.

        Raises:
            AssemblerIOError: If the file cannot be written
        """
        save_listing(
            filepath,
            self._items,
            self._origin,
            symbols=self._symbols.labels(),
            include_paths=self._include_paths,
        )

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the symbol table of the last assembly.

        Format: name $ADDR (one per line, sorted by name)
        """
        write_text(filepath, format_symbols(self._symbols.labels()))

    @staticmethod
    def write_bin(data: bytes, target: str | Path | BinaryIO) -> None:
        """
        Write machine code to a file path or binary stream.

        Raises:
            AssemblerIOError: If writing fails
        """
        if isinstance(target, (str, Path)):
            write_binary(target, data)
            return

        try:
            target.write(data)
        except OSError as e:
            name = getattr(target, "name", "<stream>")
            raise AssemblerIOError(name, e.strerror or str(e)) from e


def _defined_names(items: Iterable[Item]) -> set[str]:
    """Names the program defines as labels or constants."""
    return {
        item.name for item in items
        if isinstance(item, (Label, Constant))
    }
