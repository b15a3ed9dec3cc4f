"""
Addressing Mode Resolution and Encoding
=======================================

This module selects the addressing mode for an instruction from its raw
operand text and encodes it into opcode plus operand bytes.

Mode Selection
--------------
| Operand form    | Mode                        | Size |
|-----------------|-----------------------------|------|
| (none)          | implied / accumulator       | 1    |
| A               | accumulator (ASL/LSR/ROL/ROR)| 1   |
| #expr           | immediate                   | 2    |
| (expr),Y        | indirect,Y                  | 2    |
| (expr,X)        | indirect,X                  | 2    |
| expr,X / expr,Y | zeropage,idx or absolute,idx| 2/3  |
| expr            | zeropage or absolute        | 2/3  |

JMP, JSR and the conditional branches have dedicated handlers.

Zero Page vs Absolute
---------------------
The value decides: below $100 selects the zero-page opcode when the
mnemonic has one, otherwise the absolute opcode. A ``<`` prefix forces
zero page and a ``>`` prefix forces absolute:

    LDA $42     ; A5 42
    LDA >$42    ; AD 42 00
    LDA <$1234  ; A5 34

Sizing
------
The size of an instruction is the length of its encoding at a given
address. When it cannot be encoded yet (typically a forward reference
during layout) the size is estimated: 1 byte for a known mnemonic
without operand, 2 bytes for an immediate operand, a branch, an
indirect-indexed operand, a ``<`` forced zero-page operand or a mode
that only exists in zero-page form (``STX zp,Y``), and 3 bytes
otherwise. The estimate always equals the size the instruction is
finally emitted with (absolute form preferred).
"""

import re
from enum import Enum, auto
from typing import Iterable, Optional

from asm6502.errors import (
    AssemblerError,
    AssemblySyntaxError,
    AddressingModeError,
    BranchRangeError,
)
from asm6502.cpu import (
    AddressingMode,
    OpcodeTables,
    ACCUMULATOR_INSTRUCTIONS,
    JMP_ABSOLUTE,
    JMP_INDIRECT,
    JSR_ABSOLUTE,
    BRANCH_SIZE,
    is_branch,
)
from asm6502.assembler.expressions import (
    Expr,
    ExpressionEvaluator,
    parse_expression,
    is_valid_label,
)
from asm6502.assembler.symbols import SymbolTable
from asm6502.assembler.parser import (
    Item,
    Instruction,
    Data,
    Words,
    String,
    IncBin,
)
from asm6502.assembler.binfile import binary_size


_INDIRECT_Y_PATTERN = re.compile(r"^\((?P<addr>.+)\)\s*,\s*Y$", re.IGNORECASE)
_INDIRECT_X_PATTERN = re.compile(r"^\((?P<addr>.+),\s*X\s*\)$", re.IGNORECASE)


class AddressOverride(Enum):
    """Addressing-mode override requested by an operand prefix."""
    AUTO = auto()
    FORCE_ZEROPAGE = auto()   # <expr
    FORCE_ABSOLUTE = auto()   # >expr
    PREFER_ABSOLUTE = auto()  # automatic, absolute when the mnemonic has it


def parse_addr_override(operand: str) -> tuple[str, AddressOverride]:
    """Split a leading '<' or '>' off an operand."""
    if operand.startswith("<"):
        return operand[1:].strip(), AddressOverride.FORCE_ZEROPAGE
    if operand.startswith(">"):
        return operand[1:].strip(), AddressOverride.FORCE_ABSOLUTE
    return operand, AddressOverride.AUTO


def branch_offset(address: int, target: int) -> int:
    """Displacement of a branch at address, measured from the next instruction."""
    return target - (address + BRANCH_SIZE)


def branch_in_range(offset: int) -> bool:
    return -128 <= offset <= 127


def _split_index(operand: str) -> Optional[tuple[str, str]]:
    """Split "expr,idx" on the last comma outside parentheses."""
    depth = 0
    for i in range(len(operand) - 1, -1, -1):
        ch = operand[i]
        if ch == ")":
            depth += 1
        elif ch == "(":
            depth -= 1
        elif ch == "," and depth == 0:
            return operand[:i].strip(), operand[i + 1:].strip()
    return None


def _is_parenthesized(operand: str) -> bool:
    """True if the '(' at the start closes at the very end."""
    if not operand.startswith("(") or not operand.endswith(")"):
        return False
    depth = 0
    for i, ch in enumerate(operand):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i == len(operand) - 1
    return False


def _little_endian(value: int) -> list[int]:
    return [value & 0xFF, (value >> 8) & 0xFF]


# =============================================================================
# Instruction Resolver
# =============================================================================

class InstructionResolver:
    """
    Encodes instructions against a symbol table.

    The resolver reads the symbol table but never modifies it; the
    assembler rebuilds the table between layout passes and reuses the
    same resolver.

    Attributes:
        tables: Opcode tables
        symbols: Symbol table used for operand evaluation
        include_paths: Directories searched for ``.incbin`` files when sizing
    """

    def __init__(
        self,
        tables: OpcodeTables,
        symbols: SymbolTable,
        include_paths: Iterable[str] = (),
    ):
        self.tables = tables
        self.symbols = symbols
        self.include_paths = include_paths

    # =========================================================================
    # Encoding
    # =========================================================================

    def resolve(
        self,
        mnemonic: str,
        operand: Optional[str],
        address: int,
        prefer_absolute: bool = False,
    ) -> bytes:
        """
        Encode one instruction.

        Args:
            mnemonic: Instruction name
            operand: Raw operand text, or None
            address: Address of the opcode byte
            prefer_absolute: Use the absolute form of an automatically
                selected zero-page/absolute mode when the mnemonic has one
                (keeps an instruction at the size it was laid out with)

        Returns:
            Opcode followed by operand bytes

        Raises:
            AssemblerError: If the instruction cannot be encoded
        """
        if operand is None:
            return self._resolve_implied(mnemonic)

        if not self.tables.is_known(mnemonic):
            raise AddressingModeError(f"unknown mnemonic: {mnemonic}", mnemonic)

        if operand == "A" and mnemonic in ACCUMULATOR_INSTRUCTIONS:
            return self._resolve_implied(mnemonic)

        text, override = parse_addr_override(operand)
        if override is AddressOverride.AUTO and prefer_absolute:
            override = AddressOverride.PREFER_ABSOLUTE

        if mnemonic == "JMP":
            return self._resolve_jump(text, address)
        if mnemonic == "JSR":
            value = self._evaluate(parse_expression(text), address)
            return bytes([JSR_ABSOLUTE, *_little_endian(value)])
        if is_branch(mnemonic):
            return self._resolve_branch(mnemonic, text, address)

        if text.startswith("#"):
            return self._resolve_immediate(mnemonic, text, address)

        if text.startswith("("):
            return self._resolve_indirect(mnemonic, text, address)

        indexed = _split_index(text)
        if indexed is not None:
            addr_text, index = indexed
            index = index.upper()
            if index not in ("X", "Y"):
                raise AddressingModeError(
                    f"invalid index register '{index}'",
                    mnemonic,
                    valid_modes=self.tables.valid_modes(mnemonic),
                )
            value = self._evaluate(parse_expression(addr_text), address)
            return self._resolve_direct(
                mnemonic, value, override,
                AddressingMode(f"zeropage,{index}"),
                AddressingMode(f"absolute,{index}"),
            )

        value = self._evaluate(parse_expression(text), address)
        return self._resolve_direct(
            mnemonic, value, override,
            AddressingMode.ZEROPAGE,
            AddressingMode.ABSOLUTE,
        )

    def _resolve_implied(self, mnemonic: str) -> bytes:
        opcode = self.tables.implied(mnemonic)
        if opcode is not None:
            return bytes([opcode])

        if self.tables.is_known(mnemonic):
            raise AddressingModeError(
                f"{mnemonic} requires an operand",
                mnemonic,
                valid_modes=self.tables.valid_modes(mnemonic),
            )
        raise AddressingModeError(f"unknown mnemonic: {mnemonic}", mnemonic)

    def _resolve_jump(self, text: str, address: int) -> bytes:
        if _is_parenthesized(text):
            value = self._evaluate(parse_expression(text[1:-1]), address)
            return bytes([JMP_INDIRECT, *_little_endian(value)])

        value = self._evaluate(parse_expression(text), address)
        return bytes([JMP_ABSOLUTE, *_little_endian(value)])

    def _resolve_branch(self, mnemonic: str, target_name: str, address: int) -> bytes:
        if not is_valid_label(target_name):
            raise AssemblySyntaxError(
                f"branch target must be a label: {target_name}",
            )

        # Raises UndefinedSymbolError with suggestions
        target = self._evaluate(Expr.label(target_name), address)

        offset = branch_offset(address, target)
        if not branch_in_range(offset):
            raise BranchRangeError(target, offset, address)

        return bytes([self.tables.branch(mnemonic), offset & 0xFF])

    def _resolve_immediate(self, mnemonic: str, text: str, address: int) -> bytes:
        value = self._evaluate(parse_expression(text), address)
        if value > 0xFF:
            raise AssemblerError(f"immediate value too large: ${value:04X}")

        opcode = self.tables.immediate(mnemonic)
        if opcode is None:
            raise AddressingModeError(
                f"unsupported mode for {mnemonic}: immediate",
                mnemonic,
                valid_modes=self.tables.valid_modes(mnemonic),
            )
        return bytes([opcode, value])

    def _resolve_indirect(self, mnemonic: str, text: str, address: int) -> bytes:
        match = _INDIRECT_Y_PATTERN.match(text)
        mode = AddressingMode.INDIRECT_Y
        if match is None:
            match = _INDIRECT_X_PATTERN.match(text)
            mode = AddressingMode.INDIRECT_X
        if match is None:
            raise AddressingModeError("invalid indirect addressing mode", mnemonic)

        value = self._evaluate(parse_expression(match.group("addr")), address)
        opcode = self.tables.mode(mnemonic, mode)
        if opcode is None:
            raise AddressingModeError(
                f"unsupported mode for {mnemonic}: {mode}",
                mnemonic,
                valid_modes=self.tables.valid_modes(mnemonic),
            )
        return bytes([opcode, value & 0xFF])

    def _resolve_direct(
        self,
        mnemonic: str,
        value: int,
        override: AddressOverride,
        zeropage_mode: AddressingMode,
        absolute_mode: AddressingMode,
    ) -> bytes:
        """Pick the zero-page or absolute form of a mode."""
        zeropage = self.tables.mode(mnemonic, zeropage_mode)
        absolute = self.tables.mode(mnemonic, absolute_mode)

        use_zeropage = (
            override is AddressOverride.FORCE_ZEROPAGE
            or (override is AddressOverride.AUTO and value < 0x100)
            or (override is AddressOverride.PREFER_ABSOLUTE
                and absolute is None and value < 0x100)
        )
        if use_zeropage and zeropage is not None:
            return bytes([zeropage, value & 0xFF])

        if absolute is None:
            raise AddressingModeError(
                f"unsupported mode for {mnemonic}: {absolute_mode}",
                mnemonic,
                valid_modes=self.tables.valid_modes(mnemonic),
            )
        return bytes([absolute, *_little_endian(value)])

    def _evaluate(self, expr: Expr, address: int) -> int:
        return ExpressionEvaluator(self.symbols, address).evaluate_u16(expr)

    # =========================================================================
    # Sizing
    # =========================================================================

    def estimate_size(self, mnemonic: str, operand: Optional[str]) -> int:
        """Size of an instruction that cannot be encoded yet."""
        if operand is None:
            return 1 if mnemonic in self.tables.opcodes else 3
        text, override = parse_addr_override(operand.strip())
        if text.startswith("#") or is_branch(mnemonic):
            return 2
        if _INDIRECT_Y_PATTERN.match(text) or _INDIRECT_X_PATTERN.match(text):
            return 2

        zeropage_mode, absolute_mode = AddressingMode.ZEROPAGE, AddressingMode.ABSOLUTE
        indexed = _split_index(text)
        if indexed is not None:
            index = indexed[1].upper()
            if index not in ("X", "Y"):
                return 3
            zeropage_mode = AddressingMode(f"zeropage,{index}")
            absolute_mode = AddressingMode(f"absolute,{index}")

        # STX zp,Y and STY zp,X are 2 bytes whatever the value turns out to be
        zeropage = self.tables.mode(mnemonic, zeropage_mode)
        absolute = self.tables.mode(mnemonic, absolute_mode)
        if zeropage is not None and (
            absolute is None or override is AddressOverride.FORCE_ZEROPAGE
        ):
            return 2
        return 3

    def instruction_size(
        self,
        mnemonic: str,
        operand: Optional[str],
        address: int,
    ) -> tuple[int, bool]:
        """
        Size of an instruction at an address.

        Returns:
            (size, estimated): estimated is True when the instruction could
            not be encoded and the size is the fallback estimate
        """
        try:
            return len(self.resolve(mnemonic, operand, address)), False
        except AssemblerError:
            return self.estimate_size(mnemonic, operand), True

    def item_size(self, item: Item, address: int) -> tuple[int, bool]:
        """
        Size in bytes of any item at an address.

        Raises:
            AssemblerIOError: If an included file cannot be inspected
        """
        if isinstance(item, Instruction):
            return self.instruction_size(item.mnemonic, item.operand, address)
        if isinstance(item, Data):
            return len(item.exprs), False
        if isinstance(item, Words):
            return 2 * len(item.exprs), False
        if isinstance(item, String):
            return len(item.encode()), False
        if isinstance(item, IncBin):
            return binary_size(item.filename, self.include_paths), False
        return 0, False
