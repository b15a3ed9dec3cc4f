"""
MOS 6502 Instruction Set Definition
===================================

This module defines the 6502 opcode tables used by the assembler. The
tables are plain dictionaries built once at import time and exposed
read-only through OpcodeTables.

Addressing Modes
----------------
The tables distinguish these encodings:

1. **Implied / accumulator**: no operand (e.g. NOP, RTS, ASL)
   - 1 byte. Example: RTS -> $60

2. **Immediate**: literal byte follows the opcode (e.g. LDA #$42)
   - 2 bytes. Example: LDA #$42 -> $A9 $42

3. **Zero page** (``zeropage``, ``zeropage,X``, ``zeropage,Y``)
   - 2 bytes: opcode + low address byte

4. **Absolute** (``absolute``, ``absolute,X``, ``absolute,Y``)
   - 3 bytes: opcode + little-endian 16-bit address

5. **Indexed indirect / indirect indexed** (``indirect,X``, ``indirect,Y``)
   - 2 bytes: opcode + zero-page pointer address

6. **Relative**: conditional branches
   - 2 bytes: opcode + signed 8-bit displacement from the next instruction

JMP and JSR have their own fixed encodings (JMP_ABSOLUTE, JMP_INDIRECT,
JSR_ABSOLUTE) and are handled by dedicated resolver paths.

The 6502 is little-endian: the low byte of a 16-bit operand comes first.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# Addressing Mode Vocabulary
# =============================================================================

class AddressingMode(Enum):
    """
    Names of the table-driven (non implied/immediate) addressing modes.

    The enum values are the fixed mode-name vocabulary of the extended
    opcode table, so ``AddressingMode("zeropage,X")`` looks a mode up by
    name.
    """
    ZEROPAGE = "zeropage"
    ZEROPAGE_X = "zeropage,X"
    ZEROPAGE_Y = "zeropage,Y"
    ABSOLUTE = "absolute"
    ABSOLUTE_X = "absolute,X"
    ABSOLUTE_Y = "absolute,Y"
    INDIRECT_X = "indirect,X"
    INDIRECT_Y = "indirect,Y"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Fixed Encodings
# =============================================================================

JMP_ABSOLUTE = 0x4C
JMP_INDIRECT = 0x6C
JSR_ABSOLUTE = 0x20


# =============================================================================
# Implied and Immediate Opcodes
# =============================================================================
# No 6502 mnemonic has both an implied and an immediate form, so the two
# tables can be merged into the single mnemonic -> opcode mapping exposed
# by OpcodeTables.opcodes.
# =============================================================================

IMPLIED_OPCODES: dict[str, int] = {
    # Register increments / decrements
    "INX": 0xE8, "INY": 0xC8, "DEX": 0xCA, "DEY": 0x88,
    # Accumulator shifts and rotates
    "ASL": 0x0A, "LSR": 0x4A, "ROL": 0x2A, "ROR": 0x6A,
    # Subroutine / interrupt return
    "RTS": 0x60, "RTI": 0x40,
    # Flag operations
    "CLC": 0x18, "SEC": 0x38, "CLD": 0xD8, "SED": 0xF8,
    "CLI": 0x58, "SEI": 0x78, "CLV": 0xB8,
    # Register transfers
    "TAX": 0xAA, "TXA": 0x8A, "TAY": 0xA8, "TYA": 0x98,
    "TSX": 0xBA, "TXS": 0x9A,
    # Stack
    "PHA": 0x48, "PLA": 0x68, "PHP": 0x08, "PLP": 0x28,
    # System
    "NOP": 0xEA, "BRK": 0x00,
}

IMMEDIATE_OPCODES: dict[str, int] = {
    "LDA": 0xA9, "LDX": 0xA2, "LDY": 0xA0,
    "ADC": 0x69, "SBC": 0xE9,
    "AND": 0x29, "ORA": 0x09, "EOR": 0x49,
    "CMP": 0xC9, "CPX": 0xE0, "CPY": 0xC0,
}

# Mnemonics whose implied form operates on the accumulator ("ASL A")
ACCUMULATOR_INSTRUCTIONS = frozenset({"ASL", "LSR", "ROL", "ROR"})


# =============================================================================
# Conditional Branches
# =============================================================================

BRANCH_OPCODES: dict[str, int] = {
    "BCC": 0x90, "BCS": 0xB0, "BEQ": 0xF0, "BMI": 0x30,
    "BNE": 0xD0, "BPL": 0x10, "BVC": 0x50, "BVS": 0x70,
}

BRANCH_INSTRUCTIONS = frozenset(BRANCH_OPCODES)

# A branch encodes as opcode + displacement byte
BRANCH_SIZE = 2

# A rewritten long branch: Bxx __skip (2) + JMP target (3)
LONG_BRANCH_SIZE = BRANCH_SIZE + 3


# =============================================================================
# Extended Opcodes: mnemonic -> addressing mode -> opcode
# =============================================================================

_M = AddressingMode

EXTENDED_OPCODES: dict[str, dict[AddressingMode, int]] = {
    "LDA": {
        _M.ZEROPAGE: 0xA5, _M.ZEROPAGE_X: 0xB5,
        _M.ABSOLUTE: 0xAD, _M.ABSOLUTE_X: 0xBD, _M.ABSOLUTE_Y: 0xB9,
        _M.INDIRECT_X: 0xA1, _M.INDIRECT_Y: 0xB1,
    },
    "LDX": {
        _M.ZEROPAGE: 0xA6, _M.ZEROPAGE_Y: 0xB6,
        _M.ABSOLUTE: 0xAE, _M.ABSOLUTE_Y: 0xBE,
    },
    "LDY": {
        _M.ZEROPAGE: 0xA4, _M.ZEROPAGE_X: 0xB4,
        _M.ABSOLUTE: 0xAC, _M.ABSOLUTE_X: 0xBC,
    },
    "STA": {
        _M.ZEROPAGE: 0x85, _M.ZEROPAGE_X: 0x95,
        _M.ABSOLUTE: 0x8D, _M.ABSOLUTE_X: 0x9D, _M.ABSOLUTE_Y: 0x99,
        _M.INDIRECT_X: 0x81, _M.INDIRECT_Y: 0x91,
    },
    "STX": {_M.ZEROPAGE: 0x86, _M.ZEROPAGE_Y: 0x96, _M.ABSOLUTE: 0x8E},
    "STY": {_M.ZEROPAGE: 0x84, _M.ZEROPAGE_X: 0x94, _M.ABSOLUTE: 0x8C},
    "ADC": {
        _M.ZEROPAGE: 0x65, _M.ZEROPAGE_X: 0x75,
        _M.ABSOLUTE: 0x6D, _M.ABSOLUTE_X: 0x7D, _M.ABSOLUTE_Y: 0x79,
        _M.INDIRECT_X: 0x61, _M.INDIRECT_Y: 0x71,
    },
    "SBC": {
        _M.ZEROPAGE: 0xE5, _M.ZEROPAGE_X: 0xF5,
        _M.ABSOLUTE: 0xED, _M.ABSOLUTE_X: 0xFD, _M.ABSOLUTE_Y: 0xF9,
        _M.INDIRECT_X: 0xE1, _M.INDIRECT_Y: 0xF1,
    },
    "AND": {
        _M.ZEROPAGE: 0x25, _M.ZEROPAGE_X: 0x35,
        _M.ABSOLUTE: 0x2D, _M.ABSOLUTE_X: 0x3D, _M.ABSOLUTE_Y: 0x39,
        _M.INDIRECT_X: 0x21, _M.INDIRECT_Y: 0x31,
    },
    "ORA": {
        _M.ZEROPAGE: 0x05, _M.ZEROPAGE_X: 0x15,
        _M.ABSOLUTE: 0x0D, _M.ABSOLUTE_X: 0x1D, _M.ABSOLUTE_Y: 0x19,
        _M.INDIRECT_X: 0x01, _M.INDIRECT_Y: 0x11,
    },
    "EOR": {
        _M.ZEROPAGE: 0x45, _M.ZEROPAGE_X: 0x55,
        _M.ABSOLUTE: 0x4D, _M.ABSOLUTE_X: 0x5D, _M.ABSOLUTE_Y: 0x59,
        _M.INDIRECT_X: 0x41, _M.INDIRECT_Y: 0x51,
    },
    "CMP": {
        _M.ZEROPAGE: 0xC5, _M.ZEROPAGE_X: 0xD5,
        _M.ABSOLUTE: 0xCD, _M.ABSOLUTE_X: 0xDD, _M.ABSOLUTE_Y: 0xD9,
        _M.INDIRECT_X: 0xC1, _M.INDIRECT_Y: 0xD1,
    },
    "CPX": {_M.ZEROPAGE: 0xE4, _M.ABSOLUTE: 0xEC},
    "CPY": {_M.ZEROPAGE: 0xC4, _M.ABSOLUTE: 0xCC},
    "BIT": {_M.ZEROPAGE: 0x24, _M.ABSOLUTE: 0x2C},
    "ASL": {_M.ZEROPAGE: 0x06, _M.ZEROPAGE_X: 0x16, _M.ABSOLUTE: 0x0E, _M.ABSOLUTE_X: 0x1E},
    "LSR": {_M.ZEROPAGE: 0x46, _M.ZEROPAGE_X: 0x56, _M.ABSOLUTE: 0x4E, _M.ABSOLUTE_X: 0x5E},
    "ROL": {_M.ZEROPAGE: 0x26, _M.ZEROPAGE_X: 0x36, _M.ABSOLUTE: 0x2E, _M.ABSOLUTE_X: 0x3E},
    "ROR": {_M.ZEROPAGE: 0x66, _M.ZEROPAGE_X: 0x76, _M.ABSOLUTE: 0x6E, _M.ABSOLUTE_X: 0x7E},
    "DEC": {_M.ZEROPAGE: 0xC6, _M.ZEROPAGE_X: 0xD6, _M.ABSOLUTE: 0xCE, _M.ABSOLUTE_X: 0xDE},
    "INC": {_M.ZEROPAGE: 0xE6, _M.ZEROPAGE_X: 0xF6, _M.ABSOLUTE: 0xEE, _M.ABSOLUTE_X: 0xFE},
    "JSR": {_M.ABSOLUTE: JSR_ABSOLUTE},
}

del _M


# =============================================================================
# Read-only View
# =============================================================================

class OpcodeTables:
    """
    Immutable view of the 6502 opcode tables.

    Attributes:
        opcodes: mnemonic -> opcode for implied, accumulator, immediate
                 and conditional-branch forms
        extended_opcodes: mnemonic -> (AddressingMode -> opcode)
    """

    def __init__(self) -> None:
        merged = {**IMPLIED_OPCODES, **IMMEDIATE_OPCODES, **BRANCH_OPCODES}
        self.opcodes: Mapping[str, int] = MappingProxyType(merged)
        self.extended_opcodes: Mapping[str, Mapping[AddressingMode, int]] = MappingProxyType({
            mnemonic: MappingProxyType(dict(modes))
            for mnemonic, modes in EXTENDED_OPCODES.items()
        })

    def implied(self, mnemonic: str) -> Optional[int]:
        """Opcode of the implied/accumulator form, or None."""
        return IMPLIED_OPCODES.get(mnemonic)

    def immediate(self, mnemonic: str) -> Optional[int]:
        """Opcode of the immediate form, or None."""
        return IMMEDIATE_OPCODES.get(mnemonic)

    def branch(self, mnemonic: str) -> Optional[int]:
        """Opcode of a conditional branch, or None."""
        return BRANCH_OPCODES.get(mnemonic)

    def mode(self, mnemonic: str, mode: AddressingMode) -> Optional[int]:
        """Opcode for a table-driven addressing mode, or None."""
        modes = self.extended_opcodes.get(mnemonic)
        if modes is None:
            return None
        return modes.get(mode)

    def is_known(self, mnemonic: str) -> bool:
        """True for any mnemonic the tables (or JMP/JSR handlers) know."""
        return (
            mnemonic in self.opcodes
            or mnemonic in self.extended_opcodes
            or mnemonic in ("JMP", "JSR")
        )

    def valid_modes(self, mnemonic: str) -> list[str]:
        """Human-readable list of the modes a mnemonic supports."""
        modes = []
        if mnemonic in IMPLIED_OPCODES:
            modes.append("implied")
        if mnemonic in IMMEDIATE_OPCODES:
            modes.append("immediate")
        if mnemonic in BRANCH_OPCODES:
            modes.append("relative")
        modes.extend(str(m) for m in self.extended_opcodes.get(mnemonic, {}))
        return modes


def is_branch(mnemonic: str) -> bool:
    """Check if a mnemonic is a conditional branch instruction."""
    return mnemonic in BRANCH_INSTRUCTIONS
