"""
asm6502 CPU Package
===================

Architecture definitions for the MOS 6502: the addressing-mode vocabulary
and the static opcode tables the assembler encodes instructions from.

Usage:
    from asm6502.cpu import (
        AddressingMode,
        OpcodeTables,
        is_branch,
    )
"""

from asm6502.cpu.mos6502 import (
    # Core types
    AddressingMode,
    OpcodeTables,
    # Raw tables
    IMPLIED_OPCODES,
    IMMEDIATE_OPCODES,
    BRANCH_OPCODES,
    EXTENDED_OPCODES,
    ACCUMULATOR_INSTRUCTIONS,
    BRANCH_INSTRUCTIONS,
    # Fixed encodings and sizes
    JMP_ABSOLUTE,
    JMP_INDIRECT,
    JSR_ABSOLUTE,
    BRANCH_SIZE,
    LONG_BRANCH_SIZE,
    # Helpers
    is_branch,
)

__all__ = [
    "AddressingMode",
    "OpcodeTables",
    "IMPLIED_OPCODES",
    "IMMEDIATE_OPCODES",
    "BRANCH_OPCODES",
    "EXTENDED_OPCODES",
    "ACCUMULATOR_INSTRUCTIONS",
    "BRANCH_INSTRUCTIONS",
    "JMP_ABSOLUTE",
    "JMP_INDIRECT",
    "JSR_ABSOLUTE",
    "BRANCH_SIZE",
    "LONG_BRANCH_SIZE",
    "is_branch",
]
