"""
asm6502 - Two-Pass Assembler for the MOS 6502
=============================================

This package assembles 6502 assembly source into raw machine code plus a
resolved symbol table. Addressing modes are selected deterministically
from operand values, and conditional branches whose targets are out of
the 8-bit displacement range are rewritten automatically.

Main Components
---------------
- **assembler**: line parser, expressions, symbol table, addressing
  resolver, branch relaxation and the Assembler6502 driver
- **cpu**: the 6502 opcode tables
- **cli**: the ``asm6502`` command-line tool

Quick Start
-----------
Assemble a program:
    >>> from asm6502 import Assembler6502
    >>> asm = Assembler6502()
    >>> code = asm.assemble_bytes("*=$0800\\nLDA #$42\\nSTA $0200")
    >>> code.hex()
    'a9428d0002'

Or use the command-line tool:
    $ asm6502 program.asm -o program.bin -l program.lst
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from asm6502.assembler import Assembler6502
from asm6502.errors import (
    Asm6502Error,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    UndefinedSymbolError,
    AddressingModeError,
    BranchRangeError,
    ExpressionError,
    DirectiveError,
    ConvergenceError,
    AssemblerIOError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler6502",
    # Exception hierarchy
    "Asm6502Error",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "UndefinedSymbolError",
    "AddressingModeError",
    "BranchRangeError",
    "ExpressionError",
    "DirectiveError",
    "ConvergenceError",
    "AssemblerIOError",
]
