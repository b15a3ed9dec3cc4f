"""
MOS 6502 Assembler
==================

This module provides a two-pass assembler for the MOS 6502 with automatic
long-branch relaxation.

Main Components
---------------
- **Assembler6502**: Main assembler class that orchestrates the assembly process
- **parse_source / parse_line**: Classify source lines into items
- **parse_expression / ExpressionEvaluator**: Operand and directive expressions
- **SymbolTable**: Name -> 16-bit value mapping rebuilt on every layout pass
- **InstructionResolver**: Addressing-mode selection and encoding
- **BranchRelaxer**: Rewrites out-of-range conditional branches to a fixed point

Assembly Process
----------------
1. **Parsing**: source lines become Label, Constant, Org, Data, Words,
   String, IncBin and Instruction items; operands stay as raw text.

2. **Relaxation**: the items are laid out repeatedly and every branch
   whose target is beyond -128..+127 bytes is rewritten as a short branch
   over a JMP, until nothing changes.

3. **Two passes**:
   - Pass 1: address calculation, label and constant definition
   - Pass 2: byte emission

Example Usage
-------------
>>> from asm6502.assembler import Assembler6502
>>> asm = Assembler6502()
>>> code = asm.assemble_bytes('''
...     *=$0800
... start:
...     LDA #$42
...     STA $0200
...     RTS
... ''')
>>> code.hex()
'a9428d000260'

Supported Features
------------------
- Full documented 6502 instruction set and addressing modes
- Labels, constants (NAME = expr) and origin (*=expr)
- Data directives (DCB, .byte, .word, .string, .incbin)
- Expressions with + - * /, parentheses, '*' and < > byte selection
- Zero-page / absolute override prefixes (< >)
- Listing and symbol file generation
"""

from asm6502.assembler.assembler import Assembler6502
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
    parse_source,
    parse_line,
)
from asm6502.assembler.numbers import NumberFormat, parse_number, detect_format
from asm6502.assembler.expressions import (
    Expr,
    ExprType,
    ExpressionEvaluator,
    parse_expression,
    evaluate_expression,
)
from asm6502.assembler.symbols import SymbolTable
from asm6502.assembler.resolver import InstructionResolver, AddressOverride
from asm6502.assembler.relaxation import BranchRelaxer, LayoutEntry, compute_layout
from asm6502.assembler.listing import render_listing, print_listing, save_listing

__all__ = [
    # Main class
    "Assembler6502",
    # Items and parsing
    "Item",
    "Instruction",
    "Label",
    "Constant",
    "Data",
    "Words",
    "String",
    "IncBin",
    "Org",
    "parse_source",
    "parse_line",
    # Numbers
    "NumberFormat",
    "parse_number",
    "detect_format",
    # Expressions
    "Expr",
    "ExprType",
    "ExpressionEvaluator",
    "parse_expression",
    "evaluate_expression",
    # Symbols
    "SymbolTable",
    # Encoding and layout
    "InstructionResolver",
    "AddressOverride",
    "BranchRelaxer",
    "LayoutEntry",
    "compute_layout",
    # Listing
    "render_listing",
    "print_listing",
    "save_listing",
]
