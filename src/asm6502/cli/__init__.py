"""
asm6502 Command-Line Interface
==============================

- **asm**: the ``asm6502`` assembler command

The tool is a Click application; errors are reported through
asm6502.cli.errors with consistent exit codes.
"""

__all__ = ["asm"]
