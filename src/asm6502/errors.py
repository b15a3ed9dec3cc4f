"""
asm6502 Error Hierarchy
=======================

This module defines the exception hierarchy for the whole assembler.
All exceptions inherit from Asm6502Error, allowing callers to catch every
error the package raises with a single except clause if desired.

Exception Hierarchy
-------------------
Asm6502Error (base)
├── AssemblerError (bad program: syntax, semantics, resolution, range)
│   ├── AssemblySyntaxError - malformed line, quoting or expression
│   │   └── DirectiveError - malformed or unknown directive
│   ├── UndefinedSymbolError - reference to an undefined label/constant
│   ├── AddressingModeError - mode not supported by a mnemonic
│   ├── BranchRangeError - branch target beyond the signed 8-bit offset
│   ├── ExpressionError - error evaluating an expression
│   └── ConvergenceError - long-branch fixing did not reach a fixed point
└── AssemblerIOError (bad environment: include read, output write)

AssemblerIOError deliberately does not inherit from AssemblerError, so a
caller can tell "bad program" apart from "bad environment".

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Asm6502Error(Exception):
    """
    Base exception for all asm6502 errors.

        try:
            assembler.assemble_bytes(source)
        except Asm6502Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A line in a source file, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
    """
    filename: str
    line: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Asm6502Error):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
        context: Diagnostic prefix added while the error propagates
                 (for example "$0800: LDA #$100")
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.context: Optional[str] = None
        super().__init__(self._format_message())

    def add_context(self, context: str) -> "AssemblerError":
        """
        Prefix the message with diagnostic context, keeping the class.

        Used by the driver to attach the address and instruction text to
        errors raised deep inside the resolver:

            except AssemblerError as e:
                raise e.add_context(f"${pc:04X}: {text}")
        """
        self.context = f"{context} - {self.context}" if self.context else context
        self.args = (self._format_message(),)
        return self

    def set_location(
        self,
        location: SourceLocation,
        source_line: Optional[str] = None,
    ) -> "AssemblerError":
        """Attach the source position once it is known to the caller."""
        self.location = location
        if source_line is not None:
            self.source_line = source_line
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            demo.asm:15: error: $0812: BNE far - undefined label 'far'
                BNE far
            hint: did you mean 'fa'?
        """
        message = self.message
        if self.context:
            message = f"{self.context} - {message}"

        parts = []
        if self.location:
            parts.append(f"{self.location}: error: {message}")
        else:
            parts.append(f"error: {message}")

        if self.source_line is not None:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - Line that is neither a label, directive nor instruction
        - .string / .incbin argument without matching quotes
        - Invalid number or expression
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a symbol that is not in the symbol table.

    The evaluator suggests similarly-named symbols, which helps to
    catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AddressingModeError(AssemblerError):
    """
    Unknown mnemonic or addressing mode not supported by a mnemonic.

    Example:
        STX $2000,X   ; STX has no absolute,X form
    """

    def __init__(
        self,
        message: str,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.valid_modes = valid_modes or []

        hint = None
        if self.valid_modes:
            hint = f"{mnemonic} supports: {', '.join(self.valid_modes)}"

        super().__init__(message, location=location, hint=hint, source_line=source_line)


class BranchRangeError(AssemblerError):
    """
    Branch target is out of range.

    6502 conditional branches use a signed 8-bit displacement measured
    from the instruction following the branch, so the reachable range is
    -128 to +127 bytes. Long-branch fixing rewrites such branches before
    emission; this error only surfaces when emission disagrees with it.
    """

    def __init__(
        self,
        target: int,
        offset: int,
        address: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.offset = offset
        self.address = address

        super().__init__(
            f"branch offset out of range: {offset}. "
            f"Target: ${target:04X}, Current: ${address:04X}",
            location=location,
            hint="branch range is -128 to +127 bytes",
            source_line=source_line,
        )


class ExpressionError(AssemblerError):
    """
    Error evaluating an expression (for example division by zero).
    """
    pass


class DirectiveError(AssemblySyntaxError):
    """
    Malformed or unknown directive.

    Examples:
        - .string / .incbin argument without matching quotes
        - .byte or .word without values
        - .org (unknown directive name)
    """
    pass


class ConvergenceError(AssemblerError):
    """
    Long-branch fixing did not reach a fixed point within its guard.

    Attributes:
        iterations: Number of rewriting iterations performed
        unreachable: One description per branch whose target is still
                     unreachable ("$0812: BNE far (offset: 200, target: $08DC)")
    """

    def __init__(self, iterations: int, unreachable: list[str]):
        self.iterations = iterations
        self.unreachable = list(unreachable)

        if self.unreachable:
            details = "\n  ".join(self.unreachable)
            message = (
                f"long-branch fix didn't converge after {iterations} iterations. "
                f"Problematic branches:\n  {details}"
            )
        else:
            message = (
                f"long-branch fix didn't converge after {iterations} iterations "
                "(no obvious problematic branches found)"
            )
        super().__init__(message)


# =============================================================================
# I/O Exceptions
# =============================================================================

class AssemblerIOError(Asm6502Error):
    """
    Reading an included binary file or writing an output file failed.

    Attributes:
        path: The file that could not be read or written
        reason: The underlying OS error text
    """

    def __init__(self, path: str | Path, reason: str, context: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}cannot access '{self.path}': {reason}")
