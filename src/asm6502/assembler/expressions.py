"""
Assembly Expression Parser and Evaluator
========================================

This module turns operand and directive-argument text into an expression
tree and evaluates that tree against a symbol table and the current
program counter.

Expression Grammar
------------------
From lowest to highest precedence:

1. Additive: ``+ -`` (left-associative)
2. Multiplicative: ``* /`` (left-associative)
3. Primary: number, label, ``*`` (current address), ``(expr)``

Prefixes that apply to the whole remaining expression:

- ``#expr`` marks an immediate operand (no numeric effect)
- ``<expr`` takes the low byte, ``>expr`` takes the high byte

Parsing Strategy
----------------
No token stream is built. Each precedence level scans its substring
right-to-left for the right-most operator outside parentheses and splits
there, which yields left-associativity directly. A ``*`` is the current
address, not multiplication, when it starts the substring or follows
another operator, ``(`` or ``,``.

Evaluation
----------
Intermediate arithmetic wraps at 32 bits so ``$10000 - $100`` evaluates
to ``$FF00``; callers truncate to 16 bits (evaluate_u16) only where an
address or byte is needed.

Example Usage
-------------
>>> from asm6502.assembler.expressions import parse_expression, ExpressionEvaluator
>>> from asm6502.assembler.symbols import SymbolTable
>>> symbols = SymbolTable()
>>> symbols.insert("buffer", 0x1000)
>>> expr = parse_expression("buffer+10")
>>> ExpressionEvaluator(symbols, 0x0800).evaluate(expr)
4106
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from asm6502.errors import (
    AssemblerError,
    AssemblySyntaxError,
    ExpressionError,
    UndefinedSymbolError,
)
from asm6502.assembler.numbers import parse_number
from asm6502.assembler.symbols import SymbolTable


LABEL_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Characters after which a '*' denotes the current address
_OPERATOR_CONTEXT = "+-*/(,"

_MASK32 = 0xFFFFFFFF


def is_valid_label(name: str) -> bool:
    """Labels start with a letter or underscore, then letters, digits, underscores."""
    return LABEL_PATTERN.fullmatch(name) is not None


# =============================================================================
# Expression AST
# =============================================================================

class ExprType(Enum):
    """Kinds of expression tree nodes."""
    NUMBER = auto()           # Literal number
    LABEL = auto()            # Symbol reference
    CURRENT_ADDRESS = auto()  # '*'
    IMMEDIATE = auto()        # '#expr' marker
    LOW_BYTE = auto()         # '<expr'
    HIGH_BYTE = auto()        # '>expr'
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()


BINARY_OPERATORS = {
    "+": ExprType.ADD,
    "-": ExprType.SUB,
    "*": ExprType.MUL,
    "/": ExprType.DIV,
}


@dataclass(frozen=True)
class Expr:
    """
    Expression tree node.

    Attributes:
        kind: Node type
        value: Literal value (NUMBER) or symbol name (LABEL)
        left: Operand of unary nodes, left operand of binary nodes
        right: Right operand of binary nodes
    """
    kind: ExprType
    value: int | str | None = None
    left: Optional["Expr"] = None
    right: Optional["Expr"] = None

    @classmethod
    def number(cls, value: int) -> "Expr":
        return cls(ExprType.NUMBER, value=value)

    @classmethod
    def label(cls, name: str) -> "Expr":
        return cls(ExprType.LABEL, value=name)

    @classmethod
    def current_address(cls) -> "Expr":
        return cls(ExprType.CURRENT_ADDRESS)

    @classmethod
    def immediate(cls, inner: "Expr") -> "Expr":
        return cls(ExprType.IMMEDIATE, left=inner)

    @classmethod
    def low_byte(cls, inner: "Expr") -> "Expr":
        return cls(ExprType.LOW_BYTE, left=inner)

    @classmethod
    def high_byte(cls, inner: "Expr") -> "Expr":
        return cls(ExprType.HIGH_BYTE, left=inner)

    @classmethod
    def binary(cls, kind: ExprType, left: "Expr", right: "Expr") -> "Expr":
        return cls(kind, left=left, right=right)

    @property
    def is_immediate(self) -> bool:
        return self.kind is ExprType.IMMEDIATE

    def __str__(self) -> str:
        if self.kind is ExprType.NUMBER:
            return f"${self.value:X}"
        if self.kind is ExprType.LABEL:
            return str(self.value)
        if self.kind is ExprType.CURRENT_ADDRESS:
            return "*"
        if self.kind is ExprType.IMMEDIATE:
            return f"#{self.left}"
        if self.kind is ExprType.LOW_BYTE:
            return f"<{self.left}"
        if self.kind is ExprType.HIGH_BYTE:
            return f">{self.left}"
        symbol = next(op for op, kind in BINARY_OPERATORS.items() if kind is self.kind)
        return f"({self.left}{symbol}{self.right})"


# =============================================================================
# Parser
# =============================================================================

def parse_expression(text: str) -> Expr:
    """
    Parse an operand or directive argument into an expression tree.

    Args:
        text: Expression text, e.g. "#<table+1", "*-2", "(base+4)*2"

    Returns:
        The root Expr node

    Raises:
        AssemblySyntaxError: If the text is not a valid expression
    """
    s = text.strip()
    if not s:
        raise AssemblySyntaxError("empty expression")

    _check_parentheses(s)

    if s.startswith("#"):
        return Expr.immediate(parse_expression(s[1:]))
    if s.startswith("<"):
        return Expr.low_byte(parse_expression(s[1:]))
    if s.startswith(">"):
        return Expr.high_byte(parse_expression(s[1:]))

    return _parse_additive(s)


def _check_parentheses(s: str) -> None:
    depth = 0
    for ch in s:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        raise AssemblySyntaxError(f"unbalanced parentheses in expression: {s}")


def _find_operator(s: str, operators: str) -> Optional[int]:
    """
    Index of the right-most top-level operator in s, or None.

    Parentheses are tracked with a depth counter while scanning
    right-to-left, so ')' opens a nested region and '(' closes it.
    """
    depth = 0
    for i in range(len(s) - 1, -1, -1):
        ch = s[i]
        if ch == ")":
            depth += 1
        elif ch == "(":
            depth -= 1
        elif depth == 0 and ch in operators:
            if ch == "*" and _is_current_address(s, i):
                continue
            return i
    return None


def _is_current_address(s: str, index: int) -> bool:
    before = s[:index].rstrip()
    return not before or before[-1] in _OPERATOR_CONTEXT


def _parse_additive(s: str) -> Expr:
    pos = _find_operator(s, "+-")
    if pos is None:
        return _parse_multiplicative(s)

    left = _parse_additive(s[:pos])
    right = _parse_multiplicative(s[pos + 1:])
    return Expr.binary(BINARY_OPERATORS[s[pos]], left, right)


def _parse_multiplicative(s: str) -> Expr:
    pos = _find_operator(s, "*/")
    if pos is None:
        return _parse_primary(s)

    left = _parse_multiplicative(s[:pos])
    right = _parse_primary(s[pos + 1:])
    return Expr.binary(BINARY_OPERATORS[s[pos]], left, right)


def _parse_primary(text: str) -> Expr:
    s = text.strip()
    if not s:
        raise AssemblySyntaxError("missing operand in expression")

    if s.startswith("(") and s.endswith(")"):
        return _parse_additive(s[1:-1].strip())

    if s == "*":
        return Expr.current_address()

    if s.startswith("<"):
        return Expr.low_byte(_parse_primary(s[1:]))
    if s.startswith(">"):
        return Expr.high_byte(_parse_primary(s[1:]))

    # Anything with a numeric prefix must be a valid number
    if s[0] in "$%" or s[0].isdigit():
        return Expr.number(parse_number(s))

    if is_valid_label(s):
        return Expr.label(s)

    raise AssemblySyntaxError(f"invalid expression: {s}")


# =============================================================================
# Evaluator
# =============================================================================

class ExpressionEvaluator:
    """
    Evaluates expression trees against a symbol table.

    The evaluator borrows the symbol table read-only; the current address
    is the value of '*'.

    Attributes:
        symbols: Symbol table used for label lookups
        current_address: Program counter at the point of use
    """

    def __init__(self, symbols: SymbolTable, current_address: int = 0):
        self.symbols = symbols
        self.current_address = current_address & 0xFFFF

    def evaluate(self, expr: Expr) -> int:
        """
        Evaluate an expression with 32-bit wrapping arithmetic.

        Raises:
            UndefinedSymbolError: If a label is not in the symbol table
            ExpressionError: On division by zero
        """
        kind = expr.kind

        if kind is ExprType.NUMBER:
            return expr.value & _MASK32

        if kind is ExprType.LABEL:
            value = self.symbols.get(expr.value)
            if value is None:
                raise UndefinedSymbolError(
                    expr.value,
                    similar_symbols=self._find_similar_symbols(expr.value),
                )
            return value

        if kind is ExprType.CURRENT_ADDRESS:
            return self.current_address

        if kind is ExprType.IMMEDIATE:
            return self.evaluate(expr.left)

        if kind is ExprType.LOW_BYTE:
            return self.evaluate(expr.left) & 0xFF

        if kind is ExprType.HIGH_BYTE:
            return (self.evaluate(expr.left) >> 8) & 0xFF

        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)

        if kind is ExprType.ADD:
            return (left + right) & _MASK32
        if kind is ExprType.SUB:
            return (left - right) & _MASK32
        if kind is ExprType.MUL:
            return (left * right) & _MASK32
        if kind is ExprType.DIV:
            if right == 0:
                raise ExpressionError("division by zero")
            return left // right

        raise ExpressionError(f"unknown expression node {kind.name}")

    def evaluate_u16(self, expr: Expr) -> int:
        """Evaluate and truncate the result to 16 bits."""
        return self.evaluate(expr) & 0xFFFF

    def try_evaluate(self, expr: Expr) -> Optional[int]:
        """Evaluate to 16 bits, or return None if the expression cannot be evaluated."""
        try:
            return self.evaluate_u16(expr)
        except AssemblerError:
            return None

    def _find_similar_symbols(self, name: str) -> list[str]:
        """Symbols whose names are within a small edit distance of name."""
        name_lower = name.lower()
        similar = []

        for sym in self.symbols:
            if sym.startswith("__skip_"):
                continue
            sym_lower = sym.lower()
            if (
                sym_lower == name_lower or
                abs(len(sym) - len(name)) <= 1 and
                _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(
                    distances[j],
                    distances[j + 1],
                    new_distances[-1],
                ))
        distances = new_distances

    return distances[-1]


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_expression(
    text: str,
    symbols: Optional[SymbolTable] = None,
    current_address: int = 0,
) -> int:
    """
    Parse and evaluate expression text in one step (32-bit result).

    Args:
        text: Expression text
        symbols: Symbol table (empty if omitted)
        current_address: Value of '*'
    """
    evaluator = ExpressionEvaluator(symbols or SymbolTable(), current_address)
    return evaluator.evaluate(parse_expression(text))
