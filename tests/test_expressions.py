# =============================================================================
# test_expressions.py - Expression Parser and Evaluator Tests
# =============================================================================
# Tests for the 6502 assembler expression parser and evaluator.
#
# Test coverage includes:
#   - Operator precedence and left-associativity
#   - Parentheses
#   - Current address (*) versus multiplication
#   - Immediate marker (#) and low/high byte selection (< >)
#   - 32-bit wrapping arithmetic and 16-bit truncation
#   - Undefined symbols with suggestions, division by zero
#   - Syntax errors
# =============================================================================

import pytest

from asm6502.assembler.expressions import (
    Expr,
    ExprType,
    ExpressionEvaluator,
    evaluate_expression,
    is_valid_label,
    parse_expression,
)
from asm6502.assembler.symbols import SymbolTable
from asm6502.errors import (
    AssemblySyntaxError,
    ExpressionError,
    UndefinedSymbolError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def evaluate(expr_str: str, symbols: dict = None, current_address: int = 0) -> int:
    """
    Helper to evaluate an expression string.

    Args:
        expr_str: The expression text (e.g., "1+2", "<table")
        symbols: Optional dict of symbol names to values
        current_address: Value of '*'

    Returns:
        The 32-bit result of the expression
    """
    table = SymbolTable()
    for name, value in (symbols or {}).items():
        table.insert(name, value)
    return evaluate_expression(expr_str, table, current_address)


# =============================================================================
# Simple Value Tests
# =============================================================================

class TestSimpleValues:
    """Test evaluation of simple values."""

    def test_numbers(self):
        assert evaluate("42") == 42
        assert evaluate("$FF") == 255
        assert evaluate("%1010") == 10

    def test_label(self):
        """Labels evaluate to their symbol value."""
        assert evaluate("start", {"start": 0x0800}) == 0x0800

    def test_current_address(self):
        """A lone '*' is the current address."""
        assert evaluate("*", current_address=0x0800) == 0x0800


# =============================================================================
# Arithmetic and Precedence Tests
# =============================================================================

class TestArithmetic:
    """Test operators, precedence and associativity."""

    def test_multiplication_before_addition(self):
        assert evaluate("10*2+5") == 25
        assert evaluate("2+3*4") == 14

    def test_division_before_subtraction(self):
        assert evaluate("100/5-4") == 16

    def test_multiplicative_left_associative(self):
        """100/5*2 is (100/5)*2, not 100/(5*2)."""
        assert evaluate("100/5*2") == 40

    def test_additive_left_associative(self):
        """10-3-2 is (10-3)-2."""
        assert evaluate("10-3-2") == 5

    def test_parentheses(self):
        assert evaluate("(2+3)*4") == 20
        assert evaluate("100/(5*2)") == 10

    def test_integer_division(self):
        assert evaluate("7/2") == 3

    def test_wraps_at_32_bits(self):
        """Intermediate results wrap at 32 bits, not 16."""
        assert evaluate("$10000-$100") == 0xFF00
        assert evaluate("0-1") == 0xFFFFFFFF

    def test_evaluate_u16_truncates(self):
        evaluator = ExpressionEvaluator(SymbolTable())
        assert evaluator.evaluate_u16(parse_expression("0-1")) == 0xFFFF
        assert evaluator.evaluate_u16(parse_expression("$12345")) == 0x2345

    def test_labels_in_arithmetic(self):
        symbols = {"base": 0x1000, "offset": 0x20}
        assert evaluate("base+offset*2", symbols) == 0x1040


# =============================================================================
# Current Address Tests
# =============================================================================

class TestCurrentAddress:
    """Test '*' as current address versus multiplication."""

    def test_offset_from_current_address(self):
        assert evaluate("*+2", current_address=0x0800) == 0x0802
        assert evaluate("*-2", current_address=0x0800) == 0x07FE

    def test_current_address_after_operator(self):
        """In '2**', the second '*' is the current address."""
        assert evaluate("2**", current_address=0x10) == 0x20

    def test_current_address_in_parentheses(self):
        assert evaluate("(*+4)/2", current_address=0x0800) == 0x0402


# =============================================================================
# Prefix Operator Tests
# =============================================================================

class TestPrefixes:
    """Test the #, < and > prefixes."""

    def test_immediate_marker(self):
        """'#' has no numeric effect but is kept in the tree."""
        expr = parse_expression("#$42")
        assert expr.kind is ExprType.IMMEDIATE
        assert expr.is_immediate
        assert evaluate("#$42") == 0x42

    def test_low_byte(self):
        assert evaluate("<$1234") == 0x34

    def test_high_byte(self):
        assert evaluate(">$1234") == 0x12

    def test_prefix_applies_to_whole_expression(self):
        """<table+1 is the low byte of (table+1)."""
        assert evaluate("<table+1", {"table": 0x12FF}) == 0x00
        assert evaluate(">table+1", {"table": 0x12FF}) == 0x13

    def test_immediate_low_byte(self):
        assert evaluate("#<$ABCD") == 0xCD
        assert evaluate("#>$ABCD") == 0xAB


# =============================================================================
# Tree Structure Tests
# =============================================================================

class TestTreeStructure:
    """Test the shape of parsed trees."""

    def test_left_associative_tree(self):
        expr = parse_expression("1-2-3")
        assert expr.kind is ExprType.SUB
        assert expr.left.kind is ExprType.SUB
        assert expr.right == Expr.number(3)

    def test_label_node(self):
        assert parse_expression("loop") == Expr.label("loop")

    def test_str_round_trip_readable(self):
        assert str(parse_expression("#<table")) == "#<table"
        assert str(parse_expression("1+2")) == "($1+$2)"

    def test_is_valid_label(self):
        assert is_valid_label("loop")
        assert is_valid_label("_tmp1")
        assert not is_valid_label("1abc")
        assert not is_valid_label("my-var")


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrors:
    """Test evaluation and syntax errors."""

    def test_division_by_zero(self):
        with pytest.raises(ExpressionError) as exc_info:
            evaluate("10/0")
        assert "division by zero" in str(exc_info.value)

    def test_division_by_zero_expression(self):
        with pytest.raises(ExpressionError):
            evaluate("10/(5-5)")

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            evaluate("missing")
        assert exc_info.value.symbol == "missing"
        assert "undefined label 'missing'" in str(exc_info.value)

    def test_undefined_label_suggestion(self):
        """Close names are suggested in the hint."""
        with pytest.raises(UndefinedSymbolError) as exc_info:
            evaluate("countr", {"counter": 1, "unrelated": 2})
        assert "counter" in exc_info.value.similar_symbols
        assert "unrelated" not in exc_info.value.similar_symbols
        assert "did you mean" in str(exc_info.value)

    def test_skip_labels_not_suggested(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            evaluate("__skip_", {"__skip_0": 1})
        assert exc_info.value.similar_symbols == []

    def test_try_evaluate_returns_none(self):
        evaluator = ExpressionEvaluator(SymbolTable())
        assert evaluator.try_evaluate(parse_expression("missing")) is None
        assert evaluator.try_evaluate(parse_expression("$10")) == 0x10

    def test_empty_expression(self):
        with pytest.raises(AssemblySyntaxError):
            parse_expression("   ")

    def test_missing_operand(self):
        with pytest.raises(AssemblySyntaxError):
            parse_expression("1+")

    def test_unbalanced_parentheses(self):
        with pytest.raises(AssemblySyntaxError):
            parse_expression("(1+2")
        with pytest.raises(AssemblySyntaxError):
            parse_expression("1+2)")

    def test_invalid_number(self):
        with pytest.raises(AssemblySyntaxError):
            parse_expression("1abc")

    def test_invalid_token(self):
        with pytest.raises(AssemblySyntaxError):
            parse_expression("foo bar")
        with pytest.raises(AssemblySyntaxError):
            parse_expression("@")
