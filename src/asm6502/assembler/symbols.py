"""
Symbol Table
============

Maps label and constant names to resolved 16-bit values.

The table is cleared and rebuilt on every layout pass, so a symbol's
value always reflects its position in the current tentative layout.
Names are case-sensitive and the last definition within a pass wins.
"""

from typing import Iterator, Optional


class SymbolTable:
    """
    Name -> 16-bit value mapping owned by one assembler.

    Passed explicitly to the evaluator and resolver rather than held in
    global state, so several assemblers can coexist.
    """

    def __init__(self) -> None:
        self._symbols: dict[str, int] = {}

    def clear(self) -> None:
        """Remove all symbols."""
        self._symbols.clear()

    def insert(self, name: str, value: int) -> None:
        """Define or redefine a symbol; the value is truncated to 16 bits."""
        self._symbols[name] = value & 0xFFFF

    def get(self, name: str) -> Optional[int]:
        """Look up a symbol's value, or None if undefined."""
        return self._symbols.get(name)

    def labels(self) -> dict[str, int]:
        """Return a copy of the whole table."""
        return dict(self._symbols)

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __repr__(self) -> str:
        return f"SymbolTable({len(self._symbols)} symbols)"
