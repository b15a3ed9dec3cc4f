"""
Layout and Long-Branch Relaxation
=================================

6502 conditional branches encode an 8-bit signed displacement, so a
target more than 128 bytes away cannot be reached directly. This module
lays the item list out in memory and rewrites unreachable branches:

    BNE far                 BNE __skip_0
                    ->      JMP far
                            __skip_0:

The short branch keeps its mnemonic and targets the label placed right
after the JMP, so it is always in range and is never expanded again.
The rewrite costs three bytes (2-byte branch becomes 2 + 3), which can
push other branches out of range, so relaxation runs to a fixed point:

1. Lay out the current item list, rebuilding the symbol table.
2. Walk the list again and expand every branch whose target is out of
   range, advancing the running address by 5 for each expansion and
   re-sizing instructions that the expansions moved.
3. Stop when nothing was expanded, otherwise repeat with the new list.

The number of rewriting iterations is bounded by the number of branches
in the input plus two. Exhausting the bound raises ConvergenceError
listing the branches that are still unreachable.

Layout
------
compute_layout() is the single address walk used by relaxation and by
the assembler's final passes. It records the address and size of every
item and whether that size was an estimate (an instruction that could
not be encoded yet), so the final emission can keep every instruction at
the size it was laid out with.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from asm6502.errors import (
    AssemblerError,
    AssemblerIOError,
    ConvergenceError,
    SourceLocation,
)
from asm6502.cpu import LONG_BRANCH_SIZE, is_branch
from asm6502.assembler.expressions import ExpressionEvaluator
from asm6502.assembler.parser import Item, Instruction, Label, Constant, Org
from asm6502.assembler.symbols import SymbolTable
from asm6502.assembler.resolver import (
    InstructionResolver,
    branch_offset,
    branch_in_range,
)

logger = logging.getLogger(__name__)

SKIP_LABEL_PREFIX = "__skip_"


# =============================================================================
# Layout
# =============================================================================

@dataclass
class LayoutEntry:
    """
    Placement of one item.

    Attributes:
        address: Address at which the item starts
        size: Number of bytes the item occupies
        estimated: True if size is the fallback estimate of an
                   instruction that could not be encoded during layout
    """
    address: int
    size: int
    estimated: bool = False


def compute_layout(
    items: list[Item],
    origin: int,
    resolver: InstructionResolver,
    strict: bool = False,
    filename: str = "<input>",
) -> list[LayoutEntry]:
    """
    Assign addresses to items and rebuild the symbol table.

    The resolver's symbol table is cleared, then Label and Constant items
    define symbols in source order as the running address advances.

    Args:
        items: Item list to lay out
        origin: Address of the first item
        resolver: Resolver whose symbol table is rebuilt and used for sizing
        strict: Raise on Constant, Org and include-file errors instead of
                skipping them (final layout)
        filename: Source name for error locations

    Returns:
        One LayoutEntry per item
    """
    symbols = resolver.symbols
    symbols.clear()

    layout: list[LayoutEntry] = []
    pc = origin & 0xFFFF

    for item in items:
        if isinstance(item, Label):
            symbols.insert(item.name, pc)
            layout.append(LayoutEntry(pc, 0))

        elif isinstance(item, Constant):
            try:
                value = ExpressionEvaluator(symbols, pc).evaluate_u16(item.expr)
            except AssemblerError as e:
                if strict:
                    raise _locate(e, item, filename).add_context(f"Constant '{item.name}'")
            else:
                symbols.insert(item.name, value)
            layout.append(LayoutEntry(pc, 0))

        elif isinstance(item, Org):
            layout.append(LayoutEntry(pc, 0))
            try:
                pc = ExpressionEvaluator(symbols, pc).evaluate_u16(item.expr)
            except AssemblerError as e:
                if strict:
                    raise _locate(e, item, filename).add_context("ORG directive")

        else:
            try:
                size, estimated = resolver.item_size(item, pc)
            except AssemblerIOError:
                if strict:
                    raise
                size, estimated = 0, False
            layout.append(LayoutEntry(pc, size, estimated))
            pc = (pc + size) & 0xFFFF

    return layout


def _locate(error: AssemblerError, item: Item, filename: str) -> AssemblerError:
    if error.location is None and item.line:
        error.set_location(SourceLocation(filename, item.line))
    return error


def count_branches(items: Iterable[Item]) -> int:
    """Number of conditional-branch instructions in an item list."""
    return sum(
        1 for item in items
        if isinstance(item, Instruction) and is_branch(item.mnemonic)
    )


# =============================================================================
# Branch Relaxation
# =============================================================================

class BranchRelaxer:
    """
    Rewrites out-of-range conditional branches until the layout is stable.

    One relaxer serves one assembly: generated ``__skip_N`` labels are
    numbered across all of its iterations and skip any name already used
    by the program.

    Attributes:
        resolver: Resolver whose symbol table is rebuilt on every iteration
        origin: Start address of the layout
    """

    def __init__(
        self,
        resolver: InstructionResolver,
        origin: int,
        reserved_names: Iterable[str] = (),
    ):
        self.resolver = resolver
        self.origin = origin & 0xFFFF
        self._reserved = set(reserved_names)
        self._skip_counter = 0

    @property
    def symbols(self) -> SymbolTable:
        return self.resolver.symbols

    def next_skip_label(self) -> str:
        """Return a fresh skip label name."""
        while True:
            name = f"{SKIP_LABEL_PREFIX}{self._skip_counter}"
            self._skip_counter += 1
            if name not in self._reserved:
                self._reserved.add(name)
                return name

    def fix_long_branches(self, items: list[Item]) -> tuple[list[Item], bool]:
        """
        One relaxation iteration.

        Args:
            items: Current item list (not modified)

        Returns:
            (new item list, True if any branch was expanded)
        """
        layout = compute_layout(items, self.origin, self.resolver)

        fixed: list[Item] = []
        modified = False
        pc = self.origin

        for item, entry in zip(items, layout):
            if isinstance(item, Org):
                fixed.append(item)
                try:
                    pc = ExpressionEvaluator(self.symbols, pc).evaluate_u16(item.expr)
                except AssemblerError:
                    pass  # reported by the final layout
                continue

            if isinstance(item, (Label, Constant)):
                fixed.append(item)
                continue

            if isinstance(item, Instruction) and self._is_long_branch(item, pc):
                skip_label = self.next_skip_label()
                logger.debug(
                    f"Expanding {item.mnemonic} {item.operand} at ${pc:04X} "
                    f"via {skip_label}"
                )
                fixed.extend([
                    Instruction(item.mnemonic, skip_label, line=item.line),
                    Instruction("JMP", item.operand.strip(), line=item.line),
                    Label(skip_label, line=item.line),
                ])
                pc = (pc + LONG_BRANCH_SIZE) & 0xFFFF
                modified = True
                continue

            fixed.append(item)
            size = entry.size
            if isinstance(item, Instruction) and pc != entry.address:
                # Shifted by an earlier expansion; '*' operands may change mode
                size, _ = self.resolver.instruction_size(item.mnemonic, item.operand, pc)
            pc = (pc + size) & 0xFFFF

        return fixed, modified

    def _is_long_branch(self, item: Instruction, pc: int) -> bool:
        if not is_branch(item.mnemonic) or item.operand is None:
            return False
        target = self.symbols.get(item.operand.strip())
        if target is None:
            return False
        return not branch_in_range(branch_offset(pc, target))

    def relax(self, items: list[Item]) -> list[Item]:
        """
        Run fix_long_branches to a fixed point.

        Returns:
            The stable item list; the input list is left untouched

        Raises:
            ConvergenceError: If branches are still being expanded after
                the iteration bound
        """
        current = list(items)
        guard = count_branches(current) + 2
        iteration = 0

        while True:
            current, modified = self.fix_long_branches(current)
            if not modified:
                break

            iteration += 1
            logger.debug(f"Relaxation iteration {iteration}: branches expanded")

            if guard == 0:
                raise ConvergenceError(iteration, self.unreachable_branches(current))
            guard -= 1

        logger.debug(f"Relaxation converged after {iteration} rewriting iterations")
        return current

    def unreachable_branches(self, items: list[Item]) -> list[str]:
        """Describe every branch whose target is out of range in items' layout."""
        layout = compute_layout(items, self.origin, self.resolver)
        problems = []

        for item, entry in zip(items, layout):
            if not isinstance(item, Instruction) or not is_branch(item.mnemonic):
                continue
            if item.operand is None:
                continue
            name = item.operand.strip()
            target = self.symbols.get(name)
            if target is None:
                continue
            offset = branch_offset(entry.address, target)
            if not branch_in_range(offset):
                problems.append(
                    f"${entry.address:04X}: {item.mnemonic} {name} "
                    f"(offset: {offset}, target: ${target:04X})"
                )

        return problems
