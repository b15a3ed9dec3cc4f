"""
asm6502 - 6502 Assembler Command-Line Interface
===============================================

This module implements the command-line interface for the assembler.

Usage Examples
--------------
Basic assembly (writes program.bin):
    $ asm6502 program.asm

With output file:
    $ asm6502 program.asm -o out.bin

Generate all output files:
    $ asm6502 program.asm -o program.bin -l program.lst -s program.sym

Origin and include paths:
    $ asm6502 --origin '$0800' -I ./assets program.asm

Verbose mode (debug logging of the assembly passes):
    $ asm6502 -v program.asm
"""

import logging
from pathlib import Path
from typing import Optional

import click

from asm6502 import __version__
from asm6502.errors import AssemblySyntaxError
from asm6502.assembler import Assembler6502
from asm6502.assembler.numbers import parse_number
from asm6502.cli.errors import handle_cli_exception


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def parse_address(
    ctx: click.Context,
    param: click.Parameter,
    value: Optional[str],
) -> Optional[int]:
    """Click callback: parse a 16-bit address in any assembler literal form."""
    if value is None:
        return None
    try:
        address = parse_number(value)
    except AssemblySyntaxError as e:
        raise click.BadParameter(e.message) from e
    if address > 0xFFFF:
        raise click.BadParameter(f"address out of range: {value}")
    return address


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-p", "--print-listing",
    is_flag=True,
    help="Print the listing to stdout",
)
@click.option(
    "--origin",
    callback=parse_address,
    help="Origin address, e.g. $0800, 0x800 or 2048 (default: $0080)",
)
@click.option(
    "-I", "--include",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Add .incbin search path (can be repeated)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="asm6502")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    print_listing: bool,
    origin: Optional[int],
    include: tuple[Path, ...],
    verbose: bool,
) -> None:
    """
    Assemble 6502 source code into a raw binary.

    INPUT_FILE is the assembly source file to assemble.

    \b
    Examples:
        asm6502 demo.asm                 # Outputs demo.bin
        asm6502 demo.asm -o out.bin      # Specify output file
        asm6502 --origin '$0800' demo.asm
        asm6502 -I assets/ demo.asm      # Add include path
    """
    setup_logging(verbose)

    output_file = output if output is not None else input_file.with_suffix(".bin")

    asm = Assembler6502(include_paths=include)
    if origin is not None:
        asm.set_origin(origin)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        code = asm.assemble_file(input_file)
        Assembler6502.write_bin(code, output_file)
        if verbose:
            click.echo(f"Wrote {len(code)} bytes to {output_file}")

        if listing:
            asm.save_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if print_listing:
            click.echo(asm.listing(), nl=False)

        if verbose:
            click.echo(f"Assembly complete: {len(code)} bytes at ${asm.origin:04X}")
            click.echo(f"Defined {len(asm.symbols())} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
