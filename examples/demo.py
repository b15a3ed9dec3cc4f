#!/usr/bin/env python3
"""
6502 Assembler Demo
===================

This script demonstrates how to use the asm6502 library to:
1. Assemble a program that touches every addressing mode
2. Print and save the assembly listing
3. Write the machine code to a raw binary
4. Inspect the symbol table

Usage:
    pip install -e .
    python examples/demo.py
"""

from pathlib import Path

from asm6502 import Assembler6502


# Synthetic coverage of the instruction set; not meant to run meaningfully.
DEMO_PROGRAM = """
*=$0080

    ; Zero page variables
    zp1:        DCB $20
    zp2:        DCB $30
    pointer:    DCB $40

; *** Load/Store ***
load_store:
    LDA #$42
    LDA zp1
    LDA zp1,X
    LDA $2000
    LDA $2000,X
    LDA $2000,Y
    LDA (pointer,X)
    LDA (pointer),Y

    LDX #$42
    LDX zp1
    LDX zp1,Y
    LDX $2000
    LDX $2000,Y

    LDY #$42
    LDY zp1
    LDY zp1,X
    LDY $2000
    LDY $2000,X

    STA zp1
    STA zp1,X
    STA $2000
    STA $2000,X
    STA $2000,Y
    STA (pointer,X)
    STA (pointer),Y

    STX zp1
    STX zp1,Y
    STX $2000

    STY zp1
    STY zp1,X
    STY $2000

; *** Arithmetic ***
arithmetic:
    ADC #$42
    ADC zp1
    ADC zp1,X
    ADC $2000
    ADC $2000,X
    ADC $2000,Y
    ADC (pointer,X)
    ADC (pointer),Y

    SBC #$42
    SBC zp1
    SBC $2000,Y
    SBC (pointer),Y

    INC zp1
    INC $2000,X
    DEC zp1,X
    DEC $2000

    INX
    INY
    DEX
    DEY

; *** Logical ***
logical:
    AND #$42
    ORA zp1,X
    EOR (pointer),Y

; *** Compare ***
compare:
    CMP #$42
    CMP $2000,X
    CPX zp1
    CPY $2000

; *** Shifts/Rotates ***
shifts:
    ASL
    ASL A
    LSR zp1
    ROL zp1,X
    ROR $2000,X

; *** Bit ***
bits:
    BIT zp1
    BIT $2000

; *** Jumps ***
jumps:
    JMP skip
    JMP (pointer)
    JSR subr
skip:
    RTS
subr:
    NOP
    RTS

; *** Branches ***
branches:
    BCC branch1
    BCS branch1
    BEQ branch1
    BMI branch1
    BNE branch1
    BPL branch1
    BVC branch1
    BVS branch1
branch1:

; *** Long branch (rewritten as branch over JMP) ***
    BEQ far_away
    .string "PADDING THAT PUSHES THE TARGET OUT OF BRANCH RANGE. "
    .string "PADDING THAT PUSHES THE TARGET OUT OF BRANCH RANGE. "
    .string "PADDING THAT PUSHES THE TARGET OUT OF BRANCH RANGE. "
far_away:

; *** Transfers, stack, status, system ***
misc:
    TAX
    TXA
    TAY
    TYA
    TSX
    TXS
    PHA
    PLA
    PHP
    PLP
    CLC
    SEC
    CLI
    SEI
    CLV
    CLD
    SED
    BRK
    NOP
    RTI

; *** Data ***
table:
    .byte <table, >table, 1+2*3
    .word table, *

test_end:
    RTS
"""


def main():
    output_dir = Path("build")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Assemble the program
    # ==========================================================================
    assembler = Assembler6502()
    code, items = assembler.assemble_full(DEMO_PROGRAM)

    # ==========================================================================
    # 2. Listing: print and save
    # ==========================================================================
    assembler.print_listing()
    assembler.save_listing(output_dir / "listing.txt")

    # ==========================================================================
    # 3. Raw binary output
    # ==========================================================================
    Assembler6502.write_bin(code, output_dir / "demo.bin")

    print(f"Machine code saved to {output_dir / 'demo.bin'}")
    print(f"Listing saved to {output_dir / 'listing.txt'}")
    print(f"Total bytes: {len(code)} ({len(items)} items after branch expansion)")

    # ==========================================================================
    # 4. Symbols
    # ==========================================================================
    for name in ("load_store", "branch1", "far_away", "test_end"):
        print(f"  {name:12s} = ${assembler.lookup(name):04X}")


if __name__ == "__main__":
    main()
