# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end integration tests for the complete 6502 assembler.
# These tests verify the full pipeline from source code to machine code.
#
# Test coverage includes:
#   - Complete program assembly
#   - Symbols, constants and origin handling
#   - Data directives and included binaries
#   - Layout consistency for forward references
#   - Error reporting with line numbers and context
#   - Determinism, reset and the alternate entry points
#   - Binary and symbol file output
# =============================================================================

import io

import pytest

from asm6502 import Assembler6502
from asm6502.errors import (
    AddressingModeError,
    AssemblerError,
    AssemblerIOError,
    AssemblySyntaxError,
    UndefinedSymbolError,
)


# =============================================================================
# Full Assembly Pipeline Tests
# =============================================================================

class TestFullPipeline:
    """Test the complete assembly pipeline from source to bytes."""

    def test_minimal_program(self):
        """Assemble a single instruction."""
        assert Assembler6502().assemble_bytes("NOP") == b"\xEA"

    def test_program_with_org(self):
        source = """
            *=$0800
            LDA #$42
            STA $0200
        """
        code = Assembler6502().assemble_bytes(source)
        assert code == bytes([0xA9, 0x42, 0x8D, 0x00, 0x02])

    def test_program_with_labels(self):
        source = """
            *=$0800
start:      LDX #$00
loop:       INX
            CPX #$10
            BNE loop
            JMP start
        """
        code = Assembler6502().assemble_bytes(source)
        assert code == bytes([
            0xA2, 0x00,          # LDX #$00
            0xE8,                # INX
            0xE0, 0x10,          # CPX #$10
            0xD0, 0xFB,          # BNE loop
            0x4C, 0x00, 0x08,    # JMP start
        ])

    def test_program_with_data(self):
        source = """
            *=$0800
start:      .byte $01, <start, >start
            .word $1234, start
            .string "HI"
            DCB 7 8
        """
        code = Assembler6502().assemble_bytes(source)
        assert code == bytes([
            0x01, 0x00, 0x08,
            0x34, 0x12, 0x00, 0x08,
            0x48, 0x49,
            0x07, 0x08,
        ])

    def test_accumulator_operand(self):
        assert Assembler6502().assemble_bytes("ASL A\nLSR") == bytes([0x0A, 0x4A])

    def test_default_origin(self):
        asm = Assembler6502()
        asm.assemble_bytes("start: NOP")
        assert asm.origin == 0x0080
        assert asm.lookup("start") == 0x0080

    def test_configured_origin(self):
        asm = Assembler6502(origin=0x1000)
        asm.assemble_bytes("start: NOP")
        assert asm.lookup("start") == 0x1000

    def test_org_does_not_pad(self):
        """Output bytes are contiguous regardless of origin changes."""
        source = "*=$0800\nNOP\n*=$0900\nNOP"
        assert Assembler6502().assemble_bytes(source) == b"\xEA\xEA"

    def test_org_relative_to_current_address(self):
        asm = Assembler6502()
        asm.assemble_bytes("*=$0800\n*=*+4\nlabel: NOP")
        assert asm.lookup("label") == 0x0804


# =============================================================================
# Zero Page and Constant Tests
# =============================================================================

class TestZeroPageAndConstants:
    """Test zero-page selection and constant consistency."""

    def test_zero_page_versus_forced_absolute(self):
        source = """
            *=$0010
zp:         .byte 0
            *=$0800
            LDA zp
            LDA >zp
        """
        code = Assembler6502().assemble_bytes(source)
        assert code == bytes([0x00, 0xA5, 0x10, 0xAD, 0x10, 0x00])

    def test_constant_consistency(self):
        """A constant encodes exactly like its literal value."""
        source = """
SCREEN = $0400
            *=$0800
            LDX #<SCREEN
            LDY #>SCREEN
            STA SCREEN
            STA $0400
        """
        asm = Assembler6502()
        code = asm.assemble_bytes(source)
        assert asm.lookup("SCREEN") == 0x0400
        assert code[:4] == bytes([0xA2, 0x00, 0xA0, 0x04])
        assert code[4:7] == code[7:10] == bytes([0x8D, 0x00, 0x04])

    def test_constant_from_current_address(self):
        asm = Assembler6502()
        asm.assemble_bytes("*=$0800\nNOP\nhere = *")
        assert asm.lookup("here") == 0x0801

    def test_constant_too_large_for_immediate(self):
        source = "SCREEN = $0400\nLDA #SCREEN"
        with pytest.raises(AssemblerError) as exc_info:
            Assembler6502().assemble_bytes(source)
        assert "immediate value too large" in str(exc_info.value)


# =============================================================================
# Forward Reference Tests
# =============================================================================

class TestForwardReferences:
    """Test that forward references never make addresses drift."""

    def test_forward_label_reference(self):
        source = "*=$0800\nJMP end\nNOP\nend: RTS"
        code = Assembler6502().assemble_bytes(source)
        assert code == bytes([0x4C, 0x04, 0x08, 0xEA, 0x60])

    def test_forward_zero_page_label_emitted_absolute(self):
        """A forward reference to a zero-page label keeps its laid-out size."""
        source = """
            LDA var
            RTS
var:        .byte 0
        """
        asm = Assembler6502()
        code = asm.assemble_bytes(source)
        assert asm.lookup("var") == 0x0084
        assert code == bytes([0xAD, 0x84, 0x00, 0x60, 0x00])

    def test_forward_zero_page_constant_emitted_absolute(self):
        code = Assembler6502().assemble_bytes("LDA data\nRTS\ndata = $10")
        assert code == bytes([0xAD, 0x10, 0x00, 0x60])

    def test_forward_reference_without_absolute_form(self):
        """STX zp,Y and STY zp,X only exist in zero-page form."""
        asm = Assembler6502()
        assert asm.assemble_bytes("*=$0800\nSTX fwd,Y\nfwd = $10") == bytes([0x96, 0x10])
        assert asm.assemble_bytes("*=$0800\nSTY fwd,X\nfwd = $10") == bytes([0x94, 0x10])

    def test_forward_zero_page_only_keeps_addresses(self):
        asm = Assembler6502()
        code = asm.assemble_bytes("*=$0800\nSTX tbl,Y\nend: RTS\ntbl = $10")
        assert code == bytes([0x96, 0x10, 0x60])
        assert asm.lookup("end") == 0x0802

    def test_forward_reference_with_absolute_form(self):
        """LDX has absolute,Y, so the forward reference stays absolute."""
        code = Assembler6502().assemble_bytes("*=$0800\nLDX fwd,Y\nfwd = $10")
        assert code == bytes([0xBE, 0x10, 0x00])

    def test_forward_reference_forced_zero_page(self):
        code = Assembler6502().assemble_bytes("*=$0800\nLDA <fwd\nRTS\nfwd = $1234")
        assert code == bytes([0xA5, 0x34, 0x60])

    def test_forward_zero_page_only_out_of_range(self):
        """A forward STX zp,Y whose value lands above $FF has no encoding."""
        with pytest.raises(AddressingModeError):
            Assembler6502().assemble_bytes("STX tbl,Y\ntbl = $1234")

    def test_forward_constant_reference_is_an_error(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            Assembler6502().assemble_bytes("X = later\nlater: NOP")
        assert "Constant 'X'" in str(exc_info.value)


# =============================================================================
# Include File Tests
# =============================================================================

class TestIncludeFiles:
    """Test .incbin processing."""

    def test_incbin_from_include_path(self, tmp_path):
        (tmp_path / "data.bin").write_bytes(b"\x01\x02\x03")
        asm = Assembler6502(include_paths=[tmp_path])
        code = asm.assemble_bytes('*=$0800\n.incbin "data.bin"\nend: NOP')
        assert code == b"\x01\x02\x03\xEA"
        assert asm.lookup("end") == 0x0803

    def test_incbin_next_to_source_file(self, tmp_path):
        (tmp_path / "font.bin").write_bytes(b"\xAA\xBB")
        source_file = tmp_path / "main.asm"
        source_file.write_text('.incbin "font.bin"\nRTS\n')

        code = Assembler6502().assemble_file(source_file)
        assert code == b"\xAA\xBB\x60"

    def test_missing_incbin(self):
        with pytest.raises(AssemblerIOError) as exc_info:
            Assembler6502().assemble_bytes('.incbin "missing.bin"')
        assert not isinstance(exc_info.value, AssemblerError)
        assert "missing.bin" in str(exc_info.value)

    def test_invalid_include_path_skipped(self, tmp_path):
        asm = Assembler6502()
        asm.add_include_path(tmp_path / "nope")
        assert asm.include_paths == []
        asm.add_include_path(tmp_path)
        assert asm.include_paths == [tmp_path]

    def test_missing_source_file(self, tmp_path):
        with pytest.raises(AssemblerIOError):
            Assembler6502().assemble_file(tmp_path / "missing.asm")


# =============================================================================
# Error Handling Tests
# =============================================================================

class TestErrorHandling:
    """Test error reporting."""

    def test_error_context_and_line(self):
        source = "*=$0800\nLDA #$100"
        with pytest.raises(AssemblerError) as exc_info:
            Assembler6502().assemble(source, "demo.asm")
        error = exc_info.value
        assert error.location.line == 2
        assert "demo.asm:2" in str(error)
        assert "$0800: LDA #$100" in str(error)
        assert "immediate value too large" in str(error)

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            Assembler6502().assemble_bytes("JMP nowhere")
        assert exc_info.value.symbol == "nowhere"

    def test_unknown_mnemonic(self):
        with pytest.raises(AddressingModeError):
            Assembler6502().assemble_bytes("FOO")

    def test_syntax_error(self):
        with pytest.raises(AssemblySyntaxError):
            Assembler6502().assemble_bytes('.string "unterminated')

    def test_byte_directive_error_context(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            Assembler6502().assemble_bytes("*=$0800\n.byte missing")
        assert ".byte directive at $0800" in str(exc_info.value)

    def test_assemble_into_clears_buffer(self):
        buffer = bytearray(b"junk")
        with pytest.raises(AssemblerError):
            Assembler6502().assemble_into("FOO", buffer)
        assert buffer == bytearray()


# =============================================================================
# Determinism and Entry Point Tests
# =============================================================================

class TestEntryPoints:
    """Test determinism, reset and the alternate entry points."""

    SOURCE = "*=$0800\nstart: LDA #1\nBNE start\nRTS"

    def test_deterministic(self):
        asm = Assembler6502()
        first = asm.assemble_bytes(self.SOURCE)
        second = asm.assemble_bytes(self.SOURCE)
        assert first == second

    def test_reset(self):
        asm = Assembler6502(origin=0x1000)
        first = asm.assemble_bytes(self.SOURCE)
        asm.reset()
        assert asm.origin == Assembler6502.DEFAULT_ORIGIN
        assert asm.symbols() == {}
        assert asm.assemble_bytes(self.SOURCE) == first

    def test_symbols_not_carried_over(self):
        asm = Assembler6502()
        asm.assemble_bytes("old: NOP")
        asm.assemble_bytes("new: NOP")
        assert asm.lookup("old") is None

    def test_assemble_returns_items(self):
        code, items = Assembler6502().assemble(self.SOURCE)
        assert len(code) == 5
        assert len(items) == 5

    def test_assemble_full(self):
        assert Assembler6502().assemble_full("NOP")[0] == b"\xEA"

    def test_assemble_into(self):
        buffer = bytearray(b"junk")
        Assembler6502().assemble_into("NOP", buffer)
        assert buffer == bytearray(b"\xEA")

    def test_assemble_with_symbols(self):
        code, symbols = Assembler6502().assemble_with_symbols(self.SOURCE)
        assert symbols == {"start": 0x0800}
        symbols["start"] = 0
        assert code[:2] == bytes([0xA9, 0x01])

    def test_assemble_with_addr_map(self):
        code, addr_map = Assembler6502().assemble_with_addr_map(
            "*=$0800\nLDA #1\nstart: NOP"
        )
        assert len(addr_map) == len(code)
        assert addr_map == [(1, 0x0800), (1, 0x0801), (3, 0x0802)]

    def test_assemble_instruction(self):
        asm = Assembler6502()
        assert asm.assemble_instruction("LDA", "#$42", 0x0800) == bytes([0xA9, 0x42])

    def test_parse_source(self):
        items = Assembler6502().parse_source("start: NOP")
        assert len(items) == 2


# =============================================================================
# Output File Tests
# =============================================================================

class TestFileOutput:
    """Test binary and symbol file output."""

    def test_write_bin_path(self, tmp_path):
        target = tmp_path / "out.bin"
        Assembler6502.write_bin(b"\xA9\x42", target)
        assert target.read_bytes() == b"\xA9\x42"

    def test_write_bin_stream(self):
        stream = io.BytesIO()
        Assembler6502.write_bin(b"\xEA", stream)
        assert stream.getvalue() == b"\xEA"

    def test_write_bin_failure(self, tmp_path):
        with pytest.raises(AssemblerIOError):
            Assembler6502.write_bin(b"\xEA", tmp_path / "missing" / "out.bin")

    def test_write_symbols(self, tmp_path):
        asm = Assembler6502()
        asm.assemble_bytes("*=$0800\nstart: NOP\nBNE start")
        target = tmp_path / "out.sym"
        asm.write_symbols(target)

        lines = target.read_text().splitlines()
        assert "start $0800" in lines
        assert not any(line.startswith("__skip_") for line in lines)
