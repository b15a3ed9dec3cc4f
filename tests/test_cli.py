# =============================================================================
# test_cli.py - Command-Line Interface Tests
# =============================================================================
# Tests for the asm6502 command.
#
# Test coverage includes:
#   - Help and version output
#   - Binary, listing and symbol file generation
#   - --origin parsing and validation
#   - Include paths
#   - Exit codes for assembly errors and I/O errors
#   - Error handler messages and tracebacks
# =============================================================================

import pytest
from click.testing import CliRunner

from asm6502.cli.asm import main
from asm6502.cli.errors import ExitCode, handle_cli_exception
from asm6502.errors import AssemblerError, AssemblerIOError


PROGRAM = """
        *=$0800
start:  LDA #$42
        STA $0200
        RTS
"""


# =============================================================================
# Helper Functions
# =============================================================================

@pytest.fixture
def source_file(tmp_path):
    """Write the sample program and return its path."""
    path = tmp_path / "prog.asm"
    path.write_text(PROGRAM)
    return path


def run(*args):
    """Invoke the asm6502 command with string arguments."""
    return CliRunner().invoke(main, [str(a) for a in args])


# =============================================================================
# Basic Invocation Tests
# =============================================================================

class TestInvocation:
    """Test help, version and the default output."""

    def test_help(self):
        result = run("--help")
        assert result.exit_code == 0
        assert "Assemble 6502 source code" in result.output

    def test_version(self):
        result = run("--version")
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_default_output_file(self, source_file):
        result = run(source_file)
        assert result.exit_code == ExitCode.SUCCESS
        output = source_file.with_suffix(".bin")
        assert output.read_bytes() == bytes([0xA9, 0x42, 0x8D, 0x00, 0x02, 0x60])

    def test_missing_input(self, tmp_path):
        result = run(tmp_path / "missing.asm")
        assert result.exit_code == 2


# =============================================================================
# Output File Tests
# =============================================================================

class TestOutputFiles:
    """Test -o, -l, -s and -p."""

    def test_all_outputs(self, source_file, tmp_path):
        out = tmp_path / "out.bin"
        lst = tmp_path / "out.lst"
        sym = tmp_path / "out.sym"

        result = run(source_file, "-o", out, "-l", lst, "-s", sym)
        assert result.exit_code == 0
        assert out.read_bytes()[:2] == bytes([0xA9, 0x42])
        assert "$0800: $A9 $42      LDA #$42" in lst.read_text()
        assert "start $0800" in sym.read_text().splitlines()

    def test_print_listing(self, source_file):
        result = run(source_file, "-p")
        assert result.exit_code == 0
        assert "Assembly Listing:" in result.output
        assert "STA $0200" in result.output

    def test_verbose_summary(self, source_file):
        result = run(source_file, "-v")
        assert result.exit_code == 0
        assert "Wrote 6 bytes" in result.output


# =============================================================================
# Option Tests
# =============================================================================

class TestOptions:
    """Test --origin and --include."""

    def test_origin(self, tmp_path):
        src = tmp_path / "org.asm"
        src.write_text("start: NOP\n")
        sym = tmp_path / "org.sym"

        result = run(src, "--origin", "$1000", "-s", sym)
        assert result.exit_code == 0
        assert "start $1000" in sym.read_text().splitlines()

    def test_origin_hex_c_style(self, tmp_path):
        src = tmp_path / "org.asm"
        src.write_text("start: NOP\n")
        sym = tmp_path / "org.sym"

        result = run(src, "--origin", "0x0900", "-s", sym)
        assert result.exit_code == 0
        assert "start $0900" in sym.read_text().splitlines()

    def test_invalid_origin(self, source_file):
        result = run(source_file, "--origin", "zz")
        assert result.exit_code == 2

    def test_origin_out_of_range(self, source_file):
        result = run(source_file, "--origin", "$10000")
        assert result.exit_code == 2

    def test_include_path(self, tmp_path):
        assets = tmp_path / "assets"
        assets.mkdir()
        (assets / "tiles.bin").write_bytes(b"\x11\x22")
        src = tmp_path / "inc.asm"
        src.write_text('.incbin "tiles.bin"\n')
        out = tmp_path / "inc.bin"

        result = run(src, "-I", assets, "-o", out)
        assert result.exit_code == 0
        assert out.read_bytes() == b"\x11\x22"


# =============================================================================
# Error Exit Code Tests
# =============================================================================

class TestErrorExits:
    """Test that failures map to the documented exit codes."""

    def test_assembly_error(self, tmp_path):
        src = tmp_path / "bad.asm"
        src.write_text("NOP\nLDA #$100\n")
        result = run(src)
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "Assembly failed" in result.output
        assert "immediate value too large" in result.output

    def test_syntax_error_reports_line(self, tmp_path):
        src = tmp_path / "bad.asm"
        src.write_text('NOP\n.string "oops\n')
        result = run(src)
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "bad.asm:2: error:" in result.output

    def test_missing_include(self, tmp_path):
        src = tmp_path / "inc.asm"
        src.write_text('.incbin "nothere.bin"\n')
        result = run(src)
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "nothere.bin" in result.output

    def test_unwritable_output(self, source_file, tmp_path):
        result = run(source_file, "-o", tmp_path / "missing" / "out.bin")
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# Error Handler Tests
# =============================================================================

class TestHandleCliException:
    """Test handle_cli_exception directly."""

    def test_build_error_heading(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(AssemblerError("bad operand"), error_type="Assembly")
        assert exc_info.value.code == ExitCode.BUILD_ERROR
        err = capsys.readouterr().err
        assert err.startswith("Assembly failed\n")
        assert "bad operand" in err

    def test_build_error_without_heading(self, capsys):
        with pytest.raises(SystemExit):
            handle_cli_exception(AssemblerError("bad operand"))
        assert "failed" not in capsys.readouterr().err

    def test_io_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(AssemblerIOError("x.bin", "not found"))
        assert exc_info.value.code == ExitCode.INVALID_ARGS
        assert capsys.readouterr().err.startswith("Error: ")

    def test_missing_file(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(FileNotFoundError("x.asm"))
        assert exc_info.value.code == ExitCode.INVALID_ARGS

    def test_unexpected_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            try:
                raise RuntimeError("boom")
            except RuntimeError as e:
                handle_cli_exception(e, verbose=True)
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
        err = capsys.readouterr().err
        assert "Internal error: boom" in err
        assert "Traceback" in err
