"""Tests for diagnostic formatting."""

from muxfmt.errors import ContextError, TemplateSyntaxError
from muxfmt.reporter import format_diagnostic, source_line
from muxfmt.settings import RenderOptions

PLAIN = RenderOptions(color_enabled=False)


def test_source_line():
    assert source_line("a\nb\nc", 2) == "b"
    assert source_line("a\r\nb", 1) == "a"
    assert source_line("a\n", 2) == ""
    assert source_line("a", 9) == ""


def test_line_zero_saturates_to_first_line():
    assert source_line("first\nsecond", 0) == "first"


def test_diagnostic_with_position():
    err = TemplateSyntaxError("unclosed block 'if'", line=1, column=5)
    assert format_diagnostic("abc {{#if x}}", err, PLAIN) == (
        "error: template syntax error: unclosed block 'if'\n"
        "  --> Format error in 1:5\n"
        "   |\n"
        " 1 | abc {{#if x}}\n"
        "   |     ^\n"
    )


def test_caret_is_padded_by_column_minus_one():
    err = TemplateSyntaxError("boom", line=2, column=3)
    text = format_diagnostic("one\ntwo {{\nthree", err, PLAIN)
    lines = text.splitlines()
    assert lines[3] == " 2 | two {{"
    assert lines[4] == "   | " + "  " + "^"


def test_column_zero_clamps_to_no_padding():
    err = TemplateSyntaxError("boom", line=1, column=0)
    assert format_diagnostic("x", err, PLAIN).endswith("   | ^\n")


def test_out_of_range_line_shows_empty_source():
    err = TemplateSyntaxError("boom", line=7, column=1)
    assert " 7 | \n" in format_diagnostic("only one line", err, PLAIN)


def test_diagnostic_without_position_is_header_only():
    err = ContextError("unknown color 'x'")
    assert format_diagnostic("{{style a \"x\"}}", err, PLAIN) == "error: context error: unknown color 'x'\n"


def test_colored_diagnostic_paints_label_and_gutter():
    err = TemplateSyntaxError("boom", line=1, column=1)
    text = format_diagnostic("x", err, RenderOptions(color_enabled=True))
    assert text.startswith("\x1b[1;91merror\x1b[0m: template syntax error: boom\n")
    assert "\x1b[94m|\x1b[0m" in text
    assert "\x1b[1;91m^\x1b[0m" in text
