"""Tests for style-list parsing and SGR output."""

import logging

import pytest
from rich.color import Color

from muxfmt.colors import normalize_color_name, paint, parse_color, parse_style_list
from muxfmt.errors import ContextError
from muxfmt.settings import RenderOptions, UNKNOWN_COLOR_ERROR

ON = RenderOptions(color_enabled=True)
STRICT = RenderOptions(color_enabled=True, unknown_color=UNKNOWN_COLOR_ERROR)


def styled(text, styles, options=ON):
    return paint(text, parse_style_list(styles, options), options)


class TestNormalization:
    def test_bright_underscore_becomes_space(self):
        assert normalize_color_name("bright_red") == "bright red"
        assert normalize_color_name("  bright_blue ") == "bright blue"

    def test_other_names_unchanged(self):
        assert normalize_color_name("red") == "red"

    def test_parse_color_uses_two_word_bright_names(self):
        assert parse_color("bright_red") == Color.from_ansi(9)
        assert parse_color("bright red") == Color.from_ansi(9)
        assert parse_color("RED") == Color.from_ansi(1)
        assert parse_color("purple") == parse_color("magenta")

    def test_hex_colors(self):
        assert parse_color("#ff8000") == Color.parse("#ff8000")

    def test_unknown_color(self):
        assert parse_color("chartreuse") is None


class TestStyleList:
    def test_foreground(self):
        assert styled("x", "red") == "\x1b[31mx\x1b[0m"

    def test_bright_foreground(self):
        assert styled("x", "bright_red") == "\x1b[91mx\x1b[0m"

    def test_attribute_and_color(self):
        assert styled("x", "bold, bright_red") == "\x1b[1;91mx\x1b[0m"

    def test_attributes_commute(self):
        assert styled("x", "underline,bold") == styled("x", "bold,underline")

    def test_background_with_bright_normalization(self):
        assert styled("x", "on_bright_blue") == "\x1b[104mx\x1b[0m"
        assert styled("x", "on_red") == "\x1b[41mx\x1b[0m"

    def test_last_foreground_wins(self):
        assert styled("x", "red, green") == styled("x", "green")

    @pytest.mark.parametrize(
        "name, keyword",
        [
            ("bold", "bold"),
            ("underline", "underline"),
            ("italic", "italic"),
            ("dimmed", "dim"),
            ("reversed", "reverse"),
            ("blink", "blink"),
            ("hidden", "conceal"),
            ("strikethrough", "strike"),
        ],
    )
    def test_attribute_vocabulary(self, name, keyword):
        assert getattr(parse_style_list(name, ON), keyword) is True

    def test_unknown_color_ignored_by_default(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="muxfmt.colors"):
            assert styled("x", "chartreuse") == "x"
        assert "chartreuse" in caplog.text

    def test_unknown_color_error_policy(self):
        with pytest.raises(ContextError, match="chartreuse"):
            parse_style_list("bold, chartreuse", STRICT)
        with pytest.raises(ContextError):
            parse_style_list("on_chartreuse", STRICT)

    def test_empty_tokens_ignored(self):
        assert styled("x", " , bold ,") == "\x1b[1mx\x1b[0m"


def test_paint_disabled_returns_text():
    assert paint("x", parse_style_list("bold", ON), RenderOptions(color_enabled=False)) == "x"


def test_paint_empty_text():
    assert paint("", parse_style_list("bold", ON), ON) == ""
