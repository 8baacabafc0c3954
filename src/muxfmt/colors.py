"""Terminal styling vocabulary for the ``style`` helper and diagnostics.

Style lists are comma-separated tokens: text attributes, ``on_<color>`` for
the background, anything else a foreground color. Color names use the
two-word ``bright red`` form; templates write ``bright_red`` and the
underscore is rewritten before lookup.

SGR rendering is delegated to rich.

// [LAW:one-source-of-truth] Color names and attribute names live only in the tables below.
"""

from __future__ import annotations

import logging
import re

from rich.color import Color, ColorParseError, ColorSystem
from rich.style import Style

from muxfmt.errors import ContextError
from muxfmt.settings import RenderOptions, UNKNOWN_COLOR_ERROR

logger = logging.getLogger(__name__)

_BRIGHT_RE = re.compile(r"bright_")

# Standard 16-color palette numbers.
COLOR_NAMES: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "purple": 5,
    "cyan": 6,
    "white": 7,
    "bright black": 8,
    "bright red": 9,
    "bright green": 10,
    "bright yellow": 11,
    "bright blue": 12,
    "bright magenta": 13,
    "bright purple": 13,
    "bright cyan": 14,
    "bright white": 15,
}

# Template attribute name -> rich Style keyword.
ATTRIBUTES: dict[str, str] = {
    "bold": "bold",
    "underline": "underline",
    "italic": "italic",
    "dimmed": "dim",
    "reversed": "reverse",
    "blink": "blink",
    "hidden": "conceal",
    "strikethrough": "strike",
}

_HEX_RE = re.compile(r"#[0-9a-fA-F]{6}")

# Diagnostic palette
ERROR_LABEL = Style(color=Color.from_ansi(COLOR_NAMES["bright red"]), bold=True)
GUTTER = Style(color=Color.from_ansi(COLOR_NAMES["bright blue"]))
CARET = ERROR_LABEL


def normalize_color_name(name: str) -> str:
    """``bright_red`` -> ``bright red``; everything else unchanged."""
    return _BRIGHT_RE.sub("bright ", name.strip())


def parse_color(name: str) -> Color | None:
    """Resolve a color name (after normalization) or ``#rrggbb``. None if unknown."""
    normalized = normalize_color_name(name).lower()
    if normalized in COLOR_NAMES:
        return Color.from_ansi(COLOR_NAMES[normalized])
    if _HEX_RE.fullmatch(normalized):
        try:
            return Color.parse(normalized)
        except ColorParseError:
            return None
    return None


def _color_or_policy(name: str, options: RenderOptions) -> Color | None:
    color = parse_color(name)
    if color is None:
        if options.unknown_color == UNKNOWN_COLOR_ERROR:
            raise ContextError(f"unknown color {name!r}")
        logger.debug("ignoring unknown color %r", name)
    return color


def parse_style_list(styles: str, options: RenderOptions) -> Style:
    """Fold a comma-separated style list into one rich Style, left to right."""
    style = Style()
    for raw_token in styles.split(","):
        token = normalize_color_name(raw_token)
        if not token:
            continue
        attribute = ATTRIBUTES.get(token)
        if attribute is not None:
            style += Style(**{attribute: True})
        elif token.startswith("on_"):
            color = _color_or_policy(token[len("on_"):], options)
            if color is not None:
                style += Style(bgcolor=color)
        else:
            color = _color_or_policy(token, options)
            if color is not None:
                style += Style(color=color)
    return style


def paint(text: str, style: Style, options: RenderOptions) -> str:
    """Wrap text in the SGR sequence for style; plain text when color is off."""
    if not options.color_enabled or not text:
        return text
    return style.render(text, color_system=ColorSystem.TRUECOLOR)
