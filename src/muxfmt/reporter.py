"""Positional diagnostics for failed renders.

Layout (positions are 1-indexed)::

    error: template syntax error: unclosed block 'if'
      --> Format error in 1:5
       |
     1 | abc {{#if x}}
       |     ^

Formatting never raises: out-of-range positions are clamped.
"""

from __future__ import annotations

from muxfmt.colors import CARET, ERROR_LABEL, GUTTER, paint
from muxfmt.errors import RenderError
from muxfmt.settings import DEFAULT_OPTIONS, RenderOptions


def source_line(template: str, line: int) -> str:
    """The template's ``line``-th line, or empty when out of range."""
    lines = template.split("\n")
    # str.split leaves a trailing empty element that a line iterator would not
    if lines and lines[-1] == "":
        lines.pop()
    index = max(line - 1, 0)
    if index >= len(lines):
        return ""
    return lines[index].rstrip("\r")


def format_diagnostic(template: str, error: RenderError, options: RenderOptions = DEFAULT_OPTIONS) -> str:
    """Render ``error`` as a diagnostic block ending with a newline."""
    kind = getattr(error, "kind", "error")
    message = getattr(error, "message", None) or str(error)
    label = paint("error", ERROR_LABEL, options)
    header = f"{label}: {kind}: {message}\n"

    position = getattr(error, "position", None)
    if position is None:
        return header

    line, column = position
    try:
        line, column = int(line), int(column)
    except (TypeError, ValueError):
        return header

    sep = paint("|", GUTTER, options)
    arrow = paint("-->", GUTTER, options)
    line_num = paint(f"{line:>2}", GUTTER, options)
    caret = paint("^", CARET, options)
    spaces = " " * max(column - 1, 0)
    return (
        header
        + f"  {arrow} Format error in {line}:{column}\n"
        + f"   {sep}\n"
        + f"{line_num} {sep} {source_line(template, line)}\n"
        + f"   {sep} {spaces}{caret}\n"
    )
