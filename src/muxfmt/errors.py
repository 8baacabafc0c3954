"""Error taxonomy for template rendering.

Every failure that can happen while rendering one record is a RenderError.
The dispatcher turns the first one of a batch into a diagnostic; none of
them is allowed to escape the host loop.

// [LAW:one-source-of-truth] The class IS the error kind; `kind` is derived from it.
"""

from __future__ import annotations


class MuxfmtError(Exception):
    """Root of all muxfmt errors."""


class RenderError(MuxfmtError):
    """A single record could not be rendered.

    ``line`` and ``column`` are 1-indexed and only present when the failure
    can be pinned to a location in the template text.
    """

    kind = "render error"

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @property
    def position(self) -> tuple[int, int] | None:
        if self.line is None or self.column is None:
            return None
        return (self.line, self.column)

    def __repr__(self) -> str:
        if self.position is None:
            return f"{type(self).__name__}({self.message!r})"
        return f"{type(self).__name__}({self.message!r}, line={self.line}, column={self.column})"


class TemplateSyntaxError(RenderError):
    """Template text outside the accepted grammar."""

    kind = "template syntax error"


class ContextError(RenderError):
    """A path or helper could not be evaluated against the context."""

    kind = "context error"


class ArithmeticRenderError(RenderError, ArithmeticError):
    """Division by zero, underflow or overflow in a numeric helper."""

    kind = "arithmetic error"


class DataPreconditionError(RenderError):
    """The snapshot violates an invariant needed to build a view."""

    kind = "data precondition error"


class SnapshotFormatError(MuxfmtError, ValueError):
    """An upstream snapshot document could not be decoded."""
