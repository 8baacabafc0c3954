"""Template engine: validate, compile with pybars3, render against a Value context.

Templates use Handlebars syntax. Output follows Handlebars escaping rules:
``{{...}}`` escapes HTML-significant characters, ``{{{...}}}`` does not.

// [LAW:single-enforcer] All library exceptions are translated to RenderError here.
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from collections.abc import Callable

from pybars import Compiler, PybarsError

from muxfmt.errors import ContextError, RenderError, TemplateSyntaxError
from muxfmt.helpers import build_library_helpers
from muxfmt.settings import DEFAULT_OPTIONS, RenderOptions
from muxfmt.syntax import check_template, position_of
from muxfmt.values import Value

logger = logging.getLogger(__name__)

_CACHE_SIZE = 64

# pybars parse failures: "Error at character N of line L near <rest of template>"
_LIBRARY_ERROR_RE = re.compile(r"Error at character \d+ of line \d+ near (?P<near>.*)\Z", re.DOTALL)


def library_syntax_error(template: str, error: PybarsError) -> TemplateSyntaxError:
    """Locate a library parse failure by finding the text it stopped at."""
    message = str(error)
    match = _LIBRARY_ERROR_RE.search(message)
    if match is not None:
        near = match.group("near")
        offset = template.find(near) if near else -1
        if offset != -1:
            line, column = position_of(template, offset)
            return TemplateSyntaxError(f"could not parse template near {near[:20]!r}", line, column)
    return TemplateSyntaxError(message)


class TemplateEngine:
    """Renders templates with the fixed helper table.

    Compiled templates are kept in a small LRU keyed by template text.
    """

    def __init__(self, options: RenderOptions = DEFAULT_OPTIONS, cache_size: int = _CACHE_SIZE):
        self.options = options
        self._compiler = Compiler()
        self._helpers = build_library_helpers(options)
        self._cache: OrderedDict[str, Callable[..., object]] = OrderedDict()
        self._cache_size = cache_size

    def compile(self, template: str) -> Callable[..., object]:
        """Validate and compile a template, or raise TemplateSyntaxError."""
        compiled = self._cache.get(template)
        if compiled is not None:
            self._cache.move_to_end(template)
            return compiled

        check_template(template)
        try:
            compiled = self._compiler.compile(template)
        except PybarsError as e:
            raise library_syntax_error(template, e) from e

        self._cache[template] = compiled
        if len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return compiled

    def render(self, template: str, context: Value) -> str:
        """Render ``template`` against ``context``. Raises a RenderError subclass on failure."""
        compiled = self.compile(template)
        try:
            return str(compiled(context.to_template(), helpers=self._helpers))
        except RenderError:
            raise
        except TypeError as e:
            # built-in block helpers called with the wrong argument count
            logger.debug("helper call failed: %r", e)
            raise ContextError("a helper was called with the wrong number of arguments") from e
        except Exception as e:
            # Anything else the library raises while evaluating is a context problem.
            logger.debug("template evaluation failed: %r", e)
            raise ContextError(str(e) or type(e).__name__) from e
