"""The fixed helper table available to templates.

Each helper is a plain function over Python values. ``HELPERS`` is the only
registry: adding a helper means adding one HelperSpec entry. The engine
adapts the table to the template library's calling convention with
``build_library_helpers``.

Block helpers (``{{#unless x}}...{{else}}...{{/unless}}``) receive the
current scope and the library's block mapping, whose ``fn`` and ``inverse``
entries render the two branches.

// [LAW:one-source-of-truth] Helper names and arities are defined only in HELPERS.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from muxfmt.colors import paint, parse_style_list
from muxfmt.errors import ArithmeticRenderError, ContextError
from muxfmt.settings import DEFAULT_OPTIONS, RenderOptions
from muxfmt.values import MAX_NUMBER, ValueMapping, render_python


# ─── Arithmetic ───────────────────────────────────────────────────────────────


def _operand(value: object, helper: str) -> int:
    # bool is an int subclass; text is never coerced
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContextError(f"{helper}: expected a non-negative integer, got {value!r}")
    if value < 0 or value > MAX_NUMBER:
        raise ContextError(f"{helper}: operand out of range: {value}")
    return value


def _checked(result: int, helper: str) -> int:
    if result < 0:
        raise ArithmeticRenderError(f"{helper}: result underflows zero")
    if result > MAX_NUMBER:
        raise ArithmeticRenderError(f"{helper}: result overflows {MAX_NUMBER}")
    return result


def add(a, b) -> int:
    return _checked(_operand(a, "add") + _operand(b, "add"), "add")


def sub(a, b) -> int:
    return _checked(_operand(a, "sub") - _operand(b, "sub"), "sub")


def mul(a, b) -> int:
    return _checked(_operand(a, "mul") * _operand(b, "mul"), "mul")


def div(a, b) -> int:
    dividend, divisor = _operand(a, "div"), _operand(b, "div")
    if divisor == 0:
        raise ArithmeticRenderError("div: division by zero")
    return dividend // divisor


def mod(a, b) -> int:
    dividend, divisor = _operand(a, "mod"), _operand(b, "mod")
    if divisor == 0:
        raise ArithmeticRenderError("mod: division by zero")
    return dividend % divisor


# ─── Text ─────────────────────────────────────────────────────────────────────


def style(text, styles, *, options: RenderOptions = DEFAULT_OPTIONS) -> str:
    """Apply a comma-separated style list such as ``"bold, bright_red, on_blue"``."""
    if not isinstance(styles, str):
        raise ContextError(f"style: style list must be text, got {styles!r}")
    return paint(render_python(text), parse_style_list(styles, options), options)


def join(*values, sep=",") -> str:
    """Render each value to text and join with ``sep``. Sequence values are flattened."""
    parts: list[str] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            parts.extend(render_python(v) for v in value)
        else:
            parts.append(render_python(value))
    return render_python(sep).join(parts)


def lookup(obj, path):
    """Resolve a dotted ``path`` inside a mapping; absent anywhere renders as nothing."""
    if not isinstance(obj, ValueMapping):
        return None
    found = obj.value.lookup(render_python(path))
    return None if found.is_absent else found.to_template()


# ─── Blocks ───────────────────────────────────────────────────────────────────


def unless(this, block: Mapping, value):
    """Inverse of the built-in ``if``: ``{{else}}`` renders when ``value`` is truthy."""
    if callable(value):
        value = value(this)
    if value:
        return block["inverse"](this)
    return block["fn"](this)


def missing(*args, **kwargs) -> str:
    """Unknown helpers and unhandled blocks render as nothing."""
    return ""


# ─── Registry ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HelperSpec:
    """A named helper. ``arity`` None means variadic.

    Block helpers are called as ``func(this, block, *args)``; the arity
    counts ``args`` only.
    """

    name: str
    func: Callable[..., object]
    arity: int | None
    keywords: tuple[str, ...] = ()
    takes_options: bool = False
    block: bool = False


HELPERS: dict[str, HelperSpec] = {
    spec.name: spec
    for spec in (
        HelperSpec("add", add, 2),
        HelperSpec("sub", sub, 2),
        HelperSpec("mul", mul, 2),
        HelperSpec("div", div, 2),
        HelperSpec("mod", mod, 2),
        HelperSpec("style", style, 2, takes_options=True),
        HelperSpec("join", join, None, keywords=("sep",)),
        HelperSpec("lookup", lookup, 2),
        HelperSpec("unless", unless, 1, block=True),
        HelperSpec("helperMissing", missing, None),
        HelperSpec("blockHelperMissing", missing, None),
    )
}


def _check_arity(spec: HelperSpec, args: tuple) -> None:
    if spec.arity is not None and len(args) != spec.arity:
        raise ContextError(f"{spec.name}: expected {spec.arity} argument(s), got {len(args)}")


def call_helper(
    spec: HelperSpec,
    args: tuple,
    kwargs: Mapping[str, object],
    options: RenderOptions = DEFAULT_OPTIONS,
) -> object:
    """Invoke a non-block helper after checking its declared signature."""
    _check_arity(spec, args)
    accepted = {k: v for k, v in kwargs.items() if k in spec.keywords}
    if spec.takes_options:
        accepted["options"] = options
    return spec.func(*args, **accepted)


def call_block_helper(spec: HelperSpec, this, block: Mapping, args: tuple) -> object:
    """Invoke a block helper after checking its declared signature."""
    _check_arity(spec, args)
    return spec.func(this, block, *args)


def build_library_helpers(options: RenderOptions = DEFAULT_OPTIONS) -> dict[str, Callable[..., object]]:
    """Adapt HELPERS to pybars' ``helper(this, *args, **kwargs)`` convention.

    pybars passes block helpers their block mapping right after ``this``.
    """

    def _adapter(spec: HelperSpec) -> Callable[..., object]:
        if spec.block:
            def _invoke(this, block, *args, **kwargs):
                return call_block_helper(spec, this, block, args)
        else:
            def _invoke(this, *args, **kwargs):
                return call_helper(spec, args, kwargs, options)

        _invoke.__name__ = f"helper_{spec.name}"
        return _invoke

    return {name: _adapter(spec) for name, spec in HELPERS.items()}
