"""Tagged value model for render contexts.

Render data is converted to ``Value`` before it reaches the template engine,
so that lookups are total: a missing key or a type mismatch anywhere along a
dotted path yields ``ABSENT`` instead of raising. The engine hands the
library a ``ValueMapping`` view, so each path segment it resolves goes
through ``Value.get``.

This module is a leaf of the dependency graph: no muxfmt imports
beyond errors.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from muxfmt.errors import ContextError

# Counts and dimensions are sized like an unsigned 64-bit machine word.
MAX_NUMBER = 2**64 - 1


class ValueKind(Enum):
    """Discriminator for Value."""

    ABSENT = "absent"
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class Value:
    """One node of a render context.

    ``data`` holds a bool, int, str, tuple[Value, ...] or dict[str, Value]
    depending on ``kind``; it is None for ABSENT.
    """

    kind: ValueKind
    data: object = None

    # ─── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_python(cls, obj: object) -> Value:
        """Build a Value from plain data or a dataclass view, field by field."""
        if obj is None:
            return ABSENT
        if isinstance(obj, Value):
            return obj
        # bool before int: bool is an int subclass
        if isinstance(obj, bool):
            return cls(ValueKind.BOOLEAN, obj)
        if isinstance(obj, int):
            if obj < 0 or obj > MAX_NUMBER:
                raise ContextError(f"number out of range: {obj}")
            return cls(ValueKind.NUMBER, obj)
        if isinstance(obj, str):
            return cls(ValueKind.TEXT, obj)
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return cls(
                ValueKind.MAPPING,
                {f.name: cls.from_python(getattr(obj, f.name)) for f in dataclasses.fields(obj)},
            )
        if isinstance(obj, Mapping):
            return cls(ValueKind.MAPPING, {str(k): cls.from_python(v) for k, v in obj.items()})
        if isinstance(obj, Sequence) and not isinstance(obj, (bytes, bytearray)):
            return cls(ValueKind.SEQUENCE, tuple(cls.from_python(v) for v in obj))
        raise ContextError(f"unsupported context value of type {type(obj).__name__}")

    # ─── Queries ──────────────────────────────────────────────────────────────

    @property
    def is_absent(self) -> bool:
        return self.kind is ValueKind.ABSENT

    def get(self, key: str) -> Value:
        """Resolve one path segment. Never raises."""
        if self.kind is ValueKind.MAPPING:
            return self.data.get(key, ABSENT)
        if self.kind is ValueKind.SEQUENCE and key.isdigit():
            index = int(key)
            if index < len(self.data):
                return self.data[index]
        return ABSENT

    def lookup(self, path: str) -> Value:
        """Resolve a dotted path such as ``session.name``."""
        current = self
        for segment in path.split("."):
            if not segment:
                return ABSENT
            current = current.get(segment)
            if current.is_absent:
                return ABSENT
        return current

    # ─── Conversion ───────────────────────────────────────────────────────────

    def to_template(self) -> object:
        """Data for the template library. Mappings stay backed by this Value."""
        if self.kind is ValueKind.SEQUENCE:
            return [v.to_template() for v in self.data]
        if self.kind is ValueKind.MAPPING:
            return ValueMapping(self)
        return self.data

    def to_python(self) -> object:
        """Plain Python data: lists and dicts all the way down."""
        if self.kind is ValueKind.SEQUENCE:
            return [v.to_python() for v in self.data]
        if self.kind is ValueKind.MAPPING:
            return {k: v.to_python() for k, v in self.data.items()}
        return self.data

    def render(self) -> str:
        """Text form used when a value is interpolated or passed to a helper."""
        return render_python(self.to_python())


ABSENT = Value(ValueKind.ABSENT)


class ValueMapping(Mapping):
    """Read-only view of a MAPPING Value handed to the template library.

    Each path segment the library resolves goes through ``Value.get``. Absent
    keys give None rather than KeyError, so the library never falls back to
    attribute lookup on this object.
    """

    __slots__ = ("value",)

    def __init__(self, value: Value):
        self.value = value

    def __getitem__(self, key):
        child = self.value.get(str(key))
        return None if child.is_absent else child.to_template()

    def __contains__(self, key) -> bool:
        return not self.value.get(str(key)).is_absent

    def __iter__(self):
        return iter(self.value.data)

    def __len__(self) -> int:
        return len(self.value.data)

    def __str__(self) -> str:
        return self.value.render()


def render_python(obj: object) -> str:
    """Text form of plain data, following the Handlebars JSON rendering rules."""
    if obj is None:
        return ""
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Mapping):
        return "[object]"
    if isinstance(obj, (list, tuple)):
        return "[" + ", ".join(render_python(v) for v in obj) + "]"
    return str(obj)
