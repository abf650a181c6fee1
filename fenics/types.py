"""Type definitions and helpers for Fenics.

This module defines the runtime value model used by the Fenics interpreter.
Scalars are plain Python objects (`int`, `float`, `str`, `bool`); the
remaining tags are small classes defined here. All values are immutable
snapshots: arrays hold tuples and objects are only ever replaced, never
mutated in place, so handing a value to another binding behaves like a copy.

It also holds `TypeSpec`, the parsed form of a type annotation. Annotations
are carried on the syntax tree but ignored at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterator, Tuple
import math


@dataclass(frozen=True)
class TypeSpec:
    """Represents a Fenics type annotation.

    A type is described by its `kind` (one of 'Int', 'Float', 'String',
    'Boolean', 'Array', 'Object', 'Regex', 'List' or 'Pairs') and optionally
    type arguments for the generic kinds. For example, `List(Int)` becomes
    `TypeSpec(kind='List', args=(TypeSpec(kind='Int'),))`.
    """
    kind: str
    args: Tuple['TypeSpec', ...] = ()

    def __repr__(self) -> str:
        if not self.args:
            return self.kind
        inner = ", ".join(repr(a) for a in self.args)
        return f"{self.kind}({inner})"


class NullVal:
    """Marker object for the Fenics `null` value."""
    def __repr__(self) -> str:
        return 'null'


NULL = NullVal()


@dataclass(frozen=True)
class ArrayVal:
    """Represents a Fenics array value: an ordered tuple of values."""
    items: Tuple[Any, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def with_item(self, index: int, value: Any) -> 'ArrayVal':
        items = list(self.items)
        items[index] = value
        return ArrayVal(tuple(items))


@dataclass(frozen=True)
class ObjectVal:
    """Represents a Fenics object value.

    Keys are strings and iteration follows insertion order. The entries dict
    is never mutated after construction; `with_entry` returns an updated
    copy.
    """
    entries: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def with_entry(self, key: str, value: Any) -> 'ObjectVal':
        entries = dict(self.entries)
        entries[key] = value
        return ObjectVal(entries)


@dataclass(frozen=True)
class BridgeRef:
    """A reference to a registered host capability, looked up by name."""
    name: str


@dataclass(frozen=True)
class FunctionVal:
    """A user-defined function: parameter names and a statement body.

    Functions capture no environment; they only see their own frame, the
    frames below it and globals.
    """
    name: str
    params: Tuple[str, ...]
    body: Tuple[Any, ...]

    def __repr__(self) -> str:
        return f"<function {self.name}>"


INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def is_int(value: Any) -> bool:
    # bool is a subclass of int; Fenics keeps them apart
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    return is_int(value) or isinstance(value, float)


def type_name(value: Any) -> str:
    """Return the Fenics type name of a runtime value."""
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, int):
        return 'Int'
    if isinstance(value, float):
        return 'Float'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, NullVal):
        return 'Null'
    if isinstance(value, ArrayVal):
        return 'Array'
    if isinstance(value, ObjectVal):
        return 'Object'
    if isinstance(value, BridgeRef):
        return 'Bridge'
    if isinstance(value, FunctionVal):
        return 'Function'
    return type(value).__name__


def format_float(value: float) -> str:
    """Render a float in plain decimal notation.

    Integral values drop the fractional part (`8.0` renders as `8`) and no
    exponent is ever used; other values use the shortest round-trip digits.
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value == 0.0:
        return '-0' if math.copysign(1.0, value) < 0 else '0'
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), 'f')


def to_string(value: Any) -> str:
    """Convert a Fenics value to its display string, as used by print and
    string interpolation."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, NullVal):
        return 'null'
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    if isinstance(value, ObjectVal):
        entries = ', '.join(f"{k}: {to_string(v)}" for k, v in value.entries.items())
        return '{' + entries + '}'
    if isinstance(value, BridgeRef):
        return f"<bridge:{value.name}>"
    if isinstance(value, FunctionVal):
        return '<function>'
    return str(value)


def is_truthy(value: Any) -> bool:
    # Truthiness rules: empty objects, NaN, bridges and functions are truthy
    if isinstance(value, bool):
        return value
    if isinstance(value, NullVal):
        return False
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float):
        return value != 0.0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, ArrayVal):
        return len(value.items) > 0
    return True


def byte_length(text: str) -> int:
    return len(text.encode('utf-8'))
