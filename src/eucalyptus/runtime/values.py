"""
Runtime values for the Eucalyptus interpreter.

A Value pairs a ``ValueKind`` tag with the Python object that holds the
data. Scalars (Int, Float, Str, Char, Bool) are immutable Python objects,
so they behave as values. Arrays, maps and sets hold a mutable Python
container that is shared by every binding referring to it.

Maps and sets are keyed by ``value_key``, a hashable structural key that
includes the kind, so Int 1 and Float 1.0 are different keys.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple, TYPE_CHECKING
from enum import Enum

from ..ast import Expression

if TYPE_CHECKING:
    from .environment import Environment


class ValueKind(Enum):
    """Runtime kind tags."""
    INT = "int"
    FLOAT = "float"
    STR = "str"
    CHAR = "char"
    BOOL = "bool"
    ARRAY = "array"
    MAP = "map"
    SET = "set"
    CLOSURE = "closure"
    BUILTIN = "builtin"


NUMERIC_KINDS = frozenset({ValueKind.INT, ValueKind.FLOAT})
TEXT_KINDS = frozenset({ValueKind.STR, ValueKind.CHAR})
CALLABLE_KINDS = frozenset({ValueKind.CLOSURE, ValueKind.BUILTIN})
COLLECTION_KINDS = frozenset({ValueKind.ARRAY, ValueKind.MAP, ValueKind.SET})


@dataclass
class Closure:
    """
    A user function together with the environment it was created in.

    The environment is captured by reference: later changes to 'var'
    bindings in that frame are visible to the closure.
    """
    params: Tuple[str, ...]
    body: Expression
    env: "Environment"

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(eq=False)
class Value:
    """
    A runtime value.

    ``data`` by kind:
        INT, FLOAT, STR, BOOL   the Python int/float/str/bool
        CHAR                    a one-character str
        ARRAY                   list of Value
        MAP                     dict: structural key -> (key Value, value Value)
        SET                     dict: structural key -> Value
        CLOSURE                 Closure
        BUILTIN                 BuiltinFunction
    """
    kind: ValueKind
    data: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return values_equal(self, other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Value({self.kind.name}, {format_value(self, nested=True)})"

    def __str__(self) -> str:
        return format_value(self)

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_KINDS

    @property
    def is_callable(self) -> bool:
        return self.kind in CALLABLE_KINDS

    def to_python(self) -> Any:
        """Convert to plain Python data (lists, dicts, sets); functions stay opaque."""
        if self.kind == ValueKind.ARRAY:
            return [item.to_python() for item in self.data]
        if self.kind == ValueKind.MAP:
            return {_python_key(k): v.to_python() for k, v in self.data.values()}
        if self.kind == ValueKind.SET:
            return {_python_key(v) for v in self.data.values()}
        return self.data


def _python_key(value: Value) -> Any:
    converted = value.to_python()
    if isinstance(converted, list):
        return tuple(converted)
    if isinstance(converted, (dict, set)):
        return value_key(value)
    return converted


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(ValueKind.INT, int(n))


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(ValueKind.FLOAT, float(x))


def str_val(s: str) -> Value:
    """Create a string value."""
    return Value(ValueKind.STR, str(s))


def char_val(c: str) -> Value:
    """Create a character value."""
    return Value(ValueKind.CHAR, c)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(ValueKind.BOOL, bool(b))


def array_val(items: Optional[List[Value]] = None) -> Value:
    """Create an array value that owns ``items``."""
    return Value(ValueKind.ARRAY, items if items is not None else [])


def map_val(pairs: Optional[List[Tuple[Value, Value]]] = None) -> Value:
    """Create a map value; later pairs overwrite earlier equal keys."""
    entries: Dict[Any, Tuple[Value, Value]] = {}
    for key, value in pairs or []:
        entries[value_key(key)] = (key, value)
    return Value(ValueKind.MAP, entries)


def set_val(items: Optional[List[Value]] = None) -> Value:
    """Create a set value; duplicates collapse onto the first occurrence."""
    entries: Dict[Any, Value] = {}
    for item in items or []:
        entries.setdefault(value_key(item), item)
    return Value(ValueKind.SET, entries)


def closure_val(closure: Closure) -> Value:
    return Value(ValueKind.CLOSURE, closure)


def builtin_val(func: Any) -> Value:
    return Value(ValueKind.BUILTIN, func)


# Structural identity

def value_key(value: Value, _active: Optional[Set[int]] = None) -> Any:
    """
    Hashable structural key for ``value``.

    Two values have equal keys exactly when they are structurally equal.
    Collections are keyed by their contents at the time of the call.
    Functions compare by identity. A collection reached again inside
    itself (after ``push a a``) is keyed by its identity at that point.
    """
    kind = value.kind
    if kind in CALLABLE_KINDS:
        return (kind, id(value.data))
    if kind not in COLLECTION_KINDS:
        return (kind, value.data)

    marker = id(value.data)
    if _active is None:
        _active = set()
    elif marker in _active:
        return (kind, "...", marker)

    _active.add(marker)
    try:
        if kind == ValueKind.ARRAY:
            return (kind, tuple(value_key(item, _active) for item in value.data))
        if kind == ValueKind.MAP:
            return (kind, frozenset((k, value_key(v, _active)) for k, (_, v) in value.data.items()))
        return (kind, frozenset(value.data))
    finally:
        _active.discard(marker)


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality across all kinds."""
    if left.kind == right.kind and left.kind in COLLECTION_KINDS and left.data is right.data:
        return True
    return value_key(left) == value_key(right)


# Display

_STRING_ESCAPES = {
    '\n': '\\n',
    '\t': '\\t',
    '\r': '\\r',
    '\\': '\\\\',
    '\0': '\\0',
}


def _quote(text: str, quote: str) -> str:
    escaped = []
    for ch in text:
        if ch == quote:
            escaped.append('\\' + ch)
        else:
            escaped.append(_STRING_ESCAPES.get(ch, ch))
    return quote + ''.join(escaped) + quote


def format_float(x: float) -> str:
    if x != x:
        return "nan"
    if x in (float("inf"), float("-inf")):
        return "inf" if x > 0 else "-inf"
    return repr(x)


def format_value(value: Value, nested: bool = False,
                 _active: Optional[Set[int]] = None) -> str:
    """
    Render a value the way it would be written in source.

    At top level strings and characters print bare; inside collections
    (or with ``nested=True``) they are quoted. A collection that contains
    itself prints the inner occurrence as ``[...]`` or ``{...}``.
    """
    kind = value.kind
    if kind not in COLLECTION_KINDS:
        return _format_scalar(value, nested)

    marker = id(value.data)
    if _active is None:
        _active = set()
    elif marker in _active:
        return "[...]" if kind == ValueKind.ARRAY else "{...}"

    _active.add(marker)
    try:
        if kind == ValueKind.ARRAY:
            return "[" + ", ".join(format_value(v, True, _active) for v in value.data) + "]"
        if kind == ValueKind.MAP:
            items = (f"{format_value(k, True, _active)}: {format_value(v, True, _active)}"
                     for k, v in value.data.values())
            return "{" + ", ".join(items) + "}"
        return "{" + ", ".join(format_value(v, True, _active) for v in value.data.values()) + "}"
    finally:
        _active.discard(marker)


def _format_scalar(value: Value, nested: bool) -> str:
    kind = value.kind
    if kind == ValueKind.INT:
        return str(value.data)
    if kind == ValueKind.FLOAT:
        return format_float(value.data)
    if kind == ValueKind.BOOL:
        return "true" if value.data else "false"
    if kind == ValueKind.STR:
        return _quote(value.data, '"') if nested else value.data
    if kind == ValueKind.CHAR:
        return _quote(value.data, "'") if nested else value.data
    if kind == ValueKind.CLOSURE:
        params = " ".join(value.data.params)
        return f"<fun {params}>" if params else "<fun>"
    if kind == ValueKind.BUILTIN:
        return f"<builtin {value.data.name}>"
    return repr(value.data)


def kind_name(value: Value) -> str:
    """Kind name used in error messages."""
    return value.kind.value
