"""
Built-in function registry for the Eucalyptus interpreter.

Builtins are bound as immutable names in the builtins frame, the parent of
every global frame, so user code may shadow them. They mostly exist to
make the reference semantics of arrays, maps and sets observable:
``set``, ``push`` and ``insert`` mutate their collection argument in place.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .values import (
    Value, ValueKind, int_val, bool_val, str_val, char_val,
    value_key, values_equal, format_value, kind_name,
)
from ..errors import error_type, error_lookup


@dataclass
class BuiltinFunction:
    """
    A built-in function with a fixed number of parameters.

    ``implementation`` takes the argument Values positionally and returns
    a Value. Errors it raises carry no span; the interpreter attaches the
    span of the call.
    """
    name: str
    arity: int
    implementation: Callable[..., Value]
    doc: str = ""

    def __call__(self, *args: Value) -> Value:
        return self.implementation(*args)


def _expect_int(func: str, value: Value, what: str) -> int:
    if value.kind != ValueKind.INT:
        raise error_type(f"{func}: {what} must be int, got {kind_name(value)}")
    return value.data


def _array_index(func: str, items: list, index: Value) -> int:
    i = _expect_int(func, index, "index")
    if not 0 <= i < len(items):
        raise error_lookup(f"{func}: index {i} out of range for length {len(items)}")
    return i


def _builtin_len(x: Value) -> Value:
    if x.kind in (ValueKind.STR, ValueKind.ARRAY, ValueKind.MAP, ValueKind.SET):
        return int_val(len(x.data))
    raise error_type(f"len: expected str, array, map or set, got {kind_name(x)}")


def get_element(coll: Value, key: Value, context: str = "get") -> Value:
    """Element of an array or str by index, or a map value by key.

    Shared by the 'get' builtin and 'xs[i]' index expressions; ``context``
    prefixes error messages.
    """
    if coll.kind == ValueKind.ARRAY:
        return coll.data[_array_index(context, coll.data, key)]
    if coll.kind == ValueKind.STR:
        return char_val(coll.data[_array_index(context, coll.data, key)])
    if coll.kind == ValueKind.MAP:
        entry = coll.data.get(value_key(key))
        if entry is None:
            raise error_lookup(f"{context}: key {format_value(key, nested=True)} not in map")
        return entry[1]
    raise error_type(f"{context}: expected array, str or map, got {kind_name(coll)}")


def _builtin_get(coll: Value, key: Value) -> Value:
    return get_element(coll, key)


def _builtin_set(coll: Value, key: Value, value: Value) -> Value:
    if coll.kind == ValueKind.ARRAY:
        coll.data[_array_index("set", coll.data, key)] = value
        return coll
    if coll.kind == ValueKind.MAP:
        coll.data[value_key(key)] = (key, value)
        return coll
    raise error_type(f"set: expected array or map, got {kind_name(coll)}")


def _builtin_push(arr: Value, value: Value) -> Value:
    if arr.kind != ValueKind.ARRAY:
        raise error_type(f"push: expected array, got {kind_name(arr)}")
    arr.data.append(value)
    return arr


def _builtin_insert(coll: Value, value: Value) -> Value:
    if coll.kind != ValueKind.SET:
        raise error_type(f"insert: expected set, got {kind_name(coll)}")
    coll.data.setdefault(value_key(value), value)
    return coll


def _builtin_contains(coll: Value, x: Value) -> Value:
    if coll.kind == ValueKind.ARRAY:
        return bool_val(any(values_equal(item, x) for item in coll.data))
    if coll.kind in (ValueKind.MAP, ValueKind.SET):
        return bool_val(value_key(x) in coll.data)
    if coll.kind == ValueKind.STR:
        if x.kind not in (ValueKind.STR, ValueKind.CHAR):
            raise error_type(f"contains: cannot search str for {kind_name(x)}")
        return bool_val(x.data in coll.data)
    raise error_type(f"contains: expected array, map, set or str, got {kind_name(coll)}")


def _builtin_str(x: Value) -> Value:
    return str_val(format_value(x))


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and bound into the builtins frame.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def functions(self) -> List[BuiltinFunction]:
        """All registered functions, in registration order."""
        return list(self._functions.values())

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def _register_all(self) -> None:
        builtins = [
            ("len", 1, _builtin_len, "Length of a str, array, map or set."),
            ("get", 2, _builtin_get, "Element of an array or str by index, or map value by key."),
            ("set", 3, _builtin_set, "Replace an array element or add a map entry, in place."),
            ("push", 2, _builtin_push, "Append to an array in place."),
            ("insert", 2, _builtin_insert, "Add an element to a set in place."),
            ("contains", 2, _builtin_contains, "Membership test for arrays, maps, sets and strs."),
            ("str", 1, _builtin_str, "Display form of any value."),
        ]
        for name, arity, impl, doc in builtins:
            self.register(BuiltinFunction(name, arity, impl, doc))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
