"""
Lexical environments for the Eucalyptus interpreter.

An Environment is one frame of bindings plus a link to its parent frame.
Function calls and indented blocks run in a child frame; closures keep a
reference to the frame they were created in.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .values import Value, builtin_val
from .builtins import get_builtin_registry
from ..errors import (
    error_undefined_name,
    error_uninitialized_name,
    error_redefinition,
    error_immutable_binding,
)
from ..tokens import SourceSpan


class _Uninitialized:
    """Marker held by a slot whose initializer is still being evaluated."""

    def __repr__(self) -> str:
        return "<uninitialized>"


UNINITIALIZED = _Uninitialized()


@dataclass
class Slot:
    """A single binding: its current value and whether 'var' declared it."""
    value: Any
    mutable: bool = False

    @property
    def initialized(self) -> bool:
        return self.value is not UNINITIALIZED


class Environment:
    """
    A frame of bindings with a parent link for lexical scoping.

    Usage:
        env = Environment.global_frame()
        env.define("a", int_val(10), mutable=False)
        inner = env.child_frame()
        inner.define("a", int_val(20), mutable=False)   # shadows
        inner.lookup("a")   # -> 20
        env.lookup("a")     # -> 10
    """

    def __init__(self, parent: Optional["Environment"] = None, name: str = "block"):
        self.parent = parent
        self.name = name  # For debugging
        self.slots: Dict[str, Slot] = {}

    def __repr__(self) -> str:
        return f"Environment({self.name!r}, {sorted(self.slots)})"

    @classmethod
    def builtins_frame(cls) -> "Environment":
        """A frame holding every registered builtin as an immutable binding."""
        frame = cls(name="builtins")
        for func in get_builtin_registry().functions():
            frame.slots[func.name] = Slot(builtin_val(func), mutable=False)
        return frame

    @classmethod
    def global_frame(cls) -> "Environment":
        """A fresh top-level frame whose parent is the builtins frame."""
        return cls(parent=cls.builtins_frame(), name="global")

    def child_frame(self, name: str = "block") -> "Environment":
        """Create a new frame whose parent is this one."""
        return Environment(parent=self, name=name)

    def resolve(self, name: str) -> Optional[Slot]:
        """Find the slot for ``name`` in this frame or its ancestors."""
        env: Optional[Environment] = self
        while env is not None:
            slot = env.slots.get(name)
            if slot is not None:
                return slot
            env = env.parent
        return None

    def contains(self, name: str) -> bool:
        """Check if ``name`` is bound in this frame or its ancestors."""
        return self.resolve(name) is not None

    def names(self) -> List[str]:
        """Names bound directly in this frame, in definition order."""
        return list(self.slots)

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Value:
        """Return the value bound to ``name``, raising NameError if unbound."""
        slot = self.resolve(name)
        if slot is None:
            raise error_undefined_name(name, span)
        if not slot.initialized:
            raise error_uninitialized_name(name, span)
        return slot.value

    def define(self, name: str, value: Any, mutable: bool = False,
               span: Optional[SourceSpan] = None) -> Slot:
        """
        Bind ``name`` in this frame.

        Shadowing a binding of an outer frame is allowed; binding the same
        name twice in one frame raises RedefinitionError.
        """
        if name in self.slots:
            raise error_redefinition(name, span)
        slot = Slot(value, mutable)
        self.slots[name] = slot
        return slot

    def assign(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        """Update the nearest binding of ``name``; it must be mutable."""
        slot = self.resolve(name)
        if slot is None:
            raise error_undefined_name(name, span)
        if not slot.mutable:
            raise error_immutable_binding(name, span)
        slot.value = value
