"""
Abstract Syntax Tree (AST) node definitions for Eucalyptus.

Nodes are frozen dataclasses whose children are held in tuples, so a parsed
program is immutable. Every node carries a source span for error reporting;
spans are excluded from equality, which makes two layouts of the same
program (e.g. leading-comma vs. single-line lists) compare equal.

Function-definition sugar never appears here: the parser turns
``let f a b = e`` into ``LetBinding("f", Lambda(("a", "b"), e))``.
"""

from dataclasses import dataclass, field
from typing import Any, Tuple
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True)
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan = field(compare=False, repr=False)

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass(frozen=True)
class IntLit(Expression):
    value: int


@dataclass(frozen=True)
class FloatLit(Expression):
    value: float


@dataclass(frozen=True)
class StringLit(Expression):
    """A string literal; raw strings produce the same node."""
    value: str


@dataclass(frozen=True)
class CharLit(Expression):
    value: str


@dataclass(frozen=True)
class BoolLit(Expression):
    value: bool


@dataclass(frozen=True)
class ArrayLit(Expression):
    """An array literal (e.g., [1, 2, 3])."""
    elements: Tuple[Expression, ...]


@dataclass(frozen=True)
class SetLit(Expression):
    """A set literal (e.g., {1, "idk", true}); literal order is kept."""
    elements: Tuple[Expression, ...]


@dataclass(frozen=True)
class MapEntry(AstNode):
    """A single 'key: value' entry of a map literal."""
    key: Expression
    value: Expression


@dataclass(frozen=True)
class MapLit(Expression):
    """A map literal (e.g., {a: 10, b: 10})."""
    entries: Tuple[MapEntry, ...]


@dataclass(frozen=True)
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass(frozen=True)
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x < y)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass(frozen=True)
class Lambda(Expression):
    """An anonymous function: fun a b -> body."""
    parameters: Tuple[str, ...]
    body: Expression


@dataclass(frozen=True)
class Call(Expression):
    """Application by juxtaposition: callee arg1 arg2 ...

    ``f ()`` is a call with an empty argument tuple.
    """
    callee: Expression
    arguments: Tuple[Expression, ...]


@dataclass(frozen=True)
class Index(Expression):
    """Element access written directly after an atom: xs[0], m["k"]."""
    target: Expression
    index: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass(frozen=True)
class LetBinding(Statement):
    """An immutable binding: let name = value."""
    name: str
    value: Expression

    @property
    def mutable(self) -> bool:
        return False


@dataclass(frozen=True)
class VarBinding(Statement):
    """A mutable binding: var name = value."""
    name: str
    value: Expression

    @property
    def mutable(self) -> bool:
        return True


@dataclass(frozen=True)
class Assignment(Statement):
    """Assignment to an existing mutable binding: name = value."""
    target: str
    value: Expression


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass(frozen=True)
class Block(Expression):
    """An indented sequence of statements evaluated in its own scope.

    The block's value is the value of its last statement.
    """
    statements: Tuple[Statement, ...]


@dataclass(frozen=True)
class Program(AstNode):
    """A complete parsed program: the top-level statements in order."""
    statements: Tuple[Statement, ...]


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented text."""

    def __init__(self, indent: int = 0):
        self.indent = indent
        self.lines = []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self, node: AstNode) -> None:
        child = PrintVisitor(self.indent + 2)
        child.generic_visit(node)
        self.lines.extend(child.lines)

    def generic_visit(self, node: AstNode) -> None:
        self._emit(f"{node.__class__.__name__}")
        for name in node.__dataclass_fields__:
            if name == "span":
                continue
            value = getattr(node, name)
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                self._child(value)
            elif isinstance(value, tuple):
                self._emit(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child(item)
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            elif isinstance(value, TokenType):
                self._emit(f"  {name}: {value.name}")
            else:
                self._emit(f"  {name}: {value!r}")


def format_ast(node: AstNode) -> str:
    """Render an AST node as indented text."""
    visitor = PrintVisitor()
    node.accept(visitor)
    return "\n".join(visitor.lines)


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
