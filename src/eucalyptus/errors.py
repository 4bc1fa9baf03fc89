"""
Eucalyptus exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E15x: Layout errors
- E4xx: Runtime errors

Every error is raised through one of the ``error_*`` factory functions below
so that codes and messages stay in one place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Sequence
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None and self.span is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": None,
            "hints": self.hints,
        }
        if self.span is not None:
            result["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return result


class EucalyptusError(Exception):
    """Base exception for all interpreter errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def attach_source(self, lines: Sequence[str]) -> None:
        """Fill in the offending source line if it is not known yet."""
        diag = self.diagnostic
        if diag.source_line is None and diag.span is not None:
            line_num = diag.span.start.line
            if 1 <= line_num <= len(lines):
                diag.source_line = lines[line_num - 1]

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexError(EucalyptusError):
    """Error during lexical analysis (E0xx)."""
    pass


class LayoutError(EucalyptusError):
    """Inconsistent indentation (E15x)."""
    pass


class ParseError(EucalyptusError):
    """Error during parsing (E1xx)."""
    pass


class RuntimeError(EucalyptusError):
    """Error during evaluation (E4xx)."""
    pass


class NameError(RuntimeError):
    """Identifier not bound in any enclosing scope."""
    pass


class RedefinitionError(RuntimeError):
    """Same name bound twice in one frame."""
    pass


class ImmutableBindingError(RuntimeError):
    """Assignment to a 'let' binding."""
    pass


class ArityError(RuntimeError):
    """Argument count does not match parameter count."""
    pass


class TypeError(RuntimeError):
    """Operation applied to incompatible value kinds."""
    pass


class DuplicateKeyError(RuntimeError):
    """Repeated key in a map literal."""
    pass


class StackOverflowError(RuntimeError):
    """Call depth exceeded the configured limit."""
    pass


class ArithmeticError(RuntimeError):
    """Division by zero, integer overflow, negative integer exponent."""
    pass


class LookupError(RuntimeError):
    """Array index out of range or map key not present."""
    pass


def _diagnostic(code: str, message: str, span: Optional[SourceSpan],
                source_line: Optional[str] = None,
                hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E001: Unexpected character."""
    return LexError(_diagnostic("E001", f"unexpected character '{char}'", span, source_line))


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexError:
    """E002: Unterminated string literal."""
    return LexError(_diagnostic(
        "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with '\"' on the same line"],
    ))


def error_unterminated_char(span: SourceSpan, source_line: str = None) -> LexError:
    """E003: Unterminated character literal."""
    return LexError(_diagnostic("E003", "unterminated character literal", span, source_line))


def error_invalid_char_literal(text: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E004: Character literal without exactly one character."""
    return LexError(_diagnostic(
        "E004", f"invalid character literal {text}", span, source_line,
        hints=["character literals hold exactly one character: 'a', '\\n'"],
    ))


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E005: Invalid escape sequence in string or char."""
    return LexError(_diagnostic(
        "E005", f"invalid escape sequence '\\{seq}'", span, source_line,
        hints=["valid escape sequences: \\n, \\t, \\r, \\\", \\', \\\\, \\0, \\x##, \\u####"],
    ))


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E006: Invalid number literal."""
    return LexError(_diagnostic("E006", f"invalid number literal '{text}'", span, source_line))


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan) -> ParseError:
    """E101: Unexpected token."""
    return ParseError(_diagnostic("E101", f"expected {expected}, found {found}", span))


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParseError:
    """E102: Unexpected end of input."""
    return ParseError(_diagnostic("E102", f"unexpected end of input, expected {expected}", span))


def error_unmatched_bracket(bracket: str, detail: str, span: SourceSpan) -> ParseError:
    """E103: Bracket closed by the wrong token, never closed, or never opened."""
    return ParseError(_diagnostic("E103", f"unmatched '{bracket}': {detail}", span))


def error_mixed_collection(span: SourceSpan) -> ParseError:
    """E104: Map entries and bare elements in one literal."""
    return ParseError(_diagnostic(
        "E104", "cannot mix map entries and set elements in one literal", span,
        hints=["use 'key: value' for every element of a map"],
    ))


def error_empty_clause(span: SourceSpan) -> ParseError:
    """E105: '()' outside a call."""
    return ParseError(_diagnostic(
        "E105", "illegal empty clause '()'", span,
        hints=["'()' is only allowed as the argument list of a zero-parameter call"],
    ))


def error_empty_braces(span: SourceSpan) -> ParseError:
    """E106: '{}' is neither a map nor a set."""
    return ParseError(_diagnostic(
        "E106", "empty '{}' is ambiguous between a map and a set", span,
    ))


def error_duplicate_parameter(name: str, span: SourceSpan) -> ParseError:
    """E107: Parameter name repeated in one list."""
    return ParseError(_diagnostic("E107", f"duplicate parameter '{name}'", span))


def error_nesting_too_deep(span: SourceSpan) -> ParseError:
    """E108: Brackets or blocks nested deeper than the parser can follow."""
    return ParseError(_diagnostic(
        "E108", "expression nested too deeply", span,
        hints=["split the expression into smaller named bindings"],
    ))


# --- Layout error codes ---

def error_inconsistent_dedent(column: int, span: SourceSpan) -> LayoutError:
    """E150: Dedent to a column no enclosing block uses."""
    return LayoutError(_diagnostic(
        "E150", f"inconsistent dedent to column {column}", span,
        hints=["dedent must return to the column of an enclosing block"],
    ))


# --- Runtime error codes ---

def error_undefined_name(name: str, span: Optional[SourceSpan] = None) -> NameError:
    """E401: Undefined identifier."""
    return NameError(_diagnostic("E401", f"undefined name '{name}'", span))


def error_uninitialized_name(name: str, span: Optional[SourceSpan] = None) -> NameError:
    """E401: Read of a binding before its initializer finished."""
    return NameError(_diagnostic("E401", f"'{name}' used before its definition completed", span))


def error_redefinition(name: str, span: Optional[SourceSpan] = None) -> RedefinitionError:
    """E402: Name already bound in this frame."""
    return RedefinitionError(_diagnostic(
        "E402", f"'{name}' is already defined in this scope", span,
        hints=["shadow it from a nested block, or declare it with 'var' and assign"],
    ))


def error_immutable_binding(name: str, span: Optional[SourceSpan] = None) -> ImmutableBindingError:
    """E403: Assignment to a 'let' binding."""
    return ImmutableBindingError(_diagnostic(
        "E403", f"cannot assign to immutable binding '{name}'", span,
        hints=[f"declare '{name}' with 'var' to make it mutable"],
    ))


def error_arity(name: str, expected: int, found: int,
                span: Optional[SourceSpan] = None) -> ArityError:
    """E404: Wrong number of arguments."""
    plural = "" if expected == 1 else "s"
    return ArityError(_diagnostic(
        "E404", f"{name} expects {expected} argument{plural}, got {found}", span,
    ))


def error_type(message: str, span: Optional[SourceSpan] = None) -> TypeError:
    """E405: Type mismatch."""
    return TypeError(_diagnostic("E405", message, span))


def error_duplicate_key(key: str, span: Optional[SourceSpan] = None) -> DuplicateKeyError:
    """E406: Repeated key in a map literal."""
    return DuplicateKeyError(_diagnostic("E406", f"duplicate map key {key}", span))


def error_stack_overflow(depth: int, span: Optional[SourceSpan] = None) -> StackOverflowError:
    """E407: Call depth exceeded."""
    return StackOverflowError(_diagnostic(
        "E407", f"stack overflow: call depth exceeded {depth}", span,
        hints=["raise max_call_depth in the interpreter config for deeper recursion"],
    ))


def error_arithmetic(message: str, span: Optional[SourceSpan] = None) -> ArithmeticError:
    """E408: Arithmetic failure."""
    return ArithmeticError(_diagnostic("E408", message, span))


def error_lookup(message: str, span: Optional[SourceSpan] = None) -> LookupError:
    """E409: Index out of range or missing map key."""
    return LookupError(_diagnostic("E409", message, span))
