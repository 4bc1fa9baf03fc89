"""
Token types for the Eucalyptus lexer and layout resolver.

Token categories follow the error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors (E15x: layout errors)
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types produced by the lexer and the layout resolver."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42, -7, +3
    FLOAT_LITERAL = auto()      # 3.14, .5, 2.
    STRING_LITERAL = auto()     # "hello\n"
    RAW_STRING_LITERAL = auto() # r"C:\path"
    CHAR_LITERAL = auto()       # 'c', '\n'
    BOOL_LITERAL = auto()       # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()

    # --- Keywords ---
    LET = auto()                # let
    VAR = auto()                # var
    FUN = auto()                # fun

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %
    CARET = auto()              # ^ (power)

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Assignment / binding ---
    ASSIGN = auto()             # =
    ARROW = auto()              # ->

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COLON = auto()              # :
    COMMA = auto()              # ,

    # --- Raw layout (lexer output only) ---
    NEWLINE = auto()            # End of a physical line holding tokens

    # --- Resolved layout (layout resolver output only) ---
    BLOCK_START = auto()        # Indented block opens
    BLOCK_END = auto()          # Indented block closes
    ITEM_SEP = auto()           # Next statement in the same block

    # --- Special ---
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # int, float, str, bool or None
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in VALUE_TOKENS:
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "var": TokenType.VAR,
    "fun": TokenType.FUN,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
}

LITERAL_TOKENS: frozenset = frozenset({
    TokenType.INT_LITERAL,
    TokenType.FLOAT_LITERAL,
    TokenType.STRING_LITERAL,
    TokenType.RAW_STRING_LITERAL,
    TokenType.CHAR_LITERAL,
    TokenType.BOOL_LITERAL,
})

VALUE_TOKENS: frozenset = LITERAL_TOKENS | {TokenType.IDENTIFIER}

# Tokens after which an operand is complete; a following '+' or '-' is
# a binary operator rather than a literal sign.
OPERAND_END_TOKENS: frozenset = VALUE_TOKENS | {
    TokenType.RPAREN,
    TokenType.RBRACKET,
    TokenType.RBRACE,
}

OPENING_BRACKETS: dict[TokenType, TokenType] = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACKET: TokenType.RBRACKET,
    TokenType.LBRACE: TokenType.RBRACE,
}

CLOSING_BRACKETS: frozenset = frozenset(OPENING_BRACKETS.values())

# Printable spelling of punctuation, used in "expected ..." messages
SYMBOLS: dict[TokenType, str] = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.CARET: "^",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.ASSIGN: "=",
    TokenType.ARROW: "->",
    TokenType.LBRACE: "{",
    TokenType.RBRACE: "}",
    TokenType.LPAREN: "(",
    TokenType.RPAREN: ")",
    TokenType.LBRACKET: "[",
    TokenType.RBRACKET: "]",
    TokenType.COLON: ":",
    TokenType.COMMA: ",",
}


def describe_token_type(token_type: TokenType) -> str:
    """Human-readable name of a token type for diagnostics."""
    if token_type in SYMBOLS:
        return f"'{SYMBOLS[token_type]}'"
    for keyword, kw_type in KEYWORDS.items():
        if kw_type == token_type and token_type != TokenType.BOOL_LITERAL:
            return f"'{keyword}'"
    return token_type.name.lower().replace("_", " ")
