"""
Lexer for Eucalyptus.

Converts source text into a flat stream of tokens for the layout resolver.
Supports:
- Integer literals with an optional sign (42, -7, +3)
- Float literals in the forms 1.5, .5 and 1. (optionally signed)
- String literals with escape sequences, raw strings (r"...")
- Character literals ('c', '\\n')
- Single-line comments (#)
- Keywords, identifiers, operators and brackets

The lexer does not interpret indentation. It records the column of the
first token of every non-blank line in ``line_indents`` and ends each such
line with a NEWLINE token; ``eucalyptus.layout`` turns that into block
structure.
"""

from typing import Dict, List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, OPERAND_END_TOKENS,
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_char,
    error_invalid_char_literal,
    error_invalid_escape_sequence,
    error_invalid_number_literal,
)

DIGITS = "0123456789"
HEX_DIGITS = "0123456789abcdefABCDEF"

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

ESCAPE_CHARS = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '0': '\0',
}


class Lexer:
    """
    Tokenizer for Eucalyptus source text.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        lexer.line_indents   # {line: column of first token}

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

        # Indentation tracking
        self.line_indents: Dict[int, int] = {}
        self._line_has_tokens = False

        # Type of the last token produced, for literal sign disambiguation
        self._last_type: Optional[TokenType] = None

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_comment(self) -> None:
        """Skip a single-line comment (# to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_whitespace_within_line(self) -> None:
        """Skip horizontal whitespace (spaces, tabs, carriage returns)."""
        while self._peek() in ' \t\r':
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _error_line(self, start: SourceLocation) -> Optional[str]:
        return self.get_source_line(start.line)

    # =========================================================================
    # Strings and characters
    # =========================================================================

    def _scan_string(self) -> Token:
        """Scan a string literal with escape processing."""
        start = self._location()
        self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != '"':
            ch = self._peek()
            if ch == '\n':
                raise error_unterminated_string(self._span(start), self._error_line(start))
            if ch == '\\':
                self._advance()  # consume backslash
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(self._span(start), self._error_line(start))

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_raw_string(self) -> Token:
        """Scan r"..." - backslashes are kept verbatim."""
        start = self._location()
        self._advance()  # consume 'r'
        self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != '"':
            if self._peek() == '\n':
                raise error_unterminated_string(self._span(start), self._error_line(start))
            chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(self._span(start), self._error_line(start))

        self._advance()  # consume closing quote
        return self._make_token(TokenType.RAW_STRING_LITERAL, ''.join(chars), start)

    def _scan_char(self) -> Token:
        """Scan a character literal: exactly one (possibly escaped) character."""
        start = self._location()
        self._advance()  # consume opening quote

        ch = self._peek()
        if self._is_at_end() or ch == '\n':
            raise error_unterminated_char(self._span(start), self._error_line(start))
        if ch == "'":
            self._advance()
            raise error_invalid_char_literal("''", self._span(start), self._error_line(start))

        if ch == '\\':
            self._advance()
            value = self._scan_escape_sequence()
        else:
            value = self._advance()

        if self._match("'"):
            return self._make_token(TokenType.CHAR_LITERAL, value, start)

        # More than one character: report the whole literal if it closes on this line
        while not self._is_at_end() and self._peek() not in "'\n":
            self._advance()
        if self._match("'"):
            text = self.source[start.offset:self.pos]
            raise error_invalid_char_literal(text, self._span(start), self._error_line(start))
        raise error_unterminated_char(self._span(start), self._error_line(start))

    def _scan_escape_sequence(self) -> str:
        """Parse an escape sequence after backslash."""
        esc_start = self._location()
        if self._is_at_end():
            raise error_invalid_escape_sequence(
                "", self._span(esc_start), self._error_line(esc_start)
            )

        ch = self._advance()
        if ch in ESCAPE_CHARS:
            return ESCAPE_CHARS[ch]
        elif ch in 'xu':
            # \xHH or \uHHHH
            width = 2 if ch == 'x' else 4
            hex_chars = ''
            for _ in range(width):
                if self._peek() not in HEX_DIGITS:
                    break
                hex_chars += self._advance()
            if len(hex_chars) != width:
                raise error_invalid_escape_sequence(
                    f"{ch}{hex_chars}", self._span(esc_start), self._error_line(esc_start)
                )
            return chr(int(hex_chars, 16))
        else:
            raise error_invalid_escape_sequence(
                ch, self._span(esc_start), self._error_line(esc_start)
            )

    # =========================================================================
    # Numbers
    # =========================================================================

    def _sign_allowed(self) -> bool:
        """A leading +/- belongs to a literal unless it follows an operand."""
        return self._last_type not in OPERAND_END_TOKENS

    def _starts_number(self) -> bool:
        ch = self._peek()
        if ch in DIGITS:
            return True
        if ch == '.':
            return self._peek(1) in DIGITS
        if ch in '+-' and self._sign_allowed():
            nxt = self._peek(1)
            return nxt in DIGITS or (nxt == '.' and self._peek(2) in DIGITS)
        return False

    def _scan_digits(self) -> int:
        count = 0
        while self._peek() in DIGITS:
            self._advance()
            count += 1
        return count

    def _malformed_number(self, start: SourceLocation):
        """Consume the rest of a malformed numeric run and report it."""
        while (self._peek().isalnum() or self._peek() in '._') and not self._is_at_end():
            self._advance()
        lexeme = self.source[start.offset:self.pos]
        return error_invalid_number_literal(lexeme, self._span(start), self._error_line(start))

    def _scan_number(self) -> Token:
        """Scan a numeric literal (int or float)."""
        start = self._location()
        if self._peek() in '+-':
            self._advance()

        self._scan_digits()

        is_float = False
        if self._peek() == '.':
            is_float = True
            self._advance()  # consume '.'
            self._scan_digits()

        # A second dot or letters glued to the digits
        if self._peek() == '.' or self._peek().isalpha() or self._peek() == '_':
            raise self._malformed_number(start)

        lexeme = self.source[start.offset:self.pos]
        if is_float:
            return self._make_token(TokenType.FLOAT_LITERAL, float(lexeme), start, lexeme)

        value = int(lexeme)
        if not INT_MIN <= value <= INT_MAX:
            error = error_invalid_number_literal(lexeme, self._span(start), self._error_line(start))
            error.diagnostic.hints.append("integers must fit in 64 bits")
            raise error
        return self._make_token(TokenType.INT_LITERAL, value, start, lexeme)

    # =========================================================================
    # Identifiers and punctuation
    # =========================================================================

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]

        if lexeme in KEYWORDS:
            token_type = KEYWORDS[lexeme]
            if token_type == TokenType.BOOL_LITERAL:
                value = lexeme == "true"
            else:
                value = lexeme
            return self._make_token(token_type, value, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token, including raw NEWLINE and EOF."""
        while True:
            self._skip_whitespace_within_line()
            if self._peek() == '#':
                self._skip_comment()

            if self._peek() == '\n' and not self._is_at_end():
                start = self._location()
                self._advance()
                if self._line_has_tokens:
                    self._line_has_tokens = False
                    return self._make_token(TokenType.NEWLINE, None, start, "\\n")
                continue  # blank or comment-only line

            if self._is_at_end():
                start = self._location()
                if self._line_has_tokens:
                    self._line_has_tokens = False
                    return self._make_token(TokenType.NEWLINE, None, start, "")
                return self._make_token(TokenType.EOF, None, start, "")
            break

        start = self._location()
        if not self._line_has_tokens:
            self._line_has_tokens = True
            self.line_indents[self.line] = self.column

        ch = self._peek()

        if ch == '"':
            return self._scan_string()
        if ch == 'r' and self._peek(1) == '"':
            return self._scan_raw_string()
        if ch == "'":
            return self._scan_char()

        if self._starts_number():
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '-' and self._match('>'):
            return self._make_token(TokenType.ARROW, "->", start)
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)
        if ch == '<' and self._match('='):
            return self._make_token(TokenType.LE, "<=", start)
        if ch == '>' and self._match('='):
            return self._make_token(TokenType.GE, ">=", start)

        single_char_tokens = {
            '+': TokenType.PLUS,
            '-': TokenType.MINUS,
            '*': TokenType.STAR,
            '/': TokenType.SLASH,
            '%': TokenType.PERCENT,
            '^': TokenType.CARET,
            '<': TokenType.LT,
            '>': TokenType.GT,
            '=': TokenType.ASSIGN,
            ':': TokenType.COLON,
            ',': TokenType.COMMA,
            '(': TokenType.LPAREN,
            ')': TokenType.RPAREN,
            '[': TokenType.LBRACKET,
            ']': TokenType.RBRACKET,
            '{': TokenType.LBRACE,
            '}': TokenType.RBRACE,
        }

        if ch in single_char_tokens:
            return self._make_token(single_char_tokens[ch], ch, start)

        raise error_unexpected_character(ch, self._span(start), self._error_line(start))

    def next_token(self) -> Token:
        """Scan and return the next token."""
        token = self._scan_token()
        self._last_type = token.type
        return token

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of raw tokens, one NEWLINE per non-blank line, ending in EOF

    Raises:
        LexError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
