"""
Layout resolution for Eucalyptus.

Turns the lexer's raw token stream (NEWLINE-terminated lines plus the
per-line indentation recorded in ``Lexer.line_indents``) into a stream with
explicit BLOCK_START / BLOCK_END / ITEM_SEP markers, so the parser never
has to look at whitespace.

Rules:
- The program is an implicit block at the column of its first token.
- A line ending in '=', '->' or a bare 'let', followed by a line indented
  past the current block, opens a new block at that column.
- A line at the column of the current block starts a new item (ITEM_SEP).
- A line indented further (without an opener) continues the previous one.
- A line starting with ',' always continues the previous one.
- A dedent closes blocks until one with the same column is found; landing
  between two levels is a LayoutError.
- Inside (), [] and {} newlines are insignificant. A block opened inside a
  bracket is closed by the matching closing bracket.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .tokens import (
    Token, TokenType, SourceSpan, OPENING_BRACKETS, CLOSING_BRACKETS,
)
from .errors import error_inconsistent_dedent

# Tokens that, at the end of a line, let the next indented line open a block
BLOCK_OPENERS = frozenset({TokenType.ASSIGN, TokenType.ARROW, TokenType.LET})


@dataclass
class LayoutContext:
    """One entry of the layout stack: an implicit block or a bracket."""
    is_block: bool
    column: int = 0


class LayoutResolver:
    """
    Converts raw lexer tokens into layout-resolved tokens.

    Usage:
        lexer = Lexer(source)
        raw = lexer.tokenize()
        tokens = LayoutResolver(raw, lexer.line_indents).resolve()
    """

    def __init__(self, tokens: List[Token], line_indents: Optional[Dict[int, int]] = None):
        self.tokens = tokens
        self.line_indents = line_indents or {}
        self.stack: List[LayoutContext] = []
        self.output: List[Token] = []

    def _indent_of(self, token: Token) -> int:
        """Indentation column of the line starting with ``token``."""
        return self.line_indents.get(token.span.start.line, token.span.start.column)

    def _marker(self, token_type: TokenType, at: Token) -> Token:
        """A zero-width synthetic token positioned at ``at``."""
        start = at.span.start
        return Token(token_type, None, "", SourceSpan(start, start))

    def _innermost_block(self) -> LayoutContext:
        for ctx in reversed(self.stack):
            if ctx.is_block:
                return ctx
        return self.stack[0]

    def _open_block(self, column: int, at: Token) -> None:
        self.stack.append(LayoutContext(is_block=True, column=column))
        self.output.append(self._marker(TokenType.BLOCK_START, at))

    def _close_block(self, at: Token) -> None:
        self.stack.pop()
        self.output.append(self._marker(TokenType.BLOCK_END, at))

    def _start_line(self, token: Token, previous: Token) -> None:
        """Apply the offside rule to the first token of a new line."""
        column = self._indent_of(token)
        top = self.stack[-1]

        if previous.type in BLOCK_OPENERS and column > self._innermost_block().column:
            self._open_block(column, token)
            return

        if not top.is_block or token.type == TokenType.COMMA:
            return

        if column > top.column:
            return  # continuation line

        while top.is_block and column < top.column:
            if len(self.stack) == 1:
                raise error_inconsistent_dedent(column, token.span)
            self._close_block(token)
            top = self.stack[-1]

        if not top.is_block:
            return
        if column != top.column:
            raise error_inconsistent_dedent(column, token.span)
        self.output.append(self._marker(TokenType.ITEM_SEP, token))

    def _close_bracket(self, token: Token) -> None:
        """Close blocks opened inside the innermost bracket, then the bracket."""
        if not any(not ctx.is_block for ctx in self.stack):
            return  # stray closer, reported by the parser
        while self.stack[-1].is_block:
            self._close_block(token)
        self.stack.pop()

    def resolve(self) -> List[Token]:
        """Resolve the whole stream, returning tokens ending in EOF."""
        previous: Optional[Token] = None
        at_line_start = False

        for token in self.tokens:
            if token.type == TokenType.NEWLINE:
                at_line_start = True
                continue

            if token.type == TokenType.EOF:
                while len(self.stack) > 1:
                    if self.stack[-1].is_block:
                        self._close_block(token)
                    else:
                        self.stack.pop()  # unclosed bracket, reported by the parser
                self.output.append(token)
                break

            if not self.stack:
                self.stack.append(LayoutContext(is_block=True, column=self._indent_of(token)))
            elif at_line_start:
                self._start_line(token, previous)
            at_line_start = False

            if token.type in OPENING_BRACKETS:
                self.stack.append(LayoutContext(is_block=False))
            elif token.type in CLOSING_BRACKETS:
                self._close_bracket(token)

            self.output.append(token)
            previous = token

        return self.output


def resolve_layout(tokens: List[Token], line_indents: Optional[Dict[int, int]] = None) -> List[Token]:
    """
    Convenience function to resolve layout of a raw token stream.

    Args:
        tokens: Raw tokens from ``tokenize``
        line_indents: Optional per-line indentation from ``Lexer.line_indents``;
            when omitted the column of each line's first token is used

    Returns:
        Tokens with BLOCK_START/BLOCK_END/ITEM_SEP markers and no NEWLINEs

    Raises:
        LayoutError: On a dedent that matches no enclosing block
    """
    return LayoutResolver(tokens, line_indents).resolve()
