"""
Recursive descent parser for Eucalyptus.

Consumes the layout-resolved token stream (see ``eucalyptus.layout``) and
builds a ``Program``. Whitespace never matters here: blocks arrive as
BLOCK_START ... BLOCK_END with ITEM_SEP between statements.

Grammar:
    Program     := [Statement (ITEM_SEP Statement)*] EOF
    Statement   := LetBinding | VarBinding | Assignment | Expr
    LetBinding  := "let" (SimpleLet | BLOCK_START SimpleLet (ITEM_SEP SimpleLet)* BLOCK_END)
    SimpleLet   := IDENT IDENT* "=" Body
    VarBinding  := "var" IDENT "=" Body
    Assignment  := IDENT "=" Body
    Body        := Block | Expr
    Expr        := "fun" IDENT* "->" Body | Binary
    Binary      := Application (BinOp Application)*
    Application := Postfix Postfix* | Postfix "(" ")"
    Postfix     := Atom ("[" Expr "]")*      no space before "["
    Atom        := literal | IDENT | "(" Expr ")" | "[" ... "]" | "{" ... "}"
"""

from typing import List, Optional, Tuple
from .tokens import (
    Token, TokenType, SourceSpan, LITERAL_TOKENS, CLOSING_BRACKETS, describe_token_type,
)
from .ast import (
    Expression, IntLit, FloatLit, StringLit, CharLit, BoolLit,
    ArrayLit, SetLit, MapLit, MapEntry, Identifier, BinaryOp, Lambda, Call, Index,
    Statement, LetBinding, VarBinding, Assignment, ExpressionStatement,
    Block, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_unmatched_bracket,
    error_mixed_collection,
    error_empty_clause,
    error_empty_braces,
    error_duplicate_parameter,
    error_nesting_too_deep,
)
from .lexer import Lexer
from .layout import resolve_layout


# Tokens that can start an Atom, and therefore an argument of an application
ATOM_START = LITERAL_TOKENS | {
    TokenType.IDENTIFIER,
    TokenType.LPAREN,
    TokenType.LBRACKET,
    TokenType.LBRACE,
}

# Diagnostic names for layout markers
LAYOUT_DESCRIPTIONS = {
    TokenType.ITEM_SEP: "new line",
    TokenType.BLOCK_START: "indented block",
    TokenType.BLOCK_END: "end of indented block",
}


class Parser:
    """
    Recursive descent parser for layout-resolved Eucalyptus tokens.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    The parser implements standard precedence climbing for expressions:
        Lowest:  == !=
                 < > <= >=
                 + -
                 * / %
        Highest: ^ (power, right-associative)
    Application by juxtaposition binds tighter than every operator.
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.EQ: 1,
        TokenType.NE: 1,
        TokenType.LT: 2,
        TokenType.GT: 2,
        TokenType.LE: 2,
        TokenType.GE: 2,
        TokenType.PLUS: 3,
        TokenType.MINUS: 3,
        TokenType.STAR: 4,
        TokenType.SLASH: 4,
        TokenType.PERCENT: 4,
        TokenType.CARET: 5,
    }

    RIGHT_ASSOCIATIVE = {TokenType.CARET}

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, expected: str) -> None:
        """Raise a parse error at the current token."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(expected, self._describe(token), token.span)

    def _describe(self, token: Token) -> str:
        if token.type in LAYOUT_DESCRIPTIONS:
            return LAYOUT_DESCRIPTIONS[token.type]
        if token.type == TokenType.IDENTIFIER:
            return f"identifier '{token.value}'"
        if token.lexeme and token.type in LITERAL_TOKENS:
            return f"{describe_token_type(token.type)} {token.lexeme}"
        return describe_token_type(token.type)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    def _close_bracket(self, opening: Token, closer: TokenType) -> Token:
        """Consume the closer for ``opening``, reporting mismatches."""
        if self._check(closer):
            return self._advance()
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unmatched_bracket(opening.lexeme, "never closed", opening.span)
        if token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
            raise error_unmatched_bracket(opening.lexeme, f"closed by {self._describe(token)}", token.span)
        self._error(f"',' or {describe_token_type(closer)}")

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> List[Statement]:
        """Parse one statement; a 'let' group yields several."""
        if self._check(TokenType.LET):
            return self._parse_let()
        if self._check(TokenType.VAR):
            return [self._parse_var()]
        if self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.ASSIGN:
            return [self._parse_assignment()]

        expr = self._parse_expression()
        return [ExpressionStatement(span=expr.span, expression=expr)]

    def _parse_statement_list(self, terminator: TokenType) -> List[Statement]:
        """Parse statements separated by ITEM_SEP up to ``terminator``."""
        statements = list(self._parse_statement())
        while self._match(TokenType.ITEM_SEP):
            statements.extend(self._parse_statement())
        token = self._current()
        if token.type in CLOSING_BRACKETS:
            raise error_unmatched_bracket(token.lexeme, "no matching opening bracket", token.span)
        if not self._check(terminator):
            self._error("end of statement")
        return statements

    def _parse_let(self) -> List[Statement]:
        start = self._advance()  # consume 'let'

        if not self._match(TokenType.BLOCK_START):
            return [self._parse_simple_let(start)]

        bindings = [self._parse_simple_let(self._current())]
        while self._match(TokenType.ITEM_SEP):
            bindings.append(self._parse_simple_let(self._current()))
        self._consume(TokenType.BLOCK_END, "binding or end of 'let' block")
        return bindings

    def _parse_simple_let(self, start: Token) -> LetBinding:
        """Parse 'name params* = body', desugaring parameters into a Lambda."""
        name_token = self._consume(TokenType.IDENTIFIER, "binding name")
        params = self._parse_parameters(TokenType.ASSIGN)
        self._consume(TokenType.ASSIGN, "parameter name or '='")
        body = self._parse_body()

        if params:
            body = Lambda(
                span=SourceSpan(name_token.span.start, body.span.end),
                parameters=params,
                body=body,
            )
        return LetBinding(span=self._span_from(start), name=name_token.value, value=body)

    def _parse_var(self) -> VarBinding:
        start = self._advance()  # consume 'var'
        name = self._consume(TokenType.IDENTIFIER, "binding name").value
        self._consume(TokenType.ASSIGN, "'='")
        value = self._parse_body()
        return VarBinding(span=self._span_from(start), name=name, value=value)

    def _parse_assignment(self) -> Assignment:
        start = self._advance()  # identifier
        self._advance()  # consume '='
        value = self._parse_body()
        return Assignment(span=self._span_from(start), target=start.value, value=value)

    def _parse_parameters(self, terminator: TokenType) -> Tuple[str, ...]:
        """Parse distinct parameter names up to (not including) ``terminator``."""
        params: List[str] = []
        while self._check(TokenType.IDENTIFIER):
            token = self._advance()
            if token.value in params:
                raise error_duplicate_parameter(token.value, token.span)
            params.append(token.value)
        if not self._check(terminator):
            self._error(f"parameter name or {describe_token_type(terminator)}")
        return tuple(params)

    def _parse_body(self) -> Expression:
        """Parse the right-hand side of '=' or '->': an indented block or an expression."""
        if self._check(TokenType.BLOCK_START):
            return self._parse_block()
        return self._parse_expression()

    def _parse_block(self) -> Block:
        start = self._consume(TokenType.BLOCK_START, "indented block")
        statements = self._parse_statement_list(TokenType.BLOCK_END)
        self._advance()  # consume BLOCK_END
        return Block(span=self._span_from(start), statements=tuple(statements))

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        if self._check(TokenType.FUN):
            return self._parse_lambda()
        return self._parse_binary_expr(0)

    def _parse_lambda(self) -> Lambda:
        start = self._advance()  # consume 'fun'
        params = self._parse_parameters(TokenType.ARROW)
        self._advance()  # consume '->'
        body = self._parse_body()
        return Lambda(span=self._span_from(start), parameters=params, body=body)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_application()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator

            next_precedence = precedence if op_token.type in self.RIGHT_ASSOCIATIVE else precedence + 1
            right = self._parse_binary_expr(next_precedence)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right,
            )

        return left

    def _is_empty_parens(self) -> bool:
        return self._check(TokenType.LPAREN) and self._peek(1).type == TokenType.RPAREN

    def _parse_application(self) -> Expression:
        """Parse 'callee arg*', or 'callee ()' for a zero-argument call."""
        callee = self._parse_postfix()

        if self._is_empty_parens():
            self._advance()
            end = self._advance()
            return Call(span=SourceSpan(callee.span.start, end.span.end), callee=callee, arguments=())

        arguments = []
        while self._current().type in ATOM_START:
            if self._is_empty_parens():
                raise error_empty_clause(self._current().span)
            arguments.append(self._parse_postfix())

        if not arguments:
            return callee
        return Call(
            span=SourceSpan(callee.span.start, arguments[-1].span.end),
            callee=callee,
            arguments=tuple(arguments),
        )

    def _follows_directly(self) -> bool:
        """True when the current token starts where the previous one ended."""
        previous = self.tokens[self.pos - 1]
        return previous.span.end.offset == self._current().span.start.offset

    def _parse_postfix(self) -> Expression:
        """Parse an atom and any '[index]' suffixes written without a space.

        ``xs[0]`` indexes ``xs``; ``f [0]`` passes an array to ``f``.
        """
        expr = self._parse_atom()
        while self._check(TokenType.LBRACKET) and self._follows_directly():
            start = self._advance()  # consume '['
            if self._check(TokenType.RBRACKET):
                self._error("index expression")
            index = self._parse_expression()
            end = self._close_bracket(start, TokenType.RBRACKET)
            expr = Index(span=SourceSpan(expr.span.start, end.span.end), target=expr, index=index)
        return expr

    def _parse_atom(self) -> Expression:
        """Parse literals, identifiers, grouped expressions and collections."""
        token = self._current()

        if token.type == TokenType.INT_LITERAL:
            self._advance()
            return IntLit(span=token.span, value=token.value)
        if token.type == TokenType.FLOAT_LITERAL:
            self._advance()
            return FloatLit(span=token.span, value=token.value)
        if token.type in (TokenType.STRING_LITERAL, TokenType.RAW_STRING_LITERAL):
            self._advance()
            return StringLit(span=token.span, value=token.value)
        if token.type == TokenType.CHAR_LITERAL:
            self._advance()
            return CharLit(span=token.span, value=token.value)
        if token.type == TokenType.BOOL_LITERAL:
            self._advance()
            return BoolLit(span=token.span, value=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            return self._parse_grouped()
        if token.type == TokenType.LBRACKET:
            return self._parse_array_literal()
        if token.type == TokenType.LBRACE:
            return self._parse_brace_literal()

        if token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
            raise error_unmatched_bracket(token.lexeme, "no matching opening bracket", token.span)
        self._error("expression")

    def _parse_grouped(self) -> Expression:
        start = self._advance()  # consume '('
        if self._check(TokenType.RPAREN):
            raise error_empty_clause(SourceSpan(start.span.start, self._current().span.end))
        expr = self._parse_expression()
        self._close_bracket(start, TokenType.RPAREN)
        return expr

    def _parse_array_literal(self) -> ArrayLit:
        start = self._advance()  # consume '['
        elements = []
        while not self._check(TokenType.RBRACKET):
            elements.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
        self._close_bracket(start, TokenType.RBRACKET)
        return ArrayLit(span=self._span_from(start), elements=tuple(elements))

    def _at_identifier_key(self) -> bool:
        return self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.COLON

    def _parse_map_entry(self) -> MapEntry:
        """Parse 'key: value'; a bare identifier key is a string key."""
        start = self._current()
        if self._at_identifier_key():
            self._advance()
            key = StringLit(span=start.span, value=start.value)
        else:
            key = self._parse_expression()
        self._consume(TokenType.COLON, "':'")
        value = self._parse_expression()
        return MapEntry(span=self._span_from(start), key=key, value=value)

    def _parse_brace_literal(self) -> Expression:
        """Parse a map or set literal, decided by the first element."""
        start = self._advance()  # consume '{'
        if self._check(TokenType.RBRACE):
            raise error_empty_braces(SourceSpan(start.span.start, self._current().span.end))

        first_start = self._current()
        if self._at_identifier_key():
            is_map = True
            first = self._parse_map_entry()
        else:
            expr = self._parse_expression()
            is_map = self._check(TokenType.COLON)
            if is_map:
                self._advance()
                value = self._parse_expression()
                first = MapEntry(span=self._span_from(first_start), key=expr, value=value)
            else:
                first = expr

        items = [first]
        while self._match(TokenType.COMMA):
            if self._check(TokenType.RBRACE):
                break  # trailing comma
            item_start = self._current()
            if is_map:
                if not self._at_identifier_key():
                    key = self._parse_expression()
                    if not self._check(TokenType.COLON):
                        raise error_mixed_collection(self._span_from(item_start))
                    self._advance()
                    value = self._parse_expression()
                    items.append(MapEntry(span=self._span_from(item_start), key=key, value=value))
                else:
                    items.append(self._parse_map_entry())
            else:
                items.append(self._parse_expression())
                if self._check(TokenType.COLON):
                    raise error_mixed_collection(self._span_from(item_start))

        self._close_bracket(start, TokenType.RBRACE)
        if is_map:
            return MapLit(span=self._span_from(start), entries=tuple(items))
        return SetLit(span=self._span_from(start), elements=tuple(items))

    # =========================================================================
    # Entry points
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self._current()
        statements: List[Statement] = []
        if not self._is_at_end():
            try:
                statements = self._parse_statement_list(TokenType.EOF)
            except RecursionError:
                raise error_nesting_too_deep(self._current().span) from None
        return Program(span=self._span_from(start), statements=tuple(statements))

    def parse_single(self) -> List[Statement]:
        """Parse exactly one statement followed by end of input.

        A 'let' group still counts as one statement.
        """
        if self._is_at_end():
            self._error("expression")
        try:
            statements = self._parse_statement()
        except RecursionError:
            raise error_nesting_too_deep(self._current().span) from None
        if not self._is_at_end():
            self._error("end of input")
        return statements


def parse(tokens: List[Token]) -> Program:
    """
    Convenience function to parse layout-resolved tokens into a program.

    Args:
        tokens: Tokens from ``resolve_layout``

    Returns:
        Parsed Program AST

    Raises:
        ParseError: If parsing fails
    """
    return Parser(tokens).parse_program()


def layout_tokens(source: str, filename: Optional[str] = None) -> List[Token]:
    """Lex ``source`` and resolve its layout."""
    lexer = Lexer(source, filename)
    raw = lexer.tokenize()
    return resolve_layout(raw, lexer.line_indents)


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """Lex, resolve layout and parse ``source`` in one step."""
    return parse(layout_tokens(source, filename))
