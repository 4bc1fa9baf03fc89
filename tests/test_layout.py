"""
Unit tests for Eucalyptus layout resolution.
"""

import textwrap

import pytest
from eucalyptus import Lexer, TokenType, LayoutError, resolve_layout, tokenize
from eucalyptus.parser import layout_tokens

T = TokenType


def resolved(source):
    """Token types after layout resolution."""
    return [t.type for t in layout_tokens(textwrap.dedent(source))]


class TestImplicitBlocks:
    """Offside rule: indentation after '=', '->' and 'let' opens a block."""

    def test_single_line(self):
        assert resolved("let x = 1") == [T.LET, T.IDENTIFIER, T.ASSIGN, T.INT_LITERAL, T.EOF]

    def test_top_level_items_are_separated(self):
        assert resolved("""\
            a
            b
        """) == [T.IDENTIFIER, T.ITEM_SEP, T.IDENTIFIER, T.EOF]

    def test_block_after_assign(self):
        types = resolved("""\
            let b =
                let a = 20
                a
            a
        """)
        assert types == [
            T.LET, T.IDENTIFIER, T.ASSIGN,
            T.BLOCK_START,
            T.LET, T.IDENTIFIER, T.ASSIGN, T.INT_LITERAL,
            T.ITEM_SEP,
            T.IDENTIFIER,
            T.BLOCK_END,
            T.ITEM_SEP,
            T.IDENTIFIER,
            T.EOF,
        ]

    def test_block_after_arrow(self):
        types = resolved("""\
            fun x ->
                x
        """)
        assert types == [
            T.FUN, T.IDENTIFIER, T.ARROW,
            T.BLOCK_START, T.IDENTIFIER, T.BLOCK_END,
            T.EOF,
        ]

    def test_let_group(self):
        types = resolved("""\
            let
                x = 1
                y = 2
            x
        """)
        assert types == [
            T.LET,
            T.BLOCK_START,
            T.IDENTIFIER, T.ASSIGN, T.INT_LITERAL,
            T.ITEM_SEP,
            T.IDENTIFIER, T.ASSIGN, T.INT_LITERAL,
            T.BLOCK_END,
            T.ITEM_SEP,
            T.IDENTIFIER,
            T.EOF,
        ]

    def test_nested_blocks_close_together(self):
        types = resolved("""\
            let f x =
                let g y =
                    y
                g x
            f
        """)
        assert types.count(T.BLOCK_START) == 2
        assert types.count(T.BLOCK_END) == 2
        # Dedent to column 5 closes the inner block, then separates items
        inner_end = types.index(T.BLOCK_END)
        assert types[inner_end + 1] == T.ITEM_SEP

    def test_blocks_close_at_end_of_input(self):
        types = resolved("""\
            let f =
                let g =
                    1
        """)
        assert types[-3:] == [T.BLOCK_END, T.BLOCK_END, T.EOF]

    def test_indented_program(self):
        """The program block sits at the column of its first token."""
        types = [t.type for t in layout_tokens("    a\n    b")]
        assert types == [T.IDENTIFIER, T.ITEM_SEP, T.IDENTIFIER, T.EOF]

    def test_blank_and_comment_lines_ignored(self):
        types = resolved("""\
            let x =

                # the value
                1

            x
        """)
        assert types == [
            T.LET, T.IDENTIFIER, T.ASSIGN,
            T.BLOCK_START, T.INT_LITERAL, T.BLOCK_END,
            T.ITEM_SEP, T.IDENTIFIER, T.EOF,
        ]

    def test_opener_without_indent_does_not_open(self):
        """A line at the block column after '=' is a new item, not a block."""
        types = resolved("""\
            let x =
            1
        """)
        assert T.BLOCK_START not in types
        assert types == [T.LET, T.IDENTIFIER, T.ASSIGN, T.ITEM_SEP, T.INT_LITERAL, T.EOF]


class TestContinuationLines:
    """Lines indented past the block column continue the previous line."""

    def test_indented_continuation(self):
        types = resolved("""\
            let x = 1 +
                2
        """)
        assert types == [
            T.LET, T.IDENTIFIER, T.ASSIGN, T.INT_LITERAL, T.PLUS, T.INT_LITERAL, T.EOF,
        ]

    def test_leading_comma_continues(self):
        types = resolved("""\
            [ 1
            , 2
            , 3
            ]
        """)
        assert T.ITEM_SEP not in types

    def test_leading_comma_list_matches_single_line(self):
        multi = layout_tokens("[ 1 \n, 2 \n, 3 \n]")
        single = layout_tokens("[1, 2, 3]")
        assert [(t.type, t.value) for t in multi] == [(t.type, t.value) for t in single]

    def test_newlines_inside_brackets_dropped(self):
        types = resolved("""\
            {a: 1,
        b: 2}
        """)
        assert T.ITEM_SEP not in types
        assert T.NEWLINE not in types

    def test_block_inside_bracket_closed_by_bracket(self):
        types = resolved("""\
            apply (fun x ->
                x + 1) 2
        """)
        assert types == [
            T.IDENTIFIER, T.LPAREN, T.FUN, T.IDENTIFIER, T.ARROW,
            T.BLOCK_START, T.IDENTIFIER, T.PLUS, T.INT_LITERAL, T.BLOCK_END,
            T.RPAREN, T.INT_LITERAL, T.EOF,
        ]


class TestLayoutErrors:
    """Inconsistent dedents are reported with E150."""

    def test_dedent_between_levels(self):
        source = textwrap.dedent("""\
            let f =
                    1
                2
        """)
        with pytest.raises(LayoutError) as exc_info:
            layout_tokens(source)
        assert "E150" in str(exc_info.value)
        assert exc_info.value.span.start.line == 3

    def test_dedent_left_of_program(self):
        with pytest.raises(LayoutError) as exc_info:
            layout_tokens("    a\nb")
        assert "E150" in str(exc_info.value)


class TestResolveLayoutFunction:
    """The convenience function works on raw lexer output."""

    def test_with_line_indents(self):
        lexer = Lexer("let x =\n  1")
        tokens = resolve_layout(lexer.tokenize(), lexer.line_indents)
        assert [t.type for t in tokens] == [
            T.LET, T.IDENTIFIER, T.ASSIGN, T.BLOCK_START, T.INT_LITERAL, T.BLOCK_END, T.EOF,
        ]

    def test_without_line_indents(self):
        """Columns of first tokens stand in for recorded indentation."""
        tokens = resolve_layout(tokenize("a\nb"))
        assert [t.type for t in tokens] == [T.IDENTIFIER, T.ITEM_SEP, T.IDENTIFIER, T.EOF]

    def test_no_raw_newlines_leave_the_resolver(self):
        tokens = layout_tokens("let f x =\n  x\nf 1\n")
        assert all(t.type != T.NEWLINE for t in tokens)

    def test_markers_are_zero_width(self):
        tokens = layout_tokens("a\nb")
        sep = tokens[1]
        assert sep.type == T.ITEM_SEP
        assert sep.span.start == sep.span.end
        assert sep.span.start.line == 2
