"""
Eucalyptus - a tree-walk interpreter for a small expression language.

This module provides:
- Lexer: Tokenizes source text and records line indentation
- Layout resolver: Turns indentation into explicit block markers
- Parser: Builds an AST from layout-resolved tokens
- Interpreter: Evaluates programs with lexical scoping and closures

Usage:
    from eucalyptus import run, evaluate_expression, Environment

    # Whole programs
    result = run('''
    let add a b = a + b
    let add2 = fun a b -> a + b
    add 2 3 + add2 2 3
    ''')
    if result.success:
        print(result.value)              # 10
    else:
        print(result.error_message)

    # REPL-style incremental evaluation
    env = Environment.global_frame()
    evaluate_expression('var a = 10', env)
    evaluate_expression('a = a + 1', env)
    evaluate_expression('a', env).value  # 11
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .errors import (
    Diagnostic,
    ErrorSeverity,
    EucalyptusError,
    LexError,
    LayoutError,
    ParseError,
    RuntimeError,
    NameError,
    RedefinitionError,
    ImmutableBindingError,
    ArityError,
    TypeError,
    DuplicateKeyError,
    StackOverflowError,
    ArithmeticError,
    LookupError,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .layout import (
    LayoutResolver,
    resolve_layout,
)

from .parser import (
    Parser,
    parse,
    parse_source,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    IntLit,
    FloatLit,
    StringLit,
    CharLit,
    BoolLit,
    ArrayLit,
    SetLit,
    MapEntry,
    MapLit,
    Identifier,
    BinaryOp,
    Lambda,
    Call,
    Index,
    Block,
    # Statements
    Statement,
    LetBinding,
    VarBinding,
    Assignment,
    ExpressionStatement,
    Program,
    # Helpers
    format_ast,
    print_ast,
)

from .config import (
    InterpreterConfig,
    load_config,
)

from .runtime import (
    Value,
    ValueKind,
    Environment,
    Interpreter,
    ExecutionResult,
    run,
    evaluate_expression,
)

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Errors
    'Diagnostic',
    'ErrorSeverity',
    'EucalyptusError',
    'LexError',
    'LayoutError',
    'ParseError',
    'RuntimeError',
    'NameError',
    'RedefinitionError',
    'ImmutableBindingError',
    'ArityError',
    'TypeError',
    'DuplicateKeyError',
    'StackOverflowError',
    'ArithmeticError',
    'LookupError',

    # Front end
    'Lexer',
    'tokenize',
    'LayoutResolver',
    'resolve_layout',
    'Parser',
    'parse',
    'parse_source',

    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'IntLit',
    'FloatLit',
    'StringLit',
    'CharLit',
    'BoolLit',
    'ArrayLit',
    'SetLit',
    'MapEntry',
    'MapLit',
    'Identifier',
    'BinaryOp',
    'Lambda',
    'Call',
    'Index',
    'Block',
    'Statement',
    'LetBinding',
    'VarBinding',
    'Assignment',
    'ExpressionStatement',
    'Program',
    'format_ast',
    'print_ast',

    # Config
    'InterpreterConfig',
    'load_config',

    # Runtime
    'Value',
    'ValueKind',
    'Environment',
    'Interpreter',
    'ExecutionResult',
    'run',
    'evaluate_expression',
]

__version__ = "0.1.0"
