"""
Eucalyptus runtime - tree-walking evaluation.

This module provides:
- Interpreter: Evaluates AST nodes against an Environment
- Value: Runtime values tagged with their kind
- Environment: Frames of let/var bindings with lexical parents
- BuiltinRegistry: Built-in function implementations
- run / evaluate_expression: Whole-pipeline entry points for hosts
"""

from .values import (
    Value,
    ValueKind,
    Closure,
    int_val,
    float_val,
    str_val,
    char_val,
    bool_val,
    array_val,
    map_val,
    set_val,
    closure_val,
    builtin_val,
    value_key,
    values_equal,
    format_value,
)

from .environment import (
    Slot,
    Environment,
    UNINITIALIZED,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    run,
    evaluate_expression,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'Closure',
    'int_val',
    'float_val',
    'str_val',
    'char_val',
    'bool_val',
    'array_val',
    'map_val',
    'set_val',
    'closure_val',
    'builtin_val',
    'value_key',
    'values_equal',
    'format_value',

    # Environment
    'Slot',
    'Environment',
    'UNINITIALIZED',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'run',
    'evaluate_expression',
]
