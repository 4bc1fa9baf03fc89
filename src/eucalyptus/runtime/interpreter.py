"""
Tree-walking interpreter for Eucalyptus.

Evaluates AST nodes against an Environment. ``Interpreter.execute`` raises
the typed errors from ``eucalyptus.errors``; the module-level ``run`` and
``evaluate_expression`` wrap the whole pipeline and report failures in an
ExecutionResult instead.
"""

import math
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .values import (
    Value, ValueKind, Closure, NUMERIC_KINDS, TEXT_KINDS,
    int_val, float_val, str_val, char_val, bool_val,
    array_val, closure_val, value_key, values_equal, format_value, kind_name,
)
from .environment import Environment, UNINITIALIZED
from .builtins import get_element
from ..ast import (
    AstNode, Program, Statement, Expression,
    LetBinding, VarBinding, Assignment, ExpressionStatement, Block,
    IntLit, FloatLit, StringLit, CharLit, BoolLit,
    ArrayLit, MapLit, SetLit, Identifier, BinaryOp, Lambda, Call, Index,
)
from ..config import InterpreterConfig
from ..errors import (
    Diagnostic, EucalyptusError, RuntimeError,
    error_type, error_arity, error_duplicate_key,
    error_stack_overflow, error_arithmetic,
)
from ..lexer import INT_MIN, INT_MAX
from ..parser import Parser, layout_tokens, parse_source
from ..tokens import SourceSpan, TokenType, SYMBOLS

# Python frames used per interpreted call, generously estimated
_FRAMES_PER_CALL = 32


@dataclass
class ExecutionResult:
    """Result of running a program or a single statement."""
    success: bool
    value: Optional[Value] = None
    environment: Optional[Environment] = None
    error: Optional[EucalyptusError] = None

    @property
    def diagnostic(self) -> Optional[Diagnostic]:
        """The diagnostic of the failure, if any."""
        if self.error is not None:
            return self.error.diagnostic
        return None

    @property
    def error_message(self) -> Optional[str]:
        """Formatted diagnostic, with source line, if the run failed."""
        if self.error is not None:
            return self.error.diagnostic.format()
        return None


def _check_int(result: int, span: SourceSpan) -> Value:
    if not INT_MIN <= result <= INT_MAX:
        raise error_arithmetic("integer overflow", span)
    return int_val(result)


def _checked_pow(base: int, exp: int, span: SourceSpan) -> Value:
    """Integer power by squaring, failing as soon as a 64-bit bound is crossed."""
    result = 1
    while exp:
        if exp & 1:
            result = _check_int(result * base, span).data
        exp >>= 1
        if exp:
            base = _check_int(base * base, span).data
    return int_val(result)


def _truncating_divmod(a: int, b: int) -> Tuple[int, int]:
    """Quotient rounded toward zero; the remainder takes the sign of ``a``."""
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q, a - b * q


class Interpreter:
    """
    Tree-walking interpreter.

    Evaluates AST nodes by dispatching to type-specific methods.

    Usage:
        interpreter = Interpreter()
        value, env = interpreter.execute(parse_source("let x = 1\\nx + 1"))
    """

    def __init__(self, config: Optional[InterpreterConfig] = None):
        self.config = config or InterpreterConfig()
        self.call_depth = 0

    # =========================================================================
    # Entry points
    # =========================================================================

    def execute(self, program: Program,
                env: Optional[Environment] = None) -> Tuple[Optional[Value], Environment]:
        """
        Evaluate every top-level statement of ``program`` in order.

        Args:
            program: Parsed program
            env: Top-level frame to evaluate in; a fresh global frame if omitted

        Returns:
            (value of the last statement or None for an empty program, env)

        Raises:
            RuntimeError: Any E4xx evaluation error
        """
        if env is None:
            env = Environment.global_frame()
        value = self.execute_statements(program.statements, env)
        return value, env

    def execute_statements(self, statements: Iterable[Statement],
                           env: Environment) -> Optional[Value]:
        """Evaluate statements directly in ``env``, returning the last value."""
        value = None
        with self._recursion_guard():
            for stmt in statements:
                value = self.evaluate(stmt, env)
        return value

    @contextmanager
    def _recursion_guard(self):
        """Leave room on the host stack for ``max_call_depth`` calls.

        A host RecursionError that still occurs is reported as a stack overflow.
        """
        old_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(old_limit + self.config.max_call_depth * _FRAMES_PER_CALL)
        try:
            yield
        except RecursionError:
            self.call_depth = 0
            raise error_stack_overflow(self.config.max_call_depth) from None
        finally:
            sys.setrecursionlimit(old_limit)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def evaluate(self, node: AstNode, env: Environment) -> Value:
        """Evaluate a statement or expression node to a Value."""
        if isinstance(node, (IntLit, FloatLit, StringLit, CharLit, BoolLit)):
            return self._eval_literal(node)
        elif isinstance(node, Identifier):
            return env.lookup(node.name, node.span)
        elif isinstance(node, BinaryOp):
            return self._eval_binary_op(node, env)
        elif isinstance(node, Call):
            return self._eval_call(node, env)
        elif isinstance(node, Index):
            return self._eval_index(node, env)
        elif isinstance(node, Lambda):
            return closure_val(Closure(node.parameters, node.body, env))
        elif isinstance(node, ArrayLit):
            return array_val([self.evaluate(e, env) for e in node.elements])
        elif isinstance(node, MapLit):
            return self._eval_map_literal(node, env)
        elif isinstance(node, SetLit):
            return self._eval_set_literal(node, env)
        elif isinstance(node, Block):
            return self._eval_block(node, env)
        elif isinstance(node, (LetBinding, VarBinding)):
            return self._eval_binding(node, env)
        elif isinstance(node, Assignment):
            value = self.evaluate(node.value, env)
            env.assign(node.target, value, node.span)
            return value
        elif isinstance(node, ExpressionStatement):
            return self.evaluate(node.expression, env)
        else:
            raise error_type(f"cannot evaluate {type(node).__name__}", node.span)

    # =========================================================================
    # Bindings and blocks
    # =========================================================================

    def _eval_binding(self, stmt, env: Environment) -> Value:
        """Evaluate a let/var binding; the statement's value is the bound value."""
        if isinstance(stmt.value, Lambda):
            # Bind first so the closure body can refer to its own name
            slot = env.define(stmt.name, UNINITIALIZED, stmt.mutable, stmt.span)
            value = self.evaluate(stmt.value, env)
            slot.value = value
            return value

        value = self.evaluate(stmt.value, env)
        env.define(stmt.name, value, stmt.mutable, stmt.span)
        return value

    def _eval_block(self, block: Block, env: Environment) -> Value:
        """Evaluate statements in a fresh child frame; the last value is the result."""
        inner = env.child_frame()
        value = None
        for stmt in block.statements:
            value = self.evaluate(stmt, inner)
        return value

    # =========================================================================
    # Literals
    # =========================================================================

    def _eval_literal(self, lit: Expression) -> Value:
        if isinstance(lit, IntLit):
            return int_val(lit.value)
        elif isinstance(lit, FloatLit):
            return float_val(lit.value)
        elif isinstance(lit, StringLit):
            return str_val(lit.value)
        elif isinstance(lit, CharLit):
            return char_val(lit.value)
        return bool_val(lit.value)

    def _eval_map_literal(self, lit: MapLit, env: Environment) -> Value:
        entries = {}
        for entry in lit.entries:
            key = self.evaluate(entry.key, env)
            value = self.evaluate(entry.value, env)
            k = value_key(key)
            if k in entries:
                raise error_duplicate_key(format_value(key, nested=True), entry.span)
            entries[k] = (key, value)
        return Value(ValueKind.MAP, entries)

    def _eval_set_literal(self, lit: SetLit, env: Environment) -> Value:
        entries = {}
        for element in lit.elements:
            value = self.evaluate(element, env)
            entries.setdefault(value_key(value), value)
        return Value(ValueKind.SET, entries)

    # =========================================================================
    # Calls
    # =========================================================================

    def _callee_name(self, call: Call, callee: Value) -> str:
        if isinstance(call.callee, Identifier):
            return call.callee.name
        if callee.kind == ValueKind.BUILTIN:
            return callee.data.name
        return "function"

    def _eval_call(self, call: Call, env: Environment) -> Value:
        """Evaluate callee, then arguments left to right, then apply."""
        callee = self.evaluate(call.callee, env)
        if not callee.is_callable:
            raise error_type(f"cannot call a value of kind {kind_name(callee)}", call.span)

        args: List[Value] = [self.evaluate(arg, env) for arg in call.arguments]
        name = self._callee_name(call, callee)

        if callee.kind == ValueKind.BUILTIN:
            return self._call_builtin(callee.data, name, args, call.span)
        return self._call_closure(callee.data, name, args, call.span)

    def _eval_index(self, node: Index, env: Environment) -> Value:
        """Evaluate target, then index, then look the element up."""
        target = self.evaluate(node.target, env)
        key = self.evaluate(node.index, env)
        try:
            return get_element(target, key, "index")
        except RuntimeError as e:
            if e.diagnostic.span is None:
                e.diagnostic.span = node.span
            raise

    def _call_closure(self, closure: Closure, name: str,
                      args: List[Value], span: SourceSpan) -> Value:
        if len(args) != closure.arity:
            raise error_arity(name, closure.arity, len(args), span)

        if self.call_depth >= self.config.max_call_depth:
            raise error_stack_overflow(self.config.max_call_depth, span)

        frame = closure.env.child_frame(name)
        for param, arg in zip(closure.params, args):
            frame.define(param, arg, mutable=False)

        self.call_depth += 1
        try:
            return self.evaluate(closure.body, frame)
        finally:
            self.call_depth -= 1

    def _call_builtin(self, func, name: str, args: List[Value], span: SourceSpan) -> Value:
        if len(args) != func.arity:
            raise error_arity(name, func.arity, len(args), span)
        try:
            return func(*args)
        except RuntimeError as e:
            if e.diagnostic.span is None:
                e.diagnostic.span = span
            raise

    # =========================================================================
    # Operators
    # =========================================================================

    def _eval_binary_op(self, op: BinaryOp, env: Environment) -> Value:
        """Evaluate a binary operation, left operand first."""
        left = self.evaluate(op.left, env)
        right = self.evaluate(op.right, env)
        operator = op.operator

        if operator == TokenType.EQ:
            return bool_val(values_equal(left, right))
        elif operator == TokenType.NE:
            return bool_val(not values_equal(left, right))
        elif operator in (TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE):
            return self._compare(operator, left, right, op.span)
        elif operator == TokenType.PLUS and left.kind in TEXT_KINDS and right.kind in TEXT_KINDS:
            return str_val(left.data + right.data)
        elif operator == TokenType.PLUS and left.kind == ValueKind.ARRAY and right.kind == ValueKind.ARRAY:
            return array_val(left.data + right.data)
        elif left.kind in NUMERIC_KINDS and right.kind in NUMERIC_KINDS:
            if left.kind == ValueKind.INT and right.kind == ValueKind.INT:
                return self._int_arithmetic(operator, left.data, right.data, op.span)
            return self._float_arithmetic(operator, float(left.data), float(right.data), op.span)

        raise self._operand_error(operator, left, right, op.span)

    def _operand_error(self, operator: TokenType, left: Value, right: Value,
                       span: SourceSpan) -> EucalyptusError:
        symbol = SYMBOLS[operator]
        return error_type(
            f"unsupported operand kinds for '{symbol}': {kind_name(left)} and {kind_name(right)}",
            span,
        )

    def _int_arithmetic(self, operator: TokenType, a: int, b: int, span: SourceSpan) -> Value:
        if operator == TokenType.PLUS:
            return _check_int(a + b, span)
        elif operator == TokenType.MINUS:
            return _check_int(a - b, span)
        elif operator == TokenType.STAR:
            return _check_int(a * b, span)
        elif operator in (TokenType.SLASH, TokenType.PERCENT):
            if b == 0:
                raise error_arithmetic("division by zero", span)
            q, r = _truncating_divmod(a, b)
            return _check_int(q if operator == TokenType.SLASH else r, span)
        elif operator == TokenType.CARET:
            if b < 0:
                raise error_arithmetic("negative exponent in integer power", span)
            return _checked_pow(a, b, span)
        raise error_type(f"unknown operator {operator.name}", span)

    def _float_arithmetic(self, operator: TokenType, a: float, b: float,
                          span: SourceSpan) -> Value:
        if operator == TokenType.PLUS:
            return float_val(a + b)
        elif operator == TokenType.MINUS:
            return float_val(a - b)
        elif operator == TokenType.STAR:
            return float_val(a * b)
        elif operator in (TokenType.SLASH, TokenType.PERCENT):
            if b == 0.0:
                raise error_arithmetic("division by zero", span)
            return float_val(a / b if operator == TokenType.SLASH else math.fmod(a, b))
        elif operator == TokenType.CARET:
            try:
                return float_val(math.pow(a, b))
            except (ValueError, OverflowError) as e:
                raise error_arithmetic(f"invalid power: {e}", span) from None
        raise error_type(f"unknown operator {operator.name}", span)

    def _compare(self, operator: TokenType, left: Value, right: Value,
                 span: SourceSpan) -> Value:
        if left.kind in NUMERIC_KINDS and right.kind in NUMERIC_KINDS:
            a, b = left.data, right.data
        elif left.kind == right.kind and left.kind in TEXT_KINDS:
            a, b = left.data, right.data
        else:
            raise self._operand_error(operator, left, right, span)

        if operator == TokenType.LT:
            return bool_val(a < b)
        elif operator == TokenType.GT:
            return bool_val(a > b)
        elif operator == TokenType.LE:
            return bool_val(a <= b)
        return bool_val(a >= b)


# =============================================================================
# Boundary operations
# =============================================================================

def _failure(error: EucalyptusError, source: str) -> ExecutionResult:
    error.attach_source(source.splitlines())
    return ExecutionResult(success=False, error=error)


def run(
    source: str,
    env: Optional[Environment] = None,
    config: Optional[InterpreterConfig] = None,
    filename: Optional[str] = None,
) -> ExecutionResult:
    """
    High-level API to parse and evaluate a whole program in one call.

        from eucalyptus import run

        result = run('''
        let add a b = a + b
        add 2 3
        ''')

        if result.success:
            print(result.value)          # 5
        else:
            print(result.error_message)

    Args:
        source: Program text
        env: Top-level frame to evaluate in, so a host can keep bindings
            between runs; a fresh global frame if omitted
        config: Interpreter settings
        filename: Name reported in source locations

    Returns:
        ExecutionResult with the last statement's value and the top-level
        environment, or the error
    """
    config = config or InterpreterConfig()
    if filename is not None:
        config = config.with_filename(filename)
    try:
        program = parse_source(source, config.filename)
        value, env = Interpreter(config).execute(program, env)
    except EucalyptusError as e:
        return _failure(e, source)
    return ExecutionResult(success=True, value=value, environment=env)


def evaluate_expression(
    source: str,
    env: Environment,
    config: Optional[InterpreterConfig] = None,
) -> ExecutionResult:
    """
    Parse exactly one statement and evaluate it directly in ``env``.

    Bindings made by the statement stay in ``env``, so successive calls
    behave like lines typed into a REPL.
    """
    config = config or InterpreterConfig()
    try:
        statements = Parser(layout_tokens(source, config.filename)).parse_single()
        value = Interpreter(config).execute_statements(statements, env)
    except EucalyptusError as e:
        return _failure(e, source)
    return ExecutionResult(success=True, value=value, environment=env)
