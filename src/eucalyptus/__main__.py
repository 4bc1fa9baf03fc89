#!/usr/bin/env python3
"""
CLI for the Eucalyptus interpreter.

Usage:
    python -m eucalyptus run FILE [--json] [--config FILE]
    python -m eucalyptus check FILE [--json]
    python -m eucalyptus tokens FILE [--json]
    python -m eucalyptus eval EXPR [--json] [--config FILE]

Examples:
    # Run a program and print the value of its last statement
    python -m eucalyptus run examples/fib.eu

    # Lex, resolve layout and parse without evaluating
    python -m eucalyptus check examples/fib.eu

    # Show the layout-resolved token stream
    python -m eucalyptus tokens examples/fib.eu

    # Evaluate a single statement
    python -m eucalyptus eval "'c' + 'a' + 't'"
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .errors import EucalyptusError


def _read_source(path_str: str) -> Optional[str]:
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding='utf-8')


def _load_config(args):
    from dataclasses import replace
    from .config import load_config

    try:
        config = load_config(args.config)
        if args.max_call_depth is not None:
            config = replace(config, max_call_depth=args.max_call_depth)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    return config


def _report(error: EucalyptusError, args) -> int:
    """Print a diagnostic to stderr and return the failure exit status."""
    if args.json:
        print(json.dumps(error.diagnostic.to_json(), indent=2), file=sys.stderr)
    else:
        print(error.diagnostic.format(), file=sys.stderr)
    return 1


def cmd_check(args):
    """Check a source file for lexical, layout and syntax errors."""
    from .parser import parse_source

    source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = parse_source(source, filename=args.file)
    except EucalyptusError as e:
        e.attach_source(source.splitlines())
        return _report(e, args)

    print(f"OK: {Path(args.file).name} - {len(program.statements)} statement(s), no errors")
    return 0


def cmd_tokens(args):
    """Print the layout-resolved token stream of a source file."""
    from .parser import layout_tokens

    source = _read_source(args.file)
    if source is None:
        return 1

    try:
        tokens = layout_tokens(source, filename=args.file)
    except EucalyptusError as e:
        e.attach_source(source.splitlines())
        return _report(e, args)

    if args.json:
        print(json.dumps([
            {
                "type": token.type.name,
                "lexeme": token.lexeme,
                "line": token.span.start.line,
                "column": token.span.start.column,
            }
            for token in tokens
        ], indent=2))
    else:
        for token in tokens:
            print(f"{token.span.start.line}:{token.span.start.column}\t{token}")
    return 0


def _print_result(result, args) -> int:
    from .runtime.values import format_value

    if not result.success:
        return _report(result.error, args)
    if result.value is None:
        return 0
    if args.json:
        print(json.dumps({
            "kind": result.value.kind.value,
            "value": format_value(result.value, nested=True),
        }))
    else:
        print(format_value(result.value))
    return 0


def cmd_run(args):
    """Run a program and print the value of its last statement."""
    from .runtime import run

    source = _read_source(args.file)
    if source is None:
        return 1
    config = _load_config(args)
    if config is None:
        return 1

    result = run(source, config=config, filename=args.file)
    return _print_result(result, args)


def cmd_eval(args):
    """Evaluate a single statement in a fresh global environment."""
    from .runtime import Environment, evaluate_expression

    config = _load_config(args)
    if config is None:
        return 1

    result = evaluate_expression(args.expr, Environment.global_frame(), config)
    return _print_result(result, args)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog='python -m eucalyptus',
        description='Eucalyptus interpreter',
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--json', action='store_true',
                        help='Print diagnostics and results as JSON')

    runtime = argparse.ArgumentParser(add_help=False)
    runtime.add_argument('-c', '--config', metavar='FILE',
                         help='Interpreter config file (YAML)')
    runtime.add_argument('--max-call-depth', type=int, metavar='N',
                         help='Override the maximum call depth')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', parents=[common, runtime],
                                       help='Run a program file')
    run_parser.add_argument('file', help='Source file')

    # check command
    check_parser = subparsers.add_parser('check', parents=[common],
                                         help='Check a source file for errors')
    check_parser.add_argument('file', help='Source file')

    # tokens command
    tokens_parser = subparsers.add_parser('tokens', parents=[common],
                                          help='Dump layout-resolved tokens')
    tokens_parser.add_argument('file', help='Source file')

    # eval command
    eval_parser = subparsers.add_parser('eval', parents=[common, runtime],
                                        help='Evaluate a single statement')
    eval_parser.add_argument('expr', help='Statement text')

    args = parser.parse_args(argv)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    elif args.action == 'eval':
        return cmd_eval(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
