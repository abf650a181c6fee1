"""CLI entry point for the Fenics interpreter.

Usage:
    python -m fenics [-v|-vv|-vvv] <program_file>
    python -m fenics [-v...] --emit-ast <program_file>
    python -m fenics [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .fenics file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file
  --debug-file  Where debug output goes (default: debug.txt)

Debug information is written to the debug file when verbosity is greater
than zero. Imports are resolved relative to the program's directory.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast import Program
from .ast_json import ast_to_obj, ast_from_obj
from .errors import FenicsError, FenicsSyntaxError
from .interpreter import Interpreter
from .parser import parse_program


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def parse_or_exit(source: str) -> Program:
    try:
        return parse_program(source)
    except FenicsSyntaxError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)


def run_or_exit(ast_program: Program, args: argparse.Namespace, search_dir: str) -> None:
    interpreter = Interpreter(debug_level=args.v, debug_file=args.debug_file, search_dir=search_dir)
    try:
        interpreter.run(ast_program)
    except FenicsError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(prog='fenics', description="Fenics language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', default='debug.txt', help='file receiving debug output')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='FENICS_FILE', help='emit AST JSON for the given .fenics file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Fenics program file (.fenics) to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        ast_program = parse_or_exit(read_source(program_file))
        obj = ast_to_obj(ast_program)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        data = json.loads(read_source(ast_path))
        try:
            ast_program = ast_from_obj(data)
        except (ValueError, KeyError, TypeError) as e:
            print(f"Error: invalid AST file {ast_path}: {e}", file=sys.stderr)
            sys.exit(1)
        run_or_exit(ast_program, args, str(ast_path.parent))
        return

    # Default: execute source file
    if not args.program:
        parser.error('missing program file; or use --emit-ast/--ast')
    program_file = Path(args.program)
    ast_program = parse_or_exit(read_source(program_file))
    run_or_exit(ast_program, args, str(program_file.parent))


if __name__ == '__main__':
    main()
