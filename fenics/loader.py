"""Module loading for `import` statements.

A module is an ordinary Fenics file. It runs to completion in its own
interpreter, and the importer receives a single value: the object built by
the module's `lib` export, or else an object holding every global function
the module defined.
"""

from __future__ import annotations

import os
from typing import Any, Optional

from .ast import LibExport, Program
from .errors import FenicsError
from .parser import parse_program
from .types import FunctionVal, ObjectVal

SEARCH_TEMPLATES = (
    '{}.fenics',
    'libs/{}.fenics',
    '../libs/{}.fenics',
    'samples/{}.fenics',
    '../samples/{}.fenics',
)


def resolve_import_path(path: str, base_dir: Optional[str] = None) -> str:
    """Map an import path to a file.

    Paths containing a separator are used as written (relative ones are taken
    from `base_dir` when given). Bare names are probed in the base directory
    and the conventional `libs`/`samples` folders.
    """
    if '/' in path or '\\' in path:
        if base_dir and not os.path.isabs(path):
            return os.path.join(base_dir, path)
        return path
    for template in SEARCH_TEMPLATES:
        candidate = template.format(path)
        probe = os.path.join(base_dir, candidate) if base_dir else candidate
        if os.path.exists(probe):
            return probe
    raise FenicsError(
        f"Module '{path}' not found in search paths: ./libs/, ../libs/, ./samples/, ../samples/, or current directory",
        'ImportError')


def find_lib_name(program: Program) -> Optional[str]:
    for stmt in program.body:
        if isinstance(stmt, LibExport):
            return stmt.name
    return None


def load_module(interpreter: Any, path: str, alias: Optional[str] = None) -> Any:
    """Run the module at `path` and bind its value in the importer's globals."""
    resolved = resolve_import_path(path, interpreter.search_dir)
    if interpreter.debug_level >= 1:
        interpreter.debug(f"import {path} -> {resolved}")
    try:
        with open(resolved, 'r', encoding='utf-8') as f:
            source = f.read()
    except OSError as e:
        raise FenicsError(f"Error reading import '{resolved}': {e}", 'ImportError')
    program = parse_program(source)
    lib_name = find_lib_name(program)

    module_interpreter = interpreter.spawn()
    module_interpreter.run(program)

    register_name = alias or lib_name
    if register_name is None:
        raise FenicsError("Imported file does not declare a lib export; use 'as' to name it", 'ImportError')

    module_globals = module_interpreter.env.globals
    if lib_name is not None:
        if lib_name not in module_globals:
            raise FenicsError(f"Module '{lib_name}' not found in library", 'ImportError')
        value = module_globals[lib_name]
    else:
        value = ObjectVal({k: v for k, v in module_globals.items() if isinstance(v, FunctionVal)})
    interpreter.env.define_global(register_name, value)
    if interpreter.debug_level >= 1:
        interpreter.debug(f"bound module {register_name}")
    return value
