# Fenics language package
# This package provides a parser and tree-walking interpreter for the Fenics language.
from .errors import FenicsError, FenicsSyntaxError
from .parser import parse_program
from .interpreter import run_program, run_file, Interpreter

__all__ = [
    'parse_program',
    'run_program',
    'run_file',
    'Interpreter',
    'FenicsError',
    'FenicsSyntaxError',
]
