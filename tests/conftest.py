import textwrap
from pathlib import Path

import pytest

from fenics.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def run_source(source: str, **options) -> Interpreter:
    """Parse dedented source and run it in a fresh interpreter."""
    interp = Interpreter(**options)
    interp.run(parse_program(textwrap.dedent(source)))
    return interp


@pytest.fixture
def examples_dir() -> Path:
    return EXAMPLES
