from fenics.interpreter import parse_program, Interpreter
from conftest import EXAMPLES


def run_example(name: str) -> None:
    with open(EXAMPLES / name, 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter(search_dir=str(EXAMPLES))
    interp.run(ast)


def test_hello(capsys):
    run_example('hello.fenics')
    out = capsys.readouterr().out.strip()
    assert out == 'Hello, Fenics!'


def test_arithmetic(capsys):
    run_example('arithmetic.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == [
        '9', '5', '14', '3', '-3', '1', '-1', '8', '3.5', 'inf',
        'abcd', 'true', 'false', 'false', 'true',
    ]


def test_collections(capsys):
    run_example('collections.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == [
        '[1, 2, 3]',
        '[3, 2, 1]',
        '[2, 1, 3]',
        'true',
        '3',
        '3',
        '2',
        '[3, 99, 2]',
        '[a, b, c]',
        'Ada',
        '36',
        '37',
        'Ada',
        '[name, age]',
        '6',
    ]


def test_control_flow(capsys):
    run_example('control_flow.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['0: 10', '1: 20', '2: 30', '60', '3', 'B', 'pass', 'low']


def test_functions(capsys):
    run_example('functions.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['5', '3628800', 'Hi Ada', 'Hi Bob', 'null']


def test_errors(capsys):
    run_example('errors.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == [
        '1',
        'caught: Division by zero',
        'from try',
        "Variable 'missing_var' not found",
    ]


def test_ephemeral(capsys):
    run_example('ephemeral.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['42', 'answer is 42', 'hi there']


def test_loop_return(capsys):
    run_example('loop_return.fenics')
    out = capsys.readouterr().out.strip()
    assert out == '3'


def test_imports(capsys):
    run_example('imports.fenics')
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['5', '16', '25']
