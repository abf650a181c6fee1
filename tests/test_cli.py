import json
import textwrap

import pytest

from fenics.__main__ import main
from fenics.ast_json import ast_from_obj, ast_to_obj
from fenics.interpreter import parse_program

PROGRAM = """
// exercises most of the syntax tree
global Int const limit: 3
config:
    - name: "demo"
    - "max size": 10
fn greet(String who) -> String:
    return "hi #{who}"

items: [1, 2.5, null, true]
for i, v in items:
    if v is null:
        print("#{i}: none")
    else if v == true:
        continue_flag: 1
    else:
        print(v)
count: 0
while count < limit:
    count += 1
loop count > 0:
    count--
try:
    x: 1 / 0
catch err:
    print(err)
label: count == 0 ? "done" : "busy"
other: if count is not 0 then "yes" otherwise "no"
#tmp = -count ^ 2
print(greet(config.name), label, other, #tmp, items[0], config["max size"])
"""


def write(path, source):
    path.write_text(textwrap.dedent(source), encoding='utf-8')
    return path


def test_run_program_file(tmp_path, capsys):
    program = write(tmp_path / 'hello.fenics', 'print("hello from the cli")\n')
    main([str(program)])
    assert capsys.readouterr().out.strip() == 'hello from the cli'


def test_imports_resolve_next_to_program(tmp_path, capsys):
    (tmp_path / 'libs').mkdir()
    write(tmp_path / 'libs' / 'util.fenics', """
        fn twice(x): return x * 2
        lib util:
            - twice
    """)
    program = write(tmp_path / 'main.fenics', 'import util\nprint(util.twice(21))\n')
    main([str(program)])
    assert capsys.readouterr().out.strip() == '42'


def test_parse_error_exits(tmp_path, capsys):
    program = write(tmp_path / 'bad.fenics', 'fn (:\n')
    with pytest.raises(SystemExit) as exc:
        main([str(program)])
    assert exc.value.code == 1
    assert capsys.readouterr().err.startswith('Parse error:')


def test_runtime_error_exits(tmp_path, capsys):
    program = write(tmp_path / 'boom.fenics', 'print("before")\nx: 1 / 0\n')
    with pytest.raises(SystemExit) as exc:
        main([str(program)])
    assert exc.value.code == 1
    captured = capsys.readouterr()
    assert captured.out.strip() == 'before'
    assert captured.err.strip() == 'Runtime error: Division by zero'


def test_missing_file(tmp_path, capsys):
    missing = tmp_path / 'nowhere.fenics'
    with pytest.raises(SystemExit) as exc:
        main([str(missing)])
    assert exc.value.code == 1
    assert capsys.readouterr().err.strip() == f'Error: file {missing} not found'


def test_missing_program_argument():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_emit_and_run_ast(tmp_path, capsys):
    program = write(tmp_path / 'sum.fenics', """
        total: 0
        for n in [1, 2, 3]:
            total += n
        print("total #{total}")
    """)
    main(['--emit-ast', str(program)])
    out_path = tmp_path / 'sum.fenics.ast.json'
    assert capsys.readouterr().out.strip() == str(out_path)
    data = json.loads(out_path.read_text(encoding='utf-8'))
    assert data['type'] == 'Program'

    main(['--ast', str(out_path)])
    assert capsys.readouterr().out.strip() == 'total 6'


def test_invalid_ast_file(tmp_path, capsys):
    bogus = tmp_path / 'bogus.ast.json'
    bogus.write_text(json.dumps({'type': 'Nonsense'}), encoding='utf-8')
    with pytest.raises(SystemExit) as exc:
        main(['--ast', str(bogus)])
    assert exc.value.code == 1
    assert 'Unknown AST node type: Nonsense' in capsys.readouterr().err


def test_verbose_writes_debug_file(tmp_path, capsys):
    program = write(tmp_path / 'calls.fenics', """
        fn add(a, b): return a + b
        print(add(1, 2))
    """)
    debug_file = tmp_path / 'trace.txt'
    main(['-vv', '--debug-file', str(debug_file), str(program)])
    assert capsys.readouterr().out.strip() == '3'
    trace = debug_file.read_text(encoding='utf-8').splitlines()
    assert 'define function add(a, b)' in trace
    assert 'call add(1, 2)' in trace


def test_ast_json_roundtrip():
    program = parse_program(textwrap.dedent(PROGRAM))
    obj = ast_to_obj(program)
    restored = ast_from_obj(json.loads(json.dumps(obj)))
    assert restored == program
