import pytest
import requests

from fenics.bridges import FsBridge, HttpBridge, default_bridges, json_to_value
from fenics.errors import FenicsError
from fenics.types import NULL, ArrayVal, ObjectVal, to_string
from conftest import run_source


class FakeResponse:
    def __init__(self, text='', data=None, error=None):
        self.text = text
        self.data = data
        self.error = error

    def json(self):
        if self.error is not None:
            raise self.error
        return self.data


def test_default_bridges_are_fresh():
    first = default_bridges()
    second = default_bridges()
    assert set(first) == {'fs', 'http'}
    assert first['fs'] is not second['fs']


def test_fs_roundtrip(tmp_path, capsys):
    target = tmp_path / 'note.txt'
    run_source(f"""
        path: "{target}"
        print(fs.exists(path))
        print(fs.write(path, "hello"))
        print(fs.exists(path))
        print(fs.read(path))
    """)
    assert capsys.readouterr().out.strip().splitlines() == ['false', 'true', 'true', 'hello']
    assert target.read_text(encoding='utf-8') == 'hello'


def test_fs_errors(tmp_path):
    fs = FsBridge()
    with pytest.raises(FenicsError) as exc:
        fs.call('read', [str(tmp_path / 'missing.txt')])
    assert exc.value.message.startswith('fs.read error:')
    with pytest.raises(FenicsError) as exc:
        fs.call('write', [str(tmp_path / 'no' / 'such' / 'dir.txt'), 'x'])
    assert exc.value.message.startswith('fs.write error:')


@pytest.mark.parametrize('method, args, message', [
    ('read', [], 'fs.read(path) takes exactly 1 argument'),
    ('write', ['a'], 'fs.write(path, content) takes exactly 2 arguments'),
    ('delete', ['a'], "Unknown fs method 'delete'. Supported: read, exists, write"),
    ('exists', [1], 'Argument 1 must be a string, got Int'),
    ('write', ['a', 2], 'Argument 2 must be a string, got Int'),
])
def test_fs_argument_checks(method, args, message):
    with pytest.raises(FenicsError) as exc:
        FsBridge().call(method, args)
    assert exc.value.message == message


def test_http_get(monkeypatch, capsys):
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        return FakeResponse(text='<html>ok</html>')

    monkeypatch.setattr(requests, 'get', fake_get)
    run_source('print(http.get("http://example.test/page"))\n')
    assert capsys.readouterr().out.strip() == '<html>ok</html>'
    assert calls == ['http://example.test/page']


def test_http_get_json_converts_values(monkeypatch, capsys):
    payload = {'a': 1, 'b': 2.5, 'c': [True, None], 'd': {'e': 'x'}}
    monkeypatch.setattr(requests, 'get', lambda url, timeout=None: FakeResponse(data=payload))
    run_source("""
        data: http.get_json("http://example.test/api")
        print(data)
        print(data.a + 1)
    """)
    assert capsys.readouterr().out.strip().splitlines() == ['{a: 1, b: 2.5, c: [true, null], d: {e: x}}', '2']


def test_json_to_value():
    assert json_to_value(3) == 3
    assert isinstance(json_to_value(1.0), float)
    assert json_to_value(2 ** 70) == float(2 ** 70)
    assert json_to_value(None) is NULL
    assert json_to_value([1, 'a']) == ArrayVal((1, 'a'))
    assert to_string(json_to_value({'k': [1]})) == '{k: [1]}'
    assert isinstance(json_to_value({}), ObjectVal)


def test_http_errors(monkeypatch):
    def refuse(url, timeout=None):
        raise requests.ConnectionError('connection refused')

    monkeypatch.setattr(requests, 'get', refuse)
    http = HttpBridge()
    with pytest.raises(FenicsError, match='http.get error: connection refused'):
        http.call('get', ['http://example.test'])
    with pytest.raises(FenicsError, match='http.get_json error: connection refused'):
        http.call('get_json', ['http://example.test'])

    monkeypatch.setattr(requests, 'get',
                        lambda url, timeout=None: FakeResponse(error=ValueError('Expecting value')))
    with pytest.raises(FenicsError) as exc:
        http.call('get_json', ['http://example.test'])
    assert exc.value.message == 'http.get_json parse error: Expecting value'


def test_http_post(monkeypatch):
    sent = {}

    def fake_post(url, data=None, timeout=None):
        sent['url'] = url
        sent['data'] = data
        return FakeResponse(text='created')

    monkeypatch.setattr(requests, 'post', fake_post)
    assert HttpBridge().call('post', ['http://example.test/items', '{"x": 1}']) == 'created'
    assert sent == {'url': 'http://example.test/items', 'data': b'{"x": 1}'}


def test_bridge_errors_are_catchable(capsys):
    run_source("""
        try:
            fs.read("/definitely/not/here.txt")
        catch err:
            print("failed")
        try:
            http.fetch("x")
        catch err:
            print(err)
    """)
    assert capsys.readouterr().out.strip().splitlines() == [
        'failed',
        "Unknown http method 'fetch'. Supported: get, get_json, post",
    ]


def test_bridge_value_renders(capsys):
    run_source('print(fs)\n')
    assert capsys.readouterr().out.strip() == '<bridge:fs>'
