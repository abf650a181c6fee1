import pytest

from fenics.environment import Environment
from fenics.errors import FenicsError


def test_declare_without_frame_goes_global():
    env = Environment()
    env.declare('x', 1)
    assert env.globals['x'] == 1


def test_declare_in_frame_and_global_flag():
    env = Environment()
    env.push_frame()
    env.declare('local', 1)
    env.declare('shared', 2, is_global=True)
    assert env.frames[-1] == {'local': 1}
    assert env.globals['shared'] == 2
    env.pop_frame()
    with pytest.raises(FenicsError, match="Variable 'local' not found"):
        env.get('local')


def test_lookup_prefers_innermost_frame():
    env = Environment()
    env.define_global('x', 'global')
    env.push_frame()
    env.bind_local('x', 'outer')
    env.push_frame()
    assert env.get('x') == 'outer'
    env.bind_local('x', 'inner')
    assert env.get('x') == 'inner'


def test_set_existing_writes_nearest_binding():
    env = Environment()
    env.define_global('x', 1)
    env.push_frame()
    env.bind_local('x', 2)
    env.set_existing('x', 3)
    assert env.frames[-1]['x'] == 3
    assert env.globals['x'] == 1


def test_set_existing_never_creates():
    env = Environment()
    with pytest.raises(FenicsError) as exc:
        env.set_existing('nope', 1)
    assert exc.value.message == "Variable 'nope' not found"
    assert 'nope' not in env.globals


def test_frame_context_pops_on_error():
    env = Environment()
    with pytest.raises(RuntimeError):
        with env.frame():
            env.bind_local('x', 1)
            raise RuntimeError('boom')
    assert env.frames == []


def test_ephemerals_are_separate():
    env = Environment()
    env.push_frame()
    env.set_ephemeral('tmp', 5)
    env.pop_frame()
    assert env.get_ephemeral('tmp') == 5
    with pytest.raises(FenicsError, match="Variable 'tmp' not found"):
        env.get('tmp')
    with pytest.raises(FenicsError, match="Ephemeral variable 'other' not found"):
        env.get_ephemeral('other')
