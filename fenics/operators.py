"""Operator semantics for Fenics values.

Arithmetic keeps integers integral where it can and promotes to float when
either operand is a float. Power always yields a float. Equality is only
defined between scalars; arrays and objects never compare equal.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict

from .errors import FenicsError
from .types import INT_MAX, INT_MIN, NullVal, is_int, is_number, is_truthy, type_name


def _check_int(value: int) -> int:
    if value < INT_MIN or value > INT_MAX:
        raise FenicsError('Integer overflow', 'OverflowError')
    return value


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _float_div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        negative = (a < 0) != (math.copysign(1.0, b) < 0)
        return -math.inf if negative else math.inf
    return a / b


def _float_pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except ValueError:
        if a == 0.0:
            return math.inf
        # negative base with a fractional exponent
        return math.nan
    except OverflowError:
        if a < 0 and b.is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf


def _arith(name: str, int_op: Callable[[int, int], int], float_op: Callable[[float, float], float]):
    def apply(a: Any, b: Any) -> Any:
        if is_int(a) and is_int(b):
            return _check_int(int_op(a, b))
        if is_number(a) and is_number(b):
            return float_op(float(a), float(b))
        raise FenicsError(f'Invalid types for {name}: {type_name(a)} and {type_name(b)}', 'TypeError')
    return apply


_subtract = _arith('subtraction', lambda a, b: a - b, lambda a, b: a - b)
_multiply = _arith('multiplication', lambda a, b: a * b, lambda a, b: a * b)


def _add(a: Any, b: Any) -> Any:
    if isinstance(a, str) and isinstance(b, str):
        return a + b
    if is_int(a) and is_int(b):
        return _check_int(a + b)
    if is_number(a) and is_number(b):
        return float(a) + float(b)
    raise FenicsError(f'Invalid types for addition: {type_name(a)} and {type_name(b)}', 'TypeError')


def _divide(a: Any, b: Any) -> Any:
    if is_int(a) and is_int(b):
        if b == 0:
            raise FenicsError('Division by zero', 'ZeroDivisionError')
        return _check_int(_trunc_div(a, b))
    if is_number(a) and is_number(b):
        return _float_div(float(a), float(b))
    raise FenicsError(f'Invalid types for division: {type_name(a)} and {type_name(b)}', 'TypeError')


def _modulo(a: Any, b: Any) -> Any:
    if is_int(a) and is_int(b):
        if b == 0:
            raise FenicsError('Division by zero', 'ZeroDivisionError')
        return a - b * _trunc_div(a, b)
    raise FenicsError('Modulo only supports integers', 'TypeError')


def _power(a: Any, b: Any) -> float:
    if is_number(a) and is_number(b):
        return _float_pow(float(a), float(b))
    raise FenicsError(f'Invalid types for power: {type_name(a)} and {type_name(b)}', 'TypeError')


def _comparison(compare: Callable[[float, float], bool]):
    def apply(a: Any, b: Any) -> bool:
        if is_int(a) and is_int(b):
            return compare(a, b)
        if is_number(a) and is_number(b):
            return compare(float(a), float(b))
        raise FenicsError(f'Invalid types for comparison: {type_name(a)} and {type_name(b)}', 'TypeError')
    return apply


def values_equal(a: Any, b: Any) -> bool:
    """Equality used by ==, !=, is, is not and array `has`.

    Only scalar pairs of matching kind can be equal; numbers compare across
    int/float. Arrays, objects, bridges and functions are never equal to
    anything.
    """
    if is_number(a) and is_number(b):
        if is_int(a) and is_int(b):
            return a == b
        return float(a) == float(b)
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, bool) and isinstance(b, bool):
        return a == b
    if isinstance(a, NullVal) and isinstance(b, NullVal):
        return True
    return False


BINARY_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    '+': _add,
    '-': _subtract,
    '*': _multiply,
    '/': _divide,
    '%': _modulo,
    '^': _power,
    '<': _comparison(lambda a, b: a < b),
    '>': _comparison(lambda a, b: a > b),
    '<=': _comparison(lambda a, b: a <= b),
    '>=': _comparison(lambda a, b: a >= b),
    '==': values_equal,
    '!=': lambda a, b: not values_equal(a, b),
    'is': values_equal,
    'is not': lambda a, b: not values_equal(a, b),
    'and': lambda a, b: is_truthy(a) and is_truthy(b),
    'or': lambda a, b: is_truthy(a) or is_truthy(b),
}

# Compound assignment operator -> arithmetic operator
COMPOUND_OPS: Dict[str, str] = {
    '+=': '+',
    '-=': '-',
    '*=': '*',
    '/=': '/',
    '%=': '%',
}


def apply_binary_op(op: str, a: Any, b: Any) -> Any:
    fn = BINARY_OPS.get(op)
    if fn is None:
        raise FenicsError(f'Invalid binary operator {op}', 'TypeError')
    return fn(a, b)


def apply_unary_op(op: str, operand: Any) -> Any:
    if op == 'not':
        return not is_truthy(operand)
    if op == '-':
        if is_int(operand):
            return _check_int(-operand)
        if isinstance(operand, float):
            return -operand
    raise FenicsError(f'Unary operation not supported: {op}{type_name(operand)}', 'TypeError')
