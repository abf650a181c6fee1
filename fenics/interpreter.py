"""Interpreter for the Fenics language.

This module walks the syntax tree produced by `fenics.parser` and executes
it. Statements run through `Interpreter.execute`, which returns either None
or a `ReturnSignal`; expressions are computed by `Interpreter.evaluate`.
Assignment targets are resolved by `Interpreter.assign`, which writes
updated container values back into their bindings because values are
immutable snapshots.

Every runtime failure is raised as a `FenicsError` carrying the message a
script sees when it catches the error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .ast import (
    Program, VarDecl, FuncDecl, ReturnStmt, IfStmt, ForStmt, WhileStmt,
    LoopStmt, TryStmt, BlockStmt, LibExport, ImportStmt, ExprStmt, Literal,
    ArrayLit, ObjectLit, Ident, EphemeralVar, Call, MethodCall, Member, Index,
    BinaryOp, UnaryOp, Assign, Ternary, Interpolation, Node,
)
from .bridges import Bridge, default_bridges
from .builtin_function import BuiltinFunction
from .environment import Environment
from .errors import FenicsError, ReturnSignal
from .loader import load_module
from .operators import COMPOUND_OPS, apply_binary_op, apply_unary_op, values_equal
from .parser import parse_program
from .types import (
    NULL, ArrayVal, ObjectVal, BridgeRef, FunctionVal,
    byte_length, is_int, is_number, is_truthy, to_string, type_name,
)

SORT_ORDERS = ('0-9', '9-0', 'a-z', 'z-a')


class Interpreter:
    """Core interpreter that executes Fenics AST."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 bridges: Optional[Dict[str, Bridge]] = None, search_dir: Optional[str] = None,
                 debug_stream: Any = None):
        self.env = Environment()
        self.debug_level = debug_level
        self.search_dir = search_dir
        self.debug_file = debug_file
        # an owned debug file is opened on first use and closed when run() ends
        self.debug_fp = debug_stream
        self.owns_debug_fp = False
        self.bridges: Dict[str, Bridge] = default_bridges()
        if bridges:
            self.bridges.update(bridges)
        for name in self.bridges:
            self.env.define_global(name, BridgeRef(name))
        self.builtins: Dict[str, BuiltinFunction] = {
            'print': BuiltinFunction('print', None, self.builtin_print),
            'len': BuiltinFunction('len', 1, self.builtin_len),
        }

    def debug_stream(self) -> Any:
        if self.debug_fp is None and self.debug_level > 0 and self.debug_file:
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
            self.owns_debug_fp = True
        return self.debug_fp

    def debug(self, msg: str):
        if self.debug_level > 0:
            fp = self.debug_stream()
            if fp:
                fp.write(msg + '\n')
                fp.flush()
            else:
                print(msg)

    def spawn(self) -> 'Interpreter':
        """Create an isolated interpreter that shares this one's configuration.

        Used for module imports: the child has its own globals, frames and
        ephemerals and a fresh set of default bridges, but writes debug output
        to the same place.
        """
        return Interpreter(debug_level=self.debug_level, debug_file=None,
                           search_dir=self.search_dir, debug_stream=self.debug_stream())

    # Built-in functions. Arguments arrive as a lazy iterable so that each
    # one is evaluated right before it is used.
    def builtin_print(self, args: Iterable[Any]) -> Any:
        for value in args:
            print(to_string(value))
        return NULL

    def builtin_len(self, args: Iterable[Any]) -> Any:
        value, = args
        if isinstance(value, str):
            return byte_length(value)
        if isinstance(value, ArrayVal):
            return len(value)
        raise FenicsError('len() requires a string or array', 'TypeError')

    # Public API
    def run(self, program: Program) -> Any:
        try:
            result = self.execute_block(program.body)
        finally:
            if self.owns_debug_fp and self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None
                self.owns_debug_fp = False
        if isinstance(result, ReturnSignal):
            return result.value
        return None

    def execute_block(self, statements: List[Node]) -> Optional[ReturnSignal]:
        for stmt in statements:
            result = self.execute(stmt)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Node) -> Optional[ReturnSignal]:
        if isinstance(node, VarDecl):
            value = self.evaluate(node.value)
            self.env.declare(node.name, value, node.is_global)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, FuncDecl):
            params = tuple(p.name for p in node.params)
            self.env.define_global(node.name, FunctionVal(node.name, params, tuple(node.body)))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}({', '.join(params)})")
            return None
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value) if node.value is not None else NULL
            return ReturnSignal(value)
        if isinstance(node, IfStmt):
            branches = [(node.condition, node.then_body)] + list(node.else_ifs)
            for condition, body in branches:
                truthy = is_truthy(self.evaluate(condition))
                if self.debug_level >= 3:
                    self.debug(f"if condition -> {to_string(truthy)}")
                if truthy:
                    return self.execute_block(body)
            if node.else_body is not None:
                return self.execute_block(node.else_body)
            return None
        if isinstance(node, ForStmt):
            return self.execute_for(node)
        if isinstance(node, WhileStmt):
            while True:
                cond = self.evaluate(node.condition)
                if not is_truthy(cond):
                    break
                res = self.execute_block(node.body)
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, LoopStmt):
            # only a return or an error leaves a loop statement
            while True:
                if is_truthy(self.evaluate(node.condition)):
                    res = self.execute_block(node.body)
                    if isinstance(res, ReturnSignal):
                        return res
        if isinstance(node, TryStmt):
            try:
                return self.execute_block(node.try_body)
            except FenicsError as ex:
                if self.debug_level >= 3:
                    self.debug(f"catch {node.err_name}: {ex.kind}: {ex.message}")
                with self.env.frame():
                    self.env.bind_local(node.err_name, ex.message)
                    return self.execute_block(node.catch_body)
        if isinstance(node, (BlockStmt, ExprStmt)):
            self.evaluate(node.expr)
            return None
        if isinstance(node, LibExport):
            exports: Dict[str, Any] = {}
            for fname in node.exports:
                value = self.env.globals.get(fname)
                if not isinstance(value, FunctionVal):
                    raise FenicsError(f"Export '{fname}' not found or not a function", 'NameError')
                exports[fname] = value
            self.env.define_global(node.name, ObjectVal(exports))
            if self.debug_level >= 2:
                self.debug(f"lib {node.name}: {', '.join(exports)}")
            return None
        if isinstance(node, ImportStmt):
            load_module(self, node.path, node.alias)
            return None
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_for(self, node: ForStmt) -> Optional[ReturnSignal]:
        iterable = self.evaluate(node.iterable)
        if isinstance(iterable, ArrayVal):
            pairs = list(enumerate(iterable.items))
        elif isinstance(iterable, ObjectVal):
            pairs = list(iterable.entries.items())
        else:
            raise FenicsError('For loop requires an array or object', 'TypeError')
        if self.debug_level >= 3:
            self.debug(f"for over {type_name(iterable)} with {len(pairs)} items")
        with self.env.frame():
            for key, value in pairs:
                if node.key_var is not None:
                    self.env.bind_local(node.key_var, key)
                self.env.bind_local(node.value_var, value)
                res = self.execute_block(node.body)
                if isinstance(res, ReturnSignal):
                    return res
        return None

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Ident):
            return self.env.get(node.name)
        if isinstance(node, EphemeralVar):
            return self.env.get_ephemeral(node.name)
        if isinstance(node, ArrayLit):
            return ArrayVal(tuple(self.evaluate(el) for el in node.elements))
        if isinstance(node, ObjectLit):
            entries: Dict[str, Any] = {}
            for key, val_node in node.entries:
                entries[key] = self.evaluate(val_node)
            return ObjectVal(entries)
        if isinstance(node, BinaryOp):
            # both operands are always evaluated, left first
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return apply_binary_op(node.op, left, right)
        if isinstance(node, UnaryOp):
            if node.op in ('++', '--'):
                return self.increment(node.operand, node.op)
            return apply_unary_op(node.op, self.evaluate(node.operand))
        if isinstance(node, Assign):
            value = self.evaluate(node.value)
            return self.assign(node.target, node.op, value)
        if isinstance(node, Ternary):
            if is_truthy(self.evaluate(node.condition)):
                return self.evaluate(node.then_expr)
            return self.evaluate(node.else_expr)
        if isinstance(node, Call):
            return self.call_function(node.name, node.args)
        if isinstance(node, MethodCall):
            target = self.evaluate(node.target)
            return self.call_method(target, node.method, node.args)
        if isinstance(node, Member):
            return self.get_property(self.evaluate(node.target), node.name)
        if isinstance(node, Index):
            target = self.evaluate(node.target)
            index = self.evaluate(node.index)
            return self.get_index(target, index)
        if isinstance(node, Interpolation):
            return ''.join(self.render_part(part) for part in node.parts)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def render_part(self, part: Any) -> str:
        if isinstance(part, str):
            return part
        if isinstance(part, Ident):
            try:
                return to_string(self.env.get(part.name))
            except FenicsError:
                if part.name in self.env.ephemerals:
                    return to_string(self.env.ephemerals[part.name])
                raise
        return to_string(self.evaluate(part))

    # Property and index reads
    def get_property(self, target: Any, name: str) -> Any:
        if name == 'length':
            if isinstance(target, str):
                return byte_length(target)
            if isinstance(target, ArrayVal):
                return len(target)
        if isinstance(target, ArrayVal) and name in ('first', 'last'):
            if not target.items:
                raise FenicsError('Array is empty', 'IndexError')
            return target.items[0] if name == 'first' else target.items[-1]
        if isinstance(target, ObjectVal) and name in target.entries:
            return target.entries[name]
        raise FenicsError(f"Property '{name}' not found", 'KeyError')

    def get_index(self, target: Any, index: Any) -> Any:
        if isinstance(target, ArrayVal) and is_int(index):
            if index < 0 or index >= len(target):
                raise FenicsError('Index out of bounds', 'IndexError')
            return target.items[index]
        if isinstance(target, ObjectVal) and isinstance(index, str):
            if index not in target.entries:
                raise FenicsError(f"Key '{index}' not found", 'KeyError')
            return target.entries[index]
        raise FenicsError('Invalid bracket access', 'TypeError')

    # Assignment
    def combine(self, op: str, current: Any, value: Any) -> Any:
        if op == '=':
            return value
        if op not in COMPOUND_OPS:
            raise FenicsError('Invalid assignment operator', 'TypeError')
        return apply_binary_op(COMPOUND_OPS[op], current, value)

    def assign(self, target: Node, op: str, value: Any) -> Any:
        if isinstance(target, Ident):
            current = self.env.get(target.name) if op != '=' else None
            new_value = self.combine(op, current, value)
            return self.env.set_existing(target.name, new_value)
        if isinstance(target, Index):
            index = self.evaluate(target.index)
            if not isinstance(target.target, Ident):
                raise FenicsError('Bracket access assignment only works on identifier variables', 'TypeError')
            name = target.target.name
            container = self.env.get(name)
            if isinstance(container, ArrayVal) and is_int(index):
                if index < 0 or index >= len(container):
                    raise FenicsError(f"Index {index} out of bounds", 'IndexError')
                new_value = self.combine(op, container.items[index], value)
                self.env.set_existing(name, container.with_item(index, new_value))
                return new_value
            if isinstance(container, ObjectVal) and isinstance(index, str):
                if op != '=' and index not in container.entries:
                    raise FenicsError(f"Key '{index}' not found", 'KeyError')
                new_value = self.combine(op, container.entries.get(index), value)
                self.env.set_existing(name, container.with_entry(index, new_value))
                return new_value
            raise FenicsError('Bracket access requires an array with integer index or object with string key', 'TypeError')
        if isinstance(target, Member):
            obj = self.evaluate(target.target)
            if not isinstance(obj, ObjectVal):
                raise FenicsError('Can only access properties on objects', 'TypeError')
            if target.name in obj.entries:
                new_value = self.combine(op, obj.entries[target.name], value)
            else:
                new_value = value
            # the binding keeps the old object
            return new_value
        if isinstance(target, EphemeralVar):
            return self.env.set_ephemeral(target.name, value)
        raise FenicsError('Invalid assignment target', 'TypeError')

    def increment(self, target: Node, op: str) -> Any:
        if not isinstance(target, Ident):
            raise FenicsError('Increment/decrement only works on variables', 'TypeError')
        current = self.env.get(target.name)
        if not is_number(current):
            raise FenicsError('Increment/decrement only works on numbers', 'TypeError')
        step = 1 if is_int(current) else 1.0
        new_value = apply_binary_op('+' if op == '++' else '-', current, step)
        return self.env.set_existing(target.name, new_value)

    # Calls
    def call_function(self, name: str, arg_nodes: List[Node]) -> Any:
        builtin = self.builtins.get(name)
        if builtin is not None:
            if builtin.arity is not None and len(arg_nodes) != builtin.arity:
                noun = 'argument' if builtin.arity == 1 else 'arguments'
                raise FenicsError(f"{name}() takes exactly {builtin.arity} {noun}", 'TypeError')
            return builtin.fn(self.evaluate(arg) for arg in arg_nodes)
        func = self.env.get(name)
        if not isinstance(func, FunctionVal):
            raise FenicsError(f"'{name}' is not a function", 'TypeError')
        if len(arg_nodes) != len(func.params):
            raise FenicsError(
                f"Function '{name}' expects {len(func.params)} arguments, got {len(arg_nodes)}", 'TypeError')
        return self.invoke(func, arg_nodes)

    def call_function_value(self, func: Any, arg_nodes: List[Node]) -> Any:
        if not isinstance(func, FunctionVal):
            raise FenicsError('Target is not a function', 'TypeError')
        if len(arg_nodes) != len(func.params):
            raise FenicsError(
                f"Function takes {len(func.params)} arguments, but {len(arg_nodes)} provided", 'TypeError')
        return self.invoke(func, arg_nodes)

    def invoke(self, func: FunctionVal, arg_nodes: List[Node]) -> Any:
        self.env.push_frame()
        try:
            # arguments are evaluated and bound one at a time inside the new frame
            args = []
            for param, arg in zip(func.params, arg_nodes):
                value = self.evaluate(arg)
                self.env.bind_local(param, value)
                args.append(value)
            if self.debug_level >= 1:
                self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
            res = self.execute_block(list(func.body))
        except RecursionError:
            raise FenicsError('Maximum recursion depth exceeded', 'RecursionError') from None
        finally:
            self.env.pop_frame()
        if isinstance(res, ReturnSignal):
            return res.value
        return NULL

    def call_method(self, target: Any, method: str, arg_nodes: List[Node]) -> Any:
        if isinstance(target, BridgeRef):
            args = [self.evaluate(arg) for arg in arg_nodes]
            bridge = self.bridges.get(target.name)
            if bridge is None:
                raise FenicsError(f"Bridge '{target.name}' not registered", 'NameError')
            if self.debug_level >= 1:
                self.debug(f"bridge {target.name}.{method}")
            return bridge.call(method, args)
        if isinstance(target, ArrayVal):
            if method == 'reverse':
                return ArrayVal(tuple(reversed(target.items)))
            if method == 'sort':
                order = self.single_argument(method, arg_nodes)
                if not isinstance(order, str):
                    raise FenicsError("sort() requires a string order like '0-9' or 'a-z'", 'TypeError')
                return self.sort_array(target, order)
            if method == 'has':
                needle = self.single_argument(method, arg_nodes)
                return any(values_equal(item, needle) for item in target.items)
        if isinstance(target, str) and method == 'split':
            delim = self.single_argument(method, arg_nodes)
            if not isinstance(delim, str):
                raise FenicsError('split() requires a string delimiter', 'TypeError')
            return ArrayVal(tuple(split_string(target, delim)))
        if isinstance(target, ObjectVal):
            if method == 'keys':
                return ArrayVal(tuple(target.entries))
            if method in target.entries:
                return self.call_function_value(target.entries[method], arg_nodes)
        raise FenicsError(f"Method '{method}' not found", 'AttributeError')

    def single_argument(self, method: str, arg_nodes: List[Node]) -> Any:
        if len(arg_nodes) != 1:
            raise FenicsError(f"{method}() takes exactly 1 argument", 'TypeError')
        return self.evaluate(arg_nodes[0])

    @staticmethod
    def sort_array(array: ArrayVal, order: str) -> ArrayVal:
        if order not in SORT_ORDERS:
            raise FenicsError("Unsupported sort order. Use '0-9', '9-0', 'a-z', or 'z-a'", 'ValueError')
        numeric = order in ('0-9', '9-0')
        check = is_number if numeric else (lambda v: isinstance(v, str))
        if not all(check(item) for item in array.items):
            kind = 'numeric' if numeric else 'string'
            raise FenicsError(f"sort('{order}') requires {kind} array", 'TypeError')
        return ArrayVal(tuple(sorted(array.items, reverse=order in ('9-0', 'z-a'))))


def split_string(text: str, delim: str) -> List[str]:
    # An empty delimiter matches at every character boundary, both ends included
    if delim == '':
        return [''] + list(text) + ['']
    return text.split(delim)


def run_program(source: str, debug_level: int = 0, **options: Any) -> Interpreter:
    """Convenience function to parse and run a Fenics program from a source string.

    Returns the interpreter so callers can inspect its globals.
    """
    ast_program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level, **options)
    interpreter.run(ast_program)
    return interpreter


def run_file(file_path: str, debug_level: int = 0, **options: Any) -> Interpreter:
    """Parse and run a Fenics file, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level, **options)
