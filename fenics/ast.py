"""Abstract Syntax Tree (AST) definitions for the Fenics language.

The AST classes defined in this module represent the syntactic structure
of parsed Fenics programs. The parser produces them and the interpreter
consumes them; the interpreter assumes trees are well formed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from .types import TypeSpec


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Program(Node):
    body: List[Node]


# Statements

@dataclass
class VarDecl(Node):
    name: str
    value: Node
    is_const: bool = False
    is_global: bool = False
    type_spec: Optional[TypeSpec] = None


@dataclass
class Param:
    name: str
    type_spec: Optional[TypeSpec] = None


@dataclass
class FuncDecl(Node):
    name: str
    params: List[Param]
    body: List[Node]
    return_type: Optional[TypeSpec] = None


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class IfStmt(Node):
    condition: Node
    then_body: List[Node]
    else_ifs: List[Tuple[Node, List[Node]]] = field(default_factory=list)
    else_body: Optional[List[Node]] = None


@dataclass
class ForStmt(Node):
    key_var: Optional[str]
    value_var: str
    iterable: Node
    body: List[Node]


@dataclass
class WhileStmt(Node):
    condition: Node
    body: List[Node]


@dataclass
class LoopStmt(Node):
    condition: Node
    body: List[Node]


@dataclass
class TryStmt(Node):
    try_body: List[Node]
    err_name: str
    catch_body: List[Node]


@dataclass
class BlockStmt(Node):
    expr: Node


@dataclass
class LibExport(Node):
    name: str
    exports: List[str]


@dataclass
class ImportStmt(Node):
    path: str
    alias: Optional[str] = None


@dataclass
class ExprStmt(Node):
    expr: Node


# Expressions

@dataclass
class Literal(Node):
    value: Any  # int, float, str, bool or NULL


@dataclass
class ArrayLit(Node):
    elements: List[Node]


@dataclass
class ObjectLit(Node):
    entries: List[Tuple[str, Node]]


@dataclass
class Ident(Node):
    name: str


@dataclass
class EphemeralVar(Node):
    name: str


@dataclass
class Call(Node):
    name: str
    args: List[Node]


@dataclass
class MethodCall(Node):
    target: Node
    method: str
    args: List[Node]


@dataclass
class Member(Node):
    target: Node
    name: str


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str  # 'not', '-', '++', '--'
    operand: Node


@dataclass
class Assign(Node):
    target: Node  # Ident, Index, Member or EphemeralVar
    op: str  # '=', '+=', '-=', '*=', '/=', '%='
    value: Node


@dataclass
class Ternary(Node):
    condition: Node
    then_expr: Node
    else_expr: Node
    form: str = '?'  # '?' for `c ? a : b`, 'then' for `if c then a otherwise b`


@dataclass
class Interpolation(Node):
    parts: List[Union[str, Node]]
