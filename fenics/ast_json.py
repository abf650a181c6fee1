"""JSON serialization/deserialization for Fenics AST.

This module converts between Fenics AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Every node becomes a dict
tagged with its class name under "type" and one key per dataclass field.
`TypeSpec` annotations and the null literal use "__type__" tags.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict

from .ast import (
    Program,
    VarDecl,
    Param,
    FuncDecl,
    ReturnStmt,
    IfStmt,
    ForStmt,
    WhileStmt,
    LoopStmt,
    TryStmt,
    BlockStmt,
    LibExport,
    ImportStmt,
    ExprStmt,
    Literal,
    ArrayLit,
    ObjectLit,
    Ident,
    EphemeralVar,
    Call,
    MethodCall,
    Member,
    Index,
    BinaryOp,
    UnaryOp,
    Assign,
    Ternary,
    Interpolation,
)
from .types import NULL, NullVal, TypeSpec

NODE_TYPES = {cls.__name__: cls for cls in (
    Program, VarDecl, Param, FuncDecl, ReturnStmt, IfStmt, ForStmt, WhileStmt,
    LoopStmt, TryStmt, BlockStmt, LibExport, ImportStmt, ExprStmt, Literal,
    ArrayLit, ObjectLit, Ident, EphemeralVar, Call, MethodCall, Member, Index,
    BinaryOp, UnaryOp, Assign, Ternary, Interpolation,
)}

# Fields holding lists of pairs; JSON has no tuples so they are restored here.
PAIR_FIELDS = {('IfStmt', 'else_ifs'), ('ObjectLit', 'entries')}


def typespec_to_obj(t: TypeSpec) -> Dict[str, Any]:
    return {"kind": t.kind, "args": [typespec_to_obj(a) for a in t.args]}


def typespec_from_obj(o: Dict[str, Any]) -> TypeSpec:
    return TypeSpec(o["kind"], tuple(typespec_from_obj(x) for x in o.get("args", [])))


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None:
        return None
    if isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, NullVal):
        return {"__type__": "Null"}
    if isinstance(node, TypeSpec):
        return {"__type__": "TypeSpec", "value": typespec_to_obj(node)}
    if isinstance(node, (list, tuple)):
        return [ast_to_obj(item) for item in node]

    name = type(node).__name__
    if is_dataclass(node) and name in NODE_TYPES:
        obj: Dict[str, Any] = {"type": name}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise ValueError(f"Cannot serialize {node!r}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(item) for item in obj]
    if not isinstance(obj, dict):
        raise ValueError(f"Invalid AST object: {obj!r}")

    tag = obj.get("__type__")
    if tag == "Null":
        return NULL
    if tag == "TypeSpec":
        return typespec_from_obj(obj["value"])

    t = obj.get("type")
    cls = NODE_TYPES.get(t)
    if cls is None:
        raise ValueError(f"Unknown AST node type: {t}")
    kwargs = {}
    for f in fields(cls):
        if f.name not in obj:
            continue
        value = ast_from_obj(obj[f.name])
        if (t, f.name) in PAIR_FIELDS:
            value = [tuple(pair) for pair in value]
        kwargs[f.name] = value
    return cls(**kwargs)
