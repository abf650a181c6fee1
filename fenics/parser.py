"""Parser for the Fenics language.

This module implements a two-stage parsing pipeline:

1. **Preprocessing**: line endings are normalised and a final newline is
   guaranteed so that every statement is terminated and the indenter can
   close all open blocks.

2. **Parsing**: the preprocessed source is fed into a Lark LALR parser
   configured with the Fenics grammar. Blocks are delimited by indentation;
   `FenicsIndenter` turns leading whitespace into INDENT/DEDENT tokens. The
   resulting parse tree is transformed into an abstract syntax tree (AST)
   using `ASTTransformer`.

String literals containing `#{...}` are split into text segments and
embedded expressions; each embedded expression is parsed with the same
grammar starting from the `expression` rule.

The `parse_program` function is the public entry point and returns a
`Program` AST node representing the entire source file.
"""

from __future__ import annotations

from typing import Any, List, Tuple, Union

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError, VisitError
from lark.indenter import Indenter

from .ast import (
    Program, VarDecl, Param, FuncDecl, ReturnStmt, IfStmt, ForStmt,
    WhileStmt, LoopStmt, TryStmt, BlockStmt, LibExport, ImportStmt, ExprStmt,
    Literal, ArrayLit, ObjectLit, Ident, EphemeralVar, Call, MethodCall,
    Member, Index, BinaryOp, UnaryOp, Assign, Ternary, Interpolation, Node,
)
from .errors import FenicsSyntaxError
from .types import NULL, TypeSpec, INT_MAX


def preprocess(source: str) -> str:
    """Normalise line endings and make sure the source ends with a newline."""
    text = source.replace('\r\n', '\n').replace('\r', '\n')
    if not text.endswith('\n'):
        text += '\n'
    return text


FENICS_GRAMMAR = r"""
    program: (_NL | statement)*

    // Statements
    ?statement: simple_stmt _NL
              | compound_stmt

    ?simple_stmt: assign_stmt
                | incr_stmt
                | return_stmt
                | block_stmt
                | import_stmt
                | expr_stmt

    ?compound_stmt: var_decl
                  | fn_def
                  | if_stmt
                  | for_stmt
                  | while_stmt
                  | loop_stmt
                  | try_stmt
                  | lib_export

    assign_stmt: postfix assign_op expression
    !assign_op: "=" | "+=" | "-=" | "*=" | "/=" | "%="
    incr_stmt: postfix INCR
    return_stmt: "return" [expression]
    block_stmt: "block" expression
    import_stmt: "import" (NAME | STRING) ["as" NAME]
    expr_stmt: expression

    var_decl: [GLOBAL] [type_spec] [CONST] NAME ":" decl_value
    ?decl_value: expression _NL
               | _NL _INDENT pair_line+ _DEDENT       -> object_block
    pair_line: "-" pair_key ":" decl_value
    ?pair_key: NAME | STRING

    fn_def: "fn" NAME "(" [params] ")" ["->" type_spec] ":" suite
    params: param ("," param)*
    param: [type_spec] NAME

    suite: _NL _INDENT statement+ _DEDENT
         | simple_stmt _NL

    if_stmt: "if" expression ":" suite else_if* [else_clause]
    else_if: "else" "if" expression ":" suite
    else_clause: "else" ":" suite
    for_stmt: "for" NAME ["," NAME] "in" expression ":" suite
    while_stmt: "while" expression ":" suite
    loop_stmt: "loop" expression ":" suite
    try_stmt: "try" ":" suite "catch" NAME ":" suite
    lib_export: "lib" NAME ":" _NL _INDENT lib_item+ _DEDENT
    lib_item: "-" NAME _NL

    // Type annotations
    ?type_spec: basic_type
              | "List" "(" basic_type ")"                 -> list_type
              | "Pairs" "(" basic_type "," basic_type ")" -> pairs_type
    !basic_type: "Int" | "Float" | "String" | "Boolean" | "Bool"
               | "Array" | "Object" | "Regex"

    // Expressions with precedence
    ?expression: ternary
    ?ternary: "if" expression "then" expression "otherwise" expression -> ternary_then
            | logic_or "?" expression ":" expression                   -> ternary_q
            | logic_or
    ?logic_or: logic_and (or_op logic_and)*
    ?logic_and: not_expr (and_op not_expr)*
    ?not_expr: not_op not_expr -> unary
             | equality
    ?equality: comparison (eq_op comparison)*
    ?comparison: sum (cmp_op sum)*
    ?sum: product (add_op product)*
    ?product: power (mul_op power)*
    ?power: neg pow_op power
          | neg
    ?neg: "-" neg -> negate
        | postfix

    !or_op: "or" | "||"
    !and_op: "and" | "&&"
    !not_op: "not" | "!"
    !eq_op: "==" | "===" | "!=" | "!==" | "is" | IS_NOT
    !cmp_op: "<" | ">" | "<=" | ">="
    !add_op: "+" | "-"
    !mul_op: "*" | "/" | "%"
    !pow_op: "^" | "**"

    ?postfix: atom
            | postfix "." NAME "(" [args] ")" -> method_call
            | postfix "." NAME                -> member
            | postfix "[" expression "]"      -> index
            | postfix EPHEMERAL               -> ephemeral_assign

    ?atom: INT                      -> int_lit
         | FLOAT                    -> float_lit
         | STRING                   -> string
         | "true"                   -> true
         | "false"                  -> false
         | "null"                   -> null
         | "undefined"              -> null
         | "nil"                    -> null
         | NAME                     -> ident
         | EPHEMERAL                -> ephemeral_var
         | NAME "(" [args] ")"      -> call
         | "[" [args] "]"           -> array
         | "{" [pairs] "}"          -> object
         | "(" expression ")"

    args: expression ("," expression)*
    pairs: pair ("," pair)*
    pair: pair_key ":" expression

    // Tokens
    GLOBAL: "global"
    CONST: "const"
    INCR: "++" | "--"
    IS_NOT.2: /is[ \t]+not\b/
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    EPHEMERAL: /#[A-Za-z0-9_]+/
    FLOAT.2: /\d+\.\d+/
    INT: /\d+/
    STRING: /"(?:[^"\\\n]|\\.)*"/ | /'(?:[^'\\\n]|\\.)*'/

    COMMENT: /\/\/[^\n]*/
    _NL: ( /\n[\t ]*/ | COMMENT )+

    %ignore /[\t \f]+/
    %ignore COMMENT
    %declare _INDENT _DEDENT
"""


class FenicsIndenter(Indenter):
    NL_type = '_NL'
    OPEN_PAREN_types = ['LPAR', 'LSQB', 'LBRACE']
    CLOSE_PAREN_types = ['RPAR', 'RSQB', 'RBRACE']
    INDENT_type = '_INDENT'
    DEDENT_type = '_DEDENT'
    tab_len = 8


FENICS_PARSER = Lark(
    FENICS_GRAMMAR,
    parser='lalr',
    lexer='contextual',
    postlex=FenicsIndenter(),
    start=['program', 'expression'],
    propagate_positions=True,
    maybe_placeholders=False,
)


_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '0': '\0',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '#': '#',
}


def unescape(raw: str) -> str:
    """Resolve backslash escapes; unknown escapes are kept verbatim."""
    out: List[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == '\\' and i + 1 < len(raw):
            nxt = raw[i + 1]
            out.append(_ESCAPES.get(nxt, '\\' + nxt))
            i += 2
            continue
        out.append(c)
        i += 1
    return ''.join(out)


def split_interpolation(content: str) -> List[Tuple[str, str]]:
    """Split string content into ('text', raw) and ('expr', source) parts.

    An embedded expression starts at `#{` and ends at the matching `}`;
    braces inside it are balanced.
    """
    parts: List[Tuple[str, str]] = []
    text: List[str] = []
    i = 0
    length = len(content)
    while i < length:
        c = content[i]
        if c == '\\' and i + 1 < length:
            text.append(content[i:i + 2])
            i += 2
            continue
        if c == '#' and i + 1 < length and content[i + 1] == '{':
            if text:
                parts.append(('text', ''.join(text)))
                text = []
            i += 2
            depth = 1
            expr: List[str] = []
            while i < length:
                ch = content[i]
                if ch == '{':
                    depth += 1
                elif ch == '}':
                    depth -= 1
                    if depth == 0:
                        break
                expr.append(ch)
                i += 1
            if depth != 0:
                raise FenicsSyntaxError(f"unterminated interpolation in string {content!r}")
            parts.append(('expr', ''.join(expr)))
            i += 1
            continue
        text.append(c)
        i += 1
    if text:
        parts.append(('text', ''.join(text)))
    return parts


def _fold_binary(items: List[Any]) -> Node:
    # items pattern: expr (op expr)*, folded left-associatively
    left = items[0]
    i = 1
    while i < len(items):
        left = BinaryOp(op=items[i], left=left, right=items[i + 1])
        i += 2
    return left


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def program(self, items):
        return Program(body=list(items))

    # Statements
    def assign_stmt(self, items):
        target, op, value = items
        return ExprStmt(Assign(target=target, op=op, value=value))

    def assign_op(self, items):
        return str(items[0])

    def incr_stmt(self, items):
        target, token = items
        return ExprStmt(UnaryOp(op=str(token), operand=target))

    def return_stmt(self, items):
        return ReturnStmt(items[0] if items else None)

    def block_stmt(self, items):
        return BlockStmt(items[0])

    def import_stmt(self, items):
        source = items[0]
        if source.type == 'STRING':
            path = unescape(source.value[1:-1])
        else:
            path = str(source)
        alias = str(items[1]) if len(items) > 1 else None
        return ImportStmt(path=path, alias=alias)

    def expr_stmt(self, items):
        return ExprStmt(items[0])

    def var_decl(self, items):
        is_global = False
        is_const = False
        type_spec = None
        name = None
        for item in items[:-1]:
            if isinstance(item, TypeSpec):
                type_spec = item
            elif item.type == 'GLOBAL':
                is_global = True
            elif item.type == 'CONST':
                is_const = True
            else:
                name = str(item)
        return VarDecl(name=name, value=items[-1], is_const=is_const,
                       is_global=is_global, type_spec=type_spec)

    def object_block(self, items):
        return ObjectLit(entries=list(items))

    def pair_line(self, items):
        return (self._key(items[0]), items[1])

    def pair(self, items):
        return (self._key(items[0]), items[1])

    def pairs(self, items):
        return list(items)

    @staticmethod
    def _key(token: Token) -> str:
        if token.type == 'STRING':
            return unescape(token.value[1:-1])
        return str(token)

    def fn_def(self, items):
        name = str(items[0])
        body = items[-1]
        params: List[Param] = []
        return_type = None
        for item in items[1:-1]:
            if isinstance(item, TypeSpec):
                return_type = item
            else:
                params = item
        return FuncDecl(name=name, params=params, body=body, return_type=return_type)

    def params(self, items):
        return list(items)

    def param(self, items):
        type_spec = items[0] if len(items) > 1 else None
        return Param(name=str(items[-1]), type_spec=type_spec)

    def suite(self, items):
        return list(items)

    def if_stmt(self, items):
        condition, then_body = items[0], items[1]
        else_ifs = []
        else_body = None
        for item in items[2:]:
            if isinstance(item, tuple):
                else_ifs.append(item)
            else:
                else_body = item
        return IfStmt(condition, then_body, else_ifs, else_body)

    def else_if(self, items):
        return (items[0], items[1])

    def else_clause(self, items):
        return items[0]

    def for_stmt(self, items):
        names = [str(t) for t in items[:-2]]
        iterable, body = items[-2], items[-1]
        if len(names) == 2:
            return ForStmt(key_var=names[0], value_var=names[1], iterable=iterable, body=body)
        return ForStmt(key_var=None, value_var=names[0], iterable=iterable, body=body)

    def while_stmt(self, items):
        return WhileStmt(items[0], items[1])

    def loop_stmt(self, items):
        return LoopStmt(items[0], items[1])

    def try_stmt(self, items):
        return TryStmt(try_body=items[0], err_name=str(items[1]), catch_body=items[2])

    def lib_export(self, items):
        return LibExport(name=str(items[0]), exports=list(items[1:]))

    def lib_item(self, items):
        return str(items[0])

    # Type annotations
    def basic_type(self, items):
        kind = str(items[0])
        if kind == 'Bool':
            kind = 'Boolean'
        return TypeSpec(kind)

    def list_type(self, items):
        return TypeSpec('List', (items[0],))

    def pairs_type(self, items):
        return TypeSpec('Pairs', (items[0], items[1]))

    # Expressions
    def ternary_then(self, items):
        return Ternary(items[0], items[1], items[2], form='then')

    def ternary_q(self, items):
        return Ternary(items[0], items[1], items[2], form='?')

    logic_or = logic_and = equality = comparison = sum = product = staticmethod(_fold_binary)

    def power(self, items):
        return BinaryOp(op=items[1], left=items[0], right=items[2])

    def unary(self, items):
        return UnaryOp(op=items[0], operand=items[1])

    def negate(self, items):
        return UnaryOp(op='-', operand=items[0])

    def or_op(self, items):
        return 'or'

    def and_op(self, items):
        return 'and'

    def not_op(self, items):
        return 'not'

    def eq_op(self, items):
        token = items[0]
        if token.type == 'IS_NOT':
            return 'is not'
        return {'===': '==', '!==': '!='}.get(str(token), str(token))

    def cmp_op(self, items):
        return str(items[0])

    def add_op(self, items):
        return str(items[0])

    def mul_op(self, items):
        return str(items[0])

    def pow_op(self, items):
        return '^'

    def method_call(self, items):
        args = items[2] if len(items) > 2 else []
        return MethodCall(target=items[0], method=str(items[1]), args=args)

    def member(self, items):
        return Member(target=items[0], name=str(items[1]))

    def index(self, items):
        return Index(target=items[0], index=items[1])

    def ephemeral_assign(self, items):
        base, token = items
        return Assign(target=EphemeralVar(token.value[1:]), op='=', value=base)

    def int_lit(self, items):
        value = int(items[0])
        if value > INT_MAX:
            raise FenicsSyntaxError(f"integer literal {value} out of range")
        return Literal(value)

    def float_lit(self, items):
        return Literal(float(items[0]))

    def string(self, items):
        content = items[0].value[1:-1]
        if '#{' not in content:
            return Literal(unescape(content))
        parts: List[Union[str, Node]] = []
        for kind, raw in split_interpolation(content):
            if kind == 'text':
                parts.append(unescape(raw))
            else:
                parts.append(parse_expression(raw))
        if all(isinstance(part, str) for part in parts):
            # only escaped `\#{` sequences
            return Literal(''.join(parts))
        return Interpolation(parts)

    def true(self, items):
        return Literal(True)

    def false(self, items):
        return Literal(False)

    def null(self, items):
        return Literal(NULL)

    def ident(self, items):
        return Ident(str(items[0]))

    def ephemeral_var(self, items):
        return EphemeralVar(items[0].value[1:])

    def call(self, items):
        args = items[1] if len(items) > 1 else []
        return Call(name=str(items[0]), args=args)

    def array(self, items):
        return ArrayLit(items[0] if items else [])

    def object(self, items):
        return ObjectLit(items[0] if items else [])

    def args(self, items):
        return list(items)


def _parse(source: str, start: str) -> Any:
    try:
        tree = FENICS_PARSER.parse(source, start=start)
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, FenicsSyntaxError):
            raise e.orig_exc
        raise FenicsSyntaxError(str(e.orig_exc)) from e
    except LarkError as e:
        raise FenicsSyntaxError(str(e)) from e


def parse_expression(source: str) -> Node:
    """Parse a single expression, as embedded in `#{...}` interpolation."""
    return _parse(source.strip(), 'expression')


def parse_program(source: str) -> Program:
    """Parse Fenics source code into an AST Program.

    The source is first preprocessed to normalize line endings. Syntax
    errors are raised as `FenicsSyntaxError`.
    """
    return _parse(preprocess(source), 'program')
