from __future__ import annotations

from mlc.ast_nodes import (
    App,
    ArrowType,
    Assign,
    BinOp,
    BinaryOp,
    BoolLit,
    BoolType,
    Case,
    Deref,
    Expr,
    Fst,
    If,
    Inl,
    Inr,
    IntLit,
    IntType,
    Lambda,
    Let,
    LetFun,
    LetRecFun,
    Pair,
    ProductType,
    Ref,
    RefType,
    Seq,
    Snd,
    TypeExpr,
    UnaryOp,
    UnionType,
    Unit,
    UnitType,
    UnOp,
    Var,
    What,
    While,
)


# Binary operators print in prefix order (`+ a b`).
# TODO: confirm the intended symbols for `or`, `eqb` and `eqi` with the
# language owner; `or` currently prints like `add` and the two equality
# spellings are crossed.
BINOP_SYMBOLS: dict[BinOp, str] = {
    BinOp.ADD: "+",
    BinOp.MUL: "*",
    BinOp.DIV: "/",
    BinOp.SUB: "-",
    BinOp.LT: "<",
    BinOp.AND: "&&",
    BinOp.OR: "+",
    BinOp.EQ: "=",
    BinOp.EQB: "eqi",
    BinOp.EQI: "eqb",
}

UNOP_SYMBOLS: dict[UnOp, str] = {
    UnOp.NEG: "-",
    UnOp.NOT: "~",
}

_ATOMIC_EXPR_TYPES = (Unit, What, Var, IntLit, Lambda)


def format_type(type_expr: TypeExpr) -> str:
    if isinstance(type_expr, UnitType):
        return "unit"
    if isinstance(type_expr, BoolType):
        return "bool"
    if isinstance(type_expr, IntType):
        return "int"
    if isinstance(type_expr, RefType):
        return f"{format_type(type_expr.inner)} ref"
    if isinstance(type_expr, ArrowType):
        param = format_type(type_expr.param)
        if isinstance(type_expr.param, ArrowType):
            param = f"({param})"
        return f"{param} -> {format_type(type_expr.result)}"
    if isinstance(type_expr, ProductType):
        return f"{format_type(type_expr.left)} * {format_type(type_expr.right)}"
    if isinstance(type_expr, UnionType):
        return f"{format_type(type_expr.left)} | {format_type(type_expr.right)}"
    raise TypeError(f"Unsupported type expression: {type(type_expr).__name__}")


def _format_sub(expr: Expr) -> str:
    text = format_expr(expr)
    if isinstance(expr, _ATOMIC_EXPR_TYPES):
        return text
    return f"({text})"


def _format_lambda_case(tag: str, branch: Lambda) -> str:
    return f"{tag}({branch.param}: {format_type(branch.param_type)}) -> {_format_sub(branch.body)}"


def format_expr(expr: Expr) -> str:
    if isinstance(expr, Unit):
        return "()"
    if isinstance(expr, What):
        return "?"
    if isinstance(expr, Var):
        return expr.name
    if isinstance(expr, IntLit):
        return str(expr.value)
    if isinstance(expr, BoolLit):
        return "true" if expr.value else "false"
    if isinstance(expr, UnaryOp):
        return f"{UNOP_SYMBOLS[expr.op]}{_format_sub(expr.operand)}"
    if isinstance(expr, BinaryOp):
        return f"{BINOP_SYMBOLS[expr.op]} {_format_sub(expr.left)} {_format_sub(expr.right)}"
    if isinstance(expr, If):
        return (
            f"if {_format_sub(expr.condition)} then {_format_sub(expr.then_branch)}"
            f" else {_format_sub(expr.else_branch)}"
        )
    if isinstance(expr, Pair):
        return f"({_format_sub(expr.left)}, {_format_sub(expr.right)})"
    if isinstance(expr, Fst):
        return f"fst {_format_sub(expr.operand)}"
    if isinstance(expr, Snd):
        return f"snd {_format_sub(expr.operand)}"
    if isinstance(expr, Inl):
        return f"inl {_format_sub(expr.operand)}: {format_type(expr.type_expr)}"
    if isinstance(expr, Inr):
        return f"inr {_format_sub(expr.operand)}: {format_type(expr.type_expr)}"
    if isinstance(expr, Case):
        return (
            f"case {_format_sub(expr.scrutinee)} {_format_lambda_case('inl', expr.left)}"
            f" | {_format_lambda_case('inr', expr.right)}"
        )
    if isinstance(expr, Lambda):
        return f"fun {expr.param}: {format_type(expr.param_type)} -> {_format_sub(expr.body)}"
    if isinstance(expr, While):
        return f"while {_format_sub(expr.condition)} do {_format_sub(expr.body)} end"
    if isinstance(expr, Seq):
        return "; ".join(_format_sub(item) for item in expr.items)
    if isinstance(expr, Ref):
        return f"ref {_format_sub(expr.operand)}"
    if isinstance(expr, Deref):
        return f"!{_format_sub(expr.operand)}"
    if isinstance(expr, Assign):
        return f"{_format_sub(expr.target)} := {_format_sub(expr.value)}"
    if isinstance(expr, App):
        return f"{_format_sub(expr.function)} {_format_sub(expr.argument)}"
    if isinstance(expr, Let):
        return (
            f"let {expr.name}: {format_type(expr.type_expr)} = {_format_sub(expr.value)}"
            f" in {_format_sub(expr.body)} end"
        )
    if isinstance(expr, (LetFun, LetRecFun)):
        fn = expr.function
        return (
            f"let {expr.name} ({fn.param}: {format_type(fn.param_type)}): {format_type(expr.result_type)}"
            f" = {_format_sub(fn.body)} in {_format_sub(expr.body)} end"
        )
    raise TypeError(f"Unsupported expression: {type(expr).__name__}")
