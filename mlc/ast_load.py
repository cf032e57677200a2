from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import yaml

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


class AstLoadError(ValueError):
    def __init__(self, message: str, path: str):
        super().__init__(f"{path}: {message}")
        self.message = message
        self.path = path


INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


_NAMED_TYPES: dict[str, TypeExpr] = {
    "unit": UnitType(),
    "bool": BoolType(),
    "int": IntType(),
}


def _single_key(raw: dict[Any, Any], path: str) -> tuple[str, Any]:
    if len(raw) != 1:
        keys = ", ".join(sorted(str(key) for key in raw))
        raise AstLoadError(f"expected exactly one node kind, got {{{keys}}}", path)
    ((key, value),) = raw.items()
    if not isinstance(key, str):
        raise AstLoadError(f"node kind must be a string, got {key!r}", path)
    return key, value


def _require_mapping(raw: Any, path: str, keys: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise AstLoadError("expected mapping", path)
    missing = [key for key in keys if key not in raw]
    if missing:
        raise AstLoadError(f"missing required key '{missing[0]}'", path)
    unknown = sorted(str(key) for key in raw if key not in keys)
    if unknown:
        raise AstLoadError(f"unexpected key '{unknown[0]}'", path)
    return raw


def _require_name(raw: Any, path: str) -> str:
    if not isinstance(raw, str) or not raw:
        raise AstLoadError("expected identifier string", path)
    return raw


def _require_pair(raw: Any, path: str) -> tuple[Any, Any]:
    if not isinstance(raw, list) or len(raw) != 2:
        raise AstLoadError("expected a list of two elements", path)
    return raw[0], raw[1]


def load_type(raw: Any, path: str = "type") -> TypeExpr:
    if isinstance(raw, str):
        named = _NAMED_TYPES.get(raw)
        if named is None:
            raise AstLoadError(f"unknown type '{raw}'", path)
        return named

    if not isinstance(raw, dict):
        raise AstLoadError("expected type name or mapping", path)

    kind, value = _single_key(raw, path)
    kind_path = f"{path}.{kind}"
    if kind == "ref":
        return RefType(load_type(value, kind_path))
    if kind in ("arrow", "product", "union"):
        left_raw, right_raw = _require_pair(value, kind_path)
        left = load_type(left_raw, f"{kind_path}[0]")
        right = load_type(right_raw, f"{kind_path}[1]")
        if kind == "arrow":
            return ArrowType(left, right)
        if kind == "product":
            return ProductType(left, right)
        return UnionType(left, right)
    raise AstLoadError(f"unknown type kind '{kind}'", path)


def _load_lambda(raw: Any, path: str) -> Lambda:
    fields = _require_mapping(raw, path, ("param", "type", "body"))
    return Lambda(
        param=_require_name(fields["param"], f"{path}.param"),
        param_type=load_type(fields["type"], f"{path}.type"),
        body=load_expr(fields["body"], f"{path}.body"),
    )


def _load_unop(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("op", "operand"))
    try:
        op = UnOp(fields["op"])
    except ValueError:
        raise AstLoadError(f"unknown unary operator '{fields['op']}'", f"{path}.op") from None
    return UnaryOp(op, load_expr(fields["operand"], f"{path}.operand"))


def _load_binop(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("op", "left", "right"))
    try:
        op = BinOp(fields["op"])
    except ValueError:
        raise AstLoadError(f"unknown binary operator '{fields['op']}'", f"{path}.op") from None
    return BinaryOp(
        op,
        load_expr(fields["left"], f"{path}.left"),
        load_expr(fields["right"], f"{path}.right"),
    )


def _load_if(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("cond", "then", "else"))
    return If(
        load_expr(fields["cond"], f"{path}.cond"),
        load_expr(fields["then"], f"{path}.then"),
        load_expr(fields["else"], f"{path}.else"),
    )


def _load_pair(raw: Any, path: str) -> Expr:
    left_raw, right_raw = _require_pair(raw, path)
    return Pair(load_expr(left_raw, f"{path}[0]"), load_expr(right_raw, f"{path}[1]"))


def _load_injection(raw: Any, path: str, node_type: type[Inl] | type[Inr]) -> Expr:
    fields = _require_mapping(raw, path, ("value", "type"))
    return node_type(load_expr(fields["value"], f"{path}.value"), load_type(fields["type"], f"{path}.type"))


def _load_case(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("value", "inl", "inr"))
    return Case(
        load_expr(fields["value"], f"{path}.value"),
        _load_lambda(fields["inl"], f"{path}.inl"),
        _load_lambda(fields["inr"], f"{path}.inr"),
    )


def _load_while(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("cond", "body"))
    return While(load_expr(fields["cond"], f"{path}.cond"), load_expr(fields["body"], f"{path}.body"))


def _load_seq(raw: Any, path: str) -> Expr:
    if not isinstance(raw, list) or not raw:
        raise AstLoadError("expected a non-empty list", path)
    return Seq(tuple(load_expr(item, f"{path}[{index}]") for index, item in enumerate(raw)))


def _load_assign(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("target", "value"))
    return Assign(load_expr(fields["target"], f"{path}.target"), load_expr(fields["value"], f"{path}.value"))


def _load_app(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("fn", "arg"))
    return App(load_expr(fields["fn"], f"{path}.fn"), load_expr(fields["arg"], f"{path}.arg"))


def _load_let(raw: Any, path: str) -> Expr:
    fields = _require_mapping(raw, path, ("name", "type", "value", "body"))
    return Let(
        name=_require_name(fields["name"], f"{path}.name"),
        type_expr=load_type(fields["type"], f"{path}.type"),
        value=load_expr(fields["value"], f"{path}.value"),
        body=load_expr(fields["body"], f"{path}.body"),
    )


def _load_letfun(raw: Any, path: str, node_type: type[LetFun] | type[LetRecFun]) -> Expr:
    fields = _require_mapping(raw, path, ("name", "param", "param_type", "result_type", "value", "body"))
    function = Lambda(
        param=_require_name(fields["param"], f"{path}.param"),
        param_type=load_type(fields["param_type"], f"{path}.param_type"),
        body=load_expr(fields["value"], f"{path}.value"),
    )
    return node_type(
        name=_require_name(fields["name"], f"{path}.name"),
        function=function,
        result_type=load_type(fields["result_type"], f"{path}.result_type"),
        body=load_expr(fields["body"], f"{path}.body"),
    )


def _int_literal(value: int, path: str) -> IntLit:
    if not INT_MIN <= value <= INT_MAX:
        raise AstLoadError("integer literal out of 64-bit range", path)
    return IntLit(value)


def _load_int(raw: Any, path: str) -> Expr:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise AstLoadError("expected integer literal", path)
    return _int_literal(raw, path)


def _load_bool(raw: Any, path: str) -> Expr:
    if not isinstance(raw, bool):
        raise AstLoadError("expected boolean literal", path)
    return BoolLit(raw)


_EXPR_LOADERS: dict[str, Callable[[Any, str], Expr]] = {
    "unit": lambda raw, path: Unit(),
    "what": lambda raw, path: What(),
    "int": _load_int,
    "bool": _load_bool,
    "var": lambda raw, path: Var(_require_name(raw, path)),
    "unop": _load_unop,
    "binop": _load_binop,
    "if": _load_if,
    "pair": _load_pair,
    "fst": lambda raw, path: Fst(load_expr(raw, path)),
    "snd": lambda raw, path: Snd(load_expr(raw, path)),
    "inl": lambda raw, path: _load_injection(raw, path, Inl),
    "inr": lambda raw, path: _load_injection(raw, path, Inr),
    "case": _load_case,
    "fun": _load_lambda,
    "while": _load_while,
    "seq": _load_seq,
    "ref": lambda raw, path: Ref(load_expr(raw, path)),
    "deref": lambda raw, path: Deref(load_expr(raw, path)),
    "assign": _load_assign,
    "app": _load_app,
    "let": _load_let,
    "letfun": lambda raw, path: _load_letfun(raw, path, LetFun),
    "letrec": lambda raw, path: _load_letfun(raw, path, LetRecFun),
}


def load_expr(raw: Any, path: str = "program") -> Expr:
    # Scalar shorthands: 3, true, x, (), ?
    if isinstance(raw, bool):
        return BoolLit(raw)
    if isinstance(raw, int):
        return _int_literal(raw, path)
    if isinstance(raw, str):
        if raw == "()":
            return Unit()
        if raw == "?":
            return What()
        return Var(raw)

    if not isinstance(raw, dict):
        raise AstLoadError("expected expression", path)

    kind, value = _single_key(raw, path)
    loader = _EXPR_LOADERS.get(kind)
    if loader is None:
        raise AstLoadError(f"unknown expression kind '{kind}'", path)
    return loader(value, f"{path}.{kind}")


def load_program(text: str) -> Expr:
    raw = yaml.safe_load(text)
    if raw is None:
        raise AstLoadError("empty document", "program")
    if isinstance(raw, dict) and "program" in raw:
        if len(raw) != 1:
            raise AstLoadError("top-level mapping must only contain 'program'", "program")
        raw = raw["program"]
    return load_expr(raw, "program")


def load_program_file(path: Path) -> Expr:
    return load_program(path.read_text(encoding="utf-8"))
