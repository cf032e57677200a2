from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class UnitType:
    pass


@dataclass(frozen=True)
class BoolType:
    pass


@dataclass(frozen=True)
class IntType:
    pass


@dataclass(frozen=True)
class RefType:
    inner: "TypeExpr"


@dataclass(frozen=True)
class ArrowType:
    param: "TypeExpr"
    result: "TypeExpr"


@dataclass(frozen=True)
class ProductType:
    left: "TypeExpr"
    right: "TypeExpr"


@dataclass(frozen=True)
class UnionType:
    left: "TypeExpr"
    right: "TypeExpr"


TypeExpr = UnitType | BoolType | IntType | RefType | ArrowType | ProductType | UnionType


class BinOp(str, Enum):
    ADD = "add"
    MUL = "mul"
    DIV = "div"
    SUB = "sub"
    LT = "lt"
    AND = "and"
    OR = "or"
    EQ = "eq"
    EQB = "eqb"
    EQI = "eqi"


class UnOp(str, Enum):
    NEG = "neg"
    NOT = "not"


@dataclass(frozen=True)
class Unit:
    pass


@dataclass(frozen=True)
class What:
    pass


@dataclass(frozen=True)
class Var:
    name: str


@dataclass(frozen=True)
class IntLit:
    value: int


@dataclass(frozen=True)
class BoolLit:
    value: bool


@dataclass(frozen=True)
class UnaryOp:
    op: UnOp
    operand: "Expr"


@dataclass(frozen=True)
class BinaryOp:
    op: BinOp
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class If:
    condition: "Expr"
    then_branch: "Expr"
    else_branch: "Expr"


@dataclass(frozen=True)
class Pair:
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Fst:
    operand: "Expr"


@dataclass(frozen=True)
class Snd:
    operand: "Expr"


@dataclass(frozen=True)
class Inl:
    operand: "Expr"
    type_expr: TypeExpr


@dataclass(frozen=True)
class Inr:
    operand: "Expr"
    type_expr: TypeExpr


@dataclass(frozen=True)
class Lambda:
    param: str
    param_type: TypeExpr
    body: "Expr"


@dataclass(frozen=True)
class Case:
    scrutinee: "Expr"
    left: Lambda
    right: Lambda


@dataclass(frozen=True)
class While:
    condition: "Expr"
    body: "Expr"


@dataclass(frozen=True)
class Seq:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class Ref:
    operand: "Expr"


@dataclass(frozen=True)
class Deref:
    operand: "Expr"


@dataclass(frozen=True)
class Assign:
    target: "Expr"
    value: "Expr"


@dataclass(frozen=True)
class App:
    function: "Expr"
    argument: "Expr"


@dataclass(frozen=True)
class Let:
    name: str
    type_expr: TypeExpr
    value: "Expr"
    body: "Expr"


@dataclass(frozen=True)
class LetFun:
    name: str
    function: Lambda
    result_type: TypeExpr
    body: "Expr"


@dataclass(frozen=True)
class LetRecFun:
    name: str
    function: Lambda
    result_type: TypeExpr
    body: "Expr"


Expr = (
    Unit
    | What
    | Var
    | IntLit
    | BoolLit
    | UnaryOp
    | BinaryOp
    | If
    | Pair
    | Fst
    | Snd
    | Inl
    | Inr
    | Case
    | Lambda
    | While
    | Seq
    | Ref
    | Deref
    | Assign
    | App
    | Let
    | LetFun
    | LetRecFun
)
