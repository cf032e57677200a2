from pathlib import Path

import pytest

from mlc.ast_load import AstLoadError, load_expr, load_program, load_program_file, load_type
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
    Fst,
    If,
    Inl,
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
    UnaryOp,
    UnionType,
    Unit,
    UnitType,
    UnOp,
    Var,
    What,
    While,
)


def test_load_scalar_shorthands() -> None:
    assert load_expr(3) == IntLit(3)
    assert load_expr(True) == BoolLit(True)
    assert load_expr("x") == Var("x")
    assert load_expr("()") == Unit()
    assert load_expr("?") == What()


def test_load_explicit_atoms() -> None:
    assert load_expr({"int": 7}) == IntLit(7)
    assert load_expr({"bool": False}) == BoolLit(False)
    assert load_expr({"var": "y"}) == Var("y")
    assert load_expr({"unit": None}) == Unit()
    assert load_expr({"what": None}) == What()


def test_load_types() -> None:
    assert load_type("unit") == UnitType()
    assert load_type({"ref": "int"}) == RefType(IntType())
    assert load_type({"arrow": ["int", {"arrow": ["bool", "int"]}]}) == ArrowType(
        IntType(), ArrowType(BoolType(), IntType())
    )
    assert load_type({"product": ["int", "bool"]}) == ProductType(IntType(), BoolType())
    assert load_type({"union": ["int", "unit"]}) == UnionType(IntType(), UnitType())


def test_load_program_from_yaml_document() -> None:
    source = """
program:
  let:
    name: x
    type: int
    value: 5
    body:
      binop: {op: add, left: x, right: {unop: {op: neg, operand: 1}}}
"""
    assert load_program(source) == Let(
        "x",
        IntType(),
        IntLit(5),
        BinaryOp(BinOp.ADD, Var("x"), UnaryOp(UnOp.NEG, IntLit(1))),
    )


def test_load_program_accepts_json_without_program_key() -> None:
    source = '{"if": {"cond": true, "then": 1, "else": {"seq": [2, 3]}}}'
    assert load_program(source) == If(BoolLit(True), IntLit(1), Seq((IntLit(2), IntLit(3))))


def test_load_compound_forms() -> None:
    assert load_expr({"while": {"cond": "c", "body": "()"}}) == While(Var("c"), Unit())
    assert load_expr({"pair": [1, 2]}) == Pair(IntLit(1), IntLit(2))
    assert load_expr({"fst": "p"}) == Fst(Var("p"))
    assert load_expr({"inl": {"value": 1, "type": "int"}}) == Inl(IntLit(1), IntType())
    assert load_expr({"ref": 0}) == Ref(IntLit(0))
    assert load_expr({"deref": "r"}) == Deref(Var("r"))
    assert load_expr({"assign": {"target": "r", "value": 1}}) == Assign(Var("r"), IntLit(1))
    assert load_expr({"app": {"fn": "f", "arg": 2}}) == App(Var("f"), IntLit(2))
    assert load_expr({"fun": {"param": "x", "type": "int", "body": "x"}}) == Lambda("x", IntType(), Var("x"))


def test_load_case() -> None:
    raw = {
        "case": {
            "value": "s",
            "inl": {"param": "a", "type": "int", "body": "a"},
            "inr": {"param": "b", "type": "bool", "body": 0},
        }
    }
    assert load_expr(raw) == Case(
        Var("s"),
        Lambda("a", IntType(), Var("a")),
        Lambda("b", BoolType(), IntLit(0)),
    )


def test_load_function_definitions() -> None:
    fields = {
        "name": "f",
        "param": "n",
        "param_type": "int",
        "result_type": "int",
        "value": "n",
        "body": {"app": {"fn": "f", "arg": 1}},
    }
    expected_fn = Lambda("n", IntType(), Var("n"))
    body = App(Var("f"), IntLit(1))

    assert load_expr({"letfun": fields}) == LetFun("f", expected_fn, IntType(), body)
    assert load_expr({"letrec": fields}) == LetRecFun("f", expected_fn, IntType(), body)


def test_load_reports_path_of_bad_node() -> None:
    with pytest.raises(AstLoadError, match=r"program\.let\.body\.binop: missing required key 'right'"):
        load_program("let: {name: x, type: int, value: 1, body: {binop: {op: add, left: x}}}")


def test_load_rejects_unknown_kinds_and_operators() -> None:
    with pytest.raises(AstLoadError, match="unknown expression kind 'loop'"):
        load_expr({"loop": 1})
    with pytest.raises(AstLoadError, match="unknown binary operator 'pow'"):
        load_expr({"binop": {"op": "pow", "left": 1, "right": 2}})
    with pytest.raises(AstLoadError, match="unknown type 'float'"):
        load_type("float")


def test_load_rejects_multi_key_nodes_and_extra_fields() -> None:
    with pytest.raises(AstLoadError, match="expected exactly one node kind"):
        load_expr({"int": 1, "bool": True})
    with pytest.raises(AstLoadError, match="unexpected key 'extra'"):
        load_expr({"while": {"cond": 1, "body": 2, "extra": 3}})


def test_load_rejects_empty_document_and_bad_literals() -> None:
    with pytest.raises(AstLoadError, match="empty document"):
        load_program("")
    with pytest.raises(AstLoadError, match="expected integer literal"):
        load_expr({"int": True})
    with pytest.raises(AstLoadError, match="expected a non-empty list"):
        load_expr({"seq": []})


def test_load_error_is_a_value_error() -> None:
    assert issubclass(AstLoadError, ValueError)


def test_load_program_file(tmp_path: Path) -> None:
    path = tmp_path / "prog.yaml"
    path.write_text("program: {binop: {op: lt, left: 1, right: 2}}\n", encoding="utf-8")
    assert load_program_file(path) == BinaryOp(BinOp.LT, IntLit(1), IntLit(2))


def test_load_accepts_64_bit_integer_bounds() -> None:
    assert load_expr(2**63 - 1) == IntLit(2**63 - 1)
    assert load_expr({"int": -(2**63)}) == IntLit(-(2**63))


@pytest.mark.parametrize(
    "text",
    [
        "18446744073709551616",
        "int: 18446744073709551616",
        "int: 9223372036854775808",
        "int: -9223372036854775809",
    ],
)
def test_load_rejects_integer_literals_outside_64_bits(text: str) -> None:
    with pytest.raises(AstLoadError, match="integer literal out of 64-bit range"):
        load_program(text)


def test_out_of_range_literal_error_names_its_node() -> None:
    with pytest.raises(AstLoadError, match=r"program\.binop\.right: integer literal out of 64-bit range"):
        load_program("binop: {op: add, left: 1, right: 99999999999999999999}")
