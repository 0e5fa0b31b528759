import pytest

from evalx import Expr, ArityError, EvaluationError
from evalx.evalx_builtins import BUILTINS


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


def test_builtin_table():
    assert sorted(BUILTINS) == ["array", "is_empty", "len", "max", "min"]
    assert (BUILTINS["len"].min_args, BUILTINS["len"].max_args) == (1, 1)


@pytest.mark.parametrize("source, expected", [
    ("min(3, 1, 2)", 1),
    ("max(3, 1, 2)", 3),
    ("max([4, 9, 2])", 9),
    ("min(xs)", -1),
    ("len('abcd')", 4),
    ("len(xs)", 3),
    ("len(obj)", 1),
    ("is_empty('')", True),
    ("is_empty(null)", True),
    ("is_empty(xs)", False),
    ("array(1, 'a')", [1, "a"]),
    ("array()", []),
])
def test_builtins(source, expected):
    res = Expr(source).with_value("xs", [5, -1, 3]).with_value("obj", {"k": 1}).exec()
    assert_ok(res)
    assert res.value == expected


def test_builtin_arity():
    res = Expr("len(1, 2)").exec()
    assert isinstance(res.error, ArityError)
    res = Expr("max()").exec()
    assert isinstance(res.error, ArityError)


@pytest.mark.parametrize("source, operator", [
    ("max(1, 'a')", "max"),
    ("min([])", "min"),
    ("len(1)", "len"),
    ("is_empty(true)", "is_empty"),
])
def test_builtin_kind_errors(source, operator):
    res = Expr(source).exec()
    assert res.status == "error"
    assert isinstance(res.error, EvaluationError)
    assert res.error.operator == operator
