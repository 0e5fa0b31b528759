import pytest

from evalx.evalx_compiler import compile_source
from evalx.evalx_printer import Printer
from evalx.evalx_datatypes import Binary, Literal, Name, Unary


@pytest.fixture
def printer():
    return Printer()


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("str", "hello", '"hello"'),
    ("str_with_quote", 'a"b', '"a\\"b"'),
    ("int", 123, "123"),
    ("float", -1.5, "-1.5"),
    ("bool_true", True, "true"),
    ("bool_false", False, "false"),
    ("none", None, "null"),
    ("array", [1, "a", None], '[1, "a", null]'),
    ("object", {"k": [1]}, '{"k": [1]}'),
    ("binary", Binary("+", Name("a"), Literal(1)), "a + 1"),
    ("needs_parens", Binary("*", Binary("+", Name("a"), Name("b")), Name("c")), "(a + b) * c"),
    ("right_assoc_parens", Binary("-", Name("a"), Binary("-", Name("b"), Name("c"))), "a - (b - c)"),
    ("unary_of_binary", Unary("!", Binary("&&", Name("a"), Name("b"))), "!(a && b)"),
]


@pytest.mark.parametrize("test_id, obj, expected", FORMAT_TEST_CASES, ids=[c[0] for c in FORMAT_TEST_CASES])
def test_pformat(printer, test_id, obj, expected):
    assert printer.pformat(obj) == expected


@pytest.mark.parametrize("source", [
    "a + b * c",
    "(a + b) * c",
    "1 - (2 - 3)",
    "max(a, [1, 2], 'x')",
    "user.tags[0]",
    "!(a || b) && c",
    "-x..n",
    "f()",
])
def test_printed_source_recompiles_to_same_tree(printer, source):
    tree = compile_source(source).tree
    assert compile_source(printer.pformat(tree)).tree == tree


def test_compiled_expr_repr_uses_printer():
    assert repr(compile_source("a+1")) == "<CompiledExpr a + 1>"
