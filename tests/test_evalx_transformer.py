import pytest

from evalx.evalx_compiler import Compiler, compile_source
from evalx.evalx_datatypes import (
    CompileError, Literal, Name, ArrayLiteral, Call, Member, Index, Unary, Binary
)
from evalx.evalx_transformer import EvalxTransformer, unescape


def tree(source):
    return compile_source(source).tree


# Each entry is a tuple: (test_id, source_code, expected_tree)
TEST_CASES = [
    ("int", "42", Literal(42)),
    ("float", "2.5", Literal(2.5)),
    ("exponent", "1e3", Literal(1000.0)),
    ("string", "'raw'", Literal("raw")),
    ("string_escape", r'"a\"b\n"', Literal('a"b\n')),
    ("true", "true", Literal(True)),
    ("false", "false", Literal(False)),
    ("null", "null", Literal(None)),
    ("keyword_prefix_is_a_name", "trueish", Name("trueish")),
    ("name", "a", Name("a")),
    ("precedence", "1 + 2 * 3",
        Binary("+", Literal(1), Binary("*", Literal(2), Literal(3)))),
    ("left_assoc", "1 - 2 - 3",
        Binary("-", Binary("-", Literal(1), Literal(2)), Literal(3))),
    ("grouping", "(1 - 2) * 3",
        Binary("*", Binary("-", Literal(1), Literal(2)), Literal(3))),
    ("logic_precedence", "a == b || c && d",
        Binary("||", Binary("==", Name("a"), Name("b")), Binary("&&", Name("c"), Name("d")))),
    ("range_binds_looser_than_plus", "0..n + 1",
        Binary("..", Literal(0), Binary("+", Name("n"), Literal(1)))),
    ("prefix", "!a && b",
        Binary("&&", Unary("!", Name("a")), Name("b"))),
    ("negation", "-x * 2",
        Binary("*", Unary("-", Name("x")), Literal(2))),
    ("stacked_prefix", "!!a", Unary("!", Unary("!", Name("a")))),
    ("call", "max(a, b)", Call("max", [Name("a"), Name("b")])),
    ("call_no_args", "now()", Call("now", [])),
    ("call_nested", "f(g(1))", Call("f", [Call("g", [Literal(1)])])),
    ("array", "[1, 'x', null]", ArrayLiteral([Literal(1), Literal("x"), Literal(None)])),
    ("empty_array", "[]", ArrayLiteral([])),
    ("member", "user.name", Member(Name("user"), "name")),
    ("member_chain_and_index", "a.b[0]", Index(Member(Name("a"), "b"), Literal(0))),
    ("index_expression", "xs[i + 1]", Index(Name("xs"), Binary("+", Name("i"), Literal(1)))),
]


@pytest.mark.parametrize("test_id, source, expected", TEST_CASES, ids=[c[0] for c in TEST_CASES])
def test_transform(test_id, source, expected):
    assert tree(source) == expected


def test_nodes_carry_locations():
    node = tree("a + b")
    assert node.loc is not None
    assert node.loc["line"] == 1


def test_compile_rejects_malformed_source():
    with pytest.raises(CompileError):
        compile_source("a +")


def test_compile_rejects_non_string_source():
    with pytest.raises(TypeError):
        compile_source(42)


def test_unknown_tag_is_not_silently_accepted():
    with pytest.raises(NotImplementedError):
        EvalxTransformer().transform({'tag': 'mystery', 'text': '?'})


def test_unescape():
    assert unescape(r"\t\\\'") == "\t\\'"
    assert unescape(r"\q") == "q"


def test_parser_is_built_once():
    compile_source("1")
    first = Compiler._parser
    compile_source("2")
    assert Compiler._parser is first


def test_deep_nesting_is_a_compile_error():
    source = "(" * 1000 + "1" + ")" * 1000
    with pytest.raises(CompileError, match="nesting limit"):
        compile_source(source)
