import math
import pytest

from evalx.evalx_datatypes import ArityError
from evalx.evalx_functions import (
    Function, ConstFunction, FunctionRegistry, ConstFunctionRegistry, is_stateless
)


def double(args):
    return args[0] * 2


def test_function_defaults_are_unbounded():
    fn = Function(lambda args: len(args))
    assert fn.min_args is None and fn.max_args is None
    fn.check_arity("f", 0)
    fn.check_arity("f", 100)
    assert fn([1, 2, 3]) == 3

@pytest.mark.parametrize("argc, ok", [(0, False), (1, True), (2, True), (3, False)])
def test_function_check_arity(argc, ok):
    fn = Function(double, min_args=1, max_args=2)
    if ok:
        fn.check_arity("f", argc)
    else:
        with pytest.raises(ArityError) as exc:
            fn.check_arity("f", argc)
        assert exc.value.actual == argc
        assert exc.value.expected == (1, 2)

def test_function_rejects_bad_bounds():
    with pytest.raises(ValueError):
        Function(double, min_args=-1)
    with pytest.raises(ValueError):
        Function(double, min_args=3, max_args=2)
    with pytest.raises(TypeError):
        Function("not callable")

def test_function_repr():
    assert repr(Function(double, 1, 2)) == "Function { max_args: 2, min_args: 1 }"

def test_const_function_accepts_plain_functions():
    assert ConstFunction(double).body is double
    assert ConstFunction(lambda args: 0)
    assert ConstFunction(math.fsum)

def test_const_function_rejects_captured_state():
    counter = {"n": 0}

    def bump(args):
        counter["n"] += 1
        return counter["n"]

    assert not is_stateless(bump)
    with pytest.raises(TypeError):
        ConstFunction(bump)

    class Holder:
        def method(self, args):
            return 1

    with pytest.raises(TypeError):
        ConstFunction(Holder().method)

    log = []
    assert not is_stateless(log.append)
    with pytest.raises(TypeError):
        ConstFunction(log.append)


def test_const_function_accepts_unbound_builtins():
    assert is_stateless(len)
    assert is_stateless(math.sqrt)
    assert ConstFunction(len)([1, 2, 3]) == 3

def test_registry_last_write_wins():
    reg = FunctionRegistry()
    reg.insert("f", lambda args: 1)
    reg.insert("f", lambda args: 2)
    assert len(reg) == 1
    assert reg["f"]([]) == 2

def test_registry_wraps_plain_callables():
    reg = FunctionRegistry({"f": double})
    assert isinstance(reg.get("f"), Function)
    assert "f" in reg
    assert reg.get("missing") is None
    assert reg.names() == ["f"]

def test_registry_rejects_non_str_name():
    with pytest.raises(TypeError):
        FunctionRegistry().insert(1, double)

def test_const_registry_coerces_to_const_functions():
    reg = ConstFunctionRegistry()
    reg["d"] = double
    reg.insert("e", Function(double, 1, 1))
    assert isinstance(reg["d"], ConstFunction)
    assert reg["e"].min_args == 1
    snap = reg.snapshot()
    reg.insert("g", double)
    assert sorted(snap) == ["d", "e"]
    assert sorted(reg.names()) == ["d", "e", "g"]
