"""
The evalx tree-walking evaluator.
"""
import logging
from typing import Any, List, Tuple

from evalx.evalx_datatypes import (
    ContextStack, EvalxError, UnresolvedFunction, EvaluationError,
    Node, Literal, Name, ArrayLiteral, Call, Member, Index, Unary, Binary
)
from evalx.evalx_functions import Function, FunctionRegistry, ConstFunctionRegistry
from evalx.evalx_builtins import BUILTINS
from evalx.evalx_serialize import kind_of

logger = logging.getLogger(__name__)

MAX_RANGE_LENGTH = 1_000_000


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality over Values. Bools and numbers never compare equal."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    return type(a) is type(b) and a == b


class Evaluator:
    """Evaluates one syntax tree against one set of (contexts, registries).

    An Evaluator lives for a single execution. It never writes to the contexts
    or registries it is given.
    """
    def __init__(self, contexts: ContextStack, functions: FunctionRegistry,
                 const_functions: ConstFunctionRegistry):
        self.contexts = contexts
        self.functions = functions
        self.const_functions = const_functions

    def eval(self, node: Node) -> Any:
        """Recursive dispatcher for evaluating any syntax tree node."""
        match node:
            case Literal():
                return node.value
            case Name():
                return self.contexts.lookup(node.text)
            case ArrayLiteral():
                return [self.eval(item) for item in node.items]
            case Call():
                return self.call(node)
            case Member():
                return self._member(self.eval(node.target), node.key)
            case Index():
                target = self.eval(node.target)
                return self._index(target, self.eval(node.index))
            case Unary():
                return self._unary(node.op, self.eval(node.operand))
            case Binary():
                if node.op in ('&&', '||'):
                    return self._logical(node)
                left = self.eval(node.left)
                right = self.eval(node.right)
                return self._binary(node.op, left, right)
        raise TypeError(f"Cannot evaluate node of type {type(node).__name__}")

    # --- Function calls ---

    def resolve_function(self, name: str) -> Tuple[str, Function]:
        """Finds the function bound to name: dynamic, then const, then built-in."""
        fn = self.functions.get(name)
        if fn is not None:
            return 'dynamic', fn
        fn = self.const_functions.get(name)
        if fn is not None:
            return 'const', fn
        fn = BUILTINS.get(name)
        if fn is not None:
            return 'builtin', fn
        raise UnresolvedFunction(name)

    def call(self, node: Call) -> Any:
        tier, fn = self.resolve_function(node.name)
        logger.debug("call %s resolved to %s function", node.name, tier)
        args: List[Any] = [self.eval(arg) for arg in node.args]
        fn.check_arity(node.name, len(args))
        try:
            return fn(args)
        except EvalxError:
            raise
        except Exception as e:
            # Marked as the body's own failure, then re-raised unchanged.
            e.evalx_function = node.name
            raise

    # --- Access ---

    def _member(self, target: Any, key: str) -> Any:
        if isinstance(target, dict):
            return target.get(key)
        raise EvaluationError('.', (kind_of(target),))

    def _index(self, target: Any, index: Any) -> Any:
        if isinstance(target, list) and _is_int(index):
            if 0 <= index < len(target):
                return target[index]
            return None
        if isinstance(target, dict) and isinstance(index, str):
            return target.get(index)
        raise EvaluationError('[]', (kind_of(target), kind_of(index)))

    # --- Operators ---

    def _unary(self, op: str, value: Any) -> Any:
        if op == '!' and isinstance(value, bool):
            return not value
        if op == '-' and _is_number(value):
            return -value
        raise EvaluationError(op, (kind_of(value),))

    def _logical(self, node: Binary) -> Any:
        left = self.eval(node.left)
        if not isinstance(left, bool):
            raise EvaluationError(node.op, (kind_of(left),))
        # Short-circuit: the right operand is only evaluated when it decides the result.
        if node.op == '&&' and not left:
            return False
        if node.op == '||' and left:
            return True
        right = self.eval(node.right)
        if not isinstance(right, bool):
            raise EvaluationError(node.op, (kind_of(left), kind_of(right)))
        return right

    def _binary(self, op: str, a: Any, b: Any) -> Any:
        match op:
            case '==':
                return values_equal(a, b)
            case '!=':
                return not values_equal(a, b)
            case '>' | '<' | '>=' | '<=':
                return self._compare(op, a, b)
            case '+':
                if _is_number(a) and _is_number(b):
                    return a + b
                if isinstance(a, str) and isinstance(b, str):
                    return a + b
            case '-' | '*' | '%' | '/':
                if _is_number(a) and _is_number(b):
                    return self._arith(op, a, b)
            case '..':
                if _is_int(a) and _is_int(b):
                    if b - a > MAX_RANGE_LENGTH:
                        raise EvaluationError(
                            op, ('number', 'number'),
                            f"range of {b - a} items exceeds the limit of {MAX_RANGE_LENGTH}")
                    return list(range(a, b))
        raise EvaluationError(op, (kind_of(a), kind_of(b)))

    def _compare(self, op: str, a: Any, b: Any) -> bool:
        if not ((_is_number(a) and _is_number(b)) or (isinstance(a, str) and isinstance(b, str))):
            raise EvaluationError(op, (kind_of(a), kind_of(b)))
        match op:
            case '>':
                return a > b
            case '<':
                return a < b
            case '>=':
                return a >= b
            case _:
                return a <= b

    def _arith(self, op: str, a, b):
        match op:
            case '-':
                return a - b
            case '*':
                return a * b
        if b == 0:
            raise EvaluationError(op, ('number', 'number'), f"division by zero in '{op}'")
        if op == '%':
            return a % b
        if _is_int(a) and _is_int(b) and a % b == 0:
            return a // b
        return a / b
