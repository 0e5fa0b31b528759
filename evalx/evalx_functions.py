"""
Function registries.

Two registries are consulted when an expression calls a function by name:
the dynamic registry (callables owned by one Expr, never copied) and the const
registry (plain stateless functions, shared by an Expr and all its duplicates).
"""
import inspect
import threading
from typing import Any, Callable, Dict, List, Optional

from evalx.evalx_datatypes import ArityError


def _check_bounds(min_args: Optional[int], max_args: Optional[int]):
    for bound in (min_args, max_args):
        if bound is not None and (isinstance(bound, bool) or not isinstance(bound, int) or bound < 0):
            raise ValueError(f"arity bounds must be non-negative integers, got {bound!r}")
    if min_args is not None and max_args is not None and min_args > max_args:
        raise ValueError(f"min_args ({min_args}) is greater than max_args ({max_args})")


class Function:
    """A callable bound under a name, with optional arity bounds.

    The body receives the evaluated arguments as one list of Values and returns
    a Value. It may hold external state, so a Function is never duplicated.
    """
    def __init__(self, body: Callable[[List[Any]], Any],
                 min_args: Optional[int] = None, max_args: Optional[int] = None):
        if not callable(body):
            raise TypeError(f"function body must be callable, not {type(body).__name__}")
        _check_bounds(min_args, max_args)
        self.body = body
        self.min_args = min_args
        self.max_args = max_args

    def check_arity(self, name: str, argc: int):
        if self.min_args is not None and argc < self.min_args:
            raise ArityError(name, self.min_args, self.max_args, argc)
        if self.max_args is not None and argc > self.max_args:
            raise ArityError(name, self.min_args, self.max_args, argc)

    def __call__(self, args: List[Any]) -> Any:
        return self.body(args)

    def __repr__(self) -> str:
        return f"{type(self).__name__} {{ max_args: {self.max_args!r}, min_args: {self.min_args!r} }}"


def is_stateless(body: Any) -> bool:
    """True for module-level or lambda functions that capture nothing, and for
    builtins that are not bound to an object (`len`, `math.sqrt`)."""
    if inspect.isbuiltin(body):
        owner = getattr(body, "__self__", None)
        return owner is None or inspect.ismodule(owner)
    return inspect.isfunction(body) and not body.__closure__


class ConstFunction(Function):
    """A Function whose body is a stateless function reference.

    Safe to invoke concurrently and to share by reference between Exprs.
    """
    def __init__(self, body: Callable[[List[Any]], Any],
                 min_args: Optional[int] = None, max_args: Optional[int] = None):
        if not is_stateless(body):
            raise TypeError(
                f"const function body must be a plain function without captured state, "
                f"not {body!r}")
        super().__init__(body, min_args, max_args)


class FunctionRegistry:
    """Mapping of name to Function. Inserting an existing name replaces it."""
    def __init__(self, functions: Optional[Dict[str, Function]] = None):
        self.functions: Dict[str, Function] = {}
        for name, fn in (functions or {}).items():
            self.insert(name, fn)

    def _coerce(self, fn: Any) -> Function:
        return fn if isinstance(fn, Function) else Function(fn)

    def insert(self, name: str, fn: Any) -> Function:
        if not isinstance(name, str):
            raise TypeError(f"function name must be a str, not {type(name)}")
        fn = self._coerce(fn)
        self.functions[name] = fn
        return fn

    def get(self, name: str, default: Optional[Function] = None) -> Optional[Function]:
        return self.functions.get(name, default)

    def __setitem__(self, name: str, fn: Any):
        self.insert(name, fn)

    def __getitem__(self, name: str) -> Function:
        return self.functions[name]

    def __contains__(self, name: Any) -> bool:
        return name in self.functions

    def __len__(self) -> int:
        return len(self.functions)

    def names(self) -> List[str]:
        return list(self.functions.keys())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} names=[{', '.join(self.functions)}]>"


class ConstFunctionRegistry(FunctionRegistry):
    """The registry shared by an Expr and every duplicate made from it.

    Each insert and each read is atomic under the registry lock. A caller doing
    read-modify-write across several calls must coordinate externally.
    """
    def __init__(self, functions: Optional[Dict[str, Function]] = None):
        self._lock = threading.RLock()
        super().__init__(functions)

    def _coerce(self, fn: Any) -> ConstFunction:
        if isinstance(fn, ConstFunction):
            return fn
        if isinstance(fn, Function):
            return ConstFunction(fn.body, fn.min_args, fn.max_args)
        return ConstFunction(fn)

    def insert(self, name: str, fn: Any) -> ConstFunction:
        with self._lock:
            return super().insert(name, fn)

    def get(self, name: str, default: Optional[Function] = None) -> Optional[Function]:
        with self._lock:
            return self.functions.get(name, default)

    def __getitem__(self, name: str) -> ConstFunction:
        with self._lock:
            return self.functions[name]

    def __contains__(self, name: Any) -> bool:
        with self._lock:
            return name in self.functions

    def __len__(self) -> int:
        with self._lock:
            return len(self.functions)

    def names(self) -> List[str]:
        with self._lock:
            return list(self.functions.keys())

    def snapshot(self) -> Dict[str, ConstFunction]:
        """A point-in-time copy of the name table."""
        with self._lock:
            return dict(self.functions)
