"""
Expr: compile an expression once, execute it many times.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Literal, Mapping, Optional, Union, Iterable

from evalx.evalx_compiler import CompiledExpr, compile_source
from evalx.evalx_datatypes import CompileError, Context, ContextStack
from evalx.evalx_functions import (
    Function, ConstFunction, FunctionRegistry, ConstFunctionRegistry
)
from evalx.evalx_serialize import to_value

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """The structured result of one execution."""
    status: Literal['success', 'error']
    value: Any = None
    error: Optional[BaseException] = None
    error_message: Optional[str] = None

    @classmethod
    def from_error(cls, error: BaseException) -> 'ExecutionResult':
        kind = getattr(error, 'kind', None)
        if kind is None and getattr(error, 'evalx_function', None) is not None:
            # Raised by a function body: reported as-is, never wrapped.
            kind = f"CallableError({type(error).__name__})"
        elif kind is None:
            kind = type(error).__name__
        return cls(status='error', error=error, error_message=f"{kind}: {error}")

    @property
    def ok(self) -> bool:
        return self.status == 'success'

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        line = getattr(self.error, 'line', None)
        col = getattr(self.error, 'col', None)
        if line is not None:
            col_info = f", col {col}" if col is not None else ""
            return f"Error on line {line}{col_info}: {msg}"
        return msg

    def raise_for_error(self) -> Any:
        """Returns the value, or raises the stored error."""
        if self.status == 'error':
            raise self.error
        return self.value


def _run(expr: 'Expr', contexts: ContextStack, functions: FunctionRegistry) -> ExecutionResult:
    """Runs expr's cached unit, or a throwaway one when expr is not compiled."""
    try:
        unit = expr.compiled
        if unit is None:
            if expr._compile_error is not None:
                raise expr._compile_error
            logger.debug("executing %r without a cached unit", expr.source)
            # Not cached: every uncompiled exec pays the full compile cost.
            unit = compile_source(expr.source)
        value = unit(contexts, functions, expr.const_functions)
    except Exception as e:
        return ExecutionResult.from_error(e)
    return ExecutionResult(status='success', value=value)


class Expr:
    """An expression with its bindings.

    Holds the source text, an optional compiled unit, its own dynamic
    functions, a const function registry shared with every duplicate, and a
    stack of contexts. Builder methods mutate in place and return self.
    """
    def __init__(self, source: str, *, const_functions: Optional[ConstFunctionRegistry] = None):
        if not isinstance(source, str):
            raise TypeError(f"expression source must be a str, not {type(source).__name__}")
        self._source = source
        self._compiled: Optional[CompiledExpr] = None
        self._compile_error: Optional[CompileError] = None
        self.functions = FunctionRegistry()
        self.const_functions = const_functions if const_functions is not None else ConstFunctionRegistry()
        self.contexts = ContextStack()

    @property
    def source(self) -> str:
        return self._source

    @property
    def compiled(self) -> Optional[CompiledExpr]:
        """The cached unit, or None before compile()."""
        return self._compiled

    @property
    def state(self) -> str:
        if self._compiled is not None:
            return 'compiled'
        if self._compile_error is not None:
            return 'failed'
        return 'uncompiled'

    # --- Builder ---

    def with_function(self, name: str, function: Callable[[List[Any]], Any],
                      min_args: Optional[int] = None, max_args: Optional[int] = None) -> 'Expr':
        """Binds a callable. Never copied by duplicate(); highest priority."""
        self.functions.insert(name, Function(function, min_args, max_args))
        return self

    def with_const_function(self, name: str, function: Callable[[List[Any]], Any],
                            min_args: Optional[int] = None, max_args: Optional[int] = None) -> 'Expr':
        """Binds a stateless function into the registry shared with all duplicates."""
        self.const_functions.insert(name, ConstFunction(function, min_args, max_args))
        return self

    def with_value(self, name: str, value: Any) -> 'Expr':
        """Binds a value in the innermost context."""
        self.contexts.innermost[name] = to_value(value)
        return self

    def with_values(self, values: Mapping[str, Any]) -> 'Expr':
        for name, value in values.items():
            self.with_value(name, value)
        return self

    # --- Lifecycle ---

    def compile(self) -> 'Expr':
        """Compiles and caches the unit. A failure is final for this Expr."""
        if self._compile_error is not None:
            raise CompileError(
                f"expression {self._source!r} already failed to compile; construct a new Expr")
        try:
            self._compiled = compile_source(self._source)
        except CompileError as e:
            self._compile_error = e
            raise
        return self

    def exec(self) -> ExecutionResult:
        """Executes against this Expr's own contexts and functions."""
        return _run(self, self.contexts, self.functions)

    def duplicate(self) -> 'Expr':
        """An independent Expr with the same source, copied contexts, no
        dynamic functions, and the same shared const function registry."""
        logger.debug("duplicating %r", self._source)
        other = Expr(self._source, const_functions=self.const_functions)
        if self._compiled is not None:
            other._compiled = compile_source(self._source)
        other._compile_error = self._compile_error
        other.contexts = self.contexts.copy()
        return other

    def __copy__(self) -> 'Expr':
        return self.duplicate()

    def __deepcopy__(self, memo) -> 'Expr':
        return self.duplicate()

    # --- Text conversion ---

    def to_text(self) -> str:
        return self._source

    @classmethod
    def from_text(cls, text: str) -> 'Expr':
        """A freshly compiled Expr with empty bindings. Raises CompileError."""
        return cls(text).compile()

    def __str__(self) -> str:
        return self._source

    def __repr__(self) -> str:
        return repr(self._source)

    def __eq__(self, other):
        if not isinstance(other, Expr):
            return NotImplemented
        return self._source == other._source

    def __hash__(self):
        return hash(self._source)


def from_text(text: str) -> Expr:
    return Expr.from_text(text)


class ExecutionRequest:
    """Runs an Expr once against other contexts and dynamic functions.

    Defaults are an empty single-frame context stack and an empty function
    registry. The const registry is always the Expr's own. The Expr is never
    modified.
    """
    def __init__(self, expr: Expr):
        self.expr = expr
        self.contexts: Optional[ContextStack] = None
        self.functions: Optional[FunctionRegistry] = None

    @property
    def const_functions(self) -> ConstFunctionRegistry:
        return self.expr.const_functions

    def with_contexts(self, contexts: Union[ContextStack, Iterable[Mapping[str, Any]]]) -> 'ExecutionRequest':
        if not isinstance(contexts, ContextStack):
            contexts = ContextStack(
                Context(to_value(frame)) for frame in contexts)
        self.contexts = contexts
        return self

    def with_functions(self, functions: Union[FunctionRegistry, Mapping[str, Any]]) -> 'ExecutionRequest':
        if not isinstance(functions, FunctionRegistry):
            functions = FunctionRegistry(dict(functions))
        self.functions = functions
        return self

    def exec(self) -> ExecutionResult:
        contexts = self.contexts if self.contexts is not None else ContextStack()
        functions = self.functions if self.functions is not None else FunctionRegistry()
        return _run(self.expr, contexts, functions)
