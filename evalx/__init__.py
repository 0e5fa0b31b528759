from evalx.evalx_expr import Expr, ExecutionRequest, ExecutionResult, from_text
from evalx.evalx_compiler import CompiledExpr, compile_source
from evalx.evalx_datatypes import (
    Context, ContextStack,
    EvalxError, CompileError, UnresolvedVariable, UnresolvedFunction,
    ArityError, EvaluationError, CallableError,
)
from evalx.evalx_functions import (
    Function, ConstFunction, FunctionRegistry, ConstFunctionRegistry
)
from evalx.evalx_serialize import to_value, serialize, deserialize

__all__ = [
    "Expr", "ExecutionRequest", "ExecutionResult", "from_text",
    "CompiledExpr", "compile_source",
    "Context", "ContextStack",
    "EvalxError", "CompileError", "UnresolvedVariable", "UnresolvedFunction",
    "ArityError", "EvaluationError", "CallableError",
    "Function", "ConstFunction", "FunctionRegistry", "ConstFunctionRegistry",
    "to_value", "serialize", "deserialize",
]
