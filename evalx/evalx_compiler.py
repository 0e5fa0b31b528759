"""
The evalx front-end: source text in, CompiledExpr (or CompileError) out.

Compilation only checks syntactic shape. Every name (variable or function) is
resolved when the compiled expression runs, so one CompiledExpr can be run
against any number of contexts and registries.
"""
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from koine import Parser

from evalx.evalx_datatypes import CompileError, ContextStack, EvaluationError, Node
from evalx.evalx_functions import FunctionRegistry, ConstFunctionRegistry
from evalx.evalx_interpreter import Evaluator
from evalx.evalx_transformer import EvalxTransformer

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "grammar" / "evalx_grammar.yaml"


class CompiledExpr:
    """The executable unit produced by compile_source.

    Holds an immutable syntax tree and no other state; calling it is a pure
    function of its arguments and is safe from several threads at once.
    """
    def __init__(self, source: str, tree: Node):
        self.source = source
        self.tree = tree

    def __call__(self, contexts: ContextStack, functions: FunctionRegistry,
                 const_functions: ConstFunctionRegistry) -> Any:
        try:
            return Evaluator(contexts, functions, const_functions).eval(self.tree)
        except RecursionError as e:
            if getattr(e, 'evalx_function', None) is not None:
                raise
            raise EvaluationError(
                'nesting', (), "expression is nested too deeply to evaluate") from e

    def __repr__(self) -> str:
        from evalx.evalx_printer import Printer
        return f"<CompiledExpr {Printer().pformat(self.tree)}>"


class Compiler:
    """Parses and transforms source text. The parser is built once per process."""

    _parser: Optional[Parser] = None
    _transformer: Optional[EvalxTransformer] = None
    _init_lock = threading.Lock()

    @classmethod
    def _ensure_parser(cls) -> Parser:
        if cls._parser is None:
            with cls._init_lock:
                if cls._parser is None:
                    cls._transformer = EvalxTransformer()
                    cls._parser = Parser.from_file(str(GRAMMAR_PATH))
        return cls._parser

    @classmethod
    def parse(cls, source: str) -> Any:
        """Runs the grammar over source and returns the raw parser AST."""
        parser = cls._ensure_parser()
        try:
            parse_out = parser.parse(source)
        except RecursionError as e:
            raise CompileError("expression exceeds the parser's nesting limit") from e
        except Exception as e:
            raise CompileError(f"parse failed: {e}") from e

        if isinstance(parse_out, dict) and 'status' in parse_out:
            if parse_out.get('status') != 'success':
                node = parse_out.get('error_node') or {}
                base = parse_out.get('error_message') or parse_out.get('message') or "parse failed"
                raise CompileError(str(base), node.get('line'), node.get('col'))
            ast_node = parse_out.get('ast')
            if ast_node is None:
                raise CompileError("parser returned no AST")
            return ast_node
        return parse_out

    @classmethod
    def compile(cls, source: str) -> CompiledExpr:
        if not isinstance(source, str):
            raise TypeError(f"expression source must be a str, not {type(source).__name__}")
        logger.debug("compiling %r", source)
        ast_node = cls.parse(source)
        try:
            tree = cls._transformer.transform(ast_node)
        except RecursionError as e:
            raise CompileError("expression exceeds the compiler's nesting limit") from e
        except (ValueError, KeyError, IndexError, NotImplementedError) as e:
            raise CompileError(f"malformed expression: {e}") from e
        logger.debug("compiled %r", source)
        return CompiledExpr(source, tree)


def compile_source(source: str) -> CompiledExpr:
    """Compiles source text into a reusable CompiledExpr, raising CompileError."""
    return Compiler.compile(source)
