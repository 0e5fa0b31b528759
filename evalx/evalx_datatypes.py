"""
Defines the core data types for the evalx runtime.

This module provides the error taxonomy, the variable scopes (Context and
ContextStack) and the syntax tree node classes produced by the transformer
and consumed by the evaluator.
"""

import copy
import collections.abc
from typing import List, Dict, Any, Optional, Iterable

# =================================================================
# Errors
# =================================================================

class EvalxError(Exception):
    """Base class for every error raised by the engine."""
    kind = "Error"

    def __str__(self) -> str:
        return self.args[0] if self.args else self.kind


class CompileError(EvalxError):
    """Malformed source text. Terminal for the compile attempt that raised it."""
    kind = "CompileError"

    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col

    def __str__(self) -> str:
        if self.line is not None and self.col is not None:
            return f"{self.message} (line {self.line}, col {self.col})"
        return self.message


class UnresolvedVariable(EvalxError):
    kind = "UnresolvedVariable"

    def __init__(self, name: str):
        super().__init__(f"variable '{name}' is not bound in any context")
        self.name = name


class UnresolvedFunction(EvalxError):
    kind = "UnresolvedFunction"

    def __init__(self, name: str):
        super().__init__(f"function '{name}' does not exist")
        self.name = name


class ArityError(EvalxError):
    """A call supplied a number of arguments outside the declared range."""
    kind = "ArityError"

    def __init__(self, name: str, min_args: Optional[int], max_args: Optional[int], actual: int):
        lo = "0" if min_args is None else str(min_args)
        hi = "*" if max_args is None else str(max_args)
        expected = lo if lo == hi else f"{lo}..{hi}"
        super().__init__(f"'{name}' expects {expected} arguments, got {actual}")
        self.name = name
        self.min_args = min_args
        self.max_args = max_args
        self.actual = actual

    @property
    def expected(self) -> tuple:
        return (self.min_args, self.max_args)


class EvaluationError(EvalxError):
    """An operator (or built-in) was applied to operands of the wrong kind."""
    kind = "EvaluationError"

    def __init__(self, operator: str, kinds: Iterable[str], message: Optional[str] = None):
        kinds = tuple(kinds)
        if message is None:
            message = f"unsupported operand kinds for '{operator}': {', '.join(kinds)}"
        super().__init__(message)
        self.operator = operator
        self.kinds = kinds


class CallableError(EvalxError):
    """Raised by a function body to report its own failure.

    The engine never wraps or retries these; the instance reaches the caller
    unchanged.
    """
    kind = "CallableError"


# =================================================================
# Scopes
# =================================================================

class Context(collections.abc.MutableMapping):
    """One scope: a mapping of unique names to Values."""
    def __init__(self, bindings: Optional[collections.abc.Mapping] = None):
        self.bindings: Dict[str, Any] = {}
        if bindings:
            for key, value in bindings.items():
                self[key] = value

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Context key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        return self.bindings[key]

    def __delitem__(self, key: str):
        del self.bindings[key]

    def __iter__(self):
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def copy(self) -> 'Context':
        """Deep copy; Values are never shared between copies."""
        return Context(copy.deepcopy(self.bindings))

    def __eq__(self, other):
        if isinstance(other, Context):
            return self.bindings == other.bindings
        if isinstance(other, collections.abc.Mapping):
            return self.bindings == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Context({self.bindings!r})"


class ContextStack(collections.abc.Sequence):
    """Ordered Context frames, innermost last. Never empty.

    Lookup scans from the innermost frame outwards and the first hit wins, so
    inner frames shadow outer ones.
    """
    def __init__(self, frames: Optional[Iterable[collections.abc.Mapping]] = None):
        self.frames: List[Context] = []
        for frame in frames or ():
            self.frames.append(frame if isinstance(frame, Context) else Context(frame))
        if not self.frames:
            self.frames.append(Context())

    @classmethod
    def from_mappings(cls, *mappings: collections.abc.Mapping) -> 'ContextStack':
        return cls(mappings)

    def __getitem__(self, index):
        return self.frames[index]

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def innermost(self) -> Context:
        return self.frames[-1]

    def push(self, context: Optional[collections.abc.Mapping] = None) -> Context:
        """Adds a new innermost frame and returns it."""
        frame = context if isinstance(context, Context) else Context(context)
        self.frames.append(frame)
        return frame

    def pop(self) -> Context:
        """Removes and returns the innermost frame. The last frame cannot be removed."""
        if len(self.frames) == 1:
            raise IndexError("cannot pop the last frame of a ContextStack")
        return self.frames.pop()

    def find_owner(self, name: str) -> Optional[Context]:
        """Finds the innermost frame that binds name."""
        for frame in reversed(self.frames):
            if name in frame.bindings:
                return frame
        return None

    def lookup(self, name: str) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            raise UnresolvedVariable(name)
        return owner.bindings[name]

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and self.find_owner(name) is not None

    def copy(self) -> 'ContextStack':
        return ContextStack(frame.copy() for frame in self.frames)

    def __eq__(self, other):
        if not isinstance(other, ContextStack):
            return NotImplemented
        return self.frames == other.frames

    def __repr__(self) -> str:
        return f"ContextStack({self.frames!r})"


# =================================================================
# Syntax Tree
# =================================================================

class Node:
    """Base class for syntax tree nodes. Nodes are never mutated after the
    transformer builds them, so a tree can be shared between threads."""
    loc: Optional[Dict[str, Any]] = None


class Literal(Node):
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"

    def __eq__(self, other):
        # type() check keeps Literal(True) distinct from Literal(1)
        return (isinstance(other, Literal) and type(self.value) is type(other.value)
                and self.value == other.value)


class Name(Node):
    """A variable reference, e.g. `a` in `a + 1`."""
    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"Name<{self.text!r}>"

    def __eq__(self, other):
        return isinstance(other, Name) and self.text == other.text

    def __hash__(self):
        return hash(self.text)


class ArrayLiteral(Node):
    def __init__(self, items: List[Node]):
        self.items = list(items)

    def __repr__(self) -> str:
        return f"ArrayLiteral({self.items!r})"

    def __eq__(self, other):
        return isinstance(other, ArrayLiteral) and self.items == other.items


class Call(Node):
    """A function call by name. Resolution happens at execution time."""
    def __init__(self, name: str, args: List[Node]):
        self.name = name
        self.args = list(args)

    def __repr__(self) -> str:
        return f"Call({self.name!r}, {self.args!r})"

    def __eq__(self, other):
        return isinstance(other, Call) and self.name == other.name and self.args == other.args


class Member(Node):
    """`target.key`"""
    def __init__(self, target: Node, key: str):
        self.target = target
        self.key = key

    def __repr__(self) -> str:
        return f"Member({self.target!r}, {self.key!r})"

    def __eq__(self, other):
        return isinstance(other, Member) and self.target == other.target and self.key == other.key


class Index(Node):
    """`target[index]`"""
    def __init__(self, target: Node, index: Node):
        self.target = target
        self.index = index

    def __repr__(self) -> str:
        return f"Index({self.target!r}, {self.index!r})"

    def __eq__(self, other):
        return isinstance(other, Index) and self.target == other.target and self.index == other.index


class Unary(Node):
    def __init__(self, op: str, operand: Node):
        self.op = op
        self.operand = operand

    def __repr__(self) -> str:
        return f"Unary({self.op!r}, {self.operand!r})"

    def __eq__(self, other):
        return isinstance(other, Unary) and self.op == other.op and self.operand == other.operand


class Binary(Node):
    def __init__(self, op: str, left: Node, right: Node):
        self.op = op
        self.left = left
        self.right = right

    def __repr__(self) -> str:
        return f"Binary({self.op!r}, {self.left!r}, {self.right!r})"

    def __eq__(self, other):
        return (isinstance(other, Binary) and self.op == other.op
                and self.left == other.left and self.right == other.right)
