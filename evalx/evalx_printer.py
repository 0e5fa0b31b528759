"""
A printer for evalx syntax trees and Values.
"""
import json
import collections.abc

from evalx.evalx_datatypes import (
    Literal, Name, ArrayLiteral, Call, Member, Index, Unary, Binary
)
from evalx.evalx_transformer import PRECEDENCE


class Printer:
    """Formats syntax trees and Values into canonical, re-parseable source."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, collections.abc.Mapping): return self._pformat_object
        if isinstance(obj, (list, tuple)): return self._pformat_array
        # Default to Python's repr for unknown types
        return lambda o: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_array,
            dict: self._pformat_object,
            Literal: self._pformat_literal,
            Name: self._pformat_name,
            ArrayLiteral: self._pformat_array_literal,
            Call: self._pformat_call,
            Member: self._pformat_member,
            Index: self._pformat_index,
            Unary: self._pformat_unary,
            Binary: self._pformat_binary,
        }

    # --- Values ---

    def _pformat_primitive(self, obj):
        return repr(obj)

    def _pformat_str(self, obj):
        return json.dumps(obj, ensure_ascii=False)

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj):
        return 'null'

    def _pformat_array(self, obj):
        return "[" + ", ".join(self.pformat(x) for x in obj) + "]"

    def _pformat_object(self, obj):
        # Objects have no literal syntax; this form is for messages only.
        items = ", ".join(f"{self._pformat_str(str(k))}: {self.pformat(v)}" for k, v in obj.items())
        return "{" + items + "}"

    # --- Syntax tree ---

    def _pformat_literal(self, node):
        return self.pformat(node.value)

    def _pformat_name(self, node):
        return node.text

    def _pformat_array_literal(self, node):
        return "[" + ", ".join(self.pformat(x) for x in node.items) + "]"

    def _pformat_call(self, node):
        return f"{node.name}(" + ", ".join(self.pformat(a) for a in node.args) + ")"

    def _pformat_postfix_target(self, target):
        text = self.pformat(target)
        if isinstance(target, (Unary, Binary)):
            return f"({text})"
        return text

    def _pformat_member(self, node):
        return f"{self._pformat_postfix_target(node.target)}.{node.key}"

    def _pformat_index(self, node):
        return f"{self._pformat_postfix_target(node.target)}[{self.pformat(node.index)}]"

    def _pformat_unary(self, node):
        text = self.pformat(node.operand)
        if isinstance(node.operand, Binary):
            text = f"({text})"
        return f"{node.op}{text}"

    def _pformat_binary(self, node):
        prec = PRECEDENCE[node.op]
        left = self.pformat(node.left)
        right = self.pformat(node.right)
        if isinstance(node.left, Binary) and PRECEDENCE[node.left.op] < prec:
            left = f"({left})"
        # Left-associative: an equal-precedence right operand needs parentheses.
        if isinstance(node.right, Binary) and PRECEDENCE[node.right.op] <= prec:
            right = f"({right})"
        return f"{left} {node.op} {right}"
