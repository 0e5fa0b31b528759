"""
Transforms the raw parser AST into a syntax tree using evalx_datatypes.
"""
import re

from evalx.evalx_datatypes import (
    Literal, Name, ArrayLiteral, Call, Member, Index, Unary, Binary
)

# Binding strength of each binary operator. All are left-associative.
PRECEDENCE = {
    '||': 1,
    '&&': 2,
    '==': 3, '!=': 3, '>': 3, '<': 3, '>=': 3, '<=': 3,
    '..': 4,
    '+': 5, '-': 5,
    '*': 6, '/': 6, '%': 6,
}

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '0': '\0', '\\': '\\', '"': '"', "'": "'"}
_ESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


def unescape(body: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class EvalxTransformer:
    def _attach_loc(self, obj, node):
        line = node.get('line'); col = node.get('col')
        if line is not None and col is not None:
            obj.loc = {'line': line, 'col': col, 'tag': node.get('tag')}
        return obj

    def _children(self, node) -> list:
        """Flattens a node's children into a list of tagged nodes."""
        raw = node.get('children', [])
        out = []

        def walk(item):
            if item is None:
                return
            if isinstance(item, list):
                for sub in item:
                    walk(sub)
            elif isinstance(item, dict):
                if 'tag' in item:
                    out.append(item)
                else:
                    # Named-children dicts (no 'tag')
                    for sub in item.values():
                        walk(sub)
        walk(raw)
        return out

    def transform(self, node: object) -> object:
        # Lists: transform each item
        if isinstance(node, list):
            return [self.transform(n) for n in node]

        if not isinstance(node, dict):
            raise TypeError(f"Unexpected parser output: {node!r}")

        tag = node.get('tag')
        children = self._children(node)

        match tag:
            # Structural wrappers
            case 'program' | 'primary' | 'group':
                if len(children) != 1:
                    raise ValueError(f"'{tag}' must wrap exactly one expression, got {len(children)}")
                return self.transform(children[0])
            case 'expr':
                return self._fold_infix(children)
            case 'unary':
                return self._transform_unary(children)
            case 'postfix':
                return self._transform_postfix(children)
            case 'arguments':
                return [self.transform(c) for c in children]
            case 'array':
                items = []
                for c in children:
                    items.extend(self.transform(c))
                return self._attach_loc(ArrayLiteral(items), node)
            case 'call':
                callee, rest = children[0], children[1:]
                args = []
                for c in rest:
                    args.extend(self.transform(c))
                return self._attach_loc(Call(callee['text'], args), node)

            # Atomics
            case 'number':
                txt = node['text']
                # Integers stay exact Python ints.
                if re.fullmatch(r'\d+', txt):
                    return self._attach_loc(Literal(int(txt)), node)
                return self._attach_loc(Literal(float(txt)), node)
            case 'string':
                return self._attach_loc(Literal(unescape(node['text'][1:-1])), node)
            case 'boolean':
                return self._attach_loc(Literal(node['text'] == 'true'), node)
            case 'null':
                return self._attach_loc(Literal(None), node)
            case 'name':
                return self._attach_loc(Name(node['text']), node)

            case _:
                raise NotImplementedError(f"No transformer for tag '{tag}'")

    # --- Operators ---

    def _fold_infix(self, children):
        """Builds a Binary tree from operand, op, operand, ... honoring PRECEDENCE."""
        operands = []
        ops = []

        def reduce():
            right = operands.pop()
            left = operands.pop()
            op_node = ops.pop()
            operands.append(self._attach_loc(Binary(op_node['text'], left, right), op_node))

        for child in children:
            if child.get('tag') == 'binop':
                while ops and PRECEDENCE[ops[-1]['text']] >= PRECEDENCE[child['text']]:
                    reduce()
                ops.append(child)
            else:
                operands.append(self.transform(child))
        while ops:
            reduce()
        if len(operands) != 1:
            raise ValueError("Malformed infix expression")
        return operands[0]

    def _transform_unary(self, children):
        prefixes = [c for c in children if c.get('tag') == 'prefix_op']
        rest = [c for c in children if c.get('tag') != 'prefix_op']
        result = self.transform(rest[0])
        # The operator nearest the operand applies first.
        for op_node in reversed(prefixes):
            result = self._attach_loc(Unary(op_node['text'], result), op_node)
        return result

    def _transform_postfix(self, children):
        result = self.transform(children[0])
        for suffix in children[1:]:
            stag = suffix.get('tag')
            parts = self._children(suffix)
            if stag == 'member':
                result = self._attach_loc(Member(result, parts[0]['text']), suffix)
            elif stag == 'index':
                result = self._attach_loc(Index(result, self.transform(parts[0])), suffix)
            else:
                raise NotImplementedError(f"Unsupported postfix segment '{stag}'")
        return result
