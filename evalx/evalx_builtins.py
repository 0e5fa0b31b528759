"""
Built-in functions. These are consulted only after both user registries.
"""
import inspect
from typing import Any, Dict, List

from evalx.evalx_datatypes import EvaluationError
from evalx.evalx_functions import Function
from evalx.evalx_serialize import kind_of


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


class Builtins:
    """Python implementations of the built-ins. Each `_name` method is exposed as `name`."""
    arity = {
        'min': (1, None),
        'max': (1, None),
        'len': (1, 1),
        'is_empty': (1, 1),
        'array': (None, None),
    }

    def _extremum(self, name: str, args: List[Any], pick):
        values = args[0] if len(args) == 1 and isinstance(args[0], list) else args
        if not values:
            raise EvaluationError(name, ('array',), f"'{name}' of an empty array")
        for v in values:
            if not _is_number(v):
                raise EvaluationError(name, (kind_of(v),))
        return pick(values)

    def _min(self, args):
        return self._extremum('min', args, min)

    def _max(self, args):
        return self._extremum('max', args, max)

    def _len(self, args):
        value = args[0]
        if isinstance(value, (str, list, dict)):
            return len(value)
        raise EvaluationError('len', (kind_of(value),))

    def _is_empty(self, args):
        value = args[0]
        if value is None:
            return True
        if isinstance(value, (str, list, dict)):
            return len(value) == 0
        raise EvaluationError('is_empty', (kind_of(value),))

    def _array(self, args):
        return list(args)


def load_builtins() -> Dict[str, Function]:
    lib = Builtins()
    table: Dict[str, Function] = {}
    for name, member in inspect.getmembers(lib):
        if name.startswith('_') and not name.startswith('__') and callable(member):
            public = name[1:]
            if public not in Builtins.arity:
                continue
            lo, hi = Builtins.arity[public]
            table[public] = Function(member, lo, hi)
    return table


BUILTINS: Dict[str, Function] = load_builtins()
