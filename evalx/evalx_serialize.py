from __future__ import annotations

import json
import dataclasses
from typing import Any
import collections.abc

import yaml

from evalx.evalx_datatypes import Context


# --------------------------
# Helpers
# --------------------------

def kind_of(value: Any) -> str:
    """Name of the Value variant that value belongs to."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, list):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    return type(value).__name__


def to_value(obj: Any) -> Any:
    """
    Convert a host object into a detached JSON-like Value.
    Mappings become objects with string keys, tuples and lists become arrays,
    dataclasses and objects exposing to_dict() are converted through their fields.
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, Context):
        return {k: to_value(v) for k, v in obj.bindings.items()}
    if isinstance(obj, collections.abc.Mapping):
        return {str(k): to_value(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_value(x) for x in obj]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return to_value(dataclasses.asdict(obj))
    to_dict = getattr(obj, 'to_dict', None)
    if callable(to_dict):
        return to_value(to_dict())
    raise TypeError(f"Cannot convert {type(obj).__name__} to a value")


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str, *, fmt: str = 'json') -> Any:
    """
    Parse text into a Value.
    Supported fmt: 'json', 'yaml'.
    """
    text = data.decode('utf-8') if isinstance(data, (bytes, bytearray)) else data
    f = (fmt or '').lower()
    if f == 'json':
        return to_value(json.loads(text))
    if f == 'yaml':
        return to_value(yaml.safe_load(text))
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def serialize(value: Any, *, fmt: str = 'json', pretty: bool = True) -> str:
    """
    Convert a Value into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_value(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "deserialize",
    "serialize",
    "to_value",
    "kind_of",
]
