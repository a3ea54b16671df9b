"""
Record to JSON encoding.

``to_tree`` walks any record built from booleans, numbers, strings,
enumerations, optional fields, sequences, nested records and opaque JSON
subtrees, and returns plain JSON data. ``encode`` renders that data as
compact JSON text.

Fields holding ``None`` are absent and are left out of the output object
entirely rather than written as ``null``.
"""

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel

from botwire.core.fields import join_path, record_fields
from botwire.exceptions import UnsupportedTypeError


def to_tree(value: Any, path: str = "") -> Any:
    """
    Convert a value to plain JSON data (dict/list/str/int/float/bool/None).

    Args:
        value: Record, sequence, scalar or opaque JSON value
        path: Dotted path of ``value`` inside the enclosing record

    Returns:
        JSON-compatible Python data

    Raises:
        UnsupportedTypeError: If the value (or anything inside it) has a
            shape the encoder cannot walk, or is nested too deeply
    """
    try:
        return _to_tree(value, path)
    except RecursionError as e:
        raise UnsupportedTypeError("value nested too deeply to encode", path) from e


def _to_tree(value: Any, path: str) -> Any:
    if value is None:
        return None
    # Enum check goes first: str-based enums are also str instances
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    # bool is a subclass of int
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedTypeError(f"cannot encode non-finite float {value!r}", path)
        return value
    if isinstance(value, str):
        return str(value)
    if isinstance(value, BaseModel):
        return _record_to_tree(value, path)
    if isinstance(value, (list, tuple)):
        return [to_tree(item, join_path(path, str(index))) for index, item in enumerate(value)]
    if isinstance(value, dict):
        return _mapping_to_tree(value, path)

    raise UnsupportedTypeError(f"cannot encode value of type {type(value).__name__}", path)


def _record_to_tree(record: BaseModel, path: str) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for spec in record_fields(type(record)):
        field_value = getattr(record, spec.name)
        if field_value is None:
            continue
        tree[spec.key] = to_tree(field_value, join_path(path, spec.key))
    return tree


def _mapping_to_tree(mapping: dict, path: str) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for key, item in mapping.items():
        if not isinstance(key, str):
            raise UnsupportedTypeError(
                f"object keys must be strings, got {type(key).__name__}", path
            )
        # Opaque subtrees keep explicit nulls; only record fields are omitted
        tree[key] = to_tree(item, join_path(path, key))
    return tree


def encode(value: Any) -> str:
    """
    Encode a value as compact JSON text.

    Strings are escaped per JSON rules: quote, backslash, the short escapes
    for newline/tab/carriage-return/backspace/form-feed, ``\\u00XX`` for the
    remaining control characters. Other characters are written as-is.

    Args:
        value: Record, sequence, scalar or opaque JSON value

    Returns:
        JSON text

    Raises:
        UnsupportedTypeError: If the value cannot be encoded
    """
    return json.dumps(
        to_tree(value),
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
