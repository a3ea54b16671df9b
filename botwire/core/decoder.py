"""
JSON to record decoding.

``decode`` parses JSON text and hands the tree to ``from_tree``, which
converts it into an instance of the requested target type by walking the
target's declared shape:

- records are read field by field by wire name; unknown keys are ignored;
- an absent optional field becomes ``None``, an absent required field takes
  its declared default or raises ``MissingFieldError``;
- JSON integers coerce to float targets, JSON floats coerce to int targets
  by truncation toward zero;
- any other kind disagreement raises ``TypeMismatchError``.

Record types with a registered parser (the Telegram entities, see
``botwire.core.parser``) are always decoded through that parser, wherever
they appear in the target shape.
"""

import json
import math
from collections.abc import Callable
from copy import deepcopy
from enum import Enum
from typing import Any, TypeVar, get_args, get_origin

from pydantic import BaseModel

from botwire.core.fields import (
    NoneType,
    is_record_type,
    is_union,
    join_path,
    json_kind,
    record_fields,
    type_name,
)
from botwire.exceptions import (
    JSONError,
    MissingFieldError,
    ParseError,
    SerializationError,
    TypeMismatchError,
    UnsupportedTypeError,
)

T = TypeVar("T")
RecordT = TypeVar("RecordT", bound=BaseModel)

_PARSERS: dict[type, Callable[[Any], Any]] = {}


def register_parser(model: type) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Route every decode of ``model`` through the decorated parser.

    Args:
        model: Record type handled by the parser

    Returns:
        Decorator that registers and returns the parser unchanged
    """

    def decorator(parser: Callable[..., Any]) -> Callable[..., Any]:
        _PARSERS[model] = parser
        return parser

    return decorator


def _reject_constant(name: str) -> Any:
    raise ParseError(f"malformed JSON: {name} is not a JSON value")


def decode(text: str | bytes, target: type[T] | Any) -> T:
    """
    Decode JSON text into an instance of ``target``.

    Args:
        text: JSON text (bytes are decoded as UTF-8/16/32 per RFC 8259)
        target: Record type or annotation such as ``list[Update]``

    Returns:
        Decoded value

    Raises:
        ParseError: If the text is not valid JSON, including the ``NaN`` and
            ``Infinity`` literals and nesting too deep to parse
        JSONError: If the tree does not match the target shape
        UnsupportedTypeError: If the target shape cannot be walked
    """
    try:
        tree = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"malformed JSON: {e}") from e
    except RecursionError as e:
        raise ParseError("malformed JSON: nesting too deep") from e

    return from_tree(tree, target)


def from_tree(node: Any, target: type[T] | Any, path: str = "") -> T:
    """
    Convert a parsed JSON tree into an instance of ``target``.

    Args:
        node: Parsed JSON value
        target: Record type or annotation
        path: Dotted path of ``node``, used in error messages

    Returns:
        Decoded value

    Raises:
        JSONError: If the tree does not match the target shape or is nested
            too deeply to walk
    """
    try:
        return _from_tree(node, target, path)
    except RecursionError as e:
        raise JSONError("value nested too deeply", path) from e


def _from_tree(node: Any, target: Any, path: str) -> Any:
    if target is Any:
        return deepcopy(node)
    if is_union(target):
        return _decode_union(node, target, path)
    if node is None:
        raise TypeMismatchError(f"expected {type_name(target)}, got null", path)

    if target is list:
        target = list[Any]
    elif target is dict:
        target = dict[str, Any]

    origin = get_origin(target)
    if origin is list:
        return _decode_list(node, target, path)
    if origin is dict:
        return _decode_mapping(node, target, path)
    if origin is not None:
        raise UnsupportedTypeError(f"cannot decode into {type_name(target)}", path)

    if is_record_type(target):
        parser = _PARSERS.get(target)
        if parser is None:
            return decode_record(node, target, path)
        try:
            return parser(node)
        except SerializationError as e:
            e.path = join_path(path, e.path)
            raise
    if isinstance(target, type) and issubclass(target, Enum):
        return _decode_enum(node, target, path)
    if target is bool:
        return _decode_bool(node, path)
    if target is int:
        return _decode_int(node, path)
    if target is float:
        return _decode_float(node, path)
    if target is str:
        return _decode_str(node, path)

    raise UnsupportedTypeError(f"cannot decode into {type_name(target)}", path)


def decode_record(
    node: Any,
    model: type[RecordT],
    path: str = "",
    overrides: dict[str, Any] | None = None,
) -> RecordT:
    """
    Build a record from a JSON object, field by field.

    Unlike ``from_tree`` this never consults the parser registry for
    ``model`` itself, which lets a registered parser fill in the generic
    fields and supply the ones it handles specially through ``overrides``.

    Args:
        node: Parsed JSON value, expected to be an object
        model: Record type to build
        path: Dotted path of ``node``
        overrides: Already-decoded values keyed by attribute name; these
            fields are not read from ``node``

    Returns:
        Record instance
    """
    if not isinstance(node, dict):
        raise TypeMismatchError(
            f"expected object for {model.__name__}, got {json_kind(node)}", path
        )

    overrides = overrides or {}
    values: dict[str, Any] = {}
    fields_set: set[str] = set()

    for spec in record_fields(model):
        if spec.name in overrides:
            values[spec.name] = overrides[spec.name]
            if overrides[spec.name] is not None:
                fields_set.add(spec.name)
            continue

        field_path = join_path(path, spec.key)
        if spec.key not in node:
            if spec.optional:
                values[spec.name] = None
            elif not spec.required:
                values[spec.name] = spec.default_value()
            else:
                raise MissingFieldError(
                    f"missing required field '{spec.key}' for {model.__name__}", field_path
                )
            continue

        values[spec.name] = from_tree(node[spec.key], spec.annotation, field_path)
        fields_set.add(spec.name)

    return model.model_construct(_fields_set=fields_set, **values)


def _decode_union(node: Any, target: Any, path: str) -> Any:
    arms = [arm for arm in get_args(target) if arm is not NoneType]
    if node is None:
        if len(arms) < len(get_args(target)):
            return None
        raise TypeMismatchError(f"expected {type_name(target)}, got null", path)

    if len(arms) == 1:
        return from_tree(node, arms[0], path)

    for arm in arms:
        try:
            return from_tree(node, arm, path)
        except TypeMismatchError:
            continue
    raise TypeMismatchError(f"expected {type_name(target)}, got {json_kind(node)}", path)


def _decode_list(node: Any, target: Any, path: str) -> list:
    if not isinstance(node, list):
        raise TypeMismatchError(f"expected array, got {json_kind(node)}", path)
    (item_type,) = get_args(target) or (Any,)
    return [from_tree(item, item_type, join_path(path, str(index))) for index, item in enumerate(node)]


def _decode_mapping(node: Any, target: Any, path: str) -> dict:
    if not isinstance(node, dict):
        raise TypeMismatchError(f"expected object, got {json_kind(node)}", path)
    key_type, value_type = get_args(target) or (str, Any)
    if key_type is not str:
        raise UnsupportedTypeError(f"object keys must be str, not {type_name(key_type)}", path)
    return {key: from_tree(item, value_type, join_path(path, key)) for key, item in node.items()}


def _decode_enum(node: Any, target: type[Enum], path: str) -> Enum:
    if isinstance(node, (bool, list, dict)):
        raise TypeMismatchError(f"expected {target.__name__} tag, got {json_kind(node)}", path)
    try:
        return target(node)
    except ValueError:
        pass
    if isinstance(node, str) and node in target.__members__:
        return target[node]
    raise TypeMismatchError(f"{node!r} is not a valid {target.__name__}", path)


def _decode_bool(node: Any, path: str) -> bool:
    if not isinstance(node, bool):
        raise TypeMismatchError(f"expected boolean, got {json_kind(node)}", path)
    return node


def _decode_int(node: Any, path: str) -> int:
    if isinstance(node, bool):
        raise TypeMismatchError("expected integer, got boolean", path)
    if isinstance(node, int):
        return node
    if isinstance(node, float):
        if not math.isfinite(node):
            raise TypeMismatchError(f"cannot convert {node!r} to integer", path)
        return math.trunc(node)
    raise TypeMismatchError(f"expected integer, got {json_kind(node)}", path)


def _decode_float(node: Any, path: str) -> float:
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        raise TypeMismatchError(f"expected float, got {json_kind(node)}", path)
    return float(node)


def _decode_str(node: Any, path: str) -> str:
    if not isinstance(node, str):
        raise TypeMismatchError(f"expected string, got {json_kind(node)}", path)
    return node
