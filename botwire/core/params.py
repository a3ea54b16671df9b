"""
Flat request parameters.

Telegram methods take a flat form body. ``flatten_params`` turns a request
record into ``dict[str, str]``: scalars are stringified, while nested
records, sequences and mappings are JSON-encoded into a single value. That
is how an inline keyboard travels as one ``reply_markup`` field.
``unflatten_params`` reverses the mapping for a given record type.
"""

import json
import math
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar, get_args, get_origin

from pydantic import BaseModel

from botwire.core.decoder import decode
from botwire.core.encoder import encode
from botwire.core.fields import NoneType, is_union, join_path, record_fields, type_name
from botwire.exceptions import (
    JSONError,
    MissingFieldError,
    ParseError,
    SerializationError,
    TypeMismatchError,
    UnsupportedTypeError,
)

RecordT = TypeVar("RecordT", bound=BaseModel)


def flatten_params(record: BaseModel) -> dict[str, str]:
    """
    Flatten a request record into string parameters.

    Args:
        record: Request parameter record

    Returns:
        Mapping of wire name to string value; ``None`` fields are left out

    Raises:
        UnsupportedTypeError: If ``record`` is not a record or holds a value
            that cannot be stringified
    """
    if not isinstance(record, BaseModel):
        raise UnsupportedTypeError(
            f"parameters must be a record, got {type(record).__name__}"
        )

    params: dict[str, str] = {}
    for spec in record_fields(type(record)):
        value = getattr(record, spec.name)
        if value is None:
            continue
        params[spec.key] = param_value(value, spec.key)
    return params


def param_value(value: Any, path: str = "") -> str:
    """
    Render one parameter value as a string.

    Args:
        value: Field value
        path: Field name, used in error messages

    Returns:
        String form of the value
    """
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedTypeError(f"cannot send non-finite float {value!r}", path)
        # Shortest round-trip digits, written out without an exponent
        return format(Decimal(repr(value)), "f")
    if isinstance(value, str):
        return str(value)
    if isinstance(value, (BaseModel, list, tuple, dict)):
        try:
            return encode(value)
        except SerializationError as e:
            e.path = join_path(path, e.path)
            raise

    raise UnsupportedTypeError(f"cannot send value of type {type(value).__name__}", path)


def params_to_json(params: dict[str, str]) -> str:
    """Render flat parameters as a JSON object of strings."""
    return json.dumps(params, ensure_ascii=False, separators=(",", ":"))


def unflatten_params(params: dict[str, str], model: type[RecordT]) -> RecordT:
    """
    Rebuild a request record from flat string parameters.

    Args:
        params: Mapping produced by ``flatten_params``
        model: Request record type

    Returns:
        Record instance

    Raises:
        MissingFieldError: If a required parameter is absent
        TypeMismatchError: If a value cannot be read as its field's type
    """
    values: dict[str, Any] = {}
    fields_set: set[str] = set()

    for spec in record_fields(model):
        if spec.key not in params:
            if spec.optional:
                values[spec.name] = None
            elif not spec.required:
                values[spec.name] = spec.default_value()
            else:
                raise MissingFieldError(f"missing required parameter '{spec.key}'", spec.key)
            continue

        values[spec.name] = _read_param(params[spec.key], spec.annotation, spec.key)
        fields_set.add(spec.name)

    return model.model_construct(_fields_set=fields_set, **values)


def _read_param(raw: str, annotation: Any, path: str) -> Any:
    if is_union(annotation):
        arms = [arm for arm in get_args(annotation) if arm is not NoneType]
        for arm in arms:
            try:
                return _read_param(raw, arm, path)
            except TypeMismatchError:
                continue
        raise TypeMismatchError(f"{raw!r} is not a valid {type_name(annotation)}", path)

    if annotation is str:
        return raw
    if annotation is bool:
        if raw in ("true", "false"):
            return raw == "true"
        raise TypeMismatchError(f"expected 'true' or 'false', got {raw!r}", path)
    if annotation is int:
        try:
            return int(raw)
        except ValueError:
            raise TypeMismatchError(f"expected integer, got {raw!r}", path) from None
    if annotation is float:
        try:
            return float(raw)
        except ValueError:
            raise TypeMismatchError(f"expected float, got {raw!r}", path) from None
    if get_origin(annotation) is None and isinstance(annotation, type) and issubclass(annotation, Enum):
        try:
            return annotation(raw)
        except ValueError:
            raise TypeMismatchError(f"{raw!r} is not a valid {annotation.__name__}", path) from None

    # Nested records and sequences were sent as JSON text
    try:
        return decode(raw, annotation)
    except ParseError as e:
        raise TypeMismatchError(f"expected JSON for {type_name(annotation)}: {e.message}", path) from e
    except JSONError as e:
        e.path = join_path(path, e.path)
        raise
