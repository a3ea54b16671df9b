"""
Field descriptors for record types.

Pydantic already knows every model's fields in declaration order, their
wire alias, annotation and default. This module condenses that into the
small ``FieldSpec`` tuple the encoder, decoder and parameter flattener walk,
so none of them needs per-type code.
"""

import types
from copy import deepcopy
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

NoneType = type(None)


@dataclass(frozen=True)
class FieldSpec:
    """One field of a record type."""

    name: str
    key: str
    annotation: Any
    required: bool
    optional: bool
    default: Any = None

    def default_value(self) -> Any:
        """Return a fresh copy of the declared default."""
        return deepcopy(self.default)


def is_record_type(target: Any) -> bool:
    """Return True if ``target`` is a record class the serializer can walk."""
    # Parameterized generics (list[int], ...) are not classes
    if get_origin(target) is not None:
        return False
    return isinstance(target, type) and issubclass(target, BaseModel)


def is_union(annotation: Any) -> bool:
    """Return True for both ``Union[X, Y]`` and ``X | Y`` annotations."""
    return get_origin(annotation) in (Union, types.UnionType)


def admits_none(annotation: Any) -> bool:
    """Return True if the annotation is ``Optional[...]`` (or ``Any``)."""
    if annotation is Any:
        return True
    return is_union(annotation) and NoneType in get_args(annotation)


def join_path(parent: str, child: str) -> str:
    """Join two dotted field paths, ignoring empty parts."""
    if not parent:
        return child
    if not child:
        return parent
    return f"{parent}.{child}"


@lru_cache(maxsize=None)
def record_fields(model: type[BaseModel]) -> tuple[FieldSpec, ...]:
    """
    Describe the fields of a record type.

    Args:
        model: Pydantic model class

    Returns:
        Field descriptors in declaration order
    """
    # Resolves forward references such as Message.pinned_message
    model.model_rebuild()
    specs = []
    for name, info in model.model_fields.items():
        annotation = info.annotation
        required = info.is_required()
        specs.append(
            FieldSpec(
                name=name,
                key=info.alias or name,
                annotation=annotation,
                required=required,
                optional=admits_none(annotation),
                default=None if required else info.get_default(call_default_factory=True),
            )
        )
    return tuple(specs)


def json_kind(node: Any) -> str:
    """Name the JSON kind of a parsed node, for error messages."""
    if node is None:
        return "null"
    if isinstance(node, bool):
        return "boolean"
    if isinstance(node, int):
        return "integer"
    if isinstance(node, float):
        return "float"
    if isinstance(node, str):
        return "string"
    if isinstance(node, list):
        return "array"
    if isinstance(node, dict):
        return "object"
    return type(node).__name__


def type_name(annotation: Any) -> str:
    """Readable name of an annotation, for error messages."""
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation).replace("typing.", "")
