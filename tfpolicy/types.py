"""Derive value types from Python type annotations."""

from __future__ import annotations

import dataclasses
import types as _pytypes
from typing import Any, Union, get_args, get_origin

from tfpolicy import cty
from tfpolicy.paths import Path, PathError

CTY_TAG = "cty"


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``Optional[...]`` once, reporting whether it was present."""
    if get_origin(annotation) in (Union, _pytypes.UnionType):
        args = get_args(annotation)
        rest = [arg for arg in args if arg is not type(None)]
        if len(rest) == 1 and len(args) == 2:
            return rest[0], True
    return annotation, False


def _name(annotation: Any) -> str:
    return getattr(annotation, "__name__", str(annotation))


def to_cty_type(annotation: Any) -> cty.Type:
    """Return the value type that corresponds to a Python annotation."""
    return _to_cty_type(annotation, Path())


def _to_cty_type(annotation: Any, path: Path) -> cty.Type:
    if annotation is Any or annotation is object or getattr(annotation, "_is_protocol", False):
        raise PathError(TypeError("interface types not allowed"), path)

    annotation, _ = _unwrap_optional(annotation)
    if annotation is bool:
        return cty.BOOL
    if annotation in (int, float):
        return cty.NUMBER
    if annotation is str:
        return cty.STRING

    origin, args = get_origin(annotation), get_args(annotation)
    if origin is dict and len(args) == 2:
        if args[0] is not str:
            raise PathError(TypeError(f"map keys must be strings, but was {_name(args[0])}"), path)
        return cty.map_of(_to_cty_type(args[1], path.with_index('"*"')))
    if origin is list and len(args) == 1:
        return cty.list_of(_to_cty_type(args[0], path.with_index("*")))

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        attributes = {}
        for field in dataclasses.fields(annotation):
            attr = field.metadata.get(CTY_TAG)
            if not attr:
                continue
            field_path = path.append(attr)
            if field.name.startswith("_"):
                raise PathError(TypeError("unexported fields not allowed"), field_path)
            attributes[attr] = _to_cty_type(field.type, field_path)
        return cty.object_of(attributes)

    raise PathError(TypeError(f"unsupported type {_name(annotation)}"), path)