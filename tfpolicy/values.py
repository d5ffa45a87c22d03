"""Convert between Python values and typed values."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Iterable, Iterator, get_args, get_origin

from tfpolicy import cty
from tfpolicy.cty import Kind
from tfpolicy.paths import Path, PathError
from tfpolicy.types import _unwrap_optional


def _quote(key: str) -> str:
    return json.dumps(key, ensure_ascii=False)


def _is_dataclass_type(target: Any) -> bool:
    return isinstance(target, type) and dataclasses.is_dataclass(target)


def _describe(target: Any) -> str:
    if isinstance(target, type):
        return target.__name__
    return str(target)


def _tagged_fields(cls: type) -> Iterator[tuple[dataclasses.Field, str, Any]]:
    """Yield ``(field, attribute, annotation)`` for every field tagged with ``cty``."""
    for field in dataclasses.fields(cls):
        attr = field.metadata.get("cty")
        if not attr:
            continue
        if isinstance(field.type, str):
            raise TypeError(
                f"unresolved annotation {field.type!r} for field {field.name!r}"
            )
        yield field, attr, field.type


def to_cty_value(value: Any, want: cty.Type) -> cty.Value:
    """Convert a Python value into a value of the wanted type."""
    return _to_cty(value, want, Path())


def _mismatch(value: Any, want: cty.Type, path: Path) -> PathError:
    return PathError(
        TypeError(f"cannot convert {type(value).__name__} to {want.friendly_name()}"), path
    )


def _to_cty(value: Any, want: cty.Type, path: Path) -> cty.Value:
    if value is None:
        return cty.null_value(want)

    kind = want.kind
    if kind is Kind.BOOL:
        if not isinstance(value, bool):
            raise _mismatch(value, want, path)
        return cty.bool_value(value)
    if kind is Kind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _mismatch(value, want, path)
        try:
            return cty.number_value(value)
        except ValueError as err:
            raise PathError(err, path) from err
    if kind is Kind.STRING:
        if not isinstance(value, str):
            raise _mismatch(value, want, path)
        return cty.string_value(value)
    if kind is Kind.LIST:
        if not isinstance(value, (list, tuple)):
            raise _mismatch(value, want, path)
        items = [
            _to_cty(item, want.element, path.with_index(str(i)))
            for i, item in enumerate(value)
        ]
        return cty.list_value(items) if items else cty.list_empty(want.element)
    if kind is Kind.MAP:
        if not isinstance(value, dict):
            raise _mismatch(value, want, path)
        entries = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise PathError(TypeError("map keys must be strings"), path)
            entries[key] = _to_cty(item, want.element, path.with_index(_quote(key)))
        return cty.map_value(entries) if entries else cty.map_empty(want.element)
    if kind is Kind.OBJECT:
        if isinstance(value, type) or not dataclasses.is_dataclass(value):
            raise _mismatch(value, want, path)
        attribute_types = want.attribute_types
        attributes = {}
        for field, attr, _ in _tagged_fields(type(value)):
            attr_path = path.append(attr)
            if attr not in attribute_types:
                raise PathError(KeyError(f"object type has no attribute {attr!r}"), attr_path)
            attributes[attr] = _to_cty(
                getattr(value, field.name), attribute_types[attr], attr_path
            )
        return cty.object_value(attributes)

    raise PathError(TypeError(f"unsupported type: {want.friendly_name()}"), path)


def from_cty_value(value: cty.Value, target: Any) -> Any:
    """Convert a typed value into a Python value described by ``target``."""
    return _from_cty(value, target, Path())


def _zero(target: Any) -> Any:
    """The zero value of an annotation: falsy scalars, ``None`` otherwise."""
    target, optional = _unwrap_optional(target)
    if optional:
        return None
    if target is bool:
        return False
    if target is int:
        return 0
    if target is float:
        return 0.0
    if target is str:
        return ""
    if _is_dataclass_type(target):
        return _build(target, {})
    return None


def _build(cls: type, values: dict[str, Any]) -> Any:
    """Create a dataclass instance; fields without a value get their zero value."""
    init_args = {}
    late = {}
    for field in dataclasses.fields(cls):
        if field.init:
            init_args[field.name] = (
                values[field.name] if field.name in values else _zero(field.type)
            )
        elif field.name in values:
            late[field.name] = values[field.name]
    instance = cls(**init_args)
    for name, item in late.items():
        object.__setattr__(instance, name, item)
    return instance


def _expect(value: cty.Value, kinds: Iterable[Kind], target: Any, path: Path) -> None:
    if value.type.kind not in kinds:
        raise PathError(
            TypeError(
                f"cannot convert {value.type.friendly_name()} to {_describe(target)}"
            ),
            path,
        )


def _from_cty(value: cty.Value, target: Any, path: Path) -> Any:
    if value.is_null():
        return _zero(target)

    target, _ = _unwrap_optional(target)

    if target is bool:
        _expect(value, (Kind.BOOL,), target, path)
        return value.raw
    if target is int:
        _expect(value, (Kind.NUMBER,), target, path)
        try:
            return int(value.raw)
        except OverflowError as err:
            raise PathError(err, path) from err
    if target is float:
        _expect(value, (Kind.NUMBER,), target, path)
        return float(value.raw)
    if target is str:
        _expect(value, (Kind.STRING,), target, path)
        return value.raw

    origin = get_origin(target)
    args = get_args(target)
    if origin is list and len(args) == 1:
        _expect(value, (Kind.LIST, Kind.TUPLE), target, path)
        return [
            _from_cty(item, args[0], path.with_index(str(i)))
            for i, item in enumerate(value.raw)
        ]
    if origin is dict and len(args) == 2:
        _expect(value, (Kind.MAP, Kind.OBJECT), target, path)
        return {
            key: _from_cty(item, args[1], path.with_index(_quote(key)))
            for key, item in value.raw.items()
        }
    if _is_dataclass_type(target):
        _expect(value, (Kind.OBJECT,), target, path)
        converted = {}
        for field, attr, hint in _tagged_fields(target):
            attr_path = path.append(attr)
            if attr not in value.raw:
                raise PathError(KeyError(f"value has no attribute {attr!r}"), attr_path)
            converted[field.name] = _from_cty(value.raw[attr], hint, attr_path)
        return _build(target, converted)

    raise PathError(TypeError(f"unsupported type {_describe(target)}"), path)