"""A small typed value system: types, values and their constructors."""

from __future__ import annotations

import enum
import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping, Sequence


class Kind(enum.Enum):
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAP = "map"
    SET = "set"
    OBJECT = "object"
    TUPLE = "tuple"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Type:
    """A value type. Collections carry an element type, objects attributes."""

    kind: Kind
    element: Type | None = None
    attributes: tuple[tuple[str, Type], ...] = ()
    elements: tuple[Type, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", tuple(sorted(self.attributes, key=lambda p: p[0])))

    @property
    def attribute_types(self) -> dict[str, Type]:
        return dict(self.attributes)

    def is_collection(self) -> bool:
        return self.kind in (Kind.LIST, Kind.MAP, Kind.SET)

    def friendly_name(self) -> str:
        if self.element is not None:
            return f"{self.kind.value} of {self.element.friendly_name()}"
        return self.kind.value


BOOL = Type(Kind.BOOL)
NUMBER = Type(Kind.NUMBER)
STRING = Type(Kind.STRING)
DYNAMIC = Type(Kind.DYNAMIC)


def list_of(element: Type) -> Type:
    return Type(Kind.LIST, element=element)


def map_of(element: Type) -> Type:
    return Type(Kind.MAP, element=element)


def object_of(attributes: Mapping[str, Type]) -> Type:
    return Type(Kind.OBJECT, attributes=tuple(attributes.items()))


@dataclass(frozen=True)
class Value:
    """A typed value; ``raw`` is ``None`` for null values.

    Lists hold a tuple of values, maps and objects a dict of values.
    """

    type: Type
    raw: Any = None

    def is_null(self) -> bool:
        return self.raw is None


def null_value(type_: Type) -> Value:
    return Value(type_, None)


def bool_value(b: bool) -> Value:
    if not isinstance(b, bool):
        raise TypeError(f"expected bool, got {type(b).__name__}")
    return Value(BOOL, b)


def number_value(n: int | float) -> Value:
    if isinstance(n, bool) or not isinstance(n, (int, float)):
        raise TypeError(f"expected a number, got {type(n).__name__}")
    return Value(NUMBER, n)


def string_value(s: str) -> Value:
    if not isinstance(s, str):
        raise TypeError(f"expected str, got {type(s).__name__}")
    return Value(STRING, unicodedata.normalize("NFC", s))


def _common_type(values: Sequence[Value], what: str) -> Type:
    if not values:
        raise ValueError(f"{what} needs at least one element; use the empty constructor")
    types = {value.type for value in values}
    if len(types) > 1:
        raise ValueError(f"inconsistent {what} element types")
    return values[0].type


def list_value(elements: Sequence[Value]) -> Value:
    items = tuple(elements)
    return Value(list_of(_common_type(items, "list")), items)


def list_empty(element: Type) -> Value:
    return Value(list_of(element), ())


def map_value(elements: Mapping[str, Value]) -> Value:
    items = dict(elements)
    return Value(map_of(_common_type(list(items.values()), "map")), items)


def map_empty(element: Type) -> Value:
    return Value(map_of(element), {})


def object_value(attributes: Mapping[str, Value]) -> Value:
    items = dict(attributes)
    return Value(object_of({name: value.type for name, value in items.items()}), items)