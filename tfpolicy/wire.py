"""Wire descriptions of functions and their JSON type encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from tfpolicy import cty
from tfpolicy.functions import Function, Parameter

_PRIMITIVES = {t.kind.value: t for t in (cty.BOOL, cty.NUMBER, cty.STRING, cty.DYNAMIC)}


def _type_to_json(type_: cty.Type) -> Any:
    if type_.is_collection():
        return [type_.kind.value, _type_to_json(type_.element)]
    if type_.kind is cty.Kind.OBJECT:
        return ["object", {name: _type_to_json(t) for name, t in type_.attributes}]
    if type_.kind is cty.Kind.TUPLE:
        return ["tuple", [_type_to_json(t) for t in type_.elements]]
    return type_.kind.value


def marshal_type_json(type_: cty.Type) -> bytes:
    """Encode a type as compact JSON."""
    return json.dumps(_type_to_json(type_), separators=(",", ":")).encode()


def _type_from_json(data: Any) -> cty.Type:
    if isinstance(data, str) and data in _PRIMITIVES:
        return _PRIMITIVES[data]
    if isinstance(data, list) and len(data) == 2:
        kind, arg = data
        if kind in ("list", "map", "set"):
            return cty.Type(cty.Kind(kind), element=_type_from_json(arg))
        if kind == "object" and isinstance(arg, dict):
            return cty.object_of({k: _type_from_json(v) for k, v in arg.items()})
        if kind == "tuple" and isinstance(arg, list):
            return cty.Type(cty.Kind.TUPLE, elements=tuple(map(_type_from_json, arg)))
    raise ValueError(f"invalid type specification {data!r}")


def unmarshal_type_json(data: bytes | str) -> cty.Type:
    """Decode a type from its JSON encoding."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as err:
        raise ValueError(f"invalid type JSON: {err}") from err
    return _type_from_json(parsed)


@dataclass
class FunctionParameter:
    """A parameter as sent over the wire, with its type JSON-encoded."""

    type: bytes
    name: str = ""
    description: str = ""
    allow_null: bool = False
    allow_unknown: bool = False
    allow_dynamic: bool = False
    allow_marked: bool = False

    def to_cty_parameter(self) -> Parameter:
        return Parameter(
            type=unmarshal_type_json(self.type),
            name=self.name,
            description=self.description,
            allow_null=self.allow_null,
            allow_unknown=self.allow_unknown,
            allow_dynamic_type=self.allow_dynamic,
            allow_marked=self.allow_marked,
        )


def from_cty_parameter(parameter: Parameter) -> FunctionParameter:
    return FunctionParameter(
        type=marshal_type_json(parameter.type),
        name=parameter.name,
        description=parameter.description,
        allow_null=parameter.allow_null,
        allow_unknown=parameter.allow_unknown,
        allow_dynamic=parameter.allow_dynamic_type,
        allow_marked=parameter.allow_marked,
    )


@dataclass
class FunctionSignature:
    """A function's signature as sent over the wire."""

    return_type: bytes
    parameters: list[FunctionParameter] = field(default_factory=list)
    variadic_parameter: FunctionParameter | None = None
    description: str = ""


def from_cty_function(fn: Function) -> FunctionSignature:
    types = [param.type for param in fn.params]
    variadic = None
    if fn.var_param is not None:
        types.append(fn.var_param.type)
        variadic = from_cty_parameter(fn.var_param)
    return FunctionSignature(
        return_type=marshal_type_json(fn.return_type(types)),
        parameters=[from_cty_parameter(param) for param in fn.params],
        variadic_parameter=variadic,
        description=fn.description,
    )