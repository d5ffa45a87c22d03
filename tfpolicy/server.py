"""The plugin service: setup, listing and executing registered functions."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import msgpack

from tfpolicy import cty
from tfpolicy.functions import registered_functions
from tfpolicy.wire import FunctionSignature, from_cty_function, marshal_type_json, unmarshal_type_json


@dataclass(frozen=True)
class HandshakeConfig:
    """The values a host and plugin must agree on before talking."""

    protocol_version: int = 1
    magic_cookie_key: str = "TF_POLICY_PLUGIN"
    magic_cookie_value: str = "95ADAEF3D8C4"


HANDSHAKE = HandshakeConfig()


@dataclass
class PluginSetupRequest:
    pass


@dataclass
class PluginSetupResponse:
    pass


@dataclass
class ListFunctionsRequest:
    pass


@dataclass
class ListFunctionsResponse:
    functions: dict[str, FunctionSignature] = field(default_factory=dict)


@dataclass
class ExecuteFunctionRequest:
    name: str
    arguments: list[bytes] = field(default_factory=list)


@dataclass
class ExecuteFunctionResponse:
    result: bytes


def _to_wire(value: cty.Value, type_: cty.Type) -> Any:
    if value.is_null():
        return None
    kind = type_.kind
    if kind is cty.Kind.DYNAMIC:
        return [marshal_type_json(value.type), _to_wire(value, value.type)]
    if kind in (cty.Kind.BOOL, cty.Kind.NUMBER, cty.Kind.STRING):
        return value.raw
    if kind is cty.Kind.LIST:
        return [_to_wire(item, type_.element) for item in value.raw]
    if kind is cty.Kind.MAP:
        return {key: _to_wire(item, type_.element) for key, item in value.raw.items()}
    if kind is cty.Kind.OBJECT:
        return {name: _to_wire(value.raw[name], t) for name, t in type_.attributes}
    raise TypeError(f"cannot encode values of type {type_.friendly_name()}")


def encode_value(value: cty.Value, type_: cty.Type) -> bytes:
    """Encode a value of the given type as msgpack."""
    return msgpack.packb(_to_wire(value, type_), use_bin_type=True)


def _expect(data: Any, types: tuple[type, ...], what: str) -> Any:
    if isinstance(data, bool) != (bool in types) or not isinstance(data, types):
        raise ValueError(f"expected {what}")
    return data


def _from_wire(data: Any, type_: cty.Type) -> cty.Value:
    if data is None:
        return cty.null_value(type_)
    kind = type_.kind
    if kind is cty.Kind.DYNAMIC:
        if not isinstance(data, list) or len(data) != 2:
            raise ValueError("dynamic value must be a type and value pair")
        return _from_wire(data[1], unmarshal_type_json(data[0]))
    if kind is cty.Kind.BOOL:
        return cty.bool_value(_expect(data, (bool,), "a bool"))
    if kind is cty.Kind.NUMBER:
        return cty.number_value(_expect(data, (int, float), "a number"))
    if kind is cty.Kind.STRING:
        return cty.string_value(_expect(data, (str,), "a string"))
    if kind is cty.Kind.LIST:
        items = [_from_wire(item, type_.element) for item in _expect(data, (list,), "a list")]
        return cty.list_value(items) if items else cty.list_empty(type_.element)
    if kind is cty.Kind.MAP:
        entries = {k: _from_wire(v, type_.element) for k, v in _expect(data, (dict,), "a map").items()}
        return cty.map_value(entries) if entries else cty.map_empty(type_.element)
    if kind is cty.Kind.OBJECT:
        expected = type_.attribute_types
        if set(_expect(data, (dict,), "an object")) != set(expected):
            raise ValueError("object attributes do not match the type")
        return cty.object_value({n: _from_wire(data[n], t) for n, t in expected.items()})
    raise TypeError(f"cannot decode values of type {type_.friendly_name()}")


def decode_value(data: bytes, type_: cty.Type) -> cty.Value:
    """Decode a msgpack-encoded value of the given type."""
    try:
        raw = msgpack.unpackb(data, raw=False)
    except Exception as err:
        raise ValueError(f"invalid msgpack data: {err}") from err
    return _from_wire(raw, type_)


class PluginService:
    """Answers plugin requests using the registered functions."""

    def setup(self, request: PluginSetupRequest) -> PluginSetupResponse:
        return PluginSetupResponse()

    def list_functions(self, request: ListFunctionsRequest) -> ListFunctionsResponse:
        return ListFunctionsResponse(
            functions={name: from_cty_function(fn) for name, fn in registered_functions().items()}
        )

    def execute_function(self, request: ExecuteFunctionRequest) -> ExecuteFunctionResponse:
        fn = registered_functions().get(request.name)
        if fn is None:
            raise LookupError(f"function {json.dumps(request.name)} not found")

        args = []
        for i, argument in enumerate(request.arguments):
            if i < len(fn.params):
                param = fn.params[i]
            elif fn.var_param is None:
                raise ValueError("too many arguments")
            else:
                param = fn.var_param
            args.append(decode_value(argument, param.type))

        ret = fn.call(args)
        return ExecuteFunctionResponse(result=encode_value(ret, fn.return_type_for_values(args)))