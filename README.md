# tfpolicy

`tfpolicy` is a small framework for writing policy plugins. A plugin
registers ordinary Python functions; their type annotations are turned into
typed function signatures, and a plugin service lists and executes those
functions, passing arguments and results as msgpack-encoded values.

## Installation

```
pip install tfpolicy
```

With the test dependencies:

```
pip install "tfpolicy[test]"
```

## Typed values

`tfpolicy.cty` holds the value system. `Type` has a `Kind` (bool, number,
string, list, map, set, object, tuple, dynamic); the constants `BOOL`,
`NUMBER`, `STRING` and `DYNAMIC` and the constructors `list_of`, `map_of` and
`object_of` build types. Values are made with `bool_value`, `number_value`,
`string_value`, `list_value`, `list_empty`, `map_value`, `map_empty`,
`object_value` and `null_value`. `list_value` and `map_value` need at least
one element, all of the same type; use the `*_empty` constructors otherwise.
Strings are normalised to NFC.

## Registering functions

Annotate every parameter and the return value; the annotations decide the
types a host sees:

- `bool`, `int`, `float` and `str` map to the primitive types;
- `list[...]` maps to a list, `dict[str, ...]` to a map (keys must be `str`);
- a dataclass maps to an object built from the fields whose metadata carries a
  `"cty"` attribute name; untagged fields are ignored, and tagged fields whose
  name starts with an underscore are rejected;
- `Optional[...]` is allowed anywhere; `Any`, `object` and protocols are not.

An `Optional[...]` parameter accepts null, as do list and map parameters. A
trailing `*args` parameter becomes the variadic parameter; keyword-only and
`**kwargs` parameters are rejected. The function's docstring becomes its
description.

```python
from dataclasses import dataclass, field

from tfpolicy.cty import object_value, string_value
from tfpolicy.functions import call_function, register_function


@dataclass
class Resource:
    name: str = field(default="", metadata={"cty": "name"})


def greet(name: str, *others: str) -> list[str]:
    """Put the first name last."""
    return [*others, name]


def resource_name(resource: Resource) -> str:
    return resource.name


register_function("greet", greet)
register_function("resource_name", resource_name)

call_function("greet", string_value("hello"), string_value("world"))
call_function("resource_name", object_value({"name": string_value("web")}))
```

Registering a name twice raises `ValueError`; calling an unknown name raises
`LookupError`. Functions that cannot be described (missing or unsupported
annotations) raise `TypeError` at registration. Calls check the argument count,
argument types and nulls before running.

Already typed functions (`tfpolicy.functions.Function` with its `Parameter`s)
can be registered with `register_function_direct(name, fn)`.
`registered_functions()` returns a snapshot of everything registered and
`lookup_function(name)` fetches one function.

The underlying conversions are available directly:
`tfpolicy.types.to_cty_type(annotation)`,
`tfpolicy.values.to_cty_value(value, want)` and
`tfpolicy.values.from_cty_value(value, target)`. A null value converts to the
target's zero value (`False`, `0`, `0.0`, `""`, `None` for optional,
list and map targets). Conversion failures raise
`tfpolicy.paths.PathError`, whose message names where the problem is, such as
`error at items[0].name: ...`.

## The plugin service

`tfpolicy.server.PluginService` answers the three plugin calls:

- `setup(PluginSetupRequest())` returns a `PluginSetupResponse`;
- `list_functions(ListFunctionsRequest())` returns a `ListFunctionsResponse`
  mapping each name to a `tfpolicy.wire.FunctionSignature` (parameters,
  variadic parameter, return type and description, with types JSON-encoded);
- `execute_function(ExecuteFunctionRequest(name, arguments))` decodes the
  msgpack arguments against the function's parameters, calls it and returns
  the encoded result in an `ExecuteFunctionResponse`. Unknown names raise
  `LookupError`; too many arguments raise `ValueError`.

`encode_value(value, type_)` and `decode_value(data, type_)` expose the
msgpack value encoding; values of dynamic type are sent as a pair of their
JSON-encoded type and the value. `tfpolicy.wire.marshal_type_json` and
`unmarshal_type_json` expose the type encoding. `HANDSHAKE` holds the
protocol version and magic cookie a host and plugin agree on.

The package has no transport of its own: there is no RPC server, process
launcher or handshake exchange. `PluginService` is called directly, and
wiring it to a connection is up to the caller.

## Logging

`tfpolicy.logger.new_logger(plugin)` returns a stderr logger whose level comes
from `TF_POLICY_LOG_LEVEL_<plugin>` (`trace`, `debug`, `info`, `warn`,
`error` or `off`, case-insensitive). When the variable is unset or not a
recognised level, the logger records errors only. `log_level(plugin)` returns
that level.

## Regenerating protocol code

```
tfpolicy-protobuf-compile <basedir>
```

Downloads the pinned `protoc` release for the current platform into
`<basedir>/protobuf-compile/.workdir` (unless it is already there), builds
`protoc-gen-go` and `protoc-gen-go-grpc` there with the `go` toolchain, and
runs `protoc` over `plugin.proto` in `../policy-plugin/proto`, relative to the
current directory. Unsupported platforms, download and build failures end with
exit status 1; a failed `protoc` run is logged.