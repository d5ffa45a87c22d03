"""A registry of typed functions, built from plain Python callables."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from tfpolicy import cty
from tfpolicy.types import _unwrap_optional, to_cty_type
from tfpolicy.values import from_cty_value, to_cty_value


@dataclass(frozen=True)
class Parameter:
    """The description of one function parameter."""

    type: cty.Type
    name: str = ""
    description: str = ""
    allow_null: bool = False
    allow_unknown: bool = False
    allow_dynamic_type: bool = False
    allow_marked: bool = False


@dataclass(frozen=True)
class Function:
    """A function over typed values with a fixed signature."""

    params: tuple[Parameter, ...]
    result_type: cty.Type
    impl: Callable[[list[cty.Value], cty.Type], cty.Value]
    var_param: Parameter | None = None
    description: str = ""

    def _checked_params(self, count: int) -> list[Parameter]:
        if count < len(self.params):
            raise ValueError(f"not enough arguments: want {len(self.params)}, got {count}")
        if count > len(self.params) and self.var_param is None:
            raise ValueError("too many arguments")
        return list(self.params) + [self.var_param] * (count - len(self.params))

    @staticmethod
    def _check_type(i: int, param: Parameter, got: cty.Type) -> None:
        if param.type.kind is not cty.Kind.DYNAMIC and got != param.type:
            raise TypeError(
                f"argument {i}: want {param.type.friendly_name()}, got {got.friendly_name()}"
            )

    def return_type(self, arg_types: Sequence[cty.Type]) -> cty.Type:
        """Return the result type for arguments of the given types."""
        for i, (param, arg_type) in enumerate(zip(self._checked_params(len(arg_types)), arg_types)):
            self._check_type(i, param, arg_type)
        return self.result_type

    def return_type_for_values(self, args: Sequence[cty.Value]) -> cty.Type:
        return self.return_type([arg.type for arg in args])

    def call(self, args: Sequence[cty.Value]) -> cty.Value:
        """Check the arguments against the signature and run the function."""
        args = list(args)
        for i, (param, arg) in enumerate(zip(self._checked_params(len(args)), args)):
            if arg.is_null():
                if not param.allow_null:
                    raise ValueError(f"argument {i} must not be null")
            else:
                self._check_type(i, param, arg.type)
        return self.impl(args, self.result_type)


_functions: dict[str, Function] = {}


def register_function_direct(name: str, fn: Function) -> None:
    """Register an already built function under a name."""
    if name in _functions:
        raise ValueError("function already registered")
    _functions[name] = fn


def registered_functions() -> Mapping[str, Function]:
    """A snapshot of every registered function by name."""
    return dict(_functions)


def lookup_function(name: str) -> Function:
    try:
        return _functions[name]
    except KeyError:
        raise LookupError(f"function {name} not found") from None


def call_function(name: str, *args: cty.Value) -> cty.Value:
    """Call a registered function by name."""
    return lookup_function(name).call(args)


def _parameter(hint: Any, name: str, index: int, fn_name: str) -> Parameter:
    try:
        type_ = to_cty_type(hint)
    except Exception as err:
        raise TypeError(f"invalid parameter {index} for {fn_name}: {err}") from err
    optional = _unwrap_optional(hint)[1]
    return Parameter(type=type_, name=name, allow_null=optional or type_.is_collection())


def _code_target(fn: Callable[..., Any]) -> tuple[Any, int]:
    """The plain function behind ``fn`` and how many leading arguments are bound."""
    if inspect.isfunction(fn):
        return fn, 0
    if inspect.ismethod(fn) and inspect.isfunction(fn.__func__):
        return fn.__func__, 1
    call = getattr(type(fn), "__call__", None)
    if inspect.isfunction(call):
        return call, 1
    raise TypeError("fn must be a function")


def _argument_names(
    target: Any, skip: int, fn_name: str
) -> tuple[list[str], str | None]:
    code = target.__code__
    names = code.co_varnames
    argcount = code.co_argcount
    kwonly = code.co_kwonlyargcount
    positional = list(names[skip:argcount])
    variadic = names[argcount + kwonly] if code.co_flags & inspect.CO_VARARGS else None
    if kwonly or code.co_flags & inspect.CO_VARKEYWORDS:
        index = len(positional) + (1 if variadic else 0)
        raise TypeError(f"invalid parameter {index} for {fn_name}: must be positional")
    return positional, variadic


def _hint(annotations: Mapping[str, Any], key: str, index: int, fn_name: str) -> Any:
    if key not in annotations:
        raise TypeError(f"invalid parameter {index} for {fn_name}: missing annotation")
    hint = annotations[key]
    if isinstance(hint, str):
        raise TypeError(
            f"invalid parameter {index} for {fn_name}: unresolved annotation {hint!r}"
        )
    return hint


def register_function(name: str, fn: Callable[..., Any]) -> None:
    """Register a Python callable, deriving its signature from annotations.

    Parameters and the return value must be annotated; ``*args`` becomes the
    variadic parameter. Optional and collection parameters accept null.
    """
    if not callable(fn):
        raise TypeError("fn must be a function")
    target, skip = _code_target(fn)
    annotations = dict(getattr(target, "__annotations__", None) or {})
    if "return" not in annotations:
        raise TypeError("function must declare a return type")

    positional_names, variadic_name = _argument_names(target, skip, name)

    positional_hints: list[Any] = []
    params: list[Parameter] = []
    for index, arg_name in enumerate(positional_names):
        hint = _hint(annotations, arg_name, index, name)
        positional_hints.append(hint)
        params.append(_parameter(hint, arg_name, index, name))

    variadic_hint: Any = None
    variadic: Parameter | None = None
    if variadic_name is not None:
        index = len(positional_names)
        variadic_hint = _hint(annotations, variadic_name, index, name)
        variadic = _parameter(variadic_hint, variadic_name, index, name)

    return_hint = annotations["return"]
    if isinstance(return_hint, str):
        raise TypeError(f"invalid return type: unresolved annotation {return_hint!r}")
    try:
        return_type = to_cty_type(return_hint)
    except Exception as err:
        raise TypeError(f"invalid return type: {err}") from err

    def impl(args: list[cty.Value], ret_type: cty.Type) -> cty.Value:
        arguments = []
        for i, arg in enumerate(args):
            is_variadic = i >= len(positional_hints)
            try:
                arguments.append(
                    from_cty_value(arg, variadic_hint if is_variadic else positional_hints[i])
                )
            except Exception as err:
                label = "variadic argument" if is_variadic else "argument"
                raise ValueError(f"failed to convert {label} {i}: {err}") from err
        result = fn(*arguments)
        try:
            return to_cty_value(result, return_type)
        except Exception as err:
            raise ValueError(f"failed to convert result: {err}") from err

    register_function_direct(
        name,
        Function(
            params=tuple(params),
            result_type=return_type,
            impl=impl,
            var_param=variadic,
            description=inspect.getdoc(fn) or "",
        ),
    )