"""
JSON Schema derivation and argument binding for function callbacks.

Schemas are derived from Python annotations; decoded JSON arguments are bound
back into the annotated types (dataclasses, enums, lists) before the user
function is invoked.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

_BASIC_TYPES: dict[Any, dict[str, Any]] = {
    str: {"type": "string"},
    int: {"type": "integer"},
    float: {"type": "number"},
    bool: {"type": "boolean"},
    type(None): {"type": "null"},
    Any: {},
}


def is_model_type(tp: Any) -> bool:
    """True for pydantic-style model classes (``model_validate`` + ``model_json_schema``)."""
    return isinstance(tp, type) and hasattr(tp, "model_validate") and hasattr(tp, "model_json_schema")


def is_input_type(tp: Any) -> bool:
    """True for types that describe a whole request object."""
    return (isinstance(tp, type) and dataclasses.is_dataclass(tp)) or is_model_type(tp)


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def python_type_to_json_schema(py_type: Any) -> dict[str, Any]:
    """Convert a Python type annotation to JSON Schema."""
    origin = get_origin(py_type)

    if _is_union(origin):
        non_none = [a for a in get_args(py_type) if a is not type(None)]
        if len(non_none) == 1:
            return python_type_to_json_schema(non_none[0])
        return {"anyOf": [python_type_to_json_schema(a) for a in non_none]}

    if origin is Literal:
        values = list(get_args(py_type))
        schema: dict[str, Any] = {"enum": values}
        kinds = {type(v) for v in values}
        if len(kinds) == 1:
            schema.update(_BASIC_TYPES.get(kinds.pop(), {}))
        return schema

    if origin in (list, set, frozenset, tuple) or origin in (Sequence,):
        args = [a for a in get_args(py_type) if a is not Ellipsis]
        items = python_type_to_json_schema(args[0]) if args else {}
        return {"type": "array", "items": items}

    if origin in (dict, Mapping):
        args = get_args(py_type)
        schema = {"type": "object"}
        if len(args) == 2 and args[1] is not Any:
            schema["additionalProperties"] = python_type_to_json_schema(args[1])
        return schema

    if py_type in (list, tuple, set):
        return {"type": "array"}
    if py_type is dict:
        return {"type": "object"}

    if isinstance(py_type, type) and issubclass(py_type, Enum):
        values = [m.value for m in py_type]
        schema = {"enum": values}
        if all(isinstance(v, str) for v in values):
            schema["type"] = "string"
        elif all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            schema["type"] = "integer"
        return schema

    if isinstance(py_type, type) and dataclasses.is_dataclass(py_type):
        return dataclass_to_json_schema(py_type)

    if is_model_type(py_type):
        return dict(py_type.model_json_schema())

    return dict(_BASIC_TYPES.get(py_type, {"type": "string"}))


def _docstring_param_descriptions(doc: str | None) -> dict[str, str]:
    """Pull ``name: description`` lines out of a Google-style docstring."""
    if not doc:
        return {}
    found: dict[str, str] = {}
    for line in inspect.cleandoc(doc).splitlines():
        line = line.strip()
        name, sep, rest = line.partition(":")
        if sep and name.isidentifier() and rest.strip():
            found.setdefault(name, rest.strip())
    return found


def dataclass_to_json_schema(cls: type) -> dict[str, Any]:
    """Object schema for a dataclass; fields without defaults are required."""
    hints = get_type_hints(cls)
    docs = _docstring_param_descriptions(cls.__doc__)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        prop = python_type_to_json_schema(hints.get(f.name, Any))
        description = f.metadata.get("description") or docs.get(f.name)
        if description:
            prop["description"] = description
        properties[f.name] = prop
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            required.append(f.name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def function_parameters_schema(func: Callable[..., Any]) -> dict[str, Any]:
    """Object schema built from a function's keyword parameters."""
    sig = inspect.signature(func)
    hints = get_type_hints(func)
    docs = _docstring_param_descriptions(func.__doc__)

    properties: dict[str, Any] = {}
    required: list[str] = []

    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls") or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop = python_type_to_json_schema(hints.get(param_name, str))
        if param_name in docs:
            prop["description"] = docs[param_name]
        properties[param_name] = prop
        if param.default is inspect.Parameter.empty:
            required.append(param_name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def single_input_type(func: Callable[..., Any]) -> type | None:
    """
    Return the request type when ``func`` takes exactly one dataclass/model argument.
    """
    params = [
        p
        for name, p in inspect.signature(func).parameters.items()
        if name not in ("self", "cls") and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
    ]
    if len(params) != 1:
        return None
    hint = get_type_hints(func).get(params[0].name)
    return hint if is_input_type(hint) else None


def function_description(func: Callable[..., Any]) -> str | None:
    """First paragraph of the docstring, without the Args section."""
    if not func.__doc__:
        return None
    doc = inspect.cleandoc(func.__doc__).split("\n\n")[0].strip()
    if "\nArgs:" in doc:
        doc = doc.split("\nArgs:")[0].strip()
    return doc or None


def bind_value(value: Any, py_type: Any) -> Any:
    """
    Convert decoded JSON into ``py_type``.

    Dataclasses are built recursively, enums looked up by value and
    pydantic-style models validated with ``model_validate``. Anything else is
    returned unchanged.
    """
    if value is None or py_type is Any:
        return value

    origin = get_origin(py_type)

    if _is_union(origin):
        non_none = [a for a in get_args(py_type) if a is not type(None)]
        if len(non_none) == 1:
            return bind_value(value, non_none[0])
        return value

    if origin in (list, set, frozenset, tuple, Sequence) and isinstance(value, list):
        args = [a for a in get_args(py_type) if a is not Ellipsis]
        items = [bind_value(v, args[0]) for v in value] if args else list(value)
        if origin in (set, frozenset, tuple):
            return origin(items)
        return items

    if origin in (dict, Mapping) and isinstance(value, dict):
        args = get_args(py_type)
        if len(args) == 2:
            return {k: bind_value(v, args[1]) for k, v in value.items()}
        return value

    if isinstance(py_type, type) and issubclass(py_type, Enum):
        return py_type(value)

    if isinstance(py_type, type) and dataclasses.is_dataclass(py_type) and isinstance(value, dict):
        hints = get_type_hints(py_type)
        known = {f.name for f in dataclasses.fields(py_type) if f.init}
        kwargs = {k: bind_value(v, hints.get(k, Any)) for k, v in value.items() if k in known}
        return py_type(**kwargs)

    if is_model_type(py_type):
        return py_type.model_validate(value)

    if py_type is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)

    return value


def bind_arguments(func: Callable[..., Any], arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Bind each keyword argument to its annotated parameter type.

    Raises:
        TypeError: an argument names no parameter and ``func`` takes no ``**kwargs``
    """
    params = inspect.signature(func).parameters
    if not any(p.kind is p.VAR_KEYWORD for p in params.values()):
        accepted = {n for n, p in params.items() if p.kind not in (p.VAR_POSITIONAL, p.POSITIONAL_ONLY)}
        unexpected = sorted(set(arguments) - accepted)
        if unexpected:
            raise TypeError(f"unexpected argument(s): {', '.join(unexpected)}")
    hints = get_type_hints(func)
    return {name: bind_value(value, hints.get(name, Any)) for name, value in arguments.items()}


__all__ = [
    "python_type_to_json_schema",
    "dataclass_to_json_schema",
    "function_parameters_schema",
    "function_description",
    "single_input_type",
    "is_input_type",
    "is_model_type",
    "bind_value",
    "bind_arguments",
]
