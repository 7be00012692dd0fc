"""
Function callbacks for model-initiated function calling.

This module provides:
- FunctionCallback, an immutable descriptor wrapping a user function
- FunctionCallbackRegistry for registering and resolving callbacks by name
- function_callback() for building a callback from a plain function
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from ..concurrency import call_maybe_async
from ..errors import (
    DuplicateFunctionError,
    FunctionExecutionError,
    FunctionNotFoundError,
    SchemaMismatchError,
)
from ..serialization import structural_json_dumps
from ..validation import validate_against_schema, validate_function_definition
from .schema import (
    bind_arguments,
    bind_value,
    function_description,
    function_parameters_schema,
    is_input_type,
    python_type_to_json_schema,
    single_input_type,
)

ResponseConverter = Callable[[Any], str]


@dataclass(frozen=True)
class FunctionCallback:
    """
    Definition of a function the model may ask to invoke.

    Attributes:
        name: Unique identifier the model uses to request the function
        description: Natural-language hint shown to the model
        input_schema: JSON Schema (type object) of the arguments
        function: The wrapped callable (sync or async)
        input_type: Request type the arguments are bound into, or None to
            pass them as keyword arguments
        response_converter: Turns the return value into the text sent back

    Example:
        ```python
        @dataclass
        class WeatherRequest:
            location: str
            unit: Unit = Unit.C

        def current_weather(request: WeatherRequest) -> WeatherResponse:
            ...

        weather = function_callback(current_weather, description="Get the weather in location")
        output = await weather.call('{"location": "Paris"}')
        ```
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    function: Callable[..., Any] = field(repr=False, compare=False)
    input_type: type | None = None
    response_converter: ResponseConverter = field(default=structural_json_dumps, repr=False, compare=False)

    def __post_init__(self) -> None:
        validate_function_definition(self.name, self.description, self.input_schema)

    def to_tool_definition(self) -> dict[str, Any]:
        """Convert to the `tools` request format understood by Ollama and OpenAI-compatible APIs."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }

    def parse_arguments(self, arguments: str | dict[str, Any] | None) -> dict[str, Any]:
        """Decode and validate the arguments against ``input_schema``."""
        if arguments is None or arguments == "":
            args: Any = {}
        elif isinstance(arguments, str):
            try:
                args = json.loads(arguments)
            except json.JSONDecodeError as e:
                raise SchemaMismatchError(
                    f"Invalid JSON arguments for '{self.name}': {e.msg}", function_name=self.name, cause=e
                ) from e
        else:
            args = dict(arguments)

        if not isinstance(args, dict):
            raise SchemaMismatchError(f"Arguments for '{self.name}' must be a JSON object", function_name=self.name)

        result = validate_against_schema(args, self.input_schema)
        if not result:
            raise SchemaMismatchError(
                f"Arguments for '{self.name}' do not match its input schema: {'; '.join(result.errors)}",
                function_name=self.name,
            )
        return args

    def _bind(self, args: dict[str, Any]) -> tuple[tuple[Any, ...], dict[str, Any]]:
        try:
            if self.input_type is not None:
                return (bind_value(args, self.input_type),), {}
            return (), bind_arguments(self.function, args)
        except (TypeError, ValueError) as e:
            raise SchemaMismatchError(
                f"Cannot build the input for '{self.name}': {e}", function_name=self.name, cause=e
            ) from e

    async def call(self, arguments: str | dict[str, Any] | None) -> str:
        """
        Invoke the function with JSON-encoded arguments.

        Args:
            arguments: JSON object string (or an already decoded mapping)

        Returns:
            The function's result, serialized with ``response_converter``

        Raises:
            SchemaMismatchError: arguments are not valid JSON or do not fit the schema
            FunctionExecutionError: the function or the converter raised
        """
        args = self.parse_arguments(arguments)
        call_args, call_kwargs = self._bind(args)

        try:
            output = await call_maybe_async(self.function, *call_args, **call_kwargs)
        except Exception as e:
            raise FunctionExecutionError(
                f"Function '{self.name}' failed: {type(e).__name__}: {e}", function_name=self.name, cause=e
            ) from e

        try:
            return self.response_converter(output)
        except (TypeError, ValueError) as e:
            raise FunctionExecutionError(
                f"Cannot serialize the result of '{self.name}': {e}", function_name=self.name, cause=e
            ) from e


def function_callback(
    func: Callable[..., Any],
    *,
    name: str | None = None,
    description: str | None = None,
    input_type: type | None = None,
    input_schema: dict[str, Any] | None = None,
    response_converter: ResponseConverter | None = None,
) -> FunctionCallback:
    """
    Create a FunctionCallback from a function (sync or async).

    A function taking a single dataclass (or pydantic-style model) argument
    uses that type as its input shape; otherwise the keyword parameters
    define the schema.

    Args:
        func: Function to wrap
        name: Callback name (defaults to the function name)
        description: Description (defaults to the docstring's first paragraph)
        input_type: Request type (detected from the signature when omitted)
        input_schema: Explicit JSON Schema overriding the derived one
        response_converter: Result serializer (defaults to structural JSON)

    Example:
        ```python
        async def get_weather(city: str, units: str = "celsius") -> dict:
            '''Get current weather for a city.

            Args:
                city: Name of the city
                units: Temperature units
            '''
            return {"city": city, "temp": 21}

        weather = function_callback(get_weather)
        ```
    """
    if input_type is None:
        input_type = single_input_type(func)
    elif not is_input_type(input_type):
        raise TypeError(f"input_type must be a dataclass or model class, got {input_type!r}")

    if input_schema is None:
        input_schema = (
            python_type_to_json_schema(input_type) if input_type is not None else function_parameters_schema(func)
        )

    callback_name = name or getattr(func, "__name__", None)
    if not callback_name:
        raise TypeError("name is required for callables without __name__")

    return FunctionCallback(
        name=callback_name,
        description=description or function_description(func) or f"Execute {callback_name}",
        input_schema=input_schema,
        function=func,
        input_type=input_type,
        response_converter=response_converter or structural_json_dumps,
    )


class FunctionCallbackRegistry:
    """
    Registry of function callbacks keyed by name.

    Example:
        ```python
        registry = FunctionCallbackRegistry([weather])
        callback = registry.resolve("current_weather")
        tools = registry.to_tool_definitions()
        ```
    """

    def __init__(self, callbacks: Iterable[FunctionCallback] | None = None) -> None:
        self._callbacks: dict[str, FunctionCallback] = {}
        for callback in callbacks or ():
            self.register(callback)

    def register(self, callback: FunctionCallback) -> FunctionCallbackRegistry:
        """
        Register a callback.

        Raises:
            DuplicateFunctionError: a callback with the same name exists
        """
        if callback.name in self._callbacks:
            raise DuplicateFunctionError(callback.name)
        self._callbacks[callback.name] = callback
        return self

    def unregister(self, name: str) -> bool:
        return self._callbacks.pop(name, None) is not None

    def get(self, name: str) -> FunctionCallback | None:
        return self._callbacks.get(name)

    def resolve(self, name: str) -> FunctionCallback:
        """Look up a callback by exact name; raise FunctionNotFoundError if absent."""
        callback = self._callbacks.get(name)
        if callback is None:
            raise FunctionNotFoundError(function_name=name)
        return callback

    def resolve_many(self, names: Iterable[str]) -> list[FunctionCallback]:
        return [self.resolve(n) for n in names]

    def __contains__(self, name: object) -> bool:
        return name in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)

    def __iter__(self) -> Iterator[FunctionCallback]:
        return iter(self._callbacks.values())

    @property
    def names(self) -> list[str]:
        return list(self._callbacks)

    def to_tool_definitions(self, names: Iterable[str] | None = None) -> list[dict[str, Any]]:
        """Tool definitions for ``names`` (all callbacks when None)."""
        callbacks = self.resolve_many(names) if names is not None else self._callbacks.values()
        return [c.to_tool_definition() for c in callbacks]


__all__ = [
    "ResponseConverter",
    "FunctionCallback",
    "FunctionCallbackRegistry",
    "function_callback",
]
