"""
Decorators for defining function callbacks.

Provides the @callback decorator for converting functions to FunctionCallback instances.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar, overload

from .base import FunctionCallback, ResponseConverter, function_callback

F = TypeVar("F", bound=Callable[..., Any])


@overload
def callback(func: F) -> FunctionCallback: ...


@overload
def callback(
    *,
    name: str | None = None,
    description: str | None = None,
    input_type: type | None = None,
    input_schema: dict[str, Any] | None = None,
    response_converter: ResponseConverter | None = None,
) -> Callable[[F], FunctionCallback]: ...


def callback(
    func: F | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    input_type: type | None = None,
    input_schema: dict[str, Any] | None = None,
    response_converter: ResponseConverter | None = None,
) -> FunctionCallback | Callable[[F], FunctionCallback]:
    """
    Decorator to convert a sync or async function into a FunctionCallback.

    Can be used with or without arguments:

    ```python
    @callback
    async def search(query: str) -> list[str]:
        '''Search the knowledge base.'''
        ...

    @callback(name="currentWeather", description="Get the weather in location")
    def weather(request: WeatherRequest) -> WeatherResponse:
        ...
    ```
    """

    def decorator(fn: F) -> FunctionCallback:
        return function_callback(
            fn,
            name=name,
            description=description,
            input_type=input_type,
            input_schema=input_schema,
            response_converter=response_converter,
        )

    if func is not None:
        return decorator(func)

    return decorator


__all__ = ["callback"]
