"""
Function-call adapter.

Wraps user functions with a name, description and JSON input schema so a chat
model can request their invocation.
"""

from .base import FunctionCallback, FunctionCallbackRegistry, ResponseConverter, function_callback
from .decorators import callback
from .execution import execute_tool_call, execute_tool_calls
from .schema import python_type_to_json_schema

__all__ = [
    "FunctionCallback",
    "FunctionCallbackRegistry",
    "ResponseConverter",
    "function_callback",
    "callback",
    "execute_tool_call",
    "execute_tool_calls",
    "python_type_to_json_schema",
]
