"""
Function-calling chat.
"""

from .core import FunctionCallingChat
from .options import ChatOptions
from .result import ChatResult, RoundResult

__all__ = ["FunctionCallingChat", "ChatOptions", "ChatResult", "RoundResult"]
