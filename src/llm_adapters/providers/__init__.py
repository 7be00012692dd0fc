"""
Provider abstraction layer.

This module provides a provider-neutral interface for chat models with
function calling and for embedding models.
"""

from .base import BaseProvider, Provider
from .ollama import OllamaChatModel
from .types import (
    CompletionResult,
    EmbeddingResult,
    Message,
    MessageInput,
    Role,
    ToolCall,
    Usage,
    normalize_messages,
)

__all__ = [
    # Protocols and base classes
    "Provider",
    "BaseProvider",
    # Provider implementations
    "OllamaChatModel",
    # Types
    "Role",
    "ToolCall",
    "Message",
    "Usage",
    "CompletionResult",
    "EmbeddingResult",
    "MessageInput",
    "normalize_messages",
]
