"""
Error taxonomy for llm-adapters.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Retryable vs non-retryable classification
- Structured context for debugging
- HTTP status mapping for chat model providers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for the adapters."""

    # Provider errors (1xxx)
    PROVIDER_ERROR = "ERR_1000"
    MODEL_NOT_FOUND = "ERR_1004"
    PROVIDER_UNAVAILABLE = "ERR_1007"
    PROVIDER_TIMEOUT = "ERR_1008"
    INVALID_RESPONSE = "ERR_1009"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "ERR_2000"
    INVALID_MESSAGE = "ERR_2001"
    INVALID_FUNCTION = "ERR_2002"
    INVALID_SCHEMA = "ERR_2005"

    # Vector store errors (3xxx)
    VECTOR_STORE_ERROR = "ERR_3000"
    SCHEMA_NOT_INITIALIZED = "ERR_3001"
    UNKNOWN_FILTER_FIELD = "ERR_3002"
    FILTER_TRANSLATION = "ERR_3003"
    FILTER_SYNTAX = "ERR_3004"
    STORE_CONNECTION = "ERR_3005"

    # Function calling errors (4xxx)
    FUNCTION_ERROR = "ERR_4000"
    FUNCTION_NOT_FOUND = "ERR_4001"
    FUNCTION_EXECUTION_ERROR = "ERR_4002"
    SCHEMA_MISMATCH = "ERR_4004"
    DUPLICATE_FUNCTION = "ERR_4005"

    # Conversation errors (5xxx)
    CONVERSATION_ERROR = "ERR_5000"
    MAX_ROUNDS_EXCEEDED = "ERR_5001"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"
    INVALID_CONFIG = "ERR_6002"

    # Embedding errors (7xxx)
    EMBEDDING_ERROR = "ERR_7000"
    BATCH_TOO_LARGE = "ERR_7001"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    request_id: str | None = None
    trace_id: str | None = None
    provider: str | None = None
    model: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "trace_id": self.trace_id,
            "provider": self.provider,
            "model": self.model,
            "operation": self.operation,
            **self.extra,
        }


class LLMAdapterError(Exception):
    """
    Base exception for all adapter errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        retryable: Whether the operation could succeed if attempted again
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.request_id:
            parts.append(f"(request_id={self.context.request_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(LLMAdapterError):
    """Base class for errors from chat/embedding model providers."""

    code = ErrorCode.PROVIDER_ERROR
    retryable = False
    http_status: int | None = None

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.http_status = http_status


class ModelNotFoundError(ProviderError):
    """Requested model is not available on the server (e.g. not pulled)."""

    code = ErrorCode.MODEL_NOT_FOUND
    retryable = False

    def __init__(
        self,
        message: str = "Model not found",
        *,
        model: str | None = None,
        **kwargs,
    ):
        if model:
            message = f"Model not found: {model}"
        super().__init__(message, http_status=404, **kwargs)


class ProviderUnavailableError(ProviderError):
    """Provider service is unreachable or temporarily unavailable."""

    code = ErrorCode.PROVIDER_UNAVAILABLE
    retryable = True

    def __init__(
        self,
        message: str = "Provider service unavailable",
        **kwargs,
    ):
        super().__init__(message, http_status=503, **kwargs)


class ProviderTimeoutError(ProviderError):
    """Request to provider timed out."""

    code = ErrorCode.PROVIDER_TIMEOUT
    retryable = True

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        timeout: float | None = None,
        **kwargs,
    ):
        super().__init__(message, http_status=504, **kwargs)
        self.timeout = timeout


class InvalidResponseError(ProviderError):
    """Provider returned an invalid or unexpected response."""

    code = ErrorCode.INVALID_RESPONSE
    retryable = False

    def __init__(
        self,
        message: str = "Invalid response from provider",
        **kwargs,
    ):
        kwargs.setdefault("http_status", 500)
        super().__init__(message, **kwargs)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(LLMAdapterError, ValueError):
    """Base class for input/output validation errors."""

    code = ErrorCode.VALIDATION_ERROR
    retryable = False


class InvalidMessageError(ValidationError):
    """Message format is invalid."""

    code = ErrorCode.INVALID_MESSAGE


class InvalidFunctionError(ValidationError):
    """Function callback definition is invalid."""

    code = ErrorCode.INVALID_FUNCTION


class InvalidSchemaError(ValidationError):
    """A JSON schema is itself malformed."""

    code = ErrorCode.INVALID_SCHEMA


# =============================================================================
# Function Calling Errors
# =============================================================================


class FunctionCallError(LLMAdapterError):
    """Base class for function-call adapter errors."""

    code = ErrorCode.FUNCTION_ERROR
    retryable = False

    def __init__(self, message: str, *, function_name: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.function_name = function_name


class FunctionNotFoundError(FunctionCallError):
    """The model requested a function name that is not registered."""

    code = ErrorCode.FUNCTION_NOT_FOUND

    def __init__(
        self,
        message: str = "Function not found",
        *,
        function_name: str | None = None,
        **kwargs,
    ):
        if function_name:
            message = f"Function not found: {function_name}"
        super().__init__(message, function_name=function_name, **kwargs)


class SchemaMismatchError(FunctionCallError):
    """Call arguments do not conform to the function's input schema."""

    code = ErrorCode.SCHEMA_MISMATCH


class FunctionExecutionError(FunctionCallError):
    """The wrapped function raised while handling a call."""

    code = ErrorCode.FUNCTION_EXECUTION_ERROR


class DuplicateFunctionError(FunctionCallError):
    """A callback with the same name is already registered."""

    code = ErrorCode.DUPLICATE_FUNCTION

    def __init__(self, function_name: str, **kwargs):
        super().__init__(
            f"Function '{function_name}' is already registered",
            function_name=function_name,
            **kwargs,
        )


# =============================================================================
# Conversation Errors
# =============================================================================


class ConversationError(LLMAdapterError):
    """Base class for chat loop errors."""

    code = ErrorCode.CONVERSATION_ERROR
    retryable = False


class MaxRoundsExceededError(ConversationError):
    """The model kept requesting function calls past the round limit."""

    code = ErrorCode.MAX_ROUNDS_EXCEEDED

    def __init__(
        self,
        message: str = "Maximum function-calling rounds exceeded",
        *,
        max_rounds: int | None = None,
        **kwargs,
    ):
        if max_rounds is not None:
            message = f"{message} ({max_rounds})"
        super().__init__(message, **kwargs)
        self.max_rounds = max_rounds


# =============================================================================
# Vector Store Errors
# =============================================================================


class VectorStoreError(LLMAdapterError):
    """Base class for vector store adapter errors."""

    code = ErrorCode.VECTOR_STORE_ERROR
    retryable = False


class SchemaNotInitializedError(VectorStoreError):
    """The vector index does not exist and schema creation is disabled."""

    code = ErrorCode.SCHEMA_NOT_INITIALIZED

    def __init__(self, index_name: str, **kwargs):
        super().__init__(
            f"Index '{index_name}' does not exist; create it externally or enable initialize_schema",
            **kwargs,
        )
        self.index_name = index_name


class UnknownFilterFieldError(VectorStoreError):
    """A filter expression references a field that was not declared."""

    code = ErrorCode.UNKNOWN_FILTER_FIELD

    def __init__(self, field_name: str, known_fields: list[str] | None = None, **kwargs):
        message = f"Filter field '{field_name}' is not a declared metadata field"
        if known_fields:
            message += f" (declared: {', '.join(sorted(known_fields))})"
        super().__init__(message, **kwargs)
        self.field_name = field_name


class FilterTranslationError(VectorStoreError):
    """The expression shape cannot be expressed in the native query grammar."""

    code = ErrorCode.FILTER_TRANSLATION


class FilterSyntaxError(VectorStoreError, ValueError):
    """A portable filter string could not be parsed."""

    code = ErrorCode.FILTER_SYNTAX

    def __init__(self, message: str, *, position: int | None = None, text: str | None = None, **kwargs):
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message, **kwargs)
        self.position = position
        self.text = text


class VectorStoreConnectionError(VectorStoreError):
    """The database client could not reach the server."""

    code = ErrorCode.STORE_CONNECTION
    retryable = True


# =============================================================================
# Embedding Errors
# =============================================================================


class EmbeddingError(LLMAdapterError):
    """Embedding computation failed or returned unusable vectors."""

    code = ErrorCode.EMBEDDING_ERROR
    retryable = False


class BatchingError(EmbeddingError):
    """A document cannot fit in any embedding batch."""

    code = ErrorCode.BATCH_TOO_LARGE


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(LLMAdapterError):
    """Base class for configuration errors."""

    code = ErrorCode.CONFIG_ERROR
    retryable = False


class InvalidConfigError(ConfigError, ValueError):
    """Configuration is invalid."""

    code = ErrorCode.INVALID_CONFIG


# =============================================================================
# Error Mapping from HTTP Status Codes
# =============================================================================


def error_from_status(
    status: int,
    message: str,
    *,
    provider: str | None = None,
    model: str | None = None,
    context: ErrorContext | None = None,
) -> ProviderError:
    """
    Create an appropriate ProviderError from an HTTP status code.

    Args:
        status: HTTP status code
        message: Error message from the provider
        provider: Provider name for context
        model: Model name, used in the not-found message
        context: Additional error context

    Returns:
        Appropriate ProviderError subclass
    """
    ctx = context or ErrorContext(provider=provider, model=model)

    if status == 404:
        return ModelNotFoundError(model=model, context=ctx) if model else ModelNotFoundError(message, context=ctx)
    if status in (502, 503):
        return ProviderUnavailableError(message, context=ctx)
    if status == 504:
        return ProviderTimeoutError(message, context=ctx)
    if status in (400, 500):
        return InvalidResponseError(message, http_status=status, context=ctx)
    return ProviderError(message, http_status=status, context=ctx)


def is_retryable(error: Exception) -> bool:
    """Library errors carry their own flag; bare connection and timeout errors are retryable."""
    if isinstance(error, LLMAdapterError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    # Base
    "ErrorCode",
    "ErrorContext",
    "LLMAdapterError",
    # Provider errors
    "ProviderError",
    "ModelNotFoundError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "InvalidResponseError",
    # Validation errors
    "ValidationError",
    "InvalidMessageError",
    "InvalidFunctionError",
    "InvalidSchemaError",
    # Function calling errors
    "FunctionCallError",
    "FunctionNotFoundError",
    "SchemaMismatchError",
    "FunctionExecutionError",
    "DuplicateFunctionError",
    # Conversation errors
    "ConversationError",
    "MaxRoundsExceededError",
    # Vector store errors
    "VectorStoreError",
    "SchemaNotInitializedError",
    "UnknownFilterFieldError",
    "FilterTranslationError",
    "FilterSyntaxError",
    "VectorStoreConnectionError",
    # Embedding errors
    "EmbeddingError",
    "BatchingError",
    # Config errors
    "ConfigError",
    "InvalidConfigError",
    # Utilities
    "error_from_status",
    "is_retryable",
]
