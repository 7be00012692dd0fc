"""
Top-level package for llm-adapters.

Thin adapters for model-initiated function calling (Ollama) and for a Redis
vector store with portable metadata filters.

Environment variables are loaded from the nearest `.env` on import so
OLLAMA_HOST, REDIS_URL and the LLM_* settings are picked up.
"""
from dotenv import find_dotenv, load_dotenv

_ = load_dotenv(find_dotenv(usecwd=True), override=False)

from .batching import FixedSizeBatchingStrategy, TokenCountBatchingStrategy
from .chat import ChatOptions, ChatResult, FunctionCallingChat, RoundResult
from .config import (
    FunctionCallingConfig,
    LoggingConfig,
    OllamaConfig,
    RedisVectorStoreConfig,
    Settings,
    configure,
    get_settings,
)
from .embeddings import EmbeddingModel, ProviderEmbeddingModel
from .errors import (
    DuplicateFunctionError,
    FilterSyntaxError,
    FilterTranslationError,
    FunctionExecutionError,
    FunctionNotFoundError,
    LLMAdapterError,
    MaxRoundsExceededError,
    SchemaMismatchError,
    SchemaNotInitializedError,
    UnknownFilterFieldError,
)
from .logging import configure_logging, configure_logging_from_config, get_logger
from .providers import CompletionResult, Message, OllamaChatModel, Role, ToolCall, Usage
from .tools import FunctionCallback, FunctionCallbackRegistry, callback, execute_tool_calls, function_callback
from .vectorstores import (
    Document,
    FieldType,
    FilterExpressionBuilder,
    InMemoryVectorStore,
    MetadataField,
    RedisFilterExpressionConverter,
    RedisVectorStore,
    SearchRequest,
    parse_filter,
)

__version__ = "0.1.0"

__all__ = [
    # Function calling
    "FunctionCallback",
    "FunctionCallbackRegistry",
    "function_callback",
    "callback",
    "execute_tool_calls",
    "FunctionCallingChat",
    "ChatOptions",
    "ChatResult",
    "RoundResult",
    # Providers
    "OllamaChatModel",
    "Message",
    "Role",
    "ToolCall",
    "Usage",
    "CompletionResult",
    # Embeddings
    "EmbeddingModel",
    "ProviderEmbeddingModel",
    "TokenCountBatchingStrategy",
    "FixedSizeBatchingStrategy",
    # Vector stores
    "Document",
    "SearchRequest",
    "MetadataField",
    "FieldType",
    "RedisVectorStore",
    "InMemoryVectorStore",
    "RedisFilterExpressionConverter",
    "FilterExpressionBuilder",
    "parse_filter",
    # Configuration
    "Settings",
    "OllamaConfig",
    "RedisVectorStoreConfig",
    "FunctionCallingConfig",
    "LoggingConfig",
    "get_settings",
    "configure",
    # Logging
    "get_logger",
    "configure_logging",
    "configure_logging_from_config",
    # Errors
    "LLMAdapterError",
    "FunctionNotFoundError",
    "SchemaMismatchError",
    "FunctionExecutionError",
    "DuplicateFunctionError",
    "MaxRoundsExceededError",
    "SchemaNotInitializedError",
    "UnknownFilterFieldError",
    "FilterTranslationError",
    "FilterSyntaxError",
]
