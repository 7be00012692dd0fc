"""
Configuration system for llm-adapters.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""

from .logging import LogFormat, LogLevel, LoggingConfig
from .functions import FunctionCallingConfig
from .provider import OllamaConfig, ProviderConfig
from .settings import Settings, configure, get_settings, load_env
from .vectorstore import (
    BatchingStrategyType,
    DistanceMetric,
    FieldType,
    MetadataField,
    RedisVectorStoreConfig,
    VectorAlgorithm,
)

__all__ = [
    # Types
    "LogLevel",
    "LogFormat",
    # Provider configs
    "ProviderConfig",
    "OllamaConfig",
    # Vector store configs
    "FieldType",
    "DistanceMetric",
    "VectorAlgorithm",
    "BatchingStrategyType",
    "MetadataField",
    "RedisVectorStoreConfig",
    # Other configs
    "FunctionCallingConfig",
    "LoggingConfig",
    # Master config
    "Settings",
    "get_settings",
    "configure",
    "load_env",
]
