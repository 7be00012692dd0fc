"""
Settings master configuration and global helpers.
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import find_dotenv, load_dotenv

from ..config_schema import CONFIG_SCHEMA
from ..errors import InvalidConfigError
from .functions import FunctionCallingConfig
from .logging import LoggingConfig
from .provider import OllamaConfig
from .vectorstore import MetadataField, RedisVectorStoreConfig


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Master configuration for the adapters.

    Aggregates every configuration section into a single object that can be
    loaded from environment variables, files, or constructed programmatically.
    """

    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    vector_store: RedisVectorStoreConfig = field(default_factory=RedisVectorStoreConfig)
    functions: FunctionCallingConfig = field(default_factory=FunctionCallingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "LLM_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            LLM_OLLAMA_MODEL=llama3.2
            LLM_VECTOR_STORE_INDEX=docs-index
            LLM_VECTOR_STORE_METADATA_FIELDS=country:tag,year:numeric
            LLM_FUNCTIONS_MAX_ROUNDS=5
        """
        data: dict[str, dict[str, Any]] = {"ollama": {}, "vector_store": {}, "functions": {}, "logging": {}}

        if url := os.getenv(f"{prefix}OLLAMA_BASE_URL"):
            data["ollama"]["base_url"] = url
        if model := os.getenv(f"{prefix}OLLAMA_MODEL"):
            data["ollama"]["default_model"] = model
        if embedding_model := os.getenv(f"{prefix}OLLAMA_EMBEDDING_MODEL"):
            data["ollama"]["embedding_model"] = embedding_model
        if timeout := os.getenv(f"{prefix}OLLAMA_TIMEOUT"):
            data["ollama"]["timeout"] = float(timeout)

        if redis_url := os.getenv(f"{prefix}REDIS_URL"):
            data["vector_store"]["url"] = redis_url
        if index := os.getenv(f"{prefix}VECTOR_STORE_INDEX"):
            data["vector_store"]["index_name"] = index
        if key_prefix := os.getenv(f"{prefix}VECTOR_STORE_PREFIX"):
            data["vector_store"]["prefix"] = key_prefix
        if init := os.getenv(f"{prefix}VECTOR_STORE_INITIALIZE_SCHEMA"):
            data["vector_store"]["initialize_schema"] = _env_bool(init)
        if strategy := os.getenv(f"{prefix}VECTOR_STORE_BATCHING_STRATEGY"):
            data["vector_store"]["batching_strategy"] = strategy.upper()
        if fields := os.getenv(f"{prefix}VECTOR_STORE_METADATA_FIELDS"):
            data["vector_store"]["metadata_fields"] = [
                {"name": name.strip(), "type": kind.strip().upper()}
                for name, _, kind in (item.partition(":") for item in fields.split(",") if item.strip())
            ]

        if max_rounds := os.getenv(f"{prefix}FUNCTIONS_MAX_ROUNDS"):
            data["functions"]["max_rounds"] = int(max_rounds)
        if parallel := os.getenv(f"{prefix}FUNCTIONS_PARALLEL_CALLS"):
            data["functions"]["parallel_calls"] = _env_bool(parallel)

        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            data["logging"]["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            data["logging"]["format"] = log_format.lower()

        return cls._from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """Validate a raw mapping against CONFIG_SCHEMA and build Settings from it."""
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            path = ".".join(str(p) for p in e.absolute_path)
            where = f" at '{path}'" if path else ""
            raise InvalidConfigError(f"Configuration validation failed{where}: {e.message}", cause=e) from e

        try:
            vector_data = dict(data.get("vector_store", {}))
            if "metadata_fields" in vector_data:
                vector_data["metadata_fields"] = [MetadataField.from_dict(f) for f in vector_data["metadata_fields"]]

            return cls(
                ollama=OllamaConfig(**data.get("ollama", {})),
                vector_store=RedisVectorStoreConfig(**vector_data),
                functions=FunctionCallingConfig(**data.get("functions", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except ValueError as e:
            raise InvalidConfigError(str(e), cause=e) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary."""

        def convert(obj):
            if dataclasses.is_dataclass(obj):
                return {f.name: convert(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
            if isinstance(obj, Enum):
                return obj.value
            if isinstance(obj, Path):
                return str(obj)
            if isinstance(obj, list):
                return [convert(v) for v in obj]
            if isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        data = convert(self)
        # MetadataField serializes as {"name", "type"} to round-trip through from_file
        data["vector_store"]["metadata_fields"] = [
            {"name": f.name, "type": f.field_type.value} for f in self.vector_store.metadata_fields
        ]
        return data


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from the environment if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Settings | None = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override whole sections (e.g. ``functions=FunctionCallingConfig(...)``)
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if not hasattr(_global_settings, key):
            raise InvalidConfigError(f"Unknown settings section: {key}")
        setattr(_global_settings, key, value)

    return _global_settings


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "get_settings", "configure", "load_env"]
