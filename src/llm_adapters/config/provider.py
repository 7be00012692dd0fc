"""
Chat model provider configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProviderConfig:
    """Configuration shared by chat model providers."""

    base_url: str | None = None

    # Request settings
    timeout: float = 120.0

    # Model defaults
    default_model: str | None = None
    default_temperature: float | None = None

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.default_temperature is not None and not (0.0 <= self.default_temperature <= 2.0):
            raise ValueError("default_temperature must be between 0.0 and 2.0")


@dataclass
class OllamaConfig(ProviderConfig):
    """Ollama-specific configuration."""

    base_url: str = field(default_factory=lambda: os.getenv("OLLAMA_HOST", "http://localhost:11434"))
    default_model: str = "mistral"
    embedding_model: str = "mxbai-embed-large"

    # Passed through as the request `options` object (num_ctx, top_k, top_p, ...)
    options: dict[str, Any] = field(default_factory=dict)
    keep_alive: str | None = None

    def __post_init__(self):
        super().__post_init__()
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be a valid HTTP(S) URL")
        if not self.default_model:
            raise ValueError("default_model cannot be empty")


__all__ = ["ProviderConfig", "OllamaConfig"]
