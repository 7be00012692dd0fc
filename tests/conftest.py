"""
Shared test fixtures and fakes for llm-adapters tests.

This module provides:
- Mock chat model returning scripted completions
- Deterministic bag-of-words embedding model
- Fake Redis client recording commands and answering KNN searches
- Sample function callbacks
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pytest
from redis.exceptions import ResponseError

from llm_adapters.providers.types import CompletionResult, EmbeddingResult, ToolCall, Usage
from llm_adapters.tools.base import function_callback

# =============================================================================
# Mock Response Factories
# =============================================================================


def make_usage(input_tokens: int = 10, output_tokens: int = 20) -> Usage:
    return Usage(input_tokens=input_tokens, output_tokens=output_tokens, total_tokens=input_tokens + output_tokens)


def make_tool_call(
    id: str = "call_test123",
    name: str = "current_weather",
    arguments: str = '{"location": "Paris"}',
) -> ToolCall:
    return ToolCall(id=id, name=name, arguments=arguments)


def make_completion_result(
    content: str | None = "Test response",
    tool_calls: list[ToolCall] | None = None,
    usage: Usage | None = None,
    model: str = "mistral",
    finish_reason: str = "stop",
) -> CompletionResult:
    return CompletionResult(
        content=content,
        tool_calls=tool_calls,
        usage=usage or make_usage(),
        model=model,
        finish_reason=finish_reason,
    )


# =============================================================================
# Mock Chat Model
# =============================================================================


class MockChatModel:
    """Chat model returning scripted completions and recording each request."""

    name = "mock"

    def __init__(self, responses: list[CompletionResult] | None = None, model: str = "mistral"):
        self._model_name = model
        self._responses = responses or [make_completion_result()]
        self.calls: list[dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return self._model_name

    async def complete(self, messages, *, tools=None, **kwargs) -> CompletionResult:
        self.calls.append({"messages": list(messages), "tools": tools, "kwargs": kwargs})
        return self._responses[min(len(self.calls) - 1, len(self._responses) - 1)]

    async def embed(self, inputs, *, model=None, **kwargs) -> EmbeddingResult:
        texts = [inputs] if isinstance(inputs, str) else list(inputs)
        return EmbeddingResult(embeddings=[bag_of_words(t) for t in texts], model=model or "mock-embed")

    async def close(self) -> None:
        pass


# =============================================================================
# Embeddings
# =============================================================================

EMBED_DIM = 16


def bag_of_words(text: str, dim: int = EMBED_DIM) -> list[float]:
    """Stable word-count vector; identical texts give identical vectors."""
    vector = [0.0] * dim
    for word in text.lower().split():
        vector[sum(map(ord, word)) % dim] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeEmbeddingModel:
    """EmbeddingModel recording every batch it embeds."""

    def __init__(self, dim: int = EMBED_DIM):
        self.dim = dim
        self.batches: list[list[str]] = []

    async def embed(self, texts):
        texts = list(texts)
        self.batches.append(texts)
        return [bag_of_words(t, self.dim) for t in texts]

    async def embed_one(self, text):
        return (await self.embed([text]))[0]

    async def dimensions(self) -> int:
        return self.dim

    @property
    def call_count(self) -> int:
        return len(self.batches)


# =============================================================================
# Fake Redis
# =============================================================================


class FakePipeline:
    def __init__(self, redis: FakeRedis, transaction: bool):
        self.redis = redis
        self.transaction = transaction
        self.queued: list[tuple[Any, ...]] = []

    def execute_command(self, *args: Any) -> FakePipeline:
        self.queued.append(args)
        return self

    async def execute(self) -> list[Any]:
        self.redis.pipelines.append(self)
        return [await self.redis.execute_command(*args) for args in self.queued]


class FakeRedis:
    """
    Minimal stand-in for redis.asyncio.Redis speaking the commands the store uses.

    FT.SEARCH ignores the filter part of the query and ranks every stored
    document by cosine distance.
    """

    def __init__(self, *, existing_indexes: tuple[str, ...] = ()):
        self.commands: list[tuple[Any, ...]] = []
        self.pipelines: list[FakePipeline] = []
        self.indexes: dict[str, tuple[Any, ...]] = {name: () for name in existing_indexes}
        self.docs: dict[str, dict[str, Any]] = {}
        self.closed = False

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    def commands_named(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.commands if c[0] == name]

    async def execute_command(self, *args: Any) -> Any:
        self.commands.append(args)
        name = args[0]
        if name == "FT.INFO":
            if args[1] not in self.indexes:
                raise ResponseError("Unknown index name")
            return [b"index_name", args[1].encode()]
        if name == "FT.CREATE":
            self.indexes[args[1]] = args
            return b"OK"
        if name == "FT.DROPINDEX":
            self.indexes.pop(args[1], None)
            return b"OK"
        if name == "JSON.SET":
            self.docs[args[1]] = json.loads(args[3])
            return b"OK"
        if name == "DEL":
            removed = [k for k in args[1:] if self.docs.pop(k, None) is not None]
            return len(removed)
        if name == "FT.SEARCH":
            return self._search(args)
        raise ResponseError(f"unknown command '{name}'")

    def _search(self, args: tuple[Any, ...]) -> list[Any]:
        params = list(args)
        blob = params[params.index("BLOB") + 1]
        k = int(params[params.index("LIMIT") + 2])
        query = np.frombuffer(blob, dtype=np.float32)

        scored = []
        for key, doc in self.docs.items():
            vector = np.asarray(doc["embedding"], dtype=np.float32)
            cos = float(vector @ query / (np.linalg.norm(vector) * np.linalg.norm(query)))
            scored.append((1.0 - cos, key, doc))
        scored.sort(key=lambda t: t[0])

        reply: list[Any] = [len(scored)]
        for distance, key, doc in scored[:k]:
            reply.append(key.encode())
            reply.append([b"$", json.dumps(doc).encode(), b"vector_score", str(distance).encode()])
        return reply

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# Sample Callbacks
# =============================================================================


class Unit(str, Enum):
    C = "C"
    F = "F"


@dataclass
class WeatherRequest:
    location: str
    unit: Unit = Unit.C


@dataclass
class WeatherResponse:
    temp: float
    unit: Unit


def current_weather(request: WeatherRequest) -> WeatherResponse:
    """Get the weather in location."""
    temps = {"San Francisco": 30.0, "Tokyo": 10.0, "Paris": 15.0}
    return WeatherResponse(temp=temps.get(request.location, 20.0), unit=request.unit)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def weather_callback():
    return function_callback(current_weather, name="current_weather")


@pytest.fixture
def mock_chat_model():
    """Factory for MockChatModel with scripted responses."""

    def _factory(responses=None, model="mistral"):
        return MockChatModel(responses=responses, model=model)

    return _factory


@pytest.fixture
def embedding_model():
    return FakeEmbeddingModel()


@pytest.fixture
def fake_redis():
    return FakeRedis()
