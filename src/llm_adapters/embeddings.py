"""
Embedding model abstraction.

Vector stores depend on the EmbeddingModel protocol; ProviderEmbeddingModel
adapts any provider exposing ``embed`` (such as OllamaChatModel).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .errors import EmbeddingError
from .validation import validate_embedding_inputs

if TYPE_CHECKING:
    from .batching import BatchingStrategy
    from .providers.base import Provider
    from .vectorstores.document import Document


@runtime_checkable
class EmbeddingModel(Protocol):
    """Anything that turns texts into fixed-size vectors."""

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts, one vector per input in input order."""
        ...

    async def embed_one(self, text: str) -> list[float]: ...

    async def dimensions(self) -> int:
        """Vector length produced by this model."""
        ...


def check_embeddings(embeddings: Sequence[Sequence[float]], expected: int) -> list[list[float]]:
    """Validate count, uniform length and finiteness of a batch of vectors."""
    if len(embeddings) != expected:
        raise EmbeddingError(f"Expected {expected} embeddings, got {len(embeddings)}")
    vectors = [[float(x) for x in v] for v in embeddings]
    lengths = {len(v) for v in vectors}
    if len(lengths) > 1:
        raise EmbeddingError(f"Embeddings have inconsistent dimensions: {sorted(lengths)}")
    if 0 in lengths:
        raise EmbeddingError("Embedding model returned an empty vector")
    for v in vectors:
        if not all(math.isfinite(x) for x in v):
            raise EmbeddingError("Embedding contains non-finite values")
    return vectors


class ProviderEmbeddingModel:
    """
    EmbeddingModel backed by a provider's ``embed`` method.

    Args:
        provider: Provider with an ``embed(inputs, *, model=...)`` coroutine
        model: Embedding model name (provider default when None)
        dimensions: Known vector length; probed with a sample text otherwise
    """

    _PROBE_TEXT = "Hello World"

    def __init__(self, provider: Provider, *, model: str | None = None, dimensions: int | None = None) -> None:
        self.provider = provider
        self.model = model
        self._dimensions = dimensions

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        texts = list(texts)
        if not texts:
            return []
        validate_embedding_inputs(texts)
        result = await self.provider.embed(texts, model=self.model)
        vectors = check_embeddings(result.embeddings, len(texts))
        if self._dimensions is None:
            self._dimensions = len(vectors[0])
        return vectors

    async def embed_one(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    async def dimensions(self) -> int:
        if self._dimensions is None:
            self._dimensions = len(await self.embed_one(self._PROBE_TEXT))
        return self._dimensions


async def embed_documents(
    model: EmbeddingModel,
    documents: Sequence[Document],
    strategy: BatchingStrategy,
) -> list[list[float]]:
    """Embed document contents batch by batch; vectors come back in document order."""
    vectors: list[list[float]] = []
    for batch in strategy.batch(documents):
        embeddings = await model.embed([d.content for d in batch])
        vectors.extend(check_embeddings(embeddings, len(batch)))
    return vectors


__all__ = ["EmbeddingModel", "ProviderEmbeddingModel", "check_embeddings", "embed_documents"]
