"""
Batching strategies for embedding requests.

Documents are grouped so that each embedding request stays within the
embedding model's input limit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

import tiktoken

from .config.vectorstore import BatchingStrategyType, RedisVectorStoreConfig
from .errors import BatchingError

if TYPE_CHECKING:
    from .vectorstores.document import Document

TokenCounter = Callable[[str], int]

DEFAULT_ENCODING = "cl100k_base"
DEFAULT_MAX_INPUT_TOKENS = 8191
DEFAULT_RESERVE_RATIO = 0.1


@lru_cache(maxsize=None)
def _get_encoder(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def tiktoken_counter(encoding_name: str = DEFAULT_ENCODING) -> TokenCounter:
    """Token counter backed by a tiktoken encoding."""

    # Special-token markers inside document text count as ordinary text.
    def count(text: str) -> int:
        return len(_get_encoder(encoding_name).encode(text, disallowed_special=()))

    return count


class BatchingStrategy(ABC):
    """Splits documents into embedding batches, preserving order."""

    @abstractmethod
    def batch(self, documents: Sequence[Document]) -> list[list[Document]]: ...


class TokenCountBatchingStrategy(BatchingStrategy):
    """
    Batch by token count.

    Each batch holds at most ``max_input_tokens * (1 - reserve_ratio)``
    tokens. A document that alone exceeds the budget raises BatchingError.
    """

    def __init__(
        self,
        *,
        encoding_name: str = DEFAULT_ENCODING,
        max_input_tokens: int = DEFAULT_MAX_INPUT_TOKENS,
        reserve_ratio: float = DEFAULT_RESERVE_RATIO,
        token_counter: TokenCounter | None = None,
    ) -> None:
        if max_input_tokens < 1:
            raise ValueError("max_input_tokens must be positive")
        if not (0.0 <= reserve_ratio < 1.0):
            raise ValueError("reserve_ratio must be in [0.0, 1.0)")
        self.max_input_tokens = max_input_tokens
        self.reserve_ratio = reserve_ratio
        self.token_budget = int(round(max_input_tokens * (1 - reserve_ratio)))
        self._count = token_counter or tiktoken_counter(encoding_name)

    def batch(self, documents: Sequence[Document]) -> list[list[Document]]:
        batches: list[list[Document]] = []
        current: list[Document] = []
        current_tokens = 0

        for doc in documents:
            tokens = self._count(doc.content)
            if tokens > self.token_budget:
                raise BatchingError(
                    f"Document {doc.id!r} has {tokens} tokens, more than the {self.token_budget} token batch budget"
                )
            if current and current_tokens + tokens > self.token_budget:
                batches.append(current)
                current, current_tokens = [], 0
            current.append(doc)
            current_tokens += tokens

        if current:
            batches.append(current)
        return batches


class FixedSizeBatchingStrategy(BatchingStrategy):
    """Batch by a fixed number of documents."""

    def __init__(self, batch_size: int = 32) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size

    def batch(self, documents: Sequence[Document]) -> list[list[Document]]:
        docs = list(documents)
        return [docs[i : i + self.batch_size] for i in range(0, len(docs), self.batch_size)]


def batching_strategy_from_config(config: RedisVectorStoreConfig) -> BatchingStrategy:
    if config.batching_strategy is BatchingStrategyType.FIXED_SIZE:
        return FixedSizeBatchingStrategy(config.batch_size)
    return TokenCountBatchingStrategy(
        max_input_tokens=config.max_input_tokens,
        reserve_ratio=config.token_reserve_ratio,
    )


__all__ = [
    "TokenCounter",
    "BatchingStrategy",
    "TokenCountBatchingStrategy",
    "FixedSizeBatchingStrategy",
    "tiktoken_counter",
    "batching_strategy_from_config",
]
