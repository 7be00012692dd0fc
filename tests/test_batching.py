"""
Tests for embedding batching strategies.
"""
import pytest
import tiktoken

import llm_adapters.batching as batching_module
from llm_adapters.batching import (
    FixedSizeBatchingStrategy,
    TokenCountBatchingStrategy,
    batching_strategy_from_config,
)
from llm_adapters.config import RedisVectorStoreConfig
from llm_adapters.errors import BatchingError
from llm_adapters.vectorstores import Document


def word_count(text: str) -> int:
    return len(text.split())


def docs(*word_counts: int) -> list[Document]:
    return [Document(" ".join(["w"] * n), id=f"d{i}") for i, n in enumerate(word_counts)]


def byte_encoding() -> tiktoken.Encoding:
    """Byte-level encoding that works offline and knows one special token."""
    return tiktoken.Encoding(
        name="bytes_only",
        pat_str=r"\S+|\s+",
        mergeable_ranks={bytes([i]): i for i in range(256)},
        special_tokens={"<|endoftext|>": 256},
    )


class TestTokenCountBatching:
    """Test token-budget batching."""

    def test_budget_applies_reserve(self):
        strategy = TokenCountBatchingStrategy(max_input_tokens=100, reserve_ratio=0.1, token_counter=word_count)
        assert strategy.token_budget == 90

    def test_groups_within_budget(self):
        strategy = TokenCountBatchingStrategy(max_input_tokens=10, reserve_ratio=0.0, token_counter=word_count)

        batches = strategy.batch(docs(4, 5, 3, 10, 1))

        assert [[d.id for d in b] for b in batches] == [["d0", "d1"], ["d2"], ["d3"], ["d4"]]

    def test_order_preserved(self):
        strategy = TokenCountBatchingStrategy(max_input_tokens=3, reserve_ratio=0.0, token_counter=word_count)
        documents = docs(1, 1, 1, 1, 1, 1, 1)

        flattened = [d.id for b in strategy.batch(documents) for d in b]

        assert flattened == [d.id for d in documents]

    def test_oversized_document(self):
        strategy = TokenCountBatchingStrategy(max_input_tokens=10, reserve_ratio=0.5, token_counter=word_count)

        with pytest.raises(BatchingError, match="'d1' has 6 tokens"):
            strategy.batch(docs(2, 6))

    def test_empty(self):
        strategy = TokenCountBatchingStrategy(token_counter=word_count)
        assert strategy.batch([]) == []

    def test_validation(self):
        with pytest.raises(ValueError):
            TokenCountBatchingStrategy(max_input_tokens=0)
        with pytest.raises(ValueError):
            TokenCountBatchingStrategy(reserve_ratio=1.0)

    def test_special_token_text_counted_as_text(self, monkeypatch):
        monkeypatch.setattr(batching_module, "_get_encoder", lambda name: byte_encoding())
        text = "end marker <|endoftext|> inside text"
        strategy = TokenCountBatchingStrategy()

        batches = strategy.batch([Document(text, id="d0"), Document("plain", id="d1")])

        assert [[d.id for d in b] for b in batches] == [["d0", "d1"]]
        assert batching_module.tiktoken_counter()(text) == len(text.encode())


class TestFixedSizeBatching:
    def test_chunks(self):
        batches = FixedSizeBatchingStrategy(batch_size=2).batch(docs(1, 1, 1, 1, 1))
        assert [len(b) for b in batches] == [2, 2, 1]

    def test_validation(self):
        with pytest.raises(ValueError):
            FixedSizeBatchingStrategy(batch_size=0)


class TestStrategyFromConfig:
    def test_token_count_default(self):
        strategy = batching_strategy_from_config(RedisVectorStoreConfig(max_input_tokens=1000, token_reserve_ratio=0.2))

        assert isinstance(strategy, TokenCountBatchingStrategy)
        assert strategy.token_budget == 800

    def test_fixed_size(self):
        strategy = batching_strategy_from_config(RedisVectorStoreConfig(batching_strategy="FIXED_SIZE", batch_size=8))

        assert isinstance(strategy, FixedSizeBatchingStrategy)
        assert strategy.batch_size == 8
