"""
Tests for the Redis vector store.

These tests run against FakeRedis, which records every command and answers
FT.SEARCH by ranking stored documents by cosine distance.
"""
import json
import logging
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from conftest import EMBED_DIM, FakeRedis
from llm_adapters.batching import FixedSizeBatchingStrategy, TokenCountBatchingStrategy
from llm_adapters.config import DistanceMetric, MetadataField, RedisVectorStoreConfig
from llm_adapters.errors import (
    SchemaNotInitializedError,
    UnknownFilterFieldError,
    ValidationError,
    VectorStoreConnectionError,
    VectorStoreError,
)
from llm_adapters.logging import StructuredLogger
from llm_adapters.vectorstores import Document, RedisVectorStore, SearchRequest, content_id, distance_to_similarity

FIELDS = [MetadataField.tag("country"), MetadataField.numeric("year")]

DOCS = [
    Document("Spring AI rocks!!", {"country": "UK", "year": 2020}, id="1"),
    Document("The World is Big and Salvation Lurks Around the Corner", {"country": "NL", "year": 2021}, id="2"),
    Document("You walk forward facing the past", {"country": "BG", "year": 2019}, id="3"),
]


def make_store(embedding_model, client, **config):
    config.setdefault("metadata_fields", FIELDS)
    return RedisVectorStore(
        embedding_model,
        RedisVectorStoreConfig(**config),
        client=client,
        logger=StructuredLogger("test_redis_store"),
    )


class TestSchema:
    """Test index lifecycle."""

    async def test_missing_index_without_initialization(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis)

        with pytest.raises(SchemaNotInitializedError) as exc_info:
            await store.add(DOCS)

        assert exc_info.value.index_name == "default-index"
        assert embedding_model.call_count == 0
        assert fake_redis.commands_named("JSON.SET") == []

    async def test_search_before_index_exists(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis)

        with pytest.raises(SchemaNotInitializedError):
            await store.similarity_search("Spring")
        assert embedding_model.call_count == 0

    async def test_index_created_when_enabled(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True, index_name="docs-index", prefix="doc:")

        await store.add(DOCS)

        (create,) = fake_redis.commands_named("FT.CREATE")
        assert list(create) == [
            "FT.CREATE", "docs-index", "ON", "JSON", "PREFIX", "1", "doc:",
            "SCHEMA",
            "$.content", "AS", "content", "TEXT",
            "$.embedding", "AS", "embedding", "VECTOR", "HNSW", "6",
            "TYPE", "FLOAT32", "DIM", str(EMBED_DIM), "DISTANCE_METRIC", "COSINE",
            "$.country", "AS", "country", "TAG",
            "$.year", "AS", "year", "NUMERIC",
        ]

    async def test_configured_dimensions_used(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True, dimensions=1024)

        await store.ensure_ready()

        (create,) = fake_redis.commands_named("FT.CREATE")
        assert create[create.index("DIM") + 1] == "1024"

    async def test_existing_index_reused(self, embedding_model):
        client = FakeRedis(existing_indexes=("default-index",))
        store = make_store(embedding_model, client, initialize_schema=True)

        await store.add(DOCS)
        await store.add(DOCS)

        assert client.commands_named("FT.CREATE") == []
        assert len(client.commands_named("FT.INFO")) == 1

    async def test_create_tolerates_existing(self, embedding_model):
        client = MagicMock()
        client.execute_command = AsyncMock(
            side_effect=[ResponseError("Unknown index name"), ResponseError("Index already exists")]
        )
        store = make_store(embedding_model, client, initialize_schema=True)

        await store.ensure_ready()

        assert client.execute_command.await_count == 2

    async def test_unexpected_info_error(self, embedding_model):
        client = MagicMock()
        client.execute_command = AsyncMock(side_effect=ResponseError("WRONGTYPE Operation"))
        store = make_store(embedding_model, client)

        with pytest.raises(VectorStoreError, match="FT.INFO failed"):
            await store.ensure_ready()

    async def test_drop_index(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)
        await store.ensure_ready()

        await store.drop_index(delete_documents=True)

        assert fake_redis.commands_named("FT.DROPINDEX")[-1] == ("FT.DROPINDEX", "default-index", "DD")
        assert "default-index" not in fake_redis.indexes


class TestAdd:
    """Test writes."""

    async def test_documents_stored_as_json(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)

        ids = await store.add(DOCS)

        assert ids == ["1", "2", "3"]
        stored = fake_redis.docs["embedding:1"]
        assert stored["content"] == "Spring AI rocks!!"
        assert stored["country"] == "UK"
        assert stored["year"] == 2020
        assert len(stored["embedding"]) == EMBED_DIM

    async def test_single_non_transactional_pipeline(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)

        await store.add(DOCS)

        (pipeline,) = fake_redis.pipelines
        assert pipeline.transaction is False
        assert [q[0] for q in pipeline.queued] == ["JSON.SET"] * 3
        assert [q[2] for q in pipeline.queued] == ["$"] * 3

    async def test_ids_generated(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)
        original = Document("no id yet", {"country": "UK"})

        (doc_id,) = await store.add([original])

        assert original.id is None
        assert f"embedding:{doc_id}" in fake_redis.docs

    async def test_content_ids_deduplicate(self, embedding_model, fake_redis):
        store = RedisVectorStore(
            embedding_model,
            RedisVectorStoreConfig(initialize_schema=True),
            client=fake_redis,
            id_generator=content_id,
        )

        first = await store.add([Document("same text", {"year": 2020})])
        second = await store.add([Document("same text", {"year": 2020})])

        assert first == second
        assert len(fake_redis.docs) == 1

    async def test_tag_values_stringified(self, embedding_model, fake_redis):
        store = make_store(
            embedding_model,
            fake_redis,
            initialize_schema=True,
            metadata_fields=[MetadataField.tag("year"), MetadataField.tag("flag")],
        )

        await store.add([Document("x", {"year": 2020, "flag": True, "other": 3}, id="a")])

        stored = fake_redis.docs["embedding:a"]
        assert stored["year"] == "2020"
        assert stored["flag"] == "true"
        assert stored["other"] == 3

    async def test_reserved_metadata_key(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)

        with pytest.raises(ValidationError, match="reserved"):
            await store.add([Document("x", {"embedding": "oops"})])

    async def test_batches_follow_strategy(self, embedding_model, fake_redis):
        store = RedisVectorStore(
            embedding_model,
            RedisVectorStoreConfig(initialize_schema=True, batching_strategy="FIXED_SIZE", batch_size=2),
            client=fake_redis,
        )
        assert isinstance(store.batching_strategy, FixedSizeBatchingStrategy)

        await store.add(DOCS)

        assert [len(b) for b in embedding_model.batches] == [2, 1]

    def test_token_count_is_default(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis)
        assert isinstance(store.batching_strategy, TokenCountBatchingStrategy)

    async def test_empty_add(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis)

        assert await store.add([]) == []
        assert fake_redis.commands == []


class TestSimilaritySearch:
    """Test KNN search."""

    @pytest.fixture
    async def store(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)
        await store.add(DOCS)
        return store

    async def test_best_match_first(self, store):
        results = await store.similarity_search("Spring AI rocks!!", top_k=3)

        assert [d.id for d in results][0] == "1"
        assert results[0].score == pytest.approx(1.0)
        assert results[0].content == "Spring AI rocks!!"
        assert results[0].metadata == {"country": "UK", "year": 2020}
        scores = [d.score for d in results]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    async def test_top_k_bounds_results(self, store, fake_redis):
        results = await store.similarity_search(SearchRequest(query="Spring", top_k=2))

        assert len(results) == 2
        search = fake_redis.commands_named("FT.SEARCH")[-1]
        assert search[search.index("LIMIT") + 1 : search.index("LIMIT") + 3] == ("0", "2")

    async def test_threshold_prunes(self, store):
        results = await store.similarity_search("Spring AI rocks!!", top_k=3, similarity_threshold=0.99)

        assert [d.id for d in results] == ["1"]

    async def test_query_without_filter(self, store, fake_redis):
        await store.similarity_search("Spring", top_k=4)

        query = fake_redis.commands_named("FT.SEARCH")[-1][2]
        assert query == "*=>[KNN 4 @embedding $BLOB AS vector_score]"

    async def test_filter_translated_into_query(self, store, fake_redis):
        await store.similarity_search(
            SearchRequest(query="Spring", top_k=5, filter_expression="country in ['UK', 'NL'] && year >= 2020")
        )

        search = fake_redis.commands_named("FT.SEARCH")[-1]
        assert search[2] == "(@country:{UK | NL} @year:[2020 inf])=>[KNN 5 @embedding $BLOB AS vector_score]"
        assert search[search.index("DIALECT") + 1] == "2"

    async def test_query_vector_sent_as_float32(self, store, embedding_model, fake_redis):
        await store.similarity_search("Spring")

        search = fake_redis.commands_named("FT.SEARCH")[-1]
        blob = search[search.index("BLOB") + 1]
        expected = await embedding_model.embed_one("Spring")
        assert np.frombuffer(blob, dtype=np.float32).tolist() == expected

    async def test_unknown_filter_field_before_io(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis)

        with pytest.raises(UnknownFilterFieldError, match="genre"):
            await store.similarity_search("Spring", filter_expression="genre == 'drama'")

        assert fake_redis.commands == []
        assert embedding_model.call_count == 0

    async def test_search_error_wrapped(self, embedding_model):
        client = FakeRedis(existing_indexes=("default-index",))
        store = make_store(embedding_model, client)
        await store.ensure_ready()
        client.execute_command = AsyncMock(side_effect=ResponseError("Syntax error at offset 3"))

        with pytest.raises(VectorStoreError, match="FT.SEARCH failed"):
            await store.similarity_search("Spring")


class TestParseSearchResponse:
    def test_resp2_reply(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, prefix="doc:", distance_metric="L2")
        payload = json.dumps({"content": "hello", "embedding": [0.1], "country": "UK"}).encode()
        raw = [1, b"doc:42", [b"$", payload, b"vector_score", b"1.0"]]

        (doc,) = store.parse_search_response(raw)

        assert doc.id == "42"
        assert doc.content == "hello"
        assert doc.metadata == {"country": "UK"}
        assert doc.score == pytest.approx(0.5)

    def test_empty_reply(self, embedding_model, fake_redis):
        assert make_store(embedding_model, fake_redis).parse_search_response([0]) == []


class TestDistanceToSimilarity:
    @pytest.mark.parametrize(
        "distance, metric, expected",
        [
            (0.0, DistanceMetric.COSINE, 1.0),
            (1.0, DistanceMetric.COSINE, 0.5),
            (2.0, DistanceMetric.COSINE, 0.0),
            (2.5, DistanceMetric.COSINE, 0.0),
            (0.0, DistanceMetric.IP, 1.0),
            (0.0, DistanceMetric.L2, 1.0),
            (3.0, DistanceMetric.L2, 0.25),
        ],
    )
    def test_mapping(self, distance, metric, expected):
        assert distance_to_similarity(distance, metric) == pytest.approx(expected)


class TestDeleteAndClose:
    async def test_delete(self, embedding_model, fake_redis):
        store = make_store(embedding_model, fake_redis, initialize_schema=True)
        await store.add(DOCS)

        assert await store.delete(["1", "3", "missing"]) == 2
        assert list(fake_redis.docs) == ["embedding:2"]
        assert await store.delete([]) == 0

    async def test_connection_error_wrapped(self, embedding_model):
        client = MagicMock()
        client.execute_command = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        store = make_store(embedding_model, client)

        with pytest.raises(VectorStoreConnectionError) as exc_info:
            await store.delete(["1"])
        assert exc_info.value.retryable is True

    async def test_injected_client_not_closed(self, embedding_model, fake_redis):
        async with make_store(embedding_model, fake_redis):
            pass
        assert fake_redis.closed is False

    async def test_owned_client_closed(self, embedding_model, fake_redis):
        store = RedisVectorStore(embedding_model, RedisVectorStoreConfig())
        store._client = fake_redis

        await store.close()

        assert fake_redis.closed is True
        assert store._client is None


class TestOperationLogging:
    """Test vector store records."""

    @staticmethod
    def _store_records(caplog):
        return [
            (r.levelno, json.loads(r.getMessage()))
            for r in caplog.records
            if r.name == "test_redis_store" and '"event_type": "vector_store"' in r.getMessage()
        ]

    async def test_records_carry_index(self, embedding_model, fake_redis, caplog):
        caplog.set_level(logging.INFO, logger="test_redis_store")
        store = make_store(embedding_model, fake_redis, initialize_schema=True)

        await store.add(DOCS)
        await store.similarity_search("Spring", top_k=2, filter_expression="year >= 2020")

        add, search = (payload for _, payload in self._store_records(caplog))
        assert add["operation"] == "add"
        assert add["document_count"] == 3
        assert search["operation"] == "similarity_search"
        assert search["result_count"] == 2
        assert search["native_filter"] == "@year:[2020 inf]"
        assert add["index_name"] == search["index_name"] == "default-index"

    async def test_failed_search_logged(self, embedding_model, caplog):
        caplog.set_level(logging.INFO, logger="test_redis_store")
        client = FakeRedis(existing_indexes=("default-index",))
        store = make_store(embedding_model, client)
        await store.ensure_ready()
        client.execute_command = AsyncMock(side_effect=ResponseError("Syntax error at offset 3"))

        with pytest.raises(VectorStoreError):
            await store.similarity_search("Spring")

        ((level, payload),) = self._store_records(caplog)
        assert level == logging.WARNING
        assert payload["success"] is False
        assert "FT.SEARCH failed" in payload["error"]
