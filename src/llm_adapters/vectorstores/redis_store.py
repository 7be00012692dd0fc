"""
Redis vector store.

Documents are stored as RedisJSON objects under ``<prefix><id>`` and indexed
with a RediSearch vector index; searches run KNN queries with an optional
metadata pre-filter.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any

import numpy as np
import redis.asyncio as redis_lib
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..batching import BatchingStrategy, batching_strategy_from_config
from ..config.vectorstore import DistanceMetric, FieldType, RedisVectorStoreConfig
from ..embeddings import EmbeddingModel
from ..errors import (
    SchemaNotInitializedError,
    ValidationError,
    VectorStoreConnectionError,
    VectorStoreError,
)
from ..logging import StructuredLogger
from .base import VectorStore
from .document import Document, IdGenerator, SearchRequest, random_id
from .filters.expression import Expression, Group
from .redis_filter import RedisFilterExpressionConverter

_MISSING_INDEX_MARKERS = ("unknown index name", "no such index", "not found")


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def distance_to_similarity(distance: float, metric: DistanceMetric) -> float:
    """Map a RediSearch vector distance to a similarity in [0, 1]."""
    if metric is DistanceMetric.L2:
        return 1.0 / (1.0 + max(distance, 0.0))
    return min(max((2.0 - distance) / 2.0, 0.0), 1.0)


class RedisVectorStore(VectorStore):
    """
    Vector store backed by Redis Stack (RediSearch + RedisJSON).

    Example:
        ```python
        store = RedisVectorStore(
            ProviderEmbeddingModel(OllamaChatModel()),
            RedisVectorStoreConfig(
                initialize_schema=True,
                metadata_fields=[MetadataField.tag("country"), MetadataField.numeric("year")],
            ),
        )
        await store.add([Document("Spring AI rocks!!", {"country": "UK", "year": 2020})])
        docs = await store.similarity_search(
            SearchRequest(query="Spring", top_k=5, filter_expression="country in ['UK', 'NL'] && year >= 2020")
        )
        ```
    """

    name = "redis"

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        config: RedisVectorStoreConfig | None = None,
        *,
        client: redis_lib.Redis | None = None,
        batching_strategy: BatchingStrategy | None = None,
        id_generator: IdGenerator = random_id,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.config = config or RedisVectorStoreConfig()
        super().__init__(
            embedding_model,
            batching_strategy=batching_strategy or batching_strategy_from_config(self.config),
            id_generator=id_generator,
            logger=logger,
        )
        self._client = client
        self._owns_client = client is None
        self.filter_converter = RedisFilterExpressionConverter(self.config.metadata_fields)
        self._ready = False
        self._ready_lock = asyncio.Lock()

    @property
    def client(self) -> redis_lib.Redis:
        if self._client is None:
            self._client = redis_lib.from_url(self.config.url, decode_responses=False)
        return self._client

    @property
    def index_name(self) -> str:
        return self.config.index_name

    def key(self, doc_id: str) -> str:
        return f"{self.config.prefix}{doc_id}"

    async def _command(self, *args: Any) -> Any:
        try:
            return await self.client.execute_command(*args)
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise VectorStoreConnectionError(f"Redis command {args[0]} failed: {e}", cause=e) from e

    # === Schema ===

    def schema_args(self, dimensions: int) -> list[Any]:
        """Arguments of the FT.CREATE command for this configuration."""
        cfg = self.config
        args: list[Any] = [
            "FT.CREATE",
            cfg.index_name,
            "ON",
            "JSON",
            "PREFIX",
            "1",
            cfg.prefix,
            "SCHEMA",
            f"$.{cfg.content_field_name}",
            "AS",
            cfg.content_field_name,
            "TEXT",
            f"$.{cfg.embedding_field_name}",
            "AS",
            cfg.embedding_field_name,
            "VECTOR",
            cfg.vector_algorithm.value,
            "6",
            "TYPE",
            "FLOAT32",
            "DIM",
            str(dimensions),
            "DISTANCE_METRIC",
            cfg.distance_metric.value,
        ]
        for field in cfg.metadata_fields:
            args.extend([f"$.{field.name}", "AS", field.name, field.field_type.value])
        return args

    async def index_exists(self) -> bool:
        try:
            await self._command("FT.INFO", self.config.index_name)
        except ResponseError as e:
            if any(marker in str(e).lower() for marker in _MISSING_INDEX_MARKERS):
                return False
            raise VectorStoreError(f"FT.INFO failed for index '{self.config.index_name}': {e}", cause=e) from e
        return True

    async def create_index(self) -> None:
        dimensions = self.config.dimensions or await self.embedding_model.dimensions()
        try:
            await self._command(*self.schema_args(dimensions))
        except ResponseError as e:
            if "already exists" not in str(e).lower():
                raise VectorStoreError(f"Cannot create index '{self.config.index_name}': {e}", cause=e) from e
        self.logger.info(f"Created Redis index {self.config.index_name}", dimensions=dimensions)

    async def ensure_ready(self) -> None:
        """
        Make sure the index exists.

        Raises:
            SchemaNotInitializedError: the index is missing and initialize_schema is off
        """
        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            if not await self.index_exists():
                if not self.config.initialize_schema:
                    raise SchemaNotInitializedError(self.config.index_name)
                await self.create_index()
            self._ready = True

    async def drop_index(self, *, delete_documents: bool = False) -> None:
        args: list[Any] = ["FT.DROPINDEX", self.config.index_name]
        if delete_documents:
            args.append("DD")
        try:
            await self._command(*args)
        except ResponseError as e:
            raise VectorStoreError(f"Cannot drop index '{self.config.index_name}': {e}", cause=e) from e
        self._ready = False

    # === Writes ===

    def _record(self, doc: Document) -> dict[str, Any]:
        cfg = self.config
        reserved = (cfg.content_field_name, cfg.embedding_field_name)
        clash = [k for k in doc.metadata if k in reserved]
        if clash:
            raise ValidationError(f"Metadata keys clash with reserved field names: {clash}")

        fields = cfg.fields_by_name
        record: dict[str, Any] = {cfg.content_field_name: doc.content, cfg.embedding_field_name: doc.embedding}
        for key, value in doc.metadata.items():
            field = fields.get(key)
            if field is not None and field.field_type is FieldType.TAG and not isinstance(value, str):
                # TAG fields only index strings
                value = ("true" if value else "false") if isinstance(value, bool) else str(value)
            record[key] = value
        return record

    async def _store(self, documents: list[Document]) -> None:
        pipe = self.client.pipeline(transaction=False)
        for doc in documents:
            pipe.execute_command("JSON.SET", self.key(doc.id), "$", json.dumps(self._record(doc)))
        try:
            await pipe.execute()
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise VectorStoreConnectionError(f"Redis pipeline failed: {e}", cause=e) from e
        except ResponseError as e:
            raise VectorStoreError(f"Storing documents failed: {e}", cause=e) from e

    async def delete(self, ids: Sequence[str]) -> int:
        keys = [self.key(i) for i in ids]
        if not keys:
            return 0
        return int(await self._command("DEL", *keys))

    # === Search ===

    def _prepare_filter(self, expression: Expression | Group | None) -> str | None:
        if expression is None:
            return None
        return self.filter_converter.convert(expression)

    def search_args(self, query_vector: Sequence[float], top_k: int, native_filter: str | None) -> list[Any]:
        """Arguments of the FT.SEARCH command for a KNN query."""
        cfg = self.config
        base = f"({native_filter})" if native_filter else "*"
        query = f"{base}=>[KNN {top_k} @{cfg.embedding_field_name} $BLOB AS {cfg.score_field_name}]"
        blob = np.asarray(query_vector, dtype=np.float32).tobytes()
        return [
            "FT.SEARCH",
            cfg.index_name,
            query,
            "PARAMS",
            "2",
            "BLOB",
            blob,
            "RETURN",
            "2",
            "$",
            cfg.score_field_name,
            "SORTBY",
            cfg.score_field_name,
            "ASC",
            "LIMIT",
            "0",
            str(top_k),
            "DIALECT",
            "2",
        ]

    async def _search(
        self,
        query_vector: list[float],
        request: SearchRequest,
        expression: Expression | Group | None,
        native_filter: str | None,
    ) -> list[Document]:
        try:
            raw = await self._command(*self.search_args(query_vector, request.top_k, native_filter))
        except ResponseError as e:
            raise VectorStoreError(f"FT.SEARCH failed on '{self.config.index_name}': {e}", cause=e) from e
        return self.parse_search_response(raw)

    def parse_search_response(self, raw: Sequence[Any]) -> list[Document]:
        """Convert a RESP2 FT.SEARCH reply ``[total, key, [field, value, ...], ...]`` into documents."""
        cfg = self.config
        documents: list[Document] = []
        for i in range(1, len(raw) - 1, 2):
            key = _text(raw[i])
            values = raw[i + 1] or []
            fields = {_text(values[j]): values[j + 1] for j in range(0, len(values) - 1, 2)}

            data = json.loads(_text(fields.get("$", b"{}")))
            if isinstance(data, list):
                data = data[0] if data else {}

            distance = float(_text(fields[cfg.score_field_name]))
            metadata = {
                k: v for k, v in data.items() if k not in (cfg.content_field_name, cfg.embedding_field_name)
            }
            documents.append(
                Document(
                    content=data.get(cfg.content_field_name, ""),
                    metadata=metadata,
                    id=key.removeprefix(cfg.prefix),
                    embedding=data.get(cfg.embedding_field_name),
                    score=distance_to_similarity(distance, cfg.distance_metric),
                )
            )
        return documents

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisVectorStore", "distance_to_similarity"]
