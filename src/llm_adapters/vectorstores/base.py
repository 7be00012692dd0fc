"""
Vector store base class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..batching import BatchingStrategy, TokenCountBatchingStrategy
from ..embeddings import EmbeddingModel, embed_documents
from ..errors import LLMAdapterError
from ..logging import StructuredLogger, VectorStoreLog, get_logger, timed
from .document import Document, IdGenerator, SearchRequest, random_id
from .filters.expression import Expression, Group
from .filters.parser import parse_filter


def rank_results(documents: Sequence[Document], request: SearchRequest) -> list[Document]:
    """Drop results under the threshold and keep the best ``top_k`` by similarity."""
    kept = [d for d in documents if d.score is not None and d.score >= request.similarity_threshold]
    kept.sort(key=lambda d: d.score, reverse=True)
    return kept[: request.top_k]


class VectorStore(ABC):
    """
    Stores documents with their embeddings and answers similarity searches.

    Subclasses implement ``_store``, ``_search`` and ``delete``; embedding,
    id assignment, filter parsing and ranking happen here.
    """

    name: str = "base"

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        *,
        batching_strategy: BatchingStrategy | None = None,
        id_generator: IdGenerator = random_id,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.embedding_model = embedding_model
        self.batching_strategy = batching_strategy or TokenCountBatchingStrategy()
        self.id_generator = id_generator
        self._logger = logger

    @property
    def logger(self) -> StructuredLogger:
        return self._logger or get_logger()

    @property
    def index_name(self) -> str:
        return self.name

    async def ensure_ready(self) -> None:
        """Prepare the backing store; the default store needs nothing."""
        return None

    def _assign_ids(self, documents: Sequence[Document]) -> list[Document]:
        return [d.with_id(d.id or self.id_generator(d)) for d in documents]

    @staticmethod
    def _parse_filter(expression: str | Expression | Group | None) -> Expression | Group | None:
        if expression is None or isinstance(expression, (Expression, Group)):
            return expression
        return parse_filter(expression)

    async def add(self, documents: Sequence[Document]) -> list[str]:
        """
        Embed and store documents.

        Returns:
            The ids of the stored documents, in input order
        """
        documents = list(documents)
        if not documents:
            return []
        await self.ensure_ready()

        record = VectorStoreLog(
            store=self.name, index_name=self.index_name, operation="add", document_count=len(documents)
        )
        with self.logger.store_context(self.name, self.index_name, "add"):
            with timed() as timer:
                try:
                    prepared = self._assign_ids(documents)
                    vectors = await embed_documents(self.embedding_model, prepared, self.batching_strategy)
                    for doc, vector in zip(prepared, vectors, strict=True):
                        doc.embedding = vector
                    await self._store(prepared)
                except LLMAdapterError as e:
                    self._log_failure(record, e)
                    raise
            record.duration_ms = timer.elapsed_ms
            self.logger.log_vector_store(record)
        return [d.id for d in prepared]

    async def similarity_search(self, request: str | SearchRequest, **kwargs: Any) -> list[Document]:
        """
        Find the documents most similar to the query.

        The filter is parsed and translated before any I/O, so an invalid or
        undeclared filter fails without touching the store.

        Args:
            request: Query text or a full SearchRequest
            **kwargs: SearchRequest fields when ``request`` is a string

        Returns:
            At most ``top_k`` documents with ``score`` set, best first
        """
        if isinstance(request, str):
            request = SearchRequest(query=request, **kwargs)
        expression = self._parse_filter(request.filter_expression)
        native_filter = self._prepare_filter(expression)
        await self.ensure_ready()

        record = VectorStoreLog(
            store=self.name,
            index_name=self.index_name,
            operation="similarity_search",
            top_k=request.top_k,
            similarity_threshold=request.similarity_threshold,
            native_filter=native_filter,
        )
        with self.logger.store_context(self.name, self.index_name, "similarity_search"):
            with timed() as timer:
                try:
                    query_vector = await self.embedding_model.embed_one(request.query)
                    candidates = await self._search(query_vector, request, expression, native_filter)
                except LLMAdapterError as e:
                    self._log_failure(record, e)
                    raise
                results = rank_results(candidates, request)
            record.duration_ms = timer.elapsed_ms
            record.result_count = len(results)
            self.logger.log_vector_store(record)
        return results

    def _log_failure(self, record: VectorStoreLog, error: LLMAdapterError) -> None:
        record.success = False
        record.error = error.message
        self.logger.log_vector_store(record)

    def _prepare_filter(self, expression: Expression | Group | None) -> str | None:
        """Translate the filter to the store's native syntax before any I/O."""
        return None

    @abstractmethod
    async def _store(self, documents: list[Document]) -> None: ...

    @abstractmethod
    async def _search(
        self,
        query_vector: list[float],
        request: SearchRequest,
        expression: Expression | Group | None,
        native_filter: str | None,
    ) -> list[Document]: ...

    @abstractmethod
    async def delete(self, ids: Sequence[str]) -> int:
        """Remove documents by id; returns the number removed."""

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> VectorStore:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = ["VectorStore", "rank_results"]
