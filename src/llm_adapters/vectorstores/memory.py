"""
In-process vector store.

Keeps documents in a dict and ranks them by cosine similarity with numpy.
Useful for local development and tests; filters are evaluated in Python.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

import numpy as np

from .base import VectorStore
from .document import Document, SearchRequest
from .filters.evaluator import evaluate
from .filters.expression import Expression, Group


def cosine_similarity(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` with each row of ``matrix``, mapped to [0, 1]."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    norms[norms == 0] = 1.0
    cosine = (matrix @ query) / norms
    return np.clip((1.0 + cosine) / 2.0, 0.0, 1.0)


class InMemoryVectorStore(VectorStore):
    name = "memory"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._documents: dict[str, Document] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, doc_id: str) -> Document | None:
        return self._documents.get(doc_id)

    async def _store(self, documents: list[Document]) -> None:
        for doc in documents:
            self._documents[doc.id] = doc

    async def delete(self, ids: Sequence[str]) -> int:
        removed = 0
        for doc_id in ids:
            if self._documents.pop(doc_id, None) is not None:
                removed += 1
        return removed

    async def _search(
        self,
        query_vector: list[float],
        request: SearchRequest,
        expression: Expression | Group | None,
        native_filter: str | None,
    ) -> list[Document]:
        candidates = [
            d for d in self._documents.values() if expression is None or evaluate(expression, d.metadata)
        ]
        if not candidates:
            return []

        matrix = np.asarray([d.embedding for d in candidates], dtype=np.float32)
        scores = cosine_similarity(np.asarray(query_vector, dtype=np.float32), matrix)
        return [replace(d, metadata=dict(d.metadata), score=float(s)) for d, s in zip(candidates, scores, strict=True)]


__all__ = ["InMemoryVectorStore", "cosine_similarity"]
