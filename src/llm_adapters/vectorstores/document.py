"""
Document and search request types for vector stores.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from ..errors import ValidationError
from ..hashing import document_content_id

if TYPE_CHECKING:
    from .filters.expression import Expression, Group

MetadataValue = str | int | float | bool

DEFAULT_TOP_K = 4
SIMILARITY_THRESHOLD_ACCEPT_ALL = 0.0


@dataclass
class Document:
    """
    A piece of text with metadata, stored alongside its embedding.

    Attributes:
        content: Text that is embedded and returned by searches
        metadata: Scalar values keyed by field name
        id: Store key suffix; assigned by the store's id generator when None
        embedding: Vector, set once the document has been embedded
        score: Similarity in [0, 1], set on search results
    """

    content: str
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    id: str | None = None
    embedding: list[float] | None = field(default=None, repr=False)
    score: float | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            raise ValidationError("Document content must be a string")
        for key, value in self.metadata.items():
            if not isinstance(key, str) or not key:
                raise ValidationError(f"Metadata keys must be non-empty strings, got {key!r}")
            if not isinstance(value, (str, int, float, bool)):
                raise ValidationError(f"Metadata value for '{key}' must be a scalar, got {type(value).__name__}")

    def with_id(self, doc_id: str) -> Document:
        return replace(self, id=doc_id, metadata=dict(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "content": self.content, "metadata": dict(self.metadata)}
        if self.score is not None:
            d["score"] = self.score
        return d


IdGenerator = Callable[[Document], str]


def random_id(document: Document) -> str:
    """Random UUID4 identifier."""
    return str(uuid.uuid4())


def content_id(document: Document) -> str:
    """Content-addressed identifier; re-inserting equal content overwrites."""
    return document_content_id(document.content, document.metadata)


@dataclass
class SearchRequest:
    """
    Parameters of a similarity search.

    Attributes:
        query: Text whose embedding is compared with stored documents
        top_k: Maximum number of results (>= 1)
        similarity_threshold: Minimum similarity in [0, 1]; 0.0 accepts all
        filter_expression: Portable filter text or a parsed Expression
    """

    query: str
    top_k: int = DEFAULT_TOP_K
    similarity_threshold: float = SIMILARITY_THRESHOLD_ACCEPT_ALL
    filter_expression: str | Expression | Group | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.query, str):
            raise ValidationError("query must be a string")
        if isinstance(self.top_k, bool) or not isinstance(self.top_k, int) or self.top_k < 1:
            raise ValidationError(f"top_k must be a positive integer, got {self.top_k!r}")
        if not (0.0 <= self.similarity_threshold <= 1.0):
            raise ValidationError(f"similarity_threshold must be in [0, 1], got {self.similarity_threshold!r}")
        if isinstance(self.filter_expression, str) and not self.filter_expression.strip():
            self.filter_expression = None

    @property
    def accepts_all(self) -> bool:
        return self.similarity_threshold == SIMILARITY_THRESHOLD_ACCEPT_ALL


__all__ = [
    "MetadataValue",
    "Document",
    "IdGenerator",
    "random_id",
    "content_id",
    "SearchRequest",
    "DEFAULT_TOP_K",
    "SIMILARITY_THRESHOLD_ACCEPT_ALL",
]
