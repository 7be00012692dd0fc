"""
Vector store configuration.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Index type of a filterable metadata field."""

    TAG = "TAG"
    TEXT = "TEXT"
    NUMERIC = "NUMERIC"


class DistanceMetric(str, Enum):
    COSINE = "COSINE"
    L2 = "L2"
    IP = "IP"


class VectorAlgorithm(str, Enum):
    HNSW = "HNSW"
    FLAT = "FLAT"


class BatchingStrategyType(str, Enum):
    """How documents are grouped into embedding requests."""

    TOKEN_COUNT = "TOKEN_COUNT"
    FIXED_SIZE = "FIXED_SIZE"


_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class MetadataField:
    """A metadata key declared as filterable, with its index type."""

    name: str
    field_type: FieldType

    def __post_init__(self):
        if not _FIELD_NAME.match(self.name):
            raise ValueError(f"Invalid metadata field name: {self.name!r}")
        if not isinstance(self.field_type, FieldType):
            object.__setattr__(self, "field_type", FieldType(str(self.field_type).upper()))

    @classmethod
    def tag(cls, name: str) -> MetadataField:
        return cls(name, FieldType.TAG)

    @classmethod
    def text(cls, name: str) -> MetadataField:
        return cls(name, FieldType.TEXT)

    @classmethod
    def numeric(cls, name: str) -> MetadataField:
        return cls(name, FieldType.NUMERIC)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetadataField:
        return cls(data["name"], FieldType(str(data["type"]).upper()))


@dataclass
class RedisVectorStoreConfig:
    """Configuration for the Redis-backed vector store."""

    url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    index_name: str = "default-index"
    prefix: str = "embedding:"

    # Create the index on first use instead of expecting it to be provisioned
    initialize_schema: bool = False

    batching_strategy: BatchingStrategyType = BatchingStrategyType.TOKEN_COUNT
    batch_size: int = 32
    max_input_tokens: int = 8191
    token_reserve_ratio: float = 0.1

    metadata_fields: list[MetadataField] = field(default_factory=list)

    content_field_name: str = "content"
    embedding_field_name: str = "embedding"
    score_field_name: str = "vector_score"

    vector_algorithm: VectorAlgorithm = VectorAlgorithm.HNSW
    distance_metric: DistanceMetric = DistanceMetric.COSINE
    dimensions: int | None = None

    def __post_init__(self):
        if not self.url.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("url must be a valid Redis connection string")
        if not self.index_name:
            raise ValueError("index_name cannot be empty")
        if not self.prefix:
            raise ValueError("prefix cannot be empty")
        self.batching_strategy = BatchingStrategyType(self.batching_strategy)
        self.vector_algorithm = VectorAlgorithm(self.vector_algorithm)
        self.distance_metric = DistanceMetric(self.distance_metric)
        self.metadata_fields = [
            f if isinstance(f, MetadataField) else MetadataField.from_dict(f) for f in self.metadata_fields
        ]
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.max_input_tokens < 1:
            raise ValueError("max_input_tokens must be positive")
        if not (0.0 <= self.token_reserve_ratio < 1.0):
            raise ValueError("token_reserve_ratio must be in [0.0, 1.0)")
        if self.dimensions is not None and self.dimensions < 1:
            raise ValueError("dimensions must be positive")
        names = [f.name for f in self.metadata_fields]
        if len(names) != len(set(names)):
            raise ValueError("metadata field names must be unique")
        reserved = {self.content_field_name, self.embedding_field_name, self.score_field_name}
        clash = reserved.intersection(names)
        if clash:
            raise ValueError(f"metadata fields clash with reserved names: {sorted(clash)}")

    @property
    def fields_by_name(self) -> dict[str, MetadataField]:
        return {f.name: f for f in self.metadata_fields}


__all__ = [
    "FieldType",
    "DistanceMetric",
    "VectorAlgorithm",
    "BatchingStrategyType",
    "MetadataField",
    "RedisVectorStoreConfig",
]
