"""
Vector store adapter.

Stores documents with their embeddings, runs similarity search with portable
metadata filters and translates those filters to the native query syntax.
"""

from ..config.vectorstore import (
    BatchingStrategyType,
    DistanceMetric,
    FieldType,
    MetadataField,
    RedisVectorStoreConfig,
    VectorAlgorithm,
)
from .base import VectorStore, rank_results
from .document import (
    DEFAULT_TOP_K,
    SIMILARITY_THRESHOLD_ACCEPT_ALL,
    Document,
    IdGenerator,
    SearchRequest,
    content_id,
    random_id,
)
from .filters import (
    Expression,
    ExpressionType,
    FilterExpressionBuilder,
    FilterExpressionTextParser,
    Group,
    Key,
    Value,
    evaluate,
    parse_filter,
)
from .memory import InMemoryVectorStore
from .redis_filter import RedisFilterExpressionConverter
from .redis_store import RedisVectorStore, distance_to_similarity

__all__ = [
    # Configuration
    "RedisVectorStoreConfig",
    "MetadataField",
    "FieldType",
    "DistanceMetric",
    "VectorAlgorithm",
    "BatchingStrategyType",
    # Documents
    "Document",
    "SearchRequest",
    "IdGenerator",
    "random_id",
    "content_id",
    "DEFAULT_TOP_K",
    "SIMILARITY_THRESHOLD_ACCEPT_ALL",
    # Filters
    "Expression",
    "ExpressionType",
    "Key",
    "Value",
    "Group",
    "FilterExpressionBuilder",
    "FilterExpressionTextParser",
    "parse_filter",
    "evaluate",
    "RedisFilterExpressionConverter",
    # Stores
    "VectorStore",
    "rank_results",
    "RedisVectorStore",
    "InMemoryVectorStore",
    "distance_to_similarity",
]
