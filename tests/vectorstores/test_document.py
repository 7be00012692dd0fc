"""
Tests for documents, search requests and id generators.
"""
import uuid

import pytest

from llm_adapters.errors import ValidationError
from llm_adapters.vectorstores import (
    DEFAULT_TOP_K,
    Document,
    SearchRequest,
    content_id,
    random_id,
)


class TestDocument:
    def test_defaults(self):
        doc = Document("hello")

        assert doc.metadata == {}
        assert doc.id is None
        assert doc.embedding is None
        assert doc.score is None

    def test_non_string_content(self):
        with pytest.raises(ValidationError, match="content"):
            Document(42)

    @pytest.mark.parametrize("value", [[1, 2], {"a": 1}, None])
    def test_non_scalar_metadata(self, value):
        with pytest.raises(ValidationError, match="scalar"):
            Document("x", {"tags": value})

    def test_empty_metadata_key(self):
        with pytest.raises(ValidationError):
            Document("x", {"": 1})

    def test_with_id_copies_metadata(self):
        original = Document("x", {"year": 2020})

        copy = original.with_id("abc")
        copy.metadata["year"] = 1999

        assert copy.id == "abc"
        assert original.id is None
        assert original.metadata["year"] == 2020

    def test_to_dict(self):
        assert Document("x", {"a": 1}, id="1").to_dict() == {"id": "1", "content": "x", "metadata": {"a": 1}}
        assert Document("x", id="1", score=0.5).to_dict()["score"] == 0.5


class TestIdGenerators:
    def test_random_id_is_uuid(self):
        doc = Document("x")
        assert uuid.UUID(random_id(doc))
        assert random_id(doc) != random_id(doc)

    def test_content_id_is_stable(self):
        assert content_id(Document("x", {"a": 1})) == content_id(Document("x", {"a": 1}))

    def test_content_id_depends_on_metadata(self):
        assert content_id(Document("x", {"a": 1})) != content_id(Document("x", {"a": 2}))
        assert content_id(Document("x")) != content_id(Document("y"))


class TestSearchRequest:
    """Test request validation."""

    def test_defaults(self):
        request = SearchRequest(query="q")

        assert request.top_k == DEFAULT_TOP_K == 4
        assert request.similarity_threshold == 0.0
        assert request.filter_expression is None
        assert request.accepts_all

    @pytest.mark.parametrize("top_k", [0, -1, True, 2.5])
    def test_bad_top_k(self, top_k):
        with pytest.raises(ValidationError, match="top_k"):
            SearchRequest(query="q", top_k=top_k)

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_bad_threshold(self, threshold):
        with pytest.raises(ValidationError, match="similarity_threshold"):
            SearchRequest(query="q", similarity_threshold=threshold)

    def test_threshold_bounds_allowed(self):
        assert not SearchRequest(query="q", similarity_threshold=1.0).accepts_all

    def test_blank_filter_is_none(self):
        assert SearchRequest(query="q", filter_expression="   ").filter_expression is None
