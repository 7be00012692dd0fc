"""Tests for the hashing module."""

from llm_adapters.hashing import compute_hash, content_hash, document_content_id


class TestContentHash:
    """Tests for content_hash function."""

    def test_deterministic_different_key_order(self) -> None:
        """Dict order doesn't affect hash."""
        a = {"b": 1, "a": {"z": 3, "y": 2}}
        b = {"a": {"y": 2, "z": 3}, "b": 1}
        assert content_hash(a) == content_hash(b)

    def test_different_content_different_hash(self) -> None:
        assert content_hash({"a": 1}) != content_hash({"a": 2})

    def test_returns_64_char_hex(self) -> None:
        result = content_hash({"test": "data"})
        assert len(result) == 64
        assert all(c in "0123456789abcdef" for c in result)


class TestComputeHash:
    def test_str_and_bytes_agree(self) -> None:
        assert compute_hash("hello") == compute_hash(b"hello")

    def test_truncate(self) -> None:
        assert compute_hash("hello", truncate=16) == compute_hash("hello")[:16]


class TestDocumentContentId:
    def test_same_document_same_id(self) -> None:
        assert document_content_id("text", {"year": 2020}) == document_content_id("text", {"year": 2020})

    def test_metadata_changes_id(self) -> None:
        assert document_content_id("text", {"year": 2020}) != document_content_id("text", {"year": 2021})

    def test_missing_metadata_equals_empty(self) -> None:
        assert document_content_id("text") == document_content_id("text", {})
