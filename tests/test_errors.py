"""
Tests for the error taxonomy.
"""
import pytest

from llm_adapters.errors import (
    DuplicateFunctionError,
    ErrorCode,
    ErrorContext,
    FilterSyntaxError,
    FunctionCallError,
    FunctionNotFoundError,
    InvalidConfigError,
    InvalidResponseError,
    LLMAdapterError,
    MaxRoundsExceededError,
    ModelNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    SchemaNotInitializedError,
    UnknownFilterFieldError,
    ValidationError,
    VectorStoreConnectionError,
    VectorStoreError,
    error_from_status,
    is_retryable,
)


class TestErrorCodes:
    """Test error code enumeration."""

    def test_error_codes_are_strings(self):
        assert ErrorCode.FUNCTION_NOT_FOUND.value.startswith("ERR_")
        assert ErrorCode.SCHEMA_NOT_INITIALIZED.value.startswith("ERR_")

    def test_error_codes_unique(self):
        values = [e.value for e in ErrorCode]
        assert len(values) == len(set(values))


class TestErrorContext:
    def test_to_dict_merges_extra(self):
        ctx = ErrorContext(provider="ollama", model="mistral", extra={"index": "docs"})
        d = ctx.to_dict()
        assert d["provider"] == "ollama"
        assert d["model"] == "mistral"
        assert d["index"] == "docs"
        assert d["request_id"] is None


class TestBaseError:
    def test_str_includes_code(self):
        err = LLMAdapterError("boom")
        assert str(err) == f"[{ErrorCode.INTERNAL_ERROR.value}] boom"

    def test_to_dict(self):
        cause = RuntimeError("inner")
        err = VectorStoreError("store failed", cause=cause)
        d = err.to_dict()
        assert d["error_type"] == "VectorStoreError"
        assert d["code"] == ErrorCode.VECTOR_STORE_ERROR.value
        assert d["cause"] == "inner"
        assert d["retryable"] is False

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ValidationError("bad input")
        assert issubclass(InvalidConfigError, ValueError)
        assert issubclass(FilterSyntaxError, ValueError)


class TestFunctionErrors:
    def test_function_not_found_message(self):
        err = FunctionNotFoundError(function_name="current_weather")
        assert err.message == "Function not found: current_weather"
        assert err.function_name == "current_weather"
        assert isinstance(err, FunctionCallError)

    def test_duplicate_function(self):
        err = DuplicateFunctionError("search")
        assert "already registered" in err.message
        assert err.code is ErrorCode.DUPLICATE_FUNCTION

    def test_max_rounds(self):
        err = MaxRoundsExceededError(max_rounds=3)
        assert err.max_rounds == 3
        assert "(3)" in err.message


class TestVectorStoreErrors:
    def test_schema_not_initialized(self):
        err = SchemaNotInitializedError("docs-index")
        assert err.index_name == "docs-index"
        assert "docs-index" in err.message

    def test_unknown_filter_field_lists_declared(self):
        err = UnknownFilterFieldError("city", known_fields=["year", "country"])
        assert err.field_name == "city"
        assert "country, year" in err.message

    def test_filter_syntax_position(self):
        err = FilterSyntaxError("Unexpected token", position=7, text="year >= ")
        assert err.position == 7
        assert err.message.endswith("at position 7")

    def test_connection_error_is_retryable(self):
        assert VectorStoreConnectionError("down").retryable is True


class TestErrorFromStatus:
    @pytest.mark.parametrize(
        "status, expected",
        [
            (404, ModelNotFoundError),
            (502, ProviderUnavailableError),
            (503, ProviderUnavailableError),
            (504, ProviderTimeoutError),
            (400, InvalidResponseError),
            (500, InvalidResponseError),
            (418, ProviderError),
        ],
    )
    def test_mapping(self, status, expected):
        err = error_from_status(status, "failure", provider="ollama")
        assert isinstance(err, expected)

    def test_model_not_found_names_model(self):
        err = error_from_status(404, "model 'llama9' not found", provider="ollama", model="llama9")
        assert err.message == "Model not found: llama9"
        assert err.context.provider == "ollama"


class TestRetryable:
    def test_adapter_errors_use_flag(self):
        assert is_retryable(ProviderUnavailableError()) is True
        assert is_retryable(FunctionNotFoundError(function_name="x")) is False

    def test_builtin_errors(self):
        assert is_retryable(ConnectionError()) is True
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(KeyError("x")) is False
