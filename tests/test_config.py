"""
Tests for the configuration system.
"""
import os
from pathlib import Path

import pytest
import yaml

import llm_adapters.config.settings as settings_module
from llm_adapters.config import (
    BatchingStrategyType,
    DistanceMetric,
    FieldType,
    FunctionCallingConfig,
    LoggingConfig,
    MetadataField,
    OllamaConfig,
    RedisVectorStoreConfig,
    Settings,
    configure,
    get_settings,
    load_env,
)
from llm_adapters.errors import InvalidConfigError


class TestOllamaConfig:
    """Test Ollama provider configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("OLLAMA_HOST", raising=False)
        config = OllamaConfig()

        assert config.base_url == "http://localhost:11434"
        assert config.default_model == "mistral"
        assert config.embedding_model == "mxbai-embed-large"
        assert config.options == {}

    def test_host_from_environment(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
        assert OllamaConfig().base_url == "http://gpu-box:11434"

    def test_validation(self):
        with pytest.raises(ValueError, match="timeout must be positive"):
            OllamaConfig(timeout=0)
        with pytest.raises(ValueError, match="default_temperature"):
            OllamaConfig(default_temperature=3.0)
        with pytest.raises(ValueError, match="HTTP"):
            OllamaConfig(base_url="localhost:11434")
        with pytest.raises(ValueError, match="default_model"):
            OllamaConfig(default_model="")


class TestMetadataField:
    def test_constructors(self):
        assert MetadataField.tag("country").field_type is FieldType.TAG
        assert MetadataField.numeric("year").field_type is FieldType.NUMERIC
        assert MetadataField.text("title").field_type is FieldType.TEXT

    def test_type_coerced_from_string(self):
        field = MetadataField("year", "numeric")
        assert field.field_type is FieldType.NUMERIC

    def test_from_dict(self):
        field = MetadataField.from_dict({"name": "country", "type": "tag"})
        assert field == MetadataField.tag("country")

    def test_invalid_name(self):
        with pytest.raises(ValueError, match="Invalid metadata field name"):
            MetadataField.tag("has space")


class TestRedisVectorStoreConfig:
    """Test vector store configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        config = RedisVectorStoreConfig()

        assert config.url == "redis://localhost:6379/0"
        assert config.index_name == "default-index"
        assert config.prefix == "embedding:"
        assert config.initialize_schema is False
        assert config.batching_strategy is BatchingStrategyType.TOKEN_COUNT
        assert config.distance_metric is DistanceMetric.COSINE
        assert config.metadata_fields == []

    def test_enums_coerced(self):
        config = RedisVectorStoreConfig(batching_strategy="FIXED_SIZE", distance_metric="L2")
        assert config.batching_strategy is BatchingStrategyType.FIXED_SIZE
        assert config.distance_metric is DistanceMetric.L2

    def test_metadata_fields_from_dicts(self):
        config = RedisVectorStoreConfig(metadata_fields=[{"name": "country", "type": "TAG"}])
        assert config.fields_by_name == {"country": MetadataField.tag("country")}

    def test_validation(self):
        with pytest.raises(ValueError, match="Redis connection string"):
            RedisVectorStoreConfig(url="http://localhost")
        with pytest.raises(ValueError, match="index_name"):
            RedisVectorStoreConfig(index_name="")
        with pytest.raises(ValueError, match="batch_size"):
            RedisVectorStoreConfig(batch_size=0)
        with pytest.raises(ValueError, match="token_reserve_ratio"):
            RedisVectorStoreConfig(token_reserve_ratio=1.0)

    def test_duplicate_fields_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            RedisVectorStoreConfig(metadata_fields=[MetadataField.tag("a"), MetadataField.numeric("a")])

    def test_reserved_names_rejected(self):
        with pytest.raises(ValueError, match="reserved"):
            RedisVectorStoreConfig(metadata_fields=[MetadataField.text("content")])


class TestFunctionAndLoggingConfig:
    def test_function_calling_defaults(self):
        config = FunctionCallingConfig()
        assert config.max_rounds == 10
        assert config.parallel_calls is True

    def test_max_rounds_validation(self):
        with pytest.raises(ValueError, match="max_rounds"):
            FunctionCallingConfig(max_rounds=0)

    def test_logging_validation(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            LoggingConfig(level="LOUD")
        with pytest.raises(ValueError, match="Invalid log format"):
            LoggingConfig(format="xml")

    def test_log_file_converted(self):
        assert LoggingConfig(log_file="out.log").log_file == Path("out.log")

    def test_logging_values_normalized(self):
        config = LoggingConfig(level="debug", format="JSON")
        assert (config.level, config.format) == ("DEBUG", "json")


class TestSettings:
    """Test the aggregated settings object."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_OLLAMA_MODEL", "llama3.2")
        monkeypatch.setenv("LLM_VECTOR_STORE_INDEX", "docs-index")
        monkeypatch.setenv("LLM_VECTOR_STORE_INITIALIZE_SCHEMA", "true")
        monkeypatch.setenv("LLM_VECTOR_STORE_METADATA_FIELDS", "country:tag, year:numeric")
        monkeypatch.setenv("LLM_FUNCTIONS_MAX_ROUNDS", "4")
        monkeypatch.setenv("LLM_LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.ollama.default_model == "llama3.2"
        assert settings.vector_store.index_name == "docs-index"
        assert settings.vector_store.initialize_schema is True
        assert settings.vector_store.metadata_fields == [
            MetadataField.tag("country"),
            MetadataField.numeric("year"),
        ]
        assert settings.functions.max_rounds == 4
        assert settings.logging.level == "DEBUG"

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "ollama:\n"
            "  default_model: qwen2.5\n"
            "vector_store:\n"
            "  index_name: books\n"
            "  metadata_fields:\n"
            "    - {name: year, type: NUMERIC}\n"
            "functions:\n"
            "  parallel_calls: false\n"
        )

        settings = Settings.from_file(path)

        assert settings.ollama.default_model == "qwen2.5"
        assert settings.vector_store.index_name == "books"
        assert settings.vector_store.metadata_fields == [MetadataField.numeric("year")]
        assert settings.functions.parallel_calls is False

    def test_from_toml_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[vector_store]\nprefix = "doc:"\ndistance_metric = "IP"\n')

        settings = Settings.from_file(path)

        assert settings.vector_store.prefix == "doc:"
        assert settings.vector_store.distance_metric is DistanceMetric.IP

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings.from_file(tmp_path / "missing.yaml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[ollama]\n")
        with pytest.raises(ValueError, match="Unsupported config file format"):
            Settings.from_file(path)

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("functions:\n  max_rounds: 0\n")
        with pytest.raises(InvalidConfigError, match="functions.max_rounds"):
            Settings.from_file(path)

    def test_unknown_section_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("cache:\n  backend: fs\n")
        with pytest.raises(InvalidConfigError):
            Settings.from_file(path)

    def test_semantic_violation_wrapped(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("ollama:\n  base_url: localhost\n")
        with pytest.raises(InvalidConfigError, match="HTTP"):
            Settings.from_file(path)

    def test_to_dict_round_trips(self, tmp_path):
        settings = Settings(
            vector_store=RedisVectorStoreConfig(metadata_fields=[MetadataField.tag("country")]),
        )
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(settings.to_dict()))

        loaded = Settings.from_file(path)

        assert loaded.vector_store.metadata_fields == [MetadataField.tag("country")]
        assert loaded.ollama.default_model == settings.ollama.default_model


class TestGlobalSettings:
    @pytest.fixture(autouse=True)
    def reset_global(self, monkeypatch):
        monkeypatch.setattr(settings_module, "_global_settings", None)

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_configure_sections(self):
        settings = configure(functions=FunctionCallingConfig(max_rounds=2))
        assert settings.functions.max_rounds == 2
        assert get_settings().functions.max_rounds == 2

    def test_configure_unknown_section(self):
        with pytest.raises(InvalidConfigError, match="Unknown settings section"):
            configure(cache=None)

    def test_load_env(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("LLM_TEST_VALUE=loaded\n")
        monkeypatch.delenv("LLM_TEST_VALUE", raising=False)

        assert load_env(str(env_file)) is True

        assert os.environ["LLM_TEST_VALUE"] == "loaded"
        monkeypatch.delenv("LLM_TEST_VALUE")
