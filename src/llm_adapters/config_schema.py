"""
JSON schemas for configuration validation.
"""

OLLAMA_SCHEMA = {
    "type": "object",
    "properties": {
        "base_url": {"type": "string"},
        "timeout": {"type": "number", "minimum": 0.1},
        "default_model": {"type": "string", "minLength": 1},
        "default_temperature": {"type": ["number", "null"], "minimum": 0.0, "maximum": 2.0},
        "embedding_model": {"type": "string", "minLength": 1},
        "options": {"type": "object"},
        "keep_alive": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

METADATA_FIELD_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]*$"},
        "type": {"type": "string", "enum": ["TAG", "TEXT", "NUMERIC", "tag", "text", "numeric"]},
    },
    "required": ["name", "type"],
}

VECTOR_STORE_SCHEMA = {
    "type": "object",
    "properties": {
        "url": {"type": "string"},
        "index_name": {"type": "string", "minLength": 1},
        "prefix": {"type": "string", "minLength": 1},
        "initialize_schema": {"type": "boolean"},
        "batching_strategy": {"type": "string", "enum": ["TOKEN_COUNT", "FIXED_SIZE"]},
        "batch_size": {"type": "integer", "minimum": 1},
        "max_input_tokens": {"type": "integer", "minimum": 1},
        "token_reserve_ratio": {"type": "number", "minimum": 0.0, "exclusiveMaximum": 1.0},
        "metadata_fields": {"type": "array", "items": METADATA_FIELD_SCHEMA},
        "content_field_name": {"type": "string"},
        "embedding_field_name": {"type": "string"},
        "score_field_name": {"type": "string"},
        "vector_algorithm": {"type": "string", "enum": ["HNSW", "FLAT"]},
        "distance_metric": {"type": "string", "enum": ["COSINE", "L2", "IP"]},
        "dimensions": {"type": ["integer", "null"], "minimum": 1},
    },
    "additionalProperties": False,
}

FUNCTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "max_rounds": {"type": "integer", "minimum": 1},
        "parallel_calls": {"type": "boolean"},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
        "log_file": {"type": ["string", "null"]},
        "log_requests": {"type": "boolean"},
        "log_function_calls": {"type": "boolean"},
        "log_vector_store": {"type": "boolean"},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "ollama": OLLAMA_SCHEMA,
        "vector_store": VECTOR_STORE_SCHEMA,
        "functions": FUNCTIONS_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": False,
}
