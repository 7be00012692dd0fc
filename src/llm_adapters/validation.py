"""
Validation utilities.

Uses jsonschema for validating function arguments, function definitions and
callback input schemas.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import jsonschema
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as JsonSchemaValidationError

from .errors import InvalidFunctionError, InvalidSchemaError, ValidationError

FUNCTION_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

_FUNCTION_DEFINITION_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "pattern": FUNCTION_NAME_PATTERN.pattern},
        "description": {"type": "string"},
        "parameters": {"type": "object"},
    },
    "required": ["name", "description", "parameters"],
}


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def error(cls, error: str) -> ValidationResult:
        return cls(valid=False, errors=[error])

    def __bool__(self) -> bool:
        return self.valid


def validate_against_schema(data: Any, schema: dict[str, Any]) -> ValidationResult:
    """Validate data against a JSON schema using jsonschema."""
    try:
        jsonschema.validate(instance=data, schema=schema, cls=Draft202012Validator)
        return ValidationResult.ok()
    except JsonSchemaValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path)
        if path:
            return ValidationResult.error(f"Validation failed at '{path}': {e.message}")
        return ValidationResult.error(f"Validation error: {e.message}")
    except SchemaError as e:
        return ValidationResult.error(f"Invalid JSON schema: {e.message}")


def validate_json_schema(schema: dict[str, Any]) -> None:
    """Raise InvalidSchemaError if ``schema`` is not a valid JSON schema object schema."""
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        raise InvalidSchemaError(f"Invalid JSON schema: {e.message}", cause=e) from e
    if schema.get("type") != "object":
        raise InvalidSchemaError("Function input schema must have type 'object'")


def validate_function_definition(name: str, description: str, parameters: dict[str, Any]) -> None:
    """
    Check a function definition before it is offered to a model.

    Raises:
        InvalidFunctionError: name or description is unusable
        InvalidSchemaError: parameters is not a valid object schema
    """
    result = validate_against_schema(
        {"name": name, "description": description, "parameters": parameters},
        _FUNCTION_DEFINITION_SCHEMA,
    )
    if not result:
        raise InvalidFunctionError(f"Invalid function '{name}': {'; '.join(result.errors)}")
    if not description.strip():
        raise InvalidFunctionError(f"Function '{name}' needs a non-empty description")
    validate_json_schema(parameters)


def validate_embedding_inputs(inputs: Any) -> None:
    if inputs is None:
        raise ValidationError("Embedding inputs cannot be empty.")

    if isinstance(inputs, str):
        if not inputs.strip():
            raise ValidationError("Embedding input string cannot be empty.")
        return

    if isinstance(inputs, (list, tuple)):
        if len(inputs) == 0:
            raise ValidationError("Embedding inputs cannot be empty.")
        for i, item in enumerate(inputs):
            if not isinstance(item, str):
                raise ValidationError(f"Embedding input at index {i} must be a string.")
            if not item.strip():
                raise ValidationError(f"Embedding input at index {i} cannot be empty.")
        return

    raise ValidationError("Embedding inputs must be a string or a list/tuple of strings.")


__all__ = [
    "FUNCTION_NAME_PATTERN",
    "ValidationResult",
    "validate_against_schema",
    "validate_json_schema",
    "validate_function_definition",
    "validate_embedding_inputs",
]
