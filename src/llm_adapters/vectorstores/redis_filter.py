"""
Translation of portable filter expressions into RediSearch query syntax.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Any

from ..config.vectorstore import FieldType, MetadataField
from ..errors import FilterTranslationError, UnknownFilterFieldError
from .filters.expression import Expression, ExpressionType, Group, Key, Operand, Value

# Punctuation and whitespace that RediSearch treats as separators inside tag and text terms
_TAG_SPECIAL = re.compile(r"([,.<>{}\[\]\"':;!@#$%^&*()\-+=~|/\\\s])")
_TEXT_SPECIAL = re.compile(r"([,.<>{}\[\]\"':;!@#$%^&*()\-+=~|/\\])")

_NUMERIC_RANGES = {
    ExpressionType.EQ: "[{v} {v}]",
    ExpressionType.NE: "[{v} {v}]",
    ExpressionType.GT: "[({v} inf]",
    ExpressionType.GTE: "[{v} inf]",
    ExpressionType.LT: "[-inf ({v}]",
    ExpressionType.LTE: "[-inf {v}]",
}


def escape_tag_value(value: str) -> str:
    return _TAG_SPECIAL.sub(r"\\\1", value)


def escape_text_value(value: str) -> str:
    return _TEXT_SPECIAL.sub(r"\\\1", value)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_number(value: Any, field: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FilterTranslationError(f"NUMERIC field '{field}' needs a numeric value, got {value!r}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FilterTranslationError(f"NUMERIC field '{field}' needs a finite value")
        if value.is_integer():
            return str(int(value))
    return repr(value)


class RedisFilterExpressionConverter:
    """
    Converts Expression trees into RediSearch query strings.

    Every referenced key must be one of the declared metadata fields; its
    field type selects the native syntax.

    Example:
        ```python
        converter = RedisFilterExpressionConverter([MetadataField.tag("country"), MetadataField.numeric("year")])
        converter.convert(parse_filter("country in ['UK', 'NL'] && year >= 2020"))
        # '@country:{UK | NL} @year:[2020 inf]'
        ```
    """

    def __init__(self, metadata_fields: Iterable[MetadataField]) -> None:
        self.fields = {f.name: f for f in metadata_fields}

    def convert(self, expression: Expression | Group) -> str:
        return self._convert(expression)

    def _convert(self, node: Operand) -> str:
        if isinstance(node, Group):
            return f"({self._convert(node.content)})"
        if not isinstance(node, Expression):
            raise FilterTranslationError(f"Cannot translate a bare {type(node).__name__} operand")

        if node.type is ExpressionType.AND:
            return f"{self._convert(node.left)} {self._convert(node.right)}"
        if node.type is ExpressionType.OR:
            return f"({self._convert(node.left)} | {self._convert(node.right)})"
        if node.type is ExpressionType.NOT:
            return f"-({self._convert(node.left)})"
        return self._comparison(node)

    def _field(self, key: Key) -> MetadataField:
        field = self.fields.get(key.key)
        if field is None:
            raise UnknownFilterFieldError(key.key, known_fields=list(self.fields))
        return field

    def _comparison(self, expr: Expression) -> str:
        if not isinstance(expr.left, Key) or not isinstance(expr.right, Value):
            raise FilterTranslationError(f"{expr.type.value} expects a field on the left and a value on the right")

        field = self._field(expr.left)
        value = expr.right.value
        op = expr.type

        if field.field_type is FieldType.NUMERIC:
            return self._numeric(field.name, op, value)
        if field.field_type is FieldType.TAG:
            return self._tag(field.name, op, value)
        return self._text(field.name, op, value)

    @staticmethod
    def _numeric(name: str, op: ExpressionType, value: Any) -> str:
        template = _NUMERIC_RANGES.get(op)
        if template is None:
            raise FilterTranslationError(f"{op.value} is not supported on NUMERIC field '{name}'")
        clause = f"@{name}:" + template.format(v=_format_number(value, name))
        return f"-{clause}" if op is ExpressionType.NE else clause

    @staticmethod
    def _list_values(name: str, op: ExpressionType, value: Any) -> tuple[Any, ...]:
        if not isinstance(value, tuple) or not value:
            raise FilterTranslationError(f"{op.value} on '{name}' needs a non-empty list of values")
        return value

    def _tag(self, name: str, op: ExpressionType, value: Any) -> str:
        if op in (ExpressionType.IN, ExpressionType.NIN):
            values = self._list_values(name, op, value)
            clause = "@{}:{{{}}}".format(name, " | ".join(escape_tag_value(_scalar_text(v)) for v in values))
            return f"-{clause}" if op is ExpressionType.NIN else clause
        if op in (ExpressionType.EQ, ExpressionType.NE):
            if isinstance(value, tuple):
                raise FilterTranslationError(f"{op.value} on TAG field '{name}' needs a single value")
            clause = f"@{name}:{{{escape_tag_value(_scalar_text(value))}}}"
            return f"-{clause}" if op is ExpressionType.NE else clause
        raise FilterTranslationError(f"{op.value} is not supported on TAG field '{name}'")

    def _text(self, name: str, op: ExpressionType, value: Any) -> str:
        if op in (ExpressionType.IN, ExpressionType.NIN):
            values = self._list_values(name, op, value)
            clause = "@{}:({})".format(name, " | ".join(escape_text_value(_scalar_text(v)) for v in values))
            return f"-{clause}" if op is ExpressionType.NIN else clause
        if op in (ExpressionType.EQ, ExpressionType.NE):
            if isinstance(value, tuple):
                raise FilterTranslationError(f"{op.value} on TEXT field '{name}' needs a single value")
            clause = f"@{name}:({escape_text_value(_scalar_text(value))})"
            return f"-{clause}" if op is ExpressionType.NE else clause
        raise FilterTranslationError(f"{op.value} is not supported on TEXT field '{name}'")


__all__ = ["RedisFilterExpressionConverter", "escape_tag_value", "escape_text_value"]
