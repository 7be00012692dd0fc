"""
In-process evaluation of filter expressions against document metadata.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...errors import FilterTranslationError
from .expression import Expression, ExpressionType, Group, Key, Operand, Value

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


def _ordered(op: ExpressionType, actual: Any, expected: Any) -> bool:
    comparable = (_is_number(actual) and _is_number(expected)) or (
        isinstance(actual, str) and isinstance(expected, str)
    )
    if not comparable:
        return False
    if op is ExpressionType.GT:
        return actual > expected
    if op is ExpressionType.GTE:
        return actual >= expected
    if op is ExpressionType.LT:
        return actual < expected
    return actual <= expected


def _comparison(expr: Expression, metadata: Mapping[str, Any]) -> bool:
    if not isinstance(expr.left, Key) or not isinstance(expr.right, Value):
        raise FilterTranslationError(f"{expr.type.value} expects a field on the left and a value on the right")

    actual = metadata.get(expr.left.key, _MISSING)
    expected = expr.right.value
    op = expr.type

    if op in (ExpressionType.IN, ExpressionType.NIN):
        if not isinstance(expected, tuple):
            raise FilterTranslationError(f"{op.value} expects a list of values")
        found = actual is not _MISSING and any(_equals(actual, v) for v in expected)
        return found if op is ExpressionType.IN else not found

    if op is ExpressionType.NE:
        return actual is _MISSING or not _equals(actual, expected)
    if actual is _MISSING:
        return False
    if op is ExpressionType.EQ:
        return _equals(actual, expected)
    return _ordered(op, actual, expected)


def evaluate(node: Operand, metadata: Mapping[str, Any]) -> bool:
    """
    Whether ``metadata`` satisfies the filter.

    Missing fields fail every comparison except NE and NIN. Ordering
    comparisons between incompatible types are false.
    """
    if isinstance(node, Group):
        return evaluate(node.content, metadata)
    if not isinstance(node, Expression):
        raise FilterTranslationError(f"Cannot evaluate a bare {type(node).__name__} operand")

    if node.type is ExpressionType.AND:
        return evaluate(node.left, metadata) and evaluate(node.right, metadata)
    if node.type is ExpressionType.OR:
        return evaluate(node.left, metadata) or evaluate(node.right, metadata)
    if node.type is ExpressionType.NOT:
        return not evaluate(node.left, metadata)
    return _comparison(node, metadata)


__all__ = ["evaluate"]
