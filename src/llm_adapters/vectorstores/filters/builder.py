"""
Fluent construction of filter expressions.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .expression import Expression, ExpressionType, Group, Key, Value


def _values(values: tuple[Any, ...]) -> Value:
    # in_("country", ["UK", "NL"]) and in_("country", "UK", "NL") are equivalent
    if len(values) == 1 and isinstance(values[0], Iterable) and not isinstance(values[0], (str, bytes)):
        return Value(list(values[0]))
    return Value(list(values))


class FilterExpressionBuilder:
    """
    Builds Expression trees without going through the text grammar.

    Example:
        ```python
        b = FilterExpressionBuilder()
        expr = b.and_(b.in_("country", "UK", "NL"), b.gte("year", 2020))
        ```
    """

    def eq(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.EQ, Key(key), Value(value))

    def ne(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.NE, Key(key), Value(value))

    def gt(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.GT, Key(key), Value(value))

    def gte(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.GTE, Key(key), Value(value))

    def lt(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.LT, Key(key), Value(value))

    def lte(self, key: str, value: Any) -> Expression:
        return Expression(ExpressionType.LTE, Key(key), Value(value))

    def in_(self, key: str, *values: Any) -> Expression:
        return Expression(ExpressionType.IN, Key(key), _values(values))

    def nin(self, key: str, *values: Any) -> Expression:
        return Expression(ExpressionType.NIN, Key(key), _values(values))

    def and_(self, left: Expression | Group, right: Expression | Group) -> Expression:
        return Expression(ExpressionType.AND, left, right)

    def or_(self, left: Expression | Group, right: Expression | Group) -> Expression:
        return Expression(ExpressionType.OR, left, right)

    def not_(self, content: Expression | Group) -> Expression:
        return Expression(ExpressionType.NOT, content)

    def group(self, content: Expression | Group) -> Group:
        return Group(content)


__all__ = ["FilterExpressionBuilder"]
