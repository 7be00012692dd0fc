"""
Portable metadata filter expressions.
"""

from .builder import FilterExpressionBuilder
from .evaluator import evaluate
from .expression import (
    COMPARISON_TYPES,
    LOGICAL_TYPES,
    Expression,
    ExpressionType,
    Group,
    Key,
    Operand,
    Value,
    referenced_keys,
)
from .parser import FilterExpressionTextParser, parse_filter

__all__ = [
    "ExpressionType",
    "COMPARISON_TYPES",
    "LOGICAL_TYPES",
    "Key",
    "Value",
    "Expression",
    "Group",
    "Operand",
    "referenced_keys",
    "FilterExpressionBuilder",
    "FilterExpressionTextParser",
    "parse_filter",
    "evaluate",
]
