"""
Portable filter expression tree.

A filter is a boolean tree of Expression nodes whose leaves are Key (a
metadata field name) and Value (a literal) operands. Group marks explicit
parentheses so converters can reproduce them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ExpressionType(str, Enum):
    AND = "AND"
    OR = "OR"
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GTE = "GTE"
    LT = "LT"
    LTE = "LTE"
    IN = "IN"
    NIN = "NIN"
    NOT = "NOT"


COMPARISON_TYPES = frozenset(
    {
        ExpressionType.EQ,
        ExpressionType.NE,
        ExpressionType.GT,
        ExpressionType.GTE,
        ExpressionType.LT,
        ExpressionType.LTE,
        ExpressionType.IN,
        ExpressionType.NIN,
    }
)
LOGICAL_TYPES = frozenset({ExpressionType.AND, ExpressionType.OR})


@dataclass(frozen=True)
class Key:
    """Metadata field reference."""

    key: str


@dataclass(frozen=True)
class Value:
    """Literal operand: a scalar, or a tuple of scalars for IN/NIN."""

    value: Any

    def __post_init__(self) -> None:
        if isinstance(self.value, (list, set, frozenset)):
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class Expression:
    type: ExpressionType
    left: Operand
    right: Operand | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, ExpressionType):
            object.__setattr__(self, "type", ExpressionType(self.type))
        if self.type is ExpressionType.NOT:
            if self.right is not None:
                raise ValueError("NOT takes a single operand")
        elif self.right is None:
            raise ValueError(f"{self.type.value} needs two operands")


@dataclass(frozen=True)
class Group:
    """Parenthesized sub-expression."""

    content: Expression | Group


Operand = Key | Value | Expression | Group


def referenced_keys(node: Operand | None) -> list[str]:
    """Field names referenced anywhere in the tree, in first-seen order."""
    found: list[str] = []

    def walk(n: Operand | None) -> None:
        if isinstance(n, Key):
            if n.key not in found:
                found.append(n.key)
        elif isinstance(n, Expression):
            walk(n.left)
            walk(n.right)
        elif isinstance(n, Group):
            walk(n.content)

    walk(node)
    return found


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
]
