"""Filter expression AST.

Nodes are frozen dataclasses so trees compare by structure and can be
shared across threads. Both the text parser and the builder produce these.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union

Scalar = Union[str, int, float, bool]


class ComparisonOp(StrEnum):
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="


ORDERING_OPS = frozenset({ComparisonOp.GT, ComparisonOp.GTE, ComparisonOp.LT, ComparisonOp.LTE})


class LogicalOp(StrEnum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Comparison:
    field: str
    operator: ComparisonOp
    value: Scalar


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Scalar, ...]


@dataclass(frozen=True)
class Logical:
    """N-ary AND/OR. Always holds at least two children."""

    op: LogicalOp
    children: tuple[FilterExpression, ...]


@dataclass(frozen=True)
class Not:
    child: FilterExpression


FilterExpression = Union[Comparison, In, Logical, Not]

FILTER_NODE_TYPES = (Comparison, In, Logical, Not)


def iter_leaves(expression: FilterExpression):
    """Yield every ``Comparison`` and ``In`` leaf, left to right."""
    if isinstance(expression, (Comparison, In)):
        yield expression
    elif isinstance(expression, Logical):
        for child in expression.children:
            yield from iter_leaves(child)
    elif isinstance(expression, Not):
        yield from iter_leaves(expression.child)
    else:
        raise TypeError(f"Not a filter expression node: {expression!r}")
