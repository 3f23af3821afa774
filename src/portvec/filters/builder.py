"""Programmatic construction of filter expressions.

The builder produces exactly the nodes the text parser produces::

    from portvec.filters import builder as b

    b.and_(b.in_("country", ["UK", "NL"]), b.gte("year", 2020))
    # same tree as parse("country in ['UK', 'NL'] && year >= 2020")

Field names must be filter identifiers (the same rule the parser applies),
so every built tree can be written out with ``to_text`` and parsed back.
No schema checks happen here; pass the result to ``validate``.
"""

from __future__ import annotations

from collections.abc import Iterable

from portvec.filters.ast import (
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
    Scalar,
)
from portvec.filters.parser import is_identifier


def eq(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.EQ, value)


def ne(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.NE, value)


def gt(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.GT, value)


def gte(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.GTE, value)


def lt(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.LT, value)


def lte(field: str, value: Scalar) -> Comparison:
    return Comparison(_field(field), ComparisonOp.LTE, value)


def in_(field: str, values: Iterable[Scalar]) -> In:
    values = tuple(values)
    if not values:
        raise ValueError(f"in_('{field}', ...) needs at least one value")
    return In(_field(field), values)


def and_(*operands: FilterExpression) -> Logical:
    return _logical(LogicalOp.AND, operands)


def or_(*operands: FilterExpression) -> Logical:
    return _logical(LogicalOp.OR, operands)


def not_(operand: FilterExpression) -> Not:
    return Not(operand)


def _field(name: str) -> str:
    if not isinstance(name, str) or not is_identifier(name):
        raise ValueError(f"{name!r} is not a valid filter field name")
    return name


def _logical(op: LogicalOp, operands: tuple[FilterExpression, ...]) -> Logical:
    if len(operands) < 2:
        raise ValueError(f"{op.value} needs at least two operands, got {len(operands)}")
    return Logical(op, tuple(operands))
