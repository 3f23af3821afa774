"""Render a filter AST back to canonical portable filter text."""

from __future__ import annotations

import math

from portvec.filters.ast import Comparison, FilterExpression, In, Logical, LogicalOp, Not, Scalar

_JOINERS = {LogicalOp.AND: " && ", LogicalOp.OR: " || "}


def format_literal(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"{value!r} has no filter text form")
        return repr(value)
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def to_text(expression: FilterExpression) -> str:
    """Return filter text that parses back to ``expression``.

    Nested logical groups are always parenthesised so the original grouping
    survives a round trip through ``parse``.
    """
    if isinstance(expression, Comparison):
        return f"{expression.field} {expression.operator.value} {format_literal(expression.value)}"
    if isinstance(expression, In):
        values = ", ".join(format_literal(v) for v in expression.values)
        return f"{expression.field} in [{values}]"
    if isinstance(expression, Logical):
        return _JOINERS[expression.op].join(_group(c) for c in expression.children)
    if isinstance(expression, Not):
        return f"NOT {_group(expression.child)}"
    raise TypeError(f"Not a filter expression node: {expression!r}")


def _group(expression: FilterExpression) -> str:
    text = to_text(expression)
    if isinstance(expression, Logical):
        return f"({text})"
    return text
