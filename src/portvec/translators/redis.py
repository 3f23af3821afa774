"""RediSearch query-string translator."""

from __future__ import annotations

import re

from portvec.errors import UnsupportedFeatureError
from portvec.filters.ast import (
    ORDERING_OPS,
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
    Scalar,
)
from portvec.filters.schema import FieldType
from portvec.filters.validator import ValidatedFilter

# Punctuation RediSearch treats as syntax inside TAG values
_TAG_SPECIAL = re.compile(r"([,.<>{}\[\]\"':;!@#$%^&*()\-+=~|/\\ ])")


def escape_tag(value: str) -> str:
    return _TAG_SPECIAL.sub(r"\\\1", value)


def _number(value: int | float) -> str:
    return repr(value)


class RedisTranslator:
    """Emit a RediSearch filter such as ``(@country:{UK | NL} @year:[2020 +inf])``.

    TEXT and BOOLEAN fields are expected to be indexed as TAG fields and
    NUMBER fields as NUMERIC fields. TAG fields have no range queries, so
    ordering comparisons on TEXT are rejected.
    """

    name = "redis"

    def __init__(self, field_prefix: str = "@"):
        self.field_prefix = field_prefix

    def translate(self, validated: ValidatedFilter) -> str:
        return self._render(validated.expression, validated)

    def _render(self, node: FilterExpression, validated: ValidatedFilter) -> str:
        if isinstance(node, Comparison):
            if validated.field_type(node.field) is FieldType.NUMBER:
                return self._numeric(node)
            return self._tag(node)
        if isinstance(node, In):
            return self._membership(node, validated)
        if isinstance(node, Logical):
            joiner = " " if node.op is LogicalOp.AND else " | "
            return "(" + joiner.join(self._render(c, validated) for c in node.children) + ")"
        if isinstance(node, Not):
            return f"-({self._render(node.child, validated)})"
        raise TypeError(f"Not a filter expression node: {node!r}")

    def _field(self, name: str) -> str:
        return f"{self.field_prefix}{name}"

    def _tag_value(self, value: Scalar) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return escape_tag(str(value))

    def _tag(self, node: Comparison) -> str:
        if node.operator in ORDERING_OPS:
            raise UnsupportedFeatureError(
                self.name, f"ordering comparison on TAG field '{node.field}'"
            )
        clause = f"{self._field(node.field)}:{{{self._tag_value(node.value)}}}"
        if node.operator is ComparisonOp.NE:
            return f"-{clause}"
        return clause

    def _numeric(self, node: Comparison) -> str:
        value = _number(node.value)
        bounds = {
            ComparisonOp.EQ: f"[{value} {value}]",
            ComparisonOp.NE: f"[{value} {value}]",
            ComparisonOp.GT: f"[({value} +inf]",
            ComparisonOp.GTE: f"[{value} +inf]",
            ComparisonOp.LT: f"[-inf ({value}]",
            ComparisonOp.LTE: f"[-inf {value}]",
        }[node.operator]
        clause = f"{self._field(node.field)}:{bounds}"
        if node.operator is ComparisonOp.NE:
            return f"-{clause}"
        return clause

    def _membership(self, node: In, validated: ValidatedFilter) -> str:
        if validated.field_type(node.field) is FieldType.NUMBER:
            ranges = [f"{self._field(node.field)}:[{_number(v)} {_number(v)}]" for v in node.values]
            if len(ranges) == 1:
                return ranges[0]
            return "(" + " | ".join(ranges) + ")"
        tags = " | ".join(self._tag_value(v) for v in node.values)
        return f"{self._field(node.field)}:{{{tags}}}"
