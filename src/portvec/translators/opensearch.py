"""OpenSearch query DSL translator (``bool`` / ``term`` / ``range``)."""

from __future__ import annotations

from typing import Any

from portvec.filters.ast import (
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
)
from portvec.filters.validator import ValidatedFilter

_RANGE_KEYS = {
    ComparisonOp.GT: "gt",
    ComparisonOp.GTE: "gte",
    ComparisonOp.LT: "lt",
    ComparisonOp.LTE: "lte",
}


class OpenSearchTranslator:
    """Emit an OpenSearch filter clause for use inside a ``bool.filter``.

    Metadata lives in an object field (``metadata.<field>``) whose TEXT
    sub-fields are mapped as ``keyword`` for exact matching.
    """

    name = "opensearch"

    def __init__(self, field_prefix: str = "metadata."):
        self.field_prefix = field_prefix

    def translate(self, validated: ValidatedFilter) -> dict[str, Any]:
        return self._render(validated.expression)

    def _render(self, node: FilterExpression) -> dict[str, Any]:
        if isinstance(node, Comparison):
            key = self.field_prefix + node.field
            if node.operator is ComparisonOp.EQ:
                return {"term": {key: node.value}}
            if node.operator is ComparisonOp.NE:
                return {"bool": {"must_not": [{"term": {key: node.value}}]}}
            return {"range": {key: {_RANGE_KEYS[node.operator]: node.value}}}
        if isinstance(node, In):
            return {"terms": {self.field_prefix + node.field: list(node.values)}}
        if isinstance(node, Logical):
            children = [self._render(c) for c in node.children]
            if node.op is LogicalOp.AND:
                return {"bool": {"filter": children}}
            return {"bool": {"should": children, "minimum_should_match": 1}}
        if isinstance(node, Not):
            return {"bool": {"must_not": [self._render(node.child)]}}
        raise TypeError(f"Not a filter expression node: {node!r}")
