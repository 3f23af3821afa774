"""Qdrant REST filter translator (``must`` / ``should`` / ``must_not``)."""

from __future__ import annotations

from typing import Any

from portvec.errors import UnsupportedFeatureError
from portvec.filters.ast import (
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
)
from portvec.filters.schema import FieldType
from portvec.filters.validator import ValidatedFilter

_RANGE_KEYS = {
    ComparisonOp.GT: "gt",
    ComparisonOp.GTE: "gte",
    ComparisonOp.LT: "lt",
    ComparisonOp.LTE: "lte",
}


class QdrantTranslator:
    """Emit a Qdrant filter object in its REST/JSON shape.

    Document metadata is stored under the ``metadata`` payload key, so each
    field is addressed as ``metadata.<field>``. Numeric equality and numeric
    ``IN`` use closed ranges because Qdrant's exact match does not accept
    floats and numeric fields are indexed as ``float``. Qdrant ranges
    only apply to numbers; ordering on TEXT is rejected.
    """

    name = "qdrant"

    def __init__(self, field_prefix: str = "metadata."):
        self.field_prefix = field_prefix

    def translate(self, validated: ValidatedFilter) -> dict[str, Any]:
        root = self._render(validated.expression, validated)
        if self._is_filter(root):
            return root
        return {"must": [root]}

    @staticmethod
    def _is_filter(condition: dict[str, Any]) -> bool:
        return "key" not in condition

    def _render(self, node: FilterExpression, validated: ValidatedFilter) -> dict[str, Any]:
        if isinstance(node, Comparison):
            return self._comparison(node, validated.field_type(node.field))
        if isinstance(node, In):
            return self._membership(node, validated.field_type(node.field))
        if isinstance(node, Logical):
            clause = "must" if node.op is LogicalOp.AND else "should"
            return {clause: [self._render(c, validated) for c in node.children]}
        if isinstance(node, Not):
            return {"must_not": [self._render(node.child, validated)]}
        raise TypeError(f"Not a filter expression node: {node!r}")

    def _key(self, field: str) -> str:
        return self.field_prefix + field

    def _equals(self, field: str, value: Any, field_type: FieldType) -> dict[str, Any]:
        if field_type is FieldType.NUMBER:
            return {"key": self._key(field), "range": {"gte": value, "lte": value}}
        return {"key": self._key(field), "match": {"value": value}}

    def _comparison(self, node: Comparison, field_type: FieldType) -> dict[str, Any]:
        if node.operator is ComparisonOp.EQ:
            return self._equals(node.field, node.value, field_type)
        if node.operator is ComparisonOp.NE:
            return {"must_not": [self._equals(node.field, node.value, field_type)]}
        if field_type is not FieldType.NUMBER:
            raise UnsupportedFeatureError(
                self.name, f"range comparison on non-numeric field '{node.field}'"
            )
        return {"key": self._key(node.field), "range": {_RANGE_KEYS[node.operator]: node.value}}

    def _membership(self, node: In, field_type: FieldType) -> dict[str, Any]:
        if field_type is FieldType.NUMBER:
            equals = [self._equals(node.field, v, field_type) for v in node.values]
            if len(equals) == 1:
                return equals[0]
            return {"should": equals}
        return {"key": self._key(node.field), "match": {"any": list(node.values)}}
