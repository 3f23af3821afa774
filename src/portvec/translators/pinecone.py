"""Pinecone metadata filter translator (MongoDB-style JSON)."""

from __future__ import annotations

from typing import Any

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
)
from portvec.filters.schema import FieldType
from portvec.filters.validator import ValidatedFilter

_PINECONE_OPERATORS = {
    ComparisonOp.EQ: "$eq",
    ComparisonOp.NE: "$ne",
    ComparisonOp.GT: "$gt",
    ComparisonOp.GTE: "$gte",
    ComparisonOp.LT: "$lt",
    ComparisonOp.LTE: "$lte",
}


class PineconeTranslator:
    """Emit Pinecone's ``filter`` object, e.g. ``{"$and": [{"year": {"$gte": 2020}}]}``.

    Metadata keys are used as-is. Pinecone has no ``$not`` and only
    supports ``$gt``/``$lt`` family operators on numbers.
    """

    name = "pinecone"

    def translate(self, validated: ValidatedFilter) -> dict[str, Any]:
        return self._render(validated.expression, validated)

    def _render(self, node: FilterExpression, validated: ValidatedFilter) -> dict[str, Any]:
        if isinstance(node, Comparison):
            if (
                node.operator in ORDERING_OPS
                and validated.field_type(node.field) is not FieldType.NUMBER
            ):
                raise UnsupportedFeatureError(
                    self.name, f"ordering comparison on non-numeric field '{node.field}'"
                )
            return {node.field: {_PINECONE_OPERATORS[node.operator]: node.value}}
        if isinstance(node, In):
            return {node.field: {"$in": list(node.values)}}
        if isinstance(node, Logical):
            key = "$and" if node.op is LogicalOp.AND else "$or"
            return {key: [self._render(c, validated) for c in node.children]}
        if isinstance(node, Not):
            raise UnsupportedFeatureError(self.name, "NOT expressions")
        raise TypeError(f"Not a filter expression node: {node!r}")
