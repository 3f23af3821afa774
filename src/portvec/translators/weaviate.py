"""Weaviate GraphQL ``where`` translator."""

from __future__ import annotations

import json

from portvec.errors import UnsupportedFeatureError
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
from portvec.filters.schema import FieldType
from portvec.filters.validator import ValidatedFilter

_WEAVIATE_OPERATORS = {
    ComparisonOp.EQ: "Equal",
    ComparisonOp.NE: "NotEqual",
    ComparisonOp.GT: "GreaterThan",
    ComparisonOp.GTE: "GreaterThanEqual",
    ComparisonOp.LT: "LessThan",
    ComparisonOp.LTE: "LessThanEqual",
}

_VALUE_KEYS = {
    FieldType.TEXT: "valueText",
    FieldType.NUMBER: "valueNumber",
    FieldType.BOOLEAN: "valueBoolean",
}

_LOGICAL = {LogicalOp.AND: "And", LogicalOp.OR: "Or"}


def _graphql_value(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(value)


class WeaviateTranslator:
    """Emit the GraphQL object that goes after ``where:`` in a Get query.

    Metadata properties live beside Weaviate's own ``content`` property, so
    each field is addressed as ``<prefix><field>`` (``meta_`` by default).
    The ``where`` filter has no negation operator; ``NOT`` is rejected.
    """

    name = "weaviate"

    def __init__(self, field_prefix: str = "meta_"):
        self.field_prefix = field_prefix

    def translate(self, validated: ValidatedFilter) -> str:
        return self._render(validated.expression, validated)

    def _render(self, node: FilterExpression, validated: ValidatedFilter) -> str:
        if isinstance(node, Comparison):
            return self._operand(node.field, node.operator, node.value, validated)
        if isinstance(node, In):
            equals = [
                self._operand(node.field, ComparisonOp.EQ, v, validated) for v in node.values
            ]
            if len(equals) == 1:
                return equals[0]
            return self._combine("Or", equals)
        if isinstance(node, Logical):
            operands = [self._render(c, validated) for c in node.children]
            return self._combine(_LOGICAL[node.op], operands)
        if isinstance(node, Not):
            raise UnsupportedFeatureError(self.name, "NOT expressions")
        raise TypeError(f"Not a filter expression node: {node!r}")

    def _operand(
        self,
        field: str,
        op: ComparisonOp,
        value: Scalar,
        validated: ValidatedFilter,
    ) -> str:
        path = json.dumps(self.field_prefix + field)
        value_key = _VALUE_KEYS[validated.field_type(field)]
        return (
            f"{{path: [{path}], operator: {_WEAVIATE_OPERATORS[op]}, "
            f"{value_key}: {_graphql_value(value)}}}"
        )

    @staticmethod
    def _combine(operator: str, operands: list[str]) -> str:
        return f"{{operator: {operator}, operands: [{', '.join(operands)}]}}"
