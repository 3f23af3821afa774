"""Check a filter AST against the metadata schema."""

from __future__ import annotations

import math
from dataclasses import dataclass

from portvec.errors import TypeMismatchError, UnknownFieldError, UnsupportedOperatorError
from portvec.filters.ast import (
    FILTER_NODE_TYPES,
    ORDERING_OPS,
    Comparison,
    FilterExpression,
    In,
    Scalar,
    iter_leaves,
)
from portvec.filters.schema import FieldType, MetadataSchema


@dataclass(frozen=True)
class ValidatedFilter:
    """A filter known to fit ``schema``. Only ``validate`` creates these."""

    expression: FilterExpression
    schema: MetadataSchema

    def field_type(self, name: str) -> FieldType:
        return self.schema.type_of(name)


def _accepts(field_type: FieldType, value: Scalar) -> bool:
    # bool is an int subclass, so it is checked first everywhere
    if field_type is FieldType.BOOLEAN:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if field_type is FieldType.NUMBER:
        return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))
    return isinstance(value, str)


def _check_leaf(leaf: Comparison | In, schema: MetadataSchema) -> None:
    if leaf.field not in schema:
        raise UnknownFieldError(leaf.field)
    field_type = schema.type_of(leaf.field)

    if isinstance(leaf, In):
        if field_type is FieldType.BOOLEAN:
            raise UnsupportedOperatorError(leaf.field, "IN", field_type.value)
        values = leaf.values
    else:
        if field_type is FieldType.BOOLEAN and leaf.operator in ORDERING_OPS:
            raise UnsupportedOperatorError(leaf.field, leaf.operator.value, field_type.value)
        values = (leaf.value,)

    for value in values:
        if not _accepts(field_type, value):
            raise TypeMismatchError(leaf.field, field_type.value, value)


def validate(expression: FilterExpression, schema: MetadataSchema) -> ValidatedFilter:
    """Validate every leaf of ``expression`` against ``schema``.

    Checks run leaf by leaf, left to right, and stop at the first failure:
    unknown field, then unsupported operator, then value type. Values are
    never coerced; ``'2020'`` does not match a NUMBER field and ``2020`` does
    not match a TEXT field. NUMBER values must be finite.

    Raises:
        UnknownFieldError: A leaf names a field missing from the schema.
        UnsupportedOperatorError: ``IN`` or an ordering operator on a BOOLEAN field.
        TypeMismatchError: A value does not match the declared field type.
    """
    if not isinstance(expression, FILTER_NODE_TYPES):
        raise TypeError(f"Expected a filter expression, got {type(expression).__name__}")
    for leaf in iter_leaves(expression):
        _check_leaf(leaf, schema)
    return ValidatedFilter(expression=expression, schema=schema)
