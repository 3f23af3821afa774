"""Portable metadata filters: schema, parser, builder, validator."""

from portvec.filters.ast import (
    Comparison,
    ComparisonOp,
    FilterExpression,
    In,
    Logical,
    LogicalOp,
    Not,
)
from portvec.filters.formatter import to_text
from portvec.filters.parser import parse
from portvec.filters.schema import FieldType, MetadataField, MetadataSchema
from portvec.filters.validator import ValidatedFilter, validate

__all__ = [
    "Comparison",
    "ComparisonOp",
    "FieldType",
    "FilterExpression",
    "In",
    "Logical",
    "LogicalOp",
    "MetadataField",
    "MetadataSchema",
    "Not",
    "ValidatedFilter",
    "parse",
    "to_text",
    "validate",
]
