"""SQL ``WHERE`` clause translators: plain columns and PGVector JSONB."""

from __future__ import annotations

import re
from collections.abc import Callable

from portvec.filters.ast import Comparison, ComparisonOp, FilterExpression, In, Logical, Not, Scalar
from portvec.filters.schema import FieldType
from portvec.filters.validator import ValidatedFilter

FieldMapper = Callable[[str, FieldType], str]

_SQL_OPERATORS = {
    ComparisonOp.EQ: "=",
    ComparisonOp.NE: "IS DISTINCT FROM",
    ComparisonOp.GT: ">",
    ComparisonOp.GTE: ">=",
    ComparisonOp.LT: "<",
    ComparisonOp.LTE: "<=",
}

_BARE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    if _BARE_IDENTIFIER.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def sql_literal(value: Scalar) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + value.replace("'", "''") + "'"


def column_mapper(name: str, field_type: FieldType) -> str:
    """Each metadata field is a column of the same name."""
    return quote_identifier(name)


class SqlTranslator:
    """Render filters as a SQL boolean expression.

    Every operand of ``AND``/``OR``/``NOT`` is wrapped in parentheses, so
    the grouping of the source expression is kept verbatim::

        country in ['UK', 'NL'] && year >= 2020
        (country IN ('UK','NL')) AND (year >= 2020)

    A NULL (missing) field makes positive comparisons unknown, which
    ``WHERE`` drops. ``!=`` renders as ``IS DISTINCT FROM`` and ``NOT`` as
    ``IS NOT TRUE`` so both hold on a NULL field, matching the in-process
    predicate.

    Literals are inlined with standard quoting. ``field_mapper`` decides how
    a metadata field is addressed in SQL.
    """

    def __init__(self, field_mapper: FieldMapper = column_mapper, name: str = "sql"):
        self.name = name
        self._field_mapper = field_mapper

    def translate(self, validated: ValidatedFilter) -> str:
        return self._render(validated.expression, validated)

    def _render(self, node: FilterExpression, validated: ValidatedFilter) -> str:
        if isinstance(node, Comparison):
            column = self._field_mapper(node.field, validated.field_type(node.field))
            return f"{column} {_SQL_OPERATORS[node.operator]} {sql_literal(node.value)}"
        if isinstance(node, In):
            column = self._field_mapper(node.field, validated.field_type(node.field))
            values = ",".join(sql_literal(v) for v in node.values)
            return f"{column} IN ({values})"
        if isinstance(node, Logical):
            joiner = f" {node.op.value} "
            return joiner.join(f"({self._render(c, validated)})" for c in node.children)
        if isinstance(node, Not):
            return f"({self._render(node.child, validated)}) IS NOT TRUE"
        raise TypeError(f"Not a filter expression node: {node!r}")


class PgVectorTranslator:
    """SQL over a JSONB metadata column, as used by PGVector tables.

    TEXT fields read ``metadata->>'field'``; NUMBER and BOOLEAN fields cast
    the extracted text to ``numeric`` and ``boolean``.
    """

    name = "pgvector"

    _CASTS = {FieldType.NUMBER: "numeric", FieldType.BOOLEAN: "boolean"}

    def __init__(self, metadata_column: str = "metadata"):
        self.metadata_column = metadata_column
        self._sql = SqlTranslator(field_mapper=self._jsonb_path, name=self.name)

    def translate(self, validated: ValidatedFilter) -> str:
        return self._sql.translate(validated)

    def _jsonb_path(self, name: str, field_type: FieldType) -> str:
        key = name.replace("'", "''")
        path = f"{quote_identifier(self.metadata_column)}->>'{key}'"
        cast = self._CASTS.get(field_type)
        if cast:
            return f"({path})::{cast}"
        return path
