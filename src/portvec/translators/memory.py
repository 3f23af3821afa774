"""In-process predicate translator for local stores (FAISS)."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

from portvec.filters.ast import Comparison, ComparisonOp, FilterExpression, In, Logical, LogicalOp, Not
from portvec.filters.validator import ValidatedFilter

MetadataPredicate = Callable[[Mapping[str, Any]], bool]

_MISSING = object()

_COMPARATORS: dict[ComparisonOp, Callable[[Any, Any], bool]] = {
    ComparisonOp.EQ: operator.eq,
    ComparisonOp.GT: operator.gt,
    ComparisonOp.GTE: operator.ge,
    ComparisonOp.LT: operator.lt,
    ComparisonOp.LTE: operator.le,
}


def _same_kind(stored: Any, literal: Any) -> bool:
    if isinstance(literal, bool) or isinstance(stored, bool):
        return isinstance(stored, bool) and isinstance(literal, bool)
    if isinstance(literal, (int, float)):
        return isinstance(stored, (int, float))
    return isinstance(stored, str)


class MemoryTranslator:
    """Compile filters into a Python predicate over a metadata mapping.

    A positive leaf (``=``, ordering, ``IN``) whose field is missing from the
    stored metadata, or holds a value of a different kind than the literal,
    evaluates to ``False``. ``!=`` is the complement of ``=`` and ``NOT`` the
    complement of its operand, so both are ``True`` on a missing field, as
    with Qdrant and OpenSearch ``must_not``.
    """

    name = "memory"

    def translate(self, validated: ValidatedFilter) -> MetadataPredicate:
        return self._compile(validated.expression)

    def _compile(self, node: FilterExpression) -> MetadataPredicate:
        if isinstance(node, Comparison):
            return self._comparison(node)
        if isinstance(node, In):
            return self._membership(node)
        if isinstance(node, Logical):
            children = [self._compile(c) for c in node.children]
            if node.op is LogicalOp.AND:
                return lambda meta: all(child(meta) for child in children)
            return lambda meta: any(child(meta) for child in children)
        if isinstance(node, Not):
            inner = self._compile(node.child)
            return lambda meta: not inner(meta)
        raise TypeError(f"Not a filter expression node: {node!r}")

    @classmethod
    def _comparison(cls, node: Comparison) -> MetadataPredicate:
        if node.operator is ComparisonOp.NE:
            equals = cls._comparison(Comparison(node.field, ComparisonOp.EQ, node.value))
            return lambda meta: not equals(meta)

        compare = _COMPARATORS[node.operator]
        field, literal = node.field, node.value

        def predicate(meta: Mapping[str, Any]) -> bool:
            stored = meta.get(field, _MISSING)
            if stored is _MISSING or not _same_kind(stored, literal):
                return False
            return bool(compare(stored, literal))

        return predicate

    @staticmethod
    def _membership(node: In) -> MetadataPredicate:
        field, values = node.field, node.values

        def predicate(meta: Mapping[str, Any]) -> bool:
            stored = meta.get(field, _MISSING)
            if stored is _MISSING:
                return False
            return any(_same_kind(stored, v) and stored == v for v in values)

        return predicate
