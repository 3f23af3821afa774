"""Metadata schema registry: the fields a filter may reference."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from portvec.errors import SchemaError
from portvec.filters.parser import is_identifier


class FieldType(StrEnum):
    """Declared type of a filterable metadata field."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class MetadataField:
    """A named, typed metadata attribute usable in filters."""

    name: str
    type: FieldType

    def __post_init__(self) -> None:
        if not self.name:
            raise SchemaError("Metadata field name must not be empty")
        if not isinstance(self.name, str) or not is_identifier(self.name):
            raise SchemaError(
                f"Metadata field name '{self.name}' cannot be used in filter text: "
                "use letters, digits, '_' and '.', not starting with a digit, "
                "and not a keyword"
            )
        try:
            object.__setattr__(self, "type", FieldType(self.type))
        except ValueError as exc:
            allowed = [t.value for t in FieldType]
            raise SchemaError(
                f"Unknown type {self.type!r} for field '{self.name}'. Allowed: {allowed}"
            ) from exc


class MetadataSchema(Mapping[str, MetadataField]):
    """Immutable registry of filterable metadata fields.

    Fields are fixed for the lifetime of an instance. ``with_fields`` returns
    a new registry, so callers holding the old one keep a consistent view.
    Documents may carry metadata keys outside the schema; those keys are
    stored but can never be filtered on.
    """

    def __init__(self, fields: Iterable[MetadataField] = ()):
        registry: dict[str, MetadataField] = {}
        for f in fields:
            if f.name in registry:
                raise SchemaError(f"Duplicate metadata field '{f.name}'")
            registry[f.name] = f
        self._fields = registry

    @classmethod
    def from_dicts(cls, entries: Iterable[Mapping[str, Any]]) -> MetadataSchema:
        """Build a schema from ``{"name": ..., "type": ...}`` mappings."""
        fields = []
        for entry in entries:
            try:
                fields.append(MetadataField(name=entry["name"], type=entry["type"]))
            except KeyError as exc:
                raise SchemaError(f"Metadata field entry missing key {exc}") from exc
        return cls(fields)

    def with_fields(self, *fields: MetadataField) -> MetadataSchema:
        """Return a new schema with ``fields`` appended."""
        return MetadataSchema([*self._fields.values(), *fields])

    @property
    def names(self) -> list[str]:
        return list(self._fields)

    def type_of(self, name: str) -> FieldType:
        return self._fields[name].type

    def __getitem__(self, name: str) -> MetadataField:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        inner = ", ".join(f"{f.name}:{f.type.value}" for f in self._fields.values())
        return f"MetadataSchema({inner})"
