"""Tests for the metadata schema registry and filter validation."""

from __future__ import annotations

import pytest

from portvec.errors import (
    FilterValidationError,
    SchemaError,
    TypeMismatchError,
    UnknownFieldError,
    UnsupportedOperatorError,
)
from portvec.filters import builder as b
from portvec.filters.parser import parse
from portvec.filters.schema import FieldType, MetadataField, MetadataSchema
from portvec.filters.validator import ValidatedFilter, validate

# ---------------------------------------------------------------------------
# Schema registry
# ---------------------------------------------------------------------------


class TestMetadataSchema:
    def test_lookup(self, schema: MetadataSchema):
        assert "country" in schema
        assert schema.type_of("year") is FieldType.NUMBER
        assert schema["published"].type is FieldType.BOOLEAN
        assert len(schema) == 5

    def test_names_keep_declaration_order(self, schema: MetadataSchema):
        assert schema.names == ["country", "genre", "year", "rating", "published"]

    def test_type_given_as_string(self):
        assert MetadataField("year", "number").type is FieldType.NUMBER

    def test_unknown_type(self):
        with pytest.raises(SchemaError, match="Unknown type"):
            MetadataField("year", "date")

    def test_empty_name(self):
        with pytest.raises(SchemaError):
            MetadataField("", FieldType.TEXT)

    @pytest.mark.parametrize("name", ["release-year", "in", "and", "2021_sales", "release year"])
    def test_name_must_be_filter_identifier(self, name):
        with pytest.raises(SchemaError, match="cannot be used in filter text"):
            MetadataField(name, FieldType.NUMBER)

    def test_dotted_name(self):
        assert MetadataField("meta.year", FieldType.NUMBER).name == "meta.year"

    def test_duplicate_field(self):
        with pytest.raises(SchemaError, match="Duplicate"):
            MetadataSchema([MetadataField("a", "text"), MetadataField("a", "number")])

    def test_from_dicts(self):
        schema = MetadataSchema.from_dicts([
            {"name": "author", "type": "text"},
            {"name": "pages", "type": "number"},
        ])
        assert schema.names == ["author", "pages"]

    def test_from_dicts_missing_key(self):
        with pytest.raises(SchemaError, match="missing key"):
            MetadataSchema.from_dicts([{"name": "author"}])

    def test_with_fields_is_copy_on_write(self, schema: MetadataSchema):
        extended = schema.with_fields(MetadataField("author", FieldType.TEXT))
        assert "author" in extended
        assert "author" not in schema
        assert extended.names[:5] == schema.names

    def test_with_fields_rejects_redeclaration(self, schema: MetadataSchema):
        with pytest.raises(SchemaError):
            schema.with_fields(MetadataField("year", FieldType.TEXT))

    def test_repr(self):
        schema = MetadataSchema([MetadataField("year", "number")])
        assert repr(schema) == "MetadataSchema(year:number)"


# ---------------------------------------------------------------------------
# Validation: accepted filters
# ---------------------------------------------------------------------------


class TestValidFilters:
    @pytest.mark.parametrize("text", [
        "country in ['UK', 'NL'] && year >= 2020",
        "rating > 7.5",
        "rating = 7",
        "published = true",
        "published != false",
        "genre >= 'c' && genre < 'e'",
        "NOT (country = 'UK' || year in [2019, 2020.0])",
    ])
    def test_accepted(self, schema: MetadataSchema, text: str):
        validated = validate(parse(text), schema)
        assert isinstance(validated, ValidatedFilter)
        assert validated.expression == parse(text)
        assert validated.schema is schema

    def test_field_type_lookup(self, schema: MetadataSchema):
        validated = validate(parse("year = 2020"), schema)
        assert validated.field_type("year") is FieldType.NUMBER

    def test_schema_unchanged(self, schema: MetadataSchema):
        before = list(schema.items())
        validate(parse("country = 'UK' && year > 2000"), schema)
        assert list(schema.items()) == before


# ---------------------------------------------------------------------------
# Validation: rejected filters
# ---------------------------------------------------------------------------


class TestRejectedFilters:
    def test_unknown_field(self, schema: MetadataSchema):
        with pytest.raises(UnknownFieldError) as exc_info:
            validate(parse("author = 'Smith'"), schema)
        assert exc_info.value.field == "author"

    def test_unknown_field_nested_under_not(self, schema: MetadataSchema):
        with pytest.raises(UnknownFieldError):
            validate(parse("year > 2000 && NOT (country = 'UK' || author = 'x')"), schema)

    def test_number_literal_on_text_field(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError) as exc_info:
            validate(parse("country = 2020"), schema)
        err = exc_info.value
        assert (err.field, err.expected, err.actual) == ("country", "text", 2020)

    def test_string_literal_on_number_field(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError) as exc_info:
            validate(parse("year >= '2020'"), schema)
        assert exc_info.value.expected == "number"

    def test_bool_is_not_a_number(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError):
            validate(b.eq("year", True), schema)

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_number(self, schema: MetadataSchema, value: float):
        with pytest.raises(TypeMismatchError):
            validate(b.gte("year", value), schema)

    def test_overflowing_literal(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError):
            validate(parse("rating < 1e400"), schema)

    def test_large_int_is_finite(self, schema: MetadataSchema):
        validate(b.lt("year", 10**400), schema)

    def test_quoted_bool_on_boolean_field(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError):
            validate(parse("published = 'true'"), schema)

    def test_number_on_boolean_field(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError):
            validate(b.eq("published", 1), schema)

    def test_in_list_element_mismatch(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError) as exc_info:
            validate(b.in_("year", [2020, "2021"]), schema)
        assert exc_info.value.actual == "2021"

    def test_in_on_boolean_field(self, schema: MetadataSchema):
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            validate(parse("published in [true]"), schema)
        assert exc_info.value.operator == "IN"
        assert exc_info.value.field_type == "boolean"

    def test_ordering_on_boolean_field(self, schema: MetadataSchema):
        with pytest.raises(UnsupportedOperatorError):
            validate(parse("published > false"), schema)

    def test_unknown_field_reported_before_type(self, schema: MetadataSchema):
        with pytest.raises(UnknownFieldError):
            validate(parse("author = 1 && country = 2"), schema)

    def test_first_failing_leaf_wins(self, schema: MetadataSchema):
        with pytest.raises(TypeMismatchError) as exc_info:
            validate(parse("country = 1 && author = 'x'"), schema)
        assert exc_info.value.field == "country"

    def test_errors_share_base(self, schema: MetadataSchema):
        with pytest.raises(FilterValidationError):
            validate(parse("nope = 1"), schema)

    def test_empty_schema_rejects_everything(self):
        with pytest.raises(UnknownFieldError):
            validate(parse("country = 'UK'"), MetadataSchema())

    def test_non_node(self, schema: MetadataSchema):
        with pytest.raises(TypeError):
            validate("country = 'UK'", schema)  # type: ignore[arg-type]
