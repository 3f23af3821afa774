"""Tests for the filter lexer and parser."""

from __future__ import annotations

import pytest

from portvec.errors import FilterError, ParseError
from portvec.filters.ast import Comparison, ComparisonOp, In, Logical, LogicalOp, Not
from portvec.filters.parser import MAX_NESTING, is_identifier, parse, tokenize


def _eq(field, value):
    return Comparison(field, ComparisonOp.EQ, value)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class TestTokenize:
    def test_token_kinds(self):
        kinds = [t.kind for t in tokenize("a >= 1 && b in ['x']")]
        assert kinds == [
            "IDENT", "OP", "NUMBER", "AND", "IDENT", "IN",
            "LBRACKET", "STRING", "RBRACKET", "EOF",
        ]

    def test_positions(self):
        tokens = tokenize("year>=2020")
        assert [(t.text, t.pos) for t in tokens] == [
            ("year", 0), (">=", 4), ("2020", 6), ("", 10),
        ]

    def test_keywords_case_insensitive(self):
        kinds = [t.kind for t in tokenize("NOT a = TRUE AND b = False OR c IN [1]")]
        assert kinds.count("BOOL") == 2
        assert "NOT" in kinds and "AND" in kinds and "OR" in kinds and "IN" in kinds

    def test_dotted_identifier(self):
        assert tokenize("meta.country = 'UK'")[0].text == "meta.country"


# ---------------------------------------------------------------------------
# Comparisons and literals
# ---------------------------------------------------------------------------


class TestComparisons:
    @pytest.mark.parametrize("text, op", [
        ("year = 2020", ComparisonOp.EQ),
        ("year == 2020", ComparisonOp.EQ),
        ("year != 2020", ComparisonOp.NE),
        ("year > 2020", ComparisonOp.GT),
        ("year >= 2020", ComparisonOp.GTE),
        ("year < 2020", ComparisonOp.LT),
        ("year <= 2020", ComparisonOp.LTE),
    ])
    def test_operators(self, text, op):
        assert parse(text) == Comparison("year", op, 2020)

    def test_string_literal(self):
        assert parse("country = 'UK'") == _eq("country", "UK")

    def test_double_quoted_string(self):
        assert parse('country = "UK"') == _eq("country", "UK")

    def test_escaped_quote(self):
        assert parse(r"name = 'O\'Brien'") == _eq("name", "O'Brien")

    def test_integer_stays_int(self):
        value = parse("year = 2020").value
        assert value == 2020 and isinstance(value, int)

    def test_float(self):
        assert parse("rating > 4.5") == Comparison("rating", ComparisonOp.GT, 4.5)

    def test_negative_number(self):
        assert parse("delta >= -3") == Comparison("delta", ComparisonOp.GTE, -3)

    def test_exponent_is_float(self):
        value = parse("size < 1e3").value
        assert value == 1000.0 and isinstance(value, float)

    def test_booleans(self):
        assert parse("published = true") == _eq("published", True)
        assert parse("published = FALSE") == _eq("published", False)

    def test_quoted_true_is_text(self):
        assert parse("published = 'true'") == _eq("published", "true")

    def test_in_list(self):
        assert parse("country in ['UK', 'NL']") == In("country", ("UK", "NL"))

    def test_in_single_value(self):
        assert parse("year IN [2020]") == In("year", (2020,))

    def test_in_numbers_may_mix_int_and_float(self):
        assert parse("rating in [7, 7.5]") == In("rating", (7, 7.5))


# ---------------------------------------------------------------------------
# Logical structure
# ---------------------------------------------------------------------------


class TestLogicalStructure:
    def test_readme_example(self):
        assert parse("country in ['UK', 'NL'] && year >= 2020") == Logical(
            LogicalOp.AND,
            (In("country", ("UK", "NL")), Comparison("year", ComparisonOp.GTE, 2020)),
        )

    def test_and_binds_tighter_than_or(self):
        assert parse("a = 1 || b = 2 && c = 3") == Logical(
            LogicalOp.OR,
            (_eq("a", 1), Logical(LogicalOp.AND, (_eq("b", 2), _eq("c", 3)))),
        )

    def test_not_binds_tighter_than_and(self):
        assert parse("NOT a = 1 && b = 2") == Logical(
            LogicalOp.AND, (Not(_eq("a", 1)), _eq("b", 2)),
        )

    def test_parentheses_override_precedence(self):
        assert parse("(a = 1 || b = 2) && c = 3") == Logical(
            LogicalOp.AND,
            (Logical(LogicalOp.OR, (_eq("a", 1), _eq("b", 2))), _eq("c", 3)),
        )

    def test_chain_is_flat(self):
        tree = parse("a = 1 && b = 2 && c = 3")
        assert tree == Logical(LogicalOp.AND, (_eq("a", 1), _eq("b", 2), _eq("c", 3)))

    def test_explicit_grouping_is_kept(self):
        tree = parse("(a = 1 && b = 2) && c = 3")
        assert tree == Logical(
            LogicalOp.AND,
            (Logical(LogicalOp.AND, (_eq("a", 1), _eq("b", 2))), _eq("c", 3)),
        )

    def test_redundant_parentheses(self):
        assert parse("((country = 'UK'))") == _eq("country", "UK")

    def test_not_spellings(self):
        expected = Not(_eq("a", 1))
        assert parse("NOT a = 1") == expected
        assert parse("not a = 1") == expected
        assert parse("!a = 1") == expected
        assert parse("!(a = 1)") == expected

    def test_double_negation(self):
        assert parse("NOT NOT a = 1") == Not(Not(_eq("a", 1)))

    def test_word_operators(self):
        assert parse("a = 1 and b = 2 or c = 3") == parse("a = 1 && b = 2 || c = 3")

    def test_whitespace_insensitive(self):
        assert parse("year>=2020&&country='UK'") == parse("  year >= 2020\n&&\tcountry = 'UK' ")

    def test_deterministic(self):
        text = "(genre = 'drama' || genre = 'crime') && NOT published = false"
        assert parse(text) == parse(text)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_is_filter_error(self):
        with pytest.raises(FilterError):
            parse("country =")

    def test_unbalanced_open_paren(self):
        with pytest.raises(ParseError) as exc_info:
            parse("(country = 'UK'")
        assert exc_info.value.position == 15
        assert "')'" in exc_info.value.message

    def test_unbalanced_close_paren(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country = 'UK')")
        assert exc_info.value.position == 14

    def test_empty_in_list(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country in []")
        assert exc_info.value.position == 12
        assert "empty" in exc_info.value.message

    def test_mixed_in_list(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country in ['UK', 1]")
        assert exc_info.value.position == 18
        assert "mixes" in exc_info.value.message

    def test_unexpected_character(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country ~ 'UK'")
        assert exc_info.value.position == 8

    def test_unterminated_string(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country = 'UK")
        assert exc_info.value.position == 10
        assert "Unterminated" in exc_info.value.message

    def test_missing_literal(self):
        with pytest.raises(ParseError) as exc_info:
            parse("country = ")
        assert exc_info.value.position == 10

    def test_missing_operand(self):
        with pytest.raises(ParseError) as exc_info:
            parse("&& a = 1")
        assert exc_info.value.position == 0

    def test_trailing_garbage(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a = 1 b = 2")
        assert exc_info.value.position == 6

    def test_bare_identifier(self):
        with pytest.raises(ParseError):
            parse("published")

    def test_identifier_as_value(self):
        with pytest.raises(ParseError):
            parse("country = UK")

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_input(self, text):
        with pytest.raises(ParseError) as exc_info:
            parse(text)
        assert exc_info.value.position == 0

    def test_non_string_input(self):
        with pytest.raises(TypeError):
            parse(None)  # type: ignore[arg-type]

    def test_str_includes_position(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a = ")
        assert "position 4" in str(exc_info.value)

    def test_deep_parentheses(self):
        text = "(" * 2000 + "a = 1" + ")" * 2000
        with pytest.raises(ParseError, match="nested too deeply") as exc_info:
            parse(text)
        assert exc_info.value.position == MAX_NESTING

    def test_long_not_chain(self):
        with pytest.raises(ParseError, match="nested too deeply") as exc_info:
            parse("!" * 5000 + "a = 1")
        assert exc_info.value.position == MAX_NESTING

    def test_nesting_at_limit(self):
        text = "(" * MAX_NESTING + "a = 1" + ")" * MAX_NESTING
        assert parse(text) == _eq("a", 1)

    def test_nesting_resets_between_groups(self):
        group = "(" * MAX_NESTING + "a = 1" + ")" * MAX_NESTING
        assert parse(f"{group} && {group}") == Logical(LogicalOp.AND, (_eq("a", 1), _eq("a", 1)))


class TestIsIdentifier:
    @pytest.mark.parametrize("name", ["year", "_private", "meta.year", "Genre2"])
    def test_valid(self, name):
        assert is_identifier(name)

    @pytest.mark.parametrize("name", ["", "release-year", "2nd", "release year", "in", "NOT", "true"])
    def test_invalid(self, name):
        assert not is_identifier(name)
