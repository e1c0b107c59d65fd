"""Unit tests for identifier quoting and literal coercion."""

import pytest
from datetime import datetime

from app.query.exceptions import CompilationError, InvalidIdentifier
from app.query.sanitizer import coerce_literal, quote_identifier


class TestQuoteIdentifier:

    @pytest.mark.parametrize("name", ["EMP", "first name", "NUMERO_ECRITURE", "é_colonne"])
    def test_valid_identifiers_are_double_quoted(self, name):
        assert quote_identifier(name) == f'"{name}"'

    @pytest.mark.parametrize("name", ["", "   ", None, 'EMP"; DROP TABLE EMP; --', "O'Brien", "`EMP`", "EMP\x00"])
    def test_rejected_identifiers(self, name):
        with pytest.raises(InvalidIdentifier):
            quote_identifier(name)

    def test_invalid_identifier_is_a_compilation_error(self):
        with pytest.raises(CompilationError) as exc_info:
            quote_identifier('bad"name')
        assert exc_info.value.status_code == 400
        assert exc_info.value.identifier == 'bad"name'


class TestCoerceLiteral:

    def test_integer_string_becomes_int(self):
        assert coerce_literal("1000") == 1000
        assert isinstance(coerce_literal("1000"), int)

    def test_decimal_string_becomes_float(self):
        assert coerce_literal("12.5") == 12.5

    def test_numeric_string_is_numeric_even_for_text_columns(self):
        """A zip code like value still compares as a number"""
        assert coerce_literal("00123") == 123

    def test_iso_date_becomes_datetime(self):
        assert coerce_literal("2024-01-15") == datetime(2024, 1, 15)

    def test_timestamp_becomes_datetime(self):
        assert coerce_literal("2024-01-15T08:30:00") == datetime(2024, 1, 15, 8, 30)

    def test_plain_text_passes_through(self):
        assert coerce_literal("SMITH") == "SMITH"

    def test_month_name_alone_is_not_a_date(self):
        assert coerce_literal("March") == "March"

    def test_underscored_digits_stay_text(self):
        assert coerce_literal("1_000") == "1_000"

    def test_nan_is_not_a_number(self):
        assert coerce_literal("nan") == "nan"

    @pytest.mark.parametrize("raw", [42, 3.5, True, None])
    def test_non_strings_pass_through(self, raw):
        assert coerce_literal(raw) is raw

    def test_blank_string_passes_through(self):
        assert coerce_literal("  ") == "  "
