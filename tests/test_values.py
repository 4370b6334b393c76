"""Unit tests for value stringification and coercion."""

from decimal import Decimal

import pytest

from runbook_templates import MISSING
from runbook_templates.values import coerce_bool, coerce_number, is_absent, stringify


class TestStringify:
    """Test rendering values as text."""

    @pytest.mark.parametrize("value,expected", [
        (MISSING, ""),
        (None, ""),
        ("", ""),
        ("a b  c", "a b  c"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (-7, "-7"),
        (42.0, "42"),
        (42.5, "42.5"),
        (1e20, "100000000000000000000"),
        (1.5e-7, "0.00000015"),
        (Decimal("1.50"), "1.5"),
        (Decimal("1E+3"), "1000"),
        (Decimal("-0"), "0"),
    ])
    def test_stringify(self, value, expected):
        """Values render in canonical form."""
        assert stringify(value) == expected

    def test_strings_not_escaped(self):
        """Quotes and shell metacharacters are passed through verbatim."""
        assert stringify("it's \"$(rm -rf)\"") == "it's \"$(rm -rf)\""

    def test_non_finite_rejected(self):
        """Infinity and NaN have no decimal form."""
        with pytest.raises(ValueError):
            stringify(float("inf"))
        with pytest.raises(ValueError):
            stringify(Decimal("NaN"))

    def test_unsupported_type(self):
        """Containers cannot be rendered."""
        with pytest.raises(TypeError):
            stringify(["a"])
        with pytest.raises(TypeError):
            stringify({"a": 1})


class TestCoerceNumber:
    """Test number coercion."""

    @pytest.mark.parametrize("value,expected", [
        ("42", 42),
        (" 42 ", 42),
        ("-3", -3),
        ("+5", 5),
        ("042", 42),
        ("42.0", 42),
        ("42.5", Decimal("42.5")),
        (".5", Decimal("0.5")),
        (7, 7),
        (2.5, Decimal("2.5")),
    ])
    def test_valid_numbers(self, value, expected):
        """Integers and decimals parse completely."""
        assert coerce_number(value) == expected

    def test_very_long_integer(self):
        """Integers beyond the int/str digit limit coerce and render exactly."""
        digits = "9" * 5000
        assert stringify(coerce_number(digits)) == digits

    def test_long_fraction_keeps_every_digit(self):
        """Decimals are not rounded to the context precision."""
        text = "0." + "1234567890" * 5 + "1"
        assert stringify(coerce_number(text)) == text

    @pytest.mark.parametrize("value", ["٤٢", "４２", "1.٥"])
    def test_non_ascii_digits_rejected(self, value):
        """Only ASCII base-10 digits are numbers."""
        with pytest.raises(ValueError):
            coerce_number(value)

    def test_integral_results_are_int(self):
        """Integral values come back as int so they render without '.0'."""
        assert isinstance(coerce_number("10.00"), int)
        assert isinstance(coerce_number("10.5"), Decimal)

    @pytest.mark.parametrize("value", [
        "abc", "", "  ", "42abc", "4 2", "1e3", "0x1A", "42.", "--1", "NaN", "inf", True,
    ])
    def test_invalid_numbers(self, value):
        """Partial parses, exponents and non-numbers are rejected."""
        with pytest.raises(ValueError):
            coerce_number(value)


class TestCoerceBool:
    """Test boolean coercion."""

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("TRUE", True),
        (" False ", False),
        (True, True),
        (False, False),
    ])
    def test_valid_bools(self, value, expected):
        """true/false are accepted in any case."""
        assert coerce_bool(value) is expected

    @pytest.mark.parametrize("value", ["yes", "1", "", 1, "t"])
    def test_invalid_bools(self, value):
        """Anything else is rejected."""
        with pytest.raises(ValueError):
            coerce_bool(value)


def test_is_absent():
    """Only MISSING and None are absent; empty strings are values."""
    assert is_absent(MISSING)
    assert is_absent(None)
    assert not is_absent("")
    assert not is_absent(0)
    assert not is_absent(False)
