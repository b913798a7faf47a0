#!/usr/bin/env python3
"""Tests for Money primitive type."""

import pytest

from envelope.core.errors import ParseError, ValidationError
from envelope.core.money import Money


class TestMoneyConstruction:
    """Test Money class construction."""

    @pytest.mark.currency
    def test_from_cents(self):
        """Test creating Money from cents."""
        m = Money.from_cents(1234)
        assert m.to_cents() == 1234

    @pytest.mark.currency
    def test_from_major_minor(self):
        """Test creating Money from whole units and subunits."""
        assert Money.from_major_minor(12, 34).to_cents() == 1234
        assert Money.from_major_minor(-12, 34).to_cents() == -1234
        assert Money.from_major_minor(0, -5).to_cents() == -5

    @pytest.mark.currency
    @pytest.mark.parametrize("units, subunits", [(1, 100), (1, 150), (-2, -5), (3, -1), (0, -100)])
    def test_from_major_minor_rejects_out_of_range_subunits(self, units, subunits):
        """Test subunits that would spill into the whole units are refused."""
        with pytest.raises(ValidationError, match="Subunits"):
            Money.from_major_minor(units, subunits)

    @pytest.mark.currency
    def test_parse(self):
        """Test parsing user-entered text."""
        assert Money.parse("$1,234.56").to_cents() == 123456
        assert Money.parse("-12.5").to_cents() == -1250
        assert Money.parse("12").to_cents() == 1200

    @pytest.mark.currency
    @pytest.mark.parametrize("text", ["", "abc", "12.345", "1.2.3", "$", "99999999999999999999"])
    def test_parse_rejects_malformed_text(self, text):
        """Test that malformed, over-precise and overflowing text fails to parse."""
        with pytest.raises(ParseError):
            Money.parse(text)

    @pytest.mark.currency
    def test_rejects_non_integer_cents(self):
        """Test that float cents are refused."""
        with pytest.raises(TypeError):
            Money(cents=12.5)
        with pytest.raises(TypeError):
            Money(cents=True)


class TestMoneyArithmetic:
    """Test Money arithmetic operations."""

    @pytest.mark.currency
    def test_addition(self):
        """Test adding Money objects."""
        a = Money.from_cents(100)
        b = Money.from_cents(50)
        assert (a + b).to_cents() == 150
        assert a.add(b) == a + b

    @pytest.mark.currency
    def test_subtraction(self):
        """Test subtracting Money objects."""
        a = Money.from_cents(100)
        b = Money.from_cents(30)
        assert (a - b).to_cents() == 70
        assert a.subtract(b) == a - b

    @pytest.mark.currency
    def test_negate_and_abs(self):
        """Test sign operations."""
        m = Money.from_cents(-4599)
        assert m.negate().to_cents() == 4599
        assert (-m).to_cents() == 4599
        assert m.abs().to_cents() == 4599

    @pytest.mark.currency
    def test_multiplication(self):
        """Test multiplying Money by integer scalar."""
        m = Money.from_cents(50)
        assert (m * 3).to_cents() == 150
        assert (3 * m).to_cents() == 150

    @pytest.mark.currency
    def test_total(self):
        """Test summing an iterable of Money."""
        assert Money.total([]) == Money.zero()
        assert Money.total(Money.from_cents(c) for c in (1, 2, 3)).to_cents() == 6

    @pytest.mark.currency
    def test_adding_non_money_is_type_error(self):
        """Test that mixing Money with plain numbers is refused."""
        with pytest.raises(TypeError):
            Money.from_cents(100) + 1


class TestMoneyComparison:
    """Test Money comparison operations."""

    @pytest.mark.currency
    def test_equality(self):
        """Test Money equality."""
        a = Money.from_cents(100)
        b = Money.from_cents(100)
        c = Money.from_cents(50)

        assert a == b
        assert a != c

    @pytest.mark.currency
    def test_ordering(self):
        """Test total order and three-way compare."""
        small = Money.from_cents(-1)
        big = Money.from_cents(1)

        assert small < big
        assert big >= small
        assert small.compare(big) == -1
        assert big.compare(small) == 1
        assert big.compare(Money.from_cents(1)) == 0

    @pytest.mark.currency
    def test_sign_predicates(self):
        """Test zero/positive/negative predicates."""
        assert Money.zero().is_zero()
        assert Money.from_cents(1).is_positive()
        assert Money.from_cents(-1).is_negative()
        assert not Money.zero().is_negative()

    @pytest.mark.currency
    def test_hashable(self):
        """Test Money can be used in sets and dict keys."""
        assert len({Money.from_cents(5), Money.from_cents(5)}) == 1


class TestMoneyFormatting:
    """Test Money string formatting."""

    @pytest.mark.currency
    def test_display_string(self):
        """Test formatting with thousands separators and sign before the symbol."""
        assert Money.from_cents(123456).to_display_string() == "$1,234.56"
        assert Money.from_cents(-123456).to_display_string() == "-$1,234.56"
        assert Money.from_cents(5).to_display_string("€") == "€0.05"

    @pytest.mark.currency
    def test_str_and_repr(self):
        """Test str uses display format and repr shows cents."""
        m = Money.from_cents(-1234)
        assert str(m) == "-$12.34"
        assert repr(m) == "Money(cents=-1234)"
