#!/usr/bin/env python3
"""Tests for budget periods."""

from datetime import date

import pytest

from envelope.core.errors import ParseError, ValidationError
from envelope.core.periods import (
    BiweeklyPeriod,
    CustomPeriod,
    MonthlyPeriod,
    Period,
    PeriodType,
    WeeklyPeriod,
)


@pytest.mark.unit
class TestPeriodParsing:
    """Test parsing and labels for every period family."""

    def test_monthly(self):
        """Test monthly labels round-trip."""
        period = Period.parse("2025-01")
        assert period == MonthlyPeriod(year=2025, month=1)
        assert period.label() == "2025-01"
        assert period.kind is PeriodType.MONTHLY

    def test_weekly(self):
        """Test ISO week parsing."""
        period = Period.parse("2025-W03")
        assert period == WeeklyPeriod(year=2025, week=3)
        assert period.start_date == date(2025, 1, 13)
        assert period.end_date == date(2025, 1, 19)
        assert period.label() == "2025-W03"

    def test_biweekly(self):
        """Test biweekly slots aligned to the anchor Monday."""
        period = Period.parse("BW:2024-12-30")
        assert isinstance(period, BiweeklyPeriod)
        assert period.start_date == date(2024, 12, 30)
        assert period.end_date == date(2025, 1, 12)
        assert Period.parse(period.label()) == period

    def test_biweekly_misaligned_start(self):
        """Test that a biweekly start off the slot grid is rejected."""
        with pytest.raises(ParseError):
            Period.parse("BW:2025-01-06")

    def test_custom(self):
        """Test custom ranges."""
        period = Period.parse("2025-01-01..2025-01-15")
        assert period == CustomPeriod(start=date(2025, 1, 1), end=date(2025, 1, 15))
        assert period.days == 15

    @pytest.mark.parametrize(
        "text", ["2025-13", "2025-W54", "garbage", "2025-01-15..2025-01-01", "BW:not-a-date", ""]
    )
    def test_invalid_text(self, text):
        """Test malformed labels raise ParseError."""
        with pytest.raises(ParseError):
            Period.parse(text)

    def test_dict_round_trip(self):
        """Test tagged dict serialization."""
        for period in [
            MonthlyPeriod(2025, 2),
            WeeklyPeriod(2025, 10),
            BiweeklyPeriod(626),
            CustomPeriod(date(2025, 3, 1), date(2025, 3, 9)),
        ]:
            assert Period.from_dict(period.to_dict()) == period


@pytest.mark.unit
class TestPeriodNavigation:
    """Test successor, predecessor and containment."""

    def test_monthly_year_boundary(self):
        """Test December rolls into January."""
        assert MonthlyPeriod(2024, 12).successor() == MonthlyPeriod(2025, 1)
        assert MonthlyPeriod(2025, 1).predecessor() == MonthlyPeriod(2024, 12)

    def test_weekly_53_week_year(self):
        """Test ISO years with 53 weeks."""
        assert WeeklyPeriod(2020, 52).successor() == WeeklyPeriod(2020, 53)
        assert WeeklyPeriod(2020, 53).successor() == WeeklyPeriod(2021, 1)
        assert WeeklyPeriod(2021, 1).predecessor() == WeeklyPeriod(2020, 53)

    def test_biweekly_steps(self):
        """Test biweekly periods tile in 14-day steps."""
        period = BiweeklyPeriod(626)
        assert period.successor().start_date == date(2025, 1, 13)
        assert period.predecessor().successor() == period

    def test_custom_has_no_successor(self):
        """Test custom ranges refuse navigation."""
        period = CustomPeriod(date(2025, 1, 1), date(2025, 1, 10))
        with pytest.raises(ValidationError):
            period.successor()
        with pytest.raises(ValidationError):
            period.predecessor()

    def test_contains(self):
        """Test date containment is inclusive at both ends."""
        period = MonthlyPeriod(2024, 2)
        assert period.contains(date(2024, 2, 1))
        assert period.contains(date(2024, 2, 29))
        assert not period.contains(date(2024, 3, 1))
        assert period.days == 29

    def test_current_uses_explicit_date(self):
        """Test current() resolves the family's period for the given day."""
        today = date(2025, 1, 6)
        assert Period.current(PeriodType.MONTHLY, today) == MonthlyPeriod(2025, 1)
        assert Period.current(PeriodType.WEEKLY, today) == WeeklyPeriod(2025, 2)
        assert Period.current(PeriodType.BIWEEKLY, today) == BiweeklyPeriod(626)
        with pytest.raises(ValidationError):
            Period.current(PeriodType.CUSTOM, today)

    def test_periods_through(self):
        """Test inclusive period counting."""
        january = MonthlyPeriod(2025, 1)
        assert january.periods_through(MonthlyPeriod(2025, 12)) == 12
        assert january.periods_through(january) == 1
        assert january.periods_through(MonthlyPeriod(2024, 12)) == 0

    def test_contiguity(self):
        """Test custom ranges are contiguous only when back to back."""
        first = CustomPeriod(date(2025, 1, 1), date(2025, 1, 10))
        assert first.is_contiguous_with(CustomPeriod(date(2025, 1, 11), date(2025, 1, 20)))
        assert not first.is_contiguous_with(CustomPeriod(date(2025, 1, 12), date(2025, 1, 20)))
        assert MonthlyPeriod(2025, 1).is_contiguous_with(MonthlyPeriod(2025, 2))


@pytest.mark.unit
class TestPeriodOrdering:
    """Test chronological order within a family."""

    def test_same_kind_ordering(self):
        """Test periods of one family sort chronologically."""
        periods = [MonthlyPeriod(2025, 3), MonthlyPeriod(2024, 12), MonthlyPeriod(2025, 1)]
        assert sorted(periods) == [MonthlyPeriod(2024, 12), MonthlyPeriod(2025, 1), MonthlyPeriod(2025, 3)]

    def test_cross_kind_comparison_is_type_error(self):
        """Test that monthly and weekly periods cannot be ordered against each other."""
        with pytest.raises(TypeError):
            MonthlyPeriod(2025, 1) < WeeklyPeriod(2025, 1)

    def test_hashable_as_keys(self):
        """Test periods work as dict keys."""
        totals = {MonthlyPeriod(2025, 1): 1}
        assert totals[Period.parse("2025-01")] == 1
