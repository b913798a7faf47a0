#!/usr/bin/env python3
"""
Budget Periods

A budget period is a temporal key for allocations: a calendar month, an ISO week,
a fixed two-week slot, or an arbitrary custom date range.

Text formats accepted by ``Period.parse`` and produced by ``label()``:
- Monthly:  "2025-01"
- Weekly:   "2025-W03"
- Biweekly: "BW:2025-01-06"  (start date must align with BIWEEKLY_ANCHOR)
- Custom:   "2025-01-01..2025-01-15"

Periods of the same kind are totally ordered by their start date. Comparing
periods of different kinds raises TypeError. Monthly, weekly and biweekly
periods tile the calendar, so successor/predecessor are defined for them;
custom ranges do not tile and reject navigation.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from .dates import add_days, days_in_month, days_inclusive, iso_weeks_in_year, parse_iso_date
from .errors import ParseError, ValidationError

# Biweekly slots are counted in 14-day steps from this Monday
BIWEEKLY_ANCHOR = date(2001, 1, 1)

_MONTHLY_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_WEEKLY_RE = re.compile(r"^(\d{4})-W(\d{1,2})$", re.IGNORECASE)
_BIWEEKLY_PREFIX = "BW:"


class PeriodType(Enum):
    """Period families."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    CUSTOM = "custom"


class Period(ABC):
    """Base class for all period variants."""

    kind: PeriodType

    @property
    @abstractmethod
    def start_date(self) -> date: ...

    @property
    @abstractmethod
    def end_date(self) -> date:
        """Last day of the period (inclusive)."""
        ...

    @abstractmethod
    def successor(self) -> "Period": ...

    @abstractmethod
    def predecessor(self) -> "Period": ...

    @abstractmethod
    def label(self) -> str: ...

    @abstractmethod
    def ordinal(self) -> int:
        """Position of this period in its family's sequence."""
        ...

    @property
    def days(self) -> int:
        """Number of days covered, both ends included."""
        return days_inclusive(self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        """Check if a date falls within this period."""
        return self.start_date <= day <= self.end_date

    def period_containing(self, day: date) -> "Period":
        """Period of the same family that contains ``day``."""
        return Period.for_date(self.kind, day)

    def periods_through(self, other: "Period") -> int:
        """
        Count periods from this one up to and including ``other``.

        Returns 0 when ``other`` precedes this period.
        """
        if type(other) is not type(self):
            raise ValidationError(f"Cannot count from {self.kind.value} to {other.kind.value} period")
        return max(0, other.ordinal() - self.ordinal() + 1)

    def is_contiguous_with(self, following: "Period") -> bool:
        """True when ``following`` starts the day after this period ends."""
        return following.start_date == add_days(self.end_date, 1)

    def _same_kind(self, other: object) -> bool:
        return type(other) is type(self)

    def __lt__(self, other: "Period") -> bool:
        if not self._same_kind(other):
            return NotImplemented
        return (self.start_date, self.end_date) < (other.start_date, other.end_date)

    def __le__(self, other: "Period") -> bool:
        if not self._same_kind(other):
            return NotImplemented
        return (self.start_date, self.end_date) <= (other.start_date, other.end_date)

    def __gt__(self, other: "Period") -> bool:
        if not self._same_kind(other):
            return NotImplemented
        return (self.start_date, self.end_date) > (other.start_date, other.end_date)

    def __ge__(self, other: "Period") -> bool:
        if not self._same_kind(other):
            return NotImplemented
        return (self.start_date, self.end_date) >= (other.start_date, other.end_date)

    def __str__(self) -> str:
        return self.label()

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a tagged dict."""
        return {"type": self.kind.value, "value": self.label()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Period":
        period = cls.parse(data["value"])
        if period.kind.value != data.get("type", period.kind.value):
            raise ParseError(f"Period type mismatch: {data!r}")
        return period

    @staticmethod
    def parse(text: str) -> "Period":
        """
        Parse a period label.

        Raises:
            ParseError: If the text matches none of the supported formats
        """
        if not isinstance(text, str):
            raise ParseError(f"Period must be text, got {type(text).__name__}")
        s = text.strip()

        if s.upper().startswith(_BIWEEKLY_PREFIX):
            start = parse_iso_date(s[len(_BIWEEKLY_PREFIX):])
            offset = (start - BIWEEKLY_ANCHOR).days
            if offset % 14 != 0:
                raise ParseError(f"Biweekly period must start on a slot boundary: {text!r}")
            return BiweeklyPeriod(index=offset // 14)

        if ".." in s:
            start_text, _, end_text = s.partition("..")
            start, end = parse_iso_date(start_text), parse_iso_date(end_text)
            try:
                return CustomPeriod(start=start, end=end)
            except ValidationError as e:
                raise ParseError(str(e)) from e

        match = _WEEKLY_RE.match(s)
        if match:
            year, week = int(match.group(1)), int(match.group(2))
            if not 1 <= week <= iso_weeks_in_year(year):
                raise ParseError(f"Invalid ISO week {week} for {year}")
            return WeeklyPeriod(year=year, week=week)

        match = _MONTHLY_RE.match(s)
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            if not 1 <= month <= 12:
                raise ParseError(f"Invalid month: {month}")
            return MonthlyPeriod(year=year, month=month)

        raise ParseError(f"Invalid period format: {text!r}")

    @staticmethod
    def for_date(period_type: PeriodType, day: date) -> "Period":
        """Get the period of the given family containing ``day``."""
        if period_type == PeriodType.MONTHLY:
            return MonthlyPeriod(year=day.year, month=day.month)
        if period_type == PeriodType.WEEKLY:
            iso_year, iso_week, _ = day.isocalendar()
            return WeeklyPeriod(year=iso_year, week=iso_week)
        if period_type == PeriodType.BIWEEKLY:
            return BiweeklyPeriod(index=(day - BIWEEKLY_ANCHOR).days // 14)
        raise ValidationError("Custom periods have no canonical period for a date")

    @staticmethod
    def current(period_type: PeriodType, today: date) -> "Period":
        """Period containing ``today``; the caller supplies the date explicitly."""
        return Period.for_date(period_type, today)


@dataclass(frozen=True)
class MonthlyPeriod(Period):
    """Calendar month."""

    year: int
    month: int
    kind = PeriodType.MONTHLY

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month: {self.month}")

    @property
    def start_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end_date(self) -> date:
        return date(self.year, self.month, days_in_month(self.year, self.month))

    def successor(self) -> "MonthlyPeriod":
        if self.month == 12:
            return MonthlyPeriod(year=self.year + 1, month=1)
        return MonthlyPeriod(year=self.year, month=self.month + 1)

    def predecessor(self) -> "MonthlyPeriod":
        if self.month == 1:
            return MonthlyPeriod(year=self.year - 1, month=12)
        return MonthlyPeriod(year=self.year, month=self.month - 1)

    def ordinal(self) -> int:
        return self.year * 12 + self.month - 1

    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class WeeklyPeriod(Period):
    """ISO week (Monday through Sunday)."""

    year: int
    week: int
    kind = PeriodType.WEEKLY

    def __post_init__(self):
        if not 1 <= self.week <= iso_weeks_in_year(self.year):
            raise ValidationError(f"Invalid ISO week {self.week} for {self.year}")

    @property
    def start_date(self) -> date:
        return date.fromisocalendar(self.year, self.week, 1)

    @property
    def end_date(self) -> date:
        return date.fromisocalendar(self.year, self.week, 7)

    def successor(self) -> "WeeklyPeriod":
        if self.week >= iso_weeks_in_year(self.year):
            return WeeklyPeriod(year=self.year + 1, week=1)
        return WeeklyPeriod(year=self.year, week=self.week + 1)

    def predecessor(self) -> "WeeklyPeriod":
        if self.week == 1:
            return WeeklyPeriod(year=self.year - 1, week=iso_weeks_in_year(self.year - 1))
        return WeeklyPeriod(year=self.year, week=self.week - 1)

    def ordinal(self) -> int:
        # Mondays are 7 days apart, so the ordinal of the start day is a week counter
        return self.start_date.toordinal() // 7

    def label(self) -> str:
        return f"{self.year:04d}-W{self.week:02d}"


@dataclass(frozen=True)
class BiweeklyPeriod(Period):
    """Fourteen-day slot numbered from BIWEEKLY_ANCHOR (index may be negative)."""

    index: int
    kind = PeriodType.BIWEEKLY

    @property
    def start_date(self) -> date:
        return BIWEEKLY_ANCHOR + timedelta(days=14 * self.index)

    @property
    def end_date(self) -> date:
        return add_days(self.start_date, 13)

    def successor(self) -> "BiweeklyPeriod":
        return BiweeklyPeriod(index=self.index + 1)

    def predecessor(self) -> "BiweeklyPeriod":
        return BiweeklyPeriod(index=self.index - 1)

    def ordinal(self) -> int:
        return self.index

    def label(self) -> str:
        return f"{_BIWEEKLY_PREFIX}{self.start_date.isoformat()}"


@dataclass(frozen=True)
class CustomPeriod(Period):
    """Arbitrary inclusive date range."""

    start: date
    end: date
    kind = PeriodType.CUSTOM

    def __post_init__(self):
        if self.end < self.start:
            raise ValidationError(f"Custom period ends before it starts: {self.start}..{self.end}")

    @property
    def start_date(self) -> date:
        return self.start

    @property
    def end_date(self) -> date:
        return self.end

    def successor(self) -> "CustomPeriod":
        raise ValidationError(f"Custom period {self.label()} has no successor")

    def predecessor(self) -> "CustomPeriod":
        raise ValidationError(f"Custom period {self.label()} has no predecessor")

    def ordinal(self) -> int:
        raise ValidationError(f"Custom period {self.label()} has no position in a sequence")

    def period_containing(self, day: date) -> "Period":
        raise ValidationError("Custom periods have no canonical period for a date")

    def periods_through(self, other: "Period") -> int:
        """
        Count same-length slots from this range up to the slot holding ``other``'s end.

        Custom ranges do not tile, so this measures hypothetical back-to-back
        repetitions of this range's length.
        """
        if other.end_date < self.start:
            return 0
        return -(-days_inclusive(self.start, other.end_date) // self.days)

    def label(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
