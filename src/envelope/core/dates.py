#!/usr/bin/env python3
"""
Calendar Helpers

Small date utilities used by budget periods and cadence conversion.
All functions work on plain ``datetime.date`` values.
"""

import calendar
from datetime import date, datetime, timedelta

from .errors import ParseError


def parse_iso_date(text: str, date_format: str = "%Y-%m-%d") -> date:
    """
    Parse a date string (ISO format by default).

    Args:
        text: Date string to parse
        date_format: strptime format

    Returns:
        Parsed date

    Raises:
        ParseError: If the text does not match the format
    """
    try:
        return datetime.strptime(text.strip(), date_format).date()
    except (ValueError, AttributeError) as e:
        raise ParseError(f"Invalid date: {text!r}") from e


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    return calendar.monthrange(year, month)[1]


def iso_weeks_in_year(year: int) -> int:
    """Number of ISO weeks (52 or 53) in an ISO week-numbering year."""
    # December 28th always falls in the last ISO week of its year
    return date(year, 12, 28).isocalendar()[1]


def days_inclusive(start: date, end: date) -> int:
    """Count of days from start to end, both included."""
    return (end - start).days + 1


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
