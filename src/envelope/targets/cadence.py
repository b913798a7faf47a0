#!/usr/bin/env python3
"""
Target Cadences and Period Conversion

A cadence is the recurrence rule of a budget target. The cadence types form a
closed union; ``convert_cadence_to_period_amount`` handles every
(cadence, period) pair and raises TypeError for anything outside the union.

Conversion rules (all rounding is round-half-up on whole cents):

    cadence \\ period   Monthly          Weekly          Biweekly    Custom(d days)
    Weekly              x days/7         x               x 2         x d/7
    Monthly             x                / 4.33          / 2         x d/30
    Yearly              / 12 *           / 52            / 26        x d/365
    Custom(n days)      x days/n         x 7/n           x 14/n      x d/n
    ByDate              residual spread over the periods left (see by_date_suggestion)

    * December absorbs the rounding remainder so twelve months sum to the yearly amount.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from ..core.currency import allocate_remainder, decimal_ratio, divide_ceiling, divide_round_half_up, scale_cents
from ..core.dates import parse_iso_date
from ..core.errors import ParseError, ValidationError
from ..core.money import Money
from ..core.periods import BiweeklyPeriod, CustomPeriod, MonthlyPeriod, Period, WeeklyPeriod

# Average weeks per month, 365.25 / 12 / 7, as the conventional two-decimal constant
WEEKS_PER_MONTH = "4.33"
_WEEKS_PER_MONTH_NUM, _WEEKS_PER_MONTH_DEN = decimal_ratio(WEEKS_PER_MONTH)


@dataclass(frozen=True)
class WeeklyCadence:
    def describe(self) -> str:
        return "Weekly"


@dataclass(frozen=True)
class MonthlyCadence:
    def describe(self) -> str:
        return "Monthly"


@dataclass(frozen=True)
class YearlyCadence:
    def describe(self) -> str:
        return "Yearly"


@dataclass(frozen=True)
class CustomCadence:
    """Repeats every ``days`` days."""

    days: int

    def describe(self) -> str:
        return f"Every {self.days} days"


@dataclass(frozen=True)
class ByDateCadence:
    """One-off goal: accumulate the target amount by ``target_date``."""

    target_date: date

    def describe(self) -> str:
        return f"By {self.target_date.isoformat()}"


Cadence = Union[WeeklyCadence, MonthlyCadence, YearlyCadence, CustomCadence, ByDateCadence]


def cadence_to_dict(cadence: Cadence) -> dict[str, Any]:
    """Serialize a cadence as a tagged dict."""
    if isinstance(cadence, WeeklyCadence):
        return {"type": "weekly"}
    if isinstance(cadence, MonthlyCadence):
        return {"type": "monthly"}
    if isinstance(cadence, YearlyCadence):
        return {"type": "yearly"}
    if isinstance(cadence, CustomCadence):
        return {"type": "custom", "days": cadence.days}
    if isinstance(cadence, ByDateCadence):
        return {"type": "by_date", "target_date": cadence.target_date.isoformat()}
    raise TypeError(f"Unknown cadence: {cadence!r}")


def cadence_from_dict(data: dict[str, Any]) -> Cadence:
    """Deserialize a cadence written by ``cadence_to_dict``."""
    kind = data.get("type")
    if kind == "weekly":
        return WeeklyCadence()
    if kind == "monthly":
        return MonthlyCadence()
    if kind == "yearly":
        return YearlyCadence()
    if kind == "custom":
        return CustomCadence(days=int(data["days"]))
    if kind == "by_date":
        return ByDateCadence(target_date=date.fromisoformat(data["target_date"]))
    raise ParseError(f"Unknown cadence type: {kind!r}")


def parse_cadence(text: str) -> Cadence:
    """
    Parse cadence text as entered on the command line.

    Formats: "weekly", "monthly", "yearly", "every:14" (days), "by:2025-12-31".
    """
    s = text.strip().lower()
    if s == "weekly":
        return WeeklyCadence()
    if s == "monthly":
        return MonthlyCadence()
    if s == "yearly":
        return YearlyCadence()
    if s.startswith("every:"):
        try:
            return CustomCadence(days=int(s.removeprefix("every:")))
        except ValueError as e:
            raise ParseError(f"Invalid custom cadence: {text!r}") from e
    if s.startswith("by:"):
        return ByDateCadence(target_date=parse_iso_date(s.removeprefix("by:")))
    raise ParseError(f"Invalid cadence: {text!r}")


def by_date_periods_remaining(target_date: date, period: Period) -> int:
    """
    Count periods from ``period`` up to and including the one holding ``target_date``.

    Zero when the target date falls before the query period.
    """
    if isinstance(period, CustomPeriod):
        return period.periods_through(CustomPeriod(start=target_date, end=target_date))
    if target_date < period.start_date:
        return 0
    return period.periods_through(period.period_containing(target_date))


def by_date_suggestion(
    target_amount: Money,
    target_date: date,
    period: Period,
    cumulative_paid: Money | None = None,
) -> Money:
    """
    Suggested assignment for a by-date goal in ``period``.

    The unpaid residual is spread evenly over the periods left, rounding each
    share up so the goal is never under-funded. The last period's share is the
    whole residual. Once the target date has passed the full residual is due.
    """
    paid = cumulative_paid if cumulative_paid is not None else Money.zero()
    remaining_needed = max(0, target_amount.to_cents() - paid.to_cents())
    periods_remaining = by_date_periods_remaining(target_date, period)

    if periods_remaining == 0:
        return Money.from_cents(remaining_needed)
    return Money.from_cents(divide_ceiling(remaining_needed, periods_remaining))


def _weekly_amount(cents: int, period: Period) -> int:
    if isinstance(period, WeeklyPeriod):
        return cents
    if isinstance(period, BiweeklyPeriod):
        return cents * 2
    return scale_cents(cents, period.days, 7)


def _monthly_amount(cents: int, period: Period) -> int:
    if isinstance(period, MonthlyPeriod):
        return cents
    if isinstance(period, WeeklyPeriod):
        return scale_cents(cents, _WEEKS_PER_MONTH_DEN, _WEEKS_PER_MONTH_NUM)
    if isinstance(period, BiweeklyPeriod):
        return divide_round_half_up(cents, 2)
    return scale_cents(cents, period.days, 30)


def _yearly_amount(cents: int, period: Period) -> int:
    if isinstance(period, MonthlyPeriod):
        share = divide_round_half_up(cents, 12)
        if share * 11 > cents:
            # rounding up would leave December negative
            share = cents // 12
        months = allocate_remainder([share] * 12, cents)
        return months[period.month - 1]
    if isinstance(period, WeeklyPeriod):
        return divide_round_half_up(cents, 52)
    if isinstance(period, BiweeklyPeriod):
        return divide_round_half_up(cents, 26)
    return scale_cents(cents, period.days, 365)


def convert_cadence_to_period_amount(target_amount: Money, cadence: Cadence, period: Period) -> Money:
    """
    Convert a target amount at its own cadence into the amount due in ``period``.

    By-date goals are converted as if nothing had been paid yet; the target
    engine supplies payment progress through ``by_date_suggestion``.

    Raises:
        ValidationError: Custom cadence with a non-positive interval
        TypeError: Cadence or period outside the supported variants
    """
    if not isinstance(period, (MonthlyPeriod, WeeklyPeriod, BiweeklyPeriod, CustomPeriod)):
        raise TypeError(f"Unknown period: {period!r}")

    cents = target_amount.to_cents()
    if isinstance(cadence, WeeklyCadence):
        return Money.from_cents(_weekly_amount(cents, period))
    if isinstance(cadence, MonthlyCadence):
        return Money.from_cents(_monthly_amount(cents, period))
    if isinstance(cadence, YearlyCadence):
        return Money.from_cents(_yearly_amount(cents, period))
    if isinstance(cadence, CustomCadence):
        if cadence.days < 1:
            raise ValidationError("Custom interval must be at least 1 day")
        return Money.from_cents(scale_cents(cents, period.days, cadence.days))
    if isinstance(cadence, ByDateCadence):
        return by_date_suggestion(target_amount, cadence.target_date, period)
    raise TypeError(f"Unknown cadence: {cadence!r}")
