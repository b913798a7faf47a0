#!/usr/bin/env python3
"""
Money Value Type

Signed amount of a single currency held as integer cents. Ledger arithmetic
never touches floats: parsing, display and every division go through the
integer helpers in ``currency``.
"""

import operator
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .currency import format_cents, parse_dollars_to_cents
from .errors import ValidationError


@dataclass(frozen=True, order=True)
class Money:
    """
    Amount in cents. Inflows are positive, outflows negative.

    Equality, ordering and hashing come from the single ``cents`` field, so
    Money sorts and deduplicates like the integer it wraps.

    Examples:
        >>> paycheck = Money.from_cents(123456)
        >>> str(paycheck)
        '$1,234.56'

        >>> coffee = Money.from_major_minor(-45, 99)
        >>> coffee.to_cents()
        -4599

        >>> str(paycheck + coffee)
        '$1,188.57'
    """

    cents: int

    def __post_init__(self):
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(f"Money requires integer cents, got {type(self.cents).__name__}")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        return cls(cents)

    @classmethod
    def from_major_minor(cls, units: int, subunits: int = 0) -> "Money":
        """
        Build an amount from whole units and subunits.

        The subunits take the sign of the units, so ``(-12, 34)`` is -$12.34.
        Pass negative subunits with zero units for amounts between -$1 and $0.

        Raises:
            ValidationError: Subunits outside 0-99, or negative alongside nonzero units
        """
        low = -99 if units == 0 else 0
        if not low <= subunits <= 99:
            raise ValidationError(f"Subunits must be between {low} and 99, got {subunits}")
        sign = -1 if units < 0 else 1
        return cls(units * 100 + sign * subunits)

    @classmethod
    def parse(cls, text: str) -> "Money":
        """
        Parse user-entered text like '$1,234.56' or '-12.5'.

        Raises:
            ParseError: Malformed text, more than two fractional digits, or overflow
        """
        return cls(parse_dollars_to_cents(text))

    @staticmethod
    def total(amounts: Iterable["Money"]) -> "Money":
        """Sum of ``amounts``; an empty iterable sums to zero."""
        return Money(sum(amount.cents for amount in amounts))

    def to_cents(self) -> int:
        return self.cents

    def to_display_string(self, currency_symbol: str = "$") -> str:
        """Display form with thousands separators, e.g. '-$1,234.56'."""
        return format_cents(self.cents, currency_symbol)

    # Named forms of the operators, for call sites that read better as methods

    def add(self, other: "Money") -> "Money":
        return self + other

    def subtract(self, other: "Money") -> "Money":
        return self - other

    def negate(self) -> "Money":
        return -self

    def compare(self, other: "Money") -> int:
        """Three-way comparison: -1, 0 or 1."""
        return (self.cents > other.cents) - (self.cents < other.cents)

    def is_zero(self) -> bool:
        return self.cents == 0

    def is_positive(self) -> bool:
        return self.cents > 0

    def is_negative(self) -> bool:
        return self.cents < 0

    def abs(self) -> "Money":
        return Money(abs(self.cents))

    def _combine(self, other: object, op: Callable[[int, int], int]):
        if not isinstance(other, Money):
            return NotImplemented
        return Money(op(self.cents, other.cents))

    def __add__(self, other: "Money") -> "Money":
        return self._combine(other, operator.add)

    def __sub__(self, other: "Money") -> "Money":
        return self._combine(other, operator.sub)

    def __neg__(self) -> "Money":
        return Money(-self.cents)

    def __mul__(self, factor: int) -> "Money":
        # scaling by a whole number only; fractional scaling goes through currency.scale_cents
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Money(self.cents * factor)

    __rmul__ = __mul__

    def __str__(self) -> str:
        return self.to_display_string()
