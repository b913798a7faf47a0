#!/usr/bin/env python3
"""
Currency Arithmetic and Formatting Utilities

Integer-cent helpers shared by Money, cadence conversion and the engines.
All financial calculations use integer arithmetic to avoid floating-point errors.

Key Principles:
- Never use floating-point arithmetic for currency calculations
- Ratios are applied as integer numerator/denominator pairs and re-quantized
  to whole cents with a single, explicit rounding rule
- Remainders from division are allocated deterministically so sums reconstruct
"""

from decimal import Decimal, InvalidOperation

from .errors import ParseError

# Signed 64-bit range of the underlying cent count
MAX_CENTS = 2**63 - 1
MIN_CENTS = -(2**63)


def cents_to_dollars_str(cents: int, thousands: bool = True) -> str:
    """
    Convert cents to dollar string using pure integer arithmetic.

    Args:
        cents: Amount in cents
        thousands: Insert comma thousands separators

    Returns:
        Formatted dollar string without currency symbol

    Example:
        cents_to_dollars_str(123456) -> "1,234.56"
    """
    is_negative = cents < 0
    dollars, remainder = divmod(abs(int(cents)), 100)
    dollars_str = f"{dollars:,}" if thousands else str(dollars)

    if is_negative:
        return f"-{dollars_str}.{remainder:02d}"
    return f"{dollars_str}.{remainder:02d}"


def format_cents(cents: int, symbol: str = "$") -> str:
    """Format cents with a leading currency symbol, sign before the symbol."""
    if cents < 0:
        return f"-{symbol}{cents_to_dollars_str(-cents)}"
    return f"{symbol}{cents_to_dollars_str(cents)}"


def parse_dollars_to_cents(dollars_str: str) -> int:
    """
    Parse user-entered dollar text to cents.

    Accepts an optional sign, an optional currency symbol and comma thousands
    separators. Unlike a lenient import parser this rejects anything ambiguous.

    Args:
        dollars_str: String representation of dollar amount

    Returns:
        Amount in cents

    Raises:
        ParseError: Non-numeric text, more than two fractional digits, or a
            value outside the signed 64-bit cent range

    Examples:
        parse_dollars_to_cents("12.34") -> 1234
        parse_dollars_to_cents("-$1,234.5") -> -123450
        parse_dollars_to_cents("12") -> 1200
    """
    if not isinstance(dollars_str, str):
        raise ParseError(f"Amount must be text, got {type(dollars_str).__name__}")

    clean = dollars_str.strip()
    if not clean:
        raise ParseError("Amount is empty")

    is_negative = False
    if clean[0] in "+-":
        is_negative = clean[0] == "-"
        clean = clean[1:]
    clean = clean.removeprefix("$").replace(",", "").strip()

    if not clean or clean.count(".") > 1:
        raise ParseError(f"Invalid amount: {dollars_str!r}")

    whole, _, fraction = clean.partition(".")
    if not (whole or fraction):
        raise ParseError(f"Invalid amount: {dollars_str!r}")
    if (whole and not whole.isdigit()) or (fraction and not fraction.isdigit()):
        raise ParseError(f"Invalid amount: {dollars_str!r}")
    if len(fraction) > 2:
        raise ParseError(f"Too many fractional digits in {dollars_str!r} (maximum is 2)")

    total = int(whole or "0") * 100 + int(fraction.ljust(2, "0") or "0")
    total = -total if is_negative else total

    if not MIN_CENTS <= total <= MAX_CENTS:
        raise ParseError(f"Amount out of range: {dollars_str!r}")
    return total


def divide_round_half_up(numerator: int, denominator: int) -> int:
    """
    Integer division rounded to the nearest integer, halves away from zero.

    Args:
        numerator: Dividend (may be negative)
        denominator: Positive divisor

    Returns:
        Rounded quotient

    Examples:
        divide_round_half_up(300000, 7) -> 42857   # 42857.14...
        divide_round_half_up(5, 2) -> 3
        divide_round_half_up(-5, 2) -> -3
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return -quotient if numerator < 0 else quotient


def divide_ceiling(numerator: int, denominator: int) -> int:
    """Integer division rounded toward positive infinity."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return -((-numerator) // denominator)


def scale_cents(cents: int, numerator: int, denominator: int) -> int:
    """
    Apply the ratio numerator/denominator to an amount, rounding half up.

    The product is formed on integers first so no precision is lost before
    the single rounding step.
    """
    return divide_round_half_up(cents * numerator, denominator)


def decimal_ratio(text: str) -> tuple[int, int]:
    """
    Convert a decimal constant such as "4.33" into an exact integer ratio.

    Returns:
        (numerator, denominator) with denominator a power of ten
    """
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal constant: {text!r}") from e
    sign, digits, exponent = value.as_tuple()
    numerator = int("".join(str(d) for d in digits)) * (-1 if sign else 1)
    if exponent >= 0:
        return numerator * 10**exponent, 1
    return numerator, 10 ** (-exponent)


def allocate_remainder(amounts: list[int], total: int) -> list[int]:
    """
    Allocate remainder from integer division to ensure exact sum.

    The last item gets any remainder to guarantee the sum equals the total.

    Args:
        amounts: List of calculated amounts before remainder allocation
        total: Target total that amounts should sum to

    Returns:
        List of amounts with remainder allocated to last item
    """
    if not amounts:
        return amounts

    amounts_copy = amounts.copy()
    current_sum = sum(amounts_copy[:-1])
    amounts_copy[-1] = total - current_sum
    return amounts_copy


def validate_sum_equals_total(amounts: list[int], total: int, tolerance: int = 0) -> bool:
    """Validate that split amounts sum to the expected total within tolerance."""
    return abs(sum(amounts) - total) <= tolerance
