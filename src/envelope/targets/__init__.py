"""
Targets Package

Funding targets per category and the suggested amounts they produce.

Cadences:
- Weekly, Monthly, Yearly: recurring amounts converted to the budget period
- Custom: every N days
- ByDate: a one-off goal spread over the periods left before its date
"""

from .cadence import (
    ByDateCadence,
    Cadence,
    CustomCadence,
    MonthlyCadence,
    WeeklyCadence,
    YearlyCadence,
    convert_cadence_to_period_amount,
    parse_cadence,
)
from .engine import TargetEngine
from .models import AutoFillResult, BudgetTarget, TargetProgress

__all__ = [
    "AutoFillResult",
    "BudgetTarget",
    "ByDateCadence",
    "Cadence",
    "CustomCadence",
    "MonthlyCadence",
    "TargetEngine",
    "TargetProgress",
    "WeeklyCadence",
    "YearlyCadence",
    "convert_cadence_to_period_amount",
    "parse_cadence",
]
