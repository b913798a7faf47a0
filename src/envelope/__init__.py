"""
Envelope - Zero-Based Budget Ledger Engine

Turns a stream of dated transactions and user-entered allocations into
period-scoped category balances, with every dollar of income assigned.

Domain Packages:
- core: Money, periods, models, errors, locking, audit, configuration
- budget: Assignment, fund movement, rollover, Available to Budget
- targets: Recurring and by-date funding targets, auto-fill
- reconciliation: Statement reconciliation and transaction locking
- storage: Repository contract, in-memory and JSON file stores
- cli: Command-line interface

Example Usage:
    from envelope.budget import BudgetEngine
    from envelope.core import Money, Period
    from envelope.storage import InMemoryRepository

    engine = BudgetEngine(InMemoryRepository())
    engine.get_available_to_budget(Period.parse("2025-01"))
"""

__version__ = "0.1.0"
__author__ = "Karl Davis"

from .core.errors import EnvelopeError
from .core.money import Money
from .core.periods import Period, PeriodType

__all__ = [
    "EnvelopeError",
    "Money",
    "Period",
    "PeriodType",
]
