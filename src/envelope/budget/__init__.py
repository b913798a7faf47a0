"""
Budget Package

Zero-based assignment, fund movement, rollover and Available to Budget.
"""

from .engine import BudgetEngine
from .ledger import BudgetOverview, CategoryLedger

__all__ = ["BudgetEngine", "BudgetOverview", "CategoryLedger"]
