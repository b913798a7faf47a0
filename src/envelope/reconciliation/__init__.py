"""
Reconciliation Package

Statement reconciliation sessions and reconciled-transaction locking.
"""

from .engine import ReconciliationEngine
from .models import ReconciliationResult, ReconciliationSession, ReconciliationSummary, SessionStatus

__all__ = [
    "ReconciliationEngine",
    "ReconciliationResult",
    "ReconciliationSession",
    "ReconciliationSummary",
    "SessionStatus",
]
