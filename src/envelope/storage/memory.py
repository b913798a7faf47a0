#!/usr/bin/env python3
"""
In-Memory Repository

Reference implementation of the BudgetRepository protocol backed by dicts.
Used by tests and as the base of the JSON file repository.
"""

import copy
import logging
from datetime import datetime
from typing import Any

from ..core.locking import ReadWriteLock
from ..core.models import Account, Category, CategoryAllocation, IncomeExpectation, Transaction, TransactionStatus
from ..core.periods import Period
from ..reconciliation.models import ReconciliationSession
from ..targets.models import BudgetTarget
from .repository import DateRange

logger = logging.getLogger(__name__)


class InMemoryRepository:
    """Dict-backed ledger store. Every read returns deep copies."""

    def __init__(self):
        self.lock = ReadWriteLock()
        self._accounts: dict[str, Account] = {}
        self._categories: dict[str, Category] = {}
        self._allocations: dict[tuple[str, Period], CategoryAllocation] = {}
        self._transactions: dict[str, Transaction] = {}
        self._targets: dict[str, BudgetTarget] = {}
        self._income: dict[Period, IncomeExpectation] = {}
        self._sessions: dict[str, ReconciliationSession] = {}

    def _after_write(self) -> None:
        """Hook for subclasses that persist after each write."""

    # Reads

    def load_accounts(self) -> list[Account]:
        return copy.deepcopy(list(self._accounts.values()))

    def get_account(self, account_id: str) -> Account | None:
        return copy.deepcopy(self._accounts.get(account_id))

    def load_categories(self) -> list[Category]:
        return copy.deepcopy(list(self._categories.values()))

    def get_category(self, category_id: str) -> Category | None:
        return copy.deepcopy(self._categories.get(category_id))

    def load_allocations(self, period: Period) -> list[CategoryAllocation]:
        return copy.deepcopy([a for (_, p), a in self._allocations.items() if p == period])

    def load_allocations_for_category(self, category_id: str) -> list[CategoryAllocation]:
        allocations = [a for (c, _), a in self._allocations.items() if c == category_id]
        allocations.sort(key=lambda a: (a.period.start_date, a.period.end_date))
        return copy.deepcopy(allocations)

    def load_all_allocations(self) -> list[CategoryAllocation]:
        return copy.deepcopy(list(self._allocations.values()))

    def load_transactions_for_category(self, category_id: str, period_range: DateRange) -> list[Transaction]:
        return copy.deepcopy(
            [
                t
                for t in self._transactions.values()
                if period_range.contains(t.date) and category_id in t.category_ids()
            ]
        )

    def load_transactions(self, period_range: DateRange) -> list[Transaction]:
        return copy.deepcopy([t for t in self._transactions.values() if period_range.contains(t.date)])

    def load_transactions_for_account(self, account_id: str) -> list[Transaction]:
        transactions = [t for t in self._transactions.values() if t.account_id == account_id]
        transactions.sort(key=lambda t: t.date)
        return copy.deepcopy(transactions)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return copy.deepcopy(self._transactions.get(transaction_id))

    def load_targets(self) -> list[BudgetTarget]:
        return copy.deepcopy(list(self._targets.values()))

    def get_income_expectation(self, period: Period) -> IncomeExpectation | None:
        return copy.deepcopy(self._income.get(period))

    def load_income_expectations(self) -> list[IncomeExpectation]:
        expectations = sorted(self._income.values(), key=lambda e: e.period.start_date)
        return copy.deepcopy(expectations)

    def get_open_session(self, account_id: str) -> ReconciliationSession | None:
        for session in self._sessions.values():
            if session.account_id == account_id and session.is_open:
                return copy.deepcopy(session)
        return None

    def load_sessions(self, account_id: str | None = None) -> list[ReconciliationSession]:
        sessions = [s for s in self._sessions.values() if account_id is None or s.account_id == account_id]
        sessions.sort(key=lambda s: s.started_at)
        return copy.deepcopy(sessions)

    # Writes

    def upsert_account(self, account: Account) -> None:
        self._accounts[account.id] = copy.deepcopy(account)
        self._after_write()

    def upsert_category(self, category: Category) -> None:
        self._categories[category.id] = copy.deepcopy(category)
        self._after_write()

    def upsert_allocation(self, alloc: CategoryAllocation) -> None:
        self._allocations[alloc.key] = copy.deepcopy(alloc)
        self._after_write()

    def delete_allocation(self, category_id: str, period: Period) -> None:
        if self._allocations.pop((category_id, period), None) is not None:
            self._after_write()

    def upsert_target(self, target: BudgetTarget) -> None:
        self._targets[target.id] = copy.deepcopy(target)
        self._after_write()

    def add_transaction(self, transaction: Transaction) -> None:
        if transaction.id in self._transactions:
            raise KeyError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = copy.deepcopy(transaction)
        self._after_write()

    def update_transaction(self, transaction: Transaction) -> None:
        if transaction.id not in self._transactions:
            raise KeyError(f"Transaction not found: {transaction.id}")
        self._transactions[transaction.id] = copy.deepcopy(transaction)
        self._after_write()

    def delete_transaction(self, transaction_id: str) -> None:
        del self._transactions[transaction_id]
        self._after_write()

    def set_transaction_status(self, transaction_id: str, status: TransactionStatus) -> None:
        transaction = self._transactions[transaction_id]
        transaction.status = status
        transaction.updated_at = datetime.now()
        self._after_write()

    def upsert_income_expectation(self, expectation: IncomeExpectation) -> None:
        self._income[expectation.period] = copy.deepcopy(expectation)
        self._after_write()

    def delete_income_expectation(self, period: Period) -> bool:
        if self._income.pop(period, None) is None:
            return False
        self._after_write()
        return True

    def upsert_session(self, session: ReconciliationSession) -> None:
        self._sessions[session.id] = copy.deepcopy(session)
        self._after_write()

    # Snapshot helpers

    def to_dict(self) -> dict[str, Any]:
        """Serialize the whole store."""
        return {
            "accounts": [a.to_dict() for a in self._accounts.values()],
            "categories": [c.to_dict() for c in self._categories.values()],
            "allocations": [a.to_dict() for a in self._allocations.values()],
            "transactions": [t.to_dict() for t in self._transactions.values()],
            "targets": [t.to_dict() for t in self._targets.values()],
            "income": [e.to_dict() for e in self._income.values()],
            "sessions": [s.to_dict() for s in self._sessions.values()],
        }

    def load_dict(self, data: dict[str, Any]) -> None:
        """Replace the store contents with a serialized snapshot."""
        self._accounts = {a.id: a for a in map(Account.from_dict, data.get("accounts", []))}
        self._categories = {c.id: c for c in map(Category.from_dict, data.get("categories", []))}
        self._allocations = {
            a.key: a for a in map(CategoryAllocation.from_dict, data.get("allocations", []))
        }
        self._transactions = {t.id: t for t in map(Transaction.from_dict, data.get("transactions", []))}
        self._targets = {t.id: t for t in map(BudgetTarget.from_dict, data.get("targets", []))}
        self._income = {e.period: e for e in map(IncomeExpectation.from_dict, data.get("income", []))}
        self._sessions = {s.id: s for s in map(ReconciliationSession.from_dict, data.get("sessions", []))}
        logger.debug(
            f"Loaded {len(self._transactions)} transactions, {len(self._allocations)} allocations"
        )
