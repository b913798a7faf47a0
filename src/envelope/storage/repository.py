#!/usr/bin/env python3
"""
Repository Protocol - durable store contract for the ledger engine.

The engines read consistent snapshots through this interface and write through
it one record at a time. Implementations own durability and per-call atomicity;
every write must be all-or-nothing and durable when it returns.

Each repository instance also carries the reader/writer lock that forms the
engine's single exclusion domain for that store.
"""

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Protocol

from ..core.locking import ReadWriteLock
from ..core.models import Account, Category, CategoryAllocation, IncomeExpectation, Transaction, TransactionStatus
from ..core.periods import Period

if TYPE_CHECKING:
    from ..reconciliation.models import ReconciliationSession
    from ..targets.models import BudgetTarget


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range; an open start means 'from the beginning of history'."""

    start: date | None
    end: date | None

    @classmethod
    def through(cls, end: date) -> "DateRange":
        return cls(start=None, end=end)

    @classmethod
    def of_period(cls, period: Period) -> "DateRange":
        return cls(start=period.start_date, end=period.end_date)

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


class BudgetRepository(Protocol):
    """
    Protocol for ledger persistence.

    Read methods return copies; mutating a returned object has no effect
    until it is written back.
    """

    lock: ReadWriteLock

    # Reads

    def load_accounts(self) -> list[Account]: ...

    def get_account(self, account_id: str) -> Account | None: ...

    def load_categories(self) -> list[Category]: ...

    def get_category(self, category_id: str) -> Category | None: ...

    def load_allocations(self, period: Period) -> list[CategoryAllocation]:
        """All stored allocations for ``period``."""
        ...

    def load_allocations_for_category(self, category_id: str) -> list[CategoryAllocation]:
        """Allocation history of one category, any period."""
        ...

    def load_all_allocations(self) -> list[CategoryAllocation]: ...

    def load_transactions_for_category(self, category_id: str, period_range: DateRange) -> list[Transaction]:
        """Transactions (including split parents) posting to ``category_id`` within the range."""
        ...

    def load_transactions(self, period_range: DateRange) -> list[Transaction]: ...

    def load_transactions_for_account(self, account_id: str) -> list[Transaction]: ...

    def get_transaction(self, transaction_id: str) -> Transaction | None: ...

    def load_targets(self) -> list["BudgetTarget"]: ...

    def get_income_expectation(self, period: Period) -> IncomeExpectation | None: ...

    def load_income_expectations(self) -> list[IncomeExpectation]: ...

    def get_open_session(self, account_id: str) -> "ReconciliationSession | None":
        """The InProgress reconciliation session for an account, if any."""
        ...

    def load_sessions(self, account_id: str | None = None) -> list["ReconciliationSession"]:
        """Sessions of any status, oldest first, optionally for one account."""
        ...

    # Writes

    def upsert_account(self, account: Account) -> None: ...

    def upsert_category(self, category: Category) -> None: ...

    def upsert_allocation(self, alloc: CategoryAllocation) -> None: ...

    def delete_allocation(self, category_id: str, period: Period) -> None:
        """Remove a stored allocation; a missing one is not an error."""
        ...

    def upsert_target(self, target: "BudgetTarget") -> None: ...

    def add_transaction(self, transaction: Transaction) -> None: ...

    def update_transaction(self, transaction: Transaction) -> None: ...

    def delete_transaction(self, transaction_id: str) -> None: ...

    def set_transaction_status(self, transaction_id: str, status: TransactionStatus) -> None: ...

    def upsert_income_expectation(self, expectation: IncomeExpectation) -> None: ...

    def delete_income_expectation(self, period: Period) -> bool:
        """Returns True if an expectation was removed."""
        ...

    def upsert_session(self, session: "ReconciliationSession") -> None: ...
