#!/usr/bin/env python3
"""
Core Data Models for the Budget Ledger

Accounts, categories, transactions, per-period category allocations and
expected income. Amounts are Money values; dates are plain ``datetime.date``.
Every model round-trips through ``to_dict``/``from_dict`` for persistence and audit
snapshots.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any

from .currency import validate_sum_equals_total
from .errors import ValidationError
from .money import Money
from .periods import Period


def new_id(prefix: str) -> str:
    """Generate a short unique identifier such as 'txn-3f9c2a1b7d6e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _dt_from_str(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class TransactionStatus(Enum):
    """Clearing status of a transaction."""

    PENDING = "pending"  # not yet seen by the bank
    CLEARED = "cleared"  # cleared the bank
    RECONCILED = "reconciled"  # matched to a statement, locked

    @property
    def is_locked(self) -> bool:
        """Only reconciled transactions are lock-protected."""
        return self is TransactionStatus.RECONCILED


@dataclass
class Account:
    """
    Financial account.

    On-budget accounts fund the budget: their starting balance counts as income.
    """

    id: str
    name: str
    on_budget: bool = True
    starting_balance: Money = field(default_factory=Money.zero)
    closed: bool = False
    last_reconciled_date: date | None = None
    last_reconciled_balance: Money | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "on_budget": self.on_budget,
            "starting_balance": self.starting_balance.to_cents(),
            "closed": self.closed,
            "last_reconciled_date": self.last_reconciled_date.isoformat() if self.last_reconciled_date else None,
            "last_reconciled_balance": (
                self.last_reconciled_balance.to_cents() if self.last_reconciled_balance is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        return cls(
            id=data["id"],
            name=data["name"],
            on_budget=data.get("on_budget", True),
            starting_balance=Money.from_cents(data.get("starting_balance", 0)),
            closed=data.get("closed", False),
            last_reconciled_date=(
                date.fromisoformat(data["last_reconciled_date"]) if data.get("last_reconciled_date") else None
            ),
            last_reconciled_balance=(
                Money.from_cents(data["last_reconciled_balance"])
                if data.get("last_reconciled_balance") is not None
                else None
            ),
        )


@dataclass
class Category:
    """
    Budget category (envelope).

    ``allow_negative_assignment`` marks categories that may deliberately carry
    a negative budgeted amount, e.g. to offset a future deficit.
    """

    id: str
    name: str
    group_name: str | None = None
    allow_negative_assignment: bool = False
    hidden: bool = False

    @property
    def full_name(self) -> str:
        """Get full category name including group."""
        if self.group_name:
            return f"{self.group_name}: {self.name}"
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "group_name": self.group_name,
            "allow_negative_assignment": self.allow_negative_assignment,
            "hidden": self.hidden,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data["name"],
            group_name=data.get("group_name"),
            allow_negative_assignment=data.get("allow_negative_assignment", False),
            hidden=data.get("hidden", False),
        )


@dataclass(frozen=True)
class Split:
    """Portion of a transaction assigned to one category (same sign as the parent)."""

    category_id: str
    amount: Money
    memo: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"category_id": self.category_id, "amount": self.amount.to_cents(), "memo": self.memo}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Split":
        return cls(
            category_id=data["category_id"],
            amount=Money.from_cents(data["amount"]),
            memo=data.get("memo", ""),
        )


@dataclass
class Transaction:
    """
    Dated, signed movement of money in one account.

    Positive amounts are inflows, negative amounts outflows. A transaction is
    either categorized (``category_id``), split across categories (``splits``),
    a transfer (``transfer_account_id``), or uncategorized. Uncategorized
    inflows are income available to budget.
    """

    id: str
    account_id: str
    date: date
    amount: Money
    category_id: str | None = None
    splits: list[Split] = field(default_factory=list)
    payee_name: str = ""
    memo: str = ""
    status: TransactionStatus = TransactionStatus.PENDING
    transfer_account_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def create(
        cls,
        account_id: str,
        day: date,
        amount: Money,
        category_id: str | None = None,
        **kwargs: Any,
    ) -> "Transaction":
        """Create a new transaction with a fresh id and timestamps."""
        now = datetime.now()
        return cls(
            id=new_id("txn"),
            account_id=account_id,
            date=day,
            amount=amount,
            category_id=category_id,
            created_at=now,
            updated_at=now,
            **kwargs,
        )

    @property
    def is_split(self) -> bool:
        return len(self.splits) > 0

    @property
    def is_transfer(self) -> bool:
        return self.transfer_account_id is not None

    @property
    def is_locked(self) -> bool:
        return self.status.is_locked

    @property
    def is_income(self) -> bool:
        """Uncategorized, non-transfer inflow."""
        return (
            self.amount.is_positive()
            and self.category_id is None
            and not self.is_split
            and not self.is_transfer
        )

    def amount_for_category(self, category_id: str) -> Money:
        """Signed amount this transaction posts to ``category_id``."""
        if self.is_transfer:
            return Money.zero()
        if self.is_split:
            return Money.total(s.amount for s in self.splits if s.category_id == category_id)
        if self.category_id == category_id:
            return self.amount
        return Money.zero()

    def category_ids(self) -> set[str]:
        if self.is_split:
            return {s.category_id for s in self.splits}
        return {self.category_id} if self.category_id else set()

    def validate(self) -> None:
        """
        Check structural consistency.

        Raises:
            ValidationError: Splits alongside a category, splits that don't sum
                to the amount, or a categorized transfer
        """
        if self.is_split:
            if self.category_id is not None:
                raise ValidationError("A split transaction cannot also have a category")
            split_cents = [s.amount.to_cents() for s in self.splits]
            if not validate_sum_equals_total(split_cents, self.amount.to_cents()):
                split_total = Money.from_cents(sum(split_cents))
                raise ValidationError(
                    f"Split amounts ({split_total}) must equal transaction amount ({self.amount})"
                )
        if self.is_transfer and self.category_ids():
            raise ValidationError("A transfer between accounts cannot be categorized")

    def with_status(self, status: TransactionStatus) -> "Transaction":
        return replace(self, status=status, updated_at=datetime.now())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "amount": self.amount.to_cents(),
            "category_id": self.category_id,
            "splits": [s.to_dict() for s in self.splits],
            "payee_name": self.payee_name,
            "memo": self.memo,
            "status": self.status.value,
            "transfer_account_id": self.transfer_account_id,
            "created_at": _dt_to_str(self.created_at),
            "updated_at": _dt_to_str(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            date=date.fromisoformat(data["date"]),
            amount=Money.from_cents(data["amount"]),
            category_id=data.get("category_id"),
            splits=[Split.from_dict(s) for s in data.get("splits", [])],
            payee_name=data.get("payee_name", ""),
            memo=data.get("memo", ""),
            status=TransactionStatus(data.get("status", "pending")),
            transfer_account_id=data.get("transfer_account_id"),
            created_at=_dt_from_str(data.get("created_at")),
            updated_at=_dt_from_str(data.get("updated_at")),
        )


@dataclass
class CategoryAllocation:
    """
    Stored budget record for one (category, period) pair.

    Only ``budgeted`` and ``carryover_in`` are stored. Activity and available
    are derived from transactions on every read (see budget.ledger).
    """

    category_id: str
    period: Period
    budgeted: Money = field(default_factory=Money.zero)
    carryover_in: Money = field(default_factory=Money.zero)
    notes: str = ""
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, Period]:
        return (self.category_id, self.period)

    @property
    def funded(self) -> Money:
        """carryover_in + budgeted, before activity."""
        return self.carryover_in + self.budgeted

    def copy(self) -> "CategoryAllocation":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "period": self.period.to_dict(),
            "budgeted": self.budgeted.to_cents(),
            "carryover_in": self.carryover_in.to_cents(),
            "notes": self.notes,
            "updated_at": _dt_to_str(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CategoryAllocation":
        return cls(
            category_id=data["category_id"],
            period=Period.from_dict(data["period"]),
            budgeted=Money.from_cents(data.get("budgeted", 0)),
            carryover_in=Money.from_cents(data.get("carryover_in", 0)),
            notes=data.get("notes", ""),
            updated_at=_dt_from_str(data.get("updated_at")),
        )


@dataclass
class IncomeExpectation:
    """
    Income the user expects to receive in one period.

    Compared against the period's total assignments to warn about budgeting
    more than will come in. Only one expectation exists per period.
    """

    id: str
    period: Period
    expected_amount: Money
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def create(cls, period: Period, expected_amount: Money, notes: str = "") -> "IncomeExpectation":
        now = datetime.now()
        return cls(
            id=new_id("inc"),
            period=period,
            expected_amount=expected_amount,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def validate(self) -> None:
        """
        Raises:
            ValidationError: Negative expected amount
        """
        if self.expected_amount.is_negative():
            raise ValidationError("Expected income cannot be negative")

    def is_over_budget(self, total_budgeted: Money) -> bool:
        """True when more is assigned than is expected to arrive."""
        return total_budgeted > self.expected_amount

    def budget_difference(self, total_budgeted: Money) -> Money:
        """Expected minus assigned; negative when over budget."""
        return self.expected_amount - total_budgeted

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "period": self.period.to_dict(),
            "expected_amount": self.expected_amount.to_cents(),
            "notes": self.notes,
            "created_at": _dt_to_str(self.created_at),
            "updated_at": _dt_to_str(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IncomeExpectation":
        return cls(
            id=data["id"],
            period=Period.from_dict(data["period"]),
            expected_amount=Money.from_cents(data["expected_amount"]),
            notes=data.get("notes", ""),
            created_at=_dt_from_str(data.get("created_at")),
            updated_at=_dt_from_str(data.get("updated_at")),
        )
