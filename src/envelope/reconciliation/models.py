#!/usr/bin/env python3
"""
Reconciliation Models

A session matches an account's cleared transactions against one bank
statement. Sessions move InProgress -> Completed or InProgress -> Aborted;
an account with no open session is idle.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from ..core.models import Transaction, new_id
from ..core.money import Money


class SessionStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class ReconciliationSession:
    """
    Open or finished reconciliation of one account against one statement.

    ``cleared_set`` mirrors the account's stored Cleared transactions. The
    engine refreshes it from the repository whenever the session is read, so
    status edits made outside the session are never missed.
    """

    id: str
    account_id: str
    statement_date: date
    statement_balance: Money
    started_at: datetime
    cleared_set: set[str] = field(default_factory=set)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    finished_at: datetime | None = None
    adjustment_transaction_id: str | None = None

    @classmethod
    def open(cls, account_id: str, statement_date: date, statement_balance: Money) -> "ReconciliationSession":
        return cls(
            id=new_id("rec"),
            account_id=account_id,
            statement_date=statement_date,
            statement_balance=statement_balance,
            started_at=datetime.now(),
        )

    @property
    def is_open(self) -> bool:
        return self.status is SessionStatus.IN_PROGRESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "statement_date": self.statement_date.isoformat(),
            "statement_balance": self.statement_balance.to_cents(),
            "started_at": self.started_at.isoformat(),
            "cleared_set": sorted(self.cleared_set),
            "status": self.status.value,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "adjustment_transaction_id": self.adjustment_transaction_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReconciliationSession":
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            statement_date=date.fromisoformat(data["statement_date"]),
            statement_balance=Money.from_cents(data["statement_balance"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            cleared_set=set(data.get("cleared_set", [])),
            status=SessionStatus(data.get("status", "in_progress")),
            finished_at=datetime.fromisoformat(data["finished_at"]) if data.get("finished_at") else None,
            adjustment_transaction_id=data.get("adjustment_transaction_id"),
        )


@dataclass(frozen=True)
class ReconciliationSummary:
    """Point-in-time view of an open session, recomputed on every request."""

    account_id: str
    statement_balance: Money
    cleared_balance: Money
    cleared: list[Transaction]
    uncleared: list[Transaction]

    @property
    def difference(self) -> Money:
        return self.statement_balance - self.cleared_balance

    @property
    def can_complete(self) -> bool:
        return self.difference.is_zero()


@dataclass
class ReconciliationResult:
    """Outcome of a completed session."""

    session: ReconciliationSession
    reconciled_ids: list[str] = field(default_factory=list)
    adjustment: Transaction | None = None

    @property
    def reconciled_count(self) -> int:
        return len(self.reconciled_ids)
