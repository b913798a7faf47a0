#!/usr/bin/env python3
"""
Budget Target Models

A target is a recurring (or one-off, by-date) funding goal for a category.
Targets are soft-deactivated rather than deleted so the history of past
suggestions stays auditable.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from fractions import Fraction
from typing import Any

from ..core.errors import EnvelopeError, ValidationError
from ..core.models import CategoryAllocation, new_id
from ..core.money import Money
from .cadence import Cadence, CustomCadence, cadence_from_dict, cadence_to_dict


@dataclass
class BudgetTarget:
    """Funding goal for one category. At most one active target per category."""

    id: str
    category_id: str
    amount: Money
    cadence: Cadence
    notes: str = ""
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def create(cls, category_id: str, amount: Money, cadence: Cadence, notes: str = "") -> "BudgetTarget":
        now = datetime.now()
        return cls(
            id=new_id("tgt"),
            category_id=category_id,
            amount=amount,
            cadence=cadence,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def validate(self) -> None:
        """
        Raises:
            ValidationError: Non-positive amount or custom interval under one day
        """
        if self.amount.is_negative():
            raise ValidationError("Target amount cannot be negative")
        if self.amount.is_zero():
            raise ValidationError("Target amount cannot be zero")
        if isinstance(self.cadence, CustomCadence) and self.cadence.days < 1:
            raise ValidationError("Custom interval must be at least 1 day")

    def copy(self) -> "BudgetTarget":
        return replace(self)

    def __str__(self) -> str:
        return f"{self.amount} {self.cadence.describe()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "amount": self.amount.to_cents(),
            "cadence": cadence_to_dict(self.cadence),
            "notes": self.notes,
            "active": self.active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BudgetTarget":
        return cls(
            id=data["id"],
            category_id=data["category_id"],
            amount=Money.from_cents(data["amount"]),
            cadence=cadence_from_dict(data["cadence"]),
            notes=data.get("notes", ""),
            active=data.get("active", True),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None,
        )


def _clamp_unit(ratio: Fraction) -> float:
    return float(min(max(ratio, Fraction(0)), Fraction(1)))


@dataclass(frozen=True)
class TargetProgress:
    """
    Display progress toward a target at a query period.

    Payments are the authoritative progress signal; budgeted money stands in
    only until the first payment exists. ``preview_amount`` is the progress
    if every budgeted-but-unpaid dollar were eventually paid.
    """

    target_amount: Money
    cumulative_paid: Money
    cumulative_budgeted: Money
    progress_amount: Money
    preview_amount: Money

    @property
    def progress_ratio(self) -> Fraction:
        """Unclamped progress, for sign and overflow checks."""
        return Fraction(self.progress_amount.to_cents(), self.target_amount.to_cents())

    @property
    def preview_ratio(self) -> Fraction:
        return Fraction(self.preview_amount.to_cents(), self.target_amount.to_cents())

    @property
    def progress_pct(self) -> float:
        """Progress clamped to [0, 1] for display."""
        return _clamp_unit(self.progress_ratio)

    @property
    def preview_pct(self) -> float:
        return _clamp_unit(self.preview_ratio)

    @property
    def is_complete(self) -> bool:
        return self.progress_amount >= self.target_amount


@dataclass
class AutoFillResult:
    """
    Outcome of filling every active target for a period.

    Each category is filled atomically on its own; a failure does not undo
    categories that were already filled.
    """

    succeeded: list[CategoryAllocation] = field(default_factory=list)
    failed: list[tuple[str, EnvelopeError]] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_processed == 0:
            return 0.0
        return (len(self.succeeded) / self.total_processed) * 100
