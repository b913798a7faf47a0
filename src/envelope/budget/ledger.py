#!/usr/bin/env python3
"""
Category Ledger Views

Derived, read-only views of a category in a period. Nothing here is stored:
activity and available are recomputed from transactions on every query.

A line carries the suggested amount of its category's active target when the
caller supplies one; budgeting less than that marks the line underfunded.
"""

from dataclasses import dataclass, field
from typing import Any

from ..core.money import Money
from ..core.periods import Period


@dataclass(frozen=True)
class CategoryLedger:
    """
    One category's budget line for one period.

    ``activity`` is signed: outflows are negative. ``available`` may be
    negative, which marks the category as overspent. That is a valid state.
    """

    category_id: str
    period: Period
    budgeted: Money
    carryover_in: Money
    activity: Money
    category_name: str = ""
    target_amount: Money | None = None

    @property
    def available(self) -> Money:
        return self.carryover_in + self.budgeted + self.activity

    @property
    def is_overspent(self) -> bool:
        return self.available.is_negative()

    @property
    def is_underfunded(self) -> bool:
        """Budgeted below the target's suggestion; never true without a target."""
        return self.target_amount is not None and self.budgeted < self.target_amount

    @property
    def underfunded_by(self) -> Money:
        if not self.is_underfunded:
            return Money.zero()
        return self.target_amount - self.budgeted

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "period": self.period.label(),
            "budgeted": self.budgeted.to_cents(),
            "carryover_in": self.carryover_in.to_cents(),
            "activity": self.activity.to_cents(),
            "available": self.available.to_cents(),
            "target_amount": self.target_amount.to_cents() if self.target_amount is not None else None,
            "underfunded": self.is_underfunded,
        }


@dataclass
class BudgetOverview:
    """
    Whole-budget summary for a period.

    ``expected_income`` is the income the user planned for the period, if
    they recorded one; assigning more than that is flagged as over budget.
    """

    period: Period
    available_to_budget: Money
    on_budget_balance: Money
    categories: list[CategoryLedger] = field(default_factory=list)
    expected_income: Money | None = None

    @property
    def total_budgeted(self) -> Money:
        return Money.total(c.budgeted for c in self.categories)

    @property
    def total_activity(self) -> Money:
        return Money.total(c.activity for c in self.categories)

    @property
    def total_available(self) -> Money:
        return Money.total(c.available for c in self.categories)

    @property
    def overspent(self) -> list[CategoryLedger]:
        return [c for c in self.categories if c.is_overspent]

    @property
    def underfunded(self) -> list[CategoryLedger]:
        return [c for c in self.categories if c.is_underfunded]

    @property
    def is_over_budget(self) -> bool:
        return self.expected_income is not None and self.total_budgeted > self.expected_income

    @property
    def budget_difference(self) -> Money | None:
        """Expected income minus total budgeted, or None without an expectation."""
        if self.expected_income is None:
            return None
        return self.expected_income - self.total_budgeted

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.label(),
            "available_to_budget": self.available_to_budget.to_cents(),
            "on_budget_balance": self.on_budget_balance.to_cents(),
            "total_budgeted": self.total_budgeted.to_cents(),
            "total_activity": self.total_activity.to_cents(),
            "total_available": self.total_available.to_cents(),
            "expected_income": self.expected_income.to_cents() if self.expected_income is not None else None,
            "over_budget": self.is_over_budget,
            "categories": [c.to_dict() for c in self.categories],
        }
