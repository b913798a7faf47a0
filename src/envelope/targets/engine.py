#!/usr/bin/env python3
"""
Target Engine - recurring funding goals and suggested assignments.

Suggestions come from the cadence conversion table in ``cadence``. By-date
goals are paid-aware: money already spent from the category before the query
period counts toward the goal, and only the unpaid residual is spread over
the periods that remain.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ..core.audit import AuditSink, EntityType, emit_audit
from ..core.dates import add_days
from ..core.errors import ConflictError, EnvelopeError, NotFoundError, ValidationError
from ..core.models import CategoryAllocation
from ..core.money import Money
from ..core.periods import Period
from ..storage.repository import BudgetRepository, DateRange
from .cadence import ByDateCadence, Cadence, by_date_suggestion, convert_cadence_to_period_amount
from .models import AutoFillResult, BudgetTarget, TargetProgress

if TYPE_CHECKING:
    from ..budget.engine import BudgetEngine
    from ..budget.ledger import BudgetOverview, CategoryLedger

logger = logging.getLogger(__name__)


class TargetEngine:
    """Target lifecycle, suggestions, progress and auto-fill."""

    def __init__(
        self,
        repository: BudgetRepository,
        budget_engine: "BudgetEngine",
        audit_sink: AuditSink | None = None,
    ):
        self.repository = repository
        self.budget_engine = budget_engine
        self.audit_sink = audit_sink

    @property
    def lock(self):
        return self.repository.lock

    # Lifecycle

    def _find_target(self, target_id: str) -> BudgetTarget:
        for target in self.repository.load_targets():
            if target.id == target_id:
                return target
        raise NotFoundError.target(target_id)

    def get_active_target(self, category_id: str) -> BudgetTarget | None:
        with self.lock.read():
            for target in self.repository.load_targets():
                if target.category_id == category_id and target.active:
                    return target
        return None

    def create_target(self, category_id: str, amount: Money, cadence: Cadence, notes: str = "") -> BudgetTarget:
        """
        Raises:
            NotFoundError: Unknown category
            ValidationError: Non-positive amount or bad custom interval
            ConflictError: The category already has an active target
        """
        target = BudgetTarget.create(category_id, amount, cadence, notes)
        target.validate()

        with self.lock.write():
            if self.repository.get_category(category_id) is None:
                raise NotFoundError.category(category_id)
            existing = self.get_active_target(category_id)
            if existing is not None:
                raise ConflictError(
                    f"Category {category_id} already has an active target ({existing}); deactivate it first"
                )
            self.repository.upsert_target(target)
            logger.info(f"Created target {target.id} for {category_id}: {target}")
            emit_audit(self.audit_sink, EntityType.TARGET, target.id, None, target.to_dict(), "Created target")
        return target

    def update_target(
        self,
        target_id: str,
        amount: Money | None = None,
        cadence: Cadence | None = None,
        notes: str | None = None,
    ) -> BudgetTarget:
        """
        Change an active target in place.

        Raises:
            NotFoundError: Unknown target
            ValidationError: Target is inactive, or the new values are invalid
        """
        with self.lock.write():
            before = self._find_target(target_id)
            if not before.active:
                raise ValidationError(f"Target {target_id} is inactive and cannot be updated")

            after = before.copy()
            if amount is not None:
                after.amount = amount
            if cadence is not None:
                after.cadence = cadence
            if notes is not None:
                after.notes = notes
            after.validate()
            after.updated_at = datetime.now()

            self.repository.upsert_target(after)
            logger.info(f"Updated target {target_id}: {after}")
            emit_audit(
                self.audit_sink, EntityType.TARGET, target_id, before.to_dict(), after.to_dict(), "Updated target"
            )
        return after

    def deactivate_target(self, target_id: str) -> BudgetTarget:
        """Soft-delete a target; its history stays in the store."""
        with self.lock.write():
            before = self._find_target(target_id)
            if not before.active:
                return before

            after = before.copy()
            after.active = False
            after.updated_at = datetime.now()
            self.repository.upsert_target(after)
            logger.info(f"Deactivated target {target_id}")
            emit_audit(
                self.audit_sink, EntityType.TARGET, target_id, before.to_dict(), after.to_dict(), "Deactivated target"
            )
        return after

    # Suggestions and progress

    def calculate_cumulative_paid(self, category_id: str, period: Period) -> Money:
        """Total outflow from the category before ``period`` starts, as a positive amount."""
        through = DateRange.through(add_days(period.start_date, -1))
        with self.lock.read():
            transactions = self.repository.load_transactions_for_category(category_id, through)
        outflows = (t.amount_for_category(category_id) for t in transactions)
        return Money.total(amount.abs() for amount in outflows if amount.is_negative())

    def calculate_cumulative_budgeted(self, category_id: str, period: Period) -> Money:
        """Total budgeted for the category in every period up to and including ``period``."""
        with self.lock.read():
            allocations = self.repository.load_allocations_for_category(category_id)
        return Money.total(a.budgeted for a in allocations if a.period.start_date <= period.start_date)

    def calculate_for_period(self, target: BudgetTarget, period: Period) -> Money:
        """Suggested assignment for ``target`` in ``period``; zero for inactive targets."""
        if not target.active:
            return Money.zero()

        if isinstance(target.cadence, ByDateCadence):
            paid = self.calculate_cumulative_paid(target.category_id, period)
            suggested = by_date_suggestion(target.amount, target.cadence.target_date, period, paid)
            logger.debug(f"By-date target {target.id} in {period}: paid {paid}, suggest {suggested}")
            return suggested

        return convert_cadence_to_period_amount(target.amount, target.cadence, period)

    def get_progress(self, category_id: str, period: Period) -> TargetProgress:
        """
        Raises:
            NotFoundError: The category has no active target
        """
        target = self.get_active_target(category_id)
        if target is None:
            raise NotFoundError("Active target for category", category_id)

        paid = self.calculate_cumulative_paid(category_id, period)
        budgeted = self.calculate_cumulative_budgeted(category_id, period)
        progress = paid if paid.is_positive() else budgeted
        preview = paid + max(Money.zero(), budgeted - paid)

        return TargetProgress(
            target_amount=target.amount,
            cumulative_paid=paid,
            cumulative_budgeted=budgeted,
            progress_amount=progress,
            preview_amount=preview,
        )

    def get_target_amounts(self, period: Period) -> dict[str, Money]:
        """Suggested assignment per category with an active target."""
        with self.lock.read():
            targets = [t for t in self.repository.load_targets() if t.active]
            return {t.category_id: self.calculate_for_period(t, period) for t in targets}

    def get_budget_overview(self, period: Period) -> "BudgetOverview":
        """The budget overview with every targeted category checked for underfunding."""
        with self.lock.read():
            return self.budget_engine.get_budget_overview(period, self.get_target_amounts(period))

    def get_underfunded_categories(self, period: Period) -> list["CategoryLedger"]:
        """Categories budgeted below their target's suggestion in ``period``."""
        underfunded = self.get_budget_overview(period).underfunded
        if underfunded:
            logger.warning(f"{len(underfunded)} underfunded categories in {period}")
        return underfunded

    # Auto-fill

    def auto_fill_from_target(
        self,
        category_id: str,
        period: Period,
        allow_negative_atb: bool | None = None,
    ) -> CategoryAllocation:
        """
        Assign the category its suggested amount.

        Raises:
            NotFoundError: The category has no active target
            ValidationError: The suggestion exceeds Available to Budget
        """
        with self.lock.write():
            target = self.get_active_target(category_id)
            if target is None:
                raise NotFoundError("Active target for category", category_id)
            suggested = self.calculate_for_period(target, period)
            return self.budget_engine.assign(category_id, period, suggested, allow_negative_atb)

    def auto_fill_all_targets(self, period: Period, allow_negative_atb: bool | None = None) -> AutoFillResult:
        """
        Fill every active target, one category at a time.

        A failing category is recorded and skipped; earlier fills stay applied.
        """
        result = AutoFillResult()
        with self.lock.read():
            targets = [t for t in self.repository.load_targets() if t.active]

        for target in targets:
            try:
                result.succeeded.append(self.auto_fill_from_target(target.category_id, period, allow_negative_atb))
            except EnvelopeError as e:
                logger.warning(f"Auto-fill failed for {target.category_id}: {e}")
                result.failed.append((target.category_id, e))

        logger.info(
            f"Auto-filled {len(result.succeeded)} of {result.total_processed} targets for {period}"
        )
        return result
