#!/usr/bin/env python3
"""
Budget Engine - zero-based assignment, fund movement and rollover.

Every dollar of income is either Available to Budget (ATB) or assigned to a
category. The engine keeps that split exact:

    ATB(P) = on-budget starting balances
             + uncategorized inflows dated on or before P's last day
             - budgeted amounts of every allocation whose period starts on or before P's last day

    available(category, P) = carryover_in + budgeted + activity

Assignments change ATB; moves between categories never do. A negative
available balance means the category is overspent. That state is reported,
never refused.

All mutations run under the repository's write lock for their whole
read-modify-write sequence; queries run under its read lock.
"""

import logging
from datetime import date, datetime

from ..core.audit import AuditSink, EntityType, emit_audit
from ..core.errors import (
    InsufficientFundsError,
    LockedError,
    NotFoundError,
    ValidationError,
)
from ..core.models import Category, CategoryAllocation, IncomeExpectation, Transaction, TransactionStatus
from ..core.money import Money
from ..core.periods import Period
from ..storage.repository import BudgetRepository, DateRange
from .ledger import BudgetOverview, CategoryLedger

logger = logging.getLogger(__name__)


class BudgetEngine:
    """
    Assignment, movement and rollover over one repository.

    Args:
        repository: Ledger store (also supplies the exclusion lock)
        audit_sink: Receiver of change events, or None to skip auditing
        allow_negative_atb: Default policy for assignments that would drive
            Available to Budget below zero
    """

    def __init__(
        self,
        repository: BudgetRepository,
        audit_sink: AuditSink | None = None,
        allow_negative_atb: bool = False,
    ):
        self.repository = repository
        self.audit_sink = audit_sink
        self.allow_negative_atb = allow_negative_atb

    @property
    def lock(self):
        return self.repository.lock

    # Lookups

    def _require_category(self, category_id: str) -> Category:
        category = self.repository.get_category(category_id)
        if category is None:
            raise NotFoundError.category(category_id)
        return category

    def _on_budget_account_ids(self) -> set[str]:
        return {a.id for a in self.repository.load_accounts() if a.on_budget}

    def _audit(self, entity_type: EntityType, entity_id: str, before, after, reason: str) -> None:
        emit_audit(self.audit_sink, entity_type, entity_id, before, after, reason)

    # Transaction write API

    def _validate_transaction_refs(self, transaction: Transaction) -> None:
        transaction.validate()
        if self.repository.get_account(transaction.account_id) is None:
            raise NotFoundError.account(transaction.account_id)
        if transaction.transfer_account_id is not None:
            if transaction.transfer_account_id == transaction.account_id:
                raise ValidationError("A transfer must move money between two different accounts")
            if self.repository.get_account(transaction.transfer_account_id) is None:
                raise NotFoundError.account(transaction.transfer_account_id)
        for category_id in transaction.category_ids():
            self._require_category(category_id)

    def record_transaction(self, transaction: Transaction) -> Transaction:
        """
        Add a new transaction (manual entry or import).

        Raises:
            ValidationError: Inconsistent splits/transfer, or a new transaction
                that claims to be reconciled already
            NotFoundError: Unknown account or category
        """
        if transaction.status is TransactionStatus.RECONCILED:
            raise ValidationError("New transactions cannot start out reconciled")

        with self.lock.write():
            self._validate_transaction_refs(transaction)
            self.repository.add_transaction(transaction)
            logger.info(
                f"Recorded transaction {transaction.id}: {transaction.amount} on {transaction.date.isoformat()}"
            )
            self._audit(EntityType.TRANSACTION, transaction.id, None, transaction.to_dict(), "Recorded transaction")
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction.

        Raises:
            LockedError: The stored transaction is reconciled
            ValidationError: Attempt to mark a transaction reconciled outside reconciliation
            NotFoundError: Unknown transaction, account or category
        """
        with self.lock.write():
            existing = self.repository.get_transaction(transaction.id)
            if existing is None:
                raise NotFoundError.transaction(transaction.id)
            if existing.is_locked:
                raise LockedError(transaction.id)
            if transaction.status is TransactionStatus.RECONCILED:
                raise ValidationError("Transactions become reconciled only by completing a reconciliation")

            self._validate_transaction_refs(transaction)
            transaction.updated_at = datetime.now()
            self.repository.update_transaction(transaction)
            logger.info(f"Updated transaction {transaction.id}")
            self._audit(
                EntityType.TRANSACTION, transaction.id, existing.to_dict(), transaction.to_dict(), "Updated transaction"
            )
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        """
        Raises:
            LockedError: The transaction is reconciled
            NotFoundError: Unknown transaction
        """
        with self.lock.write():
            existing = self.repository.get_transaction(transaction_id)
            if existing is None:
                raise NotFoundError.transaction(transaction_id)
            if existing.is_locked:
                raise LockedError(transaction_id)

            self.repository.delete_transaction(transaction_id)
            logger.info(f"Deleted transaction {transaction_id}")
            self._audit(EntityType.TRANSACTION, transaction_id, existing.to_dict(), None, "Deleted transaction")

    # Queries

    def _stored_allocation(self, category_id: str, period: Period) -> CategoryAllocation | None:
        for alloc in self.repository.load_allocations(period):
            if alloc.category_id == category_id:
                return alloc
        return None

    def _snapshot(self, category_id: str, period: Period) -> dict | None:
        stored = self._stored_allocation(category_id, period)
        return stored.to_dict() if stored else None

    def get_allocation(self, category_id: str, period: Period) -> CategoryAllocation:
        """Stored allocation, or an empty one if the pair was never budgeted."""
        with self.lock.read():
            stored = self._stored_allocation(category_id, period)
        return stored or CategoryAllocation(category_id=category_id, period=period)

    def get_carryover(self, category_id: str, period: Period) -> Money:
        return self.get_allocation(category_id, period).carryover_in

    def calculate_activity(self, category_id: str, period: Period) -> Money:
        """
        Signed total posted to a category within the period.

        Split transactions contribute only their matching splits. Transfers and
        off-budget accounts contribute nothing.
        """
        with self.lock.read():
            on_budget = self._on_budget_account_ids()
            transactions = self.repository.load_transactions_for_category(category_id, DateRange.of_period(period))
            return Money.total(
                t.amount_for_category(category_id) for t in transactions if t.account_id in on_budget
            )

    def _income_through(self, day: date) -> Money:
        accounts = [a for a in self.repository.load_accounts() if a.on_budget]
        on_budget = {a.id for a in accounts}
        starting = Money.total(a.starting_balance for a in accounts)
        inflows = Money.total(
            t.amount
            for t in self.repository.load_transactions(DateRange.through(day))
            if t.is_income and t.account_id in on_budget
        )
        return starting + inflows

    def _budgeted_through(self, day: date) -> Money:
        return Money.total(
            a.budgeted for a in self.repository.load_all_allocations() if a.period.start_date <= day
        )

    def _atb_through(self, day: date) -> Money:
        return self._income_through(day) - self._budgeted_through(day)

    def calculate_income_through(self, period: Period) -> Money:
        """Cumulative income from the beginning of history through the period's last day."""
        with self.lock.read():
            return self._income_through(period.end_date)

    def get_available_to_budget(self, period: Period) -> Money:
        """Income not yet assigned to any category, cumulative through ``period``."""
        with self.lock.read():
            atb = self._atb_through(period.end_date)
        logger.debug(f"Available to budget for {period}: {atb}")
        return atb

    def get_category_ledger(
        self, category_id: str, period: Period, target_amount: Money | None = None
    ) -> CategoryLedger:
        """
        Args:
            target_amount: Suggested assignment from the category's active
                target, used to flag the line as underfunded

        Raises:
            NotFoundError: Unknown category
        """
        with self.lock.read():
            category = self._require_category(category_id)
            alloc = self.get_allocation(category_id, period)
            return CategoryLedger(
                category_id=category_id,
                period=period,
                budgeted=alloc.budgeted,
                carryover_in=alloc.carryover_in,
                activity=self.calculate_activity(category_id, period),
                category_name=category.full_name,
                target_amount=target_amount,
            )

    def _available(self, category_id: str, period: Period) -> Money:
        alloc = self.get_allocation(category_id, period)
        return alloc.funded + self.calculate_activity(category_id, period)

    def get_budget_overview(
        self, period: Period, target_amounts: dict[str, Money] | None = None
    ) -> BudgetOverview:
        """
        Ledger lines for every category plus ATB, on-budget balance and expected income.

        Args:
            target_amounts: Suggested assignment per category id; categories
                budgeted below their suggestion are reported as underfunded
        """
        targets = target_amounts or {}
        with self.lock.read():
            categories = sorted(self.repository.load_categories(), key=lambda c: c.full_name)
            lines = [self.get_category_ledger(c.id, period, targets.get(c.id)) for c in categories]
            expectation = self.repository.get_income_expectation(period)

            accounts = [a for a in self.repository.load_accounts() if a.on_budget]
            on_budget = {a.id for a in accounts}
            balance = Money.total(a.starting_balance for a in accounts) + Money.total(
                t.amount
                for t in self.repository.load_transactions(DateRange.through(period.end_date))
                if t.account_id in on_budget
            )

            return BudgetOverview(
                period=period,
                available_to_budget=self._atb_through(period.end_date),
                on_budget_balance=balance,
                categories=lines,
                expected_income=expectation.expected_amount if expectation else None,
            )

    def get_overspent_categories(self, period: Period) -> list[CategoryLedger]:
        """Categories whose available balance is negative in ``period``."""
        with self.lock.read():
            overspent = [
                self.get_category_ledger(c.id, period)
                for c in self.repository.load_categories()
            ]
        overspent = [line for line in overspent if line.is_overspent]
        if overspent:
            logger.warning(f"{len(overspent)} overspent categories in {period}")
        return overspent

    # Mutations

    def _lowest_atb_after(self, period: Period, delta: Money) -> Money:
        """
        Lowest ATB from ``period`` onward once ``delta`` more is budgeted in it.

        Budgeting in one period lowers ATB for every later period too, so each
        later period that already holds allocations is checked as well.
        """
        checkpoints = {period.end_date}
        checkpoints.update(
            a.period.end_date
            for a in self.repository.load_all_allocations()
            if a.period.end_date > period.end_date
        )
        return min(self._atb_through(day) for day in checkpoints) - delta

    def assign(
        self,
        category_id: str,
        period: Period,
        amount: Money,
        allow_negative_atb: bool | None = None,
    ) -> CategoryAllocation:
        """
        Set the budgeted amount for a category in a period.

        Args:
            category_id: Category to budget
            period: Budget period
            amount: New budgeted amount (replaces the old one)
            allow_negative_atb: Override the engine default for deliberate
                deficit budgeting

        Returns:
            The stored allocation

        Raises:
            NotFoundError: Unknown category
            ValidationError: Negative amount on a category that can't carry one,
                or an increase larger than the money left to budget
        """
        allow = self.allow_negative_atb if allow_negative_atb is None else allow_negative_atb

        with self.lock.write():
            category = self._require_category(category_id)
            if amount.is_negative() and not category.allow_negative_assignment:
                raise ValidationError(
                    f"Category '{category.full_name}' does not allow a negative assignment ({amount})"
                )

            stored = self._stored_allocation(category_id, period)
            current = stored or CategoryAllocation(category_id=category_id, period=period)
            delta = amount - current.budgeted
            if delta.is_positive() and not allow:
                remaining = self._lowest_atb_after(period, delta)
                if remaining.is_negative():
                    raise ValidationError(
                        f"Assigning {amount} to '{category.full_name}' exceeds Available to Budget "
                        f"by {remaining.abs()}"
                    )

            if delta.is_zero() and stored is not None:
                return current

            before = stored.to_dict() if stored else None
            updated = current.copy()
            updated.budgeted = amount
            updated.updated_at = datetime.now()
            self.repository.upsert_allocation(updated)

            logger.info(f"Assigned {amount} to {category.full_name} for {period}")
            self._audit(
                EntityType.ALLOCATION,
                f"{category_id}:{period.label()}",
                before,
                updated.to_dict(),
                f"Assigned {amount}",
            )
        return updated

    def add_to_category(
        self,
        category_id: str,
        period: Period,
        amount: Money,
        allow_negative_atb: bool | None = None,
    ) -> CategoryAllocation:
        """Increase (or with a negative amount, decrease) the budgeted amount."""
        with self.lock.write():
            current = self.get_allocation(category_id, period)
            return self.assign(category_id, period, current.budgeted + amount, allow_negative_atb)

    def move_funds(self, from_category: str, to_category: str, amount: Money, period: Period) -> None:
        """
        Move available money between two categories within one period.

        The total budgeted for the period is unchanged. Both sides are written
        or neither is.

        Raises:
            ValidationError: Negative amount or moving a category onto itself
            NotFoundError: Unknown category
            InsufficientFundsError: The source has less available than ``amount``
        """
        if amount.is_negative():
            raise ValidationError(f"Move amount cannot be negative: {amount}")
        if from_category == to_category:
            raise ValidationError("Cannot move funds from a category to itself")
        if amount.is_zero():
            return

        with self.lock.write():
            source = self._require_category(from_category)
            target = self._require_category(to_category)

            available = self._available(from_category, period)
            if available < amount:
                raise InsufficientFundsError(source.full_name, amount, available)

            from_snapshot = self._snapshot(from_category, period)
            to_snapshot = self._snapshot(to_category, period)
            from_before = self.get_allocation(from_category, period)
            to_before = self.get_allocation(to_category, period)
            now = datetime.now()

            from_after = from_before.copy()
            from_after.budgeted = from_before.budgeted - amount
            from_after.updated_at = now
            to_after = to_before.copy()
            to_after.budgeted = to_before.budgeted + amount
            to_after.updated_at = now

            self.repository.upsert_allocation(from_after)
            try:
                self.repository.upsert_allocation(to_after)
            except Exception:
                logger.error(f"Move {source.full_name} -> {target.full_name} failed, restoring source")
                if from_snapshot is None:
                    self.repository.delete_allocation(from_category, period)
                else:
                    self.repository.upsert_allocation(from_before)
                raise

            logger.info(f"Moved {amount} from {source.full_name} to {target.full_name} for {period}")
            reason = f"Moved {amount} from {source.full_name} to {target.full_name}"
            self._audit(
                EntityType.ALLOCATION,
                f"{from_category}:{period.label()}",
                from_snapshot,
                from_after.to_dict(),
                reason,
            )
            self._audit(
                EntityType.ALLOCATION,
                f"{to_category}:{period.label()}",
                to_snapshot,
                to_after.to_dict(),
                reason,
            )

    def apply_rollover(self, from_period: Period, to_period: Period) -> list[CategoryAllocation]:
        """
        Carry every category's available balance into the following period.

        Overspending carries forward as a negative carryover. Reapplying the
        same rollover recomputes from the source period, so it never double counts.

        Returns:
            Allocations whose carryover changed

        Raises:
            ValidationError: ``to_period`` does not directly follow ``from_period``
        """
        if type(from_period) is not type(to_period):
            raise ValidationError(
                f"Cannot roll over from a {from_period.kind.value} to a {to_period.kind.value} period"
            )
        if not from_period.is_contiguous_with(to_period):
            raise ValidationError(f"{to_period} does not directly follow {from_period}")

        changed = []
        with self.lock.write():
            for category in self.repository.load_categories():
                available = self._available(category.id, from_period)
                stored = self._stored_allocation(category.id, to_period)
                before = stored or CategoryAllocation(category_id=category.id, period=to_period)
                if before.carryover_in == available:
                    continue

                after = before.copy()
                after.carryover_in = available
                after.updated_at = datetime.now()
                self.repository.upsert_allocation(after)
                changed.append(after)
                self._audit(
                    EntityType.ALLOCATION,
                    f"{category.id}:{to_period.label()}",
                    stored.to_dict() if stored else None,
                    after.to_dict(),
                    f"Rollover from {from_period}",
                )

        logger.info(f"Rolled over {from_period} -> {to_period}: {len(changed)} categories updated")
        return changed

    # Expected income

    def set_expected_income(
        self, period: Period, amount: Money, notes: str | None = None
    ) -> IncomeExpectation:
        """
        Record or replace the income expected in ``period``.

        ``notes`` left as None keeps the notes of an existing expectation.

        Raises:
            ValidationError: Negative amount
        """
        with self.lock.write():
            existing = self.repository.get_income_expectation(period)
            if existing is None:
                expectation = IncomeExpectation.create(period, amount, notes or "")
                expectation.validate()
                before = None
                reason = f"Expected income {amount}"
            else:
                expectation = IncomeExpectation(
                    id=existing.id,
                    period=period,
                    expected_amount=amount,
                    notes=existing.notes if notes is None else notes,
                    created_at=existing.created_at,
                    updated_at=datetime.now(),
                )
                expectation.validate()
                before = existing.to_dict()
                reason = f"Expected income {existing.expected_amount} -> {amount}"

            self.repository.upsert_income_expectation(expectation)
            logger.info(f"Set expected income for {period}: {amount}")
            self._audit(EntityType.INCOME, expectation.id, before, expectation.to_dict(), reason)
        return expectation

    def get_income_expectation(self, period: Period) -> IncomeExpectation | None:
        with self.lock.read():
            return self.repository.get_income_expectation(period)

    def get_expected_income(self, period: Period) -> Money | None:
        expectation = self.get_income_expectation(period)
        return expectation.expected_amount if expectation else None

    def get_all_income_expectations(self) -> list[IncomeExpectation]:
        """Every recorded expectation, earliest period first."""
        with self.lock.read():
            return self.repository.load_income_expectations()

    def delete_expected_income(self, period: Period) -> bool:
        """
        Returns:
            True if an expectation existed and was removed
        """
        with self.lock.write():
            existing = self.repository.get_income_expectation(period)
            if existing is None:
                return False
            self.repository.delete_income_expectation(period)
            logger.info(f"Removed expected income for {period}")
            self._audit(EntityType.INCOME, existing.id, existing.to_dict(), None, "Removed expected income")
        return True
