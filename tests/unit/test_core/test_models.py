#!/usr/bin/env python3
"""Tests for core ledger models."""

from datetime import date

import pytest

from envelope.core.errors import ValidationError
from envelope.core.models import (
    Account,
    Category,
    CategoryAllocation,
    IncomeExpectation,
    Split,
    Transaction,
    TransactionStatus,
)
from envelope.core.money import Money
from envelope.core.periods import MonthlyPeriod


def _split_purchase() -> Transaction:
    return Transaction.create(
        "checking",
        date(2025, 1, 10),
        Money.from_cents(-10000),
        splits=[
            Split(category_id="groceries", amount=Money.from_cents(-7000)),
            Split(category_id="dining", amount=Money.from_cents(-3000)),
        ],
    )


@pytest.mark.unit
class TestTransaction:
    """Test transaction classification and validation."""

    def test_income_classification(self):
        """Test only uncategorized, non-transfer inflows count as income."""
        day = date(2025, 1, 1)
        assert Transaction.create("checking", day, Money.from_cents(5000)).is_income
        assert not Transaction.create("checking", day, Money.from_cents(5000), category_id="rent").is_income
        assert not Transaction.create("checking", day, Money.from_cents(-5000)).is_income
        assert not Transaction.create(
            "checking", day, Money.from_cents(5000), transfer_account_id="savings"
        ).is_income

    def test_split_amounts_per_category(self):
        """Test a split contributes only its own amount to each category."""
        txn = _split_purchase()
        txn.validate()
        assert txn.is_split
        assert txn.amount_for_category("groceries").to_cents() == -7000
        assert txn.amount_for_category("dining").to_cents() == -3000
        assert txn.amount_for_category("rent").is_zero()
        assert txn.category_ids() == {"groceries", "dining"}

    def test_unbalanced_split_is_invalid(self):
        """Test splits must sum to the transaction amount."""
        txn = _split_purchase()
        txn.amount = Money.from_cents(-9999)
        with pytest.raises(ValidationError):
            txn.validate()

    def test_categorized_transfer_is_invalid(self):
        """Test transfers cannot carry a category."""
        txn = Transaction.create(
            "checking", date(2025, 1, 1), Money.from_cents(-100), category_id="rent", transfer_account_id="savings"
        )
        with pytest.raises(ValidationError):
            txn.validate()
        assert txn.amount_for_category("rent").is_zero()

    def test_lock_follows_status(self):
        """Test only reconciled transactions are locked."""
        txn = Transaction.create("checking", date(2025, 1, 1), Money.from_cents(-100))
        assert not txn.is_locked
        assert not txn.with_status(TransactionStatus.CLEARED).is_locked
        assert txn.with_status(TransactionStatus.RECONCILED).is_locked

    def test_dict_round_trip(self):
        """Test persistence round trip keeps splits and status."""
        txn = _split_purchase().with_status(TransactionStatus.CLEARED)
        restored = Transaction.from_dict(txn.to_dict())
        assert restored == txn


@pytest.mark.unit
class TestAccountsAndCategories:
    """Test account, category and allocation records."""

    def test_category_full_name(self):
        """Test group prefix in full name."""
        assert Category(id="g", name="Groceries", group_name="Everyday").full_name == "Everyday: Groceries"
        assert Category(id="g", name="Groceries").full_name == "Groceries"

    def test_account_round_trip(self):
        """Test reconciliation fields survive serialization."""
        account = Account(
            id="checking",
            name="Checking",
            starting_balance=Money.from_cents(100000),
            last_reconciled_date=date(2025, 1, 31),
            last_reconciled_balance=Money.from_cents(0),
        )
        assert Account.from_dict(account.to_dict()) == account

    def test_allocation_funded_and_round_trip(self):
        """Test funded amount and serialization of allocations."""
        alloc = CategoryAllocation(
            category_id="rent",
            period=MonthlyPeriod(2025, 1),
            budgeted=Money.from_cents(150000),
            carryover_in=Money.from_cents(-2500),
        )
        assert alloc.funded.to_cents() == 147500
        assert alloc.key == ("rent", MonthlyPeriod(2025, 1))
        assert CategoryAllocation.from_dict(alloc.to_dict()) == alloc


@pytest.mark.unit
class TestIncomeExpectation:
    """Test expected income against total budgeted."""

    def test_over_budget_and_difference(self):
        """Test assigning more than expected is over budget by the difference."""
        expectation = IncomeExpectation.create(MonthlyPeriod(2025, 1), Money.from_cents(300000))

        assert not expectation.is_over_budget(Money.from_cents(300000))
        assert expectation.is_over_budget(Money.from_cents(300001))
        assert expectation.budget_difference(Money.from_cents(250000)) == Money.from_cents(50000)
        assert expectation.budget_difference(Money.from_cents(320000)) == Money.from_cents(-20000)

    def test_negative_expectation_is_invalid(self):
        """Test validation refuses negative income but allows zero."""
        IncomeExpectation.create(MonthlyPeriod(2025, 1), Money.zero()).validate()
        with pytest.raises(ValidationError, match="cannot be negative"):
            IncomeExpectation.create(MonthlyPeriod(2025, 1), Money.from_cents(-1)).validate()

    def test_round_trip(self):
        """Test persistence keeps period, amount and notes."""
        expectation = IncomeExpectation.create(MonthlyPeriod(2025, 2), Money.from_cents(410000), notes="bonus")
        restored = IncomeExpectation.from_dict(expectation.to_dict())
        assert restored == expectation
