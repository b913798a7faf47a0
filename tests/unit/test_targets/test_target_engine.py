#!/usr/bin/env python3
"""Tests for target lifecycle, suggestions, progress and auto-fill."""

from datetime import date

import pytest

from envelope.core.errors import ConflictError, NotFoundError, ValidationError
from envelope.core.models import Transaction
from envelope.core.money import Money
from envelope.core.periods import MonthlyPeriod
from envelope.targets.cadence import ByDateCadence, CustomCadence, MonthlyCadence, WeeklyCadence


def dollars(amount: int) -> Money:
    return Money.from_major_minor(amount)


@pytest.mark.targets
class TestTargetLifecycle:
    """Test creating, updating and deactivating targets."""

    def test_one_active_target_per_category(self, target_engine):
        """Test a second active target conflicts until the first is deactivated."""
        first = target_engine.create_target("rent", dollars(1500), MonthlyCadence())
        with pytest.raises(ConflictError):
            target_engine.create_target("rent", dollars(1600), MonthlyCadence())

        target_engine.deactivate_target(first.id)
        second = target_engine.create_target("rent", dollars(1600), MonthlyCadence())

        assert target_engine.get_active_target("rent").id == second.id

    def test_deactivation_is_soft(self, target_engine, repository, audit_sink):
        """Test deactivated targets stay in the store and are audited."""
        target = target_engine.create_target("groceries", dollars(100), WeeklyCadence())
        target_engine.deactivate_target(target.id)

        stored = [t for t in repository.load_targets() if t.id == target.id]
        assert len(stored) == 1
        assert not stored[0].active
        assert [e.operation for e in audit_sink.for_entity(target.id)] == ["create", "update"]

    def test_validation(self, target_engine):
        """Test amount, interval and category checks."""
        with pytest.raises(ValidationError):
            target_engine.create_target("rent", Money.zero(), MonthlyCadence())
        with pytest.raises(ValidationError):
            target_engine.create_target("rent", dollars(-5), MonthlyCadence())
        with pytest.raises(ValidationError):
            target_engine.create_target("rent", dollars(5), CustomCadence(days=0))
        with pytest.raises(NotFoundError):
            target_engine.create_target("nope", dollars(5), MonthlyCadence())

    def test_update_target(self, target_engine):
        """Test updates apply to active targets only."""
        target = target_engine.create_target("dining", dollars(200), MonthlyCadence())
        updated = target_engine.update_target(target.id, amount=dollars(250), notes="more takeout")

        assert updated.amount == dollars(250)
        assert updated.notes == "more takeout"
        assert updated.cadence == MonthlyCadence()

        target_engine.deactivate_target(target.id)
        with pytest.raises(ValidationError):
            target_engine.update_target(target.id, amount=dollars(300))
        with pytest.raises(NotFoundError):
            target_engine.update_target("tgt-missing", amount=dollars(300))


@pytest.mark.targets
class TestSuggestions:
    """Test suggested amounts per cadence."""

    def test_monthly_target_is_period_identity(self, target_engine, january):
        """Test a $1500 monthly target suggests $1500 in a 31-day month."""
        target = target_engine.create_target("rent", dollars(1500), MonthlyCadence())
        assert target_engine.calculate_for_period(target, january) == dollars(1500)

    def test_weekly_target_in_thirty_day_month(self, target_engine):
        """Test a $100 weekly target suggests $428.57 in a 30-day month."""
        target = target_engine.create_target("groceries", dollars(100), WeeklyCadence())
        assert target_engine.calculate_for_period(target, MonthlyPeriod(2025, 4)).to_cents() == 42857

    def test_by_date_counts_prior_payments(self, target_engine, budget_engine, january):
        """Test $2000 due in 12 periods with $500 already paid suggests $125."""
        budget_engine.record_transaction(
            Transaction.create("checking", date(2024, 12, 10), dollars(-500), category_id="groceries")
        )
        target = target_engine.create_target("groceries", dollars(2000), ByDateCadence(date(2025, 12, 15)))

        assert target_engine.calculate_cumulative_paid("groceries", january) == dollars(500)
        assert target_engine.calculate_for_period(target, january) == dollars(125)

    def test_by_date_ignores_current_period_spending(self, target_engine, budget_engine, january):
        """Test payments inside the query period don't count yet."""
        budget_engine.record_transaction(
            Transaction.create("checking", date(2025, 1, 10), dollars(-500), category_id="groceries")
        )
        target = target_engine.create_target("groceries", dollars(1200), ByDateCadence(date(2025, 12, 1)))
        assert target_engine.calculate_for_period(target, january) == dollars(100)

    def test_inactive_target_suggests_nothing(self, target_engine, january):
        """Test deactivated targets suggest zero."""
        target = target_engine.create_target("rent", dollars(1500), MonthlyCadence())
        inactive = target_engine.deactivate_target(target.id)
        assert target_engine.calculate_for_period(inactive, january).is_zero()


@pytest.mark.targets
class TestProgress:
    """Test display progress toward a target."""

    def test_budgeted_is_fallback_before_payments(self, target_engine, budget_engine, january):
        """Test progress uses budgeted money until something is paid."""
        target_engine.create_target("groceries", dollars(1000), ByDateCadence(date(2025, 6, 30)))
        budget_engine.assign("groceries", january, dollars(200))
        budget_engine.assign("groceries", january.successor(), dollars(200))

        progress = target_engine.get_progress("groceries", MonthlyPeriod(2025, 3))

        assert progress.cumulative_paid.is_zero()
        assert progress.progress_amount == dollars(400)
        assert progress.preview_amount == dollars(400)
        assert progress.progress_pct == pytest.approx(0.4)

    def test_paid_is_authoritative(self, target_engine, budget_engine, january):
        """Test payments replace budgeted as progress without double counting the preview."""
        target_engine.create_target("groceries", dollars(1000), ByDateCadence(date(2025, 6, 30)))
        budget_engine.assign("groceries", january, dollars(200))
        budget_engine.assign("groceries", january.successor(), dollars(200))
        budget_engine.record_transaction(
            Transaction.create("checking", date(2025, 2, 3), dollars(-150), category_id="groceries")
        )

        progress = target_engine.get_progress("groceries", MonthlyPeriod(2025, 3))

        assert progress.progress_amount == dollars(150)
        assert progress.preview_amount == dollars(400)
        assert progress.progress_pct == pytest.approx(0.15)
        assert progress.preview_pct == pytest.approx(0.4)
        assert not progress.is_complete

    def test_percentages_are_clamped(self, target_engine, budget_engine, january):
        """Test overpaid goals display as 100% while the raw ratio exceeds one."""
        target_engine.create_target("dining", dollars(100), ByDateCadence(date(2025, 6, 30)))
        budget_engine.record_transaction(
            Transaction.create("checking", date(2024, 12, 3), dollars(-250), category_id="dining")
        )

        progress = target_engine.get_progress("dining", january)

        assert progress.progress_pct == 1.0
        assert progress.progress_ratio > 1
        assert progress.is_complete

    def test_no_active_target(self, target_engine, january):
        """Test progress requires an active target."""
        with pytest.raises(NotFoundError):
            target_engine.get_progress("rent", january)


@pytest.mark.targets
class TestAutoFill:
    """Test assigning suggested amounts."""

    def test_auto_fill_from_target(self, target_engine, budget_engine, january):
        """Test one category is assigned its suggestion."""
        target_engine.create_target("groceries", dollars(100), WeeklyCadence())

        alloc = target_engine.auto_fill_from_target("groceries", january)

        assert alloc.budgeted.to_cents() == 44286
        assert budget_engine.get_allocation("groceries", january).budgeted.to_cents() == 44286

    def test_auto_fill_without_target(self, target_engine, january):
        """Test auto-fill needs an active target."""
        with pytest.raises(NotFoundError):
            target_engine.auto_fill_from_target("groceries", january)

    def test_partial_success_is_kept(self, target_engine, budget_engine, january):
        """Test one failing category does not undo the others."""
        target_engine.create_target("rent", dollars(1500), MonthlyCadence())
        target_engine.create_target("groceries", dollars(100), WeeklyCadence())

        result = target_engine.auto_fill_all_targets(january)

        assert result.is_partial
        assert [a.category_id for a in result.succeeded] == ["groceries"]
        assert [category_id for category_id, _ in result.failed] == ["rent"]
        assert isinstance(result.failed[0][1], ValidationError)
        assert budget_engine.get_allocation("groceries", january).budgeted.to_cents() == 44286
        assert budget_engine.get_allocation("rent", january).budgeted.is_zero()
        assert result.success_rate == 50.0

    def test_auto_fill_all_with_override(self, target_engine, budget_engine, january):
        """Test deficit budgeting can be requested for a whole fill."""
        target_engine.create_target("rent", dollars(1500), MonthlyCadence())

        result = target_engine.auto_fill_all_targets(january, allow_negative_atb=True)

        assert len(result.succeeded) == 1
        assert budget_engine.get_available_to_budget(january) == dollars(-500)


@pytest.mark.targets
class TestUnderfunded:
    """Test categories budgeted below their target's suggestion are flagged."""

    def test_underfunded_against_suggestion(self, target_engine, budget_engine):
        """Test a category below its monthly target is flagged until fully funded."""
        april = MonthlyPeriod(2025, 4)
        target_engine.create_target("rent", dollars(800), MonthlyCadence())
        budget_engine.assign("rent", april, dollars(500))

        underfunded = target_engine.get_underfunded_categories(april)

        assert [line.category_id for line in underfunded] == ["rent"]
        assert underfunded[0].target_amount == dollars(800)
        assert underfunded[0].underfunded_by == dollars(300)

        budget_engine.assign("rent", april, dollars(800))
        assert target_engine.get_underfunded_categories(april) == []

    def test_categories_without_targets_are_never_underfunded(self, target_engine, budget_engine):
        """Test lines without a target carry no suggestion and no flag."""
        april = MonthlyPeriod(2025, 4)
        target_engine.create_target("groceries", dollars(100), WeeklyCadence())

        overview = target_engine.get_budget_overview(april)
        lines = {line.category_id: line for line in overview.categories}

        assert lines["groceries"].is_underfunded
        assert lines["groceries"].target_amount == Money.from_cents(42857)
        assert lines["dining"].target_amount is None
        assert not lines["dining"].is_underfunded
        assert budget_engine.get_budget_overview(april).underfunded == []

    def test_inactive_target_is_ignored(self, target_engine):
        """Test a deactivated target no longer flags its category."""
        april = MonthlyPeriod(2025, 4)
        target = target_engine.create_target("rent", dollars(800), MonthlyCadence())
        target_engine.deactivate_target(target.id)

        assert target_engine.get_target_amounts(april) == {}
        assert target_engine.get_underfunded_categories(april) == []
