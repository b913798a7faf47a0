"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from datetime import date
from pathlib import Path

import pytest

from envelope.budget.engine import BudgetEngine
from envelope.core.audit import MemoryAuditSink
from envelope.core.models import Account, Category
from envelope.core.money import Money
from envelope.core.periods import MonthlyPeriod
from envelope.reconciliation.engine import ReconciliationEngine
from envelope.storage.memory import InMemoryRepository
from envelope.targets.engine import TargetEngine


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def january() -> MonthlyPeriod:
    return MonthlyPeriod(year=2025, month=1)


@pytest.fixture
def repository() -> InMemoryRepository:
    """
    Store with one on-budget checking account, one off-budget account and
    four categories. Checking starts with $1,000.00 of income.
    """
    repo = InMemoryRepository()
    repo.upsert_account(Account(id="checking", name="Checking", starting_balance=Money.from_cents(100000)))
    repo.upsert_account(Account(id="brokerage", name="Brokerage", on_budget=False))
    repo.upsert_category(Category(id="rent", name="Rent", group_name="Bills"))
    repo.upsert_category(Category(id="groceries", name="Groceries", group_name="Everyday"))
    repo.upsert_category(Category(id="dining", name="Dining Out", group_name="Everyday"))
    repo.upsert_category(
        Category(id="buffer", name="Future Deficit", group_name="Savings", allow_negative_assignment=True)
    )
    return repo


@pytest.fixture
def audit_sink() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture
def budget_engine(repository, audit_sink) -> BudgetEngine:
    return BudgetEngine(repository, audit_sink)


@pytest.fixture
def target_engine(repository, budget_engine, audit_sink) -> TargetEngine:
    return TargetEngine(repository, budget_engine, audit_sink)


@pytest.fixture
def reconciliation_engine(repository, audit_sink) -> ReconciliationEngine:
    return ReconciliationEngine(repository, audit_sink)


@pytest.fixture
def statement_date() -> date:
    return date(2025, 1, 31)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real ledger data
    monkeypatch.setenv("ENVELOPE_ENV", "test")
    monkeypatch.setenv("ENVELOPE_DATA_DIR", str(tmp_path / "envelope_data"))
    monkeypatch.delenv("ENVELOPE_PERIOD_TYPE", raising=False)
    monkeypatch.delenv("ENVELOPE_ALLOW_NEGATIVE_ATB", raising=False)
    monkeypatch.delenv("ENVELOPE_ADJUSTMENT_CATEGORY", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "budget: Tests for the budget engine")
    config.addinivalue_line("markers", "targets: Tests for targets and cadence conversion")
    config.addinivalue_line("markers", "reconciliation: Tests for statement reconciliation")
