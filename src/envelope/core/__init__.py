"""
Core Utilities Package

Shared primitives used by every engine.

This package provides:
- Money with integer-cent arithmetic
- Budget periods (monthly, weekly, biweekly, custom)
- Accounts, categories, transactions and allocations
- The error taxonomy and audit event emission
- Reader/writer locking and environment configuration
"""

from .audit import AuditEvent, AuditSink, EntityType, FileAuditSink, LoggingAuditSink, MemoryAuditSink, emit_audit
from .config import Config, Environment, get_config, get_data_dir, is_test, reload_config
from .currency import (
    allocate_remainder,
    cents_to_dollars_str,
    format_cents,
    parse_dollars_to_cents,
    validate_sum_equals_total,
)
from .errors import (
    AuditSinkWarning,
    ConflictError,
    EnvelopeError,
    InsufficientFundsError,
    LockedError,
    NotFoundError,
    ParseError,
    UnbalancedError,
    ValidationError,
)
from .locking import ReadWriteLock
from .models import Account, Category, CategoryAllocation, IncomeExpectation, Split, Transaction, TransactionStatus
from .money import Money
from .periods import BiweeklyPeriod, CustomPeriod, MonthlyPeriod, Period, PeriodType, WeeklyPeriod

__all__ = [
    "Account",
    "AuditEvent",
    "AuditSink",
    "AuditSinkWarning",
    "BiweeklyPeriod",
    "Category",
    "CategoryAllocation",
    # Configuration
    "Config",
    "ConflictError",
    "CustomPeriod",
    "EntityType",
    "Environment",
    # Errors
    "EnvelopeError",
    "FileAuditSink",
    "IncomeExpectation",
    "InsufficientFundsError",
    "LockedError",
    "LoggingAuditSink",
    "MemoryAuditSink",
    "Money",
    "MonthlyPeriod",
    "NotFoundError",
    "ParseError",
    "Period",
    "PeriodType",
    "ReadWriteLock",
    "Split",
    "Transaction",
    "TransactionStatus",
    "UnbalancedError",
    "ValidationError",
    "WeeklyPeriod",
    # Currency helpers
    "allocate_remainder",
    "cents_to_dollars_str",
    "emit_audit",
    "format_cents",
    "get_config",
    "get_data_dir",
    "is_test",
    "parse_dollars_to_cents",
    "reload_config",
    "validate_sum_equals_total",
]
