#!/usr/bin/env python3
"""
Error Taxonomy for the Budget Ledger Engine

Every failure the engine reports is one of these kinds. Engine operations raise
them and never recover them internally; callers decide how to present them
(blocking message for validation/conflict, highlight for overspend).

An overspent category (negative available) is a valid state, not an error,
and has no exception type here.
"""


class EnvelopeError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def user_message(self) -> str:
        """Get a user-facing message for this error."""
        return str(self)


class ValidationError(EnvelopeError):
    """Malformed or policy-violating input."""

    kind = "validation"


class ParseError(ValidationError):
    """User-entered text could not be parsed into a Money or Period value."""

    kind = "parse"


class NotFoundError(EnvelopeError):
    """Unknown category, account, transaction, target or period reference."""

    kind = "not_found"

    def __init__(self, entity_type: str, identifier: str):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} not found: {identifier}")

    @classmethod
    def category(cls, identifier: str) -> "NotFoundError":
        return cls("Category", identifier)

    @classmethod
    def account(cls, identifier: str) -> "NotFoundError":
        return cls("Account", identifier)

    @classmethod
    def transaction(cls, identifier: str) -> "NotFoundError":
        return cls("Transaction", identifier)

    @classmethod
    def target(cls, identifier: str) -> "NotFoundError":
        return cls("Target", identifier)


class InsufficientFundsError(EnvelopeError):
    """A move asked for more than the source category has available."""

    kind = "insufficient_funds"

    def __init__(self, category: str, needed, available):
        self.category = category
        self.needed = needed
        self.available = available
        super().__init__(
            f"Insufficient funds in category '{category}': need {needed}, have {available}"
        )


class ConflictError(EnvelopeError):
    """Duplicate active reconciliation session or duplicate active target."""

    kind = "conflict"


class LockedError(EnvelopeError):
    """Mutation attempted on a Reconciled transaction without unlocking it first."""

    kind = "locked"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction is locked (reconciled): {transaction_id}. Unlock it before editing."
        )


class UnbalancedError(EnvelopeError):
    """Reconciliation completion attempted while the difference is nonzero."""

    kind = "unbalanced"

    def __init__(self, account_id: str, difference):
        self.account_id = account_id
        self.difference = difference
        super().__init__(
            f"Cannot complete reconciliation of {account_id}: difference is {difference} (must be zero)"
        )


class AuditSinkWarning(UserWarning):
    """The audit sink failed to record an event; the mutation itself was applied."""
