#!/usr/bin/env python3
"""
Reconciliation Engine

Per-account state machine that clears transactions against a statement
balance and locks them once the books agree:

    difference = statement_balance - (starting balance + reconciled + cleared)

Completing requires a zero difference, or an explicit adjustment transaction
that absorbs it. Reconciled transactions stay locked until ``unlock`` is
called with a reason; the caller is responsible for confirming that with the
user first.

Sessions are stored in the repository and guarded by its lock together with
the transaction statuses they change, so every engine over one store sees the
same open session. Stored transaction status is authoritative: a session's
cleared set is re-read from the repository on every query and before locking.
"""

import logging
from datetime import date, datetime

from ..core.audit import AuditSink, EntityType, emit_audit
from ..core.errors import ConflictError, LockedError, NotFoundError, UnbalancedError, ValidationError
from ..core.models import Account, Transaction, TransactionStatus
from ..core.money import Money
from ..storage.repository import BudgetRepository
from .models import ReconciliationResult, ReconciliationSession, ReconciliationSummary, SessionStatus

logger = logging.getLogger(__name__)

ADJUSTMENT_PAYEE = "Reconciliation Balance Adjustment"


class ReconciliationEngine:
    """
    Args:
        repository: Ledger store (also supplies the exclusion lock)
        audit_sink: Receiver of change events
        adjustment_category_id: Category for adjustment transactions; when
            unset the adjustment is uncategorized and counts as income
    """

    def __init__(
        self,
        repository: BudgetRepository,
        audit_sink: AuditSink | None = None,
        adjustment_category_id: str | None = None,
    ):
        self.repository = repository
        self.audit_sink = audit_sink
        self.adjustment_category_id = adjustment_category_id

    @property
    def lock(self):
        return self.repository.lock

    def _require_account(self, account_id: str) -> Account:
        account = self.repository.get_account(account_id)
        if account is None:
            raise NotFoundError.account(account_id)
        return account

    def _require_session(self, account_id: str) -> ReconciliationSession:
        session = self.repository.get_open_session(account_id)
        if session is None:
            raise ValidationError(f"No reconciliation in progress for account {account_id}")
        return self._refresh(session)

    def _cleared_transactions(self, account_id: str) -> list[Transaction]:
        return [
            t
            for t in self.repository.load_transactions_for_account(account_id)
            if t.status is TransactionStatus.CLEARED
        ]

    def _refresh(self, session: ReconciliationSession) -> ReconciliationSession:
        session.cleared_set = {t.id for t in self._cleared_transactions(session.account_id)}
        return session

    def _set_status(self, transaction: Transaction, status: TransactionStatus, reason: str) -> None:
        before = transaction.to_dict()
        self.repository.set_transaction_status(transaction.id, status)
        after = transaction.with_status(status).to_dict()
        emit_audit(self.audit_sink, EntityType.TRANSACTION, transaction.id, before, after, reason)

    def _finish(self, session: ReconciliationSession, status: SessionStatus, reason: str) -> None:
        before = session.to_dict()
        session.status = status
        session.finished_at = datetime.now()
        self.repository.upsert_session(session)
        emit_audit(self.audit_sink, EntityType.RECONCILIATION, session.id, before, session.to_dict(), reason)

    # Queries

    def get_session(self, account_id: str) -> ReconciliationSession | None:
        """The open session for an account, if any."""
        with self.lock.read():
            session = self.repository.get_open_session(account_id)
            return self._refresh(session) if session is not None else None

    def get_history(self, account_id: str | None = None) -> list[ReconciliationSession]:
        """Finished sessions, oldest first."""
        with self.lock.read():
            return [s for s in self.repository.load_sessions(account_id) if not s.is_open]

    def get_summary(self, account_id: str) -> ReconciliationSummary:
        """
        Raises:
            ValidationError: No session in progress for the account
        """
        with self.lock.read():
            session = self._require_session(account_id)
            account = self._require_account(account_id)
            transactions = self.repository.load_transactions_for_account(account_id)

            by_status: dict[TransactionStatus, list[Transaction]] = {status: [] for status in TransactionStatus}
            for transaction in transactions:
                by_status[transaction.status].append(transaction)

            cleared_balance = (
                account.starting_balance
                + Money.total(t.amount for t in by_status[TransactionStatus.RECONCILED])
                + Money.total(t.amount for t in by_status[TransactionStatus.CLEARED])
            )
            return ReconciliationSummary(
                account_id=account_id,
                statement_balance=session.statement_balance,
                cleared_balance=cleared_balance,
                cleared=by_status[TransactionStatus.CLEARED],
                uncleared=by_status[TransactionStatus.PENDING],
            )

    def difference(self, account_id: str) -> Money:
        """Statement balance minus the cleared balance, recomputed on every call."""
        return self.get_summary(account_id).difference

    # Transitions

    def start(self, account_id: str, statement_date: date, statement_balance: Money) -> ReconciliationSession:
        """
        Open a session, pre-populated with the account's already-cleared transactions.

        Raises:
            NotFoundError: Unknown account
            ValidationError: The account is closed
            ConflictError: A session is already in progress for the account
        """
        with self.lock.write():
            account = self._require_account(account_id)
            if account.closed:
                raise ValidationError(f"Account '{account.name}' is closed and cannot be reconciled")
            if self.repository.get_open_session(account_id) is not None:
                raise ConflictError(f"A reconciliation is already in progress for account '{account.name}'")

            session = self._refresh(ReconciliationSession.open(account_id, statement_date, statement_balance))
            self.repository.upsert_session(session)

            logger.info(
                f"Started reconciliation {session.id} for {account.name}: statement {statement_balance} "
                f"on {statement_date.isoformat()}, {len(session.cleared_set)} already cleared"
            )
            emit_audit(
                self.audit_sink, EntityType.RECONCILIATION, session.id, None, session.to_dict(), "Started reconciliation"
            )
        return session

    def toggle_cleared(self, transaction_id: str) -> TransactionStatus:
        """
        Flip a transaction between Pending and Cleared within its account's open session.

        Returns:
            The transaction's new status

        Raises:
            NotFoundError: Unknown transaction
            LockedError: The transaction is reconciled
            ValidationError: No session in progress for the transaction's account
        """
        with self.lock.write():
            transaction = self.repository.get_transaction(transaction_id)
            if transaction is None:
                raise NotFoundError.transaction(transaction_id)
            if transaction.is_locked:
                raise LockedError(transaction_id)
            session = self._require_session(transaction.account_id)

            if transaction.status is TransactionStatus.CLEARED:
                new_status = TransactionStatus.PENDING
            else:
                new_status = TransactionStatus.CLEARED

            self._set_status(transaction, new_status, f"Marked {new_status.value} during reconciliation")
            self.repository.upsert_session(self._refresh(session))
            logger.debug(f"Toggled {transaction_id} to {new_status.value}")
        return new_status

    def complete(self, account_id: str) -> ReconciliationResult:
        """
        Lock every cleared transaction and close the session.

        Raises:
            ValidationError: No session in progress
            UnbalancedError: The difference is not zero
        """
        with self.lock.write():
            session = self._require_session(account_id)
            difference = self.difference(account_id)
            if not difference.is_zero():
                raise UnbalancedError(account_id, difference)

            result = ReconciliationResult(session=session)
            for transaction in sorted(self._cleared_transactions(account_id), key=lambda t: t.id):
                self._set_status(transaction, TransactionStatus.RECONCILED, f"Reconciled in session {session.id}")
                result.reconciled_ids.append(transaction.id)

            account = self._require_account(account_id)
            account_before = account.to_dict()
            account.last_reconciled_date = session.statement_date
            account.last_reconciled_balance = session.statement_balance
            self.repository.upsert_account(account)
            emit_audit(
                self.audit_sink,
                EntityType.ACCOUNT,
                account_id,
                account_before,
                account.to_dict(),
                f"Reconciled to {session.statement_balance} as of {session.statement_date.isoformat()}",
            )

            self._finish(session, SessionStatus.COMPLETED, "Completed reconciliation")
            logger.info(f"Completed reconciliation {session.id}: {result.reconciled_count} transactions locked")
        return result

    def complete_with_adjustment(self, account_id: str, memo: str = "") -> ReconciliationResult:
        """
        Record one cleared adjustment transaction equal to the difference, then complete.

        With a zero difference no adjustment is created.

        Raises:
            ValidationError: No session in progress
            NotFoundError: The configured adjustment category does not exist
        """
        with self.lock.write():
            session = self._require_session(account_id)
            difference = self.difference(account_id)
            if difference.is_zero():
                return self.complete(account_id)

            category_id = self.adjustment_category_id
            if category_id is not None and self.repository.get_category(category_id) is None:
                raise NotFoundError.category(category_id)

            adjustment = Transaction.create(
                account_id,
                session.statement_date,
                difference,
                category_id=category_id,
                payee_name=ADJUSTMENT_PAYEE,
                memo=memo,
                status=TransactionStatus.CLEARED,
            )
            self.repository.add_transaction(adjustment)
            emit_audit(
                self.audit_sink,
                EntityType.TRANSACTION,
                adjustment.id,
                None,
                adjustment.to_dict(),
                f"Reconciliation adjustment of {difference}",
            )
            session.adjustment_transaction_id = adjustment.id
            self.repository.upsert_session(self._refresh(session))
            logger.warning(f"Created reconciliation adjustment of {difference} for account {account_id}")

            result = self.complete(account_id)
            result.adjustment = adjustment
        return result

    def abort(self, account_id: str) -> ReconciliationSession:
        """
        Discard the session without locking anything. Cleared marks stay as they are.

        Raises:
            ValidationError: No session in progress
        """
        with self.lock.write():
            session = self._require_session(account_id)
            self._finish(session, SessionStatus.ABORTED, "Aborted reconciliation")
            logger.info(f"Aborted reconciliation {session.id}")
        return session

    def unlock(self, transaction_id: str, reason: str) -> Transaction:
        """
        Move a reconciled transaction back to Cleared so it can be edited.

        Raises:
            ValidationError: Empty reason, or the transaction is not reconciled
            NotFoundError: Unknown transaction
        """
        if not reason or not reason.strip():
            raise ValidationError("Unlocking a reconciled transaction requires a reason")

        with self.lock.write():
            transaction = self.repository.get_transaction(transaction_id)
            if transaction is None:
                raise NotFoundError.transaction(transaction_id)
            if not transaction.is_locked:
                raise ValidationError(f"Transaction {transaction_id} is not reconciled")

            self._set_status(transaction, TransactionStatus.CLEARED, f"Unlocked: {reason.strip()}")
            logger.warning(f"Unlocked reconciled transaction {transaction_id}: {reason.strip()}")
        return transaction.with_status(TransactionStatus.CLEARED)
