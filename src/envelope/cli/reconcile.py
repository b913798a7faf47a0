#!/usr/bin/env python3
"""
Reconcile CLI - Statement Reconciliation Sessions

Start a session against a bank statement, toggle cleared transactions until
the difference is zero, then complete (optionally with an adjustment).
Session state is kept in the ledger file, so each step is a separate command.
"""

from datetime import date, datetime

import click

from ..core.audit import FileAuditSink
from ..core.config import Config, get_config
from ..core.errors import EnvelopeError
from ..core.money import Money
from ..reconciliation.engine import ReconciliationEngine
from ..storage.json_store import JsonFileRepository


def _open_engine(config: Config) -> ReconciliationEngine:
    return ReconciliationEngine(
        JsonFileRepository(config.ledger_file),
        FileAuditSink(config.audit_dir),
        adjustment_category_id=config.budget.adjustment_category_id,
    )


def _parse_date(text: str | None) -> date:
    if not text:
        return date.today()
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as e:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {text!r}", param_hint="date") from e


@click.group()
def reconcile() -> None:
    """Reconcile accounts against bank statements."""
    pass


@reconcile.command()
@click.argument("account_id")
@click.argument("statement_balance")
@click.option("--date", "statement_date", help="Statement date as YYYY-MM-DD (default: today)")
def start(account_id: str, statement_balance: str, statement_date: str | None) -> None:
    """
    Open a reconciliation session for an account.

    Example:
      envelope reconcile start checking 1523.40 --date 2025-01-31
    """
    config = get_config()
    engine = _open_engine(config)

    try:
        balance = Money.parse(statement_balance)
    except EnvelopeError as e:
        raise click.BadParameter(e.user_message(), param_hint="statement_balance") from e

    try:
        session = engine.start(account_id, _parse_date(statement_date), balance)
        difference = engine.difference(account_id)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Started reconciliation of {account_id} against {balance}")
    click.echo(f"Already cleared: {len(session.cleared_set)} transactions")
    click.echo(f"Difference: {difference.to_display_string(config.budget.currency_symbol)}")


@reconcile.command()
@click.argument("account_id")
def status(account_id: str) -> None:
    """
    Show cleared and uncleared transactions of the open session.

    Example:
      envelope reconcile status checking
    """
    config = get_config()
    symbol = config.budget.currency_symbol
    engine = _open_engine(config)

    try:
        summary = engine.get_summary(account_id)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"Reconciliation of {account_id}")
    click.echo("=" * 60)
    for label, transactions in (("Cleared", summary.cleared), ("Uncleared", summary.uncleared)):
        click.echo(f"{label}:")
        for t in transactions:
            click.echo(f"  {t.id}  {t.date.isoformat()}  {t.amount.to_display_string(symbol):>12}  {t.payee_name}")
    click.echo("-" * 60)
    click.echo(f"Statement Balance: {summary.statement_balance.to_display_string(symbol)}")
    click.echo(f"Cleared Balance:   {summary.cleared_balance.to_display_string(symbol)}")
    click.echo(f"Difference:        {summary.difference.to_display_string(symbol)}")


@reconcile.command()
@click.argument("transaction_id")
def clear(transaction_id: str) -> None:
    """
    Toggle a transaction between pending and cleared.

    Example:
      envelope reconcile clear txn-3f9c2a1b7d6e
    """
    config = get_config()
    engine = _open_engine(config)

    try:
        new_status = engine.toggle_cleared(transaction_id)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ {transaction_id} is now {new_status.value}")


@reconcile.command()
@click.argument("account_id")
@click.option("--adjust", is_flag=True, help="Record an adjustment for any remaining difference")
@click.option("--memo", default="", help="Memo for the adjustment transaction")
def complete(account_id: str, adjust: bool, memo: str) -> None:
    """
    Lock every cleared transaction and close the session.

    The adjustment is categorized to ENVELOPE_ADJUSTMENT_CATEGORY when set.

    Example:
      envelope reconcile complete checking --adjust --memo "bank fee"
    """
    config = get_config()
    engine = _open_engine(config)

    try:
        if adjust:
            result = engine.complete_with_adjustment(account_id, memo)
        else:
            result = engine.complete(account_id)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    if result.adjustment is not None:
        click.echo(f"⚠️  Recorded adjustment of {result.adjustment.amount}")
    click.echo(f"✅ Reconciled {account_id}: {result.reconciled_count} transactions locked")


@reconcile.command()
@click.argument("account_id")
def abort(account_id: str) -> None:
    """Discard the open session without locking anything."""
    config = get_config()
    engine = _open_engine(config)

    try:
        engine.abort(account_id)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Aborted reconciliation of {account_id}")


@reconcile.command()
@click.argument("transaction_id")
@click.option("--reason", required=True, help="Why the reconciled transaction must change")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
def unlock(transaction_id: str, reason: str, yes: bool) -> None:
    """
    Unlock a reconciled transaction so it can be edited.

    Example:
      envelope reconcile unlock txn-3f9c2a1b7d6e --reason "Wrong category"
    """
    if not yes:
        click.confirm(f"Unlock reconciled transaction {transaction_id}?", abort=True)

    config = get_config()
    engine = _open_engine(config)

    try:
        engine.unlock(transaction_id, reason)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Unlocked {transaction_id}")
