#!/usr/bin/env python3
"""
Budget CLI - Assignment, Moves, Rollover, Targets and Expected Income

Works against the JSON ledger file in the configured data directory. Every
change is appended to the monthly audit file in the audit directory.
"""

from datetime import date

import click

from ..budget.engine import BudgetEngine
from ..core.audit import FileAuditSink
from ..core.config import Config, get_config
from ..core.errors import EnvelopeError
from ..core.money import Money
from ..core.periods import Period
from ..storage.json_store import JsonFileRepository
from ..targets.cadence import parse_cadence
from ..targets.engine import TargetEngine


def _open_engines(config: Config) -> tuple[JsonFileRepository, BudgetEngine, TargetEngine]:
    repository = JsonFileRepository(config.ledger_file)
    audit_sink = FileAuditSink(config.audit_dir)
    budget_engine = BudgetEngine(repository, audit_sink, allow_negative_atb=config.budget.allow_negative_atb)
    target_engine = TargetEngine(repository, budget_engine, audit_sink)
    return repository, budget_engine, target_engine


def _resolve_period(text: str | None, config: Config) -> Period:
    try:
        if text:
            return Period.parse(text)
        return Period.current(config.budget.period_type, date.today())
    except EnvelopeError as e:
        raise click.BadParameter(e.user_message(), param_hint="period") from e


def _parse_amount(text: str) -> Money:
    try:
        return Money.parse(text)
    except EnvelopeError as e:
        raise click.BadParameter(e.user_message(), param_hint="amount") from e


@click.group()
def budget() -> None:
    """Zero-based budgeting commands."""
    pass


@budget.command()
@click.option("--period", help="Budget period, e.g. 2025-01, 2025-W03 (default: current)")
@click.pass_context
def overview(ctx: click.Context, period: str | None) -> None:
    """
    Show every category's budgeted, activity and available amounts.

    Example:
      envelope budget overview --period 2025-01
    """
    config = get_config()
    symbol = config.budget.currency_symbol
    _, _, target_engine = _open_engines(config)
    budget_period = _resolve_period(period, config)

    result = target_engine.get_budget_overview(budget_period)

    click.echo(f"Budget for {budget_period}")
    click.echo("=" * 72)
    click.echo(f"{'Category':<32}{'Budgeted':>13}{'Activity':>13}{'Available':>14}")
    for line in result.categories:
        marker = " !" if line.is_overspent else (" ~" if line.is_underfunded else "")
        click.echo(
            f"{line.category_name[:31]:<32}"
            f"{line.budgeted.to_display_string(symbol):>13}"
            f"{line.activity.to_display_string(symbol):>13}"
            f"{line.available.to_display_string(symbol):>14}{marker}"
        )
    click.echo("-" * 72)
    click.echo(f"Available to Budget: {result.available_to_budget.to_display_string(symbol)}")
    click.echo(f"On-Budget Balance:   {result.on_budget_balance.to_display_string(symbol)}")

    if result.expected_income is not None:
        click.echo(f"Expected Income:     {result.expected_income.to_display_string(symbol)}")
    if result.overspent:
        click.echo(f"\n⚠️  {len(result.overspent)} overspent categories")
    if result.underfunded:
        click.echo(f"⚠️  {len(result.underfunded)} categories below their target")
    if result.is_over_budget:
        click.echo(f"⚠️  Budgeted {(-result.budget_difference).to_display_string(symbol)} more than expected income")


@budget.command()
@click.argument("category_id")
@click.argument("amount")
@click.option("--period", help="Budget period (default: current)")
@click.option("--allow-negative-atb", is_flag=True, help="Allow Available to Budget to go negative")
def assign(category_id: str, amount: str, period: str | None, allow_negative_atb: bool) -> None:
    """
    Set the budgeted amount for a category.

    Example:
      envelope budget assign groceries 450.00 --period 2025-01
    """
    config = get_config()
    _, budget_engine, _ = _open_engines(config)
    budget_period = _resolve_period(period, config)

    try:
        alloc = budget_engine.assign(
            category_id, budget_period, _parse_amount(amount), allow_negative_atb=allow_negative_atb or None
        )
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    atb = budget_engine.get_available_to_budget(budget_period)
    click.echo(f"✅ Assigned {alloc.budgeted} to {category_id} for {budget_period}")
    click.echo(f"Available to Budget: {atb.to_display_string(config.budget.currency_symbol)}")


@budget.command()
@click.argument("from_category")
@click.argument("to_category")
@click.argument("amount")
@click.option("--period", help="Budget period (default: current)")
def move(from_category: str, to_category: str, amount: str, period: str | None) -> None:
    """
    Move available money from one category to another.

    Example:
      envelope budget move dining groceries 25.00
    """
    config = get_config()
    _, budget_engine, _ = _open_engines(config)
    budget_period = _resolve_period(period, config)
    money = _parse_amount(amount)

    try:
        budget_engine.move_funds(from_category, to_category, money, budget_period)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Moved {money} from {from_category} to {to_category} for {budget_period}")


@budget.command()
@click.argument("from_period")
@click.argument("to_period")
def rollover(from_period: str, to_period: str) -> None:
    """
    Carry each category's available balance into the next period.

    Example:
      envelope budget rollover 2025-01 2025-02
    """
    config = get_config()
    _, budget_engine, _ = _open_engines(config)

    try:
        changed = budget_engine.apply_rollover(Period.parse(from_period), Period.parse(to_period))
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Rolled over {from_period} -> {to_period}: {len(changed)} categories updated")


@budget.command("set-target")
@click.argument("category_id")
@click.argument("amount")
@click.argument("cadence")
@click.option("--notes", default="", help="Free-form notes")
def set_target(category_id: str, amount: str, cadence: str, notes: str) -> None:
    """
    Create a funding target for a category.

    CADENCE is one of weekly, monthly, yearly, every:DAYS or by:YYYY-MM-DD.

    Example:
      envelope budget set-target vacation 2000.00 by:2025-12-31
    """
    config = get_config()
    _, _, target_engine = _open_engines(config)

    try:
        target = target_engine.create_target(category_id, _parse_amount(amount), parse_cadence(cadence), notes)
    except EnvelopeError as e:
        raise click.ClickException(e.user_message()) from e

    click.echo(f"✅ Target for {category_id}: {target}")


@budget.command()
@click.option("--period", help="Budget period (default: current)")
@click.option("--verbose", "-v", is_flag=True, help="Show each category")
@click.pass_context
def autofill(ctx: click.Context, period: str | None, verbose: bool) -> None:
    """
    Assign every category with an active target its suggested amount.

    Example:
      envelope budget autofill --period 2025-01
    """
    config = get_config()
    _, budget_engine, target_engine = _open_engines(config)
    budget_period = _resolve_period(period, config)

    result = target_engine.auto_fill_all_targets(budget_period)

    if verbose or ctx.obj.get("verbose", False):
        for alloc in result.succeeded:
            click.echo(f"  {alloc.category_id}: {alloc.budgeted}")
        for category_id, error in result.failed:
            click.echo(f"  {category_id}: FAILED - {error.user_message()}")

    click.echo(f"Filled {len(result.succeeded)} of {result.total_processed} targets for {budget_period}")
    click.echo(
        f"Available to Budget: "
        f"{budget_engine.get_available_to_budget(budget_period).to_display_string(config.budget.currency_symbol)}"
    )
    if result.failed:
        raise click.ClickException(f"{len(result.failed)} targets could not be filled")


@budget.command()
@click.argument("amount", required=False)
@click.option("--period", help="Budget period (default: current)")
@click.option("--notes", help="Free-form notes")
@click.option("--remove", is_flag=True, help="Remove the expectation for the period")
def income(amount: str | None, period: str | None, notes: str | None, remove: bool) -> None:
    """
    Show, set or remove the income expected in a period.

    Examples:
      envelope budget income 4200.00 --period 2025-01
      envelope budget income --period 2025-01 --remove
    """
    config = get_config()
    symbol = config.budget.currency_symbol
    _, budget_engine, _ = _open_engines(config)
    budget_period = _resolve_period(period, config)

    if remove:
        if budget_engine.delete_expected_income(budget_period):
            click.echo(f"✅ Removed expected income for {budget_period}")
        else:
            click.echo(f"No expected income recorded for {budget_period}")
        return

    if amount is not None:
        try:
            budget_engine.set_expected_income(budget_period, _parse_amount(amount), notes)
        except EnvelopeError as e:
            raise click.ClickException(e.user_message()) from e

    expectation = budget_engine.get_income_expectation(budget_period)
    if expectation is None:
        click.echo(f"No expected income recorded for {budget_period}")
        return

    total_budgeted = budget_engine.get_budget_overview(budget_period).total_budgeted
    difference = expectation.budget_difference(total_budgeted)
    click.echo(f"Expected income for {budget_period}: {expectation.expected_amount.to_display_string(symbol)}")
    click.echo(f"Budgeted: {total_budgeted.to_display_string(symbol)}")
    if expectation.is_over_budget(total_budgeted):
        click.echo(f"⚠️  Over budget by {difference.abs().to_display_string(symbol)}")
    else:
        click.echo(f"Left to assign: {difference.to_display_string(symbol)}")
