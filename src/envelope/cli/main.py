#!/usr/bin/env python3
"""
Main CLI Entry Point for the Envelope Budget Ledger

Thin command-line front end over the engine API. Subcommand groups live in
sibling modules and are attached at the bottom of this file.
"""

import logging
import os

import click

from ..core.config import Config, get_config, reload_config


def _echo_settings(config_obj: Config) -> None:
    budget = config_obj.budget
    rows = [
        ("Environment", config_obj.environment.value),
        ("Data Directory", config_obj.data_dir),
        ("Ledger File", config_obj.ledger_file),
        ("Period Type", budget.period_type.value),
        ("Allow Negative ATB", budget.allow_negative_atb),
        ("Adjustment Category", budget.adjustment_category_id or "(uncategorized)"),
        ("Currency Symbol", budget.currency_symbol),
        ("Debug Mode", config_obj.debug),
        ("Log Level", config_obj.log_level),
    ]
    for label, value in rows:
        click.echo(f"  {label}: {value}")


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Envelope - Zero-Based Budget Ledger

    Assign every dollar of income to a category, move money between
    categories, roll balances forward, fill recurring targets and reconcile
    accounts against bank statements.
    """
    try:
        if config_env:
            os.environ["ENVELOPE_ENV"] = config_env
            config_obj = reload_config()
        else:
            config_obj = get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("envelope").setLevel(logging.DEBUG)
        click.echo("Debug logging enabled")

    ctx.obj = {"config": config_obj, "verbose": verbose, "debug": debug}

    if verbose:
        click.echo(f"Environment: {config_obj.environment.value}")
        click.echo(f"Data directory: {config_obj.data_dir}")


@main.command()
def version() -> None:
    """Show version information."""
    from envelope import __author__, __version__

    click.echo(f"Envelope Budget Ledger v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    click.echo("Current Configuration:")
    _echo_settings(ctx.obj["config"])


from .budget import budget  # noqa: E402
from .reconcile import reconcile  # noqa: E402

main.add_command(budget)
main.add_command(reconcile)


if __name__ == "__main__":
    main()
