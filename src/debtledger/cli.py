"""Command-line interface for debtledger."""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator

import click

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelSnapshotRepository
from .logging_config import setup_logging
from .services.accrual import InterestMode, InterestType, RepaymentPlan
from .services.advisor import FinanceAdvisor, run_finance_rules
from .services.cashflow import Frequency
from .services.portfolio import DebtPortfolio
from .services.storage import load_portfolio, save_portfolio

DATE = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"])


def _choices(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


@contextmanager
def _portfolio(ctx: click.Context, *, save: bool = True) -> Iterator[DebtPortfolio]:
    """Load the snapshot, hand it to the command and persist it afterwards."""

    repo = ctx.obj["repo"]
    key = ctx.obj["config"].SNAPSHOT_KEY
    portfolio = load_portfolio(repo, key)
    try:
        yield portfolio
    except (KeyError, IndexError, ValueError) as exc:
        raise click.ClickException(str(exc.args[0] if exc.args else exc)) from exc
    if save:
        save_portfolio(repo, portfolio, key)


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Track debts, payments and payoff projections."""

    config = BaseConfig()
    setup_logging(config)
    _engine, session_factory = bootstrap_database(config)
    ctx.obj = {"config": config, "repo": SQLModelSnapshotRepository(session_factory)}


@main.command("add-debt")
@click.argument("name")
@click.option("--principal", type=float, required=True)
@click.option("--interest-type", type=_choices(InterestType), default="monthly", show_default=True)
@click.option("--interest-mode", type=_choices(InterestMode), default=None)
@click.option("--interest-value", type=float, default=0.0, help="Per-day amount/percent or one-time fee.")
@click.option("--interest-rate", type=float, default=0.0, help="Decimal fraction, e.g. 0.02 for 2%.")
@click.option("--plan", type=_choices(RepaymentPlan), default="custom", show_default=True)
@click.option("--emi", "emi_amount", type=float, default=0.0)
@click.option("--start", "start_date", type=DATE, default=None)
@click.option("--end", "end_date", type=DATE, default=None)
@click.pass_context
def add_debt(ctx: click.Context, name: str, principal: float, start_date, end_date, **terms) -> None:
    """Create a debt."""

    with _portfolio(ctx) as portfolio:
        debt = portfolio.add_debt(name, principal, start_date=start_date, end_date=end_date, **terms)
    _echo_json(debt.to_dict())


@main.command("remove-debt")
@click.argument("debt_id", type=int)
@click.pass_context
def remove_debt(ctx: click.Context, debt_id: int) -> None:
    """Delete a debt."""

    with _portfolio(ctx) as portfolio:
        debt = portfolio.remove_debt(debt_id)
    click.echo(f"Removed debt {debt.id} ({debt.name})")


@main.command("pay")
@click.argument("debt_id", type=int)
@click.argument("amount", type=float)
@click.option("--date", "paid_on", type=DATE, default=None)
@click.pass_context
def pay(ctx: click.Context, debt_id: int, amount: float, paid_on) -> None:
    """Record a payment against a debt."""

    with _portfolio(ctx) as portfolio:
        applied = portfolio.record_payment(debt_id, amount, paid_on)
        summary = portfolio.get_debt(debt_id).summary()
    if not applied:
        click.echo("Payment ignored: amount must be positive", err=True)
    _echo_json(summary.as_dict())


@main.command("edit-payment")
@click.argument("debt_id", type=int)
@click.argument("index", type=int)
@click.argument("amount", type=float)
@click.option("--date", "paid_on", type=DATE, default=None)
@click.pass_context
def edit_payment(ctx: click.Context, debt_id: int, index: int, amount: float, paid_on) -> None:
    """Replace a recorded payment and replay the history."""

    with _portfolio(ctx) as portfolio:
        portfolio.update_payment(debt_id, index, amount, paid_on)
        summary = portfolio.get_debt(debt_id).summary()
    _echo_json(summary.as_dict())


@main.command("delete-payment")
@click.argument("debt_id", type=int)
@click.argument("index", type=int)
@click.pass_context
def delete_payment(ctx: click.Context, debt_id: int, index: int) -> None:
    """Remove a recorded payment and replay the history."""

    with _portfolio(ctx) as portfolio:
        portfolio.delete_payment(debt_id, index)
        summary = portfolio.get_debt(debt_id).summary()
    _echo_json(summary.as_dict())


@main.command("add-income")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--frequency", type=_choices(Frequency), default="monthly", show_default=True)
@click.pass_context
def add_income(ctx: click.Context, name: str, amount: float, frequency: str) -> None:
    """Record a recurring income."""

    with _portfolio(ctx) as portfolio:
        income = portfolio.add_income(name, amount, frequency)
    _echo_json(income.to_dict())


@main.command("add-expense")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--frequency", type=_choices(Frequency), default="monthly", show_default=True)
@click.pass_context
def add_expense(ctx: click.Context, name: str, amount: float, frequency: str) -> None:
    """Record a recurring expense."""

    with _portfolio(ctx) as portfolio:
        expense = portfolio.add_expense(name, amount, frequency)
    _echo_json(expense.to_dict())


@main.command("summary")
@click.argument("debt_id", type=int)
@click.pass_context
def summary(ctx: click.Context, debt_id: int) -> None:
    """Show one debt's summary."""

    with _portfolio(ctx, save=False) as portfolio:
        _echo_json(portfolio.get_debt(debt_id).summary().as_dict())


@main.command("dashboard")
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Show portfolio totals and the per-debt breakdown."""

    with _portfolio(ctx, save=False) as portfolio:
        _echo_json(portfolio.dashboard().as_dict())


@main.command("suggest")
@click.pass_context
def suggest(ctx: click.Context) -> None:
    """Show which debt to target under avalanche and snowball."""

    with _portfolio(ctx, save=False) as portfolio:
        suggestion = portfolio.payoff_suggestions()
    if suggestion is None:
        click.echo("No outstanding debts.")
        return
    _echo_json(
        {
            "avalanche": {"id": suggestion.avalanche.id, "name": suggestion.avalanche.name},
            "snowball": {"id": suggestion.snowball.id, "name": suggestion.snowball.name},
        }
    )


@main.command("advise")
@click.argument("question")
@click.pass_context
def advise(ctx: click.Context, question: str) -> None:
    """Ask the finance advisor a question about the portfolio."""

    with _portfolio(ctx, save=False) as portfolio:
        rules = run_finance_rules(portfolio)
    click.echo(FinanceAdvisor(ctx.obj["config"]).ask(question, rules))


if __name__ == "__main__":  # pragma: no cover
    main()
