"""
CLI interface for the billing cost engine.

Computes single-account costs and renders full customer reports.
"""

import sys
from decimal import Decimal
from typing import Callable, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from billing_cost_engine.config.loader import ReportConfig, load_report_config
from billing_cost_engine.core.account_cost import (
    InvalidDiscountRange,
    compute_account_cost,
    validate_discount_percent,
)
from billing_cost_engine.core.money import format_currency, format_currency_usd, format_ratio
from billing_cost_engine.core.report import CustomerReport, build_customer_report, build_deposits_vs_costs
from billing_cost_engine.sources.provider import YamlFiguresProvider, build_snapshot
from billing_cost_engine.utils.logging import configure_logging, get_logger

app = typer.Typer()
console = Console()
logger = get_logger(__name__)

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    """Billing cost engine CLI."""
    configure_logging(level=log_level, json=json_logs)
    if ctx.invoked_subcommand is None:
        console.print("Billing cost engine - Use --help to see available commands")


@app.command()
def account(
    usage: str = typer.Option("0", "--usage", "-u", help="Usage amount"),
    fee: str = typer.Option("0", "--fee", "-f", help="Fee amount"),
    credit: str = typer.Option("0", "--credit", "-c", help="Credit amount"),
    discount: str = typer.Option("0", "--discount", "-d", help="Customer discount percent (0-100)"),
    rebate: bool = typer.Option(False, "--rebate/--no-rebate", help="Apply rebate credits"),
):
    """Compute total and discounted cost for a single account."""
    try:
        percent = validate_discount_percent(discount)
        result = compute_account_cost(usage, fee, credit, percent, rebate)
    except InvalidDiscountRange as e:
        console.print(f"[red]Invalid discount:[/] {e}")
        sys.exit(EXIT_CODE_ERROR)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_ERROR)

    table = Table(title="Account Cost")
    table.add_column("Field")
    table.add_column("Amount", justify="right")
    table.add_row("Total cost", format_currency_usd(result.total_cost))
    table.add_row("Discounted cost", format_currency_usd(result.discounted_cost))
    table.add_row("Savings", format_currency_usd(result.savings))
    table.add_row("Credit applied", format_currency_usd(result.credit_applied))
    table.add_row("Credit ignored", format_currency_usd(result.credit_ignored))
    console.print(table)
    sys.exit(EXIT_CODE_OK)


@app.command()
def report(
    config_path: str = typer.Argument(..., help="Report configuration YAML"),
    data_path: str = typer.Argument(..., help="Account figures YAML"),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Billing period to report"),
):
    """Render the billing report for a customer."""
    try:
        config = load_report_config(config_path)
        provider = YamlFiguresProvider(data_path)
        snapshot = build_snapshot(provider, config, period)
        result = build_customer_report(snapshot, ratio_decimals=config.display.ratio_decimals)
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        logger.error("report_failed", error=str(e))
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_ERROR)

    _display_report(result, config)
    sys.exit(EXIT_CODE_OK)


@app.command()
def funds(
    config_path: str = typer.Argument(..., help="Report configuration YAML"),
    data_path: str = typer.Argument(..., help="Account figures YAML"),
    periods: Optional[List[str]] = typer.Option(None, "--period", "-p", help="Period to include (repeatable)"),
):
    """Compare deposits with net cost per billing period."""
    try:
        config = load_report_config(config_path)
        provider = YamlFiguresProvider(data_path)
        series = build_deposits_vs_costs(provider, config, periods or provider.periods)
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        logger.error("funds_failed", error=str(e))
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_ERROR)

    fmt = _amount_formatter(config)
    table = Table(title=f"Deposits vs Costs - {config.customer_name}")
    table.add_column("Period")
    table.add_column("Deposits", justify="right")
    table.add_column("Costs", justify="right")
    for row in series:
        table.add_row(row.period, fmt(row.deposits), fmt(row.costs))
    console.print(table)
    sys.exit(EXIT_CODE_OK)


def _amount_formatter(config: ReportConfig) -> Callable[[Decimal], str]:
    """Return the formatter for report amounts (figures are held in USD)."""
    if config.display.currency == "USD":
        return format_currency_usd
    rate = config.exchange_rate.rate
    return lambda amount: format_currency(amount * rate)


def _display_report(result: CustomerReport, config: ReportConfig) -> None:
    """Print all report sections."""
    fmt = _amount_formatter(config)

    console.print(f"\n[bold]Billing Report[/bold] - {result.customer_name}")
    if result.period:
        console.print(f"Period: {result.period}")
    console.print("-" * 40)

    breakdown = Table(title="Cost Breakdown")
    breakdown.add_column("Category")
    breakdown.add_column("Amount", justify="right")
    for label, value in result.breakdown.rows():
        breakdown.add_row(label, fmt(value))
    breakdown.add_row("[bold]Total[/bold]", fmt(result.breakdown.total))
    console.print(breakdown)

    centers = Table(title="Cost by Center")
    centers.add_column("Cost center")
    centers.add_column("Accounts", justify="right")
    centers.add_column("Total cost", justify="right")
    for balance in result.cost_centers.balances:
        centers.add_row(balance.cost_center_name, str(len(balance.account_ids)), fmt(balance.total_cost))
    console.print(centers)
    if result.cost_centers.unassigned_account_ids:
        console.print(
            f"[dim]Not in any cost center: {', '.join(result.cost_centers.unassigned_account_ids)}[/]"
        )

    customer = result.customer_cost
    console.print("\n[bold]Customer Cost[/bold]")
    console.print(f"Gross cost: {fmt(customer.gross_customer_cost)}")
    console.print(f"Discount applied: {fmt(customer.discount_applied)}")
    console.print(f"Net cost: {fmt(customer.net_customer_cost)}")

    payers = Table(title="Cost by Payer Account")
    payers.add_column("Payer")
    payers.add_column("Total cost", justify="right")
    payers.add_column("Discount", justify="right")
    payers.add_column("Discounted cost", justify="right")
    for payer in result.payers:
        payers.add_row(payer.payer_account_id or "-", fmt(payer.total_cost), fmt(payer.savings), fmt(payer.discounted_cost))
    console.print(payers)

    split = result.source_split
    console.print("\n[bold]AWS vs Marketplace[/bold]")
    console.print(f"AWS: {fmt(split.aws_total)} ({format_ratio(split.aws_percent, 1)}%)")
    console.print(f"Marketplace: {fmt(split.marketplace_total)} ({format_ratio(split.marketplace_percent, 1)}%)")

    exchange = result.exchange
    console.print("\n[bold]Exchange Rate[/bold]")
    console.print(exchange.display_ratio)
    console.print(f"Total USD: {format_currency_usd(exchange.total_usd)}")
    console.print(f"Total EUR: {format_currency(exchange.total_eur)}")

    funds = Table(title="Fund Balance")
    funds.add_column("Scope")
    funds.add_column("Deposits", justify="right")
    funds.add_column("Cost", justify="right")
    funds.add_column("Available", justify="right")
    funds.add_column("Used", justify="right")
    rows = [("Customer", result.fund_balance)]
    rows += [(center.cost_center_name, center.balance) for center in result.cost_center_funds]
    for scope, balance in rows:
        available = fmt(balance.available_fund)
        if balance.is_over_budget:
            available = f"[red]{available}[/]"
        funds.add_row(
            scope,
            fmt(balance.total_deposit),
            fmt(balance.total_cost),
            available,
            f"{format_ratio(balance.utilization_percent, 1)}%",
        )
    console.print(funds)


if __name__ == "__main__":
    app()
