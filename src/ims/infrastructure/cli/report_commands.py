"""CLI commands for dashboard figures."""

from __future__ import annotations

from datetime import datetime

import click

from ims.application.product_metrics import (
    FastMovingItemsHandler,
    HighProfitItemsHandler,
    ProductClassificationHandler,
)
from ims.application.sales_reports import (
    DailySalesHandler,
    DayDetailHandler,
    SalesSummaryHandler,
)
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import local_timezone, unit_of_work


@click.command("summary")
def report_summary() -> None:
    """Sales and gross profit for today, this week and this month."""
    try:
        summary = SalesSummaryHandler(unit_of_work(), tz=local_timezone()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'Period':<12} {'Sales':>16} {'Gross Profit':>16}")
    click.echo("-" * 46)
    for label, figures in (("Today", summary.today), ("This week", summary.week), ("This month", summary.month)):
        click.echo(f"{label:<12} {figures.sales:>16} {figures.gross_profit:>16}")


@click.command("daily")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day (YYYY-MM-DD).")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day (YYYY-MM-DD).")
def report_daily(start: datetime | None, end: datetime | None) -> None:
    """Sales, gross profit and units sold per day."""
    handler = DailySalesHandler(unit_of_work(), tz=local_timezone())
    try:
        days = handler.handle(
            start=start.date() if start else None,
            end=end.date() if end else None,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not days:
        click.echo("No sales in this period.")
        return

    click.echo(f"{'Date':<12} {'Sales':>16} {'Gross Profit':>16} {'Units':>8}")
    click.echo("-" * 55)
    for d in days:
        click.echo(f"{d.date:<12} {d.sales:>16} {d.gross_profit:>16} {d.units_sold:>8}")


def _print_metrics(metrics) -> None:
    if not metrics:
        click.echo("No sales yet.")
        return
    click.echo(f"{'Product':<20} {'SKU':<12} {'Units':>8} {'Sales':>14} {'Gross Profit':>14}")
    click.echo("-" * 72)
    for m in metrics:
        click.echo(
            f"{m.product_name:<20} {m.sku:<12} {m.units_sold:>8} {m.sales:>14} {m.gross_profit:>14}"
        )


@click.command("fast-moving")
@click.option("--limit", default=5, type=int, show_default=True, help="Number of products.")
def report_fast_moving(limit: int) -> None:
    """Products with the most units sold."""
    try:
        metrics = FastMovingItemsHandler(unit_of_work()).handle(limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _print_metrics(metrics)


@click.command("high-profit")
@click.option("--limit", default=5, type=int, show_default=True, help="Number of products.")
def report_high_profit(limit: int) -> None:
    """Products with the highest gross profit."""
    try:
        metrics = HighProfitItemsHandler(unit_of_work()).handle(limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _print_metrics(metrics)


@click.command("day")
@click.option("--date", "day", required=True, type=click.DateTime(formats=["%Y-%m-%d"]), help="Day to show (YYYY-MM-DD).")
def report_day(day: datetime) -> None:
    """Sales and stock received on one day, per product."""
    try:
        detail = DayDetailHandler(unit_of_work(), tz=local_timezone()).handle(day.date())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Details for {detail.date}")
    click.echo()
    click.echo("Stock In")
    if not detail.stock_in:
        click.echo("  No stock-in recorded for this day.")
    else:
        click.echo(f"  {'Product':<20} {'SKU':<12} {'Qty':>6} {'Total Cost':>14}")
        for s in detail.stock_in:
            click.echo(f"  {s.product_name:<20} {s.sku:<12} {s.quantity:>6} {s.total_cost:>14}")
        click.echo(f"  {'Total':<40} {detail.total_stock_in_cost:>14}")

    click.echo()
    click.echo("Sales")
    if not detail.sales:
        click.echo("  No sales recorded for this day.")
        return
    click.echo(f"  {'Product':<20} {'SKU':<12} {'Qty':>6} {'Sales':>14} {'Gross Profit':>14}")
    for line in detail.sales:
        click.echo(
            f"  {line.product_name:<20} {line.sku:<12} {line.quantity:>6} "
            f"{line.sales:>14} {line.gross_profit:>14}"
        )
    click.echo(
        f"  {'Total':<33} {detail.units_sold:>6} {detail.total_sales:>14} "
        f"{detail.total_gross_profit:>14}"
    )


@click.command("metrics")
@click.option("--limit", default=5, type=int, show_default=True, help="Size of each top list.")
def report_metrics(limit: int) -> None:
    """Golden, high-profit slow-moving and fast-moving low-profit products."""
    try:
        groups = ProductClassificationHandler(unit_of_work()).handle(limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for title, names in (
        ("Golden Products", groups.golden),
        ("High Profit, Slow Moving", groups.high_profit_slow_moving),
        ("Fast Moving, Low Profit", groups.fast_moving_low_profit),
    ):
        click.echo(f"{title}:")
        if not names:
            click.echo("  (none)")
        for name in names:
            click.echo(f"  - {name}")
